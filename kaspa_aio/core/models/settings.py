"""
InstallerSettings — per-installation overrides from kaspa-aio.yml.

Every field has a default matching the stock All-in-One checkout, so an
installation without a settings file behaves exactly like one with an
empty file.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class InstallerSettings(BaseModel):
    """Paths and behaviour switches for one installation.

    Attributes:
        env_file:        Live .env file, relative to the root.
        compose_file:    Generated docker-compose file.
        state_file:      Installation-state JSON document.
        backup_dir:      Directory holding backup snapshots.
        audit_file:      NDJSON operation ledger.
        operation_log:   Step-by-step log of add/remove runs (None: off).
        compose_project: Docker Compose project name (volume prefix).
        docker_timeout:  Seconds before a compose call is abandoned.
        developer_mode:  Apply developer-mode keys when generating config.
        require_backup:  Abort removals when the pre-removal backup fails.
    """

    model_config = ConfigDict(extra="forbid")

    env_file: str = ".env"
    compose_file: str = "docker-compose.yml"
    state_file: str = ".kaspa-aio/installation-state.json"
    backup_dir: str = ".kaspa-backups"
    audit_file: str = ".kaspa-aio/audit.ndjson"
    operation_log: str | None = ".kaspa-aio/operations.log"
    compose_project: str = "all-in-one"
    docker_timeout: int = Field(default=120, ge=1)
    developer_mode: bool = False
    require_backup: bool = False

    # ── Resolved paths ───────────────────────────────────────────

    def env_path(self, root: Path) -> Path:
        return root / self.env_file

    def compose_path(self, root: Path) -> Path:
        return root / self.compose_file

    def state_path(self, root: Path) -> Path:
        return root / self.state_file

    def backup_path(self, root: Path) -> Path:
        return root / self.backup_dir

    def audit_path(self, root: Path) -> Path:
        return root / self.audit_file

    def operation_log_path(self, root: Path) -> Path | None:
        return root / self.operation_log if self.operation_log else None
