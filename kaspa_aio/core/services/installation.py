"""
Installation workflow base — shared wiring for add/remove.

Holds the installation root, its settings and the collaborators both
orchestrators use (catalog, adapters, generator, audit ledger), plus
the state and ledger helpers.  Collaborators default to the real
implementations; tests and ``--mock`` pass doubles.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from kaspa_aio.adapters.backup import BackupManager
from kaspa_aio.adapters.base import BackupStore, ServiceManager
from kaspa_aio.adapters.docker import DockerManager
from kaspa_aio.core.models.settings import InstallerSettings
from kaspa_aio.core.models.state import InstallationState
from kaspa_aio.core.persistence.audit import AuditEntry, AuditWriter
from kaspa_aio.core.persistence.state_file import load_state, save_state
from kaspa_aio.core.services.catalog import ProfileCatalog
from kaspa_aio.core.services.config_generator import ConfigGenerator
from kaspa_aio.core.services.dependency_validator import DependencyValidator

logger = logging.getLogger(__name__)


class InstallationWorkflow:
    """Base for operations that mutate a live installation.

    Args:
        root:     Installation root directory.
        settings: Installation settings (default: stock layout).
        catalog:  Profile catalog.
        services: Container manager (default: DockerManager).
        backups:  Backup store (default: BackupManager).
        audit:    Operation ledger (default: the settings' audit file).
    """

    def __init__(
        self,
        root: Path,
        *,
        settings: InstallerSettings | None = None,
        catalog: ProfileCatalog | None = None,
        services: ServiceManager | None = None,
        backups: BackupStore | None = None,
        audit: AuditWriter | None = None,
    ):
        self.root = root
        self.settings = settings or InstallerSettings()
        self.catalog = catalog or ProfileCatalog()
        self.services = services or DockerManager(
            root,
            project=self.settings.compose_project,
            timeout=self.settings.docker_timeout,
            catalog=self.catalog,
        )
        self.backups = backups or BackupManager(root, self.settings)
        self.audit = audit or AuditWriter(self.settings.audit_path(root))
        self.dependency_validator = DependencyValidator(self.catalog)
        self.generator = ConfigGenerator(self.catalog, developer_mode=self.settings.developer_mode)

    # ── Paths ────────────────────────────────────────────────────

    @property
    def env_path(self) -> Path:
        return self.settings.env_path(self.root)

    @property
    def compose_path(self) -> Path:
        return self.settings.compose_path(self.root)

    @property
    def state_path(self) -> Path:
        return self.settings.state_path(self.root)

    # ── State ────────────────────────────────────────────────────

    def load_state(self) -> InstallationState:
        return load_state(self.state_path)

    def save_state(self, state: InstallationState) -> None:
        save_state(state, self.state_path)

    def current_profiles(self, state: InstallationState, explicit: Iterable[str] | None) -> list[str]:
        """Installed profiles (current IDs): *explicit* when given, else the state's."""
        source = state.selected if explicit is None else explicit
        return self.catalog.migrator.migrate_profile_ids(source)

    def target_profiles(self, profile_id: str) -> list[str]:
        """Current IDs an operation on *profile_id* touches (empty if unknown)."""
        return [p for p in self.catalog.migrator.targets(profile_id) if self.catalog.has_profile(p)]

    def display_name(self, profile_ids: Iterable[str]) -> str:
        return ", ".join(self.catalog.get_profile(p).name for p in profile_ids)

    # ── Ledger ───────────────────────────────────────────────────

    def record_audit(
        self,
        operation: str,
        profile_id: str,
        status: str,
        *,
        backup_id: str | None = None,
        error: str | None = None,
        **context: Any,
    ) -> None:
        self.audit.write(AuditEntry(
            operation=operation,
            profile_id=profile_id,
            status=status,
            backup_id=backup_id,
            error=error,
            context=context,
        ))

    def failure(
        self,
        operation: str,
        profile_id: str,
        error: str,
        *,
        backup_id: str | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Log a failed operation to the ledger and build its result."""
        self.record_audit(operation, profile_id, "failed", backup_id=backup_id, error=error)
        result: dict[str, Any] = {"success": False, "error": error}
        if backup_id is not None:
            result["backupId"] = backup_id
        result.update(extra)
        return result
