"""
Backup adapter — configuration snapshots under ``.kaspa-backups/``.

Each backup is a directory named by its ID (a millisecond timestamp)
holding copies of the live ``.env``, ``docker-compose.yml`` and
``installation-state.json`` plus a ``backup-metadata.json`` manifest.
Files missing at backup time are skipped.  Backups are never deleted
automatically.
"""

from __future__ import annotations

import json
import logging
import shutil
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from kaspa_aio.adapters.base import BackupStore
from kaspa_aio.core.models.settings import InstallerSettings

logger = logging.getLogger(__name__)

METADATA_FILE = "backup-metadata.json"


def _format_age(timestamp: str) -> str:
    try:
        created = datetime.fromisoformat(timestamp)
    except ValueError:
        return "Unknown"
    seconds = (datetime.now(UTC) - created).total_seconds()
    days, rem = divmod(int(seconds), 86400)
    hours = rem // 3600
    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    return "Less than 1 hour ago"


class BackupManager(BackupStore):
    """Snapshot and restore an installation's configuration files.

    Args:
        root:     Installation root.
        settings: Path layout of the installation (default: stock layout).
    """

    def __init__(self, root: Path, settings: InstallerSettings | None = None):
        self.root = root
        self.settings = settings or InstallerSettings()
        self.backup_dir = self.settings.backup_path(root)

    def _files(self) -> list[tuple[Path, str]]:
        """(live path, name inside the snapshot) for every backed-up file."""
        return [
            (self.settings.env_path(self.root), ".env"),
            (self.settings.compose_path(self.root), "docker-compose.yml"),
            (self.settings.state_path(self.root), "installation-state.json"),
        ]

    def _new_backup_path(self) -> tuple[str, Path]:
        stamp = int(time.time() * 1000)
        while (self.backup_dir / str(stamp)).exists():
            stamp += 1
        return str(stamp), self.backup_dir / str(stamp)

    # ── Create ───────────────────────────────────────────────────

    def create_backup(self, reason: str = "Manual backup", metadata: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            backup_id, backup_path = self._new_backup_path()
            backup_path.mkdir()

            files: list[dict[str, Any]] = []
            total_size = 0
            for src, dest in self._files():
                if not src.is_file():
                    logger.debug("Backup %s: %s not present, skipped", backup_id, src)
                    continue
                shutil.copy2(src, backup_path / dest)
                size = src.stat().st_size
                files.append({
                    "file": dest,
                    "size": size,
                    "originalPath": str(src.relative_to(self.root)),
                })
                total_size += size

            manifest = {
                "backupId": backup_id,
                "timestamp": datetime.now(UTC).isoformat(),
                "reason": reason,
                "metadata": metadata or {},
                "files": files,
                "totalSize": total_size,
            }
            (backup_path / METADATA_FILE).write_text(
                json.dumps(manifest, indent=2) + "\n", encoding="utf-8",
            )
        except OSError as e:
            logger.error("Backup failed: %s", e)
            return {"success": False, "error": str(e)}

        logger.info("Created backup %s (%s, %d files)", backup_id, reason, len(files))
        return {
            "success": True,
            "backupId": backup_id,
            "backupPath": str(backup_path),
            "timestamp": manifest["timestamp"],
            "backedUpFiles": files,
            "totalSize": total_size,
        }

    # ── Query ────────────────────────────────────────────────────

    def _read_manifest(self, backup_path: Path) -> dict[str, Any] | None:
        try:
            return json.loads((backup_path / METADATA_FILE).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Cannot read backup metadata in %s: %s", backup_path, e)
            return None

    def list_backups(self, limit: int = 20) -> dict[str, Any]:
        if not self.backup_dir.is_dir():
            return {"success": True, "backups": [], "total": 0, "showing": 0}

        backups = []
        for entry in self.backup_dir.iterdir():
            if not entry.is_dir():
                continue
            manifest = self._read_manifest(entry)
            if manifest is None:
                continue
            manifest["age"] = _format_age(manifest.get("timestamp", ""))
            backups.append(manifest)

        backups.sort(key=lambda b: b.get("timestamp", ""), reverse=True)
        return {
            "success": True,
            "backups": backups[:limit],
            "total": len(backups),
            "showing": min(limit, len(backups)),
        }

    def get_backup(self, backup_id: str) -> dict[str, Any]:
        manifest = self._read_manifest(self.backup_dir / backup_id)
        if manifest is None:
            return {"success": False, "error": f"Backup {backup_id} not found"}
        return {"success": True, "backup": manifest}

    # ── Restore / delete ─────────────────────────────────────────

    def restore_backup(self, backup_id: str, *, create_backup_before_restore: bool = True) -> dict[str, Any]:
        backup_path = self.backup_dir / backup_id
        if not backup_path.is_dir():
            return {"success": False, "error": f"Backup {backup_id} not found"}

        pre_restore = None
        if create_backup_before_restore:
            pre = self.create_backup(
                f"Pre-restore backup before restoring {backup_id}",
                {"preRestore": True, "restoringFrom": backup_id},
            )
            if pre["success"]:
                pre_restore = pre["backupId"]
            else:
                logger.warning("Pre-restore backup failed: %s", pre["error"])

        restored: list[str] = []
        for dest, name in self._files():
            src = backup_path / name
            if not src.is_file():
                continue
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(src, dest)
            except OSError as e:
                logger.error("Failed to restore %s: %s", name, e)
                return {
                    "success": False,
                    "error": f"Failed to restore {name}: {e}",
                    "restoredFiles": restored,
                    "preRestoreBackup": pre_restore,
                }
            restored.append(str(dest.relative_to(self.root)))

        logger.info("Restored backup %s (%d files)", backup_id, len(restored))
        return {
            "success": True,
            "backupId": backup_id,
            "restoredFiles": restored,
            "preRestoreBackup": pre_restore,
            "requiresRestart": True,
        }

    def delete_backup(self, backup_id: str) -> dict[str, Any]:
        backup_path = self.backup_dir / backup_id
        if not backup_path.is_dir():
            return {"success": False, "error": f"Backup {backup_id} not found"}
        try:
            shutil.rmtree(backup_path)
        except OSError as e:
            return {"success": False, "error": str(e)}
        logger.info("Deleted backup %s", backup_id)
        return {"success": True, "backupId": backup_id}
