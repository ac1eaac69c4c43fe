"""
Mock adapters — recording test doubles for Docker and backups.

Used by the test suite and by ``kaspa-aio --mock`` to exercise the
add/remove workflows without touching Docker or the backup directory.
Every call is recorded; any operation can be configured to fail.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from kaspa_aio.adapters.base import BackupStore, ServiceManager


class MockServiceManager(ServiceManager):
    """ServiceManager double.  Succeeds unless told otherwise."""

    def __init__(self, adapter_name: str = "mock", available: bool = True):
        self._name = adapter_name
        self._available = available
        self._failures: dict[str, str] = {}
        self._call_log: list[tuple[str, dict[str, Any]]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[tuple[str, dict[str, Any]]]:
        """(operation, arguments) for every call received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls(self, operation: str) -> list[dict[str, Any]]:
        return [args for op, args in self._call_log if op == operation]

    def is_available(self) -> bool:
        return self._available

    def set_failure(self, operation: str, error: str = "Mock failure") -> None:
        """Make ``start_services`` or ``remove_services`` fail."""
        self._failures[operation] = error

    def start_services(self, profile_ids: Iterable[str]) -> dict[str, Any]:
        ids = list(profile_ids)
        self._call_log.append(("start_services", {"profile_ids": ids}))
        if "start_services" in self._failures:
            return {"success": False, "error": self._failures["start_services"]}
        return {"success": True, "services": ids, "mock": True}

    def remove_services(self, container_names: Iterable[str], *, remove_data: bool = False) -> dict[str, Any]:
        names = list(container_names)
        self._call_log.append(("remove_services", {"container_names": names, "remove_data": remove_data}))
        if "remove_services" in self._failures:
            return {"success": False, "error": self._failures["remove_services"], "results": []}

        results = [{"service": n, "success": True, "action": "removed"} for n in names]
        if remove_data:
            results += [{"service": n, "success": True, "action": "volume_removed"} for n in names]
        return {
            "success": True,
            "results": results,
            "summary": {
                "total": len(names),
                "removed": len(names),
                "not_found": 0,
                "failed": 0,
                "volumes_removed": len(names) if remove_data else 0,
            },
        }

    def reset(self) -> None:
        """Clear call log and configured failures."""
        self._call_log.clear()
        self._failures.clear()


class MockBackupStore(BackupStore):
    """BackupStore double keeping snapshots in memory."""

    def __init__(self):
        self._backups: dict[str, dict[str, Any]] = {}
        self._failures: dict[str, str] = {}
        self._call_log: list[tuple[str, dict[str, Any]]] = []
        self._counter = 0

    @property
    def call_log(self) -> list[tuple[str, dict[str, Any]]]:
        return self._call_log

    def calls(self, operation: str) -> list[dict[str, Any]]:
        return [args for op, args in self._call_log if op == operation]

    def set_failure(self, operation: str, error: str = "Mock failure") -> None:
        self._failures[operation] = error

    def create_backup(self, reason: str = "Manual backup", metadata: dict[str, Any] | None = None) -> dict[str, Any]:
        self._call_log.append(("create_backup", {"reason": reason, "metadata": metadata or {}}))
        if "create_backup" in self._failures:
            return {"success": False, "error": self._failures["create_backup"]}

        self._counter += 1
        backup_id = f"mock-{self._counter}"
        self._backups[backup_id] = {
            "backupId": backup_id,
            "reason": reason,
            "metadata": metadata or {},
            "files": [],
            "totalSize": 0,
        }
        return {"success": True, "backupId": backup_id, "mock": True}

    def list_backups(self, limit: int = 20) -> dict[str, Any]:
        self._call_log.append(("list_backups", {"limit": limit}))
        backups = list(reversed(self._backups.values()))
        return {
            "success": True,
            "backups": backups[:limit],
            "total": len(backups),
            "showing": min(limit, len(backups)),
        }

    def get_backup(self, backup_id: str) -> dict[str, Any]:
        self._call_log.append(("get_backup", {"backup_id": backup_id}))
        if backup_id not in self._backups:
            return {"success": False, "error": f"Backup {backup_id} not found"}
        return {"success": True, "backup": self._backups[backup_id]}

    def restore_backup(self, backup_id: str, *, create_backup_before_restore: bool = True) -> dict[str, Any]:
        self._call_log.append(("restore_backup", {"backup_id": backup_id}))
        if "restore_backup" in self._failures:
            return {"success": False, "error": self._failures["restore_backup"]}
        if backup_id not in self._backups:
            return {"success": False, "error": f"Backup {backup_id} not found"}
        return {"success": True, "backupId": backup_id, "restoredFiles": [], "requiresRestart": True}

    def delete_backup(self, backup_id: str) -> dict[str, Any]:
        self._call_log.append(("delete_backup", {"backup_id": backup_id}))
        if self._backups.pop(backup_id, None) is None:
            return {"success": False, "error": f"Backup {backup_id} not found"}
        return {"success": True, "backupId": backup_id}
