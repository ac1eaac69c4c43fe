"""
Adapter base — the contract between the profile engine and the host.

The engine only talks to Docker and to the backup directory through
these interfaces, never directly.  Tests and ``--mock`` runs swap in
the recording doubles from ``kaspa_aio.adapters.mock``.

Adapters NEVER raise: every failure comes back as
``{"success": False, "error": "..."}``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any


class ServiceManager(ABC):
    """Starts and removes the containers behind profiles."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'docker', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the underlying tool can be used.  Never raises."""

    @abstractmethod
    def start_services(self, profile_ids: Iterable[str]) -> dict[str, Any]:
        """Bring up every container of the given profiles.

        Returns:
            ``{"success": True, "services": [...]}`` or
            ``{"success": False, "error": "..."}``.
        """

    @abstractmethod
    def remove_services(self, container_names: Iterable[str], *, remove_data: bool = False) -> dict[str, Any]:
        """Stop and remove containers, optionally their data volumes.

        Returns:
            ``{"success", "results", "summary"}`` where summary counts
            ``total, removed, not_found, failed, volumes_removed``.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class BackupStore(ABC):
    """Snapshots of the live configuration files."""

    @abstractmethod
    def create_backup(self, reason: str = "Manual backup", metadata: dict[str, Any] | None = None) -> dict[str, Any]:
        """Snapshot the configuration.

        Returns:
            ``{"success": True, "backupId": ...}`` or an error dict.
        """

    @abstractmethod
    def list_backups(self, limit: int = 20) -> dict[str, Any]:
        """Newest first: ``{"success", "backups", "total", "showing"}``."""

    @abstractmethod
    def get_backup(self, backup_id: str) -> dict[str, Any]:
        """Metadata of one backup: ``{"success", "backup"}``."""

    @abstractmethod
    def restore_backup(self, backup_id: str, *, create_backup_before_restore: bool = True) -> dict[str, Any]:
        """Copy a snapshot back into the installation."""

    @abstractmethod
    def delete_backup(self, backup_id: str) -> dict[str, Any]:
        """Remove a snapshot directory."""
