"""Adapters — bindings to Docker and the backup directory.

Public re-exports for convenient access.
"""

from kaspa_aio.adapters.backup import BackupManager
from kaspa_aio.adapters.base import BackupStore, ServiceManager
from kaspa_aio.adapters.docker import DockerManager
from kaspa_aio.adapters.mock import MockBackupStore, MockServiceManager

__all__ = [
    "BackupManager",
    "BackupStore",
    "DockerManager",
    "MockBackupStore",
    "MockServiceManager",
    "ServiceManager",
]
