"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from kaspa_aio.adapters.mock import MockBackupStore, MockServiceManager
from kaspa_aio.core.models.settings import InstallerSettings
from kaspa_aio.core.persistence.audit import AuditWriter
from kaspa_aio.core.services.catalog import ProfileCatalog


@pytest.fixture
def catalog() -> ProfileCatalog:
    """A fresh catalog over the bundled profile and template data."""
    return ProfileCatalog()


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """An empty installation root."""
    root = tmp_path / "all-in-one"
    root.mkdir()
    return root


@pytest.fixture
def settings() -> InstallerSettings:
    return InstallerSettings()


@pytest.fixture
def services() -> MockServiceManager:
    return MockServiceManager()


@pytest.fixture
def backups() -> MockBackupStore:
    return MockBackupStore()


@pytest.fixture
def workflow_kwargs(install_root, settings, catalog, services, backups) -> dict:
    """Keyword arguments wiring an add/remove workflow to recording doubles."""
    return {
        "settings": settings,
        "catalog": catalog,
        "services": services,
        "backups": backups,
        "audit": AuditWriter(settings.audit_path(install_root)),
    }
