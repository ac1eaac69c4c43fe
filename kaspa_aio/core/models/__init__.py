"""
Domain models — Pydantic types for the profile engine.

All models are re-exported here for convenient access:

    from kaspa_aio.core.models import Profile, Template, InstallationState
"""

from kaspa_aio.core.models.migration import Expand, MigrationEntry, Single
from kaspa_aio.core.models.profile import (
    DataType,
    Profile,
    ProfileConfiguration,
    Resources,
    ServiceSpec,
)
from kaspa_aio.core.models.settings import InstallerSettings
from kaspa_aio.core.models.state import HistoryEntry, InstallationState, SelectedProfiles
from kaspa_aio.core.models.template import AliasOf, Template
from kaspa_aio.core.models.validation import (
    ResourceRequirements,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # template.py
    "AliasOf",
    # profile.py
    "DataType",
    # migration.py
    "Expand",
    # state.py
    "HistoryEntry",
    "InstallationState",
    # settings.py
    "InstallerSettings",
    "MigrationEntry",
    "Profile",
    "ProfileConfiguration",
    # validation.py
    "ResourceRequirements",
    "Resources",
    "SelectedProfiles",
    "ServiceSpec",
    "Single",
    "Template",
    "ValidationIssue",
    "ValidationResult",
]
