"""
Validation result models — collected issues, never raised.

Every validator in the engine reports problems as ``ValidationIssue``
entries so a caller can show the full list at once.  Issue types are
plain strings (``missing_prerequisite``, ``profile_conflict``,
``port_conflict``, ``high_resources``, ...); extra context rides along
as additional fields.
"""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from kaspa_aio.core.models.base import CamelModel
from kaspa_aio.core.models.profile import Resources


class ValidationIssue(CamelModel):
    """A single error or warning."""

    model_config = ConfigDict(extra="allow")

    type: str
    message: str


class ResourceRequirements(Resources):
    """Aggregate requirements for a set of profiles."""

    ports: list[int] = Field(default_factory=list)
    shared_resources: list[str] = Field(default_factory=list)


class ValidationResult(CamelModel):
    """Outcome of validating a profile selection."""

    valid: bool = True
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    resolved_profiles: list[str] = Field(default_factory=list)
    requirements: ResourceRequirements = Field(default_factory=ResourceRequirements)

    def error(self, type: str, message: str, **extra: Any) -> None:
        self.errors.append(ValidationIssue(type=type, message=message, **extra))
        self.valid = False

    def warn(self, type: str, message: str, **extra: Any) -> None:
        self.warnings.append(ValidationIssue(type=type, message=message, **extra))

    def error_types(self) -> list[str]:
        return [e.type for e in self.errors]

    def warning_types(self) -> list[str]:
        return [w.type for w in self.warnings]
