"""
InstallationState — the persisted record of what is installed.

Serialized to .kaspa-aio/installation-state.json.  The document is
shared with the wizard front end, so unknown keys are preserved on
round trip and the wire format stays camelCase.

``profiles.selected`` mirrors the profile set materialized in the live
.env / compose files.  ``history`` is append-only.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from kaspa_aio.core.models.base import CamelModel

STATE_VERSION = "1.0.0"


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class HistoryEntry(CamelModel):
    """One add/remove event.  Never rewritten once appended."""

    model_config = ConfigDict(extra="allow")

    timestamp: str = Field(default_factory=_now_iso)
    action: str
    profile_id: str
    source: str = "wizard-reconfiguration"
    integration_options: list[str] | None = None
    remove_data: bool | None = None
    backup_id: str | None = None


class SelectedProfiles(CamelModel):
    """The ``profiles`` section of the state document."""

    model_config = ConfigDict(extra="allow")

    selected: list[str] = Field(default_factory=list)


class InstallationState(CamelModel):
    """Root state document."""

    model_config = ConfigDict(extra="allow")

    version: str = STATE_VERSION
    installed_at: str = Field(default_factory=_now_iso)
    last_modified: str | None = None
    profiles: SelectedProfiles = Field(default_factory=SelectedProfiles)
    history: list[HistoryEntry] = Field(default_factory=list)

    @field_validator("profiles", mode="before")
    @classmethod
    def _accept_bare_list(cls, value: Any) -> Any:
        # Early installers stored profiles as a bare list
        if isinstance(value, list):
            return {"selected": value}
        return value

    # ── Mutation helpers ─────────────────────────────────────────

    def touch(self) -> None:
        """Update the last_modified timestamp."""
        self.last_modified = _now_iso()

    @property
    def selected(self) -> list[str]:
        return self.profiles.selected

    def set_selected(self, profile_ids: list[str]) -> None:
        self.profiles.selected = list(dict.fromkeys(profile_ids))

    def record(self, action: str, profile_id: str, **details: Any) -> HistoryEntry:
        """Append a history entry and return it."""
        entry = HistoryEntry(action=action, profile_id=profile_id, **details)
        self.history.append(entry)
        return entry

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
