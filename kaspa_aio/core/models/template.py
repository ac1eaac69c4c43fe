"""
Template models — named presets bundling profiles with configuration.

Legacy template IDs are not copies of their targets: they are
``AliasOf`` entries resolved at lookup time, so an alias can never
drift from the template it points at.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kaspa_aio.core.models.base import CamelModel
from kaspa_aio.core.models.profile import Resources


class Template(CamelModel):
    """A one-click setup preset."""

    id: str
    name: str
    description: str = ""
    long_description: str = ""
    profiles: list[str] = Field(default_factory=list)
    category: str = "beginner"
    use_case: str = "personal"
    estimated_setup_time: str = ""
    sync_time: str = ""
    icon: str = ""
    config: dict[str, Any] = Field(default_factory=dict)
    resources: Resources = Field(default_factory=Resources)
    features: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    customizable: bool = True
    tags: list[str] = Field(default_factory=list)
    display_order: int = 100
    required_config: list[str] = Field(default_factory=list)

    # custom-setup: profile list filled in at use time
    is_dynamic: bool = False

    # user-created templates (deletable)
    custom: bool = False
    created_at: str | None = None


class AliasOf(BaseModel):
    """A deprecated template ID pointing at a current template."""

    model_config = ConfigDict(frozen=True)

    target: str
    deprecated: bool = True
