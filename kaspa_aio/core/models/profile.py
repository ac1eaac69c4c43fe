"""
Profile models — installable units of one or more Docker services.

A profile is pure data: its services, the ports they bind, the
resources they need, the configuration keys they own and how they
relate to other profiles (dependencies, prerequisites, conflicts).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, model_validator

from kaspa_aio.core.models.base import CamelModel


class ServiceSpec(CamelModel):
    """One Docker service inside a profile.

    Attributes:
        name:          Service identifier used in startup ordering.
        required:      Whether the profile is useless without it.
        startup_order: 1 starts first; equal orders may start together.
        container:     Compose service / container name (defaults to name).
        image:         Docker image (defaults to ``<container>:latest``).
        port_keys:     .env key holding the host port → container port.
        data_path:     Mount point of the ``<container>-data`` volume.
    """

    name: str
    required: bool = True
    startup_order: int = Field(default=1, ge=1)
    description: str = ""
    container: str = ""
    image: str = ""
    port_keys: dict[str, int] = Field(default_factory=dict)
    data_path: str = ""

    @property
    def container_name(self) -> str:
        return self.container or self.name

    @property
    def image_name(self) -> str:
        return self.image or f"{self.container_name}:latest"

    @property
    def volume_name(self) -> str:
        return f"{self.container_name}-data"


class Resources(CamelModel):
    """Hardware requirements in GB (memory, disk) and cores (cpu)."""

    min_memory: float = 0
    min_cpu: float = 0
    min_disk: float = 0
    recommended_memory: float = 0
    recommended_cpu: float = 0
    recommended_disk: float = 0


class ProfileConfiguration(CamelModel):
    """Configuration keys a profile owns in the .env file."""

    required: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)
    defaults: dict[str, Any] = Field(default_factory=dict)

    public_indexer_available: bool = False
    public_indexer_url: str | None = None
    embedded_database: bool = False
    bundled_services: list[str] = Field(default_factory=list)

    @property
    def keys(self) -> list[str]:
        """Every key the profile owns, in declaration order, deduplicated."""
        seen: dict[str, None] = {}
        for key in [*self.required, *self.optional, *self.defaults]:
            seen.setdefault(key, None)
        return list(seen)


class DataType(CamelModel):
    """A kind of persistent data a profile leaves on disk."""

    type: str
    name: str
    description: str = ""
    estimated_size: str = "Unknown"
    critical: bool = False


class Profile(CamelModel):
    """A named, installable unit of co-located services."""

    id: str
    name: str
    description: str = ""
    services: list[ServiceSpec] = Field(default_factory=list)

    # ── Relations ────────────────────────────────────────────────
    dependencies: list[str] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    prerequisites_mode: Literal["all", "any"] = "all"
    conflicts: list[str] = Field(default_factory=list)

    # ── Footprint ────────────────────────────────────────────────
    resources: Resources = Field(default_factory=Resources)
    ports: list[int] = Field(default_factory=list)
    configuration: ProfileConfiguration = Field(default_factory=ProfileConfiguration)
    data_types: list[DataType] = Field(default_factory=list)

    # ── Display ──────────────────────────────────────────────────
    category: str = "beginner"
    is_bundle: bool = False

    @model_validator(mode="after")
    def _conflicts_disjoint(self) -> Profile:
        overlap = set(self.conflicts) & (set(self.prerequisites) | set(self.dependencies))
        if overlap:
            raise ValueError(
                f"profile {self.id!r} both requires and conflicts with: "
                f"{', '.join(sorted(overlap))}"
            )
        return self

    @property
    def service_names(self) -> list[str]:
        return [s.name for s in self.services]

    @property
    def container_names(self) -> list[str]:
        return [s.container_name for s in self.services]
