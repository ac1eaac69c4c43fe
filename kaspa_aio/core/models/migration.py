"""
Migration entries — how a legacy profile ID maps onto current IDs.

Each entry is a tagged union member: ``Single`` renames one profile,
``Expand`` splits a removed bundle profile into its granular
replacements.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Single(BaseModel):
    """Legacy ID renamed to exactly one current ID."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["single"] = "single"
    id: str

    @property
    def targets(self) -> tuple[str, ...]:
        return (self.id,)


class Expand(BaseModel):
    """Legacy ID split into several current IDs."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["expand"] = "expand"
    ids: tuple[str, ...]

    @property
    def targets(self) -> tuple[str, ...]:
        return self.ids


MigrationEntry = Annotated[Union[Single, Expand], Field(discriminator="kind")]
