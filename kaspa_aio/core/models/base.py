"""
CamelModel — shared base for models with a camelCase wire format.

Catalog YAML, installation-state JSON and every result handed to
callers use camelCase keys (``startupOrder``, ``minMemory``).  Python
code uses the snake_case attribute names.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """BaseModel that reads either key style and writes camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
