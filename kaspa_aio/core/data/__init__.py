"""
Central data registry for the static profile and template catalogs.

Loads the YAML catalogs from ``kaspa_aio/core/data/catalogs/`` once at
first access and caches them for the process lifetime.  Profile and
template entries are validated against their pydantic models here, so
a malformed catalog fails loudly at load instead of deep inside a
resolver run.

Usage::

    from kaspa_aio.core.data import get_registry

    registry = get_registry()
    profiles = registry.profiles        # list[Profile]
    owners = registry.key_ownership     # list[dict]
"""

from __future__ import annotations

import logging
from functools import cached_property
from pathlib import Path
from typing import Any

import yaml

from kaspa_aio.core.models.profile import DataType, Profile
from kaspa_aio.core.models.template import Template

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent


def _load_yaml(relative_path: str) -> Any:
    """Load a YAML file relative to the data directory."""
    path = _DATA_DIR / relative_path
    if not path.exists():
        logger.warning("Data file not found: %s", path)
        return [] if relative_path.endswith("s.yml") else {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


class DataRegistry:
    """Registry for the static catalogs.

    Each property lazily loads its YAML file on first access and caches
    the result for the lifetime of the instance.
    """

    # ── Profiles ─────────────────────────────────────────────────

    @cached_property
    def profiles(self) -> list[Profile]:
        """The eight installable profiles."""
        data = _load_yaml("catalogs/profiles.yml") or []
        result = [Profile.model_validate(item) for item in data]
        logger.debug("Loaded %d profile definitions", len(result))
        return result

    @cached_property
    def legacy_profiles(self) -> dict[str, dict[str, Any]]:
        """Legacy profile ID → {name, configKeys, dataTypes}."""
        data = _load_yaml("catalogs/legacy_profiles.yml") or {}
        result: dict[str, dict[str, Any]] = {}
        for legacy_id, entry in data.items():
            result[legacy_id] = {
                "name": entry.get("name", legacy_id),
                "configKeys": list(entry.get("configKeys", [])),
                "dataTypes": [DataType.model_validate(d) for d in entry.get("dataTypes", [])],
            }
        logger.debug("Loaded %d legacy profile entries", len(result))
        return result

    # ── Templates ────────────────────────────────────────────────

    @cached_property
    def templates(self) -> list[Template]:
        """Built-in setup templates."""
        data = _load_yaml("catalogs/templates.yml") or []
        result = [Template.model_validate(item) for item in data]
        logger.debug("Loaded %d template definitions", len(result))
        return result

    # ── Configuration tables ─────────────────────────────────────

    @cached_property
    def key_ownership(self) -> list[dict[str, Any]]:
        """Ordered .env key prefix → owning profiles rules."""
        data = _load_yaml("catalogs/key_ownership.yml") or []
        logger.debug("Loaded %d key ownership rules", len(data))
        return data

    @cached_property
    def config_defaults(self) -> dict[str, Any]:
        """Fallback values for required keys."""
        data = _load_yaml("catalogs/config_defaults.yml") or {}
        return dict(data.get("values", {}))

    @cached_property
    def generated_password_keys(self) -> frozenset[str]:
        """Keys whose fallback is a freshly generated password."""
        data = _load_yaml("catalogs/config_defaults.yml") or {}
        return frozenset(data.get("generated_passwords", []))


# ── Module-level singleton ───────────────────────────────────────

_registry: DataRegistry | None = None


def get_registry() -> DataRegistry:
    """Return the process-wide registry, creating it on first call."""
    global _registry
    if _registry is None:
        _registry = DataRegistry()
    return _registry
