"""
Profile ID migration — legacy identifiers to current ones.

Installation-state files written by the five-profile wizard name
profiles that no longer exist (``core``, ``indexer-services``, ...).
This module translates them, one-to-one or one-to-many, so the rest of
the engine only ever reasons about current IDs.

Migration never fails: an unmapped ID passes through unchanged with a
warning, and the caller's own lookup decides what to do with it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from kaspa_aio.core.models.migration import Expand, MigrationEntry, Single

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Static tables
# ═══════════════════════════════════════════════════════════════════

PROFILE_ID_MIGRATION: Mapping[str, MigrationEntry] = MappingProxyType({
    "core": Single(id="kaspa-node"),
    "kaspa-user-applications": Expand(ids=("kasia-app", "k-social-app")),
    "indexer-services": Expand(ids=("kasia-indexer", "k-indexer-bundle")),
    "archive-node": Single(id="kaspa-archive-node"),
    "mining": Single(id="kaspa-stratum"),
})

TEMPLATE_ID_MIGRATION: Mapping[str, str] = MappingProxyType({
    "beginner-setup": "quick-start",
    "home-node": "kaspa-node",
    "public-node": "kaspa-node",
    "full-node": "kaspa-sovereignty",
    "full-stack": "kaspa-sovereignty",
    "developer-setup": "custom-setup",
    "developer": "custom-setup",
    "mining-rig": "solo-miner",
    "miner-node": "solo-miner",
    "mining-setup": "solo-miner",
})


def _current_catalog_ids() -> frozenset[str]:
    from kaspa_aio.core.data import get_registry

    return frozenset(p.id for p in get_registry().profiles)


class ProfileIdMigrator:
    """Translate legacy profile IDs against a set of current IDs."""

    def __init__(
        self,
        current_ids: Iterable[str] | None = None,
        table: Mapping[str, MigrationEntry] = PROFILE_ID_MIGRATION,
    ):
        self._current = frozenset(current_ids) if current_ids is not None else _current_catalog_ids()
        self._table = table

    @property
    def current_ids(self) -> frozenset[str]:
        return self._current

    def is_current(self, profile_id: str) -> bool:
        return profile_id in self._current

    def is_legacy_profile_id(self, profile_id: str) -> bool:
        """True iff the ID is in the legacy map and not a current profile."""
        return profile_id in self._table and profile_id not in self._current

    def targets(self, profile_id: str) -> tuple[str, ...]:
        """Current IDs for *profile_id* as a tuple (identity when current or unmapped)."""
        if profile_id in self._current:
            return (profile_id,)
        entry = self._table.get(profile_id)
        if entry is None:
            return (profile_id,)
        return entry.targets

    def migrate_profile_id(self, profile_id: str) -> str | list[str]:
        """Migrate one ID.

        Returns:
            The ID itself when already current, the replacement for a
            renamed profile, or a list of replacements for a split one.
            Unknown IDs come back unchanged.
        """
        if profile_id in self._current:
            return profile_id

        entry = self._table.get(profile_id)
        if entry is None:
            logger.warning("Unknown profile ID %r, passing through unmigrated", profile_id)
            return profile_id

        if isinstance(entry, Expand):
            logger.info("Migrated legacy profile %r → %s", profile_id, list(entry.ids))
            return list(entry.ids)

        logger.info("Migrated legacy profile %r → %r", profile_id, entry.id)
        return entry.id

    def migrate_profile_ids(self, profile_ids: Iterable[str]) -> list[str]:
        """Migrate, flatten and deduplicate, keeping first-seen order."""
        result: dict[str, None] = {}
        for profile_id in profile_ids:
            migrated = self.migrate_profile_id(profile_id)
            if isinstance(migrated, list):
                for new_id in migrated:
                    result.setdefault(new_id, None)
            else:
                result.setdefault(migrated, None)
        return list(result)

    @staticmethod
    def migrate_template_id(template_id: str) -> str:
        """Current template ID for a possibly-legacy one."""
        return TEMPLATE_ID_MIGRATION.get(template_id, template_id)
