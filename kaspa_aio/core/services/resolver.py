"""
Dependency resolver — closure, startup order, cycles and port clashes.

Only ``dependencies`` edges are followed here: a dependency is pulled
into the selection automatically.  ``prerequisites`` are checked at
selection time by the validator and never auto-included.

The closure walk is iterative (explicit stack) so a pathological
catalog cannot exhaust the interpreter's recursion limit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from kaspa_aio.core.services.catalog import ProfileCatalog

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Graph queries over the profile catalog."""

    def __init__(self, catalog: ProfileCatalog | None = None):
        self.catalog = catalog or ProfileCatalog()

    # ── Closure ──────────────────────────────────────────────────

    def resolve_profile_dependencies(self, profile_ids: Iterable[str]) -> list[str]:
        """Transitive closure over ``dependencies``, in first-visit order.

        Unknown IDs are skipped with a warning.  Legacy IDs are migrated
        where they are met and their replacements pushed back on the stack.
        """
        migrator = self.catalog.migrator
        resolved: dict[str, None] = {}
        stack = list(reversed(list(profile_ids)))

        while stack:
            profile_id = stack.pop()
            if profile_id in resolved:
                continue

            if migrator.is_legacy_profile_id(profile_id):
                stack.extend(reversed(migrator.targets(profile_id)))
                continue

            profile = self.catalog.get_profile(profile_id)
            if profile is None:
                logger.warning("Unknown profile %r skipped during resolution", profile_id)
                continue

            resolved[profile_id] = None
            for dep in reversed(profile.dependencies):
                if dep not in resolved:
                    stack.append(dep)

        return list(resolved)

    # ── Startup order ────────────────────────────────────────────

    def get_startup_order(self, profile_ids: Iterable[str]) -> list[dict[str, Any]]:
        """Every service of the resolved set, sorted by (startupOrder, name)."""
        services = []
        for profile_id in self.resolve_profile_dependencies(profile_ids):
            profile = self.catalog.get_profile(profile_id)
            for service in profile.services:
                services.append({
                    "name": service.name,
                    "container": service.container_name,
                    "profile": profile.id,
                    "startupOrder": service.startup_order,
                    "required": service.required,
                    "description": service.description,
                })

        services.sort(key=lambda s: (s["startupOrder"], s["name"]))
        return services

    # ── Cycles ───────────────────────────────────────────────────

    def detect_circular_dependencies(self, profile_ids: Iterable[str]) -> list[list[str]]:
        """Find dependency cycles reachable from *profile_ids*.

        Each cycle is the path from the repeated node back to itself,
        e.g. ``["A", "B", "A"]``.
        """
        cycles: list[list[str]] = []
        visited: set[str] = set()

        for start in profile_ids:
            if start in visited:
                continue

            # Iterative DFS: each frame is (node, iterator over its deps)
            path: list[str] = [start]
            on_path: set[str] = {start}
            frames = [(start, iter(self._dependencies_of(start)))]
            visited.add(start)

            while frames:
                node, deps = frames[-1]
                dep = next(deps, None)
                if dep is None:
                    frames.pop()
                    path.pop()
                    on_path.discard(node)
                    continue

                if dep in on_path:
                    cycles.append(path[path.index(dep):] + [dep])
                elif dep not in visited:
                    visited.add(dep)
                    path.append(dep)
                    on_path.add(dep)
                    frames.append((dep, iter(self._dependencies_of(dep))))

        return cycles

    def _dependencies_of(self, profile_id: str) -> list[str]:
        profile = self.catalog.get_profile(profile_id)
        return list(profile.dependencies) if profile else []

    # ── Port conflicts ───────────────────────────────────────────

    def detect_conflicts(self, profile_ids: Iterable[str]) -> list[dict[str, Any]]:
        """Port collisions across the resolved closure.

        The first profile to claim a port owns it; each later claimant
        produces one conflict record naming both profiles.
        """
        owners: dict[int, str] = {}
        conflicts = []

        for profile_id in self.resolve_profile_dependencies(profile_ids):
            profile = self.catalog.get_profile(profile_id)
            for port in profile.ports:
                owner = owners.get(port)
                if owner is None:
                    owners[port] = profile_id
                    continue
                conflicts.append({
                    "type": "port_conflict",
                    "port": port,
                    "profiles": [owner, profile_id],
                    "message": f"Port {port} is used by both {owner} and {profile_id}",
                })

        return conflicts

    # ── Relations to an existing installation ───────────────────

    def get_service_dependencies(self, profile_id: str, current_profiles: Iterable[str]) -> list[dict[str, Any]]:
        """How *profile_id* relates to each installed profile."""
        profile = self.catalog.get_profile(profile_id)
        if profile is None:
            return []

        relations = []
        for current_id in self.catalog.migrator.migrate_profile_ids(current_profiles):
            current = self.catalog.get_profile(current_id)
            if current is None:
                continue
            if current_id in profile.dependencies:
                relations.append({
                    "type": "depends_on",
                    "profile": current_id,
                    "name": current.name,
                    "services": current.service_names,
                })
            if current_id in profile.prerequisites:
                relations.append({
                    "type": "prerequisite_for",
                    "profile": current_id,
                    "name": current.name,
                    "services": current.service_names,
                })
        return relations
