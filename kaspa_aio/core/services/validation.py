"""
Profile selection validator.

Checks a candidate selection the way the wizard presents it to a user:
every problem is collected (never raised) so the whole list can be
shown at once.

Checks, in order:
    1. migrate legacy IDs, resolve the dependency closure
    2. prerequisites of each requested profile (``any`` / ``all``)
    3. declared conflicts inside the closure
    4. port collisions and dependency cycles
    5. aggregate resources (``high_resources`` warning above 32 GB)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from kaspa_aio.core.models.validation import ResourceRequirements, ValidationResult
from kaspa_aio.core.services.catalog import ProfileCatalog, aggregate_resources
from kaspa_aio.core.services.resolver import DependencyResolver

logger = logging.getLogger(__name__)

# Aggregate minimum memory (GB) above which a selection is flagged
HIGH_MEMORY_THRESHOLD_GB = 32


class ProfileValidator:
    """Validate profile selections against the catalog."""

    def __init__(
        self,
        catalog: ProfileCatalog | None = None,
        resolver: DependencyResolver | None = None,
    ):
        self.catalog = catalog or (resolver.catalog if resolver else ProfileCatalog())
        self.resolver = resolver or DependencyResolver(self.catalog)

    def calculate_resource_requirements(self, profile_ids: Iterable[str]) -> ResourceRequirements:
        """Sum memory and disk, take the max CPU; unknown IDs are skipped."""
        profiles = self.catalog.resolve_profiles(profile_ids)
        totals = aggregate_resources(profiles)

        ports = sorted({port for p in profiles for port in p.ports})

        shared: list[str] = []
        timescale = [p.name for p in profiles if any(s.name.startswith("timescaledb") for s in p.services)]
        if len(timescale) > 1:
            shared.append(f"Separate TimescaleDB instances for: {', '.join(timescale)}")

        return ResourceRequirements(
            **totals.model_dump(),
            ports=ports,
            shared_resources=shared,
        )

    def validate_profile_selection(self, profile_ids: Iterable[str]) -> ValidationResult:
        """Validate a selection and report every problem found."""
        requested_raw = list(profile_ids)
        result = ValidationResult()
        migrator = self.catalog.migrator

        # ── 1. Migrate + resolve ────────────────────────────────
        for profile_id in requested_raw:
            if migrator.is_legacy_profile_id(profile_id):
                result.warn(
                    "legacy_profile_id",
                    f"Profile ID '{profile_id}' is deprecated; "
                    f"use {', '.join(migrator.targets(profile_id))}",
                    profile=profile_id,
                    replacement=list(migrator.targets(profile_id)),
                )

        requested = migrator.migrate_profile_ids(requested_raw)
        for profile_id in requested:
            if not self.catalog.has_profile(profile_id):
                result.error(
                    "unknown_profile",
                    f"Unknown profile: {profile_id}",
                    profile=profile_id,
                )

        resolved = self.resolver.resolve_profile_dependencies(requested)
        result.resolved_profiles = resolved
        resolved_set = set(resolved)

        # ── 2. Prerequisites (requested profiles only) ──────────
        for profile_id in requested:
            profile = self.catalog.get_profile(profile_id)
            if profile is None or not profile.prerequisites:
                continue

            if profile.prerequisites_mode == "any":
                if not resolved_set.intersection(profile.prerequisites):
                    names = [self._display_name(p) for p in profile.prerequisites]
                    result.error(
                        "missing_prerequisite",
                        f"{profile.name} requires one of: {', '.join(names)}",
                        profile=profile_id,
                        options=list(profile.prerequisites),
                    )
            else:
                for prereq in profile.prerequisites:
                    if prereq not in resolved_set:
                        result.error(
                            "missing_prerequisite",
                            f"{profile.name} requires {self._display_name(prereq)}",
                            profile=profile_id,
                            prerequisite=prereq,
                        )

        # ── 3. Conflicts (reported from each side) ──────────────
        for profile_id in resolved:
            profile = self.catalog.get_profile(profile_id)
            for other in profile.conflicts:
                if other in resolved_set:
                    result.error(
                        "profile_conflict",
                        f"{profile.name} conflicts with {self._display_name(other)}",
                        profiles=[profile_id, other],
                    )

        # ── 4. Ports and cycles ─────────────────────────────────
        for conflict in self.resolver.detect_conflicts(resolved):
            if set(conflict["profiles"]) <= resolved_set and self._declared_conflict(*conflict["profiles"]):
                # Already reported as a profile conflict
                continue
            result.error("port_conflict", conflict["message"], port=conflict["port"], profiles=conflict["profiles"])

        for cycle in self.resolver.detect_circular_dependencies(requested):
            result.error(
                "circular_dependency",
                f"Circular dependency: {' → '.join(cycle)}",
                cycle=cycle,
            )

        # ── 5. Resources ────────────────────────────────────────
        requirements = self.calculate_resource_requirements(resolved)
        result.requirements = requirements
        if requirements.min_memory > HIGH_MEMORY_THRESHOLD_GB:
            result.warn(
                "high_resources",
                f"Selected profiles require at least {requirements.min_memory:g}GB RAM",
                minMemory=requirements.min_memory,
            )

        result.valid = not result.errors
        if not result.valid:
            logger.info("Selection %s invalid: %s", requested_raw, result.error_types())
        return result

    def _display_name(self, profile_id: str) -> str:
        profile = self.catalog.get_profile(profile_id)
        return profile.name if profile else profile_id

    def _declared_conflict(self, a: str, b: str) -> bool:
        pa, pb = self.catalog.get_profile(a), self.catalog.get_profile(b)
        return bool((pa and b in pa.conflicts) or (pb and a in pb.conflicts))
