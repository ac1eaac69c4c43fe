"""
Dependency validator — can a profile be added to / removed from a live
installation?

Unlike ``ProfileValidator`` (which judges a whole candidate selection),
this checks one delta against the profiles already installed.  Problems
are collected into ``errors`` / ``warnings``; ``canAdd`` / ``canRemove``
is true iff there are no errors.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from kaspa_aio.core.services.catalog import ProfileCatalog
from kaspa_aio.core.services.resolver import DependencyResolver
from kaspa_aio.core.services.validation import HIGH_MEMORY_THRESHOLD_GB, ProfileValidator

logger = logging.getLogger(__name__)

NODE_PROFILES = ("kaspa-node", "kaspa-archive-node")


class DependencyValidator:
    """Feasibility checks for single-profile changes."""

    def __init__(self, catalog: ProfileCatalog | None = None):
        self.catalog = catalog or ProfileCatalog()
        self.resolver = DependencyResolver(self.catalog)
        self.validator = ProfileValidator(self.catalog, self.resolver)

    def _name(self, profile_id: str) -> str:
        profile = self.catalog.get_profile(profile_id)
        return profile.name if profile else profile_id

    # ═══════════════════════════════════════════════════════════════
    #  Addition
    # ═══════════════════════════════════════════════════════════════

    def validate_addition(self, profile_id: str, current_profiles: Iterable[str]) -> dict[str, Any]:
        """Check adding *profile_id* (a current ID) to *current_profiles*."""
        current = self.catalog.migrator.migrate_profile_ids(current_profiles)
        profile = self.catalog.get_profile(profile_id)
        if profile is None:
            return self._unknown(profile_id, "canAdd")

        if profile.id in current:
            message = f"Profile '{profile.id}' is already installed"
            return {
                "valid": False,
                "canAdd": False,
                "error": message,
                "errors": [{"type": "already_installed", "message": message}],
                "warnings": [],
            }

        errors: list[dict[str, Any]] = []
        warnings: list[dict[str, Any]] = []

        # ── Conflicts, both directions ──────────────────────────
        conflicts = []
        for existing_id in current:
            existing = self.catalog.get_profile(existing_id)
            if existing is None:
                continue
            if profile.id in existing.conflicts:
                conflicts.append({
                    "profile": existing_id,
                    "name": existing.name,
                    "message": f"{existing.name} conflicts with {profile.name}",
                })
            if existing_id in profile.conflicts:
                conflicts.append({
                    "profile": profile.id,
                    "name": profile.name,
                    "message": f"{profile.name} conflicts with {existing.name}",
                })
        if conflicts:
            errors.append({
                "type": "profile_conflicts",
                "message": "Profile conflicts with existing installations",
                "conflicts": conflicts,
            })

        # ── Prerequisites and dependencies ──────────────────────
        missing = self._missing_prerequisites(profile.id, set(current))
        if missing:
            errors.append({
                "type": "missing_prerequisites",
                "message": "Profile has unmet prerequisites",
                "prerequisites": missing,
            })

        missing_deps = [d for d in profile.dependencies if d not in current]
        if missing_deps:
            errors.append({
                "type": "missing_dependencies",
                "message": f"{profile.name} needs {', '.join(self._name(d) for d in missing_deps)} installed first",
                "dependencies": missing_deps,
            })

        # ── Ports ───────────────────────────────────────────────
        combined = [*current, profile.id]
        port_conflicts = [
            c for c in self.resolver.detect_conflicts(combined)
            if profile.id in c["profiles"] and not self._declared_conflict(*c["profiles"])
        ]
        if port_conflicts:
            errors.append({
                "type": "port_conflicts",
                "message": "Profile would cause port conflicts",
                "conflicts": port_conflicts,
            })

        # ── Resources ───────────────────────────────────────────
        requirements = self.validator.calculate_resource_requirements(combined)
        if requirements.min_memory > HIGH_MEMORY_THRESHOLD_GB:
            warnings.append({
                "type": "high_memory",
                "message": f"Adding this profile will require {requirements.min_memory:g}GB RAM total",
                "current": requirements.min_memory - profile.resources.min_memory,
                "additional": profile.resources.min_memory,
            })

        can_add = not errors
        if not can_add:
            logger.info("Cannot add %s to %s: %s", profile.id, current, [e["type"] for e in errors])
        return {
            "valid": can_add,
            "canAdd": can_add,
            "profile": {"id": profile.id, "name": profile.name, "services": profile.service_names},
            "integration": {
                "requirements": requirements.to_dict(),
                "newServices": profile.service_names,
            },
            "errors": errors,
            "warnings": warnings,
        }

    def _missing_prerequisites(self, profile_id: str, installed: set[str]) -> list[dict[str, Any]]:
        profile = self.catalog.get_profile(profile_id)
        if not profile.prerequisites:
            return []

        if profile.prerequisites_mode == "any":
            if installed.intersection(profile.prerequisites):
                return []
            names = ", ".join(self._name(p) for p in profile.prerequisites)
            return [{
                "profile": profile.id,
                "name": profile.name,
                "required": list(profile.prerequisites),
                "message": f"{profile.name} requires one of: {names}",
            }]

        return [
            {
                "profile": profile.id,
                "name": profile.name,
                "required": [prereq],
                "message": f"{profile.name} requires {self._name(prereq)}",
            }
            for prereq in profile.prerequisites
            if prereq not in installed
        ]

    def _declared_conflict(self, a: str, b: str) -> bool:
        pa, pb = self.catalog.get_profile(a), self.catalog.get_profile(b)
        return bool((pa and b in pa.conflicts) or (pb and a in pb.conflicts))

    # ═══════════════════════════════════════════════════════════════
    #  Removal
    # ═══════════════════════════════════════════════════════════════

    def validate_removal(self, profile_id: str, current_profiles: Iterable[str]) -> dict[str, Any]:
        """Check removing *profile_id* (a current ID) from *current_profiles*."""
        current = self.catalog.migrator.migrate_profile_ids(current_profiles)
        profile = self.catalog.get_profile(profile_id)
        if profile is None:
            return self._unknown(profile_id, "canRemove")

        remaining = [p for p in current if p != profile.id]
        errors: list[dict[str, Any]] = []
        warnings: list[dict[str, Any]] = []

        if profile.id not in current:
            warnings.append({
                "type": "not_installed",
                "message": f"{profile.name} is not recorded as installed",
            })

        # ── Dependents ──────────────────────────────────────────
        dependents = []
        for other_id in remaining:
            other = self.catalog.get_profile(other_id)
            if other is not None and profile.id in other.dependencies:
                dependents.append({"id": other_id, "name": other.name})
        if dependents:
            errors.append({
                "type": "dependent_profiles",
                "message": f"Other profiles depend on {profile.name}",
                "profiles": dependents,
            })

        # ── Prerequisites of what stays ─────────────────────────
        issues = []
        remaining_set = set(remaining)
        for other_id in remaining:
            other = self.catalog.get_profile(other_id)
            if other is None or profile.id not in other.prerequisites:
                continue
            if other.prerequisites_mode == "any":
                still_met = any(p != profile.id and p in remaining_set for p in other.prerequisites)
            else:
                still_met = False
            if not still_met:
                issues.append({
                    "profile": other_id,
                    "name": other.name,
                    "message": f"{other.name} requires {profile.name} or another prerequisite",
                })
        if issues:
            errors.append({
                "type": "prerequisite_issues",
                "message": "Removing this profile would break prerequisites for other profiles",
                "issues": issues,
            })

        # ── Shared services ─────────────────────────────────────
        impacts = []
        for service in profile.service_names:
            used_by = [
                self._name(o) for o in remaining
                if self.catalog.get_profile(o) and service in self.catalog.get_profile(o).service_names
            ]
            if used_by:
                impacts.append({"service": service, "usedBy": used_by, "impact": "Service is shared with other profiles"})
        if impacts:
            warnings.append({
                "type": "shared_services",
                "message": "Some services are shared with other profiles",
                "impacts": impacts,
            })

        # ── Last node ───────────────────────────────────────────
        node_warning = None
        if profile.id in NODE_PROFILES and not remaining_set.intersection(NODE_PROFILES):
            node_warning = {
                "severity": "critical",
                "message": "Removing this profile will leave no Kaspa node running",
                "impact": "All services requiring a local node will stop working",
            }
            errors.append({
                "type": "core_profile_removal",
                "message": node_warning["message"],
                "impact": node_warning["impact"],
            })

        can_remove = not errors
        if not can_remove:
            logger.info("Cannot remove %s from %s: %s", profile.id, current, [e["type"] for e in errors])
        return {
            "valid": can_remove,
            "canRemove": can_remove,
            "profile": {"id": profile.id, "name": profile.name, "services": profile.service_names},
            "impact": {
                "dependentProfiles": dependents,
                "prerequisiteIssues": issues,
                "serviceImpacts": impacts,
                "coreProfileWarning": node_warning,
            },
            "errors": errors,
            "warnings": warnings,
        }

    @staticmethod
    def _unknown(profile_id: str, flag: str) -> dict[str, Any]:
        message = f"Profile '{profile_id}' not found"
        return {
            "valid": False,
            flag: False,
            "error": message,
            "errors": [{"type": "unknown_profile", "message": message}],
            "warnings": [],
        }
