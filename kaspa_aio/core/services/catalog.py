"""
Profile catalog — lookup and template operations over the static data.

The catalog is a read-only view of the profile and template
definitions loaded by the DataRegistry.  Legacy profile IDs resolve
through the ``ProfileIdMigrator``; legacy template IDs resolve through
lazy ``AliasOf`` entries at lookup time.  The only mutable part is the
registry of user-created custom templates.

Usage::

    catalog = ProfileCatalog()
    node = catalog.get_profile("kaspa-node")
    config = catalog.apply_template("solo-miner", {"MINING_ADDRESS": "kaspa:q..."})
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from kaspa_aio.core.models.profile import Profile, Resources
from kaspa_aio.core.models.template import AliasOf, Template
from kaspa_aio.core.services.migration import TEMPLATE_ID_MIGRATION, ProfileIdMigrator

logger = logging.getLogger(__name__)


class NotFoundError(LookupError):
    """Raised when a profile or template ID is unknown."""


# Keys flipped on by developer mode
DEVELOPER_MODE_CONFIG: dict[str, str] = {
    "LOG_LEVEL": "debug",
    "ENABLE_PORTAINER": "true",
    "ENABLE_PGADMIN": "true",
    "ENABLE_LOG_ACCESS": "true",
}

_CUSTOM_TEMPLATE_FIELDS = ("id", "name", "description", "profiles", "config")


def aggregate_resources(profiles: Iterable[Profile]) -> Resources:
    """Combine profile resources: memory and disk add up, CPU takes the max."""
    total = Resources()
    for profile in profiles:
        r = profile.resources
        total.min_memory += r.min_memory
        total.min_cpu = max(total.min_cpu, r.min_cpu)
        total.min_disk += r.min_disk
        total.recommended_memory += r.recommended_memory
        total.recommended_cpu = max(total.recommended_cpu, r.recommended_cpu)
        total.recommended_disk += r.recommended_disk
    return total


class ProfileCatalog:
    """Registry of profile and template definitions.

    Args:
        profiles:  Profile definitions (default: the bundled catalog).
        templates: Template definitions (default: the bundled catalog).
        aliases:   Legacy template ID → current template ID.
    """

    def __init__(
        self,
        profiles: Iterable[Profile] | None = None,
        templates: Iterable[Template] | None = None,
        aliases: dict[str, str] | None = None,
    ):
        if profiles is None or templates is None:
            from kaspa_aio.core.data import get_registry

            registry = get_registry()
            if profiles is None:
                profiles = registry.profiles
            if templates is None:
                templates = registry.templates

        self._profiles: dict[str, Profile] = {p.id: p for p in profiles}
        self._templates: dict[str, Template] = {t.id: t for t in templates}
        self._custom: dict[str, Template] = {}

        alias_table = TEMPLATE_ID_MIGRATION if aliases is None else aliases
        self._aliases: dict[str, AliasOf] = {
            old: AliasOf(target=new)
            for old, new in alias_table.items()
            if old not in self._templates
        }

        self.migrator = ProfileIdMigrator(current_ids=self._profiles)

    # ═══════════════════════════════════════════════════════════════
    #  Profiles
    # ═══════════════════════════════════════════════════════════════

    def has_profile(self, profile_id: str) -> bool:
        return profile_id in self._profiles

    def get_profile(self, profile_id: str) -> Profile | None:
        """Look up a profile; legacy IDs resolve to their first replacement."""
        profile = self._profiles.get(profile_id)
        if profile is not None:
            return profile

        if self.migrator.is_legacy_profile_id(profile_id):
            targets = self.migrator.targets(profile_id)
            logger.warning(
                "Profile ID %r is deprecated, resolved to %r", profile_id, targets[0],
            )
            return self._profiles.get(targets[0])

        return None

    def resolve_profiles(self, profile_ids: Iterable[str]) -> list[Profile]:
        """Migrate IDs and return the known profiles, skipping unknown ones."""
        result = []
        for profile_id in self.migrator.migrate_profile_ids(profile_ids):
            profile = self._profiles.get(profile_id)
            if profile is None:
                logger.warning("Unknown profile %r skipped", profile_id)
                continue
            result.append(profile)
        return result

    def get_all_profiles(self) -> list[Profile]:
        return list(self._profiles.values())

    def get_profiles_by_category(self, category: str) -> list[Profile]:
        return [p for p in self._profiles.values() if p.category == category]

    def get_profile_defaults(self, profile_ids: Iterable[str]) -> dict[str, Any]:
        """Merged configuration defaults of the given profiles."""
        defaults: dict[str, Any] = {}
        for profile in self.resolve_profiles(profile_ids):
            defaults.update(profile.configuration.defaults)
        return defaults

    def get_container_names(self, profile_ids: Iterable[str]) -> list[str]:
        """Unique container names for the given profiles, in order."""
        names: dict[str, None] = {}
        for profile in self.resolve_profiles(profile_ids):
            for container in profile.container_names:
                names.setdefault(container, None)
        return list(names)

    # ═══════════════════════════════════════════════════════════════
    #  Templates: lookup
    # ═══════════════════════════════════════════════════════════════

    def is_template_alias(self, template_id: str) -> bool:
        return template_id in self._aliases

    def get_template_aliases(self) -> dict[str, str]:
        return {old: alias.target for old, alias in self._aliases.items()}

    def get_template(self, template_id: str) -> Template | None:
        """Look up a template, following a deprecated alias if needed."""
        template = self._templates.get(template_id) or self._custom.get(template_id)
        if template is not None:
            return template

        alias = self._aliases.get(template_id)
        if alias is None:
            return None

        logger.warning(
            "Template %r is deprecated. Use %r instead.", template_id, alias.target,
        )
        return self._templates.get(alias.target) or self._custom.get(alias.target)

    def get_all_templates(self) -> list[Template]:
        """Built-in and custom templates ordered by display order; no aliases."""
        templates = [*self._templates.values(), *self._custom.values()]
        return sorted(templates, key=lambda t: t.display_order)

    def get_templates_by_category(self, category: str) -> list[Template]:
        return [t for t in self.get_all_templates() if t.category == category]

    def get_templates_by_use_case(self, use_case: str) -> list[Template]:
        return [t for t in self.get_all_templates() if t.use_case == use_case]

    def search_templates_by_tags(self, tags: Iterable[str]) -> list[Template]:
        """Templates carrying at least one of *tags*."""
        wanted = set(tags)
        return [t for t in self.get_all_templates() if wanted & set(t.tags)]

    # ═══════════════════════════════════════════════════════════════
    #  Templates: operations
    # ═══════════════════════════════════════════════════════════════

    def _require_template(self, template_id: str) -> Template:
        template = self.get_template(template_id)
        if template is None:
            raise NotFoundError(f"Template '{template_id}' not found")
        return template

    def apply_template(self, template_id: str, base_config: dict[str, Any] | None = None) -> dict[str, Any]:
        """Shallow-merge *base_config* with the template config; template wins.

        Raises:
            NotFoundError: If the template ID is unknown.
        """
        template = self._require_template(template_id)
        return {**(base_config or {}), **template.config}

    def merge_template_config(self, template_id: str, user_config: dict[str, Any] | None = None) -> dict[str, Any]:
        """Profile defaults, then user values, then the template's own config."""
        template = self._require_template(template_id)
        merged = self.get_profile_defaults(template.profiles)
        merged.update(user_config or {})
        merged.update(template.config)
        return merged

    def validate_template(self, template_id: str) -> dict[str, Any]:
        """Check a template's profiles, conflicts and required config.

        Returns:
            ``{"valid", "errors", "warnings"}`` plus ``template`` when found
            or ``fallbackOptions`` when not.
        """
        errors: list[dict[str, Any]] = []
        warnings: list[dict[str, Any]] = []

        template = self.get_template(template_id)
        if template is None:
            return {
                "valid": False,
                "errors": [{"type": "template_not_found", "message": f"Template '{template_id}' not found"}],
                "warnings": [],
                "fallbackOptions": [t.id for t in self.get_templates_by_category("beginner")],
            }

        if self.is_template_alias(template_id):
            warnings.append({
                "type": "deprecated_template",
                "message": f"Template '{template_id}' is deprecated. Use '{template.id}' instead.",
                "replacement": template.id,
            })

        if template.is_dynamic and not template.profiles:
            warnings.append({
                "type": "dynamic_template",
                "message": f"Template '{template.id}' has no profiles until you select them",
            })

        resolved: list[Profile] = []
        for profile_id in template.profiles:
            migrated = self.migrator.targets(profile_id)
            known = [self._profiles[i] for i in migrated if i in self._profiles]
            if not known:
                errors.append({
                    "type": "unknown_profile",
                    "message": f"Template references unknown profile: {profile_id}",
                    "profile": profile_id,
                })
                continue
            resolved.extend(known)

        if not errors:
            ids = {p.id for p in resolved}
            for profile in resolved:
                for other in profile.conflicts:
                    if other in ids:
                        errors.append({
                            "type": "profile_conflict",
                            "message": f"Profile conflict: {profile.id} conflicts with {other}",
                            "profiles": [profile.id, other],
                        })

        for key in template.required_config:
            if template.config.get(key) in (None, ""):
                warnings.append({
                    "type": "missing_required_config",
                    "message": f"Template '{template.id}' needs a value for {key}",
                    "key": key,
                })

        return {
            "valid": not errors,
            "errors": errors,
            "warnings": warnings,
            "template": template.to_dict(),
        }

    def get_template_recommendations(
        self,
        system_resources: dict[str, float],
        use_case: str,
    ) -> list[dict[str, Any]]:
        """Rank templates for a machine and a use case.

        Scoring: memory 3 (recommended) / 1 (minimum) / insufficient,
        CPU 2/1, disk 2/1, +5 for a use-case match, +2 for beginner
        templates when the use case is ``personal``.
        """
        memory = system_resources.get("memory", 0)
        cpu = system_resources.get("cpu", 0)
        disk = system_resources.get("disk", 0)

        recommendations = []
        for template in self.get_all_templates():
            # no selection or resource floor to score
            if template.is_dynamic:
                continue

            r = template.resources
            score = 0
            suitability = "suitable"
            reasons: list[str] = []

            if memory >= r.recommended_memory:
                score += 3
                reasons.append("Meets recommended memory requirements")
            elif memory >= r.min_memory:
                score += 1
                reasons.append("Meets minimum memory requirements")
            else:
                suitability = "insufficient"
                reasons.append(f"Requires {r.min_memory:g}GB RAM (you have {memory:g}GB)")

            if cpu >= r.recommended_cpu:
                score += 2
            elif cpu >= r.min_cpu:
                score += 1

            if disk >= r.recommended_disk:
                score += 2
            elif disk >= r.min_disk:
                score += 1

            if template.use_case == use_case:
                score += 5
                reasons.append("Perfect match for your use case")

            if use_case == "personal" and template.category == "beginner":
                score += 2
                reasons.append("Beginner-friendly")

            recommendations.append({
                "template": template.to_dict(),
                "score": score,
                "suitability": suitability,
                "reasons": reasons,
                "recommended": score >= 5 and suitability == "suitable",
            })

        recommendations.sort(key=lambda rec: rec["score"], reverse=True)
        return recommendations

    # ── Custom templates ─────────────────────────────────────────

    def create_custom_template(self, data: dict[str, Any]) -> Template:
        """Build a user template; resources are computed, never supplied.

        Raises:
            ValueError: If a required field is missing.
            NotFoundError: If a referenced profile is unknown.
        """
        missing = [f for f in _CUSTOM_TEMPLATE_FIELDS if data.get(f) in (None, "")]
        if missing:
            raise ValueError("Missing required template fields: " + ", ".join(missing))

        profiles: list[Profile] = []
        for profile_id in data["profiles"]:
            profile = self.get_profile(profile_id)
            if profile is None:
                raise NotFoundError(f"Unknown profile: {profile_id}")
            profiles.append(profile)

        metadata = data.get("metadata") or {}
        return Template(
            id=data["id"],
            name=data["name"],
            description=data["description"],
            long_description=metadata.get("longDescription", data["description"]),
            profiles=[p.id for p in profiles],
            category=metadata.get("category", "custom"),
            use_case=metadata.get("useCase", "custom"),
            estimated_setup_time=metadata.get("estimatedSetupTime", "Variable"),
            sync_time=metadata.get("syncTime", "Variable"),
            icon=metadata.get("icon", "⚙️"),
            config=dict(data["config"]),
            resources=aggregate_resources(profiles),
            features=metadata.get("features", []),
            benefits=metadata.get("benefits", []),
            customizable=True,
            tags=metadata.get("tags", ["custom"]),
            custom=True,
            created_at=datetime.now(UTC).isoformat(),
        )

    def save_custom_template(self, template: Template) -> None:
        if template.id in self._templates:
            raise ValueError(f"Cannot overwrite built-in template '{template.id}'")
        self._custom[template.id] = template
        logger.info("Saved custom template %r", template.id)

    def delete_custom_template(self, template_id: str) -> None:
        """Remove a custom template.

        Raises:
            NotFoundError: If no template has this ID.
            ValueError: If the template is built-in.
        """
        if template_id in self._templates:
            raise ValueError("Cannot delete built-in templates")
        if template_id not in self._custom:
            raise NotFoundError(f"Template '{template_id}' not found")
        del self._custom[template_id]
        logger.info("Deleted custom template %r", template_id)

    # ── Developer mode ───────────────────────────────────────────

    @staticmethod
    def apply_developer_mode(config: dict[str, Any], enabled: bool = False) -> dict[str, Any]:
        """Return *config* with debug logging and inspection tools switched on."""
        if not enabled:
            return config
        return {**config, **DEVELOPER_MODE_CONFIG}
