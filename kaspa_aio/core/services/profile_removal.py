"""
Profile removal — take a profile out of a running installation.

Flow:
    1. DependencyValidator.validate_removal for each affected profile
    2. backup (best effort unless settings.require_backup)
    3. stop and remove the containers, optionally their volumes
    4. strip the profile's keys from .env, regenerate compose
    5. update profiles.selected and append history

Legacy profile IDs (``core``, ``indexer-services`` …) are accepted and
remove every profile they expanded to.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from kaspa_aio.core.data import get_registry
from kaspa_aio.core.models.profile import DataType
from kaspa_aio.core.services.env_file import key_matches, parse_env_file, strip_env_keys, write_env_file
from kaspa_aio.core.services.installation import InstallationWorkflow

logger = logging.getLogger(__name__)

OPERATION = "remove-profile"


class ProfileRemoval(InstallationWorkflow):
    """Remove profiles from an existing installation."""

    # ── Static tables ────────────────────────────────────────────

    def removal_keys(self, profile_id: str, remaining_profiles: Iterable[str] = ()) -> list[str]:
        """.env keys owned by *profile_id* (legacy IDs include their old keys).

        A key that equals or prefixes a key of *remaining_profiles* is left
        out: the profiles that stay keep their whole configuration.
        """
        keys: dict[str, None] = {}
        legacy = get_registry().legacy_profiles.get(profile_id)
        if legacy and not self.catalog.has_profile(profile_id):
            for key in legacy["configKeys"]:
                keys.setdefault(key, None)
        for target in self.target_profiles(profile_id):
            for key in self.catalog.get_profile(target).configuration.keys:
                keys.setdefault(key, None)

        kept = [k for p in self.catalog.resolve_profiles(remaining_profiles) for k in p.configuration.keys]
        return [key for key in keys if not any(key_matches(k, key) for k in kept)]

    def data_locations(self, profile_ids: Iterable[str]) -> list[str]:
        """Docker volume names holding the profiles' data."""
        project = self.settings.compose_project
        return [
            f"{project}_{service.volume_name}"
            for profile in self.catalog.resolve_profiles(profile_ids)
            for service in profile.services
            if service.data_path
        ]

    def data_types(self, profile_id: str) -> list[DataType]:
        legacy = get_registry().legacy_profiles.get(profile_id)
        if legacy and not self.catalog.has_profile(profile_id):
            return list(legacy["dataTypes"])
        return [d for t in self.target_profiles(profile_id) for d in self.catalog.get_profile(t).data_types]

    def _data_descriptors(self, profile_id: str) -> list[dict[str, Any]]:
        location = ", ".join(self.data_locations(self.target_profiles(profile_id))) or None
        return [
            {
                "type": d.type,
                "name": d.name,
                "description": d.description,
                "size": d.estimated_size,
                "location": location,
            }
            for d in self.data_types(profile_id)
        ]

    # ── Query ────────────────────────────────────────────────────

    def get_removal_impact(self, profile_id: str, current_profiles: Iterable[str] | None = None) -> dict[str, Any]:
        """Preview what removing *profile_id* would touch; changes nothing."""
        targets = self.target_profiles(profile_id)
        if not targets:
            return {"success": False, "error": f"Profile '{profile_id}' not found"}

        current = self.current_profiles(self.load_state(), current_profiles)
        validations = self._validate(targets, current)
        return {
            "success": True,
            "profile": {"id": profile_id, "name": self.display_name(targets)},
            "canRemove": all(v["canRemove"] for v in validations),
            "services": [s for t in targets for s in self.catalog.get_profile(t).service_names],
            "containers": self.catalog.get_container_names(targets),
            "dataTypes": self._data_descriptors(profile_id),
            "dependentProfiles": [d for v in validations for d in v.get("impact", {}).get("dependentProfiles", [])],
            "configKeys": self.removal_keys(profile_id, [p for p in current if p not in targets]),
            "validation": validations[0] if len(validations) == 1 else validations,
        }

    def _validate(self, targets: list[str], current: list[str]) -> list[dict[str, Any]]:
        results = []
        working = list(current)
        for target in targets:
            results.append(self.dependency_validator.validate_removal(target, working))
            working = [p for p in working if p != target]
        return results

    # ── Mutation ─────────────────────────────────────────────────

    def remove_profile(
        self,
        profile_id: str,
        remove_data: bool = False,
        data_options: list[dict[str, Any]] | None = None,
        current_profiles: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        """Remove *profile_id* from the installation.

        Args:
            profile_id:       Current or legacy profile ID.
            remove_data:      Also delete the Docker volumes.
            data_options:     Per-data-type choices ``{type, remove, ...}``;
                              entries with ``remove: false`` are reported
                              as preserved when purging.
            current_profiles: Installed set (default: from the state file).

        Returns:
            ``{success, removedServices, preservedData, backupId,
            removalSummary}`` or ``{success: False, error, ...}``.
        """
        try:
            return self._remove(profile_id, remove_data, data_options or [], current_profiles)
        except Exception as e:
            logger.exception("Error removing profile %s", profile_id)
            return self.failure(OPERATION, profile_id, str(e))

    def _remove(
        self,
        profile_id: str,
        remove_data: bool,
        data_options: list[dict[str, Any]],
        current_profiles: Iterable[str] | None,
    ) -> dict[str, Any]:
        targets = self.target_profiles(profile_id)
        if not targets:
            return self.failure(OPERATION, profile_id, f"Profile '{profile_id}' not found")

        state = self.load_state()
        current = self.current_profiles(state, current_profiles)

        # ── 1. Feasibility ──────────────────────────────────────
        for validation in self._validate(targets, current):
            if not validation["canRemove"]:
                return self.failure(OPERATION, profile_id, "Cannot remove profile", validation=validation)

        # ── 2. Backup ───────────────────────────────────────────
        name = self.display_name(targets)
        backup = self.backups.create_backup(
            f"Before removing profile: {name}",
            {"preRemoval": True, "profileId": profile_id, "profileName": name},
        )
        backup_id = backup.get("backupId") if backup.get("success") else None
        if backup_id is None:
            if self.settings.require_backup:
                return self.failure(
                    OPERATION, profile_id,
                    f"Backup failed, removal aborted: {backup.get('error')}",
                )
            logger.warning("Backup before removing %s failed: %s", profile_id, backup.get("error"))

        # ── 3. Containers ───────────────────────────────────────
        containers = self.catalog.get_container_names(targets)
        removed = self.services.remove_services(containers, remove_data=remove_data)
        if not removed.get("success"):
            return self.failure(
                OPERATION, profile_id,
                f"Failed to remove services for profile '{profile_id}': {removed.get('error')}",
                backup_id=backup_id,
            )

        # ── 4. Configuration files ──────────────────────────────
        remaining = [p for p in current if p not in targets]
        keys_removed = self._strip_env(profile_id, remaining)
        self._rewrite_compose(remaining)

        # ── 5. State ────────────────────────────────────────────
        state.set_selected(remaining)
        state.record(OPERATION, profile_id, remove_data=remove_data, backup_id=backup_id, profiles=targets)
        self.save_state(state)

        removed_services = [s for t in targets for s in self.catalog.get_profile(t).service_names]
        self.record_audit(
            OPERATION, profile_id, "ok",
            backup_id=backup_id, profiles=targets, remove_data=remove_data,
        )
        logger.info("Removed %s (%d services, data %s)", profile_id, len(removed_services),
                    "removed" if remove_data else "kept")

        return {
            "success": True,
            "removedServices": removed_services,
            "preservedData": self._preserved_data(profile_id, remove_data, data_options),
            "backupId": backup_id,
            "removalSummary": {
                "profile": name,
                "servicesRemoved": len(removed_services),
                "dataRemoved": remove_data,
                "configKeysRemoved": keys_removed,
                "docker": removed.get("summary", {}),
                "timestamp": datetime.now(UTC).isoformat(),
            },
        }

    def _strip_env(self, profile_id: str, remaining: list[str]) -> list[str]:
        if not self.env_path.is_file():
            return []
        content = self.env_path.read_text(encoding="utf-8")
        new_content, removed = strip_env_keys(content, self.removal_keys(profile_id, remaining))
        if removed:
            write_env_file(self.env_path, new_content)
            logger.debug("Stripped %d keys from %s", len(removed), self.env_path)
        return removed

    def _rewrite_compose(self, remaining: list[str]) -> None:
        if not self.compose_path.is_file():
            return
        config = parse_env_file(self.env_path)
        self.generator.save_compose_file(self.generator.generate_compose(remaining, config), self.compose_path)

    def _preserved_data(
        self,
        profile_id: str,
        remove_data: bool,
        data_options: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        if not remove_data:
            return self._data_descriptors(profile_id)
        return [
            {
                "type": option.get("type"),
                "name": option.get("name", option.get("type")),
                "description": option.get("description", ""),
                "size": option.get("size", "Unknown"),
                "location": option.get("location"),
            }
            for option in data_options
            if option.get("remove") is False
        ]
