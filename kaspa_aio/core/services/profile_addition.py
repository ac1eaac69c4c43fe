"""
Profile addition — add a profile to a running installation.

Flow:
    1. look up the profile (legacy IDs expand to their replacements)
    2. DependencyValidator.validate_addition for each new profile
    3. read the live .env
    4. apply integration choices, fill required keys
    5. best-effort backup, then regenerate .env and compose
    6. start the new containers
    7. record history in the installation state

A failure after step 5 leaves the rewritten files in place; the result
carries ``backupId`` so the caller can restore the snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from kaspa_aio.core.services.config_generator import default_config_value
from kaspa_aio.core.services.env_file import parse_env_file
from kaspa_aio.core.services.installation import InstallationWorkflow
from kaspa_aio.core.services.integration import IntegrationPlanner, owner_of_key

logger = logging.getLogger(__name__)

OPERATION = "add-profile"


def _same_value(old: Any, new: Any) -> bool:
    # .env values read back as strings; generated defaults may be ints
    return str(old) == str(new)


class ProfileAddition(InstallationWorkflow):
    """Add profiles to an existing installation."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.integration = IntegrationPlanner(self.catalog)

    # ── Query ────────────────────────────────────────────────────

    def get_integration_options(self, profile_id: str, current_profiles: Iterable[str] | None = None) -> dict[str, Any]:
        """Integration menus for adding *profile_id*; read-only.

        Returns:
            ``{"success": True, "options": {...}}`` or
            ``{"success": False, "error": "..."}``.
        """
        current = self.current_profiles(self.load_state(), current_profiles)
        if not self.target_profiles(profile_id):
            return {"success": False, "error": f"Profile '{profile_id}' not found"}
        return {"success": True, "options": self.integration.get_integration_options(profile_id, current)}

    # ── Mutation ─────────────────────────────────────────────────

    def add_profile(
        self,
        profile_id: str,
        current_profiles: Iterable[str] | None = None,
        integration_options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Add *profile_id* to the installation.

        Returns:
            ``{success, addedServices, integrationChanges, requiresRestart,
            newConfiguration, backupId}`` or ``{success: False, error, ...}``.
        """
        try:
            return self._add(profile_id, current_profiles, integration_options or {})
        except Exception as e:
            logger.exception("Error adding profile %s", profile_id)
            return self.failure(OPERATION, profile_id, str(e))

    def _add(
        self,
        profile_id: str,
        current_profiles: Iterable[str] | None,
        integration_options: dict[str, Any],
    ) -> dict[str, Any]:
        targets = self.target_profiles(profile_id)
        if not targets:
            return self.failure(OPERATION, profile_id, f"Profile '{profile_id}' not found")

        state = self.load_state()
        current = self.current_profiles(state, current_profiles)

        # ── 2. Feasibility ──────────────────────────────────────
        working = list(current)
        for target in targets:
            validation = self.dependency_validator.validate_addition(target, working)
            if not validation["canAdd"]:
                return self.failure(OPERATION, profile_id, "Cannot add profile", validation=validation)
            working.append(target)
        updated = working

        # ── 3-4. Current config + integration choices ──────────
        current_config = parse_env_file(self.env_path)
        integrated = dict(current_config)
        integrated.update(
            self.integration.resolve_integration_config(profile_id, current, integration_options)
        )
        for target in targets:
            for key in self.catalog.get_profile(target).configuration.required:
                if integrated.get(key) in (None, ""):
                    integrated[key] = default_config_value(key)

        # ── 5. Backup, then files ───────────────────────────────
        name = self.display_name(targets)
        backup = self.backups.create_backup(
            f"Before adding profile: {name}",
            {"preAddition": True, "profileId": profile_id, "profileName": name},
        )
        backup_id = backup.get("backupId") if backup.get("success") else None
        if backup_id is None:
            logger.warning("Backup before adding %s failed: %s", profile_id, backup.get("error"))

        new_config = self.generator.generate_config(updated, integrated)
        self.generator.save_env_file(self.generator.generate_env_file(new_config, updated), self.env_path)
        self.generator.save_compose_file(self.generator.generate_compose(updated, new_config), self.compose_path)

        # ── 6. Containers ───────────────────────────────────────
        started = self.services.start_services(targets)
        if not started.get("success"):
            return self.failure(
                OPERATION, profile_id,
                f"Failed to start services for profile '{profile_id}': {started.get('error')}",
                backup_id=backup_id,
            )

        # ── 7. State ────────────────────────────────────────────
        state.set_selected(updated)
        state.record(
            OPERATION,
            profile_id,
            integration_options=list(integration_options),
            backup_id=backup_id,
            profiles=targets,
        )
        self.save_state(state)

        changes = self.calculate_integration_changes(current_config, integrated, updated)
        added_services = [s for t in targets for s in self.catalog.get_profile(t).service_names]

        self.record_audit(OPERATION, profile_id, "ok", backup_id=backup_id, profiles=targets, changes=len(changes))
        logger.info("Added %s (%d services)", profile_id, len(added_services))

        return {
            "success": True,
            "addedServices": added_services,
            "integrationChanges": changes,
            "requiresRestart": bool(changes),
            "newConfiguration": new_config,
            "backupId": backup_id,
        }

    @staticmethod
    def calculate_integration_changes(
        old_config: dict[str, Any],
        new_config: dict[str, Any],
        profiles: Iterable[str],
    ) -> list[dict[str, Any]]:
        """Per-key diff of *new_config* against *old_config*."""
        profiles = list(profiles)
        changes = []
        for key, new_value in new_config.items():
            old_value = old_config.get(key)
            if old_value is not None and _same_value(old_value, new_value):
                continue
            changes.append({
                "key": key,
                "type": "added" if old_value is None else "modified",
                "oldValue": old_value,
                "newValue": new_value,
                "affectedProfile": owner_of_key(key, profiles),
            })
        return changes
