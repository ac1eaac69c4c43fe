"""
Tests for ProfileAddition — adding profiles to a live installation.
"""

from pathlib import Path

import yaml

from kaspa_aio.core.models.state import InstallationState
from kaspa_aio.core.persistence.audit import AuditWriter
from kaspa_aio.core.persistence.state_file import load_state, save_state
from kaspa_aio.core.services.config_generator import PASSWORD_LENGTH
from kaspa_aio.core.services.env_file import parse_env_file, write_env_file
from kaspa_aio.core.services.profile_addition import ProfileAddition


def _install(root: Path, settings, profiles: list[str], env: str | None = None) -> None:
    state = InstallationState()
    state.set_selected(profiles)
    save_state(state, settings.state_path(root))
    if env is not None:
        write_env_file(settings.env_path(root), env)


class TestAddProfile:
    """Tests for the full add flow against recording doubles."""

    def test_indexers_next_to_node(self, install_root, settings, services, backups, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node"])
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile(
            "indexer-services", integration_options={"indexer_node_connection": "local_node"}
        )

        assert result["success"] is True
        assert result["addedServices"] == ["kasia-indexer", "timescaledb-kindexer", "k-indexer"]
        assert result["backupId"] == "mock-1"
        assert result["requiresRestart"] is True

        changes = {c["key"]: c for c in result["integrationChanges"]}
        assert set(changes) == {
            "KASIA_NODE_MODE",
            "KASIA_NODE_WRPC_URL",
            "K_INDEXER_NODE_MODE",
            "K_INDEXER_NODE_WRPC_URL",
            "POSTGRES_PASSWORD_KINDEXER",
        }
        assert all(c["type"] == "added" for c in changes.values())
        assert changes["KASIA_NODE_WRPC_URL"]["newValue"] == "ws://kaspa-node:17110"
        assert changes["KASIA_NODE_MODE"]["affectedProfile"] == "kasia-indexer"
        assert changes["POSTGRES_PASSWORD_KINDEXER"]["affectedProfile"] == "k-indexer-bundle"
        assert len(changes["POSTGRES_PASSWORD_KINDEXER"]["newValue"]) == PASSWORD_LENGTH

        assert services.calls("start_services") == [{"profile_ids": ["kasia-indexer", "k-indexer-bundle"]}]
        assert backups.calls("create_backup")[0]["reason"] == "Before adding profile: Kasia Indexer, K-Indexer"

    def test_files_rewritten(self, install_root, settings, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node"])
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile(
            "kasia-indexer", integration_options={"indexer_node_connection": "local_node"}
        )
        assert result["success"] is True

        env = parse_env_file(settings.env_path(install_root))
        assert env["KASIA_NODE_MODE"] == "local"
        assert env["KASPA_NETWORK"] == "mainnet"

        compose = yaml.safe_load(settings.compose_path(install_root).read_text())
        assert list(compose["services"]) == ["kaspa-node", "kasia-indexer"]

    def test_state_updated(self, install_root, settings, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node"])
        ProfileAddition(install_root, **workflow_kwargs).add_profile(
            "indexer-services", integration_options={"indexer_node_connection": "local_node"}
        )

        state = load_state(settings.state_path(install_root))
        assert state.selected == ["kaspa-node", "kasia-indexer", "k-indexer-bundle"]
        entry = state.history[-1]
        assert entry.action == "add-profile"
        assert entry.profile_id == "indexer-services"
        assert entry.integration_options == ["indexer_node_connection"]
        assert entry.backup_id == "mock-1"
        assert state.last_modified is not None

    def test_audit_entry(self, install_root, settings, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node"])
        ProfileAddition(install_root, **workflow_kwargs).add_profile("kasia-app")

        entries = AuditWriter(settings.audit_path(install_root)).read_all()
        assert len(entries) == 1
        assert entries[0].operation == "add-profile"
        assert entries[0].status == "ok"
        assert entries[0].context["profiles"] == ["kasia-app"]

    def test_no_changes_no_restart(self, install_root, settings, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node"])
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile("kasia-app")
        assert result["success"] is True
        assert result["integrationChanges"] == []
        assert result["requiresRestart"] is False

    def test_modified_values(self, install_root, settings, workflow_kwargs):
        """Existing keys are reported as modified; unchanged ones not at all."""
        _install(
            install_root, settings, ["kaspa-node"],
            env="KASIA_NODE_MODE=public\nKASIA_NODE_WRPC_URL=ws://kaspa-node:17110\n",
        )
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile(
            "kasia-indexer", integration_options={"indexer_node_connection": "local_node"}
        )
        assert result["integrationChanges"] == [{
            "key": "KASIA_NODE_MODE",
            "type": "modified",
            "oldValue": "public",
            "newValue": "local",
            "affectedProfile": "kasia-indexer",
        }]

    def test_explicit_current_profiles(self, install_root, workflow_kwargs):
        """current_profiles overrides the (empty) state file and may use legacy IDs."""
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile("kaspa-stratum", current_profiles=["core"])
        assert result["success"] is True


class TestAddProfileFailures:
    """Tests for the failure paths."""

    def test_unknown_profile(self, install_root, settings, services, workflow_kwargs):
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile("nope")
        assert result == {"success": False, "error": "Profile 'nope' not found"}
        assert services.call_count == 0
        entries = AuditWriter(settings.audit_path(install_root)).read_all()
        assert entries[0].status == "failed"

    def test_conflict_rejected_before_anything_changes(self, install_root, settings, services, backups, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node"])
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile("kaspa-archive-node")
        assert result["success"] is False
        assert result["error"] == "Cannot add profile"
        assert result["validation"]["errors"][0]["type"] == "profile_conflicts"
        assert backups.calls("create_backup") == []
        assert services.call_count == 0
        assert not settings.env_path(install_root).exists()

    def test_already_installed(self, install_root, settings, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node", "kasia-app"])
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile("kasia-app")
        assert result["validation"]["errors"][0]["type"] == "already_installed"

    def test_start_failure_keeps_backup_id(self, install_root, settings, services, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node"])
        services.set_failure("start_services", "boom")
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile("kasia-app")

        assert result["success"] is False
        assert result["error"] == "Failed to start services for profile 'kasia-app': boom"
        assert result["backupId"] == "mock-1"
        assert load_state(settings.state_path(install_root)).selected == ["kaspa-node"]

    def test_backup_failure_is_not_fatal(self, install_root, settings, backups, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node"])
        backups.set_failure("create_backup")
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile("kasia-app")
        assert result["success"] is True
        assert result["backupId"] is None

    def test_bad_integration_option(self, install_root, settings, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node"])
        result = ProfileAddition(install_root, **workflow_kwargs).add_profile(
            "kasia-indexer", integration_options={"indexer_node_connection": "carrier_pigeon"}
        )
        assert result["success"] is False
        assert "Unknown option" in result["error"]


class TestIntegrationQueries:
    def test_options(self, install_root, settings, workflow_kwargs):
        _install(install_root, settings, ["kaspa-node"])
        result = ProfileAddition(install_root, **workflow_kwargs).get_integration_options("kasia-indexer")
        assert result["success"] is True
        types = [m["type"] for m in result["options"]["integrationTypes"]]
        assert types == ["indexer_node_connection"]

    def test_options_unknown(self, install_root, workflow_kwargs):
        result = ProfileAddition(install_root, **workflow_kwargs).get_integration_options("nope")
        assert result["success"] is False

    def test_changes_compare_as_text(self):
        changes = ProfileAddition.calculate_integration_changes(
            {"KASIA_APP_PORT": "3001"}, {"KASIA_APP_PORT": 3001, "NEW": "x"}, ["kasia-app"]
        )
        assert [c["key"] for c in changes] == ["NEW"]
        assert changes[0]["affectedProfile"] == "unknown"
