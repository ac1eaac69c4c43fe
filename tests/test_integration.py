"""
Tests for IntegrationPlanner and key ownership.
"""

import pytest

from kaspa_aio.core.services.catalog import NotFoundError
from kaspa_aio.core.services.integration import (
    PUBLIC_NODE_WRPC_URL,
    SHARED_NODE_URL_KEY,
    IntegrationPlanner,
    owner_of_key,
)


def _menu(menus: list[dict], menu_type: str) -> dict:
    return next(m for m in menus if m["type"] == menu_type)


def _option(menu: dict, option_id: str) -> dict:
    return next(o for o in menu["options"] if o["id"] == option_id)


class TestIntegrationTypes:
    """Tests for integration_types."""

    def test_indexers_next_to_node(self):
        menus = IntegrationPlanner().integration_types("indexer-services", ["kaspa-node"])
        assert [m["type"] for m in menus] == ["indexer_node_connection"]
        local = _option(menus[0], "local_node")
        assert local["recommended"] is True
        assert local["config"] == {
            "KASIA_NODE_MODE": "local",
            "KASIA_NODE_WRPC_URL": "ws://kaspa-node:17110",
            "K_INDEXER_NODE_MODE": "local",
            "K_INDEXER_NODE_WRPC_URL": "ws://kaspa-node:17110",
        }

    def test_public_and_mixed_options(self):
        menu = IntegrationPlanner().integration_types("indexer-services", ["kaspa-node"])[0]
        public = _option(menu, "public_network")["config"]
        assert public[SHARED_NODE_URL_KEY] == PUBLIC_NODE_WRPC_URL
        assert public["KASIA_NODE_MODE"] == "public"
        mixed = _option(menu, "mixed")["config"]
        assert mixed["KASIA_NODE_MODE"] == "local"
        assert mixed["K_INDEXER_NODE_MODE"] == "public"
        assert "K_INDEXER_NODE_WRPC_URL" not in mixed

    def test_archive_node_url(self):
        menu = IntegrationPlanner().integration_types("kasia-indexer", ["kaspa-archive-node"])[0]
        assert _option(menu, "local_node")["config"]["KASIA_NODE_WRPC_URL"] == "ws://kaspa-archive-node:17110"

    def test_no_node_no_menu(self):
        assert IntegrationPlanner().integration_types("kasia-indexer", ["kasia-app"]) == []

    def test_app_with_its_indexer(self):
        menus = IntegrationPlanner().integration_types("kasia-app", ["kaspa-node", "kasia-indexer"])
        menu = _menu(menus, "app_indexer_connection")
        assert _option(menu, "local_indexers")["config"] == {
            "KASIA_INDEXER_MODE": "local",
            "KASIA_INDEXER_URL": "http://kasia-indexer:8080",
        }
        assert _option(menu, "public_apis")["config"]["KASIA_INDEXER_URL"] == "https://api.kasia.io"

    def test_app_without_indexer(self):
        assert IntegrationPlanner().integration_types("kasia-app", ["kaspa-node"]) == []

    def test_mining_menu(self):
        menus = IntegrationPlanner().integration_types("mining", ["kaspa-archive-node"])
        menu = _menu(menus, "mining_node_connection")
        assert menu["options"][0]["config"] == {"KASPA_NODE_RPC_URL": "http://kaspa-archive-node:16110"}

    def test_node_rewires_existing_services(self):
        menus = IntegrationPlanner().integration_types("kaspa-node", ["kasia-indexer", "k-social-app"])
        menu = _menu(menus, "node_service_integration")
        assert _option(menu, "integrate_all")["config"] == {
            "KASIA_NODE_MODE": "local",
            "KASIA_NODE_WRPC_URL": "ws://kaspa-node:17110",
            "KSOCIAL_NODE_MODE": "local",
            "KSOCIAL_NODE_WRPC_URL": "ws://kaspa-node:17110",
        }
        assert _option(menu, "keep_separate")["config"] == {}


class TestGetIntegrationOptions:
    """Tests for get_integration_options."""

    def test_legacy_bundle(self):
        result = IntegrationPlanner().get_integration_options("indexer-services", ["kaspa-node"])
        assert result["profileName"] == "Kasia Indexer, K-Indexer"
        assert result["startupOrder"]["newServices"] == ["kasia-indexer", "timescaledb-kindexer", "k-indexer"]
        additional = result["resourceImpact"]["additional"]
        assert additional["memory"] == 12
        assert additional["cpu"] == 0
        assert additional["ports"] == [3002, 3006, 5433]

    def test_recommendations(self):
        result = IntegrationPlanner().get_integration_options("kasia-indexer", ["kaspa-node"])
        assert len(result["recommendations"]) == 1
        assert result["recommendations"][0]["priority"] == "high"

    def test_full_order_includes_current(self):
        result = IntegrationPlanner().get_integration_options("kasia-app", ["kaspa-node"])
        names = [s["name"] for s in result["startupOrder"]["fullOrder"]]
        assert names == ["kaspa-node", "kasia-app"]

    def test_unknown_profile(self):
        with pytest.raises(NotFoundError):
            IntegrationPlanner().get_integration_options("nope", ["kaspa-node"])


class TestResolveIntegrationConfig:
    """Tests for resolve_integration_config."""

    def test_option_id(self):
        patch = IntegrationPlanner().resolve_integration_config(
            "kasia-indexer", ["kaspa-node"], {"indexer_node_connection": "local_node"}
        )
        assert patch == {"KASIA_NODE_MODE": "local", "KASIA_NODE_WRPC_URL": "ws://kaspa-node:17110"}

    def test_dict_choice_carries_config(self):
        patch = IntegrationPlanner().resolve_integration_config(
            "kasia-app", ["kaspa-node"], {"anything": {"config": {"X": "1"}}}
        )
        assert patch == {"X": "1"}

    def test_empty_choices(self):
        planner = IntegrationPlanner()
        assert planner.resolve_integration_config("kasia-app", ["kaspa-node"], None) == {}
        assert planner.resolve_integration_config("kasia-indexer", ["kaspa-node"], {"indexer_node_connection": None}) == {}

    def test_unknown_option(self):
        with pytest.raises(ValueError, match="Unknown option"):
            IntegrationPlanner().resolve_integration_config(
                "kasia-indexer", ["kaspa-node"], {"indexer_node_connection": "carrier_pigeon"}
            )

    def test_menu_not_applicable(self):
        with pytest.raises(ValueError, match="does not apply"):
            IntegrationPlanner().resolve_integration_config(
                "kasia-app", ["kaspa-node"], {"indexer_node_connection": "local_node"}
            )


class TestOwnerOfKey:
    """Tests for owner_of_key."""

    def test_single_owner(self):
        assert owner_of_key("KASIA_NODE_MODE", []) == "kasia-indexer"
        assert owner_of_key("KASIA_INDEXER_MODE", []) == "kasia-app"

    def test_specific_rule_before_shared(self):
        assert owner_of_key("POSTGRES_PASSWORD_KINDEXER", []) == "k-indexer-bundle"
        assert owner_of_key("POSTGRES_PASSWORD_EXPLORER", []) == "kaspa-explorer-bundle"

    def test_installed_owner_preferred(self):
        assert owner_of_key("KASPA_NODE_RPC_PORT", []) == "kaspa-node"
        assert owner_of_key("KASPA_NODE_RPC_PORT", ["kaspa-archive-node"]) == "kaspa-archive-node"

    def test_unknown(self):
        assert owner_of_key("SOMETHING_ELSE", ["kaspa-node"]) == "unknown"
