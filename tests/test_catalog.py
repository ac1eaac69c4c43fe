"""
Tests for ProfileCatalog — profile lookup and template operations.
"""

import pytest

from kaspa_aio.core.models.profile import Profile, Resources
from kaspa_aio.core.services.catalog import (
    DEVELOPER_MODE_CONFIG,
    NotFoundError,
    ProfileCatalog,
    aggregate_resources,
)

CURRENT_PROFILES = {
    "kaspa-node",
    "kasia-app",
    "k-social-app",
    "kaspa-explorer-bundle",
    "kasia-indexer",
    "k-indexer-bundle",
    "kaspa-archive-node",
    "kaspa-stratum",
}


class TestProfileLookup:
    """Tests for profile queries."""

    def test_bundled_catalog_has_eight_profiles(self, catalog: ProfileCatalog):
        assert {p.id for p in catalog.get_all_profiles()} == CURRENT_PROFILES

    def test_get_profile(self, catalog: ProfileCatalog):
        node = catalog.get_profile("kaspa-node")
        assert node is not None
        assert node.name == "Kaspa Node"
        assert node.service_names == ["kaspa-node"]

    def test_legacy_id_resolves_to_first_target(self, catalog: ProfileCatalog):
        assert catalog.get_profile("core").id == "kaspa-node"
        assert catalog.get_profile("kaspa-user-applications").id == "kasia-app"

    def test_unknown_profile_is_none(self, catalog: ProfileCatalog):
        assert catalog.get_profile("nope") is None
        assert not catalog.has_profile("core")

    def test_resolve_profiles_skips_unknown(self, catalog: ProfileCatalog):
        ids = [p.id for p in catalog.resolve_profiles(["indexer-services", "nope"])]
        assert ids == ["kasia-indexer", "k-indexer-bundle"]

    def test_by_category(self, catalog: ProfileCatalog):
        advanced = {p.id for p in catalog.get_profiles_by_category("advanced")}
        assert advanced == {"kaspa-archive-node", "kaspa-stratum"}

    def test_container_names_unique_in_order(self, catalog: ProfileCatalog):
        names = catalog.get_container_names(["k-social-app", "k-indexer-bundle", "k-social-app"])
        assert names == ["k-social", "timescaledb-kindexer", "k-indexer"]

    def test_profile_defaults_merge(self, catalog: ProfileCatalog):
        defaults = catalog.get_profile_defaults(["kaspa-node", "kasia-app"])
        assert defaults["KASPA_NETWORK"] == "mainnet"
        assert defaults["KASIA_APP_PORT"] == 3001

    def test_conflicts_are_symmetric(self, catalog: ProfileCatalog):
        for profile in catalog.get_all_profiles():
            for other in profile.conflicts:
                assert profile.id in catalog.get_profile(other).conflicts

    def test_conflict_with_prerequisite_rejected(self):
        with pytest.raises(ValueError, match="both requires and conflicts"):
            Profile(id="x", name="X", prerequisites=["a"], conflicts=["a"])


class TestResourceAggregation:
    """Tests for aggregate_resources."""

    def test_memory_and_disk_add_cpu_max(self, catalog: ProfileCatalog):
        total = aggregate_resources(catalog.resolve_profiles(["kaspa-node", "kasia-app", "k-social-app"]))
        assert total.min_memory == 6
        assert total.min_cpu == 2
        assert total.min_disk == 110

    def test_empty(self):
        assert aggregate_resources([]) == Resources()


class TestTemplateLookup:
    """Tests for template queries and aliases."""

    def test_get_template(self, catalog: ProfileCatalog):
        assert catalog.get_template("quick-start").profiles == ["kasia-app", "k-social-app"]

    def test_alias_resolves_to_target(self, catalog: ProfileCatalog):
        assert catalog.is_template_alias("beginner-setup")
        assert catalog.get_template("beginner-setup").id == "quick-start"

    def test_aliases_not_listed(self, catalog: ProfileCatalog):
        ids = {t.id for t in catalog.get_all_templates()}
        assert "beginner-setup" not in ids
        assert "quick-start" in ids

    def test_all_templates_sorted_by_display_order(self, catalog: ProfileCatalog):
        orders = [t.display_order for t in catalog.get_all_templates()]
        assert orders == sorted(orders)

    def test_by_use_case(self, catalog: ProfileCatalog):
        mining = {t.id for t in catalog.get_templates_by_use_case("mining")}
        assert "solo-miner" in mining

    def test_search_by_tags(self, catalog: ProfileCatalog):
        found = {t.id for t in catalog.search_templates_by_tags(["archive"])}
        assert found == {"archival-node", "archival-miner"}

    def test_unknown_template_is_none(self, catalog: ProfileCatalog):
        assert catalog.get_template("nope") is None


class TestTemplateOperations:
    """Tests for apply/merge/validate."""

    def test_apply_template_wins_over_base(self, catalog: ProfileCatalog):
        config = catalog.apply_template("kaspa-node", {"KASPA_NETWORK": "testnet", "EXTRA": "1"})
        assert config["KASPA_NETWORK"] == "mainnet"
        assert config["EXTRA"] == "1"

    def test_apply_unknown_raises(self, catalog: ProfileCatalog):
        with pytest.raises(NotFoundError):
            catalog.apply_template("nope")

    def test_merge_template_config_layers(self, catalog: ProfileCatalog):
        merged = catalog.merge_template_config("kasia-lite", {"KASIA_APP_PORT": 4000, "MINE": "x"})
        assert merged["MINE"] == "x"
        assert merged["KASIA_INDEXER_MODE"] is not None

    def test_validate_builtin_templates(self, catalog: ProfileCatalog):
        for template in catalog.get_all_templates():
            result = catalog.validate_template(template.id)
            assert result["valid"], (template.id, result["errors"])

    def test_validate_alias_warns(self, catalog: ProfileCatalog):
        result = catalog.validate_template("mining-rig")
        assert result["valid"]
        assert "deprecated_template" in [w["type"] for w in result["warnings"]]

    def test_validate_missing_required_config(self, catalog: ProfileCatalog):
        result = catalog.validate_template("solo-miner")
        assert "missing_required_config" in [w["type"] for w in result["warnings"]]

    def test_validate_unknown_offers_fallbacks(self, catalog: ProfileCatalog):
        result = catalog.validate_template("nope")
        assert not result["valid"]
        assert "kaspa-node" in result["fallbackOptions"]

    def test_validate_dynamic_template_warns(self, catalog: ProfileCatalog):
        result = catalog.validate_template("custom-setup")
        assert "dynamic_template" in [w["type"] for w in result["warnings"]]


class TestRecommendations:
    """Tests for get_template_recommendations."""

    def test_mining_use_case_ranks_solo_miner_first(self, catalog: ProfileCatalog):
        recs = catalog.get_template_recommendations({"memory": 16, "cpu": 8, "disk": 1000}, "mining")
        assert recs[0]["template"]["id"] == "solo-miner"
        assert recs[0]["recommended"] is True

    def test_sorted_by_score(self, catalog: ProfileCatalog):
        recs = catalog.get_template_recommendations({"memory": 8, "cpu": 4, "disk": 500}, "personal")
        scores = [r["score"] for r in recs]
        assert scores == sorted(scores, reverse=True)

    def test_insufficient_memory_marked(self, catalog: ProfileCatalog):
        recs = catalog.get_template_recommendations({"memory": 2, "cpu": 2, "disk": 50}, "personal")
        by_id = {r["template"]["id"]: r for r in recs}
        assert by_id["kaspa-sovereignty"]["suitability"] == "insufficient"
        assert by_id["kaspa-sovereignty"]["recommended"] is False

    def test_dynamic_template_excluded(self, catalog: ProfileCatalog):
        recs = catalog.get_template_recommendations({"memory": 64, "cpu": 16, "disk": 8000}, "development")
        assert "custom-setup" not in [r["template"]["id"] for r in recs]


class TestCustomTemplates:
    """Tests for user-created templates."""

    def _data(self, **overrides):
        data = {
            "id": "my-stack",
            "name": "My Stack",
            "description": "Node plus Kasia",
            "profiles": ["core", "kasia-app"],
            "config": {"KASPA_NETWORK": "mainnet"},
        }
        data.update(overrides)
        return data

    def test_create_computes_resources(self, catalog: ProfileCatalog):
        template = catalog.create_custom_template(self._data())
        assert template.profiles == ["kaspa-node", "kasia-app"]
        assert template.resources.min_memory == 5
        assert template.custom is True
        assert template.created_at

    def test_create_missing_field(self, catalog: ProfileCatalog):
        with pytest.raises(ValueError, match="config"):
            catalog.create_custom_template(self._data(config=None))

    def test_create_unknown_profile(self, catalog: ProfileCatalog):
        with pytest.raises(NotFoundError):
            catalog.create_custom_template(self._data(profiles=["nope"]))

    def test_save_and_delete(self, catalog: ProfileCatalog):
        catalog.save_custom_template(catalog.create_custom_template(self._data()))
        assert catalog.get_template("my-stack") is not None
        catalog.delete_custom_template("my-stack")
        assert catalog.get_template("my-stack") is None

    def test_builtin_cannot_be_deleted(self, catalog: ProfileCatalog):
        with pytest.raises(ValueError):
            catalog.delete_custom_template("quick-start")

    def test_delete_unknown(self, catalog: ProfileCatalog):
        with pytest.raises(NotFoundError):
            catalog.delete_custom_template("nope")


class TestDeveloperMode:
    def test_disabled_returns_config_unchanged(self):
        config = {"A": "1"}
        assert ProfileCatalog.apply_developer_mode(config) is config

    def test_enabled_adds_keys(self):
        config = ProfileCatalog.apply_developer_mode({"LOG_LEVEL": "info"}, enabled=True)
        assert config["LOG_LEVEL"] == "debug"
        for key in DEVELOPER_MODE_CONFIG:
            assert key in config
