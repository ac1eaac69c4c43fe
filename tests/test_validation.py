"""
Tests for ProfileValidator — selection validation and resource totals.
"""

from kaspa_aio.core.models.profile import Profile, Resources
from kaspa_aio.core.services.catalog import ProfileCatalog
from kaspa_aio.core.services.validation import ProfileValidator


class TestResourceRequirements:
    """Tests for calculate_resource_requirements."""

    def test_user_apps_with_node(self):
        req = ProfileValidator().calculate_resource_requirements(["kaspa-node", "kasia-app", "k-social-app"])
        assert req.min_memory == 6
        assert req.min_cpu == 2
        assert req.min_disk == 110

    def test_ports_sorted_unique(self):
        req = ProfileValidator().calculate_resource_requirements(["kasia-app", "kaspa-node", "kasia-app"])
        assert req.ports == [3001, 16110, 16111, 17110]

    def test_unknown_skipped(self):
        req = ProfileValidator().calculate_resource_requirements(["kaspa-node", "nope"])
        assert req.min_memory == 4

    def test_shared_timescale_noted(self):
        req = ProfileValidator().calculate_resource_requirements(["k-indexer-bundle", "kaspa-explorer-bundle"])
        assert len(req.shared_resources) == 1
        assert "TimescaleDB" in req.shared_resources[0]


class TestValidateSelection:
    """Tests for validate_profile_selection."""

    def test_valid_selection(self):
        result = ProfileValidator().validate_profile_selection(["kaspa-node", "kasia-app"])
        assert result.valid
        assert result.errors == []
        assert result.resolved_profiles == ["kaspa-node", "kasia-app"]

    def test_node_conflicts_with_archive(self):
        result = ProfileValidator().validate_profile_selection(["kaspa-node", "kaspa-archive-node"])
        assert not result.valid
        assert set(result.error_types()) == {"profile_conflict"}

    def test_stratum_needs_a_node(self):
        result = ProfileValidator().validate_profile_selection(["kaspa-stratum"])
        assert result.error_types() == ["missing_prerequisite"]
        assert result.errors[0].model_extra["options"] == ["kaspa-node", "kaspa-archive-node"]

    def test_any_prerequisite_satisfied_by_either_node(self):
        validator = ProfileValidator()
        assert validator.validate_profile_selection(["kaspa-stratum", "kaspa-node"]).valid
        assert validator.validate_profile_selection(["kaspa-archive-node", "kaspa-stratum"]).valid

    def test_all_prerequisites(self):
        catalog = ProfileCatalog(
            profiles=[
                Profile(id="a", name="A"),
                Profile(id="b", name="B"),
                Profile(id="c", name="C", prerequisites=["a", "b"]),
            ],
            templates=[],
        )
        validator = ProfileValidator(catalog)
        result = validator.validate_profile_selection(["c", "a"])
        assert result.error_types() == ["missing_prerequisite"]
        assert result.errors[0].model_extra["prerequisite"] == "b"
        assert validator.validate_profile_selection(["c", "a", "b"]).valid

    def test_unknown_profile(self):
        result = ProfileValidator().validate_profile_selection(["nope"])
        assert result.error_types() == ["unknown_profile"]

    def test_legacy_id_warns_and_resolves(self):
        result = ProfileValidator().validate_profile_selection(["core", "kaspa-user-applications"])
        assert result.valid
        assert "legacy_profile_id" in result.warning_types()
        assert result.resolved_profiles == ["kaspa-node", "kasia-app", "k-social-app"]

    def test_undeclared_port_clash_reported(self):
        catalog = ProfileCatalog(
            profiles=[Profile(id="a", name="A", ports=[80]), Profile(id="b", name="B", ports=[80])],
            templates=[],
        )
        result = ProfileValidator(catalog).validate_profile_selection(["a", "b"])
        assert result.error_types() == ["port_conflict"]

    def test_circular_dependency(self):
        catalog = ProfileCatalog(
            profiles=[Profile(id="a", name="A", dependencies=["b"]), Profile(id="b", name="B", dependencies=["a"])],
            templates=[],
        )
        result = ProfileValidator(catalog).validate_profile_selection(["a"])
        assert "circular_dependency" in result.error_types()

    def test_high_resources_warning(self):
        """36GB of minimum memory crosses the 32GB threshold."""
        result = ProfileValidator().validate_profile_selection(
            ["kaspa-archive-node", "kasia-indexer", "k-indexer-bundle", "kaspa-explorer-bundle"]
        )
        assert result.requirements.min_memory == 36
        assert "high_resources" in result.warning_types()
        assert result.valid

    def test_no_warning_at_threshold(self):
        catalog = ProfileCatalog(
            profiles=[Profile(id="big", name="Big", resources=Resources(min_memory=32))],
            templates=[],
        )
        result = ProfileValidator(catalog).validate_profile_selection(["big"])
        assert result.warnings == []

    def test_to_dict_is_camel_case(self):
        data = ProfileValidator().validate_profile_selection(["kaspa-node"]).to_dict()
        assert "resolvedProfiles" in data
        assert "minMemory" in data["requirements"]
