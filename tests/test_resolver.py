"""
Tests for DependencyResolver — closure, startup order, cycles, ports.
"""

from kaspa_aio.core.models.profile import Profile, ServiceSpec
from kaspa_aio.core.services.catalog import ProfileCatalog
from kaspa_aio.core.services.resolver import DependencyResolver


def _graph_catalog(*profiles: Profile) -> ProfileCatalog:
    return ProfileCatalog(profiles=profiles, templates=[])


def _p(profile_id: str, deps: list[str] | None = None, ports: list[int] | None = None) -> Profile:
    return Profile(
        id=profile_id,
        name=profile_id.upper(),
        dependencies=deps or [],
        ports=ports or [],
        services=[ServiceSpec(name=f"{profile_id}-svc")],
    )


class TestResolveDependencies:
    """Tests for resolve_profile_dependencies."""

    def test_transitive_closure(self):
        resolver = DependencyResolver(_graph_catalog(_p("a", ["b"]), _p("b", ["c"]), _p("c")))
        assert resolver.resolve_profile_dependencies(["a"]) == ["a", "b", "c"]

    def test_closure_is_complete(self):
        """Every dependency of every resolved profile is itself resolved."""
        catalog = _graph_catalog(_p("a", ["b", "c"]), _p("b", ["d"]), _p("c", ["d"]), _p("d"))
        resolved = DependencyResolver(catalog).resolve_profile_dependencies(["a"])
        for profile_id in resolved:
            for dep in catalog.get_profile(profile_id).dependencies:
                assert dep in resolved
        assert len(resolved) == len(set(resolved))

    def test_legacy_ids_expand(self):
        resolved = DependencyResolver().resolve_profile_dependencies(["indexer-services"])
        assert resolved == ["kasia-indexer", "k-indexer-bundle"]

    def test_unknown_skipped(self):
        resolved = DependencyResolver().resolve_profile_dependencies(["kaspa-node", "nope"])
        assert resolved == ["kaspa-node"]

    def test_cycle_terminates(self):
        resolver = DependencyResolver(_graph_catalog(_p("a", ["b"]), _p("b", ["a"])))
        assert sorted(resolver.resolve_profile_dependencies(["a"])) == ["a", "b"]


class TestStartupOrder:
    """Tests for get_startup_order."""

    def test_sorted_by_order_then_name(self):
        services = DependencyResolver().get_startup_order(["kaspa-explorer-bundle", "kaspa-node"])
        assert [s["name"] for s in services] == [
            "kaspa-node",
            "timescaledb-explorer",
            "simply-kaspa-indexer",
            "kaspa-explorer",
        ]

    def test_entries_carry_profile_and_container(self):
        services = DependencyResolver().get_startup_order(["k-social-app"])
        assert services == [{
            "name": "k-social-app",
            "container": "k-social",
            "profile": "k-social-app",
            "startupOrder": 3,
            "required": True,
            "description": services[0]["description"],
        }]

    def test_independent_of_input_order(self):
        resolver = DependencyResolver()
        ids = ["kaspa-stratum", "kaspa-node", "kasia-app", "kasia-indexer"]
        first = [s["name"] for s in resolver.get_startup_order(ids)]
        second = [s["name"] for s in resolver.get_startup_order(list(reversed(ids)))]
        assert first == second


class TestCircularDependencies:
    """Tests for detect_circular_dependencies."""

    def test_two_node_cycle(self):
        resolver = DependencyResolver(_graph_catalog(_p("a", ["b"]), _p("b", ["a"])))
        assert resolver.detect_circular_dependencies(["a"]) == [["a", "b", "a"]]

    def test_self_cycle(self):
        resolver = DependencyResolver(_graph_catalog(_p("a", ["a"])))
        assert resolver.detect_circular_dependencies(["a"]) == [["a", "a"]]

    def test_acyclic(self):
        resolver = DependencyResolver(_graph_catalog(_p("a", ["b"]), _p("b")))
        assert resolver.detect_circular_dependencies(["a", "b"]) == []

    def test_bundled_catalog_acyclic(self, catalog: ProfileCatalog):
        ids = [p.id for p in catalog.get_all_profiles()]
        assert DependencyResolver(catalog).detect_circular_dependencies(ids) == []


class TestPortConflicts:
    """Tests for detect_conflicts."""

    def test_node_and_archive_collide(self):
        conflicts = DependencyResolver().detect_conflicts(["kaspa-node", "kaspa-archive-node"])
        assert [c["port"] for c in conflicts] == [16110, 16111, 17110]
        assert all(c["profiles"] == ["kaspa-node", "kaspa-archive-node"] for c in conflicts)

    def test_no_conflicts(self):
        assert DependencyResolver().detect_conflicts(["kaspa-node", "kasia-app", "k-social-app"]) == []

    def test_first_claimant_owns_port(self):
        resolver = DependencyResolver(_graph_catalog(_p("a", ports=[80]), _p("b", ports=[80]), _p("c", ports=[80])))
        conflicts = resolver.detect_conflicts(["a", "b", "c"])
        assert [c["profiles"] for c in conflicts] == [["a", "b"], ["a", "c"]]


class TestServiceDependencies:
    def test_prerequisite_relation(self):
        relations = DependencyResolver().get_service_dependencies("kaspa-stratum", ["core"])
        assert relations == [{
            "type": "prerequisite_for",
            "profile": "kaspa-node",
            "name": "Kaspa Node",
            "services": ["kaspa-node"],
        }]

    def test_unknown_profile(self):
        assert DependencyResolver().get_service_dependencies("nope", ["kaspa-node"]) == []
