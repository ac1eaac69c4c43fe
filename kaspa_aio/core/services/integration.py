"""
Integration options — how a profile being added wires into what exists.

When a profile joins an installation that already runs related
services, the user picks how the two connect (e.g. indexers talking to
the local node or to the public network).  Each choice is an option
with a ``config`` patch of .env keys; ``resolve_integration_config``
turns the user's picks into one merged patch.

Menus:
    indexer_node_connection   indexer added, node present
    app_indexer_connection    app added, its indexer present
    mining_node_connection    stratum added, node present
    node_service_integration  node added, apps/indexers present
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from kaspa_aio.core.data import get_registry
from kaspa_aio.core.services.catalog import NotFoundError, ProfileCatalog
from kaspa_aio.core.services.dependency_validator import NODE_PROFILES
from kaspa_aio.core.services.resolver import DependencyResolver
from kaspa_aio.core.services.validation import ProfileValidator

logger = logging.getLogger(__name__)

PUBLIC_NODE_WRPC_URL = "wss://wrpc.kasia.fyi"
SHARED_NODE_URL_KEY = "REMOTE_KASPA_NODE_WRPC_URL"

# Indexer profile → (node mode key, node wRPC URL key)
INDEXER_NODE_KEYS: dict[str, tuple[str, str]] = {
    "kasia-indexer": ("KASIA_NODE_MODE", "KASIA_NODE_WRPC_URL"),
    "k-indexer-bundle": ("K_INDEXER_NODE_MODE", "K_INDEXER_NODE_WRPC_URL"),
    "kaspa-explorer-bundle": ("SIMPLY_KASPA_NODE_MODE", "SIMPLY_KASPA_NODE_WRPC_URL"),
}

# Node mode per indexer for the "mixed" option
MIXED_NODE_MODES: dict[str, str] = {
    "kasia-indexer": "local",
    "k-indexer-bundle": "public",
    "kaspa-explorer-bundle": "local",
}

# App profile → (indexer profile, indexer mode key, indexer URL key, local URL)
APP_INDEXERS: dict[str, tuple[str, str, str, str]] = {
    "kasia-app": ("kasia-indexer", "KASIA_INDEXER_MODE", "KASIA_INDEXER_URL", "http://kasia-indexer:8080"),
    "k-social-app": ("k-indexer-bundle", "KSOCIAL_INDEXER_MODE", "KSOCIAL_INDEXER_URL", "http://k-indexer:8080"),
}

# App profile → (node mode key, node wRPC URL key) for apps that talk to a node
APP_NODE_KEYS: dict[str, tuple[str, str]] = {
    "k-social-app": ("KSOCIAL_NODE_MODE", "KSOCIAL_NODE_WRPC_URL"),
}


def owner_of_key(key: str, profile_ids: Iterable[str]) -> str:
    """Profile a .env key belongs to, preferring profiles in *profile_ids*.

    Rules from the key-ownership table are tried in order; a key
    matches when it equals or starts with the rule's prefix.
    """
    present = set(profile_ids)
    for rule in get_registry().key_ownership:
        prefix = rule["prefix"]
        if key == prefix or key.startswith(prefix):
            owners = rule["profiles"]
            return next((p for p in owners if p in present), owners[0])
    return "unknown"


def _option(
    option_id: str,
    label: str,
    description: str,
    impact: str,
    config: dict[str, Any],
    recommended: bool = False,
) -> dict[str, Any]:
    return {
        "id": option_id,
        "label": label,
        "description": description,
        "recommended": recommended,
        "impact": impact,
        "config": config,
    }


class IntegrationPlanner:
    """Build integration menus and resolve the user's choices."""

    def __init__(self, catalog: ProfileCatalog | None = None):
        self.catalog = catalog or ProfileCatalog()
        self.resolver = DependencyResolver(self.catalog)
        self.validator = ProfileValidator(self.catalog, self.resolver)

    # ── Menus ────────────────────────────────────────────────────

    def integration_types(self, profile_id: str, current_profiles: Iterable[str]) -> list[dict[str, Any]]:
        """Every integration menu that applies to adding *profile_id*."""
        migrator = self.catalog.migrator
        adding = [p for p in migrator.targets(profile_id) if self.catalog.has_profile(p)]
        current = migrator.migrate_profile_ids(current_profiles)
        node = next((p for p in current if p in NODE_PROFILES), None)

        menus: list[dict[str, Any]] = []

        indexers = [p for p in adding if p in INDEXER_NODE_KEYS]
        if indexers and node:
            menus.append(self._indexer_node_menu(indexers, node))

        apps = [p for p in adding if p in APP_INDEXERS and APP_INDEXERS[p][0] in current]
        if apps:
            menus.append(self._app_indexer_menu(apps))

        if "kaspa-stratum" in adding and node:
            menus.append(self._mining_menu(node))

        new_node = next((p for p in adding if p in NODE_PROFILES), None)
        if new_node:
            wired = [p for p in current if p in INDEXER_NODE_KEYS or p in APP_NODE_KEYS]
            if wired:
                menus.append(self._node_service_menu(new_node, wired))

        return menus

    def _node_url(self, node_profile: str) -> str:
        container = self.catalog.get_container_names([node_profile])[0]
        return f"ws://{container}:17110"

    def _indexer_node_menu(self, indexers: list[str], node: str) -> dict[str, Any]:
        url = self._node_url(node)
        local: dict[str, Any] = {}
        public: dict[str, Any] = {SHARED_NODE_URL_KEY: PUBLIC_NODE_WRPC_URL}
        mixed: dict[str, Any] = {}

        for indexer in indexers:
            mode_key, url_key = INDEXER_NODE_KEYS[indexer]
            local[mode_key] = "local"
            local[url_key] = url
            public[mode_key] = "public"
            mode = MIXED_NODE_MODES[indexer]
            mixed[mode_key] = mode
            if mode == "local":
                mixed[url_key] = url
            else:
                mixed[SHARED_NODE_URL_KEY] = PUBLIC_NODE_WRPC_URL

        node_name = self.catalog.get_profile(node).name
        return {
            "type": "indexer_node_connection",
            "title": "Indexer Node Connection",
            "description": f"Configure how indexers connect to your local {node_name}",
            "required": True,
            "options": [
                _option(
                    "local_node", "Connect to Local Node",
                    f"All indexers will connect to your local {node_name}",
                    "Reduces external dependencies, improves performance",
                    local, recommended=True,
                ),
                _option(
                    "public_network", "Use Public Network",
                    "Indexers will connect to the public Kaspa network",
                    "Relies on external services",
                    public,
                ),
                _option(
                    "mixed", "Mixed Configuration",
                    "Some indexers use the local node, others the public network",
                    "Flexible but more complex configuration",
                    mixed,
                ),
            ],
        }

    def _app_indexer_menu(self, apps: list[str]) -> dict[str, Any]:
        local: dict[str, Any] = {}
        public: dict[str, Any] = {}
        for app in apps:
            _indexer, mode_key, url_key, local_url = APP_INDEXERS[app]
            local[mode_key] = "local"
            local[url_key] = local_url
            public[mode_key] = "public"
            public_url = self.catalog.get_profile(app).configuration.public_indexer_url
            if public_url:
                public[url_key] = public_url

        return {
            "type": "app_indexer_connection",
            "title": "Application Indexer Connection",
            "description": "Configure which indexers your applications will use",
            "required": True,
            "options": [
                _option(
                    "local_indexers", "Use Local Indexers",
                    "Applications will connect to your local indexer services",
                    "Faster response times, no external API limits",
                    local, recommended=True,
                ),
                _option(
                    "public_apis", "Use Public APIs",
                    "Applications will use public indexer APIs",
                    "Relies on external services, may have rate limits",
                    public,
                ),
            ],
        }

    def _mining_menu(self, node: str) -> dict[str, Any]:
        container = self.catalog.get_container_names([node])[0]
        node_name = self.catalog.get_profile(node).name
        return {
            "type": "mining_node_connection",
            "title": "Mining Node Connection",
            "description": f"Configure mining connection to your local {node_name}",
            "required": True,
            "options": [
                _option(
                    "local_node", f"Connect to Local {node_name}",
                    f"Mining will connect directly to your local {node_name}",
                    "Direct connection, optimal mining performance",
                    {"KASPA_NODE_RPC_URL": f"http://{container}:16110"},
                    recommended=True,
                ),
            ],
        }

    def _node_service_menu(self, new_node: str, wired: list[str]) -> dict[str, Any]:
        url = self._node_url(new_node)
        config: dict[str, Any] = {}
        for profile_id in wired:
            mode_key, url_key = INDEXER_NODE_KEYS.get(profile_id) or APP_NODE_KEYS[profile_id]
            config[mode_key] = "local"
            config[url_key] = url

        names = ", ".join(self.catalog.get_profile(p).name for p in wired)
        return {
            "type": "node_service_integration",
            "title": "Existing Service Integration",
            "description": f"Configure how {names} will integrate with the new local node",
            "required": True,
            "options": [
                _option(
                    "integrate_all", "Integrate with All Services",
                    "Reconfigure existing services to use the new local node",
                    "Optimizes all services to use the local node",
                    config, recommended=True,
                ),
                _option(
                    "keep_separate", "Keep Services Independent",
                    "Run the node independently, existing services keep their configuration",
                    "No changes to existing services",
                    {},
                ),
            ],
        }

    # ── Full query ───────────────────────────────────────────────

    def get_integration_options(self, profile_id: str, current_profiles: Iterable[str]) -> dict[str, Any]:
        """Menus, recommendations, startup order and resource impact.

        Raises:
            NotFoundError: If *profile_id* is unknown.
        """
        current = self.catalog.migrator.migrate_profile_ids(current_profiles)
        adding = [p for p in self.catalog.migrator.targets(profile_id) if self.catalog.has_profile(p)]
        if not adding:
            raise NotFoundError(f"Profile '{profile_id}' not found")

        menus = self.integration_types(profile_id, current)
        recommendations = []
        for menu in menus:
            best = next((o for o in menu["options"] if o["recommended"]), None)
            if best is not None:
                recommendations.append({
                    "priority": "medium" if menu["type"] == "node_service_integration" else "high",
                    "title": best["label"],
                    "message": best["impact"],
                    "action": f"Select \"{best['label']}\" for {menu['title']}",
                })

        combined = [*current, *(p for p in adding if p not in current)]
        current_req = self.validator.calculate_resource_requirements(current)
        new_req = self.validator.calculate_resource_requirements(combined)

        new_services = [s for p in adding for s in self.catalog.get_profile(p).service_names]
        dependencies = [d for p in adding for d in self.resolver.get_service_dependencies(p, current)]

        return {
            "profileId": profile_id,
            "profileName": ", ".join(self.catalog.get_profile(p).name for p in adding),
            "currentProfiles": current,
            "integrationTypes": menus,
            "recommendations": recommendations,
            "startupOrder": {
                "newServices": new_services,
                "fullOrder": self.resolver.get_startup_order(combined),
                "dependencies": dependencies,
            },
            "resourceImpact": {
                "current": current_req.to_dict(),
                "new": new_req.to_dict(),
                "additional": {
                    "memory": new_req.min_memory - current_req.min_memory,
                    "cpu": max(0, new_req.min_cpu - current_req.min_cpu),
                    "disk": new_req.min_disk - current_req.min_disk,
                    "ports": [port for p in adding for port in self.catalog.get_profile(p).ports],
                },
            },
        }

    # ── Choices → config patch ───────────────────────────────────

    def resolve_integration_config(
        self,
        profile_id: str,
        current_profiles: Iterable[str],
        integration_options: dict[str, Any] | None,
    ) -> dict[str, Any]:
        """Merge the chosen options into one config patch.

        Each value is either an option ID from the matching menu or a
        dict carrying its own ``config`` patch.

        Raises:
            ValueError: If an option ID does not exist in its menu.
        """
        if not integration_options:
            return {}

        menus = {m["type"]: m for m in self.integration_types(profile_id, current_profiles)}
        patch: dict[str, Any] = {}

        for integration_type, choice in integration_options.items():
            if isinstance(choice, dict):
                patch.update(choice.get("config") or {})
                continue
            if choice in (None, ""):
                continue

            menu = menus.get(integration_type)
            if menu is None:
                raise ValueError(f"Integration '{integration_type}' does not apply to adding {profile_id}")
            option = next((o for o in menu["options"] if o["id"] == choice), None)
            if option is None:
                valid = ", ".join(o["id"] for o in menu["options"])
                raise ValueError(f"Unknown option '{choice}' for {integration_type} (valid: {valid})")
            patch.update(option["config"])
            logger.debug("Integration %s → %s", integration_type, choice)

        return patch
