"""
Config generator — .env and docker-compose.yml for a profile selection.

Produces file *content*; only ``save_env_file`` and ``save_compose_file``
touch disk, and both write atomically.

The .env layout is one commented section per profile (in the order the
profiles were given), followed by everything else under
"Additional settings".  Compose output has one service per container,
keyed by container name, so ``docker compose up <container>`` and the
volume names (``<project>_<container>-data``) line up with what the
DockerManager expects.
"""

from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from kaspa_aio.core.data import get_registry
from kaspa_aio.core.services.catalog import ProfileCatalog
from kaspa_aio.core.services.env_file import atomic_write_text, format_env_value, write_env_file

logger = logging.getLogger(__name__)

PASSWORD_LENGTH = 16
_PASSWORD_ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Random alphanumeric password."""
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def default_config_value(key: str) -> Any:
    """Fallback for a required key nobody supplied (``""`` when unknown)."""
    registry = get_registry()
    if key in registry.generated_password_keys:
        return generate_password()
    return registry.config_defaults.get(key, "")


def _is_unset(value: Any) -> bool:
    return value is None or value == ""


def _is_enabled(value: Any) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class ConfigGenerator:
    """Render configuration files for a set of profiles.

    Args:
        catalog:        Profile catalog (default: the bundled one).
        developer_mode: Force developer-mode keys on every generated config.
    """

    def __init__(self, catalog: ProfileCatalog | None = None, developer_mode: bool = False):
        self.catalog = catalog or ProfileCatalog()
        self.developer_mode = developer_mode

    # ── Configuration values ─────────────────────────────────────

    def generate_config(self, profile_ids: Iterable[str], config: dict[str, Any] | None = None) -> dict[str, Any]:
        """Profile defaults under *config*, required keys filled in.

        Developer mode applies when the generator was built with it or
        the config itself sets ``DEVELOPER_MODE=true``.
        """
        profiles = self.catalog.resolve_profiles(profile_ids)

        merged: dict[str, Any] = {}
        for profile in profiles:
            merged.update(profile.configuration.defaults)
        merged.update(config or {})

        for profile in profiles:
            for key in profile.configuration.required:
                if _is_unset(merged.get(key)):
                    merged[key] = default_config_value(key)
                    logger.debug("Filled required key %s for %s", key, profile.id)

        enabled = self.developer_mode or _is_enabled(merged.get("DEVELOPER_MODE", ""))
        return self.catalog.apply_developer_mode(merged, enabled)

    # ── .env ─────────────────────────────────────────────────────

    def generate_env_file(self, config: dict[str, Any], profile_ids: Iterable[str]) -> str:
        """Render *config* as .env text grouped by owning profile."""
        profiles = self.catalog.resolve_profiles(profile_ids)
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")

        lines = [
            "# Kaspa All-in-One configuration",
            f"# Generated {timestamp}",
            f"# Profiles: {', '.join(p.id for p in profiles) or 'none'}",
            "",
        ]

        written: set[str] = set()
        for profile in profiles:
            keys = [k for k in profile.configuration.keys if k in config and k not in written]
            if not keys:
                continue
            lines.append(f"# ── {profile.name} ──")
            for key in keys:
                lines.append(f"{key}={format_env_value(config[key])}")
                written.add(key)
            lines.append("")

        rest = [k for k in config if k not in written]
        if rest:
            lines.append("# ── Additional settings ──")
            for key in rest:
                lines.append(f"{key}={format_env_value(config[key])}")
            lines.append("")

        return "\n".join(lines)

    def save_env_file(self, content: str, path: Path) -> None:
        write_env_file(path, content)
        logger.info("Configuration written to %s", path)

    # ── docker-compose.yml ───────────────────────────────────────

    def generate_compose(
        self,
        profile_ids: Iterable[str],
        config: dict[str, Any] | None = None,
        *,
        env_file: str = ".env",
    ) -> str:
        """Render a compose document for the selected profiles.

        Each service depends on the services of its own profile with a
        lower startup order.  Host ports come from *config* (falling back
        to the profile defaults); named volumes back every service with
        a data path.
        """
        config = config or {}
        profiles = self.catalog.resolve_profiles(profile_ids)

        compose: dict[str, Any] = {"services": {}}
        volumes: list[str] = []

        for profile in profiles:
            defaults = profile.configuration.defaults
            for service in sorted(profile.services, key=lambda s: (s.startup_order, s.name)):
                name = service.container_name
                spec: dict[str, Any] = {
                    "image": service.image_name,
                    "container_name": name,
                    "restart": "unless-stopped",
                    "env_file": [env_file],
                }

                ports = []
                for key, container_port in service.port_keys.items():
                    host_port = config.get(key, defaults.get(key, container_port))
                    ports.append(f"{host_port}:{container_port}")
                if ports:
                    spec["ports"] = ports

                if service.data_path:
                    spec["volumes"] = [f"{service.volume_name}:{service.data_path}"]
                    volumes.append(service.volume_name)

                depends = [
                    s.container_name for s in profile.services
                    if s.startup_order < service.startup_order
                ]
                if depends:
                    spec["depends_on"] = depends

                spec["labels"] = {"kaspa-aio.profile": profile.id}
                compose["services"][name] = spec

        if volumes:
            compose["volumes"] = {v: {} for v in volumes}

        content = "# Generated by Kaspa All-in-One\n"
        content += yaml.safe_dump(
            compose,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
        return content

    def save_compose_file(self, content: str, path: Path) -> None:
        atomic_write_text(path, content)
        logger.info("Compose file written to %s", path)
