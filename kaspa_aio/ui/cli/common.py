"""
Helpers shared by the CLI command groups.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from kaspa_aio.core.models.settings import InstallerSettings


def installation_root(ctx: click.Context) -> Path:
    """Installation root registered by the top-level group, else CWD."""
    root: Path | None = (ctx.obj or {}).get("root")
    return root if root is not None else Path.cwd()


def load_cli_settings(ctx: click.Context) -> InstallerSettings:
    """Read kaspa-aio.yml; a broken file ends the command with exit 1."""
    from kaspa_aio.core.config.loader import ConfigError, load_settings

    try:
        return load_settings(installation_root(ctx))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def open_operation_log(ctx: click.Context, settings: InstallerSettings) -> None:
    """Log this add/remove run to the installation operation log until the command ends."""
    from kaspa_aio.core.observability.logging_config import attach_operation_log, detach_operation_log

    path = settings.operation_log_path(installation_root(ctx))
    if path is None:
        return
    attach_operation_log(path)
    ctx.call_on_close(detach_operation_log)


def adapter_overrides(ctx: click.Context) -> dict[str, Any]:
    """Adapter keyword arguments for ``--mock`` runs (empty otherwise)."""
    if not (ctx.obj or {}).get("mock"):
        return {}
    from kaspa_aio.adapters.mock import MockBackupStore, MockServiceManager

    return {"services": MockServiceManager(), "backups": MockBackupStore()}


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def parse_assignments(values: tuple[str, ...], option: str) -> dict[str, str]:
    """``("A=1", "B=2")`` → ``{"A": "1", "B": "2"}``."""
    result: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint=option)
        result[key.strip()] = value.strip()
    return result
