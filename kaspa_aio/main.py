"""
Kaspa All-in-One — CLI entrypoint.

Usage:
    kaspa-aio --help
    kaspa-aio profile list
    kaspa-aio profile add kasia-indexer --option indexer_node_connection=local_node
    kaspa-aio --mock profile remove kasia-app
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from kaspa_aio import __version__
from kaspa_aio.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="kaspa-aio")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--root",
    "root_path",
    type=click.Path(file_okay=False),
    default=None,
    help="Installation root (default: $KASPA_AIO_ROOT or auto-detect).",
)
@click.option("--mock", is_flag=True, help="Use recording doubles instead of Docker and the backup directory.")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    root_path: str | None,
    mock: bool,
) -> None:
    """Kaspa All-in-One — manage installation profiles."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["mock"] = mock

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("KASPA_AIO_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("KASPA_AIO_LOG_FILE"),
        log_file_level=os.environ.get("KASPA_AIO_LOG_FILE_LEVEL"),
    )

    # Register installation root in core context
    from kaspa_aio.core.config.loader import resolve_installation_root
    from kaspa_aio.core.context import set_installation_root

    root: Path = resolve_installation_root(root_path)
    ctx.obj["root"] = root
    set_installation_root(root)


# ── Sub-command groups ──────────────────────────────────────────

from kaspa_aio.ui.cli.backup import backup  # noqa: E402
from kaspa_aio.ui.cli.profiles import profile  # noqa: E402
from kaspa_aio.ui.cli.templates import template  # noqa: E402

cli.add_command(profile)
cli.add_command(template)
cli.add_command(backup)


if __name__ == "__main__":
    cli()
