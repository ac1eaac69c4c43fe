"""
CLI commands for configuration backups.

Thin wrappers over ``kaspa_aio.adapters.backup.BackupManager``.
"""

from __future__ import annotations

import sys

import click

from kaspa_aio.adapters.base import BackupStore
from kaspa_aio.ui.cli.common import adapter_overrides, echo_json, installation_root, load_cli_settings


def _store(ctx: click.Context) -> BackupStore:
    overrides = adapter_overrides(ctx)
    if "backups" in overrides:
        return overrides["backups"]
    from kaspa_aio.adapters.backup import BackupManager

    return BackupManager(installation_root(ctx), load_cli_settings(ctx))


@click.group()
def backup() -> None:
    """Backups — snapshot and restore .env, compose file and state."""


@backup.command()
@click.option("--reason", "-r", default="Manual backup", show_default=True, help="Why the backup was taken.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def create(ctx: click.Context, reason: str, as_json: bool) -> None:
    """Snapshot the current configuration."""
    result = _store(ctx).create_backup(reason)

    if as_json:
        echo_json(result)
        if not result["success"]:
            sys.exit(1)
        return

    if not result["success"]:
        click.secho(f"❌ {result['error']}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Backup created: {result['backupId']}", fg="green", bold=True)
    files = result.get("backedUpFiles", [])
    click.echo(f"   Files: {len(files)}")
    click.echo(f"   Size:  {result.get('totalSize', 0):,} bytes")


@backup.command("list")
@click.option("--limit", "-n", default=20, show_default=True, help="Show at most this many.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_backups_cmd(ctx: click.Context, limit: int, as_json: bool) -> None:
    """List backups, newest first."""
    result = _store(ctx).list_backups(limit)

    if as_json:
        echo_json(result)
        return

    backups = result.get("backups", [])
    if not backups:
        click.secho("No backups found", fg="yellow")
        return

    click.secho(f"📦 Backups ({result['showing']} of {result['total']}):", fg="cyan", bold=True)
    for b in backups:
        age = f"  ({b['age']})" if b.get("age") else ""
        click.echo(f"   {b['backupId']}  {b.get('reason', '')}{age}")
    click.echo()


@backup.command()
@click.argument("backup_id")
@click.option("--no-pre-backup", is_flag=True, help="Skip the safety backup of the current files.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def restore(ctx: click.Context, backup_id: str, no_pre_backup: bool, as_json: bool) -> None:
    """Restore files from a backup."""
    result = _store(ctx).restore_backup(backup_id, create_backup_before_restore=not no_pre_backup)

    if as_json:
        echo_json(result)
        if not result["success"]:
            sys.exit(1)
        return

    if not result["success"]:
        click.secho(f"❌ {result['error']}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Restored {backup_id}", fg="green", bold=True)
    for f in result.get("restoredFiles", []):
        click.echo(f"   • {f}")
    if result.get("preRestoreBackup"):
        click.echo(f"   Previous files saved as {result['preRestoreBackup']}")
    if result.get("requiresRestart"):
        click.secho("   ⚠️  Restart services to apply the restored configuration", fg="yellow")


@backup.command()
@click.argument("backup_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def delete(ctx: click.Context, backup_id: str, as_json: bool) -> None:
    """Delete a backup."""
    result = _store(ctx).delete_backup(backup_id)

    if as_json:
        echo_json(result)
    elif result["success"]:
        click.secho(f"🗑  Deleted {backup_id}", fg="green")
    else:
        click.secho(f"❌ {result['error']}", fg="red")

    if not result["success"]:
        sys.exit(1)
