"""
CLI commands for profiles.

Thin wrappers over ``kaspa_aio.core.services`` (catalog, resolver,
validator, ProfileAddition, ProfileRemoval).
"""

from __future__ import annotations

import sys
from typing import Any

import click

from kaspa_aio.ui.cli.common import (
    adapter_overrides,
    echo_json,
    installation_root,
    load_cli_settings,
    open_operation_log,
    parse_assignments,
)

_current_option = click.option(
    "--current",
    "current",
    multiple=True,
    help="Installed profile (repeatable; default: read from the installation state).",
)


def _current(values: tuple[str, ...]) -> list[str] | None:
    return list(values) if values else None


def _addition(ctx: click.Context, *, log_operation: bool = False):
    from kaspa_aio.core.services.profile_addition import ProfileAddition

    settings = load_cli_settings(ctx)
    if log_operation:
        open_operation_log(ctx, settings)
    return ProfileAddition(installation_root(ctx), settings=settings, **adapter_overrides(ctx))


def _removal(ctx: click.Context, *, log_operation: bool = False):
    from kaspa_aio.core.services.profile_removal import ProfileRemoval

    settings = load_cli_settings(ctx)
    if log_operation:
        open_operation_log(ctx, settings)
    return ProfileRemoval(installation_root(ctx), settings=settings, **adapter_overrides(ctx))


def _echo_issues(result: dict[str, Any]) -> None:
    for err in result.get("errors", []):
        click.echo(f"   • {err['message']}")
    for warn in result.get("warnings", []):
        click.secho(f"   ⚠️  {warn['message']}", fg="yellow")


@click.group()
def profile() -> None:
    """Profiles — list, resolve, validate, add and remove."""


# ── Catalog ─────────────────────────────────────────────────────


@profile.command("list")
@click.option("--category", default=None, help="Only profiles in this category.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def list_profiles(category: str | None, as_json: bool) -> None:
    """List available profiles."""
    from kaspa_aio.core.services.catalog import ProfileCatalog

    catalog = ProfileCatalog()
    profiles = catalog.get_profiles_by_category(category) if category else catalog.get_all_profiles()

    if as_json:
        echo_json([p.to_dict() for p in profiles])
        return

    click.secho(f"📦 Profiles ({len(profiles)}):", fg="cyan", bold=True)
    for p in profiles:
        r = p.resources
        click.echo(f"   {p.id:<24} {p.name}  ({r.min_memory:g}GB RAM, {r.min_disk:g}GB disk)")
    click.echo()


@profile.command()
@click.argument("profile_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def show(profile_id: str, as_json: bool) -> None:
    """Show one profile (legacy IDs resolve to their replacement)."""
    from kaspa_aio.core.services.catalog import ProfileCatalog

    p = ProfileCatalog().get_profile(profile_id)
    if p is None:
        if as_json:
            echo_json({"error": f"Profile '{profile_id}' not found"})
        else:
            click.secho(f"❌ Profile '{profile_id}' not found", fg="red")
        sys.exit(1)

    if as_json:
        echo_json(p.to_dict())
        return

    click.secho(f"📦 {p.name} ({p.id})", fg="cyan", bold=True)
    if p.description:
        click.echo(f"   {p.description}")
    click.echo(f"   Services:      {', '.join(p.service_names)}")
    if p.dependencies:
        click.echo(f"   Depends on:    {', '.join(p.dependencies)}")
    if p.prerequisites:
        click.echo(f"   Prerequisites: {', '.join(p.prerequisites)} ({p.prerequisites_mode})")
    if p.conflicts:
        click.echo(f"   Conflicts:     {', '.join(p.conflicts)}")
    if p.ports:
        click.echo(f"   Ports:         {', '.join(str(x) for x in p.ports)}")
    r = p.resources
    click.echo(f"   Resources:     {r.min_memory:g}GB RAM, {r.min_cpu:g} CPU, {r.min_disk:g}GB disk (minimum)")
    click.echo()


# ── Resolution ──────────────────────────────────────────────────


@profile.command()
@click.argument("profile_ids", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def resolve(profile_ids: tuple[str, ...], as_json: bool) -> None:
    """Print the dependency closure of a selection."""
    from kaspa_aio.core.services.resolver import DependencyResolver

    resolved = DependencyResolver().resolve_profile_dependencies(profile_ids)

    if as_json:
        echo_json({"profiles": resolved})
        return

    click.secho(f"🔗 Resolved ({len(resolved)}):", fg="cyan", bold=True)
    for profile_id in resolved:
        click.echo(f"   • {profile_id}")


@profile.command()
@click.argument("profile_ids", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def order(profile_ids: tuple[str, ...], as_json: bool) -> None:
    """Print the service startup order for a selection."""
    from kaspa_aio.core.services.resolver import DependencyResolver

    services = DependencyResolver().get_startup_order(profile_ids)

    if as_json:
        echo_json({"services": services})
        return

    click.secho("🚀 Startup order:", fg="cyan", bold=True)
    for s in services:
        optional = "" if s["required"] else " (optional)"
        click.echo(f"   {s['startupOrder']}. {s['name']:<24} [{s['profile']}]{optional}")


@profile.command()
@click.argument("profile_ids", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def validate(profile_ids: tuple[str, ...], as_json: bool) -> None:
    """Validate a profile selection."""
    from kaspa_aio.core.services.validation import ProfileValidator

    result = ProfileValidator().validate_profile_selection(profile_ids)

    if as_json:
        echo_json(result.to_dict())
        sys.exit(0 if result.valid else 1)

    if result.valid:
        click.secho("✅ Selection is valid", fg="green", bold=True)
    else:
        click.secho("❌ Selection errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err.message}")

    req = result.requirements
    click.echo(f"   Profiles:  {', '.join(result.resolved_profiles)}")
    click.echo(f"   Resources: {req.min_memory:g}GB RAM, {req.min_cpu:g} CPU, {req.min_disk:g}GB disk")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn.message}")

    if not result.valid:
        sys.exit(1)


# ── Live installation ───────────────────────────────────────────


@profile.command()
@click.argument("profile_id")
@_current_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def options(ctx: click.Context, profile_id: str, current: tuple[str, ...], as_json: bool) -> None:
    """Show integration choices for adding a profile."""
    result = _addition(ctx).get_integration_options(profile_id, _current(current))

    if as_json:
        echo_json(result)
        if not result["success"]:
            sys.exit(1)
        return

    if not result["success"]:
        click.secho(f"❌ {result['error']}", fg="red")
        sys.exit(1)

    info = result["options"]
    click.secho(f"🔌 Adding {info['profileName']}", fg="cyan", bold=True)
    if not info["integrationTypes"]:
        click.echo("   No integration choices")
    for menu in info["integrationTypes"]:
        click.echo()
        click.secho(f"   {menu['title']} ({menu['type']})", bold=True)
        for o in menu["options"]:
            marker = " ← recommended" if o["recommended"] else ""
            click.echo(f"     • {o['id']}: {o['label']}{marker}")
    extra = info["resourceImpact"]["additional"]
    click.echo()
    click.echo(f"   Additional: {extra['memory']:g}GB RAM, {extra['disk']:g}GB disk")


@profile.command()
@click.argument("profile_id")
@_current_option
@click.option(
    "--option",
    "-o",
    "choices",
    multiple=True,
    help="Integration choice TYPE=OPTION (repeatable).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def add(
    ctx: click.Context,
    profile_id: str,
    current: tuple[str, ...],
    choices: tuple[str, ...],
    as_json: bool,
) -> None:
    """Add a profile to the installation.

    Examples:

        kaspa-aio profile add kasia-indexer -o indexer_node_connection=local_node

        kaspa-aio profile add kasia-app -o app_indexer_connection=public_apis
    """
    integration = parse_assignments(choices, "--option")
    result = _addition(ctx, log_operation=True).add_profile(profile_id, _current(current), integration)

    if as_json:
        echo_json(result)
        if not result["success"]:
            sys.exit(1)
        return

    if not result["success"]:
        click.secho(f"❌ {result['error']}", fg="red")
        if "validation" in result:
            _echo_issues(result["validation"])
        if result.get("backupId"):
            click.echo(f"   Restore with: kaspa-aio backup restore {result['backupId']}")
        sys.exit(1)

    click.secho(f"✅ Added {profile_id}", fg="green", bold=True)
    click.echo(f"   Services: {', '.join(result['addedServices'])}")
    if result["backupId"]:
        click.echo(f"   Backup:   {result['backupId']}")
    changes = result["integrationChanges"]
    if changes:
        click.echo(f"   Configuration changes ({len(changes)}):")
        for c in changes:
            click.echo(f"     {c['type']:<9} {c['key']}  [{c['affectedProfile']}]")
    if result["requiresRestart"]:
        click.secho("   ⚠️  Restart dependent services to apply changes", fg="yellow")


@profile.command()
@click.argument("profile_id")
@_current_option
@click.option("--remove-data", is_flag=True, help="Also delete the Docker volumes.")
@click.option("--keep", "keep_types", multiple=True, help="Data type to keep when purging (repeatable).")
@click.option("--yes", "-y", is_flag=True, help="Do not ask before deleting data.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def remove(
    ctx: click.Context,
    profile_id: str,
    current: tuple[str, ...],
    remove_data: bool,
    keep_types: tuple[str, ...],
    yes: bool,
    as_json: bool,
) -> None:
    """Remove a profile from the installation."""
    if remove_data and not yes and not as_json:
        click.confirm(f"Delete all data volumes of {profile_id}?", abort=True)

    data_options = [{"type": t, "remove": False} for t in keep_types]
    result = _removal(ctx, log_operation=True).remove_profile(
        profile_id,
        remove_data=remove_data,
        data_options=data_options,
        current_profiles=_current(current),
    )

    if as_json:
        echo_json(result)
        if not result["success"]:
            sys.exit(1)
        return

    if not result["success"]:
        click.secho(f"❌ {result['error']}", fg="red")
        if "validation" in result:
            _echo_issues(result["validation"])
        sys.exit(1)

    summary = result["removalSummary"]
    click.secho(f"✅ Removed {summary['profile']}", fg="green", bold=True)
    click.echo(f"   Services:    {', '.join(result['removedServices'])}")
    click.echo(f"   Config keys: {len(summary['configKeysRemoved'])} removed")
    if result["backupId"]:
        click.echo(f"   Backup:      {result['backupId']}")
    for d in result["preservedData"]:
        location = f" → {d['location']}" if d.get("location") else ""
        click.echo(f"   📁 kept {d['name']}{location}")


@profile.command()
@click.argument("profile_id")
@_current_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def impact(ctx: click.Context, profile_id: str, current: tuple[str, ...], as_json: bool) -> None:
    """Preview what removing a profile would affect."""
    result = _removal(ctx).get_removal_impact(profile_id, _current(current))

    if as_json:
        echo_json(result)
        if not result["success"]:
            sys.exit(1)
        return

    if not result["success"]:
        click.secho(f"❌ {result['error']}", fg="red")
        sys.exit(1)

    status = "✅ can be removed" if result["canRemove"] else "❌ cannot be removed"
    click.secho(f"🗑  {result['profile']['name']}: {status}", fg="cyan", bold=True)
    click.echo(f"   Containers:  {', '.join(result['containers'])}")
    click.echo(f"   Config keys: {', '.join(result['configKeys'])}")
    for d in result["dataTypes"]:
        click.echo(f"   📁 {d['name']} ({d['size']})")
    for dep in result["dependentProfiles"]:
        click.secho(f"   ⚠️  {dep['name']} depends on it", fg="yellow")


@profile.command()
@click.option("--limit", "-n", default=20, show_default=True, help="Show at most this many entries.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, limit: int, as_json: bool) -> None:
    """Show installed profiles and recent add/remove attempts."""
    from kaspa_aio.core.persistence.audit import AuditWriter
    from kaspa_aio.core.persistence.state_file import load_state

    root = installation_root(ctx)
    settings = load_cli_settings(ctx)
    state = load_state(settings.state_path(root))
    entries = AuditWriter(settings.audit_path(root)).read_recent(limit)

    if as_json:
        echo_json({
            "selected": state.selected,
            "history": [h.to_dict() for h in state.history[-limit:]],
            "audit": [e.model_dump(mode="json") for e in entries],
        })
        return

    click.secho("📦 Installed:", fg="cyan", bold=True)
    click.echo(f"   {', '.join(state.selected) or '(none)'}")
    if not entries:
        return
    click.echo()
    click.secho("📜 Recent operations:", fg="cyan", bold=True)
    for e in entries:
        color = "green" if e.status == "ok" else "red"
        click.echo(f"   {e.timestamp[:19]}  {e.operation:<15} {e.profile_id:<24} ", nl=False)
        click.secho(e.status, fg=color)
