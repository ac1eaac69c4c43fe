"""
CLI commands for setup templates.

Thin wrappers over ``kaspa_aio.core.services.catalog.ProfileCatalog``.
"""

from __future__ import annotations

import sys

import click

from kaspa_aio.ui.cli.common import echo_json, parse_assignments


@click.group()
def template() -> None:
    """Templates — predefined profile selections."""


@template.command("list")
@click.option("--category", default=None, help="Only templates in this category.")
@click.option("--use-case", default=None, help="Only templates for this use case.")
@click.option("--tag", "tags", multiple=True, help="Only templates with one of these tags.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def list_templates(category: str | None, use_case: str | None, tags: tuple[str, ...], as_json: bool) -> None:
    """List templates."""
    from kaspa_aio.core.services.catalog import ProfileCatalog

    catalog = ProfileCatalog()
    templates = catalog.search_templates_by_tags(tags) if tags else catalog.get_all_templates()
    if category:
        templates = [t for t in templates if t.category == category]
    if use_case:
        templates = [t for t in templates if t.use_case == use_case]

    if as_json:
        echo_json([t.to_dict() for t in templates])
        return

    click.secho(f"📋 Templates ({len(templates)}):", fg="cyan", bold=True)
    for t in templates:
        profiles = ", ".join(t.profiles) if t.profiles else "(choose)"
        click.echo(f"   {t.icon} {t.id:<22} {t.name}  → {profiles}")
    click.echo()


@template.command()
@click.argument("template_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def show(template_id: str, as_json: bool) -> None:
    """Show one template (deprecated IDs resolve to their replacement)."""
    from kaspa_aio.core.services.catalog import ProfileCatalog

    t = ProfileCatalog().get_template(template_id)
    if t is None:
        if as_json:
            echo_json({"error": f"Template '{template_id}' not found"})
        else:
            click.secho(f"❌ Template '{template_id}' not found", fg="red")
        sys.exit(1)

    if as_json:
        echo_json(t.to_dict())
        return

    click.secho(f"{t.icon} {t.name} ({t.id})", fg="cyan", bold=True)
    click.echo(f"   {t.long_description or t.description}")
    click.echo(f"   Profiles:  {', '.join(t.profiles) or '(choose)'}")
    r = t.resources
    click.echo(f"   Resources: {r.min_memory:g}GB RAM, {r.min_cpu:g} CPU, {r.min_disk:g}GB disk (minimum)")
    if t.features:
        click.echo("   Features:")
        for f in t.features:
            click.echo(f"     • {f}")
    click.echo()


@template.command()
@click.argument("template_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def validate(template_id: str, as_json: bool) -> None:
    """Check a template's profiles and required settings."""
    from kaspa_aio.core.services.catalog import ProfileCatalog

    result = ProfileCatalog().validate_template(template_id)

    if as_json:
        echo_json(result)
        sys.exit(0 if result["valid"] else 1)

    if result["valid"]:
        click.secho(f"✅ Template '{template_id}' is valid", fg="green", bold=True)
    else:
        click.secho(f"❌ Template '{template_id}' errors:", fg="red", bold=True)
        for err in result["errors"]:
            click.echo(f"   • {err['message']}")
    for warn in result["warnings"]:
        click.secho(f"   ⚠️  {warn['message']}", fg="yellow")

    if not result["valid"]:
        sys.exit(1)


@template.command()
@click.argument("template_id")
@click.option("--set", "assignments", multiple=True, help="Base value KEY=VALUE (repeatable).")
@click.option("--with-defaults", is_flag=True, help="Start from the profiles' defaults.")
def apply(template_id: str, assignments: tuple[str, ...], with_defaults: bool) -> None:
    """Print the configuration a template produces, as JSON."""
    from kaspa_aio.core.services.catalog import NotFoundError, ProfileCatalog

    catalog = ProfileCatalog()
    base = parse_assignments(assignments, "--set")
    try:
        if with_defaults:
            config = catalog.merge_template_config(template_id, base)
        else:
            config = catalog.apply_template(template_id, base)
    except NotFoundError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    echo_json(config)


@template.command()
@click.option("--memory", type=float, required=True, help="Available RAM in GB.")
@click.option("--cpu", type=float, required=True, help="Available CPU cores.")
@click.option("--disk", type=float, required=True, help="Available disk in GB.")
@click.option("--use-case", default="personal", show_default=True, help="Intended use.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def recommend(memory: float, cpu: float, disk: float, use_case: str, as_json: bool) -> None:
    """Rank templates for this machine."""
    from kaspa_aio.core.services.catalog import ProfileCatalog

    recommendations = ProfileCatalog().get_template_recommendations(
        {"memory": memory, "cpu": cpu, "disk": disk}, use_case,
    )

    if as_json:
        echo_json(recommendations)
        return

    click.secho(f"🎯 Templates for {use_case}:", fg="cyan", bold=True)
    for rec in recommendations:
        t = rec["template"]
        marker = " ★" if rec["recommended"] else ""
        color = "red" if rec["suitability"] == "insufficient" else None
        click.secho(f"   {rec['score']:>2}  {t['id']:<22} {t['name']}{marker}", fg=color)
    click.echo()
