"""Unit management commands."""

import click

from spendtrack.cli.error_handling import domain_errors
from spendtrack.domain.unit import DEFAULT_COLOR, UnitService


@click.group()
def unit_group():
    """Manage units (e.g. personal, business)."""
    pass


@unit_group.command("create")
@click.argument("name")
@click.option("--color", default=DEFAULT_COLOR, show_default=True, help="Display color")
@click.option("--description", help="Unit description")
@click.option("--icon", help="Icon name")
@click.pass_context
def create_unit(ctx, name: str, color: str, description: str | None, icon: str | None):
    """Create a new unit."""
    service = UnitService(ctx.obj["db"])
    with domain_errors(ctx):
        unit_id = service.create_unit(name=name, color=color, description=description, icon=icon)
        click.echo(f"Created unit '{name}' (ID: {unit_id})")


@unit_group.command("list")
@click.option("--active-only", is_flag=True, help="Hide inactive units")
@click.pass_context
def list_units(ctx, active_only: bool):
    """List units."""
    service = UnitService(ctx.obj["db"])

    units = service.list_units(active_only=active_only)
    if not units:
        click.echo("No units found.")
        return

    click.echo("\nUnits:")
    click.echo("-" * 60)
    for unit in units:
        status = "active" if unit.active else "inactive"
        click.echo(f"ID: {unit.id:3d} | {unit.name:20s} | {unit.color} | {status}")


@unit_group.command("update")
@click.argument("unit_id", type=int)
@click.option("--name", help="New name")
@click.option("--color", help="New color")
@click.option("--description", help="New description")
@click.option("--icon", help="New icon")
@click.pass_context
def update_unit(ctx, unit_id: int, name, color, description, icon):
    """Update a unit. Only the given fields change."""
    fields = {
        key: value
        for key, value in (("name", name), ("color", color), ("description", description), ("icon", icon))
        if value is not None
    }
    if not fields:
        click.echo("Error: Nothing to update", err=True)
        ctx.exit(1)

    service = UnitService(ctx.obj["db"])
    with domain_errors(ctx):
        unit = service.update_unit(unit_id, **fields)
        click.echo(f"Updated unit {unit.id} ('{unit.name}')")


@unit_group.command("toggle")
@click.argument("unit_id", type=int)
@click.pass_context
def toggle_unit(ctx, unit_id: int):
    """Activate or deactivate a unit."""
    service = UnitService(ctx.obj["db"])
    with domain_errors(ctx):
        unit = service.toggle_unit(unit_id)
        click.echo(f"Unit '{unit.name}' is now {'active' if unit.active else 'inactive'}")


def register_commands(cli):
    """Register unit commands with main CLI."""
    cli.add_command(unit_group, name="unit")
