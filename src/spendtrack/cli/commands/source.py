"""Source management commands."""

import click

from spendtrack.cli.error_handling import domain_errors
from spendtrack.domain.entities import SourceType
from spendtrack.domain.source import SourceService

SOURCE_TYPES = [t.value for t in SourceType]


@click.group()
def source_group():
    """Manage sources (bank accounts, cards)."""
    pass


@source_group.command("create")
@click.argument("name", metavar="SOURCE_NAME")
@click.option(
    "--type", "source_type", type=click.Choice(SOURCE_TYPES), default="bank", help="Source type (default: bank)"
)
@click.pass_context
def create_source(ctx, name: str, source_type: str):
    """Create a new source.

    Examples:
        spendtrack source create "Chase Checking"
        spendtrack source create "Amex" --type credit_card
    """
    service = SourceService(ctx.obj["db"])
    with domain_errors(ctx):
        source_id = service.create_source(name=name, type=source_type)
        click.echo(f"Created source '{name}' (ID: {source_id})")


@source_group.command("list")
@click.pass_context
def list_sources(ctx):
    """List all sources."""
    service = SourceService(ctx.obj["db"])

    sources = service.list_sources()
    if not sources:
        click.echo("No sources found.")
        return

    click.echo("\nSources:")
    click.echo("-" * 60)
    for src in sources:
        click.echo(f"ID: {src.id:3d} | {src.name:25s} | Type: {src.type}")


@source_group.command("rename")
@click.argument("source_id", type=int)
@click.argument("new_name", metavar="NEW_NAME")
@click.option("--type", "source_type", type=click.Choice(SOURCE_TYPES), help="New source type")
@click.pass_context
def rename_source(ctx, source_id: int, new_name: str, source_type: str | None) -> None:
    """Rename a source."""
    service = SourceService(ctx.obj["db"])
    with domain_errors(ctx):
        service.rename_source(source_id, name=new_name, type=source_type)
        click.echo(f"Renamed source {source_id} to '{new_name}'")


@source_group.command("delete")
@click.argument("source_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_source(ctx, source_id: int, yes: bool) -> None:
    """Delete a source.

    The source can only be deleted if no transactions belong to it.
    """
    service = SourceService(ctx.obj["db"])

    src = service.get_source(source_id)
    if src is None:
        click.echo(f"Error: Source {source_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete source '{src.name}' (ID: {source_id})?"):
        click.echo("Deletion cancelled.")
        return

    with domain_errors(ctx):
        service.delete_source(source_id)
        click.echo(f"Deleted source '{src.name}'")


def register_commands(cli):
    """Register source commands with main CLI."""
    cli.add_command(source_group, name="source")
