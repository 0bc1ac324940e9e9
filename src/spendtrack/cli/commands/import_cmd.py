"""Import commands."""

import json
from pathlib import Path

import click

from spendtrack.cli.error_handling import domain_errors
from spendtrack.domain.batch_import import BatchImportService, handle_import_request
from spendtrack.domain.csv_import import (
    CSVImportService,
    ImportPipelineState,
    apply_mapping,
    build_preview,
    load_rows,
)


def _parse_mapping_options(ctx, values: tuple[str, ...]) -> dict[str, int | None]:
    """Parse repeated FIELD=COLUMN options; an empty COLUMN unmaps the field."""
    overrides: dict[str, int | None] = {}
    for value in values:
        field_name, sep, column = value.partition("=")
        if not sep:
            click.echo(f"Error: Invalid mapping '{value}'. Use FIELD=COLUMN_INDEX", err=True)
            ctx.exit(1)
        try:
            overrides[field_name.strip()] = int(column) if column.strip() else None
        except ValueError:
            click.echo(f"Error: Invalid column index in '{value}'", err=True)
            ctx.exit(1)
    return overrides


def _print_preview(state: ImportPipelineState) -> None:
    mapping = state.mapping.to_dict() if state.mapping else {}
    click.echo("\nColumn mapping:")
    for field_name, index in mapping.items():
        header = state.headers[index] if index is not None else "-"
        click.echo(f"  {field_name:16s} <- {header}")

    click.echo(f"\nPreview ({len(state.preview)} rows):")
    click.echo("-" * 80)
    for row in state.preview:
        if row.error:
            click.echo(f"  {row.error}")
            continue
        flags = []
        if row.exists:
            flags.append("already imported")
        if row.duplicate_in_batch:
            flags.append("repeated in file")
        flag_str = f"  [{', '.join(flags)}]" if flags else ""
        click.echo(f"  Row {row.row_number:4d} | {row.date} | {row.amount:>12s} | {row.description}{flag_str}")


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--source", "source_id", type=int, required=True, help="Source ID the file belongs to")
@click.option("--map", "mappings", multiple=True, help="Column override FIELD=INDEX (e.g. amount=3)")
@click.option(
    "--allow-duplicate", "allow_duplicates", multiple=True, type=int, help="Row number to import even if already stored"
)
@click.option("--dry-run", is_flag=True, help="Show the preview without importing")
@click.pass_context
def import_csv(ctx, csv_file: str, source_id: int, mappings, allow_duplicates, dry_run: bool):
    """Import transactions from a CSV file.

    Columns are detected from the header row. Use --map to correct them.

    Examples:
        spendtrack import export.csv --source 1
        spendtrack import export.csv --source 1 --map description=2 --dry-run
    """
    service = CSVImportService(ctx.obj["db"])
    overrides = _parse_mapping_options(ctx, mappings)

    with domain_errors(ctx):
        path = Path(csv_file)
        state = load_rows(path.read_text(encoding="utf-8-sig"), source_id, file_name=path.name)
        state = build_preview(apply_mapping(state, overrides))

        if dry_run:
            _print_preview(service.mark_existing(state))
            return

        result = service.commit(state, allow_duplicates=allow_duplicates)

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result['imported']} transactions")
    click.echo(f"  Skipped: {result['skipped']} duplicates")
    if result["errors"]:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)


@click.command("import-batch")
@click.argument("json_file", type=click.File("r"))
@click.pass_context
def import_batch(ctx, json_file):
    """Import transaction records from a JSON file.

    The file holds either a list of records or {"transactions": [...]}.
    Each record needs date, description, amount and source_id.
    """
    try:
        body = json.load(json_file)
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON: {e}", err=True)
        ctx.exit(1)
    if isinstance(body, list):
        body = {"transactions": body}

    status, response = handle_import_request(BatchImportService(ctx.obj["db"]), body)
    if status != 200:
        click.echo(f"Error: {response['error']}", err=True)
        ctx.exit(1)

    click.echo(f"Imported: {response['imported']} of {response['total']}")
    click.echo(f"Skipped: {response['skipped']} duplicates")
    for error in response["errors"]:
        click.echo(f"  Record {error['index']}: {error['message']}", err=True)


@click.command("import-history")
@click.option("--source", "source_id", type=int, help="Only show imports for this source")
@click.pass_context
def import_history(ctx, source_id: int | None):
    """Show past imports."""
    logs = ctx.obj["db"].list_import_logs(source_id=source_id)
    if not logs:
        click.echo("No imports found.")
        return

    for log in logs:
        click.echo(
            f"{log.import_date:%Y-%m-%d %H:%M} | source {log.source_id} | {log.status:8s} | "
            f"+{log.transactions_added} / skipped {log.transactions_skipped} | {log.file_name or '-'}"
        )
        if log.error_message:
            click.echo(f"    {log.error_message}")


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_csv)
    cli.add_command(import_batch)
    cli.add_command(import_history)
