"""Transaction management commands."""

import click

from spendtrack.cli.error_handling import domain_errors
from spendtrack.domain.entities import Transaction
from spendtrack.domain.transaction import DEFAULT_PAGE_SIZE, TransactionService
from spendtrack.utils.amount_parser import parse_amount
from spendtrack.utils.date_parser import parse_date

NONE_VALUES = ("", "none")


def _format_row(txn: Transaction, verbose: bool) -> str:
    category = str(txn.category_id) if txn.category_id is not None else "-"
    unit = str(txn.unit_id) if txn.unit_id is not None else "-"
    ignored = " (ignored)" if txn.ignore else ""
    line = (
        f"{txn.id:5d} | {txn.date.isoformat()} | {txn.amount:>12.2f} | "
        f"unit {unit:>3s} | cat {category:>3s} | {txn.description}{ignored}"
    )
    if verbose:
        extras = [f"source {txn.source_id}", f"fp {txn.fingerprint or '-'}"]
        if txn.tags:
            extras.append(f"tags {','.join(txn.tags)}")
        if txn.notes:
            extras.append(f"notes {txn.notes}")
        line += "\n        " + " | ".join(extras)
    return line


def _optional_id(value: str) -> int | None:
    return None if value.strip().lower() in NONE_VALUES else int(value)


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.option("--source", "source_id", type=int, required=True, help="Source ID")
@click.option("--date", "date_str", required=True, help="Date (YYYY-MM-DD or relative like 'today')")
@click.option("--amount", required=True, help="Amount, negative for spending (e.g. -42.50)")
@click.option("--description", required=True, help="Description")
@click.option("--unit", "unit_id", type=int, help="Unit ID")
@click.option("--category", "category_id", type=int, help="Category ID")
@click.option("--notes", help="Notes")
@click.option("--tags", help="Comma-separated tags")
@click.pass_context
def add_transaction(ctx, source_id, date_str, amount, description, unit_id, category_id, notes, tags):
    """Add a transaction manually."""
    service = TransactionService(ctx.obj["db"])
    with domain_errors(ctx):
        txn = service.create_transaction(
            source_id=source_id,
            date=parse_date(date_str),
            description=description,
            amount=parse_amount(amount),
            unit_id=unit_id,
            category_id=category_id,
            notes=notes,
            tags=tags,
        )
        click.echo(f"Created transaction {txn.id}")


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--source", "source_id", type=int, help="Source ID")
@click.option("--unit", "unit_id", type=int, help="Unit ID")
@click.option("--category", "category_id", type=int, help="Category ID")
@click.option("--uncategorized", is_flag=True, help="Show only uncategorized transactions")
@click.option("--hide-ignored", is_flag=True, help="Leave out ignored transactions")
@click.option("--search", help="Description contains")
@click.option("--tag", help="Has tag")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--page-size", type=int, default=DEFAULT_PAGE_SIZE, show_default=True)
@click.option("--sort-by", type=click.Choice(["date", "amount", "description", "id"]), default="date")
@click.option("--sort-order", type=click.Choice(["asc", "desc"]), default="desc")
@click.option("--verbose", "-v", is_flag=True, help="Show source, fingerprint, tags and notes")
@click.pass_context
def list_transactions(
    ctx,
    start_date,
    end_date,
    source_id,
    unit_id,
    category_id,
    uncategorized,
    hide_ignored,
    search,
    tag,
    page,
    page_size,
    sort_by,
    sort_order,
    verbose,
):
    """View transactions with optional filters."""
    service = TransactionService(ctx.obj["db"])
    with domain_errors(ctx):
        result = service.list_transactions(
            start_date=parse_date(start_date) if start_date else None,
            end_date=parse_date(end_date) if end_date else None,
            source_id=source_id,
            unit_id=unit_id,
            category_id=category_id,
            uncategorized=uncategorized,
            include_ignored=not hide_ignored,
            search=search,
            tag=tag,
            page=page,
            page_size=page_size,
            sort_by=sort_by,
            sort_order=sort_order,
        )

    if not result.rows:
        click.echo("No transactions found.")
        return

    for txn in result.rows:
        click.echo(_format_row(txn, verbose))
    pages = max(1, -(-result.total // page_size))
    click.echo(f"\nPage {page} of {pages} ({result.total} transactions)")


@transaction_group.command("categorize")
@click.argument("transaction_ids", nargs=-1, required=True, type=int)
@click.option("--category", required=True, help="Category ID, or 'none' to clear")
@click.pass_context
def categorize(ctx, transaction_ids, category):
    """Assign a category to one or more transactions."""
    service = TransactionService(ctx.obj["db"])
    with domain_errors(ctx):
        category_id = _optional_id(category)
        for txn_id in dict.fromkeys(transaction_ids):
            service.update_category(txn_id, category_id)
        click.echo(f"Updated {len(set(transaction_ids))} transaction(s)")


@transaction_group.command("set-unit")
@click.argument("transaction_ids", nargs=-1, required=True, type=int)
@click.option("--unit", required=True, help="Unit ID, or 'none' to clear")
@click.pass_context
def set_unit(ctx, transaction_ids, unit):
    """Assign a unit to one or more transactions."""
    service = TransactionService(ctx.obj["db"])
    with domain_errors(ctx):
        unit_id = _optional_id(unit)
        for txn_id in dict.fromkeys(transaction_ids):
            service.update_unit(txn_id, unit_id)
        click.echo(f"Updated {len(set(transaction_ids))} transaction(s)")


@transaction_group.command("notes")
@click.argument("transaction_id", type=int)
@click.argument("notes")
@click.pass_context
def set_notes(ctx, transaction_id, notes):
    """Set notes on a transaction (empty string clears them)."""
    service = TransactionService(ctx.obj["db"])
    with domain_errors(ctx):
        service.update_notes(transaction_id, notes)
        click.echo(f"Updated notes for transaction {transaction_id}")


@transaction_group.command("ignore")
@click.argument("transaction_id", type=int)
@click.option("--undo", is_flag=True, help="Include the transaction in reports again")
@click.pass_context
def ignore(ctx, transaction_id, undo):
    """Exclude a transaction from spending reports."""
    service = TransactionService(ctx.obj["db"])
    with domain_errors(ctx):
        service.set_ignored(transaction_id, not undo)
        click.echo(f"Transaction {transaction_id} {'included in' if undo else 'excluded from'} reports")


@transaction_group.command("tag")
@click.argument("transaction_id", type=int)
@click.argument("tags")
@click.option("--replace", is_flag=True, help="Replace existing tags instead of adding")
@click.pass_context
def tag(ctx, transaction_id, tags, replace):
    """Tag a transaction with comma-separated TAGS."""
    service = TransactionService(ctx.obj["db"])
    with domain_errors(ctx):
        if replace:
            txn = service.set_tags(transaction_id, tags)
        else:
            txn = service.add_tags(transaction_id, tags)
        click.echo(f"Tags: {', '.join(txn.tags) or '(none)'}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
