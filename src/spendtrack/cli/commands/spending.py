"""Spending report command."""

import click

from spendtrack.cli.error_handling import domain_errors
from spendtrack.domain.spending import SpendingService
from spendtrack.utils.date_parser import SPENDING_PERIODS


@click.command("spending")
@click.option("--period", type=click.Choice(SPENDING_PERIODS), default="current_month", show_default=True)
@click.option("--from", "date_from", help="Start date for --period custom")
@click.option("--to", "date_to", help="End date for --period custom")
@click.option("--unit", "unit_id", type=int, help="Only count this unit")
@click.option("--limit", type=int, help="Show at most this many categories")
@click.pass_context
def spending_report(ctx, period, date_from, date_to, unit_id, limit):
    """Show spending per category against monthly budgets.

    Parent categories include the spending of their subcategories.

    Examples:
        spendtrack spending --period last_3_months
        spendtrack spending --period custom --from 2024-01-01 --to 2024-03-31
    """
    service = SpendingService(ctx.obj["db"])
    with domain_errors(ctx):
        report = service.get_report(
            period=period, date_from=date_from, date_to=date_to, unit_id=unit_id, limit=limit
        )

    click.echo(f"\nSpending {report.date_from} to {report.date_to}")
    click.echo("=" * 80)
    if not report.categories:
        click.echo("No categorized spending in this period.")
    for row in report.categories:
        name = f"{row.parent_name} > {row.name}" if row.parent_name else row.name
        utilization = f"{row.budget_utilization:6.1f}%" if row.budget_utilization is not None else "   n/a"
        marker = " OVER" if row.over_budget else ""
        click.echo(
            f"{name:35s} {row.total_spent:>12.2f} {row.transaction_count:>5d} txns "
            f"{row.percent_of_total:5.1f}% of total  budget {utilization}{marker}"
        )

    summary = report.summary
    click.echo("-" * 80)
    click.echo(f"Total spent:    {summary.total_spent:>12.2f}")
    click.echo(f"Total budget:   {summary.total_budget:>12.2f}")
    if summary.overall_utilization is not None:
        click.echo(f"Utilization:    {summary.overall_utilization:>11.1f}%")
    click.echo(f"Over budget:    {summary.over_budget_count:>12d}")
    click.echo(f"Savings:        {summary.savings:>12.2f}")
    click.echo(f"Uncategorized:  {summary.uncategorized_spent:>12.2f} ({summary.uncategorized_count} txns)")


def register_commands(cli):
    """Register spending command with main CLI."""
    cli.add_command(spending_report)
