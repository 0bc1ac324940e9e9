"""Main CLI entry point."""

import logging

import click

from spendtrack.database.factories import DB_PATH_ENV, create_sqlite_database

# Import and register all commands at module level
from spendtrack.cli.commands import (
    category,
    import_cmd,
    rule,
    source,
    spending,
    transaction,
    unit,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV} environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="SPENDTRACK_LOG_LEVEL",
    help="Logging level (default: WARNING)",
)
@click.option("--verbose", "-v", is_flag=True, help="Shortcut for --log-level DEBUG")
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str, verbose: bool):
    """Spendtrack - Transaction ingestion and spending analysis.

    Import bank exports, classify transactions into units and categories
    with pattern rules, and compare category spending against budgets.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
source.register_commands(cli)
unit.register_commands(cli)
category.register_commands(cli)
rule.register_commands(cli)
import_cmd.register_commands(cli)
transaction.register_commands(cli)
spending.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
