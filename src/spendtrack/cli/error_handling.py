"""CLI error handling helpers."""

from contextlib import contextmanager
from typing import Iterator

import click

from spendtrack.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError | OSError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


@contextmanager
def domain_errors(ctx: click.Context) -> Iterator[None]:
    """Turn domain, validation and file errors raised inside the block into exit code 1."""
    try:
        yield
    except (DomainError, ValueError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
