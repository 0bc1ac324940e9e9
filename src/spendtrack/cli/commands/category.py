"""Category management commands."""

import click

from spendtrack.cli.error_handling import domain_errors
from spendtrack.domain.category import DEFAULT_COLOR, CategoryService
from spendtrack.domain.entities import CategoryNode

NONE_VALUES = ("", "none")


def _parse_optional_id(ctx, value: str) -> int | None:
    """Parse an ID option where 'none' clears the field."""
    if value.strip().lower() in NONE_VALUES:
        return None
    try:
        return int(value)
    except ValueError:
        click.echo(f"Error: Invalid ID '{value}'", err=True)
        ctx.exit(1)


def print_category_tree(nodes: list[CategoryNode], indent: int = 0) -> None:
    """Recursively print category tree."""
    for node in nodes:
        prefix = "  " * indent
        budget = node.category.monthly_budget
        budget_str = f" [budget {budget:.2f}]" if budget is not None else ""
        click.echo(f"{prefix}{node.name} (ID: {node.id}){budget_str}")
        print_category_tree(node.children, indent + 1)


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List all categories in tree format."""
    service = CategoryService(ctx.obj["db"])

    tree = service.get_category_tree()
    if not tree:
        click.echo("No categories found.")
        return

    click.echo("\nCategories:")
    print_category_tree(tree)


@category_group.command("create")
@click.argument("name")
@click.option("--parent", "parent_id", type=int, help="Parent category ID")
@click.option("--color", default=DEFAULT_COLOR, show_default=True, help="Display color")
@click.option("--icon", help="Icon name")
@click.option("--budget", help="Monthly budget")
@click.pass_context
def create_category(ctx, name: str, parent_id: int | None, color: str, icon: str | None, budget: str | None):
    """Create a new category."""
    service = CategoryService(ctx.obj["db"])
    with domain_errors(ctx):
        category_id = service.create_category(
            name=name, color=color, parent_id=parent_id, icon=icon, monthly_budget=budget
        )
        parent_str = f" under {service.format_category_path(parent_id)}" if parent_id else ""
        click.echo(f"Created category '{name}'{parent_str} (ID: {category_id})")


@category_group.command("update")
@click.argument("category_id", type=int)
@click.option("--name", help="New name")
@click.option("--color", help="New color")
@click.option("--icon", help="New icon")
@click.option("--parent", help="New parent category ID, or 'none' to make it top-level")
@click.pass_context
def update_category(ctx, category_id: int, name, color, icon, parent):
    """Update a category. Only the given fields change.

    Moving a category under itself or one of its own subcategories is
    rejected and nothing is changed.
    """
    patch = {key: value for key, value in (("name", name), ("color", color), ("icon", icon)) if value is not None}
    if parent is not None:
        patch["parent_id"] = _parse_optional_id(ctx, parent)
    if not patch:
        click.echo("Error: Nothing to update", err=True)
        ctx.exit(1)

    service = CategoryService(ctx.obj["db"])
    with domain_errors(ctx):
        service.update_category(category_id, **patch)
        click.echo(f"Updated category {service.format_category_path(category_id)}")


@category_group.command("budget")
@click.argument("category_id", type=int)
@click.argument("amount")
@click.pass_context
def set_budget(ctx, category_id: int, amount: str):
    """Set a category's monthly budget. Use 'none' to clear it."""
    service = CategoryService(ctx.obj["db"])
    budget = None if amount.strip().lower() in NONE_VALUES else amount
    with domain_errors(ctx):
        cat = service.update_budget(category_id, budget)
        if cat.monthly_budget is None:
            click.echo(f"Cleared budget for '{cat.name}'")
        else:
            click.echo(f"Budget for '{cat.name}' set to {cat.monthly_budget:.2f}")


@category_group.command("delete")
@click.argument("category_id", type=int)
@click.pass_context
def delete_category(ctx, category_id: int):
    """Delete a category without subcategories.

    Its transactions become uncategorized and rules targeting it are removed.
    """
    service = CategoryService(ctx.obj["db"])
    with domain_errors(ctx):
        path = service.format_category_path(category_id)
        service.delete_category(category_id)
        click.echo(f"Deleted category '{path}'")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
