"""Classification rule commands."""

import click

from spendtrack.cli.error_handling import domain_errors
from spendtrack.domain.classification import ClassificationService, TransactionView
from spendtrack.domain.entities import CATEGORY_RULE_TYPES, UNIT_RULE_TYPES, RuleKind
from spendtrack.domain.matching import MATCH_TYPES

KINDS = [kind.value for kind in RuleKind]
RULE_TYPES = sorted(set(UNIT_RULE_TYPES) | set(CATEGORY_RULE_TYPES))


@click.group()
def rule_group():
    """Manage unit and category assignment rules."""
    pass


@rule_group.command("create")
@click.argument("kind", type=click.Choice(KINDS))
@click.argument("rule_type", type=click.Choice(RULE_TYPES))
@click.argument("match_type", type=click.Choice(MATCH_TYPES))
@click.argument("pattern")
@click.argument("target_id", type=int)
@click.option("--priority", type=int, help="Priority (default: above all existing rules)")
@click.option("--inactive", is_flag=True, help="Create the rule disabled")
@click.pass_context
def create_rule(ctx, kind, rule_type, match_type, pattern, target_id, priority, inactive):
    """Create a rule assigning TARGET_ID (a unit or category ID).

    Examples:
        spendtrack rule create category description contains "whole foods" 4
        spendtrack rule create unit source exact 2 1
    """
    service = ClassificationService(ctx.obj["db"])
    with domain_errors(ctx):
        rule = service.create_rule(
            kind=RuleKind(kind),
            rule_type=rule_type,
            match_type=match_type,
            pattern=pattern,
            target_id=target_id,
            priority=priority,
            active=not inactive,
        )
        click.echo(f"Created {kind} rule {rule.id} (priority {rule.priority})")


@rule_group.command("list")
@click.argument("kind", type=click.Choice(KINDS))
@click.pass_context
def list_rules(ctx, kind):
    """List rules in evaluation order."""
    service = ClassificationService(ctx.obj["db"])

    rules = service.list_rules(RuleKind(kind))
    if not rules:
        click.echo(f"No {kind} rules found.")
        return

    click.echo(f"\n{kind.capitalize()} rules:")
    click.echo("-" * 80)
    for rule in rules:
        status = "" if rule.active else " (inactive)"
        click.echo(
            f"ID: {rule.id:3d} | P{rule.priority:<3d} | {rule.rule_type:15s} "
            f"{rule.match_type:11s} '{rule.pattern}' -> {rule.target_id}{status}"
        )


@rule_group.command("delete")
@click.argument("kind", type=click.Choice(KINDS))
@click.argument("rule_id", type=int)
@click.pass_context
def delete_rule(ctx, kind, rule_id):
    """Delete a rule."""
    service = ClassificationService(ctx.obj["db"])
    with domain_errors(ctx):
        service.delete_rule(RuleKind(kind), rule_id)
        click.echo(f"Deleted {kind} rule {rule_id}")


@rule_group.command("toggle")
@click.argument("kind", type=click.Choice(KINDS))
@click.argument("rule_id", type=int)
@click.pass_context
def toggle_rule(ctx, kind, rule_id):
    """Enable or disable a rule."""
    service = ClassificationService(ctx.obj["db"])
    with domain_errors(ctx):
        rule = service.toggle_rule(RuleKind(kind), rule_id)
        click.echo(f"Rule {rule.id} is now {'active' if rule.active else 'inactive'}")


@rule_group.command("reorder")
@click.argument("kind", type=click.Choice(KINDS))
@click.argument("rule_ids", nargs=-1, required=True, type=int)
@click.pass_context
def reorder_rules(ctx, kind, rule_ids):
    """Set evaluation order; the first RULE_ID is evaluated first."""
    service = ClassificationService(ctx.obj["db"])
    with domain_errors(ctx):
        service.reorder_rules(RuleKind(kind), list(rule_ids))
        click.echo(f"Reordered {len(rule_ids)} {kind} rules")


@rule_group.command("test")
@click.argument("kind", type=click.Choice(KINDS))
@click.argument("rule_type", type=click.Choice(RULE_TYPES))
@click.argument("match_type", type=click.Choice(MATCH_TYPES))
@click.argument("pattern")
@click.option("--description", default="", help="Sample description")
@click.option("--source-id", type=int, help="Sample source ID")
@click.option("--source-category", help="Sample bank category label")
@click.pass_context
def test_rule(ctx, kind, rule_type, match_type, pattern, description, source_id, source_category):
    """Check a rule against sample data without saving it."""
    service = ClassificationService(ctx.obj["db"])
    view = TransactionView(description=description, source_id=source_id, source_category=source_category)
    matched = service.test_rule(RuleKind(kind), rule_type, match_type, pattern, view)
    click.echo("Match" if matched else "No match")


@rule_group.command("apply")
@click.option("--overwrite", is_flag=True, help="Also replace existing unit/category assignments")
@click.pass_context
def apply_rules(ctx, overwrite: bool):
    """Run the active rules over stored transactions."""
    service = ClassificationService(ctx.obj["db"])
    with domain_errors(ctx):
        updated = service.apply_rules(only_unassigned=not overwrite)
        click.echo(f"Updated {updated} transaction{'s' if updated != 1 else ''}")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
