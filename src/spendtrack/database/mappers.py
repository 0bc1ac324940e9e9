"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the engine never holds a live
ORM row.
"""

from spendtrack.domain import entities as domain
from spendtrack.domain.entities import RuleKind
from spendtrack.database.models import (
    Source as ORMSource,
    Unit as ORMUnit,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    UnitRule as ORMUnitRule,
    CategoryRule as ORMCategoryRule,
    ImportLog as ORMImportLog,
)


def source_to_domain(orm_source: ORMSource) -> domain.Source:
    """Convert SQLAlchemy Source model to domain Source entity."""
    return domain.Source(
        id=orm_source.id,
        name=orm_source.name,
        type=orm_source.type,
        created_at=orm_source.created_at,
    )


def unit_to_domain(orm_unit: ORMUnit) -> domain.Unit:
    """Convert SQLAlchemy Unit model to domain Unit entity."""
    return domain.Unit(
        id=orm_unit.id,
        name=orm_unit.name,
        color=orm_unit.color,
        active=bool(orm_unit.active),
        created_at=orm_unit.created_at,
        description=orm_unit.description,
        icon=orm_unit.icon,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        color=orm_category.color,
        parent_id=orm_category.parent_id,
        created_at=orm_category.created_at,
        icon=orm_category.icon,
        monthly_budget=orm_category.monthly_budget,
    )


def split_tags(raw: str | None) -> tuple[str, ...]:
    """Split the stored comma-separated tag string."""
    if not raw:
        return ()
    return tuple(tag for tag in raw.split(",") if tag)


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        source_id=orm_transaction.source_id,
        date=orm_transaction.date,
        description=orm_transaction.description,
        amount=orm_transaction.amount,
        created_at=orm_transaction.created_at,
        unit_id=orm_transaction.unit_id,
        category_id=orm_transaction.category_id,
        source_category=orm_transaction.source_category,
        fingerprint=orm_transaction.fingerprint,
        ignore=bool(orm_transaction.ignore),
        notes=orm_transaction.notes,
        tags=split_tags(orm_transaction.tags),
    )


def unit_rule_to_domain(orm_rule: ORMUnitRule) -> domain.ClassificationRule:
    """Convert SQLAlchemy UnitRule model to a domain rule."""
    return domain.ClassificationRule(
        id=orm_rule.id,
        kind=RuleKind.UNIT,
        rule_type=orm_rule.rule_type,
        match_type=orm_rule.match_type,
        pattern=orm_rule.pattern,
        target_id=orm_rule.unit_id,
        priority=orm_rule.priority,
        active=bool(orm_rule.active),
    )


def category_rule_to_domain(orm_rule: ORMCategoryRule) -> domain.ClassificationRule:
    """Convert SQLAlchemy CategoryRule model to a domain rule."""
    return domain.ClassificationRule(
        id=orm_rule.id,
        kind=RuleKind.CATEGORY,
        rule_type=orm_rule.rule_type,
        match_type=orm_rule.match_type,
        pattern=orm_rule.pattern,
        target_id=orm_rule.category_id,
        priority=orm_rule.priority,
        active=bool(orm_rule.active),
    )


def import_log_to_domain(orm_log: ORMImportLog) -> domain.ImportLog:
    """Convert SQLAlchemy ImportLog model to domain ImportLog entity."""
    return domain.ImportLog(
        id=orm_log.id,
        source_id=orm_log.source_id,
        import_date=orm_log.import_date,
        transactions_added=orm_log.transactions_added,
        transactions_skipped=orm_log.transactions_skipped,
        status=orm_log.status,
        file_name=orm_log.file_name,
        error_message=orm_log.error_message,
    )
