"""Rule-based classification of transactions into units and categories.

Rules are evaluated in priority order (highest first, ties in insertion
order) and the first match wins. Unit and category assignment are two
independent passes over separate rule lists.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from spendtrack.database.base import Database
from spendtrack.domain.entities import (
    CATEGORY_RULE_TYPES,
    UNIT_RULE_TYPES,
    ClassificationRule,
    RuleKind,
)
from spendtrack.domain.errors import (
    DomainError,
    NotFoundError,
    ValidationError,
    category_not_found,
    rule_not_found,
    transaction_not_found,
    unit_not_found,
)
from spendtrack.domain.matching import matches, validate_pattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionView:
    """The fields of a transaction that rules can see."""

    description: str
    source_id: Optional[int] = None
    source_category: Optional[str] = None


@dataclass(frozen=True)
class Classification:
    """Result of classifying one transaction.

    ``error`` is set when rules could not be loaded; both IDs are then None.
    """

    unit_id: Optional[int] = None
    category_id: Optional[int] = None
    error: Optional[str] = None


def order_rules(rules: Iterable[ClassificationRule]) -> list[ClassificationRule]:
    """Keep active rules and sort them by priority, highest first.

    The sort is stable, so equal priorities keep their given order.
    """
    return sorted((rule for rule in rules if rule.active), key=lambda rule: -rule.priority)


def rule_field_value(rule: ClassificationRule, view: TransactionView) -> str:
    """Select the transaction field a rule matches against."""
    if rule.rule_type == "description":
        return view.description or ""
    if rule.kind == RuleKind.UNIT:
        return str(view.source_id) if view.source_id is not None else ""
    return view.source_category or ""


def first_match(
    rules: Sequence[ClassificationRule], view: TransactionView
) -> Optional[ClassificationRule]:
    """Return the first rule (in given order) matching the view, if any."""
    for rule in rules:
        if matches(rule_field_value(rule, view), rule.pattern, rule.match_type):
            return rule
    return None


def classify(
    view: TransactionView,
    unit_rules: Iterable[ClassificationRule],
    category_rules: Iterable[ClassificationRule],
) -> Classification:
    """Assign a unit and a category to a transaction view.

    Args:
        view: Transaction fields visible to rules
        unit_rules: Unit rule snapshot (any order; inactive rules ignored)
        category_rules: Category rule snapshot (any order; inactive rules ignored)

    Returns:
        Classification with the matched IDs (None where nothing matched)
    """
    unit_rule = first_match(order_rules(unit_rules), view)
    category_rule = first_match(order_rules(category_rules), view)
    return Classification(
        unit_id=unit_rule.target_id if unit_rule else None,
        category_id=category_rule.target_id if category_rule else None,
    )


class ClassificationService:
    """Service for managing classification rules and applying them."""

    def __init__(self, db: Database):
        """Initialize classification service.

        Args:
            db: Database instance
        """
        self.db = db

    def classify(self, view: TransactionView) -> Classification:
        """Classify a transaction against the current active rules.

        Rules are fetched on every call. If they cannot be fetched, nothing is
        assigned and the failure is reported in ``Classification.error``.
        """
        try:
            unit_rules = self.db.get_active_rules(RuleKind.UNIT)
            category_rules = self.db.get_active_rules(RuleKind.CATEGORY)
        except (SQLAlchemyError, DomainError) as e:
            logger.error("Failed to load classification rules: %s", e)
            return Classification(error=f"Failed to load classification rules: {e}")
        return classify(view, unit_rules, category_rules)

    def _validate_rule(self, kind: RuleKind, rule_type: str, match_type: str, pattern: str) -> None:
        allowed = UNIT_RULE_TYPES if kind == RuleKind.UNIT else CATEGORY_RULE_TYPES
        if rule_type not in allowed:
            raise ValidationError(
                f"Invalid rule type '{rule_type}' for {kind.value} rules. "
                f"Must be one of: {', '.join(allowed)}"
            )
        validate_pattern(pattern, match_type)

    def _validate_target(self, kind: RuleKind, target_id: int) -> None:
        if kind == RuleKind.UNIT:
            if self.db.get_unit(target_id) is None:
                raise NotFoundError(unit_not_found(target_id))
        elif self.db.get_category(target_id) is None:
            raise NotFoundError(category_not_found(target_id))

    def create_rule(
        self,
        kind: RuleKind,
        rule_type: str,
        match_type: str,
        pattern: str,
        target_id: int,
        priority: Optional[int] = None,
        active: bool = True,
    ) -> ClassificationRule:
        """Create a classification rule.

        Args:
            kind: RuleKind.UNIT or RuleKind.CATEGORY
            rule_type: Field to match (source/description for unit rules,
                source_category/description for category rules)
            match_type: exact, contains, starts_with or regex
            pattern: Pattern to match
            target_id: Unit or category ID assigned on match
            priority: Explicit priority; defaults to one above the current
                highest, so new rules are evaluated first
            active: Whether the rule takes part in classification

        Returns:
            The created rule

        Raises:
            ValidationError: If the rule type, match type or pattern is invalid
            NotFoundError: If the target unit or category doesn't exist
        """
        kind = RuleKind(kind)
        self._validate_rule(kind, rule_type, match_type, pattern)
        self._validate_target(kind, target_id)

        if priority is None:
            existing = self.db.list_rules(kind)
            priority = max((rule.priority for rule in existing), default=-1) + 1
        elif priority < 0:
            raise ValidationError("Priority must be zero or greater")

        rule = self.db.create_rule(
            kind=kind,
            rule_type=rule_type,
            match_type=match_type,
            pattern=pattern,
            target_id=target_id,
            priority=priority,
            active=active,
        )
        logger.info("Created %s rule %s (%s %s '%s')", kind.value, rule.id, rule_type, match_type, pattern)
        return rule

    def get_rule(self, kind: RuleKind, rule_id: int) -> Optional[ClassificationRule]:
        """Get a rule by ID."""
        return self.db.get_rule(RuleKind(kind), rule_id)

    def list_rules(self, kind: RuleKind) -> list[ClassificationRule]:
        """List all rules of a kind, highest priority first."""
        return self.db.list_rules(RuleKind(kind))

    def update_rule(self, kind: RuleKind, rule_id: int, **fields) -> ClassificationRule:
        """Update rule fields.

        Raises:
            NotFoundError: If the rule or new target doesn't exist
            ValidationError: If the resulting rule would be invalid
        """
        kind = RuleKind(kind)
        rule = self.db.get_rule(kind, rule_id)
        if rule is None:
            raise NotFoundError(rule_not_found(kind.value, rule_id))

        self._validate_rule(
            kind,
            fields.get("rule_type", rule.rule_type),
            fields.get("match_type", rule.match_type),
            fields.get("pattern", rule.pattern),
        )
        if "target_id" in fields:
            self._validate_target(kind, fields["target_id"])
        if fields.get("priority") is not None and fields["priority"] < 0:
            raise ValidationError("Priority must be zero or greater")

        return self.db.update_rule(kind, rule_id, **fields)

    def delete_rule(self, kind: RuleKind, rule_id: int) -> None:
        """Delete a rule.

        Raises:
            NotFoundError: If the rule doesn't exist
        """
        self.db.delete_rule(RuleKind(kind), rule_id)

    def toggle_rule(self, kind: RuleKind, rule_id: int) -> ClassificationRule:
        """Flip a rule between active and inactive."""
        kind = RuleKind(kind)
        rule = self.db.get_rule(kind, rule_id)
        if rule is None:
            raise NotFoundError(rule_not_found(kind.value, rule_id))
        return self.db.update_rule(kind, rule_id, active=not rule.active)

    def reorder_rules(self, kind: RuleKind, ordered_ids: Sequence[int]) -> list[ClassificationRule]:
        """Reassign priorities so rules are evaluated in the given order.

        Priorities become the contiguous sequence ``len - 1`` down to ``0``.
        Every rule of the kind must appear exactly once.

        Raises:
            ValidationError: If ordered_ids is not a permutation of the rule IDs
        """
        kind = RuleKind(kind)
        existing_ids = {rule.id for rule in self.db.list_rules(kind)}
        if len(ordered_ids) != len(set(ordered_ids)) or set(ordered_ids) != existing_ids:
            raise ValidationError(
                f"Reorder must list every {kind.value} rule exactly once"
            )

        count = len(ordered_ids)
        updated = [
            self.db.update_rule(kind, rule_id, priority=count - 1 - position)
            for position, rule_id in enumerate(ordered_ids)
        ]
        logger.info("Reordered %d %s rules", count, kind.value)
        return updated

    def update_priorities(
        self, kind: RuleKind, priorities: Iterable[tuple[int, int]]
    ) -> list[ClassificationRule]:
        """Set explicit priorities for a set of rules.

        Args:
            kind: Rule kind
            priorities: (rule_id, priority) pairs

        Raises:
            ValidationError: If a priority is negative
            NotFoundError: If a rule doesn't exist
        """
        kind = RuleKind(kind)
        pairs = list(priorities)
        for rule_id, priority in pairs:
            if priority < 0:
                raise ValidationError(f"Priority for rule {rule_id} must be zero or greater")
            if self.db.get_rule(kind, rule_id) is None:
                raise NotFoundError(rule_not_found(kind.value, rule_id))
        return [self.db.update_rule(kind, rule_id, priority=priority) for rule_id, priority in pairs]

    def test_rule(
        self,
        kind: RuleKind,
        rule_type: str,
        match_type: str,
        pattern: str,
        view: TransactionView,
    ) -> bool:
        """Check whether a draft rule would match sample data, without saving it."""
        draft = ClassificationRule(
            id=0,
            kind=RuleKind(kind),
            rule_type=rule_type,
            match_type=match_type,
            pattern=pattern,
            target_id=0,
            priority=0,
        )
        return matches(rule_field_value(draft, view), pattern, match_type)

    def apply_rules(
        self,
        only_unassigned: bool = True,
        transaction_ids: Optional[Iterable[int]] = None,
    ) -> int:
        """Classify stored transactions and write back unit/category.

        Args:
            only_unassigned: Only fill fields that are currently empty
            transaction_ids: Restrict to these transactions (default: all)

        Returns:
            Number of transactions updated
        """
        unit_rules = order_rules(self.db.get_active_rules(RuleKind.UNIT))
        category_rules = order_rules(self.db.get_active_rules(RuleKind.CATEGORY))

        if transaction_ids is None:
            transactions, _ = self.db.list_transactions(sort_order="asc")
        else:
            transactions = []
            for transaction_id in transaction_ids:
                txn = self.db.get_transaction(transaction_id)
                if txn is None:
                    raise NotFoundError(transaction_not_found(transaction_id))
                transactions.append(txn)

        updated = 0
        for txn in transactions:
            result = classify(
                TransactionView(
                    description=txn.description,
                    source_id=txn.source_id,
                    source_category=txn.source_category,
                ),
                unit_rules,
                category_rules,
            )
            changes = {}
            if result.unit_id is not None and result.unit_id != txn.unit_id:
                if not only_unassigned or txn.unit_id is None:
                    changes["unit_id"] = result.unit_id
            if result.category_id is not None and result.category_id != txn.category_id:
                if not only_unassigned or txn.category_id is None:
                    changes["category_id"] = result.category_id
            if changes:
                self.db.update_transaction(txn.id, **changes)
                updated += 1

        logger.info("Applied rules to %d of %d transactions", updated, len(transactions))
        return updated
