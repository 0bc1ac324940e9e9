"""Tests for rule-based unit and category classification."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from spendtrack.domain.classification import (
    Classification,
    TransactionView,
    classify,
    order_rules,
)
from spendtrack.domain.entities import ClassificationRule, RuleKind
from spendtrack.domain.errors import NotFoundError, ValidationError


def make_rule(rule_id, pattern, target_id, priority, kind=RuleKind.CATEGORY, rule_type="description",
              match_type="contains", active=True):
    return ClassificationRule(
        id=rule_id,
        kind=kind,
        rule_type=rule_type,
        match_type=match_type,
        pattern=pattern,
        target_id=target_id,
        priority=priority,
        active=active,
    )


class TestClassifyFunction:
    """Tests for the pure classify function."""

    def test_empty_rule_sets_assign_nothing(self):
        result = classify(TransactionView(description="Anything"), [], [])
        assert result == Classification(unit_id=None, category_id=None)

    def test_highest_priority_match_wins(self):
        rules = [
            make_rule(1, "coffee", target_id=10, priority=1),
            make_rule(2, "starbucks", target_id=20, priority=5),
        ]
        result = classify(TransactionView(description="STARBUCKS COFFEE"), [], rules)
        assert result.category_id == 20

    def test_first_match_wins_even_if_lower_rule_also_matches(self):
        rules = [
            make_rule(1, "shop", target_id=10, priority=9),
            make_rule(2, "shop", target_id=20, priority=3),
        ]
        assert classify(TransactionView(description="Shop"), [], rules).category_id == 10

    def test_equal_priority_keeps_given_order(self):
        rules = [
            make_rule(1, "shop", target_id=10, priority=0),
            make_rule(2, "shop", target_id=20, priority=0),
        ]
        assert order_rules(rules) == rules
        assert classify(TransactionView(description="shop"), [], rules).category_id == 10

    def test_inactive_rules_are_skipped(self):
        rules = [
            make_rule(1, "shop", target_id=10, priority=9, active=False),
            make_rule(2, "shop", target_id=20, priority=1),
        ]
        assert classify(TransactionView(description="shop"), [], rules).category_id == 20

    def test_unit_source_rule_matches_source_id(self):
        unit_rules = [make_rule(1, "3", target_id=7, priority=0, kind=RuleKind.UNIT, rule_type="source",
                                match_type="exact")]
        result = classify(TransactionView(description="x", source_id=3), unit_rules, [])
        assert result.unit_id == 7
        assert result.category_id is None

    def test_category_source_category_rule(self):
        rules = [make_rule(1, "groceries", target_id=4, priority=0, rule_type="source_category",
                           match_type="exact")]
        view = TransactionView(description="ALDI 123", source_category="Groceries")
        assert classify(view, [], rules).category_id == 4
        assert classify(TransactionView(description="ALDI 123"), [], rules).category_id is None

    def test_malformed_regex_rule_degrades_to_no_match(self):
        rules = [
            make_rule(1, "(broken", target_id=10, priority=9, match_type="regex"),
            make_rule(2, "broken", target_id=20, priority=1),
        ]
        assert classify(TransactionView(description="(broken"), [], rules).category_id == 20

    def test_unit_and_category_are_independent(self):
        unit_rules = [make_rule(1, "acme", target_id=2, priority=0, kind=RuleKind.UNIT)]
        category_rules = [make_rule(1, "fuel", target_id=5, priority=0)]
        result = classify(TransactionView(description="ACME FUEL"), unit_rules, category_rules)
        assert (result.unit_id, result.category_id) == (2, 5)


class TestClassificationService:
    """Tests for rule management and classification against the database."""

    def test_create_rule_defaults_to_top_priority(self, classification_service, sample_categories):
        food = sample_categories["Food & Dining"]
        first = classification_service.create_rule(RuleKind.CATEGORY, "description", "contains", "food", food)
        second = classification_service.create_rule(RuleKind.CATEGORY, "description", "contains", "foo", food)

        assert first.priority == 0
        assert second.priority == 1
        assert [r.id for r in classification_service.list_rules(RuleKind.CATEGORY)] == [second.id, first.id]

    def test_create_rule_validates_type_pattern_and_target(self, classification_service, sample_categories):
        food = sample_categories["Food & Dining"]
        with pytest.raises(ValidationError, match="Invalid rule type"):
            classification_service.create_rule(RuleKind.CATEGORY, "source", "contains", "x", food)
        with pytest.raises(ValidationError, match="Invalid regular expression"):
            classification_service.create_rule(RuleKind.CATEGORY, "description", "regex", "(", food)
        with pytest.raises(NotFoundError):
            classification_service.create_rule(RuleKind.CATEGORY, "description", "contains", "x", 999)
        with pytest.raises(NotFoundError):
            classification_service.create_rule(RuleKind.UNIT, "description", "contains", "x", 999)

    def test_classify_uses_current_rules(self, classification_service, sample_categories):
        view = TransactionView(description="Corner Restaurant")
        assert classification_service.classify(view).category_id is None

        rule = classification_service.create_rule(
            RuleKind.CATEGORY, "description", "contains", "restaurant", sample_categories["Restaurants"]
        )
        assert classification_service.classify(view).category_id == sample_categories["Restaurants"]

        classification_service.toggle_rule(RuleKind.CATEGORY, rule.id)
        assert classification_service.classify(view).category_id is None

    def test_classify_reports_rule_load_failure(self, classification_service, temp_db):
        with patch.object(temp_db, "get_active_rules", side_effect=OperationalError("SELECT", {}, Exception("gone"))):
            result = classification_service.classify(TransactionView(description="x"))

        assert result.unit_id is None
        assert result.category_id is None
        assert "Failed to load classification rules" in result.error

    def test_reorder_rules_assigns_contiguous_priorities(self, classification_service, sample_categories):
        food = sample_categories["Food & Dining"]
        ids = [
            classification_service.create_rule(RuleKind.CATEGORY, "description", "contains", p, food).id
            for p in ("a", "b", "c")
        ]

        new_order = [ids[0], ids[2], ids[1]]
        classification_service.reorder_rules(RuleKind.CATEGORY, new_order)

        rules = classification_service.list_rules(RuleKind.CATEGORY)
        assert [r.id for r in rules] == new_order
        assert [r.priority for r in rules] == [2, 1, 0]

    def test_reorder_rules_requires_every_rule_once(self, classification_service, sample_categories):
        food = sample_categories["Food & Dining"]
        a = classification_service.create_rule(RuleKind.CATEGORY, "description", "contains", "a", food)
        classification_service.create_rule(RuleKind.CATEGORY, "description", "contains", "b", food)

        with pytest.raises(ValidationError):
            classification_service.reorder_rules(RuleKind.CATEGORY, [a.id])
        with pytest.raises(ValidationError):
            classification_service.reorder_rules(RuleKind.CATEGORY, [a.id, a.id])

    def test_update_priorities(self, classification_service, sample_categories):
        food = sample_categories["Food & Dining"]
        a = classification_service.create_rule(RuleKind.CATEGORY, "description", "contains", "a", food)
        b = classification_service.create_rule(RuleKind.CATEGORY, "description", "contains", "b", food)

        classification_service.update_priorities(RuleKind.CATEGORY, [(a.id, 10), (b.id, 3)])

        rules = classification_service.list_rules(RuleKind.CATEGORY)
        assert [(r.id, r.priority) for r in rules] == [(a.id, 10), (b.id, 3)]

        with pytest.raises(ValidationError):
            classification_service.update_priorities(RuleKind.CATEGORY, [(a.id, -1)])
        with pytest.raises(NotFoundError):
            classification_service.update_priorities(RuleKind.CATEGORY, [(999, 1)])

    def test_update_and_delete_rule(self, classification_service, sample_categories):
        rule = classification_service.create_rule(
            RuleKind.CATEGORY, "description", "contains", "bus", sample_categories["Food & Dining"]
        )
        updated = classification_service.update_rule(
            RuleKind.CATEGORY, rule.id, pattern="metro", target_id=sample_categories["Transportation"]
        )
        assert updated.pattern == "metro"
        assert updated.target_id == sample_categories["Transportation"]

        classification_service.delete_rule(RuleKind.CATEGORY, rule.id)
        assert classification_service.get_rule(RuleKind.CATEGORY, rule.id) is None
        with pytest.raises(NotFoundError):
            classification_service.delete_rule(RuleKind.CATEGORY, rule.id)

    def test_test_rule_does_not_persist(self, classification_service):
        view = TransactionView(description="NETFLIX.COM")
        assert classification_service.test_rule(RuleKind.CATEGORY, "description", "starts_with", "netflix", view)
        assert not classification_service.test_rule(RuleKind.CATEGORY, "description", "exact", "netflix", view)
        assert classification_service.list_rules(RuleKind.CATEGORY) == []

    def test_apply_rules_fills_unassigned_only(
        self, classification_service, sample_categories, sample_units, make_transaction
    ):
        groceries = sample_categories["Groceries"]
        restaurants = sample_categories["Restaurants"]
        classification_service.create_rule(RuleKind.CATEGORY, "description", "contains", "market", groceries)
        classification_service.create_rule(RuleKind.UNIT, "description", "contains", "market", sample_units["Personal"])

        open_txn = make_transaction(-20, description="Farmers Market")
        assigned_txn = make_transaction(-30, description="Market Cafe", category_id=restaurants)
        make_transaction(-5, description="Parking")

        updated = classification_service.apply_rules()

        assert updated == 2
        assert classification_service.db.get_transaction(open_txn.id).category_id == groceries
        assert classification_service.db.get_transaction(assigned_txn.id).category_id == restaurants
        assert classification_service.db.get_transaction(assigned_txn.id).unit_id == sample_units["Personal"]

        assert classification_service.apply_rules(only_unassigned=False) == 1
        assert classification_service.db.get_transaction(assigned_txn.id).category_id == groceries
