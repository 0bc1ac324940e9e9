"""Tests for category hierarchy and category service."""

from datetime import datetime
from decimal import Decimal

import pytest

from spendtrack.domain.category import build_hierarchy, would_create_cycle
from spendtrack.domain.entities import Category
from spendtrack.domain.errors import (
    CircularDependencyError,
    DependencyError,
    NotFoundError,
    SelfParentError,
    ValidationError,
)
from spendtrack.domain.entities import RuleKind


def cat(cat_id, name, parent_id=None):
    return Category(id=cat_id, name=name, color="#000000", parent_id=parent_id, created_at=datetime(2024, 1, 1))


class TestBuildHierarchy:
    def test_groups_children_under_parents(self):
        roots = build_hierarchy([cat(1, "Food"), cat(2, "Groceries", 1), cat(3, "Travel"), cat(4, "Snacks", 2)])

        assert [n.name for n in roots] == ["Food", "Travel"]
        assert [n.name for n in roots[0].children] == ["Groceries"]
        assert [n.name for n in roots[0].children[0].children] == ["Snacks"]

    def test_child_listed_before_parent(self):
        roots = build_hierarchy([cat(2, "Groceries", 1), cat(1, "Food")])
        assert [n.id for n in roots] == [1]
        assert [n.id for n in roots[0].children] == [2]

    def test_unknown_parent_becomes_root(self):
        roots = build_hierarchy([cat(1, "Orphan", parent_id=99)])
        assert [n.id for n in roots] == [1]

    def test_empty_input(self):
        assert build_hierarchy([]) == []


class TestWouldCreateCycle:
    parents = {1: None, 2: 1, 3: 2, 4: None}

    def test_descendant_as_parent_is_a_cycle(self):
        assert would_create_cycle(1, 3, self.parents)

    def test_self_as_parent_is_a_cycle(self):
        assert would_create_cycle(2, 2, self.parents)

    def test_unrelated_parent_is_fine(self):
        assert not would_create_cycle(1, 4, self.parents)
        assert not would_create_cycle(3, 1, self.parents)

    def test_existing_loop_terminates(self):
        looped = {1: 2, 2: 1, 5: None}
        assert would_create_cycle(5, 1, looped)


class TestCategoryService:
    def test_create_and_get(self, category_service):
        category_id = category_service.create_category(name="Bills", monthly_budget="150.00")
        category = category_service.get_category(category_id)

        assert category.name == "Bills"
        assert category.parent_id is None
        assert category.monthly_budget == Decimal("150.00")

    def test_create_validates_parent_and_budget(self, category_service):
        with pytest.raises(NotFoundError):
            category_service.create_category(name="Child", parent_id=999)
        with pytest.raises(ValidationError):
            category_service.create_category(name="Bad", monthly_budget="-5")
        with pytest.raises(ValidationError):
            category_service.create_category(name="Bad", monthly_budget="lots")
        with pytest.raises(ValidationError):
            category_service.create_category(name="  ")

    def test_tree(self, category_service, sample_categories):
        tree = category_service.get_category_tree()
        names = {node.name: [child.name for child in node.children] for node in tree}

        assert names == {"Food & Dining": ["Groceries", "Restaurants"], "Transportation": []}

    def test_set_parent_to_self_fails(self, category_service, sample_categories):
        food = sample_categories["Food & Dining"]
        with pytest.raises(SelfParentError):
            category_service.update_category(food, parent_id=food)

    def test_set_parent_to_descendant_fails_without_partial_update(self, category_service, sample_categories):
        food = sample_categories["Food & Dining"]
        groceries = sample_categories["Groceries"]

        with pytest.raises(CircularDependencyError):
            category_service.update_category(food, name="Renamed", parent_id=groceries)

        category = category_service.get_category(food)
        assert category.name == "Food & Dining"
        assert category.parent_id is None

    def test_move_and_make_root(self, category_service, sample_categories):
        groceries = sample_categories["Groceries"]
        transport = sample_categories["Transportation"]

        moved = category_service.update_category(groceries, parent_id=transport)
        assert moved.parent_id == transport

        root = category_service.update_category(groceries, parent_id=None)
        assert root.parent_id is None

    def test_update_missing_category(self, category_service):
        with pytest.raises(NotFoundError):
            category_service.update_category(999, name="x")

    def test_update_budget(self, category_service, sample_categories):
        groceries = sample_categories["Groceries"]
        assert category_service.update_budget(groceries, "400").monthly_budget == Decimal("400")
        assert category_service.update_budget(groceries, None).monthly_budget is None

    def test_delete_blocked_by_children(self, category_service, sample_categories):
        with pytest.raises(DependencyError, match="subcategor"):
            category_service.delete_category(sample_categories["Food & Dining"])

    def test_delete_uncategorizes_transactions_and_drops_rules(
        self, category_service, classification_service, sample_categories, make_transaction, temp_db
    ):
        groceries = sample_categories["Groceries"]
        txn = make_transaction(-12, category_id=groceries)
        rule = classification_service.create_rule(RuleKind.CATEGORY, "description", "contains", "x", groceries)

        category_service.delete_category(groceries)

        assert category_service.get_category(groceries) is None
        assert temp_db.get_transaction(txn.id).category_id is None
        assert classification_service.get_rule(RuleKind.CATEGORY, rule.id) is None

    def test_format_category_path(self, category_service, sample_categories):
        assert category_service.format_category_path(sample_categories["Groceries"]) == "Food & Dining > Groceries"
        assert category_service.format_category_path(999) == ""

    def test_dropdown_options(self, category_service, sample_categories):
        options = category_service.dropdown_options()
        assert options == [
            (sample_categories["Food & Dining"], "Food & Dining"),
            (sample_categories["Groceries"], "  Groceries"),
            (sample_categories["Restaurants"], "  Restaurants"),
            (sample_categories["Transportation"], "Transportation"),
        ]
