"""Category domain service and hierarchy helpers."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from spendtrack.database.base import Database
from spendtrack.domain.entities import Category, CategoryNode
from spendtrack.domain.errors import (
    CircularDependencyError,
    DependencyError,
    NotFoundError,
    SelfParentError,
    ValidationError,
    category_circular_dependency,
    category_delete_blocked,
    category_not_found,
    category_self_parent,
)

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#6b7280"


def build_hierarchy(categories: Iterable[Category]) -> list[CategoryNode]:
    """Build a forest from a flat category list.

    Children keep the order of the input list. A category whose parent is not
    in the list is treated as a root.
    """
    categories = list(categories)
    nodes = {cat.id: CategoryNode(category=cat) for cat in categories}
    roots: list[CategoryNode] = []
    for cat in categories:
        node = nodes[cat.id]
        parent = nodes.get(cat.parent_id) if cat.parent_id is not None else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


def parent_map(categories: Iterable[Category]) -> dict[int, Optional[int]]:
    """Map each category ID to its parent ID."""
    return {cat.id: cat.parent_id for cat in categories}


def would_create_cycle(
    category_id: int,
    proposed_parent_id: int,
    parents: Mapping[int, Optional[int]],
) -> bool:
    """Check whether making proposed_parent_id the parent of category_id loops.

    Walks the ancestor chain upward from the proposed parent. Returns True if
    the walk reaches category_id or revisits any category before running out
    of parents.

    Args:
        category_id: Category being re-parented
        proposed_parent_id: New parent
        parents: Category ID to current parent ID
    """
    visited: set[int] = set()
    current: Optional[int] = proposed_parent_id
    while current is not None:
        if current == category_id or current in visited:
            return True
        visited.add(current)
        current = parents.get(current)
    return False


def ancestor_ids(category_id: int, parents: Mapping[int, Optional[int]]) -> list[int]:
    """Return ancestors of a category, nearest first, stopping at any loop."""
    result: list[int] = []
    visited = {category_id}
    current = parents.get(category_id)
    while current is not None and current not in visited:
        result.append(current)
        visited.add(current)
        current = parents.get(current)
    return result


def _parse_budget(monthly_budget: Any) -> Optional[Decimal]:
    if monthly_budget is None:
        return None
    try:
        budget = Decimal(str(monthly_budget))
    except InvalidOperation:
        raise ValidationError(f"Invalid monthly budget '{monthly_budget}'")
    if not budget.is_finite() or budget < 0:
        raise ValidationError("Monthly budget must be zero or greater")
    return budget


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(
        self,
        name: str,
        color: str = DEFAULT_COLOR,
        parent_id: Optional[int] = None,
        icon: Optional[str] = None,
        monthly_budget: Any = None,
    ) -> int:
        """Create a category.

        Args:
            name: Category name
            color: Display color
            parent_id: Optional parent category ID
            icon: Optional icon name
            monthly_budget: Optional monthly budget

        Returns:
            Category ID

        Raises:
            ValidationError: If the name is empty or the budget is invalid
            NotFoundError: If the parent category doesn't exist
        """
        if not name or not name.strip():
            raise ValidationError("Category name must not be empty")
        if parent_id is not None and self.db.get_category(parent_id) is None:
            raise NotFoundError(category_not_found(parent_id))

        return self.db.create_category(
            name=name.strip(),
            color=color,
            parent_id=parent_id,
            icon=icon,
            monthly_budget=_parse_budget(monthly_budget),
        )

    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        return self.db.get_category(category_id)

    def list_categories(self) -> list[Category]:
        """List all categories as a flat list."""
        return self.db.get_categories_flat()

    def get_category_tree(self) -> list[CategoryNode]:
        """Get full category tree.

        Returns:
            List of root nodes with nested children
        """
        return build_hierarchy(self.db.get_categories_flat())

    def update_category(self, category_id: int, **patch: Any) -> Category:
        """Update category fields.

        The update is all-or-nothing: every check runs before anything is
        written.

        Args:
            category_id: Category ID to update
            **patch: Any of name, color, icon, parent_id, monthly_budget.
                Passing parent_id=None makes the category a root.

        Returns:
            Updated category

        Raises:
            NotFoundError: If the category or the new parent doesn't exist
            SelfParentError: If parent_id equals category_id
            CircularDependencyError: If the new parent is a descendant
            ValidationError: If the name or budget is invalid
        """
        if self.db.get_category(category_id) is None:
            raise NotFoundError(category_not_found(category_id))

        if "parent_id" in patch and patch["parent_id"] is not None:
            parent_id = patch["parent_id"]
            if parent_id == category_id:
                raise SelfParentError(category_self_parent(category_id))
            if self.db.get_category(parent_id) is None:
                raise NotFoundError(category_not_found(parent_id))
            parents = parent_map(self.db.get_categories_flat())
            if would_create_cycle(category_id, parent_id, parents):
                raise CircularDependencyError(
                    category_circular_dependency(category_id, parent_id)
                )

        if "name" in patch:
            if not patch["name"] or not patch["name"].strip():
                raise ValidationError("Category name must not be empty")
            patch["name"] = patch["name"].strip()
        if "monthly_budget" in patch:
            patch["monthly_budget"] = _parse_budget(patch["monthly_budget"])

        updated = self.db.update_category(category_id, **patch)
        logger.debug("Updated category %s: %s", category_id, sorted(patch))
        return updated

    def update_budget(self, category_id: int, monthly_budget: Any) -> Category:
        """Set or clear (None) a category's monthly budget."""
        return self.update_category(category_id, monthly_budget=monthly_budget)

    def delete_category(self, category_id: int) -> None:
        """Delete a category.

        Transactions in the category become uncategorized and rules targeting
        it are removed.

        Raises:
            NotFoundError: If the category doesn't exist
            DependencyError: If the category has subcategories
        """
        if self.db.get_category(category_id) is None:
            raise NotFoundError(category_not_found(category_id))

        child_count = self.db.count_child_categories(category_id)
        if child_count > 0:
            raise DependencyError(category_delete_blocked(category_id, child_count))

        self.db.delete_category(category_id)
        logger.info("Deleted category %s", category_id)

    def format_category_path(self, category_id: int) -> str:
        """Get full path for a category.

        Args:
            category_id: Category ID

        Returns:
            Full category path (e.g., "Food & Dining > Groceries")
        """
        categories = {cat.id: cat for cat in self.db.get_categories_flat()}
        cat = categories.get(category_id)
        if cat is None:
            return ""

        parents = parent_map(categories.values())
        path_parts = [cat.name]
        for parent_id in ancestor_ids(category_id, parents):
            parent = categories.get(parent_id)
            if parent is None:
                break
            path_parts.append(parent.name)

        return " > ".join(reversed(path_parts))

    def dropdown_options(self) -> list[tuple[int, str]]:
        """Flatten the tree into (id, indented label) pairs for pickers."""
        options: list[tuple[int, str]] = []

        def visit(nodes: list[CategoryNode], level: int) -> None:
            for node in nodes:
                options.append((node.id, f"{'  ' * level}{node.name}"))
                visit(node.children, level + 1)

        visit(self.get_category_tree(), 0)
        return options
