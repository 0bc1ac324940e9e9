"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from spendtrack.domain.entities import (
    Source,
    Unit,
    Category,
    Transaction,
    ClassificationRule,
    ImportLog,
    RuleKind,
)


class Database(ABC):
    """Abstract database interface for spendtrack."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Source operations
    @abstractmethod
    def create_source(self, name: str, type: str) -> int:
        """Create a new source. Returns source ID."""
        pass

    @abstractmethod
    def get_source(self, source_id: int) -> Optional[Source]:
        """Get source by ID."""
        pass

    @abstractmethod
    def list_sources(self) -> list[Source]:
        """List all sources."""
        pass

    @abstractmethod
    def update_source(self, source_id: int, name: Optional[str] = None, type: Optional[str] = None) -> None:
        """Update source fields."""
        pass

    @abstractmethod
    def delete_source(self, source_id: int) -> None:
        """Delete a source."""
        pass

    @abstractmethod
    def get_source_transaction_count(self, source_id: int) -> int:
        """Count transactions belonging to a source."""
        pass

    # Unit operations
    @abstractmethod
    def create_unit(
        self,
        name: str,
        color: str,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        active: bool = True,
    ) -> int:
        """Create a unit. Returns unit ID."""
        pass

    @abstractmethod
    def get_unit(self, unit_id: int) -> Optional[Unit]:
        """Get unit by ID."""
        pass

    @abstractmethod
    def list_units(self, active_only: bool = False) -> list[Unit]:
        """List units, optionally only active ones."""
        pass

    @abstractmethod
    def update_unit(self, unit_id: int, **fields: Any) -> Unit:
        """Apply a partial update to a unit."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self,
        name: str,
        color: str,
        parent_id: Optional[int] = None,
        icon: Optional[str] = None,
        monthly_budget: Optional[Decimal] = None,
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_categories_flat(self) -> list[Category]:
        """Get every category as a flat list ordered by name."""
        pass

    @abstractmethod
    def update_category(self, category_id: int, **patch: Any) -> Category:
        """Apply a partial update to a category.

        Only the keys present in ``patch`` are written, so ``parent_id=None``
        or ``monthly_budget=None`` clear the field.
        """
        pass

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        """Delete a category."""
        pass

    @abstractmethod
    def count_child_categories(self, category_id: int) -> int:
        """Count direct subcategories of a category."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        source_id: int,
        date: date,
        description: str,
        amount: Decimal,
        unit_id: Optional[int] = None,
        category_id: Optional[int] = None,
        source_category: Optional[str] = None,
        fingerprint: Optional[str] = None,
        ignore: bool = False,
        notes: Optional[str] = None,
        tags: tuple[str, ...] = (),
    ) -> Transaction:
        """Create a transaction. Raises PersistenceError on constraint violation."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def get_transaction_by_fingerprint(self, fingerprint: str) -> Optional[Transaction]:
        """Get the first transaction carrying the given fingerprint."""
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: int, **fields: Any) -> Transaction:
        """Apply a partial update to a transaction."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        source_id: Optional[int] = None,
        unit_id: Optional[int] = None,
        category_id: Optional[int] = None,
        uncategorized: bool = False,
        include_ignored: bool = True,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None,
        sort_by: str = "date",
        sort_order: str = "desc",
    ) -> tuple[list[Transaction], int]:
        """List transactions with filters, pagination and sorting.

        Returns:
            Tuple of (rows for the requested page, total matching rows)
        """
        pass

    # Classification rule operations
    @abstractmethod
    def create_rule(
        self,
        kind: RuleKind,
        rule_type: str,
        match_type: str,
        pattern: str,
        target_id: int,
        priority: int,
        active: bool = True,
    ) -> ClassificationRule:
        """Create a unit or category rule."""
        pass

    @abstractmethod
    def get_rule(self, kind: RuleKind, rule_id: int) -> Optional[ClassificationRule]:
        """Get rule by ID."""
        pass

    @abstractmethod
    def list_rules(self, kind: RuleKind) -> list[ClassificationRule]:
        """List all rules of a kind, highest priority first."""
        pass

    @abstractmethod
    def get_active_rules(self, kind: RuleKind) -> list[ClassificationRule]:
        """List active rules of a kind, highest priority first."""
        pass

    @abstractmethod
    def update_rule(self, kind: RuleKind, rule_id: int, **fields: Any) -> ClassificationRule:
        """Apply a partial update to a rule."""
        pass

    @abstractmethod
    def delete_rule(self, kind: RuleKind, rule_id: int) -> None:
        """Delete a rule."""
        pass

    # Import log operations
    @abstractmethod
    def create_import_log(
        self,
        source_id: int,
        status: str,
        transactions_added: int = 0,
        transactions_skipped: int = 0,
        file_name: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> ImportLog:
        """Record the outcome of an import."""
        pass

    @abstractmethod
    def list_import_logs(self, source_id: Optional[int] = None) -> list[ImportLog]:
        """List import log entries, newest first."""
        pass
