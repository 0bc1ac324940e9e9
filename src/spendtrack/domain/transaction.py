"""Transaction domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from spendtrack.database.base import Database
from spendtrack.domain.entities import Transaction, TransactionPage
from spendtrack.domain.errors import (
    NotFoundError,
    ValidationError,
    category_not_found,
    source_not_found,
    transaction_not_found,
    unit_not_found,
)
from spendtrack.domain.fingerprint import fingerprint
from spendtrack.utils.tags import merge_tags, normalize_tag, parse_tags

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require(self, transaction_id: int) -> Transaction:
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def create_transaction(
        self,
        source_id: int,
        date: date,
        description: str,
        amount: Decimal,
        unit_id: Optional[int] = None,
        category_id: Optional[int] = None,
        notes: Optional[str] = None,
        tags: Optional[str | Iterable[str]] = None,
    ) -> Transaction:
        """Create a manually entered transaction.

        The fingerprint is computed the same way as for imports, so a later
        import of the same transaction is recognised as a duplicate.

        Raises:
            NotFoundError: If the source, unit or category doesn't exist
            ValidationError: If the description is empty
        """
        if self.db.get_source(source_id) is None:
            raise NotFoundError(source_not_found(source_id))
        if unit_id is not None and self.db.get_unit(unit_id) is None:
            raise NotFoundError(unit_not_found(unit_id))
        if category_id is not None and self.db.get_category(category_id) is None:
            raise NotFoundError(category_not_found(category_id))
        if not description or not description.strip():
            raise ValidationError("Description must not be empty")

        description = description.strip()
        return self.db.create_transaction(
            source_id=source_id,
            date=date,
            description=description,
            amount=amount,
            unit_id=unit_id,
            category_id=category_id,
            fingerprint=fingerprint(source_id, date, description, amount),
            notes=notes,
            tags=tuple(parse_tags(tags)),
        )

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

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
        page_size: Optional[int] = DEFAULT_PAGE_SIZE,
        sort_by: str = "date",
        sort_order: str = "desc",
    ) -> TransactionPage:
        """List transactions with filters, pagination and sorting.

        Args:
            start_date: Optional start date filter
            end_date: Optional end date filter
            source_id: Optional source filter
            unit_id: Optional unit filter
            category_id: Optional category filter
            uncategorized: Only transactions without a category
            include_ignored: Include transactions marked as ignored
            search: Case-insensitive description substring
            tag: Only transactions carrying this tag
            page: 1-based page number
            page_size: Rows per page (None for all rows)
            sort_by: date, amount, description or id
            sort_order: asc or desc

        Returns:
            TransactionPage with the page rows and the total match count

        Raises:
            ValidationError: If paging or sorting arguments are invalid
        """
        if page < 1:
            raise ValidationError("Page must be at least 1")
        if page_size is not None and page_size < 1:
            raise ValidationError("Page size must be at least 1")
        if uncategorized and category_id is not None:
            raise ValidationError("Cannot filter by category and uncategorized at once")

        try:
            rows, total = self.db.list_transactions(
                start_date=start_date,
                end_date=end_date,
                source_id=source_id,
                unit_id=unit_id,
                category_id=category_id,
                uncategorized=uncategorized,
                include_ignored=include_ignored,
                search=search,
                tag=normalize_tag(tag) if tag else None,
                page=page,
                page_size=page_size,
                sort_by=sort_by,
                sort_order=sort_order,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return TransactionPage(rows=tuple(rows), total=total)

    def update_category(self, transaction_id: int, category_id: Optional[int]) -> Transaction:
        """Set or clear (None) a transaction's category.

        Raises:
            NotFoundError: If transaction or category doesn't exist
        """
        self._require(transaction_id)
        if category_id is not None and self.db.get_category(category_id) is None:
            raise NotFoundError(category_not_found(category_id))
        return self.db.update_transaction(transaction_id, category_id=category_id)

    def update_unit(self, transaction_id: int, unit_id: Optional[int]) -> Transaction:
        """Set or clear (None) a transaction's unit.

        Raises:
            NotFoundError: If transaction or unit doesn't exist
        """
        self._require(transaction_id)
        if unit_id is not None and self.db.get_unit(unit_id) is None:
            raise NotFoundError(unit_not_found(unit_id))
        return self.db.update_transaction(transaction_id, unit_id=unit_id)

    def update_notes(self, transaction_id: int, notes: Optional[str]) -> Transaction:
        """Update transaction notes.

        Raises:
            NotFoundError: If transaction doesn't exist
        """
        self._require(transaction_id)
        return self.db.update_transaction(transaction_id, notes=notes or None)

    def set_ignored(self, transaction_id: int, ignore: bool) -> Transaction:
        """Mark a transaction as ignored (excluded from reports) or not."""
        self._require(transaction_id)
        return self.db.update_transaction(transaction_id, ignore=ignore)

    def set_tags(self, transaction_id: int, tags: Optional[str | Iterable[str]]) -> Transaction:
        """Replace a transaction's tags."""
        self._require(transaction_id)
        return self.db.update_transaction(transaction_id, tags=tuple(parse_tags(tags)))

    def add_tags(self, transaction_id: int, tags: str | Iterable[str]) -> Transaction:
        """Add tags to a transaction, keeping the existing ones."""
        txn = self._require(transaction_id)
        merged = merge_tags(txn.tags, tags)
        logger.debug("Transaction %s tags: %s", transaction_id, merged)
        return self.db.update_transaction(transaction_id, tags=tuple(merged))
