"""Source domain service."""

from typing import Optional

from spendtrack.database.base import Database
from spendtrack.domain.entities import Source, SourceType
from spendtrack.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    source_delete_blocked,
    source_not_found,
)


def _validate_type(type: str) -> str:
    try:
        return SourceType(type).value
    except ValueError:
        valid = ", ".join(t.value for t in SourceType)
        raise ValidationError(f"Invalid source type '{type}'. Must be one of: {valid}")


class SourceService:
    """Service for managing sources."""

    def __init__(self, db: Database):
        """Initialize source service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_name_free(self, name: str, exclude_id: Optional[int] = None) -> None:
        for src in self.db.list_sources():
            if src.id != exclude_id and src.name == name:
                raise ConflictError(f"Source with name '{name}' already exists")

    def create_source(self, name: str, type: str = SourceType.BANK.value) -> int:
        """Create a new source.

        Args:
            name: Source name
            type: bank, credit_card or manual

        Returns:
            Source ID

        Raises:
            ValidationError: If the name is empty or the type is unknown
            ConflictError: If source name already exists
        """
        if not name or not name.strip():
            raise ValidationError("Source name must not be empty")
        name = name.strip()
        type = _validate_type(type)
        self._check_name_free(name)
        return self.db.create_source(name=name, type=type)

    def get_source(self, source_id: int) -> Optional[Source]:
        """Get source by ID.

        Args:
            source_id: Source ID

        Returns:
            Source entity or None if not found
        """
        return self.db.get_source(source_id)

    def list_sources(self) -> list[Source]:
        """List all sources."""
        return self.db.list_sources()

    def rename_source(self, source_id: int, name: str, type: Optional[str] = None) -> None:
        """Rename a source.

        Args:
            source_id: Source ID to rename
            name: New source name
            type: Optional new type (if None, type is not updated)

        Raises:
            NotFoundError: If source not found
            ConflictError: If name already exists
        """
        if self.db.get_source(source_id) is None:
            raise NotFoundError(source_not_found(source_id))
        if not name or not name.strip():
            raise ValidationError("Source name must not be empty")
        name = name.strip()
        if type is not None:
            type = _validate_type(type)

        self._check_name_free(name, exclude_id=source_id)
        self.db.update_source(source_id, name=name, type=type)

    def delete_source(self, source_id: int) -> None:
        """Delete a source.

        Raises:
            NotFoundError: If source not found
            DependencyError: If the source still has transactions
        """
        if self.db.get_source(source_id) is None:
            raise NotFoundError(source_not_found(source_id))

        transaction_count = self.db.get_source_transaction_count(source_id)
        if transaction_count > 0:
            raise DependencyError(source_delete_blocked(source_id, transaction_count))

        self.db.delete_source(source_id)
