"""Unit domain service."""

from typing import Any, Optional

from spendtrack.database.base import Database
from spendtrack.domain.entities import Unit
from spendtrack.domain.errors import ConflictError, NotFoundError, ValidationError, unit_not_found

DEFAULT_COLOR = "#3b82f6"


class UnitService:
    """Service for managing units."""

    def __init__(self, db: Database):
        self.db = db

    def _check_name_free(self, name: str, exclude_id: Optional[int] = None) -> None:
        for unit in self.db.list_units():
            if unit.id != exclude_id and unit.name.lower() == name.lower():
                raise ConflictError(f"Unit with name '{name}' already exists")

    def create_unit(
        self,
        name: str,
        color: str = DEFAULT_COLOR,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        active: bool = True,
    ) -> int:
        """Create a unit.

        Returns:
            Unit ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a unit with the same name exists
        """
        if not name or not name.strip():
            raise ValidationError("Unit name must not be empty")
        name = name.strip()
        self._check_name_free(name)
        return self.db.create_unit(
            name=name, color=color, description=description, icon=icon, active=active
        )

    def get_unit(self, unit_id: int) -> Optional[Unit]:
        return self.db.get_unit(unit_id)

    def list_units(self, active_only: bool = False) -> list[Unit]:
        return self.db.list_units(active_only=active_only)

    def update_unit(self, unit_id: int, **fields: Any) -> Unit:
        """Update unit fields (name, color, description, icon, active).

        Raises:
            NotFoundError: If the unit doesn't exist
            ConflictError: If the new name is taken
        """
        if self.db.get_unit(unit_id) is None:
            raise NotFoundError(unit_not_found(unit_id))
        if "name" in fields:
            if not fields["name"] or not fields["name"].strip():
                raise ValidationError("Unit name must not be empty")
            fields["name"] = fields["name"].strip()
            self._check_name_free(fields["name"], exclude_id=unit_id)
        return self.db.update_unit(unit_id, **fields)

    def toggle_unit(self, unit_id: int) -> Unit:
        """Flip a unit between active and inactive."""
        unit = self.db.get_unit(unit_id)
        if unit is None:
            raise NotFoundError(unit_not_found(unit_id))
        return self.db.update_unit(unit_id, active=not unit.active)
