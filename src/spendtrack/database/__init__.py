"""Database layer for spendtrack application."""

# database.base imports domain.entities, and the domain services import
# database.base, so the domain package must finish loading first.
import spendtrack.domain  # noqa: F401

from spendtrack.database.base import Database
from spendtrack.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
