"""Database factory functions for creating database instances."""

import logging
import os
from pathlib import Path
from typing import Optional

from spendtrack.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

DB_PATH_ENV = "SPENDTRACK_DB_PATH"
DEFAULT_DB_DIR = ".spendtrack"
DEFAULT_DB_NAME = "spendtrack.db"
MEMORY_PATH = ":memory:"


def resolve_database_path(database_path: Optional[str] = None) -> str:
    """Work out which SQLite file to open.

    Order: explicit argument, then the SPENDTRACK_DB_PATH environment variable,
    then ``~/.spendtrack/spendtrack.db``. ``~`` is expanded and the parent
    directory is created. ``:memory:`` is passed through untouched.
    """
    path = database_path or os.environ.get(DB_PATH_ENV)
    if path == MEMORY_PATH:
        return path

    resolved = Path(path).expanduser() if path else Path.home() / DEFAULT_DB_DIR / DEFAULT_DB_NAME
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file (see resolve_database_path)

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    path = resolve_database_path(database_path)
    logger.debug("Using SQLite database at %s", path)
    return SQLAlchemyDatabase(f"sqlite:///{path}")
