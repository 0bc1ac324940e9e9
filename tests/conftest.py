"""Shared pytest fixtures for spendtrack tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from spendtrack.database.factories import create_sqlite_database
from spendtrack.domain.batch_import import BatchImportService
from spendtrack.domain.category import CategoryService
from spendtrack.domain.classification import ClassificationService
from spendtrack.domain.csv_import import CSVImportService
from spendtrack.domain.source import SourceService
from spendtrack.domain.spending import SpendingService
from spendtrack.domain.transaction import TransactionService
from spendtrack.domain.unit import UnitService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def source_service(temp_db):
    return SourceService(temp_db)


@pytest.fixture
def unit_service(temp_db):
    return UnitService(temp_db)


@pytest.fixture
def category_service(temp_db):
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    return TransactionService(temp_db)


@pytest.fixture
def classification_service(temp_db):
    return ClassificationService(temp_db)


@pytest.fixture
def batch_service(temp_db):
    return BatchImportService(temp_db)


@pytest.fixture
def csv_import_service(temp_db):
    return CSVImportService(temp_db)


@pytest.fixture
def spending_service(temp_db):
    return SpendingService(temp_db)


@pytest.fixture
def sample_source(source_service):
    """Create a sample source for testing."""
    source_id = source_service.create_source(name="Test Bank", type="bank")
    return source_service.get_source(source_id)


@pytest.fixture
def sample_units(unit_service):
    """Create personal and business units."""
    return {
        "Personal": unit_service.create_unit(name="Personal"),
        "Business": unit_service.create_unit(name="Business"),
    }


@pytest.fixture
def sample_categories(category_service):
    """Create a small category tree and return name -> ID.

    Food & Dining (budget 600)
      Groceries
      Restaurants
    Transportation
    """
    food = category_service.create_category(name="Food & Dining", monthly_budget="600")
    return {
        "Food & Dining": food,
        "Groceries": category_service.create_category(name="Groceries", parent_id=food),
        "Restaurants": category_service.create_category(name="Restaurants", parent_id=food),
        "Transportation": category_service.create_category(name="Transportation"),
    }


@pytest.fixture
def make_transaction(temp_db, sample_source):
    """Factory creating transactions directly through the database."""

    def _make(amount, description="Test", txn_date=date(2024, 3, 10), **fields):
        return temp_db.create_transaction(
            source_id=fields.pop("source_id", sample_source.id),
            date=txn_date,
            description=description,
            amount=Decimal(str(amount)),
            **fields,
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
