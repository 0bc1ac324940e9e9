"""Domain layer for spendtrack application."""

from spendtrack.domain.batch_import import BatchImportService
from spendtrack.domain.category import CategoryService
from spendtrack.domain.classification import ClassificationService
from spendtrack.domain.csv_import import CSVImportService
from spendtrack.domain.source import SourceService
from spendtrack.domain.spending import SpendingService
from spendtrack.domain.transaction import TransactionService
from spendtrack.domain.unit import UnitService

__all__ = [
    "BatchImportService",
    "CategoryService",
    "ClassificationService",
    "CSVImportService",
    "SourceService",
    "SpendingService",
    "TransactionService",
    "UnitService",
]
