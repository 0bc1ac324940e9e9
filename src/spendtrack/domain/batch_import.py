"""Batch import of normalized transaction records.

Each record is normalized, checked against existing fingerprints and
persisted on its own. A record that fails validation or cannot be written
is reported and the batch moves on. A store failure outside a write aborts
the batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from spendtrack.database.base import Database
from spendtrack.domain.classification import ClassificationService, TransactionView
from spendtrack.domain.dedup import DedupDecision, decide
from spendtrack.domain.errors import DomainError, InvalidEnvelopeError, ValidationError
from spendtrack.domain.fingerprint import fingerprint as compute_fingerprint
from spendtrack.utils.amount_parser import parse_amount
from spendtrack.utils.date_parser import parse_date
from spendtrack.utils.tags import parse_tags

logger = logging.getLogger(__name__)

# Alternate spellings accepted on input, mapped to the canonical key.
KEY_ALIASES = {
    "sourceId": "source_id",
    "unitId": "unit_id",
    "categoryId": "category_id",
    "sourceCategory": "source_category",
    "hash": "fingerprint",
    "allowDuplicate": "allow_duplicate",
    "isIgnored": "ignore",
    "is_ignored": "ignore",
}

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class RecordError:
    """A record that could not be imported."""

    index: int
    record: Any
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "record": self.record, "message": self.message}


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    errors: list[RecordError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.imported + self.skipped + len(self.errors)


def _parse_record_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        raise ValidationError("Missing date")
    try:
        return parse_date(str(value))
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _parse_record_amount(value: Any) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Missing amount")
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount '{value}'")
    if isinstance(value, (int, float, Decimal)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation as e:
            raise ValidationError(f"Invalid amount '{value}'") from e
        if not amount.is_finite():
            raise ValidationError(f"Invalid amount '{value}'")
        return amount
    try:
        return parse_amount(str(value))
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _optional_id(record: dict, key: str) -> Optional[int]:
    value = record.get(key)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {key} '{value}'") from e


TRUE_STRINGS = {"true", "yes", "1"}
FALSE_STRINGS = {"false", "no", "0", ""}


def _parse_flag(record: dict, key: str) -> bool:
    value = record.get(key)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise ValidationError(f"Invalid {key} '{value}'")


def normalize_payload(record: dict) -> dict[str, Any]:
    """Normalize one incoming record into keyword arguments for persistence.

    Accepts camelCase or snake_case keys. The date becomes a ``YYYY-MM-DD``
    string, the amount a Decimal, and a fingerprint is computed when none was
    supplied and source, date, description and amount are all known.

    Args:
        record: Raw record mapping

    Returns:
        Dict with source_id, date, description, amount, unit_id, category_id,
        source_category, fingerprint, allow_duplicate, ignore, notes, tags

    Raises:
        ValidationError: If the date, description or amount is missing or malformed,
            or a flag is not a boolean
    """
    if not isinstance(record, dict):
        raise ValidationError("Record must be an object")

    data = {KEY_ALIASES.get(key, key): value for key, value in record.items()}

    description = data.get("description")
    if description is None or not str(description).strip():
        raise ValidationError("Missing description")
    description = str(description).strip()

    txn_date = _parse_record_date(data.get("date")).isoformat()
    amount = _parse_record_amount(data.get("amount"))
    source_id = _optional_id(data, "source_id")

    fp = data.get("fingerprint") or None
    if fp is None and source_id is not None:
        fp = compute_fingerprint(source_id, txn_date, description, amount)

    source_category = data.get("source_category")
    return {
        "source_id": source_id,
        "date": txn_date,
        "description": description,
        "amount": amount,
        "unit_id": _optional_id(data, "unit_id"),
        "category_id": _optional_id(data, "category_id"),
        "source_category": str(source_category).strip() if source_category else None,
        "fingerprint": fp,
        "allow_duplicate": _parse_flag(data, "allow_duplicate"),
        "ignore": _parse_flag(data, "ignore"),
        "notes": data.get("notes") or None,
        "tags": parse_tags(data.get("tags")),
    }


class BatchImportService:
    """Service for importing batches of transaction records."""

    def __init__(self, db: Database, classify: bool = True):
        """Initialize batch import service.

        Args:
            db: Database instance
            classify: Fill missing unit/category from the active rules
        """
        self.db = db
        self.classify = classify
        self.classification_service = ClassificationService(db)

    def _import_record(self, record: Any) -> DedupDecision:
        payload = normalize_payload(record)

        decision = decide(
            payload["fingerprint"],
            payload["allow_duplicate"],
            self.db.get_transaction_by_fingerprint,
        )
        if decision == DedupDecision.SKIP:
            logger.debug("Skipping duplicate transaction %s", payload["fingerprint"])
            return decision

        unit_id = payload["unit_id"]
        category_id = payload["category_id"]
        if self.classify and (unit_id is None or category_id is None):
            result = self.classification_service.classify(
                TransactionView(
                    description=payload["description"],
                    source_id=payload["source_id"],
                    source_category=payload["source_category"],
                )
            )
            if result.error:
                logger.warning("Importing without classification: %s", result.error)
            unit_id = unit_id if unit_id is not None else result.unit_id
            category_id = category_id if category_id is not None else result.category_id

        self.db.create_transaction(
            source_id=payload["source_id"],
            date=date.fromisoformat(payload["date"]),
            description=payload["description"],
            amount=payload["amount"],
            unit_id=unit_id,
            category_id=category_id,
            source_category=payload["source_category"],
            fingerprint=payload["fingerprint"],
            ignore=payload["ignore"],
            notes=payload["notes"],
            tags=tuple(payload["tags"]),
        )
        return decision

    def import_batch(
        self,
        records: Any,
        progress: Optional[ProgressCallback] = None,
        progress_every: int = 25,
    ) -> ImportResult:
        """Import records one at a time, in order.

        Args:
            records: List of raw record mappings
            progress: Optional callback receiving (processed, total)
            progress_every: Report progress after this many records

        Returns:
            ImportResult with imported/skipped counts and per-record errors

        Raises:
            InvalidEnvelopeError: If records is not a list
            SQLAlchemyError: If the store fails outside a write (for example the
                fingerprint lookup); the batch stops
        """
        if not isinstance(records, list):
            raise InvalidEnvelopeError("Invalid transaction data: expected a list of records")

        result = ImportResult()
        total = len(records)
        for index, record in enumerate(records):
            try:
                if self._import_record(record) == DedupDecision.SKIP:
                    result.skipped += 1
                else:
                    result.imported += 1
            except SQLAlchemyError:
                logger.error("Store unavailable while importing record %d", index)
                raise
            except Exception as e:
                logger.warning("Record %d failed to import: %s", index, e)
                result.errors.append(RecordError(index=index, record=record, message=str(e)))

            processed = index + 1
            if progress is not None and (processed % progress_every == 0 or processed == total):
                progress(processed, total)

        logger.info(
            "Batch import complete: %d imported, %d skipped, %d errors",
            result.imported,
            result.skipped,
            len(result.errors),
        )
        return result

    def check_duplicates(self, fingerprints: Iterable[str]) -> list[str]:
        """Return the fingerprints that already exist, in input order."""
        return [
            fp
            for fp in fingerprints
            if fp and self.db.get_transaction_by_fingerprint(fp) is not None
        ]


def handle_import_request(service: BatchImportService, body: Any) -> tuple[int, dict[str, Any]]:
    """Run an import request and build the response.

    Args:
        service: Batch import service
        body: Request body, expected to be ``{"transactions": [...]}``

    Returns:
        Tuple of (status code, response dict). 400 for an invalid envelope,
        500 for a backend failure, otherwise 200 even if some records failed.
    """
    records = body.get("transactions") if isinstance(body, dict) else None
    try:
        result = service.import_batch(records)
    except InvalidEnvelopeError as e:
        return 400, {"success": False, "error": str(e)}
    except (SQLAlchemyError, DomainError) as e:
        logger.error("Import request failed: %s", e)
        return 500, {"success": False, "error": "Failed to import transactions", "details": str(e)}

    return 200, {
        "success": True,
        "imported": result.imported,
        "skipped": result.skipped,
        "total": len(records),
        "errors": [error.to_dict() for error in result.errors],
    }
