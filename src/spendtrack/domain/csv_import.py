"""CSV import pipeline.

The pipeline is a chain of stage functions over a serializable
ImportPipelineState: load the rows, map the columns, build a preview, then
commit. State can be saved between stages with to_dict/from_dict.
"""

import csv
import io
import logging
from dataclasses import asdict, dataclass, field, replace
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional

from spendtrack.database.base import Database
from spendtrack.domain.batch_import import BatchImportService
from spendtrack.domain.column_mapper import (
    ColumnMapping,
    detect_columns,
    merge_mapping,
    should_auto_detect,
)
from spendtrack.domain.errors import NotFoundError, ValidationError, source_not_found
from spendtrack.domain.fingerprint import fingerprint
from spendtrack.utils.amount_parser import parse_amount
from spendtrack.utils.date_parser import parse_date

logger = logging.getLogger(__name__)

SNIFF_SAMPLE_SIZE = 4096
# Data rows are numbered as in a spreadsheet; the header is row 1.
FIRST_DATA_ROW = 2

STATUS_SUCCESS = "success"
STATUS_PARTIAL = "partial"
STATUS_FAILED = "failed"


@dataclass
class PreviewRow:
    """One parsed CSV row as it would be imported."""

    row_number: int
    date: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[str] = None
    source_category: Optional[str] = None
    fingerprint: Optional[str] = None
    duplicate_in_batch: bool = False
    exists: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PreviewRow":
        return cls(**data)


@dataclass
class ImportPipelineState:
    """Everything the import pipeline knows about one file."""

    source_id: int
    headers: list[str]
    rows: list[list[str]]
    file_name: Optional[str] = None
    mapping: Optional[ColumnMapping] = None
    preview: list[PreviewRow] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "headers": list(self.headers),
            "rows": [list(row) for row in self.rows],
            "file_name": self.file_name,
            "mapping": self.mapping.to_dict() if self.mapping else None,
            "preview": [row.to_dict() for row in self.preview],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImportPipelineState":
        mapping = data.get("mapping")
        return cls(
            source_id=data["source_id"],
            headers=list(data["headers"]),
            rows=[list(row) for row in data["rows"]],
            file_name=data.get("file_name"),
            mapping=ColumnMapping.from_dict(mapping) if mapping else None,
            preview=[PreviewRow.from_dict(row) for row in data.get("preview", [])],
        )

    @property
    def valid_rows(self) -> list[PreviewRow]:
        return [row for row in self.preview if row.error is None]

    @property
    def error_rows(self) -> list[PreviewRow]:
        return [row for row in self.preview if row.error is not None]


def load_rows(content: str, source_id: int, file_name: Optional[str] = None) -> ImportPipelineState:
    """Split CSV text into a header and data rows.

    The delimiter is sniffed from the start of the content, falling back to a
    comma. Blank lines are dropped.

    Raises:
        ValidationError: If the content has no header row
    """
    content = content.lstrip("\ufeff")
    try:
        delimiter = csv.Sniffer().sniff(content[:SNIFF_SAMPLE_SIZE], delimiters=",;\t|").delimiter
    except csv.Error:
        delimiter = ","

    reader = csv.reader(io.StringIO(content), delimiter=delimiter)
    all_rows = [row for row in reader if any(cell.strip() for cell in row)]
    if not all_rows:
        raise ValidationError("CSV file has no columns")

    headers = [cell.strip() for cell in all_rows[0]]
    logger.debug("Loaded %d rows with delimiter %r", len(all_rows) - 1, delimiter)
    return ImportPipelineState(
        source_id=source_id,
        headers=headers,
        rows=all_rows[1:],
        file_name=file_name,
    )


def apply_mapping(
    state: ImportPipelineState, overrides: Optional[dict[str, Optional[int]]] = None
) -> ImportPipelineState:
    """Detect columns if nothing is mapped yet, then apply user overrides.

    Any previous preview is discarded.

    Raises:
        ValidationError: If an override names an unknown field or column
    """
    mapping = state.mapping
    if should_auto_detect(mapping):
        mapping = detect_columns(state.headers)

    try:
        mapping = merge_mapping(mapping, overrides)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    for name, index in mapping.to_dict().items():
        if index is not None and not 0 <= index < len(state.headers):
            raise ValidationError(f"Column {index} for '{name}' is out of range")

    return replace(state, mapping=mapping, preview=[])


def _cell(row: list[str], index: Optional[int]) -> Optional[str]:
    if index is None or index >= len(row):
        return None
    value = row[index].strip()
    return value or None


def build_preview(state: ImportPipelineState) -> ImportPipelineState:
    """Parse every row with the current mapping.

    Rows that fail to parse carry an error message. Rows repeating an earlier
    row's fingerprint are flagged as duplicates within the batch. The
    database is not consulted.

    Raises:
        ValidationError: If a required field is unmapped
    """
    if state.mapping is None:
        raise ValidationError("Columns have not been mapped")
    missing = state.mapping.missing_required()
    if missing:
        raise ValidationError(f"Missing required column mappings: {', '.join(missing)}")

    mapping = state.mapping
    seen: set[str] = set()
    preview = []
    for row_number, row in enumerate(state.rows, start=FIRST_DATA_ROW):
        item = PreviewRow(
            row_number=row_number,
            description=_cell(row, mapping.description),
            source_category=_cell(row, mapping.source_category),
        )
        date_str = _cell(row, mapping.date)
        amount_str = _cell(row, mapping.amount)
        try:
            if not date_str:
                raise ValueError("Missing date")
            if not item.description:
                raise ValueError("Missing description")
            if not amount_str:
                raise ValueError("Missing amount")
            txn_date = parse_date(date_str)
            amount = parse_amount(amount_str)
        except ValueError as e:
            item.error = f"Row {row_number}: {e}"
            preview.append(item)
            continue

        item.date = txn_date.isoformat()
        item.amount = str(amount)
        item.fingerprint = fingerprint(state.source_id, txn_date, item.description, amount)
        if item.fingerprint in seen:
            item.duplicate_in_batch = True
        seen.add(item.fingerprint)
        preview.append(item)

    return replace(state, preview=preview)


class CSVImportService:
    """Service for importing CSV files."""

    def __init__(self, db: Database):
        """Initialize CSV import service.

        Args:
            db: Database instance
        """
        self.db = db
        self.batch_service = BatchImportService(db)

    def mark_existing(self, state: ImportPipelineState) -> ImportPipelineState:
        """Flag preview rows whose fingerprint is already stored."""
        existing = set(self.batch_service.check_duplicates(row.fingerprint for row in state.valid_rows))
        preview = [replace(row, exists=row.fingerprint in existing) for row in state.preview]
        return replace(state, preview=preview)

    def commit(
        self, state: ImportPipelineState, allow_duplicates: Iterable[int] = ()
    ) -> dict[str, Any]:
        """Import the previewed rows and record an import log entry.

        Args:
            state: Pipeline state with a built preview
            allow_duplicates: Row numbers to import even if already stored

        Returns:
            Dict with import statistics:
            - imported: number of transactions imported
            - skipped: number of transactions skipped (duplicates)
            - errors: list of error messages
            - status: success, partial or failed
            - import_log_id: ID of the import log entry
            - state: the state with stored duplicates flagged

        Raises:
            NotFoundError: If the source doesn't exist
            ValidationError: If the preview has not been built
        """
        if self.db.get_source(state.source_id) is None:
            raise NotFoundError(source_not_found(state.source_id))
        if not state.preview and state.rows:
            raise ValidationError("Preview has not been built")

        state = self.mark_existing(state)
        allowed = set(allow_duplicates)
        valid_rows = state.valid_rows
        records = [
            {
                "source_id": state.source_id,
                "date": row.date,
                "description": row.description,
                "amount": Decimal(row.amount),
                "source_category": row.source_category,
                "fingerprint": row.fingerprint,
                "allow_duplicate": row.row_number in allowed,
            }
            for row in valid_rows
        ]
        result = self.batch_service.import_batch(records)

        errors = [row.error for row in state.error_rows]
        errors.extend(
            f"Row {valid_rows[error.index].row_number}: {error.message}" for error in result.errors
        )

        if errors and result.imported == 0:
            status = STATUS_FAILED
        elif errors:
            status = STATUS_PARTIAL
        else:
            status = STATUS_SUCCESS

        import_log = self.db.create_import_log(
            source_id=state.source_id,
            status=status,
            transactions_added=result.imported,
            transactions_skipped=result.skipped,
            file_name=state.file_name,
            error_message="; ".join(errors[:10]) if errors else None,
        )
        logger.info(
            "Imported %s: %d added, %d skipped, %d errors (%s)",
            state.file_name or "CSV data",
            result.imported,
            result.skipped,
            len(errors),
            status,
        )
        return {
            "imported": result.imported,
            "skipped": result.skipped,
            "errors": errors,
            "status": status,
            "import_log_id": import_log.id,
            "state": state,
        }

    def import_csv(
        self,
        csv_file_path: str,
        source_id: int,
        mapping_overrides: Optional[dict[str, Optional[int]]] = None,
    ) -> dict[str, Any]:
        """Import transactions from a CSV file.

        Args:
            csv_file_path: Path to CSV file
            source_id: Source the transactions belong to
            mapping_overrides: Field name to column index corrections

        Returns:
            Dict with import statistics, as returned by commit

        Raises:
            NotFoundError: If the source doesn't exist
            ValidationError: If the file cannot be mapped
            FileNotFoundError: If CSV file doesn't exist
        """
        if self.db.get_source(source_id) is None:
            raise NotFoundError(source_not_found(source_id))

        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        content = csv_path.read_text(encoding="utf-8-sig")
        state = load_rows(content, source_id, file_name=csv_path.name)
        state = apply_mapping(state, mapping_overrides)
        state = build_preview(state)
        return self.commit(state)
