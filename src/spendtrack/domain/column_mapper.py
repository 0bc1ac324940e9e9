"""Column mapping heuristics for bank export headers.

Bank exports name the same logical field in many ways ("Date", "Posted Date",
"Transaction Date", ...). ``detect_columns`` makes a best-effort guess from the
header row alone; the result is a default the user may correct, never a
guarantee.
"""

from dataclasses import dataclass, fields, replace
from typing import Optional, Sequence

# Field order matters: earlier fields claim contested columns first.
HEADER_SYNONYMS: dict[str, tuple[str, ...]] = {
    "date": (
        "date",
        "transaction date",
        "posted date",
        "effective date",
        "trans date",
        "time",
        "timestamp",
        "date posted",
        "settlement date",
        "booking date",
    ),
    "description": (
        "description",
        "desc",
        "merchant",
        "payee",
        "transaction description",
        "details",
        "memo",
        "reference",
        "vendor",
        "transaction details",
    ),
    "amount": (
        "amount",
        "debit",
        "credit",
        "transaction amount",
        "net amount",
        "total",
        "sum",
        "value",
        "charge",
        "payment",
        "amount (usd)",
    ),
    "source_category": (
        "category",
        "type",
        "classification",
        "class",
        "merchant category",
        "transaction type",
        "trans type",
        "category code",
        "mcc",
    ),
}

NARROW = "narrow"
MEDIUM = "medium"
WIDE = "wide"


@dataclass(frozen=True)
class ColumnMapping:
    """Column index for each logical field, or None when unmapped."""

    date: Optional[int] = None
    description: Optional[int] = None
    amount: Optional[int] = None
    source_category: Optional[int] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def missing_required(self) -> list[str]:
        """Return required fields (date, description, amount) still unmapped."""
        return [
            name
            for name in ("date", "description", "amount")
            if getattr(self, name) is None
        ]

    def to_dict(self) -> dict[str, Optional[int]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "ColumnMapping":
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})


def _normalize_header(header: Optional[str]) -> str:
    return (header or "").strip().lower()


def detect_columns(headers: Sequence[str]) -> ColumnMapping:
    """Guess which columns hold date, description, amount and source category.

    Runs an exact pass and then a partial (containment) pass. Within a pass,
    columns are visited left to right and each unclaimed column goes to the
    first unmapped field (in declaration order) with a matching synonym, so
    earlier columns win. A field is never reassigned and a column is never
    claimed twice.

    Args:
        headers: Header row of the export, in column order

    Returns:
        ColumnMapping with the detected indices
    """
    normalized = [_normalize_header(h) for h in headers]
    mapped: dict[str, Optional[int]] = {name: None for name in HEADER_SYNONYMS}
    claimed: set[int] = set()

    def run_pass(is_match) -> None:
        for index, header in enumerate(normalized):
            if index in claimed or not header:
                continue
            field_name = next(
                (
                    name
                    for name, synonyms in HEADER_SYNONYMS.items()
                    if mapped[name] is None
                    and any(is_match(header, synonym) for synonym in synonyms)
                ),
                None,
            )
            if field_name is not None:
                mapped[field_name] = index
                claimed.add(index)

    run_pass(lambda header, synonym: header == synonym)
    run_pass(lambda header, synonym: synonym in header)

    return ColumnMapping(**mapped)


def should_auto_detect(mapping: Optional[ColumnMapping]) -> bool:
    """Return True if detection may run without clobbering manual choices."""
    return mapping is None or mapping.is_empty()


def merge_mapping(
    detected: ColumnMapping, overrides: Optional[dict[str, Optional[int]]] = None
) -> ColumnMapping:
    """Apply user corrections on top of a detected mapping.

    Args:
        detected: Mapping produced by detect_columns
        overrides: Field name to column index (None clears the field)

    Returns:
        New mapping with the overrides applied

    Raises:
        ValueError: If an override names an unknown field
    """
    if not overrides:
        return detected
    valid = {f.name for f in fields(ColumnMapping)}
    unknown = set(overrides) - valid
    if unknown:
        raise ValueError(
            f"Unknown mapping field(s): {', '.join(sorted(unknown))}. "
            f"Must be one of: {', '.join(sorted(valid))}"
        )
    return replace(detected, **overrides)


def classify_column_widths(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    sample_size: int = 20,
) -> list[str]:
    """Bucket each column into a display width class from sampled content.

    Presentation hint only; nothing downstream depends on it.
    """
    widths = []
    sample = rows[:sample_size]
    for index, header in enumerate(headers):
        longest = len((header or "").strip())
        for row in sample:
            if index < len(row) and row[index] is not None:
                longest = max(longest, len(str(row[index]).strip()))
        if longest <= 12:
            widths.append(NARROW)
        elif longest <= 30:
            widths.append(MEDIUM)
        else:
            widths.append(WIDE)
    return widths
