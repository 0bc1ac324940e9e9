"""Transaction fingerprinting for duplicate detection."""

import hashlib
from datetime import date
from decimal import Decimal

FINGERPRINT_LENGTH = 16


def fingerprint(
    source_id: int,
    date: str | date,
    description: str,
    amount: Decimal | float | int | str,
) -> str:
    """Generate a stable transaction fingerprint.

    The digest covers the source, the calendar day, the description and the
    amount rounded to cents. Identical inputs always produce the same value.

    Args:
        source_id: Owning source ID
        date: Transaction date (``date`` or ``YYYY-MM-DD`` string)
        description: Transaction description
        amount: Signed transaction amount

    Returns:
        First 16 lowercase hex characters of the SHA-256 digest
    """
    if not isinstance(date, str):
        date = date.isoformat()
    cents = Decimal(str(amount)).quantize(Decimal("0.01"))
    data = f"{source_id}|{date}|{description}|{cents}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
