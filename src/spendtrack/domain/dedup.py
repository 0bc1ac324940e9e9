"""Duplicate detection gate for incoming transactions."""

from enum import Enum
from typing import Any, Callable, Optional


class DedupDecision(str, Enum):
    """Outcome of the duplicate check for one record."""

    PROCEED = "proceed"
    SKIP = "skip"


def decide(
    fingerprint: Optional[str],
    override_requested: bool,
    lookup: Callable[[str], Optional[Any]],
) -> DedupDecision:
    """Decide whether a record should be persisted.

    Args:
        fingerprint: Record fingerprint, or None if it could not be computed
        override_requested: User explicitly asked to import a duplicate
        lookup: Returns an existing record for a fingerprint, or None

    Returns:
        PROCEED or SKIP. An override never consults ``lookup``; a missing
        fingerprint means duplicate detection does not apply.
    """
    if override_requested:
        return DedupDecision.PROCEED
    if not fingerprint:
        return DedupDecision.PROCEED
    if lookup(fingerprint) is not None:
        return DedupDecision.SKIP
    return DedupDecision.PROCEED
