"""Utility functions for spendtrack."""

from spendtrack.utils.date_parser import parse_date, get_period_range
from spendtrack.utils.amount_parser import parse_amount
from spendtrack.utils.tags import parse_tags, serialize_tags

__all__ = ["parse_date", "get_period_range", "parse_amount", "parse_tags", "serialize_tags"]
