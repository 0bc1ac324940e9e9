"""Pattern matching for classification rules."""

import re
from enum import Enum
from functools import lru_cache
from typing import Optional

from spendtrack.domain.errors import ValidationError


class MatchType(str, Enum):
    """How a rule pattern is compared against a transaction field."""

    EXACT = "exact"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    REGEX = "regex"


MATCH_TYPES = tuple(m.value for m in MatchType)


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Optional[re.Pattern]:
    """Compile a case-insensitive regex, returning None if it is malformed."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return None


def matches(value: Optional[str], pattern: str, match_type: str) -> bool:
    """Test a field value against a rule pattern.

    All modes are case-insensitive. A regex that fails to compile, or an
    unknown match type, never matches.

    Args:
        value: Field value from the transaction (None is treated as "")
        pattern: Rule pattern
        match_type: One of exact, contains, starts_with, regex

    Returns:
        True if the value matches
    """
    value = value or ""
    if match_type == MatchType.EXACT:
        return value.lower() == pattern.lower()
    if match_type == MatchType.STARTS_WITH:
        return value.lower().startswith(pattern.lower())
    if match_type == MatchType.CONTAINS:
        return pattern.lower() in value.lower()
    if match_type == MatchType.REGEX:
        compiled = compile_pattern(pattern)
        return compiled is not None and compiled.search(value) is not None
    return False


def validate_pattern(pattern: str, match_type: str) -> None:
    """Validate a pattern before it is stored in a rule.

    Raises:
        ValidationError: If the match type is unknown, the pattern is empty,
            or a regex pattern does not compile
    """
    if match_type not in MATCH_TYPES:
        raise ValidationError(
            f"Invalid match type '{match_type}'. Must be one of: {', '.join(MATCH_TYPES)}"
        )
    if not pattern:
        raise ValidationError("Pattern must not be empty")
    if match_type == MatchType.REGEX and compile_pattern(pattern) is None:
        raise ValidationError(f"Invalid regular expression: '{pattern}'")
