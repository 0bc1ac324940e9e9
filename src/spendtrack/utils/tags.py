"""Tag parsing and normalization helpers."""

import re
from typing import Iterable, Optional


def normalize_tag(tag: str) -> str:
    """Trim, lowercase and hyphenate whitespace in a tag name."""
    return re.sub(r"\s+", "-", tag.strip().lower())


def parse_tags(raw: Optional[str | Iterable[str]]) -> list[str]:
    """Parse a comma-separated string or an iterable into unique normalized tags.

    Order of first appearance is preserved.
    """
    if not raw:
        return []
    parts = raw.split(",") if isinstance(raw, str) else list(raw)

    result: list[str] = []
    seen: set[str] = set()
    for part in parts:
        tag = normalize_tag(str(part))
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def serialize_tags(tags: Iterable[str]) -> str:
    """Serialize tags into the stored comma-separated form."""
    return ",".join(parse_tags(list(tags)))


def merge_tags(*inputs: Optional[str | Iterable[str]]) -> list[str]:
    """Merge several tag inputs into a sorted list of unique tags."""
    merged: set[str] = set()
    for raw in inputs:
        merged.update(parse_tags(raw))
    return sorted(merged)


def suggest_tags(prefix: str, all_tags: Iterable[str], limit: int = 10) -> list[str]:
    """Suggest known tags that start with the given prefix."""
    normalized = normalize_tag(prefix)
    if not normalized:
        return []
    candidates = {normalize_tag(tag) for tag in all_tags}
    return sorted(tag for tag in candidates if tag.startswith(normalized))[:limit]
