"""
Parsing helpers for query arguments and path captures.
Invalid input never raises here; callers get None and decide.
"""

import re
from typing import Any
from uuid import UUID

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?$")

_TRUE = frozenset({"1", "t", "true", "yes", "y", "on"})
_FALSE = frozenset({"0", "f", "false", "no", "n", "off"})


def safe_int(value: Any, default: int | None = None, min_val: int | None = None, max_val: int | None = None) -> int | None:
    """Parse int safely for query params; clamp to range."""
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    if min_val is not None and n < min_val:
        return min_val
    if max_val is not None and n > max_val:
        return max_val
    return n


def parse_limit(value: str | None) -> int | None:
    """List limit from ?limit=n. Negative or garbage means no limit."""
    n = safe_int(value)
    if n is None or n < 0:
        return None
    return n


def parse_bool(value: str | None) -> bool | None:
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def parse_uuid(value: str | None) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


def is_identifier(value: str) -> bool:
    """True for plain or schema-qualified SQL identifiers (users, public.users)."""
    return bool(IDENTIFIER_PATTERN.match(value))
