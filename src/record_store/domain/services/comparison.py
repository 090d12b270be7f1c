"""Total order over record values.

Used by the ordering operators (``>``, ``>=``, ``<``, ``<=``), by
``where_between`` and by every sort stage.

Rules, in order:
    1. null sorts before any non-null value; two nulls are equal
    2. number vs number compares numerically (booleans are not numbers)
    3. text vs text compares lexicographically
    4. date/time vs date/time compares chronologically
    5. anything else compares the textual representations

Mixed-type comparisons never raise; they fall back to rule 5.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from record_store.domain.value_objects import text_of


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _comparable_datetimes(a: Any, b: Any) -> bool:
    if not (isinstance(a, date) and isinstance(b, date)):
        return False
    # date and datetime cannot be ordered against each other, nor can
    # naive and aware datetimes
    if isinstance(a, datetime) != isinstance(b, datetime):
        return False
    if isinstance(a, datetime):
        return (a.tzinfo is None) == (b.tzinfo is None)
    return True


def compare_values(a: Any, b: Any) -> int:
    """Compare two values, returning -1, 0 or 1."""
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1

    if _is_number(a) and _is_number(b):
        return _cmp(a, b)

    if isinstance(a, str) and isinstance(b, str):
        return _cmp(a, b)

    if _comparable_datetimes(a, b):
        return _cmp(a, b)

    return _cmp(text_of(a), text_of(b))
