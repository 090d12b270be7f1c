"""Record value typing, equality and textual representation.

A record is a flat mapping from field name to a JSON-compatible value.
Equality is type-strict: ``30`` never equals ``"30"`` and booleans only
equal booleans (Python would otherwise treat ``True == 1``). Numbers
compare by value across int and float, so ``1 == 1.0``.

The textual representation produced by :func:`text_of` renders nulls and
booleans the way a JSON reader would read them (``null``, ``true``) and
prints mappings and sequences without quoting strings. It backs the
``like`` operator, the mixed-type comparison fallback and ``distinct``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Dict, List, Union

JsonValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]
Record = Dict[str, Any]

_SEQUENCE_TYPES = (list, tuple)


def values_equal(a: Any, b: Any) -> bool:
    """Type-strict equality used by every equality filter."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(values_equal(a[k], b[k]) for k in a)
    if isinstance(a, _SEQUENCE_TYPES) and isinstance(b, _SEQUENCE_TYPES):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, _SEQUENCE_TYPES) or isinstance(b, _SEQUENCE_TYPES):
        return False
    return a == b


def text_of(value: Any) -> str:
    """Render a value as text.

    >>> text_of({"a": 1, "b": [True, None]})
    '{a: 1, b: [true, null]}'
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        inner = ", ".join(f"{text_of(k)}: {text_of(v)}" for k, v in value.items())
        return "{" + inner + "}"
    if isinstance(value, Sequence):
        return "[" + ", ".join(text_of(v) for v in value) + "]"
    return str(value)
