"""Value objects for record values."""

from record_store.domain.value_objects.record_value import (
    JsonValue,
    Record,
    text_of,
    values_equal,
)

__all__ = [
    "JsonValue",
    "Record",
    "text_of",
    "values_equal",
]
