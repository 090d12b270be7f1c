"""JSON dataset codec.

Document layout (one per dataset name):

    {
      "tables": {"<table>": [{...record...}, ...]},
      "autoIncrementCounters": {"<table>": <int>},
      "lastModified": "<ISO-8601 timestamp>",
      "version": "1.0.0"
    }

Decoding validates the document with pydantic: every table must be a
list of objects and every counter a strict integer. Missing or null
``tables`` / ``autoIncrementCounters`` entries read as empty. The
``lastModified`` and ``version`` entries are informational and never
make a document malformed; non-string values are read as text.

Encoding rejects NaN and infinite floats, which JSON cannot represent.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator

from record_store import FORMAT_VERSION
from record_store.domain.entities import Dataset
from record_store.domain.errors import DatasetEncodeError, MalformedDatasetError


class DatasetDocument(BaseModel):
    """Wire model of a persisted dataset."""

    model_config = ConfigDict(populate_by_name=True)

    tables: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    auto_increment_counters: dict[str, StrictInt] = Field(
        default_factory=dict, alias="autoIncrementCounters"
    )
    last_modified: str | None = Field(default=None, alias="lastModified")
    version: str = FORMAT_VERSION

    @field_validator("tables", "auto_increment_counters", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("last_modified", mode="before")
    @classmethod
    def last_modified_as_text(cls, v: Any) -> Any:
        return None if v is None else str(v)

    @field_validator("version", mode="before")
    @classmethod
    def version_as_text(cls, v: Any) -> Any:
        return FORMAT_VERSION if v is None else str(v)


def _reject_non_finite(value: Any, path: str) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise DatasetEncodeError(f"Error encoding JSON: non-finite number {value!r} at {path}")
    if isinstance(value, dict):
        for key, item in value.items():
            _reject_non_finite(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _reject_non_finite(item, f"{path}[{index}]")


class JsonDatasetCodec:
    """DatasetCodec producing and consuming JSON documents."""

    def __init__(self, indent: int | None = None) -> None:
        """Initialize the codec.

        Args:
            indent: Pretty-print indentation; None writes compact JSON.
        """
        self._indent = indent

    def encode(self, dataset: Dataset) -> str:
        _reject_non_finite(dataset.tables, "tables")
        document = DatasetDocument(
            tables=dataset.tables,
            auto_increment_counters=dataset.counters,
            last_modified=dataset.last_modified,
            version=dataset.version,
        )
        try:
            return document.model_dump_json(by_alias=True, indent=self._indent)
        except ValueError as e:
            raise DatasetEncodeError(f"Error encoding JSON: {e}") from e

    def decode(self, text: str) -> Dataset:
        try:
            document = DatasetDocument.model_validate_json(text)
        except ValidationError as e:
            raise MalformedDatasetError(f"Error decoding JSON: {e}") from e
        return Dataset(
            tables=document.tables,
            counters=dict(document.auto_increment_counters),
            last_modified=document.last_modified,
            version=document.version,
        )
