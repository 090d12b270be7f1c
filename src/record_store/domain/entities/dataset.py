"""Dataset entity.

A dataset is everything persisted for one dataset name: the table map,
the auto-increment counters, a last-modified timestamp and the format
version string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from record_store import FORMAT_VERSION
from record_store.domain.value_objects import Record


@dataclass
class Dataset:
    """Whole-database unit of persistence."""

    tables: dict[str, list[Record]] = field(default_factory=dict)
    counters: dict[str, int] = field(default_factory=dict)
    last_modified: str | None = None
    version: str = FORMAT_VERSION

    @classmethod
    def snapshot(
        cls,
        tables: dict[str, list[Record]],
        counters: dict[str, int],
    ) -> Dataset:
        """Build a dataset stamped with the current UTC time.

        The table and counter maps are referenced, not copied; the result
        is meant to be encoded straight away.
        """
        return cls(
            tables=tables,
            counters=counters,
            last_modified=datetime.now(timezone.utc).isoformat(),
        )

    @property
    def is_empty(self) -> bool:
        return not self.tables and not self.counters

    @property
    def record_count(self) -> int:
        return sum(len(rows) for rows in self.tables.values())
