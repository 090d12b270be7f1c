"""Chainable in-memory query pipeline.

A QueryPipeline is built over a snapshot of one table's records. Each
stage call (``where``, ``order_by``, ``limit``, ...) returns a *new*
pipeline carrying the previous stages plus one stage descriptor; nothing
is evaluated until a terminal call (``get``, ``first``, ``last``,
``count``, ``group_by``, ``count_by``, ``is_empty``) runs the stages in
order over the snapshot.

Usage:
    adults = (
        QueryPipeline(rows)
        .where_operator("age", ">=", 18)
        .order_by_desc("age")
        .limit(2)
        .get()
    )

Because pipelines are immutable, a partially built pipeline can be
reused as the base of several queries without one affecting another.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, Hashable, Iterable, Iterator, Sequence

from record_store.domain.errors import InvalidOperatorError
from record_store.domain.services.comparison import compare_values
from record_store.domain.value_objects import Record, text_of, values_equal

Predicate = Callable[[Record], bool]

OPERATORS = frozenset({"=", "==", "!=", "<>", ">", ">=", "<", "<=", "like", "in"})

_MEMBERSHIP_TYPES = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class SortSpec:
    """One sort key for order_by_multiple."""

    field: str
    descending: bool = False

    @classmethod
    def coerce(cls, key: SortSpec | Mapping[str, Any]) -> SortSpec:
        """Accept a SortSpec or a ``{"field": ..., "desc": ...}`` mapping."""
        if isinstance(key, SortSpec):
            return key
        return cls(field=str(key["field"]), descending=bool(key.get("desc", False)))


class Stage(ABC):
    """Base class for pipeline stages.

    Subclasses are frozen dataclasses that declare their own ``name``.
    """

    name: str

    @abstractmethod
    def apply(self, rows: list[Record]) -> list[Record]:
        """Return the working set after this stage."""


@dataclass(frozen=True)
class FilterStage(Stage):
    """Keep rows for which the predicate holds."""

    name: str
    predicate: Predicate

    def apply(self, rows: list[Record]) -> list[Record]:
        return [row for row in rows if self.predicate(row)]


@dataclass(frozen=True)
class SortStage(Stage):
    """Stable sort by one or more keys.

    The first key with a non-zero comparison decides; each key flips the
    comparator sign on its own.
    """

    keys: tuple[SortSpec, ...]
    name: str = "sort"

    def apply(self, rows: list[Record]) -> list[Record]:
        def compare(a: Record, b: Record) -> int:
            for key in self.keys:
                result = compare_values(a.get(key.field), b.get(key.field))
                if result != 0:
                    return -result if key.descending else result
            return 0

        return sorted(rows, key=cmp_to_key(compare))


@dataclass(frozen=True)
class LimitStage(Stage):
    """Keep the first ``count`` rows.

    Only applies when ``0 < count < len(rows)``; otherwise the working
    set is left untouched.
    """

    count: int
    name: str = "limit"

    def apply(self, rows: list[Record]) -> list[Record]:
        if 0 < self.count < len(rows):
            return rows[: self.count]
        return rows


@dataclass(frozen=True)
class OffsetStage(Stage):
    """Skip the first ``count`` rows, under the same guard as LimitStage."""

    count: int
    name: str = "offset"

    def apply(self, rows: list[Record]) -> list[Record]:
        if 0 < self.count < len(rows):
            return rows[self.count :]
        return rows


@dataclass(frozen=True)
class ProjectStage(Stage):
    """Reduce each row to the listed fields it actually has."""

    fields: tuple[str, ...]
    name: str = "select"

    def apply(self, rows: list[Record]) -> list[Record]:
        return [
            {field: row[field] for field in self.fields if field in row}
            for row in rows
        ]


@dataclass(frozen=True)
class DistinctStage(Stage):
    """Drop rows whose textual representation was already seen.

    Rows that differ only in value types (``{"a": 1}`` and ``{"a": "1"}``)
    render identically and collapse into the first one.
    """

    name: str = "distinct"

    def apply(self, rows: list[Record]) -> list[Record]:
        seen: set[str] = set()
        result: list[Record] = []
        for row in rows:
            key = text_of(row)
            if key in seen:
                continue
            seen.add(key)
            result.append(row)
        return result


def _operator_predicate(field: str, operator: str, value: Any) -> Predicate:
    op = operator.lower()
    if op not in OPERATORS:
        raise InvalidOperatorError(operator)

    if op in ("=", "=="):
        return lambda row: values_equal(row.get(field), value)
    if op in ("!=", "<>"):
        return lambda row: not values_equal(row.get(field), value)
    if op == ">":
        return lambda row: compare_values(row.get(field), value) > 0
    if op == ">=":
        return lambda row: compare_values(row.get(field), value) >= 0
    if op == "<":
        return lambda row: compare_values(row.get(field), value) < 0
    if op == "<=":
        return lambda row: compare_values(row.get(field), value) <= 0
    if op == "like":
        needle = text_of(value).lower()
        return lambda row: needle in text_of(row.get(field)).lower()

    # in
    if not isinstance(value, _MEMBERSHIP_TYPES):
        return lambda row: False
    candidates = list(value)
    return lambda row: any(values_equal(row.get(field), c) for c in candidates)


def _group_key(value: Any) -> Hashable:
    try:
        hash(value)
    except TypeError:
        return text_of(value)
    return value


class QueryPipeline:
    """Immutable filter/sort/paginate pipeline over a record snapshot."""

    def __init__(self, rows: Iterable[Record]) -> None:
        """Snapshot the given rows.

        Args:
            rows: Records to query. They are deep-copied, so later changes
                to the source table never reach this pipeline.
        """
        self._source: tuple[Record, ...] = tuple(copy.deepcopy(list(rows)))
        self._stages: tuple[Stage, ...] = ()

    def _then(self, stage: Stage) -> QueryPipeline:
        pipeline = QueryPipeline.__new__(QueryPipeline)
        pipeline._source = self._source
        pipeline._stages = self._stages + (stage,)
        return pipeline

    @property
    def stages(self) -> tuple[Stage, ...]:
        """Stage descriptors, in application order."""
        return self._stages

    # ----- Filters -----

    def where(self, field: str, value: Any) -> QueryPipeline:
        """Keep rows whose field equals value (absent fields read as null)."""
        return self._then(
            FilterStage("where", lambda row: values_equal(row.get(field), value))
        )

    def where_all(self, conditions: Mapping[str, Any]) -> QueryPipeline:
        """Keep rows matching every (field, value) pair."""
        pairs = tuple(conditions.items())
        return self._then(
            FilterStage(
                "where_all",
                lambda row: all(values_equal(row.get(f), v) for f, v in pairs),
            )
        )

    def where_operator(self, field: str, operator: str, value: Any) -> QueryPipeline:
        """Filter with a comparison operator.

        Supported operators: ``=``/``==``, ``!=``/``<>``, ``>``, ``>=``,
        ``<``, ``<=``, ``like`` (case-insensitive substring of the textual
        representation) and ``in`` (membership in a list, tuple or set).

        Raises:
            InvalidOperatorError: If the operator is not supported.
        """
        return self._then(
            FilterStage(f"where_operator({operator})", _operator_predicate(field, operator, value))
        )

    def where_between(self, field: str, minimum: Any, maximum: Any) -> QueryPipeline:
        """Keep rows with minimum <= field <= maximum."""
        return self._then(
            FilterStage(
                "where_between",
                lambda row: compare_values(row.get(field), minimum) >= 0
                and compare_values(row.get(field), maximum) <= 0,
            )
        )

    def where_null(self, field: str) -> QueryPipeline:
        return self._then(FilterStage("where_null", lambda row: row.get(field) is None))

    def where_not_null(self, field: str) -> QueryPipeline:
        return self._then(FilterStage("where_not_null", lambda row: row.get(field) is not None))

    def where_custom(self, predicate: Predicate) -> QueryPipeline:
        """Keep rows for which an arbitrary predicate returns True."""
        return self._then(FilterStage("where_custom", predicate))

    # ----- Ordering -----

    def order_by(self, field: str) -> QueryPipeline:
        return self._then(SortStage((SortSpec(field),)))

    def order_by_desc(self, field: str) -> QueryPipeline:
        return self._then(SortStage((SortSpec(field, descending=True),)))

    def order_by_multiple(
        self, sorts: Sequence[SortSpec | Mapping[str, Any]]
    ) -> QueryPipeline:
        """Sort by several keys, e.g. ``[{"field": "age", "desc": True}, {"field": "name"}]``."""
        return self._then(SortStage(tuple(SortSpec.coerce(s) for s in sorts)))

    # ----- Pagination -----

    def limit(self, count: int) -> QueryPipeline:
        return self._then(LimitStage(count))

    def offset(self, count: int) -> QueryPipeline:
        return self._then(OffsetStage(count))

    def paginate(self, page: int, page_size: int) -> QueryPipeline:
        """Select a 1-indexed page of ``page_size`` rows."""
        return self.offset((page - 1) * page_size).limit(page_size)

    # ----- Shaping -----

    def select(self, fields: Iterable[str]) -> QueryPipeline:
        return self._then(ProjectStage(tuple(fields)))

    def distinct(self) -> QueryPipeline:
        return self._then(DistinctStage())

    # ----- Terminals -----

    def _evaluate(self) -> list[Record]:
        rows = list(self._source)
        for stage in self._stages:
            rows = stage.apply(rows)
        return rows

    def get(self) -> list[Record]:
        """Materialize the result rows."""
        return copy.deepcopy(self._evaluate())

    def first(self) -> Record | None:
        rows = self._evaluate()
        return copy.deepcopy(rows[0]) if rows else None

    def last(self) -> Record | None:
        rows = self._evaluate()
        return copy.deepcopy(rows[-1]) if rows else None

    def count(self) -> int:
        return len(self._evaluate())

    def is_empty(self) -> bool:
        return not self._evaluate()

    def is_not_empty(self) -> bool:
        return bool(self._evaluate())

    def group_by(self, field: str) -> dict[Any, list[Record]]:
        """Group result rows by a field value, keeping row order per group.

        Unhashable values (lists, mappings) are keyed by their textual
        representation.
        """
        groups: dict[Any, list[Record]] = {}
        for row in copy.deepcopy(self._evaluate()):
            groups.setdefault(_group_key(row.get(field)), []).append(row)
        return groups

    def count_by(self, field: str) -> dict[Any, int]:
        return {key: len(rows) for key, rows in self.group_by(field).items()}

    def __iter__(self) -> Iterator[Record]:
        return iter(self.get())

    def __len__(self) -> int:
        return self.count()

    def __repr__(self) -> str:
        stages = " -> ".join(stage.name for stage in self._stages) or "scan"
        return f"QueryPipeline(rows={len(self._source)}, stages={stages})"
