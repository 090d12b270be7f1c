"""Table Engine - owner of all table state for one dataset.

The engine keeps every table in memory as an ordered list of records,
hands out auto-increment ids, and after every mutation re-encodes the
whole dataset and writes it through the storage backend.

Usage:
    from record_store.application import TableEngine
    from record_store.adapters.outbound import FileStorageBackend

    engine = TableEngine()
    engine.initialize("inventory", FileStorageBackend("/path/to/data"))

    engine.insert("items", {"name": "bolt", "qty": 40})
    engine.update("items", {"qty": 38}, where={"name": "bolt"})
    rows = engine.find("items", where={"qty": 38})

    engine.close()

Load and persist are deliberately asymmetric: a dataset that cannot be
read or decoded is replaced by an empty one and initialize() succeeds,
while a failed persist raises PersistFailureError to the caller of the
mutation. A failed persist leaves memory ahead of storage.

Thread Safety:
    Every mutation and its persist step run under one re-entrant lock,
    so concurrent callers never interleave. Reads take the same lock
    only long enough to copy what they return.
"""

from __future__ import annotations

import copy
import threading
import time
from collections.abc import Mapping
from typing import Any, Callable

from record_store.adapters.outbound.file_storage import FileStorageBackend
from record_store.adapters.outbound.json_codec import JsonDatasetCodec
from record_store.domain.entities import Dataset
from record_store.domain.errors import NotInitializedError, PersistFailureError
from record_store.domain.services import QueryPipeline
from record_store.domain.value_objects import Record, values_equal
from record_store.infrastructure.logging import get_logger
from record_store.infrastructure.metrics import MetricsRegistry, get_metrics
from record_store.infrastructure.tracing import mark_recovered, trace_span
from record_store.ports.outbound import DatasetCodec, SetupCapable, StorageBackend

DEFAULT_DATASET_NAME = "database"
ID_FIELD = "id"

logger = get_logger(__name__)


def _matches(row: Record, where: Mapping[str, Any]) -> bool:
    return all(values_equal(row.get(field), value) for field, value in where.items())


class TableEngine:
    """In-memory table manager with whole-dataset persistence.

    One engine holds one logical dataset. Create it once and pass it to
    the components that need it (CrudOperations, repositories).
    """

    def __init__(
        self,
        codec: DatasetCodec | None = None,
        metrics: MetricsRegistry | None = None,
        backend_factory: Callable[[], StorageBackend] = FileStorageBackend,
    ) -> None:
        """Initialize the engine (no I/O happens until initialize()).

        Args:
            codec: Dataset codec. Defaults to JsonDatasetCodec.
            metrics: Metrics registry. Defaults to the process registry.
            backend_factory: Builds the backend used when initialize() is
                called without one.
        """
        self._codec = codec or JsonDatasetCodec()
        self._metrics = metrics or get_metrics()
        self._backend_factory = backend_factory

        self._storage: StorageBackend | None = None
        self._tables: dict[str, list[Record]] = {}
        self._counters: dict[str, int] = {}
        self._dataset_name = DEFAULT_DATASET_NAME
        self._initialized = False
        self._lock = threading.RLock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def dataset_name(self) -> str:
        """Dataset name given to initialize()."""
        return self._dataset_name

    @property
    def storage(self) -> StorageBackend | None:
        return self._storage

    # ----- Lifecycle -----

    def initialize(
        self,
        dataset_name: str = DEFAULT_DATASET_NAME,
        storage_backend: StorageBackend | None = None,
    ) -> None:
        """Select a backend and load the dataset.

        Calling initialize() on an initialized engine does nothing.

        Args:
            dataset_name: Key of the dataset in the storage backend.
            storage_backend: Backend to use; built by the engine's
                backend factory if omitted.
        """
        with self._lock:
            if self._initialized:
                logger.info("engine_already_initialized", dataset=self._dataset_name)
                return

            storage = storage_backend if storage_backend is not None else self._backend_factory()
            if isinstance(storage, SetupCapable):
                storage.setup()

            self._storage = storage
            self._dataset_name = dataset_name
            self._load_dataset(dataset_name)
            self._initialized = True
            self._metrics.tables.set(len(self._tables))

            logger.info(
                "engine_initialized",
                dataset=dataset_name,
                backend=type(storage).__name__,
                tables=len(self._tables),
            )

    def close(self, dataset_name: str | None = None) -> None:
        """Persist once more and drop all in-memory state.

        Closing an engine that is not initialized does nothing.

        Raises:
            PersistFailureError: If the final persist fails. The engine
                stays initialized in that case.
        """
        with self._lock:
            if not self._initialized:
                return
            self._metrics.operations_total.labels(operation="close").inc()
            self._save_dataset(self._resolve(dataset_name))
            self._tables.clear()
            self._counters.clear()
            self._initialized = False
            self._metrics.tables.set(0)
            logger.info("engine_closed", dataset=self._dataset_name)

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError()

    def _resolve(self, dataset_name: str | None) -> str:
        return dataset_name if dataset_name is not None else self._dataset_name

    # ----- Persistence -----

    def _load_dataset(self, dataset_name: str) -> None:
        """Populate tables and counters from storage.

        A missing dataset leaves the engine empty. Any read or decode
        error also leaves it empty.
        """
        self._tables.clear()
        self._counters.clear()

        with trace_span("record_store.load", {"dataset": dataset_name}) as span:
            try:
                text = self._storage.read(dataset_name)
                if text is None:
                    logger.info("dataset_not_found", dataset=dataset_name)
                    return
                dataset = self._codec.decode(text)
            except Exception as e:
                self._metrics.load_recoveries_total.inc()
                mark_recovered(span, e)
                logger.warning(
                    "dataset_load_failed",
                    dataset=dataset_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return

        self._tables.update(dataset.tables)
        self._counters.update(dataset.counters)
        logger.info(
            "dataset_loaded",
            dataset=dataset_name,
            tables=len(self._tables),
            records=dataset.record_count,
            version=dataset.version,
        )

    def _save_dataset(self, dataset_name: str) -> None:
        """Encode the full dataset and write it in a single call.

        Raises:
            PersistFailureError: If encoding or writing fails.
        """
        start = time.perf_counter()
        with trace_span("record_store.persist", {"dataset": dataset_name}):
            try:
                text = self._codec.encode(Dataset.snapshot(self._tables, self._counters))
                self._storage.write(dataset_name, text)
            except Exception as e:
                self._metrics.persist_total.labels(status="error").inc()
                logger.error(
                    "dataset_persist_failed",
                    dataset=dataset_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise PersistFailureError(dataset_name, e) from e

        self._metrics.persist_total.labels(status="success").inc()
        self._metrics.persist_latency_seconds.observe(time.perf_counter() - start)
        self._metrics.dataset_bytes.set(len(text.encode("utf-8")))
        self._metrics.tables.set(len(self._tables))

    # ----- Tables -----

    def create_table(self, table_name: str) -> None:
        """Create an empty table with a zero counter if it does not exist."""
        with self._lock:
            self._ensure_initialized()
            if table_name not in self._tables:
                self._tables[table_name] = []
                self._counters[table_name] = 0
                logger.debug("table_created", table=table_name)

    def table_exists(self, table_name: str) -> bool:
        self._ensure_initialized()
        return table_name in self._tables

    def get_table_names(self) -> list[str]:
        self._ensure_initialized()
        return list(self._tables.keys())

    def get_table_data(self, table_name: str) -> list[Record]:
        """Return a copy of every record in a table, creating it if absent."""
        with self._lock:
            self.create_table(table_name)
            return copy.deepcopy(self._tables[table_name])

    def drop_table(self, table_name: str, dataset_name: str | None = None) -> None:
        """Remove a table and its counter, then persist.

        Persists even when the table did not exist. A table recreated
        later starts counting from 1 again.
        """
        with self._lock:
            self._ensure_initialized()
            self._metrics.operations_total.labels(operation="drop_table").inc()
            self._tables.pop(table_name, None)
            self._counters.pop(table_name, None)
            self._save_dataset(self._resolve(dataset_name))
            logger.info("table_dropped", table=table_name)

    # ----- Records -----

    def _next_id(self, table_name: str) -> int:
        self._counters[table_name] = self._counters.get(table_name, 0) + 1
        return self._counters[table_name]

    def insert(
        self,
        table_name: str,
        record: Mapping[str, Any],
        dataset_name: str | None = None,
    ) -> Record:
        """Append a record, assigning an id when it has none.

        Args:
            table_name: Target table (created if absent).
            record: Field mapping. Not modified; a copy is stored.
            dataset_name: Dataset to persist under (default: the one
                given to initialize()).

        Returns:
            A copy of the stored record, including its id.

        Raises:
            PersistFailureError: If persisting fails. The record stays
                in memory.
        """
        with self._lock:
            self.create_table(table_name)
            self._metrics.operations_total.labels(operation="insert").inc()

            stored = copy.deepcopy(dict(record))
            if stored.get(ID_FIELD) is None:
                stored[ID_FIELD] = self._next_id(table_name)

            self._tables[table_name].append(stored)
            self._save_dataset(self._resolve(dataset_name))
            return copy.deepcopy(stored)

    def find(
        self,
        table_name: str,
        where: Mapping[str, Any] | None = None,
    ) -> list[Record]:
        """Return records matching every (field, value) pair in where.

        Matching is exact and type-strict: a numeric 30 does not match
        the text "30". With no filter every record is returned, in
        insertion order.
        """
        with self._lock:
            self.create_table(table_name)
            self._metrics.operations_total.labels(operation="find").inc()
            rows = self._tables[table_name]
            if where:
                rows = [row for row in rows if _matches(row, where)]
            return copy.deepcopy(rows)

    def find_by_id(self, table_name: str, record_id: int) -> Record | None:
        results = self.find(table_name, where={ID_FIELD: record_id})
        return results[0] if results else None

    def update(
        self,
        table_name: str,
        patch: Mapping[str, Any],
        where: Mapping[str, Any],
        dataset_name: str | None = None,
    ) -> int:
        """Merge patch into every matching record.

        The ``id`` entry of the patch is ignored; ids never change.
        Persists only if something matched.

        Returns:
            Number of records updated.
        """
        with self._lock:
            self.create_table(table_name)
            self._metrics.operations_total.labels(operation="update").inc()

            changes = {k: v for k, v in patch.items() if k != ID_FIELD}
            rows = self._tables[table_name]
            updated = 0
            for i, row in enumerate(rows):
                if not _matches(row, where):
                    continue
                merged = dict(row)
                merged.update(copy.deepcopy(changes))
                rows[i] = merged
                updated += 1

            if updated > 0:
                self._save_dataset(self._resolve(dataset_name))
            return updated

    def delete(
        self,
        table_name: str,
        where: Mapping[str, Any],
        dataset_name: str | None = None,
    ) -> int:
        """Remove every matching record. Persists only if something matched.

        Returns:
            Number of records removed.
        """
        with self._lock:
            self.create_table(table_name)
            self._metrics.operations_total.labels(operation="delete").inc()

            rows = self._tables[table_name]
            kept = [row for row in rows if not _matches(row, where)]
            deleted = len(rows) - len(kept)
            if deleted > 0:
                rows[:] = kept
                self._save_dataset(self._resolve(dataset_name))
            return deleted

    # ----- Queries -----

    def query(self, table_name: str) -> QueryPipeline:
        """Start a query pipeline over a snapshot of a table."""
        return QueryPipeline(self.get_table_data(table_name))

    def get_stats(self) -> dict[str, Any]:
        """Return table sizes and counters."""
        with self._lock:
            return {
                "initialized": self._initialized,
                "dataset": self._dataset_name,
                "table_count": len(self._tables),
                "record_count": sum(len(rows) for rows in self._tables.values()),
                "tables": {name: len(rows) for name, rows in self._tables.items()},
                "counters": dict(self._counters),
            }

    def __enter__(self) -> "TableEngine":
        self._ensure_initialized()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
