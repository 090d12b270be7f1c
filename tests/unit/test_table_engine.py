"""Unit tests for TableEngine."""

from __future__ import annotations

import json
import threading
from unittest.mock import MagicMock

import pytest

from record_store.adapters.outbound import InMemoryStorageBackend
from record_store.application import TableEngine
from record_store.domain.errors import (
    DatasetEncodeError,
    NotInitializedError,
    PersistFailureError,
)
from record_store.domain.services import QueryPipeline
from record_store.infrastructure.metrics import MetricsRegistry


class FailingStorage(InMemoryStorageBackend):
    """Storage whose writes fail on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    def write(self, key: str, data: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        super().write(key, data)


def stored_document(storage: InMemoryStorageBackend, key: str = "test_db") -> dict:
    return json.loads(storage.read(key))


@pytest.mark.unit
class TestLifecycle:
    """Tests for initialize/close."""

    def test_operations_require_initialize(self, metrics_registry: MetricsRegistry) -> None:
        engine = TableEngine(metrics=metrics_registry)

        with pytest.raises(NotInitializedError):
            engine.create_table("t")
        with pytest.raises(NotInitializedError):
            engine.find("t")
        with pytest.raises(NotInitializedError):
            engine.insert("t", {"a": 1})
        with pytest.raises(NotInitializedError):
            engine.get_table_names()

    def test_initialize_is_idempotent(self, engine: TableEngine) -> None:
        engine.insert("t", {"a": 1})
        other = InMemoryStorageBackend()

        engine.initialize("other", other)

        assert engine.dataset_name == "test_db"
        assert engine.find("t") == [{"a": 1, "id": 1}]
        assert len(other) == 0

    def test_initialize_calls_setup(self, metrics_registry: MetricsRegistry) -> None:
        storage = MagicMock()
        storage.read.return_value = None
        engine = TableEngine(metrics=metrics_registry)

        engine.initialize("db", storage)

        storage.setup.assert_called_once_with()
        storage.read.assert_called_once_with("db")

    def test_initialize_uses_backend_factory(self, metrics_registry: MetricsRegistry) -> None:
        storage = InMemoryStorageBackend()
        engine = TableEngine(metrics=metrics_registry, backend_factory=lambda: storage)

        engine.initialize("db")

        assert engine.storage is storage

    def test_close_persists_and_clears(
        self, engine: TableEngine, memory_storage: InMemoryStorageBackend
    ) -> None:
        engine.create_table("empty")

        engine.close()

        assert not engine.is_initialized
        assert stored_document(memory_storage)["tables"] == {"empty": []}
        with pytest.raises(NotInitializedError):
            engine.get_table_names()

    def test_second_close_is_noop(self, engine: TableEngine) -> None:
        engine.close()
        engine.close()
        assert not engine.is_initialized

    def test_context_manager_closes(
        self, engine: TableEngine, memory_storage: InMemoryStorageBackend
    ) -> None:
        with engine as eng:
            eng.insert("t", {"a": 1})
        assert not engine.is_initialized
        assert memory_storage.exists("test_db")


@pytest.mark.unit
class TestLoading:
    """Tests for dataset loading."""

    def test_loads_existing_dataset(self, metrics_registry: MetricsRegistry) -> None:
        storage = InMemoryStorageBackend(
            {
                "db": json.dumps(
                    {
                        "tables": {"users": [{"id": 4, "name": "Ada"}]},
                        "autoIncrementCounters": {"users": 4},
                        "lastModified": "2024-01-01T00:00:00+00:00",
                        "version": "1.0.0",
                    }
                )
            }
        )
        engine = TableEngine(metrics=metrics_registry)
        engine.initialize("db", storage)

        assert engine.get_table_names() == ["users"]
        assert engine.insert("users", {"name": "Grace"})["id"] == 5

    @pytest.mark.parametrize("text", ["{not json", "[]", '{"tables": {"t": "x"}}'])
    def test_corrupt_dataset_starts_empty(
        self, metrics_registry: MetricsRegistry, text: str
    ) -> None:
        engine = TableEngine(metrics=metrics_registry)

        engine.initialize("db", InMemoryStorageBackend({"db": text}))

        assert engine.is_initialized
        assert engine.get_table_names() == []
        assert metrics_registry.load_recoveries_total._value.get() == 1
        assert engine.insert("t", {"a": 1})["id"] == 1

    @pytest.mark.parametrize(
        "metadata",
        [{"lastModified": 1700000000}, {"version": 1}, {"version": None}],
    )
    def test_unusual_metadata_keeps_tables(
        self, metrics_registry: MetricsRegistry, metadata: dict
    ) -> None:
        document = {
            "tables": {"users": [{"id": 1, "name": "Ada"}]},
            "autoIncrementCounters": {"users": 1},
            **metadata,
        }
        engine = TableEngine(metrics=metrics_registry)

        engine.initialize("db", InMemoryStorageBackend({"db": json.dumps(document)}))

        assert engine.find("users") == [{"id": 1, "name": "Ada"}]
        assert metrics_registry.load_recoveries_total._value.get() == 0

    def test_read_error_starts_empty(self, metrics_registry: MetricsRegistry) -> None:
        storage = MagicMock(spec=InMemoryStorageBackend)
        storage.read.side_effect = OSError("unreadable")
        engine = TableEngine(metrics=metrics_registry)

        engine.initialize("db", storage)

        assert engine.is_initialized
        assert engine.get_table_names() == []


@pytest.mark.unit
class TestTables:
    """Tests for table lifecycle."""

    def test_create_table(self, engine: TableEngine) -> None:
        engine.create_table("users")
        engine.create_table("users")

        assert engine.table_exists("users")
        assert engine.get_table_names() == ["users"]

    def test_tables_created_on_access(self, engine: TableEngine) -> None:
        assert engine.find("a") == []
        assert engine.get_table_data("b") == []
        assert engine.get_table_names() == ["a", "b"]

    def test_table_exists_does_not_create(self, engine: TableEngine) -> None:
        assert not engine.table_exists("ghost")
        assert engine.get_table_names() == []

    def test_get_table_data_is_a_copy(self, engine: TableEngine) -> None:
        engine.insert("t", {"nested": {"k": 1}})

        data = engine.get_table_data("t")
        data[0]["nested"]["k"] = 99
        data.append({"id": 42})

        assert engine.find("t") == [{"nested": {"k": 1}, "id": 1}]

    def test_drop_table(
        self, engine: TableEngine, memory_storage: InMemoryStorageBackend
    ) -> None:
        engine.insert("t", {"a": 1})

        engine.drop_table("t")

        assert not engine.table_exists("t")
        document = stored_document(memory_storage)
        assert "t" not in document["tables"]
        assert "t" not in document["autoIncrementCounters"]

    def test_drop_missing_table_still_persists(
        self, engine: TableEngine, memory_storage: InMemoryStorageBackend
    ) -> None:
        engine.drop_table("never")
        assert memory_storage.exists("test_db")

    def test_drop_then_recreate_resets_counter(self, engine: TableEngine) -> None:
        engine.insert("t", {"a": 1})
        engine.insert("t", {"a": 2})

        engine.drop_table("t")

        assert engine.insert("t", {"a": 3})["id"] == 1


@pytest.mark.unit
class TestInsert:
    """Tests for insert and id assignment."""

    def test_assigns_ids_from_one(self, engine: TableEngine) -> None:
        assert [engine.insert("t", {"n": i})["id"] for i in range(3)] == [1, 2, 3]

    def test_ids_are_not_reused_after_delete(self, engine: TableEngine) -> None:
        for i in range(3):
            engine.insert("t", {"n": i})
        engine.delete("t", where={"id": 3})

        assert engine.insert("t", {"n": 9})["id"] == 4

    def test_explicit_id_is_kept(self, engine: TableEngine) -> None:
        assert engine.insert("t", {"id": 50, "n": 1})["id"] == 50
        assert engine.insert("t", {"n": 2})["id"] == 1

    def test_null_id_is_assigned(self, engine: TableEngine) -> None:
        assert engine.insert("t", {"id": None, "n": 1})["id"] == 1

    def test_counters_are_per_table(self, engine: TableEngine) -> None:
        engine.insert("a", {})
        engine.insert("a", {})
        assert engine.insert("b", {})["id"] == 1

    def test_caller_mapping_is_not_modified(self, engine: TableEngine) -> None:
        record = {"name": "Ada"}
        engine.insert("t", record)
        record["name"] = "changed"

        assert record == {"name": "changed"}
        assert engine.find_by_id("t", 1)["name"] == "Ada"

    def test_persists_full_dataset(
        self, engine: TableEngine, memory_storage: InMemoryStorageBackend
    ) -> None:
        engine.insert("t", {"a": 1})
        engine.insert("u", {"b": 2})

        document = stored_document(memory_storage)
        assert document["tables"] == {"t": [{"a": 1, "id": 1}], "u": [{"b": 2, "id": 1}]}
        assert document["autoIncrementCounters"] == {"t": 1, "u": 1}
        assert document["version"] == "1.0.0"

    def test_persist_failure_propagates(self, metrics_registry: MetricsRegistry) -> None:
        storage = FailingStorage()
        engine = TableEngine(metrics=metrics_registry)
        engine.initialize("db", storage)
        storage.fail_writes = True

        with pytest.raises(PersistFailureError) as excinfo:
            engine.insert("t", {"a": 1})

        assert isinstance(excinfo.value.__cause__, OSError)
        # memory is ahead of storage
        assert engine.find("t") == [{"a": 1, "id": 1}]
        assert not storage.exists("db")
        assert metrics_registry.persist_total.labels(status="error")._value.get() == 1

    def test_non_finite_number_fails_persist(self, metrics_registry: MetricsRegistry) -> None:
        storage = InMemoryStorageBackend()
        engine = TableEngine(metrics=metrics_registry)
        engine.initialize("db", storage)

        with pytest.raises(PersistFailureError) as excinfo:
            engine.insert("t", {"x": float("nan")})

        assert isinstance(excinfo.value.__cause__, DatasetEncodeError)
        assert not storage.exists("db")


@pytest.mark.unit
class TestFind:
    """Tests for find and find_by_id."""

    @pytest.fixture
    def loaded(self, engine: TableEngine, people: list[dict]) -> TableEngine:
        for person in people:
            engine.insert("people", person)
        return engine

    def test_find_all_in_insertion_order(self, loaded: TableEngine) -> None:
        assert [r["id"] for r in loaded.find("people")] == [1, 2, 3, 4, 5]

    def test_find_with_filter(self, loaded: TableEngine) -> None:
        rows = loaded.find("people", where={"city": "London", "age": 41})
        assert [r["name"] for r in rows] == ["Alan"]

    def test_empty_filter_returns_everything(self, loaded: TableEngine) -> None:
        assert len(loaded.find("people", where={})) == 5

    def test_equality_is_type_strict(self, engine: TableEngine) -> None:
        engine.insert("t", {"age": 30})
        engine.insert("t", {"age": "30"})

        assert [r["id"] for r in engine.find("t", where={"age": 30})] == [1]
        assert [r["id"] for r in engine.find("t", where={"age": "30"})] == [2]

    def test_find_by_id(self, loaded: TableEngine) -> None:
        assert loaded.find_by_id("people", 3)["name"] == "Alan"
        assert loaded.find_by_id("people", 99) is None

    def test_query_snapshots_table(self, loaded: TableEngine) -> None:
        pipeline = loaded.query("people")
        loaded.insert("people", {"name": "Late"})

        assert isinstance(pipeline, QueryPipeline)
        assert pipeline.count() == 5


@pytest.mark.unit
class TestUpdate:
    """Tests for update."""

    def test_update_merges_fields(self, engine: TableEngine) -> None:
        engine.insert("t", {"name": "a", "age": 1})

        assert engine.update("t", {"age": 2, "extra": True}, where={"id": 1}) == 1
        assert engine.find_by_id("t", 1) == {"name": "a", "age": 2, "id": 1, "extra": True}

    def test_id_is_immutable(self, engine: TableEngine) -> None:
        engine.insert("t", {"name": "a"})

        engine.update("t", {"id": 999, "name": "x"}, where={"id": 1})

        assert engine.find("t") == [{"name": "x", "id": 1}]

    def test_update_all_matches(self, engine: TableEngine) -> None:
        for group in ("a", "b", "a"):
            engine.insert("t", {"group": group})

        assert engine.update("t", {"flag": 1}, where={"group": "a"}) == 2
        assert [r.get("flag") for r in engine.find("t")] == [1, None, 1]

    def test_no_match_returns_zero_and_skips_persist(
        self, engine: TableEngine, memory_storage: InMemoryStorageBackend
    ) -> None:
        engine.insert("t", {"a": 1})
        before = memory_storage.read("test_db")

        assert engine.update("t", {"a": 2}, where={"a": 5}) == 0
        assert memory_storage.read("test_db") == before


@pytest.mark.unit
class TestDelete:
    """Tests for delete."""

    def test_delete_matching(self, engine: TableEngine) -> None:
        for n in (1, 2, 1):
            engine.insert("t", {"n": n})

        assert engine.delete("t", where={"n": 1}) == 2
        assert engine.find("t") == [{"n": 2, "id": 2}]

    def test_no_match_returns_zero_and_skips_persist(
        self, engine: TableEngine, memory_storage: InMemoryStorageBackend
    ) -> None:
        engine.insert("t", {"n": 1})
        before = memory_storage.read("test_db")

        assert engine.delete("t", where={"n": 7}) == 0
        assert memory_storage.read("test_db") == before

    def test_dataset_name_override(
        self, engine: TableEngine, memory_storage: InMemoryStorageBackend
    ) -> None:
        engine.insert("t", {"n": 1})
        engine.delete("t", where={"n": 1}, dataset_name="archive")

        assert stored_document(memory_storage, "archive")["tables"] == {"t": []}


@pytest.mark.unit
class TestStats:
    def test_get_stats(self, engine: TableEngine) -> None:
        engine.insert("t", {"n": 1})
        engine.insert("t", {"n": 2})

        stats = engine.get_stats()

        assert stats["initialized"] is True
        assert stats["dataset"] == "test_db"
        assert stats["table_count"] == 1
        assert stats["record_count"] == 2
        assert stats["tables"] == {"t": 2}
        assert stats["counters"] == {"t": 2}

    def test_operation_metrics(
        self, engine: TableEngine, metrics_registry: MetricsRegistry
    ) -> None:
        engine.insert("t", {"n": 1})
        engine.find("t")

        assert metrics_registry.operations_total.labels(operation="insert")._value.get() == 1
        assert metrics_registry.persist_total.labels(status="success")._value.get() == 1
        assert metrics_registry.tables._value.get() == 1


@pytest.mark.unit
class TestConcurrency:
    """Tests for concurrent use of one engine."""

    def test_concurrent_inserts_get_unique_ids(
        self, engine: TableEngine, memory_storage: InMemoryStorageBackend
    ) -> None:
        threads_count, per_thread = 8, 50
        assigned: list[int] = []
        assigned_lock = threading.Lock()
        start = threading.Barrier(threads_count)

        def worker(worker_id: int) -> None:
            start.wait()
            for n in range(per_thread):
                record = engine.insert("events", {"worker": worker_id, "n": n})
                with assigned_lock:
                    assigned.append(record["id"])

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        total = threads_count * per_thread
        assert sorted(assigned) == list(range(1, total + 1))
        assert len(engine.find("events")) == total

        document = stored_document(memory_storage)
        assert len(document["tables"]["events"]) == total
        assert document["autoIncrementCounters"]["events"] == total
        assert sorted(row["id"] for row in document["tables"]["events"]) == list(
            range(1, total + 1)
        )

    def test_concurrent_updates_and_deletes(self, engine: TableEngine) -> None:
        for n in range(100):
            engine.insert("t", {"n": n, "even": n % 2 == 0})

        def updater() -> None:
            engine.update("t", {"seen": True}, where={"even": True})

        def deleter() -> None:
            engine.delete("t", where={"even": False})

        threads = [threading.Thread(target=fn) for fn in (updater, deleter) * 4]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        rows = engine.find("t")
        assert len(rows) == 50
        assert all(row["even"] and row["seen"] for row in rows)
