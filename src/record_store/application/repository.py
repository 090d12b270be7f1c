"""Repository base classes.

A repository binds one table to one model type. Subclasses supply
``from_json`` to rebuild models from stored records; everything else is
shared.

Usage:
    class User(PydanticRecordModel):
        name: str
        age: int = 0

    users = ModelRepository(engine, "users", User)
    ada = users.create(User(name="Ada", age=36))
    adults = users.search(lambda q: q.where_operator("age", ">=", 18))
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, Generic, Iterable, TypeVar

from record_store.application.crud_operations import CrudOperations
from record_store.application.table_engine import ID_FIELD, TableEngine
from record_store.domain.entities import PydanticRecordModel, RecordModel
from record_store.domain.services import QueryPipeline
from record_store.domain.value_objects import Record

T = TypeVar("T", bound=RecordModel)
P = TypeVar("P", bound=PydanticRecordModel)


class BaseRepository(ABC, Generic[T]):
    """Per-model repository over a single table."""

    def __init__(
        self,
        engine: TableEngine,
        table_name: str,
        dataset_name: str | None = None,
    ) -> None:
        """Bind the repository to a table, creating it if missing.

        Raises:
            NotInitializedError: If the engine is not initialized.
        """
        self._crud = CrudOperations(engine, dataset_name=dataset_name)
        self.table_name = table_name
        if not self._crud.table_exists(table_name):
            self._crud.create_table(table_name)

    @abstractmethod
    def from_json(self, data: Record) -> T:
        """Rebuild a model from a stored record."""

    def to_json(self, model: T) -> dict[str, Any]:
        return model.to_json()

    def _models(self, rows: Iterable[Record]) -> list[T]:
        return [self.from_json(row) for row in rows]

    # ----- CRUD -----

    def create(self, model: T) -> T:
        return self._crud.create(self.table_name, model)

    def create_many(self, models: Iterable[T]) -> list[T]:
        return [self.create(model) for model in models]

    def find_all(self) -> list[T]:
        return self._models(self._crud.find_all(self.table_name))

    def find_by_id(self, record_id: int) -> T | None:
        row = self._crud.find_by_id(self.table_name, record_id)
        return self.from_json(row) if row is not None else None

    def find_where(self, conditions: Mapping[str, Any]) -> list[T]:
        return self._models(self._crud.find_where(self.table_name, conditions))

    def find_first(self, conditions: Mapping[str, Any]) -> T | None:
        row = self._crud.find_first(self.table_name, conditions)
        return self.from_json(row) if row is not None else None

    def update(self, model: T) -> T:
        return self._crud.update_model(self.table_name, model)

    def update_by_id(self, record_id: int, data: Mapping[str, Any]) -> bool:
        return self._crud.update_by_id(self.table_name, record_id, data)

    def delete(self, model: T) -> bool:
        return self._crud.delete_model(self.table_name, model)

    def delete_by_id(self, record_id: int) -> bool:
        return self._crud.delete_by_id(self.table_name, record_id)

    def delete_by_ids(self, record_ids: Iterable[int]) -> int:
        return sum(1 for record_id in record_ids if self.delete_by_id(record_id))

    def delete_all(self) -> int:
        return self._crud.delete_all(self.table_name)

    # ----- Queries -----

    def query(self) -> QueryPipeline:
        return QueryPipeline(self._crud.find_all(self.table_name))

    def search(self, builder: Callable[[QueryPipeline], QueryPipeline]) -> list[T]:
        """Run a query built from this table and map the rows to models."""
        return self._models(builder(self.query()).get())

    def paginate(self, page: int, page_size: int) -> list[T]:
        return self.search(lambda q: q.paginate(page, page_size))

    def order_by(self, field: str, descending: bool = False) -> list[T]:
        return self.search(lambda q: q.order_by_desc(field) if descending else q.order_by(field))

    def search_by_field(self, field: str, term: str) -> list[T]:
        """Case-insensitive substring search on one field."""
        return self.search(lambda q: q.where_operator(field, "like", term))

    # ----- Utilities -----

    def count(self) -> int:
        return self._crud.count(self.table_name)

    def count_where(self, conditions: Mapping[str, Any]) -> int:
        return self._crud.count(self.table_name, where=conditions)

    def exists(self, conditions: Mapping[str, Any]) -> bool:
        return self._crud.exists(self.table_name, conditions)

    def exists_by_id(self, record_id: int) -> bool:
        return self.exists({ID_FIELD: record_id})

    def first(self) -> T | None:
        models = self.find_all()
        return models[0] if models else None

    def last(self) -> T | None:
        models = self.find_all()
        return models[-1] if models else None


class ModelRepository(BaseRepository[P]):
    """Repository for a PydanticRecordModel subclass."""

    def __init__(
        self,
        engine: TableEngine,
        table_name: str,
        model_class: type[P],
        dataset_name: str | None = None,
    ) -> None:
        self.model_class = model_class
        super().__init__(engine, table_name, dataset_name=dataset_name)

    def from_json(self, data: Record) -> P:
        return self.model_class.from_json(data)
