"""CRUD convenience API over a TableEngine.

Wraps the engine with model-aware create/update/delete calls and a few
shortcuts (find_first, count, exists). Models follow the RecordModel
convention: a nullable integer ``id`` plus ``to_json()``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from record_store.application.table_engine import ID_FIELD, TableEngine
from record_store.domain.entities import RecordModel
from record_store.domain.errors import MissingIdentifierError, RecordNotFoundError
from record_store.domain.value_objects import Record

T = TypeVar("T", bound=RecordModel)


class CrudOperations:
    """Create, read, update and delete records of one dataset."""

    def __init__(self, engine: TableEngine, dataset_name: str | None = None) -> None:
        """Initialize the CRUD facade.

        Args:
            engine: The table engine to operate on.
            dataset_name: Dataset to persist under; defaults to the one
                the engine was initialized with.
        """
        self._engine = engine
        self.dataset_name = dataset_name

    @property
    def engine(self) -> TableEngine:
        return self._engine

    # ----- Create -----

    def create(self, table_name: str, model: T) -> T:
        """Insert a model and write the assigned id back onto it."""
        result = self._engine.insert(
            table_name, model.to_json(), dataset_name=self.dataset_name
        )
        model.id = result[ID_FIELD]
        return model

    def create_from_map(self, table_name: str, data: Mapping[str, Any]) -> Record:
        return self._engine.insert(table_name, data, dataset_name=self.dataset_name)

    # ----- Read -----

    def find_all(self, table_name: str) -> list[Record]:
        return self._engine.find(table_name)

    def find_where(self, table_name: str, conditions: Mapping[str, Any]) -> list[Record]:
        return self._engine.find(table_name, where=conditions)

    def find_by_id(self, table_name: str, record_id: int) -> Record | None:
        return self._engine.find_by_id(table_name, record_id)

    def find_first(self, table_name: str, conditions: Mapping[str, Any]) -> Record | None:
        results = self.find_where(table_name, conditions)
        return results[0] if results else None

    # ----- Update -----

    def update_model(self, table_name: str, model: T) -> T:
        """Write a model's fields over the stored record with the same id.

        Raises:
            MissingIdentifierError: If the model has no id.
            RecordNotFoundError: If no stored record has the model's id.
        """
        if model.id is None:
            raise MissingIdentifierError("Model must have an ID to be updated")

        data = model.to_json()
        data.pop(ID_FIELD, None)

        updated = self._engine.update(
            table_name, data, where={ID_FIELD: model.id}, dataset_name=self.dataset_name
        )
        if updated == 0:
            raise RecordNotFoundError(table_name, model.id)
        return model

    def update_where(
        self,
        table_name: str,
        data: Mapping[str, Any],
        conditions: Mapping[str, Any],
    ) -> int:
        return self._engine.update(
            table_name, data, where=conditions, dataset_name=self.dataset_name
        )

    def update_by_id(self, table_name: str, record_id: int, data: Mapping[str, Any]) -> bool:
        return self.update_where(table_name, data, {ID_FIELD: record_id}) > 0

    # ----- Delete -----

    def delete_model(self, table_name: str, model: RecordModel) -> bool:
        """Delete the stored record with the model's id.

        Raises:
            MissingIdentifierError: If the model has no id.
        """
        if model.id is None:
            raise MissingIdentifierError("Model must have an ID to be deleted")
        return self.delete_by_id(table_name, model.id)

    def delete_by_id(self, table_name: str, record_id: int) -> bool:
        return self.delete_where(table_name, {ID_FIELD: record_id}) > 0

    def delete_where(self, table_name: str, conditions: Mapping[str, Any]) -> int:
        return self._engine.delete(
            table_name, where=conditions, dataset_name=self.dataset_name
        )

    def delete_all(self, table_name: str) -> int:
        """Empty a table by dropping and recreating it.

        The table's id counter restarts at 1.

        Returns:
            Number of records removed.
        """
        existing = len(self.find_all(table_name))
        if existing == 0:
            return 0
        self._engine.drop_table(table_name, dataset_name=self.dataset_name)
        self._engine.create_table(table_name)
        return existing

    # ----- Utilities -----

    def count(self, table_name: str, where: Mapping[str, Any] | None = None) -> int:
        if where is None:
            return len(self.find_all(table_name))
        return len(self.find_where(table_name, where))

    def exists(self, table_name: str, conditions: Mapping[str, Any]) -> bool:
        return self.find_first(table_name, conditions) is not None

    def create_table(self, table_name: str) -> None:
        self._engine.create_table(table_name)

    def table_exists(self, table_name: str) -> bool:
        return self._engine.table_exists(table_name)

    def drop_table(self, table_name: str) -> None:
        self._engine.drop_table(table_name, dataset_name=self.dataset_name)

    def get_table_names(self) -> list[str]:
        return self._engine.get_table_names()
