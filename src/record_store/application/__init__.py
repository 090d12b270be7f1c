"""Application layer for the record store.

The application layer orchestrates domain logic to fulfil use cases.

Exports:
    - TableEngine: owner of all table state and persistence
    - CrudOperations: create/read/update/delete convenience API
    - BaseRepository: per-model repository base class
    - ModelRepository: repository for PydanticRecordModel subclasses
"""

from record_store.application.crud_operations import CrudOperations
from record_store.application.repository import BaseRepository, ModelRepository
from record_store.application.table_engine import (
    DEFAULT_DATASET_NAME,
    ID_FIELD,
    TableEngine,
)

__all__ = [
    "TableEngine",
    "CrudOperations",
    "BaseRepository",
    "ModelRepository",
    "DEFAULT_DATASET_NAME",
    "ID_FIELD",
]
