"""Domain entities.

Exports:
    - Dataset: unit of persistence (tables, counters, timestamp, version)
    - RecordModel: protocol for objects stored through the repository layer
    - PydanticRecordModel: pydantic base implementing RecordModel
"""

from record_store.domain.entities.dataset import Dataset
from record_store.domain.entities.model import PydanticRecordModel, RecordModel

__all__ = [
    "Dataset",
    "RecordModel",
    "PydanticRecordModel",
]
