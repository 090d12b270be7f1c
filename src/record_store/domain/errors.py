"""Error taxonomy for the record store.

Load errors are absorbed by the table engine; every other error here
reaches the caller.
"""

from __future__ import annotations


class RecordStoreError(Exception):
    """Base class for all record store errors."""


class NotInitializedError(RecordStoreError, RuntimeError):
    """A table operation was invoked before initialize() completed."""

    def __init__(self, message: str = "Database not initialized. Call initialize() first.") -> None:
        super().__init__(message)


class StorageNotReadyError(RecordStoreError, RuntimeError):
    """A storage backend was used before its setup() ran."""


class MalformedDatasetError(RecordStoreError):
    """Stored text could not be decoded into a dataset."""


class DatasetEncodeError(RecordStoreError):
    """The in-memory dataset holds a value the codec cannot serialise."""


class PersistFailureError(RecordStoreError):
    """Writing the dataset failed.

    The in-memory mutation that triggered the write has already been
    applied and is not rolled back.
    """

    def __init__(self, dataset_name: str, cause: BaseException) -> None:
        self.dataset_name = dataset_name
        super().__init__(f"Failed to persist dataset '{dataset_name}': {cause}")


class InvalidOperatorError(RecordStoreError, ValueError):
    """Unknown comparison operator passed to the query pipeline."""

    def __init__(self, operator: str) -> None:
        self.operator = operator
        super().__init__(f"Unknown operator: {operator}")


class MissingIdentifierError(RecordStoreError, ValueError):
    """A model without an assigned id was passed to an id-based operation."""


class RecordNotFoundError(RecordStoreError, LookupError):
    """No stored record carries the model's id."""

    def __init__(self, table_name: str, record_id: int) -> None:
        self.table_name = table_name
        self.record_id = record_id
        super().__init__(f"Record with ID {record_id} not found in table '{table_name}'")
