"""Outbound adapters - storage backends and the dataset codec."""

from record_store.adapters.outbound.file_storage import FileStorageBackend
from record_store.adapters.outbound.json_codec import DatasetDocument, JsonDatasetCodec
from record_store.adapters.outbound.memory_storage import InMemoryStorageBackend

__all__ = [
    "DatasetDocument",
    "FileStorageBackend",
    "InMemoryStorageBackend",
    "JsonDatasetCodec",
]
