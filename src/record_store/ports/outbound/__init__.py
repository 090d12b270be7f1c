"""Outbound ports - interfaces for external dependencies."""

from record_store.ports.outbound.codec import DatasetCodec
from record_store.ports.outbound.storage_backend import SetupCapable, StorageBackend

__all__ = [
    "DatasetCodec",
    "SetupCapable",
    "StorageBackend",
]
