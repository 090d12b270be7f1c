"""Adapters layer - concrete implementations of ports.

Outbound adapters:
    - FileStorageBackend: one ``<key>.json`` file per dataset
    - InMemoryStorageBackend: dict-backed storage for tests and tooling
    - JsonDatasetCodec: pydantic-validated JSON dataset documents
"""

from record_store.adapters.outbound import (
    FileStorageBackend,
    InMemoryStorageBackend,
    JsonDatasetCodec,
)

__all__ = [
    "FileStorageBackend",
    "InMemoryStorageBackend",
    "JsonDatasetCodec",
]
