"""Ports layer - interface definitions following Hexagonal Architecture.

Outbound ports define what the table engine needs from the outside world:
somewhere to keep a named blob of text, and a codec that turns a dataset
into that text and back. Adapters implement these ports.
"""

from record_store.ports.outbound import DatasetCodec, SetupCapable, StorageBackend

__all__ = [
    "DatasetCodec",
    "SetupCapable",
    "StorageBackend",
]
