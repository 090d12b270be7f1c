"""In-memory storage backend.

A dict-backed StorageBackend for tests and short-lived tooling. Data is
not persisted across restarts.
"""

from __future__ import annotations


class InMemoryStorageBackend:
    """In-memory implementation of StorageBackend."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        """Initialize storage, optionally pre-seeded with stored text."""
        self._blobs: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self._blobs.get(key)

    def write(self, key: str, data: str) -> None:
        self._blobs[key] = data

    def exists(self, key: str) -> bool:
        return key in self._blobs

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    def keys(self) -> list[str]:
        """List stored keys."""
        return list(self._blobs.keys())

    def __len__(self) -> int:
        return len(self._blobs)
