"""Storage backend port.

The table engine persists each dataset as one string keyed by the dataset
name. Anything that can keep such strings can back the engine: files, an
in-memory dict, a key-value service.

Contract:
    - read() returns None for a missing key and never raises for it
    - write() replaces any previous value and raises on failure
    - delete() of a missing key succeeds silently
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, runtime_checkable


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for keyed text storage.

    Thread Safety:
        The table engine serialises its own writes; implementations only
        need to make each individual write() atomic.
    """

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Return the text stored under key, or None if there is none."""
        ...

    @abstractmethod
    def write(self, key: str, data: str) -> None:
        """Store text under key, replacing any previous value.

        Raises:
            OSError: If the value could not be stored.
        """
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Return True if a value is stored under key."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the value stored under key, if any."""
        ...


@runtime_checkable
class SetupCapable(Protocol):
    """Backends that need one-off preparation before first use.

    The engine calls setup() once during initialize() when the selected
    backend provides it.
    """

    def setup(self) -> None:
        ...
