"""Dataset codec port."""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, runtime_checkable

from record_store.domain.entities import Dataset


@runtime_checkable
class DatasetCodec(Protocol):
    """Converts a Dataset to and from its textual interchange form."""

    @abstractmethod
    def encode(self, dataset: Dataset) -> str:
        """Serialise a dataset.

        Raises:
            DatasetEncodeError: If a record holds an unserialisable value.
        """
        ...

    @abstractmethod
    def decode(self, text: str) -> Dataset:
        """Parse a dataset.

        Raises:
            MalformedDatasetError: If the text is not a valid dataset.
        """
        ...
