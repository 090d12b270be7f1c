"""Record mapping convention.

Domain objects stored through CrudOperations or a repository expose a
nullable integer ``id`` and a ``to_json()`` producing a flat field
mapping. Rebuilding an object from a mapping is the caller's job: either
a repository's ``from_json`` or, for pydantic models, ``from_json``
below.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict

M = TypeVar("M", bound="PydanticRecordModel")


@runtime_checkable
class RecordModel(Protocol):
    """Protocol for objects that map to a single record."""

    id: int | None

    def to_json(self) -> dict[str, Any]:
        """Return the record fields, including ``id``."""
        ...


class PydanticRecordModel(BaseModel):
    """Pydantic base class satisfying RecordModel.

    Example:
        class User(PydanticRecordModel):
            name: str
            age: int = 0

        user = User(name="Ada")
        user.to_json()  # {"id": None, "name": "Ada", "age": 0}
    """

    model_config = ConfigDict(validate_assignment=True, extra="ignore")

    id: int | None = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_json(cls: type[M], data: dict[str, Any]) -> M:
        return cls.model_validate(data)
