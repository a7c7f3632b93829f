"""Base model for items held by a LoadableStore."""

from typing import ClassVar

from pydantic import BaseModel


class Listable(BaseModel):
    """
    Item contract for LoadableStore.

    Subclasses provide a stable `id` (a field or a property), a validity
    predicate, a human-readable type label and, optionally, bundled placeholder
    items shown before the first remote fetch completes.
    """

    use_placeholder: ClassVar[bool] = False

    @property
    def is_valid(self) -> bool:
        return bool(getattr(self, "id", None))

    @classmethod
    def placeholder(cls) -> list["Listable"]:
        return []

    @classmethod
    def type_description(cls) -> str:
        return cls.__name__
