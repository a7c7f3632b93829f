"""Tagged load-state variant wrapping a remote-sourced collection."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Empty:
    """Nothing requested yet."""


@dataclass(frozen=True)
class Loading:
    """A first load is in flight and there is nothing to show."""


@dataclass(frozen=True)
class Loaded(Generic[T]):
    """Content is available; items keep their display order."""

    items: tuple[T, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Failed:
    """The first load failed before any content was shown."""

    error: BaseException


Loadable = Empty | Loading | Loaded[T] | Failed


def items_of(state: Loadable) -> list:
    """Return the loaded items, or an empty list for every other state."""
    match state:
        case Loaded(items=items):
            return list(items)
        case Empty() | Loading() | Failed():
            return []


def count_of(state: Loadable) -> int:
    match state:
        case Loaded(items=items):
            return len(items)
        case _:
            return 0


def describe(state: Loadable) -> str:
    """Short state name for log lines."""
    match state:
        case Empty():
            return "empty"
        case Loading():
            return "loading"
        case Loaded(items=items):
            return f"loaded({len(items)})"
        case Failed(error=error):
            return f"failed({type(error).__name__})"
