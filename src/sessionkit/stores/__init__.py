"""Loadable, cache-backed stores."""

from src.sessionkit.stores.base import LoadableStore
from src.sessionkit.stores.binding import bind_to_session
from src.sessionkit.stores.listable import Listable
from src.sessionkit.stores.loadable import Empty, Failed, Loadable, Loaded, Loading

__all__ = [
    "LoadableStore",
    "Listable",
    "bind_to_session",
    "Loadable",
    "Empty",
    "Loading",
    "Loaded",
    "Failed",
]
