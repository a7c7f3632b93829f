"""Generic cache-first store with background refresh-merge and optimistic insert."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import ClassVar, Generic, TypeVar

from src.sessionkit.config import settings
from src.sessionkit.stores.cache import SnapshotCache
from src.sessionkit.stores.listable import Listable
from src.sessionkit.stores.loadable import Empty, Failed, Loadable, Loaded, Loading, describe, items_of

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Listable)

RemoteFetcher = Callable[[], Awaitable[list[T]]]


class LoadableStore(Generic[T]):
    """
    Loadable collection of T backed by a remote fetch function and a JSON snapshot.

    Once content has been shown the store never regresses: a failing or empty
    refresh keeps the items on screen and logs a warning. Only a store that has
    never loaded anything can become Failed.

    Concurrent fetch() calls share the in-flight request. A forced fetch starts a
    new request; responses are sequence-numbered and a response older than one
    already applied is discarded.

    Subclasses set `item_type` and `cache_filename`, and the gates
    `requires_sign_in` / `requires_real_user` consulted by bind_to_session().

    Example:
        >>> store = HelpTextStore(fetch_from_service=connector.fetch_help_texts)
        >>> store.initialize()
        >>> state = await store.fetch_and_await()
    """

    item_type: ClassVar[type[Listable]] = Listable
    cache_filename: ClassVar[str | None] = None
    requires_sign_in: ClassVar[bool] = False
    requires_real_user: ClassVar[bool] = False

    def __init__(
        self,
        fetch_from_service: RemoteFetcher,
        cache_dir: Path | None = None,
        item_type: type[T] | None = None,
        cache_filename: str | None = None,
    ):
        """
        Initialize store.

        Args:
            fetch_from_service: Async callable returning the remote items
            cache_dir: Snapshot directory (settings.cache_dir if None)
            item_type: Overrides the class-level item type
            cache_filename: Overrides the class-level snapshot filename
        """
        self.fetch_from_service = fetch_from_service
        self.item_type = item_type or type(self).item_type
        filename = (
            cache_filename
            or type(self).cache_filename
            or f"{self.item_type.__name__.lower()}_cache.json"
        )
        self.cache: SnapshotCache[T] = SnapshotCache(
            (cache_dir or settings.cache_dir) / filename, self.item_type
        )

        self.state: Loadable = Empty()
        self._shown: tuple[T, ...] | None = None
        self._inflight: asyncio.Task | None = None
        self._requested = 0
        self._applied = 0
        self._tasks: set[asyncio.Task] = set()

    @property
    def label(self) -> str:
        return self.item_type.type_description()

    @property
    def items(self) -> list[T]:
        return items_of(self.state)

    @property
    def is_loaded(self) -> bool:
        return isinstance(self.state, Loaded)

    def initialize(self) -> asyncio.Task | None:
        """
        Show cached or placeholder content, then reconcile with the remote source.

        No-op while Loading or Loaded. Otherwise resolves in order: non-empty
        snapshot cache, bundled placeholders, Loading. Always schedules a
        background fetch.

        Returns:
            The background fetch task, or None if the call was a no-op
        """
        if isinstance(self.state, (Loading, Loaded)):
            return None

        cached = self.cache.read()
        if cached:
            self._set_loaded(tuple(cached))
            logger.info(f"Loaded {len(cached)} {self.label} item(s) from cache")
        elif self.item_type.use_placeholder and (placeholders := self.item_type.placeholder()):
            self._set_loaded(tuple(placeholders))
            logger.info(f"Using {len(placeholders)} placeholder {self.label} item(s)")
        else:
            self.state = Loading()

        return self.fetch()

    def fetch(self, force: bool = False) -> asyncio.Task:
        """
        Fetch from the remote source in the background.

        Args:
            force: Start a new request even if one is in flight

        Returns:
            Task resolving to the store state once this request is applied
        """
        if self._inflight is not None and not self._inflight.done() and not force:
            return self._inflight

        self._requested += 1
        request = self._fetch(self._requested, self.fetch_from_service)
        task = asyncio.get_running_loop().create_task(request)
        self._inflight = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def fetch_and_await(self) -> Loadable:
        """Set Loading immediately and return the state once the fetch resolves."""
        self.state = Loading()
        return await self.fetch()

    def insert(self, item: T) -> None:
        """
        Optimistically prepend a locally created item and re-persist the snapshot.

        An existing item with the same id is replaced. Seeds a singleton Loaded
        state if nothing was loaded yet.

        Raises:
            ValueError: If item fails its validity predicate
        """
        if not item.is_valid:
            raise ValueError(f"Refusing to insert invalid {self.label} item")

        existing = self._shown or ()
        items = (item,) + tuple(i for i in existing if i.id != item.id)
        self._set_loaded(items)
        self._persist(items)
        logger.debug(f"Inserted {self.label} item {item.id}")

    async def _fetch(self, seq: int, fetcher: RemoteFetcher) -> Loadable:
        try:
            fetched = await fetcher()
        except Exception as e:
            if seq < self._applied:
                logger.info(f"Ignoring failure of superseded {self.label} fetch #{seq}")
                return self.state
            if self._shown is not None:
                self.state = Loaded(self._shown)
                logger.warning(
                    f"Refresh of {self.label} failed, keeping {len(self._shown)} existing item(s): {e}",
                    extra={"error_type": "store_refresh_failed", "store": self.label},
                )
            else:
                self.state = Failed(e)
                logger.error(
                    f"Unable to load {self.label} items: {e}",
                    exc_info=True,
                    extra={"error_type": "store_fetch_failed", "store": self.label},
                )
            return self.state

        if seq < self._applied:
            logger.info(f"Discarding stale {self.label} response #{seq} (applied #{self._applied})")
            return self.state
        self._applied = seq

        items = tuple(self._valid(fetched))
        if not items and self._shown is not None:
            self.state = Loaded(self._shown)
            logger.warning(
                f"Remote returned no {self.label} items, keeping {len(self._shown)} existing item(s)",
                extra={"error_type": "store_refresh_empty", "store": self.label},
            )
            return self.state

        self._set_loaded(items)
        self._persist(items)
        logger.info(f"Fetched {len(items)} {self.label} item(s)")
        return self.state

    def _valid(self, fetched: list[T]) -> list[T]:
        valid = [item for item in fetched if item.is_valid]
        dropped = len(fetched) - len(valid)
        if dropped:
            logger.warning(
                f"Dropped {dropped} invalid {self.label} item(s) from remote response",
                extra={"store": self.label},
            )
        return valid

    def _set_loaded(self, items: tuple[T, ...]) -> None:
        self._shown = items
        self.state = Loaded(items)

    def _persist(self, items: tuple[T, ...]) -> None:
        try:
            self.cache.write(list(items))
        except OSError as e:
            logger.warning(
                f"Unable to write {self.label} snapshot to {self.cache.path}: {e}",
                extra={"error_type": "cache_write_failed", "store": self.label},
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({describe(self.state)})"
