"""Tests for LoadableStore."""

import asyncio
from types import SimpleNamespace
from typing import ClassVar
from unittest.mock import AsyncMock

import pytest

from src.sessionkit.auth.events import SessionEvents
from src.sessionkit.stores.base import LoadableStore
from src.sessionkit.stores.binding import bind_to_session
from src.sessionkit.stores.cache import SnapshotCache
from src.sessionkit.stores.listable import Listable
from src.sessionkit.stores.loadable import Empty, Failed, Loaded, Loading


class Note(Listable):
    id: str
    text: str = ""

    @property
    def is_valid(self) -> bool:
        return bool(self.id) and bool(self.text)


class PlaceholderNote(Note):
    use_placeholder: ClassVar[bool] = True

    @classmethod
    def placeholder(cls) -> list["PlaceholderNote"]:
        return [cls(id="welcome", text="Welcome!")]


class NoteStore(LoadableStore[Note]):
    item_type = Note
    cache_filename = "notes.json"


X = Note(id="x", text="first")
Y = Note(id="y", text="second")
Z = Note(id="z", text="third")


def write_cache(tmp_path, items, filename="notes.json", item_type=Note):
    SnapshotCache(tmp_path / filename, item_type).write(items)


@pytest.mark.asyncio
class TestInitialize:
    """Tests for initialize() resolution order."""

    async def test_cache_hit_then_fetch(self, tmp_path):
        """Test cached items show immediately and are replaced by the fetch."""
        write_cache(tmp_path, [X, Y])
        store = NoteStore(fetch_from_service=AsyncMock(return_value=[Z]), cache_dir=tmp_path)

        task = store.initialize()
        assert store.state == Loaded((X, Y))

        await task
        assert store.items == [Z]
        assert SnapshotCache(tmp_path / "notes.json", Note).read() == [Z]

    async def test_cache_hit_survives_failed_fetch(self, tmp_path):
        """Test a failed background fetch leaves cached content untouched."""
        write_cache(tmp_path, [X, Y])
        store = NoteStore(fetch_from_service=AsyncMock(side_effect=OSError("offline")), cache_dir=tmp_path)

        await store.initialize()

        assert store.state == Loaded((X, Y))

    async def test_cache_hit_survives_empty_fetch(self, tmp_path):
        write_cache(tmp_path, [X, Y])
        store = NoteStore(fetch_from_service=AsyncMock(return_value=[]), cache_dir=tmp_path)

        await store.initialize()

        assert store.items == [X, Y]

    async def test_placeholder_when_no_cache(self, tmp_path):
        store = LoadableStore(
            fetch_from_service=AsyncMock(side_effect=OSError("offline")),
            cache_dir=tmp_path,
            item_type=PlaceholderNote,
        )

        task = store.initialize()
        assert [item.id for item in store.items] == ["welcome"]

        await task
        assert [item.id for item in store.items] == ["welcome"]

    async def test_loading_then_failed_without_content(self, tmp_path):
        """Test a store that never showed content becomes Failed."""
        error = OSError("offline")
        store = NoteStore(fetch_from_service=AsyncMock(side_effect=error), cache_dir=tmp_path)

        task = store.initialize()
        assert store.state == Loading()

        await task
        assert store.state == Failed(error)

    async def test_undecodable_cache_is_a_miss(self, tmp_path):
        (tmp_path / "notes.json").write_text("{not json")
        store = NoteStore(fetch_from_service=AsyncMock(return_value=[X]), cache_dir=tmp_path)

        task = store.initialize()
        assert store.state == Loading()

        await task
        assert store.items == [X]

    async def test_idempotent(self, tmp_path):
        fetch = AsyncMock(return_value=[X])
        store = NoteStore(fetch_from_service=fetch, cache_dir=tmp_path)

        await store.initialize()
        assert store.initialize() is None

        fetch.assert_awaited_once()


@pytest.mark.asyncio
class TestFetch:
    """Tests for fetch() and fetch_and_await()."""

    async def test_empty_result_keeps_loaded_items(self, tmp_path):
        store = NoteStore(fetch_from_service=AsyncMock(return_value=[X, Y]), cache_dir=tmp_path)
        await store.fetch()

        store.fetch_from_service = AsyncMock(return_value=[])
        await store.fetch()

        assert store.state == Loaded((X, Y))

    async def test_invalid_items_dropped(self, tmp_path):
        invalid = Note(id="bad", text="")
        store = NoteStore(fetch_from_service=AsyncMock(return_value=[X, invalid]), cache_dir=tmp_path)

        await store.fetch()

        assert store.items == [X]

    async def test_concurrent_fetches_coalesce(self, tmp_path):
        fetch = AsyncMock(return_value=[X])
        store = NoteStore(fetch_from_service=fetch, cache_dir=tmp_path)

        first = store.fetch()
        second = store.fetch()
        await asyncio.gather(first, second)

        assert first is second
        fetch.assert_awaited_once()

    async def test_stale_response_discarded(self, tmp_path):
        """Test an older request finishing last does not overwrite a newer result."""
        release_slow = asyncio.Event()

        async def slow():
            await release_slow.wait()
            return [X]

        store = NoteStore(fetch_from_service=slow, cache_dir=tmp_path)
        older = store.fetch()

        store.fetch_from_service = AsyncMock(return_value=[Y])
        await store.fetch(force=True)
        release_slow.set()
        await older

        assert store.items == [Y]

    async def test_fetch_and_await_restores_items_on_failure(self, tmp_path):
        store = NoteStore(fetch_from_service=AsyncMock(return_value=[X]), cache_dir=tmp_path)
        await store.fetch()
        store.fetch_from_service = AsyncMock(side_effect=OSError("offline"))

        state = await store.fetch_and_await()

        assert state == Loaded((X,))

    async def test_fetch_and_await_shows_loading_until_resolved(self, tmp_path):
        """Test the store reads Loading while the awaited fetch is pending."""
        release = asyncio.Event()

        async def gated():
            await release.wait()
            return [Y]

        store = NoteStore(fetch_from_service=AsyncMock(return_value=[X]), cache_dir=tmp_path)
        await store.fetch()
        store.fetch_from_service = gated

        pending = asyncio.ensure_future(store.fetch_and_await())
        await asyncio.sleep(0)
        assert store.state == Loading()

        release.set()
        assert await pending == Loaded((Y,))

    async def test_fetch_and_await_returns_new_state(self, tmp_path):
        store = NoteStore(fetch_from_service=AsyncMock(return_value=[X, Y]), cache_dir=tmp_path)

        state = await store.fetch_and_await()

        assert state == Loaded((X, Y))


class TestInsert:
    """Tests for insert()."""

    def test_insert_prepends_and_persists(self, tmp_path):
        store = NoteStore(fetch_from_service=AsyncMock(return_value=[]), cache_dir=tmp_path)
        store.insert(X)
        store.insert(Y)

        assert store.items[0] == Y
        reloaded = NoteStore(fetch_from_service=AsyncMock(), cache_dir=tmp_path)
        assert reloaded.cache.read() == store.items

    def test_insert_seeds_unloaded_store(self, tmp_path):
        store = NoteStore(fetch_from_service=AsyncMock(), cache_dir=tmp_path)
        assert store.state == Empty()

        store.insert(Z)

        assert store.state == Loaded((Z,))

    def test_insert_replaces_same_id(self, tmp_path):
        store = NoteStore(fetch_from_service=AsyncMock(), cache_dir=tmp_path)
        store.insert(X)
        store.insert(Y)

        edited = Note(id="x", text="edited")
        store.insert(edited)

        assert store.items == [edited, Y]

    def test_insert_rejects_invalid(self, tmp_path):
        store = NoteStore(fetch_from_service=AsyncMock(), cache_dir=tmp_path)

        with pytest.raises(ValueError):
            store.insert(Note(id="", text="orphan"))


class RealUserNoteStore(NoteStore):
    requires_real_user = True


class SignedInNoteStore(NoteStore):
    requires_sign_in = True


@pytest.mark.asyncio
class TestBindToSession:
    """Tests for binding gated stores to the sign-in event."""

    async def test_real_user_store_skips_anonymous(self, tmp_path):
        events = SessionEvents()
        session = SimpleNamespace(events=events, is_signed_in=True, is_real_user=False)
        fetch = AsyncMock(return_value=[X])
        store = RealUserNoteStore(fetch_from_service=fetch, cache_dir=tmp_path)
        bind_to_session(store, session)

        events.emit_signed_in()

        assert store.state == Empty()
        fetch.assert_not_awaited()

    async def test_signed_in_store_initializes_then_refreshes(self, tmp_path):
        events = SessionEvents()
        session = SimpleNamespace(events=events, is_signed_in=True, is_real_user=False)
        fetch = AsyncMock(return_value=[X])
        store = SignedInNoteStore(fetch_from_service=fetch, cache_dir=tmp_path)
        bind_to_session(store, session)

        events.emit_signed_in()
        assert store.state == Loading()
        await store.fetch()

        store.fetch_from_service = AsyncMock(return_value=[Y])
        events.emit_signed_in()
        await store.fetch()

        assert store.items == [Y]

    async def test_sign_out_keeps_items(self, tmp_path):
        events = SessionEvents()
        session = SimpleNamespace(events=events, is_signed_in=True, is_real_user=True)
        store = RealUserNoteStore(fetch_from_service=AsyncMock(return_value=[X]), cache_dir=tmp_path)
        bind_to_session(store, session)
        events.emit_signed_in()
        await store.fetch()

        events.emit_signed_out()

        assert store.items == [X]
