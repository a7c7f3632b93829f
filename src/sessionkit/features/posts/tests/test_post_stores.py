"""Tests for the public comment and private message stores."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, create_autospec
from uuid import uuid4

import pytest

from src.sessionkit.auth.exceptions import InputValidationError, RemoteError
from src.sessionkit.auth.models import UserKey
from src.sessionkit.features.posts.connectors import PostsConnector
from src.sessionkit.features.posts.models import PostCandidate, PrivateMessage, PublicComment
from src.sessionkit.features.posts.store import PrivateMessageStore, PublicCommentStore
from src.sessionkit.moderation.content_filter import ContentFilter

T0 = datetime(2026, 1, 1, tzinfo=UTC)

ALICE = UserKey(uid="A", display_name="Alice")
BOB = UserKey(uid="B", display_name="Bob")
CAROL = UserKey(uid="C", display_name="Carol")


def comment(content: str, minutes: int = 0) -> PublicComment:
    return PublicComment(
        id=uuid4(),
        timestamp=T0 + timedelta(minutes=minutes),
        from_user=ALICE,
        to_user=UserKey.blank(),
        content=content,
    )


def message(sender: UserKey, recipient: UserKey, minutes: int) -> PrivateMessage:
    return PrivateMessage(
        id=uuid4(),
        timestamp=T0 + timedelta(minutes=minutes),
        from_user=sender,
        to_user=recipient,
        content=f"message at {minutes}",
    )


@pytest.fixture
def connector():
    """Provide a mock posts connector with empty remote collections."""
    connector = create_autospec(PostsConnector, instance=True)
    connector.fetch_public_comments = AsyncMock(return_value=[])
    connector.fetch_my_private_messages = AsyncMock(return_value=[])
    connector.create_public_comment = AsyncMock()
    connector.create_private_message = AsyncMock()
    return connector


@pytest.mark.asyncio
class TestPublicCommentStore:
    """Tests for PublicCommentStore."""

    async def test_fetch_uses_connector(self, connector, tmp_path):
        remote = [comment("hello", 1)]
        connector.fetch_public_comments.return_value = remote
        store = PublicCommentStore(connector, cache_dir=tmp_path)

        await store.initialize()

        assert store.items == remote
        assert (tmp_path / "public_comments.json").exists()

    async def test_create_inserts_on_success(self, connector, tmp_path):
        existing = comment("first", 1)
        created = comment("second", 2)
        connector.fetch_public_comments.return_value = [existing]
        connector.create_public_comment.return_value = created
        store = PublicCommentStore(connector, cache_dir=tmp_path)
        await store.fetch()

        result = await store.create_public_comment(PostCandidate(from_user=ALICE, content="second"))

        assert result == created
        assert store.items == [created, existing]

    async def test_create_failure_leaves_store_untouched(self, connector, tmp_path):
        connector.create_public_comment.side_effect = RemoteError("insert failed")
        store = PublicCommentStore(connector, cache_dir=tmp_path)

        with pytest.raises(RemoteError):
            await store.create_public_comment(PostCandidate(from_user=ALICE, content="hi"))

        assert store.items == []

    async def test_restricted_comment_never_sent(self, connector, tmp_path):
        content_filter = ContentFilter()
        content_filter.enable_with_bundled()
        store = PublicCommentStore(connector, content_filter=content_filter, cache_dir=tmp_path)

        with pytest.raises(InputValidationError):
            await store.create_public_comment(PostCandidate(from_user=ALICE, content="a badword here"))

        connector.create_public_comment.assert_not_awaited()


@pytest.mark.asyncio
class TestPrivateMessageStore:
    """Tests for PrivateMessageStore."""

    async def test_create_private_message(self, connector, tmp_path):
        sent = message(ALICE, BOB, 1)
        connector.create_private_message.return_value = sent
        store = PrivateMessageStore(connector, cache_dir=tmp_path)

        await store.create_private_message(PostCandidate(from_user=ALICE, to_user=BOB, content="hi"))

        assert store.items == [sent]

    async def test_message_without_recipient_rejected(self, connector, tmp_path):
        store = PrivateMessageStore(connector, cache_dir=tmp_path)

        with pytest.raises(InputValidationError):
            await store.create_private_message(PostCandidate(from_user=ALICE, content="hi"))

        connector.create_private_message.assert_not_awaited()

    async def test_messages_with_partner(self, connector, tmp_path):
        a_to_b = message(ALICE, BOB, 1)
        c_to_a = message(CAROL, ALICE, 2)
        b_to_a = message(BOB, ALICE, 3)
        connector.fetch_my_private_messages.return_value = [b_to_a, c_to_a, a_to_b]
        store = PrivateMessageStore(connector, cache_dir=tmp_path)
        await store.fetch()

        assert store.messages_with("A", "B") == [a_to_b, b_to_a]
        assert store.messages_with("A", "C") == [c_to_a]
        assert store.messages_with("B", "C") == []

    async def test_invalid_remote_messages_dropped(self, connector, tmp_path):
        valid = message(ALICE, BOB, 1)
        no_recipient = message(ALICE, UserKey.blank(), 2)
        connector.fetch_my_private_messages.return_value = [valid, no_recipient]
        store = PrivateMessageStore(connector, cache_dir=tmp_path)

        await store.fetch()

        assert store.items == [valid]
