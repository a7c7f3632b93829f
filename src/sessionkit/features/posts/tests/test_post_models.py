"""Tests for post models and remote row mapping."""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import TypeAdapter

from src.sessionkit.auth.models import UserKey
from src.sessionkit.features.posts.models import (
    BLANK_USER_ID,
    MessageStatusCode,
    PostRow,
    PrivateMessage,
    PublicComment,
    make_post,
)

post_row = TypeAdapter(PostRow)


def row(kind: str, **overrides) -> dict:
    data = {
        "kind": kind,
        "id": str(uuid4()),
        "create_timestamp": "2026-01-01T12:00:00+00:00",
        "create_user_id": "A",
        "create_user_display_name": "Alice",
        "to_user_id": "B",
        "to_user_display_name": "Bob",
        "title": "Hello",
        "content": "First post",
    }
    data.update(overrides)
    return data


class TestMakePost:
    """Tests for mapping tagged rows to posts."""

    def test_comment_row(self):
        post = make_post(post_row.validate_python(row("comment")))

        assert isinstance(post, PublicComment)
        assert post.from_user == UserKey(uid="A", display_name="Alice")
        assert post.subject == "Hello"
        assert post.timestamp == datetime(2026, 1, 1, 12, tzinfo=UTC)

    def test_message_row_with_statuses(self):
        data = row("message", statuses=[{"uid": "B", "status": "read"}, {"uid": "B", "status": "bogus"}])

        post = make_post(post_row.validate_python(data))

        assert isinstance(post, PrivateMessage)
        assert [s.status for s in post.status_history] == [MessageStatusCode.READ, MessageStatusCode.ERROR]

    def test_missing_recipient_is_blank_user(self):
        post = make_post(post_row.validate_python(row("comment", to_user_id=None, to_user_display_name=None)))

        assert post.to_user.uid == BLANK_USER_ID
        assert post.to_user.display_name == ""
        assert post.is_valid


class TestValidity:
    """Tests for post validity rules."""

    def test_private_message_needs_valid_recipient(self):
        post = make_post(post_row.validate_python(row("message", to_user_display_name="")))

        assert not post.is_valid

    def test_blank_content_invalid(self):
        post = make_post(post_row.validate_python(row("comment", content="   ")))

        assert not post.is_valid
