"""Directed post models (public comments, private messages) and remote row shapes."""

from datetime import datetime
from enum import Enum
from typing import Annotated, ClassVar, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.sessionkit.auth.models import UserKey
from src.sessionkit.stores.listable import Listable

BLANK_USER_ID = "00000000-0000-0000-0000-000000000000"


class MessageStatusCode(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    READ = "read"
    ARCHIVED = "archived"
    DELETED = "deleted"
    ERROR = "error"


class MessageStatus(BaseModel):
    """One entry in a private message's status history."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime | None = None
    uid: str
    status: MessageStatusCode

    @field_validator("status", mode="before")
    @classmethod
    def unknown_status_is_error(cls, value):
        if isinstance(value, MessageStatusCode):
            return value
        try:
            return MessageStatusCode(value)
        except ValueError:
            return MessageStatusCode.ERROR


class Post(Listable):
    """
    Directed post from one user to another (or to everyone).

    id and timestamp are assigned by the remote create and never change.
    """

    model_config = ConfigDict(frozen=True)

    type_display_name: ClassVar[str] = "Post"

    id: UUID
    timestamp: datetime
    from_user: UserKey
    to_user: UserKey
    subject: str = ""
    content: str
    references: frozenset[UUID] = frozenset()

    @property
    def is_valid(self) -> bool:
        return bool(self.content.strip()) and self.from_user.is_valid

    @classmethod
    def type_description(cls) -> str:
        return cls.type_display_name


class PublicComment(Post):
    """One-to-everyone post; `to_user` is set for replies or callouts."""

    type_display_name: ClassVar[str] = "Comment"


class PrivateMessage(Post):
    """One-to-one post."""

    type_display_name: ClassVar[str] = "Message"

    status_history: tuple[MessageStatus, ...] = ()

    @property
    def is_valid(self) -> bool:
        return super().is_valid and self.to_user.is_valid


class PostCandidate(BaseModel):
    """Proposed post before the remote create assigns its id and timestamp."""

    from_user: UserKey
    to_user: UserKey = Field(default_factory=UserKey.blank)
    subject: str = ""
    content: str
    references: frozenset[UUID] = frozenset()

    @property
    def is_valid(self) -> bool:
        return bool(self.content.strip()) and self.from_user.is_valid


class ConversationPartner(BaseModel):
    """The other party of a conversation and its latest activity."""

    model_config = ConfigDict(frozen=True)

    user_key: UserKey
    last_message_at: datetime


# ***** Remote row shapes *****


class _PostRowBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: UUID
    create_timestamp: datetime
    create_user_id: str
    create_user_display_name: str = ""
    to_user_id: str | None = None
    to_user_display_name: str | None = None
    title: str = ""
    content: str


class CommentRow(_PostRowBase):
    kind: Literal["comment"] = "comment"


class MessageRow(_PostRowBase):
    kind: Literal["message"] = "message"

    statuses: list[MessageStatus] = Field(default_factory=list)


PostRow = Annotated[CommentRow | MessageRow, Field(discriminator="kind")]


def make_post(row: CommentRow | MessageRow) -> PublicComment | PrivateMessage:
    """
    Map a remote row to its local post type.

    A missing recipient becomes the blank user key.
    """
    fields = {
        "id": row.id,
        "timestamp": row.create_timestamp,
        "from_user": UserKey(uid=row.create_user_id, display_name=row.create_user_display_name),
        "to_user": UserKey(
            uid=row.to_user_id or BLANK_USER_ID,
            display_name=row.to_user_display_name or "",
        ),
        "subject": row.title,
        "content": row.content,
    }
    match row:
        case CommentRow():
            return PublicComment(**fields)
        case MessageRow(statuses=statuses):
            return PrivateMessage(**fields, status_history=tuple(statuses))
