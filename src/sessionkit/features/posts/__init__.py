"""Public comments and private messages."""

from src.sessionkit.features.posts.models import (
    ConversationPartner,
    PostCandidate,
    PrivateMessage,
    PublicComment,
)
from src.sessionkit.features.posts.store import PrivateMessageStore, PublicCommentStore

__all__ = [
    "PublicCommentStore",
    "PrivateMessageStore",
    "PublicComment",
    "PrivateMessage",
    "PostCandidate",
    "ConversationPartner",
]
