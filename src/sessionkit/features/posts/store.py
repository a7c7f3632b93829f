"""Stores for public comments and private messages."""

import logging

from src.sessionkit.features.posts.connectors import PostsConnector
from src.sessionkit.features.posts.models import PostCandidate, PrivateMessage, PublicComment
from src.sessionkit.features.posts.validators import validate_message, validate_post
from src.sessionkit.moderation.content_filter import ContentFilter
from src.sessionkit.stores.base import LoadableStore

logger = logging.getLogger(__name__)


class PublicCommentStore(LoadableStore[PublicComment]):
    """Public comments, loaded for any signed-in identity (anonymous included)."""

    item_type = PublicComment
    cache_filename = "public_comments.json"
    requires_sign_in = True

    def __init__(self, connector: PostsConnector, content_filter: ContentFilter | None = None, **kwargs):
        super().__init__(fetch_from_service=connector.fetch_public_comments, **kwargs)
        self.connector = connector
        self.content_filter = content_filter

    async def create_public_comment(self, candidate: PostCandidate) -> PublicComment:
        """
        Create a comment remotely, then insert it locally.

        Raises:
            InputValidationError: If the candidate fails validation
            SessionError: If the remote create fails
        """
        validate_post(candidate, self.content_filter)
        try:
            comment = await self.connector.create_public_comment(candidate)
        except Exception as e:
            logger.error(
                f"Failed to create public comment: {e}",
                extra={"error_type": "comment_create_failed"},
            )
            raise

        self.insert(comment)
        return comment


class PrivateMessageStore(LoadableStore[PrivateMessage]):
    """The current user's private messages, loaded only for real users."""

    item_type = PrivateMessage
    cache_filename = "private_messages.json"
    requires_real_user = True

    def __init__(self, connector: PostsConnector, content_filter: ContentFilter | None = None, **kwargs):
        super().__init__(fetch_from_service=connector.fetch_my_private_messages, **kwargs)
        self.connector = connector
        self.content_filter = content_filter

    async def create_private_message(self, candidate: PostCandidate) -> PrivateMessage:
        """
        Send a message remotely, then insert it locally.

        Raises:
            InputValidationError: If the candidate fails validation
            SessionError: If the remote create fails
        """
        validate_message(candidate, self.content_filter)
        try:
            message = await self.connector.create_private_message(candidate)
        except Exception as e:
            logger.error(
                f"Failed to create private message: {e}",
                extra={"error_type": "message_create_failed"},
            )
            raise

        self.insert(message)
        return message

    def messages_with(self, current_uid: str, partner_uid: str) -> list[PrivateMessage]:
        """Messages exchanged between two users, oldest first."""
        pair = {current_uid, partner_uid}
        conversation = [
            message
            for message in self.items
            if {message.from_user.uid, message.to_user.uid} == pair
        ]
        return sorted(conversation, key=lambda m: m.timestamp)
