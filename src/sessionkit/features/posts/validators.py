"""Pre-I/O validation for post and message candidates."""

from src.sessionkit.auth.exceptions import InputValidationError
from src.sessionkit.features.posts.models import PostCandidate
from src.sessionkit.moderation.content_filter import ContentFilter

MAX_SUBJECT_LENGTH = 200
MAX_CONTENT_LENGTH = 2000

RESTRICTED_POST_TEXT = "Text matched one or more keywords on our Restricted Text List. Please adjust."


def validate_post(candidate: PostCandidate, content_filter: ContentFilter | None = None) -> None:
    """
    Validate a post candidate before it is sent.

    Args:
        candidate: Proposed post
        content_filter: Restricted-text matcher consulted for subject and content

    Raises:
        InputValidationError: If the post is empty, too long, unsigned or restricted
    """
    if not candidate.content.strip():
        raise InputValidationError("Please enter some text")
    if len(candidate.content) > MAX_CONTENT_LENGTH:
        raise InputValidationError("Text is too long")
    if len(candidate.subject) > MAX_SUBJECT_LENGTH:
        raise InputValidationError("Title is too long")
    if not candidate.from_user.is_valid:
        raise InputValidationError("Sign in with a display name to post")

    if content_filter is not None and (
        content_filter.contains(candidate.subject) or content_filter.contains(candidate.content)
    ):
        raise InputValidationError(RESTRICTED_POST_TEXT)


def validate_message(candidate: PostCandidate, content_filter: ContentFilter | None = None) -> None:
    """Validate a private message: a post that also needs a valid recipient."""
    validate_post(candidate, content_filter)
    if not candidate.to_user.is_valid:
        raise InputValidationError("Please choose who to send the message to")
    if candidate.to_user.uid == candidate.from_user.uid:
        raise InputValidationError("You cannot send a message to yourself")
