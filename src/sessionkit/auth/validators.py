"""Pre-I/O input validation for account operations."""

from src.sessionkit.auth.exceptions import InputValidationError
from src.sessionkit.config import settings
from src.sessionkit.moderation.content_filter import ContentFilter

RESTRICTED_DISPLAY_NAME = (
    "Display Name matched one or more keywords on our Restricted Text List. Please adjust."
)


def validate_sign_in(email: str, password: str) -> None:
    """
    Validate sign-in fields.

    Raises:
        InputValidationError: If email or password is empty
    """
    if not email:
        raise InputValidationError("Please enter a sign-in email")
    if not password:
        raise InputValidationError("Please re-enter a password")


def validate_passwords_match(password: str, password_confirmation: str) -> None:
    if not password or not password_confirmation:
        raise InputValidationError("Complete both password fields with the same password")
    if password != password_confirmation:
        raise InputValidationError("Passwords don't match, please try again")


def validate_display_name(display_name: str, content_filter: ContentFilter | None = None) -> None:
    """
    Validate a chosen display name.

    Args:
        display_name: Proposed display name
        content_filter: Restricted-text matcher consulted when provided

    Raises:
        InputValidationError: If empty, too long, or restricted
    """
    if not display_name:
        raise InputValidationError("Please enter your display name")
    if len(display_name) > settings.display_name_max_length:
        raise InputValidationError("Display Name is too long")
    if content_filter is not None and content_filter.contains(display_name):
        raise InputValidationError(RESTRICTED_DISPLAY_NAME)


def validate_new_account(
    email: str,
    password: str,
    password_confirmation: str,
    display_name: str,
    content_filter: ContentFilter | None = None,
) -> None:
    """Validate every field of the create-account form, first failure wins."""
    if not email:
        raise InputValidationError("Please enter a sign-in email")
    validate_passwords_match(password, password_confirmation)
    validate_display_name(display_name, content_filter)


def validate_password_reset(email: str) -> None:
    if not email:
        raise InputValidationError("Please enter a sign-in email")


def validate_password_change(old_password: str, new_password: str, confirmation: str | None = None) -> None:
    """
    Validate the change-password form.

    Raises:
        InputValidationError: If the current password is missing or the new ones disagree
    """
    if not old_password:
        raise InputValidationError("Please enter your current password")
    validate_passwords_match(new_password, new_password if confirmation is None else confirmation)
