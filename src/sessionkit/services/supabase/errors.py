"""Translation of Supabase auth failures into session errors."""

import logging

from supabase import AuthApiError, AuthError

from src.sessionkit.auth.exceptions import (
    IdentityConflictError,
    IdentityNotFoundError,
    RemoteError,
    SessionError,
)

logger = logging.getLogger(__name__)

# Supabase reports wrong password and unknown email alike as invalid_credentials
NOT_FOUND_CODES = frozenset({"user_not_found", "invalid_credentials"})
CONFLICT_CODES = frozenset({"email_exists", "user_already_exists", "identity_already_exists", "phone_exists"})


def translate_auth_error(error: Exception, operation: str) -> SessionError:
    """
    Map an auth platform failure to the session error taxonomy.

    Args:
        error: Exception raised by the Supabase client
        operation: Short operation name for messages and logs

    Returns:
        Session error to raise (callers chain it with `from error`)
    """
    code = getattr(error, "code", None) if isinstance(error, AuthApiError) else None

    if code in NOT_FOUND_CODES:
        return IdentityNotFoundError(f"{operation}: no account matches these credentials")
    if code in CONFLICT_CODES:
        return IdentityConflictError(f"{operation}: this email is already in use")

    if isinstance(error, AuthError):
        logger.warning(
            f"Auth platform rejected {operation}: {error}",
            extra={"error_type": "auth_api_error", "code": code},
        )
        return RemoteError(f"{operation} failed: {error}")

    logger.error(
        f"Unexpected failure during {operation}: {error}",
        exc_info=error,
        extra={"error_type": "auth_unexpected_error"},
    )
    return RemoteError(f"{operation} failed, please try again")
