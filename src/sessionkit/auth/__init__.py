"""Authentication session: identity and profile lifecycle."""

from src.sessionkit.auth.exceptions import (
    IdentityConflictError,
    IdentityNotFoundError,
    InputValidationError,
    PasswordChangeError,
    ProfileFetchError,
    ProfileIncompleteError,
    ReauthenticationError,
    RemoteDataError,
    RemoteError,
    SessionError,
)
from src.sessionkit.auth.models import (
    Credentials,
    Identity,
    Profile,
    ProfileCandidate,
    SessionUser,
    UserKey,
)

__all__ = [
    "SessionError",
    "InputValidationError",
    "IdentityNotFoundError",
    "IdentityConflictError",
    "ProfileIncompleteError",
    "ProfileFetchError",
    "RemoteError",
    "RemoteDataError",
    "ReauthenticationError",
    "PasswordChangeError",
    "Credentials",
    "Identity",
    "Profile",
    "ProfileCandidate",
    "SessionUser",
    "UserKey",
]
