"""Custom exceptions for the authentication session and its remote collaborators."""


class SessionError(Exception):
    """Base exception for all session-layer errors."""

    pass


class InputValidationError(SessionError):
    """Raised before any I/O when a caller supplies empty, oversized or restricted input."""

    pass


class IdentityNotFoundError(SessionError):
    """Raised when sign-in finds no identity; callers should offer account creation."""

    pass


class IdentityConflictError(SessionError):
    """Raised when a credential or email is already in use by another identity."""

    pass


class ProfileIncompleteError(SessionError):
    """
    Raised when an identity exists but its profile could not be created or loaded.

    Recoverable: the caller routes the user to profile completion instead of
    treating the account as failed. The underlying failure is kept as __cause__.
    """

    pass


class ProfileFetchError(ProfileIncompleteError):
    """Raised when the profile for a signed-in identity cannot be loaded."""

    pass


class RemoteError(SessionError):
    """Raised when the remote platform is unavailable or fails unexpectedly."""

    pass


class RemoteDataError(RemoteError):
    """Raised when the remote platform returns missing, duplicate or invalid records."""

    pass


class ReauthenticationError(SessionError):
    """Raised when re-authentication with the current password fails."""

    pass


class PasswordChangeError(SessionError):
    """Raised when the password update fails after a successful re-authentication."""

    pass
