"""Abstract contracts for the remote identity and profile platform."""

from abc import ABC, abstractmethod
from collections.abc import Callable

from src.sessionkit.auth.models import Identity, Profile, ProfileCandidate

IdentityListener = Callable[[Identity | None], None]


class AuthConnector(ABC):
    """
    Abstract identity platform.

    Implementations translate platform failures into the session error taxonomy:
    IdentityNotFoundError for unknown accounts, IdentityConflictError for
    credentials already in use, RemoteError for everything else.
    """

    @abstractmethod
    def current_identity(self) -> Identity | None:
        """Return the identity the platform currently holds, or None."""
        pass

    @abstractmethod
    def add_identity_listener(self, listener: IdentityListener) -> None:
        """
        Register a callback invoked whenever the signed-in identity changes.

        The callback receives None when the platform no longer holds an identity.
        Same-uid transitions (anonymous link) are not guaranteed to notify.
        """
        pass

    @abstractmethod
    async def sign_in_anonymously(self) -> Identity:
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Identity:
        pass

    @abstractmethod
    async def create_identity(self, email: str, password: str) -> Identity:
        pass

    @abstractmethod
    async def link_anonymous(self, email: str, password: str) -> Identity:
        """Attach an email credential to the current anonymous identity, keeping its uid."""
        pass

    @abstractmethod
    async def reauthenticate(self, email: str, password: str) -> None:
        pass

    @abstractmethod
    async def update_password(self, new_password: str) -> None:
        pass

    @abstractmethod
    async def send_password_reset(self, email: str) -> None:
        pass

    @abstractmethod
    async def send_verification_email(self, email: str) -> None:
        pass

    @abstractmethod
    async def reload_identity(self) -> Identity:
        """Refresh the identity from the platform (e.g. to pick up email verification)."""
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass


class ProfileConnector(ABC):
    """Abstract profile record store, keyed by identity uid."""

    @abstractmethod
    async def fetch_my_profile(self, uid: str) -> Profile:
        pass

    @abstractmethod
    async def create_profile(self, candidate: ProfileCandidate, display_name_text: str) -> Profile:
        """
        Create the profile record.

        display_name_text is the initial, always-available display text (the
        sign-in email); the chosen display name is applied afterwards.
        """
        pass

    @abstractmethod
    async def create_display_name(self, display_name: str) -> None:
        pass

    @abstractmethod
    async def set_display_name(self, display_name: str) -> None:
        pass

    @abstractmethod
    async def update_profile(self, profile: Profile) -> None:
        pass
