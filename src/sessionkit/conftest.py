"""Pytest configuration and shared fixtures."""

import pytest

from src.sessionkit.auth.connectors import AuthConnector, ProfileConnector
from src.sessionkit.auth.events import SessionEvents
from src.sessionkit.auth.exceptions import IdentityConflictError, IdentityNotFoundError, RemoteDataError
from src.sessionkit.auth.models import Identity, Profile, ProfileCandidate
from src.sessionkit.auth.session import AuthSession


class FakeAuthConnector(AuthConnector):
    """
    In-memory identity platform.

    Accounts are keyed by email. Listeners are notified synchronously, except
    after link_anonymous (same-uid transitions) or when notify_listeners is off.
    Set `failures[operation]` to make an operation raise.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str, str]] = {}
        self.verified_emails: set[str] = set()
        self.current: Identity | None = None
        self.listeners = []
        self.notify_listeners = True
        self.failures: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.verification_emails: list[str] = []
        self.password_resets: list[str] = []
        self._next_uid = 0

    def add_account(self, email: str, password: str, uid: str | None = None) -> str:
        uid = uid or self._new_uid()
        self.accounts[email] = (password, uid)
        return uid

    def current_identity(self) -> Identity | None:
        return self.current

    def add_identity_listener(self, listener) -> None:
        self.listeners.append(listener)

    async def sign_in_anonymously(self) -> Identity:
        self._record("sign_in_anonymously")
        identity = Identity(uid=self._new_uid(), is_anonymous=True)
        self._set_current(identity)
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        self._record("sign_in")
        uid = self._check(email, password)
        identity = self._identity(email, uid)
        self._set_current(identity)
        return identity

    async def create_identity(self, email: str, password: str) -> Identity:
        self._record("create_identity")
        if email in self.accounts:
            raise IdentityConflictError("email already in use")
        uid = self.add_account(email, password)
        identity = self._identity(email, uid)
        self._set_current(identity)
        return identity

    async def link_anonymous(self, email: str, password: str) -> Identity:
        self._record("link_anonymous")
        if email in self.accounts:
            raise IdentityConflictError("email already in use")
        uid = self.current.uid
        self.add_account(email, password, uid=uid)
        identity = self._identity(email, uid)
        self.current = identity
        return identity

    async def reauthenticate(self, email: str, password: str) -> None:
        self._record("reauthenticate")
        self._check(email, password)

    async def update_password(self, new_password: str) -> None:
        self._record("update_password")
        email = self.current.email
        self.accounts[email] = (new_password, self.accounts[email][1])

    async def send_password_reset(self, email: str) -> None:
        self._record("send_password_reset")
        self.password_resets.append(email)

    async def send_verification_email(self, email: str) -> None:
        self._record("send_verification_email")
        self.verification_emails.append(email)

    async def reload_identity(self) -> Identity:
        self._record("reload_identity")
        self.current = self._identity(self.current.email, self.current.uid)
        return self.current

    async def sign_out(self) -> None:
        self._record("sign_out")
        self._set_current(None)

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failures:
            raise self.failures[operation]

    def _check(self, email: str, password: str) -> str:
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise IdentityNotFoundError("no account matches these credentials")
        return account[1]

    def _identity(self, email: str, uid: str) -> Identity:
        return Identity(uid=uid, email=email, is_email_verified=email in self.verified_emails)

    def _set_current(self, identity: Identity | None) -> None:
        self.current = identity
        if self.notify_listeners:
            for listener in list(self.listeners):
                listener(identity)

    def _new_uid(self) -> str:
        self._next_uid += 1
        return f"uid-{self._next_uid}"


class FakeProfileConnector(ProfileConnector):
    """In-memory profile records. Set `failures[operation]` to make an operation raise."""

    def __init__(self) -> None:
        self.profiles: dict[str, Profile] = {}
        self.display_names: list[str] = []
        self.failures: dict[str, Exception] = {}
        self.calls: list[str] = []
        self._last_uid = ""

    async def fetch_my_profile(self, uid: str) -> Profile:
        self._record("fetch_my_profile")
        if uid not in self.profiles:
            raise RemoteDataError(f"No profile found for {uid}")
        self._last_uid = uid
        return self.profiles[uid]

    async def create_profile(self, candidate: ProfileCandidate, display_name_text: str) -> Profile:
        self._record("create_profile")
        profile = Profile(uid=candidate.uid, display_name=display_name_text, photo_url=candidate.photo_url)
        self.profiles[candidate.uid] = profile
        self._last_uid = candidate.uid
        return profile

    async def create_display_name(self, display_name: str) -> None:
        self._record("create_display_name")
        self.display_names.append(display_name)

    async def set_display_name(self, display_name: str) -> None:
        self._record("set_display_name")
        profile = self.profiles[self._last_uid]
        self.profiles[self._last_uid] = profile.model_copy(update={"display_name": display_name})

    async def update_profile(self, profile: Profile) -> None:
        self._record("update_profile")
        self.profiles[profile.uid] = profile

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failures:
            raise self.failures[operation]


@pytest.fixture
def fake_auth() -> FakeAuthConnector:
    """Provide an in-memory identity platform."""
    return FakeAuthConnector()


@pytest.fixture
def fake_profiles() -> FakeProfileConnector:
    """Provide in-memory profile records."""
    return FakeProfileConnector()


@pytest.fixture
def session_events() -> SessionEvents:
    return SessionEvents()


@pytest.fixture
def session(fake_auth, fake_profiles, session_events) -> AuthSession:
    """
    Provide an unstarted session over the fakes.

    Email verification is required and transient flags reset immediately.

    Example:
        >>> async def test_start(session):
        >>>     session.start()
        >>>     await session.settle()
    """
    return AuthSession(
        auth=fake_auth,
        profiles=fake_profiles,
        events=session_events,
        requires_email_verification=True,
        success_reset_delay=0,
    )
