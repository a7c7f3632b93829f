"""Supabase Auth implementation of the identity platform contract."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from supabase import Client

from src.sessionkit.auth.connectors import AuthConnector, IdentityListener
from src.sessionkit.auth.exceptions import RemoteDataError
from src.sessionkit.auth.models import Identity
from src.sessionkit.services.supabase.errors import translate_auth_error

logger = logging.getLogger(__name__)

# Auth state events that can change which identity is signed in
_IDENTITY_EVENTS = frozenset({"INITIAL_SESSION", "SIGNED_IN", "SIGNED_OUT", "USER_UPDATED"})


def identity_from_user(user: Any, linked: bool = False) -> Identity:
    """
    Build an Identity from a Supabase user.

    Args:
        user: supabase_auth User
        linked: True right after an email credential was attached to an anonymous user

    Returns:
        Identity for the user
    """
    return Identity(
        uid=user.id,
        email=user.email or getattr(user, "new_email", None) or "",
        phone_number=user.phone or None,
        is_anonymous=False if linked else bool(getattr(user, "is_anonymous", False)),
        is_email_verified=user.email_confirmed_at is not None,
    )


class SupabaseAuthConnector(AuthConnector):
    """
    Identity platform backed by Supabase Auth.

    The supabase client is synchronous, so every call runs in a worker thread.
    Auth state callbacks fire on that worker thread and are handed back to the
    event loop that registered the listener.

    Example:
        >>> connector = SupabaseAuthConnector(get_supabase_client())
        >>> identity = await connector.sign_in("user@example.com", "secret")
    """

    def __init__(self, client: Client):
        self.client = client
        self._listeners: list[tuple[asyncio.AbstractEventLoop, IdentityListener]] = []
        self._subscribed = False

    def current_identity(self) -> Identity | None:
        session = self.client.auth.get_session()
        if session is None or session.user is None:
            return None
        return identity_from_user(session.user)

    def add_identity_listener(self, listener: IdentityListener) -> None:
        self._listeners.append((asyncio.get_running_loop(), listener))
        if not self._subscribed:
            self.client.auth.on_auth_state_change(self._on_auth_state_change)
            self._subscribed = True

    def _on_auth_state_change(self, event: Any, session: Any) -> None:
        event_name = getattr(event, "value", event)
        if event_name not in _IDENTITY_EVENTS:
            return

        identity = identity_from_user(session.user) if session is not None and session.user else None
        logger.debug(
            f"Auth state change {event_name}",
            extra={"uid": identity.uid if identity else None},
        )
        for loop, listener in self._listeners:
            loop.call_soon_threadsafe(listener, identity)

    async def sign_in_anonymously(self) -> Identity:
        response = await self._call("anonymous sign-in", self.client.auth.sign_in_anonymously)
        return self._identity_from_response(response, "anonymous sign-in")

    async def sign_in(self, email: str, password: str) -> Identity:
        response = await self._call(
            "sign-in",
            self.client.auth.sign_in_with_password,
            {"email": email, "password": password},
        )
        return self._identity_from_response(response, "sign-in")

    async def create_identity(self, email: str, password: str) -> Identity:
        response = await self._call(
            "account creation",
            self.client.auth.sign_up,
            {"email": email, "password": password},
        )
        return self._identity_from_response(response, "account creation")

    async def link_anonymous(self, email: str, password: str) -> Identity:
        response = await self._call(
            "account link",
            self.client.auth.update_user,
            {"email": email, "password": password},
        )
        return self._identity_from_response(response, "account link", linked=True)

    async def reauthenticate(self, email: str, password: str) -> None:
        await self._call(
            "reauthentication",
            self.client.auth.sign_in_with_password,
            {"email": email, "password": password},
        )

    async def update_password(self, new_password: str) -> None:
        await self._call("password update", self.client.auth.update_user, {"password": new_password})

    async def send_password_reset(self, email: str) -> None:
        await self._call("password reset", self.client.auth.reset_password_for_email, email)

    async def send_verification_email(self, email: str) -> None:
        await self._call(
            "verification email",
            self.client.auth.resend,
            {"type": "signup", "email": email},
        )

    async def reload_identity(self) -> Identity:
        response = await self._call("identity reload", self.client.auth.get_user)
        if response is None or response.user is None:
            raise RemoteDataError("No signed-in user to reload")
        return identity_from_user(response.user)

    async def sign_out(self) -> None:
        await self._call("sign-out", self.client.auth.sign_out)

    async def _call(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as e:
            raise translate_auth_error(e, operation) from e

    @staticmethod
    def _identity_from_response(response: Any, operation: str, linked: bool = False) -> Identity:
        user = getattr(response, "user", None)
        if user is None:
            raise RemoteDataError(f"{operation} returned no user")
        return identity_from_user(user, linked=linked)
