"""Authentication lifecycle state machine for the signed-in user."""

import asyncio
import logging
from collections.abc import Coroutine
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from src.sessionkit.auth.connectors import AuthConnector, ProfileConnector
from src.sessionkit.auth.events import SessionEvents
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
from src.sessionkit.auth.validators import (
    validate_password_change,
    validate_password_reset,
    validate_sign_in,
)
from src.sessionkit.config import settings
from src.sessionkit.moderation.content_filter import ContentFilter
from src.sessionkit.services.activity_log import ActivityLog

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    """Observable lifecycle phase, derived from the session flags."""

    NO_IDENTITY = "no_identity"
    ANONYMOUS = "anonymous"
    SIGNING_IN = "signing_in"
    PROFILE_INCOMPLETE = "profile_incomplete"
    UNVERIFIED = "unverified"
    VERIFIED = "verified"


class AuthSession:
    """
    Identity and profile lifecycle for the current user.

    The session always tries to hold a usable identity: when the platform reports
    no identity, it signs in anonymously. Real identities load their profile on
    sign-in; a profile that cannot be loaded leaves the session in the
    recoverable PROFILE_INCOMPLETE phase instead of failing.

    Only the session mutates its own state. Observers subscribe through
    `events` (sign-in / sign-out) or read the public attributes.

    Attributes:
        user: Current identity and profile
        error: Last failure, kept for passive observation
        warnings: Non-fatal problems from the last account saga
        events: Sign-in / sign-out callback registry

    Example:
        >>> session = AuthSession(auth=SupabaseAuthConnector(client), profiles=profiles)
        >>> session.start()
        >>> uid = await session.sign_in_existing("user@example.com", "secret")
    """

    def __init__(
        self,
        auth: AuthConnector,
        profiles: ProfileConnector,
        events: SessionEvents | None = None,
        content_filter: ContentFilter | None = None,
        activity_log: ActivityLog | None = None,
        requires_email_verification: bool | None = None,
        success_reset_delay: float | None = None,
    ):
        """
        Initialize session.

        Args:
            auth: Identity platform connector
            profiles: Profile record connector
            events: Event registry (a new one if None)
            content_filter: Restricted-text matcher for display names
            activity_log: Sink for lifecycle events
            requires_email_verification: Overrides settings when given
            success_reset_delay: Seconds before transient flags reset (settings if None)
        """
        self.auth = auth
        self.profiles = profiles
        self.events = events or SessionEvents()
        self.content_filter = content_filter
        self.activity_log = activity_log
        self.requires_email_verification = (
            settings.requires_email_verification
            if requires_email_verification is None
            else requires_email_verification
        )
        self.success_reset_delay = (
            settings.success_reset_delay_seconds if success_reset_delay is None else success_reset_delay
        )

        self.user = SessionUser.blank()

        # sign-in process
        self.is_signing_in = False
        self.is_signed_in = False

        # the identity platform masters users, so creating the identity is "creating the user"
        # even though the user is not complete until the profile exists
        self.is_creating_user = False
        self.is_creating_profile = False
        self.is_updating_profile = False
        self.is_profile_incomplete = False

        self.is_sending_verification_email = False
        self.is_checking_verification = False
        self.is_reauthenticating = False
        self.is_changing_password = False
        self.show_success = False

        self.error: BaseException | None = None
        self.warnings: list[str] = []

        self._generation = 0
        self._settling_identity: Identity | None = None
        self._signing_in_anonymously = False
        self._identity_tasks: set[asyncio.Task] = set()
        self._tasks: set[asyncio.Task] = set()
        self._started = False

    # ***** Derived state *****

    @property
    def identity(self) -> Identity:
        return self.user.identity

    @property
    def profile(self) -> Profile:
        return self.user.profile

    @property
    def user_key(self) -> UserKey:
        return UserKey(
            uid=self.identity.uid,
            display_name=self.profile.display_name,
            user_type=self.profile.user_type,
        )

    @property
    def is_real_user(self) -> bool:
        return self.is_signed_in and bool(self.identity.uid) and not self.identity.is_anonymous

    @property
    def is_verified_user(self) -> bool:
        return self.is_real_user and (
            self.identity.is_email_verified or not self.requires_email_verification
        )

    @property
    def phase(self) -> SessionPhase:
        if self.is_signing_in:
            return SessionPhase.SIGNING_IN
        if not self.is_signed_in or not self.identity.uid:
            return SessionPhase.NO_IDENTITY
        if self.identity.is_anonymous:
            return SessionPhase.ANONYMOUS
        if self.is_profile_incomplete:
            return SessionPhase.PROFILE_INCOMPLETE
        if self.is_verified_user:
            return SessionPhase.VERIFIED
        return SessionPhase.UNVERIFIED

    # ***** Listener *****

    def start(self) -> None:
        """
        Subscribe to identity changes and reconcile with the platform's current identity.

        Must be called from a running event loop. Calling it twice is a no-op.
        """
        if self._started:
            return
        self._started = True
        self.auth.add_identity_listener(self._on_identity_change)
        self._on_identity_change(self.auth.current_identity())
        logger.info("Auth session started")

    def _on_identity_change(self, identity: Identity | None) -> None:
        task = self._spawn(self.handle_identity_change(identity))
        self._identity_tasks.add(task)
        task.add_done_callback(self._identity_tasks.discard)

    async def handle_identity_change(self, identity: Identity | None) -> None:
        """
        React to the platform's signed-in identity.

        A non-empty identity loads its profile; None clears the session and
        starts an anonymous sign-in. Notifications for the identity the session
        already holds (or is already setting up) are ignored.
        """
        if identity is not None and identity.uid:
            if identity == self._settling_identity or (
                self.is_signed_in and identity == self.user.identity
            ):
                logger.debug(f"Ignoring duplicate identity notification for {identity.uid}")
                return
            self._generation += 1
            await self._post_sign_in_setup(identity, self._generation)
        else:
            self._generation += 1
            if self.is_signed_in:
                self._post_sign_out_cleanup()
            logger.debug("No current identity, attempting anonymous sign-in")
            await self._sign_in_anonymously()

    async def settle(self) -> None:
        """Wait until every identity notification received so far has been handled."""
        while self._identity_tasks:
            await asyncio.gather(*list(self._identity_tasks))

    async def wait_idle(self) -> None:
        """Wait for all background work, including scheduled flag resets."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _sign_in_anonymously(self) -> None:
        if self._signing_in_anonymously:
            return
        self._signing_in_anonymously = True
        try:
            identity = await self.auth.sign_in_anonymously()
        except Exception as e:
            logger.warning(
                f"Anonymous sign-in failed: {e}",
                exc_info=True,
                extra={"error_type": "anonymous_sign_in_failed"},
            )
            self.error = e if isinstance(e, SessionError) else RemoteError(f"Anonymous sign-in failed: {e}")
            if self.is_signed_in:
                self._post_sign_out_cleanup()
            return
        finally:
            self._signing_in_anonymously = False

        logger.debug("Anonymous sign-in completed")
        await self.handle_identity_change(identity)

    async def _post_sign_in_setup(self, identity: Identity, generation: int) -> None:
        if identity.is_anonymous:
            self._apply_signed_in(identity, Profile.blank(), incomplete=False)
            logger.info(f"Setup after anonymous sign-in ({identity.uid}); publishing sign-in")
            self.events.emit_signed_in()
            return

        if self.is_creating_user:
            self._apply_signed_in(identity, Profile.blank(), incomplete=True)
            logger.info(
                f"Setup after sign-in as part of creating user {identity.uid}; publishing sign-in"
            )
            self.events.emit_signed_in()
            return

        self._settling_identity = identity
        try:
            profile = await self.profiles.fetch_my_profile(identity.uid)
        except Exception as e:
            if generation != self._generation:
                logger.info(f"Discarding stale profile failure for {identity.uid}")
                return
            self._apply_signed_in(identity, Profile.blank(), incomplete=True)
            error = ProfileFetchError(
                f"Error retrieving user profile, some features may not work correctly: {e}"
            )
            error.__cause__ = e
            self.error = error
            logger.warning(
                f"Unable to fetch profile after sign-in; account for {identity.uid} is incomplete",
                extra={"error_type": "profile_fetch_failed", "uid": identity.uid},
            )
            self.log_activity("signed in (profile incomplete)")
            self.events.emit_signed_in()
            return
        finally:
            if self._settling_identity == identity:
                self._settling_identity = None

        if generation != self._generation:
            logger.info(f"Discarding stale profile for {identity.uid}")
            return
        self._apply_signed_in(identity, profile, incomplete=False)
        logger.info(f"Setup after sign-in ({identity.uid}); publishing sign-in")
        self.log_activity("signed in")
        self.events.emit_signed_in()

    def _apply_signed_in(self, identity: Identity, profile: Profile, incomplete: bool) -> None:
        self.user = SessionUser(identity=identity, profile=profile)
        self.is_signing_in = False
        self.is_signed_in = True
        self.is_profile_incomplete = incomplete

    def _post_sign_out_cleanup(self) -> None:
        self.user = SessionUser.blank()
        self.is_signed_in = False
        self.is_profile_incomplete = False
        logger.info("Cleaned up after sign-out; publishing sign-out")
        self.events.emit_signed_out()

    def clear_incomplete_profile(self) -> None:
        self.is_profile_incomplete = False

    # ***** Identity operations *****

    async def sign_in_existing(self, email: str, password: str) -> str:
        """
        Sign in to an existing account.

        Args:
            email: Sign-in email
            password: Account password

        Returns:
            uid of the signed-in identity

        Raises:
            InputValidationError: If email or password is empty
            IdentityNotFoundError: If no account exists (offer account creation)
            SessionError: For any other remote failure
        """
        validate_sign_in(email, password)

        self.is_signing_in = True
        try:
            identity = await self.auth.sign_in(email, password)
        except IdentityNotFoundError:
            logger.info("User not found for sign-in")
            raise
        except SessionError as e:
            logger.error(f"User sign-in error: {e}")
            self.error = e
            raise
        except Exception as e:
            logger.error(f"User sign-in error: {e}", exc_info=True)
            self.error = RemoteError(f"Sign-in failed: {e}")
            raise self.error from e
        finally:
            self.is_signing_in = False

        if not identity.uid:
            logger.warning("Sign-in returned successfully but the uid is empty")
            self.error = RemoteDataError("Completed sign in but User Id not found")

        # The listener may not fire when the uid does not change (e.g. after a link)
        current = self.user.identity
        if current.is_anonymous and current.uid == identity.uid and not identity.is_anonymous:
            await self.handle_identity_change(identity)

        return identity.uid

    async def sign_in_or_create(self, email: str, password: str) -> str:
        """
        Sign in, creating the account when it does not exist yet.

        An anonymous session first tries to link the credential to its identity so
        the uid (and anything recorded under it) survives. A conflicting credential
        falls through to ordinary sign-in; an unknown account is created.

        Returns:
            uid of the resulting identity

        Raises:
            InputValidationError: If email or password is empty
            SessionError: If linking, sign-in or creation fails
        """
        validate_sign_in(email, password)

        self.is_signing_in = True
        try:
            current = self.auth.current_identity()
            if current is not None and current.is_anonymous:
                uid = await self._link_anonymous(email, password)
                if uid is not None:
                    return uid

            try:
                identity = await self.auth.sign_in(email, password)
            except IdentityNotFoundError:
                return await self._create_identity(email, password)
            except SessionError as e:
                logger.error(f"User sign-in error: {e}")
                self.error = e
                raise
            except Exception as e:
                logger.error(f"User sign-in error: {e}", exc_info=True)
                self.error = RemoteError(f"Sign-in failed: {e}")
                raise self.error from e

            if not identity.uid:
                logger.warning("Sign-in via sign_in_or_create returned an empty uid")
                self.error = RemoteDataError("Completed sign in but User Id not found")
            return identity.uid
        finally:
            self.is_signing_in = False

    async def _link_anonymous(self, email: str, password: str) -> str | None:
        """
        Attach the credential to the anonymous identity.

        Returns:
            uid of the linked identity, or None if the email already belongs to an account
        """
        # Set before the remote call: the platform may notify the listener before link returns
        self.is_creating_user = True
        try:
            try:
                identity = await self.auth.link_anonymous(email, password)
            except IdentityConflictError:
                logger.info("Link failed (email in use), falling through to sign-in")
                return None
            except SessionError as e:
                self.error = e
                raise
            except Exception as e:
                self.error = RemoteError(f"Account link failed: {e}")
                raise self.error from e

            logger.info(f"Anonymous user linked to email account: {identity.uid}")
            await self.handle_identity_change(identity)
            return identity.uid
        finally:
            self.is_creating_user = False

    async def _create_identity(self, email: str, password: str) -> str:
        self.is_creating_user = True
        try:
            try:
                identity = await self.auth.create_identity(email, password)
            except SessionError as e:
                logger.error(f"User create error: {e}")
                self.error = e
                raise
            except Exception as e:
                logger.error(f"User create error: {e}", exc_info=True)
                self.error = RemoteError(f"User creation failed: {e}")
                raise self.error from e

            if not identity.uid:
                logger.warning("Identity creation returned successfully but the uid is empty")
                self.error = RemoteDataError("Could not complete user create process, please try again")
                raise self.error

            await self.handle_identity_change(identity)
            return identity.uid
        finally:
            self.is_creating_user = False

    async def reset_password(self, email: str) -> None:
        """Ask the platform to send a password-reset email."""
        validate_password_reset(email)
        try:
            await self.auth.send_password_reset(email)
        except SessionError as e:
            logger.error(f"Reset password error: {e}")
            self.error = e
            raise
        except Exception as e:
            logger.error(f"Reset password error: {e}", exc_info=True)
            self.error = RemoteError(f"Password reset failed: {e}")
            raise self.error from e

    async def change_password(
        self, old_password: str, new_password: str, confirmation: str | None = None
    ) -> None:
        """
        Change the password after re-authenticating with the current one.

        Raises:
            InputValidationError: If fields are missing or the session has no real user
            ReauthenticationError: If the current password is rejected
            PasswordChangeError: If the update itself fails
        """
        validate_password_change(old_password, new_password, confirmation)
        if not self.is_real_user:
            raise InputValidationError("Sign in with an email account to change your password")

        self.is_reauthenticating = True
        try:
            await self.auth.reauthenticate(self.identity.email, old_password)
        except Exception as e:
            logger.error(f"Reauthentication error: {e}")
            self.error = ReauthenticationError("Current password could not be verified")
            raise self.error from e
        finally:
            self.is_reauthenticating = False

        self.is_changing_password = True
        try:
            await self.auth.update_password(new_password)
        except Exception as e:
            logger.error(f"Password change error: {e}")
            self.error = PasswordChangeError(f"Password could not be changed: {e}")
            raise self.error from e
        finally:
            self.is_changing_password = False

        self.log_activity("password changed")

    async def sign_out(self) -> None:
        """
        Sign out a real user.

        No-op for anonymous sessions. The identity listener then clears the
        session and signs in anonymously again.
        """
        if not self.identity.uid or self.identity.is_anonymous:
            logger.info("User is already anonymous, ignoring sign-out request")
            return
        try:
            await self.auth.sign_out()
        except SessionError as e:
            self.error = e
            raise
        except Exception as e:
            logger.error(f"Sign-out error: {e}", exc_info=True)
            self.error = RemoteError(f"Sign-out failed: {e}")
            raise self.error from e
        self.log_activity("signed out")

    # ***** Email verification *****

    async def send_verification_email(self) -> None:
        """Send a verification email when required and not yet verified."""
        if not self.requires_email_verification:
            return
        identity = self.identity
        if not identity.uid or identity.is_anonymous or identity.is_email_verified:
            return

        self.is_sending_verification_email = True
        try:
            await self.auth.send_verification_email(identity.email)
        finally:
            self.is_sending_verification_email = False

    async def check_email_verification(self) -> bool:
        """
        Reload the identity and report whether its email is verified.

        The platform does not notify listeners after a reload, so local state is
        updated here.
        """
        if not self.identity.uid:
            return False

        self.is_checking_verification = True
        try:
            identity = await self.auth.reload_identity()
        except SessionError as e:
            self.error = e
            raise
        except Exception as e:
            self.error = RemoteError(f"Verification status check failed: {e}")
            raise self.error from e
        finally:
            self.is_checking_verification = False

        self.user = self.user.model_copy(update={"identity": identity})
        return identity.is_email_verified

    # ***** Profile operations *****

    async def create_profile(self, candidate: ProfileCandidate, display_name_text: str | None = None) -> Profile:
        """
        Create the remote profile record for the current identity.

        Args:
            candidate: Proposed profile
            display_name_text: Initial display text stored remotely (defaults to candidate name)

        Raises:
            InputValidationError: If the candidate is invalid
            ProfileIncompleteError: If the remote create fails
        """
        if not candidate.is_valid:
            raise InputValidationError("Missing Data, please check all fields and try again")

        self.is_creating_profile = True
        try:
            created = await self.profiles.create_profile(
                candidate, display_name_text or candidate.display_name
            )
        except Exception as e:
            self.is_profile_incomplete = True
            self.error = ProfileIncompleteError(
                f"Error in user profile creation, please try again: {e}"
            )
            raise self.error from e
        finally:
            self.is_creating_profile = False

        profile = created.model_copy(update={"display_name": candidate.display_name})
        self.user = self.user.model_copy(update={"profile": profile})
        return profile

    async def create_display_name(self, display_name: str) -> None:
        if not display_name:
            raise InputValidationError("Please enter your display name")
        self.is_updating_profile = True
        try:
            await self.profiles.create_display_name(display_name)
        finally:
            self.is_updating_profile = False

    async def set_display_name(self, display_name: str) -> None:
        if not display_name:
            raise InputValidationError("Please enter your display name")
        self.is_updating_profile = True
        try:
            await self.profiles.set_display_name(display_name)
        finally:
            self.is_updating_profile = False

        if self.profile.uid:
            self.user = self.user.model_copy(
                update={"profile": self.profile.model_copy(update={"display_name": display_name})}
            )

    async def update_profile(self, profile: Profile) -> None:
        """Write changed profile attributes and adopt them locally."""
        if not profile.is_valid:
            raise InputValidationError("Invalid function input, check fields and try again.")

        self.is_updating_profile = True
        try:
            await self.profiles.update_profile(profile)
        except SessionError as e:
            self.error = e
            raise
        except Exception as e:
            self.error = RemoteError(f"Profile update failed: {e}")
            raise self.error from e
        finally:
            self.is_updating_profile = False

        self.user = self.user.model_copy(update={"profile": profile})

    async def create_profile_saga(
        self, candidate: ProfileCandidate, credentials: Credentials | None = None
    ) -> Profile:
        """Run the account-creation saga; see ProfileSaga.run()."""
        from src.sessionkit.auth.saga import ProfileSaga

        return await ProfileSaga(self).run(candidate, credentials)

    async def complete_profile(self, display_name: str) -> Profile:
        """Recover an incomplete account by creating the profile for the current identity."""
        candidate = ProfileCandidate(uid=self.identity.uid, display_name=display_name)
        return await self.create_profile_saga(candidate)

    # ***** Transient UI-facing flags *****

    def schedule_transient_reset(self) -> asyncio.Task:
        """Reset success/error indicators after the configured delay."""
        return self._spawn(self._reset_transient_after(self.success_reset_delay))

    async def _reset_transient_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self.show_success = False
        self.error = None
        logger.debug("Transient session flags reset")

    # ***** Helpers *****

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def log_activity(self, event_text: str) -> None:
        if self.activity_log is not None:
            self.activity_log.append(event_text, datetime.now(UTC))

