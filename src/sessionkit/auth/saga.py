"""Account-creation saga: identity, profile, display name, verification email."""

import logging

from src.sessionkit.auth.exceptions import IdentityNotFoundError, SessionError
from src.sessionkit.auth.models import Credentials, Profile, ProfileCandidate
from src.sessionkit.auth.validators import validate_display_name

logger = logging.getLogger(__name__)


class ProfileSaga:
    """
    Ordered, partially-compensating account creation.

    Steps 1 and 2 are critical: a failure aborts the saga and propagates. Steps 3
    and 4 are best-effort: a failure is recorded as a warning on the session and
    the saga still completes.

    1. Ensure an identity exists (link, sign in or create when credentials are given)
    2. Create the profile record, using the sign-in email as the initial display text
    3. Create, then set, the chosen display name
    4. Send the verification email

    Example:
        >>> saga = ProfileSaga(session)
        >>> profile = await saga.run(candidate, Credentials(email=email, password=password))
    """

    def __init__(self, session):
        """
        Initialize saga.

        Args:
            session: AuthSession that owns all state the saga changes
        """
        self.session = session

    async def run(self, candidate: ProfileCandidate, credentials: Credentials | None = None) -> Profile:
        """
        Run the saga.

        Args:
            candidate: Proposed profile (uid is filled in from the ensured identity)
            credentials: Email/password to link or create; None to use the current identity

        Returns:
            The session's profile after completion

        Raises:
            InputValidationError: If the display name is empty, too long or restricted
            IdentityNotFoundError: If no credentials are given and the session has no real user
            SessionError: If step 1 or step 2 fails
        """
        session = self.session
        validate_display_name(candidate.display_name, session.content_filter)

        session.show_success = False
        session.warnings = []

        # Step 1: identity
        if credentials is not None:
            uid = await session.sign_in_or_create(credentials.email, credentials.password)
            await session.settle()
            display_text = credentials.email
        else:
            if not session.is_real_user:
                session.error = IdentityNotFoundError("Sign in before completing your profile")
                raise session.error
            uid = session.identity.uid
            display_text = session.identity.email or candidate.display_name

        logger.info(f"Account saga: identity ensured for {uid}")
        candidate = candidate.model_copy(update={"uid": uid})

        # Step 2: profile record
        await session.create_profile(candidate, display_name_text=display_text)
        logger.info(f"Account saga: profile created for {uid}")

        # Step 3: display name
        try:
            await session.create_display_name(candidate.display_name)
            await session.set_display_name(candidate.display_name)
        except Exception as e:
            self._warn(
                "Could not save display name. Please update from Settings.",
                e,
                "display_name_failed",
            )

        # Step 4: verification email
        try:
            await session.send_verification_email()
        except Exception as e:
            self._warn(
                "Could not send verification email. Please retry from Settings.",
                e,
                "verification_email_failed",
            )

        session.clear_incomplete_profile()
        session.show_success = True
        session.schedule_transient_reset()
        session.log_activity("account created")
        logger.info(f"Account saga completed for {uid} with {len(session.warnings)} warning(s)")
        return session.profile

    def _warn(self, message: str, error: Exception, error_type: str) -> None:
        detail = str(error) if isinstance(error, SessionError) else f"{type(error).__name__}: {error}"
        logger.warning(
            f"Account saga: {message} ({detail})",
            extra={"error_type": error_type, "uid": self.session.identity.uid},
        )
        self.session.warnings.append(message)
