"""Data models for identities, profiles and user keys."""

from pydantic import BaseModel, ConfigDict


class Identity(BaseModel):
    """
    Identity record mastered by the remote auth platform.

    The uid is stable across anonymous-to-real linking, so an anonymous user who
    creates an account keeps the same uid.

    Attributes:
        uid: Platform user id
        email: Sign-in email (empty for anonymous identities)
        phone_number: Optional phone number
        is_anonymous: True for the automatic anonymous identity
        is_email_verified: True once the email address has been confirmed
    """

    model_config = ConfigDict(frozen=True)

    uid: str
    email: str = ""
    phone_number: str | None = None
    is_anonymous: bool = False
    is_email_verified: bool = False

    @classmethod
    def blank(cls) -> "Identity":
        return cls(uid="")


class Profile(BaseModel):
    """Application-owned display attributes for an identity, keyed by uid."""

    model_config = ConfigDict(frozen=True)

    uid: str
    display_name: str
    photo_url: str = ""
    user_type: str | None = None

    @property
    def is_valid(self) -> bool:
        return bool(self.uid) and bool(self.display_name)

    @classmethod
    def blank(cls) -> "Profile":
        return cls(uid="", display_name="")


class SessionUser(BaseModel):
    """Composite of the identity and its profile, held by the session."""

    model_config = ConfigDict(frozen=True)

    identity: Identity
    profile: Profile

    @classmethod
    def blank(cls) -> "SessionUser":
        return cls(identity=Identity.blank(), profile=Profile.blank())


class UserKey(BaseModel):
    """Lightweight projection used to address users without loading full records."""

    model_config = ConfigDict(frozen=True)

    uid: str
    display_name: str
    user_type: str | None = None

    @property
    def is_valid(self) -> bool:
        return bool(self.uid) and bool(self.display_name.strip())

    @classmethod
    def blank(cls) -> "UserKey":
        return cls(uid="", display_name="")


class ProfileCandidate(BaseModel):
    """Proposed profile, used before the remote profile record exists."""

    uid: str
    display_name: str
    photo_url: str = ""

    @property
    def is_valid(self) -> bool:
        return bool(self.uid) and bool(self.display_name)


class Credentials(BaseModel):
    """Email and password pair used to ensure an identity exists."""

    email: str
    password: str
