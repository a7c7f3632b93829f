"""Help text snippets keyed by code."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from src.sessionkit.stores.listable import Listable


class HelpText(Listable):
    """Short guidance text shown next to a screen section."""

    model_config = ConfigDict(frozen=True)

    use_placeholder: ClassVar[bool] = True

    code: str
    text: str

    @property
    def id(self) -> str:
        return self.code

    @property
    def is_valid(self) -> bool:
        return bool(self.code.strip())

    @classmethod
    def placeholder(cls) -> list["HelpText"]:
        return list(BUNDLED_HELP_TEXTS)

    @classmethod
    def type_description(cls) -> str:
        return "Help Text"


class HelpTextRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    text: str


BUNDLED_HELP_TEXTS = (
    HelpText(code="signInGuidance", text="Sign in to keep your comments and messages across devices."),
    HelpText(code="createAccountGuidance", text="Create an account to send private messages."),
    HelpText(code="verifyEmailGuidance", text="Check your inbox to verify your email address."),
    HelpText(code="profileIncompleteGuidance", text="Finish setting up your profile to use every feature."),
)
