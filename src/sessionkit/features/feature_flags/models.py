"""Remote-controlled feature flags."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from src.sessionkit.stores.listable import Listable


class FeatureFlag(Listable):
    model_config = ConfigDict(frozen=True)

    use_placeholder: ClassVar[bool] = True

    code: str
    enabled: bool

    @property
    def id(self) -> str:
        return self.code

    @property
    def is_valid(self) -> bool:
        return bool(self.code.strip())

    @classmethod
    def placeholder(cls) -> list["FeatureFlag"]:
        return list(BUNDLED_FEATURE_FLAGS)

    @classmethod
    def type_description(cls) -> str:
        return "Feature Flag"


class FeatureFlagRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    enabled: bool = False


# Used until the first fetch completes (or when the remote is unreachable on first launch)
BUNDLED_FEATURE_FLAGS = (
    FeatureFlag(code="publicComments", enabled=True),
    FeatureFlag(code="privateMessages", enabled=True),
    FeatureFlag(code="userAccountProfile", enabled=True),
    FeatureFlag(code="userDemographics", enabled=False),
    FeatureFlag(code="userAssociations", enabled=False),
)
