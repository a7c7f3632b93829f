"""Feature flag store with bundled defaults."""

from src.sessionkit.features.feature_flags.models import FeatureFlag
from src.sessionkit.stores.base import LoadableStore


class FeatureFlagStore(LoadableStore[FeatureFlag]):
    item_type = FeatureFlag
    cache_filename = "feature_flag_cache.json"

    def is_enabled(self, code: str) -> bool:
        """Flag value, or False for unknown flags and while nothing is loaded."""
        return any(flag.code == code and flag.enabled for flag in self.items)
