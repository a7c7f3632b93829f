"""Help text store with bundled fallbacks."""

from src.sessionkit.features.help_text.models import HelpText
from src.sessionkit.stores.base import LoadableStore


class HelpTextStore(LoadableStore[HelpText]):
    """Help texts, shown from cache or bundled copies until the remote fetch completes."""

    item_type = HelpText
    cache_filename = "help_text_cache.json"

    def text_for_code(self, code: str) -> str | None:
        for help_text in self.items:
            if help_text.code == code:
                return help_text.text
        return None
