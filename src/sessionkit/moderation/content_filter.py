"""Restricted-text matcher over a ciphered moderation lexicon."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from src.sessionkit.auth.exceptions import RemoteError
from src.sessionkit.moderation.cipher import SubstitutionCipher
from src.sessionkit.moderation.lexicon import BUNDLED_LEXICON
from src.sessionkit.stores.loadable import Empty, Failed, Loadable, Loaded, Loading, count_of

logger = logging.getLogger(__name__)

LexiconFetcher = Callable[[], Awaitable[list[str]]]


class ContentFilter:
    """
    Substring matcher for restricted text.

    Both the lexicon and every candidate are compared in ciphered form, so banned
    terms are never held in plaintext. Matching is by substring: a banned term
    embedded in other characters ("1badword1") is caught, while a fragment of a
    banned term ("badw") is not.

    The filter fails open: when it was never enabled, is still loading, or failed
    to load, contains() returns False and logs the problem instead of blocking
    legitimate input.

    Example:
        >>> content_filter = ContentFilter(fetch_from_service=source.fetch)
        >>> await content_filter.enable()
        >>> content_filter.contains("hello")
        False
    """

    def __init__(
        self,
        fetch_from_service: LexiconFetcher | None = None,
        cipher: SubstitutionCipher | None = None,
        bundled: Iterable[str] = BUNDLED_LEXICON,
    ):
        """
        Initialize content filter.

        Args:
            fetch_from_service: Async callable returning ciphered lexicon entries
            cipher: Cipher the lexicon was encoded with (default key if None)
            bundled: Pre-ciphered entries used by enable_with_bundled()
        """
        self.fetch_from_service = fetch_from_service
        self.cipher = cipher or SubstitutionCipher()
        self._bundled = tuple(bundled)
        self.state: Loadable = Empty()
        self._inflight: asyncio.Future | None = None

    @property
    def entry_count(self) -> int:
        return count_of(self.state)

    async def enable(self) -> None:
        """
        Fetch the lexicon from the remote source, once.

        No-op if already loaded; concurrent callers share the in-flight fetch.
        An empty lexicon is accepted with a warning.

        Raises:
            RemoteError: If the remote fetch fails (state is left Failed)
            RuntimeError: If no remote source was configured
        """
        if isinstance(self.state, Loaded):
            return
        if self._inflight is not None:
            await asyncio.shield(self._inflight)
            return
        if self.fetch_from_service is None:
            raise RuntimeError("ContentFilter has no remote lexicon source; use enable_with_bundled()")

        self._inflight = asyncio.ensure_future(self._load_remote())
        try:
            await self._inflight
        finally:
            self._inflight = None

    def enable_with_bundled(self) -> None:
        """Load the compiled-in lexicon. No-op if a lexicon is already loaded."""
        if isinstance(self.state, Loaded):
            return
        self.state = Loaded(self._normalize(self._bundled))
        logger.info(f"Content filter enabled with {self.entry_count} bundled entries")

    def contains(self, candidate: str) -> bool:
        """
        Check whether candidate contains restricted text (case-insensitive).

        Args:
            candidate: Plaintext user input

        Returns:
            True if any lexicon entry occurs in the ciphered candidate
        """
        match self.state:
            case Loaded(items=entries):
                ciphered = self.cipher.encode(candidate)
                for entry in entries:
                    if entry in ciphered:
                        logger.debug("Restricted text found")
                        return True
                return False
            case Loading():
                logger.warning(
                    "Restricted text check requested while the lexicon is still loading; "
                    "continuing with reduced functionality",
                    extra={"error_type": "lexicon_loading"},
                )
                return False
            case Failed(error=error):
                logger.error(
                    f"Restricted text check requested but the lexicon failed to load: {error}",
                    extra={"error_type": "lexicon_unavailable"},
                )
                return False
            case Empty():
                logger.error(
                    "Restricted text check requested but the content filter was never enabled",
                    extra={"error_type": "lexicon_not_enabled"},
                )
                return False

    async def _load_remote(self) -> None:
        self.state = Loading()
        try:
            entries = await self.fetch_from_service()
        except Exception as e:
            self.state = Failed(e)
            logger.error(
                f"Failed to fetch restricted word lexicon: {e}",
                exc_info=True,
                extra={"error_type": "lexicon_fetch_failed"},
            )
            raise RemoteError("Restricted word lexicon could not be fetched") from e

        normalized = self._normalize(entries)
        if not normalized:
            logger.warning(
                "Content filter enabled but no restricted words were found; "
                "continuing with reduced functionality",
                extra={"error_type": "lexicon_empty"},
            )
        self.state = Loaded(normalized)
        logger.info(f"Fetched {len(normalized)} restricted text entries")

    @staticmethod
    def _normalize(entries: Iterable[str]) -> tuple[str, ...]:
        # Blank entries would match every candidate
        return tuple(entry.strip().lower() for entry in entries if entry and entry.strip())
