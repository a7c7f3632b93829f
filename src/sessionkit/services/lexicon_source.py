"""Remote source for the ciphered restricted-word lexicon."""

import logging

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


class HttpLexiconSource:
    """
    Fetches the ciphered lexicon from an HTTP endpoint.

    The endpoint returns either a JSON list of ciphered entries or an object
    with an "entries" list. Entries are never deciphered here.

    Example:
        >>> source = HttpLexiconSource("https://cdn.example.com/lexicon.json")
        >>> content_filter = ContentFilter(fetch_from_service=source.fetch)
        >>> await content_filter.enable()
        >>> await source.close()
    """

    def __init__(self, url: str, http_client: httpx.AsyncClient | None = None):
        """
        Initialize lexicon source.

        Args:
            url: Lexicon endpoint
            http_client: Client to use (a new one with default timeouts if None)
        """
        self.url = url
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, read=30.0, connect=10.0, write=10.0)
        )

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch(self) -> list[str]:
        """
        Fetch ciphered lexicon entries.

        Transport failures are retried up to 3 attempts with exponential backoff.

        Returns:
            Ciphered entries as served (non-string items are skipped)

        Raises:
            httpx.HTTPError: If the request fails
            ValueError: If the payload is not a list or an {"entries": [...]} object
        """
        logger.info(f"Fetching restricted word lexicon from {self.url}")
        response = await self._http_client.get(self.url)
        response.raise_for_status()

        payload = response.json()
        if isinstance(payload, dict):
            payload = payload.get("entries")
        if not isinstance(payload, list):
            raise ValueError("Lexicon response must be a list of entries")

        entries = [entry for entry in payload if isinstance(entry, str)]
        skipped = len(payload) - len(entries)
        if skipped:
            logger.warning(
                f"Skipped {skipped} non-string lexicon entries",
                extra={"lexicon_url": self.url},
            )
        return entries

    async def close(self) -> None:
        await self._http_client.aclose()
        logger.info("Lexicon source closed")
