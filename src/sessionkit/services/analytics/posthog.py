"""PostHog analytics service for session lifecycle events."""

import posthog

from src.sessionkit.config import settings


class PostHogService:
    """Service for tracking session events via PostHog."""

    def __init__(self) -> None:
        """Initialize PostHog service."""
        if settings.posthog_api_key:
            posthog.api_key = settings.posthog_api_key
            posthog.host = settings.posthog_host

    @property
    def enabled(self) -> bool:
        return bool(settings.posthog_api_key)

    def capture(self, distinct_id: str, event: str, properties: dict | None = None) -> None:
        """
        Track an event.

        Args:
            distinct_id: Unique identifier for the installation or user
            event: Event name (e.g., "signed in", "account created")
            properties: Optional event properties

        Example:
            >>> service = PostHogService()
            >>> service.capture("client-key", "signed in", {"timestamp": "2026-01-01T00:00:00+00:00"})
        """
        if not self.enabled:
            return

        posthog.capture(distinct_id=distinct_id, event=event, properties=properties or {})

    def shutdown(self) -> None:
        """Flush queued events. Call during application shutdown."""
        if not self.enabled:
            return

        posthog.shutdown()
