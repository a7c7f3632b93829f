"""Write-only sinks for session lifecycle events."""

import logging
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime

from src.sessionkit.config import settings
from src.sessionkit.services.analytics.posthog import PostHogService

logger = logging.getLogger(__name__)


class ActivityLog(ABC):
    """Append-only record of lifecycle events (sign-in, sign-out, account created...)."""

    @abstractmethod
    def append(self, event_text: str, timestamp: datetime) -> None:
        pass


class AnalyticsActivityLog(ActivityLog):
    """
    Activity log that keeps recent entries in memory and forwards them to PostHog.

    Forwarding failures are logged and never reach the session.

    Example:
        >>> activity_log = AnalyticsActivityLog(PostHogService())
        >>> activity_log.append("signed in", datetime.now(UTC))
    """

    def __init__(
        self,
        analytics: PostHogService | None = None,
        distinct_id: str | None = None,
        max_entries: int = 200,
    ):
        """
        Initialize activity log.

        Args:
            analytics: PostHog service (events are only kept locally if None)
            distinct_id: PostHog distinct id (defaults to the app client key)
            max_entries: Number of recent entries kept in memory
        """
        self.analytics = analytics
        self.distinct_id = distinct_id or settings.app_client_key
        self.entries: deque[tuple[datetime, str]] = deque(maxlen=max_entries)

    def append(self, event_text: str, timestamp: datetime) -> None:
        self.entries.append((timestamp, event_text))
        logger.info(f"Activity: {event_text}", extra={"activity_at": timestamp.isoformat()})

        if self.analytics is None:
            return
        try:
            self.analytics.capture(
                self.distinct_id, event_text, {"timestamp": timestamp.isoformat()}
            )
        except Exception as e:
            logger.warning(
                f"Failed to forward activity event to analytics: {e}",
                extra={"error_type": "analytics_capture_failed"},
            )
