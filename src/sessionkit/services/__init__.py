"""Shared services module for external integrations."""

from src.sessionkit.services.activity_log import ActivityLog, AnalyticsActivityLog
from src.sessionkit.services.analytics.posthog import PostHogService
from src.sessionkit.services.lexicon_source import HttpLexiconSource

__all__ = [
    "ActivityLog",
    "AnalyticsActivityLog",
    "HttpLexiconSource",
    "PostHogService",
]
