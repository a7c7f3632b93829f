"""Composition root: builds the session, content filter and stores, and runs their lifecycle."""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from src.sessionkit.auth.connectors import AuthConnector, ProfileConnector
from src.sessionkit.auth.session import AuthSession
from src.sessionkit.config import settings
from src.sessionkit.features.feature_flags.store import FeatureFlagStore
from src.sessionkit.features.help_text.store import HelpTextStore
from src.sessionkit.features.posts.connectors import PostsConnector
from src.sessionkit.features.posts.store import PrivateMessageStore, PublicCommentStore
from src.sessionkit.moderation.cipher import SubstitutionCipher
from src.sessionkit.moderation.content_filter import ContentFilter
from src.sessionkit.services.activity_log import ActivityLog, AnalyticsActivityLog
from src.sessionkit.services.analytics.posthog import PostHogService
from src.sessionkit.services.lexicon_source import HttpLexiconSource
from src.sessionkit.stores.base import LoadableStore
from src.sessionkit.stores.binding import bind_to_session

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Everything the UI layer reads from, constructed once per process."""

    session: AuthSession
    content_filter: ContentFilter
    help_texts: HelpTextStore
    feature_flags: FeatureFlagStore
    public_comments: PublicCommentStore
    private_messages: PrivateMessageStore
    analytics: PostHogService | None = None
    lexicon_source: HttpLexiconSource | None = None
    gated_stores: list[LoadableStore] = field(default_factory=list)


def build_container(
    auth: AuthConnector,
    profiles: ProfileConnector,
    posts: PostsConnector,
    fetch_help_texts,
    fetch_feature_flags,
    lexicon_source: HttpLexiconSource | None = None,
    activity_log: ActivityLog | None = None,
    analytics: PostHogService | None = None,
    cache_dir: Path | None = None,
) -> AppContainer:
    """
    Construct and wire the application objects.

    Args:
        auth: Identity platform connector
        profiles: Profile record connector
        posts: Post connector
        fetch_help_texts: Async callable returning help texts
        fetch_feature_flags: Async callable returning feature flags
        lexicon_source: Remote lexicon (bundled lexicon only if None)
        activity_log: Lifecycle event sink (analytics-backed if None)
        analytics: PostHog service used by the default activity log
        cache_dir: Snapshot directory (settings.cache_dir if None)

    Returns:
        Wired container; call run() to start it
    """
    content_filter = ContentFilter(
        fetch_from_service=lexicon_source.fetch if lexicon_source else None,
        cipher=SubstitutionCipher(settings.lexicon_cipher_key),
    )
    if activity_log is None:
        activity_log = AnalyticsActivityLog(analytics)

    session = AuthSession(
        auth=auth,
        profiles=profiles,
        content_filter=content_filter,
        activity_log=activity_log,
    )

    container = AppContainer(
        session=session,
        content_filter=content_filter,
        help_texts=HelpTextStore(fetch_from_service=fetch_help_texts, cache_dir=cache_dir),
        feature_flags=FeatureFlagStore(fetch_from_service=fetch_feature_flags, cache_dir=cache_dir),
        public_comments=PublicCommentStore(posts, content_filter=content_filter, cache_dir=cache_dir),
        private_messages=PrivateMessageStore(posts, content_filter=content_filter, cache_dir=cache_dir),
        analytics=analytics,
        lexicon_source=lexicon_source,
    )
    container.gated_stores = [container.public_comments, container.private_messages]

    # Sign-in observers run in this order
    for store in container.gated_stores:
        bind_to_session(store, session)

    return container


def build_supabase_container(cache_dir: Path | None = None) -> AppContainer:
    """Build the container against the configured Supabase project."""
    from src.sessionkit.services.supabase.auth_connector import SupabaseAuthConnector
    from src.sessionkit.services.supabase.connection import get_supabase_client
    from src.sessionkit.services.supabase.data_connector import (
        SupabasePostsConnector,
        SupabaseProfileConnector,
        SupabaseReferenceConnector,
    )

    client = get_supabase_client()
    reference = SupabaseReferenceConnector(client)
    return build_container(
        auth=SupabaseAuthConnector(client),
        profiles=SupabaseProfileConnector(client),
        posts=SupabasePostsConnector(client),
        fetch_help_texts=reference.fetch_help_texts,
        fetch_feature_flags=reference.fetch_feature_flags,
        lexicon_source=HttpLexiconSource(settings.lexicon_url) if settings.lexicon_url else None,
        analytics=PostHogService(),
        cache_dir=cache_dir,
    )


async def enable_content_filter(content_filter: ContentFilter) -> None:
    """Enable from the remote lexicon, falling back to the bundled one."""
    if content_filter.fetch_from_service is None:
        content_filter.enable_with_bundled()
        return
    try:
        await content_filter.enable()
    except Exception as e:
        logger.warning(
            f"Remote lexicon unavailable, using bundled lexicon: {e}",
            extra={"error_type": "lexicon_fallback"},
        )
        content_filter.enable_with_bundled()


@asynccontextmanager
async def run(container: AppContainer):
    """
    Manage application lifecycle (startup and shutdown).

    Startup enables the content filter, initializes the ungated reference
    stores and starts the session listener; gated stores load on sign-in.

    Example:
        >>> async with run(build_supabase_container()) as app:
        ...     await app.session.settle()
    """
    # Startup
    await enable_content_filter(container.content_filter)
    container.help_texts.initialize()
    container.feature_flags.initialize()
    container.session.start()
    logger.info(
        "Session layer started",
        extra={"lexicon_entries": container.content_filter.entry_count},
    )

    yield container

    # Shutdown
    if container.lexicon_source is not None:
        try:
            await container.lexicon_source.close()
        except Exception as e:
            logger.error(f"Error closing lexicon source: {e}", exc_info=True)
    if container.analytics is not None:
        container.analytics.shutdown()
    logger.info("Session layer stopped")
