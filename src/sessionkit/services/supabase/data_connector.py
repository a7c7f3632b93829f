"""Supabase table access for profiles, posts and reference data."""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError
from supabase import Client
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.sessionkit.auth.connectors import ProfileConnector
from src.sessionkit.auth.exceptions import RemoteDataError, RemoteError
from src.sessionkit.auth.models import Profile, ProfileCandidate
from src.sessionkit.config import settings
from src.sessionkit.features.feature_flags.models import FeatureFlag, FeatureFlagRow
from src.sessionkit.features.help_text.models import HelpText, HelpTextRow
from src.sessionkit.features.posts.connectors import PostsConnector
from src.sessionkit.features.posts.models import (
    PostCandidate,
    PostRow,
    PrivateMessage,
    PublicComment,
    make_post,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_post_row = TypeAdapter(PostRow)


class SupabaseTableClient:
    """
    Shared plumbing for table access through the synchronous supabase client.

    Queries run in a worker thread. Transport failures are retried (3 attempts,
    exponential backoff); any failure that remains is raised as RemoteError.
    """

    def __init__(self, client: Client, fetch_limit: int | None = None):
        self.client = client
        self.fetch_limit = fetch_limit or settings.remote_fetch_limit

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _run(self, query: Any) -> list[dict]:
        response = await asyncio.to_thread(query.execute)
        return response.data or []

    async def _execute(self, query: Any, operation: str) -> list[dict]:
        try:
            return await self._run(query)
        except Exception as e:
            logger.error(
                f"Supabase {operation} failed: {e}",
                extra={"error_type": "supabase_query_failed", "operation": operation},
            )
            raise RemoteError(f"{operation} failed: {e}") from e

    def _require_uid(self) -> str:
        session = self.client.auth.get_session()
        if session is None or session.user is None:
            raise RemoteError("No signed-in user for this request")
        return session.user.id

    @staticmethod
    def _parse_rows(rows: list[dict], model: type[M], label: str) -> list[M]:
        parsed: list[M] = []
        for row in rows:
            try:
                parsed.append(model.model_validate(row))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed {label} row: {e.error_count()} error(s)",
                    extra={"error_type": "invalid_cloud_data", "table": label},
                )
        return parsed


class SupabaseProfileConnector(SupabaseTableClient, ProfileConnector):
    """
    Profile records in `user_accounts`, display names in `user_display_names`.

    `display_name_text` is the always-available display text set at creation
    (the sign-in email); `display_name` is the chosen name.
    """

    async def fetch_my_profile(self, uid: str) -> Profile:
        rows = await self._execute(
            self.client.table("user_accounts")
            .select("id, display_name, display_name_text, photo_url, user_type")
            .eq("id", uid),
            "fetch profile",
        )
        if not rows:
            raise RemoteDataError(f"No profile found for {uid}")
        if len(rows) > 1:
            raise RemoteDataError(f"Duplicate profiles found for {uid}")

        row = rows[0]
        profile = Profile(
            uid=row["id"],
            display_name=row.get("display_name") or row.get("display_name_text") or "",
            photo_url=row.get("photo_url") or "",
            user_type=row.get("user_type"),
        )
        if not profile.is_valid:
            raise RemoteDataError(f"Profile for {uid} is missing required fields")
        return profile

    async def create_profile(self, candidate: ProfileCandidate, display_name_text: str) -> Profile:
        if not candidate.is_valid:
            raise RemoteDataError("Invalid profile candidate")

        rows = await self._execute(
            self.client.table("user_accounts").insert(
                {
                    "id": candidate.uid,
                    "display_name_text": display_name_text,
                    "photo_url": candidate.photo_url,
                }
            ),
            "create profile",
        )
        row = rows[0] if rows else {}
        return Profile(
            uid=row.get("id", candidate.uid),
            display_name=display_name_text,
            photo_url=row.get("photo_url") or candidate.photo_url,
            user_type=row.get("user_type"),
        )

    async def create_display_name(self, display_name: str) -> None:
        await self._execute(
            self.client.table("user_display_names").upsert(
                {"user_id": self._require_uid(), "display_name": display_name}
            ),
            "create display name",
        )

    async def set_display_name(self, display_name: str) -> None:
        await self._execute(
            self.client.table("user_accounts")
            .update({"display_name": display_name})
            .eq("id", self._require_uid()),
            "set display name",
        )

    async def update_profile(self, profile: Profile) -> None:
        await self._execute(
            self.client.table("user_accounts")
            .update({"display_name": profile.display_name, "photo_url": profile.photo_url})
            .eq("id", profile.uid),
            "update profile",
        )


class SupabasePostsConnector(SupabaseTableClient, PostsConnector):
    """
    Posts read from the `public_comment_rows` / `private_message_rows` views and
    written to the `public_comments` / `private_messages` tables.
    """

    async def fetch_public_comments(self) -> list[PublicComment]:
        rows = await self._execute(
            self.client.table("public_comment_rows")
            .select("*")
            .order("create_timestamp", desc=True)
            .limit(self.fetch_limit),
            "fetch public comments",
        )
        return [post for post in self._to_posts(rows, "comment") if isinstance(post, PublicComment)]

    async def fetch_my_private_messages(self) -> list[PrivateMessage]:
        uid = self._require_uid()
        rows = await self._execute(
            self.client.table("private_message_rows")
            .select("*")
            .or_(f"create_user_id.eq.{uid},to_user_id.eq.{uid}")
            .order("create_timestamp", desc=True)
            .limit(self.fetch_limit),
            "fetch private messages",
        )
        return [post for post in self._to_posts(rows, "message") if isinstance(post, PrivateMessage)]

    async def create_public_comment(self, candidate: PostCandidate) -> PublicComment:
        row = await self._insert_post("public_comments", candidate)
        comment = PublicComment(**self._created_fields(row, candidate))
        await self._insert_references("public_comment_references", "public_comment_id", comment)
        return comment

    async def create_private_message(self, candidate: PostCandidate) -> PrivateMessage:
        row = await self._insert_post("private_messages", candidate)
        message = PrivateMessage(**self._created_fields(row, candidate))
        await self._insert_references("private_message_references", "private_message_id", message)
        return message

    async def _insert_post(self, table: str, candidate: PostCandidate) -> dict:
        if not candidate.is_valid:
            raise RemoteDataError("Invalid post candidate")

        rows = await self._execute(
            self.client.table(table).insert(
                {
                    "to_user_id": candidate.to_user.uid or None,
                    "to_user_display_name": candidate.to_user.display_name,
                    "create_device_timestamp": datetime.now(UTC).isoformat(),
                    "title": candidate.subject,
                    "content": candidate.content,
                }
            ),
            f"create {table}",
        )
        if not rows:
            raise RemoteDataError(f"Create in {table} returned no row")
        return rows[0]

    async def _insert_references(
        self, table: str, key: str, post: PublicComment | PrivateMessage
    ) -> None:
        if not post.references:
            return
        await self._execute(
            self.client.table(table).insert(
                [{key: str(post.id), "reference_id": str(rid)} for rid in post.references]
            ),
            f"create {table}",
        )

    @staticmethod
    def _created_fields(row: dict, candidate: PostCandidate) -> dict:
        return {
            "id": row["id"],
            "timestamp": row.get("create_timestamp") or datetime.now(UTC),
            "from_user": candidate.from_user,
            "to_user": candidate.to_user,
            "subject": candidate.subject,
            "content": candidate.content,
            "references": candidate.references,
        }

    def _to_posts(self, rows: list[dict], kind: str) -> list[PublicComment | PrivateMessage]:
        posts = []
        for row in rows:
            try:
                posts.append(make_post(_post_row.validate_python({**row, "kind": kind})))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed {kind} row: {e.error_count()} error(s)",
                    extra={"error_type": "invalid_cloud_data", "kind": kind},
                )
        return posts


class SupabaseReferenceConnector(SupabaseTableClient):
    """Help texts and feature flags."""

    async def fetch_help_texts(self) -> list[HelpText]:
        rows = await self._execute(
            self.client.table("help_texts").select("code, text").limit(self.fetch_limit),
            "fetch help texts",
        )
        return [
            HelpText(code=row.code, text=row.text)
            for row in self._parse_rows(rows, HelpTextRow, "help_texts")
        ]

    async def fetch_feature_flags(self) -> list[FeatureFlag]:
        rows = await self._execute(
            self.client.table("feature_flags").select("code, enabled").limit(self.fetch_limit),
            "fetch feature flags",
        )
        return [
            FeatureFlag(code=row.code, enabled=row.enabled)
            for row in self._parse_rows(rows, FeatureFlagRow, "feature_flags")
        ]
