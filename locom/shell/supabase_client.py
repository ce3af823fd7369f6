"""Supabase Client - Imperative Shell.

This module handles persistence of posts, comments and profiles in the
Supabase backend. It implements the PostStore port used by the importer.

All I/O is contained here; deduplication and moderation logic is in the
core module.
"""

import logging
from dataclasses import dataclass
from typing import Any

from supabase import Client, create_client

from locom.core.dedup import escape_like, fingerprint
from locom.core.geo import Coordinate
from locom.core.post import MUNICIPALITY_CATEGORY


logger = logging.getLogger(__name__)


# Default table names (schema is owned by the backend)
DEFAULT_POSTS_TABLE = "posts"
DEFAULT_PROFILES_TABLE = "profiles"
DEFAULT_COMMENTS_TABLE = "comments"


@dataclass
class SupabaseConfig:
    """Configuration for Supabase client.

    Attributes:
        url: Supabase project URL
        key: API key (service-role key for server-side use)
        posts_table: Table holding posts
        profiles_table: Table holding user profiles
        comments_table: Table holding comments
    """
    url: str
    key: str
    posts_table: str = DEFAULT_POSTS_TABLE
    profiles_table: str = DEFAULT_PROFILES_TABLE
    comments_table: str = DEFAULT_COMMENTS_TABLE


class SupabaseClient:
    """Client for reading and writing posts in Supabase.

    This is part of the imperative shell - it handles database I/O.
    Query failures raise postgrest.exceptions.APIError.
    """

    def __init__(self, config: SupabaseConfig) -> None:
        """Initialize Supabase client.

        Args:
            config: Supabase configuration
        """
        self.config = config
        self._client: Client | None = None

    @property
    def client(self) -> Client:
        """Lazy initialization of Supabase client."""
        if self._client is None:
            self._client = create_client(self.config.url, self.config.key)
            logger.info("Connected to Supabase: %s", self.config.url)
        return self._client

    def _posts(self) -> Any:
        return self.client.table(self.config.posts_table)

    # ----- PostStore port -----

    def exists(self, content: str, link: str | None = None) -> bool:
        """Check if a municipality post already contains this content's fingerprint.

        This method performs database I/O. The check is a case-insensitive
        substring match on the first characters of the content, so minor
        formatting drift in the feed still matches.

        Args:
            content: Announcement body
            link: Announcement link (unused; kept for the port signature)

        Returns:
            True if a matching post exists
        """
        pattern = f"%{escape_like(fingerprint(content))}%"

        response = (
            self._posts()
            .select("id")
            .ilike("content", pattern)
            .eq("category", MUNICIPALITY_CATEGORY)
            .limit(1)
            .execute()
        )

        return bool(response.data)

    def insert(self, record: dict[str, Any]) -> None:
        """Insert a post row.

        This method performs database I/O.

        Raises:
            postgrest.exceptions.APIError: If the insert fails
        """
        self._posts().insert(record).execute()

    # ----- Feed and admin queries -----

    def fetch_visible_posts(
        self,
        viewer_id: str,
        post_type: str = "feed",
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Fetch recent posts a viewer may see (approved, legacy or own).

        This method performs database I/O.

        Args:
            viewer_id: Requesting user
            post_type: 'feed', 'marketplace' or 'event'
            limit: Maximum rows

        Returns:
            Raw post rows, newest first
        """
        response = (
            self._posts()
            .select("*")
            .eq("post_type", post_type)
            .or_(f"status.is.null,status.eq.approved,user_id.eq.{viewer_id}")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )

        rows = response.data or []
        logger.info("Fetched %d %s posts for %s", len(rows), post_type, viewer_id)
        return rows

    def fetch_recent_posts(self, limit: int = 100) -> list[dict[str, Any]]:
        """Fetch the most recent posts regardless of status.

        This method performs database I/O.
        """
        response = (
            self._posts()
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []

    def get_profile_location(self, user_id: str) -> Coordinate | None:
        """Fetch the coordinate stored on a user's profile.

        This method performs database I/O.

        Returns:
            Coordinate, or None if the profile has no location
        """
        response = (
            self.client.table(self.config.profiles_table)
            .select("latitude, longitude")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )

        if not response.data:
            return None

        row = response.data[0]
        if row.get("latitude") is None or row.get("longitude") is None:
            return None

        return Coordinate(
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
        )

    def update_profile(self, user_id: str, updates: dict[str, Any]) -> bool:
        """Update fields on a user's profile.

        This method performs database I/O.

        Returns:
            True if a profile row was updated
        """
        response = (
            self.client.table(self.config.profiles_table)
            .update(updates)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(response.data)

    def get_visible_post(self, post_id: str, viewer_id: str) -> dict[str, Any] | None:
        """Fetch one post if the viewer may see it (approved, legacy or own).

        This method performs database I/O.

        Returns:
            Raw post row, or None if missing or hidden from the viewer
        """
        response = (
            self._posts()
            .select("*")
            .eq("id", post_id)
            .or_(f"status.is.null,status.eq.approved,user_id.eq.{viewer_id}")
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def fetch_comments(self, post_id: str) -> list[dict[str, Any]]:
        """Fetch the comments on a post, oldest first.

        This method performs database I/O.
        """
        response = (
            self.client.table(self.config.comments_table)
            .select("*")
            .eq("post_id", post_id)
            .order("created_at")
            .execute()
        )
        return response.data or []

    def insert_comment(self, post_id: str, user_id: str, content: str) -> None:
        """Insert a comment row.

        This method performs database I/O.
        """
        (
            self.client.table(self.config.comments_table)
            .insert({
                "post_id": post_id,
                "user_id": user_id,
                "content": content,
            })
            .execute()
        )

    def update_post(self, post_id: str, updates: dict[str, Any]) -> bool:
        """Update a post row.

        This method performs database I/O.

        Returns:
            True if a row was updated
        """
        response = self._posts().update(updates).eq("id", post_id).execute()
        return bool(response.data)

    def delete_post(self, post_id: str) -> bool:
        """Delete a post row.

        This method performs database I/O.

        Returns:
            True if a row was deleted
        """
        response = self._posts().delete().eq("id", post_id).execute()
        return bool(response.data)

    def delete_own_post(self, post_id: str, user_id: str) -> bool:
        """Delete a post row only if it belongs to user_id.

        This method performs database I/O.

        Returns:
            True if a row was deleted
        """
        response = (
            self._posts()
            .delete()
            .eq("id", post_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(response.data)

    # ----- Auth (delegated to the backend) -----

    def get_user_id(self, access_token: str) -> str | None:
        """Resolve a user access token to its user ID.

        This method performs network I/O against Supabase auth.

        Returns:
            User ID, or None if the token is invalid
        """
        try:
            user_response = self.client.auth.get_user(access_token)
        except Exception as e:
            logger.warning("Failed to verify access token: %s", str(e))
            return None

        if not user_response or not user_response.user:
            return None

        return user_response.user.id
