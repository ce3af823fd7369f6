"""Deduplication logic - Pure functions.

This module handles the approximate existence key used to avoid importing
the same municipality announcement twice, and the shape of the row written
for a new announcement. All functions are pure with no side effects.

Note: The actual existence query runs in the persistence layer
(Supabase client). This module only contains the pure logic.
"""

from datetime import datetime
from typing import Any

from locom.core.announcements import ImportedPost
from locom.core.config import MunicipalityLocation
from locom.core.post import MUNICIPALITY_CATEGORY


# Length of the content prefix used as existence key
FINGERPRINT_LENGTH = 100

DEFAULT_LOCATION_NAME = "Municipality"


def fingerprint(content: str) -> str:
    """Return the approximate existence key for announcement content.

    Pure function.
    """
    return content[:FINGERPRINT_LENGTH]


def matches_fingerprint(existing_content: str, key: str) -> bool:
    """Check if stored content contains the fingerprint (case-insensitive).

    Pure function. Mirrors the store's ILIKE '%key%' query.
    """
    return key.lower() in existing_content.lower()


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally.

    Pure function.
    """
    return (
        value.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


def compose_content(post: ImportedPost) -> str:
    """Combine announcement title and body into a post body.

    Pure function.
    """
    return f"{post.title}\n\n{post.content}"


def build_post_record(
    post: ImportedPost,
    owner_id: str,
    location: MunicipalityLocation | None,
    now: datetime,
) -> dict[str, Any]:
    """Build the posts-table row for an imported announcement.

    Pure function.

    Args:
        post: Parsed announcement
        owner_id: Account the post is attributed to
        location: Location to tag the post with (optional)
        now: Fallback creation time when the announcement has no date

    Returns:
        Insert row
    """
    created_at = post.published_date or now

    return {
        "user_id": owner_id,
        "content": compose_content(post),
        "image_url": post.image_url or None,
        "post_type": "feed",
        "category": MUNICIPALITY_CATEGORY,
        "latitude": location.latitude if location else None,
        "longitude": location.longitude if location else None,
        "location_name": (location.name if location else None) or DEFAULT_LOCATION_NAME,
        "created_at": created_at.isoformat(),
    }
