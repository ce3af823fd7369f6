"""Post data models and parsing - Pure functions.

This module handles parsing rows of the external ``posts`` table into typed
Post objects and shaping user submissions for insertion.
All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from locom.core.geo import Coordinate
from locom.core.moderation import ContentFilter, ModerationVerdict


POST_TYPES = ("feed", "marketplace", "event")

MUNICIPALITY_CATEGORY = "municipality"

STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUS_PENDING = "pending"


@dataclass(frozen=True)
class Post:
    """Immutable post as stored by the backend.

    Attributes:
        id: Post UUID
        user_id: Author UUID
        content: Post body
        post_type: One of 'feed', 'marketplace', 'event'
        category: Free-form category (e.g., 'municipality')
        latitude: Post latitude (optional)
        longitude: Post longitude (optional)
        location_name: Human-readable place name (optional)
        image_url: Public image URL (optional)
        price: Marketplace price (optional)
        event_date: Event date string (optional)
        event_location: Event venue (optional)
        status: Moderation status, None for legacy rows
        created_at: Creation timestamp string as returned by the backend
    """
    id: str
    user_id: str
    content: str
    post_type: str = "feed"
    category: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    location_name: str | None = None
    image_url: str | None = None
    price: float | None = None
    event_date: str | None = None
    event_location: str | None = None
    status: str | None = None
    created_at: str | None = None

    @property
    def location(self) -> Coordinate | None:
        """Return the post coordinate, or None when not specified."""
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


def parse_post(row: dict[str, Any]) -> Post | None:
    """Parse a single database row into a Post.

    Pure function: returns None if required fields are missing or malformed.
    """
    try:
        post_id = row.get("id")
        user_id = row.get("user_id")
        content = row.get("content")

        if not post_id or not user_id or content is None:
            return None

        return Post(
            id=str(post_id),
            user_id=str(user_id),
            content=str(content),
            post_type=row.get("post_type") or "feed",
            category=row.get("category"),
            latitude=_optional_float(row.get("latitude")),
            longitude=_optional_float(row.get("longitude")),
            location_name=row.get("location_name"),
            image_url=row.get("image_url"),
            price=_optional_float(row.get("price")),
            event_date=row.get("event_date"),
            event_location=row.get("event_location"),
            status=row.get("status"),
            created_at=row.get("created_at"),
        )
    except (AttributeError, TypeError, ValueError):
        return None


def parse_posts(rows: Iterable[dict[str, Any]]) -> list[Post]:
    """Parse database rows into Posts, skipping invalid rows.

    Pure function. Input order is preserved.
    """
    posts = []
    for row in rows:
        post = parse_post(row)
        if post is not None:
            posts.append(post)
    return posts


def post_to_dict(post: Post) -> dict[str, Any]:
    """Convert a Post to a JSON-serializable dict."""
    return {
        "id": post.id,
        "user_id": post.user_id,
        "content": post.content,
        "post_type": post.post_type,
        "category": post.category,
        "latitude": post.latitude,
        "longitude": post.longitude,
        "location_name": post.location_name,
        "image_url": post.image_url,
        "price": post.price,
        "event_date": post.event_date,
        "event_location": post.event_location,
        "status": post.status,
        "created_at": post.created_at,
    }


@dataclass(frozen=True)
class NewPost:
    """A user submission ready to be written to the posts table."""
    user_id: str
    content: str
    post_type: str = "feed"
    category: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    location_name: str | None = None
    image_url: str | None = None
    price: float | None = None
    event_date: str | None = None
    event_location: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Build the insert row. User posts are auto-approved."""
        return {
            "user_id": self.user_id,
            "content": self.content.strip(),
            "image_url": self.image_url,
            "post_type": self.post_type,
            "category": self.category or None,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "location_name": self.location_name or None,
            "price": self.price,
            "event_date": self.event_date or None,
            "event_location": self.event_location or None,
            "status": STATUS_APPROVED,
        }


def moderate_posts(
    posts: Iterable[Post],
    content_filter: ContentFilter,
) -> list[tuple[Post, ModerationVerdict]]:
    """Pair each post with the verdict its content would get today.

    Pure function.
    """
    return [(post, content_filter.check_text(post.content)) for post in posts]


def moderation_update(
    status: str,
    moderator_id: str,
    reason: str | None,
    now: datetime,
) -> dict[str, Any]:
    """Build the row update recording a moderation decision.

    Pure function.

    Raises:
        ValueError: If status is not 'approved' or 'rejected'
    """
    if status not in (STATUS_APPROVED, STATUS_REJECTED):
        raise ValueError(f"Invalid moderation status: {status}")

    return {
        "status": status,
        "moderation_notes": reason or None,
        "moderated_by": moderator_id,
        "moderated_at": now.isoformat(),
    }
