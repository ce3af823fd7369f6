"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Content moderation (denylist, capitals, repetition, image metadata)
- Geo/distance calculations and feed visibility
- Post parsing
- Municipality announcement parsing
- Deduplication logic

All functions here are deterministic and have no I/O.
"""

from locom.core.moderation import (
    ContentFilter,
    ImageFile,
    ModerationPolicy,
    ModerationVerdict,
    check_image,
    check_text,
    validate_submission,
)
from locom.core.geo import (
    Coordinate,
    distance_km,
    resolve_observer_location,
    select_visible,
    within_radius,
)
from locom.core.post import Post, parse_posts
from locom.core.announcements import ImportedPost, detect_source
from locom.core.dedup import build_post_record, fingerprint

__all__ = [
    # Moderation
    "ContentFilter",
    "ImageFile",
    "ModerationPolicy",
    "ModerationVerdict",
    "check_image",
    "check_text",
    "validate_submission",
    # Geo
    "Coordinate",
    "distance_km",
    "resolve_observer_location",
    "select_visible",
    "within_radius",
    # Posts
    "Post",
    "parse_posts",
    # Announcements
    "ImportedPost",
    "detect_source",
    # Dedup
    "build_post_record",
    "fingerprint",
]
