"""Locom API - FastAPI service for the neighborhood feed.

Server-side halves of the feed, post/comment submission and admin
moderation screens. Authentication is delegated to Supabase: user
endpoints expect the user's access token as a bearer token.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Literal

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import uvicorn

from locom.core.geo import (
    DEFAULT_RADIUS_KM,
    Coordinate,
    resolve_observer_location,
    select_visible,
)
from locom.core.moderation import ContentFilter, ImageFile
from locom.core.post import (
    NewPost,
    moderate_posts,
    moderation_update,
    parse_post,
    parse_posts,
    post_to_dict,
)
from locom.shell.config_loader import load_config_from_env
from locom.shell.supabase_client import SupabaseClient, SupabaseConfig

logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Locom API",
    description="Neighborhood feed, submissions and moderation for Locom",
    version="1.0.0",
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "capacitor://localhost",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ===== Request Models =====

class ImageMeta(BaseModel):
    name: str
    size_bytes: int = Field(ge=0)
    media_type: str


class PostCreate(BaseModel):
    content: str
    post_type: Literal["feed", "marketplace", "event"] = "feed"
    category: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    location_name: str | None = None
    image_url: str | None = None
    image: ImageMeta | None = None
    price: float | None = None
    event_date: str | None = None
    event_location: str | None = None


class CommentCreate(BaseModel):
    content: str


class ProfileUpdate(BaseModel):
    name: str | None = None
    bio: str | None = None
    neighborhood: str | None = None
    avatar_url: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class ModerationDecision(BaseModel):
    status: Literal["approved", "rejected"]
    reason: str | None = None


# ===== Dependencies =====

# Admin API key (set in the service environment)
ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY")

FEED_LIMIT = 50

content_filter = ContentFilter()

_store: SupabaseClient | None = None


def get_store() -> SupabaseClient:
    """Get or create the Supabase client."""
    global _store
    if _store is None:
        sync = load_config_from_env().sync
        if not sync.supabase_url or not sync.supabase_service_key:
            raise HTTPException(status_code=500, detail="Supabase not configured")
        _store = SupabaseClient(SupabaseConfig(
            url=sync.supabase_url,
            key=sync.supabase_service_key,
        ))
    return _store


def current_user_id(
    authorization: str | None = Header(default=None),
    store: SupabaseClient = Depends(get_store),
) -> str:
    """Resolve the bearer token to a user ID via Supabase auth."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format. Expected: Bearer <token>",
        )

    user_id = store.get_user_id(parts[1])
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid authentication token")
    return user_id


def verify_admin_key(x_admin_key: str | None = Header(default=None)) -> None:
    """Verify admin API key."""
    if not ADMIN_API_KEY:
        raise HTTPException(status_code=500, detail="Admin API key not configured")

    if x_admin_key != ADMIN_API_KEY:
        raise HTTPException(status_code=401, detail="Invalid admin key")


def _backend_error(action: str, e: Exception) -> HTTPException:
    logger.error("Failed to %s: %s", action, e)
    return HTTPException(status_code=502, detail=f"Failed to {action}")


def _coordinate_to_dict(coordinate: Coordinate) -> dict[str, float]:
    return {"latitude": coordinate.latitude, "longitude": coordinate.longitude}


# ===== Public Endpoints =====

@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api-feed")
def get_feed(
    post_type: Literal["feed", "marketplace", "event"] = Query(default="feed"),
    radius_km: float = Query(default=DEFAULT_RADIUS_KM, gt=0, le=100),
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    user_id: str = Depends(current_user_id),
    store: SupabaseClient = Depends(get_store),
):
    """List posts around the user.

    The feed is centered on the profile location, else the device location
    passed as lat/lng, else the default location. Posts without a location
    are always included.
    """
    device_location = None
    if lat is not None and lng is not None:
        device_location = Coordinate(latitude=lat, longitude=lng)

    try:
        profile_location = store.get_profile_location(user_id)
        rows = store.fetch_visible_posts(user_id, post_type=post_type, limit=FEED_LIMIT)
    except Exception as e:
        raise _backend_error("load feed", e)

    observer = resolve_observer_location(profile_location, device_location)
    visible = select_visible(parse_posts(rows), observer, radius_km)

    return {
        "observer": _coordinate_to_dict(observer),
        "radius_km": radius_km,
        "posts": [post_to_dict(p) for p in visible],
        "count": len(visible),
    }


@app.post("/api-posts", status_code=201)
def create_post(
    body: PostCreate,
    user_id: str = Depends(current_user_id),
    store: SupabaseClient = Depends(get_store),
):
    """Validate and create a post."""
    if not body.content.strip():
        raise HTTPException(status_code=422, detail={"errors": ["Content is required"]})

    image = None
    if body.image is not None:
        image = ImageFile(
            name=body.image.name,
            size_bytes=body.image.size_bytes,
            media_type=body.image.media_type,
        )

    validation = content_filter.validate_submission(body.content, image)
    if not validation.is_valid:
        logger.info("Rejected post from %s: %s", user_id, "; ".join(validation.errors))
        raise HTTPException(status_code=422, detail={"errors": list(validation.errors)})

    new_post = NewPost(
        user_id=user_id,
        content=body.content,
        post_type=body.post_type,
        category=body.category,
        latitude=body.latitude,
        longitude=body.longitude,
        location_name=body.location_name,
        image_url=body.image_url,
        price=body.price,
        event_date=body.event_date,
        event_location=body.event_location,
    )

    try:
        store.insert(new_post.to_record())
    except Exception as e:
        raise _backend_error("create post", e)

    return {"message": "Post created"}


@app.post("/api-posts/{post_id}/comments", status_code=201)
def create_comment(
    post_id: str,
    body: CommentCreate,
    user_id: str = Depends(current_user_id),
    store: SupabaseClient = Depends(get_store),
):
    """Moderate and create a comment."""
    content = body.content.strip()
    if not content:
        raise HTTPException(status_code=422, detail={"errors": ["Content is required"]})

    verdict = content_filter.check_text(body.content)
    if not verdict.is_appropriate:
        raise HTTPException(
            status_code=422,
            detail={"errors": [verdict.reason or "Inappropriate content detected"]},
        )

    try:
        store.insert_comment(post_id, user_id, content)
    except Exception as e:
        raise _backend_error("create comment", e)

    return {"message": "Comment created"}


@app.get("/api-posts/{post_id}")
def get_post(
    post_id: str,
    user_id: str = Depends(current_user_id),
    store: SupabaseClient = Depends(get_store),
):
    """Get a single post with its comments, oldest comment first."""
    try:
        row = store.get_visible_post(post_id, user_id)
        comments = store.fetch_comments(post_id) if row else []
    except Exception as e:
        raise _backend_error("load post", e)

    post = parse_post(row) if row else None
    if post is None:
        raise HTTPException(status_code=404, detail=f"Post '{post_id}' not found")

    return {
        "post": post_to_dict(post),
        "comments": comments,
        "comments_count": len(comments),
    }


@app.delete("/api-posts/{post_id}")
def delete_own_post(
    post_id: str,
    user_id: str = Depends(current_user_id),
    store: SupabaseClient = Depends(get_store),
):
    """Delete one of the caller's own posts."""
    try:
        deleted = store.delete_own_post(post_id, user_id)
    except Exception as e:
        raise _backend_error("delete post", e)

    # Someone else's post is indistinguishable from a missing one
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Post '{post_id}' not found")

    return {"message": f"Post '{post_id}' deleted", "id": post_id}


@app.put("/api-profile")
def update_profile(
    body: ProfileUpdate,
    user_id: str = Depends(current_user_id),
    store: SupabaseClient = Depends(get_store),
):
    """Update the caller's profile.

    Only fields present in the request are changed. Latitude and longitude
    must be sent together; sending both as null clears the location.
    """
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=422, detail={"errors": ["No profile fields given"]})

    if ("latitude" in fields) != ("longitude" in fields) or (
        (fields.get("latitude") is None) != (fields.get("longitude") is None)
    ):
        raise HTTPException(
            status_code=422,
            detail={"errors": ["Latitude and longitude must be set together"]},
        )

    updates: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, str):
            value = value.strip() or None
        updates[key] = value
    updates["updated_at"] = datetime.now(timezone.utc).isoformat()

    try:
        updated = store.update_profile(user_id, updates)
    except Exception as e:
        raise _backend_error("update profile", e)

    if not updated:
        raise HTTPException(status_code=404, detail="Profile not found")

    return {"message": "Profile updated", "updated": sorted(fields)}


# ===== Admin Endpoints =====

@app.get("/api-admin/posts", dependencies=[Depends(verify_admin_key)])
def admin_list_posts(
    limit: int = Query(default=100, ge=1, le=500),
    store: SupabaseClient = Depends(get_store),
):
    """List recent posts with the verdict their content would get today."""
    try:
        rows = store.fetch_recent_posts(limit=limit)
    except Exception as e:
        raise _backend_error("load posts", e)

    posts: list[dict[str, Any]] = []
    for post, verdict in moderate_posts(parse_posts(rows), content_filter):
        posts.append({
            **post_to_dict(post),
            "moderation": {
                "is_appropriate": verdict.is_appropriate,
                "reason": verdict.reason,
                "flagged_terms": list(verdict.flagged_terms),
            },
        })

    flagged = sum(1 for p in posts if not p["moderation"]["is_appropriate"])
    return {"posts": posts, "count": len(posts), "flagged": flagged}


@app.post("/api-admin/posts/{post_id}/moderate", dependencies=[Depends(verify_admin_key)])
def admin_moderate_post(
    post_id: str,
    decision: ModerationDecision,
    x_moderator_id: str = Header(default="admin"),
    store: SupabaseClient = Depends(get_store),
):
    """Approve or reject a post."""
    updates = moderation_update(
        decision.status,
        moderator_id=x_moderator_id,
        reason=decision.reason,
        now=datetime.now(timezone.utc),
    )

    try:
        updated = store.update_post(post_id, updates)
    except Exception as e:
        raise _backend_error("moderate post", e)

    if not updated:
        raise HTTPException(status_code=404, detail=f"Post '{post_id}' not found")

    return {"message": f"Post '{post_id}' {decision.status}", "id": post_id}


@app.delete("/api-admin/posts/{post_id}", dependencies=[Depends(verify_admin_key)])
def admin_delete_post(
    post_id: str,
    store: SupabaseClient = Depends(get_store),
):
    """Delete a post."""
    try:
        deleted = store.delete_post(post_id)
    except Exception as e:
        raise _backend_error("delete post", e)

    if not deleted:
        raise HTTPException(status_code=404, detail=f"Post '{post_id}' not found")

    return {"message": f"Post '{post_id}' deleted", "id": post_id}


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8080")),
    )
