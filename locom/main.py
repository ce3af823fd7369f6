"""Cloud Function Entry Point.

This module provides the municipality sync endpoint for Google Cloud
Functions. It's a thin wrapper that loads configuration, checks the shared
secret and invokes the importer.
"""

import json
import logging
import os
from typing import Any

import functions_framework
from flask import Request

from locom.core.config import Config, is_configured
from locom.importer import MunicipalityImporter
from locom.shell.config_loader import load_config, load_config_from_env
from locom.shell.supabase_client import SupabaseClient, SupabaseConfig


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _get_config() -> Config:
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    return load_config_from_env()


def _is_authorized(request: Request, secret: str | None) -> bool:
    """Check the Authorization header against the shared secret.

    An unset secret, or one whose placeholder never resolved, authorizes
    nobody.
    """
    if not is_configured(secret):
        return False
    return request.headers.get("Authorization") == f"Bearer {secret}"


def _missing_setting(config: Config) -> str | None:
    """Name the first required sync setting that is not configured."""
    sync = config.sync
    if not is_configured(sync.supabase_url) or not is_configured(sync.supabase_service_key):
        return "Service role key not configured"
    if not is_configured(sync.owner_id):
        return "Municipality user ID not configured"
    if not is_configured(sync.feed_url):
        return "Municipality feed URL not configured"
    return None


def _status_probe(config: Config) -> dict[str, Any]:
    """Static capability probe: which settings are present."""
    return {
        "message": "Municipality sync endpoint",
        "usage": "POST with Authorization: Bearer <secret>",
        "config": {
            "hasFeedUrl": is_configured(config.sync.feed_url),
            "hasServiceRoleKey": is_configured(config.sync.supabase_service_key),
            "hasOwnerId": is_configured(config.sync.owner_id),
            "hasLocation": config.sync.location is not None,
        },
    }


def _build_importer(config: Config) -> MunicipalityImporter:
    store = SupabaseClient(SupabaseConfig(
        url=config.sync.supabase_url or "",
        key=config.sync.supabase_service_key or "",
    ))
    return MunicipalityImporter(config.sync, store)


def run_sync(config: Config) -> tuple[dict[str, Any], int]:
    """Run the importer and build the HTTP response body."""
    missing = _missing_setting(config)
    if missing:
        logger.error(missing)
        return {"error": missing}, 500

    result = _build_importer(config).ingest()

    response: dict[str, Any] = {
        "success": True,
        "message": "Municipality sync completed",
        "postsAdded": result.added,
        "postsSkipped": result.skipped,
        "totalPosts": result.total,
    }
    if result.failed:
        response["postsFailed"] = result.failed

    return response, 200


@functions_framework.http
def municipality_sync(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    GET returns a status probe. POST, triggered by Cloud Scheduler with
    ``Authorization: Bearer <secret>``, runs a sync.

    Args:
        request: Flask request object

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    try:
        config = _get_config()

        if request.method == "GET":
            return _status_probe(config), 200

        if request.method != "POST":
            return {"error": "Method not allowed"}, 405

        if not _is_authorized(request, config.sync.sync_secret):
            logger.warning("Rejected unauthorized municipality sync request")
            return {"error": "Unauthorized"}, 401

        logger.info("Starting municipality sync")
        response, status = run_sync(config)
        logger.info("Completed municipality sync with status %d", status)
        return response, status

    except Exception as e:
        logger.exception("Municipality sync error")
        return {"error": str(e)}, 500


@functions_framework.cloud_event
def municipality_sync_pubsub(cloud_event: Any) -> None:
    """Pub/Sub Cloud Function entry point.

    Alternative trigger for Cloud Scheduler via Pub/Sub. The topic itself
    is the authorization, so no shared secret is checked.

    Args:
        cloud_event: CloudEvent from Pub/Sub
    """
    logger.info("Starting municipality sync (Pub/Sub trigger)")

    try:
        config = _get_config()
        response, status = run_sync(config)

        if status != 200:
            raise RuntimeError(response.get("error", "Municipality sync failed"))

        logger.info(
            "Completed: %d added, %d skipped of %d",
            response["postsAdded"],
            response["postsSkipped"],
            response["totalPosts"],
        )

    except Exception:
        logger.exception("Unexpected error in municipality sync")
        raise


# For local testing
if __name__ == "__main__":
    import sys

    print("Running municipality sync locally...")

    local_config = _get_config()
    if not local_config.sync.feed_url:
        print("Error: Set MUNICIPALITY_FEED_URL or CONFIG_PATH")
        sys.exit(1)

    body, status_code = run_sync(local_config)
    print(f"\nResponse ({status_code}):")
    print(json.dumps(body, indent=2, ensure_ascii=False))
