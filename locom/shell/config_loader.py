"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, SyncConfig, ...) are defined in locom/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from locom.core.announcements import DEFAULT_HTML_HOSTS
from locom.core.config import (
    Config,
    ModerationConfig,
    MunicipalityLocation,
    SyncConfig,
    validate_coordinates,
)
from locom.core.moderation import DEFAULT_DENYLIST
from locom.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


logger = logging.getLogger(__name__)


def _get_secret_manager_client() -> Optional[SecretManagerClient]:
    """Get a Secret Manager client.

    Returns None if GCP_PROJECT is not set (e.g., local development).
    """
    project_id = os.environ.get("GCP_PROJECT") or os.environ.get("GOOGLE_CLOUD_PROJECT")
    if project_id:
        return SecretManagerClient(SecretManagerConfig(project_id=project_id))
    return None


def _resolve_value(value: Any, secret_client: Optional[SecretManagerClient] = None) -> Any:
    """Resolve a value that may contain secret or env var placeholders.

    Args:
        value: Value to resolve (may contain ${...} placeholders)
        secret_client: Client for resolving secrets

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    if value.startswith("${") and value.endswith("}"):
        var_spec = value[2:-1]
        if not var_spec.startswith("secret:"):
            env_value = os.environ.get(var_spec)
            if env_value:
                return env_value
            logger.warning("Environment variable %s not set", var_spec)

    return value


def parse_location(value: str | None) -> MunicipalityLocation | None:
    """Parse a ``"lat,lng,name"`` triple.

    The name is optional. Malformed or out-of-range values are logged and
    ignored.

    Args:
        value: Raw triple, e.g. "35.1856,33.3823,Nicosia"

    Returns:
        MunicipalityLocation or None
    """
    if not value:
        return None

    parts = [p.strip() for p in value.split(",", 2)]
    if len(parts) < 2:
        logger.warning("Ignoring malformed location %r (expected lat,lng,name)", value)
        return None

    try:
        latitude = float(parts[0])
        longitude = float(parts[1])
    except ValueError:
        logger.warning("Ignoring malformed location %r (non-numeric coordinates)", value)
        return None

    errors = validate_coordinates(latitude, longitude, "location")
    if errors:
        logger.warning("Ignoring location %r: %s", value, errors[0].message)
        return None

    name = parts[2] if len(parts) > 2 and parts[2] else "Municipality"
    return MunicipalityLocation(latitude=latitude, longitude=longitude, name=name)


def _parse_location_data(data: Any) -> MunicipalityLocation | None:
    """Parse a location given as a triple string or a mapping."""
    if data is None:
        return None

    if isinstance(data, str):
        return parse_location(data)

    return MunicipalityLocation(
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        name=data.get("name") or "Municipality",
    )


def _parse_sync(
    data: dict[str, Any],
    secret_client: Optional[SecretManagerClient] = None,
) -> SyncConfig:
    """Parse sync settings from config data."""
    def resolved(key: str) -> Any:
        value = _resolve_value(data.get(key), secret_client)
        return value or None

    location = _resolve_value(data.get("location"), secret_client)

    return SyncConfig(
        feed_url=resolved("feed_url"),
        sync_secret=resolved("sync_secret"),
        supabase_url=resolved("supabase_url"),
        supabase_service_key=resolved("supabase_service_key"),
        owner_id=resolved("owner_id"),
        location=_parse_location_data(location),
        html_hosts=tuple(data.get("html_hosts", DEFAULT_HTML_HOSTS)),
        request_timeout=int(data.get("request_timeout", 30)),
    )


def _parse_moderation(data: dict[str, Any]) -> ModerationConfig:
    """Parse moderation settings from config data."""
    return ModerationConfig(
        denylist=tuple(data.get("denylist", DEFAULT_DENYLIST)),
        extra_terms=tuple(data.get("extra_terms", ())),
        caps_ratio_threshold=float(data.get("caps_ratio_threshold", 0.5)),
        repetition_threshold=int(data.get("repetition_threshold", 5)),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    secret_client = _get_secret_manager_client()

    return Config(
        sync=_parse_sync(data.get("sync") or {}, secret_client),
        moderation=_parse_moderation(data.get("moderation") or {}),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: feed=%s, location=%s, %d denylist terms",
        config.sync.feed_url,
        config.sync.location.name if config.sync.location else None,
        len(config.moderation.denylist) + len(config.moderation.extra_terms),
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Environment variables:
        MUNICIPALITY_FEED_URL: Feed URL (RSS, JSON or the HTML announcements page)
        MUNICIPALITY_SYNC_SECRET: Shared secret for the sync endpoint
        MUNICIPALITY_USER_ID: Account that imported posts are attributed to
        MUNICIPALITY_LOCATION: Optional "lat,lng,name" triple
        SUPABASE_URL: Supabase project URL (NEXT_PUBLIC_SUPABASE_URL also accepted)
        SUPABASE_SERVICE_ROLE_KEY: Service-role key

    Values may be ${secret:name} placeholders when GCP_PROJECT is set.

    Returns:
        Config object from environment
    """
    secret_client = _get_secret_manager_client()

    def env(name: str) -> str | None:
        value = os.environ.get(name)
        if value is None:
            return None
        return _resolve_value(value, secret_client) or None

    sync = SyncConfig(
        feed_url=env("MUNICIPALITY_FEED_URL"),
        sync_secret=env("MUNICIPALITY_SYNC_SECRET"),
        supabase_url=env("SUPABASE_URL") or env("NEXT_PUBLIC_SUPABASE_URL"),
        supabase_service_key=env("SUPABASE_SERVICE_ROLE_KEY"),
        owner_id=env("MUNICIPALITY_USER_ID"),
        location=parse_location(env("MUNICIPALITY_LOCATION")),
    )

    return Config(sync=sync)
