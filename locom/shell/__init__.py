"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Municipality feed client (HTTP)
- Supabase client (database and auth)
- Secret Manager client (secrets)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from locom.shell.feed_client import FeedClient
from locom.shell.supabase_client import SupabaseClient, SupabaseConfig
from locom.shell.config_loader import load_config, load_config_from_env

__all__ = [
    "FeedClient",
    "SupabaseClient",
    "SupabaseConfig",
    "load_config",
    "load_config_from_env",
]
