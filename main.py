"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the locom package.
"""

from locom.main import (
    municipality_sync,
    municipality_sync_pubsub,
)

__all__ = [
    "municipality_sync",
    "municipality_sync_pubsub",
]
