"""Persistence port for the municipality importer.

The importer depends on this narrow interface rather than on a concrete
database client. The Supabase client in the shell implements it.
"""

from typing import Any, Protocol


class PostStore(Protocol):
    """Existence check and insert for imported posts."""

    def exists(self, content: str, link: str | None = None) -> bool:
        """Return True if a municipality post already carries this content."""
        ...

    def insert(self, record: dict[str, Any]) -> None:
        """Write a post row. Raises on failure."""
        ...
