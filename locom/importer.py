"""Municipality Importer - Wires Functional Core and Imperative Shell.

This module coordinates fetching a municipality feed, parsing it with the
pure core, de-duplicating against the post store and writing new posts.

Error granularity is uneven: a feed that cannot be fetched
or parsed fails the whole run, while a post that cannot be written is
logged and recorded as a failed outcome without stopping the batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from locom.core.announcements import (
    HtmlSource,
    ImportedPost,
    JsonSource,
    RssSource,
    detect_source,
    parse_html,
    parse_json,
    parse_rss,
)
from locom.core.config import SyncConfig
from locom.core.dedup import build_post_record
from locom.core.ports import PostStore
from locom.shell.feed_client import FeedClient


logger = logging.getLogger(__name__)


OUTCOME_ADDED = "added"
OUTCOME_SKIPPED = "skipped"
OUTCOME_FAILED = "failed"


@dataclass(frozen=True)
class ItemOutcome:
    """What happened to a single announcement.

    Attributes:
        post: The parsed announcement
        status: 'added', 'skipped' or 'failed'
        error: Error message if the write failed
    """
    post: ImportedPost
    status: str
    error: str | None = None


@dataclass
class ImportResult:
    """Result of a complete sync run.

    Attributes:
        added: Announcements written as new posts
        skipped: Announcements that already existed
        total: Announcements parsed from the feed
        outcomes: Per-announcement outcomes in feed order
    """
    added: int = 0
    skipped: int = 0
    total: int = 0
    outcomes: list[ItemOutcome] = field(default_factory=list)

    @property
    def failed(self) -> int:
        """Number of announcements whose write failed."""
        return sum(1 for o in self.outcomes if o.status == OUTCOME_FAILED)

    @property
    def summary(self) -> str:
        """Human-readable summary of the run."""
        return (
            f"Parsed {self.total} announcements, "
            f"{self.added} added, "
            f"{self.skipped} skipped, "
            f"{self.failed} failed"
        )


class MunicipalityImporter:
    """Imports municipality announcements as posts.

    This class wires together:
    - Feed client (fetches the feed document)
    - Core functions (source detection, parsing, record building)
    - Post store (existence checks and inserts)
    """

    def __init__(
        self,
        config: SyncConfig,
        store: PostStore,
        feed_client: FeedClient | None = None,
    ) -> None:
        """Initialize importer.

        Args:
            config: Sync configuration (owner, location, feed URL)
            store: Persistence port for posts
            feed_client: Feed client (created if not provided)
        """
        self.config = config
        self.store = store
        self.feed_client = feed_client or FeedClient(timeout=config.request_timeout)

    def parse_feed(self, url: str) -> list[ImportedPost]:
        """Fetch and parse a feed, choosing the strategy from the URL.

        Raises:
            requests.RequestException: If the feed cannot be fetched
            ValueError: If a JSON feed is not valid JSON
        """
        source = detect_source(url, self.config.html_hosts)
        logger.info("Parsing %s as %s", url, type(source).__name__)

        if isinstance(source, HtmlSource):
            return parse_html(self.feed_client.fetch_text(source.url), source.url)
        if isinstance(source, JsonSource):
            return parse_json(self.feed_client.fetch_json(source.url))
        if isinstance(source, RssSource):
            return parse_rss(self.feed_client.fetch_text(source.url))

        raise TypeError(f"Unsupported feed source: {source!r}")

    def exists(self, content: str, link: str | None = None) -> bool:
        """Check whether an announcement was already imported."""
        return self.store.exists(content, link)

    def _write(self, post: ImportedPost) -> ItemOutcome:
        record = build_post_record(
            post,
            owner_id=self.config.owner_id,
            location=self.config.location,
            now=datetime.now(timezone.utc),
        )

        try:
            self.store.insert(record)
        except Exception as e:
            logger.error("Failed to create municipality post %r: %s", post.title, e)
            return ItemOutcome(post=post, status=OUTCOME_FAILED, error=str(e))

        return ItemOutcome(post=post, status=OUTCOME_ADDED)

    def ingest(self, feed_url: str | None = None) -> ImportResult:
        """Run a complete sync.

        Announcements are processed sequentially: one existence check, then
        an insert for those not yet present.

        Args:
            feed_url: Feed to import (defaults to the configured feed)

        Returns:
            ImportResult with counts and per-announcement outcomes

        Raises:
            ValueError: If no feed URL or owner is available
            requests.RequestException: If the feed cannot be fetched
        """
        url = feed_url or self.config.feed_url
        if not url:
            raise ValueError("No municipality feed URL configured")

        if not self.config.owner_id:
            raise ValueError("No municipality owner ID configured")

        posts = self.parse_feed(url)
        logger.info("Parsed %d announcements from %s", len(posts), url)

        result = ImportResult(total=len(posts))

        for post in posts:
            if self.exists(post.content, post.link):
                result.skipped += 1
                result.outcomes.append(ItemOutcome(post=post, status=OUTCOME_SKIPPED))
                continue

            outcome = self._write(post)
            if outcome.status == OUTCOME_ADDED:
                result.added += 1
            result.outcomes.append(outcome)

        logger.info("Municipality sync completed: %s", result.summary)
        return result
