"""Municipality announcement parsing - Pure functions.

This module turns raw municipality feed documents (RSS/XML, JSON, or the
Nicosia announcements HTML page) into ImportedPost objects.
Parsing is pattern extraction over raw markup, not a full XML/HTML parse.

Malformed entries are skipped. Whole-document failures (e.g., a JSON body
that is not JSON) are the caller's concern and propagate.
"""

import email.utils
import html
import logging
import re
import unicodedata
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union
from urllib.parse import urljoin, urlparse
from zoneinfo import ZoneInfo


logger = logging.getLogger(__name__)


# Hosts served by the HTML scraper
DEFAULT_HTML_HOSTS = ("nicosia.org.cy",)

# Limits for scraped HTML announcements
MAX_HTML_POSTS = 20
MAX_HTML_CONTENT_LENGTH = 800

# "Read more" marker ending each announcement body
READ_MORE_MARKER = "Περισσότερα"

# Local time of announcement stamps
HTML_TIMEZONE = ZoneInfo("Asia/Nicosia")

IMAGE_URL_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp)", re.IGNORECASE)

_ITEM_RE = re.compile(r"<item[^>]*>(.*?)</item>", re.IGNORECASE | re.DOTALL)
_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")
_ENCLOSURE_RE = re.compile(r"""<enclosure[^>]*url=["']([^"']+)["']""", re.IGNORECASE)
_MEDIA_RE = re.compile(r"""<media:content[^>]*url=["']([^"']+)["']""", re.IGNORECASE)

# e.g. "05 Νοε. 2025 (13:40)"
_DATE_STAMP_RE = re.compile(r"(\d{1,2}\s+\w+\.?\s+\d{4}\s+\(\d{2}:\d{2}\))")
_DATE_PARTS_RE = re.compile(r"(\d{1,2})\s+(\w+)\.?\s+(\d{4})\s+\((\d{2}):(\d{2})\)")
_HEADING_RE = re.compile(r"<h[4-6][^>]*>(.*?)</h[4-6]>", re.IGNORECASE | re.DOTALL)
_STRONG_RE = re.compile(r"<strong[^>]*>(.*?)</strong>", re.IGNORECASE | re.DOTALL)
_BEFORE_MARKER_RE = re.compile(rf"(.*?){READ_MORE_MARKER}", re.IGNORECASE | re.DOTALL)
_MARKER_LINK_RE = re.compile(
    rf"""<a[^>]*href=["']([^"']+)["'][^>]*>.*?{READ_MORE_MARKER}""",
    re.IGNORECASE | re.DOTALL,
)
_ANY_LINK_RE = re.compile(r"""href=["']([^"']+)["']""", re.IGNORECASE)

# Greek month names (accents removed, lower case), abbreviated and genitive
GREEK_MONTHS: dict[str, int] = {
    "ιαν": 1, "φεβ": 2, "μαρ": 3, "απρ": 4, "μαι": 5, "ιουν": 6,
    "ιουλ": 7, "αυγ": 8, "σεπ": 9, "οκτ": 10, "νοε": 11, "δεκ": 12,
    "ιανουαριου": 1, "φεβρουαριου": 2, "μαρτιου": 3, "απριλιου": 4,
    "μαιου": 5, "ιουνιου": 6, "ιουλιου": 7, "αυγουστου": 8,
    "σεπτεμβριου": 9, "οκτωβριου": 10, "νοεμβριου": 11, "δεκεμβριου": 12,
}


@dataclass(frozen=True)
class ImportedPost:
    """An announcement between feed fetch and persistence.

    Attributes:
        title: Announcement headline
        content: Announcement body (plain text)
        image_url: Attached image URL (optional)
        published_date: Publication timestamp, timezone-aware (optional)
        link: Link to the original announcement (optional)
    """
    title: str
    content: str
    image_url: str | None = None
    published_date: datetime | None = None
    link: str | None = None


@dataclass(frozen=True)
class RssSource:
    """An RSS/XML feed."""
    url: str


@dataclass(frozen=True)
class JsonSource:
    """A JSON feed with an ``items`` or ``posts`` array."""
    url: str


@dataclass(frozen=True)
class HtmlSource:
    """A municipality announcements page scraped as HTML."""
    url: str


FeedSource = Union[RssSource, JsonSource, HtmlSource]


def detect_source(
    url: str,
    html_hosts: tuple[str, ...] = DEFAULT_HTML_HOSTS,
) -> FeedSource:
    """Choose a parsing strategy by sniffing the feed URL.

    Pure function. Known host -> HTML, '.json'/'api' -> JSON, otherwise RSS.
    """
    if any(host in url for host in html_hosts):
        return HtmlSource(url)
    if ".json" in url or "api" in url:
        return JsonSource(url)
    return RssSource(url)


def strip_tags(markup: str) -> str:
    """Remove markup tags and CDATA wrappers, unescape entities, trim."""
    text = _CDATA_RE.sub(r"\1", markup)
    text = _TAG_RE.sub("", text)
    return html.unescape(text).strip()


def _flatten_html(markup: str) -> str:
    text = _TAG_RE.sub(" ", markup)
    return _SPACE_RE.sub(" ", html.unescape(text)).strip()


def parse_date(value: Any) -> datetime | None:
    """Parse RFC 822, ISO 8601 or epoch-millisecond timestamps.

    Pure function. Naive results are taken as UTC. Returns None if unparseable.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    if not text:
        return None

    parsed: datetime | None = None
    try:
        parsed = email.utils.parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _match_group(pattern: re.Pattern, text: str) -> str | None:
    match = pattern.search(text)
    return match.group(1) if match else None


def parse_rss_item(item: str) -> ImportedPost | None:
    """Parse the inside of one ``<item>`` block.

    Pure function. Returns None when the item has neither title nor content.
    """
    def tag(name: str) -> str:
        pattern = re.compile(
            rf"<{name}[^>]*>(.*?)</{name}>",
            re.IGNORECASE | re.DOTALL,
        )
        raw = _match_group(pattern, item)
        return strip_tags(raw) if raw is not None else ""

    title = tag("title")
    content = tag("description")
    if not title and not content:
        return None

    image_url = _match_group(_ENCLOSURE_RE, item)
    if image_url is None:
        media_url = _match_group(_MEDIA_RE, item)
        if media_url and IMAGE_URL_PATTERN.search(media_url):
            image_url = media_url

    return ImportedPost(
        title=title,
        content=content,
        image_url=image_url,
        published_date=parse_date(tag("pubDate") or None),
        link=tag("link") or None,
    )


def parse_rss(xml_text: str) -> list[ImportedPost]:
    """Parse an RSS document into announcements.

    Pure function.

    Args:
        xml_text: Raw RSS/XML markup

    Returns:
        Announcements in document order
    """
    posts = []
    for match in _ITEM_RE.finditer(xml_text):
        post = parse_rss_item(match.group(1))
        if post is None:
            logger.debug("Skipping empty RSS item")
            continue
        posts.append(post)
    return posts


def parse_json_item(item: Any) -> ImportedPost | None:
    """Parse one JSON feed entry. Returns None for non-object entries."""
    if not isinstance(item, dict):
        return None

    title = str(item.get("title") or "")
    content = str(item.get("content") or item.get("description") or "")
    if not title and not content:
        return None

    return ImportedPost(
        title=title,
        content=content,
        image_url=item.get("image") or item.get("imageUrl") or None,
        published_date=parse_date(item.get("date")),
        link=item.get("url") or item.get("link") or None,
    )


def parse_json(data: Any) -> list[ImportedPost]:
    """Parse a decoded JSON feed into announcements.

    Pure function. Accepts ``{"items": [...]}``, ``{"posts": [...]}``
    or a bare list.
    """
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        items = data.get("items") or data.get("posts") or []
    else:
        items = []

    posts = []
    for item in items:
        post = parse_json_item(item)
        if post is None:
            logger.debug("Skipping malformed JSON feed entry")
            continue
        posts.append(post)
    return posts


def _month_number(name: str) -> int | None:
    decomposed = unicodedata.normalize("NFD", name.lower().rstrip("."))
    plain = "".join(c for c in decomposed if not unicodedata.combining(c))
    if plain in GREEK_MONTHS:
        return GREEK_MONTHS[plain]
    for size in (4, 3):
        if len(plain) > size and plain[:size] in GREEK_MONTHS:
            return GREEK_MONTHS[plain[:size]]
    return None


def parse_greek_date_stamp(stamp: str) -> datetime | None:
    """Parse a stamp like ``05 Νοε. 2025 (13:40)`` in Nicosia local time.

    Pure function. Returns None for unknown months or impossible dates.
    """
    match = _DATE_PARTS_RE.search(stamp)
    if not match:
        return None

    day, month_name, year, hour, minute = match.groups()
    month = _month_number(month_name)
    if month is None:
        return None

    try:
        return datetime(
            int(year), month, int(day), int(hour), int(minute),
            tzinfo=HTML_TIMEZONE,
        )
    except ValueError:
        return None


def _absolute_link(link: str | None, page_url: str) -> str | None:
    if not link:
        return None
    if link.startswith("http"):
        return link
    parts = urlparse(page_url)
    return urljoin(f"{parts.scheme}://{parts.netloc}/", link)


def parse_html_block(stamp: str, block: str, page_url: str) -> ImportedPost | None:
    """Parse one announcement segment following a date stamp.

    Pure function. Returns None when both title and content are empty.
    """
    heading = _match_group(_HEADING_RE, block) or _match_group(_STRONG_RE, block)
    title = _flatten_html(heading) if heading else ""

    before_marker = _match_group(_BEFORE_MARKER_RE, block)
    content = _flatten_html(before_marker if before_marker is not None else block)

    if not title and not content:
        return None

    link = _match_group(_MARKER_LINK_RE, block) or _match_group(_ANY_LINK_RE, block)

    return ImportedPost(
        title=title,
        content=content[:MAX_HTML_CONTENT_LENGTH],
        published_date=parse_greek_date_stamp(stamp),
        link=_absolute_link(link, page_url),
    )


def parse_html(html_text: str, page_url: str) -> list[ImportedPost]:
    """Scrape the municipality announcements page.

    Pure function. The page is split on date stamps; each segment is one
    announcement.

    Args:
        html_text: Raw page markup
        page_url: URL the page was fetched from (for absolute links)

    Returns:
        Up to MAX_HTML_POSTS announcements, newest first as listed on the page
    """
    sections = _DATE_STAMP_RE.split(html_text)
    posts: list[ImportedPost] = []

    # sections = [preamble, stamp, block, stamp, block, ...]
    for i in range(1, len(sections) - 1, 2):
        post = parse_html_block(sections[i].strip(), sections[i + 1], page_url)
        if post is None:
            logger.debug("Skipping empty announcement at %s", sections[i].strip())
            continue
        posts.append(post)

    return posts[:MAX_HTML_POSTS]
