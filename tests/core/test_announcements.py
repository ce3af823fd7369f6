"""Unit tests for municipality announcement parsing.

Pure function tests - no mocks needed, fast execution.
"""

from datetime import datetime, timezone

import pytest

from locom.core.announcements import (
    HTML_TIMEZONE,
    MAX_HTML_CONTENT_LENGTH,
    MAX_HTML_POSTS,
    HtmlSource,
    JsonSource,
    RssSource,
    detect_source,
    parse_date,
    parse_greek_date_stamp,
    parse_html,
    parse_json,
    parse_rss,
    strip_tags,
)


PAGE_URL = "https://www.nicosia.org.cy/el-GR/news/announcements/2025/"


@pytest.fixture
def sample_rss():
    """RSS document with two items."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Municipality News</title>
    <item>
      <title><![CDATA[Road closure on Ledra Street]]></title>
      <description><![CDATA[<p>Ledra Street will be closed &amp; resurfaced.</p>]]></description>
      <link>https://example.org/news/1</link>
      <pubDate>Wed, 05 Nov 2025 13:40:00 +0200</pubDate>
      <enclosure url="https://example.org/img/1.jpg" type="image/jpeg" />
    </item>
    <item>
      <title>Water outage</title>
      <description>No water on Friday morning.</description>
      <media:content url="https://example.org/img/2.png" medium="image" />
    </item>
  </channel>
</rss>"""


def html_entry(stamp, title, body, href="/el-GR/news/1"):
    """Build one announcement segment of the municipality page."""
    return (
        f'<div class="date">{stamp}</div>'
        f"<h5>{title}</h5>"
        f"<p>{body}</p>"
        f'<a href="{href}">Περισσότερα</a>'
    )


class TestDetectSource:
    """Tests for detect_source()."""

    def test_known_host_is_html(self):
        """Nicosia municipality page is scraped as HTML."""
        assert detect_source(PAGE_URL) == HtmlSource(PAGE_URL)

    def test_json_extension_is_json(self):
        """URLs mentioning .json are JSON feeds."""
        url = "https://example.org/feed.json"
        assert detect_source(url) == JsonSource(url)

    def test_api_path_is_json(self):
        """URLs mentioning api are JSON feeds."""
        url = "https://example.org/api/announcements"
        assert detect_source(url) == JsonSource(url)

    def test_anything_else_is_rss(self):
        """Default strategy is RSS."""
        url = "https://example.org/rss.xml"
        assert detect_source(url) == RssSource(url)

    def test_html_host_wins_over_json_hint(self):
        """Host match is checked first."""
        url = "https://www.nicosia.org.cy/api/feed.json"
        assert isinstance(detect_source(url), HtmlSource)

    def test_custom_html_hosts(self):
        """Configured hosts replace the default list."""
        url = "https://limassolmunicipal.com.cy/news"
        assert isinstance(detect_source(url, ("limassolmunicipal.com.cy",)), HtmlSource)
        assert isinstance(detect_source(PAGE_URL, ("limassolmunicipal.com.cy",)), RssSource)


class TestStripTags:
    """Tests for strip_tags()."""

    def test_unwraps_cdata_and_removes_tags(self):
        """CDATA wrapper and inner tags are removed."""
        assert strip_tags("<![CDATA[<p>Hello <b>world</b></p>]]>") == "Hello world"

    def test_unescapes_entities(self):
        """HTML entities are decoded."""
        assert strip_tags("Fish &amp; chips") == "Fish & chips"

    def test_trims_whitespace(self):
        """Leading and trailing whitespace is removed."""
        assert strip_tags("  <span>x</span>\n") == "x"


class TestParseDate:
    """Tests for parse_date()."""

    def test_rfc822(self):
        """RSS pubDate format is parsed with its offset."""
        parsed = parse_date("Wed, 05 Nov 2025 13:40:00 +0200")
        assert parsed == datetime(2025, 11, 5, 11, 40, tzinfo=timezone.utc)

    def test_iso_with_z(self):
        """ISO 8601 with Z suffix is UTC."""
        assert parse_date("2025-11-05T10:00:00Z") == datetime(2025, 11, 5, 10, 0, tzinfo=timezone.utc)

    def test_naive_iso_is_utc(self):
        """Naive timestamps are taken as UTC."""
        assert parse_date("2025-11-05T10:00:00").tzinfo is not None

    def test_epoch_milliseconds(self):
        """Numbers are epoch milliseconds."""
        assert parse_date(1762336800000) == datetime(2025, 11, 5, 10, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "not a date", True])
    def test_unparseable_returns_none(self, value):
        """Garbage yields None."""
        assert parse_date(value) is None


class TestParseRss:
    """Tests for parse_rss()."""

    def test_parses_all_items(self, sample_rss):
        """Each item becomes an announcement in document order."""
        posts = parse_rss(sample_rss)
        assert [p.title for p in posts] == ["Road closure on Ledra Street", "Water outage"]

    def test_strips_markup_from_description(self, sample_rss):
        """Description is plain text."""
        post = parse_rss(sample_rss)[0]
        assert post.content == "Ledra Street will be closed & resurfaced."

    def test_reads_link_and_date(self, sample_rss):
        """Link and pubDate are extracted."""
        post = parse_rss(sample_rss)[0]
        assert post.link == "https://example.org/news/1"
        assert post.published_date == datetime(2025, 11, 5, 11, 40, tzinfo=timezone.utc)

    def test_image_from_enclosure(self, sample_rss):
        """Enclosure URL is the image."""
        assert parse_rss(sample_rss)[0].image_url == "https://example.org/img/1.jpg"

    def test_image_from_media_content(self, sample_rss):
        """media:content is used when there is no enclosure."""
        assert parse_rss(sample_rss)[1].image_url == "https://example.org/img/2.png"

    def test_missing_link_and_date_are_none(self, sample_rss):
        """Absent optional fields are None."""
        post = parse_rss(sample_rss)[1]
        assert post.link is None
        assert post.published_date is None

    def test_ignores_non_image_media(self):
        """media:content pointing at a video is not an image."""
        xml = (
            "<item><title>Concert</title>"
            '<media:content url="https://example.org/v/1.mp4" /></item>'
        )
        assert parse_rss(xml)[0].image_url is None

    def test_skips_empty_items(self):
        """Items with neither title nor description are dropped."""
        xml = "<item><link>https://example.org</link></item><item><title>Kept</title></item>"
        posts = parse_rss(xml)
        assert len(posts) == 1
        assert posts[0].title == "Kept"
        assert posts[0].content == ""

    def test_no_items(self):
        """Document without items yields nothing."""
        assert parse_rss("<rss><channel></channel></rss>") == []


class TestParseJson:
    """Tests for parse_json()."""

    def test_items_array(self):
        """Entries under 'items' are parsed."""
        data = {"items": [{
            "title": "Market day",
            "content": "Farmers market on Sunday",
            "image": "https://example.org/m.jpg",
            "date": "2025-11-05T10:00:00Z",
            "url": "https://example.org/m",
        }]}

        post = parse_json(data)[0]

        assert post.title == "Market day"
        assert post.content == "Farmers market on Sunday"
        assert post.image_url == "https://example.org/m.jpg"
        assert post.published_date == datetime(2025, 11, 5, 10, 0, tzinfo=timezone.utc)
        assert post.link == "https://example.org/m"

    def test_posts_array_and_alternate_keys(self):
        """'posts', 'description', 'imageUrl' and 'link' are accepted."""
        data = {"posts": [{
            "title": "Notice",
            "description": "Body",
            "imageUrl": "https://example.org/n.png",
            "link": "https://example.org/n",
        }]}

        post = parse_json(data)[0]

        assert post.content == "Body"
        assert post.image_url == "https://example.org/n.png"
        assert post.link == "https://example.org/n"

    def test_bare_list(self):
        """A top-level list is accepted."""
        assert len(parse_json([{"title": "A"}, {"title": "B"}])) == 2

    def test_skips_malformed_entries(self):
        """Non-object and empty entries are dropped."""
        posts = parse_json({"items": ["text", None, {}, {"title": "Ok"}]})
        assert [p.title for p in posts] == ["Ok"]

    def test_missing_arrays(self):
        """Objects without items/posts yield nothing."""
        assert parse_json({"data": []}) == []
        assert parse_json("nope") == []


class TestParseGreekDateStamp:
    """Tests for parse_greek_date_stamp()."""

    def test_abbreviated_month(self):
        """Abbreviated month with trailing dot."""
        parsed = parse_greek_date_stamp("05 Νοε. 2025 (13:40)")
        assert parsed == datetime(2025, 11, 5, 13, 40, tzinfo=HTML_TIMEZONE)

    def test_accented_abbreviation(self):
        """Accents are ignored ('Μάι' is May)."""
        assert parse_greek_date_stamp("12 Μάι. 2025 (09:15)").month == 5

    def test_full_genitive_month(self):
        """Full genitive month name."""
        assert parse_greek_date_stamp("1 Ιανουαρίου 2026 (08:00)").month == 1

    def test_june_and_july_are_distinct(self):
        """Four-letter prefixes tell June and July apart."""
        assert parse_greek_date_stamp("10 Ιούν. 2025 (10:00)").month == 6
        assert parse_greek_date_stamp("10 Ιούλ. 2025 (10:00)").month == 7

    def test_is_nicosia_local_time(self):
        """Stamp is interpreted in Asia/Nicosia (UTC+2 in November)."""
        parsed = parse_greek_date_stamp("05 Νοε. 2025 (13:40)")
        assert parsed.astimezone(timezone.utc) == datetime(2025, 11, 5, 11, 40, tzinfo=timezone.utc)

    def test_unknown_month_returns_none(self):
        """Unknown month names yield no date."""
        assert parse_greek_date_stamp("05 Xyz. 2025 (13:40)") is None

    def test_impossible_date_returns_none(self):
        """Day out of range yields no date."""
        assert parse_greek_date_stamp("31 Φεβ. 2025 (10:00)") is None


class TestParseHtml:
    """Tests for parse_html()."""

    def test_parses_announcements(self):
        """Each stamped segment becomes an announcement."""
        page = (
            "<html><body><h1>Ανακοινώσεις</h1>"
            + html_entry("05 Νοε. 2025 (13:40)", "Κλείσιμο δρόμου", "Η οδός Λήδρας θα κλείσει.")
            + html_entry("04 Νοε. 2025 (09:00)", "Διακοπή νερού", "Χωρίς νερό την Παρασκευή.", "/el-GR/news/2")
            + "</body></html>"
        )

        posts = parse_html(page, PAGE_URL)

        assert [p.title for p in posts] == ["Κλείσιμο δρόμου", "Διακοπή νερού"]
        assert posts[0].published_date == datetime(2025, 11, 5, 13, 40, tzinfo=HTML_TIMEZONE)

    def test_content_is_text_before_read_more(self):
        """Body is flattened text up to the read-more marker."""
        page = html_entry("05 Νοε. 2025 (13:40)", "Τίτλος", "Πρώτη <b>γραμμή</b>\n   δεύτερη")
        post = parse_html(page, PAGE_URL)[0]

        assert post.content == "Τίτλος Πρώτη γραμμή δεύτερη"
        assert "Περισσότερα" not in post.content

    def test_relative_links_become_absolute(self):
        """Links are resolved against the page origin."""
        page = html_entry("05 Νοε. 2025 (13:40)", "Τίτλος", "Κείμενο", "/el-GR/news/42")
        post = parse_html(page, PAGE_URL)[0]
        assert post.link == "https://www.nicosia.org.cy/el-GR/news/42"

    def test_absolute_links_are_kept(self):
        """Absolute links are unchanged."""
        page = html_entry("05 Νοε. 2025 (13:40)", "Τίτλος", "Κείμενο", "https://other.org/x")
        assert parse_html(page, PAGE_URL)[0].link == "https://other.org/x"

    def test_title_falls_back_to_strong(self):
        """<strong> is used when there is no heading."""
        page = "05 Νοε. 2025 (13:40)<p><strong>Σημαντικό</strong> κείμενο</p>"
        post = parse_html(page, PAGE_URL)[0]
        assert post.title == "Σημαντικό"
        assert post.content == "Σημαντικό κείμενο"

    def test_content_is_truncated(self):
        """Long bodies are cut at the content limit."""
        page = html_entry("05 Νοε. 2025 (13:40)", "Τίτλος", "α" * 2000)
        post = parse_html(page, PAGE_URL)[0]
        assert len(post.content) == MAX_HTML_CONTENT_LENGTH

    def test_caps_number_of_announcements(self):
        """At most MAX_HTML_POSTS announcements are returned."""
        page = "".join(
            html_entry(f"{day:02d} Οκτ. 2025 (10:00)", f"Ανακοίνωση {day}", "Κείμενο")
            for day in range(1, 26)
        )
        posts = parse_html(page, PAGE_URL)
        assert len(posts) == MAX_HTML_POSTS
        assert posts[0].title == "Ανακοίνωση 1"

    def test_unknown_month_keeps_announcement_without_date(self):
        """Unparseable stamp does not drop the announcement."""
        page = html_entry("05 Xyz. 2025 (13:40)", "Τίτλος", "Κείμενο")
        post = parse_html(page, PAGE_URL)[0]
        assert post.published_date is None

    def test_page_without_stamps(self):
        """Page with no date stamps yields nothing."""
        assert parse_html("<html><body>Καμία ανακοίνωση</body></html>", PAGE_URL) == []
