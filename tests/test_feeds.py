"""Tests for feed sniffing and parsing."""

from unittest.mock import patch

import pytest
from conftest import html_page, prose, rss_feed

from regional_news.exceptions import NotFeedContent
from regional_news.ingest.feeds import looks_like_feed, parse_feed

FEED_URL = "https://news.example.com/feed.xml"

ATOM = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Hastings Observer</title>
  <entry>
    <title>Pier reopening date confirmed</title>
    <link rel="alternate" href="/news/pier-reopening"/>
    <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
    <updated>2025-07-17T10:00:00Z</updated>
    <summary>The pier will reopen in time for the summer season.</summary>
    <author><name>Jane Reporter</name></author>
  </entry>
</feed>
"""


class TestSniff:
    def test_plain_html_rejected_before_parsing(self):
        html = html_page("<div class='story'><p>Nothing syndicated here.</p></div>")

        with patch("regional_news.ingest.feeds.feedparser.parse") as mock_parse:
            with pytest.raises(NotFeedContent):
                parse_feed(html, FEED_URL)
            mock_parse.assert_not_called()

    @pytest.mark.parametrize("text", [
        '<?xml version="1.0"?><RSS version="2.0"></RSS>',
        '<feed xmlns="http://www.w3.org/2005/Atom"></feed>',
        "<item><title>x</title></item>",
        "<entry><title>x</title></entry>",
    ])
    def test_markers_case_insensitive(self, text):
        assert looks_like_feed(text)

    def test_empty_text(self):
        assert not looks_like_feed("")


class TestRSS:
    def test_item_fields(self):
        feed = rss_feed([{
            "title": "Town Council Meeting",
            "link": "https://news.example.com/council-meeting",
            "description": "<p>Councillors met on <b>Tuesday</b> &amp; voted.</p>",
            "pubDate": "Thu, 17 Jul 2025 23:17:14 GMT",
            "creator": "Sam Writer",
        }])

        items = parse_feed(feed, FEED_URL)

        assert len(items) == 1
        item = items[0]
        assert item.title == "Town Council Meeting"
        assert item.link == "https://news.example.com/council-meeting"
        assert "Tuesday" in item.summary
        assert item.published_at.year == 2025
        assert item.published_at.tzinfo is not None
        assert item.author == "Sam Writer"

    def test_capped_at_ten(self):
        feed = rss_feed([
            {"title": f"Story number {i}", "link": f"https://news.example.com/s/{i}"}
            for i in range(15)
        ])

        items = parse_feed(feed, FEED_URL)

        assert len(items) == 10
        assert items[-1].link == "https://news.example.com/s/9"

    def test_entry_without_title_or_link_skipped(self):
        feed = rss_feed([
            {"description": prose(20)},
            {"title": "Only a title here", "link": None},
            {"title": "Linked story", "link": "https://news.example.com/linked"},
        ])

        items = parse_feed(feed, FEED_URL)

        assert [item.title for item in items] == ["Only a title here", "Linked story"]
        assert items[0].link == ""

    def test_guid_used_when_link_missing(self):
        feed = (
            '<rss version="2.0"><channel><title>t</title>'
            "<item><title>Guid only story</title>"
            "<guid>https://news.example.com/story/9</guid></item>"
            "</channel></rss>"
        )

        items = parse_feed(feed, FEED_URL)

        assert items[0].link == "https://news.example.com/story/9"

    def test_relative_link_resolved_against_feed(self):
        feed = rss_feed([{"title": "Relative link story", "link": "/news/relative"}])

        items = parse_feed(feed, FEED_URL)

        assert items[0].link == "https://news.example.com/news/relative"


class TestAtom:
    def test_entry_fields(self):
        items = parse_feed(ATOM, "https://news.example.com/atom.xml")

        assert len(items) == 1
        item = items[0]
        assert item.title == "Pier reopening date confirmed"
        assert item.link == "https://news.example.com/news/pier-reopening"
        assert item.summary.startswith("The pier will reopen")
        assert item.author == "Jane Reporter"
        assert item.published_at.month == 7
