"""Tests for URL, date and text helpers."""

import pytest

from regional_news.utils import (
    clean_text,
    count_words,
    extract_domain,
    is_valid_url,
    normalize_url,
    parse_date_string,
    resolve_url,
    site_root,
    strip_html,
)


def test_normalize_url():
    assert normalize_url("HTTPS://News.Example.com/story/#comments") == "https://news.example.com/story"
    assert normalize_url("https://news.example.com/s?id=4") == "https://news.example.com/s?id=4"


@pytest.mark.parametrize("href,expected", [
    ("/news/1", "https://news.example.com/news/1"),
    ("2", "https://news.example.com/local/2"),
    ("https://other.example.com/x", "https://other.example.com/x"),
    ("#top", ""),
    ("javascript:void(0)", ""),
    ("mailto:desk@example.com", ""),
    ("", ""),
])
def test_resolve_url(href, expected):
    assert resolve_url(href, "https://news.example.com/local/") == expected


def test_domains():
    assert extract_domain("https://www.Example.co.uk/a") == "example.co.uk"
    assert site_root("https://news.example.com/feeds/rss.xml?x=1") == "https://news.example.com/"


def test_is_valid_url():
    assert is_valid_url("https://news.example.com/a")
    assert not is_valid_url("/relative")
    assert not is_valid_url("ftp://news.example.com/a")


@pytest.mark.parametrize("value", [
    "Thu, 17 Jul 2025 23:17:14 GMT",
    "2025-07-17T23:17:14Z",
    "2025-07-17",
    "17 July 2025",
])
def test_parse_date_string(value):
    parsed = parse_date_string(value)

    assert (parsed.year, parsed.month, parsed.day) == (2025, 7, 17)
    assert parsed.tzinfo is not None


def test_parse_date_string_rejects_garbage():
    assert parse_date_string("last tuesday") is None
    assert parse_date_string("") is None


def test_text_helpers():
    assert clean_text("  Fish &amp; chips\xa0on   the pier ") == "Fish & chips on the pier"
    assert strip_html("&lt;p&gt;Escaped <b>markup</b>&lt;/p&gt;") == "Escaped markup"
    assert count_words("one two  three\nfour") == 4
    assert count_words("") == 0
