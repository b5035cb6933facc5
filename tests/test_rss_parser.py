import pytest
from unittest.mock import patch
from bs4.exceptions import ParserRejectedMarkup

from assistant_api.news.rss_parser import RSSParser
from assistant_api.utils.string_utils import strip_markup

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Example</title>
    <item>
      <title>Tom &amp; Jerry return</title>
      <link>https://news.example.com/tom-jerry</link>
      <description><![CDATA[<p>The <b>classic</b> duo is   back.</p>]]></description>
      <pubDate>Mon, 06 Sep 2021 16:45:00 +0000</pubDate>
      <media:thumbnail url="https://img.example.com/thumb.jpg" />
    </item>
    <item>
      <title>Enclosure story</title>
      <link>https://news.example.com/enclosure</link>
      <description>Plain text</description>
      <enclosure url="https://img.example.com/enclosure.jpg" type="image/jpeg" length="0" />
    </item>
    <item>
      <description>An item without a title is dropped</description>
      <link>https://news.example.com/untitled</link>
    </item>
    <item>
      <title>Bare item</title>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <entry>
    <title>Atom entry</title>
    <link href="https://atom.example.com/entry" />
    <updated>2024-01-01T08:30:00Z</updated>
    <summary>Atom summary</summary>
  </entry>
</feed>
"""


class TestRSSParser:
    @pytest.fixture(autouse=True)
    def setup_parser(self):
        self.parser = RSSParser()

    def test_parse_rss_items_in_order(self):
        items = self.parser.parse(RSS_FEED, "Example News")

        assert [item.title for item in items] == ["Tom & Jerry return", "Enclosure story", "Bare item"]
        assert all(item.source == "Example News" for item in items)

    def test_parse_strips_markup_from_description(self):
        item = self.parser.parse(RSS_FEED, "Example News")[0]

        assert item.description == "The classic duo is back."
        assert item.url == "https://news.example.com/tom-jerry"
        assert item.published_at == "Mon, 06 Sep 2021 16:45:00 +0000"

    def test_image_from_thumbnail_and_enclosure(self):
        items = self.parser.parse(RSS_FEED, "Example News")

        assert items[0].image == "https://img.example.com/thumb.jpg"
        assert items[1].image == "https://img.example.com/enclosure.jpg"
        assert items[2].image is None

    def test_missing_optional_fields(self):
        bare = self.parser.parse(RSS_FEED, "Example News")[2]

        assert bare.description == ""
        assert bare.url == ""
        assert bare.published_at is None

    def test_long_description_is_truncated(self):
        long_text = "a" * 300
        feed = RSS_FEED.replace("Plain text", long_text)

        item = self.parser.parse(feed, "Example News")[1]

        assert item.description == "a" * 200 + "..."

    def test_parse_atom_feed(self):
        items = self.parser.parse(ATOM_FEED, "Atom")

        assert len(items) == 1
        assert items[0].title == "Atom entry"
        assert items[0].url == "https://atom.example.com/entry"
        assert items[0].description == "Atom summary"
        assert items[0].published_at == "2024-01-01T08:30:00Z"

    def test_accepts_bytes(self):
        items = self.parser.parse(RSS_FEED.encode("utf-8"), "Example News")

        assert len(items) == 3

    @pytest.mark.parametrize("content", ["", None, "this is not a feed", "<rss><channel><item>"])
    def test_unparseable_input_returns_empty_list(self, content):
        assert self.parser.parse(content, "Broken") == []

    def test_url_like_string_is_not_fetched(self):
        assert self.parser.parse("https://example.com/feed.xml", "Example") == []

    def test_rejected_markup_in_one_title_keeps_the_feed(self):
        broken = "<item><title>&lt;![ broken</title><link>https://news.example.com/broken</link></item>"
        feed = RSS_FEED.replace("<title>Example</title>", "<title>Example</title>" + broken)

        items = self.parser.parse(feed, "Example News")

        titles = [item.title for item in items]
        assert titles[-3:] == ["Tom & Jerry return", "Enclosure story", "Bare item"]

    def test_failing_entry_is_skipped(self):
        original = RSSParser._parse_entry

        def flaky(parser, entry, source):
            if entry.get("title") == "Enclosure story":
                raise ValueError("bad entry")
            return original(parser, entry, source)

        with patch.object(RSSParser, "_parse_entry", autospec=True, side_effect=flaky):
            items = self.parser.parse(RSS_FEED, "Example News")

        assert [item.title for item in items] == ["Tom & Jerry return", "Bare item"]


class TestStripMarkup:
    @pytest.mark.parametrize("text,expected", [
        (None, ""),
        ("  plain   text ", "plain text"),
        ("<p>Hello <b>world</b></p>", "Hello world"),
    ])
    def test_strip_markup(self, text, expected):
        assert strip_markup(text) == expected

    def test_rejected_markup_falls_back_to_tag_removal(self):
        with patch("assistant_api.utils.string_utils.BeautifulSoup", side_effect=ParserRejectedMarkup("bad")):
            assert strip_markup("<p>Hello</p> <b>world</b>") == "Hello world"
