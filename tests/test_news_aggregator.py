from datetime import datetime, timezone

import httpx
import pytest
from unittest.mock import patch

from assistant_api.news.aggregator import (
    OLDEST,
    NewsAggregator,
    exclude_titles,
    parse_published_at,
    sort_by_published,
)
from assistant_api.news.models import FeedSource, NewsItem
from assistant_api.news.rss_parser import RSSParser

NYT_HOME = "https://rss.nytimes.com/services/xml/rss/nyt/HomePage.xml"
NPR = "https://feeds.npr.org/1001/rss.xml"
BBC_WORLD = "https://feeds.bbci.co.uk/news/world/rss.xml"
NYT_WORLD = "https://rss.nytimes.com/services/xml/rss/nyt/World.xml"


def url_of(request: httpx.Request) -> str:
    return f"{request.url.scheme}://{request.url.host}{request.url.path}"


class TestDateHelpers:
    def test_parse_rfc_2822(self):
        parsed = parse_published_at("Mon, 06 Sep 2021 16:45:00 +0000")
        assert parsed == datetime(2021, 9, 6, 16, 45, tzinfo=timezone.utc)

    def test_parse_iso_8601(self):
        parsed = parse_published_at("2024-01-01T08:30:00Z")
        assert parsed == datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "yesterday-ish"])
    def test_unparseable_sorts_oldest(self, value):
        assert parse_published_at(value) == OLDEST

    def test_sort_newest_first_with_undated_last(self):
        items = [
            NewsItem("old", "", "", "s", "Mon, 01 Jan 2024 10:00:00 GMT"),
            NewsItem("undated", "", "", "s", None),
            NewsItem("new", "", "", "s", "Tue, 02 Jan 2024 10:00:00 GMT"),
        ]

        assert [item.title for item in sort_by_published(items)] == ["new", "old", "undated"]

    def test_exclude_titles_is_case_insensitive(self):
        world = [NewsItem("Big Story", "", "", "w"), NewsItem("Other", "", "", "w")]
        country = [NewsItem("big story", "", "", "c")]

        assert [item.title for item in exclude_titles(world, country)] == ["Other"]


class TestNewsAggregator:
    @pytest.fixture
    def feeds(self, build_rss):
        return {
            NYT_HOME: build_rss([
                ("Shared headline", "https://nyt.example/1", "Mon, 01 Jan 2024 09:00:00 GMT"),
                ("NYT older", "https://nyt.example/2", "Sun, 31 Dec 2023 09:00:00 GMT"),
            ]),
            NPR: build_rss([
                ("NPR newest", "https://npr.example/1", "Mon, 01 Jan 2024 12:00:00 GMT"),
            ]),
            BBC_WORLD: build_rss([
                ("shared HEADLINE", "https://bbc.example/1", "Mon, 01 Jan 2024 13:00:00 GMT"),
                ("World exclusive", "https://bbc.example/2", "Mon, 01 Jan 2024 11:00:00 GMT"),
            ]),
            NYT_WORLD: build_rss([
                ("World older", "https://nyt.example/w", "Sun, 31 Dec 2023 11:00:00 GMT"),
            ]),
        }

    def make_aggregator(self, handler, **kwargs):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return NewsAggregator(client=client, **kwargs)

    @pytest.mark.asyncio
    async def test_composite_bundle(self, feeds, build_rss):
        requested = []

        def handler(request):
            requested.append(request)
            if request.url.host == "news.google.com":
                assert request.url.params["q"] == "Austin news"
                return httpx.Response(200, text=build_rss([
                    ("Austin 1", "https://g.example/1", None),
                    ("Austin 2", "https://g.example/2", None),
                    ("Austin 3", "https://g.example/3", None),
                ]))
            return httpx.Response(200, text=feeds[url_of(request)])

        aggregator = self.make_aggregator(handler)
        bundle = await aggregator.get_news(country_code="us", city="Austin")

        assert [item.title for item in bundle.local] == ["Austin 1", "Austin 2"]
        assert [item.title for item in bundle.country] == ["NPR newest", "Shared headline"]
        assert [item.title for item in bundle.world] == ["World exclusive"]
        assert bundle.country_name == "United States"
        assert bundle.category is None and bundle.search is None
        assert len(requested) == 5

    @pytest.mark.asyncio
    async def test_composite_without_city_skips_local(self, feeds):
        def handler(request):
            assert request.url.host != "news.google.com"
            return httpx.Response(200, text=feeds[url_of(request)])

        aggregator = self.make_aggregator(handler)
        bundle = await aggregator.get_news(country_code="US")

        assert bundle.local == []
        assert len(bundle.country) == 2

    @pytest.mark.asyncio
    async def test_unknown_country_uses_world_sources(self, feeds):
        def handler(request):
            return httpx.Response(200, text=feeds[url_of(request)])

        aggregator = self.make_aggregator(handler)
        bundle = await aggregator.get_news(country_code="ZZ")

        assert bundle.country_name == "World"
        # Country and world read the same feeds, so world keeps only what country did not take.
        assert [item.title for item in bundle.country] == ["shared HEADLINE", "World exclusive"]
        assert [item.title for item in bundle.world] == ["World older"]

    @pytest.mark.asyncio
    async def test_category_mode_limits_feeds_and_items(self, build_rss):
        requested = []
        category_feeds = {
            "sports": [
                FeedSource("https://sports.example/a", "A"),
                FeedSource("https://sports.example/b", "B"),
                FeedSource("https://sports.example/c", "C"),
            ],
        }

        def handler(request):
            requested.append(url_of(request))
            name = request.url.path.strip("/")
            return httpx.Response(200, text=build_rss([
                (f"{name}{i}", f"https://sports.example/{name}/{i}", None) for i in range(4)
            ]))

        aggregator = self.make_aggregator(handler, category_feeds=category_feeds)
        bundle = await aggregator.get_news(country_code="US", city="Austin", category="Sports", query="ignored")

        assert sorted(requested) == ["https://sports.example/a", "https://sports.example/b"]
        assert [item.title for item in bundle.category] == ["a0", "a1", "a2", "a3", "b0"]
        assert bundle.category_name == "Sports"
        assert bundle.local == [] and bundle.country == [] and bundle.world == []

    @pytest.mark.asyncio
    async def test_query_mode_uses_google_news_search(self, build_rss):
        def handler(request):
            assert request.url.host == "news.google.com"
            assert request.url.path == "/rss/search"
            assert request.url.params["q"] == "mars rover"
            assert request.url.params["hl"] == "en"
            return httpx.Response(200, text=build_rss([
                (f"Result {i}", f"https://g.example/{i}", None) for i in range(7)
            ]))

        aggregator = self.make_aggregator(handler)
        bundle = await aggregator.get_news(query="mars rover")

        assert len(bundle.search) == 5
        assert bundle.search_query == "mars rover"
        assert bundle.search[0].source == "Google News"

    @pytest.mark.asyncio
    async def test_failed_sources_contribute_nothing(self, feeds):
        def handler(request):
            url = url_of(request)
            if url == NYT_HOME:
                return httpx.Response(500)
            if url == BBC_WORLD:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, text=feeds[url])

        aggregator = self.make_aggregator(handler)
        bundle = await aggregator.get_news(country_code="US")

        assert [item.title for item in bundle.country] == ["NPR newest"]
        assert [item.title for item in bundle.world] == ["World older"]

    @pytest.mark.asyncio
    async def test_timeouts_yield_empty_bundle(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        aggregator = self.make_aggregator(handler)
        bundle = await aggregator.get_news(country_code="IN", city="Pune")

        assert bundle.local == [] and bundle.country == [] and bundle.world == []
        assert bundle.country_name == "India"

    @pytest.mark.asyncio
    async def test_garbage_feed_body_is_ignored(self):
        def handler(request):
            return httpx.Response(200, text="<html>definitely not rss</html>")

        aggregator = self.make_aggregator(handler)
        bundle = await aggregator.get_news(category="health")

        assert bundle.category == []
        assert bundle.category_name == "Health"

    @pytest.mark.asyncio
    async def test_broken_local_group_keeps_country_and_world(self, feeds):
        def handler(request):
            if request.url.host == "news.google.com":
                raise RuntimeError("unexpected transport failure")
            return httpx.Response(200, text=feeds[url_of(request)])

        aggregator = self.make_aggregator(handler)
        bundle = await aggregator.get_news(country_code="US", city="Austin")

        assert bundle.local == []
        assert [item.title for item in bundle.country] == ["NPR newest", "Shared headline"]
        assert [item.title for item in bundle.world] == ["World exclusive"]

    @pytest.mark.asyncio
    async def test_parser_failure_only_drops_that_feed(self, feeds):
        original = RSSParser.parse

        def parse(parser, content, source):
            if source == "Google News":
                raise ValueError("rejected markup")
            return original(parser, content, source)

        def handler(request):
            if request.url.host == "news.google.com":
                return httpx.Response(200, text="<rss/>")
            return httpx.Response(200, text=feeds[url_of(request)])

        aggregator = self.make_aggregator(handler)
        with patch.object(RSSParser, "parse", autospec=True, side_effect=parse):
            bundle = await aggregator.get_news(country_code="US", city="Austin")

        assert bundle.local == []
        assert [item.title for item in bundle.country] == ["NPR newest", "Shared headline"]
        assert [item.title for item in bundle.world] == ["World exclusive"]

    @pytest.mark.asyncio
    async def test_any_success_status_is_parsed(self, build_rss):
        def handler(request):
            return httpx.Response(203, text=build_rss([("Cached story", "https://g.example/c", None)]))

        aggregator = self.make_aggregator(handler)
        bundle = await aggregator.get_news(query="cached")

        assert [item.title for item in bundle.search] == ["Cached story"]
