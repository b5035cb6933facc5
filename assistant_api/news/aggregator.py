"""
News aggregation: concurrent feed fetches merged into a NewsBundle.

Request modes, first match wins:
    1. category  - configured feeds for one category
    2. query     - Google News search for free text
    3. composite - optional city news, country news and world news, with world
                   items that duplicate a country headline removed
"""

import asyncio
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, Iterable, List, Optional, Sequence

import httpx

from .feeds import (
    CATEGORY_FEEDS,
    COUNTRY_NEWS_SOURCES,
    DEFAULT_COUNTRY,
    GOOGLE_NEWS_SEARCH_URL,
    GOOGLE_NEWS_TOP_URL,
    get_country_sources,
)
from .models import FeedSource, NewsBundle, NewsItem
from .rss_parser import RSSParser
from ..services.base import BaseHTTPService

OLDEST = datetime.min.replace(tzinfo=timezone.utc)

MAX_FEEDS_PER_GROUP = 2
CATEGORY_LIMIT = 5
SEARCH_LIMIT = 5


def parse_published_at(value: Optional[str]) -> datetime:
    """Comparable instant for a feed date; anything unparsable sorts oldest."""
    if not value:
        return OLDEST

    parsed = None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return OLDEST

    if parsed is None:
        return OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_by_published(items: Iterable[NewsItem]) -> List[NewsItem]:
    return sorted(items, key=lambda item: parse_published_at(item.published_at), reverse=True)


def exclude_titles(items: Iterable[NewsItem], reference: Iterable[NewsItem]) -> List[NewsItem]:
    seen = {item.title.lower() for item in reference}
    return [item for item in items if item.title.lower() not in seen]


class NewsAggregator(BaseHTTPService):
    """Builds local/country/world, category or search news bundles"""

    FEED_ACCEPT = "application/rss+xml, application/xml, text/xml"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        user_agent: str = "JARVIS-News-Assistant/1.0",
        parser: Optional[RSSParser] = None,
        category_feeds: Optional[Dict[str, List[FeedSource]]] = None,
    ):
        super().__init__(client=client, timeout=timeout, user_agent=user_agent)
        self.parser = parser or RSSParser()
        self.category_feeds = category_feeds or CATEGORY_FEEDS

    def _default_headers(self) -> Dict[str, str]:
        return {"User-Agent": self.user_agent, "Accept": self.FEED_ACCEPT}

    async def get_news(
        self,
        country_code: Optional[str] = None,
        city: Optional[str] = None,
        category: Optional[str] = None,
        query: Optional[str] = None,
        local_count: int = 2,
        country_count: int = 2,
        world_count: int = 1,
    ) -> NewsBundle:
        bundle = NewsBundle()
        category = category.strip().lower() if category else None

        try:
            if category and category in self.category_feeds:
                items = await self.fetch_feeds(self.category_feeds[category][:MAX_FEEDS_PER_GROUP])
                bundle.category = items[:CATEGORY_LIMIT]
                bundle.category_name = category.capitalize()
                return bundle

            if query:
                items = await self.fetch_google_news(query)
                bundle.search = items[:SEARCH_LIMIT]
                bundle.search_query = query
                return bundle

            country_sources = get_country_sources(country_code)
            world_feeds = COUNTRY_NEWS_SOURCES[DEFAULT_COUNTRY].feeds[:MAX_FEEDS_PER_GROUP]

            local_task = self.fetch_google_news(f"{city} news") if city else _empty()
            results = await asyncio.gather(
                local_task,
                self.fetch_feeds(country_sources.feeds[:MAX_FEEDS_PER_GROUP]),
                self.fetch_feeds(world_feeds),
                return_exceptions=True,
            )
            local_items, country_items, world_items = self._settle_groups(("local", "country", "world"), results)

            bundle.local = local_items[:local_count]
            bundle.country = sort_by_published(country_items)[:country_count]
            bundle.country_name = country_sources.name
            bundle.world = sort_by_published(exclude_titles(world_items, bundle.country))[:world_count]

        except Exception as e:
            self.logger.error("News aggregation failed", error=str(e), exc_info=e)

        self.logger.info(
            "News bundle assembled",
            local=len(bundle.local),
            country=len(bundle.country),
            world=len(bundle.world),
            category=len(bundle.category or []),
            search=len(bundle.search or []),
        )
        return bundle

    def _settle_groups(self, names: Sequence[str], results: Sequence) -> List[List[NewsItem]]:
        settled: List[List[NewsItem]] = []
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                self.logger.warning("News group failed", group=name, error=str(result))
                result = []
            settled.append(result)
        return settled

    async def fetch_feeds(self, feeds: Sequence[FeedSource]) -> List[NewsItem]:
        """Fetch feeds concurrently and flatten in feed order; failures contribute nothing."""
        results = await asyncio.gather(
            *(self.fetch_rss_feed(feed.url, feed.name) for feed in feeds),
            return_exceptions=True,
        )

        items: List[NewsItem] = []
        for feed, result in zip(feeds, results):
            if isinstance(result, BaseException):
                self.logger.warning("Feed fetch raised", source=feed.name, error=str(result))
                continue
            items.extend(result)
        return items

    async def fetch_rss_feed(self, url: str, source: str, params: Optional[Dict[str, str]] = None) -> List[NewsItem]:
        try:
            async with self.http_client() as client:
                response = await client.get(
                    url,
                    params=params,
                    headers=self._default_headers(),
                    timeout=self.timeout,
                    follow_redirects=True,
                )
        except httpx.HTTPError as e:
            self.logger.warning("RSS fetch error", source=source, url=url, error=str(e))
            return []

        if not response.is_success:
            self.logger.warning("RSS fetch failed", source=source, url=url, status_code=response.status_code)
            return []

        try:
            return self.parser.parse(response.content, source)
        except Exception as e:
            self.logger.warning("RSS parse error", source=source, url=url, error=str(e))
            return []

    async def fetch_google_news(self, query: Optional[str]) -> List[NewsItem]:
        if not query:
            return await self.fetch_rss_feed(GOOGLE_NEWS_TOP_URL, "Google News")
        return await self.fetch_rss_feed(GOOGLE_NEWS_SEARCH_URL, "Google News", params={"q": query, "hl": "en"})


async def _empty() -> List[NewsItem]:
    return []
