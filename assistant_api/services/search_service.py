"""
Web search with a provider chain: Brave (when a key is configured), then the
DuckDuckGo Instant Answer API, then Wikipedia. Results are cached per query.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from .base import BaseHTTPService
from ..exceptions import SearchServiceError
from ..utils.string_utils import clean_text, strip_markup

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
DUCKDUCKGO_URL = "https://api.duckduckgo.com/"
WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"
WIKIPEDIA_ARTICLE_URL = "https://en.wikipedia.org/wiki/"


@dataclass(frozen=True)
class SearchResult:
    title: str
    description: str
    url: str


@dataclass
class SearchOutcome:
    query: str
    results: List[SearchResult] = field(default_factory=list)
    provider: Optional[str] = None
    error: Optional[str] = None
    cached: bool = False


class SearchResultCache:
    """Time-bounded, size-bounded cache of search results keyed by query text"""

    def __init__(self, ttl_seconds: float = 300, max_entries: int = 500, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, Tuple[float, SearchOutcome]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def normalize(query: str) -> str:
        return clean_text(query).lower()

    def get(self, query: str) -> Optional[SearchOutcome]:
        key = self.normalize(query)
        with self._lock:
            cached = self._entries.get(key)
            if cached is None:
                return None
            expires_at, outcome = cached
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return outcome

    def set(self, query: str, outcome: SearchOutcome) -> None:
        key = self.normalize(query)
        with self._lock:
            now = self._clock()
            if len(self._entries) >= self.max_entries:
                self._entries = {k: v for k, v in self._entries.items() if v[0] > now}
                if len(self._entries) >= self.max_entries:
                    oldest = min(self._entries, key=lambda k: self._entries[k][0])
                    del self._entries[oldest]
            self._entries[key] = (now + self.ttl_seconds, outcome)

    def __len__(self) -> int:
        return len(self._entries)


class SearchService(BaseHTTPService):
    def __init__(
        self,
        brave_api_key: Optional[str] = None,
        result_limit: int = 5,
        cache: Optional[SearchResultCache] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        user_agent: str = "JARVIS-News-Assistant/1.0",
    ):
        super().__init__(client=client, timeout=timeout, user_agent=user_agent)
        self.brave_api_key = brave_api_key
        self.result_limit = result_limit
        self.cache = cache

    def _providers(self) -> List[Tuple[str, Callable]]:
        providers = []
        if self.brave_api_key:
            providers.append(("brave", self._search_brave))
        providers.append(("duckduckgo", self._search_duckduckgo))
        providers.append(("wikipedia", self._search_wikipedia))
        return providers

    async def search(self, query: str) -> SearchOutcome:
        """Run the provider chain; never raises for upstream failures."""
        if self.cache is not None:
            cached = self.cache.get(query)
            if cached is not None:
                self.logger.info("Search cache hit", query=query)
                return SearchOutcome(query=query, results=cached.results, provider=cached.provider, cached=True)

        errors = []
        for name, provider in self._providers():
            try:
                results = await provider(query)
            except (httpx.HTTPError, SearchServiceError, ValueError, KeyError, TypeError) as e:
                self.logger.warning("Search provider failed", provider=name, query=query, error=str(e))
                errors.append(f"{name}: {e}")
                continue

            if results:
                outcome = SearchOutcome(query=query, results=results[:self.result_limit], provider=name)
                if self.cache is not None:
                    self.cache.set(query, outcome)
                self.logger.info("Search completed", provider=name, query=query, result_count=len(outcome.results))
                return outcome

        if errors and len(errors) == len(self._providers()):
            return SearchOutcome(query=query, error="Search failed")
        return SearchOutcome(query=query)

    async def _get_json(self, url: str, params: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
        request_headers = self._default_headers()
        request_headers["Accept"] = "application/json"
        request_headers.update(headers or {})

        async with self.http_client() as client:
            response = await client.get(url, params=params, headers=request_headers, timeout=self.timeout)

        if not response.is_success:
            raise SearchServiceError(f"HTTP {response.status_code}", details={"url": url})
        return response.json()

    async def _search_brave(self, query: str) -> List[SearchResult]:
        data = await self._get_json(
            BRAVE_SEARCH_URL,
            params={"q": query, "count": self.result_limit},
            headers={"X-Subscription-Token": self.brave_api_key},
        )
        web_results = (data.get("web") or {}).get("results") or []
        return [
            SearchResult(
                title=strip_markup(r.get("title")),
                description=strip_markup(r.get("description")),
                url=r.get("url", ""),
            )
            for r in web_results[:self.result_limit]
            if r.get("title")
        ]

    async def _search_duckduckgo(self, query: str) -> List[SearchResult]:
        data = await self._get_json(
            DUCKDUCKGO_URL,
            params={"q": query, "format": "json", "no_html": "1", "skip_disambig": "1"},
        )

        results = []
        if data.get("AbstractText") and data.get("AbstractURL"):
            results.append(SearchResult(
                title=data.get("Heading") or query,
                description=data["AbstractText"],
                url=data["AbstractURL"],
            ))

        for topic in self._flatten_topics(data.get("RelatedTopics") or []):
            text = topic.get("Text")
            url = topic.get("FirstURL")
            if not text or not url:
                continue
            title, _, description = text.partition(" - ")
            results.append(SearchResult(title=title, description=description or text, url=url))
            if len(results) >= self.result_limit:
                break

        return results

    @staticmethod
    def _flatten_topics(topics: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        flat = []
        for topic in topics:
            if "Topics" in topic:
                flat.extend(topic.get("Topics") or [])
            else:
                flat.append(topic)
        return flat

    async def _search_wikipedia(self, query: str) -> List[SearchResult]:
        data = await self._get_json(
            WIKIPEDIA_API_URL,
            params={
                "action": "query",
                "list": "search",
                "srsearch": query,
                "srlimit": self.result_limit,
                "format": "json",
            },
        )
        hits = (data.get("query") or {}).get("search") or []
        return [
            SearchResult(
                title=hit["title"],
                description=strip_markup(hit.get("snippet")),
                url=WIKIPEDIA_ARTICLE_URL + hit["title"].replace(" ", "_"),
            )
            for hit in hits
            if hit.get("title")
        ]
