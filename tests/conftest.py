import pytest
from unittest.mock import MagicMock, AsyncMock

from assistant_api.config import Settings, get_settings
from assistant_api.news.models import NewsBundle, NewsItem
from assistant_api.services.llm_service import LLMProvider, LLMResult
from assistant_api.services.search_service import SearchOutcome, SearchResult


class FakeClock:
    """Manually advanced clock returning epoch milliseconds"""

    def __init__(self, start: float = 1_700_000_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def fake_clock():
    return FakeClock()


def make_settings(**overrides) -> Settings:
    values = {
        "app_key": None,
        "rate_limit_enabled": False,
        "groq_api_key": None,
        "brave_search_api_key": None,
        "firebase_private_key": None,
        "firebase_client_email": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def test_settings():
    return make_settings()


@pytest.fixture
def app(test_settings):
    from assistant_api.main import create_application

    application = create_application()
    application.dependency_overrides[get_settings] = lambda: test_settings
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def async_client(app):
    from httpx import AsyncClient, ASGITransport

    # Unhandled errors are asserted as 500 responses rather than re-raised.
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def mock_llm_service():
    service = MagicMock()
    service.is_configured = MagicMock(return_value=True)
    service.generate_with_fallback = AsyncMock(return_value=LLMResult(
        text="It is sunny in Paris today.",
        model="llama-3.3-70b-versatile",
        provider=LLMProvider.GROQ,
        latency_ms=42,
    ))
    return service


@pytest.fixture
def mock_search_service():
    service = MagicMock()
    service.search = AsyncMock(return_value=SearchOutcome(
        query="python asyncio",
        results=[SearchResult(
            title="asyncio",
            description="Asynchronous I/O",
            url="https://docs.python.org/3/library/asyncio.html",
        )],
        provider="duckduckgo",
    ))
    return service


@pytest.fixture
def sample_news_items():
    return [
        NewsItem(
            title=f"Headline {i}",
            description=f"Story {i}",
            url=f"https://news.example.com/{i}",
            source="Example News",
            published_at="Mon, 01 Jan 2024 10:00:00 GMT",
        )
        for i in range(3)
    ]


@pytest.fixture
def mock_news_aggregator(sample_news_items):
    aggregator = MagicMock()
    aggregator.get_news = AsyncMock(return_value=NewsBundle(
        local=sample_news_items[:1],
        country=sample_news_items[1:],
        world=[],
        country_name="United States",
    ))
    return aggregator


@pytest.fixture
def build_rss():
    return rss_document


def rss_document(items, title="Example Feed"):
    """Minimal RSS 2.0 document; items are (title, link, pub_date) tuples"""
    body = "".join(
        f"<item><title>{item_title}</title><link>{link}</link>"
        f"<description>About {item_title}</description>"
        + (f"<pubDate>{pub_date}</pubDate>" if pub_date else "")
        + "</item>"
        for item_title, link, pub_date in items
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<rss version="2.0"><channel><title>{title}</title>{body}</channel></rss>'
    )
