"""
Static feed catalogue: publisher RSS feeds per country and per category,
plus the keyword table used to guess a category from a free-text query.
"""

from typing import Dict, List, Optional

from .models import CountrySources, FeedSource

DEFAULT_COUNTRY = "DEFAULT"

GOOGLE_NEWS_SEARCH_URL = "https://news.google.com/rss/search"
GOOGLE_NEWS_TOP_URL = "https://news.google.com/rss?hl=en&gl=US&ceid=US:en"

COUNTRY_NEWS_SOURCES: Dict[str, CountrySources] = {
    "IN": CountrySources("India", [
        FeedSource("https://timesofindia.indiatimes.com/rssfeedstopstories.cms", "Times of India"),
        FeedSource("https://www.thehindu.com/news/national/feeder/default.rss", "The Hindu"),
    ]),
    "US": CountrySources("United States", [
        FeedSource("https://rss.nytimes.com/services/xml/rss/nyt/HomePage.xml", "NY Times"),
        FeedSource("https://feeds.npr.org/1001/rss.xml", "NPR"),
    ]),
    "GB": CountrySources("United Kingdom", [
        FeedSource("https://feeds.bbci.co.uk/news/rss.xml", "BBC News"),
        FeedSource("https://www.theguardian.com/uk/rss", "The Guardian"),
    ]),
    "CA": CountrySources("Canada", [
        FeedSource("https://www.cbc.ca/cmlink/rss-topstories", "CBC News"),
    ]),
    "AU": CountrySources("Australia", [
        FeedSource("https://www.abc.net.au/news/feed/51120/rss.xml", "ABC Australia"),
    ]),
    DEFAULT_COUNTRY: CountrySources("World", [
        FeedSource("https://feeds.bbci.co.uk/news/world/rss.xml", "BBC World"),
        FeedSource("https://rss.nytimes.com/services/xml/rss/nyt/World.xml", "NY Times World"),
    ]),
}

CATEGORY_FEEDS: Dict[str, List[FeedSource]] = {
    "politics": [
        FeedSource("https://feeds.bbci.co.uk/news/politics/rss.xml", "BBC Politics"),
        FeedSource("https://rss.nytimes.com/services/xml/rss/nyt/Politics.xml", "NY Times Politics"),
    ],
    "sports": [
        FeedSource("https://feeds.bbci.co.uk/sport/rss.xml", "BBC Sports"),
        FeedSource("https://www.espn.com/espn/rss/news", "ESPN"),
    ],
    "technology": [
        FeedSource("https://feeds.bbci.co.uk/news/technology/rss.xml", "BBC Tech"),
        FeedSource("https://rss.nytimes.com/services/xml/rss/nyt/Technology.xml", "NY Times Tech"),
        FeedSource("https://www.theverge.com/rss/index.xml", "The Verge"),
    ],
    "business": [
        FeedSource("https://feeds.bbci.co.uk/news/business/rss.xml", "BBC Business"),
        FeedSource("https://rss.nytimes.com/services/xml/rss/nyt/Business.xml", "NY Times Business"),
    ],
    "entertainment": [
        FeedSource("https://feeds.bbci.co.uk/news/entertainment_and_arts/rss.xml", "BBC Entertainment"),
        FeedSource("https://rss.nytimes.com/services/xml/rss/nyt/Arts.xml", "NY Times Arts"),
    ],
    "health": [
        FeedSource("https://feeds.bbci.co.uk/news/health/rss.xml", "BBC Health"),
        FeedSource("https://rss.nytimes.com/services/xml/rss/nyt/Health.xml", "NY Times Health"),
    ],
    "science": [
        FeedSource("https://feeds.bbci.co.uk/news/science_and_environment/rss.xml", "BBC Science"),
        FeedSource("https://rss.nytimes.com/services/xml/rss/nyt/Science.xml", "NY Times Science"),
    ],
    "world": [
        FeedSource("https://feeds.bbci.co.uk/news/world/rss.xml", "BBC World"),
        FeedSource("https://rss.nytimes.com/services/xml/rss/nyt/World.xml", "NY Times World"),
    ],
}

# Order matters: the first category with a matching keyword wins.
CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "politics": ["politics", "political", "election", "government", "minister", "parliament",
                 "congress", "senate", "vote", "campaign"],
    "sports": ["sports", "sport", "football", "soccer", "cricket", "basketball", "tennis",
               "olympics", "nfl", "nba", "fifa", "match", "game score"],
    "technology": ["tech", "technology", "ai", "artificial intelligence", "software", "hardware",
                   "apple", "google", "microsoft", "startup", "gadget", "smartphone"],
    "business": ["business", "economy", "stock", "market", "finance", "trade", "company",
                 "startup", "investment"],
    "entertainment": ["entertainment", "movie", "film", "celebrity", "music", "hollywood",
                      "bollywood", "tv show", "streaming"],
    "health": ["health", "medical", "doctor", "hospital", "disease", "vaccine", "covid",
               "wellness", "fitness"],
    "science": ["science", "research", "discovery", "space", "nasa", "climate", "environment",
                "biology", "physics"],
    "world": ["world", "international", "global", "foreign"],
}


def get_country_sources(country_code: Optional[str]) -> CountrySources:
    code = (country_code or DEFAULT_COUNTRY).upper()
    return COUNTRY_NEWS_SOURCES.get(code, COUNTRY_NEWS_SOURCES[DEFAULT_COUNTRY])


def resolve_category(category: Optional[str]) -> Optional[str]:
    if not category:
        return None
    key = category.strip().lower()
    return key if key in CATEGORY_FEEDS else None


def detect_category(query: Optional[str]) -> Optional[str]:
    if not query:
        return None
    lower = query.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lower for keyword in keywords):
            return category
    return None
