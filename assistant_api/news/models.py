"""News data structures shared by the parser, the aggregator and the API layer"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class FeedSource:
    """A single RSS feed and the label stamped on its items"""
    url: str
    name: str


@dataclass(frozen=True)
class CountrySources:
    name: str
    feeds: List[FeedSource]


@dataclass(frozen=True)
class NewsItem:
    """Standardized news item extracted from a feed"""
    title: str
    description: str
    url: str
    source: str
    published_at: Optional[str] = None
    image: Optional[str] = None


@dataclass
class NewsBundle:
    """Composed result of one aggregation request"""
    local: List[NewsItem] = field(default_factory=list)
    country: List[NewsItem] = field(default_factory=list)
    world: List[NewsItem] = field(default_factory=list)
    category: Optional[List[NewsItem]] = None
    category_name: Optional[str] = None
    search: Optional[List[NewsItem]] = None
    search_query: Optional[str] = None
    country_name: Optional[str] = None
