"""News API response schemas"""

from typing import List, Optional

from ..models import NewsBundle
from ...utils.response_utils import CamelModel


class NewsItemResponse(CamelModel):
    title: str
    description: str
    url: str
    published_at: Optional[str] = None
    image: Optional[str] = None
    source: str


class NewsBundleResponse(CamelModel):
    local: List[NewsItemResponse] = []
    country: List[NewsItemResponse] = []
    world: List[NewsItemResponse] = []
    category: Optional[List[NewsItemResponse]] = None
    category_name: Optional[str] = None
    search: Optional[List[NewsItemResponse]] = None
    search_query: Optional[str] = None
    country_name: Optional[str] = None

    @classmethod
    def from_bundle(cls, bundle: NewsBundle) -> "NewsBundleResponse":
        return cls.model_validate(bundle)


class RateLimitMeta(CamelModel):
    remaining: Optional[int] = None


class NewsMeta(CamelModel):
    country_code: Optional[str] = None
    city: Optional[str] = None
    category: Optional[str] = None
    query: Optional[str] = None
    timestamp: str
    rate_limit: Optional[RateLimitMeta] = None


class NewsResponse(CamelModel):
    success: bool
    news: NewsBundleResponse
    meta: Optional[NewsMeta] = None
    error: Optional[str] = None
