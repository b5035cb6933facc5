from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends

from ..dependencies import RateLimitGuard, get_news_aggregator
from ...core.rate_limiter import RateLimitDecision
from ...news.aggregator import NewsAggregator
from ...news.feeds import detect_category, resolve_category
from ...news.schemas.requests import NewsRequest
from ...news.schemas.responses import (
    NewsBundleResponse,
    NewsMeta,
    NewsResponse,
    RateLimitMeta,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/news", response_model=NewsResponse, response_model_exclude_none=True)
async def get_news(
    request: NewsRequest,
    rate_limit: RateLimitDecision = Depends(RateLimitGuard("news", per_minute_setting="news_rate_limit_per_minute")),
    aggregator: NewsAggregator = Depends(get_news_aggregator),
):
    """
    Headlines for the voice briefing.

    An explicit, recognized category wins; otherwise a category is guessed from
    the query. Only when no category resolves is the query searched as free
    text. With neither, local (city), country and world headlines are composed.
    """
    country_code = (request.country_code or "DEFAULT").upper()
    category = resolve_category(request.category) or detect_category(request.query)
    query = None if category else request.query

    try:
        bundle = await aggregator.get_news(
            country_code=country_code,
            city=request.city,
            category=category,
            query=query,
        )
        news = NewsBundleResponse.from_bundle(bundle)
    except Exception as e:
        logger.error("News request failed", error=str(e))
        return NewsResponse(success=False, error="News service temporarily unavailable", news=NewsBundleResponse())

    return NewsResponse(
        success=True,
        news=news,
        meta=NewsMeta(
            country_code=request.country_code,
            city=request.city,
            category=category,
            query=request.query,
            timestamp=datetime.now(timezone.utc).isoformat(),
            rate_limit=RateLimitMeta(remaining=rate_limit.remaining),
        ),
    )
