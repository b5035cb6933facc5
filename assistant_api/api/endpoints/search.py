import structlog
from fastapi import APIRouter, Depends

from ..dependencies import RateLimitGuard, get_search_service
from ..schemas import SearchRequest, SearchResponse, SearchResultItem
from ...exceptions import ValidationError
from ...services.search_service import SearchService

logger = structlog.get_logger(__name__)

router = APIRouter()

MIN_QUERY_LENGTH = 2


@router.post("/search", response_model=SearchResponse, response_model_exclude_none=True)
async def search(
    request: SearchRequest,
    _rate_limit=Depends(RateLimitGuard("search")),
    search_service: SearchService = Depends(get_search_service),
):
    """Web search; upstream failures come back as an empty `results` list, never a 5xx."""
    query = (request.query or "").strip()
    if len(query) < MIN_QUERY_LENGTH:
        raise ValidationError(f"Query must be at least {MIN_QUERY_LENGTH} characters")

    try:
        outcome = await search_service.search(query)
    except Exception as e:
        logger.error("Search failed unexpectedly", query=query, error=str(e))
        return SearchResponse(results=[], query=query, error="Search failed",
                              message="Search is temporarily unavailable")

    response = SearchResponse(
        results=[SearchResultItem(title=r.title, description=r.description, url=r.url) for r in outcome.results],
        query=query,
        provider=outcome.provider,
        cached=outcome.cached or None,
    )
    if outcome.error:
        response.error = outcome.error
        response.message = "Search is temporarily unavailable"
    return response
