import hmac
from functools import partial
from typing import List, Optional

from fastapi import Depends, Header, Request

from ..config import Settings, get_settings
from ..core.firebase import initialize_firebase
from ..core.rate_limiter import (
    RateLimitDecision,
    RateLimiter,
    RateLimitTier,
    get_client_identifier,
)
from ..exceptions import AuthorizationError, RateLimitExceededError
from ..news.aggregator import NewsAggregator
from ..services.calendar_service import CalendarService
from ..services.llm_service import LLMService
from ..services.notification_service import NotificationService
from ..services.places_service import PlacesService
from ..services.search_service import SearchService


async def verify_app_key(
    x_app_key: Optional[str] = Header(default=None, alias="X-App-Key"),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Shared-secret gate. When APP_KEY is unset every caller is let through;
    otherwise X-App-Key must match before any rate limiting or business logic.
    """
    if not settings.app_key:
        return

    if not x_app_key or not hmac.compare_digest(x_app_key.encode(), settings.app_key.encode()):
        raise AuthorizationError()


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def build_rate_limit_tiers(settings: Settings, per_minute: Optional[int] = None) -> List[RateLimitTier]:
    return [
        RateLimitTier(
            name="burst",
            max_requests=settings.rate_limit_burst_requests,
            window_ms=settings.rate_limit_burst_window_seconds * 1000,
        ),
        RateLimitTier(
            name="sustained",
            max_requests=per_minute or settings.rate_limit_per_minute,
            window_ms=60_000,
        ),
    ]


class RateLimitGuard:
    """Per-endpoint dependency applying the burst and sustained tiers to the caller."""

    def __init__(self, scope: str, per_minute_setting: str = "rate_limit_per_minute"):
        self.scope = scope
        self.per_minute_setting = per_minute_setting

    async def __call__(
        self,
        request: Request,
        settings: Settings = Depends(get_settings),
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> RateLimitDecision:
        if not settings.rate_limit_enabled:
            return RateLimitDecision(allowed=True)

        client = get_client_identifier(request.headers, request.client.host if request.client else None)
        tiers = build_rate_limit_tiers(settings, getattr(settings, self.per_minute_setting))
        decision = limiter.check_policy(self.scope, client, tiers)

        if not decision.allowed:
            raise RateLimitExceededError(
                retry_after=decision.retry_after_seconds or 1,
                policy=f"{self.scope}:{decision.policy}",
            )
        return decision


def get_llm_service(settings: Settings = Depends(get_settings)) -> LLMService:
    return LLMService(
        groq_api_key=settings.groq_api_key,
        google_api_key=settings.google_api_key,
        groq_model_name=settings.groq_model_name,
        google_model_name=settings.google_model_name,
        groq_base_url=settings.groq_base_url,
    )


def get_search_service(request: Request, settings: Settings = Depends(get_settings)) -> SearchService:
    return SearchService(
        brave_api_key=settings.brave_search_api_key,
        result_limit=settings.search_result_limit,
        cache=request.app.state.search_cache,
        timeout=settings.outbound_timeout_seconds,
        user_agent=settings.user_agent,
    )


def get_places_service(settings: Settings = Depends(get_settings)) -> PlacesService:
    return PlacesService(timeout=settings.outbound_timeout_seconds, user_agent=settings.user_agent)


def get_news_aggregator(settings: Settings = Depends(get_settings)) -> NewsAggregator:
    return NewsAggregator(timeout=settings.outbound_timeout_seconds, user_agent=settings.user_agent)


def get_calendar_service() -> CalendarService:
    return CalendarService()


def get_notification_service(settings: Settings = Depends(get_settings)) -> NotificationService:
    return NotificationService(
        app_factory=partial(initialize_firebase, settings),
        icon=settings.notification_icon,
        badge=settings.notification_badge,
        link=settings.notification_link,
    )
