import logging
import uuid
from contextlib import asynccontextmanager
from typing import Dict

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api.router import api_router
from .config import get_settings
from .core.firebase import reset_firebase
from .core.rate_limiter import RateLimiter
from .exceptions import AssistantError, RateLimitExceededError
from .services.search_service import SearchResultCache
from .utils.response_utils import build_error_response


def apply_logging_preferences(settings):
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(message)s"
)

apply_logging_preferences(settings)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

STATUS_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


def cors_headers() -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": get_settings().cors_allow_origin,
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, X-App-Key",
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    apply_logging_preferences(settings)
    logger.info("Starting Voice Assistant API", version=__version__)

    yield

    reset_firebase()
    logger.info("Shutting down Voice Assistant API")


def create_application() -> FastAPI:
    app = FastAPI(
        title="Voice Assistant API",
        description="Backend for a voice assistant: chat, web search, places, news briefings, trip calendar export and push reminders",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # Process-wide shared state
    app.state.rate_limiter = RateLimiter(
        sweep_interval=settings.rate_limit_sweep_interval,
        max_entries=settings.rate_limit_max_entries,
    )
    app.state.search_cache = SearchResultCache(
        ttl_seconds=settings.search_cache_ttl_seconds,
        max_entries=settings.search_cache_max_entries,
    )

    @app.middleware("http")
    async def apply_cors(request: Request, call_next):
        request.state.request_id = request.headers.get("x-request-id") or uuid.uuid4().hex

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=cors_headers())

        response = await call_next(request)
        response.headers.update(cors_headers())
        return response

    @app.exception_handler(AssistantError)
    async def assistant_error_handler(request: Request, exc: AssistantError):
        headers = {}
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)
            headers["X-RateLimit-Policy"] = exc.policy
        elif exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=exc.message, error_code=exc.error_code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = STATUS_MESSAGES.get(exc.status_code) or str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=build_error_response(message, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
        return JSONResponse(status_code=400, content=build_error_response("Invalid request", message))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception occurred",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        # Runs outside the http middleware, so CORS headers are attached here.
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": getattr(request.state, "request_id", None),
            },
            headers=cors_headers(),
        )

    from .api.endpoints import health
    app.include_router(health.router, tags=["health"])

    app.include_router(api_router, prefix="/api")

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "assistant_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level="info",
        access_log=False,
    )
