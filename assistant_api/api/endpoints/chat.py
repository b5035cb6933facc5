from typing import Optional

import structlog
from fastapi import APIRouter, Depends

from ..dependencies import RateLimitGuard, get_llm_service
from ..schemas import ChatMeta, ChatRequest, ChatResponse
from ...config import Settings, get_settings
from ...exceptions import ValidationError
from ...services.llm_service import LLMProvider, LLMService

logger = structlog.get_logger(__name__)

router = APIRouter()

NOT_CONFIGURED_REPLY = "LLM API key not configured. Set GROQ_API_KEY (https://console.groq.com/keys) or GEMINI_API_KEY."
UNAVAILABLE_REPLY = "I'm having trouble connecting to my AI. Please try again in a moment!"


def build_system_prompt(
    default_prompt: str,
    system_prompt: Optional[str] = None,
    user_name: Optional[str] = None,
    search_context: Optional[str] = None,
) -> str:
    prompt = (system_prompt or "").strip() or default_prompt
    if user_name and user_name.strip():
        prompt += f"\n\nThe user's name is {user_name.strip()}."
    if search_context and search_context.strip():
        prompt += (
            "\n\nUse the following recent web search results where they are relevant:\n"
            f"{search_context.strip()}"
        )
    return prompt


def resolve_provider(name: str) -> Optional[LLMProvider]:
    try:
        return LLMProvider(name)
    except ValueError:
        return None


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    request: ChatRequest,
    _rate_limit=Depends(RateLimitGuard("chat")),
    llm_service: LLMService = Depends(get_llm_service),
    settings: Settings = Depends(get_settings),
):
    """
    Answer one user message with the configured LLM.

    Missing configuration and upstream failures are answered with HTTP 200 and
    a readable `response` so that the voice UI always has something to say.
    """
    message = (request.message or "").strip()
    if not message:
        raise ValidationError("Message is required")

    if not llm_service.is_configured():
        logger.error("No LLM API key configured")
        return ChatResponse(response=NOT_CONFIGURED_REPLY)

    system_prompt = build_system_prompt(
        settings.default_system_prompt,
        request.system_prompt,
        request.user_name,
        request.search_context,
    )

    try:
        result = await llm_service.generate_with_fallback(
            system_prompt=system_prompt,
            user_prompt=message,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            preferred_provider=resolve_provider(settings.preferred_llm_provider),
        )
    except Exception as e:
        logger.error("Chat generation failed", error=str(e))
        return ChatResponse(response=UNAVAILABLE_REPLY, model="error")

    logger.info(
        "Chat reply generated",
        provider=result.provider.value,
        model=result.model,
        latency_ms=result.latency_ms,
    )

    return ChatResponse(
        response=result.text,
        model=result.model,
        meta=ChatMeta(
            provider=result.provider.value,
            latency_ms=result.latency_ms,
            search_context_used=bool(request.search_context and request.search_context.strip()),
        ),
    )
