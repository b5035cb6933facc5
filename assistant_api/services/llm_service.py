import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import google.generativeai as genai
import openai
import structlog

from ..exceptions import LLMServiceError

logger = structlog.get_logger(__name__)


class LLMProvider(str, Enum):
    GROQ = "groq"
    GOOGLE = "google"


@dataclass(frozen=True)
class LLMResult:
    text: str
    model: str
    provider: LLMProvider
    latency_ms: int


class LLMService:
    def __init__(
        self,
        groq_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
        groq_model_name: str = "llama-3.3-70b-versatile",
        google_model_name: str = "gemini-2.0-flash",
        groq_base_url: str = "https://api.groq.com/openai/v1",
        timeout: float = 30.0,
    ):
        self.groq_model_name = groq_model_name
        self.google_model_name = google_model_name

        self.groq_client = None
        self.google_client = None

        if groq_api_key:
            try:
                # Groq serves an OpenAI-compatible chat completions API.
                self.groq_client = openai.AsyncOpenAI(api_key=groq_api_key, base_url=groq_base_url, timeout=timeout)
                logger.info("Groq client initialized", model=groq_model_name)
            except Exception as e:
                logger.warning("Failed to initialize Groq client", error=str(e))

        if google_api_key:
            try:
                genai.configure(api_key=google_api_key)
                self.google_client = genai.GenerativeModel(self.google_model_name)
                logger.info("Google Gemini client initialized", model=google_model_name)
            except Exception as e:
                logger.warning("Failed to initialize Google Gemini client", error=str(e))

    def is_configured(self) -> bool:
        return bool(self.get_available_providers())

    def get_available_providers(self) -> List[LLMProvider]:
        providers = []
        if self.groq_client:
            providers.append(LLMProvider.GROQ)
        if self.google_client:
            providers.append(LLMProvider.GOOGLE)
        return providers

    async def generate_with_fallback(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        preferred_provider: Optional[LLMProvider] = None,
    ) -> LLMResult:
        """
        Generate a reply, trying the preferred provider first and then the
        remaining configured providers in order (Groq, then Gemini).
        """
        providers = self.get_available_providers()
        if preferred_provider in providers:
            providers.remove(preferred_provider)
            providers.insert(0, preferred_provider)

        if not providers:
            raise LLMServiceError("No LLM provider configured", error_code="LLMNotConfigured")

        errors = {}
        for provider in providers:
            started = time.monotonic()
            try:
                logger.info(f"Attempting generation with {provider.value}")
                text, model = await self._generate_with_provider(
                    provider, system_prompt, user_prompt, temperature, max_tokens
                )
                return LLMResult(
                    text=text,
                    model=model,
                    provider=provider,
                    latency_ms=int((time.monotonic() - started) * 1000),
                )
            except Exception as e:
                logger.warning(f"{provider.value} failed, trying next provider", error=str(e))
                errors[provider.value] = str(e)

        raise LLMServiceError("All LLM providers failed", details=errors)

    async def _generate_with_provider(
        self,
        provider: LLMProvider,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int
    ):
        if provider == LLMProvider.GROQ:
            return await self._generate_groq(system_prompt, user_prompt, temperature, max_tokens)
        elif provider == LLMProvider.GOOGLE:
            return await self._generate_google(system_prompt, user_prompt, temperature, max_tokens)
        else:
            raise ValueError(f"Unknown provider: {provider}")

    async def _generate_groq(self, system_prompt: str, user_prompt: str, temperature: float, max_tokens: int):
        """Generate using Groq chat completions."""
        if not self.groq_client:
            raise ValueError("Groq client not available")

        try:
            response = await self.groq_client.chat.completions.create(
                model=self.groq_model_name,
                temperature=temperature,
                max_tokens=max_tokens,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt}
                ]
            )
        except openai.AuthenticationError as e:
            raise ValueError(f"Groq authentication failed: {str(e)}")
        except openai.RateLimitError as e:
            raise ValueError(f"Groq rate limit exceeded: {str(e)}")

        result = response.choices[0].message.content if response.choices else None
        if not result or not result.strip():
            raise ValueError("Groq returned an empty response")

        logger.info("Groq generation completed", model=self.groq_model_name, response_length=len(result))
        return result.strip(), self.groq_model_name

    async def _generate_google(self, system_prompt: str, user_prompt: str, temperature: float, max_tokens: int):
        """Generate using Google Gemini."""
        if not self.google_client:
            raise ValueError("Google client not available")

        generation_config = genai.types.GenerationConfig(
            temperature=temperature,
            max_output_tokens=max_tokens
        )

        # Combine prompts for Gemini
        full_prompt = f"{system_prompt}\n\nUser message: {user_prompt}"

        response = await self.google_client.generate_content_async(
            full_prompt,
            generation_config=generation_config
        )
        result = response.text
        if not result or not result.strip():
            raise ValueError("Gemini returned an empty response")

        logger.info("Google generation completed", model=self.google_model_name, response_length=len(result))
        return result.strip(), self.google_model_name
