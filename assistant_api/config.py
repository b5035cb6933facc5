from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

class Settings(BaseSettings):

    api_host: str = Field(default="localhost", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Debug mode")

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")

    cors_allow_origin: str = Field(default="*", description="Value sent in Access-Control-Allow-Origin")

    # Inbound authorization. Unset means open mode.
    app_key: Optional[str] = Field(default=None, description="Shared secret expected in the X-App-Key header")

    # LLM Provider API Keys
    groq_api_key: Optional[str] = Field(default=None, description="Groq API key")
    google_api_key: Optional[str] = Field(
        default=None,
        description="Google API key for Gemini",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )

    # LLM Model Names
    groq_model_name: str = Field(default="llama-3.3-70b-versatile", description="Groq model name")
    groq_base_url: str = Field(default="https://api.groq.com/openai/v1", description="Groq OpenAI-compatible base URL")
    google_model_name: str = Field(default="gemini-2.0-flash", description="Google Gemini model name")
    preferred_llm_provider: str = Field(default="groq", description="Provider tried first for chat (groq or google)")
    llm_temperature: float = Field(default=0.7, description="LLM temperature for chat replies")
    llm_max_tokens: int = Field(default=4096, description="Max tokens for chat replies")
    default_system_prompt: str = Field(
        default="You are JARVIS, a helpful AI assistant.",
        description="System prompt used when the caller does not send one",
    )

    # Search
    brave_search_api_key: Optional[str] = Field(default=None, description="Brave Search subscription token")
    search_result_limit: int = Field(default=5, description="Maximum search results returned")
    search_cache_ttl_seconds: int = Field(default=300, description="Search result cache TTL in seconds")
    search_cache_max_entries: int = Field(default=500, description="Maximum cached search queries")

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable per-client rate limiting")
    rate_limit_burst_requests: int = Field(default=2, description="Requests allowed per burst window")
    rate_limit_burst_window_seconds: int = Field(default=1, description="Burst window in seconds")
    rate_limit_per_minute: int = Field(default=60, description="Sustained rate limit per minute")
    news_rate_limit_per_minute: int = Field(default=20, description="Sustained rate limit per minute for news")
    rate_limit_sweep_interval: int = Field(default=100, description="Checks between expired-entry sweeps")
    rate_limit_max_entries: int = Field(default=10000, description="Store size that forces a sweep")

    # Outbound HTTP
    outbound_timeout_seconds: float = Field(default=10.0, description="Timeout for every outbound HTTP call")
    user_agent: str = Field(default="JARVIS-News-Assistant/1.0", description="User-Agent for outbound calls")

    # Firebase Cloud Messaging service account
    firebase_project_id: Optional[str] = Field(default=None, description="Firebase project ID")
    firebase_private_key_id: Optional[str] = Field(default=None, description="Service account private key ID")
    firebase_private_key: Optional[str] = Field(default=None, description="Service account private key (PEM)")
    firebase_client_email: Optional[str] = Field(default=None, description="Service account client email")
    firebase_client_id: Optional[str] = Field(default=None, description="Service account client ID")

    notification_icon: str = Field(default="/jarvis-icon.png", description="Web push notification icon")
    notification_badge: str = Field(default="/jarvis-badge.png", description="Web push notification badge")
    notification_link: Optional[str] = Field(default=None, description="HTTPS link opened when a web push is clicked")

    @field_validator("preferred_llm_provider", mode="before")
    @classmethod
    def normalize_provider(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("firebase_private_key", mode="before")
    @classmethod
    def unescape_private_key(cls, value):
        if isinstance(value, str):
            return value.replace("\\n", "\n")
        return value

    class Config:
        env_file = [".env", ".env.local"]  # .env.local takes precedence over .env
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
