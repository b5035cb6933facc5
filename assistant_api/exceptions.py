from typing import Optional, Dict, Any


class AssistantError(Exception):
    status_code = 500

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(AssistantError):
    status_code = 400


class AuthorizationError(AssistantError):
    status_code = 401

    def __init__(self, message: str = "Invalid or missing application key"):
        super().__init__(message=message, error_code="Unauthorized")


class RateLimitExceededError(AssistantError):
    status_code = 429

    def __init__(self, retry_after: int, policy: str):
        self.retry_after = retry_after
        self.policy = policy
        super().__init__(
            message=f"Rate limit exceeded. Retry after {retry_after} seconds.",
            error_code="Too many requests",
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["retryAfter"] = self.retry_after
        payload["policy"] = self.policy
        return payload


class ConfigurationError(AssistantError):
    status_code = 503


class ExternalServiceError(AssistantError):
    status_code = 502


class LLMServiceError(ExternalServiceError):
    pass


class SearchServiceError(ExternalServiceError):
    pass


class NotificationError(ExternalServiceError):
    status_code = 500
