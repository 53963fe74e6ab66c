from __future__ import annotations

from datetime import datetime

from fastapi import status


class SkillSenseError(RuntimeError):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class AuthenticationError(SkillSenseError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"


class PermissionDeniedError(SkillSenseError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class ValidationError(SkillSenseError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_input"


class PayloadTooLargeError(ValidationError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    code = "payload_too_large"


class UnsupportedMediaTypeError(ValidationError):
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    code = "unsupported_media_type"


class NotFoundError(SkillSenseError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ExternalServiceError(SkillSenseError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "upstream_error"


class AIRateLimitedError(ExternalServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "ai_rate_limited"


class AIPaymentRequiredError(ExternalServiceError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = "ai_payment_required"


class GitHubRateLimitError(ExternalServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "github_rate_limited"

    def __init__(self, message: str, *, reset_at: datetime | None = None):
        super().__init__(message)
        self.reset_at = reset_at


class StorageError(ExternalServiceError):
    code = "storage_error"


def friendly_error_message(exc: BaseException | str) -> str:
    """Map an error to the text shown to end users."""
    if isinstance(exc, AuthenticationError):
        return "Please sign in again to continue."
    if isinstance(exc, (AIRateLimitedError, GitHubRateLimitError)):
        return "Too many requests. Please wait a moment and try again."
    if isinstance(exc, AIPaymentRequiredError):
        return "AI credits are exhausted. Please contact support."

    message = str(exc).lower()
    if "auth" in message or "jwt" in message or "token" in message:
        return "Please sign in again to continue."
    if "rate limit" in message or "429" in message:
        return "Too many requests. Please wait a moment and try again."
    if "timeout" in message or "timed out" in message:
        return "The request took too long. Please try again."
    if "network" in message or "fetch" in message or "connect" in message:
        return "Network error. Please check your connection and try again."
    if "no skills found" in message:
        return "No skills could be extracted. Try a more detailed document."
    return "Something went wrong. Please try again."


__all__ = [
    "SkillSenseError",
    "AuthenticationError",
    "PermissionDeniedError",
    "ValidationError",
    "PayloadTooLargeError",
    "UnsupportedMediaTypeError",
    "NotFoundError",
    "ExternalServiceError",
    "AIRateLimitedError",
    "AIPaymentRequiredError",
    "GitHubRateLimitError",
    "StorageError",
    "friendly_error_message",
]
