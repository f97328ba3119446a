"""
Application errors and the JSON envelope they are rendered into.

Clients match on the stable ``E****`` codes; messages are human-readable
and may change.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for API responses."""

    # General errors (1xxx)
    INTERNAL_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"
    NOT_FOUND = "E1002"
    METHOD_NOT_ALLOWED = "E1003"
    REQUEST_TOO_LARGE = "E1004"
    RATE_LIMITED = "E1005"

    # Provider errors (4xxx)
    PROVIDER_UNAVAILABLE = "E4000"
    PROVIDER_ERROR = "E4001"
    MODEL_NOT_FOUND = "E4002"
    STREAMING_ERROR = "E4003"
    PROVIDER_BAD_RESPONSE = "E4004"
    PROVIDER_AUTH_FAILED = "E4005"
    PROVIDER_INIT_FAILED = "E4006"
    GENERATION_TIMEOUT = "E4007"
    STREAM_CANCELLED = "E4008"

    # Resource errors (5xxx)
    CONVERSATION_NOT_FOUND = "E5000"
    PERSISTENCE_ERROR = "E5003"


@dataclass(frozen=True)
class ErrorResponse:
    """Body of an error reply: ``{"error": {code, message, request_id?, details?}}``."""

    code: ErrorCode
    message: str
    request_id: str | None = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code.value, "message": self.message}
        optional = {"request_id": self.request_id, "details": self.details}
        body.update({key: value for key, value in optional.items() if value})
        return {"error": body}


class AppError(Exception):
    """An error with a stable code and the HTTP status it maps to."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details

    def to_response(self, request_id: str | None = None) -> ErrorResponse:
        return ErrorResponse(self.code, self.message, request_id, self.details)


class _TypedError(AppError):
    """AppError whose code, status and default message are fixed per class."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    http_status: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(self.error_code, message or self.default_message, self.http_status, details)


# Request errors


class ValidationError(_TypedError):
    error_code, http_status, default_message = ErrorCode.VALIDATION_ERROR, 400, "Validation error"


class NotFoundError(_TypedError):
    error_code, http_status, default_message = ErrorCode.NOT_FOUND, 404, "Resource not found"


class ConversationNotFoundError(NotFoundError):
    """Conversation id does not exist or was deleted."""

    error_code, http_status, default_message = (
        ErrorCode.CONVERSATION_NOT_FOUND,
        404,
        "Conversation not found",
    )

    def __init__(self, conversation_id: int):
        super().__init__(details={"conversation_id": conversation_id})


class RateLimitError(_TypedError):
    error_code, http_status, default_message = ErrorCode.RATE_LIMITED, 429, "Rate limit exceeded"


# Provider errors


class ProviderInitError(_TypedError):
    """Settings cannot produce a usable provider binding."""

    error_code, http_status, default_message = (
        ErrorCode.PROVIDER_INIT_FAILED,
        400,
        "Failed to create LLM client",
    )


class ProviderError(_TypedError):
    error_code, http_status, default_message = ErrorCode.PROVIDER_ERROR, 502, "Provider error"


class ProviderUnavailableError(_TypedError):
    error_code, http_status, default_message = (
        ErrorCode.PROVIDER_UNAVAILABLE,
        503,
        "Provider unavailable",
    )


class ProviderBadResponseError(_TypedError):
    error_code, http_status, default_message = (
        ErrorCode.PROVIDER_BAD_RESPONSE,
        502,
        "Provider returned invalid response",
    )


class ProviderAuthError(_TypedError):
    """Provider rejected the credential; keeps the upstream 401/403."""

    error_code, http_status, default_message = (
        ErrorCode.PROVIDER_AUTH_FAILED,
        401,
        "Provider authentication failed",
    )

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 401,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class ModelNotFoundError(_TypedError):
    error_code, http_status, default_message = ErrorCode.MODEL_NOT_FOUND, 404, "Model not found"


# Stream errors


class GenerationTimeoutError(_TypedError):
    error_code, http_status, default_message = (
        ErrorCode.GENERATION_TIMEOUT,
        504,
        "Generation timed out",
    )


class StreamCancelledError(_TypedError):
    """The caller cancelled the stream; 499 mirrors nginx's client-closed status."""

    error_code, http_status, default_message = ErrorCode.STREAM_CANCELLED, 499, "Stream cancelled"


class SinkError(_TypedError):
    """
    The delivery sink refused an event.

    Custom ``DeliverySink`` implementations raise this to abort a chat
    stream; the client then gets an ``error`` frame with ``STREAMING_ERROR``.
    """

    error_code, http_status, default_message = (
        ErrorCode.STREAMING_ERROR,
        500,
        "Failed to deliver stream event",
    )


# Store errors


class PersistenceError(_TypedError):
    error_code, http_status, default_message = (
        ErrorCode.PERSISTENCE_ERROR,
        500,
        "Database operation failed",
    )
