"""Core module with logging, errors, middleware, and exception handling."""

from streamchat.core.errors import (
    AppError,
    ConversationNotFoundError,
    ErrorCode,
    ErrorResponse,
    GenerationTimeoutError,
    ModelNotFoundError,
    NotFoundError,
    PersistenceError,
    ProviderAuthError,
    ProviderBadResponseError,
    ProviderError,
    ProviderInitError,
    ProviderUnavailableError,
    RateLimitError,
    SinkError,
    StreamCancelledError,
    ValidationError,
)
from streamchat.core.logging import (
    get_logger,
    request_id_ctx,
    setup_logging,
    stream_id_ctx,
)

__all__ = [
    # Errors
    "AppError",
    "ConversationNotFoundError",
    "ErrorCode",
    "ErrorResponse",
    "GenerationTimeoutError",
    "ModelNotFoundError",
    "NotFoundError",
    "PersistenceError",
    "ProviderAuthError",
    "ProviderBadResponseError",
    "ProviderError",
    "ProviderInitError",
    "ProviderUnavailableError",
    "RateLimitError",
    "SinkError",
    "StreamCancelledError",
    "ValidationError",
    # Logging
    "get_logger",
    "request_id_ctx",
    "setup_logging",
    "stream_id_ctx",
]
