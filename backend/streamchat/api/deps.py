"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from streamchat.config import get_settings
from streamchat.core import AppError, ErrorCode
from streamchat.providers import ProviderConfigStore
from streamchat.services import ChatService


def get_config_store(request: Request) -> ProviderConfigStore:
    """Resolve the provider config store from app state."""
    store = getattr(request.app.state, "config_store", None)
    if store is None:
        raise AppError(ErrorCode.INTERNAL_ERROR, "Provider configuration is not initialized")
    return store


def get_chat_service(request: Request) -> ChatService:
    service = getattr(request.app.state, "chat_service", None)
    if service:
        return service
    service = ChatService(
        get_config_store(request),
        stream_timeout=get_settings().chat_stream_timeout_seconds,
    )
    request.app.state.chat_service = service
    return service
