"""Build provider bindings from settings, rejecting unusable combinations."""

from __future__ import annotations

import httpx

from streamchat.core import ProviderInitError
from streamchat.providers.base import BaseProvider, ProviderSettings
from streamchat.providers.openai_compat import OpenAICompatProvider


def validate_provider_settings(settings: ProviderSettings) -> None:
    """Raise ProviderInitError if a client cannot be built from ``settings``."""
    if not settings.model.strip():
        raise ProviderInitError("Failed to create LLM client: model is required")
    if not settings.api_key:
        raise ProviderInitError("Failed to create LLM client: missing the API key")
    if settings.base_url:
        try:
            url = httpx.URL(settings.base_url)
        except httpx.InvalidURL as exc:
            raise ProviderInitError(
                "Failed to create LLM client: invalid base URL",
                details={"base_url": settings.base_url},
            ) from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ProviderInitError(
                "Failed to create LLM client: base URL must be an absolute http(s) URL",
                details={"base_url": settings.base_url},
            )


def build_provider(settings: ProviderSettings, client: httpx.AsyncClient) -> BaseProvider:
    """Construct the binding for ``settings`` on top of the shared client."""
    validate_provider_settings(settings)
    return OpenAICompatProvider(settings, client)
