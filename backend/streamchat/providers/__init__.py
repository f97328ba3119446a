"""Provider binding, config store, and preset catalog."""

from streamchat.providers.base import (
    API_KEY_MASK,
    DEFAULT_BASE_URL,
    BaseProvider,
    ChatChunk,
    ChatMessage,
    ChatRequest,
    ModelInfo,
    ProviderSettings,
)
from streamchat.providers.config_store import ProviderBinding, ProviderConfigStore
from streamchat.providers.factory import build_provider, validate_provider_settings
from streamchat.providers.openai_compat import OpenAICompatProvider
from streamchat.providers.presets import PROVIDER_PRESETS, ProviderPreset

__all__ = [
    "API_KEY_MASK",
    "DEFAULT_BASE_URL",
    "BaseProvider",
    "ChatChunk",
    "ChatMessage",
    "ChatRequest",
    "ModelInfo",
    "ProviderSettings",
    "ProviderBinding",
    "ProviderConfigStore",
    "build_provider",
    "validate_provider_settings",
    "OpenAICompatProvider",
    "PROVIDER_PRESETS",
    "ProviderPreset",
]
