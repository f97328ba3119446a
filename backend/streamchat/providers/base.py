"""Provider binding contract and the value objects passed through it."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any

DEFAULT_BASE_URL = "https://api.openai.com/v1"
API_KEY_MASK = "****"


@dataclass(frozen=True)
class ProviderSettings:
    """Connection parameters for the active provider binding."""

    provider: str
    model: str
    base_url: str = ""
    api_key: str = field(default="", repr=False)

    @property
    def effective_base_url(self) -> str:
        """Base URL with the public default substituted for an empty value."""
        return (self.base_url or DEFAULT_BASE_URL).rstrip("/")

    def masked_api_key(self) -> str:
        """
        Mask the credential for display.

        Longer than 8 characters: first 4 + mask + last 4. Shorter non-empty
        keys collapse to the mask alone; an empty key stays empty.
        """
        key = self.api_key
        if len(key) > 8:
            return key[:4] + API_KEY_MASK + key[-4:]
        if key:
            return API_KEY_MASK
        return ""


@dataclass
class ModelInfo:
    """Entry of the provider's model listing."""

    id: str
    owned_by: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatMessage:
    role: str  # system, user or assistant
    content: str


@dataclass
class ChatRequest:

    messages: list[ChatMessage]
    model: str
    stream: bool = True


@dataclass
class ChatChunk:
    """One streamed delta; ``content`` may be empty on the final chunk."""

    content: str
    finish_reason: str | None = None
    model: str | None = None


ChunkHandler = Callable[[str], Awaitable[None]]


class BaseProvider(ABC):
    """
    Abstract base class for provider bindings.

    A binding is immutable once built: it captures the settings it was
    created from, so a generation in flight keeps using them even after
    the active binding is replaced.
    """

    def __init__(self, settings: ProviderSettings):
        self.settings = settings

    @property
    def model(self) -> str:
        return self.settings.model

    @abstractmethod
    async def healthcheck(self) -> bool:
        """True if the endpoint answers and accepts the credential; raises an AppError otherwise."""

    @abstractmethod
    async def list_models(self) -> list[ModelInfo]:
        """Models advertised by the endpoint."""

    @abstractmethod
    def chat_stream(self, request: ChatRequest) -> AsyncIterator[ChatChunk]:
        """
        Async generator of completion chunks for ``request``.

        The response body is read lazily, one chunk per ``__anext__``.
        Closing the generator closes the HTTP response. Failures surface as
        provider AppErrors (``ProviderError``, ``ProviderUnavailableError``, ...).
        """

    async def generate(self, messages: list[ChatMessage], on_chunk: ChunkHandler) -> None:
        """
        Stream a completion, awaiting ``on_chunk`` once per text fragment.

        Fragments are delivered in arrival order and the next one is not
        read until ``on_chunk`` returns. If ``on_chunk`` raises, the
        response stream is closed and the exception propagates unchanged.
        Returns only after the provider signalled the end of the stream.
        """
        request = ChatRequest(messages=messages, model=self.settings.model, stream=True)
        async with aclosing(self.chat_stream(request)) as chunks:
            async for chunk in chunks:
                if chunk.content:
                    await on_chunk(chunk.content)
