"""Chat orchestration: conversation resolution, streaming generation, persistence."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from streamchat.core import (
    AppError,
    ConversationNotFoundError,
    GenerationTimeoutError,
    PersistenceError,
    StreamCancelledError,
    ValidationError,
    get_logger,
    stream_id_ctx,
)
from streamchat.db.models import Conversation, Message
from streamchat.db.repositories import (
    create_conversation,
    create_message,
    delete_conversation,
    get_conversation,
    get_conversation_messages,
    list_conversations,
)
from streamchat.providers import (
    PROVIDER_PRESETS,
    BaseProvider,
    ChatMessage,
    ProviderConfigStore,
    ProviderPreset,
    ProviderSettings,
)
from streamchat.providers.base import ChunkHandler
from streamchat.services.streaming import DeliverySink

logger = get_logger(__name__)

SYSTEM_PROMPT = "You are a helpful AI assistant."
TITLE_MAX_CHARS = 50
TITLE_ELLIPSIS = "..."

# Stored roles that are forwarded to the model; anything else is skipped.
_CONTEXT_ROLES = {"user": "user", "assistant": "assistant"}


def truncate_title(text: str, max_chars: int = TITLE_MAX_CHARS) -> str:
    """First ``max_chars`` characters of ``text``, with an ellipsis if cut."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TITLE_ELLIPSIS


def build_chat_messages(history: list[Message]) -> list[ChatMessage]:
    """Provider-facing context: the system prompt followed by the stored turns."""
    messages = [ChatMessage(role="system", content=SYSTEM_PROMPT)]
    for message in history:
        role = _CONTEXT_ROLES.get(message.role)
        if role is None:
            continue
        messages.append(ChatMessage(role=role, content=message.content))
    return messages


@dataclass(frozen=True)
class ChatResult:
    """Outcome of a completed chat stream."""

    content: str
    conversation_id: int


@dataclass(frozen=True)
class SettingsView:
    """Active provider settings with the credential masked."""

    provider: str
    model: str
    base_url: str
    api_key: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class ChatService:
    """Runs chat exchanges against the active provider binding."""

    def __init__(self, config_store: ProviderConfigStore, *, stream_timeout: float | None = None):
        self.config_store = config_store
        self.stream_timeout = stream_timeout or None

    async def chat_stream(
        self,
        db: Session,
        conversation_id: int | None,
        user_input: str,
        sink: DeliverySink,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ChatResult:
        """
        Run one exchange, relaying generated text to ``sink`` as it arrives.

        A falsy ``conversation_id`` starts a new conversation, created before
        ``sink.on_start`` so the caller learns its id first. The user message
        is stored before the model is called; the assistant reply is stored
        only if generation completes. Errors from any step propagate to the
        caller without retry.
        """
        if not user_input.strip():
            raise ValidationError("Message must not be empty")

        stream_token = stream_id_ctx.set(str(uuid.uuid4()))
        try:
            conversation_id = self._resolve_conversation(db, conversation_id, user_input)

            await sink.on_start(conversation_id)

            with self._store_guard(db, "save user message"):
                create_message(db, conversation_id, "user", user_input)

            with self._store_guard(db, "load conversation history"):
                history = get_conversation_messages(db, conversation_id)
            messages = build_chat_messages(history)

            # One snapshot per call; a concurrent settings update does not
            # affect this stream.
            binding = self.config_store.read()
            parts: list[str] = []

            async def on_chunk(text: str) -> None:
                if cancel_event is not None and cancel_event.is_set():
                    raise StreamCancelledError()
                parts.append(text)
                await sink.on_content(text)

            logger.info(
                "Chat stream started",
                data={
                    "conversation_id": conversation_id,
                    "provider": binding.settings.provider,
                    "model": binding.settings.model,
                    "history_len": len(history),
                },
            )
            try:
                await self._generate(binding.provider, messages, on_chunk)
            except asyncio.CancelledError:
                logger.info(
                    "Chat stream cancelled",
                    data={"conversation_id": conversation_id, "chars": sum(map(len, parts))},
                )
                raise
            except AppError as exc:
                logger.warning(
                    "Generation failed",
                    data={"conversation_id": conversation_id, "code": exc.code.value, "error": exc.message},
                )
                raise

            content = "".join(parts)
            with self._store_guard(db, "save assistant message"):
                create_message(db, conversation_id, "assistant", content)

            logger.info(
                "Chat stream completed",
                data={"conversation_id": conversation_id, "chars": len(content)},
            )
            return ChatResult(content=content, conversation_id=conversation_id)
        finally:
            stream_id_ctx.reset(stream_token)

    async def _generate(
        self, provider: BaseProvider, messages: list[ChatMessage], on_chunk: ChunkHandler
    ) -> None:
        if self.stream_timeout is None:
            await provider.generate(messages, on_chunk)
            return
        try:
            async with asyncio.timeout(self.stream_timeout):
                await provider.generate(messages, on_chunk)
        except TimeoutError as exc:
            raise GenerationTimeoutError(
                details={"timeout_seconds": self.stream_timeout}
            ) from exc

    def _resolve_conversation(self, db: Session, conversation_id: int | None, user_input: str) -> int:
        if not conversation_id:
            with self._store_guard(db, "create conversation"):
                conversation = create_conversation(db, truncate_title(user_input))
            logger.info("Conversation created", data={"conversation_id": conversation.id})
            return conversation.id

        with self._store_guard(db, "load conversation"):
            conversation = get_conversation(db, conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation.id

    @staticmethod
    @contextmanager
    def _store_guard(db: Session, operation: str) -> Iterator[None]:
        """Roll back and re-raise store failures as PersistenceError."""
        try:
            yield
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                "Database operation failed",
                data={"operation": operation, "error": str(exc)},
            )
            raise PersistenceError(f"Failed to {operation}") from exc

    # Queries

    def get_history(self, db: Session, conversation_id: int) -> list[Message]:
        """Messages of a conversation in chronological order (empty if unknown)."""
        with self._store_guard(db, "load conversation history"):
            return get_conversation_messages(db, conversation_id)

    def list_conversations(self, db: Session) -> list[Conversation]:
        """Conversations ordered by most recent activity."""
        with self._store_guard(db, "list conversations"):
            return list_conversations(db)

    def delete_conversation(self, db: Session, conversation_id: int) -> bool:
        with self._store_guard(db, "delete conversation"):
            return delete_conversation(db, conversation_id)

    # Settings

    def get_settings(self) -> SettingsView:
        settings = self.config_store.settings
        return SettingsView(
            provider=settings.provider,
            model=settings.model,
            base_url=settings.base_url,
            api_key=settings.masked_api_key(),
        )

    async def update_settings(self, provider: str, model: str, base_url: str, api_key: str) -> None:
        """Replace the whole provider tuple; the old one stays on failure."""
        await self.config_store.replace(
            ProviderSettings(provider=provider, model=model, base_url=base_url, api_key=api_key)
        )

    @staticmethod
    def list_provider_presets() -> tuple[ProviderPreset, ...]:
        return PROVIDER_PRESETS
