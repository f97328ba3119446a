"""Chat streaming and conversation history endpoints."""

from __future__ import annotations

import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session

from streamchat.api.deps import get_chat_service
from streamchat.core import ConversationNotFoundError
from streamchat.db import get_db
from streamchat.services import ChatResult, ChatService, DeliverySink, stream_chat_events

router = APIRouter(prefix="/api", tags=["chat"])

# Proxies must not buffer or cache the event stream
SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


class ChatStreamBody(BaseModel):
    """0 or a missing ``conversation_id`` starts a new conversation."""

    conversation_id: int | None = Field(default=None, ge=0)
    message: str = Field(min_length=1)

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message must not be empty")
        return value


class ConversationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    created_at: datetime
    updated_at: datetime


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    conversation_id: int
    role: str
    content: str
    created_at: datetime


class ConversationList(BaseModel):
    conversations: list[ConversationOut]


class MessageList(BaseModel):
    conversation_id: int
    messages: list[MessageOut]


class DeletedConversation(BaseModel):
    status: str = "deleted"
    conversation_id: int


@router.post("/chat/stream", response_class=StreamingResponse)
async def stream_chat(
    body: ChatStreamBody,
    service: ChatService = Depends(get_chat_service),
    db: Session = Depends(get_db),
) -> StreamingResponse:
    """
    Run one exchange and stream it as Server-Sent Events.

    Events: ``start``, any number of ``content``, then ``done`` or ``error``.
    Failures after the response started arrive as the ``error`` event.
    """

    async def run(sink: DeliverySink, cancel: asyncio.Event) -> ChatResult:
        return await service.chat_stream(
            db, body.conversation_id, body.message, sink, cancel_event=cancel
        )

    return StreamingResponse(
        stream_chat_events(run), media_type="text/event-stream", headers=SSE_HEADERS
    )


@router.get("/conversations", response_model=ConversationList)
def conversations(
    service: ChatService = Depends(get_chat_service),
    db: Session = Depends(get_db),
) -> ConversationList:
    items = service.list_conversations(db)
    return ConversationList(conversations=[ConversationOut.model_validate(c) for c in items])


@router.get("/conversations/{conversation_id}/messages", response_model=MessageList)
def conversation_messages(
    conversation_id: int,
    service: ChatService = Depends(get_chat_service),
    db: Session = Depends(get_db),
) -> MessageList:
    """Messages oldest first; empty for unknown conversations."""
    history = service.get_history(db, conversation_id)
    return MessageList(
        conversation_id=conversation_id,
        messages=[MessageOut.model_validate(m) for m in history],
    )


@router.delete("/conversations/{conversation_id}", response_model=DeletedConversation)
def delete_conversation(
    conversation_id: int,
    service: ChatService = Depends(get_chat_service),
    db: Session = Depends(get_db),
) -> DeletedConversation:
    if not service.delete_conversation(db, conversation_id):
        raise ConversationNotFoundError(conversation_id)
    return DeletedConversation(conversation_id=conversation_id)
