"""
Business logic services.

Orchestrates the provider binding, database access, and event delivery.
"""

from streamchat.services.chat_service import (
    ChatResult,
    ChatService,
    SettingsView,
    build_chat_messages,
    truncate_title,
)
from streamchat.services.streaming import (
    DeliverySink,
    QueueSink,
    format_sse_event,
    stream_chat_events,
)

__all__ = [
    "ChatResult",
    "ChatService",
    "SettingsView",
    "build_chat_messages",
    "truncate_title",
    "DeliverySink",
    "QueueSink",
    "format_sse_event",
    "stream_chat_events",
]
