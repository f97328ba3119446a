"""Database repositories for data access."""

from streamchat.db.repositories.conversation import (
    create_conversation,
    create_message,
    delete_conversation,
    get_conversation,
    get_conversation_messages,
    list_conversations,
)

__all__ = [
    "create_conversation",
    "create_message",
    "delete_conversation",
    "get_conversation",
    "get_conversation_messages",
    "list_conversations",
]
