"""Database models, engine, and session management."""

from streamchat.db.base import Base, SoftDeleteMixin, TimestampMixin
from streamchat.db.engine import (
    dispose_engine,
    get_engine,
    init_database,
    verify_database_connection,
)
from streamchat.db.models import Conversation, Message
from streamchat.db.session import get_db, get_session_factory

__all__ = [
    # Base
    "Base",
    "SoftDeleteMixin",
    "TimestampMixin",
    # Engine
    "get_engine",
    "init_database",
    "verify_database_connection",
    "dispose_engine",
    # Session
    "get_db",
    "get_session_factory",
    # Models
    "Conversation",
    "Message",
]
