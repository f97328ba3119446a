"""
SQLAlchemy ORM models.

Conversations own an ordered list of messages. Messages are never updated
after insert; soft-deleted rows stay in the table with ``deleted_at`` set.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from streamchat.core.time import utcnow
from streamchat.db.base import Base, SoftDeleteMixin, TimestampMixin


class Conversation(Base, TimestampMixin, SoftDeleteMixin):
    """Chat conversation model."""

    __tablename__ = "conversations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Relationships
    messages: Mapped[list[Message]] = relationship(
        back_populates="conversation",
        order_by=lambda: (Message.created_at, Message.id),
    )

    __table_args__ = (Index("ix_conversations_updated_at", "updated_at"),)


class Message(Base, SoftDeleteMixin):
    """Chat message model."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    conversation_id: Mapped[int] = mapped_column(
        ForeignKey("conversations.id"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)  # user, assistant, system
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    # Relationships
    conversation: Mapped[Conversation] = relationship(back_populates="messages")

    __table_args__ = (
        Index("ix_messages_conversation_id", "conversation_id"),
        Index("ix_messages_created_at", "created_at"),
    )
