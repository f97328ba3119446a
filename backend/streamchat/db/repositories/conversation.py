"""Repository helpers for conversations and messages."""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from streamchat.core.time import utcnow
from streamchat.db.models import Conversation, Message


def create_conversation(db: Session, title: str) -> Conversation:
    """Create a new conversation."""
    conversation = Conversation(title=title)
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return conversation


def get_conversation(db: Session, conversation_id: int) -> Conversation | None:
    """Fetch a conversation unless it was soft-deleted."""
    stmt = select(Conversation).where(
        Conversation.id == conversation_id,
        Conversation.deleted_at.is_(None),
    )
    return db.execute(stmt).scalar_one_or_none()


def list_conversations(db: Session) -> list[Conversation]:
    """List live conversations, most recently updated first."""
    stmt = (
        select(Conversation)
        .where(Conversation.deleted_at.is_(None))
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def delete_conversation(db: Session, conversation_id: int) -> bool:
    """Soft-delete a conversation together with its messages."""
    conversation = get_conversation(db, conversation_id)
    if not conversation:
        return False
    now = utcnow()
    conversation.deleted_at = now
    db.execute(
        update(Message)
        .where(Message.conversation_id == conversation_id, Message.deleted_at.is_(None))
        .values(deleted_at=now)
    )
    db.commit()
    return True


def create_message(db: Session, conversation_id: int, role: str, content: str) -> Message:
    """Insert a chat message and bump the owning conversation's updated_at."""
    now = utcnow()
    message = Message(
        conversation_id=conversation_id,
        role=role,
        content=content,
        created_at=now,
    )
    db.add(message)
    db.execute(
        update(Conversation)
        .where(Conversation.id == conversation_id)
        .values(updated_at=now)
    )
    db.commit()
    db.refresh(message)
    return message


def get_conversation_messages(db: Session, conversation_id: int) -> list[Message]:
    """Get all messages for a conversation ordered by creation time."""
    stmt = (
        select(Message)
        .join(Conversation, Message.conversation_id == Conversation.id)
        .where(
            Message.conversation_id == conversation_id,
            Message.deleted_at.is_(None),
            Conversation.deleted_at.is_(None),
        )
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return list(db.execute(stmt).scalars().all())
