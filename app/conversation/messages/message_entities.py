from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.common.entities import BaseEntity, utc_now


def message_key(conversation_id: str, position: int) -> str:
    """Idempotency key of the message stored at `position` of a conversation."""
    return f"{conversation_id}-{position}"


class MessageEntity(BaseEntity):
    """
    Represents a message in a conversation.
    """

    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_conversation_id_position", "conversation_id", "position"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, doc="Idempotency key: conversation id and position")
    conversation_id: Mapped[str] = mapped_column(
        String, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, doc="ID of the Conversation to which this Message belongs"
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, doc="Position of the Message in the Conversation")
    role: Mapped[str] = mapped_column(String, nullable=False, doc="Role of the sender (user, assistant, system, tool, data)")
    content: Mapped[str] = mapped_column(Text, nullable=False, doc="Content of the Message, JSON text for structured payloads")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now, doc="Timestamp when the Message was written")
