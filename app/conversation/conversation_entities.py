from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.common.entities import BaseEntity, utc_now


class ConversationEntity(BaseEntity):
    """
    Represents a conversation in the system.
    """

    __tablename__ = "conversations"
    __table_args__ = (Index("ix_conversations_user_id_created_at", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, doc="Unique Identifier of the Conversation")
    user_id: Mapped[str] = mapped_column(String, nullable=False, doc="ID of the User who owns the Conversation")
    title: Mapped[str] = mapped_column(String, nullable=False, default="", doc="Title of the Conversation")
    share_path: Mapped[str | None] = mapped_column(String, nullable=True, doc="Public path once the Conversation is shared")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now, doc="Timestamp when the Conversation was created")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now, doc="Timestamp when the Conversation was last updated")
