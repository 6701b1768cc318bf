from datetime import datetime
from typing import Self

from pydantic import BaseModel, Field

from app.conversation import Conversation
from app.conversation.messages import Message


class ConversationPage(BaseModel):
    """A page of conversations, newest first, and the offset of the next page."""

    chats: list[Conversation] = Field(default_factory=list)
    next_offset: int | None = None


class SaveResult(BaseModel):
    success: bool
    message: str | None = None


class ActionResult(BaseModel):
    """Outcome of an owner-scoped delete. `error` is set when the action was refused or failed."""

    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ConversationResponse(BaseModel):
    """
    Response model for conversation operations.
    Listings leave `messages` empty; single reads carry the full ordered history.
    """

    id: str
    user_id: str
    title: str
    share_path: str | None = None
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> Self:
        return cls(
            id=conversation.id,
            user_id=conversation.user_id,
            title=conversation.title,
            share_path=conversation.share_path,
            messages=conversation.messages,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )


class ConversationPageResponse(BaseModel):
    chats: list[ConversationResponse]
    next_offset: int | None = None

    @classmethod
    def from_page(cls, page: ConversationPage) -> Self:
        return cls(chats=[ConversationResponse.from_conversation(c) for c in page.chats], next_offset=page.next_offset)
