from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from app.common.models import StreamStep
from app.conversation.messages import ClientMessage, Message


class RelatedQuestion(BaseModel):
    query: str = Field(..., description="A follow-up question the user may ask next")


class RelatedQuestions(BaseModel):
    """Follow-up questions for the last answer"""

    items: list[RelatedQuestion] = Field(default_factory=list, description="Three related follow-up questions")


class StreamFinishRequest(BaseModel):
    """Everything known about a turn once the model response has finished streaming."""

    response_messages: list[Message]
    original_messages: list[ClientMessage]
    model_id: str
    chat_id: str
    user_id: str
    skip_related_questions: bool = False
    annotations: list[Message] = Field(default_factory=list)


class AgentStreamResponse(BaseModel):
    """Represents a streamed chunk written to the client."""

    content: str
    step: StreamStep
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def stream_response(self) -> str:
        """Returns a string representation for streaming responses."""
        return f"data: {self.model_dump_json()}\n\n"


class ChatbotFinishRequest(BaseModel):
    """
    Body posted by the streaming layer when a response has finished.
    The chat id comes from the path and the owner from the auth proxy.
    """

    response_messages: list[Message]
    original_messages: list[ClientMessage]
    model_id: str
    skip_related_questions: bool = False
    annotations: list[Message] = Field(default_factory=list)

    def to_stream_finish_request(self, chat_id: str, user_id: str) -> StreamFinishRequest:
        return StreamFinishRequest(chat_id=chat_id, user_id=user_id, **self.model_dump())


class ChatbotFinishResponse(BaseModel):
    annotations: list[Any] = Field(default_factory=list)
