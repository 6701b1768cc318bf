from datetime import datetime, timezone

from pydantic import BaseModel, Field

from app.conversation.messages import Message


class Conversation(BaseModel):
    id: str
    user_id: str
    title: str = Field(default="")
    messages: list[Message] = Field(default_factory=list)
    share_path: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_shared(self) -> bool:
        return self.share_path is not None
