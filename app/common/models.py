from enum import Enum
from typing import ClassVar

from pydantic import BaseModel


# Owner id used for requests without an authenticated user
ANONYMOUS_USER_ID = "anonymous"


def is_anonymous(user_id: str | None) -> bool:
    return not user_id or user_id == ANONYMOUS_USER_ID


# Annotation type carrying follow-up questions for the last answer
RELATED_QUESTIONS_ANNOTATION = "related-questions"


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"
    DATA = "data"


class StreamStep(Enum):
    """Enum for different steps in the streaming process."""

    ANNOTATION = "annotation"


class ChatHistoryConfig(BaseModel):
    CHAT_PAGE_SIZE: ClassVar[int] = 20
    SEED_TITLE_LENGTH: ClassVar[int] = 100
    MAX_TITLE_WORDS: ClassVar[int] = 6
