import json
from typing import Any, Union

from pydantic import BaseModel, Field

from app.common.models import RELATED_QUESTIONS_ANNOTATION, Role


MessageContent = Union[str, dict[str, Any], list[Any]]


class Message(BaseModel):
    """
    Represents a message in a conversation.
    Role `data` messages are annotations carrying a `{type, data}` envelope.
    """

    role: Role
    content: MessageContent

    def serialized_content(self) -> str:
        """Content as stored in the messages table."""
        if isinstance(self.content, str):
            return self.content
        return json.dumps(self.content)

    @classmethod
    def from_stored(cls, role: str, content: str) -> "Message":
        """Rebuilds a message from its stored row, decoding annotation payloads."""
        message_role = Role(role)
        if message_role is Role.DATA:
            try:
                return cls(role=message_role, content=json.loads(content))
            except json.JSONDecodeError:
                pass
        return cls(role=message_role, content=content)

    @classmethod
    def annotation(cls, type: str, data: Any) -> "Message":
        return cls(role=Role.DATA, content={"type": type, "data": data})


class ClientMessage(BaseModel):
    """
    A message as the client sees it.
    Annotations written to the stream come back attached to the message they belong to.
    Reasoning the client may attach is not part of the stored history and is ignored.
    """

    id: str | None = None
    role: Role
    content: MessageContent
    annotations: list[Any] = Field(default_factory=list)


def _annotation_type(annotation: Any) -> str | None:
    if isinstance(annotation, dict):
        return annotation.get("type")
    return None


def _is_empty_related_questions(annotation: Any) -> bool:
    if _annotation_type(annotation) != RELATED_QUESTIONS_ANNOTATION:
        return False
    data = annotation.get("data")
    return not isinstance(data, dict) or not data.get("items")


def latest_annotations(annotations: list[Any]) -> list[Any]:
    """
    Annotations as the chat history keeps them.

    A later annotation replaces earlier ones of the same type, so a streamed
    placeholder gives way to its resolved value. Related questions without
    items are dropped. Untyped annotations are kept as they are.
    """
    kept: list[Any] = []
    seen_types: set[str] = set()
    for annotation in reversed(annotations):
        annotation_type = _annotation_type(annotation)
        if annotation_type is not None:
            if annotation_type in seen_types:
                continue
            seen_types.add(annotation_type)
        if _is_empty_related_questions(annotation):
            continue
        kept.append(annotation)
    kept.reverse()
    return kept


def to_extended_messages(messages: list[ClientMessage]) -> list[Message]:
    """
    Projects client history onto stored messages.
    Each kept annotation becomes a `data` message placed before the message that carried it,
    which reproduces the positions the turn was stored at.
    """
    result: list[Message] = []
    for message in messages:
        for annotation in latest_annotations(message.annotations):
            result.append(Message(role=Role.DATA, content=annotation))
        content = message.content if isinstance(message.content, str) else json.dumps(message.content)
        result.append(Message(role=message.role, content=content))
    return result
