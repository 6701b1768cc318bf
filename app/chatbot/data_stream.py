import asyncio
import json
from typing import Any, AsyncGenerator

from app.chatbot.chatbot_models import AgentStreamResponse
from app.common.models import StreamStep


class DataStreamWriter:
    """
    Write-only channel for annotations going out on a live response stream.
    Chunks are queued in write order; the transport drains them with `stream()`.
    """

    def __init__(self) -> None:
        self.queue: asyncio.Queue[AgentStreamResponse | None] = asyncio.Queue(maxsize=0)
        self.annotations: list[Any] = []

    def write_message_annotation(self, annotation: Any) -> None:
        self.annotations.append(annotation)
        self.queue.put_nowait(AgentStreamResponse(content=json.dumps(annotation), step=StreamStep.ANNOTATION))

    def close(self) -> None:
        self.queue.put_nowait(None)

    async def stream(self) -> AsyncGenerator[str, None]:
        while True:
            chunk = await self.queue.get()
            if chunk is None:
                return
            yield chunk.stream_response()
