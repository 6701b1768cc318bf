from datetime import datetime, timezone

from loguru import logger

from app.chatbot.chatbot_models import RelatedQuestions, StreamFinishRequest
from app.chatbot.data_stream import DataStreamWriter
from app.chatbot.related_questions import RelatedQuestionsGenerator
from app.chatbot.title_generator import TitleGenerator
from app.common.exceptions import ChatHistorySaveError
from app.common.models import RELATED_QUESTIONS_ANNOTATION, Role
from app.conversation import Conversation
from app.conversation.conversation_services import ConversationService
from app.conversation.messages import ClientMessage, Message, latest_annotations, to_extended_messages


DEFAULT_CHAT_TITLE = "New Chat"


class StreamFinalizer:
    """
    Runs once a model response has finished streaming: adds related questions,
    names new conversations and writes the turn to the chat history.
    """

    def __init__(
        self,
        conversation_service: ConversationService,
        title_generator: TitleGenerator,
        related_questions_generator: RelatedQuestionsGenerator,
        save_chat_history: bool,
    ) -> None:
        self.conversation_service = conversation_service
        self.title_generator = title_generator
        self.related_questions_generator = related_questions_generator
        self.save_chat_history = save_chat_history

    async def finalize(self, request: StreamFinishRequest, data_stream: DataStreamWriter) -> None:
        try:
            extended_messages = to_extended_messages(request.original_messages)
            annotations = [annotation.content for annotation in request.annotations]

            if not request.skip_related_questions:
                annotation = await self._related_questions_annotation(request, data_stream)
                if annotation:
                    annotations.append(annotation.content)

            # same rule the client history goes through, so the next turn lines up with these rows
            stored_annotations = [Message(role=Role.DATA, content=a) for a in latest_annotations(annotations)]

            # annotations go before the final answer so replays render them ahead of it
            generated_messages = [
                *extended_messages,
                *request.response_messages[:-1],
                *stored_annotations,
                *request.response_messages[-1:],
            ]

            if not self.save_chat_history:
                return

            saved_chat = await self.conversation_service.get_chat(request.chat_id, request.user_id)
            if saved_chat:
                title = saved_chat.title
                created_at = saved_chat.created_at
            else:
                title = await self._new_chat_title(request.original_messages, request.model_id)
                created_at = datetime.now(timezone.utc)

            conversation = Conversation(
                id=request.chat_id,
                user_id=request.user_id,
                title=title,
                messages=generated_messages,
                created_at=created_at,
            )
            try:
                result = await self.conversation_service.save_chat(conversation, request.user_id)
            except Exception as e:
                logger.error(f"Failed to save chat {request.chat_id}: {e}")
                raise ChatHistorySaveError() from e

            if not result.success:
                logger.warning(f"Chat {request.chat_id} was not saved: {result.message}")
        except Exception:
            logger.exception(f"Error finalizing stream for chat {request.chat_id}")
            raise

    async def _related_questions_annotation(self, request: StreamFinishRequest, data_stream: DataStreamWriter) -> Message | None:
        """
        Writes a placeholder annotation, then the generated questions.
        A failing generator only costs the questions; the turn is still saved.
        """
        data_stream.write_message_annotation({"type": RELATED_QUESTIONS_ANNOTATION, "data": RelatedQuestions().model_dump()})
        try:
            related_questions = await self.related_questions_generator.generate(request.response_messages, request.model_id)
        except Exception:
            logger.exception(f"Error generating related questions for chat {request.chat_id}")
            return None

        annotation = Message.annotation(RELATED_QUESTIONS_ANNOTATION, related_questions.model_dump())
        data_stream.write_message_annotation(annotation.content)
        return annotation

    async def _new_chat_title(self, original_messages: list[ClientMessage], model_id: str) -> str:
        first_user_message = next((m for m in original_messages if m.role is Role.USER), None)
        if not first_user_message:
            return DEFAULT_CHAT_TITLE
        content = first_user_message.content
        seed_text = content if isinstance(content, str) else Message(role=Role.USER, content=content).serialized_content()
        return await self.title_generator.generate_title(seed_text, model_id)
