import os

from sqlalchemy.orm import Session

from app.chatbot import BaseChatbot, ClaudeBedrockChatbot, GeminiChatbot
from app.chatbot.related_questions import RelatedQuestionsGenerator
from app.chatbot.stream_finalizer import StreamFinalizer
from app.chatbot.title_generator import TitleGenerator
from app.common.db_connect import create_session
from app.common.exceptions import UnknownModelError
from app.common.repositories import TransactionManager
from app.conversation.conversation_repositories import ConversationRepository
from app.conversation.conversation_services import ConversationService


# Application configuration settings
class AppConfig:
    """Global application configuration settings"""

    # Chat history is only written when ENABLE_SAVE_CHAT_HISTORY=true.
    # Read once here; ServiceFactory.get_stream_finalizer passes it into StreamFinalizer.
    ENABLE_SAVE_CHAT_HISTORY = os.getenv("ENABLE_SAVE_CHAT_HISTORY", "false").lower() == "true"


class SessionFactory:
    @staticmethod
    def get_session() -> Session:
        return create_session()


class ServiceFactory:
    @staticmethod
    def get_conversation_service() -> ConversationService:
        session = SessionFactory.get_session()
        return ConversationService(
            transaction_manager=TransactionManager(session=session),
            conversation_repository=ConversationRepository(session=session),
        )

    @staticmethod
    def get_title_generator() -> TitleGenerator:
        return TitleGenerator(chatbot_provider=ChatbotFactory.create_chatbot)

    @staticmethod
    def get_related_questions_generator() -> RelatedQuestionsGenerator:
        return RelatedQuestionsGenerator(chatbot_provider=ChatbotFactory.create_chatbot)

    @staticmethod
    def get_stream_finalizer() -> StreamFinalizer:
        return StreamFinalizer(
            conversation_service=ServiceFactory.get_conversation_service(),
            title_generator=ServiceFactory.get_title_generator(),
            related_questions_generator=ServiceFactory.get_related_questions_generator(),
            save_chat_history=AppConfig.ENABLE_SAVE_CHAT_HISTORY,
        )


class ChatbotFactory:
    _providers: dict[str, type[BaseChatbot]] = {
        "google": GeminiChatbot,
        "anthropic": ClaudeBedrockChatbot,
        "bedrock": ClaudeBedrockChatbot,
    }

    @classmethod
    def create_chatbot(cls, model_id: str, temperature: float = 0.0) -> BaseChatbot:
        """Resolves a "<provider>:<model name>" id, e.g. google:gemini-2.0-flash."""
        provider, _, model_name = model_id.partition(":")
        if provider not in cls._providers or not model_name:
            raise UnknownModelError(model_id)
        return cls._providers[provider](model_name=model_name, temperature=temperature)
