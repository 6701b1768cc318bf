from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from app.common.models import ChatHistoryConfig, is_anonymous
from app.common.repositories import TransactionManager
from app.conversation import Conversation
from app.conversation.conversation_models import ActionResult, ConversationPage, SaveResult
from app.conversation.conversation_repositories import ConversationRepository


class ConversationService:
    """
    Chat history store scoped by owner.
    Requests for the anonymous owner are answered without touching the database.
    Reads degrade to empty results on database errors; saves raise.
    """

    def __init__(self, transaction_manager: TransactionManager, conversation_repository: ConversationRepository):
        self.transaction_manager = transaction_manager
        self.repository = conversation_repository

    async def get_chats(self, user_id: str | None) -> list[Conversation]:
        if is_anonymous(user_id):
            return []
        try:
            return self.repository.fetch_all_conversations_by_user(user_id)
        except SQLAlchemyError:
            logger.exception(f"Error fetching chats for user {user_id}")
            self.repository.rollback()
            return []

    async def get_chats_page(self, user_id: str | None, limit: int = ChatHistoryConfig.CHAT_PAGE_SIZE, offset: int = 0) -> ConversationPage:
        if is_anonymous(user_id):
            return ConversationPage()
        try:
            chats = self.repository.fetch_conversations_page(user_id, limit=limit, offset=offset)
        except SQLAlchemyError:
            logger.exception(f"Error fetching chat page for user {user_id} (limit={limit}, offset={offset})")
            self.repository.rollback()
            return ConversationPage()
        next_offset = offset + limit if len(chats) == limit else None
        return ConversationPage(chats=chats, next_offset=next_offset)

    async def get_chat(self, conversation_id: str, user_id: str | None) -> Conversation | None:
        if is_anonymous(user_id):
            return None
        try:
            return self.repository.find_conversation(conversation_id, user_id)
        except SQLAlchemyError:
            logger.exception(f"Error fetching chat {conversation_id}")
            self.repository.rollback()
            return None

    async def get_shared_chat(self, conversation_id: str) -> Conversation | None:
        try:
            return self.repository.find_shared_conversation(conversation_id)
        except SQLAlchemyError:
            logger.exception(f"Error fetching shared chat {conversation_id}")
            self.repository.rollback()
            return None

    async def save_chat(self, conversation: Conversation, user_id: str | None) -> SaveResult:
        """
        Creates the conversation or updates the stored one, appending new messages.
        Database errors are logged and re-raised after the transaction is rolled back.
        """
        if is_anonymous(user_id):
            return SaveResult(success=False, message="Anonymous users cannot save chats")

        try:
            with self.transaction_manager:
                written = self.repository.upsert_conversation(conversation, user_id)
        except SQLAlchemyError:
            logger.exception(f"Error saving chat {conversation.id}")
            raise

        if not written:
            logger.warning(f"Chat {conversation.id} belongs to another user, nothing saved for {user_id}")
            return SaveResult(success=False, message="Chat belongs to another user")
        return SaveResult(success=True)

    async def clear_chats(self, user_id: str | None) -> ActionResult:
        if is_anonymous(user_id):
            return ActionResult(error="Cannot clear chats for anonymous users")
        try:
            with self.transaction_manager:
                deleted = self.repository.delete_conversations_by_user(user_id)
        except SQLAlchemyError:
            logger.exception(f"Error clearing chats for user {user_id}")
            return ActionResult(error="Failed to clear chats")
        logger.info(f"Cleared {deleted} chats for user {user_id}")
        return ActionResult()

    async def delete_chat(self, conversation_id: str, user_id: str | None) -> ActionResult:
        if is_anonymous(user_id):
            return ActionResult(error="Cannot delete chats for anonymous users")
        try:
            with self.transaction_manager:
                self.repository.delete_conversation(conversation_id, user_id)
        except SQLAlchemyError:
            logger.exception(f"Error deleting chat {conversation_id}")
            return ActionResult(error="Failed to delete chat")
        return ActionResult()

    async def share_chat(self, conversation_id: str, user_id: str | None) -> Conversation | None:
        if is_anonymous(user_id):
            return None
        try:
            with self.transaction_manager:
                return self.repository.share_conversation(conversation_id, user_id)
        except SQLAlchemyError:
            logger.exception(f"Error sharing chat {conversation_id}")
            return None
