from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from app.common.models import ANONYMOUS_USER_ID, Role
from app.conversation import Conversation
from app.conversation.conversation_services import ConversationService
from app.conversation.messages import Message


@pytest.fixture
def mock_repository():
    return Mock()


@pytest.fixture
def mock_transaction_manager():
    transaction_manager = Mock()
    transaction_manager.__enter__ = Mock(return_value=Mock())
    transaction_manager.__exit__ = Mock(return_value=False)
    return transaction_manager


@pytest.fixture
def mocked_service(mock_transaction_manager, mock_repository) -> ConversationService:
    return ConversationService(transaction_manager=mock_transaction_manager, conversation_repository=mock_repository)


def _conversation(chat_id: str = "chat-1", user_id: str = "user-1", created_at: datetime | None = None) -> Conversation:
    return Conversation(
        id=chat_id,
        user_id=user_id,
        title="Northern Lights",
        messages=[Message(role=Role.USER, content="How do northern lights form?"), Message(role=Role.ASSISTANT, content="Solar wind.")],
        created_at=created_at or datetime.now(timezone.utc),
    )


class TestAnonymousOwner:
    @pytest.mark.asyncio
    async def test_reads_return_empty_without_querying(self, mocked_service, mock_repository):
        assert await mocked_service.get_chats(ANONYMOUS_USER_ID) == []
        page = await mocked_service.get_chats_page(ANONYMOUS_USER_ID, limit=10, offset=0)
        assert page.chats == [] and page.next_offset is None
        assert await mocked_service.get_chat("chat-1", ANONYMOUS_USER_ID) is None

        mock_repository.fetch_all_conversations_by_user.assert_not_called()
        mock_repository.fetch_conversations_page.assert_not_called()
        mock_repository.find_conversation.assert_not_called()

    @pytest.mark.asyncio
    async def test_mutations_are_rejected_without_writes(self, mocked_service, mock_repository, mock_transaction_manager):
        save_result = await mocked_service.save_chat(_conversation(user_id=ANONYMOUS_USER_ID), ANONYMOUS_USER_ID)
        delete_result = await mocked_service.delete_chat("chat-1", ANONYMOUS_USER_ID)
        clear_result = await mocked_service.clear_chats(ANONYMOUS_USER_ID)
        shared = await mocked_service.share_chat("chat-1", ANONYMOUS_USER_ID)

        assert save_result.success is False
        assert delete_result.error == "Cannot delete chats for anonymous users"
        assert clear_result.error == "Cannot clear chats for anonymous users"
        assert shared is None
        mock_repository.upsert_conversation.assert_not_called()
        mock_repository.delete_conversation.assert_not_called()
        mock_repository.delete_conversations_by_user.assert_not_called()
        mock_repository.share_conversation.assert_not_called()
        mock_transaction_manager.__enter__.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_owner_is_treated_as_anonymous(self, mocked_service, mock_repository):
        assert await mocked_service.get_chat("chat-1", None) is None
        mock_repository.find_conversation.assert_not_called()


class TestErrorPolicy:
    @pytest.mark.asyncio
    async def test_read_errors_degrade_to_empty_results(self, mocked_service, mock_repository):
        error = OperationalError("SELECT", {}, Exception("connection lost"))
        mock_repository.fetch_all_conversations_by_user.side_effect = error
        mock_repository.fetch_conversations_page.side_effect = error
        mock_repository.find_conversation.side_effect = error
        mock_repository.find_shared_conversation.side_effect = error

        assert await mocked_service.get_chats("user-1") == []
        assert (await mocked_service.get_chats_page("user-1")).chats == []
        assert await mocked_service.get_chat("chat-1", "user-1") is None
        assert await mocked_service.get_shared_chat("chat-1") is None

    @pytest.mark.asyncio
    async def test_save_errors_are_raised(self, mocked_service, mock_repository):
        mock_repository.upsert_conversation.side_effect = OperationalError("INSERT", {}, Exception("disk full"))

        with pytest.raises(OperationalError):
            await mocked_service.save_chat(_conversation(), "user-1")

    @pytest.mark.asyncio
    async def test_save_of_foreign_conversation_is_a_failed_result(self, mocked_service, mock_repository):
        mock_repository.upsert_conversation.return_value = False

        result = await mocked_service.save_chat(_conversation(), "user-2")

        assert result.success is False
        assert result.message == "Chat belongs to another user"

    @pytest.mark.asyncio
    async def test_delete_errors_become_action_errors(self, mocked_service, mock_repository):
        mock_repository.delete_conversation.side_effect = OperationalError("DELETE", {}, Exception("locked"))

        result = await mocked_service.delete_chat("chat-1", "user-1")

        assert result.error == "Failed to delete chat"


class TestChatHistoryStore:
    @pytest.mark.asyncio
    async def test_save_then_get_round_trips_messages(self, conversation_service):
        conversation = _conversation()

        result = await conversation_service.save_chat(conversation, "user-1")
        stored = await conversation_service.get_chat("chat-1", "user-1")

        assert result.success
        assert stored is not None
        assert stored.messages == conversation.messages

    @pytest.mark.asyncio
    async def test_page_cursor_is_null_only_for_short_pages(self, conversation_service):
        start = datetime(2026, 3, 1, tzinfo=timezone.utc)
        for i in range(5):
            await conversation_service.save_chat(_conversation(chat_id=f"chat-{i}", created_at=start + timedelta(hours=i)), "user-1")

        first = await conversation_service.get_chats_page("user-1", limit=2, offset=0)
        second = await conversation_service.get_chats_page("user-1", limit=2, offset=2)
        third = await conversation_service.get_chats_page("user-1", limit=2, offset=4)

        assert [c.id for c in first.chats] == ["chat-4", "chat-3"]
        assert first.next_offset == 2
        assert [c.id for c in second.chats] == ["chat-2", "chat-1"]
        assert second.next_offset == 4
        assert [c.id for c in third.chats] == ["chat-0"]
        assert third.next_offset is None

    @pytest.mark.asyncio
    async def test_get_chats_lists_newest_first(self, conversation_service):
        start = datetime(2026, 3, 1, tzinfo=timezone.utc)
        await conversation_service.save_chat(_conversation(chat_id="older", created_at=start), "user-1")
        await conversation_service.save_chat(_conversation(chat_id="newer", created_at=start + timedelta(days=1)), "user-1")

        assert [c.id for c in await conversation_service.get_chats("user-1")] == ["newer", "older"]

    @pytest.mark.asyncio
    async def test_share_then_read_shared_from_any_caller(self, conversation_service):
        await conversation_service.save_chat(_conversation(), "user-1")

        assert await conversation_service.get_shared_chat("chat-1") is None
        assert await conversation_service.share_chat("chat-1", "user-2") is None

        shared = await conversation_service.share_chat("chat-1", "user-1")
        assert shared is not None
        assert shared.share_path == "/share/chat-1"

        public = await conversation_service.get_shared_chat("chat-1")
        assert public is not None
        assert len(public.messages) == 2

    @pytest.mark.asyncio
    async def test_delete_of_unknown_chat_is_not_an_error(self, conversation_service):
        result = await conversation_service.delete_chat("missing", "user-1")

        assert result.ok

    @pytest.mark.asyncio
    async def test_clear_removes_all_owned_chats(self, conversation_service):
        await conversation_service.save_chat(_conversation(chat_id="chat-1"), "user-1")
        await conversation_service.save_chat(_conversation(chat_id="chat-2"), "user-1")

        result = await conversation_service.clear_chats("user-1")

        assert result.ok
        assert await conversation_service.get_chats("user-1") == []
