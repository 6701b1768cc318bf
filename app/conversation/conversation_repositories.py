from sqlalchemy import case, delete, select

from app.common.entities import utc_now
from app.common.repositories import BaseRepository
from app.conversation import Conversation
from app.conversation.conversation_entities import ConversationEntity
from app.conversation.messages import Message
from app.conversation.messages.message_entities import MessageEntity, message_key


class ConversationRepository(BaseRepository):
    """
    Repository for managing conversation data.
    Write methods only execute statements; the caller owns the transaction.
    """

    def fetch_all_conversations_by_user(self, user_id: str) -> list[Conversation]:
        """Retrieves all conversations of a user, newest first"""
        stmt = self._select().where(ConversationEntity.user_id == user_id).order_by(*self._newest_first())
        return [self._to_domain(e) for e in self.session.scalars(stmt).all()]

    def fetch_conversations_page(self, user_id: str, limit: int, offset: int) -> list[Conversation]:
        stmt = self._select().where(ConversationEntity.user_id == user_id).order_by(*self._newest_first()).limit(limit).offset(offset)
        return [self._to_domain(e) for e in self.session.scalars(stmt).all()]

    def find_conversation(self, conversation_id: str, user_id: str) -> Conversation | None:
        entity = self.session.scalar(self._select().where(ConversationEntity.id == conversation_id, ConversationEntity.user_id == user_id))
        if not entity:
            return None
        return self._to_domain(entity, messages=self.fetch_messages(conversation_id))

    def find_shared_conversation(self, conversation_id: str) -> Conversation | None:
        entity = self.session.scalar(
            self._select().where(ConversationEntity.id == conversation_id, ConversationEntity.share_path.is_not(None))
        )
        if not entity:
            return None
        return self._to_domain(entity, messages=self.fetch_messages(conversation_id))

    def fetch_messages(self, conversation_id: str) -> list[Message]:
        stmt = select(MessageEntity).where(MessageEntity.conversation_id == conversation_id).order_by(MessageEntity.position.asc(), MessageEntity.created_at.asc())
        return [Message.from_stored(role=e.role, content=e.content) for e in self.session.scalars(stmt).all()]

    def upsert_conversation(self, conversation: Conversation, user_id: str) -> bool:
        """
        Inserts the conversation, or refreshes it when the id already exists for the same owner.
        An existing non-empty title is kept. Messages are appended by position; positions
        already stored are left untouched.

        :return: False when the id belongs to another owner and nothing was written.
        """
        now = utc_now()
        stmt = self.upsert(ConversationEntity).values(
            id=conversation.id,
            user_id=user_id,
            title=conversation.title,
            created_at=conversation.created_at,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "title": case((ConversationEntity.title == "", stmt.excluded.title), else_=ConversationEntity.title),
                "updated_at": stmt.excluded.updated_at,
            },
            where=ConversationEntity.user_id == stmt.excluded.user_id,
        ).returning(ConversationEntity.id)

        if self.session.execute(stmt).first() is None:
            return False

        if conversation.messages:
            rows = [
                {
                    "id": message_key(conversation.id, position),
                    "conversation_id": conversation.id,
                    "position": position,
                    "role": message.role.value,
                    "content": message.serialized_content(),
                    "created_at": now,
                }
                for position, message in enumerate(conversation.messages)
            ]
            self.session.execute(self.upsert(MessageEntity).on_conflict_do_nothing(index_elements=["id"]), rows)
        return True

    def delete_conversation(self, conversation_id: str, user_id: str) -> int:
        owned = select(ConversationEntity.id).where(ConversationEntity.id == conversation_id, ConversationEntity.user_id == user_id)
        self.session.execute(delete(MessageEntity).where(MessageEntity.conversation_id.in_(owned)), execution_options={"synchronize_session": False})
        result = self.session.execute(delete(ConversationEntity).where(ConversationEntity.id == conversation_id, ConversationEntity.user_id == user_id), execution_options={"synchronize_session": False})
        return result.rowcount

    def delete_conversations_by_user(self, user_id: str) -> int:
        owned = select(ConversationEntity.id).where(ConversationEntity.user_id == user_id)
        self.session.execute(delete(MessageEntity).where(MessageEntity.conversation_id.in_(owned)), execution_options={"synchronize_session": False})
        result = self.session.execute(delete(ConversationEntity).where(ConversationEntity.user_id == user_id), execution_options={"synchronize_session": False})
        return result.rowcount

    def share_conversation(self, conversation_id: str, user_id: str) -> Conversation | None:
        entity = self.session.scalar(self._select().where(ConversationEntity.id == conversation_id, ConversationEntity.user_id == user_id))
        if not entity:
            return None
        entity.share_path = f"/share/{conversation_id}"
        entity.updated_at = utc_now()
        self.session.flush()
        return self._to_domain(entity)

    @staticmethod
    def _select():
        # rows can change under loaded entities through the core upsert
        return select(ConversationEntity).execution_options(populate_existing=True)

    @staticmethod
    def _newest_first():
        return ConversationEntity.created_at.desc(), ConversationEntity.id.desc()

    @staticmethod
    def _to_domain(entity: ConversationEntity, messages: list[Message] | None = None) -> Conversation:
        return Conversation(
            id=entity.id,
            user_id=entity.user_id,
            title=entity.title or "",
            messages=messages or [],
            share_path=entity.share_path,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
