from typing import Callable, Generator
from unittest.mock import AsyncMock, patch

from fastapi import FastAPI
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.common.controller import BaseController
from app.common.entities import BaseEntity
from app.common.middlewares import UserPopulationMiddleware
from app.common.repositories import TransactionManager
from app.conversation.conversation_repositories import ConversationRepository
from app.conversation.conversation_services import ConversationService


@pytest.fixture(scope="module")
def build_app() -> Callable[[list[type[BaseController]]], FastAPI]:
    def _make_app(controllers: list[type[BaseController]]) -> FastAPI:
        """Builds a FastAPI application with the provided controllers."""
        app = FastAPI()
        app.add_middleware(UserPopulationMiddleware)
        for controller in controllers:
            app.include_router(controller().router)
        return app

    return _make_app


@pytest.fixture
def mock_conversation_service() -> Generator[AsyncMock, None, None]:
    mock_service = AsyncMock()

    async def _return_mock_service() -> AsyncMock:
        return mock_service

    with patch("app.common.config.ServiceFactory.get_conversation_service", new=_return_mock_service):
        yield mock_service


@pytest.fixture
def mock_stream_finalizer() -> Generator[AsyncMock, None, None]:
    fake_finalizer = AsyncMock()

    async def _fake_get_stream_finalizer():
        return fake_finalizer

    with patch("app.common.config.ServiceFactory.get_stream_finalizer", new=_fake_get_stream_finalizer):
        yield fake_finalizer


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """In-memory SQLite database with the chat history tables."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool, future=True)
    BaseEntity.metadata.create_all(engine)
    session = Session(bind=engine, autoflush=False, expire_on_commit=False)
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def conversation_repository(db_session: Session) -> ConversationRepository:
    return ConversationRepository(session=db_session)


@pytest.fixture
def conversation_service(db_session: Session, conversation_repository: ConversationRepository) -> ConversationService:
    return ConversationService(transaction_manager=TransactionManager(session=db_session), conversation_repository=conversation_repository)
