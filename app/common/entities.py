from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseEntity(DeclarativeBase):
    """
    Declarative base shared by the chat history tables.
    `BaseEntity.metadata` is what the migrations and the test database create.
    """

    __abstract__ = True
