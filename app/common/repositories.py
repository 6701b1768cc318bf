from sqlalchemy import Insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


class BaseRepository:
    """Base class for all repositories."""

    def __init__(self, session: Session):
        """
        Every derived “Repository” gets a SQLAlchemy Session injected.
        """
        self.session = session

    @property
    def dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    def upsert(self, entity: type) -> Insert:
        """
        Returns an INSERT supporting ON CONFLICT clauses for the bound dialect.
        PostgreSQL in deployment, SQLite for local runs and tests.
        """
        if self.dialect_name == "sqlite":
            return sqlite.insert(entity)
        return postgresql.insert(entity)

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    def close(self):
        self.session.close()


class TransactionManager(BaseRepository):
    """
    Commits the wrapped unit of work when the block exits cleanly,
    rolls it back otherwise. The session stays open for the next unit of work.
    """

    def __enter__(self):
        return self.session

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
