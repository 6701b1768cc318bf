from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from app.common.db_connect import make_base_url, make_connect_args
from app.common.entities import BaseEntity

# register the chat history tables on BaseEntity.metadata
import app.conversation.conversation_entities  # noqa: F401
import app.conversation.messages.message_entities  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = BaseEntity.metadata


def run_migrations_offline():
    context.configure(
        url=make_base_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    # Build engine with dynamic credentials
    engine = create_engine(
        make_base_url(),
        connect_args=make_connect_args(),
        poolclass=pool.NullPool,
    )

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
