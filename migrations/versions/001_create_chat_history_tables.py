"""create chat history tables

Revision ID: 001_create_chat_history_tables
Revises:
Create Date: 2026-10-17 09:12:40.118204

"""

import os
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "001_create_chat_history_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    sql_path = os.path.join(
        os.path.dirname(__file__),
        os.pardir,
        "raw_sql",
        "001_create_chat_history_tables.sql",
    )
    with open(sql_path, "r") as file:
        op.execute(file.read())


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP TABLE IF EXISTS messages CASCADE;")
    op.execute("DROP TABLE IF EXISTS conversations CASCADE;")
