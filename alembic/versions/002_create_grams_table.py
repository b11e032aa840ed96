"""Create grams table

Revision ID: 002
Revises: 001
Create Date: 2017-01-22 00:00:00.000000+00:00

What:  Posts with a message, owned by a user. The picture column arrives in 003.
Rollback: downgrade() drops the table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "grams",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_grams_user_id", "grams", ["user_id"])
    op.create_index("index_grams_on_created_at", "grams", ["created_at"])


def downgrade() -> None:
    op.drop_index("index_grams_on_created_at", table_name="grams")
    op.drop_index("ix_grams_user_id", table_name="grams")
    op.drop_table("grams")
