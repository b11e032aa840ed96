"""Add picture column to grams

Revision ID: 003
Revises: 002
Create Date: 2017-01-26 22:39:45.000000+00:00

What:  Nullable grams.picture (relative storage path of the uploaded picture)
       plus an index on it.
Rollback: downgrade() drops the index and the column; stored files stay on disk.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "grams",
        sa.Column(
            "picture",
            sa.String(255),
            nullable=True,
            comment="Relative path from storage root to the uploaded picture",
        ),
    )
    op.create_index("index_grams_on_picture", "grams", ["picture"])


def downgrade() -> None:
    op.drop_index("index_grams_on_picture", table_name="grams")
    with op.batch_alter_table("grams") as batch_op:
        batch_op.drop_column("picture")
