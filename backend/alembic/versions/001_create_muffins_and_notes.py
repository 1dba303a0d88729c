"""Create muffins and notes tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the singleton `muffins` table (seeded with row id=1) and the
       `notes` table with its (displayed, created_at) index.

Rollback: downgrade() drops both tables (destructive — all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    muffins = op.create_table(
        "muffins",
        sa.Column(
            "id",
            sa.Integer(),
            autoincrement=False,
            nullable=False,
            comment="Fixed identifier of the singleton row (always 1)",
        ),
        sa.Column(
            "balance",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Current muffin balance",
        ),
        sa.Column(
            "high_score",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Best score reached in the game",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # The service reads and updates id=1 and never inserts it
    op.bulk_insert(muffins, [{"id": 1, "balance": 0, "high_score": 0}])

    op.create_table(
        "notes",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column(
            "text",
            sa.Text(),
            nullable=False,
            comment="Note content revealed on purchase",
        ),
        sa.Column(
            "displayed",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
            comment="True once the note has been bought and is visible in the vault",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
            comment="When this note was created (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Serves the hidden-note count/pool and the newest-first vault listing
    op.create_index(
        "idx_notes_displayed_created_at",
        "notes",
        ["displayed", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_notes_displayed_created_at", table_name="notes")
    op.drop_table("notes")
    op.drop_table("muffins")
