"""Create creations table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "creations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("publish", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("likes", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("ix_creations_user_id", "creations", ["user_id"])
    op.create_index("ix_creations_created_at", "creations", ["created_at"])
    op.create_index("ix_creations_publish_created", "creations", ["publish", "created_at"])
    op.create_index("ix_creations_user_created", "creations", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_creations_user_created", table_name="creations")
    op.drop_index("ix_creations_publish_created", table_name="creations")
    op.drop_index("ix_creations_created_at", table_name="creations")
    op.drop_index("ix_creations_user_id", table_name="creations")
    op.drop_table("creations")
