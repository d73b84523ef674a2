"""Create bookmarks table.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

import sqlalchemy as sa
from alembic import op

revision = "001_create_bookmarks"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create bookmarks table owned by Supabase Auth users."""
    op.create_table(
        "bookmarks",
        sa.Column(
            "id",
            sa.dialects.postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column(
            "user_id",
            sa.dialects.postgresql.UUID(as_uuid=True),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    # auth.users is managed by Supabase, so the constraint is added by hand
    op.execute(
        "ALTER TABLE bookmarks ADD CONSTRAINT fk_bookmarks_user_id "
        "FOREIGN KEY (user_id) REFERENCES auth.users (id) ON DELETE CASCADE"
    )
    op.create_index(
        "ix_bookmarks_user_id_created_at",
        "bookmarks",
        ["user_id", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    """Drop bookmarks table."""
    op.drop_index("ix_bookmarks_user_id_created_at", table_name="bookmarks")
    op.drop_table("bookmarks")
