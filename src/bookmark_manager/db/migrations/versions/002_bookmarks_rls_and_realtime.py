"""Enable row-level security and realtime on bookmarks.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from alembic import op

revision = "002_bookmarks_rls_and_realtime"
down_revision = "001_create_bookmarks"
branch_labels = None
depends_on = None

POLICIES = {
    "bookmarks_select_own": "FOR SELECT USING (auth.uid() = user_id)",
    "bookmarks_insert_own": "FOR INSERT WITH CHECK (auth.uid() = user_id)",
    "bookmarks_delete_own": "FOR DELETE USING (auth.uid() = user_id)",
}


def upgrade() -> None:
    """Restrict every row to its owner and publish changes."""
    op.execute("ALTER TABLE bookmarks ENABLE ROW LEVEL SECURITY;")
    for name, clause in POLICIES.items():
        op.execute(f"CREATE POLICY {name} ON bookmarks {clause};")

    # Old row values (user_id) are needed to route delete notifications
    op.execute("ALTER TABLE bookmarks REPLICA IDENTITY FULL;")
    op.execute("ALTER PUBLICATION supabase_realtime ADD TABLE bookmarks;")


def downgrade() -> None:
    """Remove policies and stop publishing changes."""
    op.execute("ALTER PUBLICATION supabase_realtime DROP TABLE bookmarks;")
    op.execute("ALTER TABLE bookmarks REPLICA IDENTITY DEFAULT;")
    for name in POLICIES:
        op.execute(f"DROP POLICY IF EXISTS {name} ON bookmarks;")
    op.execute("ALTER TABLE bookmarks DISABLE ROW LEVEL SECURITY;")
