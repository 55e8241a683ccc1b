"""Create the blocks table.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # One row per stored component; everything but the keys lives in doc
    op.execute("""
        CREATE TABLE blocks (
            id TEXT PRIMARY KEY,
            use_case TEXT NOT NULL,
            doc JSONB NOT NULL DEFAULT '{}'::jsonb,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("""
        CREATE INDEX idx_blocks_use_case_created ON blocks(use_case, created_at DESC);
    """)

    # Tag filters use ?| on businessType / style / features
    op.execute("""
        CREATE INDEX idx_blocks_doc ON blocks USING GIN (doc);
    """)


def downgrade():
    op.execute("DROP TABLE IF EXISTS blocks CASCADE;")
