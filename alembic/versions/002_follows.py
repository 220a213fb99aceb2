"""Follows: users subscribing to a participant's updates.

Revision ID: 002_follows
Revises: 001_baseline
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_follows"
down_revision: str | None = "001_baseline"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS follows (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            participant_id INTEGER NOT NULL REFERENCES participants(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_follows_user_participant UNIQUE (user_id, participant_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_follows_user_id ON follows(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_follows_participant_id ON follows(participant_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS follows CASCADE")
