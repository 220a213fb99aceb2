"""Baseline schema: catalog, campaigns, participants, ledger, pledges, feed.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Challenge catalog ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS challenge_categories (
            id SERIAL PRIMARY KEY,
            name VARCHAR(64) UNIQUE NOT NULL,
            icon VARCHAR(16) NOT NULL DEFAULT '',
            description TEXT,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS challenge_types (
            id SERIAL PRIMARY KEY,
            category_id INTEGER NOT NULL REFERENCES challenge_categories(id) ON DELETE CASCADE,
            name VARCHAR(128) NOT NULL,
            unit VARCHAR(32) NOT NULL,
            suggested_min INTEGER,
            suggested_max INTEGER,
            is_custom BOOLEAN NOT NULL DEFAULT false,
            created_by_user_id VARCHAR(64),
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_challenge_types_category_id
        ON challenge_types(category_id)
    """)

    # --- Campaigns & participants ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS campaigns (
            id SERIAL PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            description TEXT,
            status VARCHAR(16) NOT NULL DEFAULT 'active',
            start_date DATE,
            end_date DATE,
            donation_url TEXT,
            admin_user_id VARCHAR(64) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS participants (
            id SERIAL PRIMARY KEY,
            campaign_id INTEGER NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
            user_id VARCHAR(64) NOT NULL,
            challenge_type_id INTEGER NOT NULL REFERENCES challenge_types(id),
            goal_amount INTEGER NOT NULL,
            current_progress INTEGER NOT NULL DEFAULT 0,
            participant_name VARCHAR(128),
            bio TEXT,
            custom_unit VARCHAR(32),
            custom_challenge_name VARCHAR(128),
            is_active BOOLEAN NOT NULL DEFAULT true,
            is_featured BOOLEAN NOT NULL DEFAULT false,
            ended_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_participants_goal_positive CHECK (goal_amount > 0),
            CONSTRAINT ck_participants_progress_nonneg CHECK (current_progress >= 0)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_participants_campaign_id ON participants(campaign_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_participants_user_id ON participants(user_id)")
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_participants_active_created
        ON participants(is_active, created_at)
    """)

    # --- Progress ledger & posts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS progress_logs (
            id SERIAL PRIMARY KEY,
            participant_id INTEGER NOT NULL REFERENCES participants(id) ON DELETE CASCADE,
            units_completed INTEGER NOT NULL,
            log_date DATE NOT NULL,
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_progress_logs_units_positive CHECK (units_completed > 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_progress_logs_participant_created
        ON progress_logs(participant_id, created_at)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS participant_posts (
            id SERIAL PRIMARY KEY,
            participant_id INTEGER NOT NULL REFERENCES participants(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            post_type VARCHAR(32) NOT NULL DEFAULT 'update',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_participant_posts_participant_id
        ON participant_posts(participant_id)
    """)

    # --- Donors & pledges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS donors (
            id SERIAL PRIMARY KEY,
            participant_id INTEGER NOT NULL REFERENCES participants(id) ON DELETE CASCADE,
            name VARCHAR(128) NOT NULL,
            email VARCHAR(320) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_donors_participant_email UNIQUE (participant_id, email)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_donors_participant_id ON donors(participant_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS pledges (
            id SERIAL PRIMARY KEY,
            donor_id INTEGER NOT NULL REFERENCES donors(id) ON DELETE CASCADE,
            pledge_type VARCHAR(32) NOT NULL,
            amount_per_unit NUMERIC(10, 2),
            max_total_amount NUMERIC(10, 2),
            flat_amount NUMERIC(10, 2),
            currency VARCHAR(3) NOT NULL DEFAULT 'USD',
            is_fulfilled BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_pledges_type
                CHECK (pledge_type IN ('per_unit_uncapped', 'per_unit_capped', 'flat_rate'))
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_pledges_donor_id ON pledges(donor_id)")

    # --- Activity feed & preferences ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS activity_events (
            id SERIAL PRIMARY KEY,
            event_type VARCHAR(16) NOT NULL,
            message TEXT NOT NULL,
            amount NUMERIC(10, 2),
            units INTEGER,
            user_name VARCHAR(128),
            participant_id INTEGER,
            campaign_id INTEGER,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_activity_events_created ON activity_events(created_at)")
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_activity_events_participant_id
        ON activity_events(participant_id)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_notification_preferences (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) UNIQUE NOT NULL,
            email_challenge_reminders BOOLEAN NOT NULL DEFAULT false,
            email_donor_updates BOOLEAN NOT NULL DEFAULT false,
            last_banner_dismissed TIMESTAMPTZ,
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_notification_preferences CASCADE")
    op.execute("DROP TABLE IF EXISTS activity_events CASCADE")
    op.execute("DROP TABLE IF EXISTS pledges CASCADE")
    op.execute("DROP TABLE IF EXISTS donors CASCADE")
    op.execute("DROP TABLE IF EXISTS participant_posts CASCADE")
    op.execute("DROP TABLE IF EXISTS progress_logs CASCADE")
    op.execute("DROP TABLE IF EXISTS participants CASCADE")
    op.execute("DROP TABLE IF EXISTS campaigns CASCADE")
    op.execute("DROP TABLE IF EXISTS challenge_types CASCADE")
    op.execute("DROP TABLE IF EXISTS challenge_categories CASCADE")
