"""Engagement tables.

Adds play activity, quote sessions, social connections, unlocked skills
and product purchases.

Revision ID: 002_engagement_tables
Revises: 001_initial
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_engagement_tables"
down_revision: str | None = "001_initial"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Play ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS play_activity (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            activity_type VARCHAR(32) NOT NULL,
            activity_data JSONB NOT NULL DEFAULT '{}',
            coins_earned INTEGER NOT NULL DEFAULT 0,
            xp_earned INTEGER NOT NULL DEFAULT 0,
            activity_date DATE NOT NULL,
            sequence INTEGER NOT NULL DEFAULT 1 CHECK (sequence >= 1),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT play_activity_daily_key UNIQUE (user_id, activity_type, activity_date, sequence)
        )
    """)

    # --- Quotes ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS quote_sessions (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            product_id VARCHAR(32) NOT NULL,
            inputs JSONB NOT NULL DEFAULT '{}',
            price_low INTEGER NOT NULL,
            price_high INTEGER NOT NULL,
            final_price INTEGER,
            status VARCHAR(16) NOT NULL DEFAULT 'in_progress'
                CHECK (status IN ('in_progress', 'complete', 'expired')),
            expires_at TIMESTAMPTZ NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            completed_at TIMESTAMPTZ
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_quote_sessions_user
        ON quote_sessions(user_id, created_at DESC)
    """)

    # --- Social ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS social_connections (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            friend_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            status VARCHAR(16) NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'accepted', 'declined', 'blocked')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT social_connections_pair_key UNIQUE (user_id, friend_id),
            CHECK (user_id <> friend_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_users_lifescore
        ON users(lifescore DESC)
    """)

    # --- Skills ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_skills (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            skill_id VARCHAR(32) NOT NULL,
            category VARCHAR(32) NOT NULL,
            unlocked_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_skills_user_skill_key UNIQUE (user_id, skill_id)
        )
    """)

    # --- Purchases ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_purchases (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            product_id VARCHAR(64) NOT NULL,
            product_type VARCHAR(32) NOT NULL,
            product_name VARCHAR(200) NOT NULL,
            purchase_amount DOUBLE PRECISION NOT NULL CHECK (purchase_amount > 0),
            currency VARCHAR(3) NOT NULL DEFAULT 'QAR',
            policy_number VARCHAR(64),
            status VARCHAR(16) NOT NULL DEFAULT 'active',
            metadata JSONB,
            purchase_date TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_purchases_user
        ON user_purchases(user_id, purchase_date DESC)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_purchases CASCADE")
    op.execute("DROP TABLE IF EXISTS user_skills CASCADE")
    op.execute("DROP INDEX IF EXISTS idx_users_lifescore")
    op.execute("DROP TABLE IF EXISTS social_connections CASCADE")
    op.execute("DROP TABLE IF EXISTS quote_sessions CASCADE")
    op.execute("DROP TABLE IF EXISTS play_activity CASCADE")
