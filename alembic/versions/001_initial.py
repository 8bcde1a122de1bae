"""Initial schema.

Creates users, profiles, onboarding responses, missions and their runs,
rewards, referrals, behavior events, LifeScore history and achievements.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-12
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(36) PRIMARY KEY,
            email VARCHAR(320) UNIQUE,
            username VARCHAR(64),
            coins INTEGER DEFAULT 1000 CHECK (coins >= 0),
            xp INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 1,
            lifescore INTEGER NOT NULL DEFAULT 0 CHECK (lifescore BETWEEN 0 AND 100),
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_activity_date DATE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_profiles (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            profile_json JSONB NOT NULL DEFAULT '{}',
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS onboarding_responses (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            step_number INTEGER NOT NULL CHECK (step_number BETWEEN 1 AND 7),
            response_json JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT onboarding_responses_user_step_key UNIQUE (user_id, step_number)
        )
    """)

    # --- Missions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS missions (
            id VARCHAR(64) PRIMARY KEY,
            title_en VARCHAR(200) NOT NULL,
            title_ar VARCHAR(200),
            description_en TEXT,
            description_ar TEXT,
            category VARCHAR(32) NOT NULL DEFAULT 'health',
            difficulty VARCHAR(16) NOT NULL DEFAULT 'easy',
            xp_reward INTEGER NOT NULL DEFAULT 0,
            lifescore_impact INTEGER NOT NULL DEFAULT 0,
            coin_reward INTEGER NOT NULL DEFAULT 0,
            is_collaborative BOOLEAN NOT NULL DEFAULT false,
            max_participants INTEGER,
            recurrence_type VARCHAR(16) NOT NULL DEFAULT 'none',
            badge VARCHAR(32),
            ai_generated BOOLEAN NOT NULL DEFAULT false,
            generated_for VARCHAR(36) REFERENCES users(id) ON DELETE CASCADE,
            generated_on DATE,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_missions_category
        ON missions(category)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_missions_generated
        ON missions(generated_for, generated_on)
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_missions (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            mission_id VARCHAR(64) NOT NULL REFERENCES missions(id) ON DELETE CASCADE,
            status VARCHAR(16) NOT NULL DEFAULT 'active',
            progress INTEGER NOT NULL DEFAULT 0,
            started_at TIMESTAMPTZ,
            completed_at TIMESTAMPTZ,
            completion_data JSONB
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_missions_user_status
        ON user_missions(user_id, status)
    """)
    # At most one active run per user
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_user_missions_one_active
        ON user_missions(user_id) WHERE status = 'active'
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS mission_steps (
            id VARCHAR(36) PRIMARY KEY,
            user_mission_id VARCHAR(36) NOT NULL REFERENCES user_missions(id) ON DELETE CASCADE,
            step_number INTEGER NOT NULL,
            title VARCHAR(200) NOT NULL,
            description TEXT,
            status VARCHAR(16) NOT NULL DEFAULT 'pending'
        )
    """)

    # --- Rewards ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS rewards (
            id VARCHAR(64) PRIMARY KEY,
            title VARCHAR(200) NOT NULL,
            description TEXT,
            category VARCHAR(32) NOT NULL DEFAULT 'partner',
            coins_cost INTEGER NOT NULL DEFAULT 0,
            xp_reward INTEGER NOT NULL DEFAULT 0,
            partner VARCHAR(100),
            is_active BOOLEAN NOT NULL DEFAULT true
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_rewards (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            reward_id VARCHAR(64) NOT NULL REFERENCES rewards(id) ON DELETE CASCADE,
            status VARCHAR(16) NOT NULL DEFAULT 'redeemed',
            redeemed_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Referrals ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS referrals (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            code VARCHAR(16) UNIQUE NOT NULL,
            context JSONB,
            share_count INTEGER NOT NULL DEFAULT 1,
            clicks INTEGER NOT NULL DEFAULT 0,
            installs INTEGER NOT NULL DEFAULT 0,
            purchases INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Analytics and history ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_behavior_events (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            event_type VARCHAR(64) NOT NULL,
            event_data JSONB,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_behavior_events_user_type
        ON user_behavior_events(user_id, event_type)
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS lifescore_history (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            old_score INTEGER NOT NULL,
            new_score INTEGER NOT NULL,
            change_amount INTEGER NOT NULL,
            reason VARCHAR(64) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_lifescore_history_user
        ON lifescore_history(user_id, created_at DESC)
    """)

    # --- Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id VARCHAR(36) PRIMARY KEY,
            slug VARCHAR(64) UNIQUE NOT NULL,
            name_en VARCHAR(128) NOT NULL,
            description_en TEXT,
            condition_type VARCHAR(32) NOT NULL,
            condition_value INTEGER NOT NULL,
            xp_reward INTEGER NOT NULL DEFAULT 0,
            coin_reward INTEGER NOT NULL DEFAULT 0,
            lifescore_boost INTEGER NOT NULL DEFAULT 0,
            sort_order INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(36) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_id VARCHAR(36) NOT NULL REFERENCES achievements(id) ON DELETE CASCADE,
            unlocked_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_achievements_user_achievement_key UNIQUE (user_id, achievement_id)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS lifescore_history CASCADE")
    op.execute("DROP TABLE IF EXISTS user_behavior_events CASCADE")
    op.execute("DROP TABLE IF EXISTS referrals CASCADE")
    op.execute("DROP TABLE IF EXISTS user_rewards CASCADE")
    op.execute("DROP TABLE IF EXISTS rewards CASCADE")
    op.execute("DROP TABLE IF EXISTS mission_steps CASCADE")
    op.execute("DROP TABLE IF EXISTS user_missions CASCADE")
    op.execute("DROP TABLE IF EXISTS missions CASCADE")
    op.execute("DROP TABLE IF EXISTS onboarding_responses CASCADE")
    op.execute("DROP TABLE IF EXISTS user_profiles CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
