"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("QIC_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("QIC_ENVIRONMENT", "test")
os.environ.setdefault("QIC_AI_PROVIDER", "local")
os.environ.setdefault("QIC_JWT_SECRET", "test-secret-with-enough-bytes-for-hs256")

from qiclife.achievements.seed import seed_achievements  # noqa: E402
from qiclife.ai.provider import LocalProvider, set_ai_provider  # noqa: E402
from qiclife.config import get_settings  # noqa: E402
from qiclife.database import close_db, create_all, get_session, init_db  # noqa: E402
from qiclife.main import create_app  # noqa: E402
from qiclife.missions.seed import seed_missions  # noqa: E402
from qiclife.redis_client import close_redis  # noqa: E402
from qiclife.rewards.seed import seed_rewards  # noqa: E402

get_settings.cache_clear()

SESSION_HEADERS = {"X-Session-Id": "test-session"}

VALID_INTEGRATIONS = ["QIC Mobile App", "QIC Health Portal", "QIC Claims Portal"]


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over a fresh seeded in-memory database.

    Redis is never initialised, so the rate limiters pass traffic through.
    """
    settings = get_settings()
    await init_db(settings.database_url)
    await create_all()
    async for session in get_session():
        await seed_missions(session)
        await seed_rewards(session)
        await seed_achievements(session)
        break
    set_ai_provider(LocalProvider())

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    set_ai_provider(None)
    await close_db()
    await close_redis()


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient) -> AsyncClient:
    """Client authenticated as the development user via X-Session-Id."""
    client.headers.update(SESSION_HEADERS)
    return client


async def make_user(email: str, username: str | None = None) -> tuple[str, str]:
    """Create a user directly and return ``(user_id, access_token)``."""
    from qiclife.auth.jwt import create_access_token
    from qiclife.auth.service import create_user

    async for db in get_session():
        user = await create_user(db, email, username)
        await db.commit()
        return user.id, create_access_token(user.id, email)
    raise RuntimeError("no session")


@pytest.fixture
def onboarding_payload() -> dict:
    return {
        "responses": {
            "step1": {"risk_tolerance": "low", "driving_habits": "cautious"},
            "step2": {"exercise_frequency": 3, "diet_quality": "good", "daily_routine": "active"},
            "step3": {"dependents": 2, "family_size": 4},
            "step4": {"investment_risk": "conservative"},
            "step5": {"coverage_types": ["health", "auto"]},
            "step6": {"integrations": list(VALID_INTEGRATIONS)},
            "step7": {"notifications": True},
        }
    }


async def fetch_user(user_id: str):  # noqa: ANN201
    """Load a user row in a fresh session."""
    from qiclife.auth.service import get_user_by_id

    async for db in get_session():
        return await get_user_by_id(db, user_id)
    return None


async def set_user_fields(user_id: str, **values) -> None:  # noqa: ANN003
    """Overwrite columns on a user row, e.g. to drain a coin balance."""
    from sqlalchemy import update

    from qiclife.db.models import User

    async for db in get_session():
        await db.execute(update(User).where(User.id == user_id).values(**values))
        await db.commit()
        return
