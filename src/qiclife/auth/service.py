"""User lookup and creation."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.config import get_settings
from qiclife.db.models import User, UserProfile

logger = logging.getLogger(__name__)


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, email: str | None, username: str | None = None) -> User:
    """Insert a user with the default coin balance and an empty profile."""
    user = User(email=email, username=username, coins=get_settings().default_coins)
    db.add(user)
    await db.flush()
    db.add(UserProfile(user_id=user.id, profile_json={}))
    await db.flush()
    logger.info("User created: %s", user.id)
    return user


async def get_or_create_user(db: AsyncSession, email: str, username: str | None = None) -> tuple[User, bool]:
    """Return ``(user, created)`` for the given email."""
    user = await get_user_by_email(db, email)
    if user is not None:
        return user, False
    return await create_user(db, email, username), True
