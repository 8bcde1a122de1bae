"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
import structlog
from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.auth.jwt import verify_token
from qiclife.auth.service import get_or_create_user, get_user_by_id
from qiclife.config import get_settings
from qiclife.database import get_session
from qiclife.db.models import User

logger = structlog.get_logger()

_bearer = HTTPBearer(auto_error=False)

_AUTH_REQUIRED = "Authorization required. Please sign in."


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the caller from a Bearer JWT.

    Outside production an ``X-Session-Id`` header without a token maps to the
    shared development user, created on first use.
    """
    if credentials is not None:
        try:
            payload = verify_token(credentials.credentials)
        except jwt.InvalidTokenError as e:
            raise HTTPException(status_code=401, detail={"message": "Invalid or expired token", "error": str(e)}) from e

        user = await get_user_by_id(db, str(payload["sub"]))
        if user is None:
            raise HTTPException(status_code=401, detail="User not found")
        structlog.contextvars.bind_contextvars(user_id=user.id)
        return user

    settings = get_settings()
    session_id = request.headers.get("X-Session-Id")
    if session_id and settings.dev_session_auth and not settings.is_production:
        user, created = await get_or_create_user(db, settings.dev_user_email, settings.dev_user_username)
        if created:
            await db.commit()
            logger.info("dev_user_created", user_id=user.id)
        structlog.contextvars.bind_contextvars(user_id=user.id, session_id=session_id)
        return user

    raise HTTPException(status_code=401, detail=_AUTH_REQUIRED)
