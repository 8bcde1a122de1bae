"""Health endpoints: liveness and a detailed dependency check."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.config import get_settings
from qiclife.database import get_session
from qiclife.redis_client import ping_redis

router = APIRouter(prefix="/api/health", tags=["Health"])

_STARTED_AT = time.monotonic()


def _base_status() -> dict[str, object]:
    settings = get_settings()
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "environment": settings.environment,
        "version": settings.app_version,
    }


@router.get("")
@router.get("/")
async def health() -> dict[str, object]:
    """Liveness check: 200 while the process is alive."""
    return _base_status()


@router.get("/detailed")
async def detailed(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> JSONResponse:
    """Check database and Redis connectivity. Returns 503 when either is down."""
    checks: dict[str, str] = {}

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    checks["redis"] = "ok" if await ping_redis() else "error: unavailable"

    all_ok = all(v == "ok" for v in checks.values())
    body = {**_base_status(), "status": "OK" if all_ok else "DEGRADED", "checks": checks}
    return JSONResponse(status_code=200 if all_ok else 503, content=body)
