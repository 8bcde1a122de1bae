"""Redis-backed fixed window rate limiting.

``RateLimitMiddleware`` applies the general per-IP budget to every request;
``strict_rate_limit`` and ``roulette_rate_limit`` are route dependencies with
smaller budgets, keyed by the dev session id when present.
"""

import time
from typing import Any

import redis.asyncio as redis
import structlog
from fastapi import HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from qiclife.config import get_settings
from qiclife.redis_client import get_redis
from qiclife.responses import error_body

logger = structlog.get_logger()

_EXEMPT_PATHS = frozenset({"/api/health", "/api/health/", "/api/health/detailed"})


async def hit(key: str, window_seconds: int) -> int:
    """Count one request against ``key`` in the current window and return the total."""
    window = int(time.time()) // window_seconds
    rate_key = f"{key}:{window}"
    pipe = get_redis().pipeline()
    pipe.incr(rate_key)
    pipe.expire(rate_key, window_seconds + 1)
    results: list[Any] = await pipe.execute()
    return int(results[0])


def client_key(request: Request) -> str:
    session_id = request.headers.get("X-Session-Id")
    if session_id:
        return f"session:{session_id}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limit requests per IP using Redis counters."""

    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 900) -> None:  # noqa: ANN401
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        try:
            current_count = await hit(f"ratelimit:{client_ip}", self.window_seconds)
        except (RuntimeError, redis.RedisError):
            # Redis unavailable: let the request through without rate limiting
            return await call_next(request)

        if current_count > self.requests_per_window:
            logger.warning("rate_limited", client=client_ip, count=current_count)
            return JSONResponse(
                status_code=429,
                content=error_body("Too many requests from this IP, please try again later."),
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(self.requests_per_window),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.requests_per_window - current_count))
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_window)
        return response


async def enforce_route_limit(request: Request, scope: str, limit: int, window_seconds: int, message: str) -> None:
    """Raise 429 once this client used up ``limit`` calls of ``scope`` in the window."""
    key = client_key(request)
    try:
        current_count = await hit(f"ratelimit:{scope}:{key}", window_seconds)
    except (RuntimeError, redis.RedisError):
        return
    if current_count > limit:
        logger.warning("route_rate_limited", scope=scope, client=key, count=current_count)
        raise HTTPException(
            status_code=429,
            detail={"message": message},
            headers={"Retry-After": str(window_seconds)},
        )


async def strict_rate_limit(request: Request) -> None:
    """Dependency guarding expensive or mutating routes."""
    settings = get_settings()
    await enforce_route_limit(
        request,
        "strict",
        settings.strict_rate_limit_requests,
        settings.strict_rate_limit_window_seconds,
        "Too many requests. Please slow down and try again later.",
    )


async def roulette_rate_limit(request: Request) -> None:
    settings = get_settings()
    await enforce_route_limit(
        request,
        "roulette",
        settings.roulette_rate_limit_requests,
        settings.roulette_rate_limit_window_seconds,
        "Too many spins. Please wait a minute.",
    )
