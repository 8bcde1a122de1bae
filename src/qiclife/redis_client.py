"""Shared Redis client for rate-limit counters and health checks.

The client is optional at runtime: callers treat ``RuntimeError`` from
``get_redis()`` as "no Redis" and degrade instead of failing the request.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50) -> None:
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    if _client is None:
        msg = "Redis not initialized"
        raise RuntimeError(msg)
    return _client


async def ping_redis() -> bool:
    """True when Redis is configured and answers a PING."""
    try:
        return bool(await get_redis().ping())
    except (RuntimeError, redis.RedisError, OSError):
        return False
