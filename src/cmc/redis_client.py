"""Redis connection pool.

Redis is optional: with an empty ``CMC_REDIS_URL`` the application runs without
rate limiting and login lockout.
"""

from __future__ import annotations

import redis.asyncio as redis
from fastapi import Request


def create_redis(url: str) -> redis.Redis:
    """Create a Redis client backed by a connection pool."""
    return redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis(client: redis.Redis | None) -> None:
    """Close the Redis connection pool."""
    if client is not None:
        await client.aclose()


def get_redis(request: Request) -> redis.Redis | None:
    """Return the Redis client from application state, or None when disabled (FastAPI dependency)."""
    return getattr(request.app.state, "redis", None)
