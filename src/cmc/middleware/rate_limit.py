"""Per-client fixed-window request limits kept in Redis."""

import time
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

# Probes stay reachable however busy a client is
EXEMPT_PATHS = frozenset({"/health", "/api/health", "/ready", "/version"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Count requests per client IP in ``window_seconds`` buckets.

    Reads the Redis client from ``app.state.redis`` on each request; when it is
    None (Redis disabled) requests are not counted.
    """

    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    def _bucket_key(self, request: Request) -> str:
        client_ip = request.client.host if request.client else "unknown"
        return f"ratelimit:{client_ip}:{int(time.time()) // self.window_seconds}"

    def _headers(self, remaining: int) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.requests_per_window),
            "X-RateLimit-Remaining": str(max(remaining, 0)),
        }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        redis = getattr(request.app.state, "redis", None)
        if redis is None or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        key = self._bucket_key(request)
        hits, _ = await redis.pipeline().incr(key).expire(key, self.window_seconds + 1).execute()
        remaining = self.requests_per_window - int(hits)

        if remaining < 0:
            return JSONResponse(
                status_code=429,
                content={"success": False, "message": "Too many requests. Try again later."},
                headers={"Retry-After": str(self.window_seconds), **self._headers(0)},
            )

        response = await call_next(request)
        response.headers.update(self._headers(remaining))
        return response
