"""Fixed-window rate limiting for the auth endpoints (anti brute-force).

Redis INCR + EXPIRE per client IP, key ``ratelimit:{ip}:auth``, window of
60 seconds, limit AUTH_RATE_LIMIT_PER_MINUTE. The real client IP is taken
from the first X-Forwarded-For hop when present.

Middleware runs outside the exception handlers, so the 429 body is built
here rather than by raising RateLimitError.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from config.settings import settings
from src.gb_common.errors import RateLimitError
from src.gb_common.redis_client import get_redis
from src.gb_common.response import error_response

logger = logging.getLogger("gb.ratelimit")

_WINDOW_SECONDS = 60
_AUTH_PATH_MARKER = "/auth/"


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not settings.RATE_LIMIT_ENABLED or _AUTH_PATH_MARKER not in request.url.path:
            return await call_next(request)

        key = f"ratelimit:{client_ip(request)}:auth"
        redis = await get_redis()
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, _WINDOW_SECONDS)

        if count > settings.AUTH_RATE_LIMIT_PER_MINUTE:
            ttl = await redis.ttl(key)
            logger.warning("Auth rate limit exceeded: %s (%d requests)", key, count)
            err = RateLimitError()
            body = error_response(
                err.code,
                err.message,
                getattr(request.state, "request_id", None),
            )
            return JSONResponse(
                status_code=err.http_status,
                content=body.model_dump(),
                headers={"Retry-After": str(ttl if ttl and ttl > 0 else _WINDOW_SECONDS)},
            )

        return await call_next(request)
