"""Rate limiting middleware — Redis fixed window.

Key pattern: "ratelimit:{user_id_or_ip}:{minute}". The caller is the token
subject when a valid Bearer token is present, otherwise the client IP
(X-Forwarded-For aware). Skipped entirely when Redis is not configured or
RATE_LIMIT_PER_MINUTE is 0. A Redis outage lets requests through.
"""

import logging
import time

from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.cl_common.errors import InvalidCredentialsError, RateLimitError
from src.cl_common.response import error_body
from src.cl_gateway.auth.jwt_handler import decode_token

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60


def _client_key(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        try:
            return f"user:{decode_token(auth[7:], request.app.state.settings)['sub']}"
        except InvalidCredentialsError:
            pass
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        limit = request.app.state.settings.RATE_LIMIT_PER_MINUTE
        redis = request.app.state.backend.redis
        if redis is None or limit <= 0 or request.url.path == "/health":
            return await call_next(request)

        window = int(time.time()) // _WINDOW_SECONDS
        key = f"ratelimit:{_client_key(request)}:{window}"
        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except RedisError as e:
            logger.warning("Rate limit check skipped, Redis unavailable: %s", e)
            return await call_next(request)

        if count > limit:
            exc = RateLimitError()
            return JSONResponse(
                status_code=exc.http_status,
                content=error_body(exc, request),
                headers={"Retry-After": str(_WINDOW_SECONDS - int(time.time()) % _WINDOW_SECONDS)},
            )
        return await call_next(request)
