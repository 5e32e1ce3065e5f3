"""
Rate Limiting Middleware

Runs every request through the FixedWindowRateLimiter stored on app.state.

Responses:
- Allowed: request continues; X-RateLimit-Limit / X-RateLimit-Remaining are set
- Denied: 429 with Retry-After
- Cache failure or limiter missing: 500, the request is not processed
"""

import logging
import math

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shortener.core.exceptions import CacheUnavailable
from shortener.core.rate_limit import key_func

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client fixed window rate limiting for all routes."""

    async def dispatch(self, request: Request, call_next):
        limiter = getattr(request.app.state, "rate_limiter", None)
        client_id = key_func(request) or "unknown"

        try:
            if limiter is None:
                raise CacheUnavailable("rate limiter is not initialized")
            result = await limiter.check_and_increment(client_id)
        except CacheUnavailable:
            logger.error(f"Rate limit check failed for {client_id}, rejecting request")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Rate limiting internal error"},
            )

        if not result.allowed:
            retry_after = math.ceil(result.reset_after(limiter.cache.now()))
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "Too many requests per minute"},
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return response


def add_rate_limit_middleware(app):
    """
    Add rate limit middleware to FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(RateLimitMiddleware)
