"""
Rate Limiting Middleware

Applies the application's sliding window limiter to every request, keyed
by the peer address, before routing and business logic run. Health and
documentation endpoints are exempt.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shortener.core.exceptions import RateLimitExceeded
from shortener.middleware.client import get_rate_limit_key

logger = logging.getLogger(__name__)

EXEMPT_PATHS = frozenset({"/", "/health", "/docs", "/redoc", "/openapi.json"})


def rate_limit_response(exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_code, "message": str(exc)},
    )


class RateLimitMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        limiter = request.app.state.components.rate_limiter
        key = get_rate_limit_key(request)

        if not limiter.allow(key):
            logger.warning(f"Rate limit exceeded for {key} on {request.method} {request.url.path}")
            # exception handlers do not see errors raised in middleware
            return rate_limit_response(RateLimitExceeded(key))

        return await call_next(request)


def add_rate_limit_middleware(app):
    app.add_middleware(RateLimitMiddleware)
