"""
Access Logging Middleware

One line per request on the ``shortener.access`` logger:

    METHOD PATH STATUS DURATION_MS IP:client

Server errors are logged at ERROR, client errors at WARNING, the rest at
INFO. The elapsed time is also returned in the X-Process-Time header.
"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from shortener.middleware.client import get_client_ip

logger = logging.getLogger("shortener.access")


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class LoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"{request.method} {request.url.path} raised IP:{get_client_ip(request)}")
            raise

        elapsed = time.perf_counter() - started
        logger.log(
            _level_for(response.status_code),
            f"{request.method} {request.url.path} {response.status_code} "
            f"{elapsed * 1000:.2f}ms IP:{get_client_ip(request)}"
        )
        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        return response


def add_logging_middleware(app):
    app.add_middleware(LoggingMiddleware)
