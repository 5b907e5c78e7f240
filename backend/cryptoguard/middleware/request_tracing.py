"""
Request Tracing Middleware

Tags every request with an ``X-Request-ID``, logs method, path, status and
duration, and warns about slow requests.
"""

from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from cryptoguard.core.logging import get_logger

logger = get_logger("request_tracing")
SKIP_TRACE_PREFIXES = ("/health", "/favicon.ico")
SLOW_REQUEST_MS = 5000


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Middleware that traces all HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        path = request.url.path
        method = request.method
        should_trace = not path.startswith(SKIP_TRACE_PREFIXES)

        start_time = time.time()
        status_code = 500
        response = None

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.time() - start_time) * 1000

            if should_trace:
                logger.info(
                    "%s %s -> %s (%.1fms) [%s]", method, path, status_code, duration_ms, request_id
                )
                if duration_ms > SLOW_REQUEST_MS:
                    logger.warning(
                        "Slow request detected: %s %s took %.1fms",
                        method, path, duration_ms
                    )

            if response is not None:
                response.headers["X-Request-ID"] = request_id
                response.headers["X-Response-Time"] = f"{duration_ms:.1f}ms"


def get_request_id(request: Request) -> str:
    """Get the request ID from request state."""
    return getattr(request.state, "request_id", "unknown")
