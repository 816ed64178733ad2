"""
Request logging middleware for TranscriptVault API.

Binds a correlation id for the duration of each request (taken from the
``X-Request-ID`` header or generated), echoes it on the response, and
logs method, path, status and latency.
"""

from __future__ import annotations

import time

import structlog
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from tv_common.logging import bind_correlation_id, clear_correlation_id

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

api_requests_total = Counter(
    "api_requests_total",
    "Total API requests received",
    ["method", "status"],
)
api_request_duration_seconds = Histogram(
    "api_request_duration_seconds",
    "API request latency in seconds",
    ["method"],
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status, and latency."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        correlation_id = bind_correlation_id(request.headers.get(REQUEST_ID_HEADER))
        start = time.monotonic()
        try:
            response = await call_next(request)
            duration = time.monotonic() - start
            response.headers[REQUEST_ID_HEADER] = correlation_id
            api_requests_total.labels(method=request.method, status=str(response.status_code)).inc()
            api_request_duration_seconds.labels(method=request.method).observe(duration)
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            clear_correlation_id()
