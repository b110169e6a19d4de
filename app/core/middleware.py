"""Cross-cutting HTTP middlewares.

This module provides:
- Request ID propagation and correlation (``RequestIdMiddleware``)
- Panic recovery that turns unhandled errors into a JSON 500
  (``recoverer_middleware``)
- Structured access logging (``request_logging_middleware``)
- A per-request processing deadline (``TimeoutMiddleware``)

Usage:
    app.middleware("http")(RequestIdMiddleware(header_name="X-Request-ID"))
"""

from __future__ import annotations

import asyncio
import logging
import time
import traceback
import uuid

from fastapi import Request, Response

from app.core.client_ip import get_client_ip
from app.core.errors import InternalAppError, RequestTimeoutError
from app.core.logging import clear_request_id, get_request_id, set_request_id
from app.core.responses import error_response

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("app.access")

# Requests that would only add noise to access logs
SKIP_LOG_PATHS = {"/health", "/api/v1/health", "/healthz", "/ping", "/metrics", "/favicon.ico"}
SKIP_LOG_PREFIXES = ("/static/", "/assets/")
SKIP_LOG_SUFFIXES = (".css", ".js", ".ico")

CORRELATION_HEADERS = ("X-Correlation-ID", "X-Request-ID", "X-Trace-ID")


class RequestIdMiddleware:
    """HTTP middleware for request ID generation and propagation.

    If the client provides the request id header (``X-Request-ID`` unless
    LOG_REQUEST_ID_HEADER says otherwise), that value is used. Otherwise, a
    new UUID is generated. The ID is stored in contextvars for log
    correlation and propagated back in the response headers together with
    the total request duration.

    Side Effects:
        - Sets request_id in contextvars (accessible via get_request_id())
        - Clears request_id from contextvars after request completes
        - Adds the request id and X-Request-Duration-ms headers to response
    """

    def __init__(self, header_name: str = "X-Request-ID") -> None:
        self.header_name = header_name

    async def __call__(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        set_request_id(request_id)
        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        finally:
            clear_request_id()

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[self.header_name] = request_id
        response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
        return response


async def recoverer_middleware(request: Request, call_next) -> Response:
    """Turn any unhandled exception from downstream into a JSON 500.

    The full stack trace is logged; the client only sees a generic message.
    """

    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(
            "panic_recovered",
            extra={
                "method": request.method,
                "path": request.url.path,
                "client_ip": get_client_ip(request),
                "user_agent": request.headers.get("user-agent"),
                "error_type": type(exc).__name__,
                "stack_trace": traceback.format_exc(),
            },
        )
        error = InternalAppError()
        return error_response(error.status_code, error.code, error.message)


def should_skip_logging(path: str) -> bool:
    """Return True for health probes and static assets."""

    if path in SKIP_LOG_PATHS:
        return True
    return path.startswith(SKIP_LOG_PREFIXES) or path.endswith(SKIP_LOG_SUFFIXES)


def _correlation_id(request: Request) -> str | None:
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return get_request_id()


def _level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


async def request_logging_middleware(request: Request, call_next) -> Response:
    """Log one structured access record per request.

    Level follows the status: 5xx error, 4xx warning, everything else info.
    """

    path = request.url.path
    if should_skip_logging(path):
        return await call_next(request)

    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    fields = {
        "method": request.method,
        "path": path,
        "status": response.status_code,
        "duration_ms": round(duration_ms, 2),
        "client_ip": get_client_ip(request),
        "user_agent": request.headers.get("user-agent"),
        "correlation_id": _correlation_id(request),
        "request_id": get_request_id(),
    }
    if request.url.query:
        fields["query"] = request.url.query
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > 0:
        fields["request_size_bytes"] = int(content_length)

    access_logger.log(_level_for_status(response.status_code), "http_request", extra=fields)
    return response


class TimeoutMiddleware:
    """Abort requests that spend longer than ``timeout_seconds`` downstream.

    Usage:
        app.middleware("http")(TimeoutMiddleware(timeout_seconds=60))
    """

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds

    async def __call__(self, request: Request, call_next) -> Response:
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "request_timeout",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "timeout_s": self.timeout_seconds,
                },
            )
            error = RequestTimeoutError(details={"timeout_s": self.timeout_seconds})
            return error_response(
                error.status_code,
                error.code,
                error.message,
                details=error.details,
            )
