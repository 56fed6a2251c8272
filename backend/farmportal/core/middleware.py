"""
HTTP middleware: per-request logging context and response headers
"""

import time
from typing import Callable, FrozenSet

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from farmportal.core.config import settings
from farmportal.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    generate_request_id,
)

# Polled by the load balancer and the docs UI; not worth a log line each
QUIET_PATHS: FrozenSet[str] = frozenset({
    "/api/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
})

# Allocation sync walks every trainee, so only flag requests slower than this
SLOW_REQUEST_MS = 2000

PRIVATE_PREFIXES = ("/api/admin", "/api/trainees/me")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an id (taken from X-Request-ID when the caller
    sends one), logs method/path/status/duration and echoes the id back.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        path = request.url.path
        quiet = path in QUIET_PATHS
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.error(
                f"{request.method} {path} raised {type(exc).__name__} after {elapsed_ms:.0f}ms",
                exc_info=True,
                extra={
                    "event_type": "http_request_error",
                    "http_method": request.method,
                    "http_path": path,
                    "duration_ms": elapsed_ms,
                    "has_admin_session": settings.ADMIN_COOKIE_NAME in request.cookies,
                },
            )
            raise
        finally:
            set_user_id("")

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"

        if not quiet:
            logger.log_request(request.method, path, response.status_code, elapsed_ms)
            if elapsed_ms > SLOW_REQUEST_MS:
                logger.warning(
                    f"Slow request: {request.method} {path} took {elapsed_ms:.0f}ms",
                    extra={"event_type": "slow_request", "http_path": path, "duration_ms": elapsed_ms},
                )

        set_request_id("")
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Standard hardening headers; admin and signed-in trainee responses are never cached"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.path.startswith(PRIVATE_PREFIXES):
            response.headers["Cache-Control"] = "no-store"
        return response
