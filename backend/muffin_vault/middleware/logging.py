"""
Muffin Vault Backend — Request Logging Middleware
==================================================

What:  One access log line per HTTP request.
How:   Measures handling time around call_next and logs method, path,
       status, duration, request ID and client IP. The level follows the
       status class: 5xx → ERROR, 4xx → WARNING, otherwise INFO. A refused
       purchase (400) therefore shows up as a warning.

Not logged: request bodies, static assets, and GET /health (polled by probes).

Example:
    2026-10-19T12:00:00 [INFO] muffin_vault.access: POST /api/notes/buy 200 12.4ms [a1b2c3d4] from 10.0.0.7
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from muffin_vault.middleware.request_id import request_id_var

logger = logging.getLogger("muffin_vault.access")

# Paths whose requests are never logged
SKIPPED_PATHS = frozenset({"/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs structured information about each API request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIPPED_PATHS or not path.startswith("/api"):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
