"""
API Middleware.

Tags each request with an ID (taken from ``X-Request-ID`` or generated),
reports the handling time in a response header and writes one audit log
line per request.
"""

from __future__ import annotations

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.logging_config import generate_trace_id, get_logger, trace_id_var

logger = get_logger(__name__)

# Polled by the load balancer; not worth an audit line each.
QUIET_PATHS = frozenset({"/health"})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Inject a request ID into every request and response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_trace_id()
        token = trace_id_var.set(request_id)
        start = time.monotonic()

        try:
            response = await call_next(request)
            elapsed_ms = round((time.monotonic() - start) * 1000, 1)

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time-Ms"] = str(elapsed_ms)

            if request.url.path not in QUIET_PATHS:
                log = logger.warning if response.status_code >= 500 else logger.info
                log(
                    "api_request",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    elapsed_ms=elapsed_ms,
                )
        finally:
            trace_id_var.reset(token)

        return response
