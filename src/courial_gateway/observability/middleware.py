"""
courial_gateway.observability.middleware

HTTP middleware for request-scoped logging context.

Responsibilities:
- Generate/propagate request IDs.
- Bind request metadata (including the caller's client-info header) into structlog contextvars.
- Emit one access log line per proxied request.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from courial_gateway.observability.logging import get_logger

log = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        client_info = request.headers.get("x-client-info")
        if client_info:
            structlog.contextvars.bind_contextvars(client_info=client_info)

        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
            # Preflights are noise in the access log.
            if request.method != "OPTIONS":
                log.info(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 1),
                )
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["x-request-id"] = request_id
        return response
