"""
courial_gateway.api.cors

Static allow-all CORS handling.

Responsibilities:
- Answer `OPTIONS` preflight on every path with the static header set.
- Attach the same headers to every other response.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp


def cors_headers(allow_headers: str) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": allow_headers,
    }


class AllowAllCorsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, *, allow_headers: str) -> None:
        super().__init__(app)
        self._headers = cors_headers(allow_headers)

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=self._headers)

        response: Response = await call_next(request)
        response.headers.update(self._headers)
        return response
