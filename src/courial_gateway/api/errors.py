"""
courial_gateway.api.errors

Error-to-response mapping for the proxy service.

Responsibilities:
- Render every failure as `{"error": ...}` JSON with the right status code.
- Catch anything unexpected so the caller still gets JSON (and CORS headers).
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from courial_gateway.errors import ConfigurationError, MissingFieldError, UpstreamError
from courial_gateway.observability.logging import get_logger

log = get_logger(__name__)


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MissingFieldError)
    async def _missing_field(_: Request, exc: MissingFieldError) -> JSONResponse:
        return error_response(HTTP_400_BAD_REQUEST, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(_: Request, exc: RequestValidationError) -> JSONResponse:
        log.info("invalid_request_body", errors=len(exc.errors()))
        return error_response(HTTP_400_BAD_REQUEST, "Invalid JSON body")

    @app.exception_handler(ConfigurationError)
    async def _configuration(_: Request, exc: ConfigurationError) -> JSONResponse:
        log.error("configuration_missing", error=exc.message)
        return error_response(HTTP_500_INTERNAL_SERVER_ERROR, exc.message)

    @app.exception_handler(UpstreamError)
    async def _upstream(_: Request, exc: UpstreamError) -> JSONResponse:
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def _http(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            {"error": exc.detail}, status_code=exc.status_code, headers=exc.headers
        )


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """
    Last-resort handler: log with traceback, answer 500 `{"error": <message>}`.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            log.exception("unhandled_error")
            return error_response(HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Unknown error")


# --- Module Notes -----------------------------------------------------------
# UnhandledErrorMiddleware sits inside the CORS middleware so even crashes carry
# the allow-all headers the browser needs to read the error body.
