"""
courial_gateway.errors

Domain exceptions shared by the proxy service.

Responsibilities:
- Name the failure classes the API layer maps onto HTTP status codes.
"""

from __future__ import annotations

from typing import Any


class MissingFieldError(Exception):
    """A required request field is absent or empty."""

    def __init__(self, field: str) -> None:
        super().__init__(field)
        self.field = field

    @property
    def message(self) -> str:
        return f"Missing required field: {self.field}"


class ConfigurationError(Exception):
    """Server-side configuration (typically an upstream API key) is absent."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UpstreamError(Exception):
    """The upstream could not be reached or answered with something other than JSON."""

    def __init__(
        self, message: str, *, status_code: int = 502, body: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


# --- Module Notes -----------------------------------------------------------
# Handlers for these live in `api.errors`; routers raise, they never build error
# responses themselves.
