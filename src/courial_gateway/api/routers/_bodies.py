"""
courial_gateway.api.routers._bodies

Shared request-body helpers for the proxy endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from courial_gateway.errors import MissingFieldError


class ProxyRequest(BaseModel):
    # Clients send numbers for phone/lat/long as often as strings.
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


def require_fields(body: BaseModel, *fields: str) -> None:
    # First missing field wins; empty strings count as missing.
    for name in fields:
        if not getattr(body, name, None):
            raise MissingFieldError(field=name)


def present_fields(body: BaseModel, *fields: str) -> dict[str, str]:
    return {name: value for name in fields if (value := getattr(body, name, None))}
