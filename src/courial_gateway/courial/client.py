"""
courial_gateway.courial.client

HTTP client boundary for the Courial user APIs.

Responsibilities:
- Attach the static upstream credentials (`security_key` + bearer header).
- Send form-encoded POSTs to the fixed user API paths.
- Normalize transport failures and non-JSON replies into `UpstreamError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from courial_gateway.courial.responses import UpstreamResponse
from courial_gateway.errors import UpstreamError
from courial_gateway.observability.logging import get_logger

log = get_logger(__name__)


def create_http_client(*, base_url: str, timeout_seconds: float) -> httpx.AsyncClient:
    # One pooled client per process; the timeout is the only guard on upstream calls.
    return httpx.AsyncClient(base_url=base_url, timeout=httpx.Timeout(timeout_seconds))


class CourialClient:
    """
    Thin wrapper over the upstream's form-encoded endpoints.

    Each method maps 1:1 to an upstream path and returns the raw `UpstreamResponse`;
    deciding what to relay is the router's job.
    """

    def __init__(self, *, http: httpx.AsyncClient, api_key: str) -> None:
        self._http = http
        self._api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {
            "security_key": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
        }

    async def _post_form(self, path: str, params: Mapping[str, str]) -> UpstreamResponse:
        log.info("upstream_request", upstream_path=path, fields=sorted(params))
        try:
            r = await self._http.post(path, data=dict(params), headers=self._headers())
        except httpx.TimeoutException as e:
            log.warning("upstream_timeout", upstream_path=path)
            raise UpstreamError(message="Upstream request timed out", status_code=504) from e
        except httpx.HTTPError as e:
            log.warning("upstream_unreachable", upstream_path=path, error=str(e))
            raise UpstreamError(message=f"Upstream request failed: {e}") from e

        try:
            payload: Any = r.json()
        except ValueError as e:
            raise UpstreamError(
                message="Upstream returned a non-JSON body", status_code=502
            ) from e

        body = payload if isinstance(payload, dict) else {"data": payload}
        log.info("upstream_response", upstream_path=path, status_code=r.status_code)
        return UpstreamResponse(status_code=r.status_code, body=body)

    async def send_login_otp(
        self, *, country_code: str, phone: str, device_id: str, type: str = "0"
    ) -> UpstreamResponse:
        return await self._post_form(
            "send_login_otp",
            {"type": type, "deviceID": device_id, "country_code": country_code, "phone": phone},
        )

    async def verify_login_otp(
        self, *, country_code: str, phone: str, otp: str, device_id: str | None = None
    ) -> UpstreamResponse:
        params = {"type": "0", "otp": otp, "country_code": country_code, "phone": phone}
        if device_id:
            params["deviceId"] = device_id
        return await self._post_form("verify_login_otp", params)

    async def check_phone(self, *, country_code: str, phone: str) -> UpstreamResponse:
        return await self._post_form("check_phone", {"country_code": country_code, "phone": phone})

    async def signup(self, params: Mapping[str, str]) -> UpstreamResponse:
        return await self._post_form("signup_v2", params)

    async def social_login(self, params: Mapping[str, str]) -> UpstreamResponse:
        return await self._post_form("social_Login_v2", params)


# --- Module Notes -----------------------------------------------------------
# The two upstream keys (SMS vs. API security key) are chosen by the caller; see
# `api.deps` for which endpoint uses which.
