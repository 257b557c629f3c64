"""
courial_gateway.api.routers.otp

Phone OTP proxy endpoints.

Responsibilities:
- `/send-otp`: ask the courier backend to text a login code to a phone.
- `/verify-otp`: check the code upstream, then mint a session for the phone identity.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST

from courial_gateway.api.deps import CourialClients, courial_clients, settings_dep
from courial_gateway.api.errors import error_response
from courial_gateway.api.routers._bodies import ProxyRequest, require_fields
from courial_gateway.auth.tokens import mint_session_tokens, phone_user
from courial_gateway.observability.logging import get_logger
from courial_gateway.settings import Settings

log = get_logger(__name__)

router = APIRouter(tags=["otp"])


class SendOtpRequest(ProxyRequest):
    country_code: str | None = None
    phone: str | None = None
    type: str | None = None


class VerifyOtpRequest(ProxyRequest):
    country_code: str | None = None
    phone: str | None = None
    otp: str | None = None
    deviceId: str | None = None


@router.post("/send-otp")
async def send_otp(
    body: SendOtpRequest,
    clients: CourialClients = Depends(courial_clients),
) -> JSONResponse:
    require_fields(body, "country_code", "phone")
    client = clients.sms()

    # Web clients have no device id of their own; a fresh one is issued per request.
    device_id = str(uuid.uuid4())
    upstream = await client.send_login_otp(
        country_code=body.country_code,
        phone=body.phone,
        device_id=device_id,
        type=body.type or "0",
    )
    return JSONResponse({**upstream.body, "deviceID": device_id}, status_code=upstream.relay_status())


@router.post("/verify-otp")
async def verify_otp(
    body: VerifyOtpRequest,
    clients: CourialClients = Depends(courial_clients),
    settings: Settings = Depends(settings_dep),
) -> JSONResponse:
    require_fields(body, "country_code", "phone", "otp")
    client = clients.sms()

    upstream = await client.verify_login_otp(
        country_code=body.country_code,
        phone=body.phone,
        otp=body.otp,
        device_id=body.deviceId,
    )
    if not upstream.succeeded:
        log.info("otp_rejected", upstream_status=upstream.status_code)
        return error_response(
            HTTP_400_BAD_REQUEST,
            upstream.message or "OTP verification failed",
            courialData=upstream.body,
        )

    user = phone_user(body.country_code, body.phone)
    tokens = mint_session_tokens(settings=settings, user=user)
    log.info("otp_verified", user_id=user.id)

    payload: dict[str, Any] = {
        "success": True,
        "access_token": tokens.access_token,
        "refresh_token": tokens.refresh_token,
        "token_type": tokens.token_type,
        "expires_in": tokens.expires_in,
        "user_id": user.id,
        "courial_data": upstream.body,
    }
    return JSONResponse(payload)
