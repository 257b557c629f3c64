"""
courial_gateway.api.routers.users

User sync proxy endpoints.

Responsibilities:
- `/sync-user`: register a phone user with the courier backend unless it already exists.
- `/social-login`: register/sign in a Google or Apple identity with the courier backend.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from courial_gateway.api.deps import CourialClients, courial_clients
from courial_gateway.api.routers._bodies import ProxyRequest, present_fields, require_fields
from courial_gateway.observability.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["users"])

SIGNUP_OPTIONAL_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "auth_id",
    "device_token",
    "latitude",
    "longitude",
    "social_id",
    "referral_code",
    "how_heard",
)


class SyncUserRequest(ProxyRequest):
    country_code: str | None = None
    phone: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    auth_id: str | None = None
    device_token: str | None = None
    latitude: str | None = None
    longitude: str | None = None
    social_id: str | None = None
    referral_code: str | None = None
    how_heard: str | None = None


class SocialLoginRequest(ProxyRequest):
    social_id: str | None = None
    provider: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    device_token: str | None = None


@router.post("/sync-user")
async def sync_user(
    body: SyncUserRequest,
    clients: CourialClients = Depends(courial_clients),
) -> JSONResponse:
    require_fields(body, "country_code", "phone")
    client = clients.users()

    check = await client.check_phone(country_code=body.country_code, phone=body.phone)
    data = check.body.get("data")
    if check.ok and isinstance(data, dict) and data.get("exists"):
        log.info("sync_user_exists")
        return JSONResponse({"success": True, "already_exists": True, "data": check.body})

    params = {"country_code": body.country_code, "phone": body.phone}
    params.update(present_fields(body, *SIGNUP_OPTIONAL_FIELDS))
    signup = await client.signup(params)
    log.info("sync_user_signup", upstream_status=signup.status_code)
    return JSONResponse(
        {"success": signup.succeeded, "already_exists": False, "data": signup.body},
        status_code=signup.relay_status(),
    )


@router.post("/social-login")
async def social_login(
    body: SocialLoginRequest,
    clients: CourialClients = Depends(courial_clients),
) -> JSONResponse:
    require_fields(body, "social_id", "provider")
    client = clients.users()

    # Upstream names these `type` and `socialId`.
    params = {"type": body.provider, "socialId": body.social_id}
    params.update(present_fields(body, "email", "first_name", "last_name", "device_token"))
    upstream = await client.social_login(params)
    log.info("social_login_relayed", provider=body.provider, upstream_status=upstream.status_code)
    return JSONResponse(
        {"success": upstream.succeeded, "data": upstream.body},
        status_code=upstream.relay_status(),
    )
