"""
courial_gateway.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the proxy service and session core.
- Hide secrets (upstream API keys, JWT secret) from repr/logging.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ALLOW_HEADERS = (
    "authorization, x-client-info, apikey, content-type, "
    "x-supabase-client-platform, x-supabase-client-platform-version, "
    "x-supabase-client-runtime, x-supabase-client-runtime-version"
)


class Settings(BaseSettings):
    """
    Env-driven configuration (prefix `COURIAL_`).

    Upstream keys are optional on purpose: endpoints report a 500 when the key they
    need is missing instead of failing at startup.
    """

    model_config = SettingsConfigDict(env_prefix="COURIAL_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "courial-gateway"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Upstream courier backend
    courial_base_url: str = "https://gocourial.com/userApis"
    courial_sms_api_key: str | None = Field(default=None, repr=False)
    courial_api_security_key: str | None = Field(default=None, repr=False)
    upstream_timeout_seconds: float = 15.0

    # Session tokens minted after OTP verification
    jwt_alg: str = "HS256"
    jwt_issuer: str = "courial-gateway"
    jwt_audience: str = "courial-app"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    access_token_ttl_minutes: int = 60
    refresh_token_ttl_days: int = 30

    # Role store
    database_url: str = "sqlite+aiosqlite:///./courial.db"
    admin_role: str = "admin"

    # Session core
    session_resolve_timeout_seconds: float = 3.0
    role_lookup_failure_policy: Literal["preserve", "clear"] = "preserve"

    cors_allow_headers: str = DEFAULT_CORS_ALLOW_HEADERS


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Both faces of the package (API service and client session core) read from this
# one model so timeouts and role names stay consistent.
