"""
tests.conftest

Shared fixtures.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from courial_gateway.settings import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        courial_sms_api_key="sms-key",
        courial_api_security_key="api-key",
        jwt_secret="test-secret",
    )
