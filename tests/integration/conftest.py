"""Pytest configuration and fixtures for integration tests."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from dotenv import load_dotenv

from pykasacloud.const import DEFAULT_BASE_URL


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


# Load .env file from project root
env_path = Path(__file__).parents[2] / ".env"
load_dotenv(env_path)


@pytest.fixture(scope="session")
def integration_config() -> dict[str, str]:
    """Load integration test configuration from environment.

    Returns:
        Dictionary with account credentials and the API base URL.
    """
    username = os.getenv("KASA_USERNAME")
    password = os.getenv("KASA_PASSWORD")

    if not username or not password:
        pytest.skip("Create a .env file with KASA_USERNAME and KASA_PASSWORD to run integration tests")

    return {
        "username": username,
        "password": password,
        "base_url": os.getenv("KASA_API_BASE_URL", DEFAULT_BASE_URL),
    }


@pytest.fixture(scope="session")
def test_alias() -> str:
    """Get the alias of a plug that the tests may toggle.

    Toggle tests are skipped unless KASA_TEST_ALIAS is set, since they switch
    a real device.
    """
    alias = os.getenv("KASA_TEST_ALIAS")
    if not alias:
        pytest.skip("Set KASA_TEST_ALIAS to run toggle tests against a real plug")
    return alias


@pytest.fixture(autouse=True)
async def rate_limit_delay(request: pytest.FixtureRequest) -> AsyncGenerator[None]:
    """Pause after each integration test so the cloud does not throttle us."""
    yield
    if "integration" in request.keywords:
        await asyncio.sleep(1.0)
