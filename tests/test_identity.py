"""Tests for client identifier and session token caching."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest

from pykasacloud.exceptions import AuthenticationError
from pykasacloud.identity import CLIENT_ID_PATTERN, IdentityStore, generate_client_id
from pykasacloud.models import Credentials
from pykasacloud.storage import MemoryStore

from .conftest import CLIENT_ID, PASSWORD, TOKEN, USERNAME


@pytest.fixture
def mock_api() -> AsyncMock:
    """Create a mock KasaCloudAPI."""
    api = AsyncMock()
    api.login = AsyncMock(return_value="fresh-token")
    return api


@pytest.fixture
def credentials() -> Credentials:
    """Create sample credentials."""
    return Credentials(username=USERNAME, password=PASSWORD)


class TestGenerateClientId:
    """Test client identifier generation."""

    def test_layout(self) -> None:
        """Test identifiers match the upper-case 8-4-4-4-12 layout."""
        for _ in range(200):
            client_id = generate_client_id()
            assert CLIENT_ID_PATTERN.match(client_id), client_id

    def test_version_and_variant_bits(self) -> None:
        """Test the version nibble is 4 and the variant is RFC 4122."""
        for _ in range(200):
            parsed = uuid.UUID(generate_client_id())
            assert parsed.version == 4
            assert parsed.variant == uuid.RFC_4122

    def test_identifiers_are_random(self) -> None:
        """Test consecutive identifiers differ."""
        assert len({generate_client_id() for _ in range(50)}) == 50


class TestLoadOrCreateClientId:
    """Test IdentityStore.load_or_create_client_id()."""

    def test_generates_and_persists_on_miss(self, mock_api: AsyncMock) -> None:
        """Test a missing client ID is generated and stored."""
        store = MemoryStore()
        identity = IdentityStore(store, mock_api)

        client_id = identity.load_or_create_client_id()

        assert CLIENT_ID_PATTERN.match(client_id)
        assert store.get("client_id") == client_id

    def test_reuses_cached_value(self, mock_api: AsyncMock) -> None:
        """Test a cached client ID is returned unchanged."""
        identity = IdentityStore(MemoryStore({"client_id": CLIENT_ID}), mock_api)

        assert identity.load_or_create_client_id() == CLIENT_ID

    def test_strips_trailing_newline(self, mock_api: AsyncMock) -> None:
        """Test hand-edited cache files with a newline still work."""
        identity = IdentityStore(MemoryStore({"client_id": CLIENT_ID + "\n"}), mock_api)

        assert identity.load_or_create_client_id() == CLIENT_ID

    @pytest.mark.parametrize("cached", ["", " \n", "\t"])
    def test_blank_value_is_a_miss(self, mock_api: AsyncMock, cached: str) -> None:
        """Test a whitespace-only cache file generates a new client ID."""
        store = MemoryStore({"client_id": cached})
        identity = IdentityStore(store, mock_api)

        client_id = identity.load_or_create_client_id()

        assert CLIENT_ID_PATTERN.match(client_id)
        assert store.get("client_id") == client_id

    def test_force_new_replaces_cached_value(self, mock_api: AsyncMock) -> None:
        """Test forcing regenerates and overwrites the cache."""
        store = MemoryStore({"client_id": CLIENT_ID})
        identity = IdentityStore(store, mock_api)

        client_id = identity.load_or_create_client_id(force_new=True)

        assert client_id != CLIENT_ID
        assert store.get("client_id") == client_id


class TestLoadOrCreateToken:
    """Test IdentityStore.load_or_create_token()."""

    async def test_cached_token_skips_login(self, mock_api: AsyncMock, credentials: Credentials) -> None:
        """Test a cached token never triggers a network call."""
        identity = IdentityStore(MemoryStore({"token": TOKEN}), mock_api)

        token = await identity.load_or_create_token(credentials, CLIENT_ID)

        assert token == TOKEN
        mock_api.login.assert_not_called()

    async def test_missing_token_logs_in(self, mock_api: AsyncMock, credentials: Credentials) -> None:
        """Test a cache miss logs in and persists the token."""
        store = MemoryStore()
        identity = IdentityStore(store, mock_api)

        token = await identity.load_or_create_token(credentials, CLIENT_ID)

        assert token == "fresh-token"
        assert store.get("token") == "fresh-token"
        mock_api.login.assert_awaited_once_with(USERNAME, PASSWORD, CLIENT_ID)

    async def test_blank_token_logs_in(self, mock_api: AsyncMock, credentials: Credentials) -> None:
        """Test a whitespace-only cached token is a miss."""
        store = MemoryStore({"token": " \n"})
        identity = IdentityStore(store, mock_api)

        token = await identity.load_or_create_token(credentials, CLIENT_ID)

        assert token == "fresh-token"
        assert store.get("token") == "fresh-token"
        mock_api.login.assert_awaited_once_with(USERNAME, PASSWORD, CLIENT_ID)

    async def test_force_new_logs_in(self, mock_api: AsyncMock, credentials: Credentials) -> None:
        """Test forcing logs in even with a cached token."""
        store = MemoryStore({"token": TOKEN})
        identity = IdentityStore(store, mock_api)

        token = await identity.load_or_create_token(credentials, CLIENT_ID, force_new=True)

        assert token == "fresh-token"
        assert store.get("token") == "fresh-token"
        mock_api.login.assert_awaited_once()

    async def test_login_failure_keeps_cache_untouched(
        self, mock_api: AsyncMock, credentials: Credentials
    ) -> None:
        """Test a failed login propagates and stores nothing."""
        mock_api.login.side_effect = AuthenticationError("Incorrect email or password")
        store = MemoryStore()
        identity = IdentityStore(store, mock_api)

        with pytest.raises(AuthenticationError):
            await identity.load_or_create_token(credentials, CLIENT_ID)

        assert store.get("token") is None


class TestClear:
    """Test IdentityStore.clear()."""

    def test_clear_removes_both_values(self, mock_api: AsyncMock) -> None:
        """Test clearing drops client ID and token."""
        store = MemoryStore({"client_id": CLIENT_ID, "token": TOKEN, "devices": "[]"})
        identity = IdentityStore(store, mock_api)

        identity.clear()

        assert "client_id" not in store
        assert "token" not in store
        assert "devices" in store
