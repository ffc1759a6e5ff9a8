"""Client identifier and session token caching."""

from __future__ import annotations

import logging
import re
import secrets
from typing import TYPE_CHECKING

from pykasacloud.const import (
    CACHE_KEY_CLIENT_ID,
    CACHE_KEY_TOKEN,
    CLIENT_ID_BYTES,
    UUID_VARIANT_MASK,
    UUID_VARIANT_RFC4122,
    UUID_VERSION_4,
    UUID_VERSION_MASK,
)


if TYPE_CHECKING:
    from pykasacloud.api import KasaCloudAPI
    from pykasacloud.models import Credentials
    from pykasacloud.storage import KeyValueStore

_LOGGER = logging.getLogger(__name__)

CLIENT_ID_PATTERN = re.compile(r"^[0-9A-F]{8}-[0-9A-F]{4}-4[0-9A-F]{3}-[89AB][0-9A-F]{3}-[0-9A-F]{12}$")


def generate_client_id() -> str:
    """Generate a Kasa-compatible client identifier.

    Returns:
        Upper-case version 4 UUID string, e.g. "B762D589-2CF4-4AF8-97F3-3912444626E6".
    """
    data = bytearray(secrets.token_bytes(CLIENT_ID_BYTES))
    data[6] = (data[6] & UUID_VERSION_MASK) | UUID_VERSION_4
    data[8] = (data[8] & UUID_VARIANT_MASK) | UUID_VARIANT_RFC4122
    hexed = data.hex().upper()
    return f"{hexed[:8]}-{hexed[8:12]}-{hexed[12:16]}-{hexed[16:20]}-{hexed[20:]}"


class IdentityStore:
    """Load or create the client identifier and session token.

    Both values are read from the key-value store when present. On a cache miss,
    or when forced, a new client identifier is generated or a new login is
    performed, and the result is written back to the store.

    Example:
        ```python
        identity = IdentityStore(FileStore(), api)
        client_id = identity.load_or_create_client_id()
        token = await identity.load_or_create_token(credentials, client_id)
        ```
    """

    def __init__(self, store: KeyValueStore, api: KasaCloudAPI) -> None:
        """Initialize the identity store.

        Args:
            store: Key-value store holding the cached values.
            api: API client used to log in on a token cache miss.
        """
        self._store = store
        self._api = api

    def load_or_create_client_id(self, *, force_new: bool = False) -> str:
        """Return the cached client identifier, generating one if needed.

        Args:
            force_new: Always generate and persist a new identifier.

        Returns:
            The client identifier.
        """
        if not force_new:
            cached = (self._store.get(CACHE_KEY_CLIENT_ID) or "").strip()
            if cached:
                _LOGGER.debug("Using cached client ID")
                return cached

        client_id = generate_client_id()
        self._store.set(CACHE_KEY_CLIENT_ID, client_id)
        _LOGGER.debug("Generated new client ID %s", client_id)
        return client_id

    async def load_or_create_token(
        self,
        credentials: Credentials,
        client_id: str,
        *,
        force_new: bool = False,
    ) -> str:
        """Return the cached session token, logging in if needed.

        Args:
            credentials: Kasa account credentials used on a cache miss.
            client_id: Client identifier sent with the login.
            force_new: Always log in and persist the new token.

        Returns:
            The session token.

        Raises:
            AuthenticationError: If the login fails.
        """
        if not force_new:
            cached = (self._store.get(CACHE_KEY_TOKEN) or "").strip()
            if cached:
                _LOGGER.debug("Using cached session token")
                return cached

        token = await self._api.login(credentials.username, credentials.password, client_id)
        self._store.set(CACHE_KEY_TOKEN, token)
        return token

    def clear(self) -> None:
        """Remove the cached client identifier and session token."""
        self._store.delete(CACHE_KEY_CLIENT_ID)
        self._store.delete(CACHE_KEY_TOKEN)
        _LOGGER.debug("Identity cache cleared")
