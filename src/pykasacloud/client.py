"""High-level client for Kasa cloud smart plugs.

This module composes the identity cache, the device directory and the
low-level API into the login, list and toggle operations.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from aiohttp import ClientSession  # noqa: TC002 - Used at runtime for the session argument

from pykasacloud.api import KasaCloudAPI
from pykasacloud.const import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from pykasacloud.devices import KasaPlug
from pykasacloud.directory import DeviceDirectory
from pykasacloud.exceptions import DeviceStateError
from pykasacloud.identity import IdentityStore
from pykasacloud.models import Credentials
from pykasacloud.storage import FileStore


if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from pykasacloud.models import Device, PlugState
    from pykasacloud.storage import KeyValueStore

_LOGGER = logging.getLogger(__name__)


class KasaClient:
    """Client for Kasa smart plugs controlled through the TP-Link cloud.

    Entering the context manager bootstraps the client: it loads or creates the
    client identifier, loads the cached session token or logs in, and loads the
    cached device list or fetches it. Each step reads the key-value store first
    and only goes to the network on a cache miss or when forced.

    Example:
        Basic usage with the default file cache:

        ```python
        from pykasacloud import KasaClient

        async with KasaClient(username="user@example.com", password="password") as client:
            for device in client.devices:
                print(device.alias, device.device_id)

            await client.toggle_by_name("Desk Lamp")
        ```

        Session injection and an in-memory cache:

        ```python
        from aiohttp import ClientSession
        from pykasacloud import KasaClient, MemoryStore

        async with ClientSession() as session:
            async with KasaClient("user@example.com", "password", session=session, store=MemoryStore()) as client:
                on = await client.get_relay_state(client.get_device_id_by_name("Heater"))
        ```

    Attributes:
        api: Low-level KasaCloudAPI instance for HTTP communication.
    """

    def __init__(
        self,
        username: str,
        password: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        session: ClientSession | None = None,
        store: KeyValueStore | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        force_reauthentication: bool = False,
        force_refresh_devices: bool = False,
    ) -> None:
        """Initialize the Kasa client.

        Args:
            username: Kasa cloud user name.
            password: Kasa cloud password.
            base_url: Base URL for the API. Defaults to the Kasa production cloud.
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            store: Key-value store for the identity and device caches. Defaults to
                a FileStore in the per-user cache directory.
            timeout: Total timeout per request in seconds.
            force_reauthentication: Generate a new client ID and log in again on
                bootstrap, ignoring the cache.
            force_refresh_devices: Fetch the device list on bootstrap, ignoring
                the cache.
        """
        self._credentials = Credentials(username=username, password=password)
        self._store: KeyValueStore = store if store is not None else FileStore()
        self._api = KasaCloudAPI(session=session, base_url=base_url, timeout=timeout)
        self._identity = IdentityStore(self._store, self._api)
        self._directory = DeviceDirectory(self._store, self._api)
        self._force_reauthentication = force_reauthentication
        self._force_refresh_devices = force_refresh_devices

        self._client_id: str | None = None
        self._token: str | None = None

    @property
    def api(self) -> KasaCloudAPI:
        """Get the underlying API client."""
        return self._api

    async def __aenter__(self) -> KasaClient:
        """Enter the context manager.

        Creates the session if needed and bootstraps identity and devices.

        Returns:
            Self for use in async with statements.
        """
        await self._api.__aenter__()
        try:
            await self.connect(
                force_reauthentication=self._force_reauthentication,
                force_refresh_devices=self._force_refresh_devices,
            )
        except Exception as exc:
            # Clean up session on failure
            await self._api.__aexit__(type(exc), exc, exc.__traceback__)
            raise
        else:
            return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager, closing the session if this client created it.

        Args:
            exc_type: Exception type if an exception occurred.
            exc_val: Exception value if an exception occurred.
            exc_tb: Exception traceback if an exception occurred.
        """
        await self._api.__aexit__(exc_type, exc_val, exc_tb)

    async def connect(
        self,
        *,
        force_reauthentication: bool = False,
        force_refresh_devices: bool = False,
    ) -> None:
        """Load or create the client ID, session token and device list.

        Args:
            force_reauthentication: Generate a new client ID and log in again.
            force_refresh_devices: Fetch the device list from the cloud.

        Raises:
            AuthenticationError: If login is needed and fails.
            ProtocolError: If the device list response is malformed.
        """
        self._client_id = self._identity.load_or_create_client_id(force_new=force_reauthentication)
        self._token = await self._identity.load_or_create_token(
            self._credentials,
            self._client_id,
            force_new=force_reauthentication,
        )
        await self._directory.load_or_refresh(
            self._token,
            self._client_id,
            force_refresh=force_refresh_devices,
        )

    def _session_identity(self) -> tuple[str, str]:
        if self._token is None or self._client_id is None:
            msg = "Client not connected. Use 'async with' or call connect() first."
            raise RuntimeError(msg)
        return self._token, self._client_id

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def client_id(self) -> str | None:
        """Get the client identifier (None before bootstrap)."""
        return self._client_id

    @property
    def token(self) -> str | None:
        """Get the session token (None before bootstrap)."""
        return self._token

    @property
    def devices(self) -> list[Device]:
        """Get the device list."""
        return self._directory.devices

    @property
    def devices_by_id(self) -> Mapping[str, Device]:
        """Get devices keyed by device ID."""
        return self._directory.by_id

    @property
    def devices_by_name(self) -> Mapping[str, Device]:
        """Get devices keyed by alias."""
        return self._directory.by_name

    def get_device_id_by_name(self, alias: str) -> str:
        """Look up a device ID by alias.

        Raises:
            DeviceNotFoundError: If the alias is unknown.
        """
        return self._directory.get_device_id_by_name(alias)

    def get_plug(self, device_id: str) -> KasaPlug:
        """Get a plug object for a device.

        Raises:
            DeviceNotFoundError: If the device ID is unknown.
        """
        return KasaPlug(self, self._directory.get_device(device_id))

    # -------------------------------------------------------------------------
    # Session & inventory
    # -------------------------------------------------------------------------

    async def reauthenticate(self) -> str:
        """Generate a new client ID and log in again.

        Returns:
            The new session token.
        """
        _LOGGER.info("Forcing reauthentication")
        self._client_id = self._identity.load_or_create_client_id(force_new=True)
        self._token = await self._identity.load_or_create_token(
            self._credentials,
            self._client_id,
            force_new=True,
        )
        return self._token

    async def refresh_devices(self) -> list[Device]:
        """Fetch the device list from the cloud and rebuild the index."""
        token, client_id = self._session_identity()
        return await self._directory.load_or_refresh(token, client_id, force_refresh=True)

    # -------------------------------------------------------------------------
    # Plug control
    # -------------------------------------------------------------------------

    async def get_plug_state(self, device_id: str) -> PlugState | None:
        """Query the current state of a plug.

        Returns:
            PlugState, or None if the device returned nothing.

        Raises:
            DeviceNotFoundError: If the device ID is unknown.
        """
        device = self._directory.get_device(device_id)
        token, client_id = self._session_identity()
        return await self._api.get_plug_state(token, client_id, device.device_id, device.app_server_url)

    async def get_relay_state(self, device_id: str) -> bool:
        """Query whether the relay of a plug is on.

        Raises:
            DeviceNotFoundError: If the device ID is unknown.
            DeviceStateError: If the device returned no state.
        """
        state = await self.get_plug_state(device_id)
        if state is None:
            msg = f"Could not get the plug state for device {device_id}"
            raise DeviceStateError(msg, device_id=device_id)
        return state.is_on

    async def set_relay_state(self, device_id: str, state: bool) -> None:
        """Switch the relay of a plug on or off.

        Raises:
            DeviceNotFoundError: If the device ID is unknown.
        """
        device = self._directory.get_device(device_id)
        token, client_id = self._session_identity()
        _LOGGER.debug("Setting %s (%s) %s", device.alias, device_id, "on" if state else "off")
        await self._api.set_relay_state(token, client_id, device.device_id, device.app_server_url, state)

    async def turn_on(self, device_id: str) -> None:
        """Switch the relay of a plug on."""
        await self.set_relay_state(device_id, True)

    async def turn_off(self, device_id: str) -> None:
        """Switch the relay of a plug off."""
        await self.set_relay_state(device_id, False)

    async def toggle_by_id(self, device_id: str) -> bool:
        """Invert the relay state of a plug.

        Args:
            device_id: The device ID.

        Returns:
            The new relay state.

        Raises:
            DeviceNotFoundError: If the device ID is unknown.
            DeviceStateError: If the current state could not be queried.
        """
        current = await self.get_relay_state(device_id)
        _LOGGER.debug("Device %s is %s, toggling", device_id, "on" if current else "off")
        await self.set_relay_state(device_id, not current)
        return not current

    async def toggle_by_name(self, alias: str) -> bool:
        """Invert the relay state of the plug with the given alias.

        Returns:
            The new relay state.

        Raises:
            DeviceNotFoundError: If the alias is unknown.
            DeviceStateError: If the current state could not be queried.
        """
        return await self.toggle_by_id(self.get_device_id_by_name(alias))
