"""Plug objects for Kasa devices.

A KasaPlug wraps one Device record and remembers the last relay state it saw.
All network calls go through the owning KasaClient.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pykasacloud.exceptions import DeviceStateError
from pykasacloud.models import PlugState


if TYPE_CHECKING:
    from pykasacloud.client import KasaClient
    from pykasacloud.models import Device

_LOGGER = logging.getLogger(__name__)


class KasaPlug:
    """A Kasa smart plug controlled through the cloud.

    Example:
        ```python
        async with KasaClient(username="user@example.com", password="password") as client:
            plug = client.get_plug(client.get_device_id_by_name("Desk Lamp"))
            await plug.refresh()
            print(f"{plug.alias} is {'on' if plug.is_on else 'off'}")
            await plug.toggle()
        ```

    Attributes:
        device_id: Vendor device ID.
        alias: Device name given in the Kasa app.
        is_on: Last known relay state (None before the first refresh).
    """

    def __init__(self, client: KasaClient, device: Device) -> None:
        """Initialize the plug.

        Args:
            client: KasaClient used for network calls.
            device: Device record from the directory.
        """
        self._client = client
        self._device = device
        self._state: PlugState | None = None

    @property
    def device(self) -> Device:
        """Get the underlying device record."""
        return self._device

    @property
    def device_id(self) -> str:
        """Get device ID."""
        return self._device.device_id

    @property
    def alias(self) -> str:
        """Get device alias."""
        return self._device.alias

    @property
    def mac(self) -> str:
        """Get device MAC address."""
        return self._device.mac

    @property
    def app_server_url(self) -> str:
        """Get the device-specific API URL."""
        return self._device.app_server_url

    @property
    def is_online(self) -> bool:
        """Check if the cloud reported the device as online."""
        return self._device.is_online

    @property
    def state(self) -> PlugState | None:
        """Get the last queried state."""
        return self._state

    @property
    def is_on(self) -> bool | None:
        """Get the last known relay state."""
        if self._state is None:
            return None
        return self._state.is_on

    async def refresh(self) -> PlugState:
        """Query the plug and update the cached state.

        Raises:
            DeviceStateError: If the device returned no state.
        """
        state = await self._client.get_plug_state(self.device_id)
        if state is None:
            msg = f"Could not get the plug state for device {self.device_id}"
            raise DeviceStateError(msg, device_id=self.device_id)
        self._state = state
        return state

    def _assume(self, relay_on: bool) -> None:
        # Optimistic update; the next refresh replaces it with the reported state.
        self._state = PlugState(err_code=0, relay_state=int(relay_on))

    async def turn_on(self) -> None:
        """Switch the relay on."""
        await self._client.set_relay_state(self.device_id, True)
        self._assume(True)

    async def turn_off(self) -> None:
        """Switch the relay off."""
        await self._client.set_relay_state(self.device_id, False)
        self._assume(False)

    async def toggle(self) -> bool:
        """Query the relay and switch it to the opposite state.

        Returns:
            The new relay state.
        """
        state = await self.refresh()
        new_state = not state.is_on
        _LOGGER.debug("Toggling %s to %s", self.alias, "on" if new_state else "off")
        await self._client.set_relay_state(self.device_id, new_state)
        self._assume(new_state)
        return new_state

    def __str__(self) -> str:
        return f"{self.alias} ({self.device_id})"

    def __repr__(self) -> str:
        return f"KasaPlug(device_id={self.device_id!r}, alias={self.alias!r}, is_on={self.is_on!r})"
