"""Device inventory cache and lookups."""

from __future__ import annotations

import json
import logging
from types import MappingProxyType
from typing import TYPE_CHECKING

from pykasacloud.const import CACHE_KEY_DEVICES
from pykasacloud.exceptions import DeviceNotFoundError, ProtocolError
from pykasacloud.models import DeviceIndex
from pykasacloud.parsers import parse_device_list


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from pykasacloud.api import KasaCloudAPI
    from pykasacloud.models import Device
    from pykasacloud.storage import KeyValueStore

_LOGGER = logging.getLogger(__name__)


def index_by_id_and_name(devices: Iterable[Device]) -> DeviceIndex:
    """Build the by-ID and by-name lookups for a device list.

    Both mappings are derived in one pass from the same Device instances. When
    two devices share an alias, the later one wins in ``by_name``.

    Args:
        devices: Devices to index.

    Returns:
        DeviceIndex with read-only mappings.
    """
    by_id: dict[str, Device] = {}
    by_name: dict[str, Device] = {}
    for device in devices:
        if device.alias in by_name and by_name[device.alias].device_id != device.device_id:
            _LOGGER.warning(
                "Alias %r is used by devices %s and %s; lookups by name return the latter",
                device.alias,
                by_name[device.alias].device_id,
                device.device_id,
            )
        by_id[device.device_id] = device
        by_name[device.alias] = device
    return DeviceIndex(by_id=MappingProxyType(by_id), by_name=MappingProxyType(by_name))


class DeviceDirectory:
    """Cached device inventory with lookups by ID and by alias.

    The raw device list is read from the key-value store when present and
    fetched from the cloud otherwise. Every load replaces the index as a whole.
    """

    def __init__(self, store: KeyValueStore, api: KasaCloudAPI) -> None:
        """Initialize the directory.

        Args:
            store: Key-value store holding the cached device list.
            api: API client used to fetch the device list on a cache miss.
        """
        self._store = store
        self._api = api
        self._devices: list[Device] = []
        self._index = DeviceIndex()

    @property
    def devices(self) -> list[Device]:
        """Get the current device list."""
        return list(self._devices)

    @property
    def by_id(self) -> Mapping[str, Device]:
        """Get devices keyed by device ID."""
        return self._index.by_id

    @property
    def by_name(self) -> Mapping[str, Device]:
        """Get devices keyed by alias."""
        return self._index.by_name

    def _load_cached(self) -> list[Device] | None:
        cached = self._store.get(CACHE_KEY_DEVICES)
        if cached is None:
            return None
        try:
            return parse_device_list(json.loads(cached))
        except (json.JSONDecodeError, ProtocolError) as exc:
            _LOGGER.warning("Ignoring unreadable device cache: %s", exc)
            return None

    async def load_or_refresh(
        self,
        token: str,
        client_id: str,
        *,
        force_refresh: bool = False,
    ) -> list[Device]:
        """Load the device list from the cache, or fetch it from the cloud.

        Args:
            token: Session token used on a cache miss.
            client_id: Client identifier used on a cache miss.
            force_refresh: Always fetch from the cloud and overwrite the cache.

        Returns:
            The device list. The index is rebuilt from it.

        Raises:
            ProtocolError: If the cloud returns an unexpected response.
        """
        devices = None if force_refresh else self._load_cached()

        if devices is not None:
            _LOGGER.debug("Loaded %d device(s) from cache", len(devices))
        else:
            raw = await self._api.get_raw_device_list(token, client_id)
            devices = parse_device_list(raw)
            self._store.set(CACHE_KEY_DEVICES, json.dumps(raw))
            _LOGGER.info("Fetched %d device(s) from the Kasa cloud", len(devices))

        self.index_by_id_and_name(devices)
        return self.devices

    def index_by_id_and_name(self, devices: Iterable[Device]) -> DeviceIndex:
        """Replace the device list and its index.

        Safe to call repeatedly; each call overwrites the previous index.

        Args:
            devices: Devices to index.

        Returns:
            The new DeviceIndex.
        """
        device_list = list(devices)
        index = index_by_id_and_name(device_list)
        self._devices = device_list
        self._index = index
        return index

    def get_device(self, device_id: str) -> Device:
        """Look up a device by ID.

        Raises:
            DeviceNotFoundError: If the ID is unknown.
        """
        try:
            return self._index.by_id[device_id]
        except KeyError:
            msg = f"Unknown device ID {device_id!r}"
            raise DeviceNotFoundError(msg, device_id=device_id) from None

    def get_device_id_by_name(self, alias: str) -> str:
        """Look up a device ID by alias.

        Raises:
            DeviceNotFoundError: If the alias is unknown.
        """
        try:
            return self._index.by_name[alias].device_id
        except KeyError:
            msg = f"No device named {alias!r}"
            raise DeviceNotFoundError(msg, device_id=alias) from None
