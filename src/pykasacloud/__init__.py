"""Python client library for TP-Link Kasa smart plugs via the Kasa cloud.

This package provides an async client that logs in to the Kasa cloud, lists
the devices registered to the account and switches their relays.

The library is organized into layers:
1. **API Layer** (pykasacloud.api): Login, device list and passthrough requests
2. **Cache Layer** (pykasacloud.identity, pykasacloud.directory, pykasacloud.storage):
   Client ID, session token and device list caching with lookups by ID and alias
3. **Client Layer** (pykasacloud.client, pykasacloud.devices): Toggle and state operations

Example:
    Basic usage:

    ```python
    from pykasacloud import KasaClient

    async with KasaClient(username="user@example.com", password="password") as client:
        for device in client.devices:
            print(f"{device.alias}: {device.device_id}")

        await client.toggle_by_name("Desk Lamp")
    ```

    Direct API access:

    ```python
    async with KasaClient(username="user@example.com", password="password") as client:
        api = client.api
        state = await api.passthrough(
            client.token, client.client_id, device_id, {"system": {"get_sysinfo": {}}}
        )
    ```
"""

from __future__ import annotations

from pykasacloud.api import KasaCloudAPI
from pykasacloud.client import KasaClient
from pykasacloud.devices import KasaPlug
from pykasacloud.directory import DeviceDirectory, index_by_id_and_name
from pykasacloud.exceptions import (
    AuthenticationError,
    DeviceNotFoundError,
    DeviceStateError,
    KasaCloudError,
    KasaConnectionError,
    KasaTimeoutError,
    ProtocolError,
)
from pykasacloud.identity import IdentityStore, generate_client_id
from pykasacloud.models import ApiResponse, Credentials, Device, DeviceIndex, PlugState
from pykasacloud.parsers import parse_device, parse_device_list, parse_plug_state, relay_state_from_sysinfo
from pykasacloud.storage import FileStore, KeyValueStore, MemoryStore


__version__ = "0.1.0"

__all__ = [
    "ApiResponse",
    "AuthenticationError",
    "Credentials",
    "Device",
    "DeviceDirectory",
    "DeviceIndex",
    "DeviceNotFoundError",
    "DeviceStateError",
    "FileStore",
    "IdentityStore",
    "KasaClient",
    "KasaCloudAPI",
    "KasaCloudError",
    "KasaConnectionError",
    "KasaPlug",
    "KasaTimeoutError",
    "KeyValueStore",
    "MemoryStore",
    "PlugState",
    "ProtocolError",
    "__version__",
    "generate_client_id",
    "index_by_id_and_name",
    "parse_device",
    "parse_device_list",
    "parse_plug_state",
    "relay_state_from_sysinfo",
]
