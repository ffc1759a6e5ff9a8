"""Data models for Kasa cloud API requests and responses."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


__all__ = [
    "ApiResponse",
    "Credentials",
    "Device",
    "DeviceIndex",
    "PlugState",
]


@dataclass(frozen=True)
class Credentials:
    """Kasa account credentials.

    Attributes:
        username: Kasa cloud user name (usually an email address).
        password: Kasa cloud password.
    """

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class ApiResponse:
    """Decoded response of a single cloud call.

    Attributes:
        payload: Decoded JSON body, or the raw text body when it is not JSON.
        cookies: Cookies set by the response, keyed by name.
    """

    payload: Any
    cookies: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Device:
    """A device registered to the Kasa account.

    Attributes:
        device_id: Vendor-assigned device identifier.
        alias: Human-readable device name given in the Kasa app.
        mac: Device MAC address.
        app_server_url: Device-specific API base URL.
        status: Last-known online status flag (1 = online).
        device_type: Vendor device type (e.g., "IOT.SMARTPLUGSWITCH").
        model: Device model (e.g., "HS110(EU)").
        firmware_version: Firmware version string.
        raw: Original device list entry.
    """

    device_id: str
    alias: str
    mac: str
    app_server_url: str
    status: int
    device_type: str = ""
    model: str = ""
    firmware_version: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def is_online(self) -> bool:
        """Check if the cloud reported the device as online."""
        return bool(self.status)


@dataclass(frozen=True)
class DeviceIndex:
    """Read-only lookups over one device list.

    Both mappings are built together and reference the same Device instances.

    Attributes:
        by_id: Devices keyed by device ID.
        by_name: Devices keyed by alias.
    """

    by_id: Mapping[str, Device] = field(default_factory=lambda: MappingProxyType({}))
    by_name: Mapping[str, Device] = field(default_factory=lambda: MappingProxyType({}))

    def __len__(self) -> int:
        """Return the number of indexed devices."""
        return len(self.by_id)


@dataclass(frozen=True)
class PlugState:
    """Relay state of a plug derived from a single state query.

    Attributes:
        err_code: Error code reported by the plug (0 = no error).
        relay_state: Raw relay state value (0 = off).
        raw: Decoded inner response for debugging.
    """

    err_code: int
    relay_state: int
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def is_on(self) -> bool:
        """Check if the relay is on.

        A plug reporting an error is treated as off.
        """
        if self.err_code != 0:
            return False
        return self.relay_state != 0
