"""Constants for pykasacloud library."""

from __future__ import annotations

from typing import Any


# API Configuration
DEFAULT_BASE_URL = "https://wap.tplinkcloud.com"
DEFAULT_TIMEOUT = 30  # seconds
APP_TYPE = "Kasa_iOS"

# Cloud methods
METHOD_LOGIN = "login"
METHOD_GET_DEVICE_LIST = "getDeviceList"
METHOD_PASSTHROUGH = "passthrough"

# Inner passthrough commands
GET_STATE_COMMAND: dict[str, Any] = {
    "schedule": {"get_next_action": {}},
    "system": {"get_sysinfo": {}},
}

# Cache keys and the flat files that back them
CACHE_APP_NAME = "pykasacloud"
CACHE_KEY_CLIENT_ID = "client_id"
CACHE_KEY_TOKEN = "token"  # noqa: S105 - cache key name, not a secret
CACHE_KEY_DEVICES = "devices"
CACHE_FILENAMES = {
    CACHE_KEY_CLIENT_ID: "client_id.txt",
    CACHE_KEY_TOKEN: "token.txt",
    CACHE_KEY_DEVICES: "devices.json",
}

# Client identifier layout (UUID version 4, RFC 4122 variant)
CLIENT_ID_BYTES = 16
UUID_VERSION_MASK = 0x0F
UUID_VERSION_4 = 0x40
UUID_VARIANT_MASK = 0x3F
UUID_VARIANT_RFC4122 = 0x80


def set_relay_state_command(state: bool) -> dict[str, Any]:
    """Build the inner passthrough command that switches the relay."""
    return {"system": {"set_relay_state": {"state": 1 if state else 0}}}
