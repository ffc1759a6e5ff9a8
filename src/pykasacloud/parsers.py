"""Parsing utilities for Kasa cloud API responses.

This module provides stateless functions shared by the API layer, the device
directory and the plug objects to convert raw API responses into data models.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from pykasacloud.exceptions import ProtocolError
from pykasacloud.models import Device, PlugState


__all__ = [
    "decode_body",
    "parse_cookies",
    "parse_device",
    "parse_device_list",
    "parse_plug_state",
    "relay_state_from_sysinfo",
]


def decode_body(body: str | bytes) -> Any:
    """Decode a response body as JSON, falling back to the raw text.

    Byte bodies are read as UTF-8. Invalid sequences are replaced rather than
    raising, so a garbled body still comes back as text.

    Args:
        body: Response body.

    Returns:
        The decoded JSON value, or the body text if it is not valid JSON.
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return body


def parse_cookies(set_cookie_headers: Iterable[str]) -> dict[str, str]:
    """Extract cookie name/value pairs from ``Set-Cookie`` header values.

    Only the leading ``name=value`` pair of each header is kept; attributes such
    as ``Path`` or ``Expires`` are dropped. The first occurrence of a name wins.

    Args:
        set_cookie_headers: Raw ``Set-Cookie`` header values.

    Returns:
        Dictionary of cookie values keyed by cookie name.
    """
    cookies: dict[str, str] = {}
    for header in set_cookie_headers:
        pair = header.split(";", 1)[0].strip()
        if not pair:
            continue
        name, _, value = pair.partition("=")
        cookies.setdefault(name.strip(), value.strip())
    return cookies


def parse_device(data: dict[str, Any]) -> Device:
    """Parse a single entry of the ``deviceList`` result.

    Args:
        data: Raw device entry in format:
              {"deviceId": str, "alias": str, "deviceMac": str,
               "appServerUrl": str, "status": int, ...}

    Returns:
        Device instance.

    Raises:
        ProtocolError: If the entry is not an object or lacks ``deviceId``/``alias``.
    """
    if not isinstance(data, dict):
        msg = f"Unexpected device entry: {data!r}"
        raise ProtocolError(msg)

    try:
        device_id = data["deviceId"]
        alias = data["alias"]
    except KeyError as exc:
        msg = f"Device entry is missing {exc.args[0]!r}"
        raise ProtocolError(msg) from exc

    return Device(
        device_id=str(device_id),
        alias=str(alias),
        mac=data.get("deviceMac", ""),
        app_server_url=data.get("appServerUrl", ""),
        status=int(data.get("status", 0)),
        device_type=data.get("deviceType", ""),
        model=data.get("deviceModel", ""),
        firmware_version=data.get("fwVer", ""),
        raw=data,
    )


def parse_device_list(devices: Any) -> list[Device]:
    """Parse a raw ``deviceList`` array into Device models.

    Args:
        devices: Raw device list as returned by the API or read from the cache.

    Returns:
        List of Device instances in input order.

    Raises:
        ProtocolError: If ``devices`` is not a list or an entry is malformed.
    """
    if not isinstance(devices, list):
        msg = f"Expected a device list, got {type(devices).__name__}"
        raise ProtocolError(msg)
    return [parse_device(entry) for entry in devices]


def _sysinfo(state: dict[str, Any]) -> dict[str, Any]:
    try:
        sysinfo = state["system"]["get_sysinfo"]
    except (KeyError, TypeError) as exc:
        msg = "Plug state has no system.get_sysinfo section"
        raise ProtocolError(msg) from exc
    if not isinstance(sysinfo, dict):
        msg = f"Unexpected get_sysinfo section: {sysinfo!r}"
        raise ProtocolError(msg)
    return sysinfo


def relay_state_from_sysinfo(state: dict[str, Any]) -> bool:
    """Compute the relay state from a decoded state query response.

    Rules:
        - ``err_code`` nonzero: off
        - ``relay_state`` zero: off
        - otherwise: on

    Args:
        state: Decoded inner response in format:
               {"system": {"get_sysinfo": {"err_code": int, "relay_state": int, ...}}}

    Returns:
        True if the relay is on, False otherwise.

    Raises:
        ProtocolError: If the response has no ``system.get_sysinfo`` section.
    """
    return parse_plug_state(state).is_on


def parse_plug_state(state: dict[str, Any]) -> PlugState:
    """Parse a decoded state query response into a PlugState.

    Args:
        state: Decoded inner response of the get-state passthrough command.

    Returns:
        PlugState instance.

    Raises:
        ProtocolError: If the response has no ``system.get_sysinfo`` section.
    """
    sysinfo = _sysinfo(state)
    return PlugState(
        err_code=int(sysinfo.get("err_code", 0)),
        relay_state=int(sysinfo.get("relay_state", 0)),
        raw=state,
    )
