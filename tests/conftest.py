"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import ClientSession, web

from pykasacloud.models import Device


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Mapping

    from aiohttp.test_utils import TestClient


USERNAME = "user@example.com"
PASSWORD = "password123"
TOKEN = "0123abcd-TOKEN"  # noqa: S105
CLIENT_ID = "B762D589-2CF4-4AF8-97F3-3912444626E6"

LAMP_ID = "8006A1B2C3D4E5F60718293A4B5C6D7E8F901234"
HEATER_ID = "8006FFEEDDCCBBAA99887766554433221100FFEE"


def device_entry(device_id: str, alias: str, app_server_url: str, status: int = 1) -> dict[str, Any]:
    """Build a raw deviceList entry as returned by the Kasa cloud."""
    return {
        "deviceType": "IOT.SMARTPLUGSWITCH",
        "role": 0,
        "fwVer": "1.5.4 Build 180815 Rel.121440",
        "appServerUrl": app_server_url,
        "deviceRegion": "eu-west-1",
        "deviceId": device_id,
        "deviceName": "Smart Wi-Fi Plug With Energy Monitoring",
        "deviceHwVer": "2.0",
        "alias": alias,
        "deviceMac": "50C7BF000001" if alias == "Desk Lamp" else "50C7BF000002",
        "oemId": "FFF22CFF774A0B89F7624BFC6F50D5DE",
        "deviceModel": "HS110(EU)",
        "hwId": "044A516EE63C875F9458DA25C2CCC5A0",
        "fwId": "00000000000000000000000000000000",
        "isSameRegion": True,
        "status": status,
    }


def unflatten_form(form: Mapping[str, Any]) -> dict[str, Any]:
    """Rebuild a nested body from bracketed form keys such as ``params[deviceId]``."""
    body: dict[str, Any] = {}
    for name, value in form.items():
        keys = re.findall(r"[^\[\]]+", name)
        target = body
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = value
    return body


@dataclass
class FakeKasaCloud:
    """In-process stand-in for the Kasa cloud endpoint.

    Attributes:
        relays: Relay state per device ID.
        requests: Every request body received, with its query string.
        overrides: Canned payloads per cloud method, returned instead of the
            normal answer. A str is sent verbatim as a text body.
    """

    relays: dict[str, int] = field(default_factory=lambda: {LAMP_ID: 1, HEATER_ID: 0})
    requests: list[dict[str, Any]] = field(default_factory=list)
    overrides: dict[str, Any] = field(default_factory=dict)
    sysinfo_err_code: int = 0

    def methods(self) -> list[str]:
        """Return the cloud methods called so far, in order."""
        return [r["body"].get("method") for r in self.requests]

    def relay_commands(self) -> list[dict[str, Any]]:
        """Return the decoded set_relay_state commands received."""
        commands = []
        for r in self.requests:
            if r["body"].get("method") != "passthrough":
                continue
            inner = json.loads(r["body"]["params"]["requestData"])
            if "set_relay_state" in inner.get("system", {}):
                commands.append(inner["system"]["set_relay_state"])
        return commands

    async def handle(self, request: web.Request) -> web.StreamResponse:
        """Handle POST / for all cloud methods."""
        if request.content_type == "application/json":
            body = await request.json()
        else:
            body = unflatten_form(await request.post())
        self.requests.append({"body": body, "query": dict(request.query), "content_type": request.content_type})

        method = body.get("method")
        if method in self.overrides:
            override = self.overrides[method]
            if isinstance(override, web.StreamResponse):
                return override
            if isinstance(override, str):
                return web.Response(text=override, content_type="text/html")
            return web.json_response(override)

        if method == "login":
            response = self._login(body.get("params", {}))
        elif request.query.get("token") != TOKEN:
            response = web.json_response({"error_code": -20651, "msg": "Token expired"})
        elif method == "getDeviceList":
            origin = str(request.url.origin())
            response = web.json_response(
                {
                    "error_code": 0,
                    "result": {
                        "deviceList": [
                            device_entry(LAMP_ID, "Desk Lamp", origin),
                            device_entry(HEATER_ID, "Heater", origin),
                        ]
                    },
                }
            )
        elif method == "passthrough":
            response = self._passthrough(body.get("params", {}))
        else:
            response = web.json_response({"error_code": -10000, "msg": "Unknown method"})

        response.set_cookie("TP_SESSIONID", "session-cookie")
        return response

    def _login(self, params: dict[str, Any]) -> web.Response:
        if params.get("cloudUserName") == USERNAME and params.get("cloudPassword") == PASSWORD:
            return web.json_response(
                {
                    "error_code": 0,
                    "result": {"accountId": "1234567", "regTime": "2018-01-01 10:00:00", "email": USERNAME, "token": TOKEN},
                }
            )
        return web.json_response({"error_code": -20601, "msg": "Incorrect email or password"})

    def _passthrough(self, params: dict[str, Any]) -> web.Response:
        device_id = params.get("deviceId")
        if device_id not in self.relays:
            return web.json_response({"error_code": -20571, "msg": "Device is offline"})

        command = json.loads(params["requestData"])
        system = command.get("system", {})
        if "set_relay_state" in system:
            self.relays[device_id] = system["set_relay_state"]["state"]
            inner: dict[str, Any] = {"system": {"set_relay_state": {"err_code": 0}}}
        else:
            inner = {
                "schedule": {"get_next_action": {"type": -1, "err_code": 0}},
                "system": {
                    "get_sysinfo": {
                        "err_code": self.sysinfo_err_code,
                        "alias": "Desk Lamp" if device_id == LAMP_ID else "Heater",
                        "deviceId": device_id,
                        "relay_state": self.relays[device_id],
                    }
                },
            }
        return web.json_response({"error_code": 0, "result": {"responseData": json.dumps(inner)}})


@pytest.fixture
def cloud() -> FakeKasaCloud:
    """Create a fake Kasa cloud."""
    return FakeKasaCloud()


@pytest.fixture
def app(cloud: FakeKasaCloud) -> web.Application:
    """Create a test aiohttp application serving the fake cloud."""
    app = web.Application()
    app.router.add_post("/", cloud.handle)
    return app


@pytest.fixture
async def kasa_server(aiohttp_client: Any, app: web.Application) -> TestClient:
    """Start the fake cloud and return a test client bound to it."""
    return await aiohttp_client(app)


@pytest.fixture
def sample_devices() -> list[Device]:
    """Create sample device records."""
    return [
        Device(
            device_id=LAMP_ID,
            alias="Desk Lamp",
            mac="50C7BF000001",
            app_server_url="https://eu-wap.tplinkcloud.com",
            status=1,
        ),
        Device(
            device_id=HEATER_ID,
            alias="Heater",
            mac="50C7BF000002",
            app_server_url="https://eu-wap.tplinkcloud.com",
            status=0,
        ),
    ]


@pytest.fixture
async def mock_session() -> AsyncGenerator[ClientSession]:
    """Create a mock aiohttp ClientSession.

    Yields:
        Mock ClientSession for testing.
    """
    session = AsyncMock(spec=ClientSession)
    session.closed = False

    async def mock_close() -> None:
        session.closed = True

    session.close = mock_close

    yield session

    if not session.closed:
        await session.close()


@pytest.fixture
def mock_response() -> MagicMock:
    """Create a mock aiohttp ClientResponse.

    Returns:
        Mock ClientResponse for testing.
    """
    response = MagicMock()
    response.status = 200
    response.headers = MagicMock()
    response.headers.getall.return_value = []
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response
