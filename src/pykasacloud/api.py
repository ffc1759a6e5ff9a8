"""Low-level API client for the Kasa cloud endpoints.

This module provides direct HTTP communication with the Kasa cloud. There are
three request shapes (login, getDeviceList, passthrough), all sent as POST.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from aiohttp import ClientError, ClientSession, ClientTimeout, FormData, hdrs

from pykasacloud.const import (
    APP_TYPE,
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    GET_STATE_COMMAND,
    METHOD_GET_DEVICE_LIST,
    METHOD_LOGIN,
    METHOD_PASSTHROUGH,
    set_relay_state_command,
)
from pykasacloud.exceptions import AuthenticationError, KasaConnectionError, KasaTimeoutError, ProtocolError
from pykasacloud.models import ApiResponse, Device, PlugState
from pykasacloud.parsers import decode_body, parse_cookies, parse_device_list, parse_plug_state


if TYPE_CHECKING:
    from types import TracebackType

_LOGGER = logging.getLogger(__name__)


def _error_code(payload: dict[str, Any]) -> int | None:
    code = payload.get("error_code")
    return code if isinstance(code, int) else None


def form_fields(body: dict[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Flatten a request body into form fields with bracketed keys.

    Nested objects become ``params[deviceId]=...``, lists are indexed
    (``ids[0]=...``), booleans are sent as ``1``/``0`` and None values are
    skipped.

    Args:
        body: Request body, possibly nested.
        prefix: Key prefix for nested values.

    Returns:
        Ordered (name, value) pairs.
    """
    fields: list[tuple[str, str]] = []
    for key, value in body.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(value, dict):
            fields.extend(form_fields(value, name))
        elif isinstance(value, (list, tuple)):
            fields.extend(form_fields(dict(enumerate(value)), name))
        elif isinstance(value, bool):
            fields.append((name, "1" if value else "0"))
        elif value is not None:
            fields.append((name, str(value)))
    return fields


class KasaCloudAPI:
    """Low-level API client for the Kasa cloud.

    This class handles raw HTTP communication: request construction, body
    encoding, response decoding and cookie extraction. It holds no credentials
    or tokens; callers pass them to every call.

    Example:
        ```python
        from aiohttp import ClientSession
        from pykasacloud.api import KasaCloudAPI

        async with ClientSession() as session:
            api = KasaCloudAPI(session=session)
            token = await api.login("user@example.com", "pass", client_id)
            devices = await api.get_device_list(token, client_id)
            state = await api.get_plug_state(
                token, client_id, devices[0].device_id, devices[0].app_server_url
            )
        ```

    Attributes:
        base_url: Base URL for the API (default: https://wap.tplinkcloud.com).
    """

    def __init__(
        self,
        *,
        session: ClientSession | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the API client.

        Args:
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            base_url: Base URL for the API. Defaults to the Kasa production cloud.
            timeout: Total timeout per request in seconds.
        """
        self._session = session
        self._owns_session = session is None
        self.base_url = base_url.rstrip("/")
        self._timeout = ClientTimeout(total=timeout)

    def set_session(self, session: ClientSession) -> None:
        """Set the aiohttp session for this client.

        The client will not take ownership and will not close this session.

        Args:
            session: The aiohttp ClientSession to use for requests.
        """
        self._session = session
        self._owns_session = False

    async def __aenter__(self) -> KasaCloudAPI:
        """Enter the context manager, creating a session if needed.

        Returns:
            Self for use in async with statements.
        """
        if self._session is None:
            self._session = ClientSession()
            self._owns_session = True
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
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def request(
        self,
        url: str,
        body: dict[str, Any],
        *,
        as_json: bool = True,
        params: dict[str, str] | None = None,
    ) -> ApiResponse:
        """POST a request and decode the response.

        This is the core method for all HTTP communication. The body is sent as
        JSON when ``as_json`` is True and form-encoded otherwise, with nested
        values flattened by ``form_fields``. The response body is decoded as
        JSON; if that fails, the raw text is returned as the payload so callers
        must accept either shape.

        Args:
            url: Full request URL.
            body: Request body.
            as_json: Whether to send the body as JSON (True) or form-encoded (False).
            params: Optional query parameters.

        Returns:
            ApiResponse with the decoded payload and the response cookies.

        Raises:
            RuntimeError: If session is not initialized or is closed.
            ProtocolError: If the server answers with a non-2xx status.
            KasaTimeoutError: If the request times out.
            KasaConnectionError: If the connection fails.
        """
        if self._session is None:
            msg = "Session not initialized. Use 'async with' or provide a session."
            raise RuntimeError(msg)

        if self._session.closed:
            msg = "Session is closed. Cannot make request."
            raise RuntimeError(msg)

        if as_json:
            headers = {hdrs.CONTENT_TYPE: "application/json", hdrs.ACCEPT: "*/*"}
            kwargs: dict[str, Any] = {"json": body}
        else:
            headers = {hdrs.CONTENT_TYPE: "application/x-www-form-urlencoded"}
            kwargs = {"data": FormData(form_fields(body))}

        _LOGGER.debug("POST %s (method=%s)", url, body.get("method"))

        try:
            async with self._session.post(
                url,
                params=params,
                headers=headers,
                timeout=self._timeout,
                **kwargs,
            ) as response:
                raw = await response.read()
                if not 200 <= response.status < 300:  # noqa: PLR2004
                    msg = f"Request to {url} failed with HTTP {response.status}"
                    raise ProtocolError(msg, status_code=response.status)

                cookies = parse_cookies(response.headers.getall(hdrs.SET_COOKIE, []))
                return ApiResponse(payload=decode_body(raw), cookies=cookies)

        except TimeoutError as exc:
            _LOGGER.exception("Request to %s timed out", url)
            msg = f"Request to {url} timed out"
            raise KasaTimeoutError(msg) from exc

        except ClientError as exc:
            _LOGGER.exception("Connection error for %s", url)
            msg = f"Failed to connect to API: {exc}"
            raise KasaConnectionError(msg) from exc

    def _session_params(self, token: str, client_id: str) -> dict[str, str]:
        return {"token": token, "termID": client_id}

    # -------------------------------------------------------------------------
    # Cloud methods
    # -------------------------------------------------------------------------

    async def login(self, username: str, password: str, client_id: str) -> str:
        """Log in and obtain a session token.

        Args:
            username: Kasa cloud user name.
            password: Kasa cloud password.
            client_id: Client identifier sent as ``terminalUUID``.

        Returns:
            The session token.

        Raises:
            AuthenticationError: If the vendor reports an error or the response
                carries no token.
        """
        body = {
            "method": METHOD_LOGIN,
            "params": {
                "appType": APP_TYPE,
                "cloudUserName": username,
                "cloudPassword": password,
                "terminalUUID": client_id,
            },
        }
        response = await self.request(self.base_url, body)
        payload = response.payload

        if not isinstance(payload, dict):
            msg = "Unexpected login response from the Kasa cloud"
            raise AuthenticationError(msg)

        error_code = _error_code(payload)
        if error_code != 0:
            reason = payload.get("msg") or "please check your credentials"
            msg = f"Authentication failed (error_code={error_code}): {reason}"
            raise AuthenticationError(msg)

        result = payload.get("result")
        token = result.get("token") if isinstance(result, dict) else None
        if not token:
            msg = "Missing token in login response"
            raise AuthenticationError(msg)

        _LOGGER.info("Logged in to the Kasa cloud as %s", username)
        return str(token)

    async def get_device_list(self, token: str, client_id: str) -> list[Device]:
        """Fetch the devices registered to the account.

        Args:
            token: Session token.
            client_id: Client identifier.

        Returns:
            List of Device instances.

        Raises:
            ProtocolError: If the response is not a JSON object carrying
                ``result.deviceList`` or the vendor reports an error.
        """
        return parse_device_list(await self.get_raw_device_list(token, client_id))

    async def get_raw_device_list(self, token: str, client_id: str) -> list[dict[str, Any]]:
        """Fetch the raw ``deviceList`` array, as cached by the device directory.

        Raises:
            ProtocolError: If the response shape is unexpected.
        """
        response = await self.request(
            self.base_url,
            {"method": METHOD_GET_DEVICE_LIST},
            params=self._session_params(token, client_id),
        )
        payload = response.payload

        if not isinstance(payload, dict):
            msg = "Unexpected device list response: body is not a JSON object"
            raise ProtocolError(msg)

        error_code = _error_code(payload)
        if error_code not in (None, 0):
            msg = f"Device list request failed (error_code={error_code}): {payload.get('msg', '')}"
            raise ProtocolError(msg, error_code=error_code)

        result = payload.get("result")
        devices = result.get("deviceList") if isinstance(result, dict) else None
        if not isinstance(devices, list):
            msg = "Unexpected device list response: missing result.deviceList"
            raise ProtocolError(msg, error_code=error_code)

        _LOGGER.debug("Device list contains %d device(s)", len(devices))
        return devices

    async def passthrough(
        self,
        token: str,
        client_id: str,
        device_id: str,
        command: dict[str, Any],
        *,
        url: str | None = None,
    ) -> dict[str, Any] | None:
        """Forward an inner command to a device and return its decoded answer.

        Args:
            token: Session token.
            client_id: Client identifier.
            device_id: Target device ID.
            command: Inner vendor command, e.g. ``{"system": {"get_sysinfo": {}}}``.
            url: Device-specific app server URL. Defaults to the base URL.

        Returns:
            The decoded inner response, or None if the response has no
            ``result.responseData`` field.

        Raises:
            ProtocolError: If the response is not a JSON object or the inner
                response is not a JSON object.
        """
        body = {
            "method": METHOD_PASSTHROUGH,
            "params": {
                "deviceId": device_id,
                "requestData": json.dumps(command, separators=(",", ":")),
            },
        }
        response = await self.request(
            (url or self.base_url).rstrip("/"),
            body,
            params=self._session_params(token, client_id),
        )
        payload = response.payload

        if not isinstance(payload, dict):
            msg = f"Unexpected passthrough response for device {device_id}"
            raise ProtocolError(msg)

        result = payload.get("result")
        if not isinstance(result, dict) or "responseData" not in result:
            _LOGGER.debug(
                "No responseData for device %s (error_code=%s, msg=%s)",
                device_id,
                payload.get("error_code"),
                payload.get("msg"),
            )
            return None

        inner = result["responseData"]
        if isinstance(inner, str):
            inner = decode_body(inner)
        if not isinstance(inner, dict):
            msg = f"Undecodable responseData for device {device_id}"
            raise ProtocolError(msg, error_code=_error_code(payload))
        return inner

    async def get_plug_state(self, token: str, client_id: str, device_id: str, url: str) -> PlugState | None:
        """Query the relay state of a plug.

        Returns:
            PlugState, or None if the device returned nothing.
        """
        state = await self.passthrough(token, client_id, device_id, GET_STATE_COMMAND, url=url)
        if not state:
            return None
        return parse_plug_state(state)

    async def set_relay_state(
        self,
        token: str,
        client_id: str,
        device_id: str,
        url: str,
        state: bool,
    ) -> dict[str, Any] | None:
        """Switch the relay of a plug on or off.

        Returns:
            The decoded inner response, or None if the device returned nothing.
        """
        return await self.passthrough(
            token,
            client_id,
            device_id,
            set_relay_state_command(state),
            url=url,
        )
