"""Custom exceptions for pykasacloud library."""

from __future__ import annotations


class KasaCloudError(Exception):
    """Base exception for all Kasa cloud errors."""


class AuthenticationError(KasaCloudError):
    """Exception raised for bad credentials or a malformed login response."""


class KasaConnectionError(KasaCloudError):
    """Exception raised for connection failures."""


class KasaTimeoutError(KasaCloudError):
    """Exception raised when API requests timeout."""


class ProtocolError(KasaCloudError):
    """Exception raised when a response has an unexpected shape.

    Attributes:
        error_code: Optional vendor error code from the response envelope.
        status_code: Optional HTTP status code of the response.
    """

    def __init__(
        self,
        message: str = "",
        error_code: int | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize ProtocolError.

        Args:
            message: Error message.
            error_code: Optional vendor error code from the response envelope.
            status_code: Optional HTTP status code of the response.
        """
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code


class DeviceNotFoundError(KasaCloudError):
    """Exception raised when an alias or device ID is not in the directory.

    Attributes:
        device_id: Optional device ID or alias that was looked up.
    """

    def __init__(self, message: str = "", device_id: str | None = None) -> None:
        """Initialize DeviceNotFoundError.

        Args:
            message: Error message.
            device_id: Optional device ID or alias that was looked up.
        """
        super().__init__(message)
        self.device_id = device_id


class DeviceStateError(KasaCloudError):
    """Exception raised when a plug state query returns nothing.

    Attributes:
        device_id: Optional device ID associated with the error.
    """

    def __init__(self, message: str = "", device_id: str | None = None) -> None:
        """Initialize DeviceStateError.

        Args:
            message: Error message.
            device_id: Optional device ID associated with the error.
        """
        super().__init__(message)
        self.device_id = device_id
