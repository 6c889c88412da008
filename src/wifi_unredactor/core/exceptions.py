"""Custom exceptions for wifi-unredactor.

This module defines the exceptions raised while acquiring and shaping the
Wi-Fi interface state:
- Mapping file read failures
- Missing or unusable wireless interfaces
- Radio tool failures (missing binary, insufficient privileges)
- JSON serialisation failures

Acquisition errors are terminal for one invocation and are rendered as an
error payload by the selected formatter. Mapping and serialisation errors are
handled locally and never abort the process.

Example:
    try:
        table = MappingTable.from_file("mapping.csv")
    except MappingReadError as e:
        console.print(f"[yellow]Warning: {e}")
"""


class WiFiError(Exception):
    """Base exception for wifi-unredactor errors."""


class MappingReadError(WiFiError):
    """Raised when the BSSID mapping file cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"failed to read mapping file {path}: {reason}")


class AcquisitionError(WiFiError):
    """Raised when no radio snapshot can be produced."""


class InterfaceUnavailable(AcquisitionError):
    """Raised when there is no usable wireless interface."""


class PermissionDenied(AcquisitionError):
    """Raised when the radio tools refuse access to the interface."""


class RadioToolMissing(AcquisitionError):
    """Raised when a required radio tool binary is not installed."""


class SerializationFailure(WiFiError):
    """Raised when a rendered record cannot be encoded as JSON."""
