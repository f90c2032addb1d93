"""Error taxonomy shared by core and adapters."""

from __future__ import annotations

from enum import Enum

__all__ = [
    "ConnectivityError",
    "FailureKind",
    "FaultKind",
    "MonitorDisposedError",
    "TransportFaultError",
]


class FailureKind(str, Enum):
    """Why a dispatch call produced an unsuccessful envelope."""

    OFFLINE = "offline"
    HTTP_STATUS = "http_status"
    TRANSPORT_FAULT = "transport_fault"


class FaultKind(str, Enum):
    """Transport-level faults where no usable server response exists."""

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    MALFORMED_RESPONSE = "malformed_response"
    INVALID_ATTACHMENT = "invalid_attachment"
    UNKNOWN = "unknown"

    @property
    def description(self) -> str:
        """Fixed human-readable text placed in envelope messages."""
        return _FAULT_DESCRIPTIONS[self]


_FAULT_DESCRIPTIONS: dict[FaultKind, str] = {
    FaultKind.TIMEOUT: "request timed out",
    FaultKind.CONNECTION: "could not connect to server",
    FaultKind.MALFORMED_RESPONSE: "malformed response from server",
    FaultKind.INVALID_ATTACHMENT: "file attachment could not be read",
    FaultKind.UNKNOWN: "unexpected transport error",
}


class ConnectivityError(Exception):
    """Base class for errors raised by this package."""


class TransportFaultError(ConnectivityError):
    """Raised by transports when a request got no usable response.

    Attributes:
        kind: Category of the fault.
        detail: Underlying error text, for logs only.
    """

    def __init__(self, kind: FaultKind, detail: str = "") -> None:
        super().__init__(f"{kind.description}: {detail}" if detail else kind.description)
        self.kind = kind
        self.detail = detail


class MonitorDisposedError(ConnectivityError):
    """Raised when a disposed ConnectivityMonitor is used."""

    def __init__(self) -> None:
        super().__init__("ConnectivityMonitor has been disposed")
