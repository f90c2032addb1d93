"""Connectivity port definition (interface and enums)."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Protocol

__all__ = [
    "ConnectivitySourcePort",
    "ConnectivityState",
    "NetworkType",
    "Unsubscribe",
]

Unsubscribe = Callable[[], None]


class NetworkType(str, Enum):
    """Network kind reported by a raw connectivity source."""

    WIFI = "wifi"
    ETHERNET = "ethernet"
    MOBILE = "mobile"
    VPN = "vpn"
    BLUETOOTH = "bluetooth"
    OTHER = "other"
    NONE = "none"

    @property
    def is_usable(self) -> bool:
        """True for every network type except NONE."""
        return self is not NetworkType.NONE


class ConnectivityState(str, Enum):
    """Lifecycle of the connectivity monitor."""

    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"
    DISPOSED = "disposed"


class ConnectivitySourcePort(Protocol):
    """Platform capability reporting network reachability.

    Callbacks registered with listen() are invoked on the event loop thread.
    """

    async def probe(self) -> NetworkType:
        """Return the network type available right now.

        Returns:
            NetworkType.NONE when nothing is reachable.
        """
        ...

    def listen(self, callback: Callable[[NetworkType], None], /) -> Unsubscribe:
        """Register a callback for network type changes.

        Args:
            callback: Called with the new network type on every change.

        Returns:
            Callable that removes the callback.
        """
        ...
