"""Mapping of aiohttp errors to transport fault kinds."""

import asyncio
import json

import aiohttp

from src.ports.errors import FaultKind, TransportFaultError

__all__ = ["FAULT_ERRORS", "classify_fault", "to_transport_fault"]

# Checked in order: timeouts are also OSError / ClientConnectionError subclasses
FAULT_KINDS: tuple[tuple[type[BaseException], FaultKind], ...] = (
    (asyncio.TimeoutError, FaultKind.TIMEOUT),  # Total or socket timeout
    (aiohttp.ClientPayloadError, FaultKind.MALFORMED_RESPONSE),  # Truncated/invalid body
    (aiohttp.ClientResponseError, FaultKind.MALFORMED_RESPONSE),  # Bad status line, redirects
    (json.JSONDecodeError, FaultKind.MALFORMED_RESPONSE),  # JSON content type, invalid JSON
    (UnicodeDecodeError, FaultKind.MALFORMED_RESPONSE),  # JSON body in the wrong charset
    (aiohttp.ClientConnectionError, FaultKind.CONNECTION),  # Refused, DNS, reset, disconnect
    (OSError, FaultKind.CONNECTION),  # OS-level network error
    (aiohttp.ClientError, FaultKind.UNKNOWN),
)

FAULT_ERRORS: tuple[type[BaseException], ...] = tuple(exc for exc, _ in FAULT_KINDS)


def classify_fault(exc: BaseException) -> FaultKind:
    """Return the fault kind for an exception raised during an exchange.

    Args:
        exc: Exception raised by aiohttp or payload decoding.

    Returns:
        Matching fault kind; UNKNOWN when nothing matches.
    """
    for exc_type, kind in FAULT_KINDS:
        if isinstance(exc, exc_type):
            return kind
    return FaultKind.UNKNOWN


def to_transport_fault(exc: BaseException) -> TransportFaultError:
    """Wrap an exception into a TransportFaultError.

    Args:
        exc: Original exception.

    Returns:
        Fault carrying the classified kind and original text.
    """
    detail = str(exc) or type(exc).__name__
    return TransportFaultError(classify_fault(exc), detail)
