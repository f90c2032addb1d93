"""HTTP transport port definition (interface and DTOs)."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

__all__ = [
    "FileAttachment",
    "HttpMethod",
    "TransportPort",
    "TransportRequestDto",
    "TransportResponseDto",
]


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(slots=True, frozen=True)
class FileAttachment:
    """One file sent as part of a multipart request.

    Attributes:
        filename: Name reported to the server.
        content: Raw bytes, or a path read when the request is built.
        content_type: Optional MIME type.
    """

    filename: str
    content: bytes | Path
    content_type: str | None = None


@dataclass(slots=True, frozen=True)
class TransportRequestDto:
    """Fully resolved request handed to the transport.

    Attributes:
        method: HTTP verb.
        url: Absolute target URL.
        params: Query parameters (GET only).
        body: Structured payload (POST, PUT, DELETE).
        files: Multipart attachments keyed by form field (POST only).
    """

    method: HttpMethod
    url: str
    params: Mapping[str, Any] | None = None
    body: Any = None
    files: Mapping[str, FileAttachment] | None = None


@dataclass(slots=True, frozen=True)
class TransportResponseDto:
    """Any response the server actually sent, whatever its status.

    Attributes:
        status_code: HTTP status code.
        data: Parsed payload (JSON value, text, or None when empty).
        reason: HTTP reason phrase, when available.
    """

    status_code: int
    data: Any = None
    reason: str | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class TransportPort(Protocol):
    """Interface for the wire-level HTTP exchange.

    Implementations return a TransportResponseDto for every server response,
    including 4xx/5xx, and raise TransportFaultError when no usable response
    was received.
    """

    async def send(self, request: TransportRequestDto, /) -> TransportResponseDto:
        """Perform one HTTP exchange.

        Args:
            request: Resolved request.

        Returns:
            The server's response.

        Raises:
            TransportFaultError: Timeout, connection failure or malformed response.
        """
        ...
