"""HTTP transport adapter backed by aiohttp."""

import asyncio
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import TracebackType
from typing import Any

import aiohttp
from aiohttp import ClientTimeout

from src.adapters.driven.http.faults import FAULT_ERRORS, to_transport_fault
from src.ports.errors import FaultKind, TransportFaultError
from src.ports.http import FileAttachment, TransportRequestDto, TransportResponseDto

__all__ = ["AiohttpTransport", "decode_payload", "encode_query", "is_json_type", "is_text_type"]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 30.0
DEFAULT_CHARSET = "utf-8"

# Non text/* types whose bodies are still returned as str
TEXT_CONTENT_TYPES = frozenset(
    {
        "application/xml",
        "application/javascript",
        "application/x-www-form-urlencoded",
    }
)


def encode_query(params: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Convert caller query parameters into string pairs.

    Booleans become "true"/"false", None values are skipped and list or
    tuple values repeat the key.

    Args:
        params: Query parameters as given by the caller.

    Returns:
        List of (key, value) pairs accepted by aiohttp.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if item is None:
                continue
            if isinstance(item, bool):
                pairs.append((key, "true" if item else "false"))
            else:
                pairs.append((key, str(item)))
    return pairs


def is_json_type(content_type: str) -> bool:
    return content_type == "application/json" or content_type.endswith("+json")


def is_text_type(content_type: str) -> bool:
    return (
        content_type.startswith("text/")
        or content_type.endswith("+xml")
        or content_type in TEXT_CONTENT_TYPES
    )


def _decode_text(raw: bytes, charset: str | None) -> str:
    """Decode with the declared charset; unknown charset names fall back to UTF-8."""
    try:
        return raw.decode(charset or DEFAULT_CHARSET)
    except LookupError:
        return raw.decode(DEFAULT_CHARSET)


def decode_payload(raw: bytes, content_type: str, charset: str | None = None) -> Any:
    """Parse a response body.

    Args:
        raw: Body bytes.
        content_type: Response MIME type.
        charset: Response charset, if declared.

    Returns:
        JSON value for JSON content types, text for textual types, the raw
        bytes for anything else or for text that does not match its charset,
        None when empty.

    Raises:
        json.JSONDecodeError: If a JSON body is invalid.
        UnicodeDecodeError: If a JSON body does not match its charset.
    """
    if not raw:
        return None
    if is_json_type(content_type):
        return json.loads(_decode_text(raw, charset))
    if not is_text_type(content_type):
        return raw
    try:
        return _decode_text(raw, charset)
    except UnicodeDecodeError:
        logger.debug(f"Body declared as {content_type} does not decode as {charset}, keeping bytes")
        return raw


class AiohttpTransport:
    """Transport performing HTTP exchanges over one aiohttp session.

    Features:
    - JSON bodies, query parameters and multipart uploads.
    - Every server response returned as a TransportResponseDto.
    - aiohttp errors mapped to TransportFaultError.
    - Context manager for proper resource cleanup.
    """

    def __init__(self, *, timeout_sec: float = DEFAULT_TIMEOUT_SEC) -> None:
        """Initialize transport.

        Args:
            timeout_sec: Total timeout for one exchange.
        """
        self.timeout_sec = timeout_sec
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "AiohttpTransport":
        """Enter async context manager (start session).

        Returns:
            Self for use in async with statement.
        """
        self.session = aiohttp.ClientSession(timeout=ClientTimeout(total=self.timeout_sec))
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Exit async context manager (close session).

        Args:
            exc_type: Exception type if raised in context.
            exc: Exception instance if raised in context.
            tb: Traceback if raised in context.
        """
        if self.session:
            await self.session.close()
            self.session = None

    async def send(self, request: TransportRequestDto) -> TransportResponseDto:
        """Perform one HTTP exchange.

        The connection is released when the call finishes or is cancelled.

        Args:
            request: Resolved request.

        Returns:
            Status, parsed payload and reason phrase of the response.

        Raises:
            RuntimeError: If session not initialized.
            TransportFaultError: An attachment could not be read, or no usable
                response was received.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")

        kwargs = await self._build_request_kwargs(request)
        try:
            async with self.session.request(request.method.value, request.url, **kwargs) as resp:
                raw = await resp.read()
                data = decode_payload(raw, resp.content_type, resp.charset)
                return TransportResponseDto(status_code=resp.status, data=data, reason=resp.reason)
        except FAULT_ERRORS as e:
            logger.debug(f"{request.method.value} {request.url} raised {type(e).__name__}: {e}")
            raise to_transport_fault(e) from e

    async def _build_request_kwargs(self, request: TransportRequestDto) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if request.params:
            kwargs["params"] = encode_query(request.params)
        if request.files:
            kwargs["data"] = await self._build_form(request.body, request.files)
        elif request.body is not None:
            kwargs["json"] = request.body
        return kwargs

    async def _build_form(
        self, body: Any, files: Mapping[str, FileAttachment]
    ) -> aiohttp.FormData:
        form = aiohttp.FormData()
        if isinstance(body, Mapping):
            for key, value in body.items():
                form.add_field(key, value if isinstance(value, str) else json.dumps(value))
        elif body is not None:
            form.add_field("body", json.dumps(body), content_type="application/json")

        for field, attachment in files.items():
            content = attachment.content
            if isinstance(content, Path):
                content = await self._read_attachment(content)
            form.add_field(
                field,
                content,
                filename=attachment.filename,
                content_type=attachment.content_type,
            )
        return form

    async def _read_attachment(self, path: Path) -> bytes:
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise TransportFaultError(FaultKind.INVALID_ATTACHMENT, f"{path}: {e}") from e
