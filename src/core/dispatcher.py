"""Request dispatcher gating every HTTP call on connectivity."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from src.core.connectivity_monitor import ConnectivityMonitor
from src.ports.envelope import ResponseEnvelope
from src.ports.errors import FaultKind, TransportFaultError
from src.ports.http import (
    FileAttachment,
    HttpMethod,
    TransportPort,
    TransportRequestDto,
    TransportResponseDto,
)
from src.ports.metrics import DispatchAttemptDto, MetricsPort

__all__ = ["RequestDispatcher", "extract_error_message"]

logger = logging.getLogger(__name__)

# Keys checked, in order, for the server's error text in a mapping payload
ERROR_MESSAGE_KEYS = ("message", "error", "detail")
MAX_TEXT_MESSAGE_LEN = 200


def extract_error_message(response: TransportResponseDto) -> str:
    """Derive a human-readable message from a non-2xx response.

    Looks at the error payload first, then the reason phrase, then falls
    back to the bare status code.

    Args:
        response: Server response with a failing status.

    Returns:
        Non-empty message.
    """
    data = response.data
    if isinstance(data, Mapping):
        for key in ERROR_MESSAGE_KEYS:
            value = data.get(key)
            if isinstance(value, Mapping):
                value = value.get("message")
            if isinstance(value, str) and value.strip():
                return value.strip()
    elif isinstance(data, str) and data.strip() and len(data.strip()) <= MAX_TEXT_MESSAGE_LEN:
        return data.strip()

    if response.reason:
        return response.reason
    return f"HTTP {response.status_code}"


class RequestDispatcher:
    """Connectivity-gated HTTP facade.

    Every call first asks the monitor for a fresh reading. While offline
    the transport is never touched. Every outcome, including server errors
    and transport faults, comes back as a ResponseEnvelope, so callers only
    need to check `is_success`.

    A disposed monitor raises MonitorDisposedError out of every call.
    Cancellation propagates without an envelope.
    """

    def __init__(
        self,
        base_url: str,
        monitor: ConnectivityMonitor,
        transport: TransportPort,
        metrics: MetricsPort | None = None,
    ) -> None:
        """Initialize dispatcher.

        Args:
            base_url: Base address relative paths are resolved against.
            monitor: Shared connectivity monitor.
            transport: HTTP transport performing the exchange.
            metrics: Optional metrics collector.
        """
        self.base_url = base_url
        self.monitor = monitor
        self.transport = transport
        self.metrics = metrics

    async def get(self, path: str, params: Mapping[str, Any] | None = None) -> ResponseEnvelope:
        """Send a GET request with optional query parameters."""
        return await self._dispatch(HttpMethod.GET, path, params=params)

    async def post(
        self,
        path: str,
        body: Any = None,
        files: Mapping[str, FileAttachment] | None = None,
    ) -> ResponseEnvelope:
        """Send a POST request.

        Body and files may be combined; they are sent as one multipart request.
        """
        return await self._dispatch(HttpMethod.POST, path, body=body, files=files)

    async def put(self, path: str, body: Any = None) -> ResponseEnvelope:
        """Send a PUT request. File uploads are not supported for PUT."""
        return await self._dispatch(HttpMethod.PUT, path, body=body)

    async def delete(self, path: str, body: Any = None) -> ResponseEnvelope:
        """Send a DELETE request with an optional body."""
        return await self._dispatch(HttpMethod.DELETE, path, body=body)

    def resolve_url(self, path: str) -> str:
        """Join base URL and path with exactly one slash.

        Absolute http(s) URLs are returned unchanged.
        """
        if path.startswith(("http://", "https://")):
            return path
        if not path:
            return self.base_url
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def _dispatch(
        self,
        method: HttpMethod,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        files: Mapping[str, FileAttachment] | None = None,
    ) -> ResponseEnvelope:
        loop = asyncio.get_running_loop()
        started = loop.time()
        request = TransportRequestDto(
            method=method,
            url=self.resolve_url(path),
            params=params,
            body=body,
            files=files,
        )

        envelope = await self._execute(request)

        if self.metrics:
            self.metrics.update(
                DispatchAttemptDto(
                    started_at_sec=started,
                    finished_at_sec=loop.time(),
                    failure=envelope.failure,
                    status_code=envelope.status_code,
                )
            )
            logger.debug(f"Dispatch metrics: {self.metrics}")

        return envelope

    async def _execute(self, request: TransportRequestDto) -> ResponseEnvelope:
        echo: dict[str, Any] = {
            "url": request.url,
            "request_params": request.params,
            "request_body": request.body,
        }
        label = f"{request.method.value} {request.url}"

        if not await self.monitor.check_connection():
            logger.info(f"{label} skipped: no internet connection")
            return ResponseEnvelope.offline(**echo)

        try:
            response = await self.transport.send(request)
        except TransportFaultError as e:
            logger.warning(f"{label} failed: {e}")
            return ResponseEnvelope.fault(e.kind, **echo)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Unexpected transport error for {label}: {e}", exc_info=True)
            return ResponseEnvelope.fault(FaultKind.UNKNOWN, **echo)

        if response.is_success:
            logger.debug(f"{label} -> {response.status_code}")
            return ResponseEnvelope.ok(status_code=response.status_code, data=response.data, **echo)

        message = extract_error_message(response)
        logger.warning(f"{label} -> {response.status_code}: {message}")
        return ResponseEnvelope.http_error(
            status_code=response.status_code,
            message=message,
            data=response.data,
            **echo,
        )
