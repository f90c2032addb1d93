"""Raw connectivity source based on periodic TCP reachability probes."""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from types import TracebackType

from src.ports.connectivity import NetworkType, Unsubscribe

__all__ = ["TcpProbeSource"]

logger = logging.getLogger(__name__)

DEFAULT_PROBE_HOST = "8.8.8.8"
DEFAULT_PROBE_PORT = 53


class TcpProbeSource:
    """Connectivity source that opens a TCP connection to a well-known host.

    A successful connection reports NetworkType.OTHER (the link type is not
    observable from a socket); a refused or timed out one reports
    NetworkType.NONE.

    Used as an async context manager, it polls in the background and calls
    listeners whenever the probed type changes.
    """

    def __init__(
        self,
        host: str = DEFAULT_PROBE_HOST,
        port: int = DEFAULT_PROBE_PORT,
        *,
        timeout_sec: float = 3.0,
        poll_interval_sec: float = 5.0,
    ) -> None:
        """Initialize the source.

        Args:
            host: Host to connect to.
            port: TCP port to connect to.
            timeout_sec: Timeout for one probe.
            poll_interval_sec: Seconds between background probes.
        """
        self.host = host
        self.port = port
        self.timeout_sec = timeout_sec
        self.poll_interval_sec = poll_interval_sec
        self._listeners: list[Callable[[NetworkType], None]] = []
        self._last: NetworkType | None = None
        self._task: asyncio.Task[None] | None = None

    async def probe(self) -> NetworkType:
        """Try one TCP connection and notify listeners if the type changed.

        Explicit checks and background polls share this path.

        Returns:
            NetworkType.OTHER if reachable, NetworkType.NONE otherwise.
        """
        network_type = await self._probe_network()
        self._record(network_type)
        return network_type

    async def _probe_network(self) -> NetworkType:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.timeout_sec,
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug(f"Probe to {self.host}:{self.port} failed: {e!r}")
            return NetworkType.NONE

        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()
        return NetworkType.OTHER

    def listen(self, callback: Callable[[NetworkType], None]) -> Unsubscribe:
        """Register a change listener.

        Args:
            callback: Called with the new network type on every change.

        Returns:
            Callable removing the listener; safe to call twice.
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def poll_once(self) -> NetworkType:
        """Run one background probe.

        Returns:
            The probed network type.
        """
        return await self.probe()

    def _record(self, network_type: NetworkType) -> None:
        if network_type is not self._last:
            self._last = network_type
            for callback in list(self._listeners):
                try:
                    callback(network_type)
                except Exception as e:  # noqa: BLE001
                    logger.error(f"Connectivity listener failed: {e}", exc_info=True)

    async def _poll_loop(self) -> None:
        """Probe on a fixed period based on the loop's monotonic clock."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            await self.poll_once()
            next_tick += self.poll_interval_sec
            await asyncio.sleep(max(0, next_tick - loop.time()))

    async def __aenter__(self) -> "TcpProbeSource":
        """Start background polling.

        Returns:
            Self for use in async with statement.
        """
        logger.info(
            f"Polling connectivity via {self.host}:{self.port} every {self.poll_interval_sec}s"
        )
        self._task = asyncio.get_running_loop().create_task(self._poll_loop())
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Stop background polling."""
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
