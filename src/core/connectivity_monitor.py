"""Connectivity monitor: single source of truth for network reachability."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import cast

from src.ports.connectivity import (
    ConnectivitySourcePort,
    ConnectivityState,
    NetworkType,
    Unsubscribe,
)
from src.ports.errors import MonitorDisposedError

__all__ = ["ConnectivityMonitor", "ConnectivitySubscription", "DEFAULT_BUFFER_SIZE"]

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 16

# Queue item that ends a subscriber's iteration
_CLOSED = object()


class ConnectivitySubscription:
    """One subscriber's view of the connectivity broadcast.

    Async-iterable: yields the new connectivity boolean at every transition
    and stops once the subscription or the monitor is closed. Each
    subscription owns a bounded buffer; when it is full the oldest pending
    event is dropped so the publisher never waits on a slow consumer.
    """

    def __init__(self, monitor: ConnectivityMonitor, buffer_size: int) -> None:
        self._monitor = monitor
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=buffer_size)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop receiving events. Already-buffered events are still delivered."""
        self._monitor._detach(self)
        self._finish()

    def _push(self, item: object) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            logger.debug("Subscriber buffer full, dropped oldest connectivity event")
        self._queue.put_nowait(item)

    def _finish(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._push(_CLOSED)

    def __aiter__(self) -> ConnectivitySubscription:
        return self

    async def __anext__(self) -> bool:
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the marker so later reads stop immediately too
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return cast(bool, item)


class ConnectivityMonitor:
    """Track and broadcast online/offline transitions.

    State machine: UNKNOWN -> ONLINE <-> OFFLINE, with DISPOSED as the
    terminal state reachable only through dispose(). Transitions are driven
    by source callbacks and explicit checks; each real transition is
    published once to every live subscriber.

    Must be used from a single event loop.
    """

    def __init__(
        self,
        source: ConnectivitySourcePort,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        """Initialize the monitor and start listening to the source.

        Args:
            source: Raw connectivity source.
            buffer_size: Pending events kept per subscriber.

        Raises:
            ValueError: If buffer_size is not positive.
        """
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self._source = source
        self._buffer_size = buffer_size
        self._state = ConnectivityState.UNKNOWN
        self._subscribers: list[ConnectivitySubscription] = []
        self._unsubscribe: Unsubscribe | None = source.listen(self._handle_source_change)

    @property
    def state(self) -> ConnectivityState:
        return self._state

    @property
    def is_connected(self) -> bool:
        """Last known reading; False while UNKNOWN or after disposal."""
        return self._state is ConnectivityState.ONLINE

    @property
    def is_disposed(self) -> bool:
        return self._state is ConnectivityState.DISPOSED

    async def check_connection(self) -> bool:
        """Probe the source now and return the fresh reading.

        Source errors are logged and read as offline.

        Returns:
            True if a usable network is available.

        Raises:
            MonitorDisposedError: If the monitor has been disposed.
        """
        self._ensure_alive()
        try:
            network_type = await self._source.probe()
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Connectivity probe failed, assuming offline: {e}")
            network_type = NetworkType.NONE

        if self.is_disposed:
            # Disposed while probing: report the reading, publish nothing
            return network_type.is_usable
        return self._apply(network_type.is_usable)

    def subscribe(self) -> ConnectivitySubscription:
        """Register a new subscriber.

        The subscription is live as soon as this returns. When the state is
        already known it is delivered first, as a "current state" event.

        Returns:
            Async-iterable subscription.

        Raises:
            MonitorDisposedError: If the monitor has been disposed.
        """
        self._ensure_alive()
        subscription = ConnectivitySubscription(self, self._buffer_size)
        self._subscribers.append(subscription)
        if self._state is not ConnectivityState.UNKNOWN:
            subscription._push(self.is_connected)
        return subscription

    def dispose(self) -> None:
        """Release the source listener and close every subscription.

        Safe to call more than once.
        """
        if self.is_disposed:
            return
        self._state = ConnectivityState.DISPOSED

        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            try:
                unsubscribe()
            except Exception as e:  # noqa: BLE001
                logger.warning(f"Failed to detach from connectivity source: {e}")

        subscribers, self._subscribers = self._subscribers, []
        for subscription in subscribers:
            subscription._finish()
        logger.debug(f"Connectivity monitor disposed ({len(subscribers)} subscribers closed)")

    async def __aenter__(self) -> ConnectivityMonitor:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()

    def _handle_source_change(self, network_type: NetworkType) -> None:
        if self.is_disposed:
            logger.debug(f"Ignoring source change after disposal: {network_type.value}")
            return
        self._apply(network_type.is_usable)

    def _apply(self, connected: bool) -> bool:
        new_state = ConnectivityState.ONLINE if connected else ConnectivityState.OFFLINE
        if new_state is not self._state:
            logger.info(f"Connectivity changed: {self._state.value} -> {new_state.value}")
            self._state = new_state
            for subscription in self._subscribers:
                subscription._push(connected)
        return connected

    def _detach(self, subscription: ConnectivitySubscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    def _ensure_alive(self) -> None:
        if self.is_disposed:
            raise MonitorDisposedError()
