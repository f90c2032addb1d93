"""Signal handling for graceful shutdown."""

import asyncio
import logging
import signal

__all__ = ["make_stop_event"]

logger = logging.getLogger(__name__)


def make_stop_event() -> asyncio.Event:
    """Create an event set on SIGTERM or SIGINT.

    The composition root awaits it, then disposes the monitor and closes
    the transport.

    Returns:
        Event that becomes set when a termination signal arrives.
    """
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def handle_signal(sig: signal.Signals) -> None:
        logger.info(f"{sig.name} received, initiating graceful shutdown...")
        stop.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal, sig)

    return stop
