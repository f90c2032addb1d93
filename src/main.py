"""Application entrypoint."""

import asyncio
import logging

from src.adapters.driven.config.settings import load_settings
from src.adapters.driven.connectivity.probe_source import TcpProbeSource
from src.adapters.driven.http.client import AiohttpTransport
from src.adapters.driven.logging.logging_config import configure_logs
from src.adapters.driven.metrics.dispatch_metrics import DispatchMetrics
from src.adapters.driving.signals import make_stop_event
from src.core.connectivity_monitor import ConnectivityMonitor
from src.core.dispatcher import RequestDispatcher

__all__ = ["main", "watch_connectivity"]

logger = logging.getLogger(__name__)


async def main() -> None:
    """Start the connectivity-aware dispatcher service.

    Startup sequence:
    1. Configure logging.
    2. Load and validate configuration.
    3. Wire probe source, monitor, transport and dispatcher.
    4. Log every connectivity transition until SIGTERM/SIGINT.
    5. Dispose the monitor and close the transport.
    """
    configure_logs()
    logger.info("Starting connectivity-aware dispatcher...")

    try:
        settings = load_settings().to_port()
    except (RuntimeError, ValueError) as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: check API_BASE_URL and that the numeric CONNECTIVITY_* / "
            "REQUEST_TIMEOUT_SECONDS variables are positive numbers.",
            exc,
        )
        return

    source = TcpProbeSource(
        settings.probe_host,
        settings.probe_port,
        timeout_sec=settings.probe_timeout_sec,
        poll_interval_sec=settings.poll_interval_sec,
    )
    monitor = ConnectivityMonitor(source, buffer_size=settings.subscriber_buffer_size)
    transport = AiohttpTransport(timeout_sec=settings.request_timeout_sec)
    dispatcher = RequestDispatcher(
        settings.api_base_url, monitor, transport, metrics=DispatchMetrics()
    )
    stop = make_stop_event()

    async with transport, source:
        async with monitor:
            watcher = asyncio.create_task(
                watch_connectivity(monitor, dispatcher, settings.health_check_path)
            )
            try:
                online = await monitor.check_connection()
                logger.info(f"Initial connectivity: {'online' if online else 'offline'}")
                await stop.wait()
            except Exception as e:
                logger.error(f"Unhandled exception while monitoring: {e}", exc_info=True)

        watcher.cancel()
        await asyncio.gather(watcher, return_exceptions=True)

    logger.info("Dispatcher stopped.")


async def watch_connectivity(
    monitor: ConnectivityMonitor,
    dispatcher: RequestDispatcher,
    health_check_path: str | None = None,
) -> None:
    """Log connectivity transitions until the monitor is disposed.

    When the network comes back and a health check path is configured,
    fetch it through the dispatcher and log the envelope.

    Args:
        monitor: Shared connectivity monitor.
        dispatcher: Dispatcher used for the health check.
        health_check_path: Optional path to GET on every transition to online.
    """
    async for connected in monitor.subscribe():
        if not connected:
            logger.warning("Network unavailable, requests will short-circuit")
            continue

        logger.info("Network available")
        if health_check_path:
            envelope = await dispatcher.get(health_check_path)
            if envelope.is_success:
                logger.info(f"Health check passed: {envelope}")
            else:
                logger.warning(f"Health check failed: {envelope}")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Shutdown requested by user (Ctrl+C).")
