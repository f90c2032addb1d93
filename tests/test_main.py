"""Tests for main application entrypoint."""

import asyncio
from collections.abc import Callable
from unittest.mock import AsyncMock, Mock, patch

import pytest

from src.core.connectivity_monitor import ConnectivityMonitor
from src.main import main, watch_connectivity
from src.ports.connectivity import NetworkType
from src.ports.envelope import ResponseEnvelope
from src.ports.settings import SettingsPort

__all__ = []


class FakeSource:
    """Connectivity source driven by the test."""

    def __init__(self) -> None:
        self.callback: Callable[[NetworkType], None] | None = None

    async def probe(self) -> NetworkType:
        return NetworkType.WIFI

    def listen(self, callback: Callable[[NetworkType], None]) -> Callable[[], None]:
        self.callback = callback
        return lambda: None


async def run_watcher(
    events: list[NetworkType], health_check_path: str | None
) -> AsyncMock:
    """Feed events to a watcher and return the dispatcher mock it used."""
    source = FakeSource()
    monitor = ConnectivityMonitor(source)
    dispatcher = Mock()
    dispatcher.get = AsyncMock(
        return_value=ResponseEnvelope.ok(status_code=200, url="http://api.test/health", data="ok")
    )

    task = asyncio.create_task(watch_connectivity(monitor, dispatcher, health_check_path))
    await asyncio.sleep(0)
    assert source.callback is not None
    for event in events:
        source.callback(event)
    monitor.dispose()

    await asyncio.wait_for(task, timeout=1)
    return dispatcher.get


@pytest.mark.asyncio
async def test_watcher_runs_health_check_on_each_reconnect() -> None:
    """Every transition to online triggers one health check GET."""
    get = await run_watcher(
        [NetworkType.WIFI, NetworkType.NONE, NetworkType.ETHERNET],
        health_check_path="/health",
    )

    assert get.await_count == 2
    get.assert_awaited_with("/health")


@pytest.mark.asyncio
async def test_watcher_without_health_path_only_logs() -> None:
    """No health check path means no requests."""
    get = await run_watcher([NetworkType.WIFI, NetworkType.NONE], health_check_path=None)

    get.assert_not_called()


@pytest.mark.asyncio
async def test_watcher_ends_when_monitor_disposed() -> None:
    """The watcher returns once the monitor is disposed."""
    get = await run_watcher([], health_check_path="/health")

    get.assert_not_called()


@pytest.mark.asyncio
async def test_main_wires_components_and_stops() -> None:
    """Main should wire source, monitor, transport and dispatcher, then stop."""
    settings_port = SettingsPort(api_base_url="http://api.test", health_check_path="/health")
    with (
        patch("src.main.configure_logs"),
        patch("src.main.load_settings") as mock_load_settings,
        patch("src.main.TcpProbeSource") as mock_source_class,
        patch("src.main.ConnectivityMonitor") as mock_monitor_class,
        patch("src.main.AiohttpTransport") as mock_transport_class,
        patch("src.main.RequestDispatcher") as mock_dispatcher_class,
        patch("src.main.DispatchMetrics"),
        patch("src.main.make_stop_event") as mock_stop,
        patch("src.main.watch_connectivity", new_callable=AsyncMock) as mock_watch,
    ):
        mock_load_settings.return_value.to_port.return_value = settings_port

        mock_source = AsyncMock()
        mock_source_class.return_value = mock_source
        mock_monitor = AsyncMock()
        mock_monitor.check_connection.return_value = True
        mock_monitor_class.return_value = mock_monitor
        mock_transport = AsyncMock()
        mock_transport_class.return_value = mock_transport

        stop_event = Mock()
        stop_event.wait = AsyncMock()
        mock_stop.return_value = stop_event

        await main()

        mock_monitor_class.assert_called_once_with(mock_source, buffer_size=16)
        mock_transport_class.assert_called_once_with(timeout_sec=30.0)
        assert mock_dispatcher_class.call_args.args[:3] == (
            "http://api.test",
            mock_monitor,
            mock_transport,
        )
        mock_monitor.check_connection.assert_awaited_once()
        stop_event.wait.assert_awaited_once()
        mock_monitor.__aexit__.assert_awaited_once()
        mock_transport.__aexit__.assert_awaited_once()
        mock_source.__aexit__.assert_awaited_once()
        mock_watch.assert_called_once_with(
            mock_monitor, mock_dispatcher_class.return_value, "/health"
        )


@pytest.mark.asyncio
async def test_main_aborts_on_configuration_error() -> None:
    """Main should log and return when configuration is invalid."""
    with (
        patch("src.main.configure_logs"),
        patch("src.main.load_settings", side_effect=RuntimeError("Missing API_BASE_URL")),
        patch("src.main.AiohttpTransport") as mock_transport_class,
        patch("src.main.logger") as mock_logger,
    ):
        await main()

    mock_transport_class.assert_not_called()
    mock_logger.error.assert_called()


@pytest.mark.asyncio
async def test_main_logs_unexpected_errors() -> None:
    """Errors while monitoring should be logged, not raised."""
    with (
        patch("src.main.configure_logs"),
        patch("src.main.load_settings") as mock_load_settings,
        patch("src.main.TcpProbeSource", return_value=AsyncMock()),
        patch("src.main.ConnectivityMonitor") as mock_monitor_class,
        patch("src.main.AiohttpTransport", return_value=AsyncMock()),
        patch("src.main.RequestDispatcher"),
        patch("src.main.DispatchMetrics"),
        patch("src.main.make_stop_event"),
        patch("src.main.watch_connectivity", new_callable=AsyncMock),
        patch("src.main.logger") as mock_logger,
    ):
        mock_load_settings.return_value.to_port.return_value = SettingsPort(
            api_base_url="http://api.test"
        )
        mock_monitor = AsyncMock()
        mock_monitor.check_connection.side_effect = RuntimeError("Test error")
        mock_monitor_class.return_value = mock_monitor

        try:
            await main()
        except RuntimeError:
            pytest.fail("main() should not raise; exceptions are caught internally")

        mock_logger.error.assert_called()
