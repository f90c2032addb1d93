"""Tests for the TCP probe connectivity source."""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest

from src.adapters.driven.connectivity.probe_source import TcpProbeSource
from src.core.connectivity_monitor import ConnectivityMonitor
from src.ports.connectivity import NetworkType

__all__ = []


@pytest.mark.asyncio
async def test_probe_reports_other_when_reachable() -> None:
    """A successful TCP connection means some network is available."""
    writer = Mock()
    writer.wait_closed = AsyncMock()
    source = TcpProbeSource("probe.test", 53)

    with patch(
        "src.adapters.driven.connectivity.probe_source.asyncio.open_connection",
        new=AsyncMock(return_value=(Mock(), writer)),
    ) as mock_open:
        result = await source.probe()

    assert result is NetworkType.OTHER
    mock_open.assert_awaited_once_with("probe.test", 53)
    writer.close.assert_called_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [OSError("unreachable"), asyncio.TimeoutError()])
async def test_probe_reports_none_on_failure(error: BaseException) -> None:
    """Refused, unreachable or timed out probes mean no network."""
    source = TcpProbeSource()

    with patch(
        "src.adapters.driven.connectivity.probe_source.asyncio.open_connection",
        new=AsyncMock(side_effect=error),
    ):
        result = await source.probe()

    assert result is NetworkType.NONE


@pytest.mark.asyncio
async def test_poll_once_notifies_only_on_change() -> None:
    """Listeners should hear about changes, not repeated readings."""
    source = TcpProbeSource()
    source._probe_network = AsyncMock(  # type: ignore[method-assign]
        side_effect=[NetworkType.OTHER, NetworkType.OTHER, NetworkType.NONE]
    )
    seen: list[NetworkType] = []
    source.listen(seen.append)

    for _ in range(3):
        await source.poll_once()

    assert seen == [NetworkType.OTHER, NetworkType.NONE]


@pytest.mark.asyncio
async def test_failing_listener_does_not_block_others() -> None:
    """One broken listener must not stop delivery to the rest."""
    source = TcpProbeSource()
    source._probe_network = AsyncMock(return_value=NetworkType.OTHER)  # type: ignore[method-assign]
    broken = Mock(side_effect=RuntimeError("boom"))
    seen: list[NetworkType] = []
    source.listen(broken)
    source.listen(seen.append)

    await source.poll_once()

    broken.assert_called_once_with(NetworkType.OTHER)
    assert seen == [NetworkType.OTHER]


@pytest.mark.asyncio
async def test_unsubscribe_removes_listener() -> None:
    """Unsubscribed listeners receive nothing; unsubscribing twice is safe."""
    source = TcpProbeSource()
    source._probe_network = AsyncMock(return_value=NetworkType.NONE)  # type: ignore[method-assign]
    listener = Mock()
    unsubscribe = source.listen(listener)

    unsubscribe()
    unsubscribe()
    await source.poll_once()

    listener.assert_not_called()


@pytest.mark.asyncio
async def test_context_manager_polls_in_background() -> None:
    """Entering the source starts polling; leaving it stops the task."""
    source = TcpProbeSource(poll_interval_sec=0.01)
    source._probe_network = AsyncMock(return_value=NetworkType.OTHER)  # type: ignore[method-assign]
    seen: list[NetworkType] = []
    source.listen(seen.append)

    async with source:
        await asyncio.sleep(0.05)

    calls = source._probe_network.await_count
    assert calls >= 2
    assert seen == [NetworkType.OTHER]
    assert source._task is None

    await asyncio.sleep(0.03)
    assert source._probe_network.await_count == calls


@pytest.mark.asyncio
async def test_explicit_check_notifies_listeners() -> None:
    """A probe triggered outside the poll loop still reports changes."""
    source = TcpProbeSource()
    source._probe_network = AsyncMock(return_value=NetworkType.OTHER)  # type: ignore[method-assign]
    seen: list[NetworkType] = []
    source.listen(seen.append)

    await source.probe()
    await source.poll_once()

    assert seen == [NetworkType.OTHER]


@pytest.mark.asyncio
async def test_monitor_follows_polls_after_explicit_check() -> None:
    """Polls after an explicit check keep the monitor in sync with the network."""
    source = TcpProbeSource()
    source._probe_network = AsyncMock(  # type: ignore[method-assign]
        side_effect=[NetworkType.NONE, NetworkType.OTHER, NetworkType.NONE, NetworkType.NONE]
    )
    monitor = ConnectivityMonitor(source)
    subscription = monitor.subscribe()

    await source.poll_once()
    assert monitor.is_connected is False

    assert await monitor.check_connection() is True

    await source.poll_once()
    await source.poll_once()
    assert monitor.is_connected is False

    monitor.dispose()
    assert [value async for value in subscription] == [False, True, False]
