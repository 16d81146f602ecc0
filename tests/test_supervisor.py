"""Tests for the session supervisor."""
from __future__ import annotations

import asyncio

from renpho_ble.const import COMMAND_HANDSHAKE_1_ACK, COMMAND_HANDSHAKE_2_ACK, COMMAND_STOP, ScaleEvent
from renpho_ble.exceptions import TransportConnectError
from renpho_ble.session import ScaleSession, SessionState
from renpho_ble.supervisor import SessionSupervisor

from .conftest import ADDRESS, FakeTransport
from .fixtures.packets import HANDSHAKE_1, HANDSHAKE_2, WEIGHT_FINAL_72_00, WEIGHT_LIVE_70_50

MEASUREMENT_SCRIPT = [HANDSHAKE_1, HANDSHAKE_2, WEIGHT_LIVE_70_50, WEIGHT_FINAL_72_00]


class FakeConnector:
    """Hands out scripted transports or raises scripted errors."""

    def __init__(self, *results: FakeTransport | Exception) -> None:
        self.results = list(results)
        self.addresses: list[str] = []
        self.transports: list[FakeTransport] = []

    async def __call__(self, address: str) -> FakeTransport:
        self.addresses.append(address)
        result = self.results.pop(0) if self.results else FakeTransport()
        if isinstance(result, Exception):
            raise result
        self.transports.append(result)
        return result


async def test_once_mode_stops_after_measurement() -> None:
    transport = FakeTransport(MEASUREMENT_SCRIPT)
    connector = FakeConnector(transport)
    weights: list[float] = []
    live: list[float] = []

    def _on_connected(session: ScaleSession) -> None:
        assert session.state is SessionState.IDLE
        session.on(ScaleEvent.MEASUREMENT, weights.append)
        session.on(ScaleEvent.LIVE_UPDATE, live.append)

    supervisor = SessionSupervisor(
        ADDRESS.lower(), connector, once=True, on_connected=_on_connected, timeout=5, retry_delay=0
    )
    result = await asyncio.wait_for(supervisor.async_run(), 5)

    assert result is ScaleEvent.MEASUREMENT
    assert connector.addresses == [ADDRESS]
    assert weights == [72.0]
    assert live == [70.5]
    assert transport.writes == [COMMAND_HANDSHAKE_1_ACK, COMMAND_HANDSHAKE_2_ACK, COMMAND_STOP]
    assert transport.unsubscribe_calls == 1
    assert transport.disconnect_calls == 1
    assert supervisor.session is None
    assert supervisor.stats["measurements"] == 1
    assert supervisor.stats["last_measurement"] == 72.0
    assert supervisor.stats["sessions"] == 1


async def test_once_mode_stops_after_timeout() -> None:
    transport = FakeTransport()
    connector = FakeConnector(transport)
    supervisor = SessionSupervisor(ADDRESS, connector, once=True, timeout=0.05, retry_delay=0)

    result = await asyncio.wait_for(supervisor.async_run(), 5)

    assert result is ScaleEvent.TIMEOUT
    assert len(connector.addresses) == 1
    assert transport.unsubscribe_calls == 1
    assert transport.disconnect_calls == 1
    assert supervisor.stats["timeouts"] == 1


async def test_once_mode_retries_connect_failures() -> None:
    transport = FakeTransport(MEASUREMENT_SCRIPT)
    connector = FakeConnector(
        TransportConnectError("not found"),
        TimeoutError("timed out"),
        transport,
    )
    supervisor = SessionSupervisor(ADDRESS, connector, once=True, timeout=5, retry_delay=0)

    result = await asyncio.wait_for(supervisor.async_run(), 5)

    assert result is ScaleEvent.MEASUREMENT
    assert len(connector.addresses) == 3
    assert supervisor.stats["connection_attempts"] == 3
    assert supervisor.stats["connection_failures"] == 2
    assert supervisor.stats["last_error"] == "timed out"


async def test_continuous_mode_reconnects() -> None:
    first = FakeTransport()
    second = FakeTransport(MEASUREMENT_SCRIPT)
    connector = FakeConnector(first, second)
    supervisor = SessionSupervisor(ADDRESS, connector, timeout=0.05, retry_delay=0)

    async def _third_connect(address: str) -> FakeTransport:
        if len(connector.addresses) == 2:
            supervisor.stop()
        return await connector(address)

    supervisor._connector = _third_connect

    result = await asyncio.wait_for(supervisor.async_run(), 5)

    assert result is None
    assert len(connector.addresses) == 3
    assert supervisor.stats["timeouts"] == 1
    assert supervisor.stats["measurements"] == 1
    for transport in connector.transports:
        assert transport.disconnect_calls == 1
    # Sessions never overlap: each transport is released before the next connect
    assert first.unsubscribe_calls == 1
    assert second.unsubscribe_calls == 1
    assert connector.transports[2].subscribe_calls == 0


async def test_stop_tears_down_active_session() -> None:
    transport = FakeTransport()
    supervisor = SessionSupervisor(ADDRESS, FakeConnector(transport), timeout=10, retry_delay=0)

    supervisor.start()
    for _ in range(100):
        if supervisor.session is not None and supervisor.session.is_listening:
            break
        await asyncio.sleep(0.01)

    assert supervisor.is_running
    assert supervisor.stats["session_active"]

    await supervisor.async_stop()

    assert not supervisor.is_running
    assert transport.unsubscribe_calls == 1
    assert transport.disconnect_calls == 1


async def test_session_failure_releases_transport() -> None:
    broken = FakeTransport()
    broken.fail_subscribe = OSError("not connected")
    good = FakeTransport(MEASUREMENT_SCRIPT)
    connector = FakeConnector(broken, good)
    supervisor = SessionSupervisor(ADDRESS, connector, once=True, timeout=5, retry_delay=0)

    result = await asyncio.wait_for(supervisor.async_run(), 5)

    assert result is ScaleEvent.MEASUREMENT
    assert broken.disconnect_calls == 1
    assert good.disconnect_calls == 1
    assert supervisor.stats["last_error"] == "not connected"


async def test_unexpected_connect_error_is_retried() -> None:
    transport = FakeTransport(MEASUREMENT_SCRIPT)
    connector = FakeConnector(OSError("adapter gone"), transport)
    supervisor = SessionSupervisor(ADDRESS, connector, once=True, timeout=5, retry_delay=0)

    result = await asyncio.wait_for(supervisor.async_run(), 5)

    assert result is ScaleEvent.MEASUREMENT
    assert supervisor.stats["connection_attempts"] == 2
    assert supervisor.stats["connection_failures"] == 1
    assert transport.disconnect_calls == 1


async def test_failing_on_connected_callback_is_retried() -> None:
    first = FakeTransport()
    second = FakeTransport(MEASUREMENT_SCRIPT)
    connector = FakeConnector(first, second)
    calls: list[ScaleSession] = []

    def _on_connected(session: ScaleSession) -> None:
        calls.append(session)
        if len(calls) == 1:
            raise RuntimeError("listener setup failed")

    supervisor = SessionSupervisor(
        ADDRESS, connector, once=True, on_connected=_on_connected, timeout=5, retry_delay=0
    )

    result = await asyncio.wait_for(supervisor.async_run(), 5)

    assert result is ScaleEvent.MEASUREMENT
    assert len(calls) == 2
    assert first.subscribe_calls == 0
    assert first.disconnect_calls == 1
    assert second.disconnect_calls == 1
    assert supervisor.stats["last_error"] == "listener setup failed"


async def test_stop_loop_run_in_external_task() -> None:
    transport = FakeTransport()
    supervisor = SessionSupervisor(ADDRESS, FakeConnector(transport), timeout=10, retry_delay=0)

    task = asyncio.create_task(supervisor.async_run())
    for _ in range(100):
        if supervisor.session is not None and supervisor.session.is_listening:
            break
        await asyncio.sleep(0.01)

    assert supervisor.is_running

    await supervisor.async_stop()

    assert task.done()
    assert task.result() is None
    assert not supervisor.is_running
    assert transport.disconnect_calls == 1
