"""Tests for the bleak transport binding."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

from bleak import BleakError
import pytest

from renpho_ble.const import COMMAND_CHARACTERISTIC_UUID, COMMAND_STOP, NOTIFY_CHARACTERISTIC_UUID
from renpho_ble.exceptions import TransportConnectError, TransportWriteError
from renpho_ble.transport import BleakScaleTransport, async_connect

from .conftest import ADDRESS


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.is_connected = True
    client.write_gatt_char = AsyncMock()
    client.start_notify = AsyncMock()
    client.stop_notify = AsyncMock()
    client.disconnect = AsyncMock()
    return client


async def test_write_command(client: MagicMock) -> None:
    transport = BleakScaleTransport(client, ADDRESS)

    await transport.write_command(COMMAND_STOP)

    client.write_gatt_char.assert_awaited_once_with(COMMAND_CHARACTERISTIC_UUID, COMMAND_STOP)


async def test_write_command_failure(client: MagicMock) -> None:
    client.write_gatt_char.side_effect = BleakError("Not connected")
    transport = BleakScaleTransport(client, ADDRESS)

    with pytest.raises(TransportWriteError):
        await transport.write_command(COMMAND_STOP)


async def test_subscribe_delivers_bytes(client: MagicMock) -> None:
    transport = BleakScaleTransport(client, ADDRESS)
    received: list[bytes] = []

    handle = await transport.subscribe(received.append)
    characteristic, callback = client.start_notify.call_args.args
    callback(MagicMock(), bytearray(b"\x12\x00"))

    assert characteristic == NOTIFY_CHARACTERISTIC_UUID
    assert handle == NOTIFY_CHARACTERISTIC_UUID
    assert received == [b"\x12\x00"]
    assert isinstance(received[0], bytes)


async def test_unsubscribe(client: MagicMock) -> None:
    transport = BleakScaleTransport(client, ADDRESS)

    await transport.unsubscribe(NOTIFY_CHARACTERISTIC_UUID)
    client.stop_notify.assert_awaited_once_with(NOTIFY_CHARACTERISTIC_UUID)

    client.is_connected = False
    await transport.unsubscribe(NOTIFY_CHARACTERISTIC_UUID)
    assert client.stop_notify.await_count == 1


async def test_disconnect_ignores_bleak_errors(client: MagicMock) -> None:
    client.disconnect.side_effect = BleakError("already disconnected")
    transport = BleakScaleTransport(client, ADDRESS)

    await transport.disconnect()

    client.disconnect.assert_awaited_once()


async def test_connect_with_device(client: MagicMock) -> None:
    device = MagicMock()
    device.address = ADDRESS.lower()

    with patch("renpho_ble.transport.establish_connection", AsyncMock(return_value=client)) as connect:
        transport = await async_connect(device, timeout=3.0)

    assert transport.address == ADDRESS
    assert transport.is_connected
    assert connect.await_args.args[1] is device
    assert connect.await_args.kwargs["timeout"] == 3.0


async def test_connect_by_address(client: MagicMock) -> None:
    device = MagicMock()
    device.address = ADDRESS

    with (
        patch(
            "renpho_ble.transport.BleakScanner.find_device_by_address",
            AsyncMock(return_value=device),
        ) as find,
        patch("renpho_ble.transport.establish_connection", AsyncMock(return_value=client)),
    ):
        transport = await async_connect(ADDRESS.lower())

    assert find.await_args.args[0] == ADDRESS
    assert transport.address == ADDRESS


async def test_connect_device_not_found() -> None:
    with (
        patch(
            "renpho_ble.transport.BleakScanner.find_device_by_address",
            AsyncMock(return_value=None),
        ),
        pytest.raises(TransportConnectError, match="Could not find device"),
    ):
        await async_connect(ADDRESS)


async def test_connect_failure() -> None:
    device = MagicMock()
    device.address = ADDRESS

    with (
        patch(
            "renpho_ble.transport.establish_connection",
            AsyncMock(side_effect=BleakError("out of connection slots")),
        ),
        pytest.raises(TransportConnectError, match="out of connection slots"),
    ):
        await async_connect(device)
