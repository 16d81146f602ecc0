"""Transport abstraction and its bleak implementation."""
from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any, Protocol, TypeAlias

from bleak import BleakError, BleakScanner
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.backends.device import BLEDevice
from bleak_retry_connector import BleakClientWithServiceCache, establish_connection

from .const import (
    COMMAND_CHARACTERISTIC_UUID,
    DEFAULT_CONNECT_ATTEMPTS,
    DEFAULT_CONNECT_TIMEOUT,
    NOTIFY_CHARACTERISTIC_UUID,
)
from .exceptions import TransportConnectError, TransportWriteError

_LOGGER = logging.getLogger(__name__)

NotificationCallback: TypeAlias = Callable[[bytes], None]


class ScaleTransport(Protocol):
    """What a scale session needs from the BLE layer."""

    address: str

    async def write_command(self, data: bytes) -> None:
        """Write a command to the command characteristic."""

    async def subscribe(self, callback: NotificationCallback) -> Any:
        """Subscribe to notifications and return a subscription handle."""

    async def unsubscribe(self, handle: Any) -> None:
        """Cancel a subscription."""

    async def disconnect(self) -> None:
        """Release the connection."""


class BleakScaleTransport:
    """Scale transport backed by a connected bleak client."""

    def __init__(self, client: BleakClientWithServiceCache, address: str) -> None:
        """Initialize."""
        self._client = client
        self.address = address

    @property
    def is_connected(self) -> bool:
        """Return True if the client is still connected."""
        return self._client.is_connected

    async def write_command(self, data: bytes) -> None:
        """Write a command to the scale."""
        try:
            await self._client.write_gatt_char(COMMAND_CHARACTERISTIC_UUID, data)
        except (TimeoutError, BleakError) as err:
            raise TransportWriteError(f"Failed to write {data.hex()}: {err}") from err

    async def subscribe(self, callback: NotificationCallback) -> str:
        """Enable notifications on the notify characteristic."""

        def _notification_callback(_: BleakGATTCharacteristic, data: bytearray) -> None:
            callback(bytes(data))

        await self._client.start_notify(NOTIFY_CHARACTERISTIC_UUID, _notification_callback)
        _LOGGER.debug("Notifications enabled for characteristic %s", NOTIFY_CHARACTERISTIC_UUID)
        return NOTIFY_CHARACTERISTIC_UUID

    async def unsubscribe(self, handle: str) -> None:
        """Disable notifications."""
        if not self._client.is_connected:
            return
        await self._client.stop_notify(handle)
        _LOGGER.debug("Notifications disabled for characteristic %s", handle)

    async def disconnect(self) -> None:
        """Disconnect from the scale."""
        try:
            await self._client.disconnect()
        except BleakError as err:
            _LOGGER.debug("Error while disconnecting from %s: %s", self.address, err)


async def async_connect(
    device: BLEDevice | str,
    *,
    timeout: float = DEFAULT_CONNECT_TIMEOUT,
    max_attempts: int = DEFAULT_CONNECT_ATTEMPTS,
    disconnected_callback: Callable[[BleakClientWithServiceCache], None] | None = None,
) -> BleakScaleTransport:
    """Connect to a scale given a device or its address."""
    if isinstance(device, str):
        address = device.upper()
        ble_device = await BleakScanner.find_device_by_address(address, timeout=timeout)
        if ble_device is None:
            raise TransportConnectError(f"Could not find device with address {address}")
    else:
        ble_device = device
        address = device.address.upper()

    _LOGGER.debug("Connecting to Renpho scale at %s", address)
    try:
        client = await establish_connection(
            BleakClientWithServiceCache,
            ble_device,
            address,
            disconnected_callback=disconnected_callback,
            timeout=timeout,
            max_attempts=max_attempts,
        )
    except (TimeoutError, BleakError) as err:
        raise TransportConnectError(f"Failed to connect to {address}: {err}") from err

    _LOGGER.info("Connected to Renpho scale at %s", address)
    return BleakScaleTransport(client, address)
