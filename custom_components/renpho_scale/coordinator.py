"""DataUpdateCoordinator for Renpho Scale."""
from __future__ import annotations

from datetime import datetime
import logging
from typing import TYPE_CHECKING, Any

from bleak.backends.device import BLEDevice
from bleak_retry_connector import BleakClientWithServiceCache

from homeassistant.components import bluetooth
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from renpho_ble import (
    BleakScaleTransport,
    Packet,
    ScaleEvent,
    ScaleSession,
    SessionSupervisor,
    TransportConnectError,
    async_connect,
    format_packet,
)

from .const import CONF_TIMEOUT, DEFAULT_SESSION_TIMEOUT, DOMAIN, RECONNECT_INTERVAL
from .models import RenphoScaleData

if TYPE_CHECKING:
    from homeassistant.components.bluetooth import BluetoothServiceInfoBleak

_LOGGER = logging.getLogger(__name__)


class RenphoScaleDataUpdateCoordinator(DataUpdateCoordinator[RenphoScaleData]):
    """Class to manage readings pushed by the Renpho Scale."""

    def __init__(
        self,
        hass: HomeAssistant,
        address: str,
        config_entry: ConfigEntry,
    ) -> None:
        """Initialize."""
        self.address = address.upper()
        self._config_entry = config_entry
        self._ble_device: BLEDevice | None = None
        self._total_disconnections = 0
        self._last_successful_connection: datetime | None = None

        self._supervisor = SessionSupervisor(
            self.address,
            self._async_connect,
            on_connected=self._on_session_connected,
            timeout=config_entry.options.get(CONF_TIMEOUT, DEFAULT_SESSION_TIMEOUT),
            retry_delay=RECONNECT_INTERVAL,
        )

        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=None,
            config_entry=config_entry,
        )

    @property
    def supervisor(self) -> SessionSupervisor:
        """Return the session supervisor."""
        return self._supervisor

    @property
    def is_connected(self) -> bool:
        """Return True while a session with the scale is listening."""
        session = self._supervisor.session
        return session is not None and session.is_listening

    @property
    def device_info(self) -> dict[str, Any]:
        """Return device information for all entities."""
        return {
            "identifiers": {(DOMAIN, self.address)},
            "name": self._config_entry.title or "Renpho Scale",
            "manufacturer": "Renpho",
            "model": "Body Scale",
            "connections": {("bluetooth", self.address.lower())},
        }

    @property
    def connection_stats(self) -> dict[str, Any]:
        """Return connection statistics for diagnostics."""
        return {
            **self._supervisor.stats,
            "total_disconnections": self._total_disconnections,
            "last_successful_connection": (
                self._last_successful_connection.isoformat()
                if self._last_successful_connection
                else None
            ),
        }

    @callback
    def _async_handle_bluetooth_event(
        self,
        service_info: BluetoothServiceInfoBleak,
        change: bluetooth.BluetoothChange,
    ) -> None:
        """Keep track of the latest device seen advertising."""
        if change == bluetooth.BluetoothChange.ADVERTISEMENT:
            self._ble_device = service_info.device
            _LOGGER.debug(
                "Advertisement from %s (rssi=%s)", service_info.address, getattr(service_info, "rssi", "N/A")
            )

    async def _async_update_data(self) -> RenphoScaleData:
        """Return current data - all updates are pushed by the scale session."""
        return self.data or RenphoScaleData()

    async def _async_connect(self, address: str) -> BleakScaleTransport:
        """Connect to the scale through Home Assistant's bluetooth stack."""
        ble_device = bluetooth.async_ble_device_from_address(self.hass, address, connectable=True)
        if ble_device is None:
            ble_device = self._ble_device
        if ble_device is None:
            raise TransportConnectError(f"Could not find device with address {address}")

        transport = await async_connect(ble_device, disconnected_callback=self._on_disconnect)
        self._last_successful_connection = datetime.now()
        return transport

    @callback
    def _on_session_connected(self, session: ScaleSession) -> None:
        """Attach listeners to a freshly connected session."""
        session.on(ScaleEvent.DATA, self._on_data)
        session.on(ScaleEvent.LIVE_UPDATE, self._on_live_update)
        session.on(ScaleEvent.MEASUREMENT, self._on_measurement)
        session.on(ScaleEvent.TIMEOUT, self._on_timeout)
        self.async_update_listeners()

    def _get_data(self) -> RenphoScaleData:
        if not self.data:
            self.data = RenphoScaleData()
        return self.data

    def _on_data(self, packet: Packet) -> None:
        self._get_data().last_packet = format_packet(packet)

    def _on_live_update(self, weight: float) -> None:
        _LOGGER.debug("Live weight from %s: %.2f kg", self.address, weight)
        data = self._get_data()
        data.update_live_weight(weight)
        self.async_set_updated_data(data)

    def _on_measurement(self, weight: float) -> None:
        data = self._get_data()
        data.update_weight(weight)
        self.async_set_updated_data(data)

    def _on_timeout(self) -> None:
        self.async_update_listeners()

    def _on_disconnect(self, _: BleakClientWithServiceCache) -> None:
        """Handle disconnection."""
        self._total_disconnections += 1
        _LOGGER.info("Renpho Scale disconnected (total: %d)", self._total_disconnections)
        self.async_update_listeners()

    @callback
    def async_start(self) -> None:
        """Start the reconnect loop as a background task of the config entry."""
        if self._supervisor.is_running:
            return
        self._config_entry.async_create_background_task(
            self.hass,
            self._supervisor.async_run(),
            name=f"{DOMAIN} {self.address}",
        )

    async def async_shutdown(self) -> None:
        """Stop the reconnect loop and disconnect from the scale."""
        await self._supervisor.async_stop()
        await super().async_shutdown()
