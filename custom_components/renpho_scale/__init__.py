"""The Renpho Scale integration."""
from __future__ import annotations

import logging

from homeassistant.components import bluetooth
from homeassistant.const import CONF_ADDRESS, Platform
from homeassistant.core import HomeAssistant

from .coordinator import RenphoScaleDataUpdateCoordinator
from .models import RenphoScaleConfigEntry

PLATFORMS: list[Platform] = [Platform.SENSOR]

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(hass: HomeAssistant, entry: RenphoScaleConfigEntry) -> bool:
    """Set up Renpho Scale from a config entry."""
    address = entry.data[CONF_ADDRESS]

    coordinator = RenphoScaleDataUpdateCoordinator(hass, address, entry)

    # Track advertisements so the latest device is used when reconnecting
    entry.async_on_unload(
        bluetooth.async_register_callback(
            hass,
            coordinator._async_handle_bluetooth_event,  # noqa: SLF001
            {"address": address.upper()},
            bluetooth.BluetoothScanningMode.ACTIVE,
        )
    )

    await coordinator.async_config_entry_first_refresh()
    entry.runtime_data = coordinator

    # The scale is usually asleep; the supervisor keeps retrying in the background
    coordinator.async_start()
    _LOGGER.debug("Started session supervisor for %s", address)

    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def _async_update_listener(hass: HomeAssistant, entry: RenphoScaleConfigEntry) -> None:
    """Reload the entry when options change."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: RenphoScaleConfigEntry) -> bool:
    """Unload a config entry."""
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        await entry.runtime_data.async_shutdown()
    return unload_ok
