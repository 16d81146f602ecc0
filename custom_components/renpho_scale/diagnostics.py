"""Diagnostics support for Renpho Scale."""
from __future__ import annotations

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceEntry

from .models import RenphoScaleConfigEntry

TO_REDACTED = {"address"}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: RenphoScaleConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator = entry.runtime_data
    data = coordinator.data

    return {
        "entry": {
            "title": entry.title,
            "data": {
                key: ("**REDACTED**" if key in TO_REDACTED else value)
                for key, value in entry.data.items()
            },
            "options": dict(entry.options),
        },
        "coordinator": {
            "last_update_success": coordinator.last_update_success,
            "last_exception": str(coordinator.last_exception) if coordinator.last_exception else None,
            "address": "**REDACTED**",
            "connected": coordinator.is_connected,
            "supervisor_running": coordinator.supervisor.is_running,
            "connection_stats": coordinator.connection_stats,
        },
        "data": {
            "weight": data.weight if data else None,
            "live_weight": data.live_weight if data else None,
            "is_stable": data.is_stable if data else None,
            "last_packet": data.last_packet if data else None,
            "last_measurement": (
                data.last_measurement.isoformat()
                if data and data.last_measurement
                else None
            ),
        },
    }


async def async_get_device_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry, device: DeviceEntry
) -> dict[str, Any]:
    """Return diagnostics for a device."""
    return await async_get_config_entry_diagnostics(hass, entry)
