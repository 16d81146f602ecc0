"""Sensor platform for Renpho Scale integration."""
from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.const import CONF_ADDRESS, UnitOfMass
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .coordinator import RenphoScaleDataUpdateCoordinator
from .models import RenphoScaleConfigEntry

PARALLEL_UPDATES = 0  # No limit since coordinator manages all updates

WEIGHT_DESCRIPTION = SensorEntityDescription(
    key="weight",
    translation_key="weight",
    device_class=SensorDeviceClass.WEIGHT,
    state_class=SensorStateClass.MEASUREMENT,
    native_unit_of_measurement=UnitOfMass.KILOGRAMS,
    suggested_display_precision=2,
)

LIVE_WEIGHT_DESCRIPTION = SensorEntityDescription(
    key="live_weight",
    translation_key="live_weight",
    device_class=SensorDeviceClass.WEIGHT,
    native_unit_of_measurement=UnitOfMass.KILOGRAMS,
    suggested_display_precision=2,
    entity_registry_enabled_default=False,
)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: RenphoScaleConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Renpho Scale sensors based on a config entry."""
    coordinator = config_entry.runtime_data

    async_add_entities([
        RenphoScaleWeightSensor(coordinator, config_entry, WEIGHT_DESCRIPTION),
        RenphoScaleLiveWeightSensor(coordinator, config_entry, LIVE_WEIGHT_DESCRIPTION),
    ])


class RenphoScaleSensor(CoordinatorEntity[RenphoScaleDataUpdateCoordinator], SensorEntity):
    """Base sensor for Renpho Scale."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(
        self,
        coordinator: RenphoScaleDataUpdateCoordinator,
        config_entry: RenphoScaleConfigEntry,
        description: SensorEntityDescription,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator)
        self.entity_description = description

        self._address = config_entry.data[CONF_ADDRESS]
        self._attr_unique_id = f"{self._address}_{description.key}"
        self._attr_device_info = coordinator.device_info


class RenphoScaleWeightSensor(RenphoScaleSensor):
    """Last final measurement.

    Stays available while the scale sleeps, a body scale is only awake for the
    few seconds of a weighing.
    """

    _unrecorded_attributes = frozenset({"last_measurement"})

    @property
    def native_value(self) -> float | None:
        """Return the last measured weight in kg."""
        if not self.coordinator.data or self.coordinator.data.weight is None:
            return None
        return round(self.coordinator.data.weight, 2)

    @property
    def available(self) -> bool:
        """Return if entity is available."""
        return (
            super().available
            and self.coordinator.data is not None
            and self.coordinator.data.weight is not None
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        """Return the state attributes."""
        if not self.coordinator.data or self.coordinator.data.last_measurement is None:
            return None
        return {"last_measurement": self.coordinator.data.last_measurement.isoformat()}


class RenphoScaleLiveWeightSensor(RenphoScaleSensor):
    """Converging reading while someone stands on the scale."""

    _unrecorded_attributes = frozenset({"is_stable"})

    @property
    def native_value(self) -> float | None:
        """Return the live weight in kg."""
        if not self.coordinator.data or self.coordinator.data.live_weight is None:
            return None
        return round(self.coordinator.data.live_weight, 2)

    @property
    def available(self) -> bool:
        """Return if entity is available."""
        return (
            super().available
            and self.coordinator.data is not None
            and self.coordinator.is_connected
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        """Return the state attributes."""
        if not self.coordinator.data:
            return None
        return {"is_stable": self.coordinator.data.is_stable}
