"""Data models for Renpho Scale integration."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry

    from .coordinator import RenphoScaleDataUpdateCoordinator


@dataclass
class RenphoScaleData:
    """Data class for Renpho scale readings."""

    weight: float | None = None  # Last final measurement in kg
    live_weight: float | None = None  # Last converging reading in kg
    is_stable: bool = False
    last_measurement: datetime | None = None
    last_packet: str | None = None

    def update_live_weight(self, weight: float) -> None:
        """Record a reading that is still converging."""
        self.live_weight = weight
        self.is_stable = False

    def update_weight(self, weight: float) -> None:
        """Record a final measurement."""
        self.weight = weight
        self.live_weight = weight
        self.is_stable = True
        self.last_measurement = datetime.now()


RenphoScaleConfigEntry: TypeAlias = "ConfigEntry[RenphoScaleDataUpdateCoordinator]"
