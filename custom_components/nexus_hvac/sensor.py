"""
Platform for HVAC sensor integration.
This module is responsible for setting up the temperature, health, current and noise
sensor entities and updating their state from the integration's coordinators.
"""
from __future__ import annotations

import logging
from typing import Any

from homeassistant import config_entries
from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.const import PERCENTAGE, UnitOfElectricCurrent, UnitOfSoundPressure, UnitOfTemperature
from homeassistant.core import HomeAssistant

from .const import DOMAIN, HEALTH_STATES
from .coordinator import HvacCoordinator
from .entity import FleetEntity, StatusEntity
from .presentation import (
    activity_label,
    celsius_to_fahrenheit,
    health_band,
    health_color,
    health_label,
    health_state_color,
)

_LOGGER = logging.getLogger(__name__)


class HvacFleetTemperatureSensor(FleetEntity, SensorEntity):
    """Live temperature as reported in the fleet listing."""

    _attr_device_class = SensorDeviceClass.TEMPERATURE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = UnitOfTemperature.CELSIUS
    _attr_icon = "mdi:thermometer"

    def __init__(self, hub: HvacCoordinator, company_id: str | None, mac: str) -> None:
        super().__init__(hub, company_id, mac, "temperature")
        self._attr_name = f"{mac} Temperature"

    @property
    def available(self) -> bool:
        return self.snapshot is not None

    @property
    def native_value(self) -> float | None:
        snapshot = self.snapshot
        return snapshot.live_temp if snapshot is not None else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        snapshot = self.snapshot
        if snapshot is None:
            return {}
        return {
            "temperature_f": celsius_to_fahrenheit(snapshot.live_temp) if snapshot.live_temp is not None else None,
            "activity": activity_label(snapshot.live_temp),
            "company_id": snapshot.company_id,
        }


class HvacFleetHealthStateSensor(FleetEntity, SensorEntity):
    """Backend health state (OK / Warning / Critical / Offline)."""

    _attr_device_class = SensorDeviceClass.ENUM
    _attr_icon = "mdi:heart-pulse"

    def __init__(self, hub: HvacCoordinator, company_id: str | None, mac: str) -> None:
        super().__init__(hub, company_id, mac, "health_state")
        self._attr_name = f"{mac} Health State"

    @property
    def available(self) -> bool:
        return self.snapshot is not None

    @property
    def options(self) -> list[str]:
        options = list(HEALTH_STATES)
        snapshot = self.snapshot
        # Unknown states are shown as-is rather than rejected
        if snapshot is not None and snapshot.health_state and snapshot.health_state not in options:
            options.append(snapshot.health_state)
        return options

    @property
    def native_value(self) -> str | None:
        snapshot = self.snapshot
        return snapshot.health_state if snapshot is not None else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        snapshot = self.snapshot
        return {"color": health_state_color(snapshot.health_state if snapshot is not None else None)}


class HvacHealthScoreSensor(StatusEntity, SensorEntity):
    """Backend health score 0-100 with its presentation band."""

    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = PERCENTAGE
    _attr_icon = "mdi:stethoscope"

    def __init__(self, hub: HvacCoordinator, company_id: str | None, mac: str, source: str | None) -> None:
        super().__init__(hub, company_id, mac, "health_score", source)
        self._attr_name = f"{mac} Health Score"

    @property
    def available(self) -> bool:
        return self.snapshot is not None

    @property
    def native_value(self) -> float | None:
        snapshot = self.snapshot
        return snapshot.health_score if snapshot is not None else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        snapshot = self.snapshot
        if snapshot is None or snapshot.health_score is None:
            return {}
        score = snapshot.health_score
        return {
            "band": health_band(score),
            "color": health_color(score),
            "label": health_label(score),
            "ui_message": snapshot.ui_message,
        }


class HvacCurrentSensor(StatusEntity, SensorEntity):
    """Compressor current draw."""

    _attr_device_class = SensorDeviceClass.CURRENT
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = UnitOfElectricCurrent.AMPERE
    _attr_icon = "mdi:current-ac"

    def __init__(self, hub: HvacCoordinator, company_id: str | None, mac: str, source: str | None) -> None:
        super().__init__(hub, company_id, mac, "current", source)
        self._attr_name = f"{mac} Current"

    @property
    def available(self) -> bool:
        return self.sensors is not None

    @property
    def native_value(self) -> float | None:
        sensors = self.sensors
        return sensors.current_amp if sensors is not None else None


class HvacNoiseSensor(StatusEntity, SensorEntity):
    """Unit noise level."""

    _attr_device_class = SensorDeviceClass.SOUND_PRESSURE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = UnitOfSoundPressure.DECIBEL
    _attr_icon = "mdi:volume-high"

    def __init__(self, hub: HvacCoordinator, company_id: str | None, mac: str, source: str | None) -> None:
        super().__init__(hub, company_id, mac, "noise", source)
        self._attr_name = f"{mac} Noise"

    @property
    def available(self) -> bool:
        return self.sensors is not None

    @property
    def native_value(self) -> float | None:
        sensors = self.sensors
        return sensors.noise_db if sensors is not None else None


async def async_setup_entry(
    hass: HomeAssistant, config_entry: config_entries.ConfigEntry, async_add_entities
):
    """Add sensors for every device the session can see."""
    hub: HvacCoordinator = hass.data[DOMAIN][config_entry.entry_id]

    entities: list[SensorEntity] = []
    for company_id, mac in hub.fleet_keys():
        entities.append(HvacFleetTemperatureSensor(hub, company_id, mac))
        entities.append(HvacFleetHealthStateSensor(hub, company_id, mac))
    for company_id, mac, source in hub.status_sources():
        entities.append(HvacHealthScoreSensor(hub, company_id, mac, source))
        entities.append(HvacCurrentSensor(hub, company_id, mac, source))
        entities.append(HvacNoiseSensor(hub, company_id, mac, source))

    if entities:
        async_add_entities(entities)
