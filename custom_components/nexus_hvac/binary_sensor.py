"""
Platform for HVAC binary sensor integration.
This module is responsible for setting up the compressor running sensor for every
device with live status and updating it from its status coordinator.
"""
from __future__ import annotations

import logging
from typing import Any

from homeassistant import config_entries
from homeassistant.components.binary_sensor import BinarySensorDeviceClass, BinarySensorEntity
from homeassistant.core import HomeAssistant

from .const import DOMAIN
from .coordinator import HvacCoordinator
from .entity import StatusEntity
from .presentation import compressor_label

_LOGGER = logging.getLogger(__name__)


class HvacCompressorSensor(StatusEntity, BinarySensorEntity):
    """
    Compressor running state of a device.
    Takes the data from the status coordinator of the device (or the customer's own device).
    """

    _attr_device_class = BinarySensorDeviceClass.RUNNING

    def __init__(self, hub: HvacCoordinator, company_id: str | None, mac: str, source: str | None) -> None:
        super().__init__(hub, company_id, mac, "compressor", source)
        self._attr_name = f"{mac} Compressor"

    @property
    def available(self) -> bool:
        return self.sensors is not None

    @property
    def is_on(self) -> bool | None:
        sensors = self.sensors
        return sensors.compressor_state if sensors is not None else None

    @property
    def icon(self) -> str | None:
        if self.is_on:
            return "mdi:hvac"
        return "mdi:hvac-off"

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        sensors = self.sensors
        if sensors is None:
            return {}
        return {"label": compressor_label(sensors.compressor_state)}


async def async_setup_entry(
    hass: HomeAssistant, config_entry: config_entries.ConfigEntry, async_add_entities
):
    """Add a compressor sensor for every device with live status."""
    hub: HvacCoordinator = hass.data[DOMAIN][config_entry.entry_id]

    entities = [
        HvacCompressorSensor(hub, company_id, mac, source)
        for company_id, mac, source in hub.status_sources()
    ]
    if entities:
        async_add_entities(entities)
