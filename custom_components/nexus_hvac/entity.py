"""
Base entities shared by every NEXUS HVAC platform.

An entity is a view on one coordinator: CoordinatorEntity adds it as a listener
when Home Assistant adds it and removes it again on removal, which stops the
coordinator's timer once no view is left. update_entity asks the coordinator
for a refresh.
"""
from __future__ import annotations

import logging

from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .coordinator import HvacCoordinator, HvacDataCoordinator

_LOGGER = logging.getLogger(__name__)


class HvacEntity(CoordinatorEntity[HvacDataCoordinator]):
    """Entity bound to one device and fed by one coordinator."""

    def __init__(
        self,
        hub: HvacCoordinator,
        coordinator: HvacDataCoordinator,
        company_id: str | None,
        mac: str,
        key: str,
    ) -> None:
        super().__init__(coordinator)
        self.hub = hub
        self._company_id = company_id
        self._mac = mac
        self._attr_unique_id = f"{hub.user.id}_{company_id}_{mac}_{key}"

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.hub.get_device_info(self._company_id, self._mac)


class FleetEntity(HvacEntity):
    """Entity fed by the fleet listing."""

    def __init__(self, hub: HvacCoordinator, company_id: str | None, mac: str, key: str) -> None:
        super().__init__(hub, hub.fleet_coordinator, company_id, mac, key)

    @property
    def snapshot(self):
        return self.hub.get_fleet_device(self._company_id, self._mac)


class StatusEntity(HvacEntity):
    """
    Entity fed by a live status coordinator. `source` is the device mac, or
    None for the customer's own device.

    Fleet devices poll every MONITOR_INTERVAL seconds while monitored, so their
    status entities start disabled and are enabled per device. The customer's
    own device is enabled by default.
    """

    def __init__(self, hub: HvacCoordinator, company_id: str | None, mac: str, key: str, source: str | None) -> None:
        coordinator = hub.customer_coordinator if source is None else hub.status_coordinator(source)
        super().__init__(hub, coordinator, company_id, mac, key)
        self._source = source
        self._attr_entity_registry_enabled_default = source is None

    @property
    def snapshot(self):
        return self.hub.get_status(self._source)

    @property
    def sensors(self):
        snapshot = self.snapshot
        return snapshot.sensors if snapshot is not None else None
