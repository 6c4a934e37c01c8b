"""
DataUpdateCoordinators for the NEXUS HVAC integration.

Responsibilities:
- Poll each resource on its own DataUpdateCoordinator:
    fleet listing     every LIST_INTERVAL seconds (fanned out over the user's scopes)
    customer device   every LIST_INTERVAL seconds
    device status     every MONITOR_INTERVAL seconds, one coordinator per device
- A coordinator only schedules ticks while it has listeners (entities), so a
  view that goes away stops its polling.
- HvacCoordinator owns every coordinator of a config entry, plus lookups and
  the one-shot history read.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import TypeVar

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .access import fleet_scopes, views_for
from .api.devices import fetch_customer_device, fetch_device_history, fetch_device_status, fetch_fleet
from .const import (
    DEFAULT_REPORT_RANGE,
    DOMAIN,
    LIST_INTERVAL,
    MANUFACTURER,
    MONITOR_INTERVAL,
    VERSION,
    VIEW_CUSTOMER_DASHBOARD,
    VIEW_DEVICE_LIST,
    VIEW_MONITORING,
)
from .models import DeviceSnapshot, FleetListing, User
from .requests import HvacApiError
from .session import SessionManager

_LOGGER = logging.getLogger(__name__)

_DataT = TypeVar("_DataT")


class HvacDataCoordinator(DataUpdateCoordinator[_DataT]):
    """
    One polled resource. Subclasses implement _async_fetch().

    At most one fetch is in flight: a refresh that starts while another is
    fetching waits for it first. A failed fetch raises UpdateFailed, which
    keeps the previous data. Results that arrive after shutdown are dropped.
    """

    def __init__(self, hub: HvacCoordinator, name: str, interval: float) -> None:
        super().__init__(
            hub.hass,
            _LOGGER,
            config_entry=hub.config_entry,
            name=name,
            update_interval=timedelta(seconds=interval),
        )
        self.hub = hub
        self._fetch_lock = asyncio.Lock()
        self._stopped = False

    async def _async_fetch(self) -> _DataT:
        raise NotImplementedError

    async def _async_update_data(self) -> _DataT:
        if self._fetch_lock.locked():
            _LOGGER.debug("%s: fetch still in flight, waiting for it", self.name)
        async with self._fetch_lock:
            try:
                result = await self._async_fetch()
            except HvacApiError as exc:
                raise UpdateFailed(f"{self.name}: {exc}") from exc
        if self._stopped:
            _LOGGER.debug("%s: discarding result that arrived after shutdown", self.name)
            return self.data
        return result

    async def async_shutdown(self) -> None:
        self._stopped = True
        await super().async_shutdown()


class FleetCoordinator(HvacDataCoordinator[FleetListing]):
    """Device list of every company the user may see."""

    def __init__(self, hub: HvacCoordinator) -> None:
        super().__init__(hub, f"{DOMAIN}_fleet", LIST_INTERVAL)

    async def _async_fetch(self) -> FleetListing:
        """
        Fetch each scope in turn and concatenate company by company.
        Any failing scope fails the whole tick.
        """
        listing: FleetListing = []
        for company_id in fleet_scopes(self.hub.user):
            listing.extend(await fetch_fleet(self.hub.base_url, company_id))
        return listing


class CustomerDeviceCoordinator(HvacDataCoordinator[DeviceSnapshot]):
    """Status of the device assigned to a customer."""

    def __init__(self, hub: HvacCoordinator) -> None:
        super().__init__(hub, f"{DOMAIN}_customer_device", LIST_INTERVAL)

    async def _async_fetch(self) -> DeviceSnapshot:
        return await fetch_customer_device(self.hub.base_url, self.hub.user.id)


class DeviceStatusCoordinator(HvacDataCoordinator[DeviceSnapshot]):
    """Live status of one device, for the monitoring view."""

    def __init__(self, hub: HvacCoordinator, mac: str) -> None:
        super().__init__(hub, f"{DOMAIN}_status_{mac}", MONITOR_INTERVAL)
        self.mac = mac

    async def _async_fetch(self) -> DeviceSnapshot:
        return await fetch_device_status(self.hub.base_url, self.mac)


class HvacCoordinator:
    """Owns every coordinator of one signed-in session."""

    def __init__(
        self,
        hass: HomeAssistant,
        base_url: str,
        session: SessionManager,
        config_entry: ConfigEntry | None = None,
    ) -> None:
        if session.user is None:
            raise ValueError("HvacCoordinator needs an authenticated session")
        self.hass = hass
        self.base_url = base_url
        self.session = session
        self.config_entry = config_entry

        self.fleet_coordinator = FleetCoordinator(self)
        self.customer_coordinator = CustomerDeviceCoordinator(self)
        # mac → status coordinator, created on first use
        self._status_coordinators: dict[str, DeviceStatusCoordinator] = {}

    @property
    def user(self) -> User:
        return self.session.user

    @property
    def views(self) -> list[str]:
        return views_for(self.user)

    def status_coordinator(self, mac: str) -> DeviceStatusCoordinator:
        """Return (creating if needed) the live status coordinator of one device."""
        coordinator = self._status_coordinators.get(mac)
        if coordinator is None:
            coordinator = DeviceStatusCoordinator(self, mac)
            self._status_coordinators[mac] = coordinator
        return coordinator

    @property
    def coordinators(self) -> list[HvacDataCoordinator]:
        return [self.fleet_coordinator, self.customer_coordinator, *self._status_coordinators.values()]

    async def async_fetch_history(self, mac: str, range_: str = DEFAULT_REPORT_RANGE):
        """One-shot history read for the reports view; never polled."""
        return await fetch_device_history(self.base_url, mac, range_)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_fleet_device(self, company_id: str | None, mac: str) -> DeviceSnapshot | None:
        for device in self.fleet_coordinator.data or []:
            if device.key == (company_id, mac):
                return device
        return None

    def get_status(self, mac: str | None) -> DeviceSnapshot | None:
        if mac is None:
            return self.customer_coordinator.data
        coordinator = self._status_coordinators.get(mac)
        return coordinator.data if coordinator is not None else None

    def fleet_keys(self) -> list[tuple[str | None, str]]:
        """Distinct (company_id, mac) pairs of the current listing, in listing order."""
        keys: list[tuple[str | None, str]] = []
        for device in self.fleet_coordinator.data or []:
            if device.key not in keys:
                keys.append(device.key)
        return keys

    def status_sources(self) -> list[tuple[str | None, str, str | None]]:
        """
        (company_id, mac, source) for every device that gets live status
        entities. source is the mac to poll, or None for the customer's own device.
        """
        views = self.views
        sources: list[tuple[str | None, str, str | None]] = []
        if VIEW_MONITORING in views:
            sources.extend((company_id, mac, mac) for company_id, mac in self.fleet_keys())
        if VIEW_CUSTOMER_DASHBOARD in views:
            device = self.customer_coordinator.data
            mac = device.mac if device is not None else (self.user.assigned_device or self.user.id)
            sources.append((self.user.company_id, mac, None))
        return sources

    def get_device_info(self, company_id: str | None, mac: str) -> dict:
        """Return the HA DeviceInfo dict for a device."""
        return {
            "identifiers": {(DOMAIN, f"{company_id}_{mac}")},
            "name": f"HVAC {mac}",
            "manufacturer": MANUFACTURER,
            "model": company_id or "Unknown",
            "sw_version": VERSION,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_first_refresh(self) -> None:
        """One tick of every coordinator the role needs, so entities can be enumerated."""
        views = self.views
        if VIEW_DEVICE_LIST in views:
            await self.fleet_coordinator.async_refresh()
        if VIEW_CUSTOMER_DASHBOARD in views:
            await self.customer_coordinator.async_refresh()

    async def async_shutdown(self) -> None:
        """Stop every coordinator owned by this entry."""
        for coordinator in self.coordinators:
            await coordinator.async_shutdown()
        self._status_coordinators.clear()
