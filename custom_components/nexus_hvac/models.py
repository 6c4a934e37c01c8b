"""
Domain models for the NEXUS HVAC integration.

This module contains pure data classes representing users and device readings,
plus the parsers that map backend / stored JSON onto them.
These classes have no dependencies on HTTP, API logic, or Home Assistant internals.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any

from .const import ROLES, ROLE_CUSTOMER

_LOGGER = logging.getLogger(__name__)


class MalformedStoredSession(ValueError):
    """A user record (stored or received) does not have the expected shape."""


@dataclasses.dataclass(frozen=True)
class User:
    """Identity resolved at login; immutable for the lifetime of a session."""

    id: str
    name: str
    role: str
    company_id: str | None = None

    # Customer only
    building_name: str | None = None
    assigned_device: str | None = None
    email: str | None = None

    @property
    def is_customer(self) -> bool:
        return self.role == ROLE_CUSTOMER

    @classmethod
    def from_dict(cls, data: Any) -> User:
        """Build a User from a backend or stored record (camelCase keys)."""
        if not isinstance(data, dict):
            raise MalformedStoredSession(f"User record must be an object, got {type(data).__name__}")
        for key in ("id", "name", "role"):
            if data.get(key) in (None, ""):
                raise MalformedStoredSession(f"User record is missing '{key}'")
        role = str(data["role"]).lower()
        if role not in ROLES:
            raise MalformedStoredSession(f"Unknown role: {data['role']}")

        customer = role == ROLE_CUSTOMER
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            role=role,
            company_id=data.get("companyId"),
            building_name=data.get("buildingName") if customer else None,
            assigned_device=data.get("assignedDevice") if customer else None,
            email=data.get("email") if customer else None,
        )

    def as_dict(self) -> dict:
        """Serialize to the same camelCase record from_dict accepts."""
        record = {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "companyId": self.company_id,
        }
        if self.is_customer:
            record["buildingName"] = self.building_name
            record["assignedDevice"] = self.assigned_device
            record["email"] = self.email
        return record


@dataclasses.dataclass(frozen=True)
class SensorReadings:
    """Raw sensor block of a device status response."""

    temp_c: float | None = None
    current_amp: float | None = None
    noise_db: float | None = None
    compressor_state: bool = False

    @classmethod
    def from_json(cls, data: dict) -> SensorReadings:
        return cls(
            temp_c=_to_float(data.get("temp_c")),
            current_amp=_to_float(data.get("current_amp")),
            noise_db=_to_float(data.get("noise_db")),
            compressor_state=bool(data.get("compressor_state", False)),
        )


@dataclasses.dataclass(frozen=True)
class DeviceSnapshot:
    """
    Point-in-time read of one device.

    Fleet listings fill mac/company_id/live_temp/health_state, status
    responses fill sensors/health_score/ui_message. Never merged with history.
    """

    mac: str
    company_id: str | None = None
    live_temp: float | None = None
    health_state: str | None = None
    sensors: SensorReadings | None = None
    health_score: float | None = None
    ui_message: str | None = None

    @property
    def key(self) -> tuple[str | None, str]:
        """Identity of the device across concatenated company scopes."""
        return self.company_id, self.mac

    @classmethod
    def from_fleet_json(cls, data: dict) -> DeviceSnapshot:
        return cls(
            mac=str(data["mac"]),
            company_id=data.get("companyId"),
            live_temp=_to_float(data.get("liveTemp")),
            health_state=data.get("healthState"),
        )

    @classmethod
    def from_status_json(cls, device_id: str, data: dict) -> DeviceSnapshot:
        sensors = data.get("sensors")
        return cls(
            mac=str(data.get("mac", device_id)),
            company_id=data.get("companyId"),
            live_temp=_to_float(sensors.get("temp_c")) if isinstance(sensors, dict) else None,
            health_state=data.get("healthState"),
            sensors=SensorReadings.from_json(sensors) if isinstance(sensors, dict) else None,
            health_score=_to_float(data.get("health_score")),
            ui_message=data.get("ui_message"),
        )


# Backend order is preserved; duplicates across companies are kept.
FleetListing = list[DeviceSnapshot]


def _to_float(value) -> float | None:
    """Backend sends numbers and numeric strings interchangeably."""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        _LOGGER.debug("Ignoring non-numeric value %r", value)
        return None
