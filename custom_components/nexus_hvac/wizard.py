"""
Four-step device registration wizard: device → WiFi SSID → WiFi password → confirm.

Pure state machine; the options flow renders each step and the last step
calls the registration endpoint.
"""
from __future__ import annotations

import logging

from .api.provisioning import register_device
from .const import STEP_CONFIRM, STEP_DEVICE, STEP_WIFI_PASSWORD, STEP_WIFI_SSID, WIZARD_STEPS

_LOGGER = logging.getLogger(__name__)

# step → (field, error key used when the field is blank)
STEP_FIELDS: dict[str, tuple[str, str]] = {
    STEP_DEVICE: ("device_mac", "device_mac_required"),
    STEP_WIFI_SSID: ("wifi_ssid", "wifi_ssid_required"),
    STEP_WIFI_PASSWORD: ("wifi_password", "wifi_password_required"),
}


class WizardValidationError(ValueError):
    """A step was submitted with an invalid value."""
    def __init__(self, field: str, error_key: str):
        self.field = field
        self.error_key = error_key
        super().__init__(f"{field}: {error_key}")


def normalize_mac(raw: str) -> str:
    """Typed or scanned device identifiers are stored trimmed and upper-cased."""
    return (raw or "").strip().upper()


class RegistrationWizard:
    """Linear wizard; each step must be submitted before the next one."""

    def __init__(self, company_id: str | None, device_mac: str = "") -> None:
        self.company_id = company_id
        self.values: dict[str, str] = {
            "device_mac": normalize_mac(device_mac),
            "wifi_ssid": "",
            "wifi_password": "",
        }
        self._index = 0

    @property
    def step(self) -> str:
        return WIZARD_STEPS[self._index]

    @property
    def step_number(self) -> int:
        return self._index + 1

    @property
    def is_last_step(self) -> bool:
        return self.step == STEP_CONFIRM

    def submit(self, step: str, value: str | None = None) -> str:
        """
        Validate the value for the current step and advance.

        Returns the new current step. Submitting the confirm step does not
        advance; call async_complete() instead.
        """
        if step != self.step:
            raise ValueError(f"Wizard is on step '{self.step}', not '{step}'")
        if step in STEP_FIELDS:
            field, error_key = STEP_FIELDS[step]
            if value is None or not value.strip():
                raise WizardValidationError(field, error_key)
            self.values[field] = normalize_mac(value) if field == "device_mac" else value
        if not self.is_last_step:
            self._index += 1
        return self.step

    def summary(self) -> dict[str, str | None]:
        """Details shown on the confirm step. The password is not echoed."""
        return {
            "device_mac": self.values["device_mac"],
            "wifi_ssid": self.values["wifi_ssid"],
            "company_id": self.company_id,
        }

    async def async_complete(self, base_url: str):
        """Send the WiFi credentials to the device; only valid on the confirm step."""
        if not self.is_last_step:
            raise ValueError(f"Cannot complete registration on step '{self.step}'")
        _LOGGER.debug("Registering device %s for company %s", self.values["device_mac"], self.company_id)
        return await register_device(
            base_url,
            self.values["wifi_ssid"],
            self.values["wifi_password"],
            self.company_id,
        )
