"""Config flow for NEXUS HVAC integration."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .access import can_register_devices
from .api.auth import AuthResolver, InvalidCredentials
from .const import (
    API_BASE_URL,
    CONF_BASE_URL,
    CONF_IDENTIFIER,
    CONF_PASSWORD,
    DOMAIN,
    STEP_CONFIRM,
    STEP_DEVICE,
    STEP_WIFI_PASSWORD,
    STEP_WIFI_SSID,
)
from .requests import HvacApiError, check_backend_availability
from .wizard import RegistrationWizard, WizardValidationError

_LOGGER = logging.getLogger(__name__)


def _credentials_schema(identifier: str = '', password: str = '', base_url: str = API_BASE_URL) -> vol.Schema:
    return vol.Schema(
        {
            vol.Required(CONF_IDENTIFIER, default=identifier): cv.string,
            vol.Required(CONF_PASSWORD, default=password): cv.string,
            vol.Required(CONF_BASE_URL, default=base_url): cv.url,
        }
    )


def _required_field_errors(user_input: Dict[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    # If identifier is null or empty string, add error
    if not user_input.get(CONF_IDENTIFIER) or not user_input[CONF_IDENTIFIER].strip():
        errors['base'] = 'identifier_required'
    # If password is null or empty string, add error
    if not user_input.get(CONF_PASSWORD):
        errors['base'] = 'password_required'
    return errors


async def _validate_credentials(base_url: str, identifier: str, password: str) -> str | None:
    """
    Try to log in. Returns None on success, otherwise the error key
    ('invalid_auth' or 'cannot_connect').
    """
    try:
        await AuthResolver.for_backend(base_url).login(identifier, password)
    except InvalidCredentials:
        # Remote logins fold transport errors into InvalidCredentials;
        # tell the two apart for the form.
        if "@" in identifier and not await check_backend_availability(base_url):
            return 'cannot_connect'
        return 'invalid_auth'
    except HvacApiError as e:
        _LOGGER.error("Error while validating credentials: %s", e)
        return 'cannot_connect'
    return None


class CustomFlow(config_entries.ConfigFlow, domain=DOMAIN):
    data: Optional[Dict[str, Any]]

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            self.data = dict(user_input)
            self.data[CONF_IDENTIFIER] = (self.data.get(CONF_IDENTIFIER) or '').strip()
            self.data.setdefault(CONF_BASE_URL, API_BASE_URL)
            errors = _required_field_errors(self.data)
            if not errors:
                self._async_abort_entries_match({CONF_IDENTIFIER: self.data[CONF_IDENTIFIER]})
                error = await _validate_credentials(
                    self.data[CONF_BASE_URL], self.data[CONF_IDENTIFIER], self.data[CONF_PASSWORD]
                )
                if error:
                    errors['base'] = error
            if not errors:
                return self.async_create_entry(title=self.data[CONF_IDENTIFIER], data=self.data)

        return self.async_show_form(step_id="user", data_schema=_credentials_schema(), errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Get the options flow for this handler."""
        return OptionsFlowHandler()


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Account editing and the device registration wizard."""

    _wizard: RegistrationWizard | None = None

    @property
    def _coordinator(self):
        return self.hass.data.get(DOMAIN, {}).get(self.config_entry.entry_id)

    @property
    def _base_url(self) -> str:
        return self.config_entry.data.get(CONF_BASE_URL) or API_BASE_URL

    async def async_step_init(self, user_input: Dict[str, Any] = None):
        coordinator = self._coordinator
        if coordinator is not None and can_register_devices(coordinator.user):
            return self.async_show_menu(step_id="init", menu_options=["account", "register_device"])
        return await self.async_step_account()

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def async_step_account(self, user_input: Dict[str, Any] = None):
        errors: Dict[str, str] = {}
        data = self.config_entry.data

        if user_input is not None:
            new_data = {
                CONF_IDENTIFIER: (user_input.get(CONF_IDENTIFIER) or '').strip(),
                CONF_PASSWORD: user_input.get(CONF_PASSWORD) or '',
                CONF_BASE_URL: user_input.get(CONF_BASE_URL) or API_BASE_URL,
            }
            errors = _required_field_errors(new_data)
            if not errors:
                error = await _validate_credentials(
                    new_data[CONF_BASE_URL], new_data[CONF_IDENTIFIER], new_data[CONF_PASSWORD]
                )
                if error:
                    errors['base'] = error
            if not errors:
                # Drop the old session; the reload logs in with the new credentials.
                coordinator = self._coordinator
                if coordinator is not None:
                    await coordinator.session.async_logout()
                self.hass.config_entries.async_update_entry(
                    self.config_entry, data=new_data, title=new_data[CONF_IDENTIFIER]
                )
                return self.async_create_entry(title="", data=dict(self.config_entry.options))

        schema = _credentials_schema(
            data.get(CONF_IDENTIFIER, ''), data.get(CONF_PASSWORD, ''), data.get(CONF_BASE_URL) or API_BASE_URL
        )
        return self.async_show_form(step_id="account", data_schema=schema, errors=errors)

    # ------------------------------------------------------------------
    # Registration wizard
    # ------------------------------------------------------------------

    async def async_step_register_device(self, user_input: Dict[str, Any] = None):
        coordinator = self._coordinator
        if coordinator is None or not can_register_devices(coordinator.user):
            return self.async_abort(reason="registration_not_allowed")
        self._wizard = RegistrationWizard(coordinator.user.company_id)
        return await self.async_step_device()

    async def _async_wizard_step(self, step: str, field: str, user_input: Dict[str, Any] | None, next_step):
        errors: Dict[str, str] = {}
        if user_input is not None:
            try:
                self._wizard.submit(step, user_input.get(field))
            except WizardValidationError as e:
                errors['base'] = e.error_key
            else:
                return await next_step()

        schema = vol.Schema({vol.Required(field, default=self._wizard.values[field]): cv.string})
        return self.async_show_form(step_id=step, data_schema=schema, errors=errors)

    async def async_step_device(self, user_input: Dict[str, Any] = None):
        return await self._async_wizard_step(STEP_DEVICE, "device_mac", user_input, self.async_step_wifi_ssid)

    async def async_step_wifi_ssid(self, user_input: Dict[str, Any] = None):
        return await self._async_wizard_step(STEP_WIFI_SSID, "wifi_ssid", user_input, self.async_step_wifi_password)

    async def async_step_wifi_password(self, user_input: Dict[str, Any] = None):
        return await self._async_wizard_step(STEP_WIFI_PASSWORD, "wifi_password", user_input, self.async_step_confirm)

    async def async_step_confirm(self, user_input: Dict[str, Any] = None):
        errors: Dict[str, str] = {}
        if user_input is not None:
            try:
                await self._wizard.async_complete(self._base_url)
            except HvacApiError as e:
                _LOGGER.error("Failed to register device %s: %s", self._wizard.values["device_mac"], e)
                errors['base'] = 'register_failed'
            else:
                return self.async_create_entry(title="", data=dict(self.config_entry.options))

        summary = {k: str(v or '') for k, v in self._wizard.summary().items()}
        return self.async_show_form(
            step_id=STEP_CONFIRM,
            data_schema=vol.Schema({}),
            errors=errors,
            description_placeholders=summary,
        )
