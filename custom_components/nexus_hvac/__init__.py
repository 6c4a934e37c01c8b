import logging

import voluptuous as vol

from homeassistant import config_entries, core
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.exceptions import (
    ConfigEntryAuthFailed,
    ConfigEntryNotReady,
    HomeAssistantError,
    ServiceValidationError,
)
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.storage import Store

from .api.auth import AuthResolver, InvalidCredentials
from .const import (
    API_BASE_URL,
    ATTR_MAC,
    ATTR_RANGE,
    CONF_BASE_URL,
    CONF_IDENTIFIER,
    CONF_PASSWORD,
    DEFAULT_REPORT_RANGE,
    DOMAIN,
    REPORT_RANGES,
    SERVICE_FETCH_HISTORY,
    STORAGE_KEY,
    STORAGE_VERSION,
)
from .coordinator import HvacCoordinator
from .requests import HvacApiError
from .session import SessionManager, SessionStore
from .wizard import normalize_mac

PLATFORMS: list[Platform] = [Platform.SENSOR, Platform.BINARY_SENSOR]
_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)

FETCH_HISTORY_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_MAC): cv.string,
        vol.Optional(ATTR_RANGE, default=DEFAULT_REPORT_RANGE): vol.In(list(REPORT_RANGES)),
    }
)


def _session_manager(hass: HomeAssistant) -> SessionManager:
    return SessionManager(SessionStore(Store(hass, STORAGE_VERSION, STORAGE_KEY)))


async def async_setup(hass: core.HomeAssistant, config: dict) -> bool:
    """Set up the integration and its services."""
    hass.data.setdefault(DOMAIN, {})

    async def _async_fetch_history(call: ServiceCall) -> ServiceResponse:
        """Reports view: history of one device over a named range."""
        coordinators = list(hass.data.get(DOMAIN, {}).values())
        if not coordinators:
            raise ServiceValidationError("NEXUS HVAC is not set up")
        mac = normalize_mac(call.data[ATTR_MAC])
        range_ = call.data[ATTR_RANGE]
        try:
            history = await coordinators[0].async_fetch_history(mac, range_)
        except HvacApiError as e:
            raise HomeAssistantError(f"Could not fetch {range_} history of {mac}: {e}") from e
        return {"mac": mac, "range": range_, "history": history}

    hass.services.async_register(
        DOMAIN,
        SERVICE_FETCH_HISTORY,
        _async_fetch_history,
        schema=FETCH_HISTORY_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    return True


async def async_setup_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Set up platform from a ConfigEntry."""
    base_url = entry.data.get(CONF_BASE_URL) or API_BASE_URL
    session = _session_manager(hass)

    user = await session.async_init()
    if user is None:
        try:
            user = await session.async_login(
                AuthResolver.for_backend(base_url),
                entry.data[CONF_IDENTIFIER],
                entry.data[CONF_PASSWORD],
            )
        except InvalidCredentials as e:
            raise ConfigEntryAuthFailed(f"NEXUS HVAC rejected the stored credentials: {e}") from e
        except HvacApiError as e:
            raise ConfigEntryNotReady(f"NEXUS HVAC backend at {base_url} is not reachable: {e}") from e

    coordinator = HvacCoordinator(hass, base_url, session, entry)
    await coordinator.async_first_refresh()

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    entry.async_on_unload(
        entry.add_update_listener(_async_update_listener)
    )
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def _async_update_listener(hass: HomeAssistant, config_entry):
    """Handle config options update."""
    # Reload the integration when the options change.
    await hass.config_entries.async_reload(config_entry.entry_id)


async def async_unload_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> bool:
    """Unload a config entry and shut down every coordinator it owns."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        coordinator: HvacCoordinator | None = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
        if coordinator is not None:
            await coordinator.async_shutdown()
    return unloaded


async def async_remove_entry(
    hass: core.HomeAssistant, entry: config_entries.ConfigEntry
) -> None:
    """Removing the entry is the logout: the stored session is cleared."""
    await _session_manager(hass).async_logout()
    _LOGGER.debug("Session cleared for %s", entry.title)
