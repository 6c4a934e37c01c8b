"""
Device registration call used by the setup wizard.
"""
import logging

from custom_components.nexus_hvac.requests import build_url, make_request

_LOGGER = logging.getLogger(__name__)


async def register_device(base_url: str, ssid: str, password: str, company_id: str | None):
    """
    Hand WiFi credentials and the owning company to a device.

    The acknowledgement is implementation-defined: parsed JSON when the
    endpoint answers with JSON, the raw text otherwise.

    Corresponding CURL command:
    curl -X 'GET' '{BASE_URL}/save?ssid=SSID&pass=PASSWORD&cid=COMPANY'
    """
    url = build_url(base_url, "save")
    params = {
        "ssid": ssid,
        "pass": password,
        "cid": company_id or "",
    }
    ack = await make_request("GET", url, params=params, expect_json=False)
    _LOGGER.debug("Device registration for company %s acknowledged: %s", company_id, ack)
    return ack
