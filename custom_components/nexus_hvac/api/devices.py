"""
Low-level device data fetching from the NEXUS HVAC backend.

Responsible for:
- Fetching live status, history and fleet listings
- Mapping the JSON response fields onto DeviceSnapshot instances
"""
import logging

from custom_components.nexus_hvac.const import REPORT_RANGES
from custom_components.nexus_hvac.models import DeviceSnapshot, FleetListing
from custom_components.nexus_hvac.requests import InvalidResponseError, build_url, make_request

_LOGGER = logging.getLogger(__name__)


async def fetch_device_status(base_url: str, device_id: str) -> DeviceSnapshot:
    """
    Fetch the live status of a single device.

    Corresponding CURL command:
    curl -X 'GET' '{BASE_URL}/api/v1/devices/{DeviceID}/status'
    """
    url = build_url(base_url, f"api/v1/devices/{device_id}/status")
    raw_json = await make_request("GET", url)
    if not isinstance(raw_json, dict):
        raise InvalidResponseError(f"Unexpected status payload for {device_id}: {raw_json!r}")
    return DeviceSnapshot.from_status_json(device_id, raw_json)


async def fetch_device_history(base_url: str, device_id: str, range_: str = "1d"):
    """
    Fetch the history series of a device. The payload shape is backend-defined
    and returned as-is. range_ is a backend range ("1d") or a report range name ("week").

    Corresponding CURL command:
    curl -X 'GET' '{BASE_URL}/api/v1/devices/{DeviceID}/history?range=1d'
    """
    url = build_url(base_url, f"api/v1/devices/{device_id}/history")
    return await make_request("GET", url, params={"range": REPORT_RANGES.get(range_, range_)})


async def fetch_fleet(base_url: str, company_id: str) -> FleetListing:
    """
    Fetch every device of one company, in backend order.

    Corresponding CURL command:
    curl -X 'GET' '{BASE_URL}/api/v1/devices/fleet/{CompanyID}'
    """
    url = build_url(base_url, f"api/v1/devices/fleet/{company_id}")
    raw_json = await make_request("GET", url)
    if not isinstance(raw_json, list):
        raise InvalidResponseError(f"Fleet listing for {company_id} is not a list: {raw_json!r}")

    listing = []
    for device in raw_json:
        if not isinstance(device, dict) or not device.get("mac"):
            raise InvalidResponseError(f"Fleet entry without mac for {company_id}: {device!r}")
        listing.append(DeviceSnapshot.from_fleet_json(device))
    return listing


async def fetch_customer_device(base_url: str, customer_id: str) -> DeviceSnapshot:
    """
    Fetch the status of the device assigned to a customer.

    Corresponding CURL command:
    curl -X 'GET' '{BASE_URL}/api/customer/{CustomerID}/device'
    """
    url = build_url(base_url, f"api/customer/{customer_id}/device")
    raw_json = await make_request("GET", url)
    if not isinstance(raw_json, dict):
        raise InvalidResponseError(f"Unexpected device payload for customer {customer_id}: {raw_json!r}")
    return DeviceSnapshot.from_status_json(str(raw_json.get("mac", customer_id)), raw_json)
