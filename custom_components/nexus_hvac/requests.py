"""
Low-level HTTP request library for NEXUS HVAC backend communication.
This module handles all HTTP requests against the configured base URL and maps
transport failures onto a small exception taxonomy. It never retries; callers decide.
"""
import asyncio
import logging

import aiohttp

from .const import REQUEST_TIMEOUT

_LOGGER = logging.getLogger(__name__)

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class HvacApiError(Exception):
    """Base class for every error raised while talking to the backend."""


class NetworkError(HvacApiError):
    """Backend host unreachable or connection dropped."""


class RequestTimeoutError(HvacApiError, TimeoutError):
    """Request did not complete within REQUEST_TIMEOUT."""


class HttpError(HvacApiError):
    """Exception raised when the backend answers with a non-2xx status."""
    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}: {body[:200]}")


class InvalidResponseError(HvacApiError):
    """Successful status, but the body is not what the caller expected."""


def build_url(base_url: str, path: str) -> str:
    """Join the base URL and a relative path with exactly one slash."""
    return base_url.rstrip("/") + "/" + path.lstrip("/")


async def check_backend_availability(base_url: str, timeout: int = REQUEST_TIMEOUT) -> bool:
    """
    Check if the backend is reachable at all.

    Any HTTP answer (even 404) means the host is up; only transport
    failures count as unreachable.
    """
    try:
        timeout_config = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=timeout_config) as session:
            async with session.get(base_url) as response:
                _LOGGER.debug("Backend %s answered with status %s", base_url, response.status)
                return True
    except (asyncio.TimeoutError, TimeoutError):
        _LOGGER.warning("Timeout while checking backend %s", base_url)
        return False
    except aiohttp.ClientError as e:
        _LOGGER.warning("Backend %s is not reachable: %s", base_url, e)
        return False


async def make_request(
    method: str,
    url: str,
    payload: dict = None,
    params: dict = None,
    timeout: int = REQUEST_TIMEOUT,
    expect_json: bool = True,
):
    """
    Make a single HTTP request and return the parsed response.

    Args:
        method: HTTP method (GET or POST)
        url: Absolute target URL
        payload: JSON payload for POST requests (optional)
        params: URL query parameters (optional)
        timeout: Total timeout in seconds
        expect_json: When False, a non-JSON 2xx body is returned as text

    Returns:
        Parsed JSON response (or text, see expect_json)

    Raises:
        RequestTimeoutError: If the request exceeds the timeout
        NetworkError: If the host cannot be reached
        HttpError: If the backend answers with a non-2xx status
        InvalidResponseError: If a 2xx body cannot be parsed
    """
    method = method.upper()
    if method not in ("GET", "POST"):
        raise ValueError(f"Unsupported HTTP method: {method}")

    timeout_config = aiohttp.ClientTimeout(total=timeout)
    try:
        async with aiohttp.ClientSession(timeout=timeout_config) as session:
            async with session.request(
                method, url, headers=JSON_HEADERS, json=payload, params=params
            ) as response:
                return await _process_response(response, url, expect_json)
    except (asyncio.TimeoutError, TimeoutError) as e:
        _LOGGER.warning("Timeout on %s request to %s after %ss", method, url, timeout)
        raise RequestTimeoutError(f"{method} {url} timed out after {timeout}s") from e
    except HvacApiError:
        raise
    except aiohttp.ClientError as e:
        _LOGGER.warning("Network error on %s request to %s: %s", method, url, e)
        raise NetworkError(str(e)) from e


async def _process_response(response, url: str, expect_json: bool):
    """
    Process HTTP response and extract its body.

    Args:
        response: aiohttp response object
        url: Request URL (for logging)
        expect_json: Whether a non-JSON 2xx body is an error

    Returns:
        Parsed JSON, or text when expect_json is False and the body is not JSON
    """
    text = await response.text()

    if not 200 <= response.status < 300:
        _LOGGER.debug(
            "Error response from %s: status %s, body preview: %s",
            url, response.status, text[:200]
        )
        raise HttpError(response.status, text)

    content_type = response.headers.get("Content-Type", "")
    if "application/json" in content_type:
        try:
            return await response.json()
        except (aiohttp.ContentTypeError, ValueError) as e:
            raise InvalidResponseError(f"Invalid JSON from {url}: {e}") from e

    if expect_json:
        _LOGGER.warning(
            "Unexpected content type in successful response: %s (status %s) from %s",
            content_type, response.status, url
        )
        raise InvalidResponseError(f"Expected JSON but got {content_type}: {text[:200]}")
    return text
