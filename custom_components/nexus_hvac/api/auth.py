"""
Authentication logic for the NEXUS HVAC backend.

Responsible for:
- Logging customers in through the backend's customer login endpoint
- Matching legacy role identifiers against a static seed table
- Picking the right credential directory for an identifier
"""
from __future__ import annotations

import hmac
import logging
from typing import Protocol

from custom_components.nexus_hvac.const import ROLE_ADMIN, ROLE_TECHNICIAN
from custom_components.nexus_hvac.models import MalformedStoredSession, User
from custom_components.nexus_hvac.requests import HvacApiError, build_url, make_request

_LOGGER = logging.getLogger(__name__)


class InvalidCredentials(HvacApiError):
    """The identifier/secret pair was rejected."""


# Seed directory for non-email identifiers. Test fixtures and demo installs only.
STATIC_CREDENTIALS: dict[str, tuple[str, dict]] = {
    "admin": ("supersecret", {"id": "admin", "name": "Administrator", "role": ROLE_ADMIN}),
    "hvac_a": ("manager", {"id": "HVAC_A", "name": "HVAC_A Manager", "role": ROLE_TECHNICIAN, "companyId": "HVAC_A"}),
    "hvac_b": ("manager", {"id": "HVAC_B", "name": "HVAC_B Manager", "role": ROLE_TECHNICIAN, "companyId": "HVAC_B"}),
}


class CredentialDirectory(Protocol):
    """Anything that can turn an identifier/secret pair into a User."""

    async def authenticate(self, identifier: str, secret: str) -> User:
        ...


class RemoteProvider:
    """Delegates authentication to the backend's customer login."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url

    async def authenticate(self, identifier: str, secret: str) -> User:
        """
        Log a customer in and return the user record from the backend.

        Corresponding CURL command:
        curl -X 'POST' '{BASE_URL}/api/customer/login' \\
          -H 'Content-Type: application/json' \\
          -d '{"email": "EMAIL", "password": "PASSWORD"}'
        """
        url = build_url(self.base_url, "api/customer/login")
        try:
            json_response = await make_request("POST", url, payload={"email": identifier, "password": secret})
        except HvacApiError as e:
            _LOGGER.error("Customer login failed for %s: %s", identifier, e)
            raise InvalidCredentials("Invalid credentials") from e

        if not isinstance(json_response, dict) or not json_response.get("success"):
            _LOGGER.error("Customer login rejected for %s", identifier)
            raise InvalidCredentials("Invalid credentials")
        try:
            return User.from_dict(json_response.get("user"))
        except MalformedStoredSession as e:
            _LOGGER.error("Customer login returned an unusable user record: %s", e)
            raise InvalidCredentials("Invalid credentials") from e


class StaticTableProvider:
    """Matches identifiers case-insensitively against a fixed table."""

    def __init__(self, table: dict[str, tuple[str, dict]] | None = None) -> None:
        self._table = {k.lower(): v for k, v in (table or STATIC_CREDENTIALS).items()}

    async def authenticate(self, identifier: str, secret: str) -> User:
        entry = self._table.get(identifier.strip().lower())
        if entry is None:
            raise InvalidCredentials("Invalid credentials")
        expected_secret, record = entry
        if not hmac.compare_digest(expected_secret.encode(), secret.encode()):
            raise InvalidCredentials("Invalid credentials")
        return User.from_dict(record)


class AuthResolver:
    """
    Resolves a login to a User.

    Email-shaped identifiers go to the remote directory, everything else
    to the static one. First match wins; no fallback between the two.
    """

    def __init__(self, remote: CredentialDirectory, static: CredentialDirectory | None = None) -> None:
        self.remote = remote
        self.static = static or StaticTableProvider()

    @classmethod
    def for_backend(cls, base_url: str) -> AuthResolver:
        return cls(RemoteProvider(base_url), StaticTableProvider())

    def directory_for(self, identifier: str) -> CredentialDirectory:
        return self.remote if "@" in identifier else self.static

    async def login(self, identifier: str, secret: str) -> User:
        if not identifier or not identifier.strip() or not secret:
            raise InvalidCredentials("Identifier and password are required")
        user = await self.directory_for(identifier).authenticate(identifier.strip(), secret)
        _LOGGER.debug("Logged in %s as %s", identifier, user.role)
        return user
