"""
Role-based navigation tree.

Decides which views a session may open and which company scopes its fleet
queries cover. Presence of a session is the only authenticated/unauthenticated
switch; the role picks the graph inside the authenticated side.
"""
from __future__ import annotations

from .const import (
    ADMIN_SCOPES,
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    VIEW_CUSTOMER_DASHBOARD,
    VIEW_DEVICE_LIST,
    VIEW_LOGIN,
    VIEW_MONITORING,
    VIEW_NOTIFICATIONS,
    VIEW_PROFILE,
    VIEW_REPORTS,
    VIEW_SCAN_DEVICE,
    VIEW_SETUP_WIZARD,
)
from .models import User

UNAUTHENTICATED_VIEWS = [VIEW_LOGIN]

CUSTOMER_VIEWS = [
    VIEW_CUSTOMER_DASHBOARD,
    VIEW_PROFILE,
    VIEW_NOTIFICATIONS,
    VIEW_REPORTS,
]

STAFF_VIEWS = [
    VIEW_DEVICE_LIST,
    VIEW_MONITORING,
    VIEW_SETUP_WIZARD,
    VIEW_SCAN_DEVICE,
    VIEW_PROFILE,
    VIEW_NOTIFICATIONS,
    VIEW_REPORTS,
]


def views_for(user: User | None) -> list[str]:
    """Views reachable for a session; the first entry is the landing view."""
    if user is None:
        return list(UNAUTHENTICATED_VIEWS)
    if user.role == ROLE_CUSTOMER:
        return list(CUSTOMER_VIEWS)
    return list(STAFF_VIEWS)


def fleet_scopes(user: User) -> list[str]:
    """Company ids a fleet listing covers for this user, in fetch order."""
    if user.role == ROLE_ADMIN:
        return list(ADMIN_SCOPES)
    if user.role == ROLE_CUSTOMER or not user.company_id:
        return []
    return [user.company_id]


def can_register_devices(user: User | None) -> bool:
    return VIEW_SETUP_WIZARD in views_for(user)
