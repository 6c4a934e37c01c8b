"""
Tests for the NEXUS HVAC coordinators: role-based fan-out, per-resource
polling lifecycle, failure handling and the HvacCoordinator lookups.

Polling is driven by calling async_refresh() directly; hass.loop is a mock,
so a scheduled tick shows up as a call_at() handle in _unsub_refresh.
"""

from __future__ import annotations

import asyncio
import contextlib
import unittest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

from homeassistant.helpers.update_coordinator import UpdateFailed

from custom_components.nexus_hvac.coordinator import HvacCoordinator
from custom_components.nexus_hvac.const import DOMAIN, LIST_INTERVAL, MONITOR_INTERVAL
from custom_components.nexus_hvac.requests import HttpError, NetworkError

from .test_common import (
    BASE_URL,
    make_coordinator,
    make_fleet_device,
    make_hass,
    make_session,
    make_status,
    make_user,
)

FETCH_FLEET = "custom_components.nexus_hvac.coordinator.fetch_fleet"
FETCH_STATUS = "custom_components.nexus_hvac.coordinator.fetch_device_status"
FETCH_CUSTOMER = "custom_components.nexus_hvac.coordinator.fetch_customer_device"

FLEET_A = [
    make_fleet_device("AA:00", "HVAC_A"),
    make_fleet_device("AA:01", "HVAC_A"),
]
FLEET_B = [
    make_fleet_device("BB:00", "HVAC_B"),
    make_fleet_device("AA:00", "HVAC_B"),
    make_fleet_device("BB:02", "HVAC_B"),
]


def _fleet_by_company(base_url, company_id):
    return {"HVAC_A": list(FLEET_A), "HVAC_B": list(FLEET_B)}[company_id]


class TestCoordinatorInit(unittest.TestCase):

    def test_requires_session(self):
        with self.assertRaises(ValueError):
            HvacCoordinator(make_hass(), BASE_URL, make_session(None))

    def test_update_intervals(self):
        hub = make_coordinator()
        self.assertEqual(hub.fleet_coordinator.update_interval, timedelta(seconds=LIST_INTERVAL))
        self.assertEqual(hub.customer_coordinator.update_interval, timedelta(seconds=LIST_INTERVAL))
        self.assertEqual(hub.status_coordinator("AA:00").update_interval, timedelta(seconds=MONITOR_INTERVAL))

    def test_starts_without_data(self):
        hub = make_coordinator()
        self.assertIsNone(hub.fleet_coordinator.data)
        self.assertEqual(hub.fleet_keys(), [])
        self.assertIsNone(hub.get_status("AA:00"))


class TestFleetFanOut(unittest.IsolatedAsyncioTestCase):

    async def test_admin_concatenates_companies_in_order(self):
        hub = make_coordinator(make_user("admin"))
        with patch(FETCH_FLEET, new=AsyncMock(side_effect=_fleet_by_company)) as mock_fetch:
            await hub.fleet_coordinator.async_refresh()

        self.assertEqual([c.args for c in mock_fetch.await_args_list], [(BASE_URL, "HVAC_A"), (BASE_URL, "HVAC_B")])
        self.assertEqual(len(hub.fleet_coordinator.data), len(FLEET_A) + len(FLEET_B))
        self.assertEqual(hub.fleet_coordinator.data, FLEET_A + FLEET_B)
        self.assertTrue(hub.fleet_coordinator.last_update_success)

    async def test_technician_fetches_own_company_only(self):
        hub = make_coordinator(make_user("technician", company_id="HVAC_B"))
        with patch(FETCH_FLEET, new=AsyncMock(side_effect=_fleet_by_company)) as mock_fetch:
            await hub.fleet_coordinator.async_refresh()

        mock_fetch.assert_awaited_once_with(BASE_URL, "HVAC_B")
        self.assertEqual(hub.fleet_coordinator.data, FLEET_B)

    async def test_failing_scope_keeps_previous_listing(self):
        hub = make_coordinator(make_user("admin"))
        with patch(FETCH_FLEET, new=AsyncMock(side_effect=_fleet_by_company)):
            await hub.fleet_coordinator.async_refresh()
        previous = hub.fleet_coordinator.data

        with patch(FETCH_FLEET, new=AsyncMock(side_effect=[list(FLEET_A), HttpError(500, "boom")])):
            await hub.fleet_coordinator.async_refresh()

        self.assertIs(hub.fleet_coordinator.data, previous)
        self.assertEqual(hub.fleet_coordinator.data, FLEET_A + FLEET_B)
        self.assertFalse(hub.fleet_coordinator.last_update_success)
        self.assertIsInstance(hub.fleet_coordinator.last_exception, UpdateFailed)
        self.assertIsInstance(hub.fleet_coordinator.last_exception.__cause__, HttpError)

    async def test_duplicate_macs_are_distinct_devices(self):
        hub = make_coordinator(make_user("admin"))
        with patch(FETCH_FLEET, new=AsyncMock(side_effect=_fleet_by_company)):
            await hub.fleet_coordinator.async_refresh()

        keys = hub.fleet_keys()
        self.assertIn(("HVAC_A", "AA:00"), keys)
        self.assertIn(("HVAC_B", "AA:00"), keys)
        self.assertEqual(len(keys), 5)
        self.assertEqual(hub.get_fleet_device("HVAC_B", "AA:00").company_id, "HVAC_B")
        self.assertIsNone(hub.get_fleet_device("HVAC_B", "AA:01"))


class TestPollingLifecycle(unittest.IsolatedAsyncioTestCase):

    async def test_no_tick_scheduled_without_listeners(self):
        hub = make_coordinator()
        with patch(FETCH_FLEET, new=AsyncMock(return_value=list(FLEET_A))):
            await hub.fleet_coordinator.async_refresh()

        self.assertIsNone(hub.fleet_coordinator._unsub_refresh)
        hub.hass.loop.call_at.assert_not_called()

    async def test_first_listener_schedules_last_one_unschedules(self):
        hub = make_coordinator()
        coordinator = hub.fleet_coordinator

        remove_a = coordinator.async_add_listener(MagicMock())
        remove_b = coordinator.async_add_listener(MagicMock())
        self.assertIsNotNone(coordinator._unsub_refresh)
        self.assertEqual(hub.hass.loop.call_at.call_count, 1)

        remove_a()
        self.assertIsNotNone(coordinator._unsub_refresh)

        remove_b()
        self.assertIsNone(coordinator._unsub_refresh)
        hub.hass.loop.call_at.return_value.cancel.assert_called()

    async def test_rescheduled_when_a_listener_returns(self):
        coordinator = make_coordinator().fleet_coordinator

        coordinator.async_add_listener(MagicMock())()
        self.assertIsNone(coordinator._unsub_refresh)

        remove = coordinator.async_add_listener(MagicMock())
        self.assertIsNotNone(coordinator._unsub_refresh)
        remove()

    async def test_each_tick_schedules_the_next_while_watched(self):
        hub = make_coordinator()
        coordinator = hub.status_coordinator("AA:00")
        listener = MagicMock()
        remove = coordinator.async_add_listener(listener)

        with patch(FETCH_STATUS, new=AsyncMock(return_value=make_status("AA:00"))):
            await coordinator.async_refresh()
            await coordinator.async_refresh()

        self.assertEqual(listener.call_count, 2)
        self.assertEqual(hub.hass.loop.call_at.call_count, 3)
        self.assertIsNotNone(coordinator._unsub_refresh)
        remove()

    async def test_listener_error_does_not_stop_polling(self):
        coordinator = make_coordinator().fleet_coordinator
        healthy = MagicMock()
        coordinator.async_add_listener(MagicMock(side_effect=RuntimeError("state write failed")))
        coordinator.async_add_listener(healthy)

        with patch(FETCH_FLEET, new=AsyncMock(side_effect=[list(FLEET_A), list(FLEET_B)])) as mock_fetch:
            with contextlib.suppress(RuntimeError):
                await coordinator.async_refresh()
            self.assertEqual(coordinator.data, FLEET_A)
            self.assertIsNotNone(coordinator._unsub_refresh)

            with contextlib.suppress(RuntimeError):
                await coordinator.async_refresh()

        self.assertEqual(mock_fetch.await_count, 2)
        self.assertEqual(coordinator.data, FLEET_B)
        self.assertIsNotNone(coordinator._unsub_refresh)

    async def test_failed_tick_keeps_stale_data_and_recovers(self):
        coordinator = make_coordinator().fleet_coordinator
        coordinator.async_add_listener(MagicMock())

        with patch(FETCH_FLEET, new=AsyncMock(side_effect=[["stale"], NetworkError("down"), ["fresh"]])):
            await coordinator.async_refresh()
            await coordinator.async_refresh()
            self.assertEqual(coordinator.data, ["stale"])
            self.assertFalse(coordinator.last_update_success)
            self.assertIsNotNone(coordinator._unsub_refresh)

            await coordinator.async_refresh()

        self.assertEqual(coordinator.data, ["fresh"])
        self.assertTrue(coordinator.last_update_success)

    async def test_at_most_one_fetch_in_flight(self):
        coordinator = make_coordinator().fleet_coordinator
        release = asyncio.Event()
        active = 0
        peak = 0

        async def slow_fetch(base_url, company_id):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await release.wait()
            active -= 1
            return list(FLEET_A)

        with patch(FETCH_FLEET, new=AsyncMock(side_effect=slow_fetch)) as mock_fetch:
            first = asyncio.ensure_future(coordinator.async_refresh())
            second = asyncio.ensure_future(coordinator.async_refresh())
            for _ in range(5):
                await asyncio.sleep(0)
            self.assertEqual(mock_fetch.await_count, 1)

            release.set()
            await asyncio.gather(first, second)

        self.assertEqual(peak, 1)
        self.assertEqual(mock_fetch.await_count, 2)
        self.assertEqual(coordinator.data, FLEET_A)

    async def test_result_after_shutdown_is_discarded(self):
        coordinator = make_coordinator().fleet_coordinator
        release = asyncio.Event()

        async def slow_fetch(base_url, company_id):
            await release.wait()
            return ["late"]

        with patch(FETCH_FLEET, new=AsyncMock(side_effect=slow_fetch)):
            pending = asyncio.ensure_future(coordinator.async_refresh())
            await asyncio.sleep(0)

            await coordinator.async_shutdown()
            release.set()
            await pending

        self.assertIsNone(coordinator.data)


class TestStatusAndCustomer(unittest.IsolatedAsyncioTestCase):

    async def test_status_coordinator_polls_one_device(self):
        hub = make_coordinator()
        status = make_status("AA:00", health_score=75)

        with patch(FETCH_STATUS, new=AsyncMock(return_value=status)) as mock_fetch:
            await hub.status_coordinator("AA:00").async_refresh()

        mock_fetch.assert_awaited_once_with(BASE_URL, "AA:00")
        self.assertIs(hub.get_status("AA:00"), status)
        self.assertIsNone(hub.get_status("AA:01"))

    async def test_status_coordinators_are_shared_per_device(self):
        hub = make_coordinator()
        self.assertIs(hub.status_coordinator("AA:00"), hub.status_coordinator("AA:00"))
        self.assertIsNot(hub.status_coordinator("AA:00"), hub.status_coordinator("AA:01"))

    async def test_customer_coordinator_reads_own_device(self):
        user = make_user("customer")
        hub = make_coordinator(user)
        device = make_status("AA:BB:CC:00:00:01")

        with patch(FETCH_CUSTOMER, new=AsyncMock(return_value=device)) as mock_fetch:
            await hub.customer_coordinator.async_refresh()

        mock_fetch.assert_awaited_once_with(BASE_URL, user.id)
        self.assertIs(hub.get_status(None), device)

    async def test_first_refresh_by_role(self):
        staff = make_coordinator(make_user("technician"))
        with patch(FETCH_FLEET, new=AsyncMock(return_value=list(FLEET_A))) as mock_fleet, \
                patch(FETCH_CUSTOMER, new=AsyncMock()) as mock_customer:
            await staff.async_first_refresh()
        mock_fleet.assert_awaited_once()
        mock_customer.assert_not_awaited()

        customer = make_coordinator(make_user("customer"))
        with patch(FETCH_FLEET, new=AsyncMock()) as mock_fleet, \
                patch(FETCH_CUSTOMER, new=AsyncMock(return_value=make_status())) as mock_customer:
            await customer.async_first_refresh()
        mock_fleet.assert_not_awaited()
        mock_customer.assert_awaited_once()

    async def test_first_refresh_survives_network_error(self):
        hub = make_coordinator()
        with patch(FETCH_FLEET, new=AsyncMock(side_effect=NetworkError("down"))):
            await hub.async_first_refresh()

        self.assertEqual(hub.fleet_keys(), [])
        self.assertIsInstance(hub.fleet_coordinator.last_exception.__cause__, NetworkError)

    async def test_history_is_one_shot(self):
        hub = make_coordinator()
        with patch("custom_components.nexus_hvac.coordinator.fetch_device_history",
                   new=AsyncMock(return_value={"points": [1]})) as mock_fetch:
            result = await hub.async_fetch_history("AA:00", "week")

        self.assertEqual(result, {"points": [1]})
        mock_fetch.assert_awaited_once_with(BASE_URL, "AA:00", "week")
        self.assertEqual(hub.coordinators, [hub.fleet_coordinator, hub.customer_coordinator])


class TestStatusSources(unittest.TestCase):

    def test_staff_sources_follow_fleet(self):
        hub = make_coordinator(make_user("admin"))
        hub.fleet_coordinator.data = FLEET_A + FLEET_B

        sources = hub.status_sources()
        self.assertEqual(sources[0], ("HVAC_A", "AA:00", "AA:00"))
        self.assertEqual(len(sources), 5)

    def test_customer_source_before_first_fetch(self):
        user = make_user("customer")
        hub = make_coordinator(user)
        self.assertEqual(hub.status_sources(), [("HVAC_A", user.assigned_device, None)])

    def test_customer_source_uses_fetched_device(self):
        hub = make_coordinator(make_user("customer"))
        hub.customer_coordinator.data = make_status("CC:00")
        self.assertEqual(hub.status_sources(), [("HVAC_A", "CC:00", None)])

    def test_customer_without_assigned_device(self):
        user = make_user("customer", assigned_device=None)
        hub = make_coordinator(user)
        self.assertEqual(hub.status_sources(), [("HVAC_A", user.id, None)])

    def test_device_info(self):
        info = make_coordinator().get_device_info("HVAC_A", "AA:00")
        self.assertEqual(info["identifiers"], {(DOMAIN, "HVAC_A_AA:00")})
        self.assertEqual(info["name"], "HVAC AA:00")


class TestShutdown(unittest.IsolatedAsyncioTestCase):

    async def test_shutdown_stops_every_coordinator(self):
        hub = make_coordinator()
        fleet = hub.fleet_coordinator
        status = hub.status_coordinator("AA:00")
        fleet.async_add_listener(MagicMock())
        status.async_add_listener(MagicMock())

        await hub.async_shutdown()

        self.assertIsNone(fleet._unsub_refresh)
        self.assertIsNone(status._unsub_refresh)
        self.assertNotIn(status, hub.coordinators)

        with patch(FETCH_FLEET, new=AsyncMock(return_value=list(FLEET_A))) as mock_fleet:
            await fleet.async_refresh()
        mock_fleet.assert_not_awaited()
