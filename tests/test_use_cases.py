"""Tests for the application use cases over the in-memory snapshot."""

from datetime import datetime, timedelta

import pytest

from conftest import MANCHESTER, NOW, at, make_event, make_job, make_offer, make_request
from liftmatch.application.use_cases.find_drivers import find_nearby_drivers, last_location, recent_check_ins
from liftmatch.application.use_cases.match_lifts import match_offers_for_request, match_requests_for_offer
from liftmatch.application.use_cases.notify_collisions import UNKNOWN_DRIVER, notify_schedule_collisions
from liftmatch.application.use_cases.plan_route import (
    analyze_route_density,
    plan_driver_route,
    suggest_meet_windows_for_plan,
)
from liftmatch.core.routing_engine.polyline import decode_polyline, encode_polyline
from liftmatch.domain.errors import EntityNotFound
from liftmatch.domain.models import Coordinate, Leg
from liftmatch.infrastructure.memory_store import InMemoryNotificationSink, InMemorySnapshot

NEAR_MANCHESTER = Coordinate(MANCHESTER.lat + 0.01, MANCHESTER.lng)


@pytest.fixture
def snapshot(drivers) -> InMemorySnapshot:
    return InMemorySnapshot(
        offers=[make_offer("o1", when=at(14)), make_offer("o2", when=at(15))],
        requests=[make_request("r1", when=at(14, 30))],
        jobs=[
            make_job("j1", "user-1", end=at(17)),
            make_job("j2", "user-2", dst=NEAR_MANCHESTER, end=at(17, 20)),
            make_job("j3", "user-3", dst=NEAR_MANCHESTER, end=at(20)),
        ],
        check_in_events=[
            make_event("j1", MANCHESTER, hours_ago=1),
            make_event("j2", NEAR_MANCHESTER, hours_ago=2),
            make_event("j-orphan", MANCHESTER, hours_ago=1),
        ],
        drivers=list(drivers.values()),
    )


class TestMatchLifts:
    def test_requests_for_offer(self, snapshot) -> None:
        ranked = match_requests_for_offer("o1", snapshot)
        assert [(s.request.id, s.match_score) for s in ranked] == [("r1", 95)]

    def test_offers_for_request(self, snapshot) -> None:
        ranked = match_offers_for_request("r1", snapshot)
        assert [s.offer.id for s in ranked] == ["o1", "o2"]
        assert ranked[0].match_score == ranked[1].match_score == 95

    @pytest.mark.parametrize("func", [match_requests_for_offer, match_offers_for_request])
    def test_unknown_id(self, snapshot, func) -> None:
        with pytest.raises(EntityNotFound):
            func("missing", snapshot)


class TestFindDrivers:
    def test_nearby_resolves_job_owner(self, snapshot) -> None:
        found = find_nearby_drivers(MANCHESTER, snapshot, snapshot, now=NOW)
        assert [n.driver.id for n in found] == ["user-1", "user-2"]

    def test_nearby_respects_explicit_limits(self, snapshot) -> None:
        found = find_nearby_drivers(MANCHESTER, snapshot, snapshot, max_distance_km=0.5, max_age_hours=4, now=NOW)
        assert [n.event.entity_id for n in found] == ["j1"]

    def test_recent_check_ins_skip_unresolved(self, snapshot) -> None:
        pairs = recent_check_ins(snapshot, snapshot, hours=4, now=NOW)
        assert [(e.entity_id, d.id) for e, d in pairs] == [("j1", "user-1"), ("j2", "user-2")]

    def test_recent_check_ins_window(self, snapshot) -> None:
        pairs = recent_check_ins(snapshot, snapshot, hours=1.5, now=NOW)
        assert [e.entity_id for e, _ in pairs] == ["j1"]

    def test_last_location_is_newest_event(self, snapshot) -> None:
        snapshot.check_in_events.append(make_event("j1", NEAR_MANCHESTER, hours_ago=0.25))
        event = last_location("user-1", snapshot, snapshot)
        assert event.entity_id == "j1"
        assert event.coord == NEAR_MANCHESTER

    def test_last_location_none(self, snapshot) -> None:
        assert last_location("user-3", snapshot, snapshot) is None
        assert last_location("nobody", snapshot, snapshot) is None


class TestNotifyScheduleCollisions:
    def test_publishes_both_directions(self, snapshot) -> None:
        sink = InMemoryNotificationSink()
        payloads = notify_schedule_collisions("j1", snapshot, snapshot, sink)

        assert sink.published == payloads
        assert len(payloads) == 2
        forward, reverse = payloads
        assert forward["type"] == "schedule-match"
        assert (forward["userId"], forward["matchedUserId"], forward["matchedWith"]) == (
            "user-1",
            "user-2",
            "Sarah Johnson",
        )
        assert (reverse["userId"], reverse["matchedUserId"], reverse["matchedWith"]) == (
            "user-2",
            "user-1",
            "John Smith",
        )
        assert forward["time"] == "17:00"
        assert forward["distance"] == pytest.approx(1.11, abs=0.01)
        assert forward["message"] == "Schedule match! You'll both be near Manchester Piccadilly around 17:00"

    def test_unknown_driver_name(self, snapshot) -> None:
        snapshot.drivers = [d for d in snapshot.drivers if d.id != "user-2"]
        payloads = notify_schedule_collisions("j1", snapshot, snapshot, InMemoryNotificationSink())
        assert payloads[0]["matchedWith"] == UNKNOWN_DRIVER
        assert payloads[1]["matchedWith"] == "John Smith"

    def test_no_collisions_publishes_nothing(self, snapshot) -> None:
        sink = InMemoryNotificationSink()
        assert notify_schedule_collisions("j3", snapshot, snapshot, sink) == []
        assert sink.published == []

    def test_unknown_job(self, snapshot) -> None:
        with pytest.raises(EntityNotFound):
            notify_schedule_collisions("nope", snapshot, snapshot, InMemoryNotificationSink())


class TestPlanDriverRoute:
    LEGS = [
        Leg("a", Coordinate(52.5, -1.0), Coordinate(53.0, -1.0)),
        Leg("c", Coordinate(53.05, -1.0), Coordinate(53.5, -1.0)),
        Leg("b", Coordinate(52.1, -1.0), Coordinate(52.45, -1.0)),
    ]

    def test_no_legs(self) -> None:
        plan = plan_driver_route([], start_time="2025-01-15T10:00:00")
        assert plan.ordered_legs == []
        assert plan.encoded_polyline == ""

    def test_optimised_from_explicit_start(self) -> None:
        plan = plan_driver_route(self.LEGS, start=Coordinate(52.0, -1.0), start_time="2025-01-15T10:00:00")
        assert [leg.id for leg in plan.ordered_legs] == ["b", "a", "c"]

    def test_defaults_to_first_pickup(self) -> None:
        plan = plan_driver_route(self.LEGS, start_time="2025-01-15T10:00:00")
        assert decode_polyline(plan.encoded_polyline)[0] == Coordinate(52.5, -1.0)
        assert plan.ordered_legs[0].id == "a"

    def test_keep_given_order(self) -> None:
        plan = plan_driver_route(
            self.LEGS, start=Coordinate(52.0, -1.0), start_time="2025-01-15T10:00:00", optimize_order=False
        )
        assert [leg.id for leg in plan.ordered_legs] == ["a", "c", "b"]
        assert [e.leg_id for e in plan.leg_etas] == ["a", "c", "b"]
        assert len(decode_polyline(plan.encoded_polyline)) == 7
        start = datetime(2025, 1, 15, 10, 0)
        assert plan.leg_etas[-1].dropoff_eta == start + timedelta(minutes=plan.total_duration_minutes)


class TestAnalyzeRouteDensity:
    ROUTE = encode_polyline([Coordinate(52.4862, -1.8904), Coordinate(52.98, -2.07), MANCHESTER])

    def test_counts_snapshot_offers_and_requests(self, snapshot) -> None:
        report = analyze_route_density(self.ROUTE, snapshot, at(13), at(15))
        assert report.active_driver_count == 3
        assert report.predicted_available_in_window == 3

    def test_radius_override(self, snapshot) -> None:
        report = analyze_route_density(self.ROUTE, snapshot, at(13), at(15), corridor_radius_miles=0.0)
        # offers and requests start exactly on the first vertex
        assert report.active_driver_count == 3

    def test_bearing_override(self, snapshot) -> None:
        snapshot.offers.append(make_offer("o-back", src=MANCHESTER, dst=Coordinate(52.4862, -1.8904)))
        assert analyze_route_density(self.ROUTE, snapshot, at(13), at(15)).active_driver_count == 3
        report = analyze_route_density(self.ROUTE, snapshot, at(13), at(15), min_bearing_match_deg=180.0)
        assert report.active_driver_count == 4


class TestSuggestMeetWindowsForPlan:
    DROPOFF = Coordinate(52.5, -1.0)

    def _plan(self):
        return plan_driver_route(
            [Leg("L1", Coordinate(52.0, -1.0), self.DROPOFF)], start_time="2025-01-15T12:00:00"
        )

    def test_hotspot_at_dropoff_becomes_corridor(self, snapshot) -> None:
        north = Coordinate(53.5, -1.0)
        snapshot.offers += [
            make_offer("n1", src=self.DROPOFF, dst=north),
            make_offer("n2", src=Coordinate(52.51, -1.0), dst=north),
        ]
        (window,) = suggest_meet_windows_for_plan(self._plan(), snapshot)
        assert window.center.lat == pytest.approx(52.505, abs=1e-6)
        assert window.center.lng == pytest.approx(-1.0)
        assert window.radius_miles < 1.0
        assert window.reason.startswith("2 compatible drivers")

    def test_no_hotspot_falls_back_to_dropoff(self, snapshot) -> None:
        (window,) = suggest_meet_windows_for_plan(self._plan(), snapshot)
        assert window.center == self.DROPOFF
        assert window.window_start == datetime(2025, 1, 15, 12, 41)

    def test_empty_plan(self, snapshot) -> None:
        assert suggest_meet_windows_for_plan(plan_driver_route([]), snapshot) == []
