"""HTTP tests over the FastAPI app with an injected in-memory snapshot."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import BIRMINGHAM, MANCHESTER, at, make_job, make_offer, make_request
from liftmatch.api.main import create_app
from liftmatch.core.routing_engine.polyline import encode_polyline
from liftmatch.domain.models import CheckInEvent, Coordinate
from liftmatch.infrastructure.memory_store import InMemoryNotificationSink, InMemorySnapshot

NEAR_MANCHESTER = Coordinate(MANCHESTER.lat + 0.01, MANCHESTER.lng)
ROUTE = encode_polyline([BIRMINGHAM, Coordinate(52.98, -2.07), MANCHESTER])


@pytest.fixture
def sink() -> InMemoryNotificationSink:
    return InMemoryNotificationSink()


@pytest.fixture
def client(drivers, sink) -> TestClient:
    now = datetime.now(timezone.utc)
    snapshot = InMemorySnapshot(
        offers=[make_offer("o1", when=at(14))],
        requests=[make_request("r1", when=at(14, 30))],
        jobs=[
            make_job("j1", "user-1", end=at(17)),
            make_job("j2", "user-2", dst=NEAR_MANCHESTER, end=at(17, 20)),
        ],
        check_in_events=[
            CheckInEvent("j1", MANCHESTER, now - timedelta(hours=1)),
            CheckInEvent("j2", NEAR_MANCHESTER, now - timedelta(hours=2), kind="check-out"),
        ],
        drivers=list(drivers.values()),
    )
    return TestClient(create_app(snapshot, sink))


def test_root(client) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestMatching:
    def test_requests_for_offer(self, client) -> None:
        response = client.get("/matching/offers/o1/requests")
        assert response.status_code == 200
        body = response.json()
        assert [(item["id"], item["match_score"]) for item in body] == [("r1", 95)]

    def test_offers_for_request(self, client) -> None:
        response = client.get("/matching/requests/r1/offers")
        assert response.status_code == 200
        assert response.json()[0]["id"] == "o1"

    @pytest.mark.parametrize("path", ["/matching/offers/nope/requests", "/matching/requests/nope/offers"])
    def test_unknown_id_is_404(self, client, path: str) -> None:
        response = client.get(path)
        assert response.status_code == 404
        assert "not found" in response.json()["detail"]


class TestFindMatches:
    def test_nearby_drivers(self, client) -> None:
        response = client.post("/lift-requests/find-matches", json={"lat": MANCHESTER.lat, "lng": MANCHESTER.lng})
        assert response.status_code == 200
        body = response.json()
        assert [item["driver"]["name"] for item in body] == ["John Smith", "Sarah Johnson"]
        assert body[0]["distance_km"] == 0.0
        assert body[1]["kind"] == "check-out"

    def test_limits(self, client) -> None:
        response = client.post(
            "/lift-requests/find-matches",
            json={"lat": MANCHESTER.lat, "lng": MANCHESTER.lng, "max_distance_km": 0.5, "hours_ago": 4},
        )
        assert [item["job_id"] for item in response.json()] == ["j1"]

    def test_invalid_coordinate_is_400(self, client) -> None:
        response = client.post("/lift-requests/find-matches", json={"lat": 123.0, "lng": 0.0})
        assert response.status_code == 400

    def test_missing_field_is_422(self, client) -> None:
        assert client.post("/lift-requests/find-matches", json={"lat": 53.0}).status_code == 422

    def test_recent_check_ins(self, client) -> None:
        response = client.get("/jobs/recent-check-ins", params={"hours": 1.5})
        assert response.status_code == 200
        assert [item["job_id"] for item in response.json()] == ["j1"]



class TestLastLocation:
    def test_check_out_position(self, client) -> None:
        response = client.get("/users/user-2/last-location")
        assert response.status_code == 200
        body = response.json()
        assert body["job_id"] == "j2"
        assert body["kind"] == "check-out"
        assert (body["lat"], body["lng"]) == (NEAR_MANCHESTER.lat, NEAR_MANCHESTER.lng)

    def test_unknown_user_is_null(self, client) -> None:
        response = client.get("/users/nobody/last-location")
        assert response.status_code == 200
        assert response.json() is None


class TestScheduleCollisions:
    def test_publishes_and_returns_both_directions(self, client, sink) -> None:
        response = client.post("/jobs/j1/schedule-collisions")
        assert response.status_code == 200
        body = response.json()
        assert [item["userId"] for item in body] == ["user-1", "user-2"]
        assert [item["matchedWith"] for item in body] == ["Sarah Johnson", "John Smith"]
        assert len(sink.published) == 2

    def test_unknown_job_is_404(self, client, sink) -> None:
        assert client.post("/jobs/nope/schedule-collisions").status_code == 404
        assert sink.published == []


class TestPlanRoute:
    BODY = {
        "driver_id": "d1",
        "date": "2025-01-15",
        "legs": [{"leg_id": "L1", "pickup": {"lat": 52.0, "lng": -1.0}, "dropoff": {"lat": 52.5, "lng": -1.0}}],
        "preferences": {"start_time": "2025-01-15T12:00:00", "start": {"lat": 52.0, "lng": -1.0}},
    }

    def test_plan(self, client) -> None:
        response = client.post("/ai/plan-route", json=self.BODY)
        assert response.status_code == 200
        body = response.json()
        assert body["plan_id"] == "plan_d1_2025-01-15"
        assert body["route"]["drive_minutes"] == 48
        assert body["route"]["distance_km"] == pytest.approx(55.6, abs=0.1)
        assert body["route"]["polyline"].startswith("enc:")
        (item,) = body["itinerary"]
        assert item["leg_id"] == "L1"
        assert item["dropoff_eta"] == "2025-01-15T12:48:00"
        assert item["advisories"] == []
        (window,) = body["suggested_meet_windows"]
        assert window["window_start"] == "2025-01-15T12:41:00"
        assert window["window_end"] == "2025-01-15T12:55:00"
        assert window["nearby_corridor"] == {"lat": 52.5, "lng": -1.0, "radius_miles": 5.0}
        assert window["reason"] == "Dropoff of L1 expected 12:41-12:55"

    def test_no_legs(self, client) -> None:
        response = client.post("/ai/plan-route", json={**self.BODY, "legs": []})
        assert response.status_code == 200
        assert response.json()["itinerary"] == []
        assert response.json()["route"]["polyline"] == ""
        assert response.json()["suggested_meet_windows"] == []

    def test_bad_start_time_is_400(self, client) -> None:
        body = {**self.BODY, "preferences": {"start_time": "soon"}}
        assert client.post("/ai/plan-route", json=body).status_code == 400

    def test_bad_leg_coordinate_is_400(self, client) -> None:
        body = {**self.BODY, "legs": [{"pickup": {"lat": 52.0, "lng": -1.0}, "dropoff": {"lat": 95.0, "lng": -1.0}}]}
        assert client.post("/ai/plan-route", json=body).status_code == 400


class TestDriverDensity:
    def test_density(self, client) -> None:
        response = client.post(
            "/ai/driver-density",
            json={
                "route_polyline": ROUTE,
                "time_window_start": "2025-03-10T13:00:00Z",
                "time_window_end": "2025-03-10T15:00:00Z",
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["active_driver_count"] == 2
        assert body["predicted_available_in_window"] == 2
        assert body["label"] == "Low"
        assert len(body["hotspots"]) == 1

    def test_window_end_defaults_to_two_hours(self, client) -> None:
        response = client.post(
            "/ai/driver-density",
            json={"route_polyline": ROUTE, "time_window_start": "2025-03-10T12:30:00Z"},
        )
        assert response.json()["predicted_available_in_window"] == 2

    def test_inverted_window_is_400(self, client) -> None:
        response = client.post(
            "/ai/driver-density",
            json={
                "route_polyline": ROUTE,
                "time_window_start": "2025-03-10T15:00:00Z",
                "time_window_end": "2025-03-10T13:00:00Z",
            },
        )
        assert response.status_code == 400

    def test_malformed_polyline_is_400(self, client) -> None:
        response = client.post(
            "/ai/driver-density",
            json={"route_polyline": "enc:%%%", "time_window_start": "2025-03-10T13:00:00Z"},
        )
        assert response.status_code == 400
