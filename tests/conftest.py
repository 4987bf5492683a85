"""Shared fixtures: a few UK points and factories for offers, requests, jobs."""

from datetime import datetime, timedelta, timezone

import pytest

from liftmatch.domain.models import CheckInEvent, Coordinate, DriverProfile, Job, Offer, Request

BIRMINGHAM = Coordinate(52.4862, -1.8904)
MANCHESTER = Coordinate(53.4808, -2.2426)
LONDON = Coordinate(51.5074, -0.1278)
LEEDS = Coordinate(53.7960, -1.5491)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0) -> datetime:
    return NOW.replace(hour=hour, minute=minute)


def make_offer(
    offer_id: str = "o1",
    src: Coordinate = BIRMINGHAM,
    dst: Coordinate = MANCHESTER,
    when: datetime | None = None,
    status: str = "available",
) -> Offer:
    return Offer(
        id=offer_id,
        from_coord=src,
        to_coord=dst,
        departure_time=when or at(14),
        available_seats=2,
        status=status,
        driver_id="user-1",
    )


def make_request(
    request_id: str = "r1",
    src: Coordinate = BIRMINGHAM,
    dst: Coordinate = MANCHESTER,
    when: datetime | None = None,
    status: str = "pending",
) -> Request:
    return Request(
        id=request_id,
        from_coord=src,
        to_coord=dst,
        requested_time=when or at(14),
        status=status,
        requester_id="user-2",
    )


def make_job(
    job_id: str,
    user_id: str,
    dst: Coordinate = MANCHESTER,
    end: datetime | None = None,
    location: str = "Manchester Piccadilly",
) -> Job:
    end = end or at(17)
    return Job(
        id=job_id,
        user_id=user_id,
        from_coord=BIRMINGHAM,
        to_coord=dst,
        estimated_start_time=end - timedelta(hours=2),
        estimated_end_time=end,
        to_location=location,
    )


def make_event(entity_id: str, coord: Coordinate, hours_ago: float, now: datetime = NOW) -> CheckInEvent:
    return CheckInEvent(entity_id=entity_id, coord=coord, timestamp=now - timedelta(hours=hours_ago))


@pytest.fixture
def drivers() -> dict[str, DriverProfile]:
    return {
        "user-1": DriverProfile(id="user-1", name="John Smith", rating=4.8, verified=True),
        "user-2": DriverProfile(id="user-2", name="Sarah Johnson", rating=4.9, verified=True),
        "user-3": DriverProfile(id="user-3", name="Mike Williams", rating=4.7),
    }


@pytest.fixture
def resolve_owner(drivers):
    """entity_id 'job-<user>' -> that user's profile; anything else unresolvable."""

    def _resolve(entity_id: str):
        return drivers.get(entity_id.removeprefix("job-"))

    return _resolve
