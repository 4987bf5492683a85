"""
Raw dict -> domain models. Accepts the app's camelCase keys and snake_case.

Coordinates and timestamps are validated here, so bad rows fail with
InvalidCoordinate / InvalidTimeRange before reaching the engines.
"""

from typing import Any, Dict, List, Mapping, Optional

from liftmatch.domain.models import (
    CHECK_IN,
    CHECK_OUT,
    CheckInEvent,
    Coordinate,
    DriverProfile,
    Job,
    Leg,
    Offer,
    Request,
)
from liftmatch.domain.timeutils import parse_timestamp


def _get(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in raw and raw[k] is not None:
            return raw[k]
    return default


def _coord(raw: Mapping[str, Any], prefix: str) -> Coordinate:
    """prefix 'from' -> fromLat/fromLng or from_lat/from_lng."""
    lat = _get(raw, f"{prefix}Lat", f"{prefix}_lat")
    lng = _get(raw, f"{prefix}Lng", f"{prefix}_lng")
    return Coordinate.of(lat, lng)


def _point(raw: Mapping[str, Any]) -> Coordinate:
    """{'lat': .., 'lng': ..} as sent for leg pickups/dropoffs."""
    return Coordinate.of(raw.get("lat"), raw.get("lng"))


def load_offers(raw_offers: List[Mapping[str, Any]]) -> List[Offer]:
    return [
        Offer(
            id=str(raw["id"]),
            from_coord=_coord(raw, "from"),
            to_coord=_coord(raw, "to"),
            departure_time=parse_timestamp(_get(raw, "departureTime", "departure_time")),
            available_seats=int(_get(raw, "availableSeats", "available_seats", default=1)),
            status=str(_get(raw, "status", default="available")),
            driver_id=_get(raw, "driverId", "driver_id"),
            from_location=str(_get(raw, "fromLocation", "from_location", default="")),
            to_location=str(_get(raw, "toLocation", "to_location", default="")),
        )
        for raw in raw_offers
    ]


def load_requests(raw_requests: List[Mapping[str, Any]]) -> List[Request]:
    return [
        Request(
            id=str(raw["id"]),
            from_coord=_coord(raw, "from"),
            to_coord=_coord(raw, "to"),
            requested_time=parse_timestamp(_get(raw, "requestedTime", "requested_time")),
            status=str(_get(raw, "status", default="pending")),
            requester_id=_get(raw, "requesterId", "requester_id"),
            from_location=str(_get(raw, "fromLocation", "from_location", default="")),
            to_location=str(_get(raw, "toLocation", "to_location", default="")),
        )
        for raw in raw_requests
    ]


def load_jobs(
    raw_jobs: List[Mapping[str, Any]],
    schedule_owner: Optional[Mapping[str, str]] = None,
) -> List[Job]:
    """
    Jobs carry their owner either directly (userId) or through their schedule
    (scheduleId -> userId in schedule_owner). Jobs with no resolvable owner
    are skipped: the collision detector cannot tell users apart without it.
    """
    schedule_owner = schedule_owner or {}
    jobs: List[Job] = []
    for raw in raw_jobs:
        user_id = _get(raw, "userId", "user_id")
        if user_id is None:
            user_id = schedule_owner.get(str(_get(raw, "scheduleId", "schedule_id", default="")))
        if user_id is None:
            continue
        jobs.append(
            Job(
                id=str(raw["id"]),
                user_id=str(user_id),
                from_coord=_coord(raw, "from"),
                to_coord=_coord(raw, "to"),
                estimated_start_time=parse_timestamp(_get(raw, "estimatedStartTime", "estimated_start_time")),
                estimated_end_time=parse_timestamp(_get(raw, "estimatedEndTime", "estimated_end_time")),
                to_location=str(_get(raw, "toLocation", "to_location", default="")),
                from_location=str(_get(raw, "fromLocation", "from_location", default="")),
                status=str(_get(raw, "status", default="pending")),
            )
        )
    return jobs


def events_from_jobs(raw_jobs: List[Mapping[str, Any]]) -> List[CheckInEvent]:
    """
    One event per job: its check-out position if the job has been checked out,
    otherwise its check-in position. Jobs with neither produce nothing.
    The event is labelled with the job's destination (check-out) or origin (check-in).
    """
    events: List[CheckInEvent] = []
    for raw in raw_jobs:
        out_lat, out_lng = _get(raw, "checkOutLat", "check_out_lat"), _get(raw, "checkOutLng", "check_out_lng")
        in_lat, in_lng = _get(raw, "checkInLat", "check_in_lat"), _get(raw, "checkInLng", "check_in_lng")
        ended = _get(raw, "actualEndTime", "actual_end_time")
        started = _get(raw, "actualStartTime", "actual_start_time")
        if out_lat is not None and out_lng is not None and ended is not None:
            events.append(
                CheckInEvent(
                    str(raw["id"]),
                    Coordinate.of(out_lat, out_lng),
                    parse_timestamp(ended),
                    CHECK_OUT,
                    str(_get(raw, "toLocation", "to_location", default="")),
                )
            )
        elif in_lat is not None and in_lng is not None and started is not None:
            events.append(
                CheckInEvent(
                    str(raw["id"]),
                    Coordinate.of(in_lat, in_lng),
                    parse_timestamp(started),
                    CHECK_IN,
                    str(_get(raw, "fromLocation", "from_location", default="")),
                )
            )
    return events


def load_drivers(raw_users: List[Mapping[str, Any]]) -> List[DriverProfile]:
    return [
        DriverProfile(
            id=str(raw["id"]),
            name=str(_get(raw, "name", default="")),
            avatar=_get(raw, "avatar"),
            rating=float(raw["rating"]) if raw.get("rating") is not None else None,
            verified=bool(_get(raw, "verified", default=False)),
            call_sign=_get(raw, "callSign", "call_sign"),
        )
        for raw in raw_users
    ]


def load_legs(raw_legs: List[Mapping[str, Any]]) -> List[Leg]:
    return [
        Leg(
            id=str(_get(raw, "leg_id", "legId", "id", default=f"leg_{i}")),
            pickup=_point(raw["pickup"]),
            dropoff=_point(raw["dropoff"]),
            notes=str(_get(raw, "notes", default="")),
        )
        for i, raw in enumerate(raw_legs)
    ]


def schedule_owners(raw_schedules: List[Mapping[str, Any]]) -> Dict[str, str]:
    """scheduleId -> userId. Schedules without an owner are left out."""
    owners: Dict[str, str] = {}
    for s in raw_schedules:
        user_id = _get(s, "userId", "user_id")
        if user_id is not None:
            owners[str(s["id"])] = str(user_id)
    return owners
