"""
Domain models. Dataclasses only. No FastAPI, no external deps beyond dataclasses/typing.

The collections (offers, requests, jobs, check-ins) belong to the storage
collaborator; the core only reads them.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from liftmatch.domain.errors import InvalidCoordinate

CHECK_IN = "check-in"
CHECK_OUT = "check-out"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not _valid_degrees(self.lat, 90.0) or not _valid_degrees(self.lng, 180.0):
            raise InvalidCoordinate(self.lat, self.lng)

    @classmethod
    def of(cls, lat: float, lng: float) -> "Coordinate":
        """Coerce raw numbers (strings from forms included) to a validated Coordinate."""
        try:
            return cls(float(lat), float(lng))
        except (TypeError, ValueError) as e:
            if isinstance(e, InvalidCoordinate):
                raise
            raise InvalidCoordinate(lat, lng) from e

    def as_pair(self) -> Tuple[float, float]:
        return self.lat, self.lng


def _valid_degrees(value: float, limit: float) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and -limit <= value <= limit


@dataclass(frozen=True)
class Offer:
    """Lift offer posted by a driver: route + departure time."""
    id: str
    from_coord: Coordinate
    to_coord: Coordinate
    departure_time: datetime
    available_seats: int = 1
    status: str = "available"
    driver_id: Optional[str] = None
    from_location: str = ""
    to_location: str = ""


@dataclass(frozen=True)
class Request:
    """Lift request: route + requested time."""
    id: str
    from_coord: Coordinate
    to_coord: Coordinate
    requested_time: datetime
    status: str = "pending"
    requester_id: Optional[str] = None
    from_location: str = ""
    to_location: str = ""


@dataclass(frozen=True)
class Job:
    """A delivery in a driver's schedule. Only the end point/time matter for collisions."""
    id: str
    user_id: str
    from_coord: Coordinate
    to_coord: Coordinate
    estimated_start_time: datetime
    estimated_end_time: datetime
    to_location: str = ""
    from_location: str = ""
    status: str = "pending"


@dataclass(frozen=True)
class CheckInEvent:
    entity_id: str
    coord: Coordinate
    timestamp: datetime
    kind: str = CHECK_IN  # check-in | check-out
    location: str = ""


@dataclass(frozen=True)
class Leg:
    id: str
    pickup: Coordinate
    dropoff: Coordinate
    notes: str = ""


@dataclass(frozen=True)
class DriverProfile:
    id: str
    name: str
    avatar: Optional[str] = None
    rating: Optional[float] = None
    verified: bool = False
    call_sign: Optional[str] = None


# --- Results (never persisted, recomputed on every query) ---


@dataclass(frozen=True)
class ScoredRequest:
    request: Request
    match_score: int


@dataclass(frozen=True)
class ScoredOffer:
    offer: Offer
    match_score: int


@dataclass(frozen=True)
class NearbyDriver:
    event: CheckInEvent
    driver: DriverProfile
    distance_km: float


@dataclass(frozen=True)
class ScheduleMatch:
    """One direction of a schedule collision: what `user_id` gets told."""
    user_id: str
    matched_user_id: str
    job_id: str
    matched_job_id: str
    location: str
    time: datetime
    distance_km: float


@dataclass(frozen=True)
class ScheduleCollision:
    """Two jobs of different users ending close in space and time."""
    source_job_id: str
    matched_job_id: str
    distance_km: float
    time_difference_minutes: float
    notifications: Tuple[ScheduleMatch, ScheduleMatch]


@dataclass(frozen=True)
class LegEta:
    leg_id: str
    pickup_eta: datetime
    dropoff_eta: datetime
    eta_low: datetime
    eta_high: datetime
    advisories: Tuple[str, ...] = ()


@dataclass
class RoutePlan:
    ordered_legs: List[Leg]
    leg_etas: List[LegEta]
    total_distance_km: float
    total_duration_minutes: int
    encoded_polyline: str


@dataclass(frozen=True)
class Hotspot:
    center: Coordinate
    radius_miles: float
    score: float
    why: str


@dataclass
class DensityReport:
    density_score: float
    label: str
    active_driver_count: int
    predicted_available_in_window: int
    hotspots: List[Hotspot] = field(default_factory=list)


@dataclass(frozen=True)
class MeetWindow:
    """Where and when a driver could meet others along the planned route."""
    window_start: datetime
    window_end: datetime
    center: Coordinate
    radius_miles: float
    reason: str
    leg_id: str = ""
