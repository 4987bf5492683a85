"""
Proximity over check-in events: drivers recently active near a point, and
a driver's last known position.

The BallTree (haversine) is built per call over the caller's snapshot; nothing
is cached between calls.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

import numpy as np
from sklearn.neighbors import BallTree

from liftmatch.domain.geo import EARTH_RADIUS_KM, distance_km
from liftmatch.domain.models import CheckInEvent, Coordinate, DriverProfile, NearbyDriver
from liftmatch.domain.timeutils import parse_timestamp

logger = logging.getLogger(__name__)

OwnerResolver = Callable[[str], Optional[DriverProfile]]

# Holgura relativa del radio del árbol; el filtro exacto se hace con distance_km.
_RADIUS_SLACK = 1e-6


def _fresh_events(
    events: Sequence[CheckInEvent], max_age_hours: float, now: datetime
) -> List[CheckInEvent]:
    cutoff = now - timedelta(hours=max_age_hours)
    return [e for e in events if parse_timestamp(e.timestamp) >= cutoff]


def find_nearby(
    point: Coordinate,
    events: Sequence[CheckInEvent],
    resolve_owner: OwnerResolver,
    max_distance_km: float = 16.0,
    max_age_hours: float = 24.0,
    now: Optional[datetime] = None,
) -> List[NearbyDriver]:
    """
    Events no older than max_age_hours and within max_distance_km of point,
    resolved to their driver, closest first.

    Events whose owner cannot be resolved are dropped, not errored.
    """
    now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
    fresh = _fresh_events(events, max_age_hours, now)
    if not fresh:
        return []

    X_rad = np.radians(np.array([[e.coord.lat, e.coord.lng] for e in fresh], dtype=float))
    tree = BallTree(X_rad, metric="haversine")
    r_rad = max_distance_km / EARTH_RADIUS_KM * (1.0 + _RADIUS_SLACK) + 1e-12
    idx = tree.query_radius(np.radians([[point.lat, point.lng]]), r=r_rad)[0]

    candidates = []
    for i in sorted(int(k) for k in idx):
        event = fresh[i]
        d = distance_km(point, event.coord)
        if d > max_distance_km:
            continue
        candidates.append((d, event))
    candidates.sort(key=lambda x: x[0])

    out: List[NearbyDriver] = []
    dropped = 0
    for d, event in candidates:
        driver = resolve_owner(event.entity_id)
        if driver is None:
            dropped += 1
            continue
        out.append(NearbyDriver(event=event, driver=driver, distance_km=d))
    if dropped:
        logger.debug("find_nearby: %d events without a resolvable owner dropped", dropped)
    return out


def recent_events(
    events: Sequence[CheckInEvent],
    max_age_hours: float = 4.0,
    now: Optional[datetime] = None,
) -> List[CheckInEvent]:
    """Events inside the recency window, newest first (map feed of active drivers)."""
    now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
    fresh = _fresh_events(events, max_age_hours, now)
    return sorted(fresh, key=lambda e: parse_timestamp(e.timestamp), reverse=True)


def last_known_location(
    events: Sequence[CheckInEvent],
    driver_id: str,
    resolve_owner: OwnerResolver,
) -> Optional[CheckInEvent]:
    """
    Newest check-in or check-out owned by driver_id, None if there is none.
    No age limit. On equal timestamps the first event in input order wins.
    """
    latest: Optional[CheckInEvent] = None
    latest_at: Optional[datetime] = None
    for event in events:
        owner = resolve_owner(event.entity_id)
        if owner is None or owner.id != driver_id:
            continue
        at = parse_timestamp(event.timestamp)
        if latest_at is None or at > latest_at:
            latest, latest_at = event, at
    return latest
