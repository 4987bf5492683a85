"""
Nearby / recently active drivers and last known positions from check-in events.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from liftmatch.application.config import DEFAULT_PROXIMITY_CONFIG
from liftmatch.application.ports import DriverDirectory, SnapshotSource
from liftmatch.core.matching_engine.proximity_engine import find_nearby, last_known_location, recent_events
from liftmatch.domain.models import CheckInEvent, Coordinate, DriverProfile, NearbyDriver

logger = logging.getLogger(__name__)


def find_nearby_drivers(
    point: Coordinate,
    source: SnapshotSource,
    directory: DriverDirectory,
    max_distance_km: Optional[float] = None,
    max_age_hours: Optional[float] = None,
    now: Optional[datetime] = None,
) -> List[NearbyDriver]:
    """Drivers checked in/out near point. Omitted limits fall back to the proximity defaults."""
    if max_distance_km is None:
        max_distance_km = DEFAULT_PROXIMITY_CONFIG.max_distance_km
    if max_age_hours is None:
        max_age_hours = DEFAULT_PROXIMITY_CONFIG.max_age_hours
    found = find_nearby(
        point,
        source.list_check_in_events(),
        directory.resolve_owner,
        max_distance_km=max_distance_km,
        max_age_hours=max_age_hours,
        now=now,
    )
    logger.info(
        "find_nearby_drivers (%.4f, %.4f) r=%.1f km age=%.1f h -> %d",
        point.lat, point.lng, max_distance_km, max_age_hours, len(found),
    )
    return found


def recent_check_ins(
    source: SnapshotSource,
    directory: DriverDirectory,
    hours: Optional[float] = None,
    now: Optional[datetime] = None,
) -> List[Tuple[CheckInEvent, DriverProfile]]:
    """Map feed: recent events with their driver. Events without a driver are skipped."""
    if hours is None:
        hours = DEFAULT_PROXIMITY_CONFIG.recent_check_in_hours
    out: List[Tuple[CheckInEvent, DriverProfile]] = []
    for event in recent_events(source.list_check_in_events(), max_age_hours=hours, now=now):
        driver = directory.resolve_owner(event.entity_id)
        if driver is not None:
            out.append((event, driver))
    return out


def last_location(
    user_id: str,
    source: SnapshotSource,
    directory: DriverDirectory,
) -> Optional[CheckInEvent]:
    """Latest check-in/out of user_id across all their jobs. None when they have none (not an error)."""
    event = last_known_location(source.list_check_in_events(), user_id, directory.resolve_owner)
    if event is None:
        logger.debug("no check-in events for user %s", user_id)
    return event
