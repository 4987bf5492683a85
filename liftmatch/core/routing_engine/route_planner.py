"""
Route planner for a driver's day. Pure logic only.

Implements:
- order_legs: nearest-neighbour tour on pickups (cursor = start, then the
  previous dropoff). O(n^2) and not globally optimal; a TSP solver is out of
  scope on purpose.
- estimate_minutes: constant speed + peak-hour bias + per-stop overhead.
  A heuristic stand-in for traffic data, not ground truth.
- plan_route: order + per-leg ETAs + totals + encoded polyline.
- suggest_meet_windows: per-leg meeting window around each dropoff ETA band,
  moved onto a nearby density hotspot when there is one.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

import numpy as np

from liftmatch.core.routing_engine.polyline import encode_polyline
from liftmatch.domain.constraints import RoutingConfig
from liftmatch.domain.geo import distance_km, distances_km_from, km_to_miles, miles_to_km
from liftmatch.domain.models import Coordinate, Hotspot, Leg, LegEta, MeetWindow, RoutePlan
from liftmatch.domain.timeutils import parse_timestamp

logger = logging.getLogger(__name__)

PEAK_ADVISORY = "Peak-hour traffic expected"


def order_legs(start: Coordinate, legs: Sequence[Leg]) -> List[Leg]:
    """
    Greedy visiting order: repeatedly take the leg whose pickup is closest to
    the cursor. Ties go to the earliest leg in input order. Duplicates are kept.
    """
    remaining = list(legs)
    ordered: List[Leg] = []
    cursor = start
    while remaining:
        lats = np.array([leg.pickup.lat for leg in remaining])
        lngs = np.array([leg.pickup.lng for leg in remaining])
        best = int(np.argmin(distances_km_from(cursor, lats, lngs)))
        chosen = remaining.pop(best)
        ordered.append(chosen)
        cursor = chosen.dropoff
    return ordered


def _local_time(when: Optional[datetime | str], tz: str) -> datetime:
    if when is None:
        return datetime.now(ZoneInfo(tz))
    dt = parse_timestamp(when, preserve_tz=True)
    if dt.tzinfo is None:
        # Sin zona: ya es hora local de pared.
        return dt
    return dt.astimezone(ZoneInfo(tz))


def is_peak(when: Optional[datetime | str], config: RoutingConfig = RoutingConfig()) -> bool:
    hour = _local_time(when, config.timezone).hour
    return any(lo <= hour <= hi for lo, hi in config.peak_hours)


def estimate_minutes(
    distance_miles: float,
    when: Optional[datetime | str] = None,
    config: RoutingConfig = RoutingConfig(),
) -> int:
    """
    Travel minutes for distance_miles departing at `when` (now if None).

    base = distance / average_speed; x peak_bias inside peak hours (local),
    x off_peak_bias otherwise; + stop_overhead_min. Rounded to whole minutes.
    """
    base_min = distance_miles / config.average_speed_mph * 60.0
    bias = config.peak_bias if is_peak(when, config) else config.off_peak_bias
    return int(math.floor(base_min * bias + config.stop_overhead_min + 0.5))


def plan_route(
    start: Coordinate,
    legs: Sequence[Leg],
    start_time: Optional[datetime | str] = None,
    config: RoutingConfig = RoutingConfig(),
) -> RoutePlan:
    """
    Order the legs and walk them from start_time.

    Each leg costs an approach segment (cursor -> pickup) and a drive segment
    (pickup -> dropoff), both timed with estimate_minutes at their own
    departure time. eta_low/eta_high is a +/- eta_band_ratio band on the
    dropoff ETA. Zero legs -> empty plan.
    """
    if not legs:
        return RoutePlan(
            ordered_legs=[],
            leg_etas=[],
            total_distance_km=0.0,
            total_duration_minutes=0,
            encoded_polyline="",
        )

    t = _local_time(start_time, config.timezone)
    ordered = order_legs(start, legs)

    cursor = start
    total_km = 0.0
    total_min = 0
    etas: List[LegEta] = []
    points: List[Coordinate] = [start]
    for leg in ordered:
        approach_km = distance_km(cursor, leg.pickup)
        approach_min = estimate_minutes(km_to_miles(approach_km), t, config)
        pickup_eta = t + timedelta(minutes=approach_min)

        drive_km = distance_km(leg.pickup, leg.dropoff)
        drive_min = estimate_minutes(km_to_miles(drive_km), pickup_eta, config)
        dropoff_eta = pickup_eta + timedelta(minutes=drive_min)

        band = timedelta(minutes=round((approach_min + drive_min) * config.eta_band_ratio))
        advisories = ()
        if is_peak(pickup_eta, config) or is_peak(dropoff_eta, config):
            advisories = (PEAK_ADVISORY,)
        etas.append(
            LegEta(
                leg_id=leg.id,
                pickup_eta=pickup_eta,
                dropoff_eta=dropoff_eta,
                eta_low=dropoff_eta - band,
                eta_high=dropoff_eta + band,
                advisories=advisories,
            )
        )

        total_km += approach_km + drive_km
        total_min += approach_min + drive_min
        points.extend([leg.pickup, leg.dropoff])
        cursor = leg.dropoff
        t = dropoff_eta

    logger.debug("plan_route: %d legs, %.1f km, %d min", len(ordered), total_km, total_min)
    return RoutePlan(
        ordered_legs=ordered,
        leg_etas=etas,
        total_distance_km=total_km,
        total_duration_minutes=total_min,
        encoded_polyline=encode_polyline(points, config.polyline_precision),
    )


def suggest_meet_windows(
    plan: RoutePlan,
    hotspots: Sequence[Hotspot] = (),
    config: RoutingConfig = RoutingConfig(),
) -> List[MeetWindow]:
    """
    One window per planned leg: [eta_low, eta_high] of its dropoff.

    The meeting area is the dropoff with meet_radius_miles, unless a hotspot
    centre lies within that radius of the dropoff; then the closest hotspot
    is used instead.
    """
    radius_km = miles_to_km(config.meet_radius_miles)
    windows: List[MeetWindow] = []
    for leg, eta in zip(plan.ordered_legs, plan.leg_etas):
        near = [(distance_km(leg.dropoff, h.center), h) for h in hotspots]
        near = [x for x in near if x[0] <= radius_km]
        if near:
            _, spot = min(near, key=lambda x: x[0])
            center, radius = spot.center, spot.radius_miles or config.meet_radius_miles
            reason = f"{spot.why}, near the dropoff of {leg.id}"
        else:
            center, radius = leg.dropoff, config.meet_radius_miles
            reason = f"Dropoff of {leg.id} expected {eta.eta_low:%H:%M}-{eta.eta_high:%H:%M}"
        windows.append(
            MeetWindow(
                window_start=eta.eta_low,
                window_end=eta.eta_high,
                center=center,
                radius_miles=radius,
                reason=reason,
                leg_id=leg.id,
            )
        )
    return windows
