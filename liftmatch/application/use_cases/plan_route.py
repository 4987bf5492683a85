"""
Route planning + corridor density use cases (AI route planner screen).
"""

import dataclasses
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from liftmatch.application.config import DEFAULT_DENSITY_CONFIG, DEFAULT_ROUTING_CONFIG
from liftmatch.application.ports import SnapshotSource
from liftmatch.core.routing_engine.density_engine import density_for_route
from liftmatch.core.routing_engine.polyline import encode_polyline
from liftmatch.core.routing_engine.route_planner import plan_route, suggest_meet_windows
from liftmatch.domain.constraints import DensityConfig, RoutingConfig
from liftmatch.domain.models import Coordinate, DensityReport, Leg, MeetWindow, RoutePlan

logger = logging.getLogger(__name__)


def plan_driver_route(
    legs: Sequence[Leg],
    start: Optional[Coordinate] = None,
    start_time: Optional[datetime | str] = None,
    optimize_order: bool = True,
    config: RoutingConfig = DEFAULT_ROUTING_CONFIG,
) -> RoutePlan:
    """
    Plan for the selected legs. Without an explicit start the driver is
    assumed to be at the first leg's pickup. optimize_order=False keeps the
    caller's order (the planner is run leg by leg from each pickup).
    """
    if not legs:
        return plan_route(start or Coordinate(0.0, 0.0), [], start_time, config)
    origin = start if start is not None else legs[0].pickup
    if optimize_order:
        plan = plan_route(origin, legs, start_time, config)
    else:
        plan = _plan_in_given_order(origin, legs, start_time, config)
    logger.info(
        "planned %d legs: %.1f km, %d min", len(plan.ordered_legs), plan.total_distance_km, plan.total_duration_minutes
    )
    return plan


def _plan_in_given_order(
    origin: Coordinate,
    legs: Sequence[Leg],
    start_time: Optional[datetime | str],
    config: RoutingConfig,
) -> RoutePlan:
    # Cada tramo se planifica solo, encadenando cursor y hora de llegada.
    ordered, etas, total_km, total_min, points = [], [], 0.0, 0, [origin]
    cursor, t = origin, start_time
    for leg in legs:
        part = plan_route(cursor, [leg], t, config)
        ordered.extend(part.ordered_legs)
        etas.extend(part.leg_etas)
        total_km += part.total_distance_km
        total_min += part.total_duration_minutes
        points.extend([leg.pickup, leg.dropoff])
        cursor, t = leg.dropoff, part.leg_etas[-1].dropoff_eta
    return RoutePlan(
        ordered_legs=ordered,
        leg_etas=etas,
        total_distance_km=total_km,
        total_duration_minutes=total_min,
        encoded_polyline=encode_polyline(points, config.polyline_precision),
    )


def analyze_route_density(
    encoded_polyline: str,
    source: SnapshotSource,
    window_start: datetime | str,
    window_end: datetime | str,
    corridor_radius_miles: Optional[float] = None,
    min_bearing_match_deg: Optional[float] = None,
    config: DensityConfig = DEFAULT_DENSITY_CONFIG,
) -> DensityReport:
    overrides = {}
    if corridor_radius_miles is not None:
        overrides["corridor_radius_miles"] = corridor_radius_miles
    if min_bearing_match_deg is not None:
        overrides["min_bearing_match_deg"] = min_bearing_match_deg
    if overrides:
        config = dataclasses.replace(config, **overrides)
    report = density_for_route(
        encoded_polyline,
        source.list_offers(),
        source.list_requests(),
        window_start,
        window_end,
        config,
    )
    logger.info("route density %s (%.2f), %d drivers", report.label, report.density_score, report.active_driver_count)
    return report


def suggest_meet_windows_for_plan(
    plan: RoutePlan,
    source: SnapshotSource,
    routing: RoutingConfig = DEFAULT_ROUTING_CONFIG,
    density: DensityConfig = DEFAULT_DENSITY_CONFIG,
) -> List[MeetWindow]:
    """Meet windows for a plan, using the density hotspots of its own corridor over the plan's time span."""
    if not plan.leg_etas:
        return []
    report = density_for_route(
        plan.encoded_polyline,
        source.list_offers(),
        source.list_requests(),
        plan.leg_etas[0].pickup_eta,
        plan.leg_etas[-1].eta_high,
        density,
    )
    windows = suggest_meet_windows(plan, report.hotspots, routing)
    logger.debug("%d meet windows, %d hotspots on the corridor", len(windows), len(report.hotspots))
    return windows
