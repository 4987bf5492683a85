"""
Driver density along a planned route: how many compatible offers/requests
start near the corridor heading the same way.

Corridor proximity is approximated by vertex sampling (distance to each
polyline vertex, not point-to-segment). Good enough for sparse samples; long
straight segments under-report.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Sequence

import numpy as np
from sklearn.cluster import DBSCAN

from liftmatch.core.routing_engine.polyline import decode_polyline
from liftmatch.domain.constraints import DensityConfig
from liftmatch.domain.geo import (
    EARTH_RADIUS_KM,
    angle_diff,
    bearing,
    distance_km,
    distances_km_from,
    km_to_miles,
    miles_to_km,
)
from liftmatch.domain.models import Coordinate, DensityReport, Hotspot, Offer, Request
from liftmatch.domain.timeutils import check_window, parse_timestamp

logger = logging.getLogger(__name__)

LOW, MEDIUM, HIGH = "Low", "Medium", "High"


@dataclass(frozen=True)
class _Candidate:
    origin: Coordinate
    destination: Coordinate
    when: datetime


def point_near_polyline(point: Coordinate, polyline_points: Sequence[Coordinate], radius_miles: float) -> bool:
    """True if any vertex of the polyline is within radius_miles of point."""
    if not polyline_points:
        return False
    radius_km = miles_to_km(radius_miles)
    return any(distance_km(point, p) <= radius_km for p in polyline_points)


def _vertex_bearings(points: Sequence[Coordinate]) -> List[float]:
    """Local corridor bearing at each vertex: towards the next one (last: from the previous)."""
    if len(points) < 2:
        return []
    out = [bearing(points[i], points[i + 1]) for i in range(len(points) - 1)]
    out.append(out[-1])
    return out


def _candidates(
    offers: Sequence[Offer], requests: Sequence[Request], config: DensityConfig
) -> List[_Candidate]:
    closed = set(config.closed_statuses)
    out = [
        _Candidate(o.from_coord, o.to_coord, parse_timestamp(o.departure_time))
        for o in offers
        if o.status not in closed
    ]
    out += [
        _Candidate(r.from_coord, r.to_coord, parse_timestamp(r.requested_time))
        for r in requests
        if r.status not in closed
    ]
    return out


def _label(score: float, config: DensityConfig) -> str:
    if score >= config.high_threshold:
        return HIGH
    if score >= config.medium_threshold:
        return MEDIUM
    return LOW


def _hotspots(origins: List[Coordinate], config: DensityConfig) -> List[Hotspot]:
    """DBSCAN (haversine) over matched origins -> centre, radius and share of matches."""
    if len(origins) < config.hotspot_min_samples:
        return []
    X_rad = np.radians(np.array([[c.lat, c.lng] for c in origins], dtype=float))
    eps_rad = miles_to_km(config.hotspot_eps_miles) / EARTH_RADIUS_KM
    labels = DBSCAN(
        eps=eps_rad,
        min_samples=config.hotspot_min_samples,
        algorithm="ball_tree",
        metric="haversine",
    ).fit(X_rad).labels_

    spots: List[Hotspot] = []
    for k in sorted(set(labels)):
        if k == -1:
            continue
        members = [origins[i] for i in np.where(labels == k)[0]]
        centroid = np.degrees(X_rad[labels == k].mean(axis=0))
        center = Coordinate(float(centroid[0]), float(centroid[1]))
        radius = max(km_to_miles(distance_km(center, m)) for m in members)
        spots.append(
            Hotspot(
                center=center,
                radius_miles=round(radius, 2),
                score=round(len(members) / len(origins), 3),
                why=f"{len(members)} compatible drivers starting within {radius:.1f} miles",
            )
        )
    spots.sort(key=lambda h: -h.score)
    return spots[: config.max_hotspots]


def density_for_route(
    encoded_polyline: str,
    offers: Sequence[Offer],
    requests: Sequence[Request],
    window_start: datetime,
    window_end: datetime,
    config: DensityConfig = DensityConfig(),
) -> DensityReport:
    """
    Density signal for a corridor.

    A candidate (open offer or request) counts when its origin is within the
    corridor radius of some vertex whose local bearing is within
    min_bearing_match_deg of the candidate's own bearing. With a single-vertex
    route there is no corridor bearing and only distance is checked.

    density_score = min(1, count / expected_baseline), labelled Low/Medium/High.
    predicted_available_in_window = counted candidates whose departure or
    requested time falls inside [window_start, window_end]: a filter and a
    count, nothing statistical.
    """
    start, end = check_window(window_start, window_end)
    points = decode_polyline(encoded_polyline)
    if not points:
        return DensityReport(density_score=0.0, label=LOW, active_driver_count=0, predicted_available_in_window=0)

    radius_km = miles_to_km(config.corridor_radius_miles)
    lats = np.array([p.lat for p in points])
    lngs = np.array([p.lng for p in points])
    corridor_bearings = _vertex_bearings(points)

    matched: List[_Candidate] = []
    for c in _candidates(offers, requests, config):
        near = np.where(distances_km_from(c.origin, lats, lngs) <= radius_km)[0]
        if len(near) == 0:
            continue
        if corridor_bearings:
            heading = bearing(c.origin, c.destination)
            if not any(angle_diff(heading, corridor_bearings[i]) <= config.min_bearing_match_deg for i in near):
                continue
        matched.append(c)

    count = len(matched)
    score = min(1.0, count / config.expected_baseline) if config.expected_baseline > 0 else 0.0
    in_window = sum(1 for c in matched if start <= c.when <= end)
    logger.debug("density_for_route: %d vertices, %d matched, %d in window", len(points), count, in_window)
    return DensityReport(
        density_score=round(score, 3),
        label=_label(score, config),
        active_driver_count=count,
        predicted_available_in_window=in_window,
        hotspots=_hotspots([c.origin for c in matched], config),
    )
