"""
Domain constraints. Dataclasses only. No FastAPI, no external deps beyond dataclasses/typing.

Every radius, window, weight and bias the core uses is a field here so it can
be tuned (or replaced by a real routing/traffic source) without touching the
algorithms. The defaults are the historical values; none of them has a
documented rationale.
"""

from dataclasses import dataclass
from typing import Tuple


# Matcher: offer <-> request compatibility (0-100)
@dataclass(frozen=True)
class MatchPolicy:
    route_threshold_km: float = 30.0
    time_window_hours: float = 2.0
    origin_penalty_per_km: float = 0.5
    destination_penalty_per_km: float = 0.5
    time_penalty_per_hour: float = 10.0
    max_score: int = 100


@dataclass(frozen=True)
class ProximityConfig:
    max_distance_km: float = 16.0  # ~10 millas
    max_age_hours: float = 24.0
    recent_check_in_hours: float = 4.0


@dataclass(frozen=True)
class CollisionConfig:
    max_distance_km: float = 3.0
    max_window_minutes: float = 60.0


# Route planner ETA heuristic (proxy for traffic data, not ground truth)
@dataclass(frozen=True)
class RoutingConfig:
    average_speed_mph: float = 60.0
    peak_bias: float = 1.25
    off_peak_bias: float = 1.10
    stop_overhead_min: float = 5.0
    peak_hours: Tuple[Tuple[int, int], ...] = ((7, 9), (16, 18))
    timezone: str = "Europe/London"
    eta_band_ratio: float = 0.15  # +/- sobre el tramo de la recogida
    polyline_precision: int = 5
    meet_radius_miles: float = 5.0  # zona de encuentro alrededor de la entrega


@dataclass(frozen=True)
class DensityConfig:
    corridor_radius_miles: float = 5.0
    min_bearing_match_deg: float = 35.0
    expected_baseline: int = 10
    medium_threshold: float = 0.34
    high_threshold: float = 0.67
    closed_statuses: Tuple[str, ...] = ("cancelled", "completed", "expired", "matched")
    hotspot_eps_miles: float = 3.0
    hotspot_min_samples: int = 2
    max_hotspots: int = 3
