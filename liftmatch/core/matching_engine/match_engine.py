"""
Lift matching. Offer <-> request compatibility score (0-100) and batch ranking.

Scoring policy (MatchPolicy, tunable): routes first, then time window, then
100 minus per-km penalties on origin and destination separation and a per-hour
penalty on the time difference. Routes that are not similar always score 0.
"""

import math
from datetime import datetime
from typing import List, Sequence

from liftmatch.domain.constraints import MatchPolicy
from liftmatch.domain.geo import distance_km
from liftmatch.domain.models import Coordinate, Offer, Request, ScoredOffer, ScoredRequest
from liftmatch.domain.timeutils import hours_between


def routes_similar(
    offer_from: Coordinate,
    offer_to: Coordinate,
    req_from: Coordinate,
    req_to: Coordinate,
    threshold_km: float = 30.0,
) -> bool:
    """Both origin pair and destination pair within threshold. Asymmetric routes are rejected."""
    return (
        distance_km(offer_from, req_from) <= threshold_km
        and distance_km(offer_to, req_to) <= threshold_km
    )


def time_windows_overlap(t1: datetime, t2: datetime, window_hours: float = 2.0) -> bool:
    return hours_between(t1, t2) <= window_hours


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def score(offer: Offer, request: Request, policy: MatchPolicy = MatchPolicy()) -> int:
    """
    Compatibility 0-100 (higher is better). 0 means no match.
    """
    if not routes_similar(
        offer.from_coord,
        offer.to_coord,
        request.from_coord,
        request.to_coord,
        policy.route_threshold_km,
    ):
        return 0
    if not time_windows_overlap(offer.departure_time, request.requested_time, policy.time_window_hours):
        return 0

    origin_km = distance_km(offer.from_coord, request.from_coord)
    dest_km = distance_km(offer.to_coord, request.to_coord)
    hours = hours_between(offer.departure_time, request.requested_time)

    raw = float(policy.max_score)
    raw -= origin_km * policy.origin_penalty_per_km
    raw -= dest_km * policy.destination_penalty_per_km
    raw -= hours * policy.time_penalty_per_hour
    return max(0, min(policy.max_score, _round_half_up(raw)))


def rank_requests_for_offer(
    offer: Offer,
    requests: Sequence[Request],
    policy: MatchPolicy = MatchPolicy(),
) -> List[ScoredRequest]:
    """Scored requests, zero scores dropped, best first. Ties keep input order (stable sort)."""
    scored = [ScoredRequest(request=r, match_score=score(offer, r, policy)) for r in requests]
    kept = [s for s in scored if s.match_score > 0]
    return sorted(kept, key=lambda s: -s.match_score)


def rank_offers_for_request(
    request: Request,
    offers: Sequence[Offer],
    policy: MatchPolicy = MatchPolicy(),
) -> List[ScoredOffer]:
    """Scored offers, zero scores dropped, best first. Ties keep input order (stable sort)."""
    scored = [ScoredOffer(offer=o, match_score=score(o, request, policy)) for o in offers]
    kept = [s for s in scored if s.match_score > 0]
    return sorted(kept, key=lambda s: -s.match_score)
