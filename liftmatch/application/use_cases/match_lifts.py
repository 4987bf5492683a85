"""
Ranking use cases: offer -> compatible requests, request -> compatible offers.
"""

import logging
from typing import List

from liftmatch.application.config import DEFAULT_MATCH_POLICY
from liftmatch.application.ports import SnapshotSource
from liftmatch.core.matching_engine.match_engine import rank_offers_for_request, rank_requests_for_offer
from liftmatch.domain.constraints import MatchPolicy
from liftmatch.domain.errors import EntityNotFound
from liftmatch.domain.models import ScoredOffer, ScoredRequest

logger = logging.getLogger(__name__)


def match_requests_for_offer(
    offer_id: str,
    source: SnapshotSource,
    policy: MatchPolicy = DEFAULT_MATCH_POLICY,
) -> List[ScoredRequest]:
    offer = next((o for o in source.list_offers() if o.id == offer_id), None)
    if offer is None:
        raise EntityNotFound("offer", offer_id)
    requests = source.list_requests()
    ranked = rank_requests_for_offer(offer, requests, policy)
    logger.info("offer %s: %d/%d requests matched", offer_id, len(ranked), len(requests))
    return ranked


def match_offers_for_request(
    request_id: str,
    source: SnapshotSource,
    policy: MatchPolicy = DEFAULT_MATCH_POLICY,
) -> List[ScoredOffer]:
    request = next((r for r in source.list_requests() if r.id == request_id), None)
    if request is None:
        raise EntityNotFound("request", request_id)
    offers = source.list_offers()
    ranked = rank_offers_for_request(request, offers, policy)
    logger.info("request %s: %d/%d offers matched", request_id, len(ranked), len(offers))
    return ranked
