"""
API router. Calls application only. No business logic.
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request

from liftmatch.api.schemas import (
    CorridorSchema,
    DensityRequest,
    DensitySchema,
    DriverSchema,
    FindMatchesRequest,
    HotspotSchema,
    ItineraryItemSchema,
    LastLocationSchema,
    MeetWindowSchema,
    NearbyDriverSchema,
    PlanRouteRequest,
    PointSchema,
    RoutePlanSchema,
    RouteSummarySchema,
    ScheduleMatchNotificationSchema,
    ScoredItemSchema,
)
from liftmatch.application.use_cases.find_drivers import find_nearby_drivers, last_location, recent_check_ins
from liftmatch.application.use_cases.match_lifts import match_offers_for_request, match_requests_for_offer
from liftmatch.application.use_cases.notify_collisions import notify_schedule_collisions
from liftmatch.application.use_cases.plan_route import (
    analyze_route_density,
    plan_driver_route,
    suggest_meet_windows_for_plan,
)
from liftmatch.domain.errors import EntityNotFound
from liftmatch.domain.geo import km_to_miles
from liftmatch.domain.models import Coordinate, DriverProfile
from liftmatch.domain.timeutils import parse_timestamp
from liftmatch.infrastructure.snapshot_loader import load_legs

logger = logging.getLogger(__name__)

router = APIRouter()


def get_snapshot(request: Request):
    """Snapshot source + driver directory from app state."""
    return request.app.state.snapshot


def get_sink(request: Request):
    return request.app.state.sink


def _driver_schema(d: DriverProfile) -> DriverSchema:
    return DriverSchema(
        id=d.id, name=d.name, avatar=d.avatar, rating=d.rating, verified=d.verified, call_sign=d.call_sign
    )


def _fail(e: Exception, what: str) -> HTTPException:
    if isinstance(e, EntityNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    logger.exception("%s failed", what)
    return HTTPException(status_code=500, detail=f"Failed to {what}")


@router.get("/matching/offers/{offer_id}/requests", response_model=list[ScoredItemSchema])
def get_requests_for_offer(offer_id: str, snapshot=Depends(get_snapshot)) -> list[ScoredItemSchema]:
    """
    GET /matching/offers/{offer_id}/requests
    Compatible lift requests, best first (match_score 1-100).
    """
    try:
        ranked = match_requests_for_offer(offer_id, snapshot)
    except Exception as e:
        raise _fail(e, "match requests") from e
    return [
        ScoredItemSchema(
            id=s.request.id,
            match_score=s.match_score,
            from_lat=s.request.from_coord.lat,
            from_lng=s.request.from_coord.lng,
            to_lat=s.request.to_coord.lat,
            to_lng=s.request.to_coord.lng,
            time=s.request.requested_time,
            status=s.request.status,
            from_location=s.request.from_location,
            to_location=s.request.to_location,
        )
        for s in ranked
    ]


@router.get("/matching/requests/{request_id}/offers", response_model=list[ScoredItemSchema])
def get_offers_for_request(request_id: str, snapshot=Depends(get_snapshot)) -> list[ScoredItemSchema]:
    """
    GET /matching/requests/{request_id}/offers
    Compatible lift offers, best first.
    """
    try:
        ranked = match_offers_for_request(request_id, snapshot)
    except Exception as e:
        raise _fail(e, "match offers") from e
    return [
        ScoredItemSchema(
            id=s.offer.id,
            match_score=s.match_score,
            from_lat=s.offer.from_coord.lat,
            from_lng=s.offer.from_coord.lng,
            to_lat=s.offer.to_coord.lat,
            to_lng=s.offer.to_coord.lng,
            time=s.offer.departure_time,
            status=s.offer.status,
            from_location=s.offer.from_location,
            to_location=s.offer.to_location,
        )
        for s in ranked
    ]


@router.post("/lift-requests/find-matches", response_model=list[NearbyDriverSchema])
def post_find_matches(body: FindMatchesRequest, snapshot=Depends(get_snapshot)) -> list[NearbyDriverSchema]:
    """
    POST /lift-requests/find-matches
    Drivers checked in/out near (lat, lng) within max_distance_km and hours_ago.
    """
    try:
        point = Coordinate.of(body.lat, body.lng)
        found = find_nearby_drivers(
            point, snapshot, snapshot, max_distance_km=body.max_distance_km, max_age_hours=body.hours_ago
        )
    except Exception as e:
        raise _fail(e, "find matches") from e
    return [
        NearbyDriverSchema(
            job_id=n.event.entity_id,
            kind=n.event.kind,
            lat=n.event.coord.lat,
            lng=n.event.coord.lng,
            timestamp=n.event.timestamp,
            distance_km=round(n.distance_km, 3),
            driver=_driver_schema(n.driver),
        )
        for n in found
    ]


@router.get("/jobs/recent-check-ins", response_model=list[NearbyDriverSchema])
def get_recent_check_ins(hours: float | None = None, snapshot=Depends(get_snapshot)) -> list[NearbyDriverSchema]:
    """
    GET /jobs/recent-check-ins?hours=4
    Recently active drivers for the map, newest first. distance_km is 0 (no reference point).
    """
    try:
        pairs = recent_check_ins(snapshot, snapshot, hours=hours)
    except Exception as e:
        raise _fail(e, "get recent check-ins") from e
    return [
        NearbyDriverSchema(
            job_id=event.entity_id,
            kind=event.kind,
            lat=event.coord.lat,
            lng=event.coord.lng,
            timestamp=event.timestamp,
            distance_km=0.0,
            driver=_driver_schema(driver),
        )
        for event, driver in pairs
    ]


@router.get("/users/{user_id}/last-location", response_model=LastLocationSchema | None)
def get_last_location(user_id: str, snapshot=Depends(get_snapshot)) -> LastLocationSchema | None:
    """
    GET /users/{user_id}/last-location
    Latest check-in/out position of the user, or null when they have none.
    """
    try:
        event = last_location(user_id, snapshot, snapshot)
    except Exception as e:
        raise _fail(e, "get last location") from e
    if event is None:
        return None
    return LastLocationSchema(
        job_id=event.entity_id,
        kind=event.kind,
        lat=event.coord.lat,
        lng=event.coord.lng,
        location=event.location,
        timestamp=event.timestamp,
    )


@router.post("/jobs/{job_id}/schedule-collisions", response_model=list[ScheduleMatchNotificationSchema])
def post_schedule_collisions(
    job_id: str,
    snapshot=Depends(get_snapshot),
    sink=Depends(get_sink),
) -> list[ScheduleMatchNotificationSchema]:
    """
    POST /jobs/{job_id}/schedule-collisions
    Run once right after the job is created. Publishes and returns both directions of every match.
    """
    try:
        payloads = notify_schedule_collisions(job_id, snapshot, snapshot, sink)
    except Exception as e:
        raise _fail(e, "detect schedule collisions") from e
    return [ScheduleMatchNotificationSchema(**p) for p in payloads]


@router.post("/ai/plan-route", response_model=RoutePlanSchema)
def post_plan_route(body: PlanRouteRequest, snapshot=Depends(get_snapshot)) -> RoutePlanSchema:
    """
    POST /ai/plan-route
    Orders the selected legs (nearest neighbour), estimates ETAs and suggests meet windows.
    """
    try:
        legs = load_legs([leg.model_dump() for leg in body.legs])
        start = body.preferences.start
        plan = plan_driver_route(
            legs,
            start=Coordinate.of(start.lat, start.lng) if start is not None else None,
            start_time=body.preferences.start_time,
            optimize_order=body.optimize_order,
        )
        windows = suggest_meet_windows_for_plan(plan, snapshot)
    except Exception as e:
        raise _fail(e, "optimize route") from e
    miles = km_to_miles(plan.total_distance_km)
    return RoutePlanSchema(
        plan_id=f"plan_{body.driver_id}_{body.date or 'today'}",
        driver_id=body.driver_id,
        date=body.date,
        summary=f"{len(plan.ordered_legs)} legs, {miles:.1f} miles, about {plan.total_duration_minutes} min",
        itinerary=[
            ItineraryItemSchema(
                leg_id=eta.leg_id,
                pickup_eta=eta.pickup_eta,
                dropoff_eta=eta.dropoff_eta,
                eta_low=eta.eta_low,
                eta_high=eta.eta_high,
                advisories=list(eta.advisories),
            )
            for eta in plan.leg_etas
        ],
        route=RouteSummarySchema(
            polyline=plan.encoded_polyline,
            distance_miles=round(miles, 2),
            distance_km=round(plan.total_distance_km, 2),
            drive_minutes=plan.total_duration_minutes,
        ),
        suggested_meet_windows=[
            MeetWindowSchema(
                window_start=w.window_start,
                window_end=w.window_end,
                nearby_corridor=CorridorSchema(lat=w.center.lat, lng=w.center.lng, radius_miles=w.radius_miles),
                reason=w.reason,
            )
            for w in windows
        ],
    )


@router.post("/ai/driver-density", response_model=DensitySchema)
def post_driver_density(body: DensityRequest, snapshot=Depends(get_snapshot)) -> DensitySchema:
    """
    POST /ai/driver-density
    Compatible drivers along the route corridor inside the time window.
    """
    try:
        start = parse_timestamp(body.time_window_start)
        end = parse_timestamp(body.time_window_end) if body.time_window_end else start + timedelta(hours=2)
        report = analyze_route_density(
            body.route_polyline,
            snapshot,
            start,
            end,
            corridor_radius_miles=body.corridor_radius_miles,
            min_bearing_match_deg=body.min_bearing_match_deg,
        )
    except Exception as e:
        raise _fail(e, "analyze driver density") from e
    return DensitySchema(
        density_score=report.density_score,
        label=report.label,
        active_driver_count=report.active_driver_count,
        predicted_available_in_window=report.predicted_available_in_window,
        hotspots=[
            HotspotSchema(
                center=PointSchema(lat=h.center.lat, lng=h.center.lng),
                radius_miles=h.radius_miles,
                score=h.score,
                why=h.why,
            )
            for h in report.hotspots
        ],
    )
