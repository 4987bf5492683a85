"""
API request/response schemas. Pydantic only in api layer.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class PointSchema(BaseModel):
    lat: float
    lng: float


class LegSchema(BaseModel):
    leg_id: str | None = None
    pickup: PointSchema
    dropoff: PointSchema
    notes: str = ""


class RoutePreferencesSchema(BaseModel):
    start_time: str | None = None  # ISO; si falta, ahora
    start: PointSchema | None = None  # posición del conductor; si falta, primera recogida


class PlanRouteRequest(BaseModel):
    driver_id: str
    date: str | None = None  # "YYYY-MM-DD"
    legs: list[LegSchema]
    optimize_order: bool = True
    preferences: RoutePreferencesSchema = Field(default_factory=RoutePreferencesSchema)


class ItineraryItemSchema(BaseModel):
    leg_id: str
    pickup_eta: datetime
    dropoff_eta: datetime
    eta_low: datetime
    eta_high: datetime
    advisories: list[str]


class RouteSummarySchema(BaseModel):
    polyline: str
    distance_miles: float
    distance_km: float
    drive_minutes: int


class CorridorSchema(BaseModel):
    lat: float
    lng: float
    radius_miles: float


class MeetWindowSchema(BaseModel):
    window_start: datetime
    window_end: datetime
    nearby_corridor: CorridorSchema
    reason: str


class RoutePlanSchema(BaseModel):
    plan_id: str
    driver_id: str
    date: str | None
    summary: str
    itinerary: list[ItineraryItemSchema]
    route: RouteSummarySchema
    suggested_meet_windows: list[MeetWindowSchema] = []


class DensityRequest(BaseModel):
    route_polyline: str
    time_window_start: str
    time_window_end: str | None = None  # si falta, +2 h desde el inicio
    corridor_radius_miles: float | None = None
    min_bearing_match_deg: float | None = None


class HotspotSchema(BaseModel):
    center: PointSchema
    radius_miles: float
    score: float
    why: str


class DensitySchema(BaseModel):
    density_score: float
    label: str
    active_driver_count: int
    predicted_available_in_window: int
    hotspots: list[HotspotSchema]


class FindMatchesRequest(BaseModel):
    lat: float
    lng: float
    max_distance_km: float | None = None
    hours_ago: float | None = None


class DriverSchema(BaseModel):
    id: str
    name: str
    avatar: str | None = None
    rating: float | None = None
    verified: bool = False
    call_sign: str | None = None


class NearbyDriverSchema(BaseModel):
    job_id: str
    kind: str
    lat: float
    lng: float
    timestamp: datetime
    distance_km: float
    driver: DriverSchema


class ScoredItemSchema(BaseModel):
    id: str
    match_score: int
    from_lat: float
    from_lng: float
    to_lat: float
    to_lng: float
    time: datetime
    status: str
    from_location: str = ""
    to_location: str = ""


class ScheduleMatchNotificationSchema(BaseModel):
    type: str
    userId: str
    matchedWith: str
    matchedUserId: str
    jobId: str
    matchedJobId: str
    location: str
    time: str
    distance: float
    message: str


class LastLocationSchema(BaseModel):
    job_id: str
    kind: str  # check-in | check-out
    lat: float
    lng: float
    location: str
    timestamp: datetime
