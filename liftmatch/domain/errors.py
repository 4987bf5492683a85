"""
Domain errors. Local input validation only: none of them is retryable.
"""


class LiftMatchError(ValueError):
    """Base error for invalid input handed to the matching core."""


class InvalidCoordinate(LiftMatchError):
    """Latitude/longitude out of range or not a finite number."""

    def __init__(self, lat: float, lng: float) -> None:
        self.lat = lat
        self.lng = lng
        super().__init__(f"invalid coordinate lat={lat!r} lng={lng!r}")


class InvalidTimeRange(LiftMatchError):
    """Timestamp that cannot be parsed or a window whose end precedes its start."""


class InvalidPolyline(LiftMatchError):
    """Encoded route that cannot be decoded."""


class EntityNotFound(LookupError):
    """Offer, request or job id absent from the snapshot."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id!r} not found")
