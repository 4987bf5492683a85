"""
Collaborators the use cases need. The core never talks to them directly.
"""

from typing import Any, Dict, Optional, Protocol, Sequence

from liftmatch.domain.models import CheckInEvent, DriverProfile, Job, Offer, Request


class SnapshotSource(Protocol):
    """Read path over the live collections. Each call returns a consistent snapshot."""

    def list_offers(self) -> Sequence[Offer]:
        ...

    def list_requests(self) -> Sequence[Request]:
        ...

    def list_jobs(self) -> Sequence[Job]:
        ...

    def list_check_in_events(self) -> Sequence[CheckInEvent]:
        ...


class DriverDirectory(Protocol):
    def get_driver(self, driver_id: str) -> Optional[DriverProfile]:
        """Driver by user id, None if unknown."""
        ...

    def resolve_owner(self, entity_id: str) -> Optional[DriverProfile]:
        """Driver owning a job/check-in entity, None if it cannot be resolved."""
        ...


class NotificationSink(Protocol):
    """Delivers payloads (push, message channel, websocket). Delivery is not our concern."""

    def publish(self, payload: Dict[str, Any]) -> None:
        ...
