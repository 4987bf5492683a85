"""
In-memory snapshot source, driver directory and notification sink.

Adapters over plain lists for local runs and tests. Not a storage layer:
replace with the real read path in production.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from liftmatch.domain.models import CheckInEvent, DriverProfile, Job, Offer, Request


@dataclass
class InMemorySnapshot:
    offers: List[Offer] = field(default_factory=list)
    requests: List[Request] = field(default_factory=list)
    jobs: List[Job] = field(default_factory=list)
    check_in_events: List[CheckInEvent] = field(default_factory=list)
    drivers: List[DriverProfile] = field(default_factory=list)

    # SnapshotSource: copies, so callers never hold a live list
    def list_offers(self) -> List[Offer]:
        return list(self.offers)

    def list_requests(self) -> List[Request]:
        return list(self.requests)

    def list_jobs(self) -> List[Job]:
        return list(self.jobs)

    def list_check_in_events(self) -> List[CheckInEvent]:
        return list(self.check_in_events)

    # DriverDirectory
    def get_driver(self, driver_id: str) -> Optional[DriverProfile]:
        return next((d for d in self.drivers if d.id == driver_id), None)

    def resolve_owner(self, entity_id: str) -> Optional[DriverProfile]:
        """Job id -> its user; otherwise the id is taken as a driver id."""
        job = next((j for j in self.jobs if j.id == entity_id), None)
        if job is not None:
            return self.get_driver(job.user_id)
        return self.get_driver(entity_id)


@dataclass
class InMemoryNotificationSink:
    published: List[Dict[str, Any]] = field(default_factory=list)

    def publish(self, payload: Dict[str, Any]) -> None:
        self.published.append(payload)
