"""
Schedule-match notifications for a newly created job.

Builds one "schedule-match" payload per direction and hands it to the sink.
Call once per job creation; repeated calls notify again.
"""

import logging
from typing import Any, Dict, List
from zoneinfo import ZoneInfo

from liftmatch.application.config import DEFAULT_COLLISION_CONFIG, DEFAULT_ROUTING_CONFIG
from liftmatch.application.ports import DriverDirectory, NotificationSink, SnapshotSource
from liftmatch.core.matching_engine.collision_engine import detect_schedule_collisions
from liftmatch.domain.constraints import CollisionConfig
from liftmatch.domain.errors import EntityNotFound
from liftmatch.domain.models import ScheduleMatch
from liftmatch.domain.timeutils import parse_timestamp

logger = logging.getLogger(__name__)

UNKNOWN_DRIVER = "Unknown Driver"
NOTIFICATION_TYPE = "schedule-match"


def _driver_name(directory: DriverDirectory, user_id: str) -> str:
    driver = directory.get_driver(user_id)
    return driver.name if driver is not None else UNKNOWN_DRIVER


def build_payload(match: ScheduleMatch, matched_name: str, tz: str) -> Dict[str, Any]:
    hhmm = parse_timestamp(match.time).astimezone(ZoneInfo(tz)).strftime("%H:%M")
    return {
        "type": NOTIFICATION_TYPE,
        "userId": match.user_id,
        "matchedWith": matched_name,
        "matchedUserId": match.matched_user_id,
        "jobId": match.job_id,
        "matchedJobId": match.matched_job_id,
        "location": match.location,
        "time": hhmm,
        "distance": round(match.distance_km, 2),
        "message": f"Schedule match! You'll both be near {match.location} around {hhmm}",
    }


def notify_schedule_collisions(
    job_id: str,
    source: SnapshotSource,
    directory: DriverDirectory,
    sink: NotificationSink,
    config: CollisionConfig = DEFAULT_COLLISION_CONFIG,
    tz: str = DEFAULT_ROUTING_CONFIG.timezone,
) -> List[Dict[str, Any]]:
    """Detect collisions for job_id against the live jobs and publish both directions of each."""
    jobs = source.list_jobs()
    new_job = next((j for j in jobs if j.id == job_id), None)
    if new_job is None:
        raise EntityNotFound("job", job_id)

    payloads: List[Dict[str, Any]] = []
    for collision in detect_schedule_collisions(new_job, jobs, config):
        for match in collision.notifications:
            payload = build_payload(match, _driver_name(directory, match.matched_user_id), tz)
            sink.publish(payload)
            payloads.append(payload)
    if payloads:
        logger.info("job %s: published %d schedule-match notifications", job_id, len(payloads))
    return payloads
