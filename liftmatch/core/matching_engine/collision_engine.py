"""
Schedule collisions: two different users whose jobs end near the same place
around the same time. Drives a proactive notification, not a user query.

Only the jobs passed in are compared. Nothing is deduplicated across calls:
run it once per job creation, not on every poll.
"""

import logging
from typing import List, Sequence

from liftmatch.domain.constraints import CollisionConfig
from liftmatch.domain.geo import distance_km
from liftmatch.domain.models import Job, ScheduleCollision, ScheduleMatch
from liftmatch.domain.timeutils import hours_between

logger = logging.getLogger(__name__)


def _mirror_matches(new_job: Job, other: Job, dist_km: float) -> tuple[ScheduleMatch, ScheduleMatch]:
    # Mismo lugar y hora para ambos: los del trabajo recién creado.
    forward = ScheduleMatch(
        user_id=new_job.user_id,
        matched_user_id=other.user_id,
        job_id=new_job.id,
        matched_job_id=other.id,
        location=new_job.to_location,
        time=new_job.estimated_end_time,
        distance_km=dist_km,
    )
    reverse = ScheduleMatch(
        user_id=other.user_id,
        matched_user_id=new_job.user_id,
        job_id=other.id,
        matched_job_id=new_job.id,
        location=new_job.to_location,
        time=new_job.estimated_end_time,
        distance_km=dist_km,
    )
    return forward, reverse


def detect_schedule_collisions(
    new_job: Job,
    jobs: Sequence[Job],
    config: CollisionConfig = CollisionConfig(),
) -> List[ScheduleCollision]:
    """
    Compare new_job against every other live job of a different user.

    1. Reject if destinations are more than config.max_distance_km apart.
    2. Reject if estimated end times differ by more than config.max_window_minutes.
    3. Otherwise emit a ScheduleCollision with both notification directions.

    Returns collisions sorted by destination distance (closest first).
    """
    collisions: List[ScheduleCollision] = []
    for other in jobs:
        if other.id == new_job.id:
            continue
        if other.user_id == new_job.user_id:
            continue
        dist = distance_km(new_job.to_coord, other.to_coord)
        if dist > config.max_distance_km:
            continue
        minutes = hours_between(new_job.estimated_end_time, other.estimated_end_time) * 60.0
        if minutes > config.max_window_minutes:
            continue
        collisions.append(
            ScheduleCollision(
                source_job_id=new_job.id,
                matched_job_id=other.id,
                distance_km=dist,
                time_difference_minutes=minutes,
                notifications=_mirror_matches(new_job, other, dist),
            )
        )
    collisions.sort(key=lambda c: c.distance_km)
    logger.debug("job %s: %d schedule collisions out of %d jobs", new_job.id, len(collisions), len(jobs))
    return collisions
