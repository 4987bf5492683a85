"""
Timestamp helpers. Comparisons inside the core use timezone-aware datetimes (UTC).
"""

from datetime import datetime, timezone

from liftmatch.domain.errors import InvalidTimeRange


def parse_timestamp(value: datetime | str, preserve_tz: bool = False) -> datetime:
    """
    ISO 8601 string or datetime -> aware datetime in UTC.

    Naive values are taken as UTC. With preserve_tz the value is returned as
    parsed (naive wall clock stays naive, offsets are kept); the route planner
    uses that to reason in local time. A trailing 'Z' is accepted.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidTimeRange(f"unparsable timestamp {value!r}") from e
    else:
        raise InvalidTimeRange(f"unsupported timestamp type {type(value).__name__}")
    if preserve_tz:
        return dt
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def hours_between(t1: datetime, t2: datetime) -> float:
    """Absolute difference in hours."""
    return abs((parse_timestamp(t1) - parse_timestamp(t2)).total_seconds()) / 3600.0


def check_window(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    start_utc, end_utc = parse_timestamp(start), parse_timestamp(end)
    if end_utc < start_utc:
        raise InvalidTimeRange(f"window end {end_utc.isoformat()} precedes start {start_utc.isoformat()}")
    return start_utc, end_utc
