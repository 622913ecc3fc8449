import re
from datetime import datetime
from typing import Optional

from storefront.core.errors import MalformedTimeError, ScheduleInPastError

# ASCII digits only; \d would also accept other Unicode digits
SCHEDULE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}")


def validate_schedule_time(text: str, reject_past: bool = False, now: Optional[datetime] = None) -> datetime:
    """
    Parse user input of the form ``YYYY-MM-DD HH:mm`` into a datetime with seconds at zero.

    Anything that does not match the exact pattern, or names a day or time
    that does not exist, raises MalformedTimeError. Past times are accepted
    unless `reject_past` is set.
    """
    if not isinstance(text, str) or not SCHEDULE_PATTERN.fullmatch(text):
        raise MalformedTimeError(text)

    try:
        instant = datetime.strptime(text, "%Y-%m-%d %H:%M")
    except ValueError:
        raise MalformedTimeError(text)

    if reject_past:
        current = now or datetime.now()
        if instant <= current:
            raise ScheduleInPastError(f"Scheduled time {format_schedule_time(instant)} is not in the future")

    return instant


def format_schedule_time(instant: datetime) -> str:
    """Canonical wire form, e.g. 2025-01-29T11:07:00."""
    return instant.replace(second=0, microsecond=0).strftime("%Y-%m-%dT%H:%M:%S")
