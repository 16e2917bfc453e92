import datetime
import logging
import math
from typing import Any

from shiftpay.core.config import DATETIME_INPUT_FORMAT
from shiftpay.core.constants import SECONDS_PER_HOUR
from shiftpay.core.models import IntervalValidation, TimeInterval

logger = logging.getLogger(__name__)

MESSAGE_INVALID_TIMES = "Please enter valid start and end times."
MESSAGE_END_BEFORE_START = "End time must be after start time."


def parse_datetime(value: Any) -> datetime.datetime | None:
    """Parse a wall-clock datetime; returns None if the value is not a valid instant.

    Handles:
    1) datetime objects (timezone info is dropped, wall-clock fields kept)
    2) date objects (midnight)
    3) ISO strings: "YYYY-MM-DDTHH:MM", with optional seconds, space separator or offset
    """
    if isinstance(value, datetime.datetime):
        return value.replace(tzinfo=None)

    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time(0, 0))

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return datetime.datetime.strptime(s, DATETIME_INPUT_FORMAT)
        except ValueError:
            pass
        try:
            return datetime.datetime.fromisoformat(s).replace(tzinfo=None)
        except ValueError:
            logger.debug("Unparseable datetime string %r", value)
            return None

    if value is not None:
        logger.debug("Unsupported datetime type %s", type(value).__name__)
    return None


def floor_to_hour(instant: datetime.datetime) -> datetime.datetime:
    return instant.replace(minute=0, second=0, microsecond=0)


def hours_between(start: datetime.datetime, end: datetime.datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_HOUR


def derive_end_time(start: Any, duration_hours: float) -> datetime.datetime | None:
    """
    Returns start + duration_hours, or None when start is not a valid instant.

    Used to prefill the end of a shift when only the start is known.
    """
    start_dt = parse_datetime(start)
    if start_dt is None:
        return None
    if not isinstance(duration_hours, (int, float)) or not math.isfinite(duration_hours):
        return None
    return start_dt + datetime.timedelta(hours=duration_hours)


def should_apply_break(interval: TimeInterval, threshold_minutes: float) -> bool:
    """True iff the shift lasts at least ``threshold_minutes``."""
    duration_minutes = interval.duration.total_seconds() / 60
    return duration_minutes >= threshold_minutes


def validate_interval(start: Any, end: Any) -> IntervalValidation:
    """
    Validates shift endpoints.

    Invalid if either endpoint fails to parse or if end <= start. The parsed
    interval is attached to a valid result.
    """
    start_dt = parse_datetime(start)
    end_dt = parse_datetime(end)

    if start_dt is None or end_dt is None:
        return IntervalValidation(valid=False, reason=MESSAGE_INVALID_TIMES)

    if end_dt <= start_dt:
        return IntervalValidation(valid=False, reason=MESSAGE_END_BEFORE_START)

    return IntervalValidation(valid=True, interval=TimeInterval(start=start_dt, end=end_dt))
