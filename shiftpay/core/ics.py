"""Parsing of iCal feeds into shifts and grouping by ISO week."""

import calendar
import datetime
import logging

from icalendar import Calendar

from shiftpay.core.models import ImportedShift, WeekGroup
from shiftpay.core.time_utils import floor_to_hour, parse_datetime

logger = logging.getLogger(__name__)


class IcsParseError(Exception):
    """Calendar text could not be parsed."""

    pass


def parse_ics_data(ics_data: str, round_to_hour: bool = True) -> list[ImportedShift]:
    """
    Extracts shifts from iCal text.

    Every VEVENT with both DTSTART and DTEND becomes an enabled shift. Times
    are kept as wall-clock values (timezone info is dropped, not converted).
    With ``round_to_hour`` the endpoints are floored to the hour since shifts
    are scheduled on the hour.

    Args:
        ics_data: Raw calendar text
        round_to_hour: Floor start and end to full hours

    Returns:
        Shifts sorted by start time

    Raises:
        IcsParseError: If the text is not a calendar
    """
    if not ics_data or not ics_data.strip():
        raise IcsParseError("Calendar data is empty")

    try:
        cal = Calendar.from_ical(ics_data)
    except ValueError as e:
        logger.warning("Failed to parse calendar data: %s", e)
        raise IcsParseError(f"Invalid calendar data: {e}") from e

    shifts: list[ImportedShift] = []
    event_count = 0

    for event in cal.walk("VEVENT"):
        event_count += 1
        start = _event_time(event, "dtstart")
        end = _event_time(event, "dtend")

        if start is None or end is None:
            logger.info("Skipped event #%d without start or end time", event_count)
            continue

        if round_to_hour:
            start = floor_to_hour(start)
            end = floor_to_hour(end)

        shifts.append(
            ImportedShift(
                id=shift_id_for(start),
                description=str(event.get("summary", "")),
                start=start,
                end=end,
            )
        )

    shifts.sort(key=lambda s: s.start)
    logger.info("Parsed %d shifts from %d calendar events", len(shifts), event_count)
    return shifts


def shift_id_for(start: datetime.datetime) -> str:
    """Stable id derived from the wall-clock start, e.g. "shift-1736150400"."""
    return f"shift-{calendar.timegm(start.timetuple())}"


def week_key(instant: datetime.datetime) -> tuple[str, int, int]:
    """Returns ("YYYY-Www", iso_year, iso_week) for an instant."""
    iso_year, iso_week, _ = instant.isocalendar()
    return f"{iso_year}-W{iso_week:02d}", iso_year, iso_week


def group_shifts_by_week(shifts: list[ImportedShift]) -> dict[str, WeekGroup]:
    """
    Groups shifts by the ISO week of their start.

    Returns:
        Dict with week key -> WeekGroup, keys in ascending order
    """
    buckets: dict[str, tuple[int, int, list[ImportedShift]]] = {}
    for shift in shifts:
        key, year, week = week_key(shift.start)
        if key not in buckets:
            buckets[key] = (year, week, [])
        buckets[key][2].append(shift)

    return {
        key: WeekGroup(key=key, year=year, week=week, shifts=items)
        for key, (year, week, items) in sorted(buckets.items())
    }


def apply_enabled_state(shifts: list[ImportedShift], disabled_ids: set[str]) -> list[ImportedShift]:
    """Returns copies of ``shifts`` with is_enabled set from a disabled-id set."""
    return [shift.model_copy(update={"is_enabled": shift.id not in disabled_ids}) for shift in shifts]


def _event_time(event, field: str) -> datetime.datetime | None:
    prop = event.get(field)
    if prop is None:
        return None
    return parse_datetime(getattr(prop, "dt", None))
