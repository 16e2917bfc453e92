"""Evaluation of bonus rule windows against wall-clock instants."""

import datetime

from shiftpay.core.constants import WEEKDAY_ABBREVIATIONS
from shiftpay.core.models import BonusRule, HourRange, RateConfig, RateType, SpecificDayWindow, WeekdayRangeWindow


def rule_applies(rule: BonusRule, instant: datetime.datetime) -> bool:
    """
    Checks whether a bonus rule covers the hour bucket of an instant.

    Weekday and hour are read from the wall-clock fields of ``instant``.
    Only the hour matters: 21:30 is evaluated as hour 21.

    Args:
        rule: Bonus rule with a window definition
        instant: Naive wall-clock time

    Returns:
        True if the rule's window contains the instant's weekday and hour
    """
    window = rule.window
    weekday = instant.weekday()

    if isinstance(window, WeekdayRangeWindow):
        day_match = _weekday_in_range(weekday, window.first_day, window.last_day)
    elif isinstance(window, SpecificDayWindow):
        day_match = weekday == window.day
    else:
        raise TypeError(f"Unsupported bonus window: {type(window).__name__}")

    if not day_match:
        return False

    return _hour_in_ranges(instant.hour, window.hours)


def applicable_rules(rules: list[BonusRule], instant: datetime.datetime) -> list[BonusRule]:
    """Returns the rules covering ``instant``, in configured order."""
    return [rule for rule in rules if rule_applies(rule, instant)]


def bonus_rate(rule: BonusRule, config: RateConfig) -> float:
    """Returns the hourly rate a rule pays under a given base rate."""
    if rule.rate_type == RateType.BASE_RATE_EQUIVALENT:
        return config.base_hourly_rate
    return float(rule.rate or 0.0)


def describe_window(rule: BonusRule) -> str:
    """Short human-readable description, e.g. "Mon-Fri 18-22"."""
    window = rule.window

    if isinstance(window, WeekdayRangeWindow):
        days = f"{WEEKDAY_ABBREVIATIONS[window.first_day]}-{WEEKDAY_ABBREVIATIONS[window.last_day]}"
    else:
        days = WEEKDAY_ABBREVIATIONS[window.day]

    if not window.hours:
        return days

    hours = " & ".join(f"{r.start:02d}-{r.end:02d}" for r in window.hours)
    return f"{days} {hours}"


# === Private helpers ===


def _weekday_in_range(weekday: int, first_day: int, last_day: int) -> bool:
    if first_day <= last_day:
        return first_day <= weekday <= last_day
    # Range wraps over Sunday, e.g. Sat-Mon
    return weekday >= first_day or weekday <= last_day


def _hour_in_ranges(hour: int, ranges: list[HourRange] | None) -> bool:
    if not ranges:
        return True
    return any(r.start <= hour < r.end for r in ranges)
