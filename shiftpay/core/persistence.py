"""Database-backed configuration overrides and calendar import state.

The reference rate table is never stored; only the user's overrides are.
The effective configuration is always defaults merged with overrides.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

from sqlalchemy.orm.attributes import flag_modified

from shiftpay.core.config import DEFAULT_PROFILE
from shiftpay.core.ics import apply_enabled_state, group_shifts_by_week
from shiftpay.core.models import CalculatorConfig, ImportedShift
from shiftpay.core.storage import load_default_config, merge_config, set_override_value

logger = logging.getLogger(__name__)


# --- Configuration overrides ---


def get_overrides(session, profile: str = DEFAULT_PROFILE) -> dict[str, Any]:
    """Stored overrides for a profile, {} if none were saved."""
    from shiftpay.database.database import ConfigOverride

    record = session.query(ConfigOverride).filter(ConfigOverride.profile == profile).first()
    return dict(record.overrides or {}) if record else {}


def get_config(session, profile: str = DEFAULT_PROFILE) -> CalculatorConfig:
    """Effective configuration: reference defaults merged with stored overrides."""
    return merge_config(load_default_config(), get_overrides(session, profile))


def save_config_overrides(session, overrides: dict[str, Any], profile: str = DEFAULT_PROFILE) -> CalculatorConfig:
    """Replace a profile's overrides.

    The merged result is validated before anything is written, so an invalid
    document leaves the stored overrides untouched.

    Raises:
        ConfigurationError: If the overrides produce an invalid configuration
    """
    from shiftpay.database.database import ConfigOverride

    config = merge_config(load_default_config(), overrides)

    record = session.query(ConfigOverride).filter(ConfigOverride.profile == profile).first()
    if record is None:
        record = ConfigOverride(profile=profile, overrides=overrides)
        session.add(record)
    else:
        record.overrides = overrides
        flag_modified(record, "overrides")

    session.commit()
    logger.info("Saved configuration overrides for profile %s", profile)
    return config


def update_config_value(session, path: str, value: Any, profile: str = DEFAULT_PROFILE) -> CalculatorConfig:
    """Set one dot-path override, e.g. "rates.bonus_rules.saturday.rate"."""
    overrides = set_override_value(get_overrides(session, profile), path, value)
    return save_config_overrides(session, overrides, profile)


def reset_config(session, profile: str = DEFAULT_PROFILE) -> CalculatorConfig:
    """Drop a profile's overrides and return the reference configuration."""
    from shiftpay.database.database import ConfigOverride

    deleted = session.query(ConfigOverride).filter(ConfigOverride.profile == profile).delete()
    session.commit()
    logger.info("Reset configuration for profile %s (%d rows removed)", profile, deleted)
    return load_default_config()


# --- Calendar feed ---


def get_calendar_feed(session, profile: str = DEFAULT_PROFILE, create: bool = False):
    """CalendarFeed row for a profile, optionally created on first use."""
    from shiftpay.database.database import CalendarFeed

    feed = session.query(CalendarFeed).filter(CalendarFeed.profile == profile).first()
    if feed is None and create:
        feed = CalendarFeed(profile=profile, shifts=[], disabled_shift_ids=[])
        session.add(feed)
        session.flush()
    return feed


def save_calendar_url(session, url: str, profile: str = DEFAULT_PROFILE):
    feed = get_calendar_feed(session, profile, create=True)
    feed.url = url.strip()
    session.commit()
    return feed


def save_imported_shifts(
    session,
    shifts: list[ImportedShift],
    profile: str = DEFAULT_PROFILE,
    used_proxy: bool = False,
) -> list[ImportedShift]:
    """Store a fresh import.

    Disabled ids of shifts that are still present survive the re-import;
    ids of shifts no longer in the feed are dropped.

    Returns:
        Shifts with is_enabled applied from the stored state
    """
    feed = get_calendar_feed(session, profile, create=True)
    current_ids = {shift.id for shift in shifts}
    disabled = [shift_id for shift_id in (feed.disabled_shift_ids or []) if shift_id in current_ids]

    feed.shifts = [shift.model_dump(mode="json", exclude={"is_enabled"}) for shift in shifts]
    feed.disabled_shift_ids = disabled
    feed.used_proxy = used_proxy
    feed.last_fetched_at = datetime.datetime.utcnow()
    flag_modified(feed, "shifts")
    flag_modified(feed, "disabled_shift_ids")
    session.commit()

    logger.info("Stored %d imported shifts for profile %s (%d disabled)", len(shifts), profile, len(disabled))
    return apply_enabled_state(shifts, set(disabled))


def load_imported_shifts(session, profile: str = DEFAULT_PROFILE) -> list[ImportedShift]:
    """Last imported shifts with their enabled state, [] before any import."""
    feed = get_calendar_feed(session, profile)
    if feed is None:
        return []
    shifts = [ImportedShift.model_validate(item) for item in (feed.shifts or [])]
    return apply_enabled_state(shifts, set(feed.disabled_shift_ids or []))


def set_shift_enabled(session, shift_id: str, enabled: bool, profile: str = DEFAULT_PROFILE) -> bool:
    """Toggle one imported shift.

    Returns:
        False if no imported shift has this id
    """
    feed = get_calendar_feed(session, profile)
    if feed is None or not any(item.get("id") == shift_id for item in feed.shifts or []):
        return False

    _set_disabled(feed, {shift_id}, enabled)
    session.commit()
    return True


def set_week_enabled(session, key: str, enabled: bool, profile: str = DEFAULT_PROFILE) -> list[str]:
    """Toggle every imported shift of a "YYYY-Www" week.

    Returns:
        Ids of the affected shifts, [] if the week has none
    """
    groups = group_shifts_by_week(load_imported_shifts(session, profile))
    group = groups.get(key)
    if group is None:
        return []

    shift_ids = [shift.id for shift in group.shifts]
    feed = get_calendar_feed(session, profile)
    _set_disabled(feed, set(shift_ids), enabled)
    session.commit()
    return shift_ids


def _set_disabled(feed, shift_ids: set[str], enabled: bool) -> None:
    disabled = set(feed.disabled_shift_ids or [])
    if enabled:
        disabled -= shift_ids
    else:
        disabled |= shift_ids
    feed.disabled_shift_ids = sorted(disabled)
    flag_modified(feed, "disabled_shift_ids")
