"""Shift salary calculation: hour segmentation, bonuses, break and deductions."""

import datetime
import logging
from collections.abc import Iterator

from shiftpay.core.constants import MINUTES_PER_HOUR
from shiftpay.core.deductions import calculate_deductions
from shiftpay.core.models import (
    AppliedBonus,
    BonusTotal,
    DeductionTable,
    HourSegment,
    RateConfig,
    SalaryBreakdown,
    TimeInterval,
)
from shiftpay.core.rules import applicable_rules, bonus_rate
from shiftpay.core.time_utils import floor_to_hour, hours_between

logger = logging.getLogger(__name__)

ONE_HOUR = datetime.timedelta(hours=1)


def iter_hour_segments(
    start: datetime.datetime,
    end: datetime.datetime,
) -> Iterator[tuple[datetime.datetime, datetime.datetime]]:
    """
    Yields (segment_start, segment_end) pairs covering [start, end).

    The first segment runs to the next full clock hour, the following ones
    span whole clock hours, and the last is clamped to ``end``.
    """
    current = start
    while current < end:
        next_hour = floor_to_hour(current) + ONE_HOUR
        segment_end = min(next_hour, end)
        yield current, segment_end
        current = segment_end


def compute_salary(
    interval: TimeInterval,
    config: RateConfig,
    include_break: bool,
    age,
    deductions: DeductionTable,
) -> SalaryBreakdown:
    """
    Computes an itemized salary breakdown for one shift.

    Bonuses are evaluated per segment at the segment's starting hour and
    summed without mutual exclusion. The break only shrinks base pay.
    Pension and insurance are both taken off the same gross amount.

    Args:
        interval: Shift start and end (end > start, validated by the caller)
        config: Base rate, break length and bonus rules
        include_break: Whether to deduct the unpaid break
        age: Employee age; None or non-finite skips the pension deduction
        deductions: Pension bands and flat insurance rate

    Returns:
        SalaryBreakdown with totals and the hour-by-hour segments
    """
    base_rate = config.base_hourly_rate

    bonus_hours = {rule.key: 0.0 for rule in config.bonus_rules}
    bonus_amounts = {rule.key: 0.0 for rule in config.bonus_rules}

    segments: list[HourSegment] = []
    total_hours = 0.0

    for segment_start, segment_end in iter_hour_segments(interval.start, interval.end):
        hours = hours_between(segment_start, segment_end)
        base_amount = base_rate * hours
        total_hours += hours

        applied: list[AppliedBonus] = []
        for rule in applicable_rules(config.bonus_rules, segment_start):
            rate = bonus_rate(rule, config)
            amount = rate * hours

            bonus_hours[rule.key] += hours
            bonus_amounts[rule.key] += amount

            applied.append(
                AppliedBonus(
                    key=rule.key,
                    display_name=rule.display_name,
                    icon=rule.icon,
                    rate=rate,
                    amount=amount,
                )
            )

        segments.append(
            HourSegment(
                start=segment_start,
                end=segment_end,
                hours=hours,
                base_amount=base_amount,
                bonuses=applied,
                total_amount=base_amount + sum(b.amount for b in applied),
            )
        )

    break_hours = 0.0
    if include_break:
        # Break reduces base pay only, bonuses stay intact
        break_hours = config.break_minutes / MINUTES_PER_HOUR
        total_hours -= break_hours

    base_salary = base_rate * total_hours
    gross = base_salary + sum(bonus_amounts.values())

    pension_rate, pension_amount, insurance_rate, insurance_amount = calculate_deductions(gross, age, deductions)
    net = gross - pension_amount - insurance_amount

    bonuses = [
        BonusTotal(
            key=rule.key,
            display_name=rule.display_name,
            icon=rule.icon,
            hours=bonus_hours[rule.key],
            amount=bonus_amounts[rule.key],
        )
        for rule in config.bonus_rules
        if bonus_hours[rule.key] > 0
    ]

    logger.debug(
        "Computed salary %s -> %s: %.2f h, gross %.2f, net %.2f",
        interval.start,
        interval.end,
        total_hours,
        gross,
        net,
    )

    return SalaryBreakdown(
        total_hours=total_hours,
        base_salary=base_salary,
        bonuses=bonuses,
        gross_salary=gross,
        pension_rate=pension_rate,
        pension_amount=pension_amount,
        insurance_rate=insurance_rate,
        insurance_amount=insurance_amount,
        net_salary=net,
        include_break=include_break,
        break_deduction_hours=break_hours,
        segments=segments,
    )
