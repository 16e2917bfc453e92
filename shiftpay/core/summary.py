"""Weekly and overall totals for imported shifts."""

import logging

from shiftpay.core.engine import compute_salary
from shiftpay.core.ics import group_shifts_by_week
from shiftpay.core.models import (
    BonusTotal,
    CalculatorConfig,
    ImportedShift,
    OverallSummary,
    SalaryBreakdown,
    SalaryTotals,
    ShiftResult,
    WeekGroup,
    WeeklySummary,
)
from shiftpay.core.time_utils import should_apply_break, validate_interval

logger = logging.getLogger(__name__)


def calculate_shift(shift: ImportedShift, config: CalculatorConfig, age) -> SalaryBreakdown | None:
    """
    Computes one imported shift with the configured break threshold.

    Returns:
        SalaryBreakdown, or None if the shift's interval is invalid
    """
    validation = validate_interval(shift.start, shift.end)
    if not validation.valid:
        logger.warning("Skipping shift %s: %s", shift.id, validation.reason)
        return None

    interval = validation.interval
    include_break = should_apply_break(interval, config.rates.effective_break_threshold)
    return compute_salary(interval, config.rates, include_break, age, config.deductions)


def add_to_totals(totals: SalaryTotals, breakdown: SalaryBreakdown) -> SalaryTotals:
    """Adds one breakdown to running totals; bonuses are merged by key."""
    return SalaryTotals(
        shifts_count=totals.shifts_count + 1,
        total_hours=totals.total_hours + breakdown.total_hours,
        base_salary=totals.base_salary + breakdown.base_salary,
        gross_salary=totals.gross_salary + breakdown.gross_salary,
        pension_amount=totals.pension_amount + breakdown.pension_amount,
        insurance_amount=totals.insurance_amount + breakdown.insurance_amount,
        net_salary=totals.net_salary + breakdown.net_salary,
        bonuses=_merge_bonuses(totals.bonuses, breakdown.bonuses),
    )


def combine_totals(first: SalaryTotals, second: SalaryTotals) -> SalaryTotals:
    return SalaryTotals(
        shifts_count=first.shifts_count + second.shifts_count,
        total_hours=first.total_hours + second.total_hours,
        base_salary=first.base_salary + second.base_salary,
        gross_salary=first.gross_salary + second.gross_salary,
        pension_amount=first.pension_amount + second.pension_amount,
        insurance_amount=first.insurance_amount + second.insurance_amount,
        net_salary=first.net_salary + second.net_salary,
        bonuses=_merge_bonuses(first.bonuses, second.bonuses),
    )


def summarize_week(
    group: WeekGroup,
    config: CalculatorConfig,
    age,
) -> tuple[WeeklySummary, list[str]]:
    """
    Totals for the enabled shifts of one week.

    Args:
        group: Shifts of one ISO week
        config: Effective configuration
        age: Employee age

    Returns:
        (WeeklySummary, ids of shifts skipped because of invalid times)
    """
    results: list[ShiftResult] = []
    skipped: list[str] = []
    totals = SalaryTotals()

    for shift in group.shifts:
        if not shift.is_enabled:
            continue
        breakdown = calculate_shift(shift, config, age)
        if breakdown is None:
            skipped.append(shift.id)
            continue
        results.append(ShiftResult(shift=shift, breakdown=breakdown))
        totals = add_to_totals(totals, breakdown)

    summary = WeeklySummary(key=group.key, year=group.year, week=group.week, shifts=results, totals=totals)
    return summary, skipped


def summarize_weeks(
    shifts: list[ImportedShift],
    config: CalculatorConfig,
    age,
) -> OverallSummary:
    """
    Groups shifts by week and sums every enabled shift.

    Disabled shifts are left out of both weekly and grand totals. Weeks with
    no enabled shift are still listed, with empty totals.

    Returns:
        OverallSummary with weeks in ascending order and the grand total
    """
    weeks: list[WeeklySummary] = []
    skipped: list[str] = []
    grand_total = SalaryTotals()

    for group in group_shifts_by_week(shifts).values():
        week_summary, week_skipped = summarize_week(group, config, age)
        weeks.append(week_summary)
        skipped.extend(week_skipped)
        grand_total = combine_totals(grand_total, week_summary.totals)

    logger.info(
        "Summarized %d enabled shifts over %d weeks",
        grand_total.shifts_count,
        len(weeks),
    )
    return OverallSummary(weeks=weeks, grand_total=grand_total, skipped_shift_ids=skipped)


def _merge_bonuses(first: list[BonusTotal], second: list[BonusTotal]) -> list[BonusTotal]:
    merged: dict[str, BonusTotal] = {b.key: b for b in first}
    for bonus in second:
        existing = merged.get(bonus.key)
        if existing is None:
            merged[bonus.key] = bonus
        else:
            merged[bonus.key] = existing.model_copy(
                update={"hours": existing.hours + bonus.hours, "amount": existing.amount + bonus.amount}
            )
    return list(merged.values())
