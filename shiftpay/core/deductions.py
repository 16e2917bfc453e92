"""Statutory deductions: TyEL pension and TVM unemployment insurance."""

import logging
import math
from numbers import Real

from shiftpay.core.models import DeductionTable, PensionBand

logger = logging.getLogger(__name__)


def is_valid_age(age) -> bool:
    """True for finite real numbers (bools excluded)."""
    if age is None or isinstance(age, bool) or not isinstance(age, Real):
        return False
    return math.isfinite(age)


def lookup_pension_rate(age, bands: list[PensionBand]) -> float:
    """
    Returns the TyEL percentage for an age.

    Missing, zero or non-finite ages give 0 (no pension deduction). The
    first band whose upper bound admits the age wins, so with the reference
    table 53 and 62 both fall in the middle band and 62.5 in the top one.
    An age below the first band also gives 0.

    Args:
        age: Employee age, or None
        bands: Sorted, contiguous pension bands

    Returns:
        Pension percentage, e.g. 7.15
    """
    # 0 is what an unset age field holds
    if not is_valid_age(age) or age == 0:
        return 0.0

    if bands and bands[0].min_age is not None and age < bands[0].min_age:
        logger.debug("Age %s is below every pension band", age)
        return 0.0

    for band in bands:
        if band.max_age is None or age < band.max_age or (band.max_inclusive and age == band.max_age):
            return band.rate

    logger.debug("No pension band covers age %s", age)
    return 0.0


def calculate_deductions(gross: float, age, table: DeductionTable) -> tuple[float, float, float, float]:
    """
    Computes pension and insurance off the same gross amount.

    Returns:
        (pension_rate, pension_amount, insurance_rate, insurance_amount)
    """
    pension_rate = lookup_pension_rate(age, table.pension_bands)
    pension_amount = gross * pension_rate / 100 if pension_rate > 0 else 0.0
    insurance_amount = gross * table.insurance_rate / 100
    return pension_rate, pension_amount, table.insurance_rate, insurance_amount
