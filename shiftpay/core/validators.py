import datetime

from fastapi import HTTPException, status

from shiftpay.core.models import CalculatorConfig, DeductionTable, RateConfig, RateType, TimeInterval
from shiftpay.core.time_utils import validate_interval


class ConfigurationError(ValueError):
    """Semantic problem in a rate or deduction table."""

    pass


def validate_rate_config(rates: RateConfig) -> None:
    """
    Fail-fast checks that pydantic field constraints cannot express.

    Raises:
        ConfigurationError: If a base-rate-equivalent bonus carries a rate
    """
    for rule in rates.bonus_rules:
        if rule.rate_type == RateType.BASE_RATE_EQUIVALENT and rule.rate not in (None, 0, 0.0):
            raise ConfigurationError(
                f"Bonus '{rule.key}' pays the base rate and must not define its own rate"
            )


def validate_deduction_table(table: DeductionTable) -> None:
    """
    Fails fast on a table that does not cover every age upward.

    Raises:
        ConfigurationError: If bands are empty, unsorted, overlapping,
            have gaps or are closed at the top
    """
    bands = table.pension_bands
    if not bands:
        raise ConfigurationError("Deduction table has no pension bands")

    for band in bands:
        if band.min_age is not None and band.max_age is not None and band.max_age <= band.min_age:
            raise ConfigurationError(f"Pension band {band.min_age}-{band.max_age} is empty")

    for previous, current in zip(bands, bands[1:]):
        if previous.max_age is None:
            raise ConfigurationError("Only the last pension band may be open-ended")
        if current.min_age != previous.max_age:
            raise ConfigurationError(
                f"Pension bands are not contiguous: {previous.max_age} followed by {current.min_age}"
            )

    if bands[-1].max_age is not None:
        raise ConfigurationError(f"Pension bands stop at age {bands[-1].max_age}")


def validate_calculator_config(config: CalculatorConfig) -> CalculatorConfig:
    """Runs every semantic check and returns the config unchanged."""
    validate_rate_config(config.rates)
    validate_deduction_table(config.deductions)
    return config


def require_valid_interval(
    start: datetime.datetime | str | None,
    end: datetime.datetime | str | None,
) -> TimeInterval:
    """
    Validates a shift interval coming from an HTTP request.

    Returns the parsed TimeInterval, otherwise raises 400 with the reason.
    """
    result = validate_interval(start, end)
    if not result.valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.reason,
        )
    return result.interval
