"""Pydantic models for rate tables, shifts and salary breakdowns."""

import datetime
import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shiftpay.core.config import DEFAULT_AGE, DEFAULT_SHIFT_DURATION_HOURS


class FrozenModel(BaseModel):
    """Immutable value model."""

    model_config = ConfigDict(frozen=True)


class HourRange(FrozenModel):
    """Half-open range of hour-of-day buckets, [start, end)."""

    start: int = Field(ge=0, le=23)
    end: int = Field(ge=1, le=24)

    @model_validator(mode="after")
    def _check_order(self) -> "HourRange":
        if self.end <= self.start:
            raise ValueError(f"Hour range end ({self.end}) must be after start ({self.start})")
        return self


class WeekdayRangeWindow(FrozenModel):
    """Window over an inclusive weekday range (Monday=0). Wraps over Sunday if first_day > last_day."""

    kind: Literal["weekday_range"] = "weekday_range"
    first_day: int = Field(ge=0, le=6)
    last_day: int = Field(ge=0, le=6)
    hours: list[HourRange] | None = None


class SpecificDayWindow(FrozenModel):
    """Window over a single weekday."""

    kind: Literal["specific_day"] = "specific_day"
    day: int = Field(ge=0, le=6)
    hours: list[HourRange] | None = None


BonusWindow = Annotated[Union[WeekdayRangeWindow, SpecificDayWindow], Field(discriminator="kind")]


class RateType(str, enum.Enum):
    FIXED = "fixed"
    BASE_RATE_EQUIVALENT = "base_rate_equivalent"


class BonusRule(FrozenModel):
    """Named bonus (lisä) with a time window and a rate."""

    key: str
    display_name: str
    icon: str = ""
    rate_type: RateType = RateType.FIXED
    rate: float | None = None
    window: BonusWindow

    @model_validator(mode="after")
    def _check_rate(self) -> "BonusRule":
        if self.rate_type == RateType.FIXED:
            if self.rate is None:
                raise ValueError(f"Bonus '{self.key}' needs a rate")
            if self.rate < 0:
                raise ValueError(f"Bonus '{self.key}' rate must be >= 0")
        return self


class RateConfig(FrozenModel):
    """Base rate, break and bonus rules."""

    base_hourly_rate: float = Field(ge=0)
    break_minutes: int = Field(default=30, ge=0)
    break_threshold_minutes: int | None = Field(default=None, ge=0)
    bonus_rules: list[BonusRule] = Field(default_factory=list)

    @field_validator("bonus_rules")
    @classmethod
    def _unique_keys(cls, rules: list[BonusRule]) -> list[BonusRule]:
        seen: set[str] = set()
        for rule in rules:
            if rule.key in seen:
                raise ValueError(f"Duplicate bonus key '{rule.key}'")
            seen.add(rule.key)
        return rules

    @property
    def effective_break_threshold(self) -> int:
        if self.break_threshold_minutes is None:
            return self.break_minutes
        return self.break_threshold_minutes


class PensionBand(FrozenModel):
    """
    Age band with a TyEL percentage.

    The band runs from ``min_age`` up to ``max_age``, exclusive unless
    ``max_inclusive`` is set. When the previous band includes its upper
    bound, this band starts strictly above it.
    """

    min_age: float | None = None
    max_age: float | None = None
    max_inclusive: bool = False
    rate: float = Field(ge=0)


class DeductionTable(FrozenModel):
    """Statutory deductions: age-banded pension (TyEL) and flat unemployment insurance (TVM)."""

    pension_bands: list[PensionBand]
    insurance_rate: float = Field(ge=0)


class CalculatorConfig(FrozenModel):
    """The whole configuration store document."""

    rates: RateConfig
    deductions: DeductionTable
    default_age: int = DEFAULT_AGE
    default_shift_hours: float = Field(default=DEFAULT_SHIFT_DURATION_HOURS, gt=0)


class TimeInterval(FrozenModel):
    start: datetime.datetime
    end: datetime.datetime

    @property
    def duration(self) -> datetime.timedelta:
        return self.end - self.start


class IntervalValidation(FrozenModel):
    valid: bool
    reason: str | None = None
    interval: TimeInterval | None = None


class AppliedBonus(FrozenModel):
    key: str
    display_name: str
    icon: str
    rate: float
    amount: float


class HourSegment(FrozenModel):
    """One clock-hour slice of a shift."""

    start: datetime.datetime
    end: datetime.datetime
    hours: float
    base_amount: float
    bonuses: list[AppliedBonus] = Field(default_factory=list)
    total_amount: float


class BonusTotal(FrozenModel):
    key: str
    display_name: str
    icon: str
    hours: float
    amount: float


class SalaryBreakdown(FrozenModel):
    """Itemized result of one shift calculation."""

    total_hours: float
    base_salary: float
    bonuses: list[BonusTotal]
    gross_salary: float
    pension_rate: float
    pension_amount: float
    insurance_rate: float
    insurance_amount: float
    net_salary: float
    include_break: bool
    break_deduction_hours: float
    segments: list[HourSegment]


class ImportedShift(FrozenModel):
    """Shift extracted from a calendar feed."""

    id: str
    description: str = ""
    start: datetime.datetime
    end: datetime.datetime
    is_enabled: bool = True


class WeekGroup(FrozenModel):
    key: str
    year: int
    week: int
    shifts: list[ImportedShift]


class SalaryTotals(FrozenModel):
    shifts_count: int = 0
    total_hours: float = 0.0
    base_salary: float = 0.0
    gross_salary: float = 0.0
    pension_amount: float = 0.0
    insurance_amount: float = 0.0
    net_salary: float = 0.0
    bonuses: list[BonusTotal] = Field(default_factory=list)


class ShiftResult(FrozenModel):
    shift: ImportedShift
    breakdown: SalaryBreakdown


class WeeklySummary(FrozenModel):
    key: str
    year: int
    week: int
    shifts: list[ShiftResult]
    totals: SalaryTotals


class OverallSummary(FrozenModel):
    weeks: list[WeeklySummary]
    grand_total: SalaryTotals
    skipped_shift_ids: list[str] = Field(default_factory=list)
