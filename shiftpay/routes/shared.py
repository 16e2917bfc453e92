# shiftpay/routes/shared.py
"""
Shared request schemas and response helpers for route modules.
"""

from typing import Any

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from shiftpay.core.formatting import format_currency, format_hours, format_time
from shiftpay.core.models import CalculatorConfig, OverallSummary, SalaryBreakdown, SalaryTotals
from shiftpay.core.persistence import get_config
from shiftpay.core.validators import ConfigurationError

# ============ Pydantic schemas ============


class CalculateRequest(BaseModel):
    start: str
    end: str
    age: float | None = None
    include_break: bool | None = None


class ConfigValueUpdate(BaseModel):
    path: str
    value: Any = None


class CalendarUrlUpdate(BaseModel):
    url: str


class CalendarImportRequest(BaseModel):
    url: str | None = None
    age: float | None = None


class EnabledUpdate(BaseModel):
    enabled: bool


# ============ Request helpers ============


def effective_config(db: Session) -> CalculatorConfig:
    """Configuration for a request; stored overrides that no longer validate give 422."""
    try:
        return get_config(db)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


def resolve_age(age: float | None, fields_set: set[str], config: CalculatorConfig):
    """Age from the request; the configured default only when the field was omitted.

    An explicit null is kept and means no pension deduction.
    """
    if "age" in fields_set:
        return age
    return config.default_age


# ============ Response helpers ============


def breakdown_response(breakdown: SalaryBreakdown) -> dict:
    """Breakdown as JSON plus display strings in Finnish notation."""
    data = breakdown.model_dump(mode="json")
    data["formatted"] = {
        "total_hours": format_hours(breakdown.total_hours),
        "base_salary": format_currency(breakdown.base_salary),
        "gross_salary": format_currency(breakdown.gross_salary),
        "pension_amount": format_currency(breakdown.pension_amount),
        "insurance_amount": format_currency(breakdown.insurance_amount),
        "net_salary": format_currency(breakdown.net_salary),
        "bonuses": {bonus.key: format_currency(bonus.amount) for bonus in breakdown.bonuses},
        "segments": [
            f"{format_time(segment.start)}-{format_time(segment.end)}" for segment in breakdown.segments
        ],
    }
    return data


def totals_formatted(totals: SalaryTotals) -> dict[str, str]:
    return {
        "total_hours": format_hours(totals.total_hours),
        "gross_salary": format_currency(totals.gross_salary),
        "net_salary": format_currency(totals.net_salary),
    }


def summary_response(summary: OverallSummary) -> dict:
    data = summary.model_dump(mode="json")
    data["formatted"] = {
        "grand_total": totals_formatted(summary.grand_total),
        "weeks": {week.key: totals_formatted(week.totals) for week in summary.weeks},
    }
    return data
