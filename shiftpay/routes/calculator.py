# shiftpay/routes/calculator.py
"""
Single shift salary calculation endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from shiftpay.core.engine import compute_salary
from shiftpay.core.formatting import format_datetime_for_input
from shiftpay.core.time_utils import derive_end_time, should_apply_break
from shiftpay.core.validators import require_valid_interval
from shiftpay.database.database import get_db
from shiftpay.routes.shared import CalculateRequest, breakdown_response, effective_config, resolve_age

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["calculator"])


@router.post("/calculate")
async def calculate(payload: CalculateRequest, db: Session = Depends(get_db)):
    """
    Calculate gross and net salary for one shift.

    Without include_break the unpaid break is applied when the shift reaches
    the configured threshold.
    """
    interval = require_valid_interval(payload.start, payload.end)

    config = effective_config(db)

    include_break = payload.include_break
    if include_break is None:
        include_break = should_apply_break(interval, config.rates.effective_break_threshold)

    age = resolve_age(payload.age, payload.model_fields_set, config)
    breakdown = compute_salary(interval, config.rates, include_break, age, config.deductions)

    logger.info(
        "Calculated shift %s - %s: net %.2f",
        interval.start,
        interval.end,
        breakdown.net_salary,
    )
    return breakdown_response(breakdown)


@router.get("/end-time")
async def end_time(
    start: str = Query(...),
    duration: float | None = Query(None),
    db: Session = Depends(get_db),
):
    """Suggested end time for a start, using the default shift length unless given."""
    if duration is None:
        duration = effective_config(db).default_shift_hours

    end = derive_end_time(start, duration)
    if end is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid start time or duration")

    return {"start": start, "duration": duration, "end": format_datetime_for_input(end)}
