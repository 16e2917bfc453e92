# shiftpay/routes/calendar.py
"""
Calendar feed import and weekly salary summaries.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from shiftpay.core.ics import IcsParseError, parse_ics_data
from shiftpay.core.ics_fetcher import IcsFetchError, fetch_ics_data
from shiftpay.core.persistence import (
    get_calendar_feed,
    load_imported_shifts,
    save_calendar_url,
    save_imported_shifts,
    set_shift_enabled,
    set_week_enabled,
)
from shiftpay.core.summary import summarize_weeks
from shiftpay.database.database import get_db
from shiftpay.routes.shared import (
    CalendarImportRequest,
    CalendarUrlUpdate,
    EnabledUpdate,
    effective_config,
    resolve_age,
    summary_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


def _query_fields(age: float | None) -> set[str]:
    return {"age"} if age is not None else set()


def _summary(db: Session, shifts, age: float | None, fields_set) -> dict:
    """Weekly summary; the configured default age applies when the caller gave none."""
    config = effective_config(db)
    return summary_response(summarize_weeks(shifts, config, resolve_age(age, fields_set, config)))


@router.get("")
def read_calendar(age: float | None = Query(None), db: Session = Depends(get_db)):
    """Saved feed URL and the summary of the last import."""
    feed = get_calendar_feed(db)
    return {
        "url": feed.url if feed else None,
        "last_fetched_at": feed.last_fetched_at.isoformat() if feed and feed.last_fetched_at else None,
        "used_proxy": bool(feed.used_proxy) if feed else False,
        "summary": _summary(db, load_imported_shifts(db), age, _query_fields(age)),
    }


@router.put("/url")
def update_calendar_url(payload: CalendarUrlUpdate, db: Session = Depends(get_db)):
    if not payload.url.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="URL cannot be empty")
    feed = save_calendar_url(db, payload.url)
    return {"url": feed.url}


@router.post("/import")
def import_calendar(payload: CalendarImportRequest, db: Session = Depends(get_db)):
    """
    Fetch and parse the feed, store the shifts and return weekly totals.

    Uses the URL from the request (and saves it) or the saved one.
    """
    url = payload.url
    if url and url.strip():
        save_calendar_url(db, url)
    else:
        feed = get_calendar_feed(db)
        url = feed.url if feed else None
    if not url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No calendar URL saved")

    try:
        result = fetch_ics_data(url)
    except IcsFetchError as e:
        logger.warning("Calendar fetch failed: %s", e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e

    try:
        shifts = parse_ics_data(result.data)
    except IcsParseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    shifts = save_imported_shifts(db, shifts, used_proxy=result.used_proxy)
    response = _summary(db, shifts, payload.age, payload.model_fields_set)
    response["used_proxy"] = result.used_proxy
    return response


@router.post("/parse")
async def parse_calendar(request: Request, age: float | None = Query(None), db: Session = Depends(get_db)):
    """Import shifts from a raw iCal request body, e.g. an uploaded file."""
    body = await request.body()
    try:
        shifts = parse_ics_data(body.decode("utf-8", errors="replace"))
    except IcsParseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    shifts = save_imported_shifts(db, shifts)
    return _summary(db, shifts, age, _query_fields(age))


@router.patch("/shifts/{shift_id}")
def toggle_shift(
    shift_id: str,
    payload: EnabledUpdate,
    age: float | None = Query(None),
    db: Session = Depends(get_db),
):
    if not set_shift_enabled(db, shift_id, payload.enabled):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown shift {shift_id}")
    return _summary(db, load_imported_shifts(db), age, _query_fields(age))


@router.patch("/weeks/{week_key}")
def toggle_week(
    week_key: str,
    payload: EnabledUpdate,
    age: float | None = Query(None),
    db: Session = Depends(get_db),
):
    if not set_week_enabled(db, week_key, payload.enabled):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No imported shifts in week {week_key}")
    return _summary(db, load_imported_shifts(db), age, _query_fields(age))
