# shiftpay/routes/config.py
"""
Rate configuration endpoints: read, replace, patch and reset overrides.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from shiftpay.core.persistence import (
    get_overrides,
    reset_config,
    save_config_overrides,
    update_config_value,
)
from shiftpay.core.rules import describe_window
from shiftpay.core.storage import MISSING, get_config_value
from shiftpay.core.validators import ConfigurationError
from shiftpay.database.database import get_db
from shiftpay.routes.shared import ConfigValueUpdate, effective_config

router = APIRouter(prefix="/api/config", tags=["config"])


def _config_response(db: Session, config) -> dict:
    return {
        "config": config.model_dump(mode="json"),
        "overrides": get_overrides(db),
        "windows": {rule.key: describe_window(rule) for rule in config.rates.bonus_rules},
    }


@router.get("")
async def read_config(db: Session = Depends(get_db)):
    return _config_response(db, effective_config(db))


@router.get("/value")
async def read_config_value(path: str = Query(...), db: Session = Depends(get_db)):
    """Single value by dot path, e.g. rates.bonus_rules.saturday.rate. A null value is returned as null."""
    value = get_config_value(effective_config(db), path, default=MISSING)
    if value is MISSING:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No configuration value at {path}")
    return {"path": path, "value": value}


@router.put("")
async def replace_overrides(overrides: dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    try:
        config = save_config_overrides(db, overrides)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return _config_response(db, config)


@router.patch("")
async def patch_config_value(payload: ConfigValueUpdate, db: Session = Depends(get_db)):
    try:
        config = update_config_value(db, payload.path, payload.value)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return _config_response(db, config)


@router.delete("")
async def reset_overrides(db: Session = Depends(get_db)):
    return _config_response(db, reset_config(db))
