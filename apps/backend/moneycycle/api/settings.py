from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from moneycycle import models
from moneycycle.core.database import get_db
from moneycycle.core.deps import get_user_settings
from moneycycle.schemas import CycleRangeOut, UserSettingsOut, UserSettingsUpdate
from moneycycle.utils.dates import compute_cycle_range

from .common import resolve_date


router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=UserSettingsOut)
def get_settings(user_settings: models.UserSettings = Depends(get_user_settings)):
    return user_settings


@router.put("", response_model=UserSettingsOut)
def update_settings(
    payload: UserSettingsUpdate,
    db: Session = Depends(get_db),
    user_settings: models.UserSettings = Depends(get_user_settings),
):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in changes.items():
        setattr(user_settings, key, value)
    db.commit()
    db.refresh(user_settings)
    return user_settings


@router.get("/cycle", response_model=CycleRangeOut)
def get_cycle(
    on: Optional[date] = Query(None, alias="date"),
    user_settings: models.UserSettings = Depends(get_user_settings),
):
    cycle = compute_cycle_range(resolve_date(on), user_settings.cycle_start_day)
    return CycleRangeOut(start=cycle.start, end=cycle.end, days=cycle.days)
