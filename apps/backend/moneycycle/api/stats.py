from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from moneycycle import models
from moneycycle.core.database import get_db
from moneycycle.core.deps import get_current_user, get_user_settings
from moneycycle.schemas import CycleStatsOut, RecurringSummaryOut, TrendItemOut
from moneycycle.services.stats_service import StatsService

from .common import resolve_date


router = APIRouter(prefix="/stats", tags=["stats"])


def _service(db: Session, user: models.User, user_settings: models.UserSettings) -> StatsService:
    return StatsService(db, user.id, user_settings.cycle_start_day)


@router.get("/cycle", response_model=CycleStatsOut)
def cycle_stats(
    on: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    user_settings: models.UserSettings = Depends(get_user_settings),
):
    return _service(db, current_user, user_settings).cycle_stats(resolve_date(on))


@router.get("/trend", response_model=list[TrendItemOut])
def cycle_trend(
    on: Optional[date] = Query(None, alias="date"),
    count: int = Query(6, ge=1, le=24),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    user_settings: models.UserSettings = Depends(get_user_settings),
):
    return _service(db, current_user, user_settings).trend(resolve_date(on), count)


@router.get("/recurring-summary", response_model=RecurringSummaryOut)
def recurring_summary(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    user_settings: models.UserSettings = Depends(get_user_settings),
):
    return _service(db, current_user, user_settings).recurring_summary()
