"""Helpers shared by the API routers."""

from __future__ import annotations

from datetime import date

from fastapi import HTTPException
from sqlalchemy.orm import Session

from moneycycle import models


def ensure_category(db: Session, user_id: int, category_id: int | None) -> None:
    if category_id is None:
        return
    exists = (
        db.query(models.Category.id)
        .filter(models.Category.id == category_id, models.Category.user_id == user_id)
        .first()
    )
    if not exists:
        raise HTTPException(status_code=400, detail="Category not found for user")


def resolve_date(value: date | None) -> date:
    # 기준일 미지정 시 한국 시간 기준 오늘
    return value or models.today_local()
