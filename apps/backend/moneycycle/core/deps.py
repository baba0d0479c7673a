from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from moneycycle.core.config import settings
from moneycycle.core.database import get_db
from moneycycle import models


def get_current_user(db: Session = Depends(get_db)) -> models.User:
    """Very lightweight current user resolver.

    Authentication is handled outside this backend; this returns the first
    user (creating a demo user if none). Tests may override this dependency.
    """
    user = db.query(models.User).order_by(models.User.id).first()
    if not user:
        user = models.User(email="demo@example.com", is_active=True)
        db.add(user)
        db.flush()
        db.add(models.UserSettings(user_id=user.id, cycle_start_day=settings.DEFAULT_CYCLE_START_DAY))
        db.commit()
        db.refresh(user)
    return user


def get_user_settings(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> models.UserSettings:
    row = db.query(models.UserSettings).filter(models.UserSettings.user_id == current_user.id).first()
    if not row:
        row = models.UserSettings(user_id=current_user.id, cycle_start_day=settings.DEFAULT_CYCLE_START_DAY)
        db.add(row)
        db.commit()
        db.refresh(row)
    return row


def require_cron_secret(authorization: str | None = Header(None)) -> None:
    # Vercel Cron 방식: Authorization: Bearer <CRON_SECRET>
    expected = f"Bearer {settings.CRON_SECRET}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")
