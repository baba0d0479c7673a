from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from moneycycle import models
from moneycycle.core.database import get_db
from moneycycle.core.deps import get_current_user, get_user_settings
from moneycycle.schemas import TransactionCreate, TransactionOut, TransactionUpdate
from moneycycle.utils.dates import compute_cycle_range, filter_by_date_range, format_date

from .common import ensure_category


router = APIRouter(prefix="/transactions", tags=["transactions"])


def _get_owned(db: Session, user_id: int, txn_id: int) -> models.Transaction:
    row = (
        db.query(models.Transaction)
        .filter(models.Transaction.id == txn_id, models.Transaction.user_id == user_id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return row


@router.get("", response_model=list[TransactionOut])
def list_transactions(
    response: Response,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    cycle_of: Optional[date] = Query(None, description="Restrict to the pay cycle containing this date"),
    type: Optional[models.TxnType] = Query(None),
    category_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    user_settings: models.UserSettings = Depends(get_user_settings),
):
    if cycle_of is not None:
        cycle = compute_cycle_range(cycle_of, user_settings.cycle_start_day)
        start, end = cycle.start, cycle.end
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")

    q = db.query(models.Transaction).filter(models.Transaction.user_id == current_user.id)
    if start:
        q = q.filter(models.Transaction.date >= format_date(start))
    if end:
        q = q.filter(models.Transaction.date <= format_date(end))
    if type is not None:
        q = q.filter(models.Transaction.type == type)
    if category_id is not None:
        q = q.filter(models.Transaction.category_id == category_id)
    rows = q.order_by(models.Transaction.date.desc(), models.Transaction.id.desc()).all()
    if start and end:
        rows = filter_by_date_range(rows, start, end)
    response.headers["X-Total-Count"] = str(len(rows))
    return rows


@router.post("", response_model=TransactionOut, status_code=201)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    ensure_category(db, current_user.id, payload.category_id)
    data = payload.model_dump()
    data["date"] = format_date(payload.date)
    row = models.Transaction(user_id=current_user.id, **data)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.patch("/{txn_id}", response_model=TransactionOut)
def update_transaction(
    txn_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    row = _get_owned(db, current_user.id, txn_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        return row
    if "category_id" in changes:
        ensure_category(db, current_user.id, changes["category_id"])
    if changes.get("date") is not None:
        changes["date"] = format_date(changes["date"])
    for key, value in changes.items():
        if key in ("amount", "type", "date") and value is None:
            continue
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


@router.delete("/{txn_id}", status_code=204)
def delete_transaction(
    txn_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    row = _get_owned(db, current_user.id, txn_id)
    db.delete(row)
    db.commit()
    return None
