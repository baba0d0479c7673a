from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from moneycycle import models
from moneycycle.core.database import get_db
from moneycycle.core.deps import get_current_user
from moneycycle.schemas import CategoryCreate, CategoryOut, CategoryUpdate


router = APIRouter(prefix="/categories", tags=["categories"])


def _get_owned(db: Session, user_id: int, category_id: int) -> models.Category:
    row = (
        db.query(models.Category)
        .filter(models.Category.id == category_id, models.Category.user_id == user_id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Category not found")
    return row


@router.get("", response_model=list[CategoryOut])
def list_categories(
    type: Optional[models.TxnType] = Query(None),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    q = db.query(models.Category).filter(models.Category.user_id == current_user.id)
    if type is not None:
        q = q.filter(models.Category.type == type)
    return q.order_by(models.Category.id).all()


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    row = models.Category(user_id=current_user.id, **payload.model_dump())
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Category with same name already exists")
    db.refresh(row)
    return row


@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    row = _get_owned(db, current_user.id, category_id)
    for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(row, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Category with same name already exists")
    db.refresh(row)
    return row


@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    row = _get_owned(db, current_user.id, category_id)
    db.delete(row)
    db.commit()
    return None
