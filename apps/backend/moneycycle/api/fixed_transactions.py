from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from moneycycle import models
from moneycycle.core.database import get_db
from moneycycle.core.deps import get_current_user
from moneycycle.schemas import (
    FixedTransactionCreate,
    FixedTransactionCreated,
    FixedTransactionOut,
    FixedTransactionUpdate,
    OccurrencePreviewOut,
)
from moneycycle.services.recurrence import project_occurrences
from moneycycle.services.recurring_service import RecurringGenerationService
from moneycycle.utils.dates import YearMonth

from .common import ensure_category


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fixed-transactions", tags=["fixed-transactions"])


def get_owned_rule(db: Session, user_id: int, rule_id: int) -> models.FixedTransaction:
    rule = (
        db.query(models.FixedTransaction)
        .filter(models.FixedTransaction.id == rule_id, models.FixedTransaction.user_id == user_id)
        .first()
    )
    if not rule:
        raise HTTPException(status_code=404, detail="Fixed transaction not found")
    return rule


def created_response(rule: models.FixedTransaction, report) -> FixedTransactionCreated:
    body = FixedTransactionOut.model_validate(rule).model_dump()
    body["generated_count"] = report.generated_count if report else 0
    body["failed_rounds"] = [f.occurred_at for f in report.failed] if report else []
    return FixedTransactionCreated(**body)


@router.get("", response_model=list[FixedTransactionOut])
def list_fixed_transactions(
    type: Optional[models.TxnType] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    q = db.query(models.FixedTransaction).filter(models.FixedTransaction.user_id == current_user.id)
    if type is not None:
        q = q.filter(models.FixedTransaction.type == type)
    if is_active is not None:
        q = q.filter(models.FixedTransaction.is_active.is_(is_active))
    return q.order_by(models.FixedTransaction.day, models.FixedTransaction.id).all()


@router.get("/{rule_id}", response_model=FixedTransactionOut)
def get_fixed_transaction(
    rule_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return get_owned_rule(db, current_user.id, rule_id)


@router.post("", response_model=FixedTransactionCreated, status_code=201)
def create_fixed_transaction(
    payload: FixedTransactionCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    ensure_category(db, current_user.id, payload.category_id)
    rule = models.FixedTransaction(
        user_id=current_user.id,
        type=payload.type,
        amount=payload.amount,
        day=payload.day or payload.start_date.day,
        category_id=payload.category_id,
        memo=payload.memo,
        start_date=payload.start_date,
        end_type=payload.end_type,
        end_date=payload.end_date if payload.end_type == models.EndType.DATE else None,
        is_active=True,
    )
    db.add(rule)
    db.commit()
    db.refresh(rule)

    report = None
    if payload.backfill:
        report = RecurringGenerationService(db).backfill(rule, today=models.today_local())
        db.refresh(rule)
    return created_response(rule, report)


@router.patch("/{rule_id}", response_model=FixedTransactionOut)
def update_fixed_transaction(
    rule_id: int,
    payload: FixedTransactionUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    rule = get_owned_rule(db, current_user.id, rule_id)
    changes = payload.model_dump(exclude_unset=True)
    if rule.is_installment and changes.keys() & {"amount", "type", "day", "end_type", "end_date"}:
        raise HTTPException(status_code=400, detail="Installment plans are edited via /installments")
    if "category_id" in changes:
        ensure_category(db, current_user.id, changes["category_id"])

    end_type = changes.get("end_type") or rule.end_type
    end_date = changes["end_date"] if "end_date" in changes else rule.end_date
    if end_type == models.EndType.DATE:
        if end_date is None:
            raise HTTPException(status_code=400, detail="end_date is required when end_type is 'date'")
        if rule.start_date and end_date < rule.start_date:
            raise HTTPException(status_code=400, detail="end_date must not precede start_date")
    else:
        changes["end_date"] = None

    for key, value in changes.items():
        if key in ("type", "amount", "day", "end_type", "is_active") and value is None:
            continue
        setattr(rule, key, value)
    db.commit()
    db.refresh(rule)
    return rule


@router.post("/{rule_id}/toggle", response_model=FixedTransactionOut)
def toggle_fixed_transaction(
    rule_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    rule = get_owned_rule(db, current_user.id, rule_id)
    rule.is_active = not rule.is_active
    db.commit()
    db.refresh(rule)
    return rule


@router.delete("/{rule_id}", status_code=204)
def delete_fixed_transaction(
    rule_id: int,
    delete_related: bool = Query(False, description="Also delete transactions generated from this rule"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    rule = get_owned_rule(db, current_user.id, rule_id)
    if delete_related:
        removed = (
            db.query(models.Transaction)
            .filter(
                models.Transaction.source_fixed_id == rule.id,
                models.Transaction.user_id == current_user.id,
            )
            .delete(synchronize_session=False)
        )
        logger.info("fixed transaction %s deleted with %d generated transaction(s)", rule.id, removed)
    else:
        # 생성된 거래는 남기고 연결만 해제
        db.query(models.Transaction).filter(models.Transaction.source_fixed_id == rule.id).update(
            {models.Transaction.source_fixed_id: None}, synchronize_session=False
        )
    db.delete(rule)
    db.commit()
    return None


@router.get("/{rule_id}/preview", response_model=OccurrencePreviewOut)
def preview_occurrences(
    rule_id: int,
    through: str = Query(..., pattern=r"^\d{4}-\d{2}$", description="Last month to project (YYYY-MM)"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    rule = get_owned_rule(db, current_user.id, rule_id)
    try:
        through_month = YearMonth.parse(through)
    except ValueError:
        raise HTTPException(status_code=400, detail="through must be YYYY-MM")
    from_date = rule.start_date or models.today_local()
    return OccurrencePreviewOut(
        rule_id=rule.id,
        through=str(through_month),
        occurrences=project_occurrences(rule, from_date, through_month),
    )
