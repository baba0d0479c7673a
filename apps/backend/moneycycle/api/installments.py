from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from moneycycle import models
from moneycycle.core.database import get_db
from moneycycle.core.deps import get_current_user
from moneycycle.schemas import (
    FixedTransactionCreated,
    FixedTransactionOut,
    InstallmentCreate,
    InstallmentInput,
    InstallmentResultOut,
    InstallmentUpdate,
)
from moneycycle.services.recurring_service import (
    RecurringGenerationService,
    advance_installment,
    installment_rule_values,
)
from moneycycle.services.installment import calculate_installment, installment_round

from .common import ensure_category
from .fixed_transactions import created_response, get_owned_rule


router = APIRouter(prefix="/installments", tags=["installments"])


@router.post("/calculate", response_model=InstallmentResultOut)
def calculate(payload: InstallmentInput):
    return calculate_installment(
        payload.principal,
        payload.months,
        payload.annual_rate,
        payload.interest_free_months,
    )


@router.post("", response_model=FixedTransactionCreated, status_code=201)
def create_installment(
    payload: InstallmentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    ensure_category(db, current_user.id, payload.category_id)
    values = installment_rule_values(
        principal=payload.principal,
        months=payload.months,
        annual_rate=payload.annual_rate,
        interest_free_months=payload.interest_free_months,
        start_date=payload.start_date,
    )
    rule = models.FixedTransaction(
        user_id=current_user.id,
        category_id=payload.category_id,
        memo=payload.memo,
        is_active=True,
        **values,
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
def update_installment(
    rule_id: int,
    payload: InstallmentUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """할부 조건 변경: 스케줄을 다시 계산하고 진행 회차를 마지막 생성일 기준으로 맞춥니다.

    이미 생성된 거래는 건드리지 않습니다.
    """
    rule = get_owned_rule(db, current_user.id, rule_id)
    if not rule.is_installment:
        raise HTTPException(status_code=400, detail="Not an installment plan")
    ensure_category(db, current_user.id, payload.category_id)

    values = installment_rule_values(
        principal=payload.principal,
        months=payload.months,
        annual_rate=payload.annual_rate,
        interest_free_months=payload.interest_free_months,
        start_date=payload.start_date,
    )
    for key, value in values.items():
        setattr(rule, key, value)
    rule.category_id = payload.category_id
    rule.memo = payload.memo
    rule.is_active = True
    if rule.last_generated is not None and rule.last_generated >= payload.start_date:
        advance_installment(rule, installment_round(payload.start_date, rule.last_generated))
    else:
        rule.last_generated = None
    db.commit()
    db.refresh(rule)
    return rule
