from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from moneycycle import models
from moneycycle.core.database import get_db
from moneycycle.core.deps import get_current_user, get_user_settings
from moneycycle.schemas import BudgetGoalOut, BudgetGoalUpsert, SurvivalOut
from moneycycle.services.stats_service import StatsService
from moneycycle.services.survival import compute_survival
from moneycycle.utils.dates import compute_cycle_range

from .common import ensure_category, resolve_date


router = APIRouter(prefix="/budget-goals", tags=["budget-goals"])


def _goal_query(db: Session, user_id: int, category_id: int | None):
    q = db.query(models.BudgetGoal).filter(models.BudgetGoal.user_id == user_id)
    if category_id is None:
        return q.filter(models.BudgetGoal.category_id.is_(None))
    return q.filter(models.BudgetGoal.category_id == category_id)


@router.get("", response_model=list[BudgetGoalOut])
def list_budget_goals(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return (
        db.query(models.BudgetGoal)
        .filter(models.BudgetGoal.user_id == current_user.id)
        .order_by(models.BudgetGoal.id)
        .all()
    )


@router.put("", response_model=BudgetGoalOut)
def upsert_budget_goal(
    payload: BudgetGoalUpsert,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    ensure_category(db, current_user.id, payload.category_id)
    # SQLite는 NULL을 유니크 비교에서 제외하므로 전체 예산(category_id=None)도 직접 조회
    goal = _goal_query(db, current_user.id, payload.category_id).first()
    if goal:
        goal.amount = payload.amount
    else:
        goal = models.BudgetGoal(
            user_id=current_user.id,
            category_id=payload.category_id,
            amount=payload.amount,
        )
        db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal


@router.delete("", status_code=204)
def delete_budget_goal(
    category_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    goal = _goal_query(db, current_user.id, category_id).first()
    if not goal:
        raise HTTPException(status_code=404, detail="Budget goal not found")
    db.delete(goal)
    db.commit()
    return None


@router.get("/survival", response_model=SurvivalOut)
def get_survival(
    on: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    user_settings: models.UserSettings = Depends(get_user_settings),
):
    today = resolve_date(on)
    cycle = compute_cycle_range(today, user_settings.cycle_start_day)
    goals = (
        db.query(models.BudgetGoal)
        .filter(models.BudgetGoal.user_id == current_user.id)
        .all()
    )
    txns = StatsService(db, current_user.id, user_settings.cycle_start_day).transactions_between(
        cycle.start, cycle.end
    )
    result = compute_survival(goals, txns, cycle.end, today)
    return SurvivalOut(
        cycle_start=cycle.start,
        cycle_end=cycle.end,
        has_budget=result.has_budget,
        status=result.status,
        total_budget=result.total_budget,
        current_spent=result.current_spent,
        disposable_balance=result.disposable_balance,
        days_left=result.days_left,
        daily_available=result.daily_available,
        categories=[
            {
                "category_id": c.category_id,
                "amount": c.amount,
                "spent": c.spent,
                "remaining": c.remaining,
                "percentage": c.percentage,
                "status": c.status,
            }
            for c in result.categories
        ],
    )
