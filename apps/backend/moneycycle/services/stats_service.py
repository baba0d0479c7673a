"""
사이클 통계 서비스

- 사이클별 수입/지출 합계 및 카테고리별 합계
- 직전 사이클 대비 증감
- 목표 예산 대비 지출 분석 (고정 거래 생성분 제외)
- 최근 N개 사이클 추이
- 활성 고정 수입/지출 월 합계
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from moneycycle import models
from moneycycle.services.survival import category_status, discretionary_spent
from moneycycle.utils.dates import (
    CycleRange,
    compute_cycle_range,
    filter_by_date_range,
    format_date,
    iter_cycles_back,
    previous_cycle,
)


@dataclass
class CycleTotals:
    total_income: int = 0
    total_expense: int = 0
    income_by_category: dict[Optional[int], int] = field(default_factory=dict)
    expense_by_category: dict[Optional[int], int] = field(default_factory=dict)


def summarize(transactions: Iterable[models.Transaction]) -> CycleTotals:
    income: defaultdict[Optional[int], int] = defaultdict(int)
    expense: defaultdict[Optional[int], int] = defaultdict(int)
    for t in transactions:
        if t.type == models.TxnType.INCOME:
            income[t.category_id] += int(t.amount)
        else:
            expense[t.category_id] += int(t.amount)
    return CycleTotals(
        total_income=sum(income.values()),
        total_expense=sum(expense.values()),
        income_by_category=dict(income),
        expense_by_category=dict(expense),
    )


def _sorted_amounts(by_category: dict[Optional[int], int]) -> list[dict]:
    items = [{"category_id": cid, "amount": amount} for cid, amount in by_category.items()]
    return sorted(items, key=lambda x: x["amount"], reverse=True)


def budget_analysis(goals: Iterable[models.BudgetGoal], transactions: list[models.Transaction]) -> list[dict]:
    rows = []
    for goal in goals:
        if goal.category_id is None:
            continue
        spent = discretionary_spent(transactions, goal.category_id)
        percentage = (spent / goal.amount) * 100 if goal.amount else 0.0
        rows.append(
            {
                "category_id": goal.category_id,
                "goal": goal.amount,
                "spent": spent,
                "percentage": percentage,
                "status": category_status(spent, goal.amount, percentage),
            }
        )
    return sorted(rows, key=lambda r: r["percentage"], reverse=True)


class StatsService:
    def __init__(self, db: Session, user_id: int, cycle_start_day: int) -> None:
        self.db = db
        self.user_id = user_id
        self.cycle_start_day = cycle_start_day

    def transactions_between(self, start: date, end: date) -> list[models.Transaction]:
        rows = (
            self.db.query(models.Transaction)
            .filter(
                models.Transaction.user_id == self.user_id,
                models.Transaction.date >= format_date(start),
                models.Transaction.date <= format_date(end),
            )
            .order_by(models.Transaction.date, models.Transaction.id)
            .all()
        )
        return filter_by_date_range(rows, start, end)

    def cycle_stats(self, reference: date) -> dict:
        current = compute_cycle_range(reference, self.cycle_start_day)
        last = previous_cycle(current, self.cycle_start_day)

        current_txns = self.transactions_between(current.start, current.end)
        current_totals = summarize(current_txns)
        last_totals = summarize(self.transactions_between(last.start, last.end))

        goals = (
            self.db.query(models.BudgetGoal)
            .filter(models.BudgetGoal.user_id == self.user_id)
            .all()
        )
        return {
            "cycle_start": current.start,
            "cycle_end": current.end,
            "total_income": current_totals.total_income,
            "total_expense": current_totals.total_expense,
            "income_by_category": _sorted_amounts(current_totals.income_by_category),
            "expense_by_category": _sorted_amounts(current_totals.expense_by_category),
            "income_diff": current_totals.total_income - last_totals.total_income,
            "expense_diff": current_totals.total_expense - last_totals.total_expense,
            "budget_analysis": budget_analysis(goals, current_txns),
        }

    def trend(self, reference: date, count: int = 6) -> list[dict]:
        cycles: list[CycleRange] = iter_cycles_back(reference, self.cycle_start_day, count)
        if not cycles:
            return []
        txns = self.transactions_between(cycles[0].start, cycles[-1].end)
        items = []
        for cycle in cycles:
            totals = summarize(filter_by_date_range(txns, cycle.start, cycle.end))
            items.append(
                {
                    "cycle_start": cycle.start,
                    "cycle_end": cycle.end,
                    # 사이클 종료일의 월을 라벨로 사용
                    "label": f"{cycle.end.month}월",
                    "income": totals.total_income,
                    "expense": totals.total_expense,
                }
            )
        return items

    def recurring_summary(self) -> dict:
        rules = (
            self.db.query(models.FixedTransaction)
            .filter(
                models.FixedTransaction.user_id == self.user_id,
                models.FixedTransaction.is_active.is_(True),
            )
            .all()
        )
        income = sum(int(r.amount) for r in rules if r.type == models.TxnType.INCOME)
        expense = sum(int(r.amount) for r in rules if r.type == models.TxnType.EXPENSE)
        return {"income": income, "expense": expense}
