"""
생존 예산(하루 사용 가능 금액) 계산

카테고리별 목표 예산 대비 지출을 집계하고, 사이클 종료일까지 남은 일수로
나누어 하루 권장 사용액을 산출합니다. 고정 거래로 생성된 지출
(source_fixed_id가 있는 거래)은 재량 지출이 아니므로 집계에서 제외합니다.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Literal, Mapping

Status = Literal["safe", "warning", "danger"]
OverallStatus = Literal["safe", "warning", "danger", "unknown"]

DANGER_PERCENT = 80
WARNING_PERCENT = 50


@dataclass(frozen=True)
class CategorySurvival:
    category_id: int | str
    amount: int
    spent: int
    remaining: int
    percentage: float
    status: Status


@dataclass(frozen=True)
class SurvivalResult:
    has_budget: bool
    status: OverallStatus
    total_budget: int = 0
    current_spent: int = 0
    disposable_balance: int = 0
    days_left: int = 0
    daily_available: int = 0
    categories: list[CategorySurvival] = field(default_factory=list)


def _get(record: Any, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def category_status(spent: int, amount: int, percentage: float) -> Status:
    if spent > amount or percentage >= DANGER_PERCENT:
        return "danger"
    if percentage >= WARNING_PERCENT:
        return "warning"
    return "safe"


def usage_percentage(spent: int, amount: int) -> float:
    if amount <= 0:
        return 100.0 if spent > 0 else 0.0
    return min(100.0, max(0.0, spent / amount * 100))


def discretionary_spent(transactions: Iterable[Any], category_id: int | str) -> int:
    return sum(
        int(_get(t, "amount") or 0)
        for t in transactions
        if _get(t, "type") == "expense"
        and not _get(t, "source_fixed_id")
        and _get(t, "category_id") == category_id
    )


def compute_survival(
    goals: Iterable[Any],
    transactions: Iterable[Any],
    cycle_end_date: date,
    today: date,
) -> SurvivalResult:
    """
    카테고리 목표 예산 기반 생존 예산 계산

    Args:
        goals: ``category_id``/``amount``를 가진 목표 예산 (category_id가 None인 전체 예산은 제외)
        transactions: 사이클 내 거래 목록
        cycle_end_date: 현재 사이클 종료일
        today: 기준일 (오늘 포함하여 남은 일수 계산)

    Returns:
        SurvivalResult. 카테고리 목표가 없으면 ``has_budget=False``, ``status="unknown"``.
    """
    valid_goals = [g for g in goals if _get(g, "category_id") is not None]
    txns = list(transactions)

    categories: list[CategorySurvival] = []
    for goal in valid_goals:
        category_id = _get(goal, "category_id")
        amount = int(_get(goal, "amount") or 0)
        spent = discretionary_spent(txns, category_id)
        percentage = usage_percentage(spent, amount)
        categories.append(
            CategorySurvival(
                category_id=category_id,
                amount=amount,
                spent=spent,
                remaining=amount - spent,
                percentage=percentage,
                status=category_status(spent, amount, percentage),
            )
        )

    total_budget = sum(c.amount for c in categories)
    if not total_budget:
        return SurvivalResult(has_budget=False, status="unknown", categories=categories)

    current_spent = sum(c.spent for c in categories)
    disposable = total_budget - current_spent
    days_left = abs((cycle_end_date - today).days) + 1
    daily = math.floor(disposable / max(1, days_left))

    status: OverallStatus = "safe"
    if daily <= 0:
        status = "danger"
    elif daily < (total_budget / 30) * 0.5:
        status = "warning"

    return SurvivalResult(
        has_budget=True,
        status=status,
        total_budget=total_budget,
        current_spent=current_spent,
        disposable_balance=disposable,
        days_left=days_left,
        daily_available=daily,
        categories=categories,
    )
