"""
고정 거래(반복 규칙) 발생일 계산

규칙(day, end_type, end_date, start_date, last_generated)을 월 단위로 전개하여
구체적인 발생일 목록을 만듭니다. DB 접근 없이 순수 함수로만 동작하며,
생성 시점 백필(backfill)과 스케줄러(cron) 경로가 같은 전개 로직을 공유합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Protocol

from moneycycle.utils.dates import CycleRange, YearMonth, clamp_day, iter_months, parse_date


class RuleLike(Protocol):
    day: int
    end_type: str
    end_date: Optional[date]
    start_date: Optional[date]
    last_generated: Optional[date]


@dataclass
class RuleSpec:
    """Plain recurring rule used where no ORM row exists (previews, tests)."""

    day: int
    start_date: Optional[date] = None
    end_type: str = "never"
    end_date: Optional[date] = None
    last_generated: Optional[date] = None


def _end_boundary(rule: RuleLike) -> date | None:
    if rule.end_type != "date":
        return None
    return parse_date(rule.end_date)


def project_occurrences(rule: RuleLike, from_date: date, through: YearMonth) -> list[date]:
    """Project ``rule`` month by month from ``from_date`` through ``through`` (inclusive).

    The day of month is clamped to each month's length. Once an occurrence
    passes the rule's end date the projection stops. An occurrence falling
    before ``from_date`` in the first month is not emitted.
    """
    end_boundary = _end_boundary(rule)
    occurrences: list[date] = []
    for ym in iter_months(YearMonth.of(from_date), through):
        target = clamp_day(ym.year, ym.month, rule.day)
        if end_boundary is not None and target > end_boundary:
            break
        if target < from_date:
            continue
        occurrences.append(target)
    return occurrences


def is_generated_in_cycle(rule: RuleLike, cycle: CycleRange) -> bool:
    last = parse_date(rule.last_generated)
    return last is not None and last in cycle


def due_in_cycle(rule: RuleLike, cycle: CycleRange, today: date) -> list[date]:
    """Occurrences the scheduled job should materialize for ``cycle``.

    Only dates inside the cycle, on or before ``today`` and after
    ``last_generated`` are due. A cycle usually holds one occurrence, but when
    the rule day and the cycle start day clamp differently it can hold two
    (cycle day 31, rule day 30: Feb 28 and Mar 30), so a list is returned.
    """
    start = cycle.start
    rule_start = parse_date(rule.start_date)
    if rule_start is not None and rule_start > start:
        start = rule_start
    if is_generated_in_cycle(rule, cycle):
        start = max(start, parse_date(rule.last_generated) + timedelta(days=1))
    end = min(cycle.end, today)
    if start > end:
        return []
    return [d for d in project_occurrences(rule, start, YearMonth.of(end)) if d <= end]


def backfill_dates(rule: RuleLike, today: date) -> list[date]:
    """Every elapsed occurrence from the rule's start date up to ``today``."""
    rule_start = parse_date(rule.start_date) or today
    if rule_start > today:
        return []
    return [d for d in project_occurrences(rule, rule_start, YearMonth.of(today)) if d <= today]
