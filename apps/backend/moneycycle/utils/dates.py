"""
날짜/급여 사이클 유틸리티

- 급여 사이클(cycle_start_day 기준) 범위 계산
- 월말 보정(clamp) 기반 월 이동
- 날짜 범위 필터링
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Iterator, Mapping, TypeVar

DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"

T = TypeVar("T")


@dataclass(frozen=True)
class CycleRange:
    """Inclusive pay-cycle window."""

    start: date
    end: date

    def __contains__(self, value: date) -> bool:
        return self.start <= value <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True, order=True)
class YearMonth:
    year: int
    month: int

    @classmethod
    def of(cls, value: date) -> "YearMonth":
        return cls(value.year, value.month)

    @classmethod
    def parse(cls, value: str) -> "YearMonth":
        parsed = datetime.strptime(value, MONTH_FORMAT)
        return cls(parsed.year, parsed.month)

    def next(self) -> "YearMonth":
        year, month = add_month(self.year, self.month, 1)
        return YearMonth(year, month)

    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_month(year: int, month: int, delta: int) -> tuple[int, int]:
    total = year * 12 + (month - 1) + delta
    new_year = total // 12
    new_month = total % 12 + 1
    return new_year, new_month


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping ``day`` to the length of the month (31 -> Feb 28/29)."""
    last_day = days_in_month(year, month)
    return date(year, month, min(day, last_day))


def add_months(value: date, delta: int, *, day: int | None = None) -> date:
    """Move ``value`` by ``delta`` months, clamping to month end instead of rolling over."""
    year, month = add_month(value.year, value.month, delta)
    return clamp_day(year, month, day if day is not None else value.day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start``'s month to ``end``'s month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def compute_cycle_range(reference_date: date, cycle_start_day: int) -> CycleRange:
    """Return the pay cycle that contains ``reference_date``.

    ``cycle_start_day == 1`` is the plain calendar month. For other days the
    cycle starts on that day of the month and ends the day before the next
    cycle starts. When the start day does not exist in a month (31 in April,
    29-31 in February) it is clamped to that month's last day, so every
    reference date falls inside its own cycle and cycles never overlap.
    Callers validate ``cycle_start_day`` (1..31) and pass a local (KST) date.
    """
    if cycle_start_day == 1:
        start = reference_date.replace(day=1)
        end = clamp_day(reference_date.year, reference_date.month, 31)
        return CycleRange(start, end)

    anchor = clamp_day(reference_date.year, reference_date.month, cycle_start_day)
    if reference_date >= anchor:
        start = anchor
    else:
        start = add_months(reference_date, -1, day=cycle_start_day)
    next_start = add_months(start, 1, day=cycle_start_day)
    return CycleRange(start, next_start - timedelta(days=1))


def previous_cycle(cycle: CycleRange, cycle_start_day: int) -> CycleRange:
    return compute_cycle_range(cycle.start - timedelta(days=1), cycle_start_day)


def iter_cycles_back(reference_date: date, cycle_start_day: int, count: int) -> list[CycleRange]:
    """The ``count`` cycles ending with the one containing ``reference_date``, oldest first."""
    cycles: list[CycleRange] = []
    if count <= 0:
        return cycles
    current = compute_cycle_range(reference_date, cycle_start_day)
    cycles.append(current)
    for _ in range(count - 1):
        current = previous_cycle(current, cycle_start_day)
        cycles.append(current)
    cycles.reverse()
    return cycles


def parse_date(value: str | date | None) -> date | None:
    """Parse a ``YYYY-MM-DD`` string, returning None on failure."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    for fmt in (DATE_FORMAT, "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def _record_date(record: Any) -> str:
    raw = record.get("date") if isinstance(record, Mapping) else getattr(record, "date")
    if isinstance(raw, date):
        return format_date(raw)
    return str(raw)


def filter_by_date_range(records: Iterable[T], start: date, end: date) -> list[T]:
    """Keep records whose ``date`` lies in ``[start, end]``.

    ISO-8601 date strings sort lexicographically, so the comparison is done on
    strings; ``date`` values are formatted first.
    """
    start_str = format_date(start)
    end_str = format_date(end)
    return [r for r in records if start_str <= _record_date(r) <= end_str]


def iter_months(start: YearMonth, through: YearMonth) -> Iterator[YearMonth]:
    pointer = start
    while pointer <= through:
        yield pointer
        pointer = pointer.next()
