from __future__ import annotations

from datetime import date, timedelta

import pytest

from moneycycle.utils.dates import (
    CycleRange,
    YearMonth,
    add_months,
    clamp_day,
    compute_cycle_range,
    filter_by_date_range,
    iter_cycles_back,
    months_between,
    parse_date,
    previous_cycle,
)


class TestComputeCycleRange:
    def test_start_day_one_is_calendar_month(self):
        cycle = compute_cycle_range(date(2024, 2, 14), 1)
        assert cycle == CycleRange(date(2024, 2, 1), date(2024, 2, 29))

    def test_reference_before_start_day_belongs_to_previous_month(self):
        cycle = compute_cycle_range(date(2026, 1, 10), 25)
        assert cycle.start == date(2025, 12, 25)
        assert cycle.end == date(2026, 1, 24)

    def test_reference_on_start_day_opens_new_cycle(self):
        cycle = compute_cycle_range(date(2026, 1, 25), 25)
        assert cycle == CycleRange(date(2026, 1, 25), date(2026, 2, 24))

    def test_start_day_31_clamps_in_short_months(self):
        # 4월에는 31일이 없으므로 30일이 시작일
        cycle = compute_cycle_range(date(2025, 4, 30), 31)
        assert cycle == CycleRange(date(2025, 4, 30), date(2025, 5, 30))

    def test_start_day_30_in_february(self):
        cycle = compute_cycle_range(date(2025, 2, 28), 30)
        assert cycle == CycleRange(date(2025, 2, 28), date(2025, 3, 29))
        before = compute_cycle_range(date(2025, 2, 27), 30)
        assert before == CycleRange(date(2025, 1, 30), date(2025, 2, 27))

    def test_leap_year_february(self):
        cycle = compute_cycle_range(date(2024, 2, 29), 29)
        assert cycle == CycleRange(date(2024, 2, 29), date(2024, 3, 28))

    @pytest.mark.parametrize("cycle_start_day", [1, 2, 15, 25, 28, 29, 30, 31])
    def test_reference_always_inside_its_cycle(self, cycle_start_day):
        day = date(2023, 12, 1)
        while day <= date(2025, 3, 31):
            cycle = compute_cycle_range(day, cycle_start_day)
            assert day in cycle, (day, cycle)
            day += timedelta(days=1)

    @pytest.mark.parametrize("cycle_start_day", [1, 10, 28, 29, 31])
    def test_consecutive_cycles_are_contiguous(self, cycle_start_day):
        cycle = compute_cycle_range(date(2024, 1, 15), cycle_start_day)
        for _ in range(14):
            following = compute_cycle_range(cycle.end + timedelta(days=1), cycle_start_day)
            assert following.start == cycle.end + timedelta(days=1)
            cycle = following

    def test_days_property(self):
        assert compute_cycle_range(date(2025, 6, 3), 1).days == 30


class TestCycleNavigation:
    def test_previous_cycle(self):
        current = compute_cycle_range(date(2026, 1, 10), 25)
        assert previous_cycle(current, 25) == CycleRange(date(2025, 11, 25), date(2025, 12, 24))

    def test_iter_cycles_back_is_oldest_first(self):
        cycles = iter_cycles_back(date(2025, 3, 5), 1, 3)
        assert [c.start for c in cycles] == [date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1)]

    def test_iter_cycles_back_zero_count(self):
        assert iter_cycles_back(date(2025, 3, 5), 1, 0) == []


class TestMonthArithmetic:
    def test_clamp_day(self):
        assert clamp_day(2025, 2, 31) == date(2025, 2, 28)
        assert clamp_day(2024, 2, 31) == date(2024, 2, 29)
        assert clamp_day(2025, 3, 31) == date(2025, 3, 31)

    def test_add_months_clamps_instead_of_rolling_over(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2025, 1, 31), -2) == date(2024, 11, 30)
        assert add_months(date(2025, 2, 28), 1, day=31) == date(2025, 3, 31)

    def test_add_months_across_years(self):
        assert add_months(date(2025, 11, 15), 14) == date(2027, 1, 15)

    def test_months_between(self):
        assert months_between(date(2025, 11, 20), date(2026, 2, 1)) == 3
        assert months_between(date(2025, 11, 20), date(2025, 11, 30)) == 0

    def test_year_month(self):
        ym = YearMonth.parse("2025-12")
        assert ym.next() == YearMonth(2026, 1)
        assert str(ym) == "2025-12"
        assert YearMonth.of(date(2025, 3, 9)) < ym


class TestParseDate:
    @pytest.mark.parametrize("raw", ["2025-03-09", "2025/03/09", "2025.03.09"])
    def test_accepted_formats(self, raw):
        assert parse_date(raw) == date(2025, 3, 9)

    def test_invalid_returns_none(self):
        assert parse_date("03-09-2025") is None
        assert parse_date("") is None
        assert parse_date(None) is None


class TestFilterByDateRange:
    def test_inclusive_bounds_on_strings(self):
        records = [{"date": "2025-12-24"}, {"date": "2025-12-25"}, {"date": "2026-01-24"}, {"date": "2026-01-25"}]
        kept = filter_by_date_range(records, date(2025, 12, 25), date(2026, 1, 24))
        assert [r["date"] for r in kept] == ["2025-12-25", "2026-01-24"]

    def test_reads_attributes_and_date_values(self):
        class Row:
            def __init__(self, value):
                self.date = value

        rows = [Row(date(2025, 5, 1)), Row("2025-05-31"), Row("2025-06-01")]
        kept = filter_by_date_range(rows, date(2025, 5, 1), date(2025, 5, 31))
        assert len(kept) == 2

    def test_empty_input(self):
        assert filter_by_date_range([], date(2025, 1, 1), date(2025, 1, 31)) == []
