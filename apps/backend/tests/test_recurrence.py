from __future__ import annotations

from datetime import date, timedelta

from moneycycle.services.recurrence import (
    RuleSpec,
    backfill_dates,
    due_in_cycle,
    is_generated_in_cycle,
    project_occurrences,
)
from moneycycle.utils.dates import YearMonth, compute_cycle_range


class TestProjectOccurrences:
    def test_day_31_clamps_to_february_end(self):
        rule = RuleSpec(day=31)
        dates = project_occurrences(rule, date(2025, 1, 1), YearMonth(2025, 4))
        assert dates == [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)]

    def test_leap_year(self):
        dates = project_occurrences(RuleSpec(day=30), date(2024, 2, 1), YearMonth(2024, 2))
        assert dates == [date(2024, 2, 29)]

    def test_stops_after_end_date(self):
        rule = RuleSpec(day=10, end_type="date", end_date=date(2025, 3, 9))
        dates = project_occurrences(rule, date(2025, 1, 1), YearMonth(2025, 12))
        assert dates == [date(2025, 1, 10), date(2025, 2, 10)]

    def test_end_date_is_inclusive(self):
        rule = RuleSpec(day=10, end_type="date", end_date=date(2025, 3, 10))
        assert project_occurrences(rule, date(2025, 1, 1), YearMonth(2025, 12))[-1] == date(2025, 3, 10)

    def test_end_date_ignored_for_never(self):
        rule = RuleSpec(day=10, end_type="never", end_date=date(2025, 1, 1))
        assert len(project_occurrences(rule, date(2025, 1, 1), YearMonth(2025, 6))) == 6

    def test_no_occurrence_before_from_date(self):
        dates = project_occurrences(RuleSpec(day=5), date(2025, 1, 20), YearMonth(2025, 3))
        assert dates == [date(2025, 2, 5), date(2025, 3, 5)]

    def test_through_before_from_is_empty(self):
        assert project_occurrences(RuleSpec(day=5), date(2025, 5, 1), YearMonth(2025, 4)) == []


class TestScheduledPath:
    def test_already_generated_in_cycle_is_skipped(self):
        cycle = compute_cycle_range(date(2025, 3, 20), 25)
        rule = RuleSpec(day=1, start_date=date(2025, 1, 1), last_generated=date(2025, 3, 1))
        assert is_generated_in_cycle(rule, cycle)
        assert due_in_cycle(rule, cycle, date(2025, 3, 20)) == []

    def test_previous_cycle_generation_does_not_block(self):
        cycle = compute_cycle_range(date(2025, 4, 2), 1)
        rule = RuleSpec(day=1, start_date=date(2025, 1, 1), last_generated=date(2025, 3, 1))
        assert due_in_cycle(rule, cycle, date(2025, 4, 2)) == [date(2025, 4, 1)]

    def test_not_due_until_day_arrives(self):
        cycle = compute_cycle_range(date(2025, 4, 2), 1)
        rule = RuleSpec(day=15, start_date=date(2025, 1, 1))
        assert due_in_cycle(rule, cycle, date(2025, 4, 2)) == []
        assert due_in_cycle(rule, cycle, date(2025, 4, 15)) == [date(2025, 4, 15)]

    def test_cycle_spanning_two_months(self):
        cycle = compute_cycle_range(date(2026, 1, 10), 25)
        rule = RuleSpec(day=5, start_date=date(2025, 6, 5))
        assert due_in_cycle(rule, cycle, date(2026, 1, 10)) == [date(2026, 1, 5)]

    def test_rule_starting_mid_cycle(self):
        cycle = compute_cycle_range(date(2025, 4, 20), 1)
        rule = RuleSpec(day=10, start_date=date(2025, 4, 12))
        assert due_in_cycle(rule, cycle, date(2025, 4, 20)) == []

    def test_ended_rule_is_not_due(self):
        cycle = compute_cycle_range(date(2025, 6, 20), 1)
        rule = RuleSpec(day=10, start_date=date(2025, 1, 10), end_type="date", end_date=date(2025, 5, 31))
        assert due_in_cycle(rule, cycle, date(2025, 6, 20)) == []

    def test_two_occurrences_in_one_cycle_are_both_due(self):
        # 사이클 시작일 31, 반복일 30: 2/28 ~ 3/30 사이클에 2/28, 3/30 두 회차
        cycle = compute_cycle_range(date(2025, 3, 30), 31)
        assert cycle.start == date(2025, 2, 28)
        rule = RuleSpec(day=30, start_date=date(2025, 1, 30))
        assert due_in_cycle(rule, cycle, date(2025, 3, 30)) == [date(2025, 2, 28), date(2025, 3, 30)]

        rule.last_generated = date(2025, 2, 28)
        assert is_generated_in_cycle(rule, cycle)
        assert due_in_cycle(rule, cycle, date(2025, 3, 30)) == [date(2025, 3, 30)]

    def test_non_leap_february_with_cycle_day_30(self):
        cycle = compute_cycle_range(date(2025, 3, 29), 30)
        assert cycle == compute_cycle_range(date(2025, 2, 28), 30)
        rule = RuleSpec(day=29, start_date=date(2025, 1, 29), last_generated=date(2025, 2, 28))
        assert due_in_cycle(rule, cycle, date(2025, 3, 29)) == [date(2025, 3, 29)]


class TestBackfill:
    def test_every_elapsed_month_up_to_today(self):
        rule = RuleSpec(day=31, start_date=date(2025, 1, 31))
        assert backfill_dates(rule, date(2025, 4, 29)) == [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31)]

    def test_future_start_yields_nothing(self):
        assert backfill_dates(RuleSpec(day=1, start_date=date(2025, 5, 1)), date(2025, 4, 30)) == []

    def test_respects_end_date(self):
        rule = RuleSpec(day=15, start_date=date(2025, 1, 15), end_type="date", end_date=date(2025, 2, 15))
        assert backfill_dates(rule, date(2025, 6, 1)) == [date(2025, 1, 15), date(2025, 2, 15)]

    def test_backfill_keeps_every_month_when_cycle_day_exceeds_rule_day(self):
        rule = RuleSpec(day=30, start_date=date(2025, 1, 30))
        assert backfill_dates(rule, date(2025, 4, 30)) == [
            date(2025, 1, 30),
            date(2025, 2, 28),
            date(2025, 3, 30),
            date(2025, 4, 30),
        ]

    def test_backfill_and_scheduled_paths_agree(self):
        rule = RuleSpec(day=31, start_date=date(2024, 11, 30))
        today = date(2025, 6, 30)
        backfilled = backfill_dates(rule, today)

        scheduled = []
        cycle = compute_cycle_range(rule.start_date, 1)
        while cycle.start <= today:
            for hit in due_in_cycle(rule, cycle, min(today, cycle.end)):
                scheduled.append(hit)
                rule.last_generated = hit
            cycle = compute_cycle_range(cycle.end + timedelta(days=1), 1)
        assert scheduled == backfilled

    def test_paths_agree_when_a_cycle_holds_two_occurrences(self):
        rule = RuleSpec(day=30, start_date=date(2025, 1, 30))
        today = date(2025, 6, 30)
        backfilled = backfill_dates(rule, today)

        scheduled = []
        cycle = compute_cycle_range(rule.start_date, 31)
        while cycle.start <= today:
            for hit in due_in_cycle(rule, cycle, min(today, cycle.end)):
                scheduled.append(hit)
                rule.last_generated = hit
            cycle = compute_cycle_range(cycle.end + timedelta(days=1), 31)
        assert scheduled == backfilled
        assert len(scheduled) == 6
