"""
고정 거래 생성 서비스

책임:
- 규칙 등록 시 과거 회차 백필(backfill)
- 스케줄러(cron) 호출 시 현재 사이클 회차 생성 (할부는 밀린 회차까지)
- 회차당 1건 보장 (사전 확인 + (source_fixed_id, occurrence_date) 유니크 제약)
- last_generated 조건부 갱신 (동시 실행 시 중복 생성 방지)
- 할부 규칙의 회차 금액/진행 회차 갱신

개별 회차 저장 실패는 해당 회차만 롤백(SAVEPOINT)하고 로그를 남긴 뒤 계속 진행합니다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from moneycycle import models
from moneycycle.core.config import settings
from moneycycle.services.installment import (
    calculate_installment,
    installment_round,
    payment_for_round,
)
from moneycycle.services.recurrence import backfill_dates, due_in_cycle
from moneycycle.utils.dates import add_months, compute_cycle_range, format_date

logger = logging.getLogger(__name__)


class GenerationConflict(Exception):
    """last_generated changed underneath us (another run got there first)."""


@dataclass
class RoundFailure:
    occurred_at: date
    reason: str


@dataclass
class GenerationReport:
    rule_id: int
    generated: list[date] = field(default_factory=list)
    skipped: list[date] = field(default_factory=list)
    failed: list[RoundFailure] = field(default_factory=list)

    @property
    def generated_count(self) -> int:
        return len(self.generated)


def installment_memo(memo: str | None, round_no: int, months: int) -> str:
    base = (memo or "").strip()
    suffix = f"(할부 {round_no}/{months})"
    return f"{base} {suffix}" if base else suffix


def installment_rule_values(
    *,
    principal: int,
    months: int,
    annual_rate: float,
    interest_free_months: int,
    start_date: date,
) -> dict:
    """Column values of a fixed transaction row that carries an installment plan.

    ``amount`` is the first round's payment and the plan ends on its last
    round (``months - 1`` months after the purchase date).
    """
    result = calculate_installment(principal, months, annual_rate, interest_free_months)
    return {
        "type": models.TxnType.EXPENSE,
        "day": start_date.day,
        "amount": result.monthly_payment,
        "start_date": start_date,
        "end_type": models.EndType.DATE,
        "end_date": add_months(start_date, months - 1),
        "is_installment": True,
        "installment_principal": principal,
        "installment_months": months,
        "installment_rate": annual_rate,
        "installment_free_months": interest_free_months,
        "installment_current_month": 1,
    }


class RecurringGenerationService:
    """Materialize occurrences of fixed transactions into transaction rows."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self._cycle_days: dict[int, int] = {}

    def cycle_start_day(self, user_id: int) -> int:
        if user_id not in self._cycle_days:
            row = (
                self.db.query(models.UserSettings.cycle_start_day)
                .filter(models.UserSettings.user_id == user_id)
                .first()
            )
            self._cycle_days[user_id] = row[0] if row else settings.DEFAULT_CYCLE_START_DAY
        return self._cycle_days[user_id]

    def backfill(self, rule: models.FixedTransaction, *, today: date) -> GenerationReport:
        """Generate every elapsed occurrence from the rule's start date up to ``today``."""
        dates = backfill_dates(rule, today)
        return self._materialize(rule, dates)

    def generate_for_cycle(self, rule: models.FixedTransaction, *, today: date) -> GenerationReport:
        """Generate the current cycle's due occurrences that are not yet generated.

        Installment plans charge every elapsed round instead, so a missed run
        never leaves a round unpaid and the plan always reaches its last round.
        """
        if rule.is_installment:
            return self._materialize(rule, backfill_dates(rule, today))
        cycle = compute_cycle_range(today, self.cycle_start_day(rule.user_id))
        return self._materialize(rule, due_in_cycle(rule, cycle, today))

    def run_scheduled(self, now: datetime | None = None) -> tuple[date, list[GenerationReport]]:
        today = models.today_local(now)
        rules = (
            self.db.query(models.FixedTransaction)
            .filter(models.FixedTransaction.is_active.is_(True))
            .order_by(models.FixedTransaction.id)
            .all()
        )
        logger.info("scheduled generation started date=%s rules=%d", today, len(rules))
        reports: list[GenerationReport] = []
        for rule in rules:
            reports.append(self.generate_for_cycle(rule, today=today))
        generated = sum(r.generated_count for r in reports)
        failed = sum(len(r.failed) for r in reports)
        logger.info("scheduled generation finished date=%s generated=%d failed=%d", today, generated, failed)
        return today, reports

    # --- internals ---------------------------------------------------------

    def _existing_occurrences(self, rule_id: int) -> set[date]:
        rows = (
            self.db.query(models.Transaction.occurrence_date)
            .filter(
                models.Transaction.source_fixed_id == rule_id,
                models.Transaction.occurrence_date.isnot(None),
            )
            .all()
        )
        return {row[0] for row in rows}

    def _materialize(self, rule: models.FixedTransaction, dates: list[date]) -> GenerationReport:
        report = GenerationReport(rule_id=rule.id)
        if not dates:
            return report

        taken = self._existing_occurrences(rule.id)

        for occurred_at in dates:
            if not rule.is_active:
                report.skipped.append(occurred_at)
                continue
            if occurred_at in taken:
                report.skipped.append(occurred_at)
                continue
            try:
                with self.db.begin_nested():
                    self._write_occurrence(rule, occurred_at)
            except GenerationConflict as exc:
                logger.warning("rule %s: %s on %s, skipped", rule.id, exc, occurred_at)
                report.failed.append(RoundFailure(occurred_at, str(exc)))
                self.db.refresh(rule)
            except (SQLAlchemyError, ValueError) as exc:
                logger.error("rule %s: failed to generate occurrence on %s: %s", rule.id, occurred_at, exc)
                report.failed.append(RoundFailure(occurred_at, type(exc).__name__))
                self.db.refresh(rule)
            else:
                taken.add(occurred_at)
                report.generated.append(occurred_at)

        self.db.commit()
        if report.generated:
            logger.info("rule %s: generated %d occurrence(s), last=%s", rule.id, report.generated_count, rule.last_generated)
        return report

    def _write_occurrence(self, rule: models.FixedTransaction, occurred_at: date) -> None:
        amount = int(rule.amount)
        memo = rule.memo
        round_no: int | None = None

        if rule.is_installment:
            if rule.start_date is None:
                raise ValueError("installment rule without start_date")
            plan = calculate_installment(
                int(rule.installment_principal or 0),
                int(rule.installment_months or 0),
                float(rule.installment_rate or 0),
                int(rule.installment_free_months or 0),
            )
            round_no = installment_round(rule.start_date, occurred_at)
            payment = payment_for_round(plan, round_no)
            if payment is None:
                raise ValueError(f"installment round {round_no} out of range")
            amount = payment.total
            memo = installment_memo(rule.memo, round_no, len(plan.schedule))

        self.db.add(
            models.Transaction(
                user_id=rule.user_id,
                amount=amount,
                type=rule.type,
                category_id=rule.category_id,
                date=format_date(occurred_at),
                memo=memo,
                source_fixed_id=rule.id,
                occurrence_date=occurred_at,
            )
        )
        self.db.flush()

        previous = rule.last_generated
        latest = max(previous, occurred_at) if previous else occurred_at
        stmt = update(models.FixedTransaction).where(models.FixedTransaction.id == rule.id)
        if previous is None:
            stmt = stmt.where(models.FixedTransaction.last_generated.is_(None))
        else:
            stmt = stmt.where(models.FixedTransaction.last_generated == previous)
        result = self.db.execute(
            stmt.values(last_generated=latest).execution_options(synchronize_session="fetch")
        )
        if result.rowcount != 1:
            raise GenerationConflict("last_generated changed concurrently")

        if round_no is not None:
            advance_installment(rule, round_no)
        self.db.flush()


def advance_installment(rule: models.FixedTransaction, round_no: int) -> None:
    """Point an installment rule at the round after ``round_no``; close it after the last."""
    months = int(rule.installment_months or 0)
    if round_no >= months:
        rule.installment_current_month = months
        rule.is_active = False
        return
    plan = calculate_installment(
        int(rule.installment_principal or 0),
        months,
        float(rule.installment_rate or 0),
        int(rule.installment_free_months or 0),
    )
    next_payment = payment_for_round(plan, round_no + 1)
    rule.installment_current_month = round_no + 1
    if next_payment is not None:
        rule.amount = next_payment.total
