"""
할부 계산 서비스 (원금 균등 상환)

책임:
- 회차별 원금/이자/납입금 스케줄 산출
- 원금 자투리(나머지)를 마지막 회차에 합산하여 원 단위 정합성 보장
- 무이자 기간 처리
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from moneycycle.utils.dates import months_between


@dataclass(frozen=True)
class MonthlyPayment:
    round: int
    principal: int
    interest: int
    total: int
    remaining_principal: int


@dataclass(frozen=True)
class InstallmentResult:
    monthly_payment: int
    total_interest: int
    total_payment: int
    schedule: list[MonthlyPayment] = field(default_factory=list)


EMPTY_RESULT = InstallmentResult(monthly_payment=0, total_interest=0, total_payment=0, schedule=[])


def _round_won(value: Decimal) -> int:
    # 원 단위 반올림 (0.5는 올림)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def calculate_installment(
    principal: int,
    months: int,
    annual_rate: float = 0,
    interest_free_months: int = 0,
) -> InstallmentResult:
    """
    원금 균등 상환 할부 스케줄 계산

    Args:
        principal: 할부 원금 (원)
        months: 할부 기간 (개월)
        annual_rate: 연 이자율 (%)
        interest_free_months: 앞쪽 무이자 회차 수

    Returns:
        InstallmentResult. ``monthly_payment``는 1회차 납입금이며 이후 회차는
        이자가 줄어드는 만큼 감소합니다. 원금/개월이 0 이하이면 빈 결과.

    Example:
        >>> calculate_installment(100000, 3).schedule[-1].principal
        33334
    """
    if principal <= 0 or months <= 0:
        return EMPTY_RESULT

    monthly_principal = principal // months
    remainder = principal - monthly_principal * months
    rate = Decimal(str(annual_rate))

    schedule: list[MonthlyPayment] = []
    balance = principal
    total_interest = 0

    for i in range(1, months + 1):
        payment_principal = monthly_principal
        if i == months:
            payment_principal += remainder

        # 이자는 이번 회차 원금 상환 전 잔액 기준
        interest = 0
        if i > interest_free_months:
            interest = _round_won(Decimal(balance) * rate / 100 / 12)

        balance -= payment_principal
        schedule.append(
            MonthlyPayment(
                round=i,
                principal=payment_principal,
                interest=interest,
                total=payment_principal + interest,
                remaining_principal=balance,
            )
        )
        total_interest += interest

    return InstallmentResult(
        monthly_payment=schedule[0].total,
        total_interest=total_interest,
        total_payment=principal + total_interest,
        schedule=schedule,
    )


def payment_for_round(result: InstallmentResult, round_no: int) -> MonthlyPayment | None:
    if round_no < 1 or round_no > len(result.schedule):
        return None
    return result.schedule[round_no - 1]


def installment_round(start_date: date, occurred_at: date) -> int:
    """1-based installment round of an occurrence, counted in months from the purchase date."""
    return months_between(start_date, occurred_at) + 1
