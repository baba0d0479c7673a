from __future__ import annotations

import datetime as dt
from datetime import date
from typing import Optional, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .models import TxnType, EndType, WeekStart


# --- Settings -------------------------------------------------------------


class UserSettingsOut(BaseModel):
    cycle_start_day: int
    week_start: WeekStart

    model_config = ConfigDict(from_attributes=True)


class UserSettingsUpdate(BaseModel):
    cycle_start_day: Optional[int] = Field(None, ge=1, le=31)
    week_start: Optional[WeekStart] = None


class CycleRangeOut(BaseModel):
    start: date
    end: date
    days: int


# --- Categories -----------------------------------------------------------


class CategoryCreate(BaseModel):
    name: str
    type: TxnType
    icon: str = "circle"

    @field_validator("name")
    def name_not_blank(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    icon: Optional[str] = None


class CategoryOut(BaseModel):
    id: int
    name: str
    type: TxnType
    icon: str

    model_config = ConfigDict(from_attributes=True)


# --- Transactions ---------------------------------------------------------


class TransactionCreate(BaseModel):
    amount: int = Field(..., gt=0)
    type: TxnType
    category_id: Optional[int] = None
    date: dt.date
    memo: Optional[str] = None


class TransactionUpdate(BaseModel):
    amount: Optional[int] = Field(None, gt=0)
    type: Optional[TxnType] = None
    category_id: Optional[int] = None
    date: Optional[dt.date] = None
    memo: Optional[str] = None


class TransactionOut(BaseModel):
    id: int
    amount: int
    type: TxnType
    category_id: Optional[int]
    date: str
    memo: Optional[str]
    source_fixed_id: Optional[int]

    model_config = ConfigDict(from_attributes=True)


# --- Fixed (recurring) transactions ---------------------------------------


class FixedTransactionCreate(BaseModel):
    type: TxnType
    amount: int = Field(..., gt=0)
    category_id: Optional[int] = None
    memo: Optional[str] = None
    # 선택한 날짜의 '일'이 반복일(day)이 됨
    start_date: date
    day: Optional[int] = Field(None, ge=1, le=31)
    end_type: EndType = EndType.NEVER
    end_date: Optional[date] = None
    backfill: bool = True

    @model_validator(mode="after")
    def check_end(self):
        if self.end_type == EndType.DATE:
            if self.end_date is None:
                raise ValueError("end_date is required when end_type is 'date'")
            if self.end_date < self.start_date:
                raise ValueError("end_date must not precede start_date")
        return self


class FixedTransactionUpdate(BaseModel):
    type: Optional[TxnType] = None
    amount: Optional[int] = Field(None, gt=0)
    day: Optional[int] = Field(None, ge=1, le=31)
    category_id: Optional[int] = None
    memo: Optional[str] = None
    end_type: Optional[EndType] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class FixedTransactionOut(BaseModel):
    id: int
    type: TxnType
    amount: int
    day: int
    category_id: Optional[int]
    memo: Optional[str]
    start_date: Optional[date]
    end_type: EndType
    end_date: Optional[date]
    last_generated: Optional[date]
    is_active: bool
    is_installment: bool
    installment_principal: Optional[int] = None
    installment_months: Optional[int] = None
    installment_rate: Optional[float] = None
    installment_free_months: Optional[int] = None
    installment_current_month: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class FixedTransactionCreated(FixedTransactionOut):
    generated_count: int = 0
    failed_rounds: list[date] = Field(default_factory=list)


class OccurrencePreviewOut(BaseModel):
    rule_id: int
    through: str
    occurrences: list[date]


# --- Installments ---------------------------------------------------------


class InstallmentInput(BaseModel):
    principal: int = Field(..., gt=0)
    months: int = Field(..., gt=0)
    annual_rate: float = Field(0, ge=0)
    interest_free_months: int = Field(0, ge=0)


class InstallmentPlan(InstallmentInput):
    @model_validator(mode="after")
    def check_principal_covers_months(self):
        # 회차별 원금이 0원이 되면 고정 거래 amount > 0 제약을 만족할 수 없음
        if self.principal < self.months:
            raise ValueError("principal must be at least one won per month")
        return self


class InstallmentCreate(InstallmentPlan):
    category_id: Optional[int] = None
    memo: str = ""
    start_date: date
    backfill: bool = True


class InstallmentUpdate(InstallmentPlan):
    category_id: Optional[int] = None
    memo: str = ""
    start_date: date


class MonthlyPaymentOut(BaseModel):
    round: int
    principal: int
    interest: int
    total: int
    remaining_principal: int

    model_config = ConfigDict(from_attributes=True)


class InstallmentResultOut(BaseModel):
    monthly_payment: int
    total_interest: int
    total_payment: int
    schedule: list[MonthlyPaymentOut]

    model_config = ConfigDict(from_attributes=True)


# --- Budget goals & survival ----------------------------------------------


class BudgetGoalUpsert(BaseModel):
    category_id: Optional[int] = None
    amount: int = Field(..., ge=0)


class BudgetGoalOut(BaseModel):
    id: int
    category_id: Optional[int]
    amount: int

    model_config = ConfigDict(from_attributes=True)


class CategorySurvivalOut(BaseModel):
    category_id: int
    amount: int
    spent: int
    remaining: int
    percentage: float
    status: Literal["safe", "warning", "danger"]

    model_config = ConfigDict(from_attributes=True)


class SurvivalOut(BaseModel):
    cycle_start: date
    cycle_end: date
    has_budget: bool
    status: Literal["safe", "warning", "danger", "unknown"]
    total_budget: int
    current_spent: int
    disposable_balance: int
    days_left: int
    daily_available: int
    categories: list[CategorySurvivalOut]


# --- Statistics -----------------------------------------------------------


class CategoryAmountOut(BaseModel):
    category_id: Optional[int]
    amount: int


class BudgetAnalysisItemOut(BaseModel):
    category_id: int
    goal: int
    spent: int
    percentage: float
    status: Literal["safe", "warning", "danger"]


class CycleStatsOut(BaseModel):
    cycle_start: date
    cycle_end: date
    total_income: int
    total_expense: int
    income_by_category: list[CategoryAmountOut]
    expense_by_category: list[CategoryAmountOut]
    income_diff: int
    expense_diff: int
    budget_analysis: list[BudgetAnalysisItemOut]


class TrendItemOut(BaseModel):
    cycle_start: date
    cycle_end: date
    label: str
    income: int
    expense: int


class RecurringSummaryOut(BaseModel):
    income: int
    expense: int


# --- Scheduled trigger ----------------------------------------------------


class CronFailureOut(BaseModel):
    rule_id: int
    occurred_at: date
    reason: str


class CronResultOut(BaseModel):
    success: bool
    processed_count: int
    processed_ids: list[int]
    failed: list[CronFailureOut] = Field(default_factory=list)
    date: dt.date
