from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Index,
    Boolean,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .core.config import settings
from .core.database import Base


try:
    LOCAL_ZONE = ZoneInfo(getattr(settings, "TIMEZONE", "Asia/Seoul"))
except (ZoneInfoNotFoundError, ValueError):
    LOCAL_ZONE = ZoneInfo("Asia/Seoul")


def now_local_naive() -> datetime:
    """Return naive datetime normalized to configured local timezone."""
    return datetime.now(LOCAL_ZONE).replace(tzinfo=None)


def today_local(now: datetime | None = None) -> date:
    """Local (KST) calendar date for ``now``; aware datetimes are converted first."""
    if now is None:
        return now_local_naive().date()
    if now.tzinfo is not None:
        return now.astimezone(LOCAL_ZONE).date()
    return now.date()


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_local_naive, onupdate=now_local_naive, nullable=False)


class TxnType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class EndType(str, Enum):
    NEVER = "never"
    DATE = "date"


class WeekStart(str, Enum):
    SUNDAY = "sunday"
    MONDAY = "monday"


class User(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    user_settings: Mapped["UserSettings"] = relationship(back_populates="user", uselist=False)


class UserSettings(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), unique=True, nullable=False)
    cycle_start_day: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    week_start: Mapped[WeekStart] = mapped_column(
        SAEnum(WeekStart, name="week_start", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=WeekStart.SUNDAY,
    )

    user: Mapped[User] = relationship(back_populates="user_settings")

    __table_args__ = (
        CheckConstraint("cycle_start_day BETWEEN 1 AND 31", name="ck_cycle_start_day"),
    )


class Category(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[TxnType] = mapped_column(
        SAEnum(TxnType, name="txn_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    icon: Mapped[str] = mapped_column(String(50), nullable=False, default="circle")

    __table_args__ = (
        UniqueConstraint("user_id", "type", "name", name="uq_category_name"),
    )


class Transaction(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[TxnType] = mapped_column(
        SAEnum(TxnType, name="txn_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    category_id: Mapped[int | None] = mapped_column(ForeignKey("category.id", ondelete="SET NULL"))
    # ISO YYYY-MM-DD 문자열 (사전순 비교 = 날짜순 비교)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    memo: Mapped[str | None] = mapped_column(Text)
    source_fixed_id: Mapped[int | None] = mapped_column(ForeignKey("fixedtransaction.id", ondelete="SET NULL"))
    # 고정 거래 생성분의 원래 발생일 (사용자가 date를 수정해도 유지): 회차당 1건 보장
    occurrence_date: Mapped[dt.date | None] = mapped_column(Date)

    category: Mapped["Category | None"] = relationship("Category")

    __table_args__ = (
        UniqueConstraint("source_fixed_id", "occurrence_date", name="uq_fixed_occurrence"),
        Index("ix_txn_user_date", "user_id", "date"),
    )


class FixedTransaction(Base, TimestampMixin):
    """Recurring ("fixed") income/expense rule, optionally an installment plan."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[TxnType] = mapped_column(
        SAEnum(TxnType, name="txn_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    day: Mapped[int] = mapped_column(Integer, nullable=False)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("category.id", ondelete="SET NULL"))
    memo: Mapped[str | None] = mapped_column(Text)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_type: Mapped[EndType] = mapped_column(
        SAEnum(EndType, name="end_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=EndType.NEVER,
    )
    end_date: Mapped[date | None] = mapped_column(Date)
    last_generated: Mapped[date | None] = mapped_column(Date)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # 할부 전용 필드: amount는 항상 '현재 회차' 납입금
    is_installment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    installment_principal: Mapped[int | None] = mapped_column(Integer)
    installment_months: Mapped[int | None] = mapped_column(Integer)
    installment_rate: Mapped[float | None] = mapped_column(Numeric(6, 3))
    installment_free_months: Mapped[int | None] = mapped_column(Integer)
    installment_current_month: Mapped[int | None] = mapped_column(Integer)

    category: Mapped["Category | None"] = relationship("Category")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_fixed_amount_positive"),
        CheckConstraint("day BETWEEN 1 AND 31", name="ck_fixed_day"),
    )


class BudgetGoal(Base, TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False)
    # None = 전체 예산 (생존 예산 계산에서는 제외)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("category.id", ondelete="CASCADE"))
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    category: Mapped["Category | None"] = relationship("Category")

    __table_args__ = (
        UniqueConstraint("user_id", "category_id", name="uq_budget_goal_category"),
        CheckConstraint("amount >= 0", name="ck_budget_goal_amount"),
    )
