"""
Services 패키지

사이클 계산 위에서 동작하는 비즈니스 로직(할부, 반복 전개, 생존 예산, 통계)을 제공합니다.
"""

from .installment import calculate_installment, InstallmentResult, MonthlyPayment
from .recurrence import project_occurrences, due_in_cycle, backfill_dates, RuleSpec
from .survival import compute_survival, SurvivalResult
from .recurring_service import RecurringGenerationService, GenerationReport
from .stats_service import StatsService

__all__ = [
    "calculate_installment",
    "InstallmentResult",
    "MonthlyPayment",
    "project_occurrences",
    "due_in_cycle",
    "backfill_dates",
    "RuleSpec",
    "compute_survival",
    "SurvivalResult",
    "RecurringGenerationService",
    "GenerationReport",
    "StatsService",
]
