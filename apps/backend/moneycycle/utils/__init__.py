"""
Utils 패키지
"""

from .dates import (
    CycleRange,
    YearMonth,
    compute_cycle_range,
    filter_by_date_range,
    clamp_day,
    add_months,
)

__all__ = [
    "CycleRange",
    "YearMonth",
    "compute_cycle_range",
    "filter_by_date_range",
    "clamp_day",
    "add_months",
]
