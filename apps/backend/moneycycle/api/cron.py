from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from moneycycle.core.database import get_db
from moneycycle.core.deps import require_cron_secret
from moneycycle.schemas import CronResultOut
from moneycycle.services.recurring_service import RecurringGenerationService


router = APIRouter(prefix="/cron", tags=["cron"])


@router.get("/recurring", response_model=CronResultOut, dependencies=[Depends(require_cron_secret)])
def run_recurring(db: Session = Depends(get_db)):
    """외부 스케줄러가 매일 호출: 활성 고정 거래의 이번 사이클 회차를 생성합니다."""
    today, reports = RecurringGenerationService(db).run_scheduled()
    processed = [r.rule_id for r in reports if r.generated]
    failed = [
        {"rule_id": r.rule_id, "occurred_at": f.occurred_at, "reason": f.reason}
        for r in reports
        for f in r.failed
    ]
    return CronResultOut(
        success=True,
        processed_count=sum(r.generated_count for r in reports),
        processed_ids=processed,
        failed=failed,
        date=today,
    )
