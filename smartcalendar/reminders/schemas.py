from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from .types import DispatchOutcome, TickSummary


class DispatchResultRead(BaseModel):
    event_id: int
    outcome: DispatchOutcome
    detail: Optional[str] = None


class TickSummaryRead(BaseModel):
    started_at: datetime
    finished_at: Optional[datetime] = None
    due_count: int
    sent: int
    skipped: int
    failed: int
    committed: bool
    cancelled: bool
    error: Optional[str] = None
    results: List[DispatchResultRead] = []

    @classmethod
    def from_summary(cls, summary: TickSummary) -> "TickSummaryRead":
        return cls(
            started_at=summary.started_at,
            finished_at=summary.finished_at,
            due_count=summary.due_count,
            sent=summary.sent,
            skipped=summary.skipped,
            failed=summary.failed,
            committed=summary.committed,
            cancelled=summary.cancelled,
            error=summary.error,
            results=[
                DispatchResultRead(event_id=r.event_id, outcome=r.outcome, detail=r.detail)
                for r in summary.results
            ],
        )


class ReminderServiceHealth(BaseModel):
    status: str
    service: str = "reminders"
    dispatcher_running: bool
