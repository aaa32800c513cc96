from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from .dispatcher import ReminderDispatcher
from .schemas import ReminderServiceHealth, TickSummaryRead


router = APIRouter()


def _get_dispatcher(request: Request) -> Optional[ReminderDispatcher]:
    return getattr(request.app.state, "reminder_dispatcher", None)


@router.get("/health", response_model=ReminderServiceHealth)
def health_check(request: Request):
    dispatcher = _get_dispatcher(request)
    running = bool(dispatcher and dispatcher.running)
    return ReminderServiceHealth(status="healthy" if running else "degraded", dispatcher_running=running)


@router.get("/status", response_model=Optional[TickSummaryRead])
def last_tick_status(request: Request):
    dispatcher = _get_dispatcher(request)
    if dispatcher is None:
        raise HTTPException(status_code=503, detail="Reminder dispatcher is not configured")
    if dispatcher.last_summary is None:
        return None
    return TickSummaryRead.from_summary(dispatcher.last_summary)


@router.post("/scan", response_model=TickSummaryRead)
async def scan_now(request: Request):
    """Run one dispatch tick immediately; waits for a tick already in progress."""
    dispatcher = _get_dispatcher(request)
    if dispatcher is None:
        raise HTTPException(status_code=503, detail="Reminder dispatcher is not configured")
    summary = await dispatcher.run_tick()
    return TickSummaryRead.from_summary(summary)
