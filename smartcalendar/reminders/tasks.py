import asyncio
import logging

from .celery_app import celery_app
from .service import build_dispatcher

logger = logging.getLogger(__name__)


@celery_app.task(name="reminders.scan_and_dispatch")
def scan_and_dispatch_task() -> dict:
    """Run one dispatch tick. Returns per-outcome counts."""
    dispatcher = build_dispatcher()
    summary = asyncio.run(dispatcher.run_tick())
    return {
        "due": summary.due_count,
        "sent": summary.sent,
        "skipped": summary.skipped,
        "failed": summary.failed,
        "committed": summary.committed,
        "error": summary.error,
    }
