"""
Reminder dispatch loop.

Every tick reads the events whose reminder is due, emails each owner that opted
in, and flags the event so it is never reminded again. All flags of a tick are
committed in one transaction after the sends; if that commit fails the flags
revert and the reminders go out again on the next tick (at-least-once).
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from smartcalendar.utils.timezone import utc_now
from .message import build_reminder_message
from .metrics import (
    reminder_ticks_total,
    reminders_sent_total,
    reminders_skipped_total,
    reminders_failed_total,
    reminder_commit_failures_total,
)
from .types import (
    DispatchOutcome,
    DispatchResult,
    DueReminder,
    NotificationSender,
    Recipient,
    ReminderBatch,
    ReminderMessage,
    ReminderStore,
    TickSummary,
)

logger = logging.getLogger(__name__)


class ReminderDispatcher:
    """Owns the background task that sends due event reminders."""

    def __init__(
        self,
        store: ReminderStore,
        sender: NotificationSender,
        clock: Callable[[], datetime] = utc_now,
        interval_seconds: float = 60,
        batch_size: int = 500,
        message_builder: Callable[[DueReminder, Recipient], ReminderMessage] = build_reminder_message,
    ):
        self.store = store
        self.sender = sender
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self.message_builder = message_builder

        self.last_summary: Optional[TickSummary] = None
        self._stop_event = asyncio.Event()
        self._tick_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Future] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    # --- lifecycle ---

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run_forever(), name="reminder-dispatcher")
        return self._task

    def request_stop(self) -> None:
        """Ask the loop to stop; the current event finishes, no further work starts."""
        self._stop_event.set()

    async def stop(self, timeout: Optional[float] = 30) -> None:
        """Signal the loop to stop and wait for the tick in progress to wind down."""
        self.request_stop()
        task = self._task
        if task is None or task.done():
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[Reminders] Dispatcher did not stop within {timeout}s; cancelling")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def run_forever(self) -> None:
        logger.info(f"[Reminders] Dispatch loop started (interval={self.interval_seconds}s)")
        while not self._stop_event.is_set():
            try:
                await self.run_tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                # run_tick records collaborator failures itself; this guards the loop against bugs
                logger.exception("[Reminders] Unexpected error in dispatch tick")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("[Reminders] Dispatch loop stopped")

    # --- one tick ---

    async def run_tick(self) -> TickSummary:
        async with self._tick_lock:
            now = self.clock()
            summary = TickSummary(started_at=now)
            reminder_ticks_total.inc()
            logger.info(f"[Reminders] Reminder check at {now.isoformat()}")

            try:
                batch = await asyncio.to_thread(self.store.begin)
            except Exception as e:
                logger.error(f"❌ [Reminders] Could not open event store session: {e!r}")
                summary.error = f"store unavailable: {e}"
                return self._finish(summary)

            try:
                await self._process(batch, summary, now)
            finally:
                # A cancelled await leaves the worker thread running on the session
                await self._drain_inflight()
                await asyncio.to_thread(batch.close)
            return self._finish(summary)

    async def _process(self, batch: ReminderBatch, summary: TickSummary, now: datetime) -> None:
        try:
            due = await self._offload(batch.due_reminders, now, self.batch_size)
        except Exception as e:
            logger.error(f"❌ [Reminders] Due event query failed: {e!r}")
            summary.error = f"query failed: {e}"
            await self._rollback(batch)
            return

        summary.due_count = len(due)
        logger.info(f"[Reminders] {len(due)} due event(s) found")

        for index, reminder in enumerate(due):
            if self._stop_event.is_set():
                summary.cancelled = True
                logger.info(f"[Reminders] Stop requested; leaving {len(due) - index} due event(s) for later")
                break

            result = await self.dispatch_one(batch, reminder)
            summary.results.append(result)
            if result.outcome != DispatchOutcome.SENT:
                continue

            try:
                marked = await self._offload(batch.mark_sent, reminder.event_id)
            except Exception as e:
                logger.error(f"❌ [Reminders] Could not flag event {reminder.event_id} as reminded: {e!r}")
                summary.error = f"mark failed: {e}"
                reminder_commit_failures_total.inc()
                await self._rollback(batch)
                return
            if not marked:
                logger.warning(
                    f"[Reminders] Event {reminder.event_id} was already flagged or deleted while sending"
                )

        try:
            await self._offload(batch.commit)
            summary.committed = True
        except Exception as e:
            logger.error(f"❌ [Reminders] Commit failed; {summary.sent} reminder(s) will be retried: {e!r}")
            summary.error = f"commit failed: {e}"
            reminder_commit_failures_total.inc()
            await self._rollback(batch)

    async def dispatch_one(self, batch: ReminderBatch, reminder: DueReminder) -> DispatchResult:
        """Resolve the owner and send one reminder. Never raises for collaborator failures."""
        event_id = reminder.event_id
        try:
            recipient = await self._offload(batch.get_recipient, reminder.user_id)
        except Exception as e:
            logger.error(f"❌ [Reminders] User lookup failed for event {event_id}: {e!r}")
            reminders_failed_total.inc()
            return DispatchResult(event_id, DispatchOutcome.FAILED, f"user lookup failed: {e}")

        if recipient is None:
            # Not flagged: retried every tick until the owner exists
            logger.warning(f"[Reminders] Skipped event {event_id}: user {reminder.user_id} not found")
            reminders_skipped_total.labels(reason="missing_user").inc()
            return DispatchResult(event_id, DispatchOutcome.SKIPPED_MISSING_USER)

        if not recipient.receive_reminders:
            logger.info(f"[Reminders] Skipped event {event_id}: {recipient.email} does not want reminder emails")
            reminders_skipped_total.labels(reason="opted_out").inc()
            return DispatchResult(event_id, DispatchOutcome.SKIPPED_OPTED_OUT)

        try:
            message = self.message_builder(reminder, recipient)
        except Exception as e:
            logger.error(f"❌ [Reminders] Could not compose reminder for event {event_id}: {e!r}")
            reminders_failed_total.inc()
            return DispatchResult(event_id, DispatchOutcome.FAILED, f"compose failed: {e}")

        try:
            await asyncio.to_thread(self.sender.send, message)
        except Exception as e:
            logger.error(f"❌ [Reminders] Sending reminder for event {event_id} to {recipient.email} failed: {e!r}")
            reminders_failed_total.inc()
            return DispatchResult(event_id, DispatchOutcome.FAILED, str(e))

        logger.info(f"✅ [Reminders] Sent '{reminder.title}' to {recipient.email}")
        reminders_sent_total.inc()
        return DispatchResult(event_id, DispatchOutcome.SENT)

    async def _offload(self, fn, *args):
        """Run a blocking batch call in a thread; the call outlives a cancelled await."""
        self._inflight = asyncio.ensure_future(asyncio.to_thread(fn, *args))
        return await asyncio.shield(self._inflight)

    async def _drain_inflight(self) -> None:
        pending = self._inflight
        self._inflight = None
        if pending is None or pending.done():
            return
        await asyncio.wait([pending])
        if not pending.cancelled() and pending.exception() is not None:
            logger.warning(f"[Reminders] Interrupted store call failed: {pending.exception()!r}")

    async def _rollback(self, batch: ReminderBatch) -> None:
        try:
            await self._offload(batch.rollback)
        except Exception as e:
            logger.error(f"[Reminders] Rollback failed: {e!r}")

    def _finish(self, summary: TickSummary) -> TickSummary:
        summary.finished_at = self.clock()
        self.last_summary = summary
        logger.info(
            f"[Reminders] Tick done: due={summary.due_count} sent={summary.sent} "
            f"skipped={summary.skipped} failed={summary.failed} committed={summary.committed}"
        )
        return summary
