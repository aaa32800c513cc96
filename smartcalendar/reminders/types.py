from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Protocol


def is_reminder_due(
    start_date: datetime,
    reminder_minutes_before: Optional[int],
    reminder_sent: bool,
    now: datetime,
) -> bool:
    """An event is due once start - lead <= now and it has not been reminded yet.

    The window is open-ended: a reminder missed while the loop was down is still due.
    """
    if reminder_sent or reminder_minutes_before is None:
        return False
    return start_date - timedelta(minutes=reminder_minutes_before) <= now


@dataclass(frozen=True)
class DueReminder:
    event_id: int
    title: str
    start_date: datetime
    end_date: Optional[datetime]
    description: Optional[str]
    location: Optional[str]
    reminder_minutes_before: int
    user_id: str


@dataclass(frozen=True)
class Recipient:
    user_id: str
    full_name: str
    email: str
    receive_reminders: bool


@dataclass(frozen=True)
class ReminderMessage:
    to_email: str
    subject: str
    text_body: str
    html_body: str


class DispatchOutcome(str, Enum):
    SENT = "sent"
    SKIPPED_MISSING_USER = "skipped_missing_user"
    SKIPPED_OPTED_OUT = "skipped_opted_out"
    FAILED = "failed"


@dataclass
class DispatchResult:
    event_id: int
    outcome: DispatchOutcome
    detail: Optional[str] = None


@dataclass
class TickSummary:
    started_at: datetime
    finished_at: Optional[datetime] = None
    due_count: int = 0
    results: List[DispatchResult] = field(default_factory=list)
    committed: bool = False
    cancelled: bool = False
    error: Optional[str] = None

    def count(self, outcome: DispatchOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def sent(self) -> int:
        return self.count(DispatchOutcome.SENT)

    @property
    def failed(self) -> int:
        return self.count(DispatchOutcome.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(DispatchOutcome.SKIPPED_MISSING_USER) + self.count(DispatchOutcome.SKIPPED_OPTED_OUT)


class ReminderBatch(Protocol):
    """One tick's unit of work against the event store. Not thread-safe; used sequentially."""

    def due_reminders(self, now: datetime, limit: int) -> List[DueReminder]: ...

    def get_recipient(self, user_id: str) -> Optional[Recipient]: ...

    def mark_sent(self, event_id: int) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


class ReminderStore(Protocol):
    def begin(self) -> ReminderBatch: ...

    def ping(self) -> bool: ...


class NotificationSender(Protocol):
    def send(self, message: ReminderMessage) -> None:
        """Deliver the message; raise EmailDeliveryError on transport failure."""
        ...
