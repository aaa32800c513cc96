from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy import select, update, text
from sqlalchemy.orm import Session

from smartcalendar.models import Event, User
from .types import DueReminder, Recipient


def get_due_events(db: Session, now: datetime, limit: int = 500) -> List[Event]:
    stmt = (
        select(Event)
        .where(Event.reminder_sent == False)  # noqa: E712
        .where(Event.reminder_minutes_before.is_not(None))
        .where(Event.remind_at <= now)
        .order_by(Event.remind_at.asc())
        .limit(limit)
    )
    # Row locks are held until the tick commits so a second dispatcher skips these
    # events instead of sending them again. SQLite ignores FOR UPDATE.
    if db.get_bind().dialect.name == "postgresql":
        stmt = stmt.with_for_update(skip_locked=True)
    return list(db.execute(stmt).scalars())


def mark_reminder_sent(db: Session, event_id: int) -> bool:
    """Conditionally flag an event as reminded. Returns False if it was already flagged or is gone."""
    result = db.execute(
        update(Event)
        .where(Event.id == event_id)
        .where(Event.reminder_sent == False)  # noqa: E712
        .values(reminder_sent=True, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.get(User, user_id)


def _to_due_reminder(ev: Event) -> DueReminder:
    return DueReminder(
        event_id=ev.id,
        title=ev.title,
        start_date=ev.start_date,
        end_date=ev.end_date,
        description=ev.description,
        location=ev.location,
        reminder_minutes_before=ev.reminder_minutes_before,
        user_id=ev.user_id,
    )


class SqlReminderBatch:
    """A tick's transaction: the due read, user lookups and every mark share one session."""

    def __init__(self, db: Session):
        self.db = db

    def due_reminders(self, now: datetime, limit: int) -> List[DueReminder]:
        return [_to_due_reminder(ev) for ev in get_due_events(self.db, now, limit=limit)]

    def get_recipient(self, user_id: str) -> Optional[Recipient]:
        user = get_user(self.db, user_id)
        if user is None:
            return None
        return Recipient(
            user_id=user.id,
            full_name=user.full_name,
            email=user.email,
            receive_reminders=bool(user.receive_reminders),
        )

    def mark_sent(self, event_id: int) -> bool:
        return mark_reminder_sent(self.db, event_id)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def close(self) -> None:
        self.db.close()


class SqlReminderStore:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def begin(self) -> SqlReminderBatch:
        return SqlReminderBatch(self.session_factory())

    def ping(self) -> bool:
        db = self.session_factory()
        try:
            db.execute(text("SELECT 1"))
            return True
        finally:
            db.close()
