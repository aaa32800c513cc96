import os

# Settings are read at import time
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")
os.environ.setdefault("VALID_API_KEYS", "test-key")
os.environ.setdefault("REQUIRE_API_KEY", "true")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5000")
os.environ.setdefault("DEFAULT_TIMEZONE", "UTC")
os.environ.setdefault("REMINDER_METRICS_ENABLED", "false")
os.environ.setdefault("REMINDER_SCAN_INTERVAL_SECONDS", "60")

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Set

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from smartcalendar.core.exceptions import EmailDeliveryError
from smartcalendar.db.base import Base
from smartcalendar import models  # noqa: F401
from smartcalendar.reminders.types import (
    DueReminder,
    Recipient,
    ReminderMessage,
    is_reminder_due,
)


# --- SQL fixtures ---

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# --- In-memory collaborators for the dispatcher ---

@dataclass
class StoredEvent:
    id: int
    title: str
    start_date: datetime
    user_id: str
    reminder_minutes_before: Optional[int] = None
    reminder_sent: bool = False
    end_date: Optional[datetime] = None
    description: Optional[str] = None
    location: Optional[str] = None


class InMemoryBatch:
    def __init__(self, store: "InMemoryStore"):
        self.store = store
        self.pending: Set[int] = set()

    def due_reminders(self, now: datetime, limit: int) -> List[DueReminder]:
        if self.store.fail_query:
            raise ConnectionError("store unreachable")
        due = [
            DueReminder(
                event_id=ev.id,
                title=ev.title,
                start_date=ev.start_date,
                end_date=ev.end_date,
                description=ev.description,
                location=ev.location,
                reminder_minutes_before=ev.reminder_minutes_before,
                user_id=ev.user_id,
            )
            for ev in sorted(self.store.events.values(), key=lambda e: e.id)
            if is_reminder_due(ev.start_date, ev.reminder_minutes_before, ev.reminder_sent, now)
        ]
        return due[:limit]

    def get_recipient(self, user_id: str) -> Optional[Recipient]:
        return self.store.users.get(user_id)

    def mark_sent(self, event_id: int) -> bool:
        ev = self.store.events.get(event_id)
        if ev is None or ev.reminder_sent or event_id in self.pending:
            return False
        self.pending.add(event_id)
        return True

    def commit(self) -> None:
        if self.store.fail_commit:
            raise RuntimeError("database is locked")
        for event_id in self.pending:
            self.store.events[event_id].reminder_sent = True
        self.pending.clear()
        self.store.commits += 1

    def rollback(self) -> None:
        self.pending.clear()
        self.store.rollbacks += 1

    def close(self) -> None:
        self.pending.clear()
        self.store.closed += 1


class InMemoryStore:
    def __init__(self):
        self.events: Dict[int, StoredEvent] = {}
        self.users: Dict[str, Recipient] = {}
        self.fail_query = False
        self.fail_commit = False
        self.commits = 0
        self.rollbacks = 0
        self.closed = 0

    def add_user(self, user_id: str, email: str, receive_reminders: bool = True, full_name: str = "Test User"):
        self.users[user_id] = Recipient(
            user_id=user_id, full_name=full_name, email=email, receive_reminders=receive_reminders
        )

    def add_event(self, **kwargs) -> StoredEvent:
        ev = StoredEvent(id=len(self.events) + 1, **kwargs)
        self.events[ev.id] = ev
        return ev

    def begin(self) -> InMemoryBatch:
        return InMemoryBatch(self)

    def ping(self) -> bool:
        if self.fail_query:
            raise ConnectionError("store unreachable")
        return True


class RecordingSender:
    """Collects messages; raises for recipients listed in fail_for."""

    def __init__(self, fail_for: Optional[Set[str]] = None):
        self.sent: List[ReminderMessage] = []
        self.attempts = 0
        self.fail_for = fail_for or set()

    def send(self, message: ReminderMessage) -> None:
        self.attempts += 1
        if message.to_email in self.fail_for:
            raise EmailDeliveryError(message.to_email, "connection refused")
        self.sent.append(message)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def sender():
    return RecordingSender()
