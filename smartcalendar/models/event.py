from datetime import datetime, timedelta
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Index, event
from sqlalchemy.orm import relationship
from smartcalendar.db.base import Base
from .tag import event_tags


class Event(Base):
    """Calendar event. All timestamps are stored as UTC-naive."""
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    reminder_minutes_before = Column(Integer, nullable=True)
    reminder_sent = Column(Boolean, nullable=False, default=False)
    # start_date - reminder_minutes_before, kept in sync on every ORM flush
    remind_at = Column(DateTime, nullable=True)

    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    google_event_id = Column(String, nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="events")
    tags = relationship("Tag", secondary=event_tags, back_populates="events", order_by="Tag.name", lazy="selectin")

    __table_args__ = (
        Index("ix_events_reminder_pending", "reminder_sent", "remind_at"),
        Index("ix_events_user_start", "user_id", "start_date"),
    )

    def compute_remind_at(self):
        if self.reminder_minutes_before is None or self.start_date is None:
            return None
        return self.start_date - timedelta(minutes=self.reminder_minutes_before)


@event.listens_for(Event, "before_insert")
@event.listens_for(Event, "before_update")
def _sync_remind_at(mapper, connection, target: Event) -> None:
    target.remind_at = target.compute_remind_at()
