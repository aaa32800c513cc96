import logging
from typing import Optional

from smartcalendar.db.session import SessionLocal
from smartcalendar.services.email_service import EmailService
from .config import settings as reminder_settings
from .dispatcher import ReminderDispatcher
from .repository import SqlReminderStore
from .sender import EmailReminderSender

logger = logging.getLogger(__name__)


def build_dispatcher(
    session_factory=SessionLocal,
    email_service: Optional[EmailService] = None,
) -> ReminderDispatcher:
    """Wire the dispatcher to the SQL event store and the SMTP sender."""
    sender = EmailReminderSender(email_service or EmailService())
    return ReminderDispatcher(
        store=SqlReminderStore(session_factory),
        sender=sender,
        interval_seconds=reminder_settings.SCAN_INTERVAL_SECONDS,
        batch_size=reminder_settings.BATCH_SIZE,
    )
