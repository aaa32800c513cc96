from smartcalendar.services.email_service import EmailService
from .types import ReminderMessage


class EmailReminderSender:
    """Notification sender backed by SMTP."""

    def __init__(self, email_service: EmailService):
        self.email_service = email_service

    def send(self, message: ReminderMessage) -> None:
        self.email_service.send_email(
            message.to_email,
            message.subject,
            message.text_body,
            message.html_body,
        )
