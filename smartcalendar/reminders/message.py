from html import escape
from typing import Optional

from smartcalendar.core.config import settings
from smartcalendar.utils.timezone import format_local
from .types import DueReminder, Recipient, ReminderMessage


def event_url(event_id: int, base_url: Optional[str] = None) -> str:
    return f"{(base_url or settings.FRONTEND_URL).rstrip('/')}/calendar/events/{event_id}"


def build_reminder_message(
    reminder: DueReminder,
    recipient: Recipient,
    base_url: Optional[str] = None,
    tz_name: Optional[str] = None,
) -> ReminderMessage:
    starts = format_local(reminder.start_date, tz_name)
    ends = format_local(reminder.end_date, tz_name) if reminder.end_date else None
    link = event_url(reminder.event_id, base_url)

    return ReminderMessage(
        to_email=recipient.email,
        subject=f"Upcoming event: {reminder.title}",
        text_body=_create_reminder_text(reminder, recipient, starts, ends, link),
        html_body=_create_reminder_html(reminder, recipient, starts, ends, link),
    )


def _create_reminder_text(
    reminder: DueReminder, recipient: Recipient, starts: str, ends: Optional[str], link: str
) -> str:
    lines = [
        "SmartCalendar Reminder",
        "",
        f"Hello {recipient.full_name},",
        "",
        f"Event: {reminder.title}",
        f"Starts: {starts}",
    ]
    if ends:
        lines.append(f"Ends: {ends}")
    if reminder.description:
        lines.append(f"Description: {reminder.description}")
    if reminder.location:
        lines.append(f"Location: {reminder.location}")
    lines += [
        "",
        f"This reminder was sent {reminder.reminder_minutes_before} minutes before the event.",
        f"View the event: {link}",
    ]
    return "\n".join(lines)


def _create_reminder_html(
    reminder: DueReminder, recipient: Recipient, starts: str, ends: Optional[str], link: str
) -> str:
    details = [
        f"<p><strong>Event:</strong> {escape(reminder.title)}</p>",
        f"<p><strong>Starts:</strong> {starts}</p>",
    ]
    if ends:
        details.append(f"<p><strong>Ends:</strong> {ends}</p>")
    if reminder.description:
        details.append(f"<p><strong>Description:</strong> {escape(reminder.description)}</p>")
    if reminder.location:
        details.append(f"<p><strong>Location:</strong> {escape(reminder.location)}</p>")
    detail_html = "\n                    ".join(details)

    return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <title>Upcoming event</title>
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #ddd; border-radius: 10px; background: #f9f9f9;">
                <h2 style="color: #007bff;">SmartCalendar Reminder</h2>
                <p>Hello {escape(recipient.full_name)},</p>
                <div style="background: #fff; padding: 15px; border: 1px solid #ccc; border-radius: 5px;">
                    {detail_html}
                </div>
                <p style="margin-top: 20px;">This reminder was sent {reminder.reminder_minutes_before} minutes before the event.</p>
                <a href="{escape(link, quote=True)}" style="display: inline-block; margin-top: 15px; padding: 10px 20px; background: #28a745; color: #fff; text-decoration: none; border-radius: 5px;">View event</a>
            </div>
        </body>
        </html>
        """
