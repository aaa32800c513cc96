from datetime import datetime

from smartcalendar.reminders.message import build_reminder_message, event_url
from smartcalendar.reminders.types import DueReminder, Recipient


def _reminder(**overrides):
    data = dict(
        event_id=42,
        title="Project <review>",
        start_date=datetime(2025, 1, 10, 10, 0),
        end_date=None,
        description=None,
        location=None,
        reminder_minutes_before=15,
        user_id="u1",
    )
    data.update(overrides)
    return DueReminder(**data)


RECIPIENT = Recipient(user_id="u1", full_name="Ada Lovelace", email="ada@example.com", receive_reminders=True)


def test_message_has_subject_greeting_and_link():
    message = build_reminder_message(_reminder(), RECIPIENT, base_url="https://cal.example.com/", tz_name="UTC")

    assert message.to_email == "ada@example.com"
    assert message.subject == "Upcoming event: Project <review>"
    assert "Hello Ada Lovelace," in message.text_body
    assert "Starts: Friday, 10 January 2025 10:00" in message.text_body
    assert "15 minutes before the event" in message.text_body
    assert "https://cal.example.com/calendar/events/42" in message.text_body
    assert "https://cal.example.com/calendar/events/42" in message.html_body


def test_optional_fields_only_when_present():
    bare = build_reminder_message(_reminder(), RECIPIENT, tz_name="UTC")
    assert "Ends:" not in bare.text_body
    assert "Location:" not in bare.text_body
    assert "Description:" not in bare.text_body

    full = build_reminder_message(
        _reminder(end_date=datetime(2025, 1, 10, 11, 30), description="Quarterly", location="Room 4"),
        RECIPIENT,
        tz_name="UTC",
    )
    assert "Ends: Friday, 10 January 2025 11:30" in full.text_body
    assert "Description: Quarterly" in full.text_body
    assert "Location: Room 4" in full.text_body


def test_html_escapes_user_content():
    message = build_reminder_message(_reminder(), RECIPIENT, tz_name="UTC")
    assert "Project &lt;review&gt;" in message.html_body
    assert "Project <review>" not in message.html_body


def test_times_render_in_display_timezone():
    message = build_reminder_message(_reminder(), RECIPIENT, tz_name="Europe/Istanbul")
    assert "Starts: Friday, 10 January 2025 13:00" in message.text_body


def test_event_url_defaults_to_frontend_url():
    assert event_url(7) == "http://localhost:5000/calendar/events/7"
