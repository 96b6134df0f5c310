from datetime import date, datetime
from types import SimpleNamespace

from syncd.notifications.formatter import (
    format_clock,
    format_daily_digest,
    format_event_reminder,
    format_task_due_reminder,
    format_when,
)


def make_user(name="Ada"):
    return SimpleNamespace(name=name, email="ada@example.com")


def make_task(title="Essay draft", due=datetime(2025, 3, 3, 14, 30)):
    return SimpleNamespace(title=title, due_date=due, priority="high", status="todo")


def make_event(title="Career Fair", location="Union", link=None):
    return SimpleNamespace(
        title=title,
        event_date=datetime(2025, 3, 3, 9, 5),
        location=location,
        link=link,
    )


def test_format_when():
    assert format_when(datetime(2025, 3, 3, 14, 30)) == "March 3, 2025 2:30 PM"
    assert format_when(datetime(2025, 12, 25, 0, 0)) == "December 25, 2025 12:00 AM"


def test_format_clock_noon():
    assert format_clock(datetime(2025, 1, 1, 12, 5)) == "12:05 PM"


def test_task_due_reminder():
    message = format_task_due_reminder(make_user(), make_task())
    assert message["subject"] == "Task Due Soon: Essay draft"
    assert "Hi Ada" in message["html"]
    assert "March 3, 2025 2:30 PM" in message["html"]


def test_user_text_is_escaped():
    message = format_task_due_reminder(make_user("<b>Eve</b>"), make_task(title="a < b"))
    assert "<b>Eve</b>" not in message["html"]
    assert "&lt;b&gt;Eve&lt;/b&gt;" in message["html"]
    assert "a &lt; b" in message["html"]


def test_event_reminder_without_location():
    message = format_event_reminder(make_user(), make_event(location=None))
    assert message["subject"] == "Upcoming Event: Career Fair"
    assert "Location:" not in message["html"]


def test_event_reminder_with_link():
    message = format_event_reminder(
        make_user(), make_event(link="https://calendar.example.edu/event/fair")
    )
    assert "Location: Union" in message["html"]
    assert 'href="https://calendar.example.edu/event/fair"' in message["html"]


def test_daily_digest_with_items():
    message = format_daily_digest(make_user(), [make_task()], [make_event()], date(2025, 3, 3))
    assert message["subject"] == "Your Daily Agenda for March 3, 2025"
    assert "2:30 PM - Essay draft (high priority, todo)" in message["html"]
    assert "9:05 AM - Career Fair @ Union" in message["html"]


def test_daily_digest_empty():
    message = format_daily_digest(make_user(), [], [], date(2025, 3, 3))
    assert "No tasks due today" in message["html"]
    assert "No events scheduled today" in message["html"]
