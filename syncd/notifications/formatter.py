from __future__ import annotations

from datetime import date, datetime
from html import escape
from typing import Dict, List

from syncd.models import CampusEvent, Task, User

FOOTER = "<p>Log in to Syncd to view more details or update your schedule.</p>"


def format_clock(value: datetime) -> str:
    """``2:30 PM`` style time, no leading zero on the hour."""
    hour = value.hour % 12 or 12
    return f"{hour}:{value:%M} {value:%p}"


def format_day(value: date) -> str:
    """``March 3, 2025`` style date."""
    return f"{value:%B} {value.day}, {value.year}"


def format_when(value: datetime) -> str:
    return f"{format_day(value)} {format_clock(value)}"


def format_task_due_reminder(user: User, task: Task) -> Dict[str, str]:
    """Format a single task-due reminder.

    Returns:
        dict with keys "subject" and "html".
    """
    due = format_when(task.due_date) if task.due_date else "soon"
    html = "\n".join(
        [
            "<h2>Task Reminder</h2>",
            f"<p>Hi {escape(user.name)},</p>",
            f'<p>Your task "{escape(task.title)}" is due on {due}.</p>',
            FOOTER,
        ]
    )
    return {"subject": f"Task Due Soon: {task.title}", "html": html}


def format_event_reminder(user: User, event: CampusEvent) -> Dict[str, str]:
    """Format a reminder for a subscribed campus event.

    Returns:
        dict with keys "subject" and "html".
    """
    lines = [
        "<h2>Event Reminder</h2>",
        f"<p>Hi {escape(user.name)},</p>",
        "<p>You have an upcoming event:</p>",
        f"<p><strong>{escape(event.title)}</strong></p>",
        f"<p>Date: {format_when(event.event_date)}</p>",
    ]
    if event.location:
        lines.append(f"<p>Location: {escape(event.location)}</p>")
    if event.link:
        lines.append(f'<p><a href="{escape(event.link)}">Event details</a></p>')
    lines.append(FOOTER)
    return {"subject": f"Upcoming Event: {event.title}", "html": "\n".join(lines)}


def format_daily_digest(
    user: User,
    tasks: List[Task],
    events: List[CampusEvent],
    day: date,
) -> Dict[str, str]:
    """Format the daily agenda digest.

    Args:
        user: Recipient.
        tasks: Tasks due within the digest window, ordered by due date.
        events: Subscribed events within the digest window, ordered by date.
        day: Date the digest covers.

    Returns:
        dict with keys "subject" and "html".
    """
    lines = [
        "<h2>Daily Agenda</h2>",
        f"<p>Hi {escape(user.name)},</p>",
        "<h3>Tasks Due Today</h3>",
    ]

    if tasks:
        lines.append("<ul>")
        for task in tasks:
            lines.append(
                f"<li>{format_clock(task.due_date)} - {escape(task.title)} "
                f"({escape(task.priority)} priority, {escape(task.status)})</li>"
            )
        lines.append("</ul>")
    else:
        lines.append("<p>No tasks due today</p>")

    lines.append("<h3>Today's Events</h3>")
    if events:
        lines.append("<ul>")
        for event in events:
            where = f" @ {escape(event.location)}" if event.location else ""
            lines.append(
                f"<li>{format_clock(event.event_date)} - {escape(event.title)}{where}</li>"
            )
        lines.append("</ul>")
    else:
        lines.append("<p>No events scheduled today</p>")

    lines.append(FOOTER)
    return {
        "subject": f"Your Daily Agenda for {format_day(day)}",
        "html": "\n".join(lines),
    }
