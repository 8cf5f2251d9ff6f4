# booking/services/reminder/template.py
"""Reminder message rendering"""
from datetime import datetime
from typing import Optional

PLACEHOLDERS = ("service", "date", "time", "worker", "business")


def format_reminder_date(start: datetime) -> str:
    """e.g. Monday, January 5, 2026"""
    return f"{start:%A}, {start:%B} {start.day}, {start.year}"


def format_reminder_time(start: datetime) -> str:
    """e.g. 09:30 AM"""
    return start.strftime("%I:%M %p")


def render_reminder(
        template: str,
        service_name: str,
        start: datetime,
        worker_name: str,
        business_name: str,
        personal_addition: Optional[str] = None
) -> str:
    values = {
        "service": service_name or "",
        "date": format_reminder_date(start),
        "time": format_reminder_time(start),
        "worker": worker_name or "",
        "business": business_name or "",
    }

    message = template
    for name in PLACEHOLDERS:
        message = message.replace("{{" + name + "}}", values[name])

    if personal_addition:
        message += f"\n\n{personal_addition}"

    return message
