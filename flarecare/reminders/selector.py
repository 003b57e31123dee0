"""Time-window due selection.

A reminder is due when its notification instant falls in ``[now - window, now]``.
The lower bound catches reminders skipped by a late or missed scheduler run;
the upper bound keeps reminders from going out early. Anything older than the
window is never picked up again.
"""
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, List, Optional
import logging
import re

from flarecare.models import Appointment

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(minutes=15)

_TIME_PREFIX = re.compile(r"^(\d{2}):(\d{2})")


def parse_time_of_day(value: Optional[str]) -> time:
    """Leading HH:MM of a stored time string; midnight when absent or unrecognised."""
    match = _TIME_PREFIX.match(value or "")
    if not match:
        return time(0, 0)
    return time(int(match.group(1)), int(match.group(2)))


def appointment_instant(apt: Appointment, tz: tzinfo) -> Optional[datetime]:
    """Combine the stored date and time-of-day into an aware instant, or None if invalid."""
    raw_date = apt.date
    try:
        if isinstance(raw_date, str):
            raw_date = date.fromisoformat(raw_date)
        if not isinstance(raw_date, date):
            return None
        return datetime.combine(raw_date, parse_time_of_day(apt.time), tzinfo=tz)
    except (ValueError, OverflowError):
        return None


def reminder_due_at(apt: Appointment, tz: tzinfo) -> Optional[datetime]:
    at = appointment_instant(apt, tz)
    if at is None or apt.reminder_minutes_before is None:
        return None
    try:
        return at - timedelta(minutes=apt.reminder_minutes_before)
    except OverflowError:
        # Offsets that leave the representable date range can never become due
        return None


def select_due_appointments(
    appointments: Iterable[Appointment],
    now: datetime,
    tz: tzinfo,
    window: timedelta = DEFAULT_WINDOW,
) -> List[Appointment]:
    """Appointments whose reminder instant lies in [now - window, now], input order kept."""
    window_start = now - window
    due = []
    for apt in appointments:
        if apt.reminder_sent_at is not None:
            continue
        due_at = reminder_due_at(apt, tz)
        if due_at is None:
            logger.debug(f"🔎 [Selector] Skipping appointment {apt.id}: unparseable date/time")
            continue
        if window_start <= due_at <= now:
            due.append(apt)
    return due
