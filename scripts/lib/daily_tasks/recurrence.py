"""Recurrence pattern evaluation.

Supported tokens (case-insensitive):

    daily                  every day
    workdays / weekdays    Monday to Friday
    weekends               Saturday and Sunday
    weekly / monday        Mondays
    tuesday ... sunday     that weekday
    monthly                first day of the month
    every-N-days           days since January 1st divisible by N

Anything else is simply never due.
"""

import re
from datetime import date

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

NAMED_PATTERNS = frozenset(
    {"daily", "workdays", "weekdays", "weekends", "weekly", "monthly", *WEEKDAYS}
)

_EVERY_N_DAYS_RE = re.compile(r"every-(\d+)-days?")


def is_known_pattern(pattern: str) -> bool:
    token = pattern.strip().lower()
    if token in NAMED_PATTERNS:
        return True
    match = _EVERY_N_DAYS_RE.fullmatch(token)
    return bool(match) and int(match.group(1)) > 0


def is_due(pattern: str, day: date | str) -> bool:
    """Return True when a task repeating on *pattern* falls on *day*."""
    if isinstance(day, str):
        day = date.fromisoformat(day)

    token = pattern.strip().lower()
    weekday = day.weekday()  # Monday == 0

    if token == "daily":
        return True
    if token in ("workdays", "weekdays"):
        return weekday < 5
    if token == "weekends":
        return weekday >= 5
    if token == "weekly":
        return weekday == 0
    if token in WEEKDAYS:
        return WEEKDAYS.index(token) == weekday
    if token == "monthly":
        return day.day == 1

    match = _EVERY_N_DAYS_RE.fullmatch(token)
    if match:
        interval = int(match.group(1))
        if interval <= 0:
            return False
        # Anchored to Jan 1st so tasks sharing N fire together
        return (day - date(day.year, 1, 1)).days % interval == 0

    return False
