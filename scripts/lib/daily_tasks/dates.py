"""Candidate due dates offered when scheduling a task."""

from datetime import date, timedelta


def suggest_dates(today: date) -> list[tuple[str, str]]:
    """
    Return ``(iso_date, description)`` pairs in display order:
    today, tomorrow, the day after, the next seven days,
    next Monday and next Saturday.
    """
    suggestions = [
        (today.isoformat(), "Today"),
        ((today + timedelta(days=1)).isoformat(), "Tomorrow"),
        ((today + timedelta(days=2)).isoformat(), "Day after tomorrow"),
    ]

    for offset in range(3, 10):
        day = today + timedelta(days=offset)
        suggestions.append((day.isoformat(), day.strftime("%A, %d %b")))

    # Always strictly in the future: a Monday suggests the following Monday
    days_until_monday = (7 - today.weekday()) % 7 or 7
    monday = today + timedelta(days=days_until_monday)
    suggestions.append((monday.isoformat(), monday.strftime("Next Monday, %d %b")))

    days_until_saturday = (5 - today.weekday()) % 7 or 7
    saturday = today + timedelta(days=days_until_saturday)
    suggestions.append((saturday.isoformat(), saturday.strftime("Saturday, %d %b")))

    return suggestions
