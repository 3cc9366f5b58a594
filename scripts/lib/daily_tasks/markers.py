"""Inline date and recurrence markers.

Markers are small HTML spans embedded in task lines. The editor renders
them as a single glyph; the scheduler matches them exactly:

    <span class="hidden-date" data-date="2024-03-01">📅</span>
    <span class="hidden-repeat" data-pattern="weekly">🔁</span>
"""

import re
from datetime import date

from .document import DONE_TASK_RE, HEADING_RE, OPEN_TASK_RE
from .recurrence import is_known_pattern

DATE_GLYPH = "📅"
REPEAT_GLYPH = "🔁"

# Number of lines (task line included) searched for a date marker
LOOKAHEAD = 3

# Typed by the user where a date should be picked
DATE_TRIGGER = "::date_to"

DATE_MARKER_RE = re.compile(
    r'<span class="hidden-date" data-date="(\d{4}-\d{2}-\d{2})">📅</span>'
)
REPEAT_MARKER_RE = re.compile(
    r'<span class="hidden-repeat" data-pattern="([A-Za-z0-9-]+)">🔁</span>'
)

# Used when stripping: removes the marker plus whitespace directly before it
_DATE_STRIP_RE = re.compile(r'[ \t]*<span class="hidden-date" data-date="[^"]*">📅</span>')
_REPEAT_STRIP_RE = re.compile(r'[ \t]*<span class="hidden-repeat" data-pattern="[^"]*">🔁</span>')
_ANY_MARKER_RE = re.compile(f"{_DATE_STRIP_RE.pattern}|{_REPEAT_STRIP_RE.pattern}")


def _starts_new_block(line: str) -> bool:
    return bool(OPEN_TASK_RE.match(line) or DONE_TASK_RE.match(line) or HEADING_RE.match(line))


def _valid_iso(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def match_date(line: str) -> str | None:
    """Return the first well-formed date carried by a date marker in *line*."""
    for match in DATE_MARKER_RE.finditer(line):
        if _valid_iso(match.group(1)):
            return match.group(1)
    return None


def has_date_marker(line: str) -> bool:
    return match_date(line) is not None


def find_date_marker(
    lines: list[str],
    index: int,
    lookahead: int = LOOKAHEAD,
) -> tuple[str, int] | None:
    """Search the task at *index* and the lines after it for a date marker.

    Returns ``(iso_date, line_index)`` for the first hit, or None.
    The window ends early at the next task or heading line, whose markers
    belong to that line and not to the task at *index*.
    """
    end = min(index + lookahead, len(lines))
    for i in range(index, end):
        if i > index and _starts_new_block(lines[i]):
            break
        found = match_date(lines[i])
        if found:
            return found, i
    return None


def find_repeat_marker(line: str) -> str | None:
    """Return the recurrence pattern attached to *line* (lower-cased)."""
    match = REPEAT_MARKER_RE.search(line)
    if not match:
        return None
    return match.group(1).lower()


def strip_markers(text: str) -> str:
    """Remove every date and recurrence marker from *text*."""
    return _ANY_MARKER_RE.sub("", text).rstrip()


def date_marker(iso_date: str) -> str:
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", iso_date) or not _valid_iso(iso_date):
        raise ValueError(f"Invalid date: {iso_date!r} (expected YYYY-MM-DD)")
    return f'<span class="hidden-date" data-date="{iso_date}">{DATE_GLYPH}</span>'


def repeat_marker(pattern: str) -> str:
    token = pattern.strip().lower()
    if not is_known_pattern(token):
        raise ValueError(f"Unknown recurrence pattern: {pattern!r}")
    return f'<span class="hidden-repeat" data-pattern="{token}">{REPEAT_GLYPH}</span>'


def embed_marker(line: str, marker: str, column: int | None = None) -> str:
    """Place *marker* into *line*.

    Markers of the same kind already on the line are removed first, so a
    task never carries two dates or two patterns. A pending ``::date_to``
    trigger is replaced by the marker. Otherwise the marker goes in at
    *column*, or is appended after a single space.
    """
    if DATE_MARKER_RE.fullmatch(marker):
        line = _DATE_STRIP_RE.sub("", line)
    elif REPEAT_MARKER_RE.fullmatch(marker):
        line = _REPEAT_STRIP_RE.sub("", line)

    pos = line.find(DATE_TRIGGER)
    if pos != -1:
        end = pos + len(DATE_TRIGGER)
        if line[end:end + 1] == " ":
            end += 1
        return line[:pos] + marker + line[end:]

    if column is not None:
        column = max(0, min(column, len(line)))
        return line[:column] + marker + line[column:]

    body = line.rstrip()
    return f"{body} {marker}" if body else marker
