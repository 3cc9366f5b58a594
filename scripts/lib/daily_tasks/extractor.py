"""Task extraction from source documents and deletion bookkeeping."""

import logging
from dataclasses import dataclass
from datetime import date

from .document import LineKind, classify, open_task_lines
from .markers import find_date_marker, find_repeat_marker, has_date_marker, strip_markers
from .recurrence import is_due

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceDocument:
    path: str
    lines: list[str]


@dataclass(frozen=True)
class Task:
    text: str
    source: str | None = None
    line: int | None = None
    raw: str | None = None
    marker_line: int | None = None
    due: str | None = None
    pattern: str | None = None


@dataclass(frozen=True)
class DeletionRequest:
    line: int
    raw: str
    marker_line: int | None = None


def render_task(line: str) -> str:
    """Rendered task text: markers removed, surrounding whitespace trimmed."""
    return strip_markers(line).strip()


def extract_dated(sources: list[SourceDocument], target_date: str) -> list[Task]:
    """Collect open tasks whose date marker equals *target_date*.

    Tasks are returned in document order, then line order.
    """
    tasks = []
    for doc in sources:
        for line in open_task_lines(doc.lines):
            found = find_date_marker(doc.lines, line.index)
            if not found:
                continue
            due, marker_index = found
            if due != target_date:
                continue
            tasks.append(
                Task(
                    text=render_task(line.text),
                    source=doc.path,
                    line=line.index,
                    raw=line.text,
                    marker_line=marker_index if marker_index != line.index else None,
                    due=due,
                )
            )
    return tasks


def extract_recurring(sources: list[SourceDocument], day: date) -> list[Task]:
    """Collect open template tasks whose recurrence pattern is due on *day*.

    The templates stay where they are, so no source reference is kept.
    """
    tasks = []
    for doc in sources:
        for line in open_task_lines(doc.lines):
            pattern = find_repeat_marker(line.text)
            if pattern and is_due(pattern, day):
                tasks.append(Task(text=render_task(line.text), pattern=pattern))
    return tasks


def select_carry_over(lines: list[str]) -> list[str]:
    """Open task lines of a previous daily note, trimmed, in order."""
    return [line.text.strip() for line in classify(lines) if line.kind is LineKind.OPEN_TASK]


def group_deletions(tasks: list[Task]) -> dict[str, list[DeletionRequest]]:
    """Group dated tasks by source document, highest line first."""
    grouped: dict[str, list[DeletionRequest]] = {}
    for task in tasks:
        if task.source is None or task.line is None:
            continue
        grouped.setdefault(task.source, []).append(
            DeletionRequest(line=task.line, raw=task.raw or "", marker_line=task.marker_line)
        )
    for requests in grouped.values():
        requests.sort(key=lambda r: r.line, reverse=True)
    return grouped


def apply_deletions(
    lines: list[str],
    requests: list[DeletionRequest],
) -> tuple[list[str], int]:
    """
    Remove migrated task lines (and their marker lines) in one batch.

    Requests are processed from the bottom up so earlier removals never
    shift a line that is still pending. A task line that no longer holds
    the text it was extracted from is left alone. Mutates nothing;
    returns ``(updated_lines, removed_tasks)``.
    """
    updated = list(lines)
    removed = 0

    for request in sorted(requests, key=lambda r: r.line, reverse=True):
        if request.line >= len(updated) or updated[request.line] != request.raw:
            logger.warning(
                "Skipping deletion of line %d: content changed since extraction",
                request.line + 1,
            )
            continue

        del updated[request.line]
        removed += 1

        if request.marker_line is None:
            continue
        # The marker line moved up by one with the task line gone
        shifted = request.marker_line - 1
        if 0 <= shifted < len(updated) and has_date_marker(updated[shifted]):
            del updated[shifted]
        else:
            logger.debug("Marker line %d no longer holds a date marker", request.marker_line + 1)

    return updated, removed
