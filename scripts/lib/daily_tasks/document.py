"""Line classification and daily note naming."""

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import PurePosixPath

DAILY_NAME_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})\.md$")

HEADING_RE = re.compile(r"^#{1,6}\s")
OPEN_TASK_RE = re.compile(r"^\s*- \[ \]")
DONE_TASK_RE = re.compile(r"^\s*- \[[xX]\]")


class LineKind(Enum):
    HEADING = "heading"
    BLANK = "blank"
    OPEN_TASK = "open_task"
    DONE_TASK = "done_task"
    OTHER = "other"


@dataclass(frozen=True)
class Line:
    index: int
    text: str
    kind: LineKind


def split_lines(content: str) -> list[str]:
    """Split document text so that ``join_lines`` restores it exactly."""
    return content.split("\n")


def join_lines(lines: list[str]) -> str:
    return "\n".join(lines)


def classify(lines: list[str]) -> list[Line]:
    """
    Classify every line of a document.

    Rules:
    - Anything inside a fenced code block is OTHER
    - Headings are 1-6 '#' followed by whitespace
    - '- [ ]' is an open task, '- [x]' / '- [X]' a done task (any indent)
    """
    result = []
    in_code_block = False

    for i, text in enumerate(lines):
        stripped = text.strip()

        if stripped.startswith("```"):
            in_code_block = not in_code_block
            result.append(Line(i, text, LineKind.OTHER))
            continue

        if in_code_block:
            kind = LineKind.OTHER
        elif not stripped:
            kind = LineKind.BLANK
        elif HEADING_RE.match(text):
            kind = LineKind.HEADING
        elif OPEN_TASK_RE.match(text):
            kind = LineKind.OPEN_TASK
        elif DONE_TASK_RE.match(text):
            kind = LineKind.DONE_TASK
        else:
            kind = LineKind.OTHER
        result.append(Line(i, text, kind))

    return result


def open_task_lines(lines: list[str]) -> list[Line]:
    return [line for line in classify(lines) if line.kind is LineKind.OPEN_TASK]


def normalize_task(text: str) -> str:
    """Collapse whitespace runs so that spacing differences do not count."""
    return " ".join(text.split())


def daily_note_date(path: str, daily_folder: str = "") -> str | None:
    """Return the ISO date of a daily note path, or None for other documents."""
    pure = PurePosixPath(path)
    match = DAILY_NAME_RE.match(pure.name)
    if not match:
        return None

    folder = daily_folder.strip("/")
    if folder and not path.startswith(folder + "/"):
        return None

    try:
        date.fromisoformat(match.group(1))
    except ValueError:
        return None
    return match.group(1)


def is_daily_note(path: str, daily_folder: str = "") -> bool:
    return daily_note_date(path, daily_folder) is not None


def daily_note_path(iso_date: str, daily_folder: str = "") -> str:
    folder = daily_folder.strip("/")
    return f"{folder}/{iso_date}.md" if folder else f"{iso_date}.md"
