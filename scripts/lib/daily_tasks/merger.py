"""Section-aware task merging."""

from .document import LineKind, classify, normalize_task


def find_section(lines: list[str], title: str) -> int:
    """Return the index of the heading whose trimmed text equals *title*, or -1."""
    wanted = title.strip()
    for i, line in enumerate(lines):
        if line.strip() == wanted:
            return i
    return -1


def _line_ending(line: str) -> str:
    # Lines come from splitting on "\n", so a CRLF document keeps its "\r"
    return "\r" if line.endswith("\r") else ""


def _unique(new_lines: list[str], seen: set[str]) -> list[str]:
    result = []
    for line in new_lines:
        key = normalize_task(line)
        if key and key not in seen:
            seen.add(key)
            result.append(line.strip())
    return result


def merge_into_section(
    lines: list[str],
    title: str,
    new_lines: list[str],
) -> tuple[list[str], list[str]]:
    """
    Insert *new_lines* right after the *title* section heading.

    Open tasks already present in the section (and repeats inside
    *new_lines*) are skipped. A missing section is appended at the end of
    the document. Mutates nothing; returns ``(updated_lines, added)``.
    """
    anchor = find_section(lines, title)
    updated = list(lines)

    if anchor == -1:
        added = _unique(new_lines, set())
        if not added:
            return updated, []

        ending = _line_ending(lines[0]) if lines else ""
        while updated and not updated[-1].strip():
            updated.pop()
        if updated:
            if not updated[-1].endswith(ending):
                updated[-1] += ending
            updated.append(ending)
        updated.append(title.strip() + ending)
        updated.extend(line + ending for line in added)
        updated.append("")
        return updated, added

    insert_at = anchor + 1
    while insert_at < len(updated) and not updated[insert_at].strip():
        insert_at += 1
    if insert_at == len(updated):
        # Only blank lines follow: keep them after the tasks
        insert_at = anchor + 1

    existing = set()
    for line in classify(updated)[insert_at:]:
        if line.kind is LineKind.HEADING:
            break
        if line.kind is LineKind.OPEN_TASK:
            existing.add(normalize_task(line.text))

    added = _unique(new_lines, existing)
    if added:
        ending = _line_ending(lines[anchor])
        updated[insert_at:insert_at] = [line + ending for line in added]
    return updated, added
