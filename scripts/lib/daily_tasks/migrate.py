"""Daily note task migration.

When a daily note is opened or created, three steps run in order:

1. Carry-over: open tasks of the most recent earlier daily note are copied
   into the carry-over section.
2. Recurrence: template tasks whose pattern is due today are added to the
   target section.
3. Migration: tasks dated for today are moved from the source folder into
   the target section and deleted from where they came from.

Each step reads the documents it needs right before changing them and
writes each document at most once.
"""

import logging
from dataclasses import dataclass
from datetime import date

from .config import Settings
from .document import daily_note_date, join_lines, split_lines
from .extractor import (
    SourceDocument,
    apply_deletions,
    extract_dated,
    extract_recurring,
    group_deletions,
    select_carry_over,
)
from .merger import merge_into_section

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationReport:
    carried: int = 0
    recurring: int = 0
    migrated: int = 0

    @property
    def total(self) -> int:
        return self.carried + self.recurring + self.migrated


def list_daily_notes(store, daily_folder: str = "") -> list[tuple[str, str]]:
    """Return ``(iso_date, path)`` for every daily note, oldest first."""
    notes = []
    for path in store.list_documents(daily_folder):
        iso = daily_note_date(path, daily_folder)
        if iso:
            notes.append((iso, path))
    return sorted(notes)


def find_previous_daily_note(store, daily_folder: str, iso_date: str) -> str | None:
    """Most recent daily note strictly before *iso_date*, or None."""
    previous = None
    for iso, path in list_daily_notes(store, daily_folder):
        # ISO dates compare chronologically as plain strings
        if iso >= iso_date:
            break
        previous = path
    return previous


def load_sources(store, folder: str, exclude: str) -> list[SourceDocument]:
    """Read every document below *folder* except *exclude*, sorted by path."""
    sources = []
    for path in store.list_documents(folder):
        if path == exclude:
            continue
        try:
            content = store.read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {path}, skipping: {e}")
            continue
        sources.append(SourceDocument(path, split_lines(content)))
    return sources


def _merge_into_note(store, path: str, section: str, texts: list[str]) -> int:
    if not texts:
        return 0
    lines = split_lines(store.read_text(path))
    updated, added = merge_into_section(lines, section, texts)
    if added:
        store.write_text(path, join_lines(updated))
    return len(added)


def carry_over(store, path: str, iso_date: str, settings: Settings) -> int:
    previous = find_previous_daily_note(store, settings.daily_folder, iso_date)
    if previous is None:
        logger.debug(f"No daily note before {iso_date}, nothing to carry over")
        return 0

    texts = select_carry_over(split_lines(store.read_text(previous)))
    count = _merge_into_note(store, path, settings.carry_over_section, texts)
    if count:
        logger.info(f"Carried over {count} task(s) from {previous}")
    return count


def expand_recurring(store, path: str, iso_date: str, settings: Settings) -> int:
    sources = load_sources(store, settings.recurrence_sources, exclude=path)
    tasks = extract_recurring(sources, date.fromisoformat(iso_date))
    count = _merge_into_note(store, path, settings.target_section, [t.text for t in tasks])
    if count:
        logger.info(f"Added {count} recurring task(s)")
    return count


def migrate_dated(store, path: str, iso_date: str, settings: Settings) -> int:
    sources = load_sources(store, settings.source_folder, exclude=path)
    tasks = extract_dated(sources, iso_date)
    if not tasks:
        return 0

    count = _merge_into_note(store, path, settings.target_section, [t.text for t in tasks])

    # Tasks already present in the note are still removed from their source
    for source, requests in group_deletions(tasks).items():
        lines = split_lines(store.read_text(source))
        updated, removed = apply_deletions(lines, requests)
        if removed:
            store.write_text(source, join_lines(updated))
            logger.debug(f"Removed {removed} task(s) from {source}")

    if count:
        logger.info(f"Migrated {count} task(s)")
    return count


def process_daily_note(store, path: str, settings: Settings) -> MigrationReport:
    """Run carry-over, recurrence and migration for the daily note at *path*."""
    iso_date = daily_note_date(path, settings.daily_folder)
    if iso_date is None:
        logger.debug(f"{path} is not a daily note")
        return MigrationReport()

    carried = 0
    if settings.enable_carry_over:
        carried = carry_over(store, path, iso_date, settings)

    recurring = 0
    if settings.recurrence_sources:
        recurring = expand_recurring(store, path, iso_date, settings)

    migrated = 0
    if settings.source_folder:
        migrated = migrate_dated(store, path, iso_date, settings)

    return MigrationReport(carried=carried, recurring=recurring, migrated=migrated)
