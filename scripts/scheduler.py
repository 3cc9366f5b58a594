#!/usr/bin/env python3
"""
scheduler.py — Move dated and recurring tasks into daily notes.

Tasks anywhere in the source folder can carry a hidden date marker
(`schedule`) or a recurrence marker (`repeat`). Processing a daily note
(YYYY-MM-DD.md) carries over yesterday's open tasks, adds recurring tasks
due that day, and moves tasks dated for that day out of their source files.

Configuration via environment variables:
  OBSIDIAN_VAULT           Vault root (default ~/Obsidian)
  TASK_SCHEDULER_CONFIG    Settings JSON (default <vault>/.obsidian/plugins/task-scheduler/data.json)

Usage:
  python3 scheduler.py process                      # today's daily note
  python3 scheduler.py process --date 2024-03-01 --dry-run
  python3 scheduler.py watch                        # process notes as they are created
  python3 scheduler.py schedule Tasks/Home.md 4 2024-03-01
  python3 scheduler.py repeat Tasks/Home.md 7 weekdays
  python3 scheduler.py dates
  python3 scheduler.py config set sourceFolder Tasks
"""

import argparse
import json
import logging
import sys
import time
from datetime import date, datetime
from pathlib import Path

# Add lib directory to path for imports
_SCRIPT_DIR = Path(__file__).parent.resolve()
if str(_SCRIPT_DIR / "lib") not in sys.path:
    sys.path.insert(0, str(_SCRIPT_DIR / "lib"))

from daily_tasks.config import config_path, load_config, to_dict, update_config, vault_root
from daily_tasks.dates import suggest_dates
from daily_tasks.document import OPEN_TASK_RE, daily_note_path, is_daily_note, join_lines, split_lines
from daily_tasks.markers import date_marker, embed_marker, repeat_marker
from daily_tasks.migrate import list_daily_notes, process_daily_note
from daily_tasks.store import DryRunStore, VaultStore, atomic_write

logger = logging.getLogger("scheduler")

# Give the editor time to finish populating a freshly created note
CREATE_DEBOUNCE = 0.1
POLL_INTERVAL = 2.0


def _fail(message: str) -> None:
    print(f"❌ {message}", file=sys.stderr)
    sys.exit(1)


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        _fail(f"Invalid date format: {value!r} — expected YYYY-MM-DD")


def _report_line(report) -> str:
    parts = []
    if report.carried:
        parts.append(f"carried over {report.carried}")
    if report.recurring:
        parts.append(f"added {report.recurring} recurring")
    if report.migrated:
        parts.append(f"migrated {report.migrated}")
    return ", ".join(parts)


def _resolve_note(args, store, settings) -> str:
    if args.file:
        candidate = Path(args.file).expanduser()
        if candidate.is_absolute():
            try:
                return store.relative(candidate)
            except ValueError:
                _fail(f"{candidate} is outside the vault {store.root}")
        return Path(args.file).as_posix()

    target = _parse_date(args.date) if args.date else date.today()
    return daily_note_path(target.isoformat(), settings.daily_folder)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_process(args):
    """Process one daily note (the manual "update tasks" command)."""
    vault = vault_root(args.vault)
    settings = load_config(config_path(vault, args.config))
    store = DryRunStore(vault) if args.dry_run else VaultStore(vault)

    path = _resolve_note(args, store, settings)
    if not is_daily_note(path, settings.daily_folder):
        _fail(f"Not a daily note: {path}")
    if not store.exists(path):
        _fail(f"Daily note not found: {store.resolve(path)}")

    report = process_daily_note(store, path, settings)

    if report.total:
        prefix = "Would have " if args.dry_run else ""
        print(f"✅ {prefix}{_report_line(report)} task(s) in {path}")
    else:
        print(f"ℹ️  Nothing to do for {path}")
    return report


def poll_new_notes(store, daily_folder: str, seen: set[str]) -> list[str]:
    """Daily notes that appeared since *seen* was taken, oldest first."""
    return [path for _, path in list_daily_notes(store, daily_folder) if path not in seen]


def cmd_watch(args):
    """Process daily notes as they are created, one at a time."""
    vault = vault_root(args.vault)
    settings_file = config_path(vault, args.config)
    store = VaultStore(vault)

    settings = load_config(settings_file)
    seen = {path for _, path in list_daily_notes(store, settings.daily_folder)}
    logger.info(f"Watching {vault} for new daily notes ({len(seen)} existing)")

    try:
        while True:
            time.sleep(args.interval)
            settings = load_config(settings_file)
            for path in poll_new_notes(store, settings.daily_folder, seen):
                seen.add(path)
                time.sleep(CREATE_DEBOUNCE)
                report = process_daily_note(store, path, settings)
                if report.total:
                    print(f"✅ {path}: {_report_line(report)} task(s)")
    except KeyboardInterrupt:
        logger.info("Stopped watching")


def _embed_in_task_line(vault: Path, file_arg: str, line_no: int, marker: str) -> Path:
    path = Path(file_arg).expanduser()
    if not path.is_file():
        vault_path = vault / file_arg
        if not vault_path.is_file():
            _fail(f"File not found: {file_arg}")
        path = vault_path

    # newline="" keeps CRLF files CRLF on rewrite
    with open(path, encoding="utf-8", newline="") as handle:
        lines = split_lines(handle.read())
    if line_no < 1 or line_no > len(lines):
        _fail(f"Line {line_no} is out of range (1-{len(lines)})")

    line = lines[line_no - 1]
    if not OPEN_TASK_RE.match(line):
        _fail(f"Line {line_no} is not an open task: {line.strip()!r}")

    ending = "\r" if line.endswith("\r") else ""
    lines[line_no - 1] = embed_marker(line.removesuffix("\r"), marker) + ending
    atomic_write(path, join_lines(lines))
    return path


def cmd_schedule(args):
    """Attach a due date to a task line."""
    try:
        marker = date_marker(args.date)
    except ValueError as exc:
        _fail(str(exc))
    path = _embed_in_task_line(vault_root(args.vault), args.file, args.line, marker)
    print(f"✅ Scheduled line {args.line} of {path.name} for {args.date}")


def cmd_repeat(args):
    """Attach a recurrence pattern to a task line."""
    try:
        marker = repeat_marker(args.pattern)
    except ValueError as exc:
        _fail(str(exc))
    path = _embed_in_task_line(vault_root(args.vault), args.file, args.line, marker)
    print(f"✅ Line {args.line} of {path.name} now repeats {args.pattern.lower()}")


def cmd_dates(args):
    """List suggested due dates."""
    today = _parse_date(args.today) if args.today else date.today()
    suggestions = suggest_dates(today)
    if args.json:
        print(json.dumps([{"date": d, "description": desc} for d, desc in suggestions], indent=2))
        return
    for iso, description in suggestions:
        print(f"📅 {iso}  {description}")


def cmd_config(args):
    """Show or change persisted settings."""
    vault = vault_root(args.vault)
    settings_file = config_path(vault, args.config)

    if args.config_command == "show":
        print(json.dumps(to_dict(load_config(settings_file)), indent=2, ensure_ascii=False))
        return

    try:
        settings = update_config(settings_file, args.key, args.value)
    except KeyError:
        _fail(f"Unknown setting: {args.key}")
    except ValueError as exc:
        _fail(str(exc))
    print(f"✅ Saved {args.key} to {settings_file}")
    return settings


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Move dated and recurring tasks into daily notes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--vault", help="Vault root (default: $OBSIDIAN_VAULT or ~/Obsidian)")
    parser.add_argument("--config", help="Settings file (default: $TASK_SCHEDULER_CONFIG)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    process_parser = subparsers.add_parser("process", help="Update tasks in a daily note")
    target = process_parser.add_mutually_exclusive_group()
    target.add_argument("--date", help="Daily note date (YYYY-MM-DD), default: today")
    target.add_argument("--file", help="Daily note path (vault-relative or absolute)")
    process_parser.add_argument("--dry-run", action="store_true", help="Preview without writing files")
    process_parser.set_defaults(func=cmd_process)

    watch_parser = subparsers.add_parser("watch", help="Process daily notes as they are created")
    watch_parser.add_argument("--interval", type=float, default=POLL_INTERVAL, help="Seconds between polls")
    watch_parser.set_defaults(func=cmd_watch)

    schedule_parser = subparsers.add_parser("schedule", help="Attach a due date to a task")
    schedule_parser.add_argument("file", help="Markdown file (absolute or vault-relative)")
    schedule_parser.add_argument("line", type=int, help="Task line number (1-based)")
    schedule_parser.add_argument("date", help="Due date (YYYY-MM-DD)")
    schedule_parser.set_defaults(func=cmd_schedule)

    repeat_parser = subparsers.add_parser("repeat", help="Make a task recur")
    repeat_parser.add_argument("file", help="Markdown file (absolute or vault-relative)")
    repeat_parser.add_argument("line", type=int, help="Task line number (1-based)")
    repeat_parser.add_argument("pattern", help="daily, workdays, weekends, weekly, monthly, <weekday>, every-N-days")
    repeat_parser.set_defaults(func=cmd_repeat)

    dates_parser = subparsers.add_parser("dates", help="Suggest due dates")
    dates_parser.add_argument("--today", help="Reference date (YYYY-MM-DD)")
    dates_parser.add_argument("--json", action="store_true")
    dates_parser.set_defaults(func=cmd_dates)

    config_parser = subparsers.add_parser("config", help="Show or change settings")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show", help="Print effective settings").set_defaults(func=cmd_config)
    config_set = config_sub.add_parser("set", help="Change one setting")
    config_set.add_argument("key", help="e.g. sourceFolder, targetSection, enableCarryOver")
    config_set.add_argument("value")
    config_set.set_defaults(func=cmd_config)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
