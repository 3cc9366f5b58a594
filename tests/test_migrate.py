"""Tests for daily note migration against a temporary vault."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "scripts" / "lib"))

from daily_tasks.config import Settings
from daily_tasks.migrate import (
    MigrationReport,
    find_previous_daily_note,
    list_daily_notes,
    process_daily_note,
)
from daily_tasks.store import DryRunStore, VaultStore


def marker(iso: str) -> str:
    return f'<span class="hidden-date" data-date="{iso}">📅</span>'


def repeat(pattern: str) -> str:
    return f'<span class="hidden-repeat" data-pattern="{pattern}">🔁</span>'


SETTINGS = Settings(source_folder="Tasks", daily_folder="Daily")


@pytest.fixture
def vault(tmp_path):
    (tmp_path / "Tasks").mkdir()
    (tmp_path / "Daily").mkdir()
    return tmp_path


def write(vault: Path, rel: str, content: str) -> Path:
    path = vault / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def read(vault: Path, rel: str) -> str:
    return (vault / rel).read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Daily note lookup
# ---------------------------------------------------------------------------

class TestDailyNotes:
    def test_list_sorted_and_filtered(self, vault):
        write(vault, "Daily/2024-01-02.md", "")
        write(vault, "Daily/2024-01-01.md", "")
        write(vault, "Daily/Index.md", "")
        notes = list_daily_notes(VaultStore(vault), "Daily")
        assert notes == [("2024-01-01", "Daily/2024-01-01.md"), ("2024-01-02", "Daily/2024-01-02.md")]

    def test_previous_note_skips_gaps(self, vault):
        write(vault, "Daily/2023-12-28.md", "")
        write(vault, "Daily/2024-01-05.md", "")
        store = VaultStore(vault)
        assert find_previous_daily_note(store, "Daily", "2024-01-05") == "Daily/2023-12-28.md"
        assert find_previous_daily_note(store, "Daily", "2023-12-28") is None

    def test_hidden_folders_ignored(self, vault):
        write(vault, ".trash/2024-01-01.md", "")
        assert list_daily_notes(VaultStore(vault)) == []


# ---------------------------------------------------------------------------
# Carry-over
# ---------------------------------------------------------------------------

class TestCarryOver:
    def test_carries_open_tasks_in_order(self, vault):
        write(vault, "Daily/2024-01-01.md", "## Tasks\n- [ ] First\n- [x] Finished\n- [ ] Second\n")
        write(vault, "Daily/2024-01-02.md", "# 2024-01-02\n\n## Tasks\n\n## Notes\n")

        report = process_daily_note(VaultStore(vault), "Daily/2024-01-02.md", SETTINGS)

        assert report.carried == 2
        assert read(vault, "Daily/2024-01-02.md") == (
            "# 2024-01-02\n\n## Tasks\n\n- [ ] First\n- [ ] Second\n## Notes\n"
        )
        # The previous note is left as it was
        assert "- [ ] First" in read(vault, "Daily/2024-01-01.md")

    def test_earliest_note_is_noop(self, vault):
        write(vault, "Daily/2024-01-01.md", "# 2024-01-01\n")
        report = process_daily_note(VaultStore(vault), "Daily/2024-01-01.md", SETTINGS)
        assert report == MigrationReport()
        assert read(vault, "Daily/2024-01-01.md") == "# 2024-01-01\n"

    def test_disabled(self, vault):
        write(vault, "Daily/2024-01-01.md", "- [ ] First\n")
        write(vault, "Daily/2024-01-02.md", "")
        settings = Settings(source_folder="Tasks", daily_folder="Daily", enable_carry_over=False)
        report = process_daily_note(VaultStore(vault), "Daily/2024-01-02.md", settings)
        assert report.carried == 0
        assert read(vault, "Daily/2024-01-02.md") == ""

    def test_runs_without_source_folder(self, vault):
        write(vault, "Daily/2024-01-01.md", "- [ ] First\n")
        write(vault, "Daily/2024-01-02.md", "")
        report = process_daily_note(VaultStore(vault), "Daily/2024-01-02.md", Settings(daily_folder="Daily"))
        assert report == MigrationReport(carried=1)
        assert read(vault, "Daily/2024-01-02.md") == "## Tasks\n- [ ] First\n"

    def test_custom_carry_over_section(self, vault):
        write(vault, "Daily/2024-01-01.md", "- [ ] First\n")
        write(vault, "Daily/2024-01-02.md", "## Yesterday\n\n## Tasks\n")
        settings = Settings(daily_folder="Daily", carry_over_section="## Yesterday")
        process_daily_note(VaultStore(vault), "Daily/2024-01-02.md", settings)
        assert read(vault, "Daily/2024-01-02.md") == "## Yesterday\n\n- [ ] First\n## Tasks\n"


# ---------------------------------------------------------------------------
# Recurrence and dated migration
# ---------------------------------------------------------------------------

class TestMigration:
    def test_dated_task_round_trip(self, vault):
        write(vault, "Tasks/Home.md", f"# Home\n- [ ] Pay rent {marker('2024-03-01')}\n- [ ] Later\n")
        write(vault, "Daily/2024-03-01.md", "## Tasks\n")

        report = process_daily_note(VaultStore(vault), "Daily/2024-03-01.md", SETTINGS)

        assert report.migrated == 1
        assert read(vault, "Daily/2024-03-01.md") == "## Tasks\n- [ ] Pay rent\n"
        assert read(vault, "Tasks/Home.md") == "# Home\n- [ ] Later\n"

    def test_separate_marker_line_removed(self, vault):
        write(vault, "Tasks/Home.md", f"- [ ] Pay rent\n  {marker('2024-03-01')}\n- [ ] Later\n")
        write(vault, "Daily/2024-03-01.md", "## Tasks\n")

        process_daily_note(VaultStore(vault), "Daily/2024-03-01.md", SETTINGS)

        assert read(vault, "Tasks/Home.md") == "- [ ] Later\n"
        assert "Pay rent" in read(vault, "Daily/2024-03-01.md")

    def test_recurring_templates_stay(self, vault):
        template = f"- [ ] Water plants {repeat('wednesday')}\n"
        write(vault, "Tasks/Routine.md", template)
        write(vault, "Daily/2024-01-03.md", "## Tasks\n")

        report = process_daily_note(VaultStore(vault), "Daily/2024-01-03.md", SETTINGS)

        assert report.recurring == 1
        assert read(vault, "Daily/2024-01-03.md") == "## Tasks\n- [ ] Water plants\n"
        assert read(vault, "Tasks/Routine.md") == template

    def test_recurrence_folder_overrides_source(self, vault):
        write(vault, "Routines/Daily.md", f"- [ ] Stretch {repeat('daily')}\n")
        write(vault, "Tasks/Daily.md", f"- [ ] Ignored {repeat('daily')}\n")
        write(vault, "Daily/2024-01-03.md", "")
        settings = Settings(source_folder="Tasks", daily_folder="Daily", recurrence_folder="Routines")

        process_daily_note(VaultStore(vault), "Daily/2024-01-03.md", settings)

        content = read(vault, "Daily/2024-01-03.md")
        assert "- [ ] Stretch" in content
        assert "Ignored" not in content

    def test_second_run_is_idempotent(self, vault):
        write(vault, "Daily/2024-02-29.md", "- [ ] Leftover\n")
        write(vault, "Tasks/Home.md", f"- [ ] Pay rent {marker('2024-03-01')}\n")
        write(vault, "Tasks/Routine.md", f"- [ ] Review inbox {repeat('monthly')}\n")
        write(vault, "Daily/2024-03-01.md", "# 2024-03-01\n\n## Tasks\n")
        store = VaultStore(vault)

        first = process_daily_note(store, "Daily/2024-03-01.md", SETTINGS)
        after_first = read(vault, "Daily/2024-03-01.md")
        second = process_daily_note(store, "Daily/2024-03-01.md", SETTINGS)

        assert first == MigrationReport(carried=1, recurring=1, migrated=1)
        assert second == MigrationReport()
        assert read(vault, "Daily/2024-03-01.md") == after_first
        # Each step inserts above the tasks added by the step before it
        assert after_first == (
            "# 2024-03-01\n\n## Tasks\n- [ ] Pay rent\n- [ ] Review inbox\n- [ ] Leftover\n"
        )

    def test_duplicate_in_target_still_deleted_from_source(self, vault):
        write(vault, "Tasks/Home.md", f"- [ ] Pay rent {marker('2024-03-01')}\n")
        write(vault, "Daily/2024-03-01.md", "## Tasks\n- [ ] Pay rent\n")

        report = process_daily_note(VaultStore(vault), "Daily/2024-03-01.md", SETTINGS)

        assert report.migrated == 0
        assert read(vault, "Daily/2024-03-01.md") == "## Tasks\n- [ ] Pay rent\n"
        assert read(vault, "Tasks/Home.md") == ""

    def test_target_note_not_used_as_source(self, vault):
        settings = Settings(source_folder="Daily", daily_folder="Daily", enable_carry_over=False)
        content = f"## Tasks\n- [ ] Pay rent {marker('2024-03-01')}\n"
        write(vault, "Daily/2024-03-01.md", content)

        report = process_daily_note(VaultStore(vault), "Daily/2024-03-01.md", settings)

        assert report == MigrationReport()
        assert read(vault, "Daily/2024-03-01.md") == content

    def test_not_a_daily_note(self, vault):
        write(vault, "Tasks/Home.md", f"- [ ] Pay rent {marker('2024-03-01')}\n")
        report = process_daily_note(VaultStore(vault), "Tasks/Home.md", SETTINGS)
        assert report == MigrationReport()

    def test_dry_run_writes_nothing(self, vault):
        source = f"- [ ] Pay rent {marker('2024-03-01')}\n"
        write(vault, "Tasks/Home.md", source)
        write(vault, "Daily/2024-03-01.md", "## Tasks\n")
        store = DryRunStore(vault)

        report = process_daily_note(store, "Daily/2024-03-01.md", SETTINGS)

        assert report.migrated == 1
        assert read(vault, "Tasks/Home.md") == source
        assert read(vault, "Daily/2024-03-01.md") == "## Tasks\n"
        assert store.pending["Daily/2024-03-01.md"] == "## Tasks\n- [ ] Pay rent\n"
        assert store.pending["Tasks/Home.md"] == ""

    def test_undecodable_source_is_skipped(self, vault, caplog):
        (vault / "Tasks" / "Old.md").write_bytes(b"- [ ] caf\xe9\n")
        write(vault, "Tasks/Home.md", f"- [ ] Pay rent {marker('2024-03-01')}\n")
        write(vault, "Daily/2024-03-01.md", "## Tasks\n")

        with caplog.at_level("WARNING"):
            report = process_daily_note(VaultStore(vault), "Daily/2024-03-01.md", SETTINGS)

        assert report.migrated == 1
        assert read(vault, "Daily/2024-03-01.md") == "## Tasks\n- [ ] Pay rent\n"
        assert read(vault, "Tasks/Home.md") == ""
        assert "Tasks/Old.md" in caplog.text

    def test_crlf_note_stays_crlf(self, vault):
        write(vault, "Tasks/Home.md", f"- [ ] Pay rent {marker('2024-03-01')}\n")
        (vault / "Daily" / "2024-03-01.md").write_bytes(b"## Tasks\r\n")

        process_daily_note(VaultStore(vault), "Daily/2024-03-01.md", SETTINGS)

        assert (vault / "Daily" / "2024-03-01.md").read_bytes() == b"## Tasks\r\n- [ ] Pay rent\r\n"
