from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path

import pytest

import schedule_import.cli.__main__ as cli
from schedule_import.cli.__main__ import main as cli_main
from schedule_import.models.records import ImportType, SubjectCatalogEntry
from schedule_import.services.coordinator import FileSource, ImportCoordinator, ImportOptions
from schedule_import.services.provenance import ProvenanceTracker
from schedule_import.services.uploads import store_upload

"""Integration: Russian semicolon-delimited file with a BOM, partial failure,
then deletion of the whole import."""

RUSSIAN_SCHEDULE = (
    "Предмет;День недели;Время начала;Время окончания;Кабинет;Преподаватель;Группа\n"
    "Математика;Понедельник;9.00;10.30;305;Иванова А.А.;10-А\n"
    "математика;вт;0900;1030;305;Иванова А.А.;10-А\n"
    "Физика;среда;11:00;12:30;;Петров;10-А\n"
    ";четверг;11:00;12:30;101;Петров;10-А\n"
    "Литература;воскресенье;7:00;7;210;Смирнова;10-А\n"
    "\n"
    "Информатика;сб;14:00;15:30;\"Каб. 12\";Сидоров;10-А\n"
)


@pytest.fixture()
def uploaded(temp_workdir: Path) -> Path:
    original = temp_workdir / "data" / "расписание.csv"
    original.write_bytes(RUSSIAN_SCHEDULE.encode("utf-8-sig"))
    return original


def test_import_then_delete_roundtrip(temp_workdir: Path, make_store, uploaded: Path):
    store = make_store(subjects=[SubjectCatalogEntry(id=1, name="Физика")], users=[(4, "teacher")])
    stored = store_upload(uploaded, temp_workdir / "uploads")
    coordinator = ImportCoordinator(store, show_progress=False)

    outcome = coordinator.import_schedule_items(
        FileSource.from_path(stored, original_name=uploaded.name),
        ImportOptions(uploaded_by=4),
    )

    result = outcome.result
    assert (result.total, result.success, result.failed) == (6, 4, 2)
    assert [e.row for e in result.errors] == [5, 6]
    assert "Subject" in result.errors[0].error
    assert "7" in result.errors[1].error
    assert outcome.delimiter == ";"
    assert outcome.header_mapping["teacher"] == "Преподаватель"

    # Математика created once; Физика reused; Информатика created
    names = sorted(s.name for s in store.subjects.values())
    assert names == ["Информатика", "Математика", "Физика"]

    by_day = {i.day_of_week: i for i in store.items.values()}
    assert set(by_day) == {1, 2, 3, 6}
    assert by_day[1].start_time == "09:00" and by_day[1].end_time == "10:30"
    assert by_day[3].subject_id == 1
    assert by_day[3].room_number is None
    assert by_day[6].room_number == "Каб. 12"

    record = outcome.imported_file
    assert record.import_type is ImportType.CSV
    assert (record.items_count, record.success_count, record.error_count) == (6, 4, 2)
    assert record.original_name == "расписание.csv"

    tracker = ProvenanceTracker(store)
    report = tracker.delete_import_with_report(record.id)
    assert report.items_deleted == 4
    assert report.physical_file_deleted is True
    assert not stored.exists()
    assert uploaded.exists()
    assert store.items == {}
    # catalog entries created by the import stay
    assert len(store.subjects) == 3
    assert tracker.delete_import(record.id) is False


def test_cli_partial_failure_exit_code(temp_workdir: Path, monkeypatch, store, uploaded: Path, capsys):
    @contextmanager
    def fake_open_store(cfg):
        yield store

    monkeypatch.setattr(cli, "_open_store", fake_open_store)

    code = cli_main(["import-file", str(uploaded)])

    out = capsys.readouterr().out
    assert code == 2
    assert "SUMMARY total=6 success=4 failed=2 imported_file_id=1" in out
    assert len(list((temp_workdir / "uploads").iterdir())) == 1
    assert len(list((temp_workdir / "logs").glob("errors-*.log"))) == 1
