from __future__ import annotations

from pathlib import Path

from schedule_import.services.coordinator import FileSource, ImportCoordinator, ImportOptions
from schedule_import.services.uploads import store_upload

"""Integration: a Russian schedule saved in windows-1251 (no BOM) imports with
its Cyrillic text intact."""

CP1251_SCHEDULE = (
    "Предмет;День недели;Время начала;Время окончания;Кабинет;Преподаватель\n"
    "Математика;Понедельник;08:30;09:15;201;Иванова Мария Петровна\n"
    "Русский язык;Понедельник;09:25;10:10;105;Смирнова Ольга Ивановна\n"
    "Литература;Вторник;10:20;11:05;105;Смирнова Ольга Ивановна\n"
    "Физика;Среда;11:15;12:00;310;Кузнецов Алексей Сергеевич\n"
    "История;Четверг;12:10;12:55;214;Попова Елена Викторовна\n"
    "География;Пятница;13:05;13:50;118;Соколов Дмитрий Андреевич\n"
)


def test_cp1251_file_imports_intact(temp_workdir: Path, store):
    original = temp_workdir / "data" / "расписание.csv"
    original.write_bytes(CP1251_SCHEDULE.encode("cp1251"))
    stored = store_upload(original, temp_workdir / "uploads")

    outcome = ImportCoordinator(store, show_progress=False).import_schedule_items(
        FileSource.from_path(stored, original_name=original.name),
        ImportOptions(uploaded_by=5),
    )

    assert outcome.encoding.lower() == "windows-1251"
    assert outcome.delimiter == ";"
    assert (outcome.result.total, outcome.result.success, outcome.result.failed) == (6, 6, 0)
    names = sorted(s.name for s in store.subjects.values())
    assert names == ["География", "История", "Литература", "Математика", "Русский язык", "Физика"]
    teachers = {i.teacher_name for i in store.items.values()}
    assert "Иванова Мария Петровна" in teachers
    assert sorted(i.day_of_week for i in store.items.values()) == [1, 1, 2, 3, 4, 5]
