# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

import pytest

from schedule_import.db.errors import StorageError
from schedule_import.logging.init import reset_logging
from schedule_import.models.records import (
    ImportedFile,
    ImportType,
    NewSubject,
    ScheduleItem,
    SubjectCatalogEntry,
)


class InMemoryStore:
    """ScheduleStore double keeping rows in dicts.

    transaction() snapshots the tables and restores them on exception, so
    rollback behaviour can be asserted. ``fail_on`` names store methods that
    raise StorageError when called.
    """

    def __init__(
        self,
        subjects: Sequence[SubjectCatalogEntry] = (),
        users: Sequence[tuple[int, str]] = (),
    ) -> None:
        self.subjects: dict[int, SubjectCatalogEntry] = {s.id: s for s in subjects}
        self.users = list(users)
        self.items: dict[int, ScheduleItem] = {}
        self.files: dict[int, ImportedFile] = {}
        self.fail_on: set[str] = set()
        self.commits = 0
        self.rollbacks = 0
        self.role_lookups = 0
        self.exists_checks: list[int] = []
        self._in_transaction = False

    def _check(self, op: str) -> None:
        if op in self.fail_on:
            raise StorageError(f"{op} failed")

    @staticmethod
    def _next_id(table: dict[int, object]) -> int:
        return max(table, default=0) + 1

    @contextmanager
    def transaction(self) -> Iterator[InMemoryStore]:
        if self._in_transaction:
            yield self
            return
        snapshot = (dict(self.subjects), dict(self.items), dict(self.files))
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            self.subjects, self.items, self.files = snapshot
            self.rollbacks += 1
            raise
        else:
            self.commits += 1
        finally:
            self._in_transaction = False

    def subject_exists(self, subject_id: int) -> bool:
        self._check("subject_exists")
        self.exists_checks.append(subject_id)
        return subject_id in self.subjects

    def list_subjects(self) -> list[SubjectCatalogEntry]:
        self._check("list_subjects")
        return [self.subjects[k] for k in sorted(self.subjects)]

    def create_subject(self, subject: NewSubject) -> SubjectCatalogEntry:
        self._check("create_subject")
        if any(s.name.lower() == subject.name.lower() for s in self.subjects.values()):
            raise StorageError(f"duplicate subject name: {subject.name}")
        entry = SubjectCatalogEntry(
            id=self._next_id(self.subjects),
            name=subject.name,
            short_name=subject.short_name,
            color=subject.color,
            teacher_id=subject.teacher_id,
            description=subject.description,
        )
        self.subjects[entry.id] = entry
        return entry

    def first_user_id_with_role(self, role: str) -> int | None:
        self._check("first_user_id_with_role")
        self.role_lookups += 1
        ids = sorted(uid for uid, r in self.users if r == role)
        return ids[0] if ids else None

    def create_schedule_items(self, items: Sequence[ScheduleItem]) -> list[int]:
        self._check("create_schedule_items")
        ids = []
        for item in items:
            new_id = self._next_id(self.items)
            self.items[new_id] = replace(item, id=new_id)
            ids.append(new_id)
        return ids

    def create_imported_file(self, record: ImportedFile) -> ImportedFile:
        self._check("create_imported_file")
        created = record.with_identity(self._next_id(self.files), datetime.now(UTC))
        self.files[created.id] = created
        return created

    def link_schedule_items(self, item_ids: Sequence[int], imported_file_id: int) -> int:
        self._check("link_schedule_items")
        for item_id in item_ids:
            self.items[item_id] = replace(self.items[item_id], imported_file_id=imported_file_id)
        return len(item_ids)

    def get_imported_file(self, imported_file_id: int) -> ImportedFile | None:
        self._check("get_imported_file")
        return self.files.get(imported_file_id)

    def list_imported_files(
        self, uploaded_by: int | None = None, import_type: ImportType | None = None
    ) -> list[ImportedFile]:
        self._check("list_imported_files")
        found = [
            f
            for f in self.files.values()
            if (uploaded_by is None or f.uploaded_by == uploaded_by)
            and (import_type is None or f.import_type is import_type)
        ]
        return sorted(found, key=lambda f: f.id, reverse=True)

    def count_schedule_items(self, imported_file_id: int) -> int:
        self._check("count_schedule_items")
        return sum(1 for i in self.items.values() if i.imported_file_id == imported_file_id)

    def delete_schedule_items(self, imported_file_id: int) -> int:
        self._check("delete_schedule_items")
        doomed = [k for k, i in self.items.items() if i.imported_file_id == imported_file_id]
        for k in doomed:
            del self.items[k]
        return len(doomed)

    def delete_imported_file(self, imported_file_id: int) -> bool:
        self._check("delete_imported_file")
        return self.files.pop(imported_file_id, None) is not None


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_logging()


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore(users=[(1, "admin"), (5, "teacher"), (9, "teacher")])


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """upload_directory: ./uploads
error_log_directory: ./logs
fallback_encoding: utf-8
min_encoding_confidence: 0.4
subjects:
  fallback_teacher_id: 3
  teacher_role: teacher
  palette: ["#111111", "#222222"]
header_aliases:
  room: [Room, Кабинет, Ауд.]
header_keywords:
  teacher: [lecturer]
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: schooldb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_csv_bytes() -> bytes:
    return (
        "Subject,Day,Start Time,End Time,Room\n"
        "Math,Monday,09:00,10:30,305\n"
        ",Tuesday,11:00,12:30,412"
    ).encode("utf-8")


@pytest.fixture()
def make_store():
    """Factory for stores seeded with subjects/users."""
    return InMemoryStore
