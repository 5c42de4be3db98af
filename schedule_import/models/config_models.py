from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

"""Config dataclasses for the schedule import pipeline.

These are the typed, immutable settings that the YAML loader in
``schedule_import/config/loader.py`` produces. Every component receives the
piece it needs by injection; nothing reads a module-level mutable table.
"""

__all__ = [
    "CANONICAL_FIELDS",
    "DEFAULT_PALETTE",
    "HeaderAliasTable",
    "SubjectSettings",
    "DatabaseConfig",
    "ImportSettings",
]

# Canonical semantic fields, in resolution order
CANONICAL_FIELDS: tuple[str, ...] = (
    "subject",
    "subject_id",
    "day",
    "start_time",
    "end_time",
    "room",
    "teacher",
)

DEFAULT_PALETTE: tuple[str, ...] = (
    "#4285F4",
    "#34A853",
    "#FBBC05",
    "#EA4335",
    "#8E44AD",
    "#2ECC71",
    "#E74C3C",
    "#3498DB",
    "#F39C12",
    "#1ABC9C",
)

_DEFAULT_ALIASES: dict[str, tuple[str, ...]] = {
    "subject": ("Subject", "Предмет", "subjectName"),
    "subject_id": ("subjectId", "Subject ID", "ID предмета"),
    "day": ("Day", "День", "День недели", "dayOfWeek"),
    "start_time": ("Start Time", "Время начала", "startTime"),
    "end_time": ("End Time", "Время конца", "Время окончания", "endTime"),
    "room": ("Room", "Кабинет", "roomNumber"),
    "teacher": ("Teacher", "Преподаватель", "teacherName"),
}

# Substring fallbacks, matched against casefolded header labels
_DEFAULT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "subject": ("subject", "предмет", "дисциплина"),
    "subject_id": (),
    "day": ("day", "день", "дата"),
    "start_time": ("start", "начало", "начала"),
    "end_time": ("end", "конец", "конца", "окончан", "завершение"),
    "room": ("room", "кабинет", "аудитория", "класс"),
    "teacher": ("teacher", "преподаватель", "учитель", "педагог"),
}

# Recognized but unmapped columns (logged only)
_DEFAULT_INFORMATIONAL: tuple[str, ...] = ("Курс", "Специальность", "Группа")


def _freeze(table: Mapping[str, Sequence[str]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({k: tuple(v) for k, v in table.items()})


@dataclass(frozen=True, eq=False)
class HeaderAliasTable:
    """Bilingual header vocabulary used by the header resolver.

    ``aliases`` holds exact header labels per canonical field; ``keywords``
    holds lowercase substrings tried when no exact alias is present.
    """
    aliases: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: _freeze(_DEFAULT_ALIASES))
    keywords: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: _freeze(_DEFAULT_KEYWORDS))
    informational: tuple[str, ...] = _DEFAULT_INFORMATIONAL

    def aliases_for(self, field_name: str) -> tuple[str, ...]:
        return self.aliases.get(field_name, ())

    def keywords_for(self, field_name: str) -> tuple[str, ...]:
        return self.keywords.get(field_name, ())

    def with_overrides(
        self,
        aliases: Mapping[str, Sequence[str]] | None = None,
        keywords: Mapping[str, Sequence[str]] | None = None,
    ) -> HeaderAliasTable:
        """Return a new table where the given fields replace the defaults."""
        merged_aliases = dict(self.aliases)
        merged_aliases.update({k: tuple(v) for k, v in (aliases or {}).items()})
        merged_keywords = dict(self.keywords)
        merged_keywords.update({k: tuple(s.casefold() for s in v) for k, v in (keywords or {}).items()})
        return HeaderAliasTable(
            aliases=_freeze(merged_aliases),
            keywords=_freeze(merged_keywords),
            informational=self.informational,
        )


@dataclass(frozen=True)
class SubjectSettings:
    """How catalog entries discovered during an import are created."""
    default_description: str = "Автоматически созданный предмет из импорта расписания"
    fallback_teacher_id: int = 2  # used when no user holds the teacher role
    teacher_role: str = "teacher"
    palette: tuple[str, ...] = DEFAULT_PALETTE


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportSettings:
    """Root configuration object for the import pipeline."""
    upload_directory: str = "./uploads"
    error_log_directory: str = "./logs"
    fallback_encoding: str = "utf-8"
    min_encoding_confidence: float = 0.0
    subjects: SubjectSettings = field(default_factory=SubjectSettings)
    headers: HeaderAliasTable = field(default_factory=HeaderAliasTable)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
