from __future__ import annotations

import logging

from ..db.store import ScheduleStore
from ..models.config_models import SubjectSettings
from ..models.records import NewSubject, SubjectCatalogEntry

"""Subject-catalog resolution for a single import.

The catalog is fetched once when the resolver is created and kept as a local
snapshot. Names are matched case-insensitively; an unknown name creates a new
catalog entry, which is appended to the snapshot at once so that later rows of
the same import reuse it.

Two imports running at the same time may both create the same new subject.
No locking is attempted; the unique index on lower(name) makes the loser fail
its transaction.
"""

__all__ = [
    "SubjectResolver",
]

logger = logging.getLogger(__name__)

SHORT_NAME_LENGTH = 10


class SubjectResolver:
    """Resolve subject names to catalog ids, creating entries on first sight.

    One instance per import call; never shared across imports.
    """

    def __init__(self, store: ScheduleStore, settings: SubjectSettings | None = None) -> None:
        self._store = store
        self._settings = settings or SubjectSettings()
        self._snapshot: dict[str, SubjectCatalogEntry] = {}
        for entry in store.list_subjects():
            self._snapshot.setdefault(entry.name.casefold(), entry)
        self._default_teacher_id: int | None = None
        self.created: list[SubjectCatalogEntry] = []
        logger.info("Existing subjects: %d", len(self._snapshot))

    @property
    def default_teacher_id(self) -> int:
        """First user holding the teacher role, else the configured fallback (looked up once)."""
        if self._default_teacher_id is None:
            found = self._store.first_user_id_with_role(self._settings.teacher_role)
            self._default_teacher_id = found if found is not None else self._settings.fallback_teacher_id
        return self._default_teacher_id

    def _next_color(self) -> str:
        palette = self._settings.palette
        return palette[len(self.created) % len(palette)]

    def resolve(self, name: str) -> int:
        """Return the catalog id for ``name``, creating the subject if unknown."""
        clean = name.strip()
        key = clean.casefold()
        existing = self._snapshot.get(key)
        if existing is not None:
            logger.debug('Found existing subject "%s" with ID: %s', existing.name, existing.id)
            return existing.id

        logger.info('Creating new subject with name: "%s"', clean)
        entry = self._store.create_subject(
            NewSubject(
                name=clean,
                short_name=clean[:SHORT_NAME_LENGTH],
                description=self._settings.default_description,
                teacher_id=self.default_teacher_id,
                color=self._next_color(),
            )
        )
        self._snapshot[key] = entry
        self.created.append(entry)
        return entry.id
