from .errors import StorageError
from .store import PgScheduleStore, ScheduleStore

__all__ = ["PgScheduleStore", "ScheduleStore", "StorageError"]
