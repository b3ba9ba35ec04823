"""Storage abstractions for Project Timer."""

from .json_store import JsonDataStore, StorageFailureError, dump_stores, parse_stores
from .models import (
    CommitData,
    DailyProductivity,
    DailyRecord,
    DataStores,
    ProjectProductivity,
    ProjectTime,
    Productivity,
    TimeEntry,
    WorkSession,
    date_key,
    from_epoch_ms,
    to_epoch_ms,
)

__all__ = [
    "CommitData",
    "DailyProductivity",
    "DailyRecord",
    "DataStores",
    "JsonDataStore",
    "ProjectProductivity",
    "ProjectTime",
    "Productivity",
    "StorageFailureError",
    "TimeEntry",
    "WorkSession",
    "date_key",
    "dump_stores",
    "from_epoch_ms",
    "parse_stores",
    "to_epoch_ms",
]
