"""Rate history persistence.

Provides the HistoryStore interface, its JSON file and SQLite backends, and
a factory that picks one from settings.
"""

from ratewidget.config import HistorySettings
from ratewidget.history.base import HistoryStore, prune_history
from ratewidget.history.json_store import JsonFileHistoryStore
from ratewidget.history.sqlite_store import SqliteHistoryStore


def build_history_store(settings: HistorySettings) -> HistoryStore:
    """Create the configured backend. SQLite stores still need ``connect()``."""
    if settings.backend == "sqlite":
        return SqliteHistoryStore(settings.db_path, settings.retention_days)
    return JsonFileHistoryStore(settings.file_path, settings.retention_days)


__all__ = [
    "HistoryStore",
    "JsonFileHistoryStore",
    "SqliteHistoryStore",
    "build_history_store",
    "prune_history",
]
