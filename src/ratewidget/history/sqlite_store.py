"""Async SQLite history backend.

Same semantics as the JSON file backend (full overwrite on save, retention
on append) but stored in one table, with rates kept as TEXT so Decimal
precision survives the round trip. Saves run in a single transaction, so a
crash mid-write leaves the previous history intact.
"""

import os
import sqlite3
from contextlib import suppress

import aiosqlite

from ratewidget.exceptions import HistoryError
from ratewidget.history.base import DEFAULT_RETENTION_DAYS, HistoryStore
from ratewidget.logging import get_logger
from ratewidget.models import History, Observation, format_timestamp

logger = get_logger(__name__)

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS observations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    rate TEXT NOT NULL
);
"""


class SqliteHistoryStore(HistoryStore):
    """History persisted to an SQLite database via aiosqlite.

    Usage:
        async with SqliteHistoryStore("data/rate_history.db") as store:
            history = await store.append(Decimal("299.51"))
    """

    backend = "sqlite"

    def __init__(self, db_path: str, retention_days: int = DEFAULT_RETENTION_DAYS) -> None:
        super().__init__(retention_days)
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises RuntimeError if not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> None:
        """Open the connection and create the schema.

        Creates the parent directory if it does not exist.
        """
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)
        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.executescript(_CREATE_TABLES_SQL)
        await self._connection.commit()
        logger.info("history_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("history_db_closed", db_path=self._db_path)

    async def _read(self) -> History:
        try:
            cursor = await self.db.execute("SELECT date, rate FROM observations ORDER BY id")
            rows = await cursor.fetchall()
        except sqlite3.Error as e:
            raise HistoryError(f"history query failed: {e}") from e
        return tuple(Observation.from_dict({"date": date, "rate": rate}) for date, rate in rows)

    async def _write(self, history: History) -> None:
        data = [(format_timestamp(obs.date), str(obs.rate)) for obs in history]
        try:
            await self.db.execute("DELETE FROM observations")
            await self.db.executemany(
                "INSERT INTO observations (date, rate) VALUES (?, ?)", data
            )
            await self.db.commit()
        except sqlite3.Error as e:
            with suppress(sqlite3.Error):
                await self.db.rollback()
            raise HistoryError(f"history write failed: {e}") from e
