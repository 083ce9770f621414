"""Flat-file JSON history backend.

The whole history is one JSON array of ``{"date", "rate"}`` objects,
rewritten in full on every save. There is no schema version: anything that
does not decode to that shape is treated as an empty history.
"""

import asyncio
import json
import os
from pathlib import Path

from ratewidget.exceptions import HistoryError
from ratewidget.history.base import DEFAULT_RETENTION_DAYS, HistoryStore
from ratewidget.models import History, Observation, history_to_list


def decode_history(raw: str) -> History:
    """Decode a persisted JSON blob.

    Raises:
        HistoryError: If the blob is not valid JSON, not an array, or any
            entry is not a valid observation.
    """
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as e:
        raise HistoryError(f"history file is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise HistoryError(f"history must be a JSON array, got {type(data).__name__}")
    return tuple(Observation.from_dict(entry) for entry in data)


def encode_history(history: History) -> str:
    return json.dumps(history_to_list(history), indent=2)


class JsonFileHistoryStore(HistoryStore):
    """History persisted to a single JSON file.

    File I/O runs in a worker thread so the event loop is not blocked.

    Usage:
        store = JsonFileHistoryStore("rate_history.json")
        history = await store.append(Decimal("299.51"))
    """

    backend = "json"

    def __init__(
        self, file_path: str | os.PathLike[str], retention_days: int = DEFAULT_RETENTION_DAYS
    ) -> None:
        super().__init__(retention_days)
        self._path = Path(file_path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_file(self) -> History:
        if not self._path.exists():
            return ()
        try:
            raw = self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise HistoryError(f"history file is not UTF-8: {e}") from e
        return decode_history(raw)

    def _write_file(self, history: History) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(encode_history(history), encoding="utf-8")

    async def _read(self) -> History:
        return await asyncio.to_thread(self._read_file)

    async def _write(self, history: History) -> None:
        await asyncio.to_thread(self._write_file, history)
