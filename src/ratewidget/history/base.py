"""History store interface with the shared retention and failure policy.

Backends only implement raw ``_read``/``_write``. Everything the callers rely
on lives here:

- ``load()`` never raises; unreadable or malformed state is logged and
  treated as an empty history.
- ``save()`` never raises; failures are logged, counted and remembered so
  operators can see them on ``/status``.
- ``append()`` is a read-modify-write guarded by an asyncio.Lock, so
  overlapping requests within one process no longer lose each other's
  observations.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from ratewidget.exceptions import HistoryError
from ratewidget.logging import get_logger
from ratewidget.models import History, Observation, to_decimal, utc_now

logger = get_logger(__name__)

DEFAULT_RETENTION_DAYS = 30


def prune_history(history: History, cutoff: datetime) -> History:
    """Keep only observations strictly newer than ``cutoff``, preserving order."""
    return tuple(obs for obs in history if obs.date > cutoff)


class HistoryStore(ABC):
    """Persisted, retention-bounded sequence of rate observations.

    Args:
        retention_days: Observations older than this many days are dropped
            on every append.
    """

    backend: str = "abstract"

    def __init__(self, retention_days: int = DEFAULT_RETENTION_DAYS) -> None:
        if retention_days < 1:
            raise ValueError(f"retention_days must be positive, got {retention_days}")
        self._retention = timedelta(days=retention_days)
        self._lock = asyncio.Lock()
        self.persist_failures = 0
        self.last_persist_error: str | None = None

    @property
    def retention_days(self) -> int:
        return self._retention.days

    # ──────────────────────────────────────────────
    # Backend hooks
    # ──────────────────────────────────────────────

    @abstractmethod
    async def _read(self) -> History:
        """Return the persisted history.

        Raises:
            OSError: On I/O failure.
            HistoryError: When stored content cannot be decoded.
        """

    @abstractmethod
    async def _write(self, history: History) -> None:
        """Replace the persisted history in full.

        Raises:
            OSError: On I/O failure.
            HistoryError: On backend-specific write failure.
        """

    async def connect(self) -> None:
        """Acquire backend resources. No-op unless the backend needs a connection."""

    async def close(self) -> None:
        """Release backend resources."""

    # ──────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────

    async def load(self) -> History:
        """Return the persisted history, or an empty one if it cannot be read."""
        try:
            return await self._read()
        except (OSError, HistoryError) as e:
            logger.warning("history_load_failed", backend=self.backend, error=str(e))
            return ()

    async def save(self, history: History) -> None:
        """Overwrite the persisted history. Failures are recorded, not raised."""
        try:
            await self._write(history)
        except (OSError, HistoryError) as e:
            self.persist_failures += 1
            self.last_persist_error = str(e)
            logger.warning(
                "history_save_failed",
                backend=self.backend,
                error=str(e),
                failures=self.persist_failures,
            )

    async def append(
        self, rate: Decimal | float | int | str, now: datetime | None = None
    ) -> History:
        """Record ``rate`` at ``now``, prune beyond retention, persist, and return.

        Not idempotent: two calls with the same rate produce two entries.
        The returned history is what was *meant* to be saved, even when the
        save itself failed.
        """
        stamp = now if now is not None else utc_now()
        observation = Observation(date=stamp, rate=to_decimal(rate))

        async with self._lock:
            history = await self.load()
            pruned = prune_history((*history, observation), stamp - self._retention)
            await self.save(pruned)

        dropped = len(history) + 1 - len(pruned)
        logger.debug(
            "history_appended",
            rate=str(observation.rate),
            size=len(pruned),
            pruned=dropped,
        )
        return pruned

    async def status(self) -> dict[str, Any]:
        """Health summary for operators."""
        history = await self.load()
        return {
            "backend": self.backend,
            "retention_days": self.retention_days,
            "observations": len(history),
            "persist_failures": self.persist_failures,
            "last_persist_error": self.last_persist_error,
        }

    async def __aenter__(self) -> "HistoryStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
