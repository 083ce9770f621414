"""Tests for the JSON file history backend and the shared store policy."""

import asyncio
import json
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

from ratewidget.history import JsonFileHistoryStore, prune_history
from ratewidget.models import Observation, format_timestamp


def _write_entries(path: Path, entries: list[dict]) -> None:
    path.write_text(json.dumps(entries), encoding="utf-8")


class TestLoad:
    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, json_store: JsonFileHistoryStore) -> None:
        assert await json_store.load() == ()

    @pytest.mark.asyncio
    async def test_invalid_json_is_empty(
        self, json_store: JsonFileHistoryStore, history_path: Path
    ) -> None:
        history_path.write_text("{not json", encoding="utf-8")
        assert await json_store.load() == ()

    @pytest.mark.asyncio
    async def test_non_array_is_empty(
        self, json_store: JsonFileHistoryStore, history_path: Path
    ) -> None:
        history_path.write_text('{"date": "2026-10-19T00:00:00Z", "rate": 1}', encoding="utf-8")
        assert await json_store.load() == ()

    @pytest.mark.asyncio
    async def test_one_bad_entry_invalidates_blob(
        self, json_store: JsonFileHistoryStore, history_path: Path
    ) -> None:
        _write_entries(
            history_path,
            [
                {"date": "2026-10-18T10:00:00.000Z", "rate": 299.5},
                {"date": "2026-10-18T11:00:00.000Z"},
            ],
        )
        assert await json_store.load() == ()

    @pytest.mark.asyncio
    async def test_non_utf8_is_empty(
        self, json_store: JsonFileHistoryStore, history_path: Path
    ) -> None:
        history_path.write_bytes(b"\xff\xfe\x00garbage")
        assert await json_store.load() == ()

    @pytest.mark.asyncio
    async def test_deeply_nested_json_is_empty(
        self, json_store: JsonFileHistoryStore, history_path: Path
    ) -> None:
        history_path.write_text("[" * 100000 + "]" * 100000, encoding="utf-8")
        assert await json_store.load() == ()

    @pytest.mark.asyncio
    async def test_reads_existing_file(
        self, json_store: JsonFileHistoryStore, history_path: Path
    ) -> None:
        _write_entries(
            history_path,
            [
                {"date": "2026-10-18T10:00:00.000Z", "rate": 299.5},
                {"date": "2026-10-18T11:00:00.000Z", "rate": 299.75},
            ],
        )
        history = await json_store.load()
        assert [o.rate for o in history] == [Decimal("299.5"), Decimal("299.75")]


class TestAppend:
    @pytest.mark.asyncio
    async def test_append_persists_entry(
        self, json_store: JsonFileHistoryStore, history_path: Path, now: datetime
    ) -> None:
        history = await json_store.append(Decimal("299.5"), now=now)

        assert history == (Observation(date=now, rate=Decimal("299.5")),)
        on_disk = json.loads(history_path.read_text(encoding="utf-8"))
        assert on_disk == [{"date": format_timestamp(now), "rate": 299.5}]

    @pytest.mark.asyncio
    async def test_append_coerces_float_rate(
        self, json_store: JsonFileHistoryStore, now: datetime
    ) -> None:
        history = await json_store.append(299.51, now=now)
        assert history[-1].rate == Decimal("299.51")

    @pytest.mark.asyncio
    async def test_append_is_not_idempotent(
        self, json_store: JsonFileHistoryStore, now: datetime
    ) -> None:
        await json_store.append(Decimal("299.5"), now=now)
        history = await json_store.append(Decimal("299.5"), now=now)
        assert len(history) == 2
        assert len(await json_store.load()) == 2

    @pytest.mark.asyncio
    async def test_append_keeps_insertion_order(
        self, json_store: JsonFileHistoryStore, now: datetime
    ) -> None:
        for minutes, rate in ((0, "300"), (1, "301"), (2, "302")):
            await json_store.append(Decimal(rate), now=now + timedelta(minutes=minutes))
        history = await json_store.load()
        assert [o.rate for o in history] == [Decimal("300"), Decimal("301"), Decimal("302")]

    @pytest.mark.asyncio
    async def test_append_prunes_beyond_retention(
        self, json_store: JsonFileHistoryStore, history_path: Path, now: datetime
    ) -> None:
        _write_entries(
            history_path,
            [
                {"date": format_timestamp(now - timedelta(days=45)), "rate": 290},
                {"date": format_timestamp(now - timedelta(days=31)), "rate": 295},
                {"date": format_timestamp(now - timedelta(days=29)), "rate": 298},
            ],
        )
        history = await json_store.append(Decimal("299.5"), now=now)

        assert [o.rate for o in history] == [Decimal("298"), Decimal("299.5")]
        assert all(now - o.date <= timedelta(days=30) for o in history)
        assert await json_store.load() == history

    @pytest.mark.asyncio
    async def test_entry_exactly_at_horizon_is_dropped(
        self, json_store: JsonFileHistoryStore, history_path: Path, now: datetime
    ) -> None:
        _write_entries(
            history_path,
            [{"date": format_timestamp(now - timedelta(days=30)), "rate": 295}],
        )
        history = await json_store.append(Decimal("299.5"), now=now)
        assert len(history) == 1

    @pytest.mark.asyncio
    async def test_custom_retention(self, history_path: Path, now: datetime) -> None:
        store = JsonFileHistoryStore(history_path, retention_days=7)
        _write_entries(
            history_path,
            [{"date": format_timestamp(now - timedelta(days=8)), "rate": 295}],
        )
        history = await store.append(Decimal("299.5"), now=now)
        assert len(history) == 1
        assert store.retention_days == 7

    @pytest.mark.asyncio
    async def test_corrupt_file_is_replaced_on_append(
        self, json_store: JsonFileHistoryStore, history_path: Path, now: datetime
    ) -> None:
        history_path.write_text("[{]", encoding="utf-8")
        history = await json_store.append(Decimal("299.5"), now=now)
        assert len(history) == 1
        assert len(json.loads(history_path.read_text(encoding="utf-8"))) == 1

    @pytest.mark.asyncio
    async def test_concurrent_appends_are_not_lost(
        self, json_store: JsonFileHistoryStore, now: datetime
    ) -> None:
        await asyncio.gather(
            *(json_store.append(Decimal(300 + i), now=now) for i in range(10))
        )
        assert len(await json_store.load()) == 10

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path, now: datetime) -> None:
        path = tmp_path / "nested" / "dir" / "history.json"
        store = JsonFileHistoryStore(path)
        await store.append(Decimal("299.5"), now=now)
        assert path.exists()


class TestSaveFailures:
    @pytest.fixture
    def broken_store(self, tmp_path: Path) -> JsonFileHistoryStore:
        """Store whose parent 'directory' is a regular file, so writes fail."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        return JsonFileHistoryStore(blocker / "history.json")

    @pytest.mark.asyncio
    async def test_append_still_returns_history(
        self, broken_store: JsonFileHistoryStore, now: datetime
    ) -> None:
        history = await broken_store.append(Decimal("299.5"), now=now)
        assert history == (Observation(date=now, rate=Decimal("299.5")),)

    @pytest.mark.asyncio
    async def test_failure_is_counted(
        self, broken_store: JsonFileHistoryStore, now: datetime
    ) -> None:
        await broken_store.append(Decimal("299.5"), now=now)
        await broken_store.append(Decimal("299.6"), now=now)

        assert broken_store.persist_failures == 2
        assert broken_store.last_persist_error is not None

    @pytest.mark.asyncio
    async def test_status_reports_failures(
        self, broken_store: JsonFileHistoryStore, now: datetime
    ) -> None:
        await broken_store.append(Decimal("299.5"), now=now)
        status = await broken_store.status()

        assert status["backend"] == "json"
        assert status["observations"] == 0
        assert status["persist_failures"] == 1
        assert status["last_persist_error"]


class TestStatus:
    @pytest.mark.asyncio
    async def test_healthy_store(self, json_store: JsonFileHistoryStore, now: datetime) -> None:
        await json_store.append(Decimal("299.5"), now=now)
        assert await json_store.status() == {
            "backend": "json",
            "retention_days": 30,
            "observations": 1,
            "persist_failures": 0,
            "last_persist_error": None,
        }


class TestPruneHistory:
    def test_keeps_strictly_newer(self, now: datetime) -> None:
        old = Observation(date=now - timedelta(days=2), rate=Decimal("1"))
        edge = Observation(date=now - timedelta(days=1), rate=Decimal("2"))
        new = Observation(date=now, rate=Decimal("3"))
        assert prune_history((old, edge, new), now - timedelta(days=1)) == (new,)

    def test_rejects_non_positive_retention(self, history_path: Path) -> None:
        with pytest.raises(ValueError):
            JsonFileHistoryStore(history_path, retention_days=0)
