"""Tests for the file and database journal entry stores."""

import json
from pathlib import Path

import pytest

from server.analysis import JournalEntry
from server.datastore.entry_store import (
    DatabaseEntryStore,
    EntryStore,
    FileEntryStore,
    create_entry_store,
)
from server.services.errors import InvalidKeyError


def entry(date: str, pain: str = "severe", **fields) -> JournalEntry:
    values = {
        "diet": "rice",
        "exercise": "walk",
        "timestamp": "2025-01-01T00:00:00.000Z",
    }
    values.update(fields)
    return JournalEntry(date=date, pain=pain, **values)


@pytest.fixture(params=["file", "database"])
async def store(request, tmp_path: Path, session_factory) -> EntryStore:
    if request.param == "file":
        return FileEntryStore(tmp_path / "data")
    return DatabaseEntryStore(session_factory)


class TestKeyedStore:
    """
    *For any* backend, entries are keyed by (user, date) and a second put
    for the same date overwrites the first.
    """

    async def test_put_get(self, store: EntryStore):
        await store.put(
            "a@example.com", "2025-01-01", entry("2025-01-01", notes="tired")
        )

        loaded = await store.get("a@example.com", "2025-01-01")

        assert loaded is not None
        assert loaded.date == "2025-01-01"
        assert loaded.pain == "severe"
        assert loaded.notes == "tired"

    async def test_get_missing(self, store: EntryStore):
        assert await store.get("a@example.com", "2025-01-01") is None

    async def test_put_overwrites(self, store: EntryStore):
        await store.put("a@example.com", "2025-01-01", entry("2025-01-01", diet="rice"))
        await store.put("a@example.com", "2025-01-01", entry("2025-01-01", diet="soup"))

        loaded = await store.get("a@example.com", "2025-01-01")

        assert loaded.diet == "soup"
        assert await store.list_dates("a@example.com") == ["2025-01-01"]

    async def test_list_dates_sorted_and_per_user(self, store: EntryStore):
        await store.put("a@example.com", "2025-01-03", entry("2025-01-03"))
        await store.put("a@example.com", "2025-01-01", entry("2025-01-01"))
        await store.put("b@example.com", "2025-01-02", entry("2025-01-02"))

        assert await store.list_dates("a@example.com") == ["2025-01-01", "2025-01-03"]
        assert await store.list_dates("nobody@example.com") == []

    async def test_load_all(self, store: EntryStore):
        await store.put("a@example.com", "2025-01-02", entry("2025-01-02", pain="mild"))
        await store.put("a@example.com", "2025-01-01", entry("2025-01-01"))

        entries = await store.load_all("a@example.com")

        assert [e.date for e in entries] == ["2025-01-01", "2025-01-02"]
        assert [e.pain for e in entries] == ["severe", "mild"]


class TestFileLayout:
    async def test_writes_pretty_json_per_date(self, tmp_path: Path):
        store = FileEntryStore(tmp_path)
        await store.put("a@example.com", "2025-01-01", entry("2025-01-01"))

        path = tmp_path / "a@example.com" / "2025-01-01" / "inputs.json"
        text = path.read_text()

        assert json.loads(text) == {
            "diet": "rice",
            "pain": "severe",
            "exercise": "walk",
            "timestamp": "2025-01-01T00:00:00.000Z",
        }
        assert '\n  "diet": "rice"' in text

    async def test_skips_malformed_records(self, tmp_path: Path):
        store = FileEntryStore(tmp_path)
        await store.put("a@example.com", "2025-01-01", entry("2025-01-01"))
        broken = tmp_path / "a@example.com" / "2025-01-02"
        broken.mkdir()
        (broken / "inputs.json").write_text("{not json")
        (tmp_path / "a@example.com" / "2025-01-03").mkdir()

        entries = await store.load_all("a@example.com")

        assert [e.date for e in entries] == ["2025-01-01"]

    async def test_directory_date_wins_over_stored_date(self, tmp_path: Path):
        day = tmp_path / "a@example.com" / "2025-01-05"
        day.mkdir(parents=True)
        (day / "inputs.json").write_text(json.dumps({"pain": "severe", "date": "x"}))

        loaded = await FileEntryStore(tmp_path).get("a@example.com", "2025-01-05")

        assert loaded.date == "2025-01-05"

    @pytest.mark.parametrize(
        "user_id,date",
        [
            ("../escape", "2025-01-01"),
            ("a@example.com", ".."),
            ("a/b", "2025-01-01"),
            ("", "2025-01-01"),
            ("a@example.com", "2025\\01"),
        ],
    )
    async def test_rejects_unsafe_keys(self, tmp_path: Path, user_id: str, date: str):
        store = FileEntryStore(tmp_path)

        with pytest.raises(InvalidKeyError):
            await store.put(user_id, date, entry("2025-01-01"))


class TestFactory:
    def test_file_backend(self, tmp_path: Path):
        assert isinstance(create_entry_store("file", str(tmp_path)), FileEntryStore)

    def test_database_backend_needs_sessions(self, tmp_path: Path):
        with pytest.raises(ValueError):
            create_entry_store("database", str(tmp_path))

    def test_unknown_backend(self, tmp_path: Path):
        with pytest.raises(ValueError, match="Unknown entry store backend"):
            create_entry_store("redis", str(tmp_path))
