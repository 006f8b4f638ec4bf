"""
Keyed journal entry store.

Entries are addressed by (user_id, date). Two backends:
- FileEntryStore: <root>/<user_id>/<date>/inputs.json
- DatabaseEntryStore: journal_entries table via SQLAlchemy
"""

import asyncio
import json
from abc import ABC, abstractmethod
from functools import partial
from pathlib import Path

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from server.analysis.types import JournalEntry
from server.datastore.repositories import JournalEntryRepository
from server.services.errors import InvalidKeyError, StoreError


class EntryStore(ABC):
    """
    Abstract keyed store for journal entries.

    Putting an entry for an existing (user_id, date) replaces it.
    """

    @property
    @abstractmethod
    def backend(self) -> str:
        """Backend name, for logs."""
        ...

    @abstractmethod
    async def get(self, user_id: str, date: str) -> JournalEntry | None:
        """Return the entry for a date, or None if there is none."""
        ...

    @abstractmethod
    async def put(self, user_id: str, date: str, entry: JournalEntry) -> None:
        """Store an entry, overwriting any entry for the same date."""
        ...

    @abstractmethod
    async def list_dates(self, user_id: str) -> list[str]:
        """Return the user's entry dates in ascending order."""
        ...

    async def load_all(self, user_id: str) -> list[JournalEntry]:
        """Load every readable entry for a user, skipping broken records."""
        entries: list[JournalEntry] = []
        for date in await self.list_dates(user_id):
            try:
                entry = await self.get(user_id, date)
            except StoreError as e:
                logger.error(f"Skipping unreadable entry {user_id}/{date}: {e}")
                continue
            if entry is not None:
                entries.append(entry)
        return entries


class FileEntryStore(EntryStore):
    """Directory-per-user, directory-per-date JSON files."""

    FILE_NAME = "inputs.json"

    def __init__(self, root: Path | str):
        self.root = Path(root)

    @property
    def backend(self) -> str:
        return "file"

    @staticmethod
    def _check_segment(segment: str) -> str:
        if (
            not segment
            or segment in (".", "..")
            or "/" in segment
            or "\\" in segment
            or "\x00" in segment
        ):
            raise InvalidKeyError(segment)
        return segment

    def _user_dir(self, user_id: str) -> Path:
        return self.root / self._check_segment(user_id)

    def _entry_path(self, user_id: str, date: str) -> Path:
        return self._user_dir(user_id) / self._check_segment(date) / self.FILE_NAME

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    def _read(self, path: Path, date: str) -> JournalEntry | None:
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return JournalEntry.model_validate({**data, "date": date})
        except (OSError, json.JSONDecodeError, TypeError, PydanticValidationError) as e:
            raise StoreError(
                f"Error reading {path}: {e}", service_id="entry_store"
            ) from e

    def _write(self, path: Path, record: dict) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(record, indent=2), encoding="utf-8")
        except OSError as e:
            raise StoreError(
                f"Error writing {path}: {e}", service_id="entry_store"
            ) from e

    def _dates(self, user_dir: Path) -> list[str]:
        if not user_dir.is_dir():
            return []
        try:
            return sorted(p.name for p in user_dir.iterdir() if p.is_dir())
        except OSError as e:
            raise StoreError(
                f"Error listing {user_dir}: {e}", service_id="entry_store"
            ) from e

    async def get(self, user_id: str, date: str) -> JournalEntry | None:
        return await self._run(self._read, self._entry_path(user_id, date), date)

    async def put(self, user_id: str, date: str, entry: JournalEntry) -> None:
        record = {k: v for k, v in entry.to_record().items() if v is not None}
        await self._run(self._write, self._entry_path(user_id, date), record)

    async def list_dates(self, user_id: str) -> list[str]:
        return await self._run(self._dates, self._user_dir(user_id))


class DatabaseEntryStore(EntryStore):
    """journal_entries table, one row per (user_id, date)."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    @property
    def backend(self) -> str:
        return "database"

    @staticmethod
    def _to_entry(row) -> JournalEntry:
        return JournalEntry(
            date=row.date,
            diet=row.diet,
            pain=row.pain,
            exercise=row.exercise,
            notes=row.notes,
            timestamp=row.timestamp,
        )

    async def get(self, user_id: str, date: str) -> JournalEntry | None:
        async with self.session_factory() as session:
            row = await JournalEntryRepository(session).get(user_id, date)
            return self._to_entry(row) if row else None

    async def put(self, user_id: str, date: str, entry: JournalEntry) -> None:
        async with self.session_factory() as session:
            await JournalEntryRepository(session).upsert(
                user_id, date, entry.to_record()
            )
            await session.commit()

    async def list_dates(self, user_id: str) -> list[str]:
        async with self.session_factory() as session:
            return await JournalEntryRepository(session).list_dates(user_id)

    async def load_all(self, user_id: str) -> list[JournalEntry]:
        async with self.session_factory() as session:
            rows = await JournalEntryRepository(session).list_all(user_id)
            return [self._to_entry(row) for row in rows]


def create_entry_store(backend: str, data_dir: str, session_factory=None) -> EntryStore:
    """Build the entry store named by backend ("file" or "database")."""
    if backend == "file":
        return FileEntryStore(data_dir)
    if backend == "database":
        if session_factory is None:
            raise ValueError("database entry store needs a session factory")
        return DatabaseEntryStore(session_factory)
    raise ValueError(f"Unknown entry store backend: {backend}")
