"""Journal service - saves daily entries and runs correlation analysis."""

from datetime import datetime, timezone

from loguru import logger

from server.analysis import (
    CATEGORIES,
    DEFAULT_CATEGORY,
    DEFAULT_PAIN_LEVEL,
    AnalysisResult,
    CorrelationAnalyzer,
    JournalEntry,
)
from server.datastore.entry_store import EntryStore
from server.services.errors import NoEntriesError


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JournalService:
    def __init__(
        self, store: EntryStore, analyzer: CorrelationAnalyzer | None = None
    ):
        self.store = store
        self.analyzer = analyzer or CorrelationAnalyzer()

    async def save_entry(
        self,
        email: str,
        date: str,
        diet: str,
        pain: str,
        exercise: str,
        notes: str | None = None,
    ) -> JournalEntry:
        """Write the entry for a date, replacing any earlier one."""
        entry = JournalEntry(
            date=date,
            diet=diet,
            pain=pain,
            exercise=exercise,
            notes=notes,
            timestamp=utc_timestamp(),
        )
        await self.store.put(email, date, entry)
        logger.info(f"Inputs saved for {email} on {date}")
        return entry

    async def load_entries(self, email: str) -> list[JournalEntry]:
        return await self.store.load_all(email)

    async def analyze(
        self,
        email: str,
        pain_level: str | None = None,
        category: str | None = None,
    ) -> AnalysisResult:
        """Correlate a pain level with a category over the user's history.

        Raises:
            NoEntriesError: the user has no entries at all
        """
        pain_level = DEFAULT_PAIN_LEVEL if pain_level is None else pain_level
        category = DEFAULT_CATEGORY if category is None else category
        if category not in CATEGORIES:
            logger.warning(f"Analyzing non-standard category '{category}' for {email}")

        entries = await self.load_entries(email)
        if not entries:
            raise NoEntriesError(email)

        return self.analyzer.analyze(entries, pain_level, category)
