"""
Correlation analyzer - relates a pain level to the words used in a category.

For the entries whose pain field contains the requested level, counts the
words of the chosen category across all of them and ranks the top words.
"""

from collections import Counter
from typing import Iterable

from loguru import logger

from server.analysis.config import STOPWORDS, tokenize
from server.analysis.types import AnalysisResult, JournalEntry


class CorrelationAnalyzer:
    """
    Word-frequency correlation between a pain level and an entry category.
    """

    MIN_MATCHING_ENTRIES = 2
    MIN_WORD_LENGTH = 3
    TOP_WORDS = 5

    @staticmethod
    def _format_correlations(ranked: list[tuple[str, int]]) -> str:
        return ", ".join(f"{word} ({count})" for word, count in ranked)

    def match_entries(
        self, entries: Iterable[JournalEntry], pain_level: str
    ) -> list[JournalEntry]:
        """Entries whose pain text contains pain_level, case-insensitively."""
        needle = pain_level.lower()
        return [e for e in entries if needle in (e.pain or "").lower()]

    def count_words(
        self, entries: Iterable[JournalEntry], category: str
    ) -> Counter[str]:
        counts: Counter[str] = Counter()
        for entry in entries:
            counts.update(tokenize(entry.field_text(category), self.MIN_WORD_LENGTH))
        return counts

    def rank_words(self, counts: Counter[str]) -> list[tuple[str, int]]:
        """
        Drop stopwords and return the top words by count.

        Counter keeps first-seen order and sorted() is stable, so equal
        counts stay in the order the words first appeared.
        """
        candidates = [(w, c) for w, c in counts.items() if w not in STOPWORDS]
        ranked = sorted(candidates, key=lambda item: item[1], reverse=True)
        return ranked[: self.TOP_WORDS]

    def analyze(
        self, entries: Iterable[JournalEntry], pain_level: str, category: str
    ) -> AnalysisResult:
        """
        Analyze a user's entries for words that co-occur with a pain level.

        Args:
            entries: All entries for one user, in store order
            pain_level: Substring matched against each entry's pain field
            category: Name of the field whose words are counted

        Returns:
            AnalysisResult; with fewer than MIN_MATCHING_ENTRIES matches only
            the message is set
        """
        matching = self.match_entries(entries, pain_level)

        if len(matching) < self.MIN_MATCHING_ENTRIES:
            logger.debug(
                f"Correlation: {len(matching)} entries match pain '{pain_level}'"
            )
            return AnalysisResult(
                message=(
                    f"Not enough data for pain '{pain_level}' "
                    f"(found {len(matching)} entries)."
                )
            )

        ranked = self.rank_words(self.count_words(matching, category))

        logger.info(
            f"Correlation: pain '{pain_level}' vs {category}, "
            f"{len(matching)} dates, {len(ranked)} words"
        )
        return AnalysisResult(
            pain_level=pain_level,
            category=category,
            matching_dates=[e.date for e in matching],
            correlations=self._format_correlations(ranked),
            message=(
                f"Found correlations for pain '{pain_level}' "
                f"with {category} on {len(matching)} dates."
            ),
        )
