"""
Correlation analysis between pain levels and journal entry words.
"""

from server.analysis.types import AnalysisResult, JournalEntry
from server.analysis.correlation import CorrelationAnalyzer
from server.analysis.config import (
    CATEGORIES,
    DEFAULT_CATEGORY,
    DEFAULT_PAIN_LEVEL,
    STOPWORDS,
    tokenize,
)

__all__ = [
    # Types
    "AnalysisResult",
    "JournalEntry",
    # Analyzer
    "CorrelationAnalyzer",
    # Config
    "CATEGORIES",
    "DEFAULT_CATEGORY",
    "DEFAULT_PAIN_LEVEL",
    "STOPWORDS",
    "tokenize",
]
