"""
Analysis configuration - stopwords, thresholds, and token patterns.
"""

import re


# Common words excluded from frequency ranking
STOPWORDS: frozenset[str] = frozenset(
    (
        "the",
        "and",
        "or",
        "but",
        "in",
        "on",
        "at",
        "to",
        "for",
        "of",
        "with",
        "by",
    )
)

# Entry fields offered for word-frequency analysis
CATEGORIES: tuple[str, ...] = ("diet", "exercise", "notes")

DEFAULT_PAIN_LEVEL = "severe"
DEFAULT_CATEGORY = "diet"

# Anything that is neither a word character nor whitespace is stripped
NON_WORD_PATTERN = re.compile(r"[^\w\s]")

WHITESPACE_PATTERN = re.compile(r"\s+")


def tokenize(text: str, min_length: int = 3) -> list[str]:
    """Lower-case, strip punctuation and split text into words of min_length+."""
    cleaned = NON_WORD_PATTERN.sub("", text.lower())
    return [w for w in WHITESPACE_PATTERN.split(cleaned) if len(w) >= min_length]
