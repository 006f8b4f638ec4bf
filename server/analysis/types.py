"""
Analysis input and result types using Pydantic models.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JournalEntry(BaseModel):
    """One user's journal record for a single date."""

    # Stored records may carry extra fields; keep them addressable as categories
    model_config = ConfigDict(extra="allow")

    date: str
    diet: str | None = None
    pain: str | None = None
    exercise: str | None = None
    notes: str | None = None
    timestamp: str | None = None

    def field_text(self, name: str) -> str:
        """Return the text of a named field, or "" if missing or not text."""
        value = self.model_dump().get(name)
        return value if isinstance(value, str) else ""

    def to_record(self) -> dict[str, Any]:
        """Serialize without the date key, which lives in the store key."""
        return self.model_dump(exclude={"date"})


class AnalysisResult(BaseModel):
    """Word-frequency correlation between a pain level and a category."""

    model_config = ConfigDict(populate_by_name=True)

    pain_level: str | None = Field(default=None, alias="painLevel")
    category: str | None = None
    matching_dates: list[str] | None = Field(default=None, alias="matchingDates")
    correlations: str | None = None
    message: str

    @property
    def has_enough_data(self) -> bool:
        return self.matching_dates is not None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
