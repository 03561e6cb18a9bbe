"""Reading statistics summary model."""

from pydantic import BaseModel, Field


class StreakSummary(BaseModel):
    current: int = 0  # consecutive days ending today
    max: int = 0


class RatingExtremes(BaseModel):
    has1: bool = False
    has5: bool = False


class ReadingStats(BaseModel):
    """Aggregated reading activity, recomputed from the book collection."""

    total_reads: int = 0
    by_day: dict[str, int] = Field(default_factory=dict)
    by_week: dict[str, int] = Field(default_factory=dict)
    by_month: dict[str, int] = Field(default_factory=dict)
    by_year: dict[str, int] = Field(default_factory=dict)
    by_author: dict[str, int] = Field(default_factory=dict)
    unique_authors: int = 0
    streak: StreakSummary = Field(default_factory=StreakSummary)
    last_five_authors: list[str] = Field(default_factory=list)
    month_rating_extremes: dict[str, RatingExtremes] = Field(default_factory=dict)
