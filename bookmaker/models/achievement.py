"""Achievement definition, rule and unlock-state models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class RuleType(str, Enum):
    """Closed set of rule kinds the engine knows how to evaluate."""

    # Volume
    TOTAL_READS = "TOTAL_READS"
    WEEK_READS = "WEEK_READS"
    MONTH_READS = "MONTH_READS"
    QUARTER_READS = "QUARTER_READS"
    HALF_YEAR_READS = "HALF_YEAR_READS"
    YEAR_READS = "YEAR_READS"
    MONTH_READS_BY_MONTH = "MONTH_READS_BY_MONTH"
    # Streaks
    STREAK_DAYS = "STREAK_DAYS"
    MONTH_STREAK = "MONTH_STREAK"
    # Single book text / calendar / speed / rating
    REVIEW_CHARS = "REVIEW_CHARS"
    REVIEW_NEWLINES = "REVIEW_NEWLINES"
    REVIEW_CONTAINS = "REVIEW_CONTAINS"
    ONE_LINER_PATTERN = "ONE_LINER_PATTERN"
    LONG_AUTHOR_NAME = "LONG_AUTHOR_NAME"
    RATING_SET = "RATING_SET"
    DATE_PATTERN = "DATE_PATTERN"
    READ_SPEED = "READ_SPEED"
    SAME_DAY_FINISHES = "SAME_DAY_FINISHES"
    # Rereads
    REREAD_COUNT = "REREAD_COUNT"
    REREAD_COMPARE = "REREAD_COMPARE"
    REREAD_FROM_FIRST_DAYS = "REREAD_FROM_FIRST_DAYS"
    # Authors
    UNIQUE_AUTHORS = "UNIQUE_AUTHORS"
    SAME_AUTHOR_STREAK = "SAME_AUTHOR_STREAK"
    LAST_N_AUTHORS_ALL_DIFFERENT = "LAST_N_AUTHORS_ALL_DIFFERENT"
    LAST_5_ALL_DIFFERENT = "LAST_5_ALL_DIFFERENT"
    MONTH_AUTHOR_3_SAME = "MONTH_AUTHOR_3_SAME"
    SAME_AUTHOR_SAME_DAY = "SAME_AUTHOR_SAME_DAY"
    MONTH_ALL_FIRST_AUTHORS = "MONTH_ALL_FIRST_AUTHORS"
    # Current month composites
    MONTH_DISTINCT_DAYS = "MONTH_DISTINCT_DAYS"
    MONTH_EACH_WEEK_HAS_READ = "MONTH_EACH_WEEK_HAS_READ"
    MONTH_RATING_BOTH = "MONTH_RATING_BOTH"
    # Action counters
    USER_ACTION = "USER_ACTION"
    EDIT_SAME_BOOK_GTE = "EDIT_SAME_BOOK_GTE"

    @classmethod
    def parse(cls, value: str) -> RuleType | None:
        """Return the member for ``value`` or None for an unknown tag."""
        try:
            return cls(value)
        except ValueError:
            return None


_TRUE_STRINGS = {"1", "true", "yes", "on"}


class Rule(BaseModel):
    """A rule's type tag plus its type-specific parameters.

    Parameters that are present but malformed (``"gte": "many"``) are read as
    absent so the predicate fails closed instead of the catalog failing to
    load. Keys the engine does not know are kept as extras.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    type: str = ""

    # Numeric bounds and selectors
    gte: int | None = None
    lte: int | None = None
    eq: int | None = None
    n: int | None = None
    month: int | None = None
    year: int | None = None
    lte_days: int | None = None
    gte_days: int | None = None
    month_equals: int | None = None

    # Text
    field: str | None = None
    cmp: str | None = None
    any_of: list[str] = Field(default_factory=list)
    event: str | None = None
    scope: str = "event"

    # Calendar shape
    weekday: list[str] | None = None
    first_of_month: bool = False
    last_of_month: bool = False
    weekend: bool = False

    # Reading speed
    same_day: bool = False
    weekend_cross: bool = False

    # One-liner shape
    empty: bool = False
    min_len: int | None = None
    max_len: int | None = None
    exact_len: int | None = None
    no_period: bool = False
    has_quotes: bool = False
    has_question: bool = False
    has_exclamation: bool = False
    has_ellipsis: bool = False
    has_digit: bool = False
    has_ascii: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def _tag(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @field_validator(
        "gte", "lte", "eq", "n", "month", "year", "lte_days", "gte_days",
        "month_equals", "min_len", "max_len", "exact_len",
        mode="before",
    )
    @classmethod
    def _lenient_int(cls, value: Any) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else None
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return None
        return None

    @field_validator(
        "first_of_month", "last_of_month", "weekend", "same_day", "weekend_cross",
        "empty", "no_period", "has_quotes", "has_question", "has_exclamation",
        "has_ellipsis", "has_digit", "has_ascii",
        mode="before",
    )
    @classmethod
    def _lenient_bool(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)

    @field_validator("field", "cmp", "event", mode="before")
    @classmethod
    def _optional_str(cls, value: Any) -> str | None:
        return value if isinstance(value, str) and value else None

    @field_validator("scope", mode="before")
    @classmethod
    def _scope(cls, value: Any) -> str:
        return value.strip().lower() if isinstance(value, str) else "event"

    @field_validator("any_of", mode="before")
    @classmethod
    def _word_list(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []
        return [w for w in value if isinstance(w, str) and w]

    @field_validator("weekday", mode="before")
    @classmethod
    def _weekdays(cls, value: Any) -> list[str] | None:
        # "sat" and ["sat", "sun"] are both accepted
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return None
        days = [d.strip().lower()[:3] for d in value if isinstance(d, str) and d.strip()]
        return days or None

    @property
    def kind(self) -> RuleType | None:
        return RuleType.parse(self.type)


class AchievementDefinition(BaseModel):
    """An externally authored achievement. Never mutated once loaded."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    rule: Rule = Field(default_factory=Rule)


class UnlockEntry(BaseModel):
    """Write-once record of an achievement being unlocked."""

    model_config = ConfigDict(frozen=True)

    id: str
    acquired_at: datetime
