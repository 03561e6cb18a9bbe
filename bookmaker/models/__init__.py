"""Data models for the Bookmaker reading log."""

from bookmaker.models.achievement import (
    AchievementDefinition,
    Rule,
    RuleType,
    UnlockEntry,
)
from bookmaker.models.activity import CounterName, Counters, EventType, LastEvent
from bookmaker.models.book import Book
from bookmaker.models.stats import RatingExtremes, ReadingStats, StreakSummary

__all__ = [
    "AchievementDefinition",
    "Book",
    "CounterName",
    "Counters",
    "EventType",
    "LastEvent",
    "RatingExtremes",
    "ReadingStats",
    "Rule",
    "RuleType",
    "StreakSummary",
    "UnlockEntry",
]
