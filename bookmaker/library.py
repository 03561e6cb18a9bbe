"""
Reading log facade: user actions followed by an achievement pass.

Each action updates the stores, bumps the matching action counter, then runs
one evaluation pass with a ``LastEvent`` describing what just happened, so
single-book rules see the book the user touched.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from bookmaker.achievements.dates import local_today
from bookmaker.achievements.evaluator import AchievementEvaluator
from bookmaker.errors import BookNotFoundError
from bookmaker.models.achievement import AchievementDefinition
from bookmaker.models.activity import CounterName, EventType, LastEvent
from bookmaker.models.book import Book
from bookmaker.models.stats import ReadingStats
from bookmaker.stats import compute_reading_stats
from bookmaker.storage.book_store import BookStore
from bookmaker.storage.counter_store import CounterStore

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Outcome of one user action."""
    unlocked: list[AchievementDefinition]
    book: Book | None = None
    books: list[Book] = field(default_factory=list)


class ReadingLog:
    def __init__(
        self,
        books: BookStore,
        counters: CounterStore,
        evaluator: AchievementEvaluator,
    ) -> None:
        self._books = books
        self._counters = counters
        self._evaluator = evaluator

    def add_book(self, book: Book, now: datetime | None = None) -> ActionResult:
        stored = self._books.create(book)
        if stored.rating is not None:
            self._counters.increment(CounterName.RATE)
        event = LastEvent(type=EventType.SAVE, book=stored)
        return ActionResult(unlocked=self._evaluate(event, now), book=stored)

    def edit_book(
        self, book_id: str, patch: dict[str, Any], now: datetime | None = None
    ) -> ActionResult:
        before = self._books.get(book_id)
        if before is None:
            raise BookNotFoundError(book_id)
        updated = self._books.update(book_id, patch)
        event = LastEvent(type=EventType.EDIT, book=updated)
        self._counters.record(event)
        if updated.rating is not None and updated.rating != before.rating:
            self._counters.increment(CounterName.RATE)
        return ActionResult(unlocked=self._evaluate(event, now), book=updated)

    def delete_book(self, book_id: str, now: datetime | None = None) -> ActionResult:
        book = self._books.get(book_id)
        if book is None or not self._books.delete(book_id):
            raise BookNotFoundError(book_id)
        event = LastEvent(type=EventType.DELETE, book=book)
        self._counters.record(event)
        return ActionResult(unlocked=self._evaluate(event, now), book=book)

    def search(self, query: str, now: datetime | None = None) -> ActionResult:
        results = self._books.search(query)
        event = LastEvent(type=EventType.SEARCH)
        self._counters.record(event)
        return ActionResult(unlocked=self._evaluate(event, now), books=results)

    def record_action(self, event_type: str, now: datetime | None = None) -> ActionResult:
        """Count an action with no book attached (backup, restore, settings)."""
        event = LastEvent(type=event_type)
        self._counters.record(event)
        return ActionResult(unlocked=self._evaluate(event, now))

    def stats(self, now: datetime | None = None) -> ReadingStats:
        tz = self._evaluator.tz
        return compute_reading_stats(self._books.list_all(), local_today(now, tz), tz)

    def _evaluate(self, event: LastEvent, now: datetime | None) -> list[AchievementDefinition]:
        unlocked = self._evaluator.evaluate_and_unlock(
            self._books.list_all(),
            self._counters.load(),
            last_event=event,
            now=now,
        )
        if unlocked:
            logger.info(
                "%s unlocked %d achievement(s): %s",
                event.type,
                len(unlocked),
                ", ".join(d.id for d in unlocked),
            )
        return unlocked
