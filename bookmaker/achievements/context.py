"""
Evaluation context: secondary indexes derived from the book collection.

The context is rebuilt for every evaluation pass and never persisted. It is a
pure function of (books, today, reference zone), so every rule evaluated in
one pass sees the same "current" day, week and month.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta, tzinfo
from typing import NamedTuple

from bookmaker.achievements.dates import (
    day_key,
    is_next_day,
    is_next_month,
    longest_run,
    month_key,
    month_start,
    parse_day,
    week_key,
    year_key,
)
from bookmaker.models.book import Book


class FinishedBook(NamedTuple):
    book: Book
    day: date | None  # None when finished_at is set but unparseable


@dataclass(frozen=True)
class Streak:
    current: int = 0  # run of finish days ending today
    max: int = 0


def composite_key(author: str, bucket: str) -> str:
    return f"{author}|{bucket}"


@dataclass(frozen=True)
class EvaluationContext:
    today: date
    tz: tzinfo
    books: tuple[Book, ...]
    finished: tuple[FinishedBook, ...]
    by_title: dict[str, tuple[FinishedBook, ...]] = field(default_factory=dict)
    by_day: Counter[str] = field(default_factory=Counter)
    by_week: Counter[str] = field(default_factory=Counter)
    by_month: Counter[str] = field(default_factory=Counter)
    by_year: Counter[str] = field(default_factory=Counter)
    by_author: Counter[str] = field(default_factory=Counter)
    by_author_month: Counter[str] = field(default_factory=Counter)
    by_author_day: Counter[str] = field(default_factory=Counter)
    days_by_month: dict[str, frozenset[date]] = field(default_factory=dict)
    ratings_by_month: dict[str, frozenset[int]] = field(default_factory=dict)
    author_first_month: dict[str, str] = field(default_factory=dict)
    streak: Streak = field(default_factory=Streak)
    month_streak_max: int = 0

    @property
    def total_reads(self) -> int:
        return len(self.finished)

    @property
    def current_month(self) -> str:
        return month_key(self.today)

    def finished_in_month(self, key: str) -> list[FinishedBook]:
        return [f for f in self.finished if f.day is not None and month_key(f.day) == key]


def _sort_key(item: FinishedBook) -> tuple:
    # created_at may mix naive and aware values; compare its text instead
    return (item.day or date.min, item.book.created_at.isoformat(), item.book.id)


def build_context(books: Iterable[Book], today: date, tz: tzinfo) -> EvaluationContext:
    """Derive every index the predicates share from the raw book collection.

    Args:
        books: All book records, in any order.
        today: The pass's local calendar date.
        tz: Reference zone for finish values stored as instants.

    Returns:
        A frozen EvaluationContext.
    """
    all_books = tuple(books)
    finished = sorted(
        (FinishedBook(b, parse_day(b.finished_at, tz)) for b in all_books if b.is_finished),
        key=_sort_key,
    )

    by_title: dict[str, list[FinishedBook]] = {}
    by_day: Counter[str] = Counter()
    by_week: Counter[str] = Counter()
    by_month: Counter[str] = Counter()
    by_year: Counter[str] = Counter()
    by_author: Counter[str] = Counter()
    by_author_month: Counter[str] = Counter()
    by_author_day: Counter[str] = Counter()
    days_by_month: dict[str, set[date]] = {}
    ratings_by_month: dict[str, set[int]] = {}
    author_first_month: dict[str, str] = {}

    for item in finished:
        title = item.book.title_key
        if title:
            by_title.setdefault(title, []).append(item)

        author = item.book.author_key
        if author:
            by_author[author] += 1

        if item.day is None:
            continue

        d_key = day_key(item.day)
        m_key = month_key(item.day)
        by_day[d_key] += 1
        by_week[week_key(item.day)] += 1
        by_month[m_key] += 1
        by_year[year_key(item.day)] += 1
        days_by_month.setdefault(m_key, set()).add(item.day)

        if item.book.rating is not None:
            ratings_by_month.setdefault(m_key, set()).add(item.book.rating)

        if author:
            by_author_month[composite_key(author, m_key)] += 1
            by_author_day[composite_key(author, d_key)] += 1
            # finished is sorted, so the first month seen is the earliest
            author_first_month.setdefault(author, m_key)

    finish_days = sorted({f.day for f in finished if f.day is not None})
    months = sorted({month_start(d) for d in finish_days})

    current = 0
    day_set = set(finish_days)
    cursor = today
    while cursor in day_set:
        current += 1
        cursor -= timedelta(days=1)

    return EvaluationContext(
        today=today,
        tz=tz,
        books=all_books,
        finished=tuple(finished),
        by_title={k: tuple(v) for k, v in by_title.items()},
        by_day=by_day,
        by_week=by_week,
        by_month=by_month,
        by_year=by_year,
        by_author=by_author,
        by_author_month=by_author_month,
        by_author_day=by_author_day,
        days_by_month={k: frozenset(v) for k, v in days_by_month.items()},
        ratings_by_month={k: frozenset(v) for k, v in ratings_by_month.items()},
        author_first_month=author_first_month,
        streak=Streak(current=current, max=longest_run(finish_days, is_next_day)),
        month_streak_max=longest_run(months, is_next_month),
    )
