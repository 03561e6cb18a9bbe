"""Tests for reading statistics."""

from datetime import date

from bookmaker.achievements.dates import reference_tz
from bookmaker.models import Book
from bookmaker.stats import compute_reading_stats

JST = reference_tz(540)
TODAY = date(2024, 3, 15)


def _book(finished: str, author: str = "", rating: int | None = None) -> Book:
    return Book(title="t", author=author, finished_at=finished, rating=rating)


class TestComputeReadingStats:
    def test_empty_collection(self) -> None:
        stats = compute_reading_stats([], TODAY, JST)
        assert stats.total_reads == 0
        assert stats.by_month == {}
        assert stats.streak.max == 0
        assert stats.last_five_authors == []

    def test_buckets_sorted_by_key(self) -> None:
        books = [_book("2024-03-01"), _book("2023-12-31"), _book("2024-03-01"), _book("")]
        stats = compute_reading_stats(books, TODAY, JST)
        assert stats.total_reads == 3
        assert list(stats.by_month) == ["2023-12", "2024-03"]
        assert stats.by_day == {"2023-12-31": 1, "2024-03-01": 2}
        assert stats.by_year == {"2023": 1, "2024": 2}

    def test_authors(self) -> None:
        books = [_book("2024-03-01", "A"), _book("2024-03-02", "B"), _book("2024-03-03", "B")]
        stats = compute_reading_stats(books, TODAY, JST)
        assert stats.unique_authors == 2
        assert list(stats.by_author) == ["B", "A"]

    def test_last_five_authors_in_finish_order(self) -> None:
        books = [_book(f"2024-03-0{d}", f"A{d}") for d in range(1, 8)]
        stats = compute_reading_stats(books, TODAY, JST)
        assert stats.last_five_authors == ["A3", "A4", "A5", "A6", "A7"]

    def test_streak(self) -> None:
        books = [_book("2024-03-14"), _book("2024-03-15"), _book("2024-03-01"), _book("2024-03-02"), _book("2024-03-03")]
        stats = compute_reading_stats(books, TODAY, JST)
        assert stats.streak.current == 2
        assert stats.streak.max == 3

    def test_month_rating_extremes(self) -> None:
        books = [_book("2024-03-01", rating=1), _book("2024-03-02", rating=5), _book("2024-02-01", rating=5)]
        stats = compute_reading_stats(books, TODAY, JST)
        assert stats.month_rating_extremes["2024-03"].has1
        assert stats.month_rating_extremes["2024-03"].has5
        assert not stats.month_rating_extremes["2024-02"].has1
