"""Tests for the reading log facade."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from bookmaker.achievements import AchievementEvaluator, CatalogLoader
from bookmaker.errors import BookNotFoundError
from bookmaker.library import ReadingLog
from bookmaker.models import Book, EventType
from bookmaker.storage import BookStore, CounterStore, UnlockStateStore, initialize_database

NOW = datetime(2024, 3, 15, 3, 0, tzinfo=timezone.utc)

CATALOG = [
    {"id": "first_book", "name": "First Page", "rule": {"type": "TOTAL_READS", "gte": 1}},
    {"id": "open_ending", "name": "Open Ending", "rule": {"type": "ONE_LINER_PATTERN", "noPeriod": True}},
    {"id": "critic", "name": "Critic", "rule": {"type": "RATING_SET"}},
    {"id": "seeker", "name": "Seeker", "rule": {"type": "USER_ACTION", "event": "searchCount", "gte": 2}},
    {"id": "tidy", "name": "Tidy", "rule": {"type": "USER_ACTION", "event": "deleteCount"}},
    {"id": "backup", "name": "Backup", "rule": {"type": "USER_ACTION", "event": "exportCount"}},
    {"id": "perfectionist", "name": "Perfectionist", "rule": {"type": "EDIT_SAME_BOOK_GTE", "gte": 2}},
]


@pytest.fixture
def stores(tmp_path: Path) -> tuple[BookStore, CounterStore, UnlockStateStore]:
    db_path = tmp_path / "bookmaker.db"
    initialize_database(db_path)
    return BookStore(db_path), CounterStore(db_path), UnlockStateStore(db_path)


@pytest.fixture
def log(tmp_path: Path, stores: tuple[BookStore, CounterStore, UnlockStateStore]) -> ReadingLog:
    catalog_path = tmp_path / "catalog.json"
    catalog_path.write_text(json.dumps(CATALOG), encoding="utf-8")
    books, counters, unlocks = stores
    evaluator = AchievementEvaluator(CatalogLoader(catalog_path), unlocks)
    return ReadingLog(books, counters, evaluator)


def _ids(result) -> list[str]:
    return [d.id for d in result.unlocked]


class TestAddBook:
    def test_first_finished_book(self, log: ReadingLog) -> None:
        result = log.add_book(Book(title="Kokoro", finished_at="2024-03-14", one_liner="静かな余韻"), now=NOW)
        assert _ids(result) == ["first_book", "open_ending"]
        assert result.book is not None and result.book.title == "Kokoro"

    def test_unfinished_book_unlocks_nothing(self, log: ReadingLog) -> None:
        assert _ids(log.add_book(Book(title="Kokoro"), now=NOW)) == []

    def test_rated_book(self, log: ReadingLog, stores: tuple) -> None:
        result = log.add_book(Book(title="Kokoro", rating=5), now=NOW)
        assert _ids(result) == ["critic"]
        assert stores[1].load().count("rateCount") == 1

    def test_unlocks_are_reported_once(self, log: ReadingLog) -> None:
        log.add_book(Book(title="A", finished_at="2024-03-01"), now=NOW)
        assert "first_book" not in _ids(log.add_book(Book(title="B", finished_at="2024-03-02"), now=NOW))


class TestEditBook:
    def test_repeated_edits(self, log: ReadingLog) -> None:
        book = log.add_book(Book(title="Kokoro"), now=NOW).book
        assert _ids(log.edit_book(book.id, {"review_text": "draft"}, now=NOW)) == []
        assert _ids(log.edit_book(book.id, {"review_text": "final"}, now=NOW)) == ["perfectionist"]

    def test_edit_event_carries_updated_book(self, log: ReadingLog) -> None:
        book = log.add_book(Book(title="Kokoro"), now=NOW).book
        result = log.edit_book(book.id, {"rating": 3}, now=NOW)
        assert "critic" in _ids(result)
        assert result.book.rating == 3

    def test_rating_change_counted(self, log: ReadingLog, stores: tuple) -> None:
        book = log.add_book(Book(title="Kokoro", rating=3), now=NOW).book
        log.edit_book(book.id, {"rating": 3}, now=NOW)
        log.edit_book(book.id, {"rating": 4}, now=NOW)
        assert stores[1].load().count("rateCount") == 2

    def test_missing_book(self, log: ReadingLog) -> None:
        with pytest.raises(BookNotFoundError):
            log.edit_book("nope", {"title": "x"}, now=NOW)


class TestOtherActions:
    def test_delete(self, log: ReadingLog, stores: tuple) -> None:
        book = log.add_book(Book(title="Kokoro", rating=4), now=NOW).book
        result = log.delete_book(book.id, now=NOW)
        assert _ids(result) == ["tidy"]
        assert stores[0].get(book.id) is None

    def test_delete_does_not_judge_the_removed_book(self, tmp_path: Path, stores: tuple) -> None:
        catalog_path = tmp_path / "single_book.json"
        catalog_path.write_text(
            json.dumps(
                [
                    {"id": "speechless", "rule": {"type": "ONE_LINER_PATTERN", "empty": True}},
                    {"id": "essayist", "rule": {"type": "REVIEW_CHARS", "gte": 1000}},
                    {"id": "fresh_start", "rule": {"type": "DATE_PATTERN", "firstOfMonth": True}},
                ]
            ),
            encoding="utf-8",
        )
        books, counters, unlocks = stores
        log = ReadingLog(books, counters, AchievementEvaluator(CatalogLoader(catalog_path), unlocks))
        # Stored without a save event, so nothing has judged it yet
        book = books.create(Book(title="Kokoro", finished_at="2024-03-01", review_text="x" * 1200))

        assert _ids(log.delete_book(book.id, now=NOW)) == []
        assert unlocks.acquired_ids() == set()

    def test_delete_missing_book(self, log: ReadingLog) -> None:
        with pytest.raises(BookNotFoundError):
            log.delete_book("nope", now=NOW)

    def test_search_counts_toward_seeker(self, log: ReadingLog) -> None:
        log.add_book(Book(title="Kokoro"), now=NOW)
        first = log.search("koko", now=NOW)
        assert [b.title for b in first.books] == ["Kokoro"]
        assert _ids(first) == []
        assert _ids(log.search("none", now=NOW)) == ["seeker"]

    def test_record_backup(self, log: ReadingLog) -> None:
        assert _ids(log.record_action(EventType.BACKUP, now=NOW)) == ["backup"]

    def test_stats(self, log: ReadingLog) -> None:
        log.add_book(Book(title="A", author="X", finished_at="2024-03-14"), now=NOW)
        log.add_book(Book(title="B", author="Y", finished_at="2024-03-15"), now=NOW)
        stats = log.stats(now=NOW)
        assert stats.total_reads == 2
        assert stats.streak.current == 2
        assert stats.unique_authors == 2
