"""SQLite-backed book store."""

import logging
import sqlite3
from pathlib import Path
from typing import Any

from bookmaker.errors import BookNotFoundError
from bookmaker.models.book import Book, utc_now
from bookmaker.storage.database import get_connection

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "title",
    "author",
    "started_at",
    "finished_at",
    "review_text",
    "one_liner",
    "rating",
    "created_at",
    "updated_at",
)

# Fields an update may not touch
_IMMUTABLE = {"id", "created_at"}


def _row_to_book(row: sqlite3.Row) -> Book:
    return Book(**{col: row[col] for col in _COLUMNS})


def _book_to_params(book: Book) -> tuple:
    return (
        book.id,
        book.title,
        book.author,
        book.started_at,
        book.finished_at,
        book.review_text,
        book.one_liner,
        book.rating,
        book.created_at.isoformat(),
        book.updated_at.isoformat(),
    )


class BookStore:
    """Create, read, update, delete and search book records.

    Args:
        db_path: Path to an initialized SQLite database.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    def create(self, book: Book) -> Book:
        """Insert a new book. Title and author are stored trimmed."""
        now = utc_now()
        stored = book.model_copy(
            update={
                "title": book.title.strip(),
                "author": book.author.strip(),
                "created_at": now,
                "updated_at": now,
            }
        )
        conn = get_connection(self._db_path)
        try:
            with conn:
                conn.execute(
                    f"INSERT INTO books ({', '.join(_COLUMNS)}) "
                    f"VALUES ({', '.join('?' for _ in _COLUMNS)})",
                    _book_to_params(stored),
                )
        finally:
            conn.close()
        logger.debug("Created book %s (%s)", stored.id, stored.title)
        return stored

    def update(self, book_id: str, patch: dict[str, Any]) -> Book:
        """Apply a partial update and bump ``updated_at``.

        Args:
            book_id: Id of the book to update.
            patch: Field names (snake_case) mapped to new values.

        Returns:
            The updated book.

        Raises:
            BookNotFoundError: If no book has ``book_id``.
            ValueError: If ``patch`` names an unknown field.
        """
        unknown = set(patch) - set(Book.model_fields)
        if unknown:
            raise ValueError(f"Unknown book fields: {', '.join(sorted(unknown))}")

        existing = self.get(book_id)
        if existing is None:
            raise BookNotFoundError(book_id)

        changes = {k: v for k, v in patch.items() if k not in _IMMUTABLE}
        data = existing.model_dump()
        data.update(changes)
        data["updated_at"] = utc_now()
        updated = Book(**data)

        conn = get_connection(self._db_path)
        try:
            with conn:
                conn.execute(
                    "UPDATE books SET title = ?, author = ?, started_at = ?, finished_at = ?, "
                    "review_text = ?, one_liner = ?, rating = ?, updated_at = ? WHERE id = ?",
                    (
                        updated.title,
                        updated.author,
                        updated.started_at,
                        updated.finished_at,
                        updated.review_text,
                        updated.one_liner,
                        updated.rating,
                        updated.updated_at.isoformat(),
                        book_id,
                    ),
                )
        finally:
            conn.close()
        return updated

    def delete(self, book_id: str) -> bool:
        """Delete a book. Returns False if it did not exist."""
        conn = get_connection(self._db_path)
        try:
            with conn:
                cursor = conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
        finally:
            conn.close()
        return cursor.rowcount > 0

    def get(self, book_id: str) -> Book | None:
        conn = get_connection(self._db_path)
        try:
            row = conn.execute("SELECT * FROM books WHERE id = ?", (book_id,)).fetchone()
        finally:
            conn.close()
        return _row_to_book(row) if row else None

    def list_all(self) -> list[Book]:
        """Return every book, most recently created first."""
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute("SELECT * FROM books ORDER BY created_at DESC").fetchall()
        finally:
            conn.close()
        return [_row_to_book(row) for row in rows]

    def search(self, query: str) -> list[Book]:
        """Case-insensitive substring search over title, author, review and one-liner.

        An empty query returns every book.
        """
        books = self.list_all()
        needle = query.strip().lower()
        if not needle:
            return books
        return [
            b
            for b in books
            if needle
            in " \n ".join(
                t for t in (b.title, b.author, b.review_text, b.one_liner) if t
            ).lower()
        ]
