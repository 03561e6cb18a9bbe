"""
Exception hierarchy for Bookmaker.

Every error carries a machine-readable ``code`` so callers can branch on it
without parsing messages.
"""
from __future__ import annotations

from typing import Any


class BookmakerError(Exception):
    """Base class for all application-level errors."""
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class CatalogLoadError(BookmakerError):
    code = "CATALOG_LOAD_FAILED"

    def __init__(self, message: str, path: str | None = None):
        super().__init__(
            message=message,
            details={"path": path} if path else {},
        )


class UnlockStateError(BookmakerError):
    code = "UNLOCK_STATE_FAILED"


class EvaluationError(BookmakerError):
    """An evaluation pass failed; no achievement from it was unlocked."""
    code = "EVALUATION_FAILED"


class BookNotFoundError(BookmakerError):
    code = "BOOK_NOT_FOUND"

    def __init__(self, book_id: str):
        super().__init__(
            message=f"Book not found: {book_id}",
            details={"book_id": book_id},
        )
