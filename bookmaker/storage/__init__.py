"""SQLite persistence for books, unlock state and action counters."""

from bookmaker.storage.book_store import BookStore
from bookmaker.storage.counter_store import CounterStore
from bookmaker.storage.database import get_connection, initialize_database
from bookmaker.storage.unlock_store import UnlockStateStore

__all__ = [
    "BookStore",
    "CounterStore",
    "UnlockStateStore",
    "get_connection",
    "initialize_database",
]
