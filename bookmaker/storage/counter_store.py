"""SQLite-backed action counters."""

from pathlib import Path

from bookmaker.models.activity import CounterName, Counters, EventType, LastEvent
from bookmaker.storage.database import get_connection

# Counter bumped by each event type; edits are counted per book instead
EVENT_COUNTERS: dict[str, str] = {
    EventType.SEARCH: CounterName.SEARCH,
    EventType.BACKUP: CounterName.EXPORT,
    EventType.RESTORE: CounterName.IMPORT,
    EventType.DELETE: CounterName.DELETE,
    EventType.SETTINGS: CounterName.SETTINGS_SAVED,
    EventType.RATE: CounterName.RATE,
}


class CounterStore:
    """Counts user actions that cannot be derived from book records.

    Args:
        db_path: Path to an initialized SQLite database.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    def load(self) -> Counters:
        conn = get_connection(self._db_path)
        try:
            actions = conn.execute("SELECT name, value FROM action_counters").fetchall()
            edits = conn.execute("SELECT book_id, value FROM edit_counts").fetchall()
        finally:
            conn.close()
        return Counters(
            actions={row["name"]: row["value"] for row in actions},
            edit_counts={row["book_id"]: row["value"] for row in edits},
        )

    def increment(self, name: str, by: int = 1) -> None:
        self._bump("action_counters", "name", name, by)

    def increment_edit(self, book_id: str, by: int = 1) -> None:
        self._bump("edit_counts", "book_id", book_id, by)

    def record(self, event: LastEvent) -> None:
        """Bump the counter that matches a user action."""
        if event.type == EventType.EDIT:
            if event.book is not None:
                self.increment_edit(event.book.id)
            return
        name = EVENT_COUNTERS.get(event.type)
        if name:
            self.increment(name)

    def _bump(self, table: str, key_column: str, key: str, by: int) -> None:
        conn = get_connection(self._db_path)
        try:
            with conn:
                conn.execute(
                    f"INSERT INTO {table} ({key_column}, value) VALUES (?, ?) "
                    f"ON CONFLICT({key_column}) DO UPDATE SET value = value + excluded.value",
                    (key, by),
                )
        finally:
            conn.close()
