"""SQLite-backed store of unlocked achievements."""

import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path

from bookmaker.errors import UnlockStateError
from bookmaker.models.achievement import UnlockEntry
from bookmaker.storage.database import get_connection

logger = logging.getLogger(__name__)


class UnlockStateStore:
    """Append-only record of which achievements are unlocked, and when.

    Entries are write-once: adding an id that already exists keeps the
    original ``acquired_at``.

    Args:
        db_path: Path to an initialized SQLite database.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    def list_entries(self) -> list[UnlockEntry]:
        """Return every unlock, oldest first.

        Raises:
            UnlockStateError: If the state cannot be read.
        """
        try:
            conn = get_connection(self._db_path)
            try:
                rows = conn.execute(
                    "SELECT id, acquired_at FROM achievement_state ORDER BY acquired_at, id"
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise UnlockStateError(f"Cannot read unlock state: {exc}") from exc
        return [UnlockEntry(id=row["id"], acquired_at=row["acquired_at"]) for row in rows]

    def acquired_ids(self) -> set[str]:
        return {entry.id for entry in self.list_entries()}

    def add_all(self, entries: Sequence[UnlockEntry]) -> None:
        """Persist a batch of unlocks in one transaction.

        Either every entry is written or none is.

        Raises:
            UnlockStateError: If the batch cannot be written.
        """
        if not entries:
            return
        try:
            conn = get_connection(self._db_path)
            try:
                with conn:
                    conn.executemany(
                        "INSERT OR IGNORE INTO achievement_state (id, acquired_at) VALUES (?, ?)",
                        [(e.id, e.acquired_at.isoformat()) for e in entries],
                    )
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise UnlockStateError(
                f"Cannot persist unlock state: {exc}",
                details={"ids": [e.id for e in entries]},
            ) from exc
        logger.debug("Persisted %d unlock entries", len(entries))
