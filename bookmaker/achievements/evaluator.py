"""
Evaluation driver: decides which locked achievements now pass and unlocks them.

An achievement id moves from locked to unlocked once and stays unlocked.
Passes are serialized so two passes never both see the same id as locked,
and all unlocks of a pass are written in one batch. When loading the catalog,
reading unlock state or writing the batch fails, the pass raises
EvaluationError and reports nothing as unlocked.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Collection, Iterable, Sequence
from datetime import date, datetime, timezone, tzinfo
from typing import Protocol

from bookmaker.achievements.catalog import CatalogLoader
from bookmaker.achievements.context import build_context
from bookmaker.achievements.dates import (
    DEFAULT_UTC_OFFSET_MINUTES,
    local_today,
    reference_tz,
)
from bookmaker.achievements.predicates import evaluate_rule
from bookmaker.errors import CatalogLoadError, EvaluationError, UnlockStateError
from bookmaker.models.achievement import AchievementDefinition, UnlockEntry
from bookmaker.models.activity import Counters, LastEvent
from bookmaker.models.book import Book

logger = logging.getLogger(__name__)


class UnlockStore(Protocol):
    """Persistence for unlock entries. Append-only from the engine's view."""

    def acquired_ids(self) -> set[str]: ...

    def list_entries(self) -> list[UnlockEntry]: ...

    def add_all(self, entries: Sequence[UnlockEntry]) -> None: ...


def find_newly_unlocked(
    catalog: Iterable[AchievementDefinition],
    books: Iterable[Book],
    counters: Counters | None,
    unlocked_ids: Collection[str],
    today: date,
    tz: tzinfo,
    last_event: LastEvent | None = None,
) -> list[AchievementDefinition]:
    """Pure core of a pass: definitions that are locked and now pass.

    Args:
        catalog: Definitions in catalog order.
        books: Full book collection, any order.
        counters: Action counters.
        unlocked_ids: Ids already unlocked; these are never re-evaluated.
        today: Local date every rule of the pass agrees on.
        tz: Reference zone for instant-valued dates.
        last_event: The triggering action, for single-book rules.

    Returns:
        Newly passing definitions, in catalog order.
    """
    context = build_context(books, today, tz)
    return [
        definition
        for definition in catalog
        if definition.id not in unlocked_ids
        and evaluate_rule(definition.rule, context, counters, last_event)
    ]


class AchievementEvaluator:
    """Runs evaluation passes against a catalog and an unlock store.

    Args:
        catalog: Loader for achievement definitions.
        unlock_store: Where unlock entries are read from and appended to.
        utc_offset_minutes: Reference offset for calendar dates.
    """

    def __init__(
        self,
        catalog: CatalogLoader,
        unlock_store: UnlockStore,
        utc_offset_minutes: int = DEFAULT_UTC_OFFSET_MINUTES,
    ) -> None:
        self._catalog = catalog
        self._unlock_store = unlock_store
        self._tz = reference_tz(utc_offset_minutes)
        self._lock = threading.Lock()

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def evaluate_and_unlock(
        self,
        books: Iterable[Book],
        counters: Counters | None = None,
        last_event: LastEvent | None = None,
        now: datetime | None = None,
    ) -> list[AchievementDefinition]:
        """Run one pass and persist every newly passing achievement.

        Args:
            books: Full book collection.
            counters: Current action counters.
            last_event: The action that triggered this pass.
            now: The pass's clock reading; read once, shared by every rule.

        Returns:
            Definitions unlocked by this pass, in catalog order.

        Raises:
            EvaluationError: If the catalog or unlock state could not be read,
                or the unlock batch could not be written.
        """
        with self._lock:
            moment = now or datetime.now(timezone.utc)
            try:
                catalog = self._catalog.load()
                unlocked = self._unlock_store.acquired_ids()
            except (CatalogLoadError, UnlockStateError) as exc:
                logger.error("Evaluation pass aborted: %s", exc)
                raise EvaluationError(f"Evaluation pass failed: {exc}") from exc

            newly = find_newly_unlocked(
                catalog,
                books,
                counters,
                unlocked,
                today=local_today(moment, self._tz),
                tz=self._tz,
                last_event=last_event,
            )
            if not newly:
                return []

            entries = [UnlockEntry(id=d.id, acquired_at=moment) for d in newly]
            try:
                self._unlock_store.add_all(entries)
            except UnlockStateError as exc:
                logger.error("Could not persist %d unlocks: %s", len(entries), exc)
                raise EvaluationError(f"Evaluation pass failed: {exc}") from exc

            for definition in newly:
                logger.info("Achievement unlocked: %s (%s)", definition.id, definition.name)
            return newly

    def unlocked_entries(self) -> list[UnlockEntry]:
        return self._unlock_store.list_entries()
