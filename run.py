"""Entry point for the Bookmaker reading log."""

import logging

from bookmaker.achievements import AchievementEvaluator, CatalogLoader
from bookmaker.config import load_config
from bookmaker.library import ReadingLog
from bookmaker.storage import BookStore, CounterStore, UnlockStateStore, initialize_database

logger = logging.getLogger(__name__)


def main() -> None:
    """Initialize storage, print reading stats and run one achievement pass."""
    config = load_config()
    logging.basicConfig(level=config.logging.level, format=config.logging.format)

    db_path = config.storage.sqlite_path
    initialize_database(db_path)

    evaluator = AchievementEvaluator(
        catalog=CatalogLoader(config.achievements.catalog_path or None),
        unlock_store=UnlockStateStore(db_path),
        utc_offset_minutes=config.achievements.utc_offset_minutes,
    )
    books = BookStore(db_path)
    counters = CounterStore(db_path)
    log = ReadingLog(books, counters, evaluator)

    stats = log.stats()
    print(f"{config.app.name} {config.app.version}")
    print(f"Books finished: {stats.total_reads}")
    print(f"Longest streak: {stats.streak.max} day(s), current: {stats.streak.current}")
    print(f"Authors read: {stats.unique_authors}")

    newly = evaluator.evaluate_and_unlock(books.list_all(), counters.load())
    for definition in newly:
        print(f"Unlocked: {definition.name} - {definition.description}")
    print(f"Achievements unlocked: {len(evaluator.unlocked_entries())}")


if __name__ == "__main__":
    main()
