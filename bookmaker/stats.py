"""Reading statistics recomputed from the full book collection."""

from collections.abc import Iterable
from datetime import date, tzinfo

from bookmaker.achievements.context import build_context
from bookmaker.models.book import Book
from bookmaker.models.stats import RatingExtremes, ReadingStats, StreakSummary


def compute_reading_stats(books: Iterable[Book], today: date, tz: tzinfo) -> ReadingStats:
    """Summarize reading activity for display.

    Uses the same indexes as achievement evaluation, so the numbers shown to
    the user always agree with what the rules see.

    Args:
        books: Full book collection.
        today: Local date, used for the current streak.
        tz: Reference zone for instant-valued finish dates.

    Returns:
        A ReadingStats summary.
    """
    context = build_context(books, today, tz)

    extremes = {
        month: RatingExtremes(has1=1 in ratings, has5=5 in ratings)
        for month, ratings in sorted(context.ratings_by_month.items())
    }

    return ReadingStats(
        total_reads=context.total_reads,
        by_day=dict(sorted(context.by_day.items())),
        by_week=dict(sorted(context.by_week.items())),
        by_month=dict(sorted(context.by_month.items())),
        by_year=dict(sorted(context.by_year.items())),
        by_author=dict(context.by_author.most_common()),
        unique_authors=len(context.by_author),
        streak=StreakSummary(current=context.streak.current, max=context.streak.max),
        last_five_authors=[f.book.author_key for f in context.finished[-5:]],
        month_rating_extremes=extremes,
    )
