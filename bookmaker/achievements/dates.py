"""Calendar-date utilities for bucketing and streak detection.

All book dates are handled as ``datetime.date`` values. Differences are whole
calendar days, so daylight-saving shifts never turn one day into 0.96 or 1.04
days. Instants (e.g. ``2024-03-01T20:00:00Z``) are converted into a fixed
reference offset before their date is taken. Plain ``YYYY-MM-DD`` strings are
already local dates and are used as-is.
"""

import calendar
from collections.abc import Callable, Sequence
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import TypeVar

T = TypeVar("T")

# Asia/Tokyo, the product's home market
DEFAULT_UTC_OFFSET_MINUTES = 9 * 60

WEEKDAYS: dict[str, int] = {
    "mon": 0,
    "tue": 1,
    "wed": 2,
    "thu": 3,
    "fri": 4,
    "sat": 5,
    "sun": 6,
}


def reference_tz(offset_minutes: int = DEFAULT_UTC_OFFSET_MINUTES) -> timezone:
    """Build the fixed-offset zone used for every instant-to-date conversion."""
    return timezone(timedelta(minutes=offset_minutes))


def parse_day(value: str | None, tz: tzinfo) -> date | None:
    """Parse a stored date field into a calendar date.

    Args:
        value: ``YYYY-MM-DD``, an ISO-8601 instant, or empty.
        tz: Reference zone for instants that carry an offset.

    Returns:
        The local calendar date, or None for empty or unparseable input.
    """
    if not value:
        return None
    text = value.strip()
    if len(text) == 10:
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None
    try:
        instant = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if instant.tzinfo is None:
        return instant.date()
    return instant.astimezone(tz).date()


def local_today(now: datetime | None, tz: tzinfo) -> date:
    """Resolve "today" once for an evaluation pass."""
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(tz).date()


def day_key(day: date) -> str:
    return day.isoformat()


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def year_key(day: date) -> str:
    return f"{day.year:04d}"


def week_key(day: date) -> str:
    """ISO-8601 week key (``2024-W01``): Monday start, year of its Thursday."""
    iso = day.isocalendar()
    return f"{iso.year:04d}-W{iso.week:02d}"


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def shift_month(day: date, months: int) -> date:
    """First day of the month ``months`` away from ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    year, month0 = divmod(index, 12)
    return date(year, month0 + 1, 1)


def trailing_month_keys(today: date, count: int) -> list[str]:
    """Month keys of the current month and the ``count - 1`` before it."""
    return [month_key(shift_month(today, -i)) for i in range(count)]


def iso_weeks_touching_month(year: int, month: int) -> list[tuple[date, date]]:
    """Monday-Sunday ranges of every ISO week overlapping the given month."""
    first = date(year, month, 1)
    last = month_end(first)
    start = first - timedelta(days=first.weekday())
    weeks: list[tuple[date, date]] = []
    while start <= last:
        weeks.append((start, start + timedelta(days=6)))
        start += timedelta(days=7)
    return weeks


def days_between(start: date, end: date) -> int:
    return (end - start).days


def is_next_day(prev: date, nxt: date) -> bool:
    return days_between(prev, nxt) == 1


def is_next_month(prev: date, nxt: date) -> bool:
    return shift_month(prev, 1) == month_start(nxt)


def longest_run(items: Sequence[T], is_next: Callable[[T, T], bool]) -> int:
    """Length of the longest run where each item follows the previous one.

    ``items`` must already be sorted; any break resets the run to 1.
    """
    if not items:
        return 0
    best = current = 1
    for prev, item in zip(items, items[1:]):
        current = current + 1 if is_next(prev, item) else 1
        best = max(best, current)
    return best
