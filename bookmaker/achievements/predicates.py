"""
Rule predicates and the dispatch table that selects them.

Each predicate is a pure function of (rule, context, counters, last event)
and returns a bool. Predicates register themselves for one ``RuleType`` with
the ``@predicate`` decorator. ``evaluate_rule`` looks the tag up and fails
closed: an unknown tag, a missing required parameter, a missing event book
or an exception inside a predicate all evaluate to False.

Bounds
------
Volume-style rules compare a number against ``gte``/``lte``/``eq``. Every
bound that is present must hold, and a rule with no bound at all never
passes. Kinds whose threshold is part of their meaning fall back to a
default instead of failing: ``SAME_DAY_FINISHES`` and ``SAME_AUTHOR_SAME_DAY``
(2), ``MONTH_AUTHOR_3_SAME`` (3), ``LONG_AUTHOR_NAME`` (10), and the two
counter kinds ``USER_ACTION`` (1, "did it at least once") and
``EDIT_SAME_BOOK_GTE`` (3). These are the only kinds where a missing ``gte``
is not unsatisfiable.

Scope
-----
Single-book rules look at the book touched by the triggering event
(``scope: "event"``, the default) or at every book in the history
(``scope: "any"``). A delete event has no book to judge, so event-scoped
rules never pass on it.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable

from bookmaker.achievements.context import EvaluationContext, FinishedBook
from bookmaker.achievements.dates import (
    WEEKDAYS,
    days_between,
    iso_weeks_touching_month,
    longest_run,
    month_end,
    month_key,
    parse_day,
    trailing_month_keys,
    week_key,
    year_key,
)
from bookmaker.models.achievement import Rule, RuleType
from bookmaker.models.activity import Counters, EventType, LastEvent
from bookmaker.models.book import Book

logger = logging.getLogger(__name__)

Predicate = Callable[[Rule, EvaluationContext, Counters, LastEvent | None], bool]
_REGISTRY: dict[RuleType, Predicate] = {}

# Book attribute behind each text field name used in catalogs
TEXT_FIELDS: dict[str, str] = {
    "reviewText": "review_text",
    "oneLiner": "one_liner",
}

_TRAILING_PERIOD = re.compile(r"[。．.]$")
_QUOTES = re.compile(r"[\"'『』「」“”]")
_DIGIT = re.compile(r"[0-9０-９]")
_ASCII_LETTER = re.compile(r"[A-Za-z]")


def predicate(kind: RuleType) -> Callable[[Predicate], Predicate]:
    def deco(fn: Predicate) -> Predicate:
        _REGISTRY[kind] = fn
        return fn
    return deco


def registered_types() -> frozenset[RuleType]:
    return frozenset(_REGISTRY)


def evaluate_rule(
    rule: Rule,
    context: EvaluationContext,
    counters: Counters | None = None,
    last_event: LastEvent | None = None,
) -> bool:
    """Evaluate one rule against a prepared context.

    Args:
        rule: The rule to evaluate.
        context: Indexes built once for this pass.
        counters: Action counters; empty counters when omitted.
        last_event: The user action that triggered the pass, if any.

    Returns:
        True if the rule passes. Never raises.
    """
    kind = rule.kind
    fn = _REGISTRY.get(kind) if kind is not None else None
    if fn is None:
        logger.debug("No predicate for rule type %r, treating as locked", rule.type)
        return False
    try:
        return bool(fn(rule, context, counters or Counters(), last_event))
    except Exception:
        logger.exception("Predicate %s failed", rule.type)
        return False


# ── Shared helpers ───────────────────────────────────────────────────────────


def _within(value: int, rule: Rule) -> bool:
    """Check ``value`` against every bound the rule declares."""
    if rule.gte is None and rule.lte is None and rule.eq is None:
        return False
    if rule.gte is not None and value < rule.gte:
        return False
    if rule.lte is not None and value > rule.lte:
        return False
    if rule.eq is not None and value != rule.eq:
        return False
    return True


def _threshold(rule: Rule, default: int) -> int:
    return rule.gte if rule.gte is not None else default


def _event_book(event: LastEvent | None) -> Book | None:
    # A deleted book is leaving the log; nothing is judged on it
    if event is None or event.type == EventType.DELETE:
        return None
    return event.book


def _candidates(rule: Rule, context: EvaluationContext, event: LastEvent | None) -> list[Book]:
    if rule.scope == "any":
        return list(context.books)
    book = _event_book(event)
    if rule.scope == "event" and book is not None:
        return [book]
    return []


def _text(book: Book, field_name: str | None, default: str = "reviewText") -> str | None:
    attr = TEXT_FIELDS.get(field_name or default)
    if attr is None:
        return None
    return getattr(book, attr)


def _sum_months(context: EvaluationContext, keys: Iterable[str]) -> int:
    return sum(context.by_month[k] for k in keys)


# ── Volume ───────────────────────────────────────────────────────────────────


@predicate(RuleType.TOTAL_READS)
def _total_reads(rule, context, counters, event):
    return _within(context.total_reads, rule)


@predicate(RuleType.WEEK_READS)
def _week_reads(rule, context, counters, event):
    return _within(context.by_week[week_key(context.today)], rule)


@predicate(RuleType.MONTH_READS)
def _month_reads(rule, context, counters, event):
    return _within(context.by_month[context.current_month], rule)


@predicate(RuleType.QUARTER_READS)
def _quarter_reads(rule, context, counters, event):
    return _within(_sum_months(context, trailing_month_keys(context.today, 3)), rule)


@predicate(RuleType.HALF_YEAR_READS)
def _half_year_reads(rule, context, counters, event):
    return _within(_sum_months(context, trailing_month_keys(context.today, 6)), rule)


@predicate(RuleType.YEAR_READS)
def _year_reads(rule, context, counters, event):
    return _within(context.by_year[year_key(context.today)], rule)


@predicate(RuleType.MONTH_READS_BY_MONTH)
def _month_reads_by_month(rule, context, counters, event):
    if rule.month is None or not 1 <= rule.month <= 12:
        return False
    year = rule.year if rule.year is not None else context.today.year
    return _within(context.by_month[f"{year:04d}-{rule.month:02d}"], rule)


# ── Streaks ──────────────────────────────────────────────────────────────────


@predicate(RuleType.STREAK_DAYS)
def _streak_days(rule, context, counters, event):
    return _within(context.streak.max, rule)


@predicate(RuleType.MONTH_STREAK)
def _month_streak(rule, context, counters, event):
    return _within(context.month_streak_max, rule)


# ── Single book: text ────────────────────────────────────────────────────────


@predicate(RuleType.REVIEW_CHARS)
def _review_chars(rule, context, counters, event):
    for book in _candidates(rule, context, event):
        text = _text(book, rule.field)
        if text and _within(len(text), rule):
            return True
    return False


@predicate(RuleType.REVIEW_NEWLINES)
def _review_newlines(rule, context, counters, event):
    for book in _candidates(rule, context, event):
        text = _text(book, rule.field)
        if text and _within(text.count("\n"), rule):
            return True
    return False


@predicate(RuleType.REVIEW_CONTAINS)
def _review_contains(rule, context, counters, event):
    if not rule.any_of:
        return False
    for book in _candidates(rule, context, event):
        text = _text(book, rule.field)
        if text and any(word in text for word in rule.any_of):
            return True
    return False


def match_one_liner(one_liner: str, rule: Rule) -> bool:
    """Check a one-liner against every shape flag the rule sets.

    ``empty`` matches a blank one-liner and ignores the other flags. All other
    flags need a non-blank one-liner, so "no trailing period" is never
    satisfied by saying nothing.
    """
    text = one_liner.strip()
    if rule.empty:
        return not text

    checks: list[bool] = []
    if rule.min_len is not None:
        checks.append(len(text) >= rule.min_len)
    if rule.max_len is not None:
        checks.append(len(text) <= rule.max_len)
    if rule.exact_len is not None:
        checks.append(len(text) == rule.exact_len)
    if rule.no_period:
        checks.append(not _TRAILING_PERIOD.search(text))
    if rule.has_quotes:
        checks.append(bool(_QUOTES.search(text)))
    if rule.has_question:
        checks.append("?" in text or "？" in text)
    if rule.has_exclamation:
        checks.append("!" in text or "！" in text)
    if rule.has_ellipsis:
        checks.append("…" in text or "..." in text)
    if rule.has_digit:
        checks.append(bool(_DIGIT.search(text)))
    if rule.has_ascii:
        checks.append(bool(_ASCII_LETTER.search(text)))

    return bool(text) and bool(checks) and all(checks)


@predicate(RuleType.ONE_LINER_PATTERN)
def _one_liner_pattern(rule, context, counters, event):
    return any(match_one_liner(b.one_liner, rule) for b in _candidates(rule, context, event))


@predicate(RuleType.LONG_AUTHOR_NAME)
def _long_author_name(rule, context, counters, event):
    need = _threshold(rule, 10)
    return any(
        b.author_key and len(b.author_key) >= need
        for b in _candidates(rule, context, event)
    )


# ── Single book: rating, calendar, speed ─────────────────────────────────────


@predicate(RuleType.RATING_SET)
def _rating_set(rule, context, counters, event):
    book = _event_book(event)
    if book is None:
        return False
    rating = book.rating
    if rating is None:
        return False
    return rule.eq is None or rating == rule.eq


def match_date_pattern(book: Book, rule: Rule, context: EvaluationContext) -> bool:
    """Check a finished book's finish date against the rule's calendar shape."""
    day = parse_day(book.finished_at, context.tz)
    if day is None:
        return False

    checks: list[bool] = []
    if rule.weekday is not None:
        wanted = {WEEKDAYS[d] for d in rule.weekday if d in WEEKDAYS}
        checks.append(day.weekday() in wanted)
    if rule.first_of_month:
        checks.append(day.day == 1)
    if rule.last_of_month:
        checks.append(day == month_end(day))
    if rule.month_equals is not None:
        checks.append(day.month == rule.month_equals)
    if rule.weekend:
        checks.append(day.weekday() >= 5)

    return bool(checks) and all(checks)


@predicate(RuleType.DATE_PATTERN)
def _date_pattern(rule, context, counters, event):
    return any(match_date_pattern(b, rule, context) for b in _candidates(rule, context, event))


def match_read_speed(book: Book, rule: Rule, context: EvaluationContext) -> bool:
    """Check the start-to-finish span of one book.

    Every condition the rule sets must hold. A finish before the start is
    treated as bad data and never matches.
    """
    started = parse_day(book.started_at, context.tz)
    finished = parse_day(book.finished_at, context.tz)
    if started is None or finished is None:
        return False
    days = days_between(started, finished)
    if days < 0:
        return False

    checks: list[bool] = []
    if rule.same_day:
        checks.append(days == 0)
    if rule.lte_days is not None:
        checks.append(days <= rule.lte_days)
    if rule.gte_days is not None:
        checks.append(days >= rule.gte_days)
    if rule.weekend_cross:
        checks.append(started.weekday() == 5 and finished.weekday() == 6 and days == 1)

    return bool(checks) and all(checks)


@predicate(RuleType.READ_SPEED)
def _read_speed(rule, context, counters, event):
    return any(match_read_speed(b, rule, context) for b in _candidates(rule, context, event))


@predicate(RuleType.SAME_DAY_FINISHES)
def _same_day_finishes(rule, context, counters, event):
    need = _threshold(rule, 2)
    return any(count >= need for count in context.by_day.values())


# ── Rereads ──────────────────────────────────────────────────────────────────


@predicate(RuleType.REREAD_COUNT)
def _reread_count(rule, context, counters, event):
    if rule.gte is None:
        return False
    return any(len(group) >= rule.gte for group in context.by_title.values())


def _compare_texts(prev: str, last: str, cmp: str | None) -> bool:
    if cmp == "shorter":
        return len(last) < len(prev)
    if cmp == "longer":
        return len(last) > len(prev)
    if cmp == "different":
        return last != prev
    if cmp == "same":
        return last == prev
    return False


@predicate(RuleType.REREAD_COMPARE)
def _reread_compare(rule, context, counters, event):
    if rule.field not in TEXT_FIELDS:
        return False
    for group in context.by_title.values():
        if len(group) < 2:
            continue
        prev, last = group[-2].book, group[-1].book
        if _compare_texts(_text(prev, rule.field), _text(last, rule.field), rule.cmp):
            return True
    return False


@predicate(RuleType.REREAD_FROM_FIRST_DAYS)
def _reread_from_first_days(rule, context, counters, event):
    if rule.lte_days is None and rule.gte_days is None:
        return False
    for group in context.by_title.values():
        if len(group) < 2 or group[0].day is None or group[-1].day is None:
            continue
        # Both the first and the latest finish day are counted
        elapsed = days_between(group[0].day, group[-1].day) + 1
        if rule.lte_days is not None and elapsed > rule.lte_days:
            continue
        if rule.gte_days is not None and elapsed < rule.gte_days:
            continue
        return True
    return False


# ── Authors ──────────────────────────────────────────────────────────────────


@predicate(RuleType.UNIQUE_AUTHORS)
def _unique_authors(rule, context, counters, event):
    return _within(len(context.by_author), rule)


def _same_author(prev: FinishedBook, item: FinishedBook) -> bool:
    author = item.book.author_key
    return bool(author) and author == prev.book.author_key


@predicate(RuleType.SAME_AUTHOR_STREAK)
def _same_author_streak(rule, context, counters, event):
    return _within(longest_run(context.finished, _same_author), rule)


def last_n_authors_distinct(context: EvaluationContext, n: int) -> bool:
    """True if the ``n`` most recent finishes have ``n`` distinct authors.

    Fails when fewer than ``n`` books are finished or any of them has no
    author.
    """
    if n < 1 or len(context.finished) < n:
        return False
    authors = [f.book.author_key for f in context.finished[-n:]]
    return all(authors) and len(set(authors)) == n


@predicate(RuleType.LAST_N_AUTHORS_ALL_DIFFERENT)
def _last_n_authors_all_different(rule, context, counters, event):
    return last_n_authors_distinct(context, rule.n if rule.n is not None else 5)


@predicate(RuleType.LAST_5_ALL_DIFFERENT)
def _last_5_all_different(rule, context, counters, event):
    return last_n_authors_distinct(context, 5)


@predicate(RuleType.MONTH_AUTHOR_3_SAME)
def _month_author_same(rule, context, counters, event):
    need = _threshold(rule, 3)
    suffix = "|" + context.current_month
    return any(
        count >= need
        for key, count in context.by_author_month.items()
        if key.endswith(suffix)
    )


@predicate(RuleType.SAME_AUTHOR_SAME_DAY)
def _same_author_same_day(rule, context, counters, event):
    need = _threshold(rule, 2)
    return any(count >= need for count in context.by_author_day.values())


@predicate(RuleType.MONTH_ALL_FIRST_AUTHORS)
def _month_all_first_authors(rule, context, counters, event):
    month = context.current_month
    finished = context.finished_in_month(month)
    if not finished:
        return False
    return all(
        f.book.author_key and context.author_first_month.get(f.book.author_key) == month
        for f in finished
    )


# ── Current month composites ─────────────────────────────────────────────────


@predicate(RuleType.MONTH_DISTINCT_DAYS)
def _month_distinct_days(rule, context, counters, event):
    return _within(len(context.days_by_month.get(context.current_month, ())), rule)


@predicate(RuleType.MONTH_EACH_WEEK_HAS_READ)
def _month_each_week_has_read(rule, context, counters, event):
    days = context.days_by_month.get(context.current_month)
    if not days:
        return False
    weeks = iso_weeks_touching_month(context.today.year, context.today.month)
    return all(any(start <= d <= end for d in days) for start, end in weeks)


@predicate(RuleType.MONTH_RATING_BOTH)
def _month_rating_both(rule, context, counters, event):
    ratings = context.ratings_by_month.get(month_key(context.today), frozenset())
    return 1 in ratings and 5 in ratings


# ── Action counters ──────────────────────────────────────────────────────────


@predicate(RuleType.USER_ACTION)
def _user_action(rule, context, counters, event):
    if not rule.event:
        return False
    return counters.count(rule.event) >= _threshold(rule, 1)


@predicate(RuleType.EDIT_SAME_BOOK_GTE)
def _edit_same_book(rule, context, counters, event):
    need = _threshold(rule, 3)
    return any(count >= need for count in counters.edit_counts.values())
