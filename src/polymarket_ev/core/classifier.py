"""
Heuristic market classification.

Category, market type and timeframe are ordered (predicate, result) rules
evaluated top to bottom; the first match wins. Every classifier is total:
malformed input falls through to ``other`` / ``all``.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Union

from polymarket_ev.models.opportunity import MarketCategory, MarketType, Timeframe

Rule = tuple[Callable[[str], bool], object]


def _has(*words: str) -> Callable[[str], bool]:
    return lambda text: any(w in text for w in words)


def _all(*preds: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: all(p(text) for p in preds)


def _not(pred: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: not pred(text)


def _lower(value: object) -> str:
    return value.lower() if isinstance(value, str) else ""


def _first_match(rules: list[Rule], text: str, default):
    for predicate, result in rules:
        if predicate(text):
            return result
    return default


_GAME_WORDS = _has("beat", "defeat", "win against")

# MVP first: "Finals MVP" is a player award. Conference / division before
# championship: "Eastern Conference Champion" must not land in championship.
CATEGORY_RULES: list[Rule] = [
    (_has("mvp"), MarketCategory.MVP),
    (_all(_has("conference"), _has("champion", "finals", "winner")), MarketCategory.CONFERENCE),
    (_has("#1 seed", "1 seed"), MarketCategory.CONFERENCE),
    (_all(_has("division"), _has("winner", "champion")), MarketCategory.DIVISION),
    (
        _all(_has("champion", "finals", "world series", "stanley cup", "super bowl"), _not(_has("conference"))),
        MarketCategory.CHAMPIONSHIP,
    ),
    (
        _has(
            "rookie of the year",
            "defensive player",
            "sixth man",
            "most improved",
            "clutch player",
            "coach of the year",
        ),
        MarketCategory.AWARDS,
    ),
    (_has("playoff", "make the"), MarketCategory.PLAYOFFS),
    (_has("best record", "worst record"), MarketCategory.OTHER),
    (
        _has(
            "points per game",
            "rebounds per game",
            "assists per game",
            "three pointer",
            "blocks per game",
            "steals per game",
            "lead the nba",
        ),
        MarketCategory.STAT_LEADERS,
    ),
    (_has("win total", "over or under"), MarketCategory.WIN_TOTALS),
    (_GAME_WORDS, MarketCategory.GAMES),
    (_has(" vs ", " vs. "), MarketCategory.GAMES),
]

MARKET_TYPE_RULES: list[Rule] = [
    (_GAME_WORDS, MarketType.GAME),
    (_has("score", "points", "assists", "rebounds", "steals", "blocks"), MarketType.PLAYER_PROP),
    (_has("champion", "finals", "mvp"), MarketType.FUTURES),
    (_has("total", "over", "under"), MarketType.TOTAL),
]

# Titles with a sportsbook outright market to compare against.
SPORTSBOOK_COVERAGE_RULES: list[Rule] = [
    (_all(_has("champion"), _not(_has("conference"))), True),
    (_has("finals", "world series", "stanley cup", "super bowl"), True),
]


def classify_category(title: Optional[str]) -> MarketCategory:
    """Category of a Polymarket event from its title."""
    return _first_match(CATEGORY_RULES, _lower(title), MarketCategory.OTHER)


def classify_market_type(question: Optional[str]) -> MarketType:
    """Market type of a single question."""
    return _first_match(MARKET_TYPE_RULES, _lower(question), MarketType.OTHER)


def has_sportsbook_coverage(title: Optional[str]) -> bool:
    """True if sportsbooks price an outright market for this kind of title."""
    return _first_match(SPORTSBOOK_COVERAGE_RULES, _lower(title), False)


def parse_timestamp(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """
    Permissive ISO-8601 parse. Returns None for anything unreadable.

    Naive values are taken as local time.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    try:
        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
        # Must also exist in UTC so comparisons cannot overflow
        parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None
    return parsed


def _is_date_only(value: object) -> bool:
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    return isinstance(value, str) and len(value.strip()) == 10


def _end_of_week(day: date) -> date:
    # ISO week ends on Sunday
    return day + timedelta(days=6 - day.weekday())


def _end_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def classify_timeframe(
    resolution_date: Union[str, datetime, date, None],
    now: Optional[datetime] = None,
) -> Timeframe:
    """
    Bucket a resolution date relative to now (local calendar).

    past -> all, same day -> today, through Sunday -> week,
    through month end -> month, later -> futures, unparseable -> all.
    """
    end = parse_timestamp(resolution_date)
    if end is None:
        return Timeframe.ALL
    if _is_date_only(resolution_date):
        # A bare date resolves at the end of that day
        end = end.replace(hour=23, minute=59, second=59, microsecond=999999)

    current = parse_timestamp(now) if now is not None else datetime.now().astimezone()
    if current is None:
        return Timeframe.ALL

    try:
        if end < current:
            return Timeframe.ALL
        end_day = end.astimezone(current.tzinfo).date()
    except (ValueError, OverflowError):
        return Timeframe.ALL
    today = current.date()

    if end_day == today:
        return Timeframe.TODAY
    if end_day <= _end_of_week(today):
        return Timeframe.WEEK
    if end_day <= _end_of_month(today):
        return Timeframe.MONTH
    return Timeframe.FUTURES
