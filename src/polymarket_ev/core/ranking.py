"""Deduplication and ordering of matched opportunities."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from polymarket_ev.models.opportunity import MatchedOpportunity, Timeframe

# Opportunities without an event time sort after every dated one.
_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def _time_key(opp: MatchedOpportunity) -> datetime:
    return opp.event_time or _FAR_FUTURE


def _ev_key(opp: MatchedOpportunity) -> float:
    return opp.ev_percent if opp.ev_percent is not None else float("-inf")


def dedupe_key(opp: MatchedOpportunity) -> str:
    return f"{opp.matchup}|{opp.outcome}"


def _preferred(current: MatchedOpportunity, challenger: MatchedOpportunity) -> MatchedOpportunity:
    """Earliest event time wins; on a tie the higher EV%; then first seen."""
    if _time_key(challenger) < _time_key(current):
        return challenger
    if _time_key(challenger) == _time_key(current) and _ev_key(challenger) > _ev_key(current):
        return challenger
    return current


def deduplicate(opportunities: Iterable[MatchedOpportunity]) -> list[MatchedOpportunity]:
    """Collapse candidates for the same matchup + outcome into one."""
    kept: dict[str, MatchedOpportunity] = {}
    for opp in opportunities:
        key = dedupe_key(opp)
        kept[key] = _preferred(kept[key], opp) if key in kept else opp
    return list(kept.values())


def sort_by_event_time(opportunities: Iterable[MatchedOpportunity]) -> list[MatchedOpportunity]:
    return sorted(opportunities, key=_time_key)


def sort_by_ev(opportunities: Iterable[MatchedOpportunity]) -> list[MatchedOpportunity]:
    return sorted(opportunities, key=_ev_key, reverse=True)


def final_sort(opportunities: Iterable[MatchedOpportunity]) -> list[MatchedOpportunity]:
    """Event time ascending, then EV% descending."""
    return sorted(opportunities, key=lambda o: (_time_key(o), -_ev_key(o)))


def filter_opportunities(
    opportunities: Iterable[MatchedOpportunity],
    ev_only: bool = False,
    timeframes: Optional[Iterable[Timeframe]] = None,
) -> list[MatchedOpportunity]:
    """
    Caller-side filters.

    ev_only keeps positive EV against a real sportsbook plus every
    sportsbook-less contract. timeframes keeps only the given horizons.
    """
    allowed = set(timeframes) if timeframes else None
    result: list[MatchedOpportunity] = []
    for opp in opportunities:
        if ev_only and opp.has_sportsbook and (opp.ev_percent or 0.0) <= 0:
            continue
        if allowed is not None and opp.timeframe not in allowed:
            continue
        result.append(opp)
    return result
