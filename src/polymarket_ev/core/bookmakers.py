"""
Best-quote selection across bookmakers.

For a target outcome, scan every bookmaker's market and keep the most
generous line (highest decimal odds). Ties keep the first bookmaker seen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from polymarket_ev.core.names import (
    SOCCER_ALIASES,
    TEAM_ALIASES,
    AliasTable,
    names_match,
    soccer_names_match,
)
from polymarket_ev.core.odds_math import american_to_decimal, implied_probability
from polymarket_ev.models.odds import BookOutcome, Bookmaker, MarketKey, SportsbookEvent

DRAW = "Draw"
_DRAW_LABELS = ("draw", "tie", "x")
_HOME_LABELS = ("home", "1")
_AWAY_LABELS = ("away", "2")

SOCCER_MARKET_KEYS: tuple[MarketKey, ...] = (MarketKey.H2H_3_WAY, MarketKey.H2H)


@dataclass(frozen=True)
class BestQuote:
    """Most generous quote for one outcome."""
    bookmaker: str
    bookmaker_key: str
    outcome_name: str
    price: float  # American
    decimal_odds: float

    @property
    def true_probability(self) -> float:
        return implied_probability(self.decimal_odds)


def _decimal_or_none(outcome: BookOutcome) -> Optional[float]:
    price = outcome.price
    if price is None or not math.isfinite(price) or price == 0:
        return None
    return american_to_decimal(price)


def _keep_best(
    best: Optional[BestQuote],
    bookmaker: Bookmaker,
    outcome: BookOutcome,
    outcome_name: str,
) -> Optional[BestQuote]:
    decimal_odds = _decimal_or_none(outcome)
    if decimal_odds is None:
        return best
    if best is None or decimal_odds > best.decimal_odds:
        return BestQuote(
            bookmaker=bookmaker.title or bookmaker.key,
            bookmaker_key=bookmaker.key,
            outcome_name=outcome_name,
            price=outcome.price,
            decimal_odds=decimal_odds,
        )
    return best


def best_quote(
    event: SportsbookEvent,
    outcome_name: str,
    market_key: MarketKey | str = MarketKey.H2H,
    aliases: AliasTable = TEAM_ALIASES,
) -> Optional[BestQuote]:
    """
    Best quote for ``outcome_name`` in ``market_key`` across all bookmakers.

    Within one bookmaker the first outcome whose name matches is used.
    """
    best: Optional[BestQuote] = None
    for bookmaker in event.bookmakers:
        market = bookmaker.market(market_key)
        if market is None:
            continue
        for outcome in market.outcomes:
            if names_match(outcome.name, outcome_name, aliases):
                best = _keep_best(best, bookmaker, outcome, outcome.name)
                break
    return best


def is_draw(name: str) -> bool:
    return isinstance(name, str) and name.strip().lower() in _DRAW_LABELS


def resolve_line_label(event: SportsbookEvent, name: str) -> str:
    """Map generic "Home" / "Away" / "X" labels to the event's team names."""
    label = name.strip().lower()
    if label in _DRAW_LABELS:
        return DRAW
    if label in _HOME_LABELS and event.home_team:
        return event.home_team
    if label in _AWAY_LABELS and event.away_team:
        return event.away_team
    return name


def best_soccer_quote(
    event: SportsbookEvent,
    outcome_name: str,
    market_keys: Sequence[MarketKey] = SOCCER_MARKET_KEYS,
    aliases: AliasTable = SOCCER_ALIASES,
) -> Optional[BestQuote]:
    """
    Best three-way quote for a club or the draw.

    Checks both ``h2h_3_way`` and ``h2h`` per bookmaker.
    """
    want_draw = is_draw(outcome_name)
    best: Optional[BestQuote] = None

    for bookmaker in event.bookmakers:
        for key in market_keys:
            market = bookmaker.market(key)
            if market is None:
                continue
            for outcome in market.outcomes:
                label = resolve_line_label(event, outcome.name)
                if want_draw:
                    matched = label == DRAW
                else:
                    matched = label != DRAW and soccer_names_match(label, outcome_name, aliases)
                if matched:
                    best = _keep_best(best, bookmaker, outcome, label)
                    break
    return best
