"""
Scanner – runs the match strategies for one sport and ranks the result.

A league in the context selects the soccer strategy; otherwise head-to-head
games and futures are matched and combined.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

import structlog

from polymarket_ev.core.matcher import MatchEngine
from polymarket_ev.core.names import SOCCER_ALIASES, TEAM_ALIASES, AliasTable
from polymarket_ev.core.ranking import filter_opportunities, final_sort
from polymarket_ev.models.odds import SportsbookEvent
from polymarket_ev.models.opportunity import MatchContext, MatchedOpportunity, Timeframe
from polymarket_ev.models.polymarket import PolymarketEvent

logger = structlog.get_logger()


def find_opportunities(
    contracts: Sequence[PolymarketEvent],
    quotes: Sequence[SportsbookEvent],
    context: MatchContext,
    futures_quotes: Optional[Sequence[SportsbookEvent]] = None,
    *,
    include_unmatched: bool = False,
    ev_only: bool = False,
    timeframes: Optional[Iterable[Timeframe]] = None,
    reference_stake: float = 100.0,
    min_price_cents: float = 1.0,
    team_aliases: AliasTable = TEAM_ALIASES,
    soccer_aliases: AliasTable = SOCCER_ALIASES,
    now: Optional[datetime] = None,
) -> list[MatchedOpportunity]:
    """
    Match Polymarket contracts against sportsbook quotes.

    Args:
        contracts: Polymarket events for the sport.
        quotes: Sportsbook events carrying game lines (``h2h`` / ``h2h_3_way``).
        context: Sport label and optional soccer league.
        futures_quotes: Sportsbook events carrying ``outrights``; defaults to
            ``quotes``.
        include_unmatched: Also emit contracts without a sportsbook line.
        ev_only: Drop sportsbook-backed entries with EV% <= 0.
        timeframes: Keep only these resolution horizons.

    Returns:
        Opportunities sorted by event time, then EV% descending.
    """
    engine = MatchEngine(
        reference_stake=reference_stake,
        min_price_cents=min_price_cents,
        include_unmatched=include_unmatched,
        team_aliases=team_aliases,
        soccer_aliases=soccer_aliases,
        now=now,
    )

    if context.league:
        combined = engine.match_soccer_h2h(contracts, quotes, context.sport, context.league)
    else:
        games = engine.match_h2h_games(contracts, quotes, context.sport)
        futures = engine.match_outrights(
            contracts,
            futures_quotes if futures_quotes is not None else quotes,
            context.sport,
        )
        combined = games + futures

    ranked = final_sort(combined)
    result = filter_opportunities(ranked, ev_only=ev_only, timeframes=timeframes)

    logger.info(
        "scan_complete",
        sport=context.sport,
        league=context.league,
        contracts=len(contracts),
        quotes=len(quotes),
        matched=len(combined),
        returned=len(result),
    )
    return result
