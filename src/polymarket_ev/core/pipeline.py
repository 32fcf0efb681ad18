"""
Fetch-then-match pipeline.

Game odds, futures odds and Polymarket events are fetched concurrently; a
failed source degrades to an empty list so partial data is still matched.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import structlog

from polymarket_ev.core.names import SOCCER_ALIASES, TEAM_ALIASES, AliasTable
from polymarket_ev.core.scanner import find_opportunities
from polymarket_ev.models.odds import OddsResponse, SportsbookEvent
from polymarket_ev.models.opportunity import MatchContext, ScanResult, Timeframe
from polymarket_ev.models.polymarket import PolymarketEvent

logger = structlog.get_logger()


@dataclass(frozen=True)
class SportConfig:
    """Where one sport's data comes from and how it is labelled."""
    key: str
    label: str
    odds_game_sport: str
    polymarket_sport: str
    odds_futures_sport: Optional[str] = None
    league: Optional[str] = None
    game_markets: str = "h2h"

    @property
    def context(self) -> MatchContext:
        return MatchContext(sport=self.label, league=self.league)


SPORTS: dict[str, SportConfig] = {
    "nba": SportConfig(
        key="nba",
        label="NBA",
        odds_game_sport="basketball_nba",
        odds_futures_sport="basketball_nba_championship_winner",
        polymarket_sport="basketball_nba",
    ),
    "nhl": SportConfig(
        key="nhl",
        label="NHL",
        odds_game_sport="icehockey_nhl",
        odds_futures_sport="icehockey_nhl_championship_winner",
        polymarket_sport="icehockey_nhl",
    ),
    "mlb": SportConfig(
        key="mlb",
        label="MLB",
        odds_game_sport="baseball_mlb",
        odds_futures_sport="baseball_mlb_world_series_winner",
        polymarket_sport="baseball_mlb",
    ),
    "nfl": SportConfig(
        key="nfl",
        label="NFL",
        odds_game_sport="americanfootball_nfl",
        polymarket_sport="americanfootball_nfl",
    ),
    "mls": SportConfig(
        key="mls",
        label="Soccer",
        odds_game_sport="soccer_usa_mls",
        polymarket_sport="soccer_usa_mls",
        league="MLS",
    ),
    "epl": SportConfig(
        key="epl",
        label="Soccer",
        odds_game_sport="soccer_epl",
        polymarket_sport="soccer_epl",
        league="EPL",
    ),
}


def get_sport(key: str) -> SportConfig:
    """Look up a registered sport, raising KeyError with the known keys."""
    try:
        return SPORTS[key.lower()]
    except KeyError:
        raise KeyError(f"Unknown sport '{key}'. Known: {', '.join(SPORTS)}") from None


class OddsSource(Protocol):
    async def get_odds(self, sport: str, markets: str = ...) -> OddsResponse: ...


class ContractSource(Protocol):
    async def events_for_sport(self, sport_key: str) -> list[PolymarketEvent]: ...


@dataclass
class ScanInputs:
    """Everything one scan needs, already deserialized."""
    contracts: list[PolymarketEvent] = field(default_factory=list)
    game_quotes: list[SportsbookEvent] = field(default_factory=list)
    futures_quotes: list[SportsbookEvent] = field(default_factory=list)
    quota_remaining: Optional[int] = None
    odds_fetched_at: Optional[datetime] = None
    polymarket_fetched_at: Optional[datetime] = None


async def _no_odds() -> OddsResponse:
    return OddsResponse()


def _degrade(source: str, sport: SportConfig, result: Any, empty: Any) -> Any:
    if isinstance(result, Exception):
        logger.warning("fetch_failed", source=source, sport=sport.key, error=str(result) or type(result).__name__)
        return empty
    if isinstance(result, BaseException):
        # Cancellation and interpreter exits are not fetch failures
        raise result
    return result


async def fetch_inputs(
    sport: SportConfig,
    odds_api: Optional[OddsSource],
    polymarket: ContractSource,
) -> ScanInputs:
    """
    Fetch the three sources concurrently.

    ``odds_api`` may be None (no API key); contracts are then matched
    against nothing.
    """
    game_call = odds_api.get_odds(sport.odds_game_sport, sport.game_markets) if odds_api else _no_odds()
    futures_call = (
        odds_api.get_odds(sport.odds_futures_sport, "outrights")
        if odds_api and sport.odds_futures_sport
        else _no_odds()
    )

    game_odds, futures_odds, contracts = await asyncio.gather(
        game_call,
        futures_call,
        polymarket.events_for_sport(sport.polymarket_sport),
        return_exceptions=True,
    )
    now = datetime.now(timezone.utc)

    game_odds = _degrade("odds_games", sport, game_odds, OddsResponse())
    futures_odds = _degrade("odds_futures", sport, futures_odds, OddsResponse())
    contracts = _degrade("polymarket", sport, contracts, [])

    quotas = [q for q in (game_odds.quota_remaining, futures_odds.quota_remaining) if q is not None]

    return ScanInputs(
        contracts=contracts,
        game_quotes=game_odds.events,
        futures_quotes=futures_odds.events,
        quota_remaining=min(quotas) if quotas else None,
        odds_fetched_at=now if odds_api else None,
        polymarket_fetched_at=now,
    )


async def run_scan(
    sport: SportConfig,
    odds_api: Optional[OddsSource],
    polymarket: ContractSource,
    *,
    include_unmatched: bool = False,
    ev_only: bool = False,
    timeframes: Optional[list[Timeframe]] = None,
    reference_stake: float = 100.0,
    min_price_cents: float = 1.0,
    team_aliases: AliasTable = TEAM_ALIASES,
    soccer_aliases: AliasTable = SOCCER_ALIASES,
) -> ScanResult:
    """Fetch inputs for ``sport`` and match them. Log records inside carry ``sport_key``."""
    with structlog.contextvars.bound_contextvars(sport_key=sport.key):
        inputs = await fetch_inputs(sport, odds_api, polymarket)

        opportunities = find_opportunities(
            inputs.contracts,
            inputs.game_quotes,
            sport.context,
            futures_quotes=inputs.futures_quotes,
            include_unmatched=include_unmatched,
            ev_only=ev_only,
            timeframes=timeframes,
            reference_stake=reference_stake,
            min_price_cents=min_price_cents,
            team_aliases=team_aliases,
            soccer_aliases=soccer_aliases,
        )

    return ScanResult(
        opportunities=opportunities,
        quota_remaining=inputs.quota_remaining,
        odds_last_updated=inputs.odds_fetched_at,
        polymarket_last_updated=inputs.polymarket_fetched_at,
    )
