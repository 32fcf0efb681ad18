"""Data models for Polymarket vs sportsbook comparison."""

from polymarket_ev.models.polymarket import Outcome, PolymarketEvent, PolymarketMarket
from polymarket_ev.models.odds import (
    BookMarket,
    BookOutcome,
    Bookmaker,
    MarketKey,
    OddsResponse,
    SportsbookEvent,
)
from polymarket_ev.models.opportunity import (
    MarketCategory,
    MarketType,
    MatchContext,
    MatchedOpportunity,
    Quality,
    ScanResult,
    Timeframe,
)

__all__ = [
    "Outcome",
    "PolymarketEvent",
    "PolymarketMarket",
    "BookMarket",
    "BookOutcome",
    "Bookmaker",
    "MarketKey",
    "OddsResponse",
    "SportsbookEvent",
    "MarketCategory",
    "MarketType",
    "MatchContext",
    "MatchedOpportunity",
    "Quality",
    "ScanResult",
    "Timeframe",
]
