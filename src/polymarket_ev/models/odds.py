"""Sportsbook odds models (The Odds API v4 event shape)."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MarketKey(str, Enum):
    """Sportsbook market keys."""
    H2H = "h2h"  # Head-to-head (moneyline)
    H2H_3_WAY = "h2h_3_way"  # Home / Draw / Away
    OUTRIGHTS = "outrights"  # Futures
    TOTALS = "totals"
    SPREADS = "spreads"


class BookOutcome(BaseModel):
    """A single priced selection inside a bookmaker market."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    price: float = Field(description="American odds (never zero)")
    point: Optional[float] = None  # Spread / total line


class BookMarket(BaseModel):
    """One market (h2h, outrights, ...) offered by a bookmaker."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    key: str
    last_update: Optional[str] = None
    outcomes: list[BookOutcome] = Field(default_factory=list)


class Bookmaker(BaseModel):
    """A sportsbook and the markets it prices for one event."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    key: str = ""
    title: str = ""
    last_update: Optional[str] = None
    markets: list[BookMarket] = Field(default_factory=list)

    def market(self, key: str | MarketKey) -> Optional[BookMarket]:
        """First market with the given key, if offered."""
        wanted = key.value if isinstance(key, MarketKey) else key
        for market in self.markets:
            if market.key == wanted:
                return market
        return None


class SportsbookEvent(BaseModel):
    """
    A sportsbook event with every bookmaker's quotes.

    Outright events (e.g. championship winner) have no home/away team.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = ""
    sport_key: str = ""
    sport_title: str = ""
    commence_time: Optional[str] = None
    home_team: Optional[str] = None
    away_team: Optional[str] = None
    bookmakers: list[Bookmaker] = Field(default_factory=list)

    @property
    def label(self) -> str:
        if self.home_team and self.away_team:
            return f"{self.home_team} vs {self.away_team}"
        return self.sport_title or self.id


class OddsResponse(BaseModel):
    """Events returned by one odds fetch plus the provider's remaining quota."""
    events: list[SportsbookEvent] = Field(default_factory=list)
    quota_remaining: Optional[int] = None
