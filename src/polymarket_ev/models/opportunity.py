"""Matched opportunity and classification models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class Quality(str, Enum):
    """Display tier for EV%."""
    EXCELLENT = "excellent"  # >= 5%
    GOOD = "good"            # >= 2%
    MARGINAL = "marginal"


class MarketType(str, Enum):
    """Shape of the question a market asks."""
    GAME = "game"
    PLAYER_PROP = "player_prop"
    FUTURES = "futures"
    TOTAL = "total"
    OTHER = "other"


class Timeframe(str, Enum):
    """Resolution-date horizon relative to now."""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    FUTURES = "futures"
    ALL = "all"

    @property
    def label(self) -> str:
        return _TIMEFRAME_LABELS[self]


class MarketCategory(str, Enum):
    """Event category derived from the Polymarket event title."""
    CHAMPIONSHIP = "championship"
    CONFERENCE = "conference"
    DIVISION = "division"
    MVP = "mvp"
    AWARDS = "awards"
    PLAYOFFS = "playoffs"
    GAMES = "games"
    WIN_TOTALS = "win_totals"
    STAT_LEADERS = "stat_leaders"
    OTHER = "other"

    @property
    def label(self) -> str:
        if self is MarketCategory.MVP:
            return "MVP"
        return self.value.replace("_", " ").title()


_TIMEFRAME_LABELS = {
    Timeframe.TODAY: "Today",
    Timeframe.WEEK: "This Week",
    Timeframe.MONTH: "This Month",
    Timeframe.FUTURES: "Futures",
    Timeframe.ALL: "All",
}


class MatchContext(BaseModel):
    """What to match: sport label stamped on output, optional soccer league."""
    model_config = ConfigDict(frozen=True)

    sport: str
    league: Optional[str] = None


class MatchedOpportunity(BaseModel):
    """
    One Polymarket outcome, optionally paired with the best sportsbook quote.

    Without sportsbook fields the record is a Polymarket-only contract and
    carries no EV.
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    sport: str
    league: Optional[str] = None
    matchup: str
    outcome: str
    event_time: Optional[datetime] = None

    # Polymarket side
    polymarket_price: float = Field(ge=0, le=1)
    polymarket_implied_prob: float = Field(ge=0, le=100, description="Percent")
    polymarket_url: str
    polymarket_event_id: str
    polymarket_market_id: str
    polymarket_question: str = ""

    # Sportsbook side
    sportsbook_name: Optional[str] = None
    sportsbook_odds: Optional[float] = Field(default=None, description="American odds")
    sportsbook_implied_prob: Optional[float] = Field(default=None, description="Percent")
    true_probability: Optional[float] = Field(default=None, ge=0, le=1)

    # EV for the reference stake
    ev: Optional[float] = None
    ev_percent: Optional[float] = None
    profit_if_win_100: Optional[float] = Field(default=None, alias="profitIfWin100")
    expected_profit_100: Optional[float] = Field(default=None, alias="expectedProfit100")
    quality: Optional[Quality] = None

    market_type: MarketType
    timeframe: Timeframe
    category: MarketCategory

    @model_validator(mode="after")
    def _ev_follows_sportsbook(self) -> "MatchedOpportunity":
        if self.sportsbook_odds is not None:
            if self.ev_percent is None or self.ev is None or self.quality is None:
                raise ValueError("sportsbook_odds requires ev, ev_percent and quality")
        elif self.ev_percent is not None or self.ev is not None:
            raise ValueError("EV fields require sportsbook_odds")
        return self

    @property
    def has_sportsbook(self) -> bool:
        return self.sportsbook_odds is not None


class ScanResult(BaseModel):
    """Ranked opportunities plus fetch metadata for consumers."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    opportunities: list[MatchedOpportunity] = Field(default_factory=list)
    quota_remaining: Optional[int] = None
    odds_last_updated: Optional[datetime] = None
    polymarket_last_updated: Optional[datetime] = None
