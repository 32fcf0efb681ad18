"""
Pytest fixtures for testing.
"""

from datetime import datetime, timezone

import pytest

from polymarket_ev.models.odds import SportsbookEvent
from polymarket_ev.models.polymarket import PolymarketEvent

# Fixed clock for timeframe-dependent assertions (a Wednesday)
NOW = datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc)


def make_polymarket_event(
    event_id: str = "ev1",
    title: str = "Lakers vs Celtics",
    markets: list[dict] | None = None,
    **extra,
) -> PolymarketEvent:
    """Build a Gamma-shaped event (camelCase keys, serialized arrays)."""
    payload = {
        "id": event_id,
        "slug": f"slug-{event_id}",
        "title": title,
        "startDate": "2026-03-12T00:00:00Z",
        "endDate": "2026-03-12T03:00:00Z",
        "closed": False,
        "markets": markets or [],
    }
    payload.update(extra)
    return PolymarketEvent.model_validate(payload)


def make_market(
    market_id: str = "m1",
    question: str = "Will the Los Angeles Lakers beat the Boston Celtics?",
    outcomes: str = '["Yes", "No"]',
    prices: str = '["0.55", "0.45"]',
    **extra,
) -> dict:
    market = {
        "id": market_id,
        "question": question,
        "outcomes": outcomes,
        "outcomePrices": prices,
    }
    market.update(extra)
    return market


def make_odds_event(
    event_id: str = "odds1",
    home: str | None = "Los Angeles Lakers",
    away: str | None = "Boston Celtics",
    books: list[tuple[str, str, list[tuple[str, float]]]] | None = None,
    commence_time: str = "2026-03-12T00:10:00Z",
) -> SportsbookEvent:
    """
    Build an Odds API event.

    ``books`` is a list of (bookmaker title, market key, [(outcome, price)]).
    """
    books = books if books is not None else [
        ("BookA", "h2h", [("Los Angeles Lakers", -120), ("Boston Celtics", 100)]),
    ]
    return SportsbookEvent.model_validate(
        {
            "id": event_id,
            "sport_key": "basketball_nba",
            "sport_title": "NBA",
            "commence_time": commence_time,
            "home_team": home,
            "away_team": away,
            "bookmakers": [
                {
                    "key": title.lower(),
                    "title": title,
                    "markets": [
                        {"key": key, "outcomes": [{"name": n, "price": p} for n, p in outcomes]},
                    ],
                }
                for title, key, outcomes in books
            ],
        }
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def lakers_celtics_contract() -> PolymarketEvent:
    """The canonical head-to-head contract."""
    return make_polymarket_event(markets=[make_market()])


@pytest.fixture
def lakers_celtics_quote() -> SportsbookEvent:
    return make_odds_event()
