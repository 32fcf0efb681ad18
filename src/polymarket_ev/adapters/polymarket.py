"""
Polymarket Gamma API adapter.

Public, read-only and unauthenticated. Sports events are listed by tag id.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from polymarket_ev.adapters.base import ThrottledHTTPAdapter
from polymarket_ev.models.polymarket import PolymarketEvent

logger = structlog.get_logger()

# Odds API sport key -> Polymarket tag id (from Gamma /sports)
SPORT_TAG_MAP: dict[str, str] = {
    "basketball_nba": "745",
    "basketball_nba_championship_winner": "745",
    "soccer_usa_mls": "100100",
    "americanfootball_nfl": "450",
    "icehockey_nhl": "899",
    "icehockey_nhl_championship_winner": "899",
    "baseball_mlb": "100381",
    "baseball_mlb_world_series_winner": "100381",
}


def parse_events(raw_events: Any) -> list[PolymarketEvent]:
    """Validate Gamma events one at a time, skipping malformed rows."""
    if not isinstance(raw_events, list):
        return []
    events: list[PolymarketEvent] = []
    for raw in raw_events:
        try:
            events.append(PolymarketEvent.model_validate(raw))
        except ValidationError as exc:
            event_id = raw.get("id") if isinstance(raw, dict) else None
            logger.debug("polymarket_event_skipped", event_id=event_id, errors=exc.error_count())
    return events


class PolymarketAdapter(ThrottledHTTPAdapter):
    """Read-only Gamma API adapter."""

    def __init__(
        self,
        base_url: str = "https://gamma-api.polymarket.com",
        requests_per_second: float = 5.0,
        event_limit: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(base_url, requests_per_second, transport)
        self._event_limit = event_limit

    @retry(
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.ConnectError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        resp = await self._request(path, params)
        return resp.json()

    async def list_events(self, tag_id: str, limit: Optional[int] = None) -> list[PolymarketEvent]:
        """Open events for a tag, soonest first."""
        params = {
            "tag_id": tag_id,
            "closed": "false",
            "limit": str(limit or self._event_limit),
            "order": "startDate",
            "ascending": "true",
        }
        events = parse_events(await self._get("/events", params=params))
        logger.info("polymarket_events_fetched", tag_id=tag_id, events=len(events))
        return events

    async def events_for_sport(self, sport_key: str) -> list[PolymarketEvent]:
        """Open events for an Odds API sport key; unknown sports yield []."""
        tag_id = SPORT_TAG_MAP.get(sport_key)
        if tag_id is None:
            logger.debug("polymarket_sport_unmapped", sport_key=sport_key)
            return []
        return await self.list_events(tag_id)
