"""
The Odds API adapter.

Fetches odds from multiple sportsbooks via The Odds API aggregator.
https://the-odds-api.com/

Requires API key (free tier: 500 requests/month). Every response reports
the remaining monthly quota in the ``x-requests-remaining`` header.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

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
from polymarket_ev.models.odds import OddsResponse, SportsbookEvent

logger = structlog.get_logger()

QUOTA_HEADER = "x-requests-remaining"


def parse_quota(headers: httpx.Headers) -> Optional[int]:
    raw = headers.get(QUOTA_HEADER)
    if raw is None:
        return None
    try:
        return int(float(raw))
    except ValueError:
        return None


def parse_events(raw_events: Any) -> list[SportsbookEvent]:
    """
    Validate the ``/odds`` payload event by event.

    A malformed event is skipped so one bad row never drops the sport.
    """
    if not isinstance(raw_events, list):
        return []
    events: list[SportsbookEvent] = []
    for raw in raw_events:
        try:
            events.append(SportsbookEvent.model_validate(raw))
        except ValidationError as exc:
            event_id = raw.get("id") if isinstance(raw, dict) else None
            logger.debug("odds_event_skipped", event_id=event_id, errors=exc.error_count())
    return events


class OddsAPIAdapter(ThrottledHTTPAdapter):
    """
    The Odds API adapter for fetching sportsbook odds.

    Read-only. Non-empty responses are cached in memory for ``cache_ttl``
    seconds per (sport, markets) to save quota.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.the-odds-api.com/v4",
        requests_per_second: float = 1.0,  # Conservative for free tier
        regions: str = "us",
        cache_ttl: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(base_url, requests_per_second, transport)
        self._api_key = api_key
        self._regions = regions
        self._cache_ttl = cache_ttl
        self._cache: dict[str, tuple[float, OddsResponse]] = {}
        self._clock = clock
        self.quota_remaining: Optional[int] = None

    @retry(
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.ConnectError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
    )
    async def _get(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        resp = await self._request(path, {**(params or {}), "apiKey": self._api_key})

        quota = parse_quota(resp.headers)
        if quota is not None:
            self.quota_remaining = quota
        return resp

    async def get_odds(
        self,
        sport: str,
        markets: str = "h2h",
        regions: Optional[str] = None,
        odds_format: str = "american",
    ) -> OddsResponse:
        """
        Get odds for all events in a sport.

        Args:
            sport: Sport key (e.g. "basketball_nba")
            markets: Comma-separated markets (h2h, h2h_3_way, outrights, ...)
            regions: Comma-separated regions (us, uk, eu, au); defaults to the adapter's
            odds_format: "american" or "decimal"

        Returns the parsed events and the remaining request quota.
        """
        cache_key = f"{sport}:{markets}"
        cached = self._cache.get(cache_key)
        if cached is not None and self._clock() - cached[0] < self._cache_ttl:
            logger.debug("odds_cache_hit", sport=sport, markets=markets)
            return cached[1]

        params = {
            "regions": regions or self._regions,
            "markets": markets,
            "oddsFormat": odds_format,
        }
        resp = await self._get(f"/sports/{sport}/odds", params=params)
        result = OddsResponse(events=parse_events(resp.json()), quota_remaining=self.quota_remaining)

        if result.events:
            self._cache[cache_key] = (self._clock(), result)

        logger.info(
            "odds_fetched",
            sport=sport,
            markets=markets,
            events=len(result.events),
            quota_remaining=result.quota_remaining,
        )
        return result
