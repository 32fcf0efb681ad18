"""Venue adapters for data ingestion."""

from polymarket_ev.adapters.odds_api import OddsAPIAdapter
from polymarket_ev.adapters.polymarket import SPORT_TAG_MAP, PolymarketAdapter

__all__ = ["OddsAPIAdapter", "PolymarketAdapter", "SPORT_TAG_MAP"]
