"""Polymarket event and market models."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

POLYMARKET_EVENT_URL = "https://polymarket.com/event"

# Gamma API serializes these arrays as strings ("[\"Yes\", \"No\"]"),
# but already-decoded lists are accepted too.
SerializedList = Union[str, list]


class Outcome(BaseModel):
    """A parsed (name, price) outcome of a Polymarket market."""
    model_config = ConfigDict(frozen=True)

    name: str
    price: float = Field(default=0.0, description="Probability in [0, 1]; 0 means no usable price")
    token_id: Optional[str] = None


class PolymarketMarket(BaseModel):
    """
    A sub-market of a Polymarket event.

    Outcome names and prices are parallel arrays.
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: str
    question: str = ""
    condition_id: Optional[str] = None
    slug: Optional[str] = None
    outcomes: Optional[SerializedList] = "[]"
    outcome_prices: Optional[SerializedList] = "[]"
    clob_token_ids: Optional[SerializedList] = None
    group_item_title: Optional[str] = None
    game_start_time: Optional[str] = None


class PolymarketEvent(BaseModel):
    """A Polymarket event grouping one or more markets."""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: str
    slug: Optional[str] = None
    title: Optional[str] = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    closed: bool = False
    markets: list[PolymarketMarket] = Field(default_factory=list)

    @property
    def url(self) -> str:
        return f"{POLYMARKET_EVENT_URL}/{self.slug or self.id}"
