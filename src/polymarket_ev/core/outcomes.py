"""
Outcome extraction for Polymarket markets.

Gamma serializes outcome names, prices and token ids as JSON-ish strings,
sometimes with single quotes: "['Yes', 'No']", "[\"0.55\", \"0.45\"]".
Parsing never raises; anything unreadable becomes price 0 (no usable price).
"""

from __future__ import annotations

import json
import math
from typing import Any, Optional

from polymarket_ev.models.polymarket import Outcome, PolymarketMarket

YES = "yes"
NO = "no"


def _split_naive(raw: str) -> list[str]:
    body = raw.strip()
    if body.startswith("[") and body.endswith("]"):
        body = body[1:-1]
    if not body.strip():
        return []
    return [part.strip().strip("\"'").strip() for part in body.split(",")]


def parse_string_list(raw: Any) -> list[str]:
    """Decode a serialized array, falling back to a comma split."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return ["" if item is None else str(item) for item in raw]
    if not isinstance(raw, str):
        return [str(raw)]
    try:
        decoded = json.loads(raw.replace("'", '"'))
    except (ValueError, TypeError):
        return _split_naive(raw)
    if isinstance(decoded, list):
        return ["" if item is None else str(item) for item in decoded]
    return _split_naive(raw)


def parse_price(raw: Any) -> float:
    """Price in [0, 1]; anything else is 0."""
    try:
        price = float(raw)
    except (ValueError, TypeError):
        return 0.0
    if math.isnan(price) or price < 0 or price > 1:
        return 0.0
    return price


def parse_outcomes(market: PolymarketMarket) -> list[Outcome]:
    """Pair outcome names with prices (and token ids when present)."""
    names = parse_string_list(market.outcomes)
    prices = [parse_price(p) for p in parse_string_list(market.outcome_prices)]
    tokens = parse_string_list(market.clob_token_ids)

    outcomes: list[Outcome] = []
    for i, name in enumerate(names):
        outcomes.append(
            Outcome(
                name=name,
                price=prices[i] if i < len(prices) else 0.0,
                token_id=tokens[i] if i < len(tokens) and tokens[i] else None,
            )
        )
    return outcomes


def find_outcome(outcomes: list[Outcome], name: str) -> Optional[Outcome]:
    """Case-insensitive lookup by exact outcome name."""
    wanted = name.strip().lower()
    for outcome in outcomes:
        if outcome.name.strip().lower() == wanted:
            return outcome
    return None


def yes_outcome(outcomes: list[Outcome]) -> Optional[Outcome]:
    return find_outcome(outcomes, YES)


def is_yes_no(outcome: Outcome) -> bool:
    return outcome.name.strip().lower() in (YES, NO)
