"""Core utilities."""

from polymarket_ev.core.odds_math import (
    EVResult,
    american_to_decimal,
    american_to_prob,
    compute_ev,
    ev_quality,
    implied_probability,
    payout,
    prob_to_american,
)
from polymarket_ev.core.names import (
    SOCCER_ALIASES,
    TEAM_ALIASES,
    AliasTable,
    load_alias_tables,
    names_match,
    soccer_names_match,
    suggest_aliases,
)
from polymarket_ev.core.matcher import MatchEngine
from polymarket_ev.core.scanner import find_opportunities
from polymarket_ev.core.pipeline import SPORTS, SportConfig, fetch_inputs, get_sport, run_scan

__all__ = [
    "EVResult",
    "american_to_decimal",
    "american_to_prob",
    "compute_ev",
    "ev_quality",
    "implied_probability",
    "payout",
    "prob_to_american",
    "SOCCER_ALIASES",
    "TEAM_ALIASES",
    "AliasTable",
    "load_alias_tables",
    "names_match",
    "soccer_names_match",
    "suggest_aliases",
    "MatchEngine",
    "find_opportunities",
    "SPORTS",
    "SportConfig",
    "fetch_inputs",
    "get_sport",
    "run_scan",
]
