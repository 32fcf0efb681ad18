"""
Odds conversion and expected-value mathematics.

All probability values are decimals in [0, 1].
American odds are integers (e.g., -110, +150) and never zero.
Decimal odds are floats >= 1.0 (e.g., 1.91, 2.50).
Polymarket prices are fractions in [0, 1]; one share redeems for $1.

EV = (win probability x profit if won) - (loss probability x stake),
where the win probability comes from the sportsbook line and the payout
comes from the Polymarket price.
"""

from __future__ import annotations

from dataclasses import dataclass

from polymarket_ev.models.opportunity import Quality

EXCELLENT_EV_PCT = 5.0
GOOD_EV_PCT = 2.0


@dataclass(frozen=True)
class EVResult:
    """EV breakdown for one stake."""
    decimal_odds: float
    true_probability: float
    payout: float
    profit_if_win: float
    ev: float
    ev_percent: float

    @property
    def quality(self) -> Quality:
        return ev_quality(self.ev_percent)


def american_to_decimal(odds: float) -> float:
    """
    Convert American odds to decimal odds.

    Examples:
        >>> american_to_decimal(+5000)
        51.0
        >>> american_to_decimal(-200)
        1.5
    """
    if odds == 0:
        raise ValueError("American odds cannot be 0")
    if odds > 0:
        return 1 + odds / 100
    return 1 + 100 / abs(odds)


def implied_probability(decimal_odds: float) -> float:
    """
    Convert decimal odds to implied probability.

    Examples:
        >>> implied_probability(2.00)
        0.5
        >>> implied_probability(2.50)
        0.4
    """
    if decimal_odds <= 0:
        raise ValueError(f"Decimal odds must be > 0, got {decimal_odds}")
    return 1.0 / decimal_odds


def american_to_prob(odds: float) -> float:
    """
    Convert American odds straight to implied probability.

    Examples:
        >>> american_to_prob(-110)  # Favorite
        0.5238...
        >>> american_to_prob(+150)  # Underdog
        0.4
    """
    return implied_probability(american_to_decimal(odds))


def prob_to_american(prob: float) -> float:
    """
    Convert probability to American odds.

    Used to show a Polymarket price in sportsbook terms.
    """
    if prob <= 0 or prob >= 1:
        raise ValueError(f"Probability must be in (0, 1), got {prob}")

    if prob >= 0.5:
        # Favorite (negative odds)
        return -100 * prob / (1 - prob)
    else:
        # Underdog (positive odds)
        return 100 * (1 - prob) / prob


def payout(stake: float, market_price: float) -> float:
    """
    Polymarket payout if the outcome hits.

    stake / price shares, each redeeming for $1. A non-positive price is an
    unfilled line and pays nothing.
    """
    if market_price <= 0:
        return 0.0
    shares = stake / market_price
    return shares * 1.0


def compute_ev(stake: float, market_price: float, american_odds: float) -> EVResult:
    """
    Expected value of buying ``stake`` dollars of a Polymarket outcome.

    Args:
        stake: Dollars staked
        market_price: Polymarket price in (0, 1]
        american_odds: Sportsbook line for the same outcome (win probability proxy)

    Examples:
        >>> abs(compute_ev(100, 0.40, +150).ev) < 1e-9  # Breakeven
        True
        >>> round(compute_ev(100, 0.30, +150).ev_percent, 2)
        33.33
    """
    if market_price <= 0:
        raise ValueError(f"Market price must be > 0, got {market_price}")

    decimal_odds = american_to_decimal(american_odds)
    win_prob = implied_probability(decimal_odds)
    loss_prob = 1 - win_prob

    total = payout(stake, market_price)
    profit_if_win = total - stake

    ev = win_prob * profit_if_win - loss_prob * stake
    ev_percent = (ev / stake) * 100 if stake > 0 else 0.0

    return EVResult(
        decimal_odds=decimal_odds,
        true_probability=win_prob,
        payout=total,
        profit_if_win=profit_if_win,
        ev=ev,
        ev_percent=ev_percent,
    )


def ev_quality(ev_percent: float) -> Quality:
    """Bucket EV% into excellent (>= 5), good (>= 2) or marginal."""
    if ev_percent >= EXCELLENT_EV_PCT:
        return Quality.EXCELLENT
    if ev_percent >= GOOD_EV_PCT:
        return Quality.GOOD
    return Quality.MARGINAL
