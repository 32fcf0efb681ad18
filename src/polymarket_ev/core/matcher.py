"""
Match engine – pairs Polymarket contracts with sportsbook lines.

Three strategies share one shape: walk Polymarket events, classify each
market, pick a usable price, look for the structurally equivalent
sportsbook outcome, emit a MatchedOpportunity.

- Head-to-head: team vs team games (two-outcome moneyline).
- Soccer: three-outcome match result (home / draw / away).
- Outrights: championship, MVP and award futures.

Malformed or ambiguous input is skipped, never raised: a wrong pairing is
worse than a missing one.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

import structlog

from polymarket_ev.core.bookmakers import (
    DRAW,
    BestQuote,
    best_quote,
    best_soccer_quote,
    is_draw,
)
from polymarket_ev.core.classifier import (
    classify_category,
    classify_market_type,
    classify_timeframe,
    has_sportsbook_coverage,
    parse_timestamp,
)
from polymarket_ev.core.names import (
    SOCCER_ALIASES,
    TEAM_ALIASES,
    AliasTable,
    names_match,
    soccer_names_match,
)
from polymarket_ev.core.odds_math import compute_ev
from polymarket_ev.core.outcomes import is_yes_no, parse_outcomes, yes_outcome
from polymarket_ev.core.ranking import deduplicate, sort_by_ev, sort_by_event_time
from polymarket_ev.models.odds import MarketKey, SportsbookEvent
from polymarket_ev.models.opportunity import (
    MarketCategory,
    MarketType,
    MatchedOpportunity,
    Timeframe,
)
from polymarket_ev.models.polymarket import PolymarketEvent, PolymarketMarket

logger = structlog.get_logger()

# Head-to-head sanity band: a book favourite priced as a Polymarket underdog
# (or the reverse) means the names paired the wrong teams.
SANITY_LOW = 0.45
SANITY_HIGH = 0.55

_MORE_MARKETS = re.compile(r"\s*-\s*more markets\s*$", re.IGNORECASE)
_TRAILING_DATE = r"(?:\s+(?:on|in)\s+[\w\-/, ]+?)?"


@dataclass(frozen=True)
class GameTeams:
    """The two sides named by a game market."""
    team1: str
    team2: str
    yes_is_team1: bool  # "Yes" means team1 wins


# ── Team extraction ────────────────────────────────────────────────────────

# (pattern, yes_is_team1), first match wins
QUESTION_TEAM_RULES: list[tuple[re.Pattern[str], bool]] = [
    (
        re.compile(
            r"^\s*will\s+(?:the\s+)?(?P<team1>.+?)\s+(?:beat|defeat|win\s+against)\s+"
            r"(?:the\s+)?(?P<team2>.+?)" + _TRAILING_DATE + r"\s*\??\s*$",
            re.IGNORECASE,
        ),
        True,
    ),
]

TITLE_TEAM_RULES: list[tuple[re.Pattern[str], bool]] = [
    (re.compile(r"^\s*(?P<team1>.+?)\s+vs\.?\s+(?P<team2>.+?)\s*\??\s*$", re.IGNORECASE), False),
    (re.compile(r"^\s*(?P<team1>.+?)\s+-\s+(?P<team2>.+?)\s*\??\s*$", re.IGNORECASE), False),
]

_SOCCER_WIN = re.compile(r"^\s*will\s+(?:the\s+)?(?P<team>.+?)\s+win(?:\s+on\b.*|\s*\??\s*)$", re.IGNORECASE)
_SOCCER_DRAW = re.compile(r"end\s+in\s+(?:a\s+)?draw", re.IGNORECASE)

_FUTURES_ENTRANT = re.compile(
    r"^\s*will\s+(?:the\s+)?(?P<entrant>[^?]+?)\s+(?:win|make|lead|record|finish|have)\b",
    re.IGNORECASE,
)

# Markets outside the head-to-head strategy
H2H_REJECT_RULES: list[tuple[str, re.Pattern[str]]] = [
    (
        "player_stat",
        re.compile(
            r"\b(?:points|pts|rebounds|assists|steals|blocks|threes|3-pointers|"
            r"yards|touchdowns?|strikeouts|player)\b"
        ),
    ),
    (
        "partial_game",
        re.compile(
            r"\b(?:1st|2nd|first|second)\s+half\b|\b(?:1h|2h|halftime|quarter|q[1-4]|"
            r"period|inning|innings|first\s+5)\b"
        ),
    ),
    ("spread_total", re.compile(r"\b(?:spread|handicap|total|over|under)\b|o/u|over/under")),
    ("decimal_line", re.compile(r"\d+\.\d+")),
]


def _clean_title(title: str) -> str:
    return _MORE_MARKETS.sub("", title or "").strip()


def _apply_team_rules(text: str, rules: list[tuple[re.Pattern[str], bool]]) -> Optional[GameTeams]:
    for pattern, yes_is_team1 in rules:
        m = pattern.match(text or "")
        if not m:
            continue
        team1 = m.group("team1").strip(" ?")
        team2 = m.group("team2").strip(" ?")
        if team1 and team2:
            return GameTeams(team1=team1, team2=team2, yes_is_team1=yes_is_team1)
    return None


def extract_game_teams(question: str, title: str = "") -> Optional[GameTeams]:
    """
    Teams from "Will X beat Y?" style questions, else "X vs Y" / "X - Y".

    Only the question phrasing ties "Yes" to team 1.
    """
    return (
        _apply_team_rules(question, QUESTION_TEAM_RULES)
        or _apply_team_rules(_clean_title(question), TITLE_TEAM_RULES)
        or _apply_team_rules(_clean_title(title), TITLE_TEAM_RULES)
    )


def extract_soccer_teams(title: str) -> Optional[GameTeams]:
    """Teams from "Chelsea FC vs. Burnley FC - More Markets"."""
    return _apply_team_rules(_clean_title(title), TITLE_TEAM_RULES[:1])


def extract_futures_entrant(question: str) -> Optional[str]:
    """Team or player from "Will (the) X win/make/lead ... ?"."""
    m = _FUTURES_ENTRANT.match(question or "")
    return m.group("entrant").strip() if m else None


def h2h_reject_reason(question: str, title: str = "") -> Optional[str]:
    """Why a market is not a plain full-game moneyline, if it is not."""
    text = f"{question or ''} {title or ''}".lower()
    for reason, pattern in H2H_REJECT_RULES:
        if pattern.search(text):
            return reason
    return None


def fails_sanity_band(polymarket_prob: float, sportsbook_prob: float) -> bool:
    """Opposite sides of 50% by a wide margin."""
    return (polymarket_prob < SANITY_LOW and sportsbook_prob > SANITY_HIGH) or (
        polymarket_prob > SANITY_HIGH and sportsbook_prob < SANITY_LOW
    )


def _event_pairing(
    odds_event: SportsbookEvent,
    team1: str,
    team2: str,
    match,
) -> Optional[tuple[str, str]]:
    """Sportsbook names for (team1, team2) if the event is this matchup."""
    home = odds_event.home_team or ""
    away = odds_event.away_team or ""
    if not home or not away:
        return None
    if match(home, team1) and match(away, team2):
        return home, away
    if match(home, team2) and match(away, team1):
        return away, home
    return None



def _nearest_first(
    paired: list[tuple[SportsbookEvent, tuple[str, str]]],
    game_time: Optional[datetime],
) -> list[tuple[SportsbookEvent, tuple[str, str]]]:
    """
    Order sportsbook events of the same matchup by distance from the contract's
    game time. Unknown commence times go last; without a game time the feed
    order is kept.
    """
    if game_time is None:
        return paired

    def distance(item: tuple[SportsbookEvent, tuple[str, str]]) -> float:
        commence = parse_timestamp(item[0].commence_time)
        if commence is None:
            return float("inf")
        return abs((commence - game_time).total_seconds())

    return sorted(paired, key=distance)


class MatchEngine:
    """
    Stateless matcher configured once; every call is a pure function of its
    inputs.
    """

    def __init__(
        self,
        reference_stake: float = 100.0,
        min_price_cents: float = 1.0,
        include_unmatched: bool = False,
        team_aliases: AliasTable = TEAM_ALIASES,
        soccer_aliases: AliasTable = SOCCER_ALIASES,
        now: Optional[datetime] = None,
    ) -> None:
        self.reference_stake = reference_stake
        self.min_price_cents = min_price_cents
        self.include_unmatched = include_unmatched
        self.team_aliases = team_aliases
        self.soccer_aliases = soccer_aliases
        self.now = now

    # ── Shared helpers ─────────────────────────────────────────────────────

    def _usable(self, price: float) -> bool:
        return price > 0 and price * 100 >= self.min_price_cents

    def _timeframe(self, *dates: Optional[str]) -> Timeframe:
        for value in dates:
            if value:
                return classify_timeframe(value, now=self.now)
        return Timeframe.ALL

    def _build(
        self,
        *,
        opp_id: str,
        sport: str,
        league: Optional[str],
        pm_event: PolymarketEvent,
        market: PolymarketMarket,
        matchup: str,
        outcome: str,
        price: float,
        event_time: Optional[str],
        quote: Optional[BestQuote],
        market_type: MarketType,
        timeframe: Timeframe,
        category: MarketCategory,
    ) -> MatchedOpportunity:
        fields: dict = {}
        if quote is not None:
            result = compute_ev(self.reference_stake, price, quote.price)
            fields = dict(
                sportsbook_name=quote.bookmaker,
                sportsbook_odds=quote.price,
                sportsbook_implied_prob=result.true_probability * 100,
                true_probability=result.true_probability,
                ev=result.ev,
                ev_percent=result.ev_percent,
                profit_if_win_100=result.profit_if_win,
                expected_profit_100=result.ev,
                quality=result.quality,
            )
        return MatchedOpportunity(
            id=opp_id,
            sport=sport,
            league=league,
            matchup=matchup,
            outcome=outcome,
            event_time=parse_timestamp(event_time),
            polymarket_price=price,
            polymarket_implied_prob=price * 100,
            polymarket_url=pm_event.url,
            polymarket_event_id=pm_event.id,
            polymarket_market_id=market.id,
            polymarket_question=market.question or "",
            market_type=market_type,
            timeframe=timeframe,
            category=category,
            **fields,
        )

    # ── Head-to-head ───────────────────────────────────────────────────────

    def _h2h_price(self, market: PolymarketMarket, teams: GameTeams) -> Optional[float]:
        outcomes = parse_outcomes(market)
        for outcome in outcomes:
            if not is_yes_no(outcome) and names_match(outcome.name, teams.team1, self.team_aliases):
                return outcome.price
        if teams.yes_is_team1:
            yes = yes_outcome(outcomes)
            if yes is not None:
                return yes.price
        return None

    def match_h2h_games(
        self,
        polymarket_events: Sequence[PolymarketEvent],
        odds_events: Sequence[SportsbookEvent],
        sport: str,
    ) -> list[MatchedOpportunity]:
        """Team-vs-team games against sportsbook ``h2h`` lines, soonest first."""
        candidates: list[MatchedOpportunity] = []

        for pm_event in polymarket_events:
            title = pm_event.title or ""
            for market in pm_event.markets:
                question = market.question or ""
                teams = extract_game_teams(question, title)
                if teams is None:
                    continue

                reason = h2h_reject_reason(question, title)
                if reason:
                    logger.debug("h2h_market_skipped", market_id=market.id, reason=reason)
                    continue

                price = self._h2h_price(market, teams)
                if price is None or not self._usable(price):
                    continue

                paired = []
                for odds_event in odds_events:
                    pairing = _event_pairing(
                        odds_event,
                        teams.team1,
                        teams.team2,
                        lambda a, b: names_match(a, b, self.team_aliases),
                    )
                    if pairing is not None:
                        paired.append((odds_event, pairing))
                game_time = parse_timestamp(market.game_start_time or pm_event.start_date)

                # One sportsbook game per contract: the nearest one with a line
                found = False
                rejected = False
                for odds_event, (book_team1, book_team2) in _nearest_first(paired, game_time):
                    quote = best_quote(odds_event, book_team1, MarketKey.H2H, self.team_aliases)
                    if quote is None:
                        continue

                    if fails_sanity_band(price, quote.true_probability):
                        rejected = True
                        logger.debug(
                            "h2h_sanity_rejected",
                            market_id=market.id,
                            polymarket_price=price,
                            sportsbook_prob=round(quote.true_probability, 4),
                            odds_event_id=odds_event.id,
                        )
                        break

                    found = True
                    candidates.append(
                        self._build(
                            opp_id=f"{pm_event.id}-{market.id}-h2h",
                            sport=sport,
                            league=None,
                            pm_event=pm_event,
                            market=market,
                            matchup=f"{book_team1} vs {book_team2}",
                            outcome=quote.outcome_name,
                            price=price,
                            event_time=market.game_start_time or pm_event.start_date
                            or odds_event.commence_time or pm_event.end_date,
                            quote=quote,
                            market_type=MarketType.GAME,
                            timeframe=self._timeframe(pm_event.end_date, pm_event.start_date),
                            category=MarketCategory.GAMES,
                        )
                    )
                    break

                if not found and not rejected and self.include_unmatched:
                    candidates.append(
                        self._build(
                            opp_id=f"{pm_event.id}-{market.id}-h2h",
                            sport=sport,
                            league=None,
                            pm_event=pm_event,
                            market=market,
                            matchup=f"{teams.team1} vs {teams.team2}",
                            outcome=teams.team1,
                            price=price,
                            event_time=market.game_start_time or pm_event.start_date or pm_event.end_date,
                            quote=None,
                            market_type=MarketType.GAME,
                            timeframe=self._timeframe(pm_event.end_date, pm_event.start_date),
                            category=MarketCategory.GAMES,
                        )
                    )

        opportunities = sort_by_event_time(deduplicate(candidates))
        logger.info("h2h_matched", sport=sport, candidates=len(candidates), opportunities=len(opportunities))
        return opportunities

    # ── Soccer three-way ───────────────────────────────────────────────────

    def _soccer_match(self, a: str, b: str) -> bool:
        return soccer_names_match(a, b, self.soccer_aliases)

    def _soccer_candidates(self, market: PolymarketMarket, teams: GameTeams) -> list[tuple[str, float]]:
        """(outcome label, price) pairs a soccer market offers."""
        outcomes = parse_outcomes(market)
        candidates: list[tuple[str, float]] = []

        # Markets listing team 1 / draw / team 2 directly
        for outcome in outcomes:
            if is_yes_no(outcome) or not outcome.name.strip():
                continue
            if is_draw(outcome.name):
                candidates.append((DRAW, outcome.price))
            elif any(self._soccer_match(outcome.name, team) for team in (teams.team1, teams.team2)):
                candidates.append((outcome.name, outcome.price))

        yes = yes_outcome(outcomes)
        if yes is not None:
            question = market.question or ""
            label: Optional[str] = None
            if _SOCCER_DRAW.search(question):
                label = DRAW
            else:
                win = _SOCCER_WIN.match(question)
                if win:
                    label = win.group("team").strip()
                else:
                    game = _apply_team_rules(question, QUESTION_TEAM_RULES)
                    if game:
                        label = game.team1
            if label:
                candidates.append((label, yes.price))

        return candidates

    def match_soccer_h2h(
        self,
        polymarket_events: Sequence[PolymarketEvent],
        odds_events: Sequence[SportsbookEvent],
        sport: str,
        league: Optional[str] = None,
    ) -> list[MatchedOpportunity]:
        """Soccer match results (club win or draw), soonest first."""
        candidates: list[MatchedOpportunity] = []

        for pm_event in polymarket_events:
            teams = extract_soccer_teams(pm_event.title or "")
            if teams is None:
                continue

            for market in pm_event.markets:
                reason = h2h_reject_reason(market.question or "")
                if reason:
                    logger.debug("soccer_market_skipped", market_id=market.id, reason=reason)
                    continue
                for label, price in self._soccer_candidates(market, teams):
                    if not self._usable(price):
                        continue

                    found = False
                    for odds_event in odds_events:
                        if _event_pairing(odds_event, teams.team1, teams.team2, self._soccer_match) is None:
                            continue
                        quote = best_soccer_quote(odds_event, label, aliases=self.soccer_aliases)
                        if quote is None:
                            continue

                        found = True
                        candidates.append(
                            self._build(
                                opp_id=f"{pm_event.id}-{market.id}-soccer-{label}",
                                sport=sport,
                                league=league,
                                pm_event=pm_event,
                                market=market,
                                matchup=f"{odds_event.home_team} vs {odds_event.away_team}",
                                outcome=quote.outcome_name,
                                price=price,
                                event_time=market.game_start_time or pm_event.start_date
                                or odds_event.commence_time or pm_event.end_date,
                                quote=quote,
                                market_type=MarketType.GAME,
                                timeframe=self._timeframe(pm_event.end_date, pm_event.start_date),
                                category=MarketCategory.GAMES,
                            )
                        )

                    if not found and self.include_unmatched:
                        candidates.append(
                            self._build(
                                opp_id=f"{pm_event.id}-{market.id}-soccer-{label}",
                                sport=sport,
                                league=league,
                                pm_event=pm_event,
                                market=market,
                                matchup=f"{teams.team1} vs {teams.team2}",
                                outcome=label,
                                price=price,
                                event_time=market.game_start_time or pm_event.start_date or pm_event.end_date,
                                quote=None,
                                market_type=MarketType.GAME,
                                timeframe=self._timeframe(pm_event.end_date, pm_event.start_date),
                                category=MarketCategory.GAMES,
                            )
                        )

        opportunities = sort_by_event_time(deduplicate(candidates))
        logger.info(
            "soccer_matched",
            sport=sport,
            league=league,
            candidates=len(candidates),
            opportunities=len(opportunities),
        )
        return opportunities

    # ── Outrights ──────────────────────────────────────────────────────────

    def _best_outright_quote(
        self,
        odds_events: Sequence[SportsbookEvent],
        entrant: str,
    ) -> Optional[BestQuote]:
        best: Optional[BestQuote] = None
        for odds_event in odds_events:
            quote = best_quote(odds_event, entrant, MarketKey.OUTRIGHTS, self.team_aliases) or best_quote(
                odds_event, entrant, MarketKey.H2H, self.team_aliases
            )
            if quote is not None and (best is None or quote.decimal_odds > best.decimal_odds):
                best = quote
        return best

    def match_outrights(
        self,
        polymarket_events: Sequence[PolymarketEvent],
        odds_events: Sequence[SportsbookEvent],
        sport: str,
    ) -> list[MatchedOpportunity]:
        """
        Futures (championship, MVP, awards), highest EV% first.

        Championship entrants are compared against ``outrights`` (falling back
        to ``h2h``). Markets only Polymarket lists are emitted without a
        sportsbook line when ``include_unmatched`` is on.
        """
        candidates: list[MatchedOpportunity] = []

        for pm_event in polymarket_events:
            title = pm_event.title or ""
            category = classify_category(title)
            if category in (MarketCategory.GAMES, MarketCategory.WIN_TOTALS):
                continue

            covered = category == MarketCategory.CHAMPIONSHIP and has_sportsbook_coverage(title)
            if not covered and not self.include_unmatched:
                continue

            for market in pm_event.markets:
                entrant = market.group_item_title or extract_futures_entrant(market.question or "")
                if not entrant:
                    continue

                yes = yes_outcome(parse_outcomes(market))
                if yes is None or not self._usable(yes.price):
                    continue

                quote = self._best_outright_quote(odds_events, entrant) if covered else None
                if covered and quote is None:
                    logger.debug("outright_unmatched", market_id=market.id, entrant=entrant)
                    continue

                candidates.append(
                    self._build(
                        opp_id=f"{pm_event.id}-{market.id}-{entrant}",
                        sport=sport,
                        league=None,
                        pm_event=pm_event,
                        market=market,
                        matchup=title or "Championship",
                        outcome=entrant,
                        price=yes.price,
                        event_time=pm_event.end_date or pm_event.start_date,
                        quote=quote,
                        market_type=classify_market_type(market.question or title),
                        timeframe=self._timeframe(pm_event.end_date),
                        category=category,
                    )
                )

        opportunities = sort_by_ev(deduplicate(candidates))
        logger.info("outrights_matched", sport=sport, candidates=len(candidates), opportunities=len(opportunities))
        return opportunities
