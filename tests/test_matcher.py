"""Tests for the three matching strategies."""

import pytest

from conftest import NOW, make_market, make_odds_event, make_polymarket_event
from polymarket_ev.core.matcher import (
    MatchEngine,
    extract_futures_entrant,
    extract_game_teams,
    extract_soccer_teams,
    fails_sanity_band,
    h2h_reject_reason,
)
from polymarket_ev.core.odds_math import compute_ev
from polymarket_ev.models.opportunity import MarketCategory, MarketType, Quality, Timeframe


@pytest.fixture
def engine() -> MatchEngine:
    return MatchEngine(now=NOW)


class TestTeamExtraction:
    """Test free-text team extraction rules."""

    def test_beat_question(self):
        teams = extract_game_teams("Will the Los Angeles Lakers beat the Boston Celtics?")
        assert (teams.team1, teams.team2) == ("Los Angeles Lakers", "Boston Celtics")
        assert teams.yes_is_team1

    def test_defeat_with_date(self):
        teams = extract_game_teams("Will Denver defeat Phoenix on 2026-03-12?")
        assert (teams.team1, teams.team2) == ("Denver", "Phoenix")

    def test_win_against(self):
        teams = extract_game_teams("Will the Knicks win against the Heat?")
        assert (teams.team1, teams.team2) == ("Knicks", "Heat")

    def test_vs_title(self):
        teams = extract_game_teams("Who will win?", "Lakers vs. Celtics")
        assert (teams.team1, teams.team2) == ("Lakers", "Celtics")
        assert not teams.yes_is_team1

    def test_dash_title(self):
        teams = extract_game_teams("", "Lakers - Celtics")
        assert (teams.team1, teams.team2) == ("Lakers", "Celtics")

    def test_no_teams(self):
        assert extract_game_teams("Will the Lakers win the title?", "NBA Champion") is None

    def test_soccer_title_more_markets(self):
        teams = extract_soccer_teams("Chelsea FC vs. Burnley FC - More Markets")
        assert (teams.team1, teams.team2) == ("Chelsea FC", "Burnley FC")

    def test_futures_entrant(self):
        assert extract_futures_entrant("Will the Boston Celtics win the 2026 NBA Finals?") == "Boston Celtics"
        assert extract_futures_entrant("Will Nikola Jokic lead the league in assists?") == "Nikola Jokic"
        assert extract_futures_entrant("Who wins?") is None


class TestRejectRules:
    """Test head-to-head exclusions."""

    @pytest.mark.parametrize(
        "question,reason",
        [
            ("Will LeBron James score 30+ points vs Boston?", "player_stat"),
            ("Lakers vs Celtics: 1st Half winner", "partial_game"),
            ("Lakers vs Celtics: 2nd quarter", "partial_game"),
            ("Lakers vs Celtics: Spread", "spread_total"),
            ("Lakers vs Celtics: O/U", "spread_total"),
            ("Lakers (-4.5) vs Celtics", "decimal_line"),
        ],
    )
    def test_rejected(self, question, reason):
        assert h2h_reject_reason(question) == reason

    def test_plain_moneyline_kept(self):
        assert h2h_reject_reason("Will the Los Angeles Lakers beat the Boston Celtics?", "Lakers vs Celtics") is None

    def test_team_name_containing_under_kept(self):
        assert h2h_reject_reason("Thunder vs. Nuggets") is None

    def test_sanity_band(self):
        assert fails_sanity_band(0.30, 0.67)
        assert fails_sanity_band(0.70, 0.40)
        assert not fails_sanity_band(0.55, 0.545)
        assert not fails_sanity_band(0.44, 0.54)


class TestHeadToHead:
    """Test team-vs-team matching."""

    def test_end_to_end(self, engine, lakers_celtics_contract, lakers_celtics_quote):
        opps = engine.match_h2h_games([lakers_celtics_contract], [lakers_celtics_quote], "NBA")
        assert len(opps) == 1
        opp = opps[0]

        expected = compute_ev(100, 0.55, -120)
        assert opp.outcome == "Los Angeles Lakers"
        assert opp.polymarket_price == 0.55
        assert opp.polymarket_implied_prob == pytest.approx(55.0)
        assert opp.sportsbook_odds == -120
        assert opp.sportsbook_name == "BookA"
        assert opp.ev_percent == pytest.approx(expected.ev_percent)
        assert opp.ev_percent == pytest.approx(-0.826, abs=0.001)
        assert opp.quality == Quality.MARGINAL
        assert opp.id == "ev1-m1-h2h"
        assert opp.matchup == "Los Angeles Lakers vs Boston Celtics"
        assert opp.polymarket_url == "https://polymarket.com/event/slug-ev1"
        assert opp.category == MarketCategory.GAMES
        assert opp.market_type == MarketType.GAME
        assert opp.timeframe == Timeframe.WEEK
        assert opp.sport == "NBA"

    def test_home_away_in_either_order(self, engine, lakers_celtics_contract):
        quote = make_odds_event(home="Boston Celtics", away="Los Angeles Lakers")
        opps = engine.match_h2h_games([lakers_celtics_contract], [quote], "NBA")
        assert len(opps) == 1
        assert opps[0].outcome == "Los Angeles Lakers"
        assert opps[0].matchup == "Los Angeles Lakers vs Boston Celtics"

    def test_team_named_outcomes(self, engine, lakers_celtics_quote):
        contract = make_polymarket_event(
            title="Lakers vs. Celtics",
            markets=[
                make_market(question="Lakers vs. Celtics", outcomes='["Lakers", "Celtics"]', prices='["0.6", "0.4"]')
            ],
        )
        opps = engine.match_h2h_games([contract], [lakers_celtics_quote], "NBA")
        assert len(opps) == 1
        assert opps[0].polymarket_price == 0.6
        assert opps[0].outcome == "Los Angeles Lakers"

    def test_sanity_filter_rejects_wide_disagreement(self, lakers_celtics_contract):
        contract = make_polymarket_event(markets=[make_market(prices='["0.30", "0.70"]')])
        quote = make_odds_event(books=[("BookA", "h2h", [("Los Angeles Lakers", -200), ("Boston Celtics", 170)])])
        engine = MatchEngine(include_unmatched=True, now=NOW)
        assert engine.match_h2h_games([contract], [quote], "NBA") == []

    def test_player_stat_market_skipped(self, engine, lakers_celtics_quote):
        contract = make_polymarket_event(
            markets=[make_market(question="Will the Los Angeles Lakers beat the Boston Celtics by 10+ points?")]
        )
        assert engine.match_h2h_games([contract], [lakers_celtics_quote], "NBA") == []

    def test_sub_one_cent_price_excluded(self, engine, lakers_celtics_quote):
        contract = make_polymarket_event(markets=[make_market(prices='["0.005", "0.995"]')])
        assert engine.match_h2h_games([contract], [lakers_celtics_quote], "NBA") == []

    def test_unparseable_prices_skipped(self, engine, lakers_celtics_quote):
        contract = make_polymarket_event(markets=[make_market(prices="not prices")])
        assert engine.match_h2h_games([contract], [lakers_celtics_quote], "NBA") == []

    def test_unmatched_only_on_request(self, lakers_celtics_contract):
        assert MatchEngine(now=NOW).match_h2h_games([lakers_celtics_contract], [], "NBA") == []

        opps = MatchEngine(include_unmatched=True, now=NOW).match_h2h_games([lakers_celtics_contract], [], "NBA")
        assert len(opps) == 1
        assert not opps[0].has_sportsbook
        assert opps[0].sportsbook_name is None
        assert opps[0].ev_percent is None
        assert opps[0].outcome == "Los Angeles Lakers"

    def test_duplicate_markets_collapse(self, engine, lakers_celtics_quote):
        contract = make_polymarket_event(markets=[make_market("m1"), make_market("m2", prices='["0.54", "0.46"]')])
        opps = engine.match_h2h_games([contract], [lakers_celtics_quote], "NBA")
        assert len(opps) == 1
        # Same event time, higher EV% (cheaper price) survives
        assert opps[0].polymarket_market_id == "m2"

    def test_sorted_by_event_time(self, engine):
        later = make_polymarket_event(
            "late",
            title="Heat vs Nuggets",
            markets=[make_market("m9", question="Will the Miami Heat beat the Denver Nuggets?")],
            startDate="2026-03-14T00:00:00Z",
        )
        early = make_polymarket_event("early", markets=[make_market()], startDate="2026-03-12T00:00:00Z")
        quotes = [
            make_odds_event(),
            make_odds_event(
                "odds2",
                home="Miami Heat",
                away="Denver Nuggets",
                books=[("BookA", "h2h", [("Miami Heat", 110), ("Denver Nuggets", -130)])],
            ),
        ]
        opps = engine.match_h2h_games([later, early], quotes, "NBA")
        assert [o.polymarket_event_id for o in opps] == ["early", "late"]

    def test_empty_inputs(self, engine):
        assert engine.match_h2h_games([], [], "NBA") == []

    def test_prefers_sportsbook_game_nearest_contract_time(self, engine):
        # Same matchup twice in the odds feed: a later rematch listed first
        rematch = make_odds_event(
            "odds-rematch",
            commence_time="2026-03-20T00:10:00Z",
            books=[("BookB", "h2h", [("Los Angeles Lakers", 150), ("Boston Celtics", -170)])],
        )
        tonight = make_odds_event("odds-tonight")
        contract = make_polymarket_event(markets=[make_market(gameStartTime="2026-03-12T00:10:00Z")])

        opps = engine.match_h2h_games([contract], [rematch, tonight], "NBA")

        assert len(opps) == 1
        assert opps[0].sportsbook_name == "BookA"
        assert opps[0].sportsbook_odds == -120

    def test_unknown_commence_time_sorts_last(self, engine):
        undated = make_odds_event(
            "odds-undated",
            commence_time="TBD",
            books=[("BookB", "h2h", [("Los Angeles Lakers", 150), ("Boston Celtics", -170)])],
        )
        opps = engine.match_h2h_games(
            [make_polymarket_event(markets=[make_market()])], [undated, make_odds_event()], "NBA"
        )
        assert [o.sportsbook_name for o in opps] == ["BookA"]


def _soccer_event():
    return make_polymarket_event(
        "s1",
        title="Chelsea FC vs. Burnley FC",
        markets=[
            make_market("w1", question="Will Chelsea FC win on 2026-03-12?", prices='["0.62", "0.38"]'),
            make_market("d1", question="Will Chelsea FC vs. Burnley FC end in a draw?", prices='["0.22", "0.78"]'),
            make_market("w2", question="Will Burnley FC win on 2026-03-12?", prices='["0.16", "0.84"]'),
            make_market(
                "t1",
                question="Chelsea FC vs. Burnley FC: O/U 2.5",
                outcomes='["Over", "Under"]',
                prices='["0.5", "0.5"]',
            ),
        ],
    )


def _soccer_quote():
    return make_odds_event(
        "so1",
        home="Chelsea",
        away="Burnley",
        books=[("BookA", "h2h", [("Chelsea", -180), ("Burnley", 450), ("Draw", 300)])],
    )


class TestSoccer:
    """Test three-way soccer matching."""

    def test_win_and_draw_questions(self, engine):
        opps = engine.match_soccer_h2h([_soccer_event()], [_soccer_quote()], "Soccer", "EPL")
        by_outcome = {o.outcome: o for o in opps}
        assert set(by_outcome) == {"Chelsea", "Burnley", "Draw"}

        chelsea = by_outcome["Chelsea"]
        assert chelsea.polymarket_price == 0.62
        assert chelsea.sportsbook_odds == -180
        assert chelsea.ev_percent == pytest.approx(compute_ev(100, 0.62, -180).ev_percent)
        assert chelsea.league == "EPL"
        assert chelsea.matchup == "Chelsea vs Burnley"
        assert chelsea.id == "s1-w1-soccer-Chelsea FC"

        assert by_outcome["Draw"].sportsbook_odds == 300
        assert by_outcome["Burnley"].sportsbook_odds == 450

    def test_three_outcome_market(self, engine):
        event = make_polymarket_event(
            "s2",
            title="Chelsea FC vs. Burnley FC",
            markets=[
                make_market(
                    "x1",
                    question="Chelsea FC vs. Burnley FC",
                    outcomes='["Chelsea FC", "Draw", "Burnley FC"]',
                    prices='["0.6", "0.25", "0.15"]',
                )
            ],
        )
        opps = engine.match_soccer_h2h([event], [_soccer_quote()], "Soccer", "EPL")
        assert {o.outcome for o in opps} == {"Chelsea", "Draw", "Burnley"}

    def test_totals_market_ignored(self):
        engine = MatchEngine(include_unmatched=True, now=NOW)
        opps = engine.match_soccer_h2h([_soccer_event()], [], "Soccer", "EPL")
        assert all(o.polymarket_market_id != "t1" for o in opps)
        assert len(opps) == 3

    def test_other_fixture_not_matched(self, engine):
        quote = make_odds_event(
            home="Newcastle United",
            away="Burnley",
            books=[("BookA", "h2h", [("Newcastle United", -150), ("Burnley", 400), ("Draw", 280)])],
        )
        assert engine.match_soccer_h2h([_soccer_event()], [quote], "Soccer", "EPL") == []


def _champion_event():
    return make_polymarket_event(
        "c1",
        title="NBA Champion 2026",
        endDate="2026-06-20T00:00:00Z",
        markets=[
            make_market(
                "c1a",
                question="Will the Boston Celtics win the 2026 NBA Finals?",
                prices='["0.20", "0.80"]',
                groupItemTitle="Boston Celtics",
            ),
            make_market(
                "c1b",
                question="Will the Denver Nuggets win the 2026 NBA Finals?",
                prices='["0.10", "0.90"]',
            ),
            make_market(
                "c1c",
                question="Will the Utah Jazz win the 2026 NBA Finals?",
                prices='["0.004", "0.996"]',
            ),
        ],
    )


def _futures_quote():
    return make_odds_event(
        "f1",
        home=None,
        away=None,
        books=[
            ("BookA", "outrights", [("Boston Celtics", 300), ("Oklahoma City Thunder", 200), ("Utah Jazz", 50000)]),
            ("BookB", "outrights", [("Boston Celtics", 280)]),
        ],
    )


def _mvp_event():
    return make_polymarket_event(
        "mvp",
        title="NBA MVP",
        endDate="2026-05-20T00:00:00Z",
        markets=[
            make_market("v1", question="Will Nikola Jokic win the 2026 NBA MVP?", prices='["0.40", "0.60"]'),
        ],
    )


class TestOutrights:
    """Test futures matching."""

    def test_championship_against_outrights(self, engine):
        opps = engine.match_outrights([_champion_event()], [_futures_quote()], "NBA")
        # Nuggets missing from the books, Jazz below 1 cent
        assert len(opps) == 1
        opp = opps[0]
        assert opp.outcome == "Boston Celtics"
        assert opp.sportsbook_name == "BookA"
        assert opp.sportsbook_odds == 300
        assert opp.ev_percent == pytest.approx(25.0)
        assert opp.quality == Quality.EXCELLENT
        assert opp.category == MarketCategory.CHAMPIONSHIP
        assert opp.market_type == MarketType.FUTURES
        assert opp.timeframe == Timeframe.FUTURES
        assert opp.matchup == "NBA Champion 2026"
        assert opp.id == "c1-c1a-Boston Celtics"

    def test_falls_back_to_h2h(self, engine):
        quote = make_odds_event(
            "f2",
            home=None,
            away=None,
            books=[("BookA", "h2h", [("Boston Celtics", 300)])],
        )
        opps = engine.match_outrights([_champion_event()], [quote], "NBA")
        assert [o.outcome for o in opps] == ["Boston Celtics"]

    def test_polymarket_only_categories(self, engine):
        assert engine.match_outrights([_mvp_event()], [_futures_quote()], "NBA") == []

        opps = MatchEngine(include_unmatched=True, now=NOW).match_outrights([_mvp_event()], [], "NBA")
        assert len(opps) == 1
        assert opps[0].outcome == "Nikola Jokic"
        assert opps[0].category == MarketCategory.MVP
        assert not opps[0].has_sportsbook

    def test_finals_mvp_is_an_award_not_a_championship(self):
        event = make_polymarket_event(
            "fmvp",
            title="2026 NBA Finals MVP",
            endDate="2026-06-20T00:00:00Z",
            markets=[make_market("fm1", question="Will Jayson Tatum win Finals MVP?", prices='["0.25", "0.75"]')],
        )
        engine = MatchEngine(include_unmatched=True, now=NOW)
        opps = engine.match_outrights([event], [_futures_quote()], "NBA")
        assert len(opps) == 1
        assert opps[0].outcome == "Jayson Tatum"
        assert opps[0].category == MarketCategory.MVP
        assert not opps[0].has_sportsbook

    def test_games_never_treated_as_futures(self, lakers_celtics_contract):
        engine = MatchEngine(include_unmatched=True, now=NOW)
        assert engine.match_outrights([lakers_celtics_contract], [_futures_quote()], "NBA") == []

    def test_sorted_by_ev(self):
        engine = MatchEngine(include_unmatched=True, now=NOW)
        opps = engine.match_outrights([_mvp_event(), _champion_event()], [_futures_quote()], "NBA")
        assert [o.outcome for o in opps] == ["Boston Celtics", "Nikola Jokic"]
