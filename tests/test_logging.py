"""Tests for the structlog setup."""

import json
import logging

import pytest
import structlog

from conftest import make_polymarket_event
from polymarket_ev.core.pipeline import SPORTS, run_scan
from polymarket_ev.observability.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()
    logging.basicConfig(force=True, handlers=[logging.NullHandler()])


def _records(captured: str) -> list[dict]:
    return [json.loads(line) for line in captured.splitlines() if line.startswith("{")]


class TestSetupLogging:
    """Test renderer, level and context configuration."""

    def test_json_lines_on_stderr(self, capsys):
        setup_logging("DEBUG", "json")
        get_logger("polymarket_ev.test").info("odds_fetched", events=3)

        captured = capsys.readouterr()
        assert captured.out == ""
        record = _records(captured.err)[-1]
        assert record["event"] == "odds_fetched"
        assert record["events"] == 3
        assert record["level"] == "info"
        assert record["logger"] == "polymarket_ev.test"
        assert "timestamp" in record

    def test_bound_context_is_merged(self, capsys):
        setup_logging("DEBUG", "json")
        with structlog.contextvars.bound_contextvars(sport_key="basketball_nba"):
            get_logger("polymarket_ev.test").info("inside")
        get_logger("polymarket_ev.test").info("outside")

        inside, outside = _records(capsys.readouterr().err)[-2:]
        assert inside["sport_key"] == "basketball_nba"
        assert "sport_key" not in outside

    def test_level_filters(self, capsys):
        setup_logging("WARNING", "json")
        log = get_logger("polymarket_ev.test")
        log.info("hidden")
        log.warning("shown")

        assert [r["event"] for r in _records(capsys.readouterr().err)] == ["shown"]

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("CHATTY", "json")
        assert logging.getLogger().level == logging.INFO

    def test_http_clients_quieted(self):
        setup_logging("DEBUG", "console")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING


class TestScanContext:
    """Test the context a scan binds for everything it logs."""

    @pytest.mark.asyncio
    async def test_sources_log_with_sport_key(self, capsys):
        class LoggingPolymarket:
            async def events_for_sport(self, sport_key):
                get_logger("polymarket_ev.test").info("contracts_requested")
                return [make_polymarket_event(markets=[])]

        setup_logging("DEBUG", "json")
        await run_scan(SPORTS["nhl"], None, LoggingPolymarket())

        records = [r for r in _records(capsys.readouterr().err) if r["event"] == "contracts_requested"]
        assert records[0]["sport_key"] == "nhl"
