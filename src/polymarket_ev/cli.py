"""CLI entrypoint for the Polymarket vs sportsbook EV scanner."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from polymarket_ev.adapters.odds_api import OddsAPIAdapter
from polymarket_ev.adapters.odds_api import parse_events as parse_odds_events
from polymarket_ev.adapters.polymarket import PolymarketAdapter
from polymarket_ev.adapters.polymarket import parse_events as parse_polymarket_events
from polymarket_ev.config import Settings, get_settings
from polymarket_ev.core.matcher import extract_game_teams
from polymarket_ev.core.names import load_alias_tables, suggest_aliases
from polymarket_ev.core.odds_math import compute_ev, prob_to_american
from polymarket_ev.core.pipeline import SPORTS, get_sport, run_scan
from polymarket_ev.core.scanner import find_opportunities
from polymarket_ev.models.opportunity import MatchContext, MatchedOpportunity, Quality, Timeframe
from polymarket_ev.observability.logging import setup_logging

app = typer.Typer(
    name="polymarket-ev",
    help="Compare Polymarket sports prices against sportsbook lines and rank by expected value.",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def _configure(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override POLYMARKET_EV_LOG_LEVEL"),
) -> None:
    setup_logging(level=log_level)


def _quality_style(quality: Optional[Quality]) -> str:
    if quality == Quality.EXCELLENT:
        return "green"
    if quality == Quality.GOOD:
        return "yellow"
    return "dim"


def _format_american(odds: float) -> str:
    return f"{odds:+.0f}"


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.astimezone().strftime("%b %d %I:%M%p")


def _polymarket_cell(opp: MatchedOpportunity) -> str:
    cents = f"{opp.polymarket_price * 100:.1f}c"
    if 0 < opp.polymarket_price < 1:
        return f"{cents} ({_format_american(prob_to_american(opp.polymarket_price))})"
    return cents


def _render_opportunities_table(opportunities: list[MatchedOpportunity], title: str = "Opportunities") -> None:
    if not opportunities:
        console.print("[dim]No opportunities[/]")
        return
    table = Table(
        title=title,
        show_header=True,
        header_style="bold",
    )
    table.add_column("#", style="dim", width=3)
    table.add_column("When", width=15)
    table.add_column("Matchup", width=30)
    table.add_column("Outcome", width=22)
    table.add_column("Polymarket", width=16)
    table.add_column("Sportsbook", width=20)
    table.add_column("EV%", width=7)
    table.add_column("Horizon", width=10)
    for i, opp in enumerate(opportunities, 1):
        if opp.has_sportsbook:
            style = _quality_style(opp.quality)
            book = f"{opp.sportsbook_name} {_format_american(opp.sportsbook_odds)}"
            ev = f"[{style}]{opp.ev_percent:+.1f}%[/]"
        else:
            book = "[dim]no comparison[/]"
            ev = "[dim]-[/]"
        table.add_row(
            str(i),
            _format_time(opp.event_time),
            opp.matchup[:30],
            opp.outcome[:22],
            _polymarket_cell(opp),
            book,
            ev,
            opp.timeframe.label,
        )
    console.print(table)


def _echo_json(payload: object) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _read_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        console.print(f"[red]✗ Cannot read {path}: {e}[/]")
        raise typer.Exit(1)


def _alias_tables(settings: Settings):
    try:
        return load_alias_tables(settings.alias_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]✗ Cannot load alias file {settings.alias_file}: {e}[/]")
        raise typer.Exit(1)


@app.command("sports")
def sports() -> None:
    """List the sports a scan can target."""
    table = Table(title="Sports")
    table.add_column("Key")
    table.add_column("Label")
    table.add_column("Game odds")
    table.add_column("Futures odds")
    table.add_column("League")
    for cfg in SPORTS.values():
        table.add_row(cfg.key, cfg.label, cfg.odds_game_sport, cfg.odds_futures_sport or "", cfg.league or "")
    console.print(table)


@app.command("scan")
def scan(
    sport: Optional[str] = typer.Option(None, "--sport", "-s", help="Sport key (default from config)"),
    include_unmatched: Optional[bool] = typer.Option(
        None, "--include-unmatched/--matched-only", help="Also list contracts with no sportsbook line"
    ),
    show_all: bool = typer.Option(False, "--all", help="Keep negative-EV entries"),
    timeframe: Optional[list[Timeframe]] = typer.Option(None, "--timeframe", "-t", help="Only these horizons"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """One-shot scan: fetch, match, display ranked opportunities, and exit."""
    settings = get_settings()
    try:
        sport_cfg = get_sport(sport or settings.default_sport)
    except KeyError as e:
        console.print(f"[red]✗ {e.args[0]}[/]")
        raise typer.Exit(1)
    if not settings.odds_api_configured:
        console.print("[red]✗ The Odds API not configured. Set POLYMARKET_EV_ODDS_API_KEY[/]")
        raise typer.Exit(1)

    team_aliases, soccer_aliases = _alias_tables(settings)

    async def _run():
        async with (
            OddsAPIAdapter(
                api_key=settings.odds_api_key,
                base_url=settings.odds_api_base_url,
                requests_per_second=settings.odds_api_requests_per_second,
                regions=settings.odds_api_regions,
                cache_ttl=settings.odds_cache_ttl_seconds,
            ) as odds_api,
            PolymarketAdapter(
                base_url=settings.polymarket_base_url,
                requests_per_second=settings.polymarket_requests_per_second,
                event_limit=settings.polymarket_event_limit,
            ) as polymarket,
        ):
            return await run_scan(
                sport_cfg,
                odds_api,
                polymarket,
                include_unmatched=settings.include_unmatched if include_unmatched is None else include_unmatched,
                ev_only=settings.ev_only and not show_all,
                timeframes=timeframe,
                reference_stake=settings.reference_stake,
                min_price_cents=settings.min_price_cents,
                team_aliases=team_aliases,
                soccer_aliases=soccer_aliases,
            )

    if not as_json:
        console.print(f"[blue]Scanning {sport_cfg.key}...[/]")
    result = asyncio.run(_run())

    if as_json:
        _echo_json(result.model_dump(mode="json", by_alias=True))
        return

    now = datetime.now(timezone.utc).astimezone().strftime("%b %d %Y %I:%M%p")
    quota = result.quota_remaining if result.quota_remaining is not None else "?"
    console.print(
        f"\n[bold]POLYMARKET EV[/]  |  [cyan]{len(result.opportunities)} opportunities[/]"
        f"  |  odds quota {quota}  |  {now}\n"
    )
    _render_opportunities_table(result.opportunities, title=f"{sport_cfg.label} {sport_cfg.league or ''}".strip())


@app.command("match")
def match(
    contracts: Path = typer.Argument(..., help="Polymarket events JSON (Gamma /events payload)"),
    quotes: Path = typer.Argument(..., help="Sportsbook odds JSON (Odds API /odds payload)"),
    sport: str = typer.Option("NBA", "--sport", "-s", help="Sport label stamped on results"),
    league: Optional[str] = typer.Option(None, "--league", "-l", help="Soccer league (selects three-way matching)"),
    futures: Optional[Path] = typer.Option(None, "--futures", "-f", help="Sportsbook outrights JSON"),
    include_unmatched: bool = typer.Option(False, "--include-unmatched", help="Also list contracts with no line"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Match saved payloads offline."""
    settings = get_settings()
    team_aliases, soccer_aliases = _alias_tables(settings)

    opportunities = find_opportunities(
        parse_polymarket_events(_read_json(contracts)),
        parse_odds_events(_read_json(quotes)),
        MatchContext(sport=sport, league=league),
        futures_quotes=parse_odds_events(_read_json(futures)) if futures else None,
        include_unmatched=include_unmatched,
        reference_stake=settings.reference_stake,
        min_price_cents=settings.min_price_cents,
        team_aliases=team_aliases,
        soccer_aliases=soccer_aliases,
    )

    if as_json:
        _echo_json([o.model_dump(mode="json", by_alias=True) for o in opportunities])
        return
    _render_opportunities_table(opportunities)


@app.command("ev")
def ev(
    price: float = typer.Option(..., "--price", "-p", help="Polymarket price (0-1)"),
    odds: float = typer.Option(..., "--odds", "-o", help="Sportsbook American odds"),
    stake: float = typer.Option(100.0, "--stake", help="Stake in dollars"),
) -> None:
    """Expected value of buying at PRICE when the sportsbook quotes ODDS."""
    try:
        result = compute_ev(stake, price, odds)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(1)

    style = _quality_style(result.quality)
    console.print(f"\n  [bold]Decimal odds:[/]     {result.decimal_odds:.3f}")
    console.print(f"  [bold]True probability:[/] {result.true_probability * 100:.2f}%")
    if 0 < price < 1:
        console.print(f"  [bold]Polymarket:[/]       {price * 100:.1f}c  ({_format_american(prob_to_american(price))})")
    console.print(f"  [bold]Payout:[/]           ${result.payout:.2f}")
    console.print(f"  [bold]Profit if win:[/]    ${result.profit_if_win:.2f}")
    console.print(f"  [bold]EV:[/]               [{style}]${result.ev:.2f}  ({result.ev_percent:+.2f}%)[/]")
    console.print(f"  [bold]Quality:[/]          [{style}]{result.quality.value}[/]\n")


@app.command("alias-candidates")
def alias_candidates(
    contracts: Path = typer.Argument(..., help="Polymarket events JSON"),
    quotes: Path = typer.Argument(..., help="Sportsbook odds JSON"),
    threshold: Optional[float] = typer.Option(None, "--threshold", help="Similarity floor (0-1)"),
) -> None:
    """Show fuzzy alias candidates for manual review."""
    settings = get_settings()
    team_aliases, _ = _alias_tables(settings)

    console.print("[yellow]⚠ This command shows candidates only. Review and manually add to the alias file[/]")

    contract_names: set[str] = set()
    for event in parse_polymarket_events(_read_json(contracts)):
        for market in event.markets:
            teams = extract_game_teams(market.question or "", event.title or "")
            if teams:
                contract_names.update((teams.team1, teams.team2))

    book_names: set[str] = set()
    for event in parse_odds_events(_read_json(quotes)):
        book_names.update(n for n in (event.home_team, event.away_team) if n)

    candidates = suggest_aliases(
        contract_names,
        book_names,
        threshold=threshold if threshold is not None else settings.fuzzy_match_threshold,
        aliases=team_aliases,
    )
    if not candidates:
        console.print("[dim]No candidates[/]")
        return

    table = Table(title="Alias Candidates")
    table.add_column("Polymarket")
    table.add_column("Sportsbook")
    table.add_column("Score")
    for name, book, score in candidates:
        table.add_row(name, book, f"{score:.2f}")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
