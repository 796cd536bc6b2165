"""CLI entry point for KickOff AI."""
import logging
import sys
import time
from typing import Dict, List, Optional

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table
from rich.logging import RichHandler

from .config import STORE_PATH
from .credentials import PromptKeySelector
from .errors import BackendError
from .favorites import FavoritesStore
from .filters import ALL_LEAGUES, available_leagues, filter_matches, filter_standings
from .gemini_api import GeminiClient
from .geolocation import lookup_location
from .history import HistoryStore
from .models import Match, MatchStatus, SportsData, Standing
from .orchestrator import DataRefreshOrchestrator, LoadOutcome, View
from .storage import KeyValueStore
from .wallet import BetRejected, Wallet, bet_selections

console = Console()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=console, rich_tracebacks=True)]
)
logger = logging.getLogger(__name__)

STATUS_STYLES = {
    MatchStatus.LIVE: "bold red",
    MatchStatus.FINISHED: "dim",
    MatchStatus.UPCOMING: "cyan",
}
FORM_STYLES = {"W": "green", "D": "white", "L": "red"}


def build_orchestrator(store: KeyValueStore, with_location: bool = True) -> DataRefreshOrchestrator:
    client = GeminiClient()
    return DataRefreshOrchestrator(
        client,
        HistoryStore(store),
        credentials=PromptKeySelector(client),
        locator=lookup_location if with_location else None,
        favorites=FavoritesStore(store),
    )


def print_status(orchestrator: DataRefreshOrchestrator) -> None:
    if orchestrator.error:
        console.print(f"[red]Error: {orchestrator.error}[/red]")
    if orchestrator.warning:
        console.print(f"[yellow]{orchestrator.warning}[/yellow]")
    if orchestrator.data and orchestrator.data.last_updated:
        console.print(f"[dim]Last updated: {orchestrator.data.last_updated}[/dim]")


def print_matches(matches: List[Match], favorites: List[str], title: str = "Matches") -> None:
    if not matches:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("League")
    table.add_column("Home Team", style="cyan")
    table.add_column("Score", justify="center")
    table.add_column("Away Team", style="cyan")
    table.add_column("Status")
    table.add_column("1", justify="right", style="green")
    table.add_column("X", justify="right", style="green")
    table.add_column("2", justify="right", style="green")

    for m in matches:
        home = f"★ {m.home_team}" if m.home_team in favorites else m.home_team
        away = f"★ {m.away_team}" if m.away_team in favorites else m.away_team
        style = STATUS_STYLES[m.status_kind]
        table.add_row(
            m.id[:10],
            m.league[:20],
            home[:24],
            m.score or "-",
            away[:24],
            f"[{style}]{m.status or m.time or '-'}[/{style}]",
            f"{m.odds.home:.2f}" if m.odds.home else "-",
            f"{m.odds.draw:.2f}" if m.odds.draw else "-",
            f"{m.odds.away:.2f}" if m.odds.away else "-",
        )

    console.print(table)


def print_standings(standings: Dict[str, List[Standing]], favorites: List[str]) -> None:
    if not standings:
        console.print("[yellow]No standings found.[/yellow]")
        return

    for league, rows in standings.items():
        table = Table(title=league)
        table.add_column("#", justify="right")
        table.add_column("Team", style="cyan")
        table.add_column("P", justify="right")
        table.add_column("Goals", justify="center")
        table.add_column("Pts", justify="right", style="bold")
        table.add_column("Form")

        for s in rows:
            form = " ".join(f"[{FORM_STYLES[r]}]{r}[/{FORM_STYLES[r]}]" for r in s.form_sequence)
            team = f"★ {s.team}" if s.team in favorites else s.team
            table.add_row(str(s.rank), team, str(s.played), s.goals or "-", str(s.points), form or "-")

        console.print(table)


def print_sources(data: SportsData) -> None:
    for source in data.sources[:5]:
        console.print(f"[dim]  {source.title}: {source.uri}[/dim]")


def load_or_exit(orchestrator: DataRefreshOrchestrator, watch: bool = False, no_search: bool = False) -> SportsData:
    """Run the initial load, offering a key prompt when no key works."""
    with console.status("[bold]Fetching match data from Gemini...[/bold]"):
        outcome = orchestrator.init(start_timer=watch, force_degraded=no_search)

    while outcome is LoadOutcome.BLOCKED or (outcome is LoadOutcome.FAILED and not orchestrator.has_api_key):
        if orchestrator.error:
            console.print(f"[red]Error: {orchestrator.error}[/red]")
        else:
            console.print("[red]Error: GEMINI_API_KEY not set. Please set it in your .env file.[/red]")
        if not sys.stdin.isatty() or not click.confirm("Enter an API key now?", default=True):
            orchestrator.dispose()
            sys.exit(1)
        outcome = orchestrator.select_credentials()

    print_status(orchestrator)
    if orchestrator.data is None:
        orchestrator.dispose()
        sys.exit(1)
    return orchestrator.data


def latest_data_or_exit(store: KeyValueStore) -> SportsData:
    snapshot = HistoryStore(store).latest()
    if snapshot is None:
        console.print("[yellow]No stored data. Run live first.[/yellow]")
        sys.exit(1)
    console.print(f"[dim]Using snapshot {snapshot.id} from {snapshot.timestamp}[/dim]")
    return snapshot.data


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--store", type=click.Path(dir_okay=False), default=str(STORE_PATH), help="Local store file")
@click.pass_context
def cli(ctx, debug, store):
    """KickOff AI: live football data and predictions from Gemini."""
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
    ctx.obj = KeyValueStore(store)


@cli.command()
@click.option("--league", "-l", default=ALL_LEAGUES, help="Only show this league")
@click.option("--search", "-s", default="", help="Filter by team name")
@click.option("--live-only", is_flag=True, help="Only show matches in progress")
@click.option("--thinking", is_flag=True, help="Enable deep analysis (slower)")
@click.option("--no-search", is_flag=True, help="Skip web search (faster, less accurate)")
@click.option("--watch", "-w", is_flag=True, help="Keep refreshing until Ctrl-C")
@click.option("--cached", is_flag=True, help="Show the latest stored snapshot without fetching")
@click.pass_obj
def live(store, league, search, live_only, thinking, no_search, watch, cached):
    """Show live and recent matches."""
    favorites = FavoritesStore(store).names()

    if cached:
        data = latest_data_or_exit(store)
        print_matches(filter_matches(data, search, league, live_only), favorites)
        return

    orchestrator = build_orchestrator(store)
    orchestrator.thinking_mode = thinking
    data = load_or_exit(orchestrator, watch=watch, no_search=no_search)
    print_matches(filter_matches(data, search, league, live_only), favorites)
    print_sources(data)

    if not watch:
        orchestrator.dispose()
        return

    def on_event(event, payload):
        if event == "data":
            console.rule(f"Updated {payload.last_updated}")
            print_matches(filter_matches(payload, search, league, live_only), favorites)
        elif event == "notification":
            console.print(f"[bold magenta]{payload.title}[/bold magenta] {payload.message}")

    orchestrator.subscribe(on_event)
    orchestrator.set_view(View.LIVE)
    console.print(f"[dim]Refreshing every {orchestrator.countdown.duration}s. Press Ctrl-C to stop.[/dim]")
    try:
        while True:
            time.sleep(1)
            if orchestrator.error:
                print_status(orchestrator)
                break
    except KeyboardInterrupt:
        pass
    finally:
        orchestrator.dispose()


@cli.command()
@click.option("--league", "-l", default=ALL_LEAGUES, help="Only show this league")
@click.option("--search", "-s", default="", help="Filter by team name")
@click.option("--cached", is_flag=True, help="Use the latest stored snapshot without fetching")
@click.pass_obj
def standings(store, league, search, cached):
    """Show league tables."""
    favorites = FavoritesStore(store).names()
    if cached:
        data = latest_data_or_exit(store)
    else:
        orchestrator = build_orchestrator(store)
        data = load_or_exit(orchestrator)
        orchestrator.dispose()
    print_standings(filter_standings(data, search, league), favorites)


@cli.command()
@click.pass_obj
def leagues(store):
    """List leagues in the latest stored snapshot."""
    data = latest_data_or_exit(store)
    for name in available_leagues(data):
        console.print(f"  {name}")


@cli.command()
@click.option("--show", "snapshot_id", default=None, help="Print the matches of one snapshot")
@click.pass_obj
def history(store, snapshot_id):
    """List stored snapshots."""
    history_store = HistoryStore(store)

    if snapshot_id:
        snapshot = history_store.get(snapshot_id)
        if snapshot is None:
            console.print(f"[red]Error: no snapshot {snapshot_id}[/red]")
            sys.exit(1)
        console.print(f"[bold]Snapshot {snapshot.id}[/bold] [dim]{snapshot.timestamp}[/dim]")
        print_matches(snapshot.data.matches, FavoritesStore(store).names())
        return

    snapshots = history_store.load()
    if not snapshots:
        console.print("[yellow]No snapshots stored yet. Run live first.[/yellow]")
        return

    table = Table(title="Snapshots")
    table.add_column("ID", style="cyan")
    table.add_column("Saved")
    table.add_column("Matches", justify="right")
    table.add_column("Leagues", justify="right")
    table.add_column("Data time", justify="center")

    for s in snapshots:
        table.add_row(s.id, s.timestamp, str(len(s.data.matches)), str(len(available_leagues(s.data))), s.data.last_updated or "-")

    console.print(table)


@cli.command()
@click.argument("home")
@click.argument("away")
@click.option("--thinking", is_flag=True, help="Enable deep analysis (slower)")
@click.pass_obj
def predict(store, home, away, thinking):
    """Ask the AI for a match prediction."""
    orchestrator = build_orchestrator(store, with_location=False)
    orchestrator.thinking_mode = thinking
    with console.status(f"[bold]Analysing {home} vs {away}...[/bold]"):
        result = orchestrator.predict(home, away)
    orchestrator.dispose()

    console.print(f"[bold]{home} vs {away}[/bold]")
    console.print(f"  Prediction: [green]{result.prediction}[/green]")
    console.print(f"  Confidence: {result.confidence}")
    if result.analysis:
        console.print(f"  {result.analysis}")


@cli.command()
@click.option("--thinking", is_flag=True, help="Enable deep analysis (slower)")
@click.pass_obj
def analyze(store, thinking):
    """Trend report over stored snapshots, focused on favorites."""
    orchestrator = build_orchestrator(store, with_location=False)
    orchestrator.thinking_mode = thinking
    if not orchestrator.history.load():
        console.print("[yellow]No snapshots stored yet. Run live first.[/yellow]")
        orchestrator.dispose()
        return

    try:
        with console.status("[bold]Analysing history...[/bold]"):
            report = orchestrator.analyze_history(FavoritesStore(store).names())
    except BackendError as e:
        console.print(f"[red]Error generating analysis: {e}[/red]")
        sys.exit(1)
    finally:
        orchestrator.dispose()

    console.print(Markdown(report))


@cli.command()
@click.argument("team")
@click.pass_obj
def favorite(store, team):
    """Add or remove a favorite team."""
    if FavoritesStore(store).toggle(team):
        console.print(f"[green]★ {team} added to favorites[/green]")
    else:
        console.print(f"[yellow]{team} removed from favorites[/yellow]")


@cli.command("favorite-alerts")
@click.argument("team")
@click.option("--goals/--no-goals", default=None, help="Alert on goals")
@click.option("--start/--no-start", default=None, help="Alert on kick-off")
@click.option("--end/--no-end", default=None, help="Alert on full time")
@click.pass_obj
def favorite_alerts(store, team, goals, start, end):
    """Choose which events alert for a favorite team."""
    try:
        fav = FavoritesStore(store).set_flags(team, goals=goals, start=start, end=end)
    except KeyError as e:
        console.print(f"[red]Error: {e.args[0]}[/red]")
        sys.exit(1)
    console.print(f"{fav.name}: goals={fav.notify_goals} start={fav.notify_start} end={fav.notify_end}")


@cli.command("list-favorites")
@click.pass_obj
def list_favorites(store):
    """List favorite teams."""
    favorites = FavoritesStore(store).load()
    if not favorites:
        console.print("[yellow]No favorites yet. Add one with: kickoff favorite TEAM[/yellow]")
        return

    table = Table(title="Favorites")
    table.add_column("Team", style="cyan")
    table.add_column("Goals", justify="center")
    table.add_column("Kick-off", justify="center")
    table.add_column("Full time", justify="center")

    for fav in favorites:
        flags = ["✓" if flag else "-" for flag in (fav.notify_goals, fav.notify_start, fav.notify_end)]
        table.add_row(fav.name, *flags)

    console.print(table)


@cli.command()
@click.argument("match_id")
@click.argument("selection")
@click.argument("amount", type=float)
@click.pass_obj
def bet(store, match_id, selection, amount):
    """Place a virtual bet on a match from the latest snapshot."""
    data = latest_data_or_exit(store)
    match: Optional[Match] = next((m for m in data.matches if m.id.startswith(match_id)), None)
    if match is None:
        console.print(f"[red]Error: no match {match_id} in the latest snapshot[/red]")
        sys.exit(1)

    wallet = Wallet(store)
    try:
        placed = wallet.place_bet(match, selection, amount)
    except BetRejected as e:
        console.print(f"[red]Bet rejected: {e}[/red]")
        options = ", ".join(f"{k} @ {v:.2f}" for k, v in bet_selections(match).items() if v)
        console.print(f"[dim]Selections: {options}[/dim]")
        sys.exit(1)

    console.print(f"[green]€{placed.amount:.2f} on {placed.selection} @ {placed.odds:.2f} ({placed.match_name})[/green]")
    console.print(f"  Potential win: €{placed.potential_win:.2f}")
    console.print(f"  Balance: €{wallet.balance:.2f}")


@cli.command("list-bets")
@click.pass_obj
def list_bets(store):
    """List placed bets."""
    bets = Wallet(store).bets()
    if not bets:
        console.print("[yellow]No bets placed yet.[/yellow]")
        return

    table = Table(title="Bets")
    table.add_column("Match", style="cyan")
    table.add_column("Pick", justify="center")
    table.add_column("Odds", justify="right")
    table.add_column("Stake", justify="right")
    table.add_column("Potential win", justify="right", style="green")
    table.add_column("Placed")

    for b in bets:
        placed = time.strftime("%d/%m %H:%M", time.localtime(b.timestamp / 1000))
        table.add_row(b.match_name, b.selection, f"{b.odds:.2f}", f"€{b.amount:.2f}", f"€{b.potential_win:.2f}", placed)

    console.print(table)


@cli.command()
@click.pass_obj
def balance(store):
    """Show the virtual wallet balance."""
    console.print(f"[bold]Balance:[/bold] €{Wallet(store).balance:.2f}")


@cli.command()
@click.confirmation_option(prompt="Delete history, favorites, bets and balance?")
@click.pass_obj
def reset(store):
    """Clear all locally stored data."""
    store.clear()
    console.print("[green]Local data cleared.[/green]")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
