"""
CLI interface for ActionLens.

Provides the command-line interface for importing action exports and
querying users, action counts, next-action distributions and
referral indices.
"""

import json
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from actionlens import __version__
from actionlens.analysis.correlation import CorrelationEngine
from actionlens.analysis.referral import ReferralEngine
from actionlens.config import get_config
from actionlens.exceptions import ActionLensError, ReferralCycleError
from actionlens.logging_setup import setup_logging
from actionlens.models import EventLog
from actionlens.storage.database import ActionDatabase
from actionlens.storage.loader import (
    extract_users_from_actions,
    load_actions,
    load_users,
    save_users,
)

# Create CLI app
app = typer.Typer(
    name="actionlens",
    help="ActionLens - analytics over user action logs",
    add_completion=False,
)

console = Console()


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``30m``, ``2h``, ``1d`` or ``24`` (hours).

    Raises:
        ValueError: If the text is not a non-negative duration.
    """
    value = text.strip().lower()
    if value.endswith("m"):
        duration = timedelta(minutes=float(value[:-1]))
    elif value.endswith("h"):
        duration = timedelta(hours=float(value[:-1]))
    elif value.endswith("d"):
        duration = timedelta(days=float(value[:-1]))
    else:
        duration = timedelta(hours=float(value))

    if duration < timedelta(0):
        raise ValueError(f"Duration must not be negative: {text}")
    return duration


def _get_database() -> ActionDatabase:
    """Get a connected database instance."""
    config = get_config()
    config.ensure_data_dir()
    db = ActionDatabase()
    db.connect()
    return db


def _load_log(actions_file: Optional[Path]) -> EventLog:
    """Load the event log from a JSON export, or from the database."""
    if actions_file:
        return load_actions(actions_file)

    db = _get_database()
    try:
        return db.load_log()
    finally:
        db.close()


@app.command("import")
def import_data(
    actions_file: Optional[Path] = typer.Option(
        None, "--actions", "-a",
        help="Actions JSON export (defaults to actions.json in the data directory)"
    ),
    users_file: Optional[Path] = typer.Option(
        None, "--users", "-u",
        help="Users JSON export; extracted from actions when omitted"
    ),
) -> None:
    """Import action and user exports into the database."""
    config = get_config()

    try:
        log = load_actions(actions_file or config.actions_file)
        if users_file:
            users = load_users(users_file)
        else:
            users = extract_users_from_actions(log)

        db = _get_database()
        try:
            db.clear()
            action_count = db.insert_actions(list(log))
            user_count = db.insert_users(users)
        finally:
            db.close()
    except ActionLensError as e:
        console.print(f"[red]Import failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Imported {action_count} actions and {user_count} users[/green]")


@app.command()
def user(
    user_id: int = typer.Argument(..., help="User id"),
) -> None:
    """Look up a user by id."""
    db = _get_database()
    try:
        found = db.get_user(user_id)
    finally:
        db.close()

    if found is None:
        console.print(f"[red]Invalid id: {user_id}[/red]")
        raise typer.Exit(1)

    typer.echo(json.dumps(found.to_dict()))


@app.command()
def actions(
    user_id: int = typer.Argument(..., help="User id"),
) -> None:
    """Count the actions performed by a user."""
    db = _get_database()
    try:
        count = db.count_actions_for_user(user_id)
    finally:
        db.close()

    typer.echo(json.dumps({"count": count}))


@app.command("next")
def next_action(
    action_type: str = typer.Argument(..., help="Trigger action type"),
    window: Optional[str] = typer.Option(
        None, "--window", "-w",
        help="Maximum time until the next action (e.g., 30m, 2h, 1d)"
    ),
    unbounded: bool = typer.Option(
        False, "--unbounded",
        help="Count the next action regardless of elapsed time"
    ),
    actions_file: Optional[Path] = typer.Option(
        None, "--actions", "-a",
        help="Read actions from a JSON export instead of the database"
    ),
    as_json: bool = typer.Option(
        False, "--json",
        help="Print the distribution as JSON"
    ),
) -> None:
    """Show the distribution of actions that follow an action type."""
    try:
        engine = CorrelationEngine(
            window=parse_duration(window) if window else None,
            unbounded=unbounded,
        )
    except ValueError as e:
        console.print(f"[red]Invalid window: {escape(str(e))}[/red]")
        console.print("Use format like: 30m, 2h, 1d")
        raise typer.Exit(1)

    try:
        log = _load_log(actions_file)
    except ActionLensError as e:
        console.print(f"[red]Error loading actions: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    counts, total = engine.count_next_actions(log, action_type)
    distribution = engine.normalize(counts, total)

    if as_json:
        typer.echo(json.dumps(distribution))
        return

    if not distribution:
        console.print(f"[yellow]No actions found after {action_type}[/yellow]")
        return

    table = Table(title=f"Next actions after {action_type} ({total} observed)")
    table.add_column("Action", style="cyan")
    table.add_column("Count", style="white", justify="right")
    table.add_column("Probability", style="green", justify="right")

    for next_type, probability in sorted(distribution.items(), key=lambda x: x[1], reverse=True):
        table.add_row(next_type, str(counts[next_type]), f"{probability:.2%}")

    console.print(table)


@app.command()
def referrals(
    actions_file: Optional[Path] = typer.Option(
        None, "--actions", "-a",
        help="Read actions from a JSON export instead of the database"
    ),
    as_json: bool = typer.Option(
        False, "--json",
        help="Print the referral index as JSON"
    ),
    stats: bool = typer.Option(
        False, "--stats",
        help="Show referral forest statistics"
    ),
) -> None:
    """Show the referral index of every referring or referred user."""
    try:
        log = _load_log(actions_file)
    except ActionLensError as e:
        console.print(f"[red]Error loading actions: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    engine = ReferralEngine()

    if stats:
        table = Table(title="Referral Forest Statistics")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")
        for metric, value in engine.statistics(log).items():
            table.add_row(metric.replace("_", " ").title(), str(value))
        console.print(table)
        return

    try:
        index = engine.referral_index(log)
    except ReferralCycleError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(index))
        return

    if not index:
        console.print("[yellow]No referrals found[/yellow]")
        return

    table = Table(title="Referral Index")
    table.add_column("User", style="cyan", justify="right")
    table.add_column("Referral Index", style="green", justify="right")

    for user_id, value in sorted(index.items(), key=lambda x: (-x[1], x[0])):
        table.add_row(str(user_id), str(value))

    console.print(table)


@app.command()
def extract_users(
    actions_file: Optional[Path] = typer.Option(
        None, "--actions", "-a",
        help="Actions JSON export (defaults to actions.json in the data directory)"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="Users file to write (defaults to users.json in the data directory)"
    ),
) -> None:
    """Derive a users file from the acting users of an actions export."""
    config = get_config()
    target = output or config.users_file

    try:
        log = load_actions(actions_file or config.actions_file)
    except ActionLensError as e:
        console.print(f"[red]Error loading actions: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    users = extract_users_from_actions(log)
    save_users(users, target)
    console.print(f"[green]Wrote {len(users)} users to {target}[/green]")


@app.command()
def status() -> None:
    """Show configuration and database statistics."""
    config = get_config()

    table = Table(title="ActionLens Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Version", __version__)
    table.add_row("Data Directory", str(config.data_dir))
    table.add_row("Next Action Window", str(config.next_action_window))
    table.add_row("Referral Action Type", config.referral_action_type)

    if config.database_path.exists():
        db = _get_database()
        try:
            table.add_row("Total Actions", str(db.get_action_count()))
            table.add_row("Total Users", str(db.get_user_count()))

            top_types = list(db.get_action_type_counts().items())[:3]
            if top_types:
                types_str = ", ".join(f"{t}: {c}" for t, c in top_types)
                table.add_row("Top Action Types", types_str)
        finally:
            db.close()
    else:
        table.add_row("Database", "[yellow]Not initialized[/yellow]")

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"ActionLens v{__version__}")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Echo log records to the console"
    ),
) -> None:
    """
    ActionLens - analytics over user action logs

    Answers next-action and referral index queries over an imported
    log of user actions.
    """
    setup_logging(get_config(), verbose=verbose, level="DEBUG" if verbose else None)


if __name__ == "__main__":
    app()
