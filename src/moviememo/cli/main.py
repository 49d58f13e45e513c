"""
Command Line Interface for MovieMemo Insights.

This module renders the insights engine over an export-format JSON file:
the headline insight, KPIs, distributions, narrative statements, the
simplified statistics view and the weekly streak.
"""

import json
import logging
import sys
from datetime import datetime, time
from pathlib import Path
from typing import Callable, Optional, Sequence

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from moviememo import __version__
from moviememo.config import AppConfig, load_config
from moviememo.core.models import KeyCount, format_cents, format_minutes
from moviememo.core.ranges import RangeSelector, SEGMENTS, parse_selector
from moviememo.exceptions import MovieMemoError
from moviememo.insights.engine import InsightsEngine
from moviememo.insights.streaks import calculate_streaks
from moviememo.repository import InMemoryRepository
from moviememo.utils.logging import setup_logging

logger = logging.getLogger(__name__)

# Initialize Rich console
console = Console()

RANGE_KEYS = [preset.value for preset in SEGMENTS]


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def print_header(text: str) -> None:
    """Print a styled header."""
    console.print()
    console.print(Panel(text, style="bold blue", expand=False))
    console.print()


def print_error(text: str) -> None:
    """Print red error message."""
    console.print(f"[bold red]✗[/bold red] {escape(text)}")


def print_info_panel(title: str, content: str, border_style: str = "blue") -> None:
    """Print info panel box."""
    console.print(Panel(content, title=title, border_style=border_style))


def print_key_counts(title: str, buckets: Sequence[KeyCount], limit: int = 10) -> None:
    """Print a distribution as a two-column table."""
    if not buckets:
        return

    total = sum(bucket.count for bucket in buckets)
    table = Table(title=title)
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Share", justify="right", style="green")

    for bucket in buckets[:limit]:
        share = int(bucket.count * 100 / total) if total else 0
        table.add_row(escape(bucket.category), str(bucket.count), f"{share}%")

    console.print(table)


def make_clock(as_of: Optional[datetime]) -> Callable[[], datetime]:
    """Clock for the engine: the given day (end of day) or the real time."""
    if as_of is None:
        return datetime.now
    fixed = datetime.combine(as_of.date(), time(23, 59, 59))
    return lambda: fixed


def load_engine(ctx: click.Context, data: Optional[Path], as_of: Optional[datetime]) -> InsightsEngine:
    """Build an engine over the export file named on the command line or in config."""
    cfg: AppConfig = ctx.obj["config"]
    data_path = data or cfg.paths.data_file
    logger.info(f"Loading watched entries from {data_path}")
    repository = InMemoryRepository.load_file(data_path)
    return InsightsEngine(repository, config=cfg.insights, clock=make_clock(as_of))


def select_range(
    ctx: click.Context,
    range_key: Optional[str],
    start: Optional[datetime],
    end: Optional[datetime],
) -> RangeSelector:
    """Turn command-line range options into a selector."""
    if (start is None) != (end is None):
        raise click.UsageError("--start and --end must be given together")
    if start is not None:
        return RangeSelector.custom(start.date(), end.date())
    if range_key:
        return parse_selector(range_key)
    return parse_selector(ctx.obj["config"].default_range)


def fail(error: MovieMemoError, debug: bool) -> None:
    """Report a boundary error and exit with status 1."""
    print_error(str(error))
    if debug:
        logger.exception("Command failed")
    sys.exit(1)


# =============================================================================
# MAIN CLI GROUP
# =============================================================================


@click.group()
@click.version_option(__version__, prog_name="moviememo")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Custom config file")
@click.pass_context
def moviememo(ctx, verbose, debug, config_path):
    """
    MovieMemo Insights - statistics and narrative insights for your movie log.

    Reads an export file (watchedEntries JSON) and summarizes what, when,
    where and with whom you watch.
    """
    cfg = load_config(config_path)

    # Set up logging
    if debug or cfg.debug:
        level = "DEBUG"
    elif verbose or cfg.verbose:
        level = "INFO"
    else:
        level = cfg.log_level
    setup_logging(level=level, log_file=cfg.paths.log_file)

    # Store context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug


# Shared options
data_option = click.option(
    "--data",
    "-d",
    type=click.Path(path_type=Path),
    help="Export file to read (defaults to paths.data_file)",
)
as_of_option = click.option(
    "--as-of",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Compute as if today were this date",
)
json_option = click.option("--json", "as_json", is_flag=True, help="Print JSON instead of tables")


# =============================================================================
# INSIGHTS COMMAND
# =============================================================================


@moviememo.command()
@data_option
@click.option("--range", "-r", "range_key", type=click.Choice(RANGE_KEYS), help="Named period")
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), help="Custom range start")
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), help="Custom range end")
@as_of_option
@json_option
@click.pass_context
def insights(ctx, data, range_key, start, end, as_of, as_json):
    """
    Show insights for a date range.

    Example:
        moviememo insights --data export.json --range last3Months
        moviememo insights --data export.json --start 2024-01-01 --end 2024-03-31
    """
    selector = select_range(ctx, range_key, start, end)
    try:
        engine = load_engine(ctx, data, as_of)
    except MovieMemoError as e:
        fail(e, ctx.obj["debug"])
    result = engine.load_insights(selector)

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    resolved = result.resolved_range
    print_header(f"🎬 Insights: {resolved.label}")

    if result.is_empty:
        print_info_panel(
            "No movies yet",
            "Log your first movie to start seeing insights.",
            border_style="yellow",
        )
        return

    print_info_panel("Highlight", result.hero.headline(), border_style="green")

    table = Table(title="Overview")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")

    comparison = result.movies_comparison
    movies = str(result.movies_count)
    if resolved.previous is not None:
        movies += f" ({comparison.delta_text} vs {resolved.comparison_label})"
    table.add_row("Movies", movies)
    table.add_row("Watch time", format_minutes(result.total_watch_time_minutes))
    table.add_row("Avg length", format_minutes(result.avg_watch_time_per_movie_minutes))
    if result.has_spend_data:
        table.add_row("Spent", format_cents(result.total_spent_cents))
        table.add_row("Avg per movie", format_cents(result.avg_spent_per_movie_cents))
        table.add_row("Avg theater spend", format_cents(result.theater_avg_spend_cents))
    table.add_row("Weekday / Weekend", f"{result.weekday_count} / {result.weekend_count}")
    table.add_row("Current streak", f"{result.current_streak_weeks} wk")
    table.add_row("Best streak", f"{result.best_streak_weeks} wk")
    console.print(table)

    print_key_counts("Where", result.location_buckets)
    print_key_counts("When", result.time_of_day_buckets)
    print_key_counts("Genres", result.top_genres)
    print_key_counts("Languages", result.top_languages)
    print_key_counts("Companions", result.companions)

    if result.smart_insights:
        console.print("\n[bold]Insights:[/bold]")
        for insight in result.smart_insights:
            console.print(f"  • {escape(insight.text)}")

    if ctx.obj["verbose"]:
        console.print(f"\n[dim]Range: {resolved.start:%Y-%m-%d} to {resolved.end:%Y-%m-%d}[/dim]")


# =============================================================================
# STATS COMMAND
# =============================================================================


@moviememo.command()
@data_option
@as_of_option
@json_option
@click.pass_context
def stats(ctx, data, as_of, as_json):
    """
    Show the simple statistics view (all time plus this month).

    Example:
        moviememo stats --data export.json
    """
    try:
        engine = load_engine(ctx, data, as_of)
    except MovieMemoError as e:
        fail(e, ctx.obj["debug"])
    basic = engine.load_basic_stats()

    if as_json:
        click.echo(json.dumps(basic.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    print_header("📊 Statistics")

    table = Table(title="Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("All time", justify="right")
    table.add_column("This month", justify="right")

    table.add_row("Movies", str(basic.total_movies_watched), str(basic.this_month_movies))
    table.add_row(
        "Spent",
        format_cents(basic.total_amount_spent_cents),
        format_cents(basic.this_month_spending_cents),
    )
    table.add_row(
        "Avg theater spend",
        format_cents(basic.average_theater_spend_cents),
        format_cents(basic.this_month_average_theater_spend_cents),
    )
    table.add_row("Watch time", format_minutes(basic.total_watch_time_minutes), "")
    table.add_row("Weekday / Weekend", f"{basic.weekday_count} / {basic.weekend_count}", "")
    console.print(table)

    print_key_counts("Top Genres", basic.top_genres)
    print_key_counts("Locations", basic.movies_by_location)
    print_key_counts("Time of Day", basic.movies_by_time_of_day)
    print_key_counts("Languages", basic.movies_by_language)
    print_key_counts("Companions", basic.movies_by_companion)
    print_key_counts("Monthly", basic.monthly_trends, limit=24)


# =============================================================================
# STREAK COMMAND
# =============================================================================


@moviememo.command()
@data_option
@as_of_option
@click.pass_context
def streak(ctx, data, as_of):
    """Show the current and best weekly watch streak."""
    try:
        engine = load_engine(ctx, data, as_of)
    except MovieMemoError as e:
        fail(e, ctx.obj["debug"])

    result = calculate_streaks(engine.repository.get_all_watched_entries(), now=engine.clock())
    console.print(f"Current streak: [bold]{result.current_weeks}[/bold] week(s)")
    console.print(f"Best streak: [bold]{result.best_weeks}[/bold] week(s)")


# =============================================================================
# CONFIG GROUP
# =============================================================================


@moviememo.group()
def config():
    """Manage configuration settings."""
    pass


@config.command()
@click.pass_context
def show(ctx):
    """Display current configuration."""
    cfg: AppConfig = ctx.obj["config"]
    print_header("Current Configuration")

    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for key, value in cfg.insights.model_dump().items():
        table.add_row(f"insights.{key}", str(value))
    table.add_row("paths.data_file", str(cfg.paths.data_file))
    table.add_row("paths.log_file", str(cfg.paths.log_file or "-"))
    table.add_row("default_range", cfg.default_range)
    table.add_row("log_level", cfg.log_level)

    console.print(table)


def main():
    """Entry point for the console script."""
    moviememo()


if __name__ == "__main__":
    main()
