"""Typer CLI: pick-edge generate, grade, backtest, stats, show-config, snapshot."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from pick_edge.common.types import Sport

app = typer.Typer(
    name="pick-edge",
    help="Convergence-scored sports picks and walk-forward backtests",
    no_args_is_help=True,
)
console = Console()

_DATE_FORMATS = ["%Y-%m-%d"]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _load_config(config_path: Optional[Path]):
    from pick_edge.common.errors import ConfigError
    from pick_edge.config import get_settings
    from pick_edge.engine.profiles import load_engine_config

    try:
        return load_engine_config(config_path or get_settings().engine_config_path)
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


def _day(value: Optional[datetime]) -> date:
    return value.date() if value is not None else date.today()


@app.command()
def generate(
    sport: Sport = typer.Option(Sport.NCAAMB, "--sport", "-s", case_sensitive=False),
    day: Optional[datetime] = typer.Option(None, "--date", "-d", formats=_DATE_FORMATS, help="Game date (default today)"),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, json, csv"),
    save: bool = typer.Option(True, "--save/--no-save", help="Store picks in the pick database"),
    reasoning: bool = typer.Option(False, "--reasoning", help="Print each pick's signal breakdown"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine config TOML"),
) -> None:
    """Generate picks for one sport and date."""
    from pick_edge.signals.formatters import format_csv, format_json, format_reasoning, format_table

    config = _load_config(config_path)

    async def _run() -> None:
        from pick_edge.common.errors import NoGameHistoryError, ProviderError
        from pick_edge.config import get_settings
        from pick_edge.pipeline import generate_picks
        from pick_edge.providers.files import FileDataSource
        from pick_edge.providers.http_ratings import HttpRatingProvider
        from pick_edge.storage.picks import PickStore

        settings = get_settings()
        source = FileDataSource(settings.data_dir, significance=config.significance)
        http_ratings = None
        if settings.ratings_api_url:
            try:
                http_ratings = HttpRatingProvider.from_settings(
                    settings.ratings_api_url, settings.ratings_api_key, settings.http_timeout,
                )
            except ProviderError as exc:
                console.print(f"[yellow]{exc}; using file ratings[/yellow]")

        try:
            result = await generate_picks(
                sport,
                _day(day),
                history=source,
                matchups=source,
                ratings=http_ratings or source,
                angles=source,
                config=config,
            )
        except (NoGameHistoryError, ProviderError) as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1) from exc
        finally:
            if http_ratings is not None:
                await http_ratings.close()

        if output == "json":
            console.print(format_json(result.picks))
        elif output == "csv":
            console.print(format_csv(result.picks))
        else:
            format_table(result.picks, console, title=f"{sport.value} picks for {result.day}")
            if reasoning:
                for pick in result.picks:
                    format_reasoning(pick, console)

        t = result.telemetry
        console.print(
            f"[dim]processed={t.processed} errored={t.errored} generated={t.generated} "
            f"rejected_insufficient={t.rejected_insufficient} rejected_low_score={t.rejected_low_score} "
            f"stale_odds={t.stale_odds} skipped_started={t.skipped_started} "
            f"config={result.config_version}[/dim]"
        )

        if save and result.picks:
            inserted = await PickStore().save_picks(result.picks)
            console.print(f"[dim]Saved {inserted} new pick(s) to database[/dim]")

    asyncio.run(_run())


@app.command()
def grade(
    sport: Optional[Sport] = typer.Option(None, "--sport", "-s", case_sensitive=False),
) -> None:
    """Grade PENDING picks whose games are final."""

    async def _run() -> None:
        from pick_edge.config import get_settings
        from pick_edge.pipeline import grade_pending_picks
        from pick_edge.providers.files import FileDataSource
        from pick_edge.storage.picks import PickStore

        summary = await grade_pending_picks(
            PickStore(), FileDataSource(get_settings().data_dir), sport=sport,
        )
        console.print("[bold]Grading complete[/bold]")
        console.print(f"  Graded:     {summary.graded}")
        console.print(f"  Unresolved: {summary.unresolved}")
        console.print(f"  Errors:     {summary.errors}")

    asyncio.run(_run())


@app.command()
def backtest(
    sport: Sport = typer.Option(Sport.NCAAMB, "--sport", "-s", case_sensitive=False),
    start: Optional[datetime] = typer.Option(None, "--start", formats=_DATE_FORMATS),
    end: Optional[datetime] = typer.Option(None, "--end", formats=_DATE_FORMATS),
    season: Optional[int] = typer.Option(None, "--season", help="Season label (default from --start)"),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, json, csv"),
    show_picks: bool = typer.Option(False, "--picks", help="Also list every graded pick"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine config TOML"),
) -> None:
    """Walk-forward backtest over a date range."""
    from pick_edge.backtest.walkforward import run_backtest
    from pick_edge.common.errors import NoGameHistoryError, ProviderError
    from pick_edge.config import get_settings
    from pick_edge.providers.files import FileDataSource
    from pick_edge.signals.formatters import format_report_csv, format_report_json, format_report_table, format_table

    config = _load_config(config_path)
    source = FileDataSource(get_settings().data_dir, significance=config.significance)

    async def _load():
        games = await source.games(sport, end=end.date() if end else None)
        archive = await source.archive(sport)
        return games, archive

    try:
        games, archive = asyncio.run(_load())
    except ProviderError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if len(archive) == 0:
        console.print("[yellow]No dated rating snapshots; rating-based signals will be neutral.[/yellow]")

    try:
        run = run_backtest(
            games,
            sport,
            config,
            archive=archive,
            start=start.date() if start else None,
            end=end.date() if end else None,
            season=season,
        )
    except NoGameHistoryError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if output == "json":
        console.print(format_report_json(run.report))
    elif output == "csv":
        console.print(format_report_csv(run.report))
    else:
        format_report_table(run.report, console)
        if show_picks:
            format_table(run.picks, console, title="Backtest picks")


@app.command()
def stats(
    sport: Optional[Sport] = typer.Option(None, "--sport", "-s", case_sensitive=False),
) -> None:
    """Show historical pick performance statistics."""

    async def _run() -> None:
        from pick_edge.storage.picks import PickStore

        summary = await PickStore().performance_summary(sport)

        console.print("[bold]Pick Performance Summary[/bold]")
        console.print(f"  Total picks stored: {summary['total_picks']}")
        console.print(f"  Graded:             {summary['graded']}")
        console.print(f"  Pending:            {summary['pending']}")
        overall = summary["overall"]
        if overall["win_rate"] is not None:
            console.print(
                f"  Record:             {overall['wins']}-{overall['losses']}-{overall['pushes']} "
                f"({overall['win_rate']:.1%})"
            )
        else:
            console.print("  Win rate:           N/A (no graded picks)")
        for label, groups in (("tier", summary["by_tier"]), ("market", summary["by_market"])):
            for key, rec in groups.items():
                rate = f"{rec['win_rate']:.1%}" if rec["win_rate"] is not None else "N/A"
                console.print(f"    {label} {key}: {rec['wins']}-{rec['losses']}-{rec['pushes']} ({rate})")

    asyncio.run(_run())


@app.command(name="show-config")
def show_config(
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine config TOML"),
) -> None:
    """Print the effective engine configuration as JSON."""
    config = _load_config(config_path)
    console.print_json(config.model_dump_json())


@app.command()
def snapshot(
    day: Optional[datetime] = typer.Option(None, "--date", "-d", formats=_DATE_FORMATS, help="Snapshot date (default today)"),
) -> None:
    """Archive the rating feed as of a date into the data directory (NCAAMB)."""

    async def _run() -> None:
        from pick_edge.common.errors import ProviderError
        from pick_edge.config import get_settings
        from pick_edge.providers.files import FileDataSource
        from pick_edge.providers.http_ratings import HttpRatingProvider

        settings = get_settings()
        if not settings.ratings_api_url:
            console.print("[red]PICK_EDGE_RATINGS_API_URL is not set[/red]")
            raise typer.Exit(code=1)
        try:
            provider = HttpRatingProvider.from_settings(
                settings.ratings_api_url, settings.ratings_api_key, settings.http_timeout,
            )
        except ProviderError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1) from exc

        try:
            snap = await provider.snapshot_on(Sport.NCAAMB, _day(day))
        except ProviderError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1) from exc
        finally:
            await provider.close()

        path = FileDataSource(settings.data_dir).save_snapshot(Sport.NCAAMB, snap)
        console.print(f"Saved {len(snap)} ratings to {path}")

    asyncio.run(_run())


if __name__ == "__main__":
    app()
