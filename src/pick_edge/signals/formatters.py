"""Pick and report output formatters: Rich table, JSON, CSV."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pick_edge.backtest.report import BacktestReport, RecordLine
from pick_edge.signals.models import Pick

_TIER_STARS = {5: "★★★★★", 4: "★★★★", 3: "★★★"}


def _sorted(picks: list[Pick]) -> list[Pick]:
    return sorted(picks, key=lambda p: (-p.score, -p.tier, p.home_team, p.market.value))


def _pct(value: float | None) -> str:
    return "-" if value is None else f"{value:.1f}%"


def format_table(picks: list[Pick], console: Console | None = None, title: str = "Picks") -> None:
    """Print picks as a Rich table sorted by score (descending)."""
    if console is None:
        console = Console()

    if not picks:
        console.print("[yellow]No picks generated (no market cleared the tier thresholds).[/yellow]")
        return

    table = Table(
        title=title,
        caption=f"Generated at {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        show_lines=True,
    )

    table.add_column("Tier", style="bold", width=7)
    table.add_column("Score", justify="right", width=5)
    table.add_column("Date", width=10)
    table.add_column("Matchup", width=32)
    table.add_column("Pick", width=24)
    table.add_column("Grade", width=7)
    table.add_column("Headline", width=48, no_wrap=False)

    for p in _sorted(picks):
        grade_color = {"WIN": "green", "LOSS": "red", "PUSH": "yellow"}.get(p.grade.value, "dim")
        table.add_row(
            _TIER_STARS.get(p.tier, str(p.tier)),
            str(p.score),
            p.game_date.isoformat(),
            p.matchup[:32],
            escape(p.label),
            f"[{grade_color}]{p.grade.value}[/{grade_color}]",
            escape(p.headline),
        )

    console.print(table)
    console.print(f"\n[dim]{len(picks)} pick(s) total[/dim]")


def format_reasoning(pick: Pick, console: Console | None = None) -> None:
    """Print one pick's reasoning, winner-side first."""
    if console is None:
        console = Console()
    console.print(f"[bold]{escape(pick.label)}[/bold] ({escape(pick.matchup)}, score {pick.score})")
    for entry in pick.reasoning:
        style = "red" if entry.opposing else "green"
        console.print(f"  [{style}]{entry.weight:>3}[/{style}] {escape(entry.display)}")


def _pick_dict(p: Pick) -> dict:
    return {
        "id": p.id,
        "sport": p.sport.value,
        "market": p.market.value,
        "home_team": p.home_team,
        "away_team": p.away_team,
        "game_date": p.game_date.isoformat(),
        "side": p.side.value,
        "line": p.line,
        "label": p.label,
        "score": p.score,
        "tier": p.tier,
        "headline": p.headline,
        "reasoning": [
            {
                "label": r.label,
                "weight": r.weight,
                "strength": r.strength.value,
                "category": r.category.value,
                "opposing": r.opposing,
            }
            for r in p.reasoning
        ],
        "grade": p.grade.value,
        "actual_value": p.actual_value,
        "graded_at": p.graded_at.isoformat() if p.graded_at else None,
    }


def format_json(picks: list[Pick]) -> str:
    """Format picks as a JSON string."""
    return json.dumps([_pick_dict(p) for p in _sorted(picks)], indent=2)


def format_csv(picks: list[Pick]) -> str:
    """Format picks as CSV. Reasoning is flattened to ``|``-joined labels."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([
        "sport", "market", "game_date", "home_team", "away_team", "side", "line",
        "label", "score", "tier", "grade", "actual_value", "headline", "reasoning",
    ])
    for p in _sorted(picks):
        writer.writerow([
            p.sport.value, p.market.value, p.game_date.isoformat(), p.home_team, p.away_team,
            p.side.value, p.line, p.label, p.score, p.tier, p.grade.value, p.actual_value,
            p.headline, "|".join(r.display for r in p.reasoning),
        ])
    return output.getvalue()


# ── Backtest reports ──


def _record_row(name: str, record: RecordLine, odds: int) -> list[str]:
    return [name, record.display(), str(record.picks), _pct(record.win_pct), _pct(record.roi(odds))]


def _report_rows(report: BacktestReport) -> list[tuple[str, list[list[str]]]]:
    odds = report.vig_odds
    return [
        ("Overall", [_record_row("All", report.overall, odds)]),
        ("By market", [_record_row(m.value, r, odds) for m, r in report.by_market.items()]),
        ("By tier", [_record_row(f"{t}★", r, odds) for t, r in report.by_tier.items()]),
        (
            "By tier x market",
            [_record_row(f"{t}★ {m.value}", r, odds) for (t, m), r in report.by_tier_market.items()],
        ),
        ("By month", [_record_row(month, r, odds) for month, r in report.by_month.items()]),
        ("Best days", [_record_row(d.day.isoformat(), d.record, odds) for d in report.best_days]),
        ("Worst days", [_record_row(d.day.isoformat(), d.record, odds) for d in report.worst_days]),
    ]


def format_report_table(report: BacktestReport, console: Console | None = None) -> None:
    if console is None:
        console = Console()

    console.print(
        f"[bold]{report.sport.value} season {report.season} backtest[/bold] "
        f"({report.start} to {report.end}, config {report.config_version})"
    )
    console.print(
        f"  Games scored: {report.games_scored} | "
        f"rejected (insufficient signals): {report.rejected_insufficient} | "
        f"rejected (low score): {report.rejected_low_score}"
    )

    for section, rows in _report_rows(report):
        if not rows:
            continue
        table = Table(title=section, title_justify="left")
        table.add_column("Group", style="bold")
        table.add_column("W-L-P")
        table.add_column("Picks", justify="right")
        table.add_column("Win %", justify="right")
        table.add_column(f"ROI @ {report.vig_odds}", justify="right")
        for row in rows:
            table.add_row(*row)
        console.print(table)


def format_report_json(report: BacktestReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


def format_report_csv(report: BacktestReport) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["section", "group", "record", "picks", "win_pct", "roi"])
    for section, rows in _report_rows(report):
        for row in rows:
            writer.writerow([section, *row])
    return output.getvalue()
