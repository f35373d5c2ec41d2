"""Walk-forward backtest.

For each date in ascending order:

  1. score that date's games from the tracker state built only from earlier
     dates, and the rating snapshot valid on that date
  2. grade the picks against the final results
  3. append the date's games to the tracker

Dates are strictly sequential; each day's tracker is a new immutable value,
so any intermediate state can be kept for replay with ``keep_snapshots``.
The first ``warmup_days`` of the window only feed the tracker.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from itertools import groupby

from pick_edge.backtest.report import BacktestReport, build_report
from pick_edge.common.errors import NoGameHistoryError
from pick_edge.common.types import Market, Sport
from pick_edge.engine.evaluator import build_context, build_pick, evaluate_market
from pick_edge.engine.grader import apply_grade
from pick_edge.engine.profiles import EngineConfig
from pick_edge.games.models import Game, season_for
from pick_edge.ratings.pit import PITRatingArchive
from pick_edge.signals.models import Pick
from pick_edge.stats.tracker import StatTracker

logger = logging.getLogger(__name__)


@dataclass
class BacktestRun:
    report: BacktestReport
    picks: list[Pick] = field(default_factory=list)
    snapshots: dict[date, StatTracker] = field(default_factory=dict)


def _market_lines(game: Game) -> list[tuple[Market, float]]:
    lines = []
    if game.spread is not None:
        lines.append((Market.SPREAD, game.spread))
    if game.total is not None:
        lines.append((Market.TOTAL, game.total))
    return lines


def run_backtest(
    games: Iterable[Game],
    sport: Sport,
    config: EngineConfig,
    *,
    archive: PITRatingArchive | None = None,
    start: date | None = None,
    end: date | None = None,
    season: int | None = None,
    keep_snapshots: bool = False,
) -> BacktestRun:
    """Replay one sport/season and grade every pick it would have made.

    Games before ``start`` seed the tracker (earlier seasons only feed
    head-to-head history). Games after ``end`` are ignored.

    Raises:
        NoGameHistoryError: if no games fall inside the window.
    """
    ordered = sorted(
        (g for g in games if end is None or g.game_date <= end),
        key=lambda g: g.game_date,
    )
    window = [g for g in ordered if start is None or g.game_date >= start]
    if not window:
        raise NoGameHistoryError(f"No {sport.value} games between {start} and {end}")

    first_day = window[0].game_date
    season = season if season is not None else season_for(sport, first_day)
    bt = config.backtest
    warmup_end = first_day + timedelta(days=bt.warmup_days)

    tracker = StatTracker(season=season).add_games(g for g in ordered if g.game_date < first_day)
    run = BacktestRun(report=BacktestReport(sport=sport, season=season, config_version=config.version))
    games_scored = rejected_insufficient = rejected_low_score = 0
    next_progress = bt.progress_every

    logger.info(
        "Backtest %s season %d: %d games from %s, warm-up until %s, config %s",
        sport.value, season, len(window), first_day, warmup_end, config.version,
    )

    for day, day_iter in groupby(window, key=lambda g: g.game_date):
        day_games = list(day_iter)

        if day >= warmup_end:
            snapshot = archive.as_of(day) if archive is not None else None
            graded_at = datetime.combine(day, time.max)
            for game in day_games:
                games_scored += 1
                for market, line in _market_lines(game):
                    ctx = build_context(
                        sport=sport,
                        market=market,
                        game_date=day,
                        home_team=game.home_team,
                        away_team=game.away_team,
                        line=line,
                        tracker=tracker,
                        config=config,
                        ratings=snapshot,
                    )
                    evaluation = evaluate_market(ctx, config)
                    if evaluation.accepted:
                        run.picks.append(apply_grade(build_pick(evaluation), game, graded_at))
                    elif evaluation.insufficient_signals:
                        rejected_insufficient += 1
                    else:
                        rejected_low_score += 1

            if bt.progress_every and games_scored >= next_progress:
                logger.info("Processed %d games, %d picks so far", games_scored, len(run.picks))
                next_progress += bt.progress_every

        tracker = tracker.add_day(day_games)
        if keep_snapshots:
            run.snapshots[day] = tracker

    run.report = build_report(
        run.picks,
        sport=sport,
        season=season,
        config_version=config.version,
        constants=bt,
        start=first_day,
        end=window[-1].game_date,
        games_scored=games_scored,
        rejected_insufficient=rejected_insufficient,
        rejected_low_score=rejected_low_score,
    )
    logger.info(
        "Backtest done: %d games scored, %d picks (%s)",
        games_scored, len(run.picks), run.report.overall.display(),
    )
    return run
