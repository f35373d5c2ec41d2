"""Top-level orchestrators for live pick generation and grading.

Generation wires together: game history → season tracker → rating/prediction
fetch (once per run, cached) → per-matchup angle discovery and scoring in
small concurrent batches → accepted picks plus run telemetry.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

import aiosqlite
from rich.console import Console

from pick_edge.common.errors import NoGameHistoryError, ProviderError
from pick_edge.common.types import Category, Market, Sport
from pick_edge.config import get_settings
from pick_edge.engine.evaluator import MarketEvaluation, build_context, build_pick, evaluate_market
from pick_edge.engine.grader import apply_grade
from pick_edge.engine.profiles import EngineConfig
from pick_edge.games.models import Game, GamePrediction, Matchup, TrendAngle, season_for
from pick_edge.games.teams import TeamNameResolver
from pick_edge.providers.base import AngleProvider, GameHistoryProvider, MatchupProvider, RatingProvider
from pick_edge.ratings.cache import TTLCache
from pick_edge.ratings.snapshot import RatingSnapshot, find_prediction
from pick_edge.signals.base import Weather
from pick_edge.signals.models import Pick
from pick_edge.stats.tracker import StatTracker
from pick_edge.storage.picks import PickStore

logger = logging.getLogger(__name__)
console = Console()

ANGLE_SEASONS_BACK = 2
ANGLE_LIMIT = 10
GRADE_MATCH_DAYS = 1


@dataclass
class RunTelemetry:
    processed: int = 0
    errored: int = 0
    generated: int = 0
    rejected_insufficient: int = 0
    rejected_low_score: int = 0
    stale_odds: int = 0
    skipped_started: int = 0

    def count(self, evaluation: MarketEvaluation) -> None:
        if evaluation.accepted:
            self.generated += 1
        elif evaluation.insufficient_signals:
            self.rejected_insufficient += 1
        else:
            self.rejected_low_score += 1


@dataclass
class GenerationResult:
    sport: Sport
    day: date
    config_version: str
    picks: list[Pick] = field(default_factory=list)
    telemetry: RunTelemetry = field(default_factory=RunTelemetry)


@dataclass
class GradingSummary:
    graded: int = 0
    errors: int = 0
    unresolved: int = 0


def _uses_ratings(config: EngineConfig, sport: Sport) -> tuple[bool, bool]:
    """(needs rating snapshot, needs predictions) for any market of ``sport``."""
    needs_ratings = needs_predictions = False
    for market in Market:
        profile = config.profile(sport, market)
        divergence = profile.weights.get(Category.MARKET_DIVERGENCE, 0.0) > 0
        if profile.model_edge == "efficiency" or divergence:
            needs_ratings = True
        if divergence:
            needs_predictions = True
    return needs_ratings, needs_predictions


async def _fetch_ratings(
    provider: RatingProvider | None,
    sport: Sport,
    day: date,
    config: EngineConfig,
    cache: TTLCache,
) -> tuple[RatingSnapshot | None, list[GamePrediction]]:
    """Ratings and predictions for the run. Failures degrade to None / []."""
    if provider is None:
        return None, []

    settings = get_settings()
    needs_ratings, needs_predictions = _uses_ratings(config, sport)
    snapshot: RatingSnapshot | None = None
    predictions: list[GamePrediction] = []

    if needs_ratings:
        try:
            snapshot = await cache.get_or_fetch(
                ("ratings", sport),
                lambda: provider.current_ratings(sport),
                settings.ratings_ttl_seconds,
            )
        except ProviderError as exc:
            logger.warning("Rating fetch failed for %s, continuing without: %s", sport.value, exc)

    if needs_predictions:
        try:
            predictions = await cache.get_or_fetch(
                ("predictions", sport, day),
                lambda: provider.predictions(sport, day),
                settings.predictions_ttl_seconds,
            )
        except ProviderError as exc:
            logger.warning("Prediction fetch failed for %s %s: %s", sport.value, day, exc)

    return snapshot, predictions


async def _team_angles(
    provider: AngleProvider | None, sport: Sport, team: str, season: int,
) -> tuple[TrendAngle, ...]:
    if provider is None:
        return ()
    try:
        found = await provider.angles(sport, team, (season - ANGLE_SEASONS_BACK, season), ANGLE_LIMIT)
    except ProviderError as exc:
        logger.warning("Angle discovery failed for %s: %s", team, exc)
        return ()
    return tuple(found)


def _aware(moment: datetime) -> datetime:
    """Naive datetimes are taken as local time."""
    return moment if moment.tzinfo is not None else moment.astimezone()


def _has_started(matchup: Matchup, now: datetime, min_minutes: float) -> bool:
    if matchup.start_time is None:
        return False
    return _aware(matchup.start_time) <= _aware(now) + timedelta(minutes=min_minutes)


async def generate_picks(
    sport: Sport,
    day: date,
    *,
    history: GameHistoryProvider,
    matchups: MatchupProvider,
    config: EngineConfig,
    ratings: RatingProvider | None = None,
    angles: AngleProvider | None = None,
    cache: TTLCache | None = None,
    now: datetime | None = None,
) -> GenerationResult:
    """Score every scheduled matchup on ``day`` and return accepted picks.

    Raises:
        NoGameHistoryError: if the history provider has no games for ``sport``.
    """
    settings = get_settings()
    cache = cache or TTLCache()
    now = now or datetime.now().astimezone()
    result = GenerationResult(sport=sport, day=day, config_version=config.version)
    telemetry = result.telemetry

    games = await history.games(sport)
    if not games:
        raise NoGameHistoryError(f"No {sport.value} games in history")

    upcoming = await matchups.matchups(sport, day)
    console.print(f"[bold]Scoring {len(upcoming)} {sport.value} matchup(s) for {day}...[/bold]")
    if not upcoming:
        return result

    season = season_for(sport, day)
    tracker = StatTracker.build(games, season)
    resolver = TeamNameResolver({g.home_team for g in games} | {g.away_team for g in games})
    snapshot, predictions = await _fetch_ratings(ratings, sport, day, config, cache)

    async def _score(matchup: Matchup) -> list[MarketEvaluation]:
        home = resolver.resolve(matchup.home_team)
        away = resolver.resolve(matchup.away_team)
        home_angles, away_angles = await asyncio.gather(
            _team_angles(angles, sport, home, season),
            _team_angles(angles, sport, away, season),
        )
        prediction = find_prediction(predictions, matchup.home_team, matchup.away_team)
        weather = Weather(
            wind_mph=matchup.forecast_wind_mph,
            temp_f=matchup.forecast_temp_f,
            category=matchup.forecast_category,
        )

        evaluations: list[MarketEvaluation] = []
        for market, line in ((Market.SPREAD, matchup.spread), (Market.TOTAL, matchup.total)):
            if line is None:
                continue
            ctx = build_context(
                sport=sport,
                market=market,
                game_date=matchup.game_date,
                home_team=home,
                away_team=away,
                line=line,
                tracker=tracker,
                config=config,
                feed_home=matchup.home_team,
                feed_away=matchup.away_team,
                ratings=snapshot,
                prediction=prediction,
                home_angles=home_angles,
                away_angles=away_angles,
                moneyline_home=matchup.moneyline_home,
                moneyline_away=matchup.moneyline_away,
                weather=weather,
            )
            evaluations.append(evaluate_market(ctx, config))
        return evaluations

    pending: list[Matchup] = []
    for matchup in upcoming:
        if _has_started(matchup, now, settings.min_minutes_before_start):
            telemetry.skipped_started += 1
            logger.info("Skipping %s @ %s, already started", matchup.away_team, matchup.home_team)
            continue
        if matchup.is_stale(now, settings.stale_odds_hours):
            telemetry.stale_odds += 1
            logger.warning(
                "Stale odds for %s @ %s (updated %s)",
                matchup.away_team, matchup.home_team, matchup.odds_updated_at,
            )
        pending.append(matchup)

    batch_size = settings.batch_size
    for i in range(0, len(pending), batch_size):
        batch = pending[i:i + batch_size]
        outcomes = await asyncio.gather(*(_score(m) for m in batch), return_exceptions=True)
        for matchup, outcome in zip(batch, outcomes):
            telemetry.processed += 1
            if isinstance(outcome, BaseException):
                telemetry.errored += 1
                logger.error(
                    "Scoring failed for %s @ %s: %s",
                    matchup.away_team, matchup.home_team, outcome, exc_info=outcome,
                )
                continue
            for evaluation in outcome:
                telemetry.count(evaluation)
                if evaluation.accepted:
                    result.picks.append(build_pick(evaluation))

    result.picks.sort(key=lambda p: (-p.score, -p.tier, p.home_team, p.market.value))
    console.print(
        f"[bold]Generated [green]{telemetry.generated}[/green] pick(s) "
        f"from {telemetry.processed} matchup(s)[/bold]"
    )
    return result


def _closest_game(candidates: list[Game], day: date) -> Game | None:
    near = [g for g in candidates if abs((g.game_date - day).days) <= GRADE_MATCH_DAYS]
    if not near:
        return None
    return min(near, key=lambda g: abs((g.game_date - day).days))


async def grade_pending_picks(
    store: PickStore,
    history: GameHistoryProvider,
    now: datetime | None = None,
    sport: Sport | None = None,
) -> GradingSummary:
    """Grade every PENDING pick whose game has a final result.

    Games are matched on canonical home/away names within one day of the
    pick's date. Picks with no matching final game stay PENDING.
    """
    now = now or datetime.now().astimezone()
    summary = GradingSummary()
    pending = await store.pending_picks(sport, before=now.date() + timedelta(days=1))
    if not pending:
        return summary

    by_sport: dict[Sport, list[Pick]] = defaultdict(list)
    for pick in pending:
        by_sport[pick.sport].append(pick)

    for pick_sport, picks in by_sport.items():
        start = min(p.game_date for p in picks) - timedelta(days=GRADE_MATCH_DAYS)
        end = max(p.game_date for p in picks) + timedelta(days=GRADE_MATCH_DAYS)
        try:
            games = await history.games(pick_sport, start, end)
        except ProviderError as exc:
            logger.warning("Could not load %s results for grading: %s", pick_sport.value, exc)
            summary.errors += len(picks)
            continue

        resolver = TeamNameResolver({g.home_team for g in games} | {g.away_team for g in games})
        by_pair: dict[tuple[str, str], list[Game]] = defaultdict(list)
        for g in games:
            by_pair[(g.home_team, g.away_team)].append(g)

        for pick in picks:
            key = (resolver.resolve(pick.home_team), resolver.resolve(pick.away_team))
            game = _closest_game(by_pair.get(key, []), pick.game_date)
            if game is None:
                summary.unresolved += 1
                continue

            graded = apply_grade(pick, game, now)
            if not graded.is_graded or pick.id is None:
                summary.unresolved += 1
                continue
            try:
                summary.graded += await store.record_grade(
                    pick.id, graded.grade, graded.actual_value, now,
                )
            except aiosqlite.Error as exc:
                logger.error("Failed to record grade for pick %s: %s", pick.id, exc)
                summary.errors += 1
                continue
            logger.info("Graded %s %s: %s", pick.matchup, pick.label, graded.grade.value)

    return summary
