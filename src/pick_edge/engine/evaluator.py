"""Score one market of one game: context → signals → convergence → tier → pick.

Shared by live generation and the backtest so both run exactly the same
scoring path against the same ``EngineConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from pick_edge.common.types import Direction, Market, Sport
from pick_edge.engine import convergence
from pick_edge.engine.headlines import format_line, spread_headline, total_headline
from pick_edge.engine.profiles import EngineConfig
from pick_edge.engine.tiering import REJECTED, assign_tier
from pick_edge.games.models import GamePrediction, TrendAngle
from pick_edge.ratings.snapshot import RatingSnapshot
from pick_edge.signals.base import SignalContext, Weather
from pick_edge.signals.models import ConvergenceResult, Pick, SignalResult
from pick_edge.signals.registry import compute_signals
from pick_edge.stats.tracker import StatTracker


@dataclass(frozen=True)
class MarketEvaluation:
    ctx: SignalContext
    signals: tuple[SignalResult, ...]
    result: ConvergenceResult
    tier: int

    @property
    def accepted(self) -> bool:
        return self.tier != REJECTED

    @property
    def insufficient_signals(self) -> bool:
        """Rejected by the min-active gate rather than by score."""
        return self.result.gated


def build_context(
    *,
    sport: Sport,
    market: Market,
    game_date: date,
    home_team: str,
    away_team: str,
    line: float,
    tracker: StatTracker,
    config: EngineConfig,
    feed_home: str | None = None,
    feed_away: str | None = None,
    ratings: RatingSnapshot | None = None,
    prediction: GamePrediction | None = None,
    home_angles: tuple[TrendAngle, ...] = (),
    away_angles: tuple[TrendAngle, ...] = (),
    moneyline_home: int | None = None,
    moneyline_away: int | None = None,
    weather: Weather = Weather(),
) -> SignalContext:
    """Context for one market, reading only tracker state dated before ``game_date``."""
    return SignalContext(
        sport=sport,
        market=market,
        game_date=game_date,
        home_team=home_team,
        away_team=away_team,
        line=line,
        home_stats=tracker.stats_as_of(home_team, game_date),
        away_stats=tracker.stats_as_of(away_team, game_date),
        h2h=tracker.head_to_head(home_team, away_team, game_date),
        profile=config.profile(sport, market),
        constants=config.signals,
        feed_home=feed_home,
        feed_away=feed_away,
        ratings=ratings,
        prediction=prediction,
        home_angles=home_angles,
        away_angles=away_angles,
        home_last_game=tracker.last_game_date(home_team, game_date),
        away_last_game=tracker.last_game_date(away_team, game_date),
        moneyline_home=moneyline_home,
        moneyline_away=moneyline_away,
        weather=weather,
    )


def evaluate_market(ctx: SignalContext, config: EngineConfig) -> MarketEvaluation:
    signals = tuple(compute_signals(ctx))
    profile = ctx.profile
    result = convergence.score(
        signals,
        profile.weights,
        constants=config.scoring,
        skip_agreement_bonus=profile.skip_agreement_bonus,
        min_active=profile.min_active,
    )
    tier = assign_tier(result, profile, signals, ctx, config)
    return MarketEvaluation(ctx=ctx, signals=signals, result=result, tier=tier)


def build_pick(evaluation: MarketEvaluation) -> Pick:
    """Pick for an accepted evaluation.

    Spread labels read from the picked team's side (``Duke -4.5`` /
    ``UNC +4.5``); ``line`` always stores the home spread or the total.
    """
    if not evaluation.accepted:
        raise ValueError("Cannot build a pick from a rejected evaluation")

    ctx = evaluation.ctx
    side = evaluation.result.direction
    tier = evaluation.tier

    if ctx.market is Market.SPREAD:
        team = ctx.home_team if side is Direction.HOME else ctx.away_team
        side_line = ctx.line if side is Direction.HOME else (-ctx.line or 0.0)
        label = f"{team} {format_line(side_line)}"
        headline = spread_headline(team, side_line, tier, evaluation.signals, side)
    else:
        label = f"{side.value.capitalize()} {ctx.line:g}"
        headline = total_headline(ctx.line, tier, evaluation.signals, side)

    return Pick(
        sport=ctx.sport,
        market=ctx.market,
        home_team=ctx.feed_home or ctx.home_team,
        away_team=ctx.feed_away or ctx.away_team,
        game_date=ctx.game_date,
        side=side,
        line=ctx.line,
        score=evaluation.result.score,
        tier=tier,
        label=label,
        headline=headline,
        reasoning=evaluation.result.reasoning,
    )
