"""Pick grading and profit."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from pick_edge.common.odds import payout_multiplier
from pick_edge.common.types import Direction, Grade, Market, SpreadResult, TotalResult
from pick_edge.games.models import Game, spread_result_for, total_result_for
from pick_edge.signals.models import Pick


def grade(side: Direction, market: Market, game: Game) -> Grade | None:
    """Grade one side of a market against a settled game.

    Returns None when the game carries no result for the market (no line).
    A result landing exactly on the line is a PUSH, never a LOSS.
    """
    if market is Market.SPREAD:
        result = game.spread_result
        if result is None:
            return None
        if result is SpreadResult.PUSH:
            return Grade.PUSH
        home_covered = result is SpreadResult.COVERED
        if side is Direction.HOME:
            return Grade.WIN if home_covered else Grade.LOSS
        if side is Direction.AWAY:
            return Grade.LOSS if home_covered else Grade.WIN
        raise ValueError(f"{side.value!r} is not a spread side")

    result = game.total_result
    if result is None:
        return None
    if result is TotalResult.PUSH:
        return Grade.PUSH
    if side is Direction.OVER:
        return Grade.WIN if result is TotalResult.OVER else Grade.LOSS
    if side is Direction.UNDER:
        return Grade.WIN if result is TotalResult.UNDER else Grade.LOSS
    raise ValueError(f"{side.value!r} is not a total side")


def actual_value(market: Market, game: Game) -> float:
    """Home margin for spreads, combined points for totals."""
    if market is Market.SPREAD:
        return float(game.score_difference)
    return float(game.total_points)


def at_line(game: Game, market: Market, line: float) -> Game:
    """``game`` re-settled against ``line`` for one market."""
    if market is Market.SPREAD:
        return replace(
            game, spread=line, spread_result=spread_result_for(game.home_score, game.away_score, line),
        )
    return replace(
        game, total=line, total_result=total_result_for(game.home_score, game.away_score, line),
    )


def apply_grade(pick: Pick, game: Game, now: datetime) -> Pick:
    """Return ``pick`` graded against ``game`` at the pick's own line.

    Already-graded picks come back unchanged, so grading the same pick twice
    is a no-op.
    """
    if pick.is_graded:
        return pick
    result = grade(pick.side, pick.market, at_line(game, pick.market, pick.line))
    if result is None:
        return pick
    return pick.with_grade(result, actual_value(pick.market, game), now)


def pick_profit(result: Grade, odds: int = -110, stake: float = 1.0) -> float:
    """Units won or lost on a graded pick. Push and pending return 0."""
    if result is Grade.WIN:
        return stake * payout_multiplier(odds)
    if result is Grade.LOSS:
        return -stake
    return 0.0
