"""Rest: back-to-back fatigue against the spread."""

from __future__ import annotations

from datetime import date

from pick_edge.common.types import Category, Direction, Market, Strength
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import SignalResult

_CAT = Category.REST


def on_back_to_back(last_game: date | None, game_date: date, window_hours: float) -> bool:
    if last_game is None:
        return False
    return (game_date - last_game).days * 24 <= window_hours


class RestProvider:
    category = _CAT

    def compute(self, ctx: SignalContext) -> SignalResult:
        if ctx.market is not Market.SPREAD:
            return SignalResult.neutral(_CAT, "Rest only applies to spreads")

        k = ctx.constants.rest
        home_tired = on_back_to_back(ctx.home_last_game, ctx.game_date, k.back_to_back_hours)
        away_tired = on_back_to_back(ctx.away_last_game, ctx.game_date, k.back_to_back_hours)

        if home_tired and not away_tired:
            return SignalResult(
                category=_CAT,
                direction=Direction.AWAY,
                magnitude=k.home_tired_magnitude,
                confidence=k.home_tired_confidence,
                label=f"{ctx.home_team} on back-to-back",
                strength=Strength.MODERATE,
            )
        if away_tired and not home_tired:
            return SignalResult(
                category=_CAT,
                direction=Direction.HOME,
                magnitude=k.away_tired_magnitude,
                confidence=k.away_tired_confidence,
                label=f"{ctx.away_team} on back-to-back",
                strength=Strength.WEAK,
            )
        return SignalResult.neutral(_CAT, "Normal rest")
