"""Market divergence: rating-feed win probability vs vig-free moneyline probability."""

from __future__ import annotations

from pick_edge.common.odds import fair_probabilities
from pick_edge.common.types import Category, Direction, Market
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import SignalResult
from pick_edge.stats.primitives import clamp

_CAT = Category.MARKET_DIVERGENCE


class MarketDivergenceProvider:
    category = _CAT

    def compute(self, ctx: SignalContext) -> SignalResult:
        if ctx.market is not Market.SPREAD:
            return SignalResult.neutral(_CAT, "Market divergence only applies to spreads")
        if ctx.prediction is None or ctx.moneyline_home is None or ctx.moneyline_away is None:
            return SignalResult.neutral(_CAT, "No prediction or moneyline")

        k = ctx.constants.market_divergence
        market_home, _ = fair_probabilities(ctx.moneyline_home, ctx.moneyline_away)
        model_home = ctx.prediction.home_win_prob
        gap = model_home - market_home
        label = f"Model win prob {model_home:.0%} vs market {market_home:.0%}"

        if abs(gap) < k.min_gap:
            return SignalResult.neutral(_CAT, label)

        magnitude = clamp(abs(gap) * k.gap_scale, 0.0, 10.0)
        return SignalResult(
            category=_CAT,
            direction=Direction.HOME if gap > 0 else Direction.AWAY,
            magnitude=magnitude,
            confidence=k.confidence,
            label=f"{label} ({gap:+.0%})",
            strength=k.strength.classify(magnitude),
        )
