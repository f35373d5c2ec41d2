"""Tempo: pace mismatch, both-fast and both-slow table for totals."""

from __future__ import annotations

from pick_edge.common.types import Category, Direction, Market, Strength
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import SignalResult

_CAT = Category.TEMPO


class TempoProvider:
    category = _CAT

    def compute(self, ctx: SignalContext) -> SignalResult:
        if ctx.market is not Market.TOTAL:
            return SignalResult.neutral(_CAT, "Tempo only applies to totals")

        home, away = ctx.home_rating(), ctx.away_rating()
        if home is None or away is None or home.adj_tempo is None or away.adj_tempo is None:
            return SignalResult.neutral(_CAT, "No tempo data")

        k = ctx.constants.tempo
        diff = abs(home.adj_tempo - away.adj_tempo)
        avg = (home.adj_tempo + away.adj_tempo) / 2

        if diff >= k.mismatch:
            slower = min(home.adj_tempo, away.adj_tempo)
            if slower < k.mismatch_slow_team:
                magnitude, confidence = k.mismatch_slow_magnitude, k.mismatch_slow_confidence
            else:
                magnitude, confidence = k.mismatch_magnitude, k.mismatch_confidence
            return self._result(Direction.UNDER, magnitude, confidence, f"Tempo mismatch {diff:.1f}")

        if diff < k.similar and avg > k.fast_average:
            return self._result(Direction.OVER, k.fast_magnitude, k.fast_confidence, f"Both fast tempo {avg:.1f}")

        if diff < k.similar and avg < k.slow_average:
            return self._result(Direction.UNDER, k.slow_magnitude, k.slow_confidence, f"Both slow tempo {avg:.1f}")

        return SignalResult.neutral(_CAT, f"Tempo {avg:.1f}, diff {diff:.1f}")

    @staticmethod
    def _result(direction: Direction, magnitude: float, confidence: float, label: str) -> SignalResult:
        return SignalResult(
            category=_CAT,
            direction=direction,
            magnitude=magnitude,
            confidence=confidence,
            label=label,
            strength=Strength.MODERATE,
        )
