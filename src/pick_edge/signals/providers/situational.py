"""Situational: game-time weather for outdoor sports.

Weather favors the home side against the spread and leans UNDER on totals.
Indoor sports are always noise.
"""

from __future__ import annotations

from pick_edge.common.types import Category, Direction, Market
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import SignalResult
from pick_edge.stats.primitives import clamp

_CAT = Category.SITUATIONAL


class SituationalProvider:
    category = _CAT

    def compute(self, ctx: SignalContext) -> SignalResult:
        if ctx.sport.is_indoor:
            return SignalResult.neutral(_CAT, "Indoor sport")
        if ctx.market is Market.SPREAD:
            return self._spread(ctx)
        return self._total(ctx)

    def _spread(self, ctx: SignalContext) -> SignalResult:
        k = ctx.constants.situational
        w = ctx.weather
        magnitude = 0.0
        parts: list[str] = []

        if w.wind_mph is not None and w.wind_mph >= k.spread_wind_mph:
            if w.wind_mph >= k.spread_heavy_wind_mph:
                magnitude += k.spread_heavy_wind_magnitude
            else:
                magnitude += k.spread_wind_magnitude
            parts.append(f"Wind: {w.wind_mph:g} mph")
        if w.temp_f is not None and w.temp_f <= k.spread_cold_f:
            magnitude += k.spread_cold_magnitude
            parts.append(f"Cold: {w.temp_f:g}F")
        if w.category == "SNOW":
            magnitude += k.spread_snow_magnitude
            parts.append("Snow game")
        elif w.category == "RAIN":
            magnitude += k.spread_rain_magnitude
            parts.append("Rain")

        magnitude = clamp(magnitude, 0.0, 10.0)
        if magnitude < k.spread_min_magnitude:
            return SignalResult.neutral(_CAT, "No significant situational factors")

        return SignalResult(
            category=_CAT,
            direction=Direction.HOME,
            magnitude=magnitude,
            confidence=k.spread_confidence,
            label=", ".join(parts) + " (home advantage)",
            strength=k.spread_strength.classify(magnitude),
        )

    def _total(self, ctx: SignalContext) -> SignalResult:
        k = ctx.constants.situational
        w = ctx.weather
        magnitude = 0.0
        confidence = k.total_base_confidence
        parts: list[str] = []

        if w.wind_mph is not None and w.wind_mph >= k.total_wind_mph:
            for min_mph, bonus in k.total_wind_magnitudes:
                if w.wind_mph >= min_mph:
                    magnitude += bonus
                    break
            confidence = min(confidence + k.total_wind_confidence_bonus, k.total_max_confidence)
            parts.append(f"Wind: {w.wind_mph:g} mph")
        if w.temp_f is not None and w.temp_f <= k.total_cold_f:
            magnitude += k.total_cold_magnitude
            parts.append(f"Cold: {w.temp_f:g}F")
        if w.category in ("SNOW", "RAIN"):
            magnitude += k.total_precip_magnitude
            parts.append(f"Weather: {w.category.lower()}")

        magnitude = clamp(magnitude, 0.0, 10.0)
        if magnitude < k.total_min_magnitude:
            return SignalResult.neutral(_CAT, "No significant weather total signal")

        return SignalResult(
            category=_CAT,
            direction=Direction.UNDER,
            magnitude=magnitude,
            confidence=confidence,
            label=" | ".join(parts),
            strength=k.total_strength.classify(magnitude),
        )
