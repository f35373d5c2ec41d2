"""Head-to-head: Wilson ATS edge on the specific pairing, and prior totals vs the line."""

from __future__ import annotations

from pick_edge.common.types import Category, Direction, Market
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import SignalResult
from pick_edge.stats.primitives import clamp, wilson_edge

_CAT = Category.HEAD_TO_HEAD


class HeadToHeadProvider:
    category = _CAT

    def compute(self, ctx: SignalContext) -> SignalResult:
        if ctx.market is Market.SPREAD:
            return self._spread(ctx)
        return self._total(ctx)

    def _spread(self, ctx: SignalContext) -> SignalResult:
        k = ctx.constants.head_to_head
        h2h = ctx.h2h
        if h2h.total_games < k.min_games or h2h.ats_total < k.min_games:
            return SignalResult.neutral(_CAT, f"H2H: {h2h.total_games} meetings (insufficient)")

        edge = wilson_edge(h2h.home_ats_covered, h2h.ats_total)
        magnitude = clamp(abs(edge) * k.edge_scale, 0.0, 10.0)
        record = f"{h2h.home_ats_covered}-{h2h.home_ats_lost}"
        if magnitude < k.min_magnitude:
            return SignalResult.neutral(_CAT, f"H2H ATS: {record} (even)")

        pct = round(h2h.home_ats_covered / h2h.ats_total * 100)
        return SignalResult(
            category=_CAT,
            direction=Direction.HOME if edge > 0 else Direction.AWAY,
            magnitude=magnitude,
            confidence=k.spread_confidence.at(h2h.ats_total),
            label=f"H2H ATS: {record} ({pct}%) in {h2h.ats_total} games",
            strength=k.spread_strength.classify(magnitude),
        )

    def _total(self, ctx: SignalContext) -> SignalResult:
        k = ctx.constants.head_to_head
        h2h = ctx.h2h
        if h2h.total_games < k.min_games or h2h.avg_total_points <= 0:
            return SignalResult.neutral(_CAT, f"H2H: {h2h.total_games} meetings (insufficient)")

        magnitude = 0.0
        direction = Direction.NEUTRAL
        confidence = k.total_base_confidence
        parts: list[str] = []

        diff = h2h.avg_total_points - ctx.line
        if abs(diff) >= k.min_total_diff:
            magnitude += clamp(abs(diff) / k.total_diff_divisor, 0.0, k.total_diff_cap)
            direction = Direction.OVER if diff > 0 else Direction.UNDER
            confidence = min(confidence + k.total_diff_confidence_bonus, k.total_max_confidence)
            parts.append(f"H2H avg {h2h.avg_total_points:.1f} vs line {ctx.line:g} ({diff:+.1f})")

        if h2h.ou_total >= k.record_min_games:
            over_rate = h2h.overs / h2h.ou_total
            if abs(over_rate - 0.5) > k.record_min_skew:
                magnitude += k.record_bonus
                if direction is Direction.NEUTRAL:
                    direction = Direction.OVER if over_rate > 0.5 else Direction.UNDER
                parts.append(f"H2H O/U: {h2h.overs}-{h2h.unders}")

        magnitude = clamp(magnitude, 0.0, 10.0)
        if direction is Direction.NEUTRAL or magnitude < k.min_magnitude:
            return SignalResult.neutral(_CAT, "No significant H2H total signal")

        return SignalResult(
            category=_CAT,
            direction=direction,
            magnitude=magnitude,
            confidence=confidence,
            label=" | ".join(parts),
            strength=k.total_strength.classify(magnitude),
        )
