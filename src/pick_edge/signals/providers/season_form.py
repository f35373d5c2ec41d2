"""Season form: Wilson-lower-bound ATS / O-U edge for each side."""

from __future__ import annotations

from pick_edge.common.types import Category, Direction, Market
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import SignalResult
from pick_edge.stats.primitives import clamp, wilson_edge

_CAT = Category.SEASON_FORM


class SeasonFormProvider:
    category = _CAT

    def compute(self, ctx: SignalContext) -> SignalResult:
        if ctx.market is Market.SPREAD:
            return self._spread(ctx)
        return self._total(ctx)

    def _spread(self, ctx: SignalContext) -> SignalResult:
        k = ctx.constants.season_form
        home, away = ctx.home_stats, ctx.away_stats
        record = (
            f"home {home.ats_covered}-{home.ats_lost}, away {away.ats_covered}-{away.ats_lost}"
        )

        home_edge = wilson_edge(home.ats_covered, home.ats_total, k.spread_min_games)
        away_edge = wilson_edge(away.ats_covered, away.ats_total, k.spread_min_games)
        net = home_edge - away_edge

        # Mean-reverting profiles back the side with the worse ATS record
        fade = ctx.profile.fade_season_form
        if fade:
            net = -net

        magnitude = clamp(abs(net) * k.edge_scale, 0.0, 10.0)
        if magnitude < k.min_magnitude:
            return SignalResult.neutral(_CAT, f"Season ATS: {record}")

        return SignalResult(
            category=_CAT,
            direction=Direction.HOME if net > 0 else Direction.AWAY,
            magnitude=magnitude,
            confidence=k.spread_confidence.at(min(home.ats_total, away.ats_total)),
            label=(
                f"Season ATS{' fade' if fade else ''}: home {home.ats_covered}-{home.ats_lost} "
                f"({home.ats_pct}%) vs away {away.ats_covered}-{away.ats_lost} ({away.ats_pct}%)"
            ),
            strength=k.spread_strength.classify(magnitude),
        )

    def _total(self, ctx: SignalContext) -> SignalResult:
        k = ctx.constants.season_form
        home, away = ctx.home_stats, ctx.away_stats

        home_lean = wilson_edge(home.overs, home.ou_total, k.total_min_games)
        away_lean = wilson_edge(away.overs, away.ou_total, k.total_min_games)
        lean = (home_lean + away_lean) / 2

        magnitude = clamp(abs(lean) * k.edge_scale, 0.0, 10.0)
        label = (
            f"Season O/U: home {home.overs}-{home.unders} ({home.over_pct}%), "
            f"away {away.overs}-{away.unders} ({away.over_pct}%)"
        )
        if magnitude < k.min_magnitude:
            return SignalResult.neutral(_CAT, label)

        return SignalResult(
            category=_CAT,
            direction=Direction.OVER if lean > 0 else Direction.UNDER,
            magnitude=magnitude,
            confidence=k.total_confidence.at(min(home.ou_total, away.ou_total)),
            label=label,
            strength=k.total_strength.classify(magnitude),
        )
