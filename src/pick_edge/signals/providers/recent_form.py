"""Recent form: last-5 ATS momentum differential and last-5 O/U lean."""

from __future__ import annotations

from pick_edge.common.types import Category, Direction, Market
from pick_edge.engine.profiles import RecentFormConstants
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import SignalResult
from pick_edge.stats.primitives import clamp

_CAT = Category.RECENT_FORM


def _rate(hits: int, total: int) -> float:
    return hits / total if total > 0 else 0.5


def streak_bonus(covered: int, k: RecentFormConstants) -> float:
    if covered >= k.full_streak:
        return k.full_streak_bonus
    if covered >= k.partial_streak:
        return k.partial_streak_bonus
    return 0.0


class RecentFormProvider:
    category = _CAT

    def compute(self, ctx: SignalContext) -> SignalResult:
        k = ctx.constants.recent_form
        home, away = ctx.home_stats, ctx.away_stats

        if ctx.market is Market.SPREAD:
            label = (
                f"Last 5 ATS: home {home.last5_ats_covered}-{home.last5_ats_lost}, "
                f"away {away.last5_ats_covered}-{away.last5_ats_lost}"
            )
            if home.last5_ats_total < k.min_games and away.last5_ats_total < k.min_games:
                return SignalResult.neutral(_CAT, "Insufficient recent ATS data")

            momentum = (
                _rate(home.last5_ats_covered, home.last5_ats_total)
                - _rate(away.last5_ats_covered, away.last5_ats_total)
            )
            magnitude = clamp(abs(momentum) * k.spread_scale, 0.0, 10.0)
            magnitude = min(magnitude + streak_bonus(home.last5_ats_covered, k), 10.0)
            magnitude = min(magnitude + streak_bonus(away.last5_ats_covered, k), 10.0)

            if magnitude < k.min_magnitude or momentum == 0:
                return SignalResult.neutral(_CAT, label)

            return SignalResult(
                category=_CAT,
                direction=Direction.HOME if momentum > 0 else Direction.AWAY,
                magnitude=magnitude,
                confidence=k.spread_confidence.at(min(home.last5_ats_total, away.last5_ats_total)),
                label=label,
                strength=k.spread_strength.classify(magnitude),
            )

        label = (
            f"Recent O/U: home {home.last5_overs}-{home.last5_unders}, "
            f"away {away.last5_overs}-{away.last5_unders}"
        )
        if home.last5_ou_total < k.min_games and away.last5_ou_total < k.min_games:
            return SignalResult.neutral(_CAT, "Insufficient recent O/U data")

        lean = (
            _rate(home.last5_overs, home.last5_ou_total)
            + _rate(away.last5_overs, away.last5_ou_total)
        ) / 2 - 0.5
        magnitude = clamp(abs(lean) * k.total_scale, 0.0, 10.0)
        if magnitude < k.min_magnitude:
            return SignalResult.neutral(_CAT, label)

        return SignalResult(
            category=_CAT,
            direction=Direction.OVER if lean > 0 else Direction.UNDER,
            magnitude=magnitude,
            confidence=k.total_confidence,
            label=label,
            strength=k.total_strength.classify(magnitude),
        )
