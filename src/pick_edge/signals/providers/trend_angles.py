"""Discovered angles: strength-weighted dominance over an external list of filters."""

from __future__ import annotations

from pick_edge.common.types import Category, Direction, Market, Strength
from pick_edge.games.models import TrendAngle
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import SignalResult
from pick_edge.stats.primitives import clamp

_CAT = Category.TREND_ANGLES


def _ats_votes(angles: tuple[TrendAngle, ...], side: Direction) -> list[tuple[Direction, Strength]]:
    votes = []
    for a in angles:
        if a.ats_strength is Strength.NOISE:
            continue
        votes.append((side if a.ats_rate > 0.5 else side.opposite(), a.ats_strength))
    return votes


def _ou_votes(angles: tuple[TrendAngle, ...]) -> list[tuple[Direction, Strength]]:
    votes = []
    for a in angles:
        if a.over_rate is None or a.ou_strength is Strength.NOISE:
            continue
        votes.append((Direction.OVER if a.over_rate > 0.5 else Direction.UNDER, a.ou_strength))
    return votes


class TrendAnglesProvider:
    category = _CAT

    def compute(self, ctx: SignalContext) -> SignalResult:
        k = ctx.constants.trend_angles
        if ctx.market is Market.SPREAD:
            votes = _ats_votes(ctx.home_angles, Direction.HOME) + _ats_votes(ctx.away_angles, Direction.AWAY)
            first, second = Direction.HOME, Direction.AWAY
            confidence_ramp, cutoffs = k.spread_confidence, k.spread_strength
        else:
            votes = _ou_votes(ctx.home_angles) + _ou_votes(ctx.away_angles)
            first, second = Direction.OVER, Direction.UNDER
            confidence_ramp, cutoffs = k.total_confidence, k.total_strength

        if not votes:
            return SignalResult.neutral(_CAT, "No trend angles discovered")

        scores = {first: 0.0, second: 0.0}
        significant = 0
        for direction, strength in votes:
            w = k.multipliers.get(strength, 0.0)
            if w == 0:
                continue
            scores[direction] += w
            if strength.is_significant:
                significant += 1

        total = scores[first] + scores[second]
        if total == 0 or scores[first] == scores[second]:
            return SignalResult.neutral(_CAT, f"{len(votes)} angles, no dominant side")

        winner = first if scores[first] > scores[second] else second
        dominance = abs(scores[first] - scores[second]) / total
        magnitude = clamp(dominance * k.dominance_scale + significant * k.significant_bonus, 0.0, 10.0)
        n_first = sum(1 for d, _ in votes if d is first)
        return SignalResult(
            category=_CAT,
            direction=winner,
            magnitude=magnitude,
            confidence=confidence_ramp.at(significant),
            label=(
                f"{len(votes)} angles: {n_first} {first.value}, {len(votes) - n_first} "
                f"{second.value} ({significant} significant)"
            ),
            strength=cutoffs.classify(magnitude),
        )
