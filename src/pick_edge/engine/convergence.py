"""Convergence scorer: signal vector + weight table → composite 0-100 score.

Score arithmetic:
  1. Active = non-neutral with magnitude > 0. Fewer than ``min_active`` (or
     none at all) → neutral default (50, NEUTRAL, gated).
  2. Effective weight = category weight x magnitude x confidence, summed per
     direction. The denominator is sum(category weight x max magnitude) over
     ALL signals, fired or not.
  3. Winner = direction with the largest sum (ties keep the earlier side in
     HOME, AWAY, OVER, UNDER order). score = base + (win - rest) / denom x scale.
  4. Agreement bonus (skippable per profile).
  5. Contradiction penalty for strong/moderate active signals on the other side.
  6. Multi-agreement bonus (same skip flag as 4).
  7. Round half up, clamp to [0, 100].

Every number above comes from ``ScoringConstants``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

from pick_edge.common.types import Category, Direction, Strength
from pick_edge.engine.profiles import ScoringConstants
from pick_edge.signals.models import ConvergenceResult, ReasoningEntry, SignalResult
from pick_edge.stats.primitives import clamp

_SIDE_ORDER = (Direction.HOME, Direction.AWAY, Direction.OVER, Direction.UNDER)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _reasoning(active: Sequence[SignalResult], winner: Direction) -> tuple[ReasoningEntry, ...]:
    ranked = sorted(
        (s for s in active if s.strength is not Strength.NOISE),
        key=lambda s: (
            s.direction is not winner,
            -s.effective_strength,
            s.category.value,
            s.label,
        ),
    )
    return tuple(
        ReasoningEntry(
            label=s.label,
            weight=_round_half_up(s.effective_strength * 10),
            strength=s.strength,
            category=s.category,
            opposing=s.direction is not winner,
        )
        for s in ranked
    )


def score(
    signals: Sequence[SignalResult],
    weights: Mapping[Category, float],
    constants: ScoringConstants | None = None,
    skip_agreement_bonus: bool = False,
    min_active: int = 0,
) -> ConvergenceResult:
    """Aggregate signals into a convergence result.

    Input order does not affect the result.
    """
    c = constants or ScoringConstants()
    active = [s for s in signals if s.is_active]

    if not active or len(active) < min_active:
        return ConvergenceResult(
            score=int(c.base_score),
            direction=Direction.NEUTRAL,
            active_count=len(active),
            gated=True,
        )

    # fsum keeps the totals independent of input order
    contributions: dict[Direction, list[float]] = {}
    possible: list[float] = []
    for s in signals:
        w = weights.get(s.category, c.default_category_weight)
        possible.append(w * c.max_magnitude)
        if s.is_active:
            contributions.setdefault(s.direction, []).append(w * s.magnitude * s.confidence)
    sums = {d: math.fsum(v) for d, v in contributions.items()}
    total_possible = math.fsum(possible)

    winner = Direction.NEUTRAL
    best = 0.0
    for direction in _SIDE_ORDER:
        if direction in sums and (winner is Direction.NEUTRAL or sums[direction] > best):
            winner, best = direction, sums[direction]

    opposite = math.fsum(v for d, v in sums.items() if d is not winner)
    raw_strength = (best - opposite) / total_possible if total_possible > 0 else 0.0
    value = c.base_score + raw_strength * c.score_scale

    agreeing = [s for s in active if s.direction is winner]
    disagreeing = [s for s in active if s.direction is not winner]

    if not skip_agreement_bonus and len(active) >= c.agreement_min_active:
        ratio = len(agreeing) / len(active)
        if ratio >= c.agreement_high_ratio:
            value += c.agreement_high_bonus
        elif ratio >= c.agreement_low_ratio:
            value += c.agreement_low_bonus

    strong_against = sum(1 for s in disagreeing if s.strength.is_significant)
    if strong_against >= c.contradiction_major_count:
        value -= c.contradiction_major_penalty
    elif strong_against >= 1:
        value -= c.contradiction_minor_penalty

    if not skip_agreement_bonus:
        strong_for = sum(1 for s in agreeing if s.strength.is_significant)
        if strong_for >= c.multi_agreement_high_count:
            value += c.multi_agreement_high_bonus
        elif strong_for >= c.multi_agreement_low_count:
            value += c.multi_agreement_low_bonus

    return ConvergenceResult(
        score=int(clamp(_round_half_up(value), 0, 100)),
        direction=winner,
        reasoning=_reasoning(active, winner),
        active_count=len(active),
    )
