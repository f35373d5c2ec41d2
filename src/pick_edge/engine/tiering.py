"""Confidence tiering: convergence score → discrete tier {0, 3, 4, 5}.

Tier 0 means rejected. Profiles may name a tier override that replaces the
score mapping with a directly validated rule on a single signal.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from pick_edge.common.errors import ConfigError
from pick_edge.common.types import Category, Direction
from pick_edge.engine.profiles import EngineConfig, MarketProfile, TierThresholds
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import ConvergenceResult, SignalResult

TierOverride = Callable[[Sequence[SignalResult], ConvergenceResult, SignalContext, EngineConfig], int]

REJECTED = 0


def tier_for_score(score: int, thresholds: TierThresholds) -> int:
    if score >= thresholds.tier5:
        return 5
    if score >= thresholds.tier4:
        return 4
    if thresholds.tier3 is not None and score >= thresholds.tier3:
        return 3
    return REJECTED


def model_edge_tempo(
    signals: Sequence[SignalResult],
    result: ConvergenceResult,
    ctx: SignalContext,
    config: EngineConfig,
) -> int:
    """Efficiency-model totals, tiered on model-edge magnitude plus pace and line.

    - 5: UNDER, magnitude >= tier5 minimum, average tempo <= slow cutoff
    - 4: UNDER at the under minimum, or OVER on a low line at the over minimum
    - 0: otherwise, or when the model edge disagrees with the convergence side
    """
    o = config.tempo_override
    edge = next((s for s in signals if s.category is Category.MODEL_EDGE and s.is_active), None)
    if edge is None or edge.direction is not result.direction:
        return REJECTED

    home, away = ctx.home_rating(), ctx.away_rating()
    avg_tempo = None
    if home is not None and away is not None and home.adj_tempo is not None and away.adj_tempo is not None:
        avg_tempo = (home.adj_tempo + away.adj_tempo) / 2

    if (
        edge.direction is Direction.UNDER
        and edge.magnitude >= o.tier5_min_magnitude
        and avg_tempo is not None
        and avg_tempo <= o.tier5_max_tempo
    ):
        return 5
    if edge.direction is Direction.UNDER and edge.magnitude >= o.under_min_magnitude:
        return 4
    if (
        edge.direction is Direction.OVER
        and ctx.line < o.over_max_line
        and edge.magnitude >= o.over_min_magnitude
    ):
        return 4
    return REJECTED


_OVERRIDES: dict[str, TierOverride] = {
    "model_edge_tempo": model_edge_tempo,
}


def assign_tier(
    result: ConvergenceResult,
    profile: MarketProfile,
    signals: Sequence[SignalResult],
    ctx: SignalContext,
    config: EngineConfig,
) -> int:
    """Tier for a scored market. Gated results are always rejected.

    Raises:
        ConfigError: if the profile names an unknown tier override.
    """
    if result.gated or result.direction is Direction.NEUTRAL:
        return REJECTED
    if profile.tier_override is None:
        return tier_for_score(result.score, profile.tiers)

    override = _OVERRIDES.get(profile.tier_override)
    if override is None:
        raise ConfigError(f"Unknown tier override {profile.tier_override!r}")
    return override(signals, result, ctx, config)
