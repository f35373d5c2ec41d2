"""Model edge: a predicted margin/total from an external or derived rating vs the line.

Two variants, selected per market profile:

- ``efficiency``: adjusted efficiency ratings (point-in-time snapshot).
  SPREAD: edge = (home_em - away_em) + home_advantage + spread, where the
  spread is negative when home is favored.
    - Home-side edges only held up in the early-season months; later they are
      damped.
    - March top-25 home favorites are faded.
  TOTAL: summed adjusted defensive efficiency (higher = worse defense = more
  points), banded, then amplified or overridden by:
    - tempo x defense interaction
    - both teams in the elite rank tier (strong UNDER override)
    - both power conference (UNDER)
    - both outside the weak rank cutoff (OVER)
    - March UNDER lean
    - high-line UNDER lean
- ``power_rating``: crude rating from season-to-date scoring margins in the
  tracker; lower confidence than the efficiency model.
"""

from __future__ import annotations

from pick_edge.common.types import Category, Direction, Market
from pick_edge.engine.profiles import EfficiencyModelConstants, PowerRatingConstants
from pick_edge.games.models import TeamRating
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import SignalResult
from pick_edge.stats.primitives import clamp
from pick_edge.stats.tracker import TeamStats

_CAT = Category.MODEL_EDGE


def _signed(value: float) -> str:
    return f"{value:+.1f}"


def _rank_label(rating: TeamRating) -> str:
    return f"#{rating.rank}" if rating.rank is not None else "unranked"


def _ranked_at_most(rating: TeamRating, limit: int) -> bool:
    return rating.rank is not None and rating.rank <= limit


def _ranked_beyond(rating: TeamRating, limit: int) -> bool:
    return rating.rank is not None and rating.rank > limit


def efficiency_spread(
    ctx: SignalContext, home: TeamRating, away: TeamRating, k: EfficiencyModelConstants,
) -> SignalResult:
    month = ctx.game_date.month
    edge = home.adj_em - away.adj_em + ctx.profile.home_advantage + ctx.line

    if abs(edge) <= k.dead_zone:
        return SignalResult.neutral(_CAT, f"Efficiency edge {_signed(edge)} inside dead zone")

    direction = Direction.HOME if edge > 0 else Direction.AWAY
    magnitude = clamp(abs(edge) / k.spread_divisor, 0.0, 10.0)
    confidence = k.spread_confidence
    note = ""

    if direction is Direction.HOME:
        if month not in k.early_season_months:
            magnitude *= k.late_home_damping
            confidence = k.late_home_confidence
            note = " [home edge weak after December]"
        if month == k.march_fade_month and _ranked_at_most(home, k.march_fade_max_rank):
            magnitude *= k.march_fade_damping
            confidence = k.march_fade_confidence
            note = " [March top-25 home fade]"

    return SignalResult(
        category=_CAT,
        direction=direction,
        magnitude=magnitude,
        confidence=confidence,
        label=(
            f"Efficiency: {_rank_label(home)} ({_signed(home.adj_em)}) vs {_rank_label(away)} "
            f"({_signed(away.adj_em)}), edge {_signed(edge)}{note}"
        ),
        strength=k.spread_strength.classify(magnitude),
    )


def efficiency_total(
    ctx: SignalContext, home: TeamRating, away: TeamRating, k: EfficiencyModelConstants,
) -> SignalResult:
    if None in (home.adj_de, away.adj_de, home.adj_tempo, away.adj_tempo):
        return SignalResult.neutral(_CAT, "Efficiency ratings lack defense/tempo")

    sum_de = home.adj_de + away.adj_de
    avg_tempo = (home.adj_tempo + away.adj_tempo) / 2
    month = ctx.game_date.month
    line = ctx.line

    direction = Direction.NEUTRAL
    magnitude = 0.0
    confidence = 0.0
    parts: list[str] = []

    for band in k.over_bands:
        if sum_de > band.threshold:
            direction, magnitude, confidence = Direction.OVER, band.magnitude, band.confidence
            break
    else:
        for band in k.under_bands:
            if sum_de < band.threshold:
                direction, magnitude, confidence = Direction.UNDER, band.magnitude, band.confidence
                break
    parts.append(f"sum_AdjDE={sum_de:.1f} ({direction.value})")

    if direction is Direction.OVER and avg_tempo > k.fast_tempo and sum_de > k.fast_tempo_min_sum_de:
        magnitude = min(magnitude + k.fast_tempo_bonus, 10.0)
        confidence = min(confidence + k.tempo_confidence_bonus, 1.0)
        parts.append(f"fast tempo {avg_tempo:.1f} amplifies OVER")
    elif direction is Direction.OVER and avg_tempo > k.brisk_tempo and sum_de > k.brisk_tempo_min_sum_de:
        magnitude = min(magnitude + k.brisk_tempo_bonus, 10.0)
        parts.append(f"tempo {avg_tempo:.1f} supports OVER")
    elif direction is Direction.UNDER and avg_tempo < k.slow_tempo and sum_de < k.slow_tempo_max_sum_de:
        magnitude = min(magnitude + k.slow_tempo_bonus, 10.0)
        confidence = min(confidence + k.tempo_confidence_bonus, 1.0)
        parts.append(f"slow tempo {avg_tempo:.1f} amplifies UNDER")

    both_elite = _ranked_at_most(home, k.elite_max_rank) and _ranked_at_most(away, k.elite_max_rank)
    if both_elite:
        direction, magnitude, confidence = Direction.UNDER, k.elite_magnitude, k.elite_confidence
        parts.append(f"both top-{k.elite_max_rank} (#{home.rank} vs #{away.rank})")

    both_power = (
        home.conference in k.power_conferences and away.conference in k.power_conferences
    )
    if both_power and not both_elite:
        if direction is Direction.UNDER:
            magnitude = min(magnitude + k.power_bonus, 10.0)
            parts.append("both power conference")
        else:
            direction = Direction.UNDER
            magnitude = max(magnitude, k.power_magnitude)
            confidence = max(confidence, k.power_confidence)
            parts.append("power conference override")

    if _ranked_beyond(home, k.weak_min_rank) and _ranked_beyond(away, k.weak_min_rank):
        if direction is Direction.OVER:
            magnitude = min(magnitude + k.weak_bonus, 10.0)
            parts.append(f"both {k.weak_min_rank}+")
        elif direction is Direction.NEUTRAL:
            direction = Direction.OVER
            magnitude = max(magnitude, k.weak_magnitude)
            confidence = max(confidence, k.weak_confidence)
            parts.append(f"both {k.weak_min_rank}+ lean OVER")

    if month == k.march_fade_month:
        if direction is Direction.UNDER:
            magnitude = min(magnitude + k.march_under_bonus, 10.0)
            parts.append("March UNDER bias")
        elif direction is Direction.NEUTRAL:
            direction = Direction.UNDER
            magnitude = k.march_under_magnitude
            confidence = max(confidence, k.march_under_confidence)
            parts.append("March UNDER lean")

    if line > k.high_line:
        if direction is Direction.UNDER:
            magnitude = min(magnitude + k.high_line_bonus, 10.0)
            parts.append(f"high line {line:g}")
        elif direction is Direction.NEUTRAL:
            direction = Direction.UNDER
            magnitude = k.high_line_magnitude
            confidence = max(confidence, k.high_line_confidence)
            parts.append(f"high line {line:g} lean UNDER")

    label = "Efficiency O/U: " + " | ".join(parts)
    if direction is Direction.NEUTRAL:
        return SignalResult.neutral(_CAT, label)

    magnitude = clamp(magnitude, 0.0, 10.0)
    return SignalResult(
        category=_CAT,
        direction=direction,
        magnitude=magnitude,
        confidence=confidence,
        label=label,
        strength=k.total_strength.classify(magnitude),
    )


def _power_ready(stats: TeamStats, k: PowerRatingConstants) -> bool:
    return stats.games >= k.min_games


def power_rating(ctx: SignalContext, k: PowerRatingConstants) -> SignalResult:
    home, away = ctx.home_stats, ctx.away_stats
    if not (_power_ready(home, k) and _power_ready(away, k)):
        return SignalResult.neutral(_CAT, "Insufficient games for power rating")

    confidence = k.confidence.at(min(home.games, away.games) - k.min_games)

    if ctx.market is Market.SPREAD:
        predicted = (home.avg_margin - away.avg_margin) / k.margin_divisor + ctx.profile.home_advantage
        edge = predicted + ctx.line
        if abs(edge) <= k.spread_threshold:
            return SignalResult.neutral(_CAT, f"Power rating edge {_signed(edge)} inside dead zone")
        magnitude = clamp(abs(edge), 0.0, 10.0)
        return SignalResult(
            category=_CAT,
            direction=Direction.HOME if edge > 0 else Direction.AWAY,
            magnitude=magnitude,
            confidence=confidence,
            label=(
                f"Power rating: predicted margin {_signed(predicted)}, "
                f"line {ctx.line:+g}, edge {_signed(edge)}"
            ),
            strength=k.spread_strength.classify(magnitude),
        )

    predicted_total = (
        (home.avg_for + away.avg_against) / 2 + (away.avg_for + home.avg_against) / 2
    )
    edge = predicted_total - ctx.line
    if abs(edge) <= k.total_threshold:
        return SignalResult.neutral(_CAT, f"Power rating total {predicted_total:.1f} near line")
    magnitude = clamp(abs(edge) / k.total_threshold, 0.0, 10.0)
    return SignalResult(
        category=_CAT,
        direction=Direction.OVER if edge > 0 else Direction.UNDER,
        magnitude=magnitude,
        confidence=confidence * k.total_confidence_factor,
        label=f"Power rating total: predicted {predicted_total:.1f} vs line {ctx.line:g} ({_signed(edge)})",
        strength=k.total_strength.classify(magnitude),
    )


class ModelEdgeProvider:
    category = _CAT

    def compute(self, ctx: SignalContext) -> SignalResult:
        if ctx.profile.model_edge == "power_rating":
            return power_rating(ctx, ctx.constants.power_rating)

        home = ctx.home_rating()
        away = ctx.away_rating()
        if home is None or away is None:
            return SignalResult.neutral(_CAT, "No efficiency rating available")

        k = ctx.constants.efficiency
        if ctx.market is Market.SPREAD:
            return efficiency_spread(ctx, home, away, k)
        return efficiency_total(ctx, home, away, k)
