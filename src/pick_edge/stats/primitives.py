"""Small-sample statistics: Wilson intervals and binomial significance.

Wilson lower bounds are used instead of raw rates wherever a sample is small,
so a 4-1 record does not read as an 80% edge.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from scipy.stats import norm

from pick_edge.common.types import Strength

# Two-sided 95% normal quantile
Z_95 = 1.959963984540054


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def wilson_interval(successes: int, trials: int, z: float = Z_95) -> tuple[float, float]:
    """Wilson score interval for a binomial proportion.

    Returns (0.0, 1.0) when there are no trials.
    """
    if trials <= 0:
        return 0.0, 1.0

    p = successes / trials
    z2 = z * z
    denom = 1.0 + z2 / trials
    center = (p + z2 / (2 * trials)) / denom
    half = z * math.sqrt(p * (1 - p) / trials + z2 / (4 * trials * trials)) / denom
    return max(0.0, center - half), min(1.0, center + half)


def wilson_edge(successes: int, trials: int, min_trials: int = 0) -> float:
    """Conservative edge over a coin flip: Wilson lower bound minus 0.5.

    Returns 0 below ``min_trials`` so thin samples never read as directional.
    """
    if trials <= 0 or trials < min_trials:
        return 0.0
    lower, _ = wilson_interval(successes, trials)
    return lower - 0.5


@dataclass(frozen=True)
class SignificanceThresholds:
    """p-value cutoffs for each strength band, plus sample-size floors."""

    strong_p: float = 0.001
    strong_large_sample_p: float = 0.01
    large_sample: int = 30
    moderate_p: float = 0.05
    weak_p: float = 0.1
    min_trials: int = 5


@dataclass(frozen=True)
class Significance:
    p_value: float
    z_score: float
    strength: Strength

    @property
    def is_significant(self) -> bool:
        return self.strength is not Strength.NOISE


def significance(
    observed: float,
    trials: int,
    baseline: float = 0.5,
    thresholds: SignificanceThresholds | None = None,
) -> Significance:
    """Two-sided binomial test via the normal approximation.

    Args:
        observed: observed success rate (0-1)
        trials: sample size
        baseline: rate under the null hypothesis (0.5 for ATS / O-U)

    Returns:
        Significance with p-value and strength band. Zero trials, samples
        below the minimum, and degenerate baselines are noise.
    """
    t = thresholds or SignificanceThresholds()

    if trials <= 0 or trials < t.min_trials or not 0.0 < baseline < 1.0:
        return Significance(p_value=1.0, z_score=0.0, strength=Strength.NOISE)

    se = math.sqrt(baseline * (1.0 - baseline) / trials)
    z = (observed - baseline) / se
    p_value = float(2.0 * norm.sf(abs(z)))

    if p_value < t.strong_p:
        strength = Strength.STRONG
    elif p_value < t.strong_large_sample_p:
        strength = Strength.STRONG if trials >= t.large_sample else Strength.MODERATE
    elif p_value < t.moderate_p:
        strength = Strength.MODERATE
    elif p_value < t.weak_p:
        strength = Strength.WEAK
    else:
        strength = Strength.NOISE

    return Significance(p_value=p_value, z_score=z, strength=strength)
