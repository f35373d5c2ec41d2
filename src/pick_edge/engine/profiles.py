"""Versioned engine configuration.

Every tuned constant used by the signal providers, the convergence scorer,
tiering and the backtest lives here. Live generation and the backtest consume
the same ``EngineConfig`` object, and its ``version`` is stamped into every
backtest report, so a result can always be traced to the constants that
produced it.

Load order (each layer overrides the previous):
  1. Built-in defaults below
  2. Optional TOML file (``PICK_EDGE_ENGINE_CONFIG_PATH`` or ``--config``)

Entry point: ``load_engine_config(path=None) -> EngineConfig``
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pick_edge.common.errors import ConfigError
from pick_edge.common.types import Category, Market, Sport, Strength
from pick_edge.stats.primitives import SignificanceThresholds


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", protected_namespaces=())


class StrengthCutoffs(_Frozen):
    """Magnitude cutoffs for the strength band of a directional signal.

    ``weak=0`` means every non-neutral signal below ``moderate`` is weak.
    """

    strong: float
    moderate: float
    weak: float = 0.0

    def classify(self, magnitude: float) -> Strength:
        if magnitude >= self.strong:
            return Strength.STRONG
        if magnitude >= self.moderate:
            return Strength.MODERATE
        if magnitude >= self.weak:
            return Strength.WEAK
        return Strength.NOISE


class ConfidenceRamp(_Frozen):
    """confidence = clamp(base + step * n, base, cap) for a sample size n."""

    base: float
    step: float
    cap: float

    def at(self, n: int) -> float:
        return max(self.base, min(self.cap, self.base + self.step * n))


# ── Scorer ────────────────────────────────────────────────────────────────────


class ScoringConstants(_Frozen):
    """Convergence score arithmetic."""

    base_score: float = 50.0
    score_scale: float = 80.0
    max_magnitude: float = 10.0
    default_category_weight: float = 0.1

    agreement_min_active: int = 3
    agreement_high_ratio: float = 0.8
    agreement_high_bonus: float = 8.0
    agreement_low_ratio: float = 0.6
    agreement_low_bonus: float = 4.0

    contradiction_major_count: int = 2
    contradiction_major_penalty: float = 10.0
    contradiction_minor_penalty: float = 5.0

    multi_agreement_high_count: int = 3
    multi_agreement_high_bonus: float = 6.0
    multi_agreement_low_count: int = 2
    multi_agreement_low_bonus: float = 3.0


class TierThresholds(_Frozen):
    tier5: int = 85
    tier4: int = 70
    # None disables tier 3 entirely
    tier3: int | None = None


class MarketProfile(_Frozen):
    """Declarative per-(sport, market) pipeline and scorer settings.

    The signal pipeline is exactly the categories present in ``weights``.
    """

    weights: dict[Category, float]
    skip_agreement_bonus: bool = False
    min_active: int = 0
    fade_season_form: bool = False
    model_edge: Literal["efficiency", "power_rating"] = "power_rating"
    home_advantage: float = 2.5
    tiers: TierThresholds = TierThresholds()
    tier_override: str | None = None

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: dict[Category, float]) -> dict[Category, float]:
        for category, weight in v.items():
            if not 0.0 <= weight <= 1.0:
                raise ValueError(f"weight for {category.value} must be in [0, 1], got {weight}")
        return v

    @field_validator("min_active")
    @classmethod
    def validate_min_active(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"min_active must be >= 0, got {v}")
        return v


# ── Signal constants ──────────────────────────────────────────────────────────


class EfficiencyBand(_Frozen):
    """Summed defensive efficiency band: beyond ``threshold`` → direction."""

    threshold: float
    magnitude: float
    confidence: float


class EfficiencyModelConstants(_Frozen):
    dead_zone: float = 0.5
    spread_divisor: float = 0.7
    spread_confidence: float = 0.8
    early_season_months: tuple[int, ...] = (11, 12)
    late_home_damping: float = 0.4
    late_home_confidence: float = 0.45
    march_fade_month: int = 3
    march_fade_max_rank: int = 25
    march_fade_damping: float = 0.3
    march_fade_confidence: float = 0.40
    spread_strength: StrengthCutoffs = StrengthCutoffs(strong=7, moderate=4, weak=1.5)

    # Checked in order; first match wins
    over_bands: tuple[EfficiencyBand, ...] = (
        EfficiencyBand(threshold=210, magnitude=8, confidence=0.92),
        EfficiencyBand(threshold=205, magnitude=6, confidence=0.85),
        EfficiencyBand(threshold=200, magnitude=4, confidence=0.75),
    )
    under_bands: tuple[EfficiencyBand, ...] = (
        EfficiencyBand(threshold=185, magnitude=10, confidence=0.95),
        EfficiencyBand(threshold=190, magnitude=8, confidence=0.92),
        EfficiencyBand(threshold=195, magnitude=5, confidence=0.80),
    )
    fast_tempo: float = 70.0
    fast_tempo_min_sum_de: float = 205.0
    fast_tempo_bonus: float = 2.0
    brisk_tempo: float = 68.0
    brisk_tempo_min_sum_de: float = 200.0
    brisk_tempo_bonus: float = 1.0
    slow_tempo: float = 64.0
    slow_tempo_max_sum_de: float = 195.0
    slow_tempo_bonus: float = 2.0
    tempo_confidence_bonus: float = 0.05

    elite_max_rank: int = 50
    elite_magnitude: float = 10.0
    elite_confidence: float = 0.95
    power_conferences: tuple[str, ...] = ("BE", "B12", "B10", "SEC", "ACC", "P12")
    power_bonus: float = 2.0
    power_magnitude: float = 6.0
    power_confidence: float = 0.82
    weak_min_rank: int = 200
    weak_bonus: float = 1.0
    weak_magnitude: float = 5.0
    weak_confidence: float = 0.78
    march_under_bonus: float = 1.0
    march_under_magnitude: float = 3.0
    march_under_confidence: float = 0.60
    high_line: float = 155.0
    high_line_bonus: float = 1.0
    high_line_magnitude: float = 3.0
    high_line_confidence: float = 0.65
    total_strength: StrengthCutoffs = StrengthCutoffs(strong=6, moderate=3, weak=1)


class PowerRatingConstants(_Frozen):
    min_games: int = 4
    margin_divisor: float = 2.0
    spread_threshold: float = 1.0
    total_threshold: float = 2.0
    confidence: ConfidenceRamp = ConfidenceRamp(base=0.3, step=0.03, cap=0.55)
    total_confidence_factor: float = 0.9
    spread_strength: StrengthCutoffs = StrengthCutoffs(strong=7, moderate=4, weak=1.5)
    total_strength: StrengthCutoffs = StrengthCutoffs(strong=5, moderate=3, weak=1)


class SeasonFormConstants(_Frozen):
    spread_min_games: int = 5
    total_min_games: int = 8
    edge_scale: float = 50.0
    min_magnitude: float = 0.5
    spread_confidence: ConfidenceRamp = ConfidenceRamp(base=0.3, step=0.02, cap=0.8)
    total_confidence: ConfidenceRamp = ConfidenceRamp(base=0.3, step=0.015, cap=0.75)
    spread_strength: StrengthCutoffs = StrengthCutoffs(strong=7, moderate=3.5)
    total_strength: StrengthCutoffs = StrengthCutoffs(strong=6, moderate=3)


class RecentFormConstants(_Frozen):
    min_games: int = 3
    spread_scale: float = 10.0
    full_streak: int = 5
    full_streak_bonus: float = 2.0
    partial_streak: int = 4
    partial_streak_bonus: float = 1.0
    spread_confidence: ConfidenceRamp = ConfidenceRamp(base=0.4, step=0.08, cap=0.7)
    min_magnitude: float = 1.0
    spread_strength: StrengthCutoffs = StrengthCutoffs(strong=7, moderate=4)
    total_scale: float = 20.0
    total_confidence: float = 0.5
    total_strength: StrengthCutoffs = StrengthCutoffs(strong=6, moderate=3)


class HeadToHeadConstants(_Frozen):
    min_games: int = 3
    edge_scale: float = 40.0
    spread_confidence: ConfidenceRamp = ConfidenceRamp(base=0.3, step=0.03, cap=0.7)
    min_magnitude: float = 0.5
    spread_strength: StrengthCutoffs = StrengthCutoffs(strong=6, moderate=3)
    min_total_diff: float = 3.0
    total_diff_divisor: float = 2.0
    total_diff_cap: float = 6.0
    total_base_confidence: float = 0.4
    total_diff_confidence_bonus: float = 0.1
    total_max_confidence: float = 0.7
    record_min_games: int = 5
    record_min_skew: float = 0.15
    record_bonus: float = 2.0
    total_strength: StrengthCutoffs = StrengthCutoffs(strong=6, moderate=3)


class SituationalConstants(_Frozen):
    spread_wind_mph: float = 20.0
    spread_heavy_wind_mph: float = 30.0
    spread_wind_magnitude: float = 2.0
    spread_heavy_wind_magnitude: float = 4.0
    spread_cold_f: float = 20.0
    spread_cold_magnitude: float = 2.0
    spread_snow_magnitude: float = 3.0
    spread_rain_magnitude: float = 1.0
    spread_confidence: float = 0.4
    spread_min_magnitude: float = 1.0
    spread_strength: StrengthCutoffs = StrengthCutoffs(strong=11, moderate=5)

    total_wind_mph: float = 15.0
    total_wind_magnitudes: tuple[tuple[float, float], ...] = ((25.0, 4.0), (20.0, 3.0), (15.0, 2.0))
    total_cold_f: float = 25.0
    total_cold_magnitude: float = 2.0
    total_precip_magnitude: float = 2.0
    total_base_confidence: float = 0.4
    total_wind_confidence_bonus: float = 0.1
    total_max_confidence: float = 0.7
    total_min_magnitude: float = 0.5
    total_strength: StrengthCutoffs = StrengthCutoffs(strong=6, moderate=3)


class RestConstants(_Frozen):
    back_to_back_hours: float = 36.0
    home_tired_magnitude: float = 5.0
    home_tired_confidence: float = 0.65
    away_tired_magnitude: float = 3.0
    away_tired_confidence: float = 0.55


class TempoConstants(_Frozen):
    mismatch: float = 8.0
    mismatch_slow_team: float = 66.0
    mismatch_slow_magnitude: float = 6.0
    mismatch_slow_confidence: float = 0.72
    mismatch_magnitude: float = 4.0
    mismatch_confidence: float = 0.62
    similar: float = 4.0
    fast_average: float = 70.0
    fast_magnitude: float = 5.0
    fast_confidence: float = 0.65
    slow_average: float = 63.0
    slow_magnitude: float = 5.0
    slow_confidence: float = 0.68


class MarketDivergenceConstants(_Frozen):
    min_gap: float = 0.05
    gap_scale: float = 50.0
    confidence: float = 0.5
    strength: StrengthCutoffs = StrengthCutoffs(strong=7, moderate=4, weak=1.5)


class TrendAngleConstants(_Frozen):
    multipliers: dict[Strength, float] = {
        Strength.STRONG: 3.0,
        Strength.MODERATE: 2.0,
        Strength.WEAK: 1.0,
        Strength.NOISE: 0.0,
    }
    dominance_scale: float = 10.0
    significant_bonus: float = 0.5
    spread_confidence: ConfidenceRamp = ConfidenceRamp(base=0.4, step=0.08, cap=0.9)
    total_confidence: ConfidenceRamp = ConfidenceRamp(base=0.35, step=0.08, cap=0.85)
    spread_strength: StrengthCutoffs = StrengthCutoffs(strong=7, moderate=4, weak=1.5)
    total_strength: StrengthCutoffs = StrengthCutoffs(strong=6, moderate=3, weak=1)


class SignalConstants(_Frozen):
    efficiency: EfficiencyModelConstants = EfficiencyModelConstants()
    power_rating: PowerRatingConstants = PowerRatingConstants()
    season_form: SeasonFormConstants = SeasonFormConstants()
    recent_form: RecentFormConstants = RecentFormConstants()
    head_to_head: HeadToHeadConstants = HeadToHeadConstants()
    situational: SituationalConstants = SituationalConstants()
    rest: RestConstants = RestConstants()
    tempo: TempoConstants = TempoConstants()
    market_divergence: MarketDivergenceConstants = MarketDivergenceConstants()
    trend_angles: TrendAngleConstants = TrendAngleConstants()


class TempoTierOverride(_Frozen):
    """Direct tier mapping for efficiency-model totals (see ``engine.tiering``)."""

    under_min_magnitude: float = 6.0
    tier5_min_magnitude: float = 8.0
    tier5_max_tempo: float = 67.0
    over_max_line: float = 140.0
    over_min_magnitude: float = 8.0


class BacktestConstants(_Frozen):
    warmup_days: int = 14
    vig_odds: int = -110
    min_day_volume: int = 5
    day_list_size: int = 5
    progress_every: int = 500

    @field_validator("vig_odds")
    @classmethod
    def validate_odds(cls, v: int) -> int:
        if -100 < v < 100:
            raise ValueError(f"American odds must be <= -100 or >= 100, got {v}")
        return v


# ── Defaults ──────────────────────────────────────────────────────────────────

_C = Category

_FOOTBALL_SPREAD = MarketProfile(
    weights={
        _C.MODEL_EDGE: 0.20, _C.SEASON_FORM: 0.15, _C.TREND_ANGLES: 0.25,
        _C.RECENT_FORM: 0.20, _C.HEAD_TO_HEAD: 0.10, _C.SITUATIONAL: 0.10,
    },
    tiers=TierThresholds(tier3=55),
)
_FOOTBALL_TOTAL = MarketProfile(
    weights={
        _C.MODEL_EDGE: 0.20, _C.SEASON_FORM: 0.20, _C.TREND_ANGLES: 0.20,
        _C.RECENT_FORM: 0.15, _C.HEAD_TO_HEAD: 0.15, _C.SITUATIONAL: 0.10,
    },
    tiers=TierThresholds(tier3=55),
)


def _default_profiles() -> dict[Sport, dict[Market, MarketProfile]]:
    return {
        Sport.NCAAMB: {
            Market.SPREAD: MarketProfile(
                weights={
                    _C.MODEL_EDGE: 0.30, _C.SEASON_FORM: 0.15, _C.TREND_ANGLES: 0.25,
                    _C.RECENT_FORM: 0.15, _C.HEAD_TO_HEAD: 0.10, _C.REST: 0.05,
                    _C.MARKET_DIVERGENCE: 0.05,
                },
                skip_agreement_bonus=True,
                min_active=3,
                fade_season_form=True,
                model_edge="efficiency",
                home_advantage=2.0,
            ),
            Market.TOTAL: MarketProfile(
                weights={
                    _C.MODEL_EDGE: 0.35, _C.SEASON_FORM: 0.12, _C.TREND_ANGLES: 0.18,
                    _C.RECENT_FORM: 0.08, _C.HEAD_TO_HEAD: 0.12, _C.TEMPO: 0.15,
                },
                skip_agreement_bonus=True,
                min_active=3,
                model_edge="efficiency",
                home_advantage=2.0,
                tier_override="model_edge_tempo",
            ),
        },
        Sport.NFL: {
            Market.SPREAD: _FOOTBALL_SPREAD.model_copy(update={"home_advantage": 2.5}),
            Market.TOTAL: _FOOTBALL_TOTAL.model_copy(update={"home_advantage": 2.5}),
        },
        Sport.NCAAF: {
            Market.SPREAD: _FOOTBALL_SPREAD.model_copy(update={"home_advantage": 3.0}),
            Market.TOTAL: _FOOTBALL_TOTAL.model_copy(update={"home_advantage": 3.0}),
        },
    }


class EngineConfig(_Frozen):
    """Root engine configuration."""

    version: str = "v5.1"
    # Sports without their own profile use this sport's
    fallback_sport: Sport = Sport.NFL
    scoring: ScoringConstants = ScoringConstants()
    profiles: dict[Sport, dict[Market, MarketProfile]] = Field(default_factory=_default_profiles)
    signals: SignalConstants = SignalConstants()
    significance: SignificanceThresholds = SignificanceThresholds()
    tempo_override: TempoTierOverride = TempoTierOverride()
    backtest: BacktestConstants = BacktestConstants()

    def profile(self, sport: Sport, market: Market) -> MarketProfile:
        """Profile for (sport, market), falling back to ``fallback_sport``."""
        by_market = self.profiles.get(sport) or self.profiles.get(self.fallback_sport, {})
        profile = by_market.get(market)
        if profile is None:
            raise ConfigError(f"No {market.value} profile for {sport.value}")
        return profile


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def load_engine_config(path: Path | None = None) -> EngineConfig:
    """Build the engine config, optionally overlaying a TOML file.

    Raises:
        ConfigError: if the file is missing, unparseable, or fails validation.
    """
    if path is None:
        return EngineConfig()

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Engine config not found: {path}")

    try:
        with path.open("rb") as fh:
            override = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    base = EngineConfig().model_dump(mode="json")
    try:
        return EngineConfig.model_validate(_deep_merge(base, override))
    except ValidationError as exc:
        raise ConfigError(f"Invalid engine config {path}: {exc}") from exc
