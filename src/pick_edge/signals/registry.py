"""Category → SignalProvider dispatch registry."""

from __future__ import annotations

from pick_edge.common.types import Category
from pick_edge.engine.profiles import MarketProfile
from pick_edge.signals.base import SignalContext, SignalProvider
from pick_edge.signals.models import SignalResult
from pick_edge.signals.providers.head_to_head import HeadToHeadProvider
from pick_edge.signals.providers.market_divergence import MarketDivergenceProvider
from pick_edge.signals.providers.model_edge import ModelEdgeProvider
from pick_edge.signals.providers.recent_form import RecentFormProvider
from pick_edge.signals.providers.rest import RestProvider
from pick_edge.signals.providers.season_form import SeasonFormProvider
from pick_edge.signals.providers.situational import SituationalProvider
from pick_edge.signals.providers.tempo import TempoProvider
from pick_edge.signals.providers.trend_angles import TrendAnglesProvider

_REGISTRY: dict[Category, SignalProvider] = {
    Category.MODEL_EDGE: ModelEdgeProvider(),
    Category.SEASON_FORM: SeasonFormProvider(),
    Category.RECENT_FORM: RecentFormProvider(),
    Category.HEAD_TO_HEAD: HeadToHeadProvider(),
    Category.SITUATIONAL: SituationalProvider(),
    Category.REST: RestProvider(),
    Category.TEMPO: TempoProvider(),
    Category.MARKET_DIVERGENCE: MarketDivergenceProvider(),
    Category.TREND_ANGLES: TrendAnglesProvider(),
}


def pipeline_for(profile: MarketProfile) -> list[SignalProvider]:
    """Providers for every category weighted by the profile, in weight-table order."""
    return [_REGISTRY[category] for category in profile.weights]


def compute_signals(ctx: SignalContext) -> list[SignalResult]:
    return [provider.compute(ctx) for provider in pipeline_for(ctx.profile)]
