"""Shared test fixtures."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from pick_edge.common.types import Category, Direction, Market, Sport, Strength
from pick_edge.engine.profiles import EngineConfig
from pick_edge.games.models import Game, TeamRating, season_for
from pick_edge.ratings.snapshot import RatingSnapshot
from pick_edge.signals.base import SignalContext
from pick_edge.signals.models import Pick, ReasoningEntry, SignalResult
from pick_edge.stats.tracker import HeadToHead, TeamStats


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def make_game():
    """Factory for settled games; season derived from the date."""

    def _make(
        day: date,
        home: str,
        away: str,
        home_score: int,
        away_score: int,
        spread: float | None = -3.5,
        total: float | None = 140.5,
        sport: Sport = Sport.NCAAMB,
    ) -> Game:
        return Game.settle(
            sport=sport,
            season=season_for(sport, day),
            game_date=day,
            home_team=home,
            away_team=away,
            home_score=home_score,
            away_score=away_score,
            spread=spread,
            total=total,
        )

    return _make


@pytest.fixture
def make_signal():
    def _make(
        direction: Direction,
        magnitude: float = 5.0,
        confidence: float = 0.6,
        category: Category = Category.SEASON_FORM,
        strength: Strength = Strength.MODERATE,
        label: str = "",
    ) -> SignalResult:
        return SignalResult(
            category=category,
            direction=direction,
            magnitude=magnitude,
            confidence=confidence,
            label=label or f"{category.value} {direction.value}",
            strength=strength,
        )

    return _make


@pytest.fixture
def make_ctx(config):
    """Factory for a signal context; defaults to an NCAAMB spread in January."""

    def _make(
        market: Market = Market.SPREAD,
        sport: Sport = Sport.NCAAMB,
        line: float = -3.5,
        game_date: date = date(2025, 1, 15),
        **overrides,
    ) -> SignalContext:
        fields = dict(
            sport=sport,
            market=market,
            game_date=game_date,
            home_team="Duke",
            away_team="North Carolina",
            line=line,
            home_stats=TeamStats(),
            away_stats=TeamStats(),
            h2h=HeadToHead(),
            profile=config.profile(sport, market),
            constants=config.signals,
        )
        fields.update(overrides)
        return SignalContext(**fields)

    return _make


@pytest.fixture
def ratings_snapshot():
    return RatingSnapshot.from_ratings(
        date(2025, 1, 10),
        [
            TeamRating(team="Duke", rank=3, adj_em=28.0, adj_oe=122.0, adj_de=94.0, adj_tempo=69.0, conference="ACC"),
            TeamRating(team="North Carolina", rank=30, adj_em=16.0, adj_oe=115.0, adj_de=99.0, adj_tempo=71.0, conference="ACC"),
            TeamRating(team="Chicago St.", rank=350, adj_em=-20.0, adj_oe=95.0, adj_de=115.0, adj_tempo=66.0, conference="NEC"),
        ],
    )


@pytest.fixture
def sample_pick():
    """A sample spread pick for store and formatter tests."""
    return Pick(
        sport=Sport.NCAAMB,
        market=Market.SPREAD,
        home_team="Duke",
        away_team="North Carolina",
        game_date=date(2025, 1, 15),
        side=Direction.HOME,
        line=-3.5,
        score=88,
        tier=5,
        label="Duke -3.5",
        headline="Strong convergence: 4 independent edges favor Duke -3.5",
        reasoning=(
            ReasoningEntry(
                label="Efficiency: #3 (+28.0) vs #30 (+16.0), edge +10.5",
                weight=50,
                strength=Strength.STRONG,
                category=Category.MODEL_EDGE,
            ),
            ReasoningEntry(
                label="Last 5 ATS: home 1-4, away 4-1",
                weight=20,
                strength=Strength.MODERATE,
                category=Category.RECENT_FORM,
                opposing=True,
            ),
        ),
    )
