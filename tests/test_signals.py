"""Tests for the signal providers and the category registry."""

from __future__ import annotations

from datetime import date

import pytest

from pick_edge.common.types import Category, Direction, Market, Sport, Strength
from pick_edge.games.models import GamePrediction, TeamRating, TrendAngle
from pick_edge.ratings.snapshot import RatingSnapshot
from pick_edge.signals.base import Weather
from pick_edge.signals.providers.head_to_head import HeadToHeadProvider
from pick_edge.signals.providers.market_divergence import MarketDivergenceProvider
from pick_edge.signals.providers.model_edge import ModelEdgeProvider
from pick_edge.signals.providers.recent_form import RecentFormProvider
from pick_edge.signals.providers.rest import RestProvider
from pick_edge.signals.providers.season_form import SeasonFormProvider
from pick_edge.signals.providers.situational import SituationalProvider
from pick_edge.signals.providers.tempo import TempoProvider
from pick_edge.signals.providers.trend_angles import TrendAnglesProvider
from pick_edge.signals.registry import compute_signals, pipeline_for
from pick_edge.stats.tracker import HeadToHead, TeamStats


def _snapshot(*ratings: TeamRating) -> RatingSnapshot:
    return RatingSnapshot.from_ratings(date(2025, 1, 1), ratings)


def _rating(team, rank=100, adj_em=0.0, adj_de=100.0, adj_tempo=68.0, conference=None):
    return TeamRating(
        team=team, rank=rank, adj_em=adj_em, adj_de=adj_de, adj_tempo=adj_tempo, conference=conference,
    )


class TestRecentForm:
    def test_hot_home_cold_away(self, make_ctx):
        """5-0 vs 1-4 ATS: full momentum plus the home streak bump."""
        ctx = make_ctx(
            home_stats=TeamStats(last5_ats_covered=5, last5_ats_lost=0),
            away_stats=TeamStats(last5_ats_covered=1, last5_ats_lost=4),
        )
        result = RecentFormProvider().compute(ctx)

        assert result.direction is Direction.HOME
        # 0.8 momentum x 10 + 2 streak
        assert result.magnitude == pytest.approx(10.0)
        assert result.strength is Strength.STRONG
        assert result.confidence == pytest.approx(0.7)
        assert "home 5-0" in result.label

    def test_streak_without_momentum_is_neutral(self, make_ctx):
        ctx = make_ctx(
            home_stats=TeamStats(last5_ats_covered=4, last5_ats_lost=1),
            away_stats=TeamStats(last5_ats_covered=4, last5_ats_lost=1),
        )
        result = RecentFormProvider().compute(ctx)
        assert result.direction is Direction.NEUTRAL
        assert not result.is_active

    def test_moderate_momentum(self, make_ctx):
        ctx = make_ctx(
            home_stats=TeamStats(last5_ats_covered=2, last5_ats_lost=3),
            away_stats=TeamStats(last5_ats_covered=4, last5_ats_lost=1),
        )
        result = RecentFormProvider().compute(ctx)
        # 0.4 x 10 + 1 (away 4-game streak)
        assert result.direction is Direction.AWAY
        assert result.magnitude == pytest.approx(5.0)
        assert result.strength is Strength.MODERATE

    def test_thin_sample_is_neutral(self, make_ctx):
        ctx = make_ctx(
            home_stats=TeamStats(last5_ats_covered=2, last5_ats_lost=0),
            away_stats=TeamStats(last5_ats_covered=0, last5_ats_lost=2),
        )
        assert RecentFormProvider().compute(ctx).direction is Direction.NEUTRAL

    def test_total_lean(self, make_ctx):
        ctx = make_ctx(
            market=Market.TOTAL,
            line=140.5,
            home_stats=TeamStats(last5_overs=4, last5_unders=1),
            away_stats=TeamStats(last5_overs=5, last5_unders=0),
        )
        result = RecentFormProvider().compute(ctx)
        assert result.direction is Direction.OVER
        # ((0.8 + 1.0) / 2 - 0.5) x 20
        assert result.magnitude == pytest.approx(8.0)
        assert result.confidence == pytest.approx(0.5)


class TestSeasonForm:
    def test_below_min_games_is_neutral(self, make_ctx):
        ctx = make_ctx(
            home_stats=TeamStats(ats_covered=4, ats_lost=0),
            away_stats=TeamStats(ats_covered=0, ats_lost=4),
        )
        assert SeasonFormProvider().compute(ctx).direction is Direction.NEUTRAL

    def test_fade_flips_direction(self, make_ctx, config):
        home = TeamStats(ats_covered=14, ats_lost=2)
        away = TeamStats(ats_covered=5, ats_lost=11)

        faded = SeasonFormProvider().compute(make_ctx(home_stats=home, away_stats=away))
        assert faded.direction is Direction.AWAY
        assert "fade" in faded.label

        football = make_ctx(
            sport=Sport.NFL,
            home_stats=home,
            away_stats=away,
            profile=config.profile(Sport.NFL, Market.SPREAD),
        )
        backed = SeasonFormProvider().compute(football)
        assert backed.direction is Direction.HOME
        assert backed.magnitude == pytest.approx(faded.magnitude)

    def test_total(self, make_ctx):
        ctx = make_ctx(
            market=Market.TOTAL,
            line=140.5,
            home_stats=TeamStats(overs=2, unders=12),
            away_stats=TeamStats(overs=3, unders=11),
        )
        result = SeasonFormProvider().compute(ctx)
        assert result.direction is Direction.UNDER
        assert 0 < result.magnitude <= 10


class TestHeadToHead:
    def test_fewer_than_three_meetings_is_neutral(self, make_ctx):
        ctx = make_ctx(h2h=HeadToHead(total_games=2, home_ats_covered=2))
        result = HeadToHeadProvider().compute(ctx)
        assert result.direction is Direction.NEUTRAL
        assert result.strength is Strength.NOISE

    def test_dominant_home_record(self, make_ctx):
        ctx = make_ctx(h2h=HeadToHead(total_games=10, home_ats_covered=9, home_ats_lost=1))
        result = HeadToHeadProvider().compute(ctx)
        assert result.direction is Direction.HOME
        assert result.magnitude > 0
        assert "9-1" in result.label

    def test_even_record_reads_away(self, make_ctx):
        """The home lower bound of an even small sample sits well below 50%."""
        ctx = make_ctx(h2h=HeadToHead(total_games=4, home_ats_covered=2, home_ats_lost=2))
        result = HeadToHeadProvider().compute(ctx)
        # lower bound 0.15 → edge -0.35 x 40, capped
        assert result.direction is Direction.AWAY
        assert result.magnitude == pytest.approx(10.0)

    def test_total_vs_line(self, make_ctx):
        ctx = make_ctx(
            market=Market.TOTAL,
            line=140.0,
            h2h=HeadToHead(total_games=4, overs=1, unders=3, avg_total_points=130.0),
        )
        result = HeadToHeadProvider().compute(ctx)
        assert result.direction is Direction.UNDER
        # |130 - 140| / 2 = 5
        assert result.magnitude == pytest.approx(5.0)
        assert result.confidence == pytest.approx(0.5)


class TestSituational:
    def test_indoor_sport_is_noise(self, make_ctx):
        ctx = make_ctx(weather=Weather(wind_mph=35, temp_f=10, category="SNOW"))
        result = SituationalProvider().compute(ctx)
        assert result.direction is Direction.NEUTRAL
        assert result.label == "Indoor sport"

    def test_outdoor_wind_and_cold_spread(self, make_ctx, config):
        ctx = make_ctx(
            sport=Sport.NFL,
            profile=config.profile(Sport.NFL, Market.SPREAD),
            weather=Weather(wind_mph=22, temp_f=15),
        )
        result = SituationalProvider().compute(ctx)
        assert result.direction is Direction.HOME
        assert result.magnitude == pytest.approx(4.0)
        assert "Wind: 22 mph" in result.label

    def test_outdoor_total_leans_under(self, make_ctx, config):
        ctx = make_ctx(
            sport=Sport.NFL,
            market=Market.TOTAL,
            line=44.5,
            profile=config.profile(Sport.NFL, Market.TOTAL),
            weather=Weather(wind_mph=26, category="RAIN"),
        )
        result = SituationalProvider().compute(ctx)
        assert result.direction is Direction.UNDER
        assert result.magnitude == pytest.approx(6.0)
        assert result.strength is Strength.STRONG
        assert result.confidence == pytest.approx(0.5)

    def test_calm_weather_is_neutral(self, make_ctx, config):
        ctx = make_ctx(
            sport=Sport.NFL,
            profile=config.profile(Sport.NFL, Market.SPREAD),
            weather=Weather(wind_mph=5, temp_f=60, category="CLEAR"),
        )
        assert SituationalProvider().compute(ctx).direction is Direction.NEUTRAL


class TestRest:
    def test_home_back_to_back_favors_away(self, make_ctx):
        ctx = make_ctx(home_last_game=date(2025, 1, 14), away_last_game=date(2025, 1, 11))
        result = RestProvider().compute(ctx)
        assert result.direction is Direction.AWAY
        assert result.magnitude == 5.0
        assert result.confidence == 0.65

    def test_away_back_to_back_favors_home(self, make_ctx):
        ctx = make_ctx(home_last_game=date(2025, 1, 12), away_last_game=date(2025, 1, 14))
        result = RestProvider().compute(ctx)
        assert result.direction is Direction.HOME
        assert result.magnitude == 3.0
        assert result.strength is Strength.WEAK

    def test_both_tired_is_neutral(self, make_ctx):
        ctx = make_ctx(home_last_game=date(2025, 1, 14), away_last_game=date(2025, 1, 14))
        assert RestProvider().compute(ctx).direction is Direction.NEUTRAL

    def test_no_history_is_neutral(self, make_ctx):
        assert RestProvider().compute(make_ctx()).direction is Direction.NEUTRAL

    def test_totals_not_applicable(self, make_ctx):
        ctx = make_ctx(market=Market.TOTAL, line=140.5, home_last_game=date(2025, 1, 14))
        assert RestProvider().compute(ctx).direction is Direction.NEUTRAL


class TestTempo:
    def _ctx(self, make_ctx, home_tempo, away_tempo):
        return make_ctx(
            market=Market.TOTAL,
            line=140.5,
            ratings=_snapshot(
                _rating("Duke", adj_tempo=home_tempo),
                _rating("North Carolina", adj_tempo=away_tempo),
            ),
        )

    def test_mismatch_with_slow_team(self, make_ctx):
        result = TempoProvider().compute(self._ctx(make_ctx, 63.0, 72.0))
        assert result.direction is Direction.UNDER
        assert result.magnitude == 6.0
        assert result.confidence == 0.72

    def test_mismatch(self, make_ctx):
        result = TempoProvider().compute(self._ctx(make_ctx, 67.0, 76.0))
        assert result.direction is Direction.UNDER
        assert result.magnitude == 4.0

    def test_both_fast(self, make_ctx):
        result = TempoProvider().compute(self._ctx(make_ctx, 71.0, 73.0))
        assert result.direction is Direction.OVER
        assert result.strength is Strength.MODERATE

    def test_both_slow(self, make_ctx):
        result = TempoProvider().compute(self._ctx(make_ctx, 61.0, 63.0))
        assert result.direction is Direction.UNDER
        assert result.magnitude == 5.0

    def test_middle_is_neutral(self, make_ctx):
        assert TempoProvider().compute(self._ctx(make_ctx, 67.0, 68.0)).direction is Direction.NEUTRAL

    def test_no_ratings_is_neutral(self, make_ctx):
        ctx = make_ctx(market=Market.TOTAL, line=140.5)
        assert TempoProvider().compute(ctx).direction is Direction.NEUTRAL


class TestMarketDivergence:
    def test_missing_inputs_are_neutral(self, make_ctx):
        prediction = GamePrediction(home_team="Duke", away_team="North Carolina", home_win_prob=0.8)
        assert MarketDivergenceProvider().compute(make_ctx()).direction is Direction.NEUTRAL
        assert (
            MarketDivergenceProvider().compute(make_ctx(prediction=prediction, moneyline_home=-200)).direction
            is Direction.NEUTRAL
        )

    def test_model_above_market(self, make_ctx):
        prediction = GamePrediction(home_team="Duke", away_team="North Carolina", home_win_prob=0.75)
        ctx = make_ctx(prediction=prediction, moneyline_home=-110, moneyline_away=-110)
        result = MarketDivergenceProvider().compute(ctx)
        assert result.direction is Direction.HOME
        # (0.75 - 0.5) x 50
        assert result.magnitude == pytest.approx(10.0)
        assert result.confidence == 0.5

    def test_small_gap_is_neutral(self, make_ctx):
        prediction = GamePrediction(home_team="Duke", away_team="North Carolina", home_win_prob=0.52)
        ctx = make_ctx(prediction=prediction, moneyline_home=-110, moneyline_away=-110)
        assert MarketDivergenceProvider().compute(ctx).direction is Direction.NEUTRAL


class TestTrendAngles:
    def _angle(self, team, ats_rate=0.5, ats_strength=Strength.NOISE, over_rate=None, ou_strength=Strength.NOISE):
        return TrendAngle(
            team=team, label="filter", ats_rate=ats_rate, ats_strength=ats_strength,
            over_rate=over_rate, ou_strength=ou_strength,
        )

    def test_no_angles_is_neutral(self, make_ctx):
        assert TrendAnglesProvider().compute(make_ctx()).direction is Direction.NEUTRAL

    def test_one_sided_dominance(self, make_ctx):
        ctx = make_ctx(
            home_angles=(
                self._angle("Duke", 0.7, Strength.STRONG),
                self._angle("Duke", 0.65, Strength.MODERATE),
            ),
            away_angles=(self._angle("North Carolina", 0.3, Strength.WEAK),),
        )
        result = TrendAnglesProvider().compute(ctx)
        # away's losing angle also votes HOME: dominance 1.0 x 10 + 2 x 0.5
        assert result.direction is Direction.HOME
        assert result.magnitude == pytest.approx(10.0)
        assert result.confidence == pytest.approx(0.56)

    def test_balanced_is_neutral(self, make_ctx):
        ctx = make_ctx(
            home_angles=(self._angle("Duke", 0.7, Strength.MODERATE),),
            away_angles=(self._angle("North Carolina", 0.7, Strength.MODERATE),),
        )
        assert TrendAnglesProvider().compute(ctx).direction is Direction.NEUTRAL

    def test_total_votes(self, make_ctx):
        ctx = make_ctx(
            market=Market.TOTAL,
            line=140.5,
            home_angles=(
                self._angle("Duke", over_rate=0.3, ou_strength=Strength.STRONG),
                self._angle("Duke", over_rate=0.7, ou_strength=Strength.WEAK),
            ),
        )
        result = TrendAnglesProvider().compute(ctx)
        # (3 - 1) / 4 x 10 + 0.5
        assert result.direction is Direction.UNDER
        assert result.magnitude == pytest.approx(5.5)


class TestModelEdge:
    def test_efficiency_spread_early_season(self, make_ctx):
        ctx = make_ctx(
            game_date=date(2024, 12, 10),
            line=-3.0,
            ratings=_snapshot(_rating("Duke", 5, 25.0), _rating("North Carolina", 40, 15.0)),
        )
        result = ModelEdgeProvider().compute(ctx)
        # 25 - 15 + 2 home - 3 = 9; 9 / 0.7 capped at 10
        assert result.direction is Direction.HOME
        assert result.magnitude == pytest.approx(10.0)
        assert result.confidence == 0.8
        assert "edge +9.0" in result.label

    def test_efficiency_home_damped_after_december(self, make_ctx):
        ctx = make_ctx(
            game_date=date(2025, 1, 20),
            line=-3.0,
            ratings=_snapshot(_rating("Duke", 5, 25.0), _rating("North Carolina", 40, 15.0)),
        )
        result = ModelEdgeProvider().compute(ctx)
        assert result.direction is Direction.HOME
        assert result.magnitude == pytest.approx(4.0)
        assert result.confidence == 0.45

    def test_efficiency_away_edge_not_damped(self, make_ctx):
        ctx = make_ctx(
            game_date=date(2025, 1, 20),
            line=-10.0,
            ratings=_snapshot(_rating("Duke", 5, 20.0), _rating("North Carolina", 40, 15.0)),
        )
        result = ModelEdgeProvider().compute(ctx)
        # 20 - 15 + 2 - 10 = -3
        assert result.direction is Direction.AWAY
        assert result.magnitude == pytest.approx(3 / 0.7)
        assert result.confidence == 0.8

    def test_dead_zone(self, make_ctx):
        ctx = make_ctx(
            line=-2.3,
            ratings=_snapshot(_rating("Duke", 5, 15.0), _rating("North Carolina", 40, 15.0)),
        )
        assert ModelEdgeProvider().compute(ctx).direction is Direction.NEUTRAL

    def test_missing_rating_is_neutral(self, make_ctx):
        ctx = make_ctx(ratings=_snapshot(_rating("Duke", 5, 25.0)))
        result = ModelEdgeProvider().compute(ctx)
        assert result.direction is Direction.NEUTRAL
        assert result.magnitude == 0.0

    def test_efficiency_total_elite_under(self, make_ctx):
        ctx = make_ctx(
            market=Market.TOTAL,
            line=140.5,
            ratings=_snapshot(
                _rating("Duke", 3, adj_de=92.0, adj_tempo=66.0),
                _rating("North Carolina", 20, adj_de=96.0, adj_tempo=68.0),
            ),
        )
        result = ModelEdgeProvider().compute(ctx)
        assert result.direction is Direction.UNDER
        assert result.magnitude == 10.0
        assert result.confidence == 0.95

    def test_efficiency_total_unranked_not_elite(self, make_ctx):
        """Teams the feed publishes without a rank never trigger the rank rules."""
        ctx = make_ctx(
            market=Market.TOTAL,
            line=140.0,
            ratings=_snapshot(
                _rating("Duke", None, adj_de=100.0, adj_tempo=66.0),
                _rating("North Carolina", None, adj_de=99.0, adj_tempo=66.0),
            ),
        )
        result = ModelEdgeProvider().compute(ctx)
        assert result.direction is Direction.NEUTRAL
        assert result.magnitude == 0.0

    def test_efficiency_spread_unranked_home_not_march_faded(self, make_ctx):
        ctx = make_ctx(
            game_date=date(2025, 3, 10),
            line=-3.0,
            ratings=_snapshot(_rating("Duke", None, 25.0), _rating("North Carolina", 40, 15.0)),
        )
        result = ModelEdgeProvider().compute(ctx)
        assert result.direction is Direction.HOME
        assert result.magnitude == pytest.approx(4.0)
        assert result.confidence == 0.45
        assert result.label.startswith("Efficiency: unranked (+25.0) vs #40")

    def test_efficiency_total_bad_defenses_over(self, make_ctx):
        ctx = make_ctx(
            market=Market.TOTAL,
            line=140.5,
            ratings=_snapshot(
                _rating("Duke", 150, adj_de=106.0, adj_tempo=71.0),
                _rating("North Carolina", 160, adj_de=106.0, adj_tempo=71.0),
            ),
        )
        result = ModelEdgeProvider().compute(ctx)
        # 212 > 210 band (8), fast tempo +2
        assert result.direction is Direction.OVER
        assert result.magnitude == pytest.approx(10.0)

    def test_power_rating_spread(self, make_ctx, config):
        home = TeamStats(games=10, points_for=800, points_against=700)
        away = TeamStats(games=10, points_for=700, points_against=720)
        ctx = make_ctx(
            sport=Sport.NFL,
            line=-3.0,
            home_stats=home,
            away_stats=away,
            profile=config.profile(Sport.NFL, Market.SPREAD),
        )
        result = ModelEdgeProvider().compute(ctx)
        # (10 - (-2)) / 2 + 2.5 - 3 = 5.5
        assert result.direction is Direction.HOME
        assert result.magnitude == pytest.approx(5.5)
        assert result.strength is Strength.MODERATE

    def test_power_rating_needs_games(self, make_ctx, config):
        ctx = make_ctx(
            sport=Sport.NFL,
            home_stats=TeamStats(games=2, points_for=60, points_against=20),
            away_stats=TeamStats(games=10, points_for=200, points_against=200),
            profile=config.profile(Sport.NFL, Market.SPREAD),
        )
        assert ModelEdgeProvider().compute(ctx).direction is Direction.NEUTRAL

    def test_feed_name_lookup(self, make_ctx):
        """Feed spellings resolve through the alias table."""
        ctx = make_ctx(
            game_date=date(2024, 12, 10),
            home_team="N.C. State",
            away_team="Chicago St.",
            feed_home="NC State",
            line=-20.0,
            ratings=_snapshot(_rating("N.C. State", 60, 10.0), _rating("Chicago State", 350, -15.0)),
        )
        result = ModelEdgeProvider().compute(ctx)
        assert result.is_active


class TestRegistry:
    def test_every_profile_category_registered(self, config):
        for by_market in config.profiles.values():
            for profile in by_market.values():
                providers = pipeline_for(profile)
                assert [p.category for p in providers] == list(profile.weights)

    def test_pipeline_follows_profile(self, config):
        profile = config.profile(Sport.NCAAMB, Market.TOTAL)
        categories = [p.category for p in pipeline_for(profile)]
        assert categories == list(profile.weights)
        assert Category.TEMPO in categories
        assert Category.REST not in categories

    def test_compute_signals_one_per_category(self, make_ctx):
        signals = compute_signals(make_ctx())
        assert [s.category for s in signals] == list(make_ctx().profile.weights)
        # empty context: nothing fires
        assert all(not s.is_active for s in signals)
