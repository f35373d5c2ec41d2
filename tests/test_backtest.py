"""Tests for the walk-forward backtest and its report."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from unittest.mock import patch

import pytest

from pick_edge.backtest.report import RecordLine, build_report
from pick_edge.backtest.walkforward import run_backtest
from pick_edge.common.errors import NoGameHistoryError
from pick_edge.common.types import Category, Direction, Grade, Market, Sport
from pick_edge.engine.evaluator import build_context
from pick_edge.engine.profiles import BacktestConstants, EngineConfig, MarketProfile
from pick_edge.games.models import TeamRating
from pick_edge.ratings.pit import PITRatingArchive
from pick_edge.ratings.snapshot import RatingSnapshot


@pytest.fixture
def model_only_config():
    """Spread scored on the efficiency model alone, no warm-up."""
    spread = MarketProfile(
        weights={Category.MODEL_EDGE: 1.0},
        min_active=1,
        model_edge="efficiency",
        home_advantage=2.0,
    )
    return EngineConfig(
        version="test",
        profiles={Sport.NCAAMB: {Market.SPREAD: spread}},
        backtest=BacktestConstants(warmup_days=0),
    )


@pytest.fixture
def archive():
    """Duke rated well above UNC until Nov 10, then well below."""
    return PITRatingArchive([
        RatingSnapshot.from_ratings(date(2024, 11, 3), [
            TeamRating(team="Duke", rank=10, adj_em=20.0),
            TeamRating(team="North Carolina", rank=40, adj_em=10.0),
        ]),
        RatingSnapshot.from_ratings(date(2024, 11, 10), [
            TeamRating(team="Duke", rank=120, adj_em=0.0),
            TeamRating(team="North Carolina", rank=5, adj_em=20.0),
        ]),
    ])


@pytest.fixture
def season_games(make_game):
    return [
        make_game(date(2024, 11, 12), "Duke", "North Carolina", 70, 75, spread=-3.0, total=None),
        make_game(date(2024, 11, 2), "Duke", "Army", 90, 60, spread=-20.5, total=None),
        make_game(date(2024, 11, 5), "Duke", "North Carolina", 80, 70, spread=-3.0, total=None),
    ]


class TestWalkForward:
    def test_picks_use_point_in_time_ratings(self, season_games, model_only_config, archive):
        run = run_backtest(season_games, Sport.NCAAMB, model_only_config, archive=archive)

        assert [(p.game_date, p.side) for p in run.picks] == [
            (date(2024, 11, 5), Direction.HOME),
            (date(2024, 11, 12), Direction.AWAY),
        ]
        assert all(p.grade is Grade.WIN for p in run.picks)
        assert run.picks[1].label == "North Carolina +3"

    def test_context_sees_snapshot_valid_that_day(self, season_games, model_only_config, archive):
        with patch("pick_edge.backtest.walkforward.build_context", wraps=build_context) as spy:
            run_backtest(season_games, Sport.NCAAMB, model_only_config, archive=archive)

        seen = {c.kwargs["game_date"]: c.kwargs["ratings"] for c in spy.call_args_list}
        assert seen[date(2024, 11, 2)] is None
        assert seen[date(2024, 11, 5)].as_of == date(2024, 11, 3)
        assert seen[date(2024, 11, 12)].as_of == date(2024, 11, 10)

    def test_tracker_excludes_same_day(self, season_games, model_only_config, archive):
        with patch("pick_edge.backtest.walkforward.build_context", wraps=build_context) as spy:
            run_backtest(season_games, Sport.NCAAMB, model_only_config, archive=archive)

        first = spy.call_args_list[0].kwargs
        assert first["game_date"] == date(2024, 11, 2)
        assert first["tracker"].last_game_date("Duke", date(2024, 11, 2)) is None

    def test_rejections_counted(self, season_games, model_only_config, archive):
        run = run_backtest(season_games, Sport.NCAAMB, model_only_config, archive=archive)
        report = run.report

        assert report.games_scored == 3
        # Nov 2 precedes the first snapshot, so the model edge cannot fire
        assert report.rejected_insufficient == 1
        assert report.rejected_low_score == 0
        assert report.overall.display() == "2-0-0"
        assert report.season == 2025
        assert report.config_version == "test"

    def test_no_ratings_rejects_everything(self, season_games, model_only_config):
        run = run_backtest(season_games, Sport.NCAAMB, model_only_config)
        assert run.picks == []
        assert run.report.rejected_insufficient == 3

    def test_warmup_days_only_feed_tracker(self, season_games, model_only_config, archive):
        config = model_only_config.model_copy(update={"backtest": BacktestConstants(warmup_days=3)})
        run = run_backtest(season_games, Sport.NCAAMB, config, archive=archive)

        assert run.report.games_scored == 2
        assert run.report.rejected_insufficient == 0

    def test_keep_snapshots(self, season_games, model_only_config, archive):
        run = run_backtest(
            season_games, Sport.NCAAMB, model_only_config, archive=archive, keep_snapshots=True,
        )

        assert sorted(run.snapshots) == [date(2024, 11, 2), date(2024, 11, 5), date(2024, 11, 12)]
        after_first = run.snapshots[date(2024, 11, 2)]
        assert after_first.last_game_date("Duke", date(2024, 11, 30)) == date(2024, 11, 2)
        after_second = run.snapshots[date(2024, 11, 5)]
        assert after_second.last_game_date("Duke", date(2024, 11, 30)) == date(2024, 11, 5)

    def test_start_seeds_tracker(self, season_games, model_only_config, archive):
        run = run_backtest(
            season_games, Sport.NCAAMB, model_only_config,
            archive=archive, start=date(2024, 11, 4),
        )
        assert run.report.games_scored == 2
        assert run.report.start == date(2024, 11, 5)

    def test_empty_window_raises(self, season_games, model_only_config):
        with pytest.raises(NoGameHistoryError):
            run_backtest(season_games, Sport.NCAAMB, model_only_config, start=date(2025, 1, 1))


class TestRecordLine:
    def test_roi_at_standard_vig(self):
        record = RecordLine(wins=3, losses=1, pushes=1)
        assert record.picks == 5
        assert record.win_pct == pytest.approx(75.0)
        assert record.roi() == pytest.approx((3 * 100 / 110 - 1) / 4 * 100)

    def test_roi_at_plus_odds(self):
        assert RecordLine(wins=1, losses=1).roi(150) == pytest.approx(25.0)

    def test_undecided(self):
        record = RecordLine(pushes=2)
        assert record.win_pct is None
        assert record.roi() is None


class TestBuildReport:
    @pytest.fixture
    def graded_picks(self, sample_pick):
        def on(day: date, grade: Grade, market: Market = Market.SPREAD, tier: int = 5):
            return replace(sample_pick, game_date=day, grade=grade, market=market, tier=tier)

        good_day = date(2025, 1, 10)
        bad_day = date(2025, 1, 11)
        small_day = date(2025, 2, 1)
        return (
            [on(good_day, Grade.WIN)] * 4
            + [on(good_day, Grade.LOSS, Market.TOTAL, tier=4)]
            + [on(bad_day, Grade.WIN, tier=4)]
            + [on(bad_day, Grade.LOSS)] * 4
            + [on(small_day, Grade.WIN)] * 2
            + [replace(sample_pick, game_date=small_day)]
        )

    def test_aggregates(self, graded_picks):
        report = build_report(graded_picks, sport=Sport.NCAAMB, season=2025, config_version="v5.1")

        assert report.overall.display() == "7-5-0"
        assert report.roi == pytest.approx((7 * 100 / 110 - 5) / 12 * 100)
        assert list(report.by_tier) == [5, 4]
        assert report.by_tier[4].display() == "1-1-0"
        assert report.by_market[Market.TOTAL].display() == "0-1-0"
        assert report.by_tier_market[(4, Market.TOTAL)].losses == 1
        assert list(report.by_month) == ["2025-01", "2025-02"]

    def test_best_and_worst_days_need_volume(self, graded_picks):
        report = build_report(graded_picks, sport=Sport.NCAAMB, season=2025, config_version="v5.1")

        assert [d.day for d in report.best_days] == [date(2025, 1, 10), date(2025, 1, 11)]
        assert report.worst_days[0].day == date(2025, 1, 11)
        assert date(2025, 2, 1) not in {d.day for d in report.best_days}

    def test_to_dict(self, graded_picks):
        report = build_report(
            graded_picks,
            sport=Sport.NCAAMB,
            season=2025,
            config_version="v5.1",
            start=date(2025, 1, 10),
            end=date(2025, 2, 1),
        )
        data = report.to_dict()

        assert data["sport"] == "NCAAMB"
        assert data["start"] == "2025-01-10"
        assert data["overall"]["win_pct"] == pytest.approx(58.3)
        assert data["by_tier"]["4"]["wins"] == 1
        assert "4:total" in data["by_tier_market"]
        assert data["best_days"][0]["day"] == "2025-01-10"

    def test_empty(self):
        report = build_report([], sport=Sport.NFL, season=2024, config_version="v5.1")
        assert report.roi is None
        assert report.best_days == []
        assert report.worst_days == []
