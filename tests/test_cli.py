"""Tests for CLI commands with mocked dependencies."""

from __future__ import annotations

import json
import tempfile
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from pick_edge.cli import app
from pick_edge.common.errors import NoGameHistoryError
from pick_edge.common.types import Sport
from pick_edge.pipeline import GenerationResult, RunTelemetry

runner = CliRunner()


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def env(tmp_dir, monkeypatch):
    """Point settings at an empty data directory and a scratch database."""
    monkeypatch.setenv("PICK_EDGE_DATA_DIR", str(tmp_dir / "data"))
    monkeypatch.setenv("PICK_EDGE_DB_PATH", str(tmp_dir / "picks.db"))
    monkeypatch.delenv("PICK_EDGE_RATINGS_API_URL", raising=False)
    monkeypatch.delenv("PICK_EDGE_ENGINE_CONFIG_PATH", raising=False)
    return tmp_dir


def _result(picks) -> GenerationResult:
    return GenerationResult(
        sport=Sport.NCAAMB,
        day=date(2025, 1, 15),
        config_version="v5.1",
        picks=list(picks),
        telemetry=RunTelemetry(processed=3, generated=len(picks), rejected_low_score=2),
    )


class TestGenerateCommand:
    def test_json_output(self, env, sample_pick):
        mock_generate = AsyncMock(return_value=_result([sample_pick]))
        with patch("pick_edge.pipeline.generate_picks", mock_generate):
            result = runner.invoke(app, ["generate", "--date", "2025-01-15", "--output", "json", "--no-save"])

        assert result.exit_code == 0
        assert '"label": "Duke -3.5"' in result.output
        assert "processed=3" in result.output
        assert mock_generate.await_args.args == (Sport.NCAAMB, date(2025, 1, 15))

    def test_table_with_reasoning(self, env, sample_pick):
        with patch("pick_edge.pipeline.generate_picks", AsyncMock(return_value=_result([sample_pick]))):
            result = runner.invoke(app, ["generate", "--no-save", "--reasoning"])

        assert result.exit_code == 0
        assert "[OPPOSING] Last 5 ATS" in result.output

    def test_saves_picks(self, env, sample_pick):
        with patch("pick_edge.pipeline.generate_picks", AsyncMock(return_value=_result([sample_pick]))):
            result = runner.invoke(app, ["generate", "--output", "csv"])

        assert result.exit_code == 0
        assert "Saved 1 new pick(s)" in result.output
        assert (env / "picks.db").exists()

    def test_no_history_exits(self, env):
        mock_generate = AsyncMock(side_effect=NoGameHistoryError("No NCAAMB games in history"))
        with patch("pick_edge.pipeline.generate_picks", mock_generate):
            result = runner.invoke(app, ["generate", "--no-save"])

        assert result.exit_code == 1
        assert "No NCAAMB games" in result.output

    def test_malformed_data_file_exits(self, env):
        games_dir = env / "data" / "games"
        games_dir.mkdir(parents=True)
        (games_dir / "NCAAMB.json").write_text('{"games": []}')

        result = runner.invoke(app, ["generate", "--no-save"])

        assert result.exit_code == 1
        assert "Expected a JSON list" in result.output
        assert "Traceback" not in result.output

    def test_bad_config_exits(self, env):
        result = runner.invoke(app, ["generate", "--config", str(env / "missing.toml")])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestStatsCommand:
    def test_empty_database(self, env):
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        assert "Total picks stored: 0" in result.output
        assert "N/A" in result.output


class TestShowConfigCommand:
    def test_defaults(self, env):
        result = runner.invoke(app, ["show-config"])
        assert result.exit_code == 0
        assert '"version": "v5.1"' in result.output

    def test_override(self, env):
        path = env / "engine.toml"
        path.write_text('version = "experiment-7"\n')
        result = runner.invoke(app, ["show-config", "--config", str(path)])
        assert result.exit_code == 0
        assert "experiment-7" in result.output


class TestBacktestCommand:
    def test_json_report(self, env):
        games_dir = env / "data" / "games"
        games_dir.mkdir(parents=True)
        (games_dir / "NCAAMB.json").write_text(json.dumps([
            {"date": "2024-11-04", "home": "Duke", "away": "Army", "home_score": 90,
             "away_score": 60, "spread": -20.5, "total": 140.5},
            {"date": "2024-11-08", "home": "Duke", "away": "Kansas", "home_score": 70,
             "away_score": 72, "spread": -2.5, "total": 145.5},
        ]))

        result = runner.invoke(app, ["backtest", "--output", "json"])

        assert result.exit_code == 0
        assert "No dated rating snapshots" in result.output
        assert '"sport": "NCAAMB"' in result.output
        # both dates fall inside the default warm-up
        assert '"games_scored": 0' in result.output

    def test_empty_history_exits(self, env):
        result = runner.invoke(app, ["backtest"])
        assert result.exit_code == 1


class TestGradeCommand:
    def test_nothing_pending(self, env):
        result = runner.invoke(app, ["grade"])
        assert result.exit_code == 0
        assert "Graded:     0" in result.output
