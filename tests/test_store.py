"""Tests for the SQLite pick store."""

from __future__ import annotations

import tempfile
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from pick_edge.common.types import Direction, Grade, Market, Sport
from pick_edge.storage.picks import PickStore


@pytest.fixture
def tmp_db():
    """Create a temporary database file for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test_picks.db"


@pytest.fixture
def store(tmp_db):
    """Store resolved from settings, pointed at the temporary database."""
    with patch("pick_edge.storage.picks.get_settings") as mock_settings:
        mock_settings.return_value.db_path = tmp_db
        yield PickStore()


@pytest.fixture
def total_pick(sample_pick):
    return replace(
        sample_pick,
        market=Market.TOTAL,
        side=Direction.UNDER,
        line=141.5,
        score=74,
        tier=4,
        label="Under 141.5",
        headline="3 signals favor Under 141.5",
    )


@pytest.mark.asyncio
async def test_save_and_load(store, sample_pick):
    """Saved picks come back with reasoning intact."""
    inserted = await store.save_picks([sample_pick])
    assert inserted == 1

    loaded = await store.picks_for(Sport.NCAAMB, date(2025, 1, 15))
    assert len(loaded) == 1
    pick = loaded[0]
    assert pick.id == 1
    assert pick.label == "Duke -3.5"
    assert pick.side is Direction.HOME
    assert pick.grade is Grade.PENDING
    assert pick.reasoning == sample_pick.reasoning
    assert pick.reasoning[1].opposing


@pytest.mark.asyncio
async def test_duplicate_game_market_ignored(store, sample_pick, total_pick):
    assert await store.save_picks([sample_pick, total_pick]) == 2
    assert await store.save_picks([replace(sample_pick, score=95)]) == 0

    loaded = await store.picks_for(Sport.NCAAMB, date(2025, 1, 15))
    assert [p.score for p in loaded] == [88, 74]


@pytest.mark.asyncio
async def test_pending_filters(store, sample_pick):
    later = replace(sample_pick, game_date=date(2025, 1, 20))
    football = replace(sample_pick, sport=Sport.NFL)
    await store.save_picks([sample_pick, later, football])

    assert len(await store.pending_picks()) == 3
    assert len(await store.pending_picks(Sport.NCAAMB)) == 2
    before = await store.pending_picks(Sport.NCAAMB, before=date(2025, 1, 16))
    assert [p.game_date for p in before] == [date(2025, 1, 15)]


@pytest.mark.asyncio
async def test_record_grade_once(store, sample_pick):
    """A second grade for the same pick is a no-op."""
    await store.save_picks([sample_pick])
    graded_at = datetime(2025, 1, 16, 8, 0)

    assert await store.record_grade(1, Grade.WIN, 7.0, graded_at) == 1
    assert await store.record_grade(1, Grade.LOSS, -2.0, graded_at) == 0

    pick = (await store.picks_for(Sport.NCAAMB, date(2025, 1, 15)))[0]
    assert pick.grade is Grade.WIN
    assert pick.actual_value == 7.0
    assert pick.graded_at == graded_at
    assert await store.pending_picks() == []


@pytest.mark.asyncio
async def test_record_pending_rejected(store):
    with pytest.raises(ValueError):
        await store.record_grade(1, Grade.PENDING, None, datetime(2025, 1, 16))


@pytest.mark.asyncio
async def test_performance_summary(store, sample_pick, total_pick):
    push = replace(sample_pick, home_team="Kansas", away_team="Baylor", tier=4)
    pending = replace(sample_pick, home_team="Purdue", away_team="Indiana")
    await store.save_picks([sample_pick, total_pick, push, pending])
    graded_at = datetime(2025, 1, 16)
    await store.record_grade(1, Grade.WIN, 7.0, graded_at)
    await store.record_grade(2, Grade.LOSS, 150.0, graded_at)
    await store.record_grade(3, Grade.PUSH, -3.5, graded_at)

    summary = await store.performance_summary()

    assert summary["total_picks"] == 4
    assert summary["graded"] == 3
    assert summary["pending"] == 1
    assert summary["overall"] == {"wins": 1, "losses": 1, "pushes": 1, "win_rate": 0.5}
    assert summary["by_tier"][5]["wins"] == 1
    assert summary["by_tier"][4] == {"wins": 0, "losses": 1, "pushes": 1, "win_rate": 0.0}
    assert summary["by_market"]["total"]["losses"] == 1


@pytest.mark.asyncio
async def test_performance_summary_empty(tmp_db):
    summary = await PickStore(tmp_db).performance_summary(Sport.NFL)
    assert summary["total_picks"] == 0
    assert summary["overall"]["win_rate"] is None
