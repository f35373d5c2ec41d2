"""SQLite pick store.

One row per (sport, market, home, away, game date). Grades are written only
while a pick is PENDING, so re-grading is a no-op.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path

import aiosqlite

from pick_edge.common.types import Category, Direction, Grade, Market, Sport, Strength
from pick_edge.config import get_settings
from pick_edge.signals.models import Pick, ReasoningEntry

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS picks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    sport TEXT NOT NULL,
    market TEXT NOT NULL,
    home_team TEXT NOT NULL,
    away_team TEXT NOT NULL,
    game_date TEXT NOT NULL,
    side TEXT NOT NULL,
    line REAL NOT NULL,
    score INTEGER NOT NULL,
    tier INTEGER NOT NULL,
    label TEXT NOT NULL,
    headline TEXT,
    reasoning TEXT,
    grade TEXT NOT NULL DEFAULT 'PENDING',
    actual_value REAL,
    graded_at TEXT,
    created_at TEXT NOT NULL
);
"""

_CREATE_UNIQUE = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_picks_game_market
ON picks(sport, market, home_team, away_team, game_date);
"""

_CREATE_GRADE_INDEX = """
CREATE INDEX IF NOT EXISTS idx_picks_grade ON picks(grade);
"""

_COLUMNS = (
    "id, sport, market, home_team, away_team, game_date, side, line, score, tier, "
    "label, headline, reasoning, grade, actual_value, graded_at"
)


def _reasoning_to_json(reasoning: tuple[ReasoningEntry, ...]) -> str:
    return json.dumps([
        {
            "label": r.label,
            "weight": r.weight,
            "strength": r.strength.value,
            "category": r.category.value,
            "opposing": r.opposing,
        }
        for r in reasoning
    ])


def _reasoning_from_json(raw: str | None) -> tuple[ReasoningEntry, ...]:
    if not raw:
        return ()
    return tuple(
        ReasoningEntry(
            label=r["label"],
            weight=r["weight"],
            strength=Strength(r["strength"]),
            category=Category(r["category"]),
            opposing=r.get("opposing", False),
        )
        for r in json.loads(raw)
    )


def _row_to_pick(row: aiosqlite.Row) -> Pick:
    return Pick(
        id=row["id"],
        sport=Sport(row["sport"]),
        market=Market(row["market"]),
        home_team=row["home_team"],
        away_team=row["away_team"],
        game_date=date.fromisoformat(row["game_date"]),
        side=Direction(row["side"]),
        line=row["line"],
        score=row["score"],
        tier=row["tier"],
        label=row["label"],
        headline=row["headline"] or "",
        reasoning=_reasoning_from_json(row["reasoning"]),
        grade=Grade(row["grade"]),
        actual_value=row["actual_value"],
        graded_at=datetime.fromisoformat(row["graded_at"]) if row["graded_at"] else None,
    )


def _record(wins: int, losses: int, pushes: int) -> dict:
    decided = wins + losses
    return {
        "wins": wins,
        "losses": losses,
        "pushes": pushes,
        "win_rate": wins / decided if decided > 0 else None,
    }


class PickStore:
    """Pick persistence on SQLite via aiosqlite."""

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = Path(db_path) if db_path is not None else get_settings().db_path

    async def _ensure_db(self) -> None:
        """Create database and tables if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE)
            await db.execute(_CREATE_UNIQUE)
            await db.execute(_CREATE_GRADE_INDEX)
            await db.commit()

    async def save_picks(self, picks: list[Pick], created_at: datetime | None = None) -> int:
        """Insert picks, skipping any game+market already stored. Returns rows inserted."""
        await self._ensure_db()
        stamp = (created_at or datetime.now()).isoformat()
        inserted = 0
        async with aiosqlite.connect(str(self._db_path)) as db:
            for p in picks:
                cursor = await db.execute(
                    """INSERT OR IGNORE INTO picks
                       (sport, market, home_team, away_team, game_date, side, line,
                        score, tier, label, headline, reasoning, grade, created_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        p.sport.value,
                        p.market.value,
                        p.home_team,
                        p.away_team,
                        p.game_date.isoformat(),
                        p.side.value,
                        p.line,
                        p.score,
                        p.tier,
                        p.label,
                        p.headline,
                        _reasoning_to_json(p.reasoning),
                        p.grade.value,
                        stamp,
                    ),
                )
                inserted += cursor.rowcount
            await db.commit()
        return inserted

    async def picks_for(self, sport: Sport, day: date) -> list[Pick]:
        await self._ensure_db()
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM picks WHERE sport = ? AND game_date = ? "
                "ORDER BY score DESC, id",
                (sport.value, day.isoformat()),
            )
            rows = await cursor.fetchall()
            return [_row_to_pick(row) for row in rows]

    async def pending_picks(self, sport: Sport | None = None, before: date | None = None) -> list[Pick]:
        """PENDING picks, optionally for one sport and games dated before ``before``."""
        await self._ensure_db()
        query = f"SELECT {_COLUMNS} FROM picks WHERE grade = 'PENDING'"
        params: list[str] = []
        if sport is not None:
            query += " AND sport = ?"
            params.append(sport.value)
        if before is not None:
            query += " AND game_date < ?"
            params.append(before.isoformat())
        query += " ORDER BY game_date, id"

        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
            return [_row_to_pick(row) for row in rows]

    async def record_grade(
        self, pick_id: int, grade: Grade, actual_value: float | None, graded_at: datetime,
    ) -> int:
        """Grade a PENDING pick. Returns rows updated (0 if already graded)."""
        if grade is Grade.PENDING:
            raise ValueError("Cannot record a PENDING grade")
        await self._ensure_db()
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                """UPDATE picks
                   SET grade = ?, actual_value = ?, graded_at = ?
                   WHERE id = ? AND grade = 'PENDING'""",
                (grade.value, actual_value, graded_at.isoformat(), pick_id),
            )
            await db.commit()
            return cursor.rowcount

    async def performance_summary(self, sport: Sport | None = None) -> dict:
        """Win/loss/push counts overall, by tier and by market."""
        await self._ensure_db()
        where = "WHERE grade != 'PENDING'"
        params: list[str] = []
        if sport is not None:
            where += " AND sport = ?"
            params.append(sport.value)

        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row

            cursor = await db.execute(
                "SELECT COUNT(*) AS total FROM picks"
                + (" WHERE sport = ?" if sport is not None else ""),
                params,
            )
            total = (await cursor.fetchone())["total"]

            cursor = await db.execute(
                f"""SELECT tier, market,
                          SUM(grade = 'WIN') AS wins,
                          SUM(grade = 'LOSS') AS losses,
                          SUM(grade = 'PUSH') AS pushes
                   FROM picks {where}
                   GROUP BY tier, market""",
                params,
            )
            rows = await cursor.fetchall()

        overall = [0, 0, 0]
        by_tier: dict[int, list[int]] = {}
        by_market: dict[str, list[int]] = {}
        for row in rows:
            counts = (row["wins"] or 0, row["losses"] or 0, row["pushes"] or 0)
            for bucket in (
                overall,
                by_tier.setdefault(row["tier"], [0, 0, 0]),
                by_market.setdefault(row["market"], [0, 0, 0]),
            ):
                for i, n in enumerate(counts):
                    bucket[i] += n

        graded = sum(overall)
        return {
            "total_picks": total,
            "graded": graded,
            "pending": total - graded,
            "overall": _record(*overall),
            "by_tier": {tier: _record(*c) for tier, c in sorted(by_tier.items(), reverse=True)},
            "by_market": {market: _record(*c) for market, c in sorted(by_market.items())},
        }
