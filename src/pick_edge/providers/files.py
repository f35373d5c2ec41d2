"""JSON data-directory providers.

Layout under ``data_dir``::

    games/<SPORT>.json               settled games
    matchups/<SPORT>.json            scheduled games with current lines
    ratings/<SPORT>/<YYYY-MM-DD>.json  dated rating snapshots
    predictions/<SPORT>/<YYYY-MM-DD>.json
    angles/<SPORT>.json              discovered trend angles

A missing file means "no data" (empty result). A file that exists but cannot
be parsed raises ``ProviderError``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path
from typing import Any, TypeVar

from pick_edge.common.errors import ProviderError
from pick_edge.common.types import Sport, Strength
from pick_edge.games.models import Game, GamePrediction, Matchup, TeamRating, TrendAngle, season_for
from pick_edge.games.teams import resolve_in
from pick_edge.ratings.pit import PITRatingArchive
from pick_edge.ratings.snapshot import RatingSnapshot
from pick_edge.stats.primitives import SignificanceThresholds, significance

logger = logging.getLogger(__name__)

T = TypeVar("T")

_STRENGTH_ORDER = {Strength.STRONG: 0, Strength.MODERATE: 1, Strength.WEAK: 2, Strength.NOISE: 3}
_RECORD_RE = re.compile(r"^\s*(\d+)-(\d+)(?:-\d+)?\s*$")


def _read_json(path: Path) -> Any | None:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        raise ProviderError(f"Failed to read {path}: {exc}") from exc


def _parse_date(value: str) -> date:
    return date.fromisoformat(value[:10])


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def parse_game(sport: Sport, raw: dict) -> Game:
    day = _parse_date(raw["date"])
    return Game.settle(
        sport=sport,
        season=raw.get("season") or season_for(sport, day),
        game_date=day,
        home_team=raw["home"],
        away_team=raw["away"],
        home_score=int(raw["home_score"]),
        away_score=int(raw["away_score"]),
        spread=raw.get("spread"),
        total=raw.get("total"),
    )


def parse_matchup(sport: Sport, raw: dict) -> Matchup:
    day = _parse_date(raw["date"])
    return Matchup(
        game_id=str(raw.get("game_id") or f"{day.isoformat()}:{raw['away']}@{raw['home']}"),
        sport=sport,
        game_date=day,
        home_team=raw["home"],
        away_team=raw["away"],
        start_time=_parse_datetime(raw.get("start_time")),
        spread=raw.get("spread"),
        total=raw.get("total"),
        moneyline_home=raw.get("moneyline_home"),
        moneyline_away=raw.get("moneyline_away"),
        odds_updated_at=_parse_datetime(raw.get("odds_updated_at")),
        forecast_wind_mph=raw.get("forecast_wind_mph"),
        forecast_temp_f=raw.get("forecast_temp_f"),
        forecast_category=raw.get("forecast_category"),
    )


def parse_rating(raw: dict) -> TeamRating:
    return TeamRating(
        team=raw["team"],
        rank=int(raw["rank"]) if raw.get("rank") is not None else None,
        adj_em=float(raw["adj_em"]),
        adj_oe=raw.get("adj_oe"),
        adj_de=raw.get("adj_de"),
        adj_tempo=raw.get("adj_tempo"),
        conference=raw.get("conference"),
    )


def parse_prediction(raw: dict) -> GamePrediction:
    return GamePrediction(
        home_team=raw["home"],
        away_team=raw["away"],
        home_win_prob=float(raw["home_win_prob"]),
        home_pred=raw.get("home_pred"),
        away_pred=raw.get("away_pred"),
        pred_tempo=raw.get("pred_tempo"),
    )


def _record_trials(record: str | None) -> int:
    """Decided games in a "W-L" or "W-L-P" record. Pushes are not trials."""
    match = _RECORD_RE.match(record or "")
    if match is None:
        return 0
    return int(match.group(1)) + int(match.group(2))


def _angle_strength(
    raw: dict, key: str, rate: float | None, trials: int, thresholds: SignificanceThresholds | None,
) -> Strength:
    if raw.get(key) is not None:
        return Strength(raw[key])
    if rate is None or trials == 0:
        return Strength.NOISE
    return significance(float(rate), trials, thresholds=thresholds).strength


def parse_angle(raw: dict, thresholds: SignificanceThresholds | None = None) -> TrendAngle:
    """Build an angle row. A strength the row omits is derived from its record.

    ``ou_record`` sizes the O-U sample when present; otherwise ``record`` does.
    """
    record = raw.get("record", "")
    ats_rate = float(raw.get("ats_rate", 0.5))
    over_rate = raw.get("over_rate")
    ats_trials = _record_trials(record)
    ou_trials = _record_trials(raw["ou_record"]) if raw.get("ou_record") else ats_trials
    return TrendAngle(
        team=raw["team"],
        label=raw["label"],
        record=record,
        ats_rate=ats_rate,
        ats_strength=_angle_strength(raw, "ats_strength", ats_rate, ats_trials, thresholds),
        over_rate=over_rate,
        ou_strength=_angle_strength(raw, "ou_strength", over_rate, ou_trials, thresholds),
    )


def _strength_key(angle: TrendAngle) -> tuple[int, float]:
    best = min(_STRENGTH_ORDER[angle.ats_strength], _STRENGTH_ORDER[angle.ou_strength])
    return best, -abs(angle.ats_rate - 0.5)


class FileDataSource:
    """Implements every provider interface over one JSON data directory."""

    def __init__(self, data_dir: Path, significance: SignificanceThresholds | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.significance = significance

    def _rows(self, path: Path) -> list[dict]:
        data = _read_json(path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ProviderError(f"Expected a JSON list in {path}")
        return data

    def _parse_rows(self, path: Path, parse: Callable[[dict], T]) -> list[T]:
        try:
            return [parse(row) for row in self._rows(path)]
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"Malformed record in {path}: {exc}") from exc

    # ── GameHistoryProvider ──

    async def games(
        self, sport: Sport, start: date | None = None, end: date | None = None,
    ) -> list[Game]:
        path = self.data_dir / "games" / f"{sport.value}.json"
        games = self._parse_rows(path, lambda raw: parse_game(sport, raw))
        games = [
            g for g in games
            if (start is None or g.game_date >= start) and (end is None or g.game_date <= end)
        ]
        games.sort(key=lambda g: (g.game_date, g.home_team, g.away_team))
        logger.debug("Loaded %d %s games from %s", len(games), sport.value, path)
        return games

    # ── MatchupProvider ──

    async def matchups(self, sport: Sport, day: date) -> list[Matchup]:
        path = self.data_dir / "matchups" / f"{sport.value}.json"
        matchups = self._parse_rows(path, lambda raw: parse_matchup(sport, raw))
        return [m for m in matchups if m.game_date == day]

    # ── RatingProvider ──

    def _snapshot_files(self, kind: str, sport: Sport) -> list[tuple[date, Path]]:
        folder = self.data_dir / kind / sport.value
        if not folder.is_dir():
            return []
        dated: list[tuple[date, Path]] = []
        for path in folder.glob("*.json"):
            try:
                dated.append((date.fromisoformat(path.stem), path))
            except ValueError:
                logger.debug("Skipping undated snapshot file %s", path)
        dated.sort()
        return dated

    def _load_snapshot(self, as_of: date, path: Path) -> RatingSnapshot:
        return RatingSnapshot.from_ratings(as_of, self._parse_rows(path, parse_rating))

    async def archive(self, sport: Sport) -> PITRatingArchive:
        return PITRatingArchive(
            self._load_snapshot(as_of, path) for as_of, path in self._snapshot_files("ratings", sport)
        )

    async def current_ratings(self, sport: Sport) -> RatingSnapshot:
        files = self._snapshot_files("ratings", sport)
        if not files:
            raise ProviderError(f"No rating snapshots for {sport.value}")
        return self._load_snapshot(*files[-1])

    async def predictions(self, sport: Sport, day: date) -> list[GamePrediction]:
        path = self.data_dir / "predictions" / sport.value / f"{day.isoformat()}.json"
        return self._parse_rows(path, parse_prediction)

    # ── AngleProvider ──

    async def angles(
        self, sport: Sport, team: str, seasons: tuple[int, int], limit: int = 10,
    ) -> list[TrendAngle]:
        path = self.data_dir / "angles" / f"{sport.value}.json"
        lo, hi = seasons
        by_team: dict[str, list[TrendAngle]] = {}
        try:
            for row in self._rows(path):
                if not lo <= int(row.get("season", hi)) <= hi:
                    continue
                angle = parse_angle(row, self.significance)
                by_team.setdefault(angle.team, []).append(angle)
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"Malformed angle in {path}: {exc}") from exc

        found = resolve_in(by_team, team) or []
        return sorted(found, key=_strength_key)[:limit]

    def save_snapshot(self, sport: Sport, snapshot: RatingSnapshot) -> Path:
        """Write a dated snapshot where ``archive`` will find it."""
        if snapshot.as_of is None:
            raise ValueError("Cannot save an undated snapshot")
        path = self.data_dir / "ratings" / sport.value / f"{snapshot.as_of.isoformat()}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        rows = [
            {
                "team": r.team,
                "rank": r.rank,
                "adj_em": r.adj_em,
                "adj_oe": r.adj_oe,
                "adj_de": r.adj_de,
                "adj_tempo": r.adj_tempo,
                "conference": r.conference,
            }
            for r in sorted(snapshot.ratings.values(), key=lambda r: (r.rank is None, r.rank or 0))
        ]
        path.write_text(json.dumps(rows, indent=2) + "\n")
        logger.info("Saved %d ratings to %s", len(rows), path)
        return path
