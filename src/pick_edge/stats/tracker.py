"""Incremental per-team ATS / O-U stat tracker.

The tracker is an immutable snapshot: ``add_game`` and ``add_day`` return a
new tracker and leave the receiver untouched. The walk-forward backtest
scores a date against the current snapshot and only then advances it with
that date's results, so a snapshot never reflects a game on or after the
date being scored.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType

from pick_edge.common.types import TotalResult
from pick_edge.games.models import Game

RECENT_WINDOW = 5


@dataclass(frozen=True)
class TeamStats:
    """Season-to-date stats for one team, derived from replayed games."""

    games: int = 0
    wins: int = 0
    losses: int = 0
    ats_covered: int = 0
    ats_lost: int = 0
    overs: int = 0
    unders: int = 0
    last5_ats_covered: int = 0
    last5_ats_lost: int = 0
    last5_overs: int = 0
    last5_unders: int = 0
    points_for: int = 0
    points_against: int = 0

    @property
    def ats_total(self) -> int:
        return self.ats_covered + self.ats_lost

    @property
    def ou_total(self) -> int:
        return self.overs + self.unders

    @property
    def last5_ats_total(self) -> int:
        return self.last5_ats_covered + self.last5_ats_lost

    @property
    def last5_ou_total(self) -> int:
        return self.last5_overs + self.last5_unders

    @property
    def ats_pct(self) -> float:
        return round(self.ats_covered / self.ats_total * 100, 1) if self.ats_total else 50.0

    @property
    def over_pct(self) -> float:
        return round(self.overs / self.ou_total * 100, 1) if self.ou_total else 50.0

    @property
    def avg_margin(self) -> float:
        return (self.points_for - self.points_against) / self.games if self.games else 0.0

    @property
    def avg_for(self) -> float:
        return self.points_for / self.games if self.games else 0.0

    @property
    def avg_against(self) -> float:
        return self.points_against / self.games if self.games else 0.0


@dataclass(frozen=True)
class HeadToHead:
    """Prior meetings between two teams, oriented to ``home_team``."""

    total_games: int = 0
    home_ats_covered: int = 0
    home_ats_lost: int = 0
    overs: int = 0
    unders: int = 0
    avg_total_points: float = 0.0

    @property
    def ats_total(self) -> int:
        return self.home_ats_covered + self.home_ats_lost

    @property
    def ou_total(self) -> int:
        return self.overs + self.unders


def _tally(team: str, games: Iterable[Game]) -> tuple[int, int, int, int]:
    covered = lost = overs = unders = 0
    for g in games:
        result = g.covered(team)
        if result is True:
            covered += 1
        elif result is False:
            lost += 1
        if g.total_result is TotalResult.OVER:
            overs += 1
        elif g.total_result is TotalResult.UNDER:
            unders += 1
    return covered, lost, overs, unders


def _day_order(g: Game) -> tuple[str, str]:
    return g.home_team, g.away_team


def _pair_key(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a <= b else (b, a)


@dataclass(frozen=True)
class StatTracker:
    """Immutable replay state.

    Attributes:
        season: Only games from this season feed team stats (None = all).
            Every game feeds head-to-head history regardless of season.
        latest: Date of the most recent game added.
    """

    season: int | None = None
    latest: date | None = None
    _team_games: Mapping[str, tuple[Game, ...]] = field(
        default_factory=lambda: MappingProxyType({}), repr=False
    )
    _pair_games: Mapping[tuple[str, str], tuple[Game, ...]] = field(
        default_factory=lambda: MappingProxyType({}), repr=False
    )

    @classmethod
    def build(cls, games: Iterable[Game], season: int | None = None) -> StatTracker:
        """Replay ``games`` in date order into a fresh tracker."""
        ordered = sorted(games, key=lambda g: (g.game_date, *_day_order(g)))
        return cls(season=season).add_games(ordered)

    def add_game(self, game: Game) -> StatTracker:
        return self.add_games([game])

    def add_day(self, games: Iterable[Game]) -> StatTracker:
        """Append one date's games. Order within the date does not matter."""
        return self.add_games(sorted(games, key=_day_order))

    def add_games(self, games: Iterable[Game]) -> StatTracker:
        """Append games in the given order. Caller guarantees chronology.

        Raises:
            ValueError: if a game predates the most recent game already added.
        """
        team_games = dict(self._team_games)
        pair_games = dict(self._pair_games)
        latest = self.latest

        for g in games:
            if latest is not None and g.game_date < latest:
                raise ValueError(
                    f"Game on {g.game_date} added after {latest}; replay must be chronological"
                )
            latest = g.game_date

            key = _pair_key(g.home_team, g.away_team)
            pair_games[key] = pair_games.get(key, ()) + (g,)

            if self.season is not None and g.season != self.season:
                continue
            for team in (g.home_team, g.away_team):
                team_games[team] = team_games.get(team, ()) + (g,)

        return StatTracker(
            season=self.season,
            latest=latest,
            _team_games=MappingProxyType(team_games),
            _pair_games=MappingProxyType(pair_games),
        )

    def games_for(self, team: str, before: date | None = None) -> tuple[Game, ...]:
        games = self._team_games.get(team, ())
        if before is not None:
            games = tuple(g for g in games if g.game_date < before)
        return games

    def stats_as_of(self, team: str, before: date | None = None) -> TeamStats:
        """Stats from games already added, optionally limited to dates < ``before``.

        Unknown teams yield empty stats.
        """
        games = self.games_for(team, before)
        if not games:
            return TeamStats()

        wins = losses = points_for = points_against = 0
        for g in games:
            margin = g.points_for(team) - g.points_against(team)
            if margin > 0:
                wins += 1
            elif margin < 0:
                losses += 1
            points_for += g.points_for(team)
            points_against += g.points_against(team)

        covered, lost, overs, unders = _tally(team, games)
        l5_covered, l5_lost, l5_overs, l5_unders = _tally(team, games[-RECENT_WINDOW:])

        return TeamStats(
            games=len(games),
            wins=wins,
            losses=losses,
            ats_covered=covered,
            ats_lost=lost,
            overs=overs,
            unders=unders,
            last5_ats_covered=l5_covered,
            last5_ats_lost=l5_lost,
            last5_overs=l5_overs,
            last5_unders=l5_unders,
            points_for=points_for,
            points_against=points_against,
        )

    def last_game_date(self, team: str, before: date | None = None) -> date | None:
        games = self.games_for(team, before)
        return games[-1].game_date if games else None

    def head_to_head(self, home_team: str, away_team: str, before: date | None = None) -> HeadToHead:
        """Prior meetings in any season, oriented so ``home_team`` is home."""
        games = self._pair_games.get(_pair_key(home_team, away_team), ())
        if before is not None:
            games = tuple(g for g in games if g.game_date < before)
        if not games:
            return HeadToHead()

        covered, lost, overs, unders = _tally(home_team, games)
        total_points = sum(g.total_points for g in games)
        return HeadToHead(
            total_games=len(games),
            home_ats_covered=covered,
            home_ats_lost=lost,
            overs=overs,
            unders=unders,
            avg_total_points=round(total_points / len(games), 1),
        )
