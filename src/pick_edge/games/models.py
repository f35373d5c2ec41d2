"""Game, matchup, rating and angle data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from pick_edge.common.types import Sport, SpreadResult, Strength, TotalResult


@dataclass(frozen=True)
class Game:
    """A settled historical game.

    Attributes:
        sport: League
        season: Season label (see ``season_for``)
        game_date: Local calendar date of the game
        home_team: Canonical home team name
        away_team: Canonical away team name
        home_score: Final home score
        away_score: Final away score
        spread: Closing home spread (negative when home is favored)
        total: Closing over/under line
        spread_result: Home result against the spread
        total_result: Result against the total
    """

    sport: Sport
    season: int
    game_date: date
    home_team: str
    away_team: str
    home_score: int
    away_score: int
    spread: float | None = None
    total: float | None = None
    spread_result: SpreadResult | None = None
    total_result: TotalResult | None = None

    @property
    def score_difference(self) -> int:
        return self.home_score - self.away_score

    @property
    def total_points(self) -> int:
        return self.home_score + self.away_score

    def covered(self, team: str) -> bool | None:
        """Whether ``team`` covered. None for a push or no line."""
        if self.spread_result is None or self.spread_result is SpreadResult.PUSH:
            return None
        home_covered = self.spread_result is SpreadResult.COVERED
        return home_covered if team == self.home_team else not home_covered

    def points_for(self, team: str) -> int:
        return self.home_score if team == self.home_team else self.away_score

    def points_against(self, team: str) -> int:
        return self.away_score if team == self.home_team else self.home_score

    @classmethod
    def settle(
        cls,
        sport: Sport,
        season: int,
        game_date: date,
        home_team: str,
        away_team: str,
        home_score: int,
        away_score: int,
        spread: float | None = None,
        total: float | None = None,
    ) -> Game:
        """Build a game and derive its ATS and O/U results from the scores."""
        return cls(
            sport=sport,
            season=season,
            game_date=game_date,
            home_team=home_team,
            away_team=away_team,
            home_score=home_score,
            away_score=away_score,
            spread=spread,
            total=total,
            spread_result=spread_result_for(home_score, away_score, spread),
            total_result=total_result_for(home_score, away_score, total),
        )


def spread_result_for(home_score: int, away_score: int, spread: float | None) -> SpreadResult | None:
    if spread is None:
        return None
    adjusted = home_score - away_score + spread
    if adjusted > 0:
        return SpreadResult.COVERED
    if adjusted < 0:
        return SpreadResult.LOST
    return SpreadResult.PUSH


def total_result_for(home_score: int, away_score: int, total: float | None) -> TotalResult | None:
    if total is None:
        return None
    points = home_score + away_score
    if points > total:
        return TotalResult.OVER
    if points < total:
        return TotalResult.UNDER
    return TotalResult.PUSH


def season_for(sport: Sport, day: date) -> int:
    """Season label for a date.

    Basketball seasons are named by the year they end in (November onward
    belongs to next year's season). Football seasons are named by the year
    they start in (January-March belong to the previous season).
    """
    if sport in (Sport.NCAAMB, Sport.NBA):
        return day.year + 1 if day.month >= 11 else day.year
    return day.year - 1 if day.month <= 3 else day.year


@dataclass(frozen=True)
class Matchup:
    """A scheduled game with current market lines.

    Attributes:
        game_id: Upstream identifier
        sport: League
        game_date: Local calendar date
        home_team: Home team as named by the schedule feed
        away_team: Away team as named by the schedule feed
        start_time: Scheduled tip/kick-off (UTC), if known
        spread: Current home spread
        total: Current over/under
        moneyline_home: American odds, home
        moneyline_away: American odds, away
        odds_updated_at: When the lines were last refreshed
        forecast_wind_mph: Game-time wind forecast (outdoor only)
        forecast_temp_f: Game-time temperature forecast (outdoor only)
        forecast_category: CLEAR / RAIN / SNOW / ...
    """

    game_id: str
    sport: Sport
    game_date: date
    home_team: str
    away_team: str
    start_time: datetime | None = None
    spread: float | None = None
    total: float | None = None
    moneyline_home: int | None = None
    moneyline_away: int | None = None
    odds_updated_at: datetime | None = None
    forecast_wind_mph: float | None = None
    forecast_temp_f: float | None = None
    forecast_category: str | None = None

    def is_stale(self, now: datetime, max_age_hours: float) -> bool:
        """True when the lines are older than ``max_age_hours``.

        A missing timestamp counts as stale.
        """
        if self.odds_updated_at is None:
            return True
        updated = self.odds_updated_at
        if (updated.tzinfo is None) != (now.tzinfo is None):
            # naive timestamps are local time
            updated, now = updated.astimezone(), now.astimezone()
        age = (now - updated).total_seconds() / 3600.0
        return age > max_age_hours


@dataclass(frozen=True)
class TeamRating:
    """One team's external efficiency / power rating.

    Attributes:
        team: Team name as published by the rating feed
        rank: Overall rank (1 = best), None when the feed omits it
        adj_em: Adjusted efficiency margin (points per 100 possessions)
        adj_oe: Adjusted offensive efficiency
        adj_de: Adjusted defensive efficiency (higher = worse defense)
        adj_tempo: Possessions per 40 minutes
        conference: Short conference code
    """

    team: str
    rank: int | None
    adj_em: float
    adj_oe: float | None = None
    adj_de: float | None = None
    adj_tempo: float | None = None
    conference: str | None = None


@dataclass(frozen=True)
class GamePrediction:
    """Per-game outcome prediction from a rating feed."""

    home_team: str
    away_team: str
    home_win_prob: float
    home_pred: float | None = None
    away_pred: float | None = None
    pred_tempo: float | None = None


@dataclass(frozen=True)
class TrendAngle:
    """A significant historical filter discovered for one team.

    Attributes:
        team: Team the angle was discovered for
        label: Human-readable description
        record: Display record, e.g. "14-5"
        ats_rate: Cover rate under the filter (0-1)
        ats_strength: Significance of the ATS rate vs 50%
        over_rate: Over rate under the filter (0-1), if known
        ou_strength: Significance of the over rate vs 50%
    """

    team: str
    label: str
    record: str = ""
    ats_rate: float = 0.5
    ats_strength: Strength = Strength.NOISE
    over_rate: float | None = None
    ou_strength: Strength = Strength.NOISE

