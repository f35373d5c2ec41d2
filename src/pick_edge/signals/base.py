"""Signal provider protocol and the read-only context every provider scores from."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Protocol

from pick_edge.common.types import Category, Market, Sport
from pick_edge.games.models import GamePrediction, TeamRating, TrendAngle
from pick_edge.signals.models import SignalResult
from pick_edge.stats.tracker import HeadToHead, TeamStats

if TYPE_CHECKING:
    from pick_edge.engine.profiles import MarketProfile, SignalConstants
    from pick_edge.ratings.snapshot import RatingSnapshot


@dataclass(frozen=True)
class Weather:
    wind_mph: float | None = None
    temp_f: float | None = None
    category: str | None = None


@dataclass(frozen=True)
class SignalContext:
    """Everything known about one market of one game before it is played.

    Stats, head-to-head and last-game dates come from a tracker snapshot that
    contains only games strictly before ``game_date``. The rating snapshot is
    the one valid on ``game_date``. Any of the optional inputs may be missing;
    providers that depend on one must then return a neutral signal.

    Attributes:
        feed_home/feed_away: Team names as the schedule feed spells them,
            tried first for rating lookups
    """

    sport: Sport
    market: Market
    game_date: date
    home_team: str
    away_team: str
    line: float
    home_stats: TeamStats
    away_stats: TeamStats
    h2h: HeadToHead
    profile: MarketProfile
    constants: SignalConstants
    feed_home: str | None = None
    feed_away: str | None = None
    ratings: RatingSnapshot | None = None
    prediction: GamePrediction | None = None
    home_angles: tuple[TrendAngle, ...] = ()
    away_angles: tuple[TrendAngle, ...] = ()
    home_last_game: date | None = None
    away_last_game: date | None = None
    moneyline_home: int | None = None
    moneyline_away: int | None = None
    weather: Weather = Weather()

    def home_rating(self) -> TeamRating | None:
        if self.ratings is None:
            return None
        return self.ratings.lookup(*(n for n in (self.feed_home, self.home_team) if n))

    def away_rating(self) -> TeamRating | None:
        if self.ratings is None:
            return None
        return self.ratings.lookup(*(n for n in (self.feed_away, self.away_team) if n))


class SignalProvider(Protocol):
    """One evidence category. Implementations are pure and never raise on missing data."""

    category: Category

    def compute(self, ctx: SignalContext) -> SignalResult:
        """Score one market of one game.

        Args:
            ctx: Read-only pre-game context

        Returns:
            SignalResult; neutral/noise when inputs are missing or samples
            are below the provider's minimums
        """
        ...
