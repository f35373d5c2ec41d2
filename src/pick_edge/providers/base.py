"""Interfaces for the data the engine consumes.

Every provider is async so HTTP, database and file-backed implementations
are interchangeable. Implementations raise ``ProviderError`` on failure;
callers decide whether that degrades a signal or aborts.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from pick_edge.common.types import Sport
from pick_edge.games.models import Game, GamePrediction, Matchup, TrendAngle
from pick_edge.ratings.pit import PITRatingArchive
from pick_edge.ratings.snapshot import RatingSnapshot


class GameHistoryProvider(Protocol):
    async def games(
        self, sport: Sport, start: date | None = None, end: date | None = None,
    ) -> list[Game]:
        """Settled games ordered by date, optionally limited to [start, end]."""
        ...


class RatingProvider(Protocol):
    async def current_ratings(self, sport: Sport) -> RatingSnapshot:
        """The most recently published ratings."""
        ...

    async def predictions(self, sport: Sport, day: date) -> list[GamePrediction]:
        """Per-game outcome predictions for ``day`` (empty if unsupported)."""
        ...

    async def archive(self, sport: Sport) -> PITRatingArchive:
        """Every dated snapshot, for point-in-time lookups."""
        ...


class AngleProvider(Protocol):
    async def angles(
        self, sport: Sport, team: str, seasons: tuple[int, int], limit: int = 10,
    ) -> list[TrendAngle]:
        """Significant historical filters for ``team``, strongest first."""
        ...


class MatchupProvider(Protocol):
    async def matchups(self, sport: Sport, day: date) -> list[Matchup]:
        """Scheduled games on ``day`` with their current lines."""
        ...
