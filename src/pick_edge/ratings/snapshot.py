"""Dated copies of an external rating feed."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType

from pick_edge.games.models import GamePrediction, TeamRating
from pick_edge.games.teams import resolve_in


@dataclass(frozen=True)
class RatingSnapshot:
    """Ratings as published on ``as_of``, keyed by the feed's team names."""

    as_of: date | None
    ratings: Mapping[str, TeamRating] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_ratings(cls, as_of: date | None, ratings: Iterable[TeamRating]) -> RatingSnapshot:
        return cls(as_of=as_of, ratings=MappingProxyType({r.team: r for r in ratings}))

    def __len__(self) -> int:
        return len(self.ratings)

    def lookup(self, *names: str) -> TeamRating | None:
        """First rating matching any of ``names`` through the canonicalization chain."""
        for name in names:
            rating = resolve_in(self.ratings, name)
            if rating is not None:
                return rating
        return None


def find_prediction(
    predictions: Iterable[GamePrediction], home_team: str, away_team: str,
) -> GamePrediction | None:
    """Prediction for a home/away pairing, matched by fuzzy team name."""
    by_home = {p.home_team: p for p in predictions}
    match = resolve_in(by_home, home_team)
    if match is None:
        return None
    if resolve_in({match.away_team: match}, away_team) is None:
        return None
    return match
