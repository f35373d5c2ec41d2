"""Shared enums and type aliases."""

from __future__ import annotations

from enum import Enum
from typing import TypeAlias

# JSON-like dict
JsonDict: TypeAlias = dict[str, object]


class Sport(str, Enum):
    NCAAMB = "NCAAMB"
    NBA = "NBA"
    NFL = "NFL"
    NCAAF = "NCAAF"

    @property
    def is_indoor(self) -> bool:
        return self in (Sport.NCAAMB, Sport.NBA)


class Market(str, Enum):
    SPREAD = "spread"
    TOTAL = "total"


class Direction(str, Enum):
    HOME = "home"
    AWAY = "away"
    OVER = "over"
    UNDER = "under"
    NEUTRAL = "neutral"

    def opposite(self) -> Direction:
        return _OPPOSITES[self]


_OPPOSITES = {
    Direction.HOME: Direction.AWAY,
    Direction.AWAY: Direction.HOME,
    Direction.OVER: Direction.UNDER,
    Direction.UNDER: Direction.OVER,
    Direction.NEUTRAL: Direction.NEUTRAL,
}

# Sides a pick can take, per market. Order is the tie-break order.
MARKET_SIDES: dict[Market, tuple[Direction, Direction]] = {
    Market.SPREAD: (Direction.HOME, Direction.AWAY),
    Market.TOTAL: (Direction.OVER, Direction.UNDER),
}


class Strength(str, Enum):
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    NOISE = "noise"

    @property
    def is_significant(self) -> bool:
        """Strong or moderate."""
        return self in (Strength.STRONG, Strength.MODERATE)


class Category(str, Enum):
    """Fixed vocabulary of evidence categories."""

    MODEL_EDGE = "model_edge"
    SEASON_FORM = "season_form"
    RECENT_FORM = "recent_form"
    HEAD_TO_HEAD = "head_to_head"
    SITUATIONAL = "situational"
    REST = "rest"
    TEMPO = "tempo"
    MARKET_DIVERGENCE = "market_divergence"
    TREND_ANGLES = "trend_angles"


class SpreadResult(str, Enum):
    """Home team's result against the spread."""

    COVERED = "COVERED"
    LOST = "LOST"
    PUSH = "PUSH"


class TotalResult(str, Enum):
    OVER = "OVER"
    UNDER = "UNDER"
    PUSH = "PUSH"


class Grade(str, Enum):
    PENDING = "PENDING"
    WIN = "WIN"
    LOSS = "LOSS"
    PUSH = "PUSH"
