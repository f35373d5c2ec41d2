"""Signal, reasoning and pick data models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime

from pick_edge.common.types import Category, Direction, Grade, Market, Sport, Strength


@dataclass(frozen=True)
class SignalResult:
    """One independent piece of directional evidence.

    Attributes:
        category: Evidence category
        direction: Side the evidence favors (NEUTRAL when it favors none)
        magnitude: Evidence size, 0-10
        confidence: Trust in the evidence, 0-1
        label: Human-readable summary
        strength: Significance band
    """

    category: Category
    direction: Direction
    magnitude: float
    confidence: float
    label: str
    strength: Strength

    @property
    def is_active(self) -> bool:
        """Active signals take part in scoring; inactive ones are only reported."""
        return self.direction is not Direction.NEUTRAL and self.magnitude > 0

    @property
    def effective_strength(self) -> float:
        return self.magnitude * self.confidence

    @classmethod
    def neutral(cls, category: Category, label: str) -> SignalResult:
        return cls(
            category=category,
            direction=Direction.NEUTRAL,
            magnitude=0.0,
            confidence=0.0,
            label=label,
            strength=Strength.NOISE,
        )


@dataclass(frozen=True)
class ReasoningEntry:
    label: str
    weight: int
    strength: Strength
    category: Category
    opposing: bool = False

    @property
    def display(self) -> str:
        return f"[OPPOSING] {self.label}" if self.opposing else self.label


@dataclass(frozen=True)
class ConvergenceResult:
    """Composite score for one market of one game.

    ``gated`` is True when too few signals were active to score at all; the
    result is then the neutral default (score 50, NEUTRAL direction).
    """

    score: int
    direction: Direction
    reasoning: tuple[ReasoningEntry, ...] = ()
    active_count: int = 0
    gated: bool = False


@dataclass(frozen=True)
class Pick:
    """A recommendation for one market of one game.

    Everything except the grading fields is fixed at generation time.
    """

    sport: Sport
    market: Market
    home_team: str
    away_team: str
    game_date: date
    side: Direction
    line: float
    score: int
    tier: int
    label: str
    headline: str
    reasoning: tuple[ReasoningEntry, ...] = field(default_factory=tuple)
    grade: Grade = Grade.PENDING
    actual_value: float | None = None
    graded_at: datetime | None = None
    id: int | None = None

    @property
    def matchup(self) -> str:
        return f"{self.away_team} @ {self.home_team}"

    @property
    def is_graded(self) -> bool:
        return self.grade is not Grade.PENDING

    def with_grade(self, grade: Grade, actual_value: float | None, graded_at: datetime) -> Pick:
        return replace(self, grade=grade, actual_value=actual_value, graded_at=graded_at)
