"""Backtest performance aggregation."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from pick_edge.common.odds import payout_multiplier
from pick_edge.common.types import Grade, Market, Sport
from pick_edge.engine.profiles import BacktestConstants
from pick_edge.signals.models import Pick


@dataclass
class RecordLine:
    """Win/loss/push record with vig-adjusted ROI."""

    wins: int = 0
    losses: int = 0
    pushes: int = 0

    def add(self, grade: Grade) -> None:
        if grade is Grade.WIN:
            self.wins += 1
        elif grade is Grade.LOSS:
            self.losses += 1
        elif grade is Grade.PUSH:
            self.pushes += 1

    @property
    def picks(self) -> int:
        return self.wins + self.losses + self.pushes

    @property
    def decided(self) -> int:
        return self.wins + self.losses

    @property
    def win_pct(self) -> float | None:
        if self.decided == 0:
            return None
        return self.wins / self.decided * 100.0

    def roi(self, odds: int = -110) -> float | None:
        """Percent return per decided pick at ``odds``. Pushes are excluded."""
        if self.decided == 0:
            return None
        return (self.wins * payout_multiplier(odds) - self.losses) / self.decided * 100.0

    def display(self) -> str:
        return f"{self.wins}-{self.losses}-{self.pushes}"


@dataclass(frozen=True)
class DayLine:
    day: date
    record: RecordLine


@dataclass
class BacktestReport:
    sport: Sport
    season: int
    config_version: str
    start: date | None = None
    end: date | None = None
    vig_odds: int = -110
    games_scored: int = 0
    rejected_insufficient: int = 0
    rejected_low_score: int = 0
    overall: RecordLine = field(default_factory=RecordLine)
    by_market: dict[Market, RecordLine] = field(default_factory=dict)
    by_tier: dict[int, RecordLine] = field(default_factory=dict)
    by_tier_market: dict[tuple[int, Market], RecordLine] = field(default_factory=dict)
    by_month: dict[str, RecordLine] = field(default_factory=dict)
    best_days: list[DayLine] = field(default_factory=list)
    worst_days: list[DayLine] = field(default_factory=list)

    @property
    def roi(self) -> float | None:
        return self.overall.roi(self.vig_odds)

    def to_dict(self) -> dict:
        def line(r: RecordLine) -> dict:
            return {
                "wins": r.wins,
                "losses": r.losses,
                "pushes": r.pushes,
                "win_pct": None if r.win_pct is None else round(r.win_pct, 1),
                "roi": None if r.roi(self.vig_odds) is None else round(r.roi(self.vig_odds), 1),
            }

        return {
            "sport": self.sport.value,
            "season": self.season,
            "config_version": self.config_version,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "vig_odds": self.vig_odds,
            "games_scored": self.games_scored,
            "rejected_insufficient": self.rejected_insufficient,
            "rejected_low_score": self.rejected_low_score,
            "overall": line(self.overall),
            "by_market": {m.value: line(r) for m, r in self.by_market.items()},
            "by_tier": {str(t): line(r) for t, r in self.by_tier.items()},
            "by_tier_market": {f"{t}:{m.value}": line(r) for (t, m), r in self.by_tier_market.items()},
            "by_month": {month: line(r) for month, r in self.by_month.items()},
            "best_days": [{"day": d.day.isoformat(), **line(d.record)} for d in self.best_days],
            "worst_days": [{"day": d.day.isoformat(), **line(d.record)} for d in self.worst_days],
        }


def _day_rate(record: RecordLine) -> float:
    return record.wins / (record.decided or 1)


def build_report(
    picks: Iterable[Pick],
    *,
    sport: Sport,
    season: int,
    config_version: str,
    constants: BacktestConstants | None = None,
    start: date | None = None,
    end: date | None = None,
    games_scored: int = 0,
    rejected_insufficient: int = 0,
    rejected_low_score: int = 0,
) -> BacktestReport:
    """Aggregate graded picks into a report.

    Best/worst days only consider days with at least ``min_day_volume``
    picks, ranked by win rate.
    """
    k = constants or BacktestConstants()
    report = BacktestReport(
        sport=sport,
        season=season,
        config_version=config_version,
        start=start,
        end=end,
        vig_odds=k.vig_odds,
        games_scored=games_scored,
        rejected_insufficient=rejected_insufficient,
        rejected_low_score=rejected_low_score,
    )

    by_market: dict[Market, RecordLine] = defaultdict(RecordLine)
    by_tier: dict[int, RecordLine] = defaultdict(RecordLine)
    by_tier_market: dict[tuple[int, Market], RecordLine] = defaultdict(RecordLine)
    by_month: dict[str, RecordLine] = defaultdict(RecordLine)
    by_day: dict[date, RecordLine] = defaultdict(RecordLine)

    for pick in picks:
        if not pick.is_graded:
            continue
        month = pick.game_date.strftime("%Y-%m")
        for record in (
            report.overall,
            by_market[pick.market],
            by_tier[pick.tier],
            by_tier_market[(pick.tier, pick.market)],
            by_month[month],
            by_day[pick.game_date],
        ):
            record.add(pick.grade)

    report.by_market = {m: by_market[m] for m in Market if m in by_market}
    report.by_tier = dict(sorted(by_tier.items(), reverse=True))
    report.by_tier_market = dict(
        sorted(by_tier_market.items(), key=lambda kv: (-kv[0][0], kv[0][1].value))
    )
    report.by_month = dict(sorted(by_month.items()))

    eligible = sorted(
        (DayLine(day, r) for day, r in by_day.items() if r.picks >= k.min_day_volume),
        key=lambda d: (-_day_rate(d.record), d.day),
    )
    n = k.day_list_size
    report.best_days = eligible[:n]
    report.worst_days = list(reversed(eligible[-n:])) if eligible else []
    return report
