"""Point-in-time rating archive.

A game dated D may only see the latest snapshot published on or before D.
Snapshots published later are never returned, even when nothing earlier
exists.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable
from datetime import date

from pick_edge.ratings.snapshot import RatingSnapshot


class PITRatingArchive:
    def __init__(self, snapshots: Iterable[RatingSnapshot]) -> None:
        dated = [s for s in snapshots if s.as_of is not None]
        dated.sort(key=lambda s: s.as_of)
        self._snapshots = dated
        self._dates = [s.as_of for s in dated]

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def dates(self) -> list[date]:
        return list(self._dates)

    def as_of(self, day: date) -> RatingSnapshot | None:
        """Latest snapshot dated <= ``day``, or None if there is none."""
        idx = bisect.bisect_right(self._dates, day)
        if idx == 0:
            return None
        return self._snapshots[idx - 1]
