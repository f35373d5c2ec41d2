"""Efficiency-rating feed over HTTP (college basketball).

The feed exposes three endpoints selected by the ``endpoint`` query param:
``ratings`` (current season, ``y=<season>``), ``fanmatch`` (per-game
predictions, ``d=<YYYY-MM-DD>``) and ``archive`` (ratings as of a date).
"""

from __future__ import annotations

import logging
from datetime import date

import httpx

from pick_edge.common.errors import ProviderError
from pick_edge.common.http import HttpClient
from pick_edge.common.types import Sport
from pick_edge.games.models import GamePrediction, TeamRating, season_for
from pick_edge.ratings.pit import PITRatingArchive
from pick_edge.ratings.snapshot import RatingSnapshot

logger = logging.getLogger(__name__)


def _rank(value: object) -> int | None:
    return int(value) if value not in (None, "", 0) else None


def _rating_from_feed(raw: dict) -> TeamRating:
    return TeamRating(
        team=raw["TeamName"],
        rank=_rank(raw.get("RankAdjEM")),
        adj_em=float(raw["AdjEM"]),
        adj_oe=raw.get("AdjOE"),
        adj_de=raw.get("AdjDE"),
        adj_tempo=raw.get("AdjTempo"),
        conference=raw.get("ConfShort"),
    )


def _prediction_from_feed(raw: dict) -> GamePrediction:
    return GamePrediction(
        home_team=raw["Home"],
        away_team=raw["Visitor"],
        home_win_prob=float(raw["HomeWP"]) / 100.0,
        home_pred=raw.get("HomePred"),
        away_pred=raw.get("VisitorPred"),
        pred_tempo=raw.get("PredTempo"),
    )


class HttpRatingProvider:
    """RatingProvider backed by the HTTP efficiency feed. NCAAMB only."""

    def __init__(self, client: HttpClient, today: date | None = None) -> None:
        self._client = client
        self._today = today

    @classmethod
    def from_settings(cls, base_url: str, api_key: str, timeout: float) -> HttpRatingProvider:
        if not api_key:
            raise ProviderError("Rating feed API key not configured")
        return cls(HttpClient(base_url=base_url, api_key=api_key, timeout=timeout))

    async def close(self) -> None:
        await self._client.close()

    async def _fetch(self, params: dict[str, str]) -> list[dict]:
        try:
            data = await self._client.get_json("", params=params)
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"Rating feed HTTP {exc.response.status_code} for {params.get('endpoint')}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(f"Rating feed request failed: {exc}") from exc
        if not isinstance(data, list):
            raise ProviderError("Rating feed returned a non-list payload")
        return data

    @staticmethod
    def _require_supported(sport: Sport) -> None:
        if sport is not Sport.NCAAMB:
            raise ProviderError(f"Rating feed does not cover {sport.value}")

    async def current_ratings(self, sport: Sport) -> RatingSnapshot:
        self._require_supported(sport)
        today = self._today or date.today()
        raw = await self._fetch({"endpoint": "ratings", "y": str(season_for(sport, today))})
        try:
            snapshot = RatingSnapshot.from_ratings(today, (_rating_from_feed(r) for r in raw))
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"Malformed rating record: {exc}") from exc
        logger.info("Fetched %d team ratings", len(snapshot))
        return snapshot

    async def predictions(self, sport: Sport, day: date) -> list[GamePrediction]:
        self._require_supported(sport)
        raw = await self._fetch({"endpoint": "fanmatch", "d": day.isoformat()})
        try:
            predictions = [_prediction_from_feed(r) for r in raw]
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"Malformed prediction record: {exc}") from exc
        logger.info("Fetched %d game predictions for %s", len(predictions), day)
        return predictions

    async def snapshot_on(self, sport: Sport, day: date) -> RatingSnapshot:
        """Ratings exactly as published on ``day``."""
        self._require_supported(sport)
        raw = await self._fetch({"endpoint": "archive", "d": day.isoformat()})
        try:
            return RatingSnapshot.from_ratings(day, (_rating_from_feed(r) for r in raw))
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"Malformed archive record: {exc}") from exc

    async def archive(self, sport: Sport) -> PITRatingArchive:
        raise ProviderError(
            "The HTTP feed has no snapshot listing; export dated snapshots to the data directory"
        )
