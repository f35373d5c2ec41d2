"""Tier-aware one-line headlines for picks."""

from __future__ import annotations

import re
from collections.abc import Sequence

from pick_edge.common.types import Category, Direction, Strength
from pick_edge.signals.models import SignalResult

_EDGE_RE = re.compile(r"edge ([+-]?\d+\.?\d*)")
_PREDICTED_RE = re.compile(r"predicted (\d+\.?\d*)")
_TOTAL_EDGE_RE = re.compile(r"\(([+-]\d+\.?\d*)\)")
_WIND_RE = re.compile(r"(\d+(?:\.\d+)?) mph")


def _find(signals: Sequence[SignalResult], category: Category, direction: Direction) -> SignalResult | None:
    return next((s for s in signals if s.category is category and s.direction is direction), None)


def _agreeing(signals: Sequence[SignalResult], direction: Direction) -> int:
    return sum(1 for s in signals if s.direction is direction and s.strength is not Strength.NOISE)


def format_line(value: float) -> str:
    return f"+{value:g}" if value > 0 else f"{value:g}"


def _edge_points(match: re.Match[str]) -> str:
    """Edge labels are signed from the home or over side; headlines show value on the pick."""
    return f"{abs(float(match.group(1))):+.1f}"


def spread_headline(
    team: str, line: float, tier: int, signals: Sequence[SignalResult], direction: Direction,
) -> str:
    """Headline for a spread pick on ``team`` at ``line`` (from that team's perspective)."""
    line_label = format_line(line)
    model = _find(signals, Category.MODEL_EDGE, direction)
    agreeing = _agreeing(signals, direction)
    edge = _EDGE_RE.search(model.label) if model else None

    if tier >= 5:
        if model and model.magnitude >= 5 and edge:
            return f"{agreeing} signals align: model sees {_edge_points(edge)} pts of value on {team}"
        return f"Strong convergence: {agreeing} independent edges favor {team} {line_label}"

    if tier >= 4:
        if model and model.magnitude >= 3 and edge:
            return f"Model edge: {team} has {_edge_points(edge)} pts of line value"
        if agreeing >= 3:
            return f"{agreeing} signals favor {team} {line_label}"
        return f"ATS advantage backs {team} {line_label}"

    if agreeing >= 2:
        return f"{agreeing} factors lean {team} {line_label}"
    return f"Slight lean: {team} {line_label}"


def total_headline(
    line: float, tier: int, signals: Sequence[SignalResult], direction: Direction,
) -> str:
    side = direction.value.capitalize()
    model = _find(signals, Category.MODEL_EDGE, direction)
    weather = _find(signals, Category.SITUATIONAL, direction)

    if tier >= 5 and model and model.magnitude >= 4:
        predicted = _PREDICTED_RE.search(model.label)
        edge = _TOTAL_EDGE_RE.search(model.label)
        if predicted and edge:
            return (
                f"Model projects {predicted.group(1)} total, "
                f"{_edge_points(edge)} pts from the {side.lower()} ({line:g})"
            )
        return f"Efficiency model backs the {side.lower()} ({line:g})"

    if tier >= 4:
        if weather and weather.magnitude >= 3:
            wind = _WIND_RE.search(weather.label)
            prefix = f"{wind.group(1)} mph wind + " if wind else ""
            return f"{prefix}trend data favor {side} {line:g}"
        return f"{_agreeing(signals, direction)} signals favor {side} {line:g}"

    return f"Lean: {side} {line:g}"
