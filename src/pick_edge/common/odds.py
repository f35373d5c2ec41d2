"""American odds helpers."""

from __future__ import annotations


def implied_probability(odds: int) -> float:
    """Bookmaker-implied probability (vig included) of American odds."""
    if odds < 0:
        return -odds / (-odds + 100.0)
    return 100.0 / (odds + 100.0)


def fair_probabilities(odds_a: int, odds_b: int) -> tuple[float, float]:
    """Vig-free probabilities of a two-way market."""
    pa = implied_probability(odds_a)
    pb = implied_probability(odds_b)
    total = pa + pb
    return pa / total, pb / total


def payout_multiplier(odds: int) -> float:
    """Profit per unit staked on a win."""
    return odds / 100.0 if odds >= 100 else 100.0 / abs(odds)
