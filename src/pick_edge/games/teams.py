"""Team name canonicalization.

Schedule feeds, rating feeds and the game history all spell some teams
differently. Resolution never fails: an unknown name passes through unchanged,
which simply yields empty stats downstream.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Feed spelling → history spelling
NAME_ALIASES: dict[str, str] = {
    "NC State": "N.C. State",
    "Chicago State": "Chicago St.",
    "Jackson State": "Jackson St.",
    "Indiana State": "Indiana St.",
    "Arkansas-Pine Bluff": "Arkansas Pine Bluff",
    "Texas A&M-Corpus Christi": "Texas A&M Corpus Chris",
    "Appalachian State": "Appalachian St.",
    "Bethune-Cookman": "Bethune Cookman",
    "Louisiana-Monroe": "Louisiana Monroe",
    "Ole Miss": "Mississippi",
    "UConn": "Connecticut",
    "Hawai'i": "Hawaii",
    "Miami (FL)": "Miami FL",
    "Miami (OH)": "Miami OH",
    "UCF": "Central Florida",
    "USC": "Southern California",
    "UNC": "North Carolina",
    "Pitt": "Pittsburgh",
    "UMass": "Massachusetts",
}


def name_variants(name: str) -> list[str]:
    """Textual variants tried after the alias table, in order."""
    variants = [
        re.sub(r" State$", " St.", name),
        name.replace("-", " "),
        re.sub(r" State$", " St.", name).replace("-", " "),
        re.sub(r" St\.$", " State", name),
    ]
    seen: list[str] = []
    for v in variants:
        if v != name and v not in seen:
            seen.append(v)
    return seen


def resolve_in(mapping: Mapping[str, T], name: str) -> T | None:
    """Look up ``name`` in a name-keyed mapping using the canonicalization chain.

    Exact → alias → variants → case-insensitive. Returns None when nothing
    matches.
    """
    if name in mapping:
        return mapping[name]

    alias = NAME_ALIASES.get(name)
    if alias is not None and alias in mapping:
        return mapping[alias]

    for variant in name_variants(name):
        if variant in mapping:
            return mapping[variant]

    lower = name.lower()
    for key, value in mapping.items():
        if key.lower() == lower:
            return value

    return None


class TeamNameResolver:
    """Canonicalizes feed names against the set of names in the game history."""

    def __init__(self, known_names: Iterable[str]) -> None:
        self._known = {n: n for n in known_names}

    def resolve(self, name: str) -> str:
        """Canonical history name for ``name``, or ``name`` itself if unknown."""
        match = resolve_in(self._known, name)
        if match is None:
            logger.debug("Unmatched team name %r, passing through", name)
            return name
        return match
