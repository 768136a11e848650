"""Keyword extraction for plan descriptions.

Builds the ``extractedKeywords`` list stored on each plan from its free-text
description: room counts ("3 bedroom"), storey words ("double storey") and
dictionary terms for materials, styles, house types, features and locations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

ROOM_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(\d+)\s*(?:bedroom|bed|br)s?\b"), "bedroom"),
    (re.compile(r"(\d+)\s*(?:bathroom|bath|toilet)s?\b"), "bathroom"),
    (re.compile(r"(\d+)\s*(?:living|lounge)\s*(?:area|room|space)s?\b"), "living area"),
    (re.compile(r"(\d+)\s*(?:car|garage)\s*(?:garage|space|bay)s?\b"), "car garage"),
]

STOREY_PATTERN = re.compile(r"\b(single|one|double|two|triple|three|\d+)[\s-]*(?:storey|story|level)s?\b")
STOREY_WORDS = {
    "single": "single storey",
    "one": "single storey",
    "1": "single storey",
    "double": "double storey",
    "two": "double storey",
    "2": "double storey",
    "triple": "three storey",
    "three": "three storey",
    "3": "three storey",
}

DICTIONARY: dict[str, tuple[str, ...]] = {
    "materials": (
        "brick", "timber", "steel", "concrete", "stone", "cladding",
        "hebel", "weatherboard", "render", "glass",
    ),
    "styles": (
        "modern", "contemporary", "traditional", "colonial", "victorian", "federation",
        "art deco", "minimalist", "industrial", "hamptons", "mediterranean",
    ),
    "house_types": (
        "house", "home", "dwelling", "residence", "villa", "cottage",
        "mansion", "duplex", "townhouse", "apartment", "unit",
    ),
    "features": (
        "pool", "spa", "deck", "balcony", "patio", "garden", "courtyard",
        "fireplace", "ensuite", "walk-in", "robe", "pantry", "laundry",
    ),
    "locations": (
        "sydney", "melbourne", "brisbane", "perth", "adelaide", "darwin", "hobart",
        "canberra", "gold coast", "sunshine coast", "newcastle", "wollongong",
    ),
}

_TERM_PATTERNS = {
    term: re.compile(rf"\b{re.escape(term)}s?\b")
    for terms in DICTIONARY.values()
    for term in terms
}

# Confidence saturates once matches reach a tenth of the checks performed.
_POSSIBLE = len(ROOM_PATTERNS) + 1 + len(_TERM_PATTERNS)


@dataclass
class ExtractedKeywords:
    keywords: list[str] = field(default_factory=list)
    confidence: float = 0.0


def extract_keywords(description: str | None) -> ExtractedKeywords:
    if not description or not description.strip():
        return ExtractedKeywords()

    text = description.lower()
    found: set[str] = set()
    matches = 0

    for pattern, label in ROOM_PATTERNS:
        for count in pattern.findall(text):
            found.add(f"{int(count)} {label}")
            matches += 1

    for word in STOREY_PATTERN.findall(text):
        label = STOREY_WORDS.get(word) or f"{int(word)} storey"
        found.add(label)
        matches += 1

    for term, pattern in _TERM_PATTERNS.items():
        if pattern.search(text):
            found.add(term)
            matches += 1

    confidence = min(matches / (_POSSIBLE * 0.1), 1.0)
    return ExtractedKeywords(keywords=sorted(found), confidence=round(confidence, 2))
