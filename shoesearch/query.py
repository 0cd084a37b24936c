"""Query interpretation for free-text shoe searches.

Users type things like ``"men runner 9"`` or ``"wool runner taille 42"``. The
interpreter splits that into two parts:

    1) descriptive terms (``["men", "runner"]``) that are matched against
       product titles, with connector words and generic nouns such as
       ``"shoes"`` dropped because they never appear in titles;
    2) a size, taken from an explicit parameter when given, otherwise from the
       first size-looking number in the text. EU sizes are converted to the US
       men's sizes the store uses as variant titles.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional

_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")

US_SIZE_RANGE = (4.0, 15.0)
EU_SIZE_RANGE = (35.0, 50.0)

# EU -> US men's conversion (approximate).
EU_TO_US: dict[int, str] = {
    35: "4",
    36: "4.5",
    37: "5",
    38: "6",
    39: "6.5",
    40: "7",
    41: "8",
    42: "9",
    43: "10",
    44: "11",
    45: "12",
    46: "13",
    47: "14",
    48: "15",
}

CONNECTOR_WORDS = frozenset({"size", "taille"})
# Generic words that appear in queries but not in product titles.
IGNORED_TERMS = frozenset({"shoes", "shoe", "chaussures", "chaussure", "sneakers", "sneaker"})


@dataclass(frozen=True)
class InterpretedQuery:
    query: str
    terms: tuple[str, ...]
    size: Optional[str] = None


def _as_number(token: str) -> Optional[float]:
    if not _NUMBER_RE.match(token):
        return None
    return float(token)


def _in_range(value: float, bounds: tuple[float, float]) -> bool:
    return bounds[0] <= value <= bounds[1]


def is_size_token(token: str) -> bool:
    """True when ``token`` looks like a US (4-15) or EU (35-50) shoe size."""
    value = _as_number(token)
    if value is None:
        return False
    return _in_range(value, US_SIZE_RANGE) or _in_range(value, EU_SIZE_RANGE)


def resolve_size(size: str) -> str:
    """Convert an EU size to the US label; anything else is returned untouched.

    EU sizes are rounded half up before the table lookup, so ``"42.5"`` maps
    like ``43``. In-range sizes missing from the table (49, 50) stay as typed.
    """
    value = _as_number(size.strip())
    if value is None or not _in_range(value, EU_SIZE_RANGE):
        return size
    return EU_TO_US.get(math.floor(value + 0.5), size)


def interpret_query(raw_query: str, explicit_size: Optional[str] = None) -> InterpretedQuery:
    tokens = (raw_query or "").lower().split()
    size_tokens: list[str] = []
    terms: list[str] = []

    for token in tokens:
        if is_size_token(token):
            size_tokens.append(token)
        elif token in CONNECTOR_WORDS:
            continue
        elif token not in IGNORED_TERMS:
            terms.append(token)

    # An explicit size always wins over one typed into the query.
    raw_size = explicit_size.strip() if explicit_size is not None else (size_tokens[0] if size_tokens else None)
    size = resolve_size(raw_size) if raw_size else None
    return InterpretedQuery(query=raw_query, terms=tuple(terms), size=size)
