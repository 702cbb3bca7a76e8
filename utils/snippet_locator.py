"""Snippet location for replace-snippet patches.

Finds the single span of a file that an agent-supplied snippet refers to:
- Exact match first (must be unique)
- Whitespace-normalized fallback when the exact pass finds nothing
- Ambiguous and missing snippets are classified, never guessed
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from utils.logging import get_logger

logger = get_logger("snippet_locator")


class MatchStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    INVALID_MATCH = "invalid_match"


@dataclass
class LocateResult:
    """Outcome of locating a snippet in a source text."""
    status: MatchStatus
    start: Optional[int] = None  # Offset into the original source
    end: Optional[int] = None    # Exclusive end offset
    strategy: str = ""           # "exact" or "fuzzy" when found

    @property
    def found(self) -> bool:
        return self.status == MatchStatus.FOUND


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run to one space and trim both ends."""
    return " ".join(text.split())


def _normalized_units(source: str) -> List[Tuple[int, int]]:
    """Walk source and return the original span behind each normalized char.

    Leading and trailing whitespace contribute no units. Every inner
    whitespace run contributes exactly one unit; every other character
    contributes one unit. The result has the same length as
    normalize_whitespace(source).
    """
    units: List[Tuple[int, int]] = []
    i = 0
    n = len(source)
    while i < n:
        if source[i].isspace():
            run_start = i
            while i < n and source[i].isspace():
                i += 1
            # Runs at either edge are trimmed away by the normalization
            if units and i < n:
                units.append((run_start, i))
        else:
            units.append((i, i + 1))
            i += 1
    return units


def map_normalized_span(
    source: str,
    normalized_start: int,
    normalized_length: int,
) -> Optional[Tuple[int, int]]:
    """Map a span of the normalized source back to original offsets.

    Args:
        source: Original (un-normalized) text
        normalized_start: Start index within normalize_whitespace(source)
        normalized_length: Number of normalized units the span covers

    Returns:
        (start, end) offsets into source, or None if the walk cannot
        consume exactly normalized_length units from normalized_start.
    """
    if normalized_start < 0 or normalized_length <= 0:
        return None

    units = _normalized_units(source)
    last = normalized_start + normalized_length - 1
    if last >= len(units):
        return None

    start = units[normalized_start][0]
    end = units[last][1]

    # The span must re-normalize to exactly the units it was built from
    consumed = len(normalize_whitespace(source[start:end]))
    if consumed != normalized_length:
        logger.debug(
            f"Inconsistent fuzzy mapping: consumed {consumed} units, expected {normalized_length}"
        )
        return None
    return start, end


def _exact_pass(source: str, match: str) -> Optional[LocateResult]:
    first = source.find(match)
    if first == -1:
        return None

    second = source.find(match, first + len(match))
    if second != -1:
        logger.debug(f"Exact match is ambiguous: occurrences at {first} and {second}")
        return LocateResult(MatchStatus.AMBIGUOUS, strategy="exact")

    return LocateResult(MatchStatus.FOUND, first, first + len(match), "exact")


def _fuzzy_pass(source: str, match: str, require_unique: bool) -> LocateResult:
    normalized_source = normalize_whitespace(source)
    normalized_match = normalize_whitespace(match)

    index = normalized_source.find(normalized_match)
    if index == -1:
        return LocateResult(MatchStatus.NOT_FOUND)

    if require_unique:
        again = normalized_source.find(normalized_match, index + len(normalized_match))
        if again != -1:
            logger.debug(f"Fuzzy match is ambiguous: normalized hits at {index} and {again}")
            return LocateResult(MatchStatus.AMBIGUOUS, strategy="fuzzy")

    span = map_normalized_span(source, index, len(normalized_match))
    if span is None:
        return LocateResult(MatchStatus.NOT_FOUND)

    start, end = span
    logger.debug(f"Fuzzy match mapped to offsets {start}-{end}")
    return LocateResult(MatchStatus.FOUND, start, end, "fuzzy")


def locate_snippet(
    source: str,
    match: str,
    fuzzy: bool = True,
    fuzzy_require_unique: bool = True,
) -> LocateResult:
    """Locate the unique span of source that match refers to.

    Strategies (in order):
    1. Exact substring search; a second non-overlapping occurrence
       makes the result AMBIGUOUS.
    2. Whitespace-normalized search, only when the exact pass found
       nothing. The normalized hit is mapped back onto the original text.

    Args:
        source: Full current file text
        match: Snippet to find
        fuzzy: Enable the whitespace-normalized fallback
        fuzzy_require_unique: Treat a second normalized hit as AMBIGUOUS

    Returns:
        LocateResult with status and, when FOUND, start/end offsets
    """
    if not match or not match.strip():
        return LocateResult(MatchStatus.INVALID_MATCH)

    exact = _exact_pass(source, match)
    if exact is not None:
        return exact

    if not fuzzy:
        return LocateResult(MatchStatus.NOT_FOUND)

    return _fuzzy_pass(source, match, fuzzy_require_unique)


def replace_span(source: str, start: int, end: int, replacement: str) -> str:
    """Splice replacement over source[start:end]."""
    return f"{source[:start]}{replacement}{source[end:]}"
