"""
Numeric candidate scanner.

Finds every number in a text blob that matches one of a set of unit patterns
("8k-Mile", "$175,000", ...) and keeps enough context around each match to
pick between them later.
"""

import logging
from typing import Iterable, List, Optional, Pattern

from .car_regexes import YEAR_REGEX, parse_amount
from .models import ExtractionCandidate, REGION_BODY

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_CHARS = 40


def scan(text: str, unit_patterns: Iterable[Pattern], source_region: str = REGION_BODY,
         context_chars: int = DEFAULT_CONTEXT_CHARS) -> List[ExtractionCandidate]:
    """
    Apply each pattern over the whole text and return every numeric match.

    Patterns must expose a ``value`` group; an optional ``k`` group marks a
    thousands multiplier ("8k miles" -> 8000).

    Args:
        text: Text to scan
        unit_patterns: Compiled patterns, applied in order
        source_region: Page region the text came from
        context_chars: Characters of context kept on each side of a match

    Returns:
        Candidates in pattern order, then position order (empty if nothing matched)
    """
    candidates: List[ExtractionCandidate] = []
    if not text:
        return candidates

    for pattern in unit_patterns:
        has_k = "k" in pattern.groupindex
        for match in pattern.finditer(text):
            value = parse_amount(match.group("value"), match.group("k") if has_k else None)
            if value is None:
                continue
            start, end = match.span()
            context = text[max(0, start - context_chars):end + context_chars]
            candidates.append(ExtractionCandidate(
                value=value,
                source_region=source_region,
                raw_match_text=match.group(0),
                position_index=start,
                context=context,
            ))

    return candidates


def year_positions(text: str) -> List[int]:
    """Start offsets of every 4-digit vehicle-year token in the text."""
    return [m.start() for m in YEAR_REGEX.finditer(text or "")]


def pick_nearest_year(candidates: List[ExtractionCandidate], text: str) -> Optional[ExtractionCandidate]:
    """
    Choose the candidate closest to a vehicle-year token.

    Year tokens inside a candidate's own match text are ignored. With no year
    token in the text, the first candidate by position wins.
    """
    if not candidates:
        return None

    by_position = sorted(candidates, key=lambda c: c.position_index)
    years = year_positions(text)

    def distance(candidate: ExtractionCandidate) -> int:
        start = candidate.position_index
        end = start + len(candidate.raw_match_text)
        gaps = [abs(pos - start) for pos in years if not start <= pos < end]
        return min(gaps) if gaps else len(text) + 1

    if not years:
        return by_position[0]

    # min() keeps the first of equal distances, so ties fall back to position order
    return min(by_position, key=distance)
