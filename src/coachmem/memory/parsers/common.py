from __future__ import annotations

from typing import List, Sequence, Tuple

from .race_result import parse_race_result
from .types import StructuredMatch, StructuredParser
from .weekly_mileage import parse_weekly_mileage

# New structured extractors are added here; the keyword-rule engine is untouched.
STRUCTURED_PARSERS: Tuple[Tuple[str, StructuredParser], ...] = (
    ("race_result", parse_race_result),
    ("weekly_mileage", parse_weekly_mileage),
)


def run_structured_parsers(
    text: str,
    parsers: Sequence[Tuple[str, StructuredParser]] = STRUCTURED_PARSERS,
) -> List[StructuredMatch]:
    """Run every parser independently; each contributes zero or one match."""
    out: List[StructuredMatch] = []
    for _, parser in parsers:
        match = parser(text)
        if match is not None:
            out.append(match)
    return out
