from __future__ import annotations

import re
from typing import Optional

from .types import StructuredMatch

RACE_RESULT_CONFIDENCE = 0.92

_RACE_TIME = re.compile(
    r"\b(?:ran|finished|completed|raced|did)\s+(?:a\s+)?(?:the\s+)?"
    r"(marathon|half(?:\s*marathon)?|5k|10k|mile|ultra|50k|100k|100\s*miler?)\s+"
    r"(?:in\s+)?(\d{1,2}:\d{2}(?::\d{2})?)",
    re.IGNORECASE,
)


def parse_race_result(text: str) -> Optional[StructuredMatch]:
    """'I ran a marathon in 3:45:22' -> feedback/race_result with the clock time."""
    m = _RACE_TIME.search(text or "")
    if not m:
        return None
    distance = re.sub(r"\s+", " ", m.group(1).lower())
    return StructuredMatch(
        parser="race_result",
        category="feedback",
        subcategory="race_result",
        confidence=RACE_RESULT_CONFIDENCE,
        index=m.start(),
        metadata={"type": "race_time", "time": m.group(2), "distance": distance},
    )
