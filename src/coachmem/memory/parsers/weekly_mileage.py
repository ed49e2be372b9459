from __future__ import annotations

import re
from typing import Optional

from .types import StructuredMatch

WEEKLY_MILEAGE_CONFIDENCE = 0.82

_MILEAGE = re.compile(
    r"\b(?:running|averaging|doing|at)\s+(?:about\s+)?(\d{1,3})\s*"
    r"(miles?|mi|km|kilometers?|kilometres?)\s*(?:per|a|/)\s*week",
    re.IGNORECASE,
)


def parse_weekly_mileage(text: str) -> Optional[StructuredMatch]:
    m = _MILEAGE.search(text or "")
    if not m:
        return None
    unit = "km" if m.group(2).lower().startswith("k") else "mi"
    return StructuredMatch(
        parser="weekly_mileage",
        category="pattern",
        subcategory="mileage",
        confidence=WEEKLY_MILEAGE_CONFIDENCE,
        index=m.start(),
        metadata={"type": "weekly_mileage", "value": int(m.group(1)), "unit": unit},
    )
