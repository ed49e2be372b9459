from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ..schema import InsightCategory


@dataclass(frozen=True)
class StructuredMatch:
    """A parsed fact located at ``index`` of the original message."""

    parser: str
    category: InsightCategory
    subcategory: str
    confidence: float
    index: int
    metadata: Dict[str, Any] = field(default_factory=dict)


# Takes the raw message text, returns at most one match.
StructuredParser = Callable[[str], Optional[StructuredMatch]]
