"""
Glue between the memory core and a coaching chat: prompt blocks, context
recall, conversation wrap-up and simple contradiction checks.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .schema import Insight, utcnow
from .service import CoachingMemory
from .text import tokenize

MEMORY_HEADER = "\n\n**Relevant Information About This Athlete:**\n"

PROMPT_INSIGHT_LIMIT = 5
RECALL_INSIGHT_LIMIT = 3

OPPOSITE_WORDS: Tuple[Tuple[str, str], ...] = (
    ("morning", "evening"),
    ("easy", "hard"),
    ("love", "hate"),
    ("prefer", "avoid"),
    ("can", "cannot"),
)


def confidence_marker(confidence: float) -> str:
    if confidence > 0.8:
        return "✓"
    if confidence > 0.6:
        return "?"
    return "~"


def build_memory_context(insights: Iterable[Insight]) -> str:
    """
    Build a prompt-ready memory block, grouped by category in first-seen order.

    Returns an empty string when there is nothing to show.
    """
    grouped: Dict[str, List[Insight]] = {}
    for insight in insights:
        grouped.setdefault(insight.category, []).append(insight)
    if not grouped:
        return ""

    parts = [MEMORY_HEADER]
    for category, items in grouped.items():
        parts.append(f"\n{category.capitalize()}s:\n")
        for insight in items:
            line = f"- {confidence_marker(insight.confidence)} {insight.text}"
            if insight.source == "explicit":
                line += " [stated directly]"
            parts.append(line + "\n")
    return "".join(parts)


def build_enhanced_coach_prompt(
    memory: CoachingMemory,
    base_prompt: str,
    subject_id: str,
    context: Optional[str],
    *,
    now: Optional[datetime] = None,
) -> str:
    insights = memory.get_relevant_insights(subject_id, context, PROMPT_INSIGHT_LIMIT, now=now)
    if not insights:
        return base_prompt
    return base_prompt + build_memory_context(insights)


def recall_relevant_context(
    memory: CoachingMemory,
    subject_id: str,
    user_message: Optional[str],
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Top insights for an opening message plus the latest conversation summary."""
    now = now or utcnow()
    insights = memory.get_relevant_insights(subject_id, user_message, RECALL_INSIGHT_LIMIT, now=now)
    memories = [
        f"{i.text} ({int(i.age_days(now))}d ago, {round(i.confidence * 100)}% confidence)"
        for i in insights
    ]
    latest = memory.get_latest_conversation_summary(subject_id)
    return {
        "relevant_memories": memories,
        "last_interaction": latest.summary if latest is not None else None,
    }


def _insight_text(existing: Union[Insight, Mapping[str, Any]]) -> str:
    if isinstance(existing, Insight):
        return existing.text
    return str(existing.get("insight") or existing.get("text") or "")


def detect_conflicts(
    new_text: Optional[str],
    existing: Iterable[Union[Insight, Mapping[str, Any]]],
) -> List[Dict[str, str]]:
    """
    Flag existing insights that use the opposite word of a pair found in ``new_text``.

    Words are matched whole, so "can" does not match inside "cannot".
    """
    new_words = set(tokenize(new_text))
    conflicts: List[Dict[str, str]] = []
    for item in existing:
        text = _insight_text(item)
        words = set(tokenize(text))
        for a, b in OPPOSITE_WORDS:
            if (a in new_words and b in words) or (b in new_words and a in words):
                conflicts.append(
                    {
                        "conflict": f'New: "{new_text}" conflicts with existing: "{text}"',
                        "severity": "major",
                    }
                )
                break
    return conflicts
