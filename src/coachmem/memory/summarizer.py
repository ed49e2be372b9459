"""
Bucketed conversation summaries and topic tags.

Uses its own small vocabulary, independent of the extraction rule tables.
"""

from __future__ import annotations

import re
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from coachmem.config.settings import SummaryConfig
from coachmem.core.errors import ValidationError

from .schema import ChatMessage, ConversationSummary, coerce_messages, utcnow

NOTHING_TO_CONSOLIDATE = "No significant information found to consolidate."

FOCUS_VALUES: Tuple[str, ...] = ("decisions", "preferences", "progress", "all")

_BUCKETS: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("decisions", "Decisions Made", ("decided", "will", "plan to")),
    ("preferences", "Preferences Noted", ("prefer", "like", "enjoy")),
    ("progress", "Training Progress", ("completed", "ran", "miles")),
)

TAG_PATTERNS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "injury": (
            "hurt", "pain", "injury", "injured", "sore", "soreness", "strain",
            "tendon", "plantar", "shin splint", "stress fracture", "achilles",
        ),
        "race": (
            "marathon", "5k", "10k", "half marathon", "race", "ultra", "relay",
            "race day", "race result", "finish line", "bib",
        ),
        "workout": (
            "tempo", "interval", "long run", "easy run", "workout", "fartlek",
            "hill repeats", "track", "speed work", "strides", "recovery run",
        ),
        "schedule": (
            "reschedule", "swap", "move", "skip", "rest day", "day off",
            "can't run", "busy", "travel",
        ),
        "goal": (
            "goal", "target", "aim", "want to", "qualify", "bq", "pr", "pb",
            "personal best", "personal record", "sub-",
        ),
        "feedback": (
            "felt", "was hard", "was easy", "struggled", "crushed",
            "bonked", "hit the wall", "strong", "tired", "exhausted", "energized",
        ),
        "nutrition": (
            "fuel", "fueling", "gel", "hydration", "water", "electrolyte",
            "carb", "calorie", "diet", "eating",
        ),
        "gear": (
            "shoes", "watch", "garmin", "coros", "apple watch", "vest", "shorts",
            "apparel", "foam roller", "treadmill",
        ),
    }
)

_COMMITMENT = re.compile(r"(I'll|I will) ([^.!?]+)")
_RECOMMENDATION = re.compile(r"(recommend|suggest) ([^.!?]+)")


def tag_message(content: Optional[str]) -> List[str]:
    """Topic tags for one message, in table order."""
    lower = (content or "").lower()
    return [tag for tag, keywords in TAG_PATTERNS.items() if any(kw in lower for kw in keywords)]


def collect_tags(messages: Iterable[ChatMessage]) -> List[str]:
    tags: Dict[str, None] = {}
    for message in messages:
        for tag in tag_message(message.content):
            tags.setdefault(tag, None)
    return list(tags)


def consolidate_conversation(messages, focus: str = "all") -> str:
    """Render decisions/preferences/progress buckets, or the sentinel text."""
    if focus not in FOCUS_VALUES:
        raise ValidationError(message=f"unknown focus: {focus!r}", context={"allowed": list(FOCUS_VALUES)})

    msgs = coerce_messages(messages)
    sections: List[str] = []
    for bucket, title, keywords in _BUCKETS:
        if focus not in (bucket, "all"):
            continue
        lines = [m.content[:100] for m in msgs if any(kw in m.content.lower() for kw in keywords)]
        if lines:
            body = "\n".join(f"- {line}" for line in lines)
            sections.append(f"**{title}:**\n{body}\n\n")

    return "".join(sections) or NOTHING_TO_CONSOLIDATE


def build_conversation_summary(
    subject_id: str,
    messages,
    *,
    today: Optional[date] = None,
    cfg: Optional[SummaryConfig] = None,
) -> Optional[ConversationSummary]:
    """Unpersisted summary row, or None for conversations that are too short."""
    cfg = cfg or SummaryConfig()
    msgs = coerce_messages(messages)
    if len(msgs) < cfg.min_messages:
        return None

    decisions: List[str] = []
    preferences: List[str] = []
    feedback: List[str] = []
    for m in msgs:
        lower = m.content.lower()
        snippet = m.content[: cfg.key_item_chars]
        if m.role == "assistant" and ("i'll" in lower or "i will" in lower):
            decisions.append(snippet)
        if m.role == "user" and any(kw in lower for kw in ("prefer", "like", "avoid")):
            preferences.append(snippet)
        if m.role == "user" and any(kw in lower for kw in ("felt", "too hard", "too easy")):
            feedback.append(snippet)

    return ConversationSummary(
        subject_id=subject_id,
        conversation_date=today or utcnow().date(),
        message_count=len(msgs),
        summary=consolidate_conversation(msgs, "all"),
        key_decisions=decisions[: cfg.max_key_items],
        key_preferences=preferences[: cfg.max_key_items],
        key_feedback=feedback[: cfg.max_key_items],
        tags=collect_tags(msgs)[: cfg.max_tags],
    )


def auto_summarize_conversation(messages) -> Dict[str, Any]:
    """Consolidated summary plus assistant commitments and recommendations."""
    msgs = coerce_messages(messages)
    key_points: List[str] = []
    suggested_actions: List[str] = []

    for m in msgs:
        if m.role != "assistant":
            continue
        commitment = _COMMITMENT.search(m.content)
        if commitment:
            suggested_actions.append(commitment.group(2).strip())
        recommendation = _RECOMMENDATION.search(m.content)
        if recommendation:
            key_points.append(f"Recommendation: {recommendation.group(2).strip()}")

    summary = consolidate_conversation(msgs, "all")
    tags = collect_tags(msgs)
    if tags:
        summary += f"\n**Topics Discussed:** {', '.join(tags)}"

    return {"summary": summary, "key_points": key_points, "suggested_actions": suggested_actions}
