from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Union


# Only user and assistant turns carry meaning here; any other role coerces to "unknown".
Role = Literal["user", "assistant", "unknown"]

_KNOWN_ROLES = frozenset({"user", "assistant"})

InsightCategory = Literal[
    "injury",
    "goal",
    "feedback",
    "preference",
    "constraint",
    "pattern",
]

CATEGORIES: Tuple[str, ...] = ("injury", "goal", "feedback", "preference", "constraint", "pattern")

InsightSource = Literal["explicit", "inferred"]

# Which extraction path produced a candidate; not persisted.
Origin = Literal["rule", "directive", "structured"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    # sqlite drops tzinfo on the way back out
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str

    @classmethod
    def coerce(cls, message: Union["ChatMessage", Mapping[str, Any]]) -> "ChatMessage":
        if isinstance(message, ChatMessage):
            return message
        role = str(message.get("role") or "").strip().lower()
        content = message.get("content")
        return cls(
            role=role if role in _KNOWN_ROLES else "unknown",  # type: ignore[arg-type]
            content="" if content is None else str(content),
        )


def coerce_messages(messages) -> List[ChatMessage]:
    return [ChatMessage.coerce(m) for m in (messages or [])]


@dataclass(frozen=True)
class ExtractionRule:
    """A keyword rule: any trigger activates it, boost phrases raise confidence."""

    triggers: Tuple[str, ...]
    category: InsightCategory
    base_confidence: float
    context_boost: Tuple[str, ...] = ()
    subcategory: Optional[str] = None


@dataclass(frozen=True)
class InsightCandidate:
    subject_id: str
    category: InsightCategory
    text: str
    confidence: float
    source: InsightSource = "inferred"
    subcategory: Optional[str] = None
    extracted_from: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    expires_at: Optional[datetime] = None
    origin: Origin = "rule"


@dataclass(frozen=True)
class Insight:
    id: int
    subject_id: str
    category: InsightCategory
    text: str
    confidence: float
    source: InsightSource
    created_at: datetime
    last_validated: datetime
    subcategory: Optional[str] = None
    extracted_from: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    expires_at: Optional[datetime] = None
    # Computed at retrieval time, never stored.
    relevance_score: Optional[float] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return as_utc(self.expires_at) < (now or utcnow())

    def age_days(self, now: Optional[datetime] = None) -> float:
        delta = (now or utcnow()) - as_utc(self.last_validated)
        return delta.total_seconds() / 86400.0

    def with_score(self, score: float) -> "Insight":
        return replace(self, relevance_score=score)


@dataclass(frozen=True)
class ConversationSummary:
    subject_id: str
    conversation_date: date
    message_count: int
    summary: str
    key_decisions: List[str] = field(default_factory=list)
    key_preferences: List[str] = field(default_factory=list)
    key_feedback: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    id: Optional[int] = None
    created_at: Optional[datetime] = None
