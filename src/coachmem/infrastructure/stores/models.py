from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _load_json(raw: Optional[str], default: Any) -> Any:
    try:
        value = json.loads(raw or "null")
    except (TypeError, ValueError):
        return default
    return value if isinstance(value, type(default)) else default


class InsightModel(Base):
    """One durable fact about an athlete."""

    __tablename__ = "coaching_insights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    subject_id: Mapped[str] = mapped_column(String(64), index=True)
    category: Mapped[str] = mapped_column(String(32), index=True)
    subcategory: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    insight: Mapped[str] = mapped_column(Text, default="")
    confidence: Mapped[float] = mapped_column(Float, default=0.5, index=True)
    source: Mapped[str] = mapped_column(String(16), default="inferred")
    extracted_from: Mapped[str] = mapped_column(Text, default="")

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    last_validated: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    metadata_json: Mapped[str] = mapped_column(Text, default="{}")

    def set_metadata(self, data: Dict[str, Any]) -> None:
        self.metadata_json = json.dumps(data or {}, ensure_ascii=False)

    def get_metadata(self) -> Dict[str, Any]:
        return _load_json(self.metadata_json, {})


class ConversationSummaryModel(Base):
    """Per-day digest of one conversation."""

    __tablename__ = "conversation_summaries"
    __table_args__ = (UniqueConstraint("subject_id", "conversation_date", name="uq_summary_subject_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    subject_id: Mapped[str] = mapped_column(String(64), index=True)
    conversation_date: Mapped[date] = mapped_column(Date, index=True)
    message_count: Mapped[int] = mapped_column(Integer, default=0)
    summary: Mapped[str] = mapped_column(Text, default="")

    key_decisions_json: Mapped[str] = mapped_column(Text, default="[]")
    key_preferences_json: Mapped[str] = mapped_column(Text, default="[]")
    key_feedback_json: Mapped[str] = mapped_column(Text, default="[]")
    tags_json: Mapped[str] = mapped_column(Text, default="[]")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    def set_lists(
        self,
        *,
        key_decisions: List[str],
        key_preferences: List[str],
        key_feedback: List[str],
        tags: List[str],
    ) -> None:
        self.key_decisions_json = json.dumps(list(key_decisions or []), ensure_ascii=False)
        self.key_preferences_json = json.dumps(list(key_preferences or []), ensure_ascii=False)
        self.key_feedback_json = json.dumps(list(key_feedback or []), ensure_ascii=False)
        self.tags_json = json.dumps(list(tags or []), ensure_ascii=False)

    def get_list(self, column: str) -> List[str]:
        values = _load_json(getattr(self, f"{column}_json"), [])
        return [str(v) for v in values if str(v).strip()]
