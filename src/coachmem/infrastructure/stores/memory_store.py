from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional, Protocol

from sqlalchemy import desc, or_, select

from coachmem.config.settings import MemorySettings
from coachmem.core.errors import ValidationError
from coachmem.infrastructure.stores.models import Base, ConversationSummaryModel, InsightModel
from coachmem.infrastructure.stores.sqlalchemy_db import SessionProvider
from coachmem.memory.schema import ConversationSummary, Insight, InsightCandidate, as_utc, utcnow

# update_insight keyword -> column
_UPDATABLE = {
    "text": "insight",
    "category": "category",
    "subcategory": "subcategory",
    "confidence": "confidence",
    "source": "source",
    "extracted_from": "extracted_from",
    "is_active": "is_active",
    "expires_at": "expires_at",
    "last_validated": "last_validated",
}


def _to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    # sqlite stores the wall-clock value only
    return as_utc(dt).astimezone(timezone.utc) if dt is not None else None


class InsightStore(Protocol):
    """Persistence contract the memory service depends on."""

    def insert_insight(self, candidate: InsightCandidate) -> Insight: ...

    def update_insight(self, insight_id: int, **fields: Any) -> Optional[Insight]: ...

    def list_active_insights(
        self,
        subject_id: str,
        *,
        category: Optional[str] = None,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
        include_expired: bool = True,
    ) -> List[Insight]: ...

    def delete_insight(self, subject_id: str, insight_id: int) -> bool: ...

    def deactivate_insight(self, subject_id: str, insight_id: int) -> bool: ...

    def add_summary(self, summary: ConversationSummary) -> ConversationSummary: ...

    def list_summaries(self, subject_id: str, limit: Optional[int] = None) -> List[ConversationSummary]: ...

    def delete_summary(self, summary_id: int) -> bool: ...


class SqlAlchemyInsightStore:
    """
    SQL-backed insight and conversation-summary store.

    Notes:
    - Every method runs in its own session and commits before returning.
    - SQLAlchemy failures surface as ``StoreError``; nothing is retried here.
    - Unparseable JSON columns read back as empty values.
    """

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self._provider = SessionProvider(db_url)
        self.db_url = self._provider.db_url
        if auto_create_schema:
            self._provider.create_schema(Base.metadata)

    @classmethod
    def from_settings(cls, settings: MemorySettings, **kwargs: Any) -> "SqlAlchemyInsightStore":
        return cls(settings.database.url or None, **kwargs)

    # ---- insights ----

    def insert_insight(self, candidate: InsightCandidate, *, now: Optional[datetime] = None) -> Insight:
        now = now or utcnow()
        row = InsightModel(
            subject_id=candidate.subject_id,
            category=candidate.category,
            subcategory=candidate.subcategory,
            insight=candidate.text,
            confidence=float(candidate.confidence),
            source=candidate.source,
            extracted_from=candidate.extracted_from or "",
            is_active=bool(candidate.is_active),
            expires_at=_to_utc(candidate.expires_at),
            created_at=now,
            last_validated=now,
        )
        row.set_metadata(dict(candidate.metadata or {}))
        with self._provider.session_scope("insert_insight") as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._row_to_insight(row)

    def update_insight(self, insight_id: int, **fields: Any) -> Optional[Insight]:
        unknown = set(fields) - set(_UPDATABLE) - {"metadata"}
        if unknown:
            raise ValidationError(message=f"cannot update insight fields: {sorted(unknown)}")

        with self._provider.session_scope("update_insight") as session:
            row = session.get(InsightModel, int(insight_id))
            if row is None:
                return None
            for key, column in _UPDATABLE.items():
                if key not in fields:
                    continue
                value = fields[key]
                if key in ("expires_at", "last_validated"):
                    value = _to_utc(value)
                setattr(row, column, value)
            if "metadata" in fields:
                row.set_metadata(dict(fields["metadata"] or {}))
            session.commit()
            session.refresh(row)
            return self._row_to_insight(row)

    def list_active_insights(
        self,
        subject_id: str,
        *,
        category: Optional[str] = None,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
        include_expired: bool = True,
    ) -> List[Insight]:
        with self._provider.session_scope("list_active_insights") as session:
            stmt = select(InsightModel).where(
                InsightModel.subject_id == subject_id,
                InsightModel.is_active.is_(True),
            )
            if category:
                stmt = stmt.where(InsightModel.category == category)
            if not include_expired:
                cutoff = _to_utc(now or utcnow())
                stmt = stmt.where(or_(InsightModel.expires_at.is_(None), InsightModel.expires_at >= cutoff))
            stmt = stmt.order_by(
                desc(InsightModel.confidence),
                desc(InsightModel.last_validated),
                desc(InsightModel.id),
            )
            if limit is not None:
                stmt = stmt.limit(int(limit))
            rows = session.execute(stmt).scalars().all()
            return [self._row_to_insight(r) for r in rows]

    def delete_insight(self, subject_id: str, insight_id: int) -> bool:
        with self._provider.session_scope("delete_insight") as session:
            row = session.get(InsightModel, int(insight_id))
            if row is None or row.subject_id != subject_id:
                return False
            session.delete(row)
            session.commit()
            return True

    def deactivate_insight(self, subject_id: str, insight_id: int) -> bool:
        with self._provider.session_scope("deactivate_insight") as session:
            row = session.get(InsightModel, int(insight_id))
            if row is None or row.subject_id != subject_id:
                return False
            row.is_active = False
            session.commit()
            return True

    # ---- conversation summaries ----

    def add_summary(self, summary: ConversationSummary) -> ConversationSummary:
        row = ConversationSummaryModel(
            subject_id=summary.subject_id,
            conversation_date=summary.conversation_date,
            message_count=int(summary.message_count),
            summary=summary.summary or "",
            created_at=summary.created_at or utcnow(),
        )
        row.set_lists(
            key_decisions=summary.key_decisions,
            key_preferences=summary.key_preferences,
            key_feedback=summary.key_feedback,
            tags=summary.tags,
        )
        with self._provider.session_scope("add_summary") as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._row_to_summary(row)

    def list_summaries(self, subject_id: str, limit: Optional[int] = None) -> List[ConversationSummary]:
        with self._provider.session_scope("list_summaries") as session:
            stmt = (
                select(ConversationSummaryModel)
                .where(ConversationSummaryModel.subject_id == subject_id)
                .order_by(
                    desc(ConversationSummaryModel.conversation_date),
                    desc(ConversationSummaryModel.created_at),
                    desc(ConversationSummaryModel.id),
                )
            )
            if limit is not None:
                stmt = stmt.limit(int(limit))
            rows = session.execute(stmt).scalars().all()
            return [self._row_to_summary(r) for r in rows]

    def delete_summary(self, summary_id: int) -> bool:
        with self._provider.session_scope("delete_summary") as session:
            row = session.get(ConversationSummaryModel, int(summary_id))
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def close(self) -> None:
        self._provider.dispose()

    @staticmethod
    def _row_to_insight(r: InsightModel) -> Insight:
        return Insight(
            id=r.id,
            subject_id=r.subject_id,
            category=r.category,  # type: ignore[arg-type]
            subcategory=r.subcategory,
            text=r.insight,
            confidence=float(r.confidence),
            source=r.source,  # type: ignore[arg-type]
            extracted_from=r.extracted_from or "",
            metadata=r.get_metadata(),
            is_active=bool(r.is_active),
            expires_at=as_utc(r.expires_at) if r.expires_at else None,
            created_at=as_utc(r.created_at),
            last_validated=as_utc(r.last_validated),
        )

    @staticmethod
    def _row_to_summary(r: ConversationSummaryModel) -> ConversationSummary:
        return ConversationSummary(
            id=r.id,
            subject_id=r.subject_id,
            conversation_date=r.conversation_date,
            message_count=int(r.message_count or 0),
            summary=r.summary or "",
            key_decisions=r.get_list("key_decisions"),
            key_preferences=r.get_list("key_preferences"),
            key_feedback=r.get_list("key_feedback"),
            tags=r.get_list("tags"),
            created_at=as_utc(r.created_at) if r.created_at else None,
        )

