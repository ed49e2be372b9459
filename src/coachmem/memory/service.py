"""
CoachingMemory: the extract -> dedup -> merge/store and retrieve pipeline over
an ``InsightStore``.

Merging is a read-then-write per candidate with no version check, so callers
must keep a single writer per subject.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from coachmem.config.settings import MemorySettings
from coachmem.core.errors import Result, StoreError

from .extractor import MessageLike, extract_insights
from .retrieval import rank_insights
from .schema import CATEGORIES, ConversationSummary, Insight, InsightCandidate, utcnow
from .summarizer import build_conversation_summary, consolidate_conversation, tag_message
from .text import content_words, jaccard

if TYPE_CHECKING:
    from coachmem.infrastructure.stores.memory_store import InsightStore

logger = logging.getLogger(__name__)


@dataclass
class StoreResult:
    inserted: int = 0
    merged: int = 0
    insight_ids: List[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.inserted + self.merged


def merge_fields(existing: Insight, candidate: InsightCandidate, now: datetime) -> Dict[str, Any]:
    """
    Field updates for folding ``candidate`` into ``existing``.

    The new text wins when it is longer or more confident; confidence never
    decreases; metadata keys from the candidate overwrite stored ones.
    """
    take_new = len(candidate.text) > len(existing.text) or candidate.confidence > existing.confidence
    return {
        "text": candidate.text if take_new else existing.text,
        "confidence": max(existing.confidence, candidate.confidence),
        "subcategory": existing.subcategory or candidate.subcategory,
        "last_validated": now,
        "metadata": {**existing.metadata, **candidate.metadata},
    }


class CoachingMemory:
    def __init__(self, store: InsightStore, settings: Optional[MemorySettings] = None):
        self.store = store
        self.settings = settings or MemorySettings()

    # ---- extraction / storage ----

    def extract_insights(self, messages: Iterable[MessageLike], subject_id: str) -> List[InsightCandidate]:
        return extract_insights(
            messages,
            subject_id,
            extraction=self.settings.extraction,
            dedup=self.settings.dedup,
        )

    def _best_match(self, candidate: InsightCandidate, active: List[Insight]) -> Tuple[Optional[int], float]:
        words = content_words(candidate.text)
        best_idx: Optional[int] = None
        best_sim = -1.0
        for idx, existing in enumerate(active):
            if existing.category != candidate.category:
                continue
            sim = jaccard(words, content_words(existing.text))
            if sim > best_sim:
                best_idx, best_sim = idx, sim
        return best_idx, best_sim

    def store_insights(self, candidates: Iterable[InsightCandidate], *, now: Optional[datetime] = None) -> StoreResult:
        """
        Merge candidates into the store, or insert them as new insights.

        A candidate merges into the most similar active insight of the same
        category when similarity reaches the persisted threshold. Candidates
        are matched only against the rows fetched before the batch started;
        rows inserted by this batch are never merge targets, so in-batch
        duplicates are governed by the batch threshold alone. Not atomic: a
        store failure leaves earlier candidates committed.
        """
        now = now or utcnow()
        threshold = self.settings.dedup.persisted_threshold
        result = StoreResult()

        by_subject: Dict[str, List[InsightCandidate]] = {}
        for candidate in candidates:
            by_subject.setdefault(candidate.subject_id, []).append(candidate)

        for subject_id, batch in by_subject.items():
            inserted_before, merged_before = result.inserted, result.merged
            # fetched once; updates replace entries, inserts are not added
            active = self.store.list_active_insights(subject_id)
            for candidate in batch:
                idx, sim = self._best_match(candidate, active)
                if idx is not None and sim >= threshold:
                    existing = active[idx]
                    updated = self.store.update_insight(existing.id, **merge_fields(existing, candidate, now))
                    if updated is not None:
                        active[idx] = updated
                        result.merged += 1
                        result.insight_ids.append(updated.id)
                        continue
                    # row vanished underneath us; fall through to insert
                    active.pop(idx)
                inserted = self.store.insert_insight(candidate)
                result.inserted += 1
                result.insight_ids.append(inserted.id)

            logger.info(
                "stored insights for %s: inserted=%d merged=%d",
                subject_id,
                result.inserted - inserted_before,
                result.merged - merged_before,
            )

        return result

    def try_store_insights(
        self, candidates: Iterable[InsightCandidate], *, now: Optional[datetime] = None
    ) -> Result[StoreResult]:
        """Like ``store_insights``, but a store failure comes back as ``Result.err``."""
        try:
            return Result.ok(self.store_insights(candidates, now=now))
        except StoreError as exc:
            logger.warning("storing insights failed: %s", exc)
            return Result.err(exc)

    # ---- retrieval ----

    def get_relevant_insights(
        self,
        subject_id: str,
        context: Optional[str],
        limit: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> List[Insight]:
        cfg = self.settings.retrieval
        limit = cfg.default_limit if limit is None else limit
        if limit <= 0:
            return []
        now = now or utcnow()
        pool = self.store.list_active_insights(
            subject_id,
            now=now,
            limit=limit * cfg.pool_multiplier,
            include_expired=False,
        )
        return rank_insights(pool, context, limit, cfg=cfg, now=now)

    def list_insights_by_category(self, subject_id: str) -> Dict[str, List[Insight]]:
        grouped: Dict[str, List[Insight]] = {}
        for insight in self.store.list_active_insights(subject_id):
            grouped.setdefault(insight.category, []).append(insight)
        return {cat: grouped[cat] for cat in CATEGORIES if cat in grouped}

    def deactivate_insight(self, subject_id: str, insight_id: int) -> bool:
        return self.store.deactivate_insight(subject_id, insight_id)

    # ---- summaries ----

    def consolidate_conversation(self, messages: Iterable[MessageLike], focus: str = "all") -> str:
        return consolidate_conversation(messages, focus)

    def tag_message(self, text: Optional[str]) -> List[str]:
        return tag_message(text)

    def store_conversation_summary(
        self,
        subject_id: str,
        messages: Iterable[MessageLike],
        today: Optional[date] = None,
    ) -> Optional[ConversationSummary]:
        """Persist one summary per subject per day; short conversations are skipped."""
        summary = build_conversation_summary(subject_id, messages, today=today, cfg=self.settings.summary)
        if summary is None:
            return None

        for previous in self.store.list_summaries(subject_id):
            if previous.conversation_date == summary.conversation_date and previous.id is not None:
                self.store.delete_summary(previous.id)

        stored = self.store.add_summary(summary)
        self._prune_summaries(subject_id)
        return stored

    def _prune_summaries(self, subject_id: str) -> int:
        cap = self.settings.summary.retention_cap
        stale = self.store.list_summaries(subject_id)[cap:]
        for summary in stale:
            if summary.id is not None:
                self.store.delete_summary(summary.id)
        if stale:
            logger.info("pruned %d old conversation summaries for %s", len(stale), subject_id)
        return len(stale)

    def get_latest_conversation_summary(self, subject_id: str) -> Optional[ConversationSummary]:
        latest = self.store.list_summaries(subject_id, limit=1)
        return latest[0] if latest else None


def process_conversation_insights(
    store: InsightStore,
    messages: Iterable[MessageLike],
    subject_id: str,
    settings: Optional[MemorySettings] = None,
) -> Dict[str, Any]:
    """Extract and store in one call; returns counts plus a few example texts."""
    memory = CoachingMemory(store, settings)
    candidates = memory.extract_insights(messages, subject_id)
    if candidates:
        memory.store_insights(candidates)
    categories: Dict[str, None] = {}
    for c in candidates:
        categories.setdefault(c.category, None)
    return {
        "insights_found": len(candidates),
        "categories": list(categories),
        "examples": [c.text for c in candidates[:3]],
    }
