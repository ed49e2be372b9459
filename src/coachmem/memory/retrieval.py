"""
Relevance ranking of stored insights against a query context.

score = keyword overlap + category boost + recency boost + confidence term,
then a top-K selection capped by a rendered-size budget.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from coachmem.config.settings import RetrievalConfig

from .rules import infer_category, mentions_category
from .schema import Insight, utcnow
from .text import content_words, jaccard


@dataclass(frozen=True)
class ScoreBreakdown:
    overlap: float
    category_boost: float
    recency_boost: float
    confidence_term: float

    @property
    def total(self) -> float:
        return self.overlap + self.category_boost + self.recency_boost + self.confidence_term


def recency_boost(age_days: float, cfg: Optional[RetrievalConfig] = None) -> float:
    """Linear decay from the max boost at age 0 to zero at the horizon."""
    cfg = cfg or RetrievalConfig()
    age_days = max(0.0, age_days)
    return max(0.0, cfg.recency_max_boost * (1.0 - age_days / cfg.recency_horizon_days))


def category_boost(insight_category: str, context: str, context_category: str, cfg: Optional[RetrievalConfig] = None) -> float:
    cfg = cfg or RetrievalConfig()
    boost = 0.0
    if insight_category == context_category:
        boost = cfg.category_match_boost
    if mentions_category(context, insight_category):
        boost = max(boost, cfg.category_keyword_boost)
    return boost


class RelevanceScorer:
    """Scores insights against one context string; build one per query."""

    def __init__(self, context: Optional[str], cfg: Optional[RetrievalConfig] = None, now: Optional[datetime] = None):
        self.context = context or ""
        self.cfg = cfg or RetrievalConfig()
        self.now = now or utcnow()
        self._context_words = content_words(self.context)
        self._context_category = infer_category(self.context)

    @property
    def context_category(self) -> str:
        return self._context_category

    def breakdown(self, insight: Insight) -> ScoreBreakdown:
        return ScoreBreakdown(
            overlap=jaccard(self._context_words, content_words(insight.text)),
            category_boost=category_boost(insight.category, self.context, self._context_category, self.cfg),
            recency_boost=recency_boost(insight.age_days(self.now), self.cfg),
            confidence_term=insight.confidence * self.cfg.confidence_weight,
        )

    def score(self, insight: Insight) -> float:
        return self.breakdown(insight).total

    def rank(self, pool: Iterable[Insight]) -> List[Insight]:
        scored = [insight.with_score(self.score(insight)) for insight in pool]
        # stable: equal scores keep the pool's confidence/recency order
        scored.sort(key=lambda i: i.relevance_score or 0.0, reverse=True)
        return scored


def select_within_budget(ranked: Iterable[Insight], limit: int, cfg: Optional[RetrievalConfig] = None) -> List[Insight]:
    """
    Take from the top until ``limit`` items or the character budget is hit.

    The first item is always taken, even when it alone exceeds the budget.
    """
    cfg = cfg or RetrievalConfig()
    result: List[Insight] = []
    total_chars = 0
    for insight in ranked:
        if len(result) >= limit:
            break
        size = len(insight.text) + cfg.item_overhead_chars
        if result and total_chars + size > cfg.char_budget:
            break
        total_chars += size
        result.append(insight)
    return result


def rank_insights(
    pool: Iterable[Insight],
    context: Optional[str],
    limit: int = 10,
    *,
    cfg: Optional[RetrievalConfig] = None,
    now: Optional[datetime] = None,
) -> List[Insight]:
    """Score, sort and budget-cap a candidate pool. Expired insights are dropped."""
    cfg = cfg or RetrievalConfig()
    if limit <= 0:
        return []
    scorer = RelevanceScorer(context, cfg, now)
    live = [i for i in pool if i.is_active and not i.is_expired(scorer.now)]
    return select_within_budget(scorer.rank(live), limit, cfg)
