from __future__ import annotations

import logging
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from coachmem.config.settings import DedupConfig, ExtractionConfig

from .parsers.common import STRUCTURED_PARSERS, run_structured_parsers
from .parsers.types import StructuredParser
from .rules import DIRECTIVE_PHRASES, EXTRACTION_RULES, infer_category
from .schema import ChatMessage, ExtractionRule, InsightCandidate, coerce_messages
from .text import clip, content_words, context_window, jaccard

logger = logging.getLogger(__name__)

MessageLike = Union[ChatMessage, Mapping[str, Any]]

_DIRECTIVE_END = re.compile(r"[.!?](?!\d)|\n")
_LEADING_PUNCT = re.compile(r"^[\s:;,\-]+")


def rule_confidence(rule: ExtractionRule, text: str, cfg: ExtractionConfig) -> float:
    """base + capped boost-phrase bonus + short-message bonus, capped overall."""
    lower = text.lower()
    confidence = rule.base_confidence
    if rule.context_boost:
        hits = sum(1 for kw in rule.context_boost if kw in lower)
        confidence += min(hits * cfg.boost_step, cfg.boost_cap)
    if len(text) < cfg.short_message_chars:
        confidence += cfg.short_message_bonus
    return min(confidence, cfg.confidence_cap)


def _first_trigger(rule: ExtractionRule, lower: str) -> Optional[Tuple[str, int]]:
    for trigger in rule.triggers:
        idx = lower.find(trigger)
        if idx != -1:
            return trigger, idx
    return None


def extract_rule_hits(
    text: str,
    subject_id: str,
    cfg: Optional[ExtractionConfig] = None,
    rules: Sequence[ExtractionRule] = EXTRACTION_RULES,
) -> List[InsightCandidate]:
    """Keyword rules; at most one candidate per rule for a given message."""
    cfg = cfg or ExtractionConfig()
    if not text:
        return []
    lower = text.lower()
    out: List[InsightCandidate] = []

    for rule in rules:
        hit = _first_trigger(rule, lower)
        if hit is None:
            continue
        trigger, idx = hit
        window = context_window(text, idx, cfg.max_window_chars)
        if len(window) < cfg.min_window_chars:
            continue
        out.append(
            InsightCandidate(
                subject_id=subject_id,
                category=rule.category,
                subcategory=rule.subcategory,
                text=window,
                confidence=rule_confidence(rule, text, cfg),
                source="inferred",
                extracted_from=clip(text, cfg.excerpt_chars),
                metadata={"trigger": trigger, "subcategory": rule.subcategory},
                origin="rule",
            )
        )
    return out


def _directive_text(after: str, cfg: ExtractionConfig) -> str:
    after = _LEADING_PUNCT.sub("", after)
    m = _DIRECTIVE_END.search(after)
    if m:
        after = after[: m.start()]
    return after[: cfg.max_window_chars].strip()


def extract_directives(
    text: str,
    subject_id: str,
    cfg: Optional[ExtractionConfig] = None,
    phrases: Sequence[Tuple[str, float]] = DIRECTIVE_PHRASES,
) -> List[InsightCandidate]:
    """'remember that ...' style statements; every occurrence of every phrase fires."""
    cfg = cfg or ExtractionConfig()
    if not text:
        return []
    lower = text.lower()
    out: List[InsightCandidate] = []

    for phrase, confidence in phrases:
        start = lower.find(phrase)
        while start != -1:
            insight_text = _directive_text(text[start + len(phrase):], cfg)
            if len(insight_text) >= cfg.min_directive_chars:
                out.append(
                    InsightCandidate(
                        subject_id=subject_id,
                        category=infer_category(insight_text),
                        text=insight_text,
                        confidence=confidence,
                        source="explicit",
                        extracted_from=clip(text, cfg.excerpt_chars),
                        metadata={"directive": phrase},
                        origin="directive",
                    )
                )
            start = lower.find(phrase, start + len(phrase))
    return out


def extract_structured(
    text: str,
    subject_id: str,
    cfg: Optional[ExtractionConfig] = None,
    parsers: Sequence[Tuple[str, StructuredParser]] = STRUCTURED_PARSERS,
) -> List[InsightCandidate]:
    cfg = cfg or ExtractionConfig()
    if not text:
        return []
    out: List[InsightCandidate] = []
    for match in run_structured_parsers(text, parsers):
        out.append(
            InsightCandidate(
                subject_id=subject_id,
                category=match.category,
                subcategory=match.subcategory,
                text=context_window(text, match.index, cfg.max_window_chars),
                confidence=match.confidence,
                source="inferred",
                extracted_from=clip(text, cfg.excerpt_chars),
                metadata=dict(match.metadata),
                origin="structured",
            )
        )
    return out


def _rank(candidate: InsightCandidate) -> Tuple[bool, float, int]:
    # Parsed values outrank a keyword hit on the same sentence.
    return (candidate.origin == "structured", candidate.confidence, len(candidate.text))


def dedupe_batch(
    candidates: Iterable[InsightCandidate],
    threshold: float = 0.6,
) -> List[InsightCandidate]:
    """
    Greedy in-batch dedup.

    Each candidate is compared with already accepted candidates of the same
    category. At ``threshold`` or above the two are the same fact and only the
    better one survives (structured parse, then confidence, then longer text);
    otherwise the candidate is accepted.
    """
    accepted: List[InsightCandidate] = []
    accepted_words: List[frozenset] = []

    for candidate in candidates:
        words = content_words(candidate.text)
        duplicate = False
        for i, existing in enumerate(accepted):
            if existing.category != candidate.category:
                continue
            if jaccard(words, accepted_words[i]) >= threshold:
                duplicate = True
                if _rank(candidate) > _rank(existing):
                    accepted[i] = candidate
                    accepted_words[i] = words
                logger.debug("collapsed duplicate %s insight: %r", candidate.category, candidate.text[:60])
                break
        if not duplicate:
            accepted.append(candidate)
            accepted_words.append(words)

    return accepted


def extract_insights(
    messages: Iterable[MessageLike],
    subject_id: str,
    *,
    extraction: Optional[ExtractionConfig] = None,
    dedup: Optional[DedupConfig] = None,
) -> List[InsightCandidate]:
    """
    Extract candidate insights from the user messages of a conversation.

    Runs keyword rules, explicit directives and structured parsers on every
    user message, then collapses near-duplicates within the batch. Assistant
    and other roles are skipped.
    """
    extraction = extraction or ExtractionConfig()
    dedup = dedup or DedupConfig()

    raw: List[InsightCandidate] = []
    for message in coerce_messages(messages):
        if message.role != "user" or not message.content:
            continue
        text = message.content
        found = (
            extract_rule_hits(text, subject_id, extraction)
            + extract_directives(text, subject_id, extraction)
            + extract_structured(text, subject_id, extraction)
        )
        logger.debug("message yielded %d raw insight(s)", len(found))
        raw.extend(found)

    deduped = dedupe_batch(raw, dedup.batch_threshold)
    if raw:
        logger.debug("extracted %d insight(s), %d after dedup", len(raw), len(deduped))
    return deduped
