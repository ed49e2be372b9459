"""
Static keyword tables for extraction, category inference and retrieval.

Everything here is immutable and built once at import time.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .schema import CATEGORIES, ExtractionRule, InsightCategory

# Order matters: rules are evaluated top to bottom for every user message.
EXTRACTION_RULES: Tuple[ExtractionRule, ...] = (
    # injuries
    ExtractionRule(
        triggers=(
            "injury", "injured", "hurt", "hurts", "hurting", "pain", "painful",
            "sore", "soreness", "ache", "aching", "strain", "strained", "sprain",
            "torn", "tear", "tendon", "tendonitis", "plantar", "fasciitis",
            "shin splints", "stress fracture", "it band", "itb", "knee pain",
            "hip pain", "ankle", "hamstring", "calf", "achilles", "quad",
        ),
        context_boost=(
            "doctor", "pt", "physical therapy", "rest", "recovery",
            "swollen", "inflamed", "inflammation", "x-ray", "mri", "brace",
        ),
        category="injury",
        base_confidence=0.75,
    ),
    # goals
    ExtractionRule(
        triggers=(
            "goal", "goals", "target", "aiming", "aim", "dream", "aspire",
            "hope to", "want to run", "want to finish", "qualify", "bq",
            "boston qualify", "pr", "personal record", "personal best", "pb",
            "break", "sub-", "under",
        ),
        context_boost=(
            "marathon", "half marathon", "5k", "10k", "race", "time",
            "pace", "minutes", "hours", "boston",
        ),
        category="goal",
        base_confidence=0.7,
    ),
    # race results live under feedback
    ExtractionRule(
        triggers=(
            "ran a", "finished in", "race result", "race went", "crossed the finish",
            "final time", "chip time", "gun time", "placed", "placement", "age group",
            "overall place",
        ),
        context_boost=(
            "marathon", "half", "5k", "10k", "mile", "ultra", "minutes",
            "hours", "seconds", "pr", "pb",
        ),
        category="feedback",
        subcategory="race_result",
        base_confidence=0.85,
    ),
    # general preferences
    ExtractionRule(
        triggers=(
            "prefer", "preference", "favorite", "favourite", "love running",
            "enjoy", "like to run", "like running", "rather", "hate", "dislike",
            "can't stand", "don't like", "avoid",
        ),
        context_boost=(
            "morning", "evening", "afternoon", "night", "treadmill",
            "trail", "road", "track", "alone", "group", "music", "podcast",
            "easy", "hard", "tempo", "interval", "long run", "speed work",
        ),
        category="preference",
        base_confidence=0.7,
    ),
    # time of day / scheduling
    ExtractionRule(
        triggers=(
            "morning run", "evening run", "afternoon run", "run before work",
            "run after work", "lunch run", "early morning", "wake up to run",
        ),
        category="preference",
        subcategory="schedule",
        base_confidence=0.75,
    ),
    # how training felt
    ExtractionRule(
        triggers=(
            "felt great", "felt good", "felt amazing", "felt terrible", "felt awful",
            "felt easy", "felt hard", "too easy", "too hard", "crushed it", "struggled",
            "bonked", "hit the wall", "second wind", "strong finish", "died at the end",
            "legs felt", "breathing was", "heart rate was", "pace felt",
        ),
        context_boost=(
            "workout", "run", "session", "tempo", "interval", "long run",
            "race", "miles", "km",
        ),
        category="feedback",
        subcategory="training",
        base_confidence=0.7,
    ),
    # constraints
    ExtractionRule(
        triggers=(
            "can only", "can't run", "cannot run", "limited to", "max of",
            "only have", "days per week", "times per week", "hours per week",
            "work schedule", "family", "kids", "childcare", "travel", "commute",
            "busy", "time constraint",
        ),
        category="constraint",
        base_confidence=0.75,
    ),
    # observations
    ExtractionRule(
        triggers=(
            "always", "usually", "tend to", "noticed that", "i've noticed",
            "pattern", "every time", "whenever", "consistently",
        ),
        context_boost=(
            "run", "training", "workout", "pace", "heart rate", "sleep",
            "nutrition", "weather", "cold", "hot", "tired", "energized",
        ),
        category="pattern",
        base_confidence=0.65,
    ),
    # personal background lives under preference
    ExtractionRule(
        triggers=(
            "years old", "year old", "my age", "i weigh", "my weight",
            "i'm from", "i live in", "my name", "started running", "been running",
            "running for", "years of experience", "beginner", "intermediate",
            "advanced", "elite", "first marathon", "first race", "new to running",
            "returning from", "coming back from",
        ),
        category="preference",
        subcategory="personal",
        base_confidence=0.8,
    ),
)

# (phrase, confidence); every occurrence of every phrase fires.
DIRECTIVE_PHRASES: Tuple[Tuple[str, float], ...] = (
    ("remember that", 0.92),
    ("remember,", 0.92),
    ("keep in mind", 0.9),
    ("don't forget", 0.9),
    ("important:", 0.88),
    ("note:", 0.85),
    ("fyi", 0.8),
    ("just so you know", 0.82),
    ("for context", 0.78),
)

# Keyword density vote used to classify free text.
CATEGORY_SIGNALS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "injury": (
            "injury", "hurt", "pain", "sore", "ache", "strain", "tendon",
            "plantar", "shin", "fracture", "doctor", "pt", "swollen", "achilles",
        ),
        "goal": (
            "goal", "target", "aim", "qualify", "pr", "pb", "dream", "race",
            "marathon", "sub-", "want to run", "hope to",
        ),
        "feedback": (
            "felt", "workout was", "run was", "session", "crushed", "struggled",
            "bonked", "easy", "hard", "pace was", "finished in", "race result",
        ),
        "preference": (
            "prefer", "like", "love", "hate", "enjoy", "favorite", "avoid",
            "morning", "evening", "trail", "road", "treadmill",
        ),
        "constraint": (
            "can't", "cannot", "only have", "limited", "schedule", "busy",
            "work", "family", "travel", "time constraint", "days per week",
        ),
        "pattern": (
            "always", "usually", "tend to", "notice", "every time", "whenever",
            "consistently", "pattern",
        ),
    }
)

# Lighter vocabulary used at retrieval time to spot a category in a query.
CATEGORY_CONTEXT_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "injury": ("injury", "hurt", "pain", "sore", "ache", "recover"),
        "goal": ("goal", "race", "target", "qualify", "pr", "pb", "time"),
        "preference": ("prefer", "like", "love", "hate", "enjoy", "favorite"),
        "feedback": ("felt", "workout", "session", "hard", "easy", "struggle"),
        "constraint": ("schedule", "time", "busy", "can't", "limited", "only"),
        "pattern": ("always", "usually", "tend", "notice", "pattern"),
    }
)

DEFAULT_CATEGORY: InsightCategory = "preference"


def category_hits(text: Optional[str]) -> dict:
    lower = (text or "").lower()
    return {cat: sum(1 for s in CATEGORY_SIGNALS[cat] if s in lower) for cat in CATEGORIES}


def infer_category(text: Optional[str]) -> InsightCategory:
    """
    Pick the category whose signal keywords occur most often in ``text``.

    Zero hits, or a tie for the top count, resolves to ``preference``.
    """
    hits = category_hits(text)
    best = max(hits.values())
    if best == 0:
        return DEFAULT_CATEGORY
    leaders = [cat for cat, n in hits.items() if n == best]
    if len(leaders) > 1:
        return DEFAULT_CATEGORY
    return leaders[0]  # type: ignore[return-value]


def mentions_category(text: Optional[str], category: str) -> bool:
    lower = (text or "").lower()
    return any(kw in lower for kw in CATEGORY_CONTEXT_KEYWORDS.get(category, ()))
