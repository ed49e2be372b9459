from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from coachmem.memory.integration import (
    build_enhanced_coach_prompt,
    build_memory_context,
    confidence_marker,
    detect_conflicts,
    recall_relevant_context,
)
from coachmem.memory.schema import Insight, InsightCandidate

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _insight(i, text, category, confidence, source="inferred"):
    return Insight(
        id=i,
        subject_id="a",
        category=category,
        text=text,
        confidence=confidence,
        source=source,
        created_at=NOW,
        last_validated=NOW,
    )


def test_confidence_marker():
    assert confidence_marker(0.92) == "✓"
    assert confidence_marker(0.8) == "?"
    assert confidence_marker(0.61) == "?"
    assert confidence_marker(0.6) == "~"


def test_build_memory_context_groups_by_category():
    block = build_memory_context(
        [
            _insight(1, "left knee pain", "injury", 0.85),
            _insight(2, "only runs mornings", "preference", 0.92, source="explicit"),
            _insight(3, "sore calves", "injury", 0.5),
        ]
    )
    assert block == (
        "\n\n**Relevant Information About This Athlete:**\n"
        "\nInjurys:\n"
        "- ✓ left knee pain\n"
        "- ~ sore calves\n"
        "\nPreferences:\n"
        "- ✓ only runs mornings [stated directly]\n"
    )


def test_build_memory_context_empty():
    assert build_memory_context([]) == ""


def test_enhanced_prompt_appends_memory(memory):
    memory.store_insights(
        [InsightCandidate(subject_id="a", category="injury", text="left knee hurts on downhills", confidence=0.8)]
    )
    prompt = build_enhanced_coach_prompt(memory, "You are a coach.", "a", "my knee")
    assert prompt.startswith("You are a coach.\n\n**Relevant Information About This Athlete:**")
    assert "left knee hurts on downhills" in prompt

    assert build_enhanced_coach_prompt(memory, "You are a coach.", "nobody", "my knee") == "You are a coach."


def test_recall_relevant_context(memory):
    memory.store_insights(
        [InsightCandidate(subject_id="a", category="goal", text="wants a sub-4 marathon", confidence=0.8)]
    )
    later = datetime.now(timezone.utc) + timedelta(days=3)
    out = recall_relevant_context(memory, "a", "marathon goal", now=later)

    assert out["relevant_memories"] == ["wants a sub-4 marathon (3d ago, 80% confidence)"]
    assert out["last_interaction"] is None

    convo = [{"role": "user", "content": "I prefer hills"}, {"role": "assistant", "content": "I will add hills"}] * 3
    memory.store_conversation_summary("a", convo, today=date(2024, 6, 1))
    assert recall_relevant_context(memory, "a", "marathon")["last_interaction"].startswith("**Decisions Made:**")


def test_detect_conflicts():
    existing = [
        {"insight": "prefers evening runs", "category": "preference"},
        {"insight": "I cannot run on Mondays", "category": "constraint"},
        _insight(3, "tempo felt easy", "feedback", 0.7),
    ]
    conflicts = detect_conflicts("I like morning runs and hard tempo", existing)

    assert len(conflicts) == 2
    assert all(c["severity"] == "major" for c in conflicts)
    assert "prefers evening runs" in conflicts[0]["conflict"]
    assert "tempo felt easy" in conflicts[1]["conflict"]


def test_detect_conflicts_matches_whole_words():
    assert detect_conflicts("I can run Mondays", [{"insight": "I cannot run Mondays"}])
    assert detect_conflicts("I cannot run Mondays", [{"insight": "I cannot run Tuesdays"}]) == []
