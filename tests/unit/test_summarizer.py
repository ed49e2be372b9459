from __future__ import annotations

from datetime import date

import pytest

from coachmem.config.settings import SummaryConfig
from coachmem.core.errors import ValidationError
from coachmem.memory.summarizer import (
    NOTHING_TO_CONSOLIDATE,
    auto_summarize_conversation,
    build_conversation_summary,
    consolidate_conversation,
    tag_message,
)

MESSAGES = [
    {"role": "user", "content": "I decided to sign up for the Chicago marathon."},
    {"role": "assistant", "content": "Great, I will build you an 18 week plan."},
    {"role": "user", "content": "I prefer running early."},
    {"role": "user", "content": "Yesterday I completed 10 miles."},
]


def test_consolidate_all_buckets():
    assert consolidate_conversation(MESSAGES) == (
        "**Decisions Made:**\n"
        "- I decided to sign up for the Chicago marathon.\n"
        "- Great, I will build you an 18 week plan.\n\n"
        "**Preferences Noted:**\n"
        "- I prefer running early.\n\n"
        "**Training Progress:**\n"
        "- Yesterday I completed 10 miles.\n\n"
    )


def test_consolidate_single_focus():
    assert consolidate_conversation(MESSAGES, "preferences") == "**Preferences Noted:**\n- I prefer running early.\n\n"


def test_consolidate_truncates_lines():
    text = "I decided " + "x" * 200
    out = consolidate_conversation([{"role": "user", "content": text}], "decisions")
    assert f"- {text[:100]}\n" in out


def test_consolidate_sentinel_and_bad_focus():
    assert consolidate_conversation([{"role": "user", "content": "hello there"}]) == NOTHING_TO_CONSOLIDATE
    assert consolidate_conversation([]) == NOTHING_TO_CONSOLIDATE
    with pytest.raises(ValidationError):
        consolidate_conversation(MESSAGES, "summary")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("My achilles is sore after the fartlek", ["injury", "workout"]),
        ("Need to reschedule, I'm travelling", ["schedule"]),
        ("Took a gel and electrolyte tabs", ["nutrition"]),
        ("", []),
        (None, []),
    ],
)
def test_tag_message(text, expected):
    assert tag_message(text) == expected


def test_build_summary_caps_lists():
    msgs = []
    for i in range(10):
        msgs.append({"role": "user", "content": f"I prefer hills {i}. " + "z" * 300})
        msgs.append({"role": "assistant", "content": f"I'll add hill repeats on day {i}."})

    summary = build_conversation_summary("a", msgs, today=date(2024, 6, 1), cfg=SummaryConfig())

    assert summary.message_count == 20
    assert summary.conversation_date == date(2024, 6, 1)
    assert len(summary.key_preferences) == 8
    assert all(len(p) <= 160 for p in summary.key_preferences)
    assert len(summary.key_decisions) == 8
    assert summary.key_feedback == []
    assert "workout" in summary.tags
    assert len(summary.tags) <= 12


def test_build_summary_requires_minimum_messages():
    assert build_conversation_summary("a", MESSAGES) is None


def test_auto_summarize_conversation():
    msgs = [
        {"role": "user", "content": "My shins hurt after tempo runs."},
        {"role": "assistant", "content": "I'll lower your tempo volume. I recommend new shoes this month."},
        {"role": "assistant", "content": "I suggest icing after runs!"},
    ]
    out = auto_summarize_conversation(msgs)

    assert out["suggested_actions"] == ["lower your tempo volume"]
    assert out["key_points"] == [
        "Recommendation: new shoes this month",
        "Recommendation: icing after runs",
    ]
    assert out["summary"].endswith("\n**Topics Discussed:** injury, workout, gear")
