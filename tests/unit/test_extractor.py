from __future__ import annotations

from coachmem.config.settings import ExtractionConfig
from coachmem.memory.extractor import (
    dedupe_batch,
    extract_directives,
    extract_insights,
    extract_rule_hits,
    extract_structured,
    rule_confidence,
)
from coachmem.memory.rules import EXTRACTION_RULES
from coachmem.memory.schema import ChatMessage


def _user(text):
    return {"role": "user", "content": text}


def test_injury_and_goal_from_one_message():
    msgs = [_user("My left knee has been hurting for two weeks and I want to qualify for Boston")]
    insights = extract_insights(msgs, "athlete-1")
    by_category = {i.category: i for i in insights}

    assert {"injury", "goal"} <= set(by_category)
    goal = by_category["goal"]
    # base 0.7 + "boston" boost + short-message bonus
    assert abs(goal.confidence - 0.80) < 1e-9
    assert goal.metadata["trigger"] == "qualify"


def test_remember_that_directive_is_explicit_preference():
    insights = extract_insights([_user("remember that I only run in the mornings")], "athlete-1")

    assert len(insights) == 1
    insight = insights[0]
    assert insight.source == "explicit"
    assert insight.confidence == 0.92
    assert insight.category == "preference"
    assert insight.text == "I only run in the mornings"


def test_race_result_is_parsed_with_time():
    insights = extract_insights([_user("I ran a marathon in 3:45:22")], "athlete-1")

    assert len(insights) == 1
    insight = insights[0]
    assert insight.category == "feedback"
    assert insight.subcategory == "race_result"
    assert insight.confidence == 0.92
    assert insight.metadata["time"] == "3:45:22"
    assert insight.metadata["distance"] == "marathon"


def test_weekly_mileage_is_parsed():
    found = extract_structured("Lately I'm averaging about 35 miles per week", "athlete-1")

    assert len(found) == 1
    assert found[0].category == "pattern"
    assert found[0].subcategory == "mileage"
    assert found[0].confidence == 0.82
    assert found[0].metadata == {"type": "weekly_mileage", "value": 35, "unit": "mi"}


def test_rule_confidence_stays_within_bounds():
    cfg = ExtractionConfig()
    long_tail = " filler" * 40
    for rule in EXTRACTION_RULES:
        trigger = rule.triggers[0]
        for text in (f"Today {trigger} again, no big deal", f"Today {trigger} again{long_tail}"):
            hits = [c for c in extract_rule_hits(text, "s", cfg, rules=(rule,))]
            assert hits, (rule.category, trigger)
            assert rule.base_confidence <= hits[0].confidence <= 0.95


def test_rule_confidence_boost_is_capped():
    injury = EXTRACTION_RULES[0]
    text = "doctor pt rest recovery swollen mri brace " * 5
    cfg = ExtractionConfig()
    # long message: no short bonus, boost capped at 0.15
    assert abs(rule_confidence(injury, text, cfg) - 0.90) < 1e-9


def test_only_first_trigger_per_rule_fires():
    text = "My ankle is sore and my calf is sore too."
    hits = [c for c in extract_rule_hits(text, "s") if c.category == "injury"]
    assert len(hits) == 1


def test_short_windows_are_discarded():
    assert extract_rule_hits("pain.", "s") == []


def test_every_directive_phrase_fires():
    text = "Note: my long run is on Sundays. Also fyi I work night shifts at the hospital."
    found = extract_directives(text, "s")

    assert [c.metadata["directive"] for c in found] == ["note:", "fyi"]
    assert found[0].text == "my long run is on Sundays"
    assert found[0].confidence == 0.85
    assert found[1].confidence == 0.8


def test_tiny_directive_text_is_dropped():
    assert extract_directives("fyi ok.", "s") == []


def test_assistant_messages_are_ignored():
    msgs = [ChatMessage(role="assistant", content="Remember that your knee pain needs rest.")]
    assert extract_insights(msgs, "s") == []


def test_roles_other_than_user_and_assistant_coerce_to_unknown():
    assert ChatMessage.coerce({"role": " User ", "content": "hi"}).role == "user"
    assert ChatMessage.coerce({"role": "System", "content": "be brief"}).role == "unknown"
    assert ChatMessage.coerce({"role": "tool", "content": "{}"}).role == "unknown"
    assert ChatMessage.coerce({"content": "no role"}).role == "unknown"


def test_system_messages_are_not_mined():
    msgs = [{"role": "system", "content": "Remember that the athlete has knee pain."}]
    assert extract_insights(msgs, "s") == []


def test_empty_and_junk_input_yield_nothing():
    assert extract_insights([], "s") == []
    assert extract_insights([_user(""), _user("   "), _user("ok")], "s") == []
    assert extract_insights([{"role": "user", "content": None}], "s") == []


def test_rerunning_on_same_messages_does_not_grow():
    msgs = [
        _user("My left knee has been hurting for two weeks and I want to qualify for Boston"),
        _user("I prefer trail runs in the morning. I can only train four days per week."),
    ]
    once = extract_insights(msgs, "s")
    twice = extract_insights(msgs + msgs, "s")

    assert len(once) == len(extract_insights(msgs, "s"))
    assert len(twice) == len(once)


def test_dedupe_batch_keeps_higher_confidence():
    from coachmem.memory.schema import InsightCandidate

    low = InsightCandidate(subject_id="s", category="injury", text="sore knee after hills", confidence=0.7)
    high = InsightCandidate(subject_id="s", category="injury", text="sore knee after hills", confidence=0.9)
    assert dedupe_batch([low, high]) == [high]
    assert dedupe_batch([high, low]) == [high]
