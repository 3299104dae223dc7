"""
End-to-end tests for the analysis pipeline
"""

import pytest

from chatdynamics import run_analysis
from chatdynamics.delta import compare_analyses
from chatdynamics.config import DEFAULT_CONFIG
from chatdynamics.models import ParsedConversation, Reaction, is_insufficient

from conftest import BASE_TS, DAY, HOUR, MINUTE, make_conversation

RESULT_KEYS = {
    "fingerprint", "analyzed_at", "participants", "metadata", "sessions", "per_person",
    "timing", "engagement", "patterns", "conflicts", "pursuit_withdrawal", "reciprocity",
    "streaks", "badges", "viral_scores", "threat_meters", "horsemen", "catchphrases",
    "best_time_to_text", "notable_quotes", "language_style", "chronotype", "rankings",
}


def _four_month_chat(days=120):
    messages = []
    for day in range(days):
        morning = BASE_TS + day * DAY + 9 * HOUR
        reply = (day % 7 + 1) * MINUTE
        messages += [
            ("Alice", "good morning, how did you sleep?", morning),
            ("Bob", "pretty well thanks, coffee later?", morning + reply,
             {"reactions": (Reaction("❤️", "Alice"),)}),
            ("Alice", "coffee later sounds perfect", morning + reply + 2 * MINUTE),
            ("Bob", "see you at noon", morning + reply + 3 * MINUTE),
        ]
        evening = BASE_TS + day * DAY + 21 * HOUR
        messages += [
            ("Bob", "miss you already tonight", evening),
            ("Alice", "i miss you too, sleep well", evening + 4 * MINUTE),
        ]
    return make_conversation(messages)


@pytest.fixture(scope="module")
def conversation():
    return _four_month_chat()


@pytest.fixture(scope="module")
def result(conversation):
    cfg = DEFAULT_CONFIG.with_overrides(timezone="UTC")
    return run_analysis(conversation, cfg)


def test_result_shape(result):
    assert set(result) == RESULT_KEYS
    assert result["participants"] == ["Alice", "Bob"]


def test_metadata(result):
    metadata = result["metadata"]

    assert metadata["total_messages"] == 720
    assert metadata["months"] == 4
    assert metadata["duration_days"] == 120
    assert metadata["is_group"] is False
    assert metadata["date_range"]["start"] == BASE_TS + 9 * HOUR


def test_sessions_split_morning_and_evening(result):
    assert len(result["sessions"]) == 240
    assert result["timing"]["conversation_initiations"] == {"Alice": 120, "Bob": 120}


def test_scores_are_populated(result):
    viral = result["viral_scores"]
    assert not is_insufficient(viral["ghost_risk"]["Alice"])
    assert 0 <= viral["compatibility_score"] <= 100

    meters = {m["id"]: m for m in result["threat_meters"]["meters"]}
    assert list(meters) == ["ghost_risk", "codependency", "power_imbalance", "trust"]
    assert meters["ghost_risk"]["sufficient"] is True
    assert meters["trust"]["polarity"] == "health"

    assert result["streaks"] == {"Alice": 120, "Bob": 120}
    assert "streak-master" in {b["id"] for b in result["badges"]}


def test_catchphrases_and_quotes(result):
    shared = {s["phrase"] for s in result["catchphrases"]["shared"]}
    assert "coffee later" in shared
    assert len(result["notable_quotes"]["Alice"]) == 5
    assert result["best_time_to_text"]["Alice"]["best_hour"] == 9


def test_style_and_rhythm(result):
    assert result["language_style"]["sufficient"] is True
    assert 0 <= result["language_style"]["score"] <= 100

    chronotype = result["chronotype"]
    assert chronotype["delta_hours"] == 0.0
    assert chronotype["score"] == 95
    assert chronotype["persons"]["Alice"]["peak_hour"] == 9


def test_horsemen_without_confidences_is_insufficient(result):
    assert is_insufficient(result["horsemen"])


def test_horsemen_with_confidences(conversation, utc_cfg):
    result = run_analysis(conversation, utc_cfg, pattern_confidences={"control": 80, "self_focused": 80})

    assert result["horsemen"]["sufficient"] is True
    assert result["horsemen"]["active_count"] == 1


def test_analysis_is_deterministic(conversation, utc_cfg):
    assert run_analysis(conversation, utc_cfg) == run_analysis(conversation, utc_cfg)


def test_parallel_matches_sequential(conversation, utc_cfg):
    sequential = run_analysis(conversation, utc_cfg)
    parallel = run_analysis(conversation, utc_cfg, max_workers=2)

    assert parallel == sequential


def test_dict_input(utc_cfg):
    data = {
        "platform": "test",
        "participants": [{"name": "Alice"}, {"name": "Bob"}],
        "messages": [
            {"index": 0, "sender": "Alice", "content": "hi", "timestamp": BASE_TS},
            {"index": 1, "sender": "Bob", "content": "hey", "timestamp": BASE_TS + MINUTE},
        ],
    }

    result = run_analysis(data, utc_cfg)

    assert result["metadata"]["total_messages"] == 2
    assert result["metadata"]["duration_days"] == 1


def test_empty_conversation(utc_cfg):
    result = run_analysis(make_conversation([]), utc_cfg)

    assert result["metadata"]["total_messages"] == 0
    assert result["metadata"]["duration_days"] == 0
    assert result["sessions"] == []
    assert result["badges"] == []
    assert is_insufficient(result["viral_scores"]["ghost_risk"]["Alice"])
    assert result["rankings"]["lognormal"] == []
    assert is_insufficient(result["language_style"])
    assert is_insufficient(result["chronotype"])


def test_media_only_conversation(utc_cfg):
    messages = [
        (("Alice", "Bob")[i % 2], "", BASE_TS + i * MINUTE, {"type": "media"})
        for i in range(30)
    ]

    result = run_analysis(make_conversation(messages), utc_cfg)

    assert result["metadata"]["total_messages"] == 30
    assert result["per_person"]["Alice"]["media_shared"] == 15
    sentiment = result["patterns"]["trends"]["sentiment_trend"]
    assert sentiment == [{"month": "2024-01", "per_person": {"Alice": 0.0, "Bob": 0.0}}]
    assert result["conflicts"]["sufficient"] is True


def test_system_only_conversation(utc_cfg):
    messages = [("WhatsApp", "Messages are end-to-end encrypted", BASE_TS + i * MINUTE,
                 {"type": "system"}) for i in range(5)]

    result = run_analysis(make_conversation(messages), utc_cfg)

    assert result["participants"] == ["Alice", "Bob"]
    assert result["metadata"]["total_messages"] == 5
    assert result["streaks"] == {"Alice": 0, "Bob": 0}
    assert result["conflicts"]["sufficient"] is False


def test_invalid_config_is_rejected(utc_cfg):
    with pytest.raises(ValueError):
        run_analysis(make_conversation([]), utc_cfg.with_overrides(session_gap_ms=0))


def test_reanalysis_delta(conversation, utc_cfg):
    first_half = ParsedConversation(
        platform=conversation.platform,
        participants=conversation.participants,
        messages=conversation.messages[:360],
    )
    previous = run_analysis(first_half, utc_cfg, analyzed_at=BASE_TS)
    current = run_analysis(conversation, utc_cfg, analyzed_at=BASE_TS + 60 * DAY)

    comparison = compare_analyses(previous, current)

    totals = next(m for m in comparison["metrics"] if m["key"] == "total_messages")
    assert totals["delta"] == 360
    assert totals["is_improvement"] is True
    assert comparison["days_since"] == 60


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
