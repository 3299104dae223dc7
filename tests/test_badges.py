"""
Tests for achievement badges and streaks
"""

import pytest

from chatdynamics.badges import compute_badges, compute_streaks, format_duration_ms

from conftest import BASE_TS, DAY, HOUR, MINUTE

NAMES = ["Alice", "Bob"]


def _person(**overrides):
    metrics = {
        "total_messages": 50,
        "average_message_length": 5.0,
        "emoji_count": 0,
        "unique_emoji": 0,
        "hearts_sent": 0,
        "links_shared": 0,
        "questions_asked": 0,
    }
    metrics.update(overrides)
    return metrics


def _inputs(alice=None, bob=None, silence=None):
    person_metrics = {"Alice": _person(**(alice or {})), "Bob": _person(**(bob or {}))}
    timing = {
        "late_night_messages": {"Alice": 0, "Bob": 0},
        "conversation_initiations": {"Alice": 0, "Bob": 0},
        "per_person": {name: {"sample_size": 0, "median_response_time_ms": 0.0} for name in NAMES},
        "longest_silence": silence or {"duration_ms": 0, "last_sender": None, "next_sender": None},
    }
    engagement = {"double_texts": {"Alice": 0, "Bob": 0}}
    patterns = {"heatmap": {"per_person": {name: [[0] * 24 for _ in range(7)] for name in NAMES}}}
    return person_metrics, timing, engagement, patterns


def _holders(badges, badge_id):
    return [b["holder"] for b in badges if b["id"] == badge_id]


def test_format_duration():
    assert format_duration_ms(45_000) == "45s"
    assert format_duration_ms(12 * MINUTE) == "12m"
    assert format_duration_ms(3 * HOUR + 20 * MINUTE) == "3h 20m"
    assert format_duration_ms(4 * DAY) == "4 days"


def test_quiet_conversation_earns_nothing(utc_cfg):
    assert compute_badges(*_inputs(), {}, NAMES, utc_cfg) == []


def test_several_people_can_hold_a_badge(utc_cfg):
    inputs = _inputs(alice={"questions_asked": 30}, bob={"questions_asked": 25})

    badges = compute_badges(*inputs, {}, NAMES, utc_cfg)

    assert _holders(badges, "question-master") == ["Alice", "Bob"]
    assert badges[0]["name"] == "Question Master"
    assert badges[0]["evidence"] == "Asked 30 questions"


def test_raising_a_count_never_removes_a_badge(utc_cfg):
    held = []
    for hearts in (5, 10, 50, 500):
        badges = compute_badges(*_inputs(alice={"hearts_sent": hearts}), {}, NAMES, utc_cfg)
        held.append("Alice" in _holders(badges, "heart-bomber"))

    assert held == [False, True, True, True]


def test_timing_badges(utc_cfg):
    person_metrics, timing, engagement, patterns = _inputs(
        silence={"duration_ms": 4 * DAY, "last_sender": "Bob", "next_sender": "Alice"}
    )
    timing["late_night_messages"]["Alice"] = 12
    timing["per_person"]["Bob"] = {"sample_size": 20, "median_response_time_ms": 30_000}
    patterns["heatmap"]["per_person"]["Alice"][2][6] = 10

    badges = compute_badges(person_metrics, timing, engagement, patterns, {}, NAMES, utc_cfg)

    assert _holders(badges, "night-owl") == ["Alice"]
    assert _holders(badges, "early-bird") == ["Alice"]
    assert _holders(badges, "speed-demon") == ["Bob"]
    assert _holders(badges, "ghost-champion") == ["Bob"]
    ghost = next(b for b in badges if b["id"] == "ghost-champion")
    assert ghost["evidence"] == "Sent the last message before a 4 days silence"


def test_badge_order_follows_catalogue(utc_cfg):
    inputs = _inputs(alice={"links_shared": 10}, bob={"average_message_length": 20.0})

    badges = compute_badges(*inputs, {"Alice": 15}, NAMES, utc_cfg)

    assert [b["id"] for b in badges] == ["novelist", "link-lord", "streak-master"]


def test_streak_needs_more_than_two_weeks(utc_cfg):
    badges = compute_badges(*_inputs(), {"Alice": 14, "Bob": 15}, NAMES, utc_cfg)

    assert _holders(badges, "streak-master") == ["Bob"]


def test_threshold_override(utc_cfg):
    thresholds = dict(utc_cfg.badge_thresholds, link_lord_min_links=2)
    cfg = utc_cfg.with_overrides(badge_thresholds=thresholds)

    badges = compute_badges(*_inputs(bob={"links_shared": 3}), {}, NAMES, cfg)

    assert _holders(badges, "link-lord") == ["Bob"]


def test_compute_streaks(build_frame):
    messages = [
        ("Alice", "day one", BASE_TS + 10 * HOUR),
        ("Alice", "day two", BASE_TS + DAY + 10 * HOUR),
        ("Alice", "day two again", BASE_TS + DAY + 11 * HOUR),
        ("Alice", "day three", BASE_TS + 2 * DAY + 10 * HOUR),
        ("Alice", "after a gap", BASE_TS + 4 * DAY + 10 * HOUR),
        ("Bob", "once", BASE_TS + 3 * DAY),
    ]

    assert compute_streaks(build_frame(messages), NAMES) == {"Alice": 3, "Bob": 1}


def test_streaks_of_empty_frame(build_frame):
    assert compute_streaks(build_frame([]), NAMES) == {"Alice": 0, "Bob": 0}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
