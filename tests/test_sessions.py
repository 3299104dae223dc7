"""
Tests for session segmentation
"""

import pytest

from chatdynamics.sessions import segment_sessions, session_labels

from conftest import BASE_TS, HOUR, MINUTE


@pytest.fixture
def irregular_messages():
    """Messages with a mix of short gaps and long silences."""
    gaps = [0, 1, 5, 7 * 60, 2, 3, 6 * 60, 1, 30, 10 * 60, 1, 1, 24 * 60, 4]
    messages = []
    ts = BASE_TS
    for i, gap in enumerate(gaps):
        ts += gap * MINUTE
        messages.append(("Alice" if i % 3 else "Bob", f"message {i}", ts))
    return messages


def test_seven_hour_gap_splits_two_messages(build_frame, utc_cfg):
    df = build_frame([
        ("Alice", "hey", BASE_TS),
        ("Bob", "sorry, was asleep", BASE_TS + 7 * HOUR),
    ])

    sessions = segment_sessions(df, utc_cfg)

    assert len(sessions) == 2
    assert sessions[0]["initiator"] == "Alice"
    assert sessions[1]["initiator"] == "Bob"


def test_gap_of_exactly_session_gap_stays_together(build_frame, utc_cfg):
    df = build_frame([
        ("Alice", "hey", BASE_TS),
        ("Bob", "hey", BASE_TS + 6 * HOUR),
    ])

    sessions = segment_sessions(df, utc_cfg)

    assert len(sessions) == 1
    assert sessions[0]["closer"] == "Bob"
    assert sessions[0]["participants"] == ["Alice", "Bob"]


def test_sessions_partition_the_stream(build_frame, utc_cfg, irregular_messages):
    df = build_frame(irregular_messages)

    sessions = segment_sessions(df, utc_cfg)

    assert sum(s["message_count"] for s in sessions) == len(df)
    assert sessions[0]["start"] == 0
    assert sessions[-1]["end"] == len(df) - 1
    for prev, curr in zip(sessions, sessions[1:]):
        assert curr["start"] == prev["end"] + 1
        assert curr["start_index"] > prev["end_index"]
        assert curr["start_ts"] - prev["end_ts"] > utc_cfg.session_gap_ms


def test_custom_gap_from_config(build_frame, utc_cfg, irregular_messages):
    df = build_frame(irregular_messages)
    tight = utc_cfg.with_overrides(session_gap_ms=HOUR)

    assert len(segment_sessions(df, tight)) > len(segment_sessions(df, utc_cfg))


def test_labels_match_sessions(build_frame, utc_cfg, irregular_messages):
    df = build_frame(irregular_messages)

    labels = session_labels(df, utc_cfg)
    sessions = segment_sessions(df, utc_cfg)

    assert labels[-1] == len(sessions) - 1
    for session in sessions:
        assert set(labels[session["start"]:session["end"] + 1]) == {session["id"]}


def test_empty_frame_has_no_sessions(build_frame, utc_cfg):
    assert segment_sessions(build_frame([]), utc_cfg) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
