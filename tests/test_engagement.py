"""
Tests for per-person metrics, engagement and activity patterns
"""

import pandas as pd
import pytest

from chatdynamics.engagement import compute_engagement, compute_person_metrics
from chatdynamics.models import Reaction
from chatdynamics.patterns import compute_patterns, detect_bursts
from chatdynamics.sessions import segment_sessions

from conftest import BASE_TS, DAY, HOUR, MINUTE

NAMES = ["Alice", "Bob"]


@pytest.fixture
def reaction_chat():
    return [
        ("Alice", "hi ❤️", BASE_TS,
         {"reactions": (Reaction("\U0001F602", "Bob"), Reaction("\U0001F44D", "Alice"))}),
        ("Alice", "you there?", BASE_TS + MINUTE),
        ("Bob", "yes", BASE_TS + 2 * MINUTE, {"reactions": (Reaction("❤️", "Alice"),)}),
        ("Bob", "sorry", BASE_TS + 3 * MINUTE),
        ("Bob", "was busy", BASE_TS + 4 * MINUTE),
        ("Alice", "ok", BASE_TS + 5 * MINUTE),
    ]


@pytest.fixture
def analyzed(build_frame, utc_cfg, reaction_chat):
    df = build_frame(reaction_chat)
    sessions = segment_sessions(df, utc_cfg)
    person = compute_person_metrics(df, NAMES, utc_cfg)
    return df, sessions, person


# ============================================================================
# PERSON METRICS
# ============================================================================

def test_person_metrics_counts(analyzed):
    _, _, person = analyzed

    alice = person["Alice"]
    assert alice["total_messages"] == 3
    assert alice["questions_asked"] == 1
    assert alice["emoji_count"] == 1
    assert person["Bob"]["total_words"] == 4


def test_reactions_on_own_messages_are_ignored(analyzed):
    _, _, person = analyzed

    assert person["Alice"]["reactions_given"] == 1
    assert person["Alice"]["reactions_received"] == 1
    assert person["Bob"]["reactions_given"] == 1


def test_hearts_sent_counts_text_and_reactions(analyzed):
    _, _, person = analyzed

    assert person["Alice"]["hearts_sent"] == 2
    assert person["Bob"]["hearts_sent"] == 0


# ============================================================================
# ENGAGEMENT
# ============================================================================

def test_double_texts_count_once_per_run(analyzed):
    df, sessions, person = analyzed

    engagement = compute_engagement(df, sessions, NAMES, person)

    assert engagement["double_texts"] == {"Alice": 1, "Bob": 1}
    assert engagement["max_consecutive"] == {"Alice": 2, "Bob": 3}
    assert engagement["message_ratio"]["Alice"] == pytest.approx(0.5)
    assert engagement["reaction_receive_rate"]["Bob"] == pytest.approx(1 / 3)
    assert engagement["total_sessions"] == 1
    assert engagement["avg_conversation_length"] == pytest.approx(6.0)


def test_empty_engagement(build_frame, utc_cfg):
    df = build_frame([])
    person = compute_person_metrics(df, NAMES, utc_cfg)

    engagement = compute_engagement(df, [], NAMES, person)

    assert person["Alice"]["total_messages"] == 0
    assert engagement["double_texts"] == {"Alice": 0, "Bob": 0}
    assert engagement["message_ratio"] == {"Alice": 0.0, "Bob": 0.0}


# ============================================================================
# PATTERNS
# ============================================================================

def test_heatmap_and_monthly_volume(analyzed, utc_cfg):
    df, sessions, _ = analyzed

    patterns = compute_patterns(df, sessions, NAMES, utc_cfg)

    # Monday 00:00 UTC
    assert patterns["heatmap"]["combined"][0][0] == 6
    assert patterns["heatmap"]["per_person"]["Bob"][0][0] == 3
    assert patterns["monthly_volume"] == [
        {"month": "2024-01", "per_person": {"Alice": 3, "Bob": 3}, "total": 6}
    ]
    assert patterns["weekday_weekend"]["Alice"] == {"weekday": 3, "weekend": 0}
    assert patterns["trends"]["initiation_trend"][0]["per_person"] == {"Alice": 1.0, "Bob": 0.0}


def test_weekend_split(build_frame, utc_cfg):
    # 2024-01-06 is a Saturday
    df = build_frame([
        ("Alice", "weekend plans?", BASE_TS + 5 * DAY + 10 * HOUR),
        ("Bob", "hiking", BASE_TS + 5 * DAY + 10 * HOUR + MINUTE),
    ])

    patterns = compute_patterns(df, segment_sessions(df, utc_cfg), NAMES, utc_cfg)

    assert patterns["weekday_weekend"]["Alice"] == {"weekday": 0, "weekend": 1}
    assert patterns["heatmap"]["combined"][5][10] == 2


def test_detect_bursts(utc_cfg):
    days = [f"2024-01-{d:02d}" for d in range(1, 9)]
    counts = pd.Series([2, 2, 2, 2, 2, 2, 2, 20], index=days)

    bursts = detect_bursts(counts, utc_cfg)

    assert bursts == [
        {"start_date": "2024-01-08", "end_date": "2024-01-08", "message_count": 20, "avg_daily": 20.0}
    ]


def test_bursts_need_enough_active_days(utc_cfg):
    counts = pd.Series([1, 50], index=["2024-01-01", "2024-01-02"])

    assert detect_bursts(counts, utc_cfg) == []


def test_empty_patterns(build_frame, utc_cfg):
    patterns = compute_patterns(build_frame([]), [], NAMES, utc_cfg)

    assert patterns["monthly_volume"] == []
    assert patterns["bursts"] == []
    assert len(patterns["heatmap"]["combined"]) == 7


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
