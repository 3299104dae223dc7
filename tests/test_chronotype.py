"""
Tests for chronotype compatibility
"""

import pytest

from chatdynamics.chronotype import (
    chronotype_category,
    circular_delta,
    circular_midpoint,
    compute_chronotype,
    jet_lag_level,
    match_score,
    peak_hour,
)
from chatdynamics.models import is_insufficient

from conftest import BASE_TS, DAY, HOUR, MINUTE

NAMES = ["Alice", "Bob"]


def _at_hour(sender, hour, count=20, day=0):
    start = BASE_TS + day * DAY + hour * HOUR
    return [(sender, "hello there", start + i * MINUTE) for i in range(count)]


def _single_hour(hour):
    hourly = [0] * 24
    hourly[hour] = 5
    return hourly


# ============================================================================
# HELPERS
# ============================================================================

def test_circular_midpoint():
    assert circular_midpoint(_single_hour(8)) == 8.0
    assert circular_midpoint(_single_hour(21)) == 21.0
    assert circular_midpoint([0] * 24) == 12.0

    # 23:00 and 01:00 average to midnight, not noon
    wrap = [0] * 24
    wrap[23] = wrap[1] = 5
    assert circular_midpoint(wrap) == 0.0


def test_circular_delta_wraps():
    assert circular_delta(23.0, 1.0) == pytest.approx(2.0)
    assert circular_delta(8.0, 21.0) == pytest.approx(11.0)


def test_peak_hour():
    hourly = _single_hour(8)
    hourly[12] = 5
    assert peak_hour(hourly) == 8
    assert peak_hour([0] * 24) == 12


def test_categories_and_steps():
    assert chronotype_category(8.0) == "early_bird"
    assert chronotype_category(15.0) == "intermediate"
    assert chronotype_category(21.0) == "night_owl"

    assert match_score(1.0) == 95
    assert match_score(2.5) == 60
    assert match_score(5.0) == 20
    assert match_score(11.0) == 5

    assert jet_lag_level(0.5) == "none"
    assert jet_lag_level(3.0) == "moderate"
    assert jet_lag_level(4.0) == "severe"


# ============================================================================
# COMPATIBILITY
# ============================================================================

def test_early_bird_and_night_owl(build_frame, utc_cfg):
    df = build_frame(_at_hour("Alice", 8) + _at_hour("Bob", 21))

    result = compute_chronotype(df, NAMES, utc_cfg)

    assert result["sufficient"] is True
    assert result["persons"]["Alice"]["category"] == "early_bird"
    assert result["persons"]["Bob"]["category"] == "night_owl"
    assert result["delta_hours"] == pytest.approx(11.0)
    assert result["score"] == 5
    assert result["is_compatible"] is False


def test_close_rhythms_are_compatible(build_frame, utc_cfg):
    df = build_frame(_at_hour("Alice", 20) + _at_hour("Bob", 21))

    result = compute_chronotype(df, NAMES, utc_cfg)

    assert result["score"] == 95
    assert result["is_compatible"] is True


def test_social_jet_lag(build_frame, utc_cfg):
    # Monday mornings at 8, Saturday middays at 12 (2024-01-06)
    alice = _at_hour("Alice", 8, count=10) + _at_hour("Alice", 12, count=10, day=5)
    df = build_frame(alice + _at_hour("Bob", 10, day=1))

    result = compute_chronotype(df, NAMES, utc_cfg)

    alice_type = result["persons"]["Alice"]
    assert alice_type["weekday_midpoint"] == 8.0
    assert alice_type["weekend_midpoint"] == 12.0
    assert alice_type["social_jet_lag_hours"] == 4.0
    assert alice_type["social_jet_lag_level"] == "severe"
    assert alice_type["peak_hour"] == 8
    # Too few weekend messages: Bob's weekend midpoint falls back to the overall one
    assert result["persons"]["Bob"]["social_jet_lag_hours"] == 0.0
    assert result["avg_social_jet_lag"] == 2.0


def test_too_few_messages_is_insufficient(build_frame, utc_cfg):
    df = build_frame(_at_hour("Alice", 8) + _at_hour("Bob", 21, count=19))

    result = compute_chronotype(df, NAMES, utc_cfg)

    assert is_insufficient(result)
    assert "20 messages" in result["reason"]


def test_group_chat_is_insufficient(build_frame, utc_cfg):
    names = ["Alice", "Bob", "Carol"]
    df = build_frame(_at_hour("Alice", 8) + _at_hour("Bob", 9) + _at_hour("Carol", 10), participants=names)

    assert is_insufficient(compute_chronotype(df, names, utc_cfg))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
