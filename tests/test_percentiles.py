"""
Tests for percentile ranking
"""

import pytest

from chatdynamics.percentiles import (
    BENCHMARK,
    LOGNORMAL,
    compute_rankings,
    format_label,
    lognormal_cdf,
    rank_percentile,
)

MINUTE = 60_000


def _rank(metric, value, kind):
    return rank_percentile(metric, value, {"kind": kind})


def test_labels():
    assert format_label(90) == "Top 10%"
    assert format_label(50) == "Top 50%"
    assert format_label(25) == "Bottom 75%"


def test_lognormal_cdf_at_median():
    assert lognormal_cdf(2000, 2000, 1.2) == pytest.approx(0.5)


def test_lognormal_median_is_fiftieth():
    assert _rank("message_volume", 2000, LOGNORMAL)["percentile"] == 50
    assert _rank("response_time", 15 * MINUTE, LOGNORMAL)["percentile"] == 50


def test_faster_replies_rank_higher():
    fast = _rank("response_time", MINUTE, LOGNORMAL)["percentile"]
    slow = _rank("response_time", 10 * 60 * MINUTE, LOGNORMAL)["percentile"]

    assert fast > 50 > slow


def test_lognormal_is_clamped():
    assert _rank("message_volume", 10 ** 12, LOGNORMAL)["percentile"] == 99
    assert _rank("message_volume", 1, LOGNORMAL)["percentile"] == 1


def test_non_positive_value_ranks_at_median():
    assert _rank("ghost_frequency", 0, LOGNORMAL)["percentile"] == 50


@pytest.mark.parametrize("metric,value,expected", [
    ("response_time_minutes", 3, 90),
    ("response_time_minutes", 60, 50),
    ("response_time_minutes", 500, 10),
    ("messages_per_day", 25, 85),
    ("compatibility_score", 65, 75),
    ("emoji_diversity", 2, 10),
    ("conversation_length_months", 40, 90),
])
def test_benchmarks(metric, value, expected):
    result = _rank(metric, value, BENCHMARK)

    assert result["percentile"] == expected
    assert result["strategy"] == BENCHMARK


def test_unknown_metric_or_strategy():
    with pytest.raises(ValueError):
        _rank("message_volume", 10, BENCHMARK)
    with pytest.raises(ValueError):
        _rank("compatibility_score", 10, LOGNORMAL)
    with pytest.raises(ValueError):
        rank_percentile("compatibility_score", 10, {"kind": "z-score"})


def _finished_result(compatibility):
    return {
        "participants": ["Alice", "Bob"],
        "metadata": {"total_messages": 100, "duration_days": 10, "months": 1},
        "timing": {
            "per_person": {
                "Alice": {"median_response_time_ms": 0.0},
                "Bob": {"median_response_time_ms": 0.0},
            },
            "longest_silence": {"duration_ms": 0},
        },
        "engagement": {"message_ratio": {"Alice": 0.5, "Bob": 0.5}},
        "viral_scores": {"compatibility": compatibility},
        "per_person": {"Alice": {"unique_emoji": 0}, "Bob": {"unique_emoji": 0}},
    }


def test_compute_rankings_skips_unmeasured_metrics():
    result = _finished_result({"sufficient": False, "score": None, "reason": "x"})

    rankings = compute_rankings(result)

    assert [r["metric"] for r in rankings["lognormal"]] == ["message_volume", "asymmetry"]
    assert [r["metric"] for r in rankings["benchmark"]] == ["messages_per_day", "conversation_length_months"]
    assert rankings["benchmark"][0]["percentile"] == 70


def test_compatibility_is_benchmarked_under_its_own_name():
    result = _finished_result({"sufficient": True, "score": 70})

    benchmark = {r["metric"]: r for r in compute_rankings(result)["benchmark"]}

    assert benchmark["compatibility_score"]["percentile"] == 75


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
