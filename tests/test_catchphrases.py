"""
Tests for catchphrase mining and best time to text
"""

import pytest

from chatdynamics.catchphrases import compute_best_time_to_text, compute_catchphrases, ngrams

from conftest import BASE_TS, MINUTE

NAMES = ["Alice", "Bob"]


def _said(pairs):
    """[(sender, content, repeat)] -> timestamped message tuples."""
    messages = []
    for sender, content, repeat in pairs:
        for _ in range(repeat):
            messages.append((sender, content, BASE_TS + len(messages) * MINUTE))
    return messages


def test_ngrams():
    assert ngrams(["pizza", "tonight", "maybe"], 2) == ["pizza tonight", "tonight maybe"]
    assert ngrams(["pizza"], 2) == []


def test_phrase_used_by_both_is_shared(build_frame, utc_cfg):
    df = build_frame(_said([("Alice", "pizza tonight", 3), ("Bob", "pizza tonight", 3)]))

    result = compute_catchphrases(df, NAMES, utc_cfg)

    assert result["shared"] == [
        {"phrase": "pizza tonight", "count": 6, "contributors": {"Alice": 3, "Bob": 3}}
    ]


def test_personal_catchphrase_needs_ownership(build_frame, utc_cfg):
    df = build_frame(_said([("Alice", "pizza tonight", 4), ("Bob", "pizza tonight", 1)]))

    result = compute_catchphrases(df, NAMES, utc_cfg)

    assert result["per_person"]["Alice"] == [{"phrase": "pizza tonight", "count": 4, "uniqueness": 0.8}]
    assert result["per_person"]["Bob"] == []
    # Bob used it only once
    assert result["shared"] == []


def test_dominated_phrase_is_not_shared(build_frame, utc_cfg):
    df = build_frame(_said([("Alice", "pizza tonight", 8), ("Bob", "pizza tonight", 2)]))

    result = compute_catchphrases(df, NAMES, utc_cfg)

    assert result["shared"] == []
    assert result["per_person"]["Alice"][0]["uniqueness"] == 0.8


def test_personal_list_is_capped(build_frame, utc_cfg):
    phrases = ["alpha beta", "gamma delta", "epsilon zeta", "theta iota", "kappa lambda",
               "sigma tau", "omega psi", "rho chi", "upsilon phi", "omicron xi"]
    df = build_frame(_said([("Alice", phrase, 3) for phrase in phrases]))

    result = compute_catchphrases(df, NAMES, utc_cfg)

    ranked = result["per_person"]["Alice"]
    assert len(ranked) == utc_cfg.catchphrase_top_n
    # Equal scores fall back to alphabetical order
    assert ranked[0]["phrase"] == "alpha beta"


def test_stopwords_and_emoji_are_ignored(build_frame, utc_cfg):
    df = build_frame(_said([("Alice", "you are the \U0001F600 best", 5)]))

    result = compute_catchphrases(df, NAMES, utc_cfg)

    assert result["per_person"]["Alice"] == []


# ============================================================================
# BEST TIME TO TEXT
# ============================================================================

def _heatmap(peaks):
    per_person = {}
    for name, cell in peaks.items():
        grid = [[0] * 24 for _ in range(7)]
        if cell is not None:
            day, hour, count = cell
            grid[day][hour] = count
            grid[day][(hour + 5) % 24] = 1
        per_person[name] = grid
    return {"per_person": per_person}


def test_best_window_wraps_midnight():
    timing = {"per_person": {"Alice": {"median_response_time_ms": 90_000.0}}}

    result = compute_best_time_to_text(_heatmap({"Alice": (1, 0, 7)}), timing, ["Alice"])

    best = result["Alice"]
    assert best["sufficient"] is True
    assert best["best_day"] == "Tuesday"
    assert (best["window_start"], best["window_end"]) == (23, 1)
    assert best["best_window"] == "Tuesdays 23:00-01:00"
    assert best["message_count"] == 7
    assert best["median_response_ms"] == 90_000.0


def test_silent_person_has_no_best_time():
    timing = {"per_person": {"Bob": {"median_response_time_ms": 0.0}}}

    result = compute_best_time_to_text(_heatmap({"Bob": None}), timing, ["Bob"])

    assert result["Bob"]["sufficient"] is False
    assert result["Bob"]["best_hour"] is None


def test_ties_go_to_earliest_cell():
    heatmap = _heatmap({"Alice": (4, 20, 3)})
    heatmap["per_person"]["Alice"][2][9] = 3
    timing = {"per_person": {}}

    result = compute_best_time_to_text(heatmap, timing, ["Alice"])

    assert result["Alice"]["best_day"] == "Wednesday"
    assert result["Alice"]["best_hour"] == 9


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
