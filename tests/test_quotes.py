"""
Tests for notable quote scoring
"""

import pytest

from chatdynamics.quotes import find_notable_quotes, late_night_factor, score_quote

from conftest import BASE_TS, HOUR, MINUTE


@pytest.mark.parametrize("hour,expected", [
    (4, 3.0),
    (3, 3.0),
    (1, 2.0),
    (23, 1.5),
    (0, 1.5),
    (12, 1.0),
    (22, 1.0),
])
def test_late_night_factor(hour, expected):
    assert late_night_factor(hour) == expected


def test_preserved_defect_boosts_every_other_hour():
    assert late_night_factor(12, preserve_defect=True) == 1.5
    assert late_night_factor(4, preserve_defect=True) == 3.0


def test_score_quote():
    assert score_quote(10, 0.0, 12) == pytest.approx(3.0)
    # 5 words, one emotional keyword, 4am
    assert score_quote(5, 0.2, 4) == pytest.approx(10.5)


def test_best_quotes_first(build_frame, utc_cfg):
    df = build_frame([
        ("Alice", "hello there friend", BASE_TS + 12 * HOUR),
        ("Alice", "i miss you so much", BASE_TS + 4 * HOUR),
        ("Bob", "", BASE_TS + 12 * HOUR + MINUTE, {"type": "media", "has_media": True}),
    ])

    quotes = find_notable_quotes(df, utc_cfg, ["Alice", "Bob"])

    assert [q["content"] for q in quotes["Alice"]] == ["i miss you so much", "hello there friend"]
    assert quotes["Alice"][0]["hour"] == 4
    assert quotes["Alice"][0]["emotional_density"] == pytest.approx(0.2)
    assert quotes["Bob"] == []


def test_top_five_per_person(build_frame, utc_cfg):
    messages = [("Alice", " ".join(["word"] * (i + 1)), BASE_TS + 12 * HOUR + i * MINUTE) for i in range(7)]

    quotes = find_notable_quotes(build_frame(messages), utc_cfg, ["Alice"])

    assert len(quotes["Alice"]) == 5
    assert quotes["Alice"][0]["word_count"] == 7


def test_defect_flag_changes_daytime_scores(build_frame, utc_cfg):
    df = build_frame([("Alice", "just a normal afternoon message", BASE_TS + 15 * HOUR)])

    fixed = find_notable_quotes(df, utc_cfg, ["Alice"])
    legacy = find_notable_quotes(df, utc_cfg.with_overrides(preserve_late_night_defect=True), ["Alice"])

    assert legacy["Alice"][0]["score"] == pytest.approx(fixed["Alice"][0]["score"] * 1.5)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
