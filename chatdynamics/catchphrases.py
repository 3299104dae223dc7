"""
Catchphrase mining and best-time-to-text for ChatDynamics

Catchphrases are bigrams and trigrams a person repeats and mostly owns.
Shared phrases are repeated by at least two people with no single owner.
Best time to text is the busiest weekday/hour cell of a person's heatmap.
"""

import logging
from collections import Counter
from typing import Dict, Any, List, Optional
import pandas as pd

from . import config
from .text_features import tokenize

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


# ============================================================================
# N-GRAMS
# ============================================================================

def ngrams(tokens: List[str], n: int) -> List[str]:
    return [" ".join(tokens[i:i + n]) for i in range(len(tokens) - n + 1)]


def phrase_counts(df: pd.DataFrame, names: List[str]) -> Dict[str, Counter]:
    """Bigram and trigram counts per person, in one table per person."""
    counts = {name: Counter() for name in names}
    if len(df) == 0:
        return counts
    for sender, content in zip(df["sender"], df["content"]):
        if sender not in counts or not content or not content.strip():
            continue
        tokens = tokenize(content)
        counts[sender].update(ngrams(tokens, 2))
        counts[sender].update(ngrams(tokens, 3))
    return counts


def compute_catchphrases(
    df: pd.DataFrame,
    names: List[str],
    cfg: Optional[config.AnalysisConfig] = None,
) -> Dict[str, Any]:
    """
    Personal and shared catchphrases.

    Personal: count >= catchphrase_min_count and uniqueness (share of all
    occurrences) >= catchphrase_min_uniqueness, ranked by count x uniqueness.
    Shared: global count >= shared_phrase_min_global, at least two people
    with >= shared_phrase_min_contributor uses each, and the top contributor
    below shared_phrase_max_dominance.

    Returns:
        {
            "per_person": {name: [{"phrase", "count", "uniqueness"}]},
            "shared": [{"phrase", "count", "contributors": {name: int}}],
        }
    """
    cfg = cfg or config.DEFAULT_CONFIG
    per_person_counts = phrase_counts(df, names)

    global_counts: Counter = Counter()
    for counter in per_person_counts.values():
        global_counts.update(counter)

    per_person = {}
    for name in names:
        candidates = []
        for phrase, count in per_person_counts[name].items():
            if count < cfg.catchphrase_min_count:
                continue
            uniqueness = count / global_counts[phrase]
            if uniqueness < cfg.catchphrase_min_uniqueness:
                continue
            candidates.append({"phrase": phrase, "count": count, "uniqueness": round(uniqueness, 2)})
        candidates.sort(key=lambda c: (-c["count"] * c["uniqueness"], c["phrase"]))
        per_person[name] = candidates[:cfg.catchphrase_top_n]

    shared = []
    for phrase, total in global_counts.items():
        if total < cfg.shared_phrase_min_global:
            continue
        contributors = {
            name: per_person_counts[name][phrase]
            for name in names if per_person_counts[name][phrase] > 0
        }
        strong = [n for n, c in contributors.items() if c >= cfg.shared_phrase_min_contributor]
        if len(strong) < 2:
            continue
        if max(contributors.values()) / total >= cfg.shared_phrase_max_dominance:
            continue
        shared.append({"phrase": phrase, "count": total, "contributors": contributors})
    shared.sort(key=lambda s: (-s["count"], s["phrase"]))

    logger.info(
        f"Catchphrases: {sum(len(v) for v in per_person.values())} personal, {len(shared)} shared"
    )
    return {"per_person": per_person, "shared": shared[:cfg.catchphrase_top_n]}


# ============================================================================
# BEST TIME TO TEXT
# ============================================================================

def _format_hour(hour: int) -> str:
    return f"{hour:02d}:00"


def compute_best_time_to_text(
    heatmap: Dict[str, Any],
    timing: Dict[str, Any],
    names: List[str],
) -> Dict[str, Dict[str, Any]]:
    """
    Peak weekday/hour per person.

    Ties go to the first cell scanning weekday 0..6, then hour 0..23. The
    reported window spans the hour before to the hour after the peak and
    wraps across midnight (peak 0 -> 23:00-01:00).
    """
    result = {}
    for name in names:
        matrix = heatmap["per_person"].get(name)
        median_rt = timing["per_person"].get(name, {}).get("median_response_time_ms", 0.0)

        best_count = 0
        best_day, best_hour = 0, 0
        for day, row in enumerate(matrix or []):
            for hour, count in enumerate(row):
                if count > best_count:
                    best_count = count
                    best_day, best_hour = day, hour

        if best_count == 0:
            result[name] = {
                "sufficient": False,
                "best_day": None,
                "best_hour": None,
                "window_start": None,
                "window_end": None,
                "best_window": None,
                "message_count": 0,
                "median_response_ms": median_rt,
            }
            continue

        start = (best_hour - 1) % 24
        end = (best_hour + 1) % 24
        result[name] = {
            "sufficient": True,
            "best_day": WEEKDAY_NAMES[best_day],
            "best_hour": best_hour,
            "window_start": start,
            "window_end": end,
            "best_window": f"{WEEKDAY_NAMES[best_day]}s {_format_hour(start)}-{_format_hour(end)}",
            "message_count": int(best_count),
            "median_response_ms": median_rt,
        }
    return result
