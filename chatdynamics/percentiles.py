"""
Percentile ranking for ChatDynamics

One entry point, rank_percentile(metric, value, strategy), with two
strategies:

- {"kind": "hardcoded-benchmark"}: step thresholds from typical messaging
  patterns, used for numeric percentile cards
- {"kind": "lognormal-cdf"}: log-normal population model, used for
  "Top X%" rankings

Percentiles are 1-99 where 90 means "top 10%".
"""

import logging
import math
from typing import Dict, Any, List

from .models import is_insufficient
from .stats import safe_divide

logger = logging.getLogger(__name__)

MINUTE_MS = 60_000
DAY_MS = 24 * 60 * MINUTE_MS

BENCHMARK = "hardcoded-benchmark"
LOGNORMAL = "lognormal-cdf"

# ============================================================================
# HARDCODED BENCHMARKS
# ============================================================================

# (threshold, percentile) ordered best to worst
BENCHMARKS = {
    "response_time_minutes": [(5, 90), (15, 75), (60, 50), (240, 25)],
    "messages_per_day": [(50, 95), (20, 85), (10, 70), (5, 50)],
    "compatibility_score": [(80, 90), (65, 75), (50, 50), (35, 25)],
    "emoji_diversity": [(20, 95), (10, 75), (5, 50)],
    "conversation_length_months": [(36, 90), (12, 70), (6, 50)],
}

LOWER_IS_BETTER = {"response_time_minutes"}
BENCHMARK_DEFAULT_PERCENTILE = 10

# ============================================================================
# LOG-NORMAL MODELS
# ============================================================================

LOGNORMAL_MODELS = {
    "message_volume": {"median": 2000.0, "sigma": 1.2, "inverted": False},
    "response_time": {"median": 15 * MINUTE_MS, "sigma": 1.5, "inverted": True},
    "ghost_frequency": {"median": 2 * DAY_MS, "sigma": 1.0, "inverted": False},
    "asymmetry": {"median": 60.0, "sigma": 0.2, "inverted": False},
}

LOGNORMAL_MIN = 1
LOGNORMAL_MAX = 99


def format_label(percentile: int) -> str:
    if percentile >= 50:
        return f"Top {100 - percentile}%"
    return f"Bottom {100 - percentile}%"


def _benchmark_percentile(metric: str, value: float) -> int:
    lower_is_better = metric in LOWER_IS_BETTER
    for threshold, percentile in BENCHMARKS[metric]:
        passes = value <= threshold if lower_is_better else value >= threshold
        if passes:
            return percentile
    return BENCHMARK_DEFAULT_PERCENTILE


def lognormal_cdf(value: float, median: float, sigma: float) -> float:
    """P(X <= value) for a log-normal with the given median and sigma."""
    z = (math.log(value) - math.log(median)) / (sigma * math.sqrt(2))
    return 0.5 * (1 + math.erf(z))


def _lognormal_percentile(metric: str, value: float) -> int:
    if value <= 0:
        return 50
    model = LOGNORMAL_MODELS[metric]
    cdf = lognormal_cdf(value, model["median"], model["sigma"])
    if model["inverted"]:
        cdf = 1 - cdf
    return int(min(LOGNORMAL_MAX, max(LOGNORMAL_MIN, round(cdf * 100))))


def rank_percentile(metric: str, value: float, strategy: Dict[str, Any]) -> Dict[str, Any]:
    """
    Rank a metric value.

    Raises:
        ValueError: unknown strategy kind, or a metric the strategy does
            not model
    """
    kind = strategy.get("kind") if isinstance(strategy, dict) else None
    if kind == BENCHMARK:
        if metric not in BENCHMARKS:
            raise ValueError(f"Unknown benchmark metric: {metric}")
        percentile = _benchmark_percentile(metric, value)
    elif kind == LOGNORMAL:
        if metric not in LOGNORMAL_MODELS:
            raise ValueError(f"Unknown log-normal metric: {metric}")
        percentile = _lognormal_percentile(metric, value)
    else:
        raise ValueError(f"Unknown percentile strategy: {strategy!r}")

    return {
        "metric": metric,
        "value": value,
        "percentile": percentile,
        "label": format_label(percentile),
        "strategy": kind,
    }


def compute_rankings(result: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Rank a finished analysis under both strategies.

    Metrics without data (zero messages, no replies, no emoji) are left out
    rather than ranked at a default.
    """
    names = result["participants"]
    metadata = result["metadata"]
    total_messages = metadata["total_messages"]

    medians = [
        result["timing"]["per_person"][name]["median_response_time_ms"]
        for name in names
        if result["timing"]["per_person"][name]["median_response_time_ms"] > 0
    ]
    avg_median = safe_divide(sum(medians), len(medians))

    lognormal = []
    benchmark = []

    def add(bucket, kind, metric, value):
        bucket.append(rank_percentile(metric, value, {"kind": kind}))

    if total_messages > 0:
        add(lognormal, LOGNORMAL, "message_volume", total_messages)
    if avg_median > 0:
        add(lognormal, LOGNORMAL, "response_time", avg_median)
        add(benchmark, BENCHMARK, "response_time_minutes", avg_median / MINUTE_MS)
    silence = result["timing"]["longest_silence"]["duration_ms"]
    if silence > 0:
        add(lognormal, LOGNORMAL, "ghost_frequency", silence)
    ratios = result["engagement"]["message_ratio"]
    if total_messages > 0 and len(names) >= 2:
        add(lognormal, LOGNORMAL, "asymmetry", max(ratios.values()) * 100)

    duration_days = metadata["duration_days"]
    if total_messages > 0:
        add(benchmark, BENCHMARK, "messages_per_day", total_messages / max(duration_days, 1))
    compatibility = result["viral_scores"]["compatibility"]
    if not is_insufficient(compatibility):
        add(benchmark, BENCHMARK, "compatibility_score", compatibility["score"])
    unique_emoji = max((result["per_person"][name]["unique_emoji"] for name in names), default=0)
    if unique_emoji > 0:
        add(benchmark, BENCHMARK, "emoji_diversity", unique_emoji)
    months = metadata["months"]
    if months > 0:
        add(benchmark, BENCHMARK, "conversation_length_months", months)

    logger.info(f"Ranked {len(lognormal)} log-normal and {len(benchmark)} benchmark metrics")
    return {"lognormal": lognormal, "benchmark": benchmark}
