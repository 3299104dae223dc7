"""
Statistical helpers for ChatDynamics

Robust descriptive statistics shared by the timing, pattern and scoring
engines. All functions accept plain sequences and return Python floats so
results serialize without numpy scalar types.
"""

import math
from typing import Dict, Any, List, Sequence
import numpy as np


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safe division with default fallback."""
    if denominator == 0 or np.isnan(denominator) or np.isnan(numerator):
        return default
    result = numerator / denominator
    return result if math.isfinite(result) else default


def clamp(value: float, min_val: float = 0.0, max_val: float = 100.0) -> float:
    """Clamp value to [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def balance_score(share: float) -> int:
    """100 when a two-way share is exactly 0.5, 0 when fully one-sided."""
    return int(round(100 * (1 - 2 * abs(share - 0.5))))


# ============================================================================
# DESCRIPTIVE STATISTICS
# ============================================================================

def median(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.median(np.asarray(values, dtype=float)))


def percentile(values: Sequence[float], p: float) -> float:
    """Linear-interpolated percentile (p in 0-100). 0.0 for empty input."""
    if len(values) == 0:
        return 0.0
    return float(np.percentile(np.asarray(values, dtype=float), p))


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation."""
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def trimmed_mean(values: Sequence[float], trim_fraction: float = 0.1) -> float:
    """Mean after dropping floor(n * trim_fraction) values from each end."""
    if len(values) == 0:
        return 0.0
    ordered = np.sort(np.asarray(values, dtype=float))
    trim = int(math.floor(len(ordered) * trim_fraction))
    if trim * 2 >= len(ordered):
        return median(values)
    return float(ordered[trim:len(ordered) - trim].mean())


def skewness(values: Sequence[float]) -> float:
    """Fisher-Pearson coefficient of skewness."""
    if len(values) < 3:
        return 0.0
    arr = np.asarray(values, dtype=float)
    sd = arr.std()
    if sd == 0:
        return 0.0
    return float((((arr - arr.mean()) / sd) ** 3).mean())


def linear_regression_slope(values: Sequence[float]) -> float:
    """Least-squares slope against 0..n-1. Non-finite values are dropped."""
    clean = [v for v in values if v is not None and math.isfinite(v)]
    n = len(clean)
    if n < 2:
        return 0.0
    y = np.asarray(clean, dtype=float)
    x = np.arange(n, dtype=float)
    denom = ((x - x.mean()) ** 2).sum()
    if denom == 0:
        return 0.0
    slope = float(((x - x.mean()) * (y - y.mean())).sum() / denom)
    return slope if math.isfinite(slope) else 0.0


def filter_outliers(
    values: Sequence[float],
    multiplier: float,
    min_iqr_floor: float,
    min_sample: int,
) -> Dict[str, Any]:
    """
    IQR upper-fence outlier filter.

    Values above Q3 + multiplier * max(IQR, min_iqr_floor) are excluded.
    Samples smaller than min_sample are returned untouched. Quartiles are
    always computed on the raw values so audit fields keep every event.

    Returns:
        {
            "filtered": List[float],
            "q1": float, "q3": float, "iqr": float,
            "upper_fence": float or None,
            "applied": bool,
        }
    """
    raw = [float(v) for v in values]
    q1 = percentile(raw, 25)
    q3 = percentile(raw, 75)
    iqr = q3 - q1

    if len(raw) < min_sample:
        return {"filtered": raw, "q1": q1, "q3": q3, "iqr": iqr,
                "upper_fence": None, "applied": False}

    fence = q3 + multiplier * max(iqr, min_iqr_floor)
    filtered: List[float] = [v for v in raw if v <= fence]
    return {"filtered": filtered, "q1": q1, "q3": q3, "iqr": iqr,
            "upper_fence": fence, "applied": True}
