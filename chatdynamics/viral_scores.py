"""
Viral scores for ChatDynamics

Shareable composite scores computed from the quantitative metrics:

1. Compatibility (0-100): mean of five balance sub-scores
2. Interest (0-100, per person): weighted behavioural signals
3. Ghost risk (0-100, per person): trend of disengagement over recent months
4. Delusion (0-100): gap between the two highest interest scores

These are entertainment heuristics with fixed weights, not calibrated
measurements.
"""

import logging
from typing import Dict, Any, List, Optional

from . import config
from .models import insufficient_data
from .stats import clamp, safe_divide, linear_regression_slope

logger = logging.getLogger(__name__)

# ============================================================================
# CONFIGURABLE CONSTANTS
# ============================================================================

INTEREST_WEIGHTS = {
    "initiation": 0.25,
    "response_time_trend": 0.20,
    "message_length_trend": 0.15,
    "engagement": 0.20,
    "double_texting": 0.10,
    "late_night": 0.10,
}

GHOST_RISK_WEIGHTS = {
    "response_time": 0.30,
    "message_length": 0.25,
    "initiation": 0.25,
    "volume": 0.20,
}

# Maps a 60 s/month response-time change to 50 points
RT_SLOPE_DIVISOR = 1200.0
# Maps a 2 words/month length change to 50 points
ML_SLOPE_FACTOR = 25.0
RECEIVE_RATE_FACTOR = 500.0
GHOST_RISK_RECENT_MONTHS = 3
GHOST_FACTOR_REPORT_THRESHOLD = 30
DELUSION_HOLDER_MIN_GAP = 5
NEUTRAL_SCORE = 50.0


# ============================================================================
# COMPATIBILITY
# ============================================================================

def activity_overlap_score(heatmap: Dict[str, Any], a: str, b: str) -> Optional[float]:
    """Sum over hours of min(share_a, share_b), scaled to 0-100."""
    hourly_a = [sum(col) for col in zip(*heatmap["per_person"][a])]
    hourly_b = [sum(col) for col in zip(*heatmap["per_person"][b])]
    total_a, total_b = sum(hourly_a), sum(hourly_b)
    if total_a == 0 or total_b == 0:
        return None
    overlap = sum(min(x / total_a, y / total_b) for x, y in zip(hourly_a, hourly_b))
    return clamp(overlap * 100)


def _closeness(value_a: float, value_b: float) -> Optional[float]:
    """100 - relative difference; None when both are zero."""
    top = max(value_a, value_b)
    if top == 0:
        return None
    return clamp(100 - safe_divide(abs(value_a - value_b), top) * 100)


def compute_compatibility(
    person_metrics: Dict[str, Dict[str, Any]],
    timing: Dict[str, Any],
    engagement: Dict[str, Any],
    patterns: Dict[str, Any],
    names: List[str],
) -> Dict[str, Any]:
    """
    Compatibility score with sub-score breakdown.

    Unmeasurable sub-scores count as 50 and are listed in ``unmeasured``.
    """
    if len(names) < 2:
        return insufficient_data("Compatibility needs two participants")

    a, b = names[0], names[1]
    rates = engagement["reaction_give_rate"]
    raw = {
        "activity_overlap": activity_overlap_score(patterns["heatmap"], a, b),
        "response_symmetry": _closeness(
            timing["per_person"][a]["median_response_time_ms"],
            timing["per_person"][b]["median_response_time_ms"],
        ),
        "message_balance": (
            clamp(100 - abs(engagement["message_ratio"][a] - 0.5) * 200)
            if engagement["message_ratio"][a] + engagement["message_ratio"][b] > 0 else None
        ),
        "engagement_balance": (
            clamp(round(min(rates[a], rates[b]) / max(rates[a], rates[b]) * 100))
            if max(rates[a], rates[b]) > 0 else None
        ),
        "length_match": _closeness(
            person_metrics[a]["average_message_length"],
            person_metrics[b]["average_message_length"],
        ),
    }

    breakdown = {key: (NEUTRAL_SCORE if value is None else float(value)) for key, value in raw.items()}
    score = int(clamp(round(sum(breakdown.values()) / len(breakdown))))
    return {
        "sufficient": True,
        "score": score,
        "breakdown": breakdown,
        "unmeasured": [key for key, value in raw.items() if value is None],
    }


# ============================================================================
# INTEREST
# ============================================================================

def compute_interest(
    name: str,
    person_metrics: Dict[str, Dict[str, Any]],
    timing: Dict[str, Any],
    engagement: Dict[str, Any],
    patterns: Dict[str, Any],
    total_messages: int,
) -> Dict[str, Any]:
    """
    Interest score for one person with its six weighted components.

    Components without signal (no sessions to initiate, no reactions at
    all) score NEUTRAL_SCORE and are listed under "unmeasured".
    """
    own_messages = person_metrics[name]["total_messages"]
    if own_messages == 0:
        return {
            "sufficient": False,
            "score": 0,
            "breakdown": {key: 0.0 for key in INTEREST_WEIGHTS},
            "unmeasured": list(INTEREST_WEIGHTS),
        }

    unmeasured = []
    initiations = timing["conversation_initiations"]
    total_init = sum(initiations.values())
    if total_init > 0:
        initiation = clamp(safe_divide(initiations.get(name, 0), total_init) * 100)
    else:
        initiation = NEUTRAL_SCORE
        unmeasured.append("initiation")

    trends = patterns["trends"]
    rt_values = [e["per_person"].get(name, 0) for e in trends["response_time_trend"]]
    rt_slope = linear_regression_slope([v for v in rt_values if v > 0])
    response_time_trend = clamp(50 - rt_slope / RT_SLOPE_DIVISOR)

    ml_values = [e["per_person"].get(name, 0) for e in trends["message_length_trend"]]
    ml_slope = linear_regression_slope([v for v in ml_values if v > 0])
    message_length_trend = clamp(50 + ml_slope * ML_SLOPE_FACTOR)

    if engagement["total_reactions"] == 0:
        engagement_score = NEUTRAL_SCORE
        unmeasured.append("engagement")
    else:
        engagement_score = min(100.0, engagement["reaction_receive_rate"][name] * RECEIVE_RATE_FACTOR)

    dt_per_1000 = safe_divide(engagement["double_texts"].get(name, 0) * 1000, total_messages)
    double_texting = clamp(dt_per_1000 * 2)

    late_ratio = safe_divide(timing["late_night_messages"].get(name, 0), own_messages) * 1000
    late_night = clamp(late_ratio)

    breakdown = {
        "initiation": initiation,
        "response_time_trend": response_time_trend,
        "message_length_trend": message_length_trend,
        "engagement": engagement_score,
        "double_texting": double_texting,
        "late_night": late_night,
    }
    weighted = sum(breakdown[key] * weight for key, weight in INTEREST_WEIGHTS.items())
    return {
        "sufficient": True,
        "score": int(clamp(round(weighted))),
        "breakdown": breakdown,
        "unmeasured": unmeasured,
    }


# ============================================================================
# GHOST RISK
# ============================================================================

def _avg_positive(entries: List[Dict[str, Any]], name: str) -> float:
    total = sum(e["per_person"].get(name, 0) for e in entries)
    count = sum(1 for e in entries if e["per_person"].get(name, 0) > 0) or 1
    return safe_divide(total, count)


def _avg_all(entries: List[Dict[str, Any]], name: str) -> float:
    return safe_divide(sum(e["per_person"].get(name, 0) for e in entries), len(entries))


def _relative_change(earlier: float, recent: float, rising_is_risk: bool) -> float:
    if earlier <= 0:
        return 0.0
    if rising_is_risk and recent > earlier:
        return clamp(safe_divide(recent - earlier, earlier) * 100)
    if not rising_is_risk and recent < earlier:
        return clamp(safe_divide(earlier - recent, earlier) * 100)
    return 0.0


def compute_ghost_risk(
    name: str,
    patterns: Dict[str, Any],
    cfg: Optional[config.AnalysisConfig] = None,
) -> Dict[str, Any]:
    """
    Ghost risk for one person.

    Compares the most recent months against the earlier ones. With fewer
    than ghost_risk_min_months months of data the result is the
    insufficient-data sentinel, never a numeric default.
    """
    cfg = cfg or config.DEFAULT_CONFIG
    months = patterns["monthly_volume"]
    if len(months) < cfg.ghost_risk_min_months:
        return insufficient_data(
            f"Ghost risk needs {cfg.ghost_risk_min_months} months of data, got {len(months)}"
        )

    recent_n = min(GHOST_RISK_RECENT_MONTHS, len(months) - 1)
    trends = patterns["trends"]

    def split(entries):
        return entries[:-recent_n], entries[-recent_n:]

    earlier_rt, recent_rt = split(trends["response_time_trend"])
    earlier_ml, recent_ml = split(trends["message_length_trend"])
    earlier_init, recent_init = split(trends["initiation_trend"])
    earlier_vol, recent_vol = split(months)

    components = {
        "response_time": _relative_change(_avg_positive(earlier_rt, name), _avg_positive(recent_rt, name), True),
        "message_length": _relative_change(_avg_positive(earlier_ml, name), _avg_positive(recent_ml, name), False),
        "initiation": _relative_change(_avg_all(earlier_init, name), _avg_all(recent_init, name), False),
        "volume": _relative_change(_avg_all(earlier_vol, name), _avg_all(recent_vol, name), False),
    }

    labels = {
        "response_time": "Response time is increasing",
        "message_length": "Messages are getting shorter",
        "initiation": "Initiates conversations less often",
        "volume": "Fewer messages in recent months",
    }
    factors = [labels[key] for key, value in components.items() if value > GHOST_FACTOR_REPORT_THRESHOLD]

    score = int(clamp(round(sum(components[key] * w for key, w in GHOST_RISK_WEIGHTS.items()))))
    if not factors and score > 0:
        factors.append("Minor changes in activity")

    return {"sufficient": True, "score": score, "factors": factors, "components": components}


# ============================================================================
# MAIN
# ============================================================================

def compute_viral_scores(
    person_metrics: Dict[str, Dict[str, Any]],
    timing: Dict[str, Any],
    engagement: Dict[str, Any],
    patterns: Dict[str, Any],
    names: List[str],
    cfg: Optional[config.AnalysisConfig] = None,
) -> Dict[str, Any]:
    """
    Compute all viral scores.

    Returns:
        {
            "compatibility": {...},
            "compatibility_score": int or None,
            "interest_scores": {name: int},
            "interest_breakdown": {name: {...}},
            "interest_unmeasured": {name: [component, ...]},
            "ghost_risk": {name: {...} or insufficient sentinel},
            "delusion_score": int,
            "delusion_holder": str or None,
        }
    """
    cfg = cfg or config.DEFAULT_CONFIG
    logger.info("Computing viral scores")

    total_messages = sum(person_metrics[name]["total_messages"] for name in names)
    compatibility = compute_compatibility(person_metrics, timing, engagement, patterns, names)

    interest = {
        name: compute_interest(name, person_metrics, timing, engagement, patterns, total_messages)
        for name in names
    }
    interest_scores = {name: interest[name]["score"] for name in names}

    ghost_risk = {name: compute_ghost_risk(name, patterns, cfg) for name in names}

    delusion_score = 0
    delusion_holder = None
    if len(names) >= 2:
        ranked = sorted(names, key=lambda name: -interest_scores[name])
        delusion_score = int(clamp(abs(interest_scores[ranked[0]] - interest_scores[ranked[1]])))
        # The less invested person is the one who misreads the asymmetry
        if delusion_score >= DELUSION_HOLDER_MIN_GAP:
            delusion_holder = ranked[1]

    return {
        "compatibility": compatibility,
        "compatibility_score": compatibility["score"],
        "interest_scores": interest_scores,
        "interest_breakdown": {name: interest[name]["breakdown"] for name in names},
        "interest_unmeasured": {name: interest[name]["unmeasured"] for name in names},
        "ghost_risk": ghost_risk,
        "delusion_score": delusion_score,
        "delusion_holder": delusion_holder,
    }
