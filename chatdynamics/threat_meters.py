"""
Threat meters for ChatDynamics

Four composite indicators built from already computed metrics:

- ghost_risk: highest per-person ghost risk (risk polarity)
- codependency: initiation imbalance, double texting, reply asymmetry, pursuit
- power_imbalance: reciprocity, reaction and initiation imbalance
- trust: reciprocity, response consistency, low ghost risk (health polarity)

Risk meters read "higher is more concerning"; the trust meter reads
"higher is healthier". Every meter carries its polarity.
"""

import logging
import math
from typing import Dict, Any, List

from .models import is_insufficient
from .stats import clamp, safe_divide

logger = logging.getLogger(__name__)

POLARITY_RISK = "risk"
POLARITY_HEALTH = "health"

CODEPENDENCY_WEIGHTS = {
    "initiation_imbalance": 0.35,
    "double_texting": 0.18,
    "response_time_asymmetry": 0.27,
    "pursuit_intensity": 0.20,
}

POWER_WEIGHTS = {
    "reciprocity_imbalance": 0.5,
    "reaction_imbalance": 0.3,
    "initiation_imbalance": 0.2,
}

TRUST_WEIGHTS = {
    "reciprocity": 0.40,
    "response_consistency": 0.40,
    "ghost_risk": 0.20,
}

# Double-text rate per 1000 own messages is capped before weighting
DOUBLE_TEXT_RATE_CAP = 80.0
RT_ASYMMETRY_SCALE = 30.0


def get_level(score: float) -> str:
    """Map a 0-100 concern score to a level."""
    if score >= 75:
        return "critical"
    if score >= 50:
        return "elevated"
    if score >= 30:
        return "moderate"
    return "low"


def rt_asymmetry(median_a: float, median_b: float) -> float:
    """Direction-agnostic log-scale reply-time asymmetry."""
    ratio = median_a / median_b if median_b > 0 else 1.0
    return abs(math.log10(max(ratio, 0.01))) * RT_ASYMMETRY_SCALE


def _meter(meter_id: str, label: str, score: float, polarity: str,
           factors: List[str], components: Dict[str, float]) -> Dict[str, Any]:
    score = clamp(score)
    # Health meters are graded on how far they fall short of 100
    concern = score if polarity == POLARITY_RISK else 100 - score
    return {
        "id": meter_id,
        "label": label,
        "sufficient": True,
        "score": int(round(score)),
        "level": get_level(concern),
        "polarity": polarity,
        "factors": factors,
        "components": components,
    }


def _insufficient_meter(meter_id: str, label: str, polarity: str, reason: str) -> Dict[str, Any]:
    return {
        "id": meter_id,
        "label": label,
        "sufficient": False,
        "score": None,
        "level": None,
        "polarity": polarity,
        "factors": [],
        "components": {},
        "reason": reason,
    }


def compute_threat_meters(
    person_metrics: Dict[str, Dict[str, Any]],
    timing: Dict[str, Any],
    engagement: Dict[str, Any],
    reciprocity: Dict[str, Any],
    pursuit: Dict[str, Any],
    viral_scores: Dict[str, Any],
    names: List[str],
) -> Dict[str, Any]:
    """
    Compute the four threat meters.

    Returns:
        {"meters": [meter, ...]} in the order ghost_risk, codependency,
        power_imbalance, trust; empty list for fewer than two participants.
    """
    if len(names) < 2:
        logger.warning("Threat meters need two participants")
        return {"meters": []}

    a, b = names[0], names[1]

    # --- Ghost risk ---
    measured_ghost = {
        name: risk for name, risk in viral_scores["ghost_risk"].items()
        if not is_insufficient(risk)
    }
    if measured_ghost:
        max_ghost = max(risk["score"] for risk in measured_ghost.values())
        ghost_factors = [
            f"{name}: {factor}"
            for name, risk in measured_ghost.items() if risk["score"] > 30
            for factor in risk["factors"]
        ]
        ghost_meter = _meter("ghost_risk", "Ghost Risk", max_ghost, POLARITY_RISK,
                             ghost_factors, {"max_ghost_risk": float(max_ghost)})
    else:
        max_ghost = None
        reason = next(iter(viral_scores["ghost_risk"].values()))["reason"]
        ghost_meter = _insufficient_meter("ghost_risk", "Ghost Risk", POLARITY_RISK, reason)

    # --- Codependency ---
    initiations = timing["conversation_initiations"]
    total_init = sum(initiations.get(name, 0) for name in (a, b))
    share_a = safe_divide(initiations.get(a, 0), total_init, default=0.5)
    share_b = safe_divide(initiations.get(b, 0), total_init, default=0.5)
    initiation_imbalance = abs(share_a - share_b) * 100

    dt_rates = [
        safe_divide(engagement["double_texts"].get(name, 0), person_metrics[name]["total_messages"]) * 1000
        for name in (a, b)
    ]
    dt_rate = max(dt_rates)
    dt_norm = min(dt_rate, DOUBLE_TEXT_RATE_CAP) / DOUBLE_TEXT_RATE_CAP * 100

    asymmetry = rt_asymmetry(
        timing["per_person"][a]["median_response_time_ms"],
        timing["per_person"][b]["median_response_time_ms"],
    )
    pursuit_intensity = clamp(safe_divide(pursuit["cycle_count"], engagement["total_sessions"]) * 100)

    codependency_components = {
        "initiation_imbalance": initiation_imbalance,
        "double_texting": dt_norm,
        "response_time_asymmetry": asymmetry,
        "pursuit_intensity": pursuit_intensity,
    }
    codependency = sum(codependency_components[k] * w for k, w in CODEPENDENCY_WEIGHTS.items())
    codependency_factors = []
    if initiation_imbalance > 15:
        codependency_factors.append(f"Uneven initiation: {round(max(share_a, share_b) * 100)}%")
    if dt_rate > 5:
        codependency_factors.append(f"Double texts: {dt_rate:.1f}/1000 messages")
    if asymmetry > 20:
        codependency_factors.append("Response time asymmetry")
    if pursuit["cycle_count"] > 0:
        codependency_factors.append(f"Pursuit-withdrawal cycles: {pursuit['cycle_count']}")

    # --- Power imbalance ---
    # Reciprocity scores read 100 = balanced
    recip_imbalance = 100 - reciprocity["overall"]
    reaction_imbalance = 100 - reciprocity["reaction_balance"]
    power_components = {
        "reciprocity_imbalance": float(recip_imbalance),
        "reaction_imbalance": float(reaction_imbalance),
        "initiation_imbalance": initiation_imbalance,
    }
    power = sum(power_components[k] * w for k, w in POWER_WEIGHTS.items())
    power_factors = []
    if recip_imbalance > 30:
        power_factors.append(f"Uneven reciprocity: {round(recip_imbalance)}%")
    if reaction_imbalance > 30:
        power_factors.append("Uneven reactions")

    # --- Trust ---
    trust_components = {
        "reciprocity": float(reciprocity["overall"]),
        "response_consistency": float(reciprocity["response_time_symmetry"]),
    }
    weights = {k: TRUST_WEIGHTS[k] for k in trust_components}
    if max_ghost is not None:
        trust_components["ghost_risk"] = 100.0 - max_ghost
        weights["ghost_risk"] = TRUST_WEIGHTS["ghost_risk"]
    total_weight = sum(weights.values())
    trust = sum(trust_components[k] * w for k, w in weights.items()) / total_weight

    trust_factors = []
    if trust < 40:
        trust_factors.append("Low reciprocity")
    if max_ghost is not None and max_ghost > 50:
        trust_factors.append("High ghosting risk")
    if reciprocity["response_time_symmetry"] < 30:
        trust_factors.append("Inconsistent response times")

    meters = [
        ghost_meter,
        _meter("codependency", "Attachment Intensity", codependency, POLARITY_RISK,
               codependency_factors, codependency_components),
        _meter("power_imbalance", "Power Imbalance", power, POLARITY_RISK,
               power_factors, power_components),
        _meter("trust", "Trust Index", trust, POLARITY_HEALTH, trust_factors, trust_components),
    ]
    logger.info(
        "Threat meters: "
        + ", ".join(f"{m['id']}={m['score']}" for m in meters)
    )
    return {"meters": meters}
