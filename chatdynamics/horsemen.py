"""
Four-factor relational conflict index for ChatDynamics

Maps communication-pattern confidences (0-100, produced by an external
screening step) plus reply asymmetry and ghost risk onto four factors:
criticism, contempt, defensiveness and stonewalling.
"""

import logging
from typing import Dict, Any, List, Optional

from .models import insufficient_data, is_insufficient

logger = logging.getLogger(__name__)

PATTERN_KEYS = (
    "control",
    "self_focused",
    "manipulation",
    "dramatization",
    "passive",
    "suspicion",
    "avoidance",
    "distance",
)

MINUTE_MS = 60_000
EVIDENCE_THRESHOLD = 50


def get_severity(score: float) -> str:
    if score >= 70:
        return "severe"
    if score >= 45:
        return "moderate"
    if score >= 25:
        return "mild"
    return "none"


def _factor(factor_id: str, score: float, evidence: List[str]) -> Dict[str, Any]:
    score = int(min(100, max(0, round(score))))
    severity = get_severity(score)
    return {
        "id": factor_id,
        "score": score,
        "severity": severity,
        "present": severity != "none",
        "evidence": evidence,
    }


def max_ghost_risk(ghost_risk: Optional[Dict[str, Dict[str, Any]]]) -> float:
    """Highest measured ghost risk; unmeasured people are ignored."""
    if not ghost_risk:
        return 0.0
    scores = [risk["score"] for risk in ghost_risk.values() if not is_insufficient(risk)]
    return float(max(scores)) if scores else 0.0


def compute_horsemen(
    pattern_confidences: Optional[Dict[str, float]],
    timing: Optional[Dict[str, Any]],
    ghost_risk: Optional[Dict[str, Dict[str, Any]]],
    names: List[str],
) -> Dict[str, Any]:
    """
    Compute the four conflict factors.

    criticism     = control*0.6 + self_focused*0.4
    contempt      = manipulation*0.5 + dramatization*0.3
                    + min(20, |rt_a - rt_b| minutes / 5)
    defensiveness = passive*0.5 + suspicion*0.5
    stonewalling  = avoidance*0.4 + distance*0.4 + min(20, ghost_risk*0.2)

    Each score is rounded and capped at 100. Severity: <25 none, 25-44 mild,
    45-69 moderate, >=70 severe.

    Returns:
        {"sufficient": True, "horsemen": [...], "active_count": int,
         "risk_level": str}, or the insufficient-data sentinel when no
        pattern confidences are available.
    """
    if pattern_confidences is None:
        return insufficient_data("No communication-pattern confidences available")

    unknown = set(pattern_confidences) - set(PATTERN_KEYS)
    if unknown:
        raise ValueError(f"Unknown pattern confidence keys: {sorted(unknown)}")

    def get(key: str) -> float:
        return float(pattern_confidences.get(key, 0.0))

    asymmetry_minutes = 0.0
    if timing is not None and len(names) >= 2:
        rt_a = timing["per_person"][names[0]]["median_response_time_ms"]
        rt_b = timing["per_person"][names[1]]["median_response_time_ms"]
        asymmetry_minutes = abs(rt_a - rt_b) / MINUTE_MS
    ghost = max_ghost_risk(ghost_risk)

    # Criticism
    criticism_evidence = []
    if get("control") > EVIDENCE_THRESHOLD:
        criticism_evidence.append("Strong control and perfectionism pattern")
    if get("self_focused") > EVIDENCE_THRESHOLD:
        criticism_evidence.append("Self-focused communication style")
    criticism = _factor(
        "criticism",
        get("control") * 0.6 + get("self_focused") * 0.4,
        criticism_evidence,
    )

    # Contempt
    contempt_evidence = []
    if get("manipulation") > EVIDENCE_THRESHOLD:
        contempt_evidence.append("Instrumental, low-empathy communication")
    if asymmetry_minutes > 30:
        contempt_evidence.append(f"Response asymmetry: {round(asymmetry_minutes)} min")
    contempt = _factor(
        "contempt",
        get("manipulation") * 0.5 + get("dramatization") * 0.3 + min(20.0, asymmetry_minutes / 5),
        contempt_evidence,
    )

    # Defensiveness
    defensiveness_evidence = []
    if get("passive") > EVIDENCE_THRESHOLD:
        defensiveness_evidence.append("Passive-aggressive patterns")
    if get("suspicion") > EVIDENCE_THRESHOLD:
        defensiveness_evidence.append("Suspicion and distrust")
    defensiveness = _factor(
        "defensiveness",
        get("passive") * 0.5 + get("suspicion") * 0.5,
        defensiveness_evidence,
    )

    # Stonewalling
    stonewalling_evidence = []
    if get("avoidance") > EVIDENCE_THRESHOLD:
        stonewalling_evidence.append("Intimacy avoidance")
    if get("distance") > EVIDENCE_THRESHOLD:
        stonewalling_evidence.append("Emotional distance")
    if ghost > 50:
        stonewalling_evidence.append(f"Ghost risk: {round(ghost)}%")
    stonewalling = _factor(
        "stonewalling",
        get("avoidance") * 0.4 + get("distance") * 0.4 + min(20.0, ghost * 0.2),
        stonewalling_evidence,
    )

    horsemen = [criticism, contempt, defensiveness, stonewalling]
    active = sum(1 for h in horsemen if h["present"])

    if active >= 4:
        risk_level = "critical"
    elif active == 3:
        risk_level = "high"
    elif active == 2:
        risk_level = "elevated"
    elif active == 1:
        risk_level = "moderate"
    else:
        risk_level = "low"

    logger.info(f"Conflict factors active: {active}/4")
    return {
        "sufficient": True,
        "horsemen": horsemen,
        "active_count": active,
        "risk_level": risk_level,
    }
