"""
Reciprocity index for ChatDynamics
Weighted balance of effort between the first two participants
"""

import logging
from typing import Dict, Any, List

from .stats import balance_score

logger = logging.getLogger(__name__)

RECIPROCITY_WEIGHTS = {
    "message_balance": 0.30,
    "initiation_balance": 0.25,
    "response_time_symmetry": 0.15,
    "reaction_balance": 0.30,
}

# Value used for a sub-score that could not be measured
NEUTRAL_SCORE = 50


def compute_reciprocity(
    person_metrics: Dict[str, Dict[str, Any]],
    timing: Dict[str, Any],
    names: List[str],
) -> Dict[str, Any]:
    """
    Compute the reciprocity index (0-100, 100 = perfectly balanced).

    Sub-scores without enough data fall back to 50. That 50 is flagged
    False in ``data_sufficiency`` so callers can tell "balanced" apart from
    "unmeasured".

    Returns:
        {
            "overall": int,
            "message_balance": int,
            "initiation_balance": int,
            "response_time_symmetry": int,
            "reaction_balance": int,
            "data_sufficiency": {sub_score: bool},
            "sufficient": bool,
        }
    """
    if len(names) < 2:
        logger.warning("Reciprocity needs two participants")
        return _neutral()

    a, b = names[0], names[1]
    scores: Dict[str, int] = {}
    measured: Dict[str, bool] = {}

    msgs_a = person_metrics[a]["total_messages"]
    msgs_b = person_metrics[b]["total_messages"]
    scores["message_balance"], measured["message_balance"] = _share_balance(msgs_a, msgs_b)

    inits = timing["conversation_initiations"]
    scores["initiation_balance"], measured["initiation_balance"] = _share_balance(
        inits.get(a, 0), inits.get(b, 0)
    )

    rt_a = timing["per_person"][a]["median_response_time_ms"]
    rt_b = timing["per_person"][b]["median_response_time_ms"]
    if rt_a > 0 and rt_b > 0:
        scores["response_time_symmetry"] = int(round(min(rt_a, rt_b) / max(rt_a, rt_b) * 100))
        measured["response_time_symmetry"] = True
    else:
        scores["response_time_symmetry"] = NEUTRAL_SCORE
        measured["response_time_symmetry"] = False

    scores["reaction_balance"], measured["reaction_balance"] = _share_balance(
        person_metrics[a]["reactions_given"], person_metrics[b]["reactions_given"]
    )

    overall = int(round(sum(scores[key] * weight for key, weight in RECIPROCITY_WEIGHTS.items())))

    return {
        "overall": overall,
        **scores,
        "data_sufficiency": measured,
        "sufficient": all(measured.values()),
    }


def _share_balance(count_a: float, count_b: float) -> tuple:
    total = count_a + count_b
    if total <= 0:
        return NEUTRAL_SCORE, False
    return balance_score(count_a / total), True


def _neutral() -> Dict[str, Any]:
    return {
        "overall": NEUTRAL_SCORE,
        **{key: NEUTRAL_SCORE for key in RECIPROCITY_WEIGHTS},
        "data_sufficiency": {key: False for key in RECIPROCITY_WEIGHTS},
        "sufficient": False,
    }
