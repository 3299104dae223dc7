"""
Longitudinal deltas for ChatDynamics
Compares two analyses of the same conversation taken at different times
"""

import hashlib
import logging
from typing import Dict, Any, List, Optional, Union

from .models import ParsedConversation

logger = logging.getLogger(__name__)

DAY_MS = 86_400_000
NEUTRAL_EPSILON = 0.001


def conversation_fingerprint(conversation: Union[ParsedConversation, Dict]) -> str:
    """
    Stable identity of a conversation across re-exports.

    Built from platform, participant list and first message timestamp, so
    a later export with more messages keeps the same fingerprint.
    """
    if isinstance(conversation, dict):
        conversation = ParsedConversation.from_dict(conversation)
    key = "|".join([
        conversation.platform,
        ",".join(conversation.participants),
        str(conversation.first_timestamp),
    ])
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def get_direction(delta: float) -> str:
    if abs(delta) < NEUTRAL_EPSILON:
        return "neutral"
    return "up" if delta > 0 else "down"


def delta_percent(delta: float, previous: float) -> float:
    if previous == 0:
        return 0.0
    return delta / previous * 100


def build_metric(key: str, label: str, previous: float, current: float, unit: str,
                 more_is_better: Optional[bool]) -> Dict[str, Any]:
    """
    One delta entry.

    more_is_better=None marks a metric where neither direction is better;
    its is_improvement is None.
    """
    delta = current - previous
    direction = get_direction(delta)
    if more_is_better is None:
        is_improvement = None
    elif direction == "neutral":
        is_improvement = False
    else:
        is_improvement = (direction == "up") == more_is_better

    return {
        "key": key,
        "label": label,
        "previous": previous,
        "current": current,
        "delta": delta,
        "delta_percent": delta_percent(delta, previous),
        "unit": unit,
        "direction": direction,
        "polarity": "neutral" if more_is_better is None else ("higher" if more_is_better else "lower"),
        "is_improvement": is_improvement,
    }


def _average(values: List[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def _snapshot(result: Dict[str, Any]) -> Dict[str, float]:
    names = result["participants"]
    return {
        "total_messages": result["metadata"]["total_messages"],
        "total_words": sum(result["per_person"][n]["total_words"] for n in names),
        "sessions": result["engagement"]["total_sessions"],
        "avg_response_time_ms": _average(
            [result["timing"]["per_person"][n]["median_response_time_ms"] for n in names]
        ),
        "avg_message_length": _average(
            [result["per_person"][n]["average_message_length"] for n in names]
        ),
        "volume_trend": result["patterns"]["volume_trend"],
    }


def compare_analyses(previous: Dict[str, Any], current: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deltas between two analyses of the same conversation.

    Raises:
        ValueError: the analyses belong to different conversations

    Returns:
        {
            "fingerprint": str,
            "metrics": [metric, ...],
            "days_since": int or None,   # needs analyzed_at on both results
        }
    """
    if previous.get("fingerprint") != current.get("fingerprint"):
        raise ValueError(
            f"Cannot compare different conversations: "
            f"{previous.get('fingerprint')} != {current.get('fingerprint')}"
        )

    prev = _snapshot(previous)
    curr = _snapshot(current)

    metrics = [
        build_metric("total_messages", "Messages", prev["total_messages"], curr["total_messages"], "msg", True),
        build_metric("total_words", "Words", prev["total_words"], curr["total_words"], "words", True),
        build_metric("sessions", "Sessions", prev["sessions"], curr["sessions"], "sessions", True),
        build_metric("avg_response_time_ms", "Avg response time",
                     prev["avg_response_time_ms"], curr["avg_response_time_ms"], "ms", False),
        build_metric("avg_message_length", "Avg message length",
                     prev["avg_message_length"], curr["avg_message_length"], "words", None),
        build_metric("volume_trend", "Volume trend", prev["volume_trend"], curr["volume_trend"], "msg/month", True),
    ]

    days_since = None
    if previous.get("analyzed_at") is not None and current.get("analyzed_at") is not None:
        days_since = int(round((current["analyzed_at"] - previous["analyzed_at"]) / DAY_MS))

    logger.info(f"Compared analyses of {current['fingerprint']}: {len(metrics)} deltas")
    return {"fingerprint": current["fingerprint"], "metrics": metrics, "days_since": days_since}
