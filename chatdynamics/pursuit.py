"""
Pursuit-withdrawal detection for ChatDynamics
Finds cycles where one person sends a burst of unanswered messages and the
other side goes quiet
"""

import logging
from typing import Dict, Any, List, Optional
import numpy as np
import pandas as pd

from . import config
from .sessions import session_labels

logger = logging.getLogger(__name__)

MIN_CYCLES = 2


def detect_pursuit_withdrawal(
    df: pd.DataFrame,
    names: List[str],
    cfg: Optional[config.AnalysisConfig] = None,
) -> Dict[str, Any]:
    """
    Detect pursuit-withdrawal cycles.

    Pursuit: at least pursuit_burst_size consecutive messages from one sender,
    all within pursuit_window_ms of the burst's first message.
    Withdrawal: the message after the burst arrives more than withdrawal_ms
    later. A burst that ends the conversation is not a cycle.

    Returns:
        {
            "sufficient": bool,          # at least two cycles
            "pursuer": str or "mutual" or None,
            "withdrawer": str or "mutual" or None,
            "cycle_count": int,
            "avg_cycle_duration_ms": float,
            "escalation_trend": float,   # >0 means withdrawals are getting longer
            "per_person": {name: {"pursuits": int, "withdrawals": int}},
            "cycles": [{"pursuer", "withdrawer", "pursuit_timestamp",
                        "pursuit_message_count", "duration_ms", "resolved"}],
        }
    """
    cfg = cfg or config.DEFAULT_CONFIG
    result = _empty_pursuit(names)
    if len(names) < 2 or len(df) == 0:
        return result

    authored = df[df["type"] != "system"].reset_index(drop=True)
    senders = authored["sender"].to_numpy()
    ts = authored["timestamp"].to_numpy(dtype=np.int64)
    labels = session_labels(authored, cfg)
    n = len(authored)

    cycles = []
    i = 0
    while i < n:
        sender = senders[i]
        j = i
        while j < n and senders[j] == sender and ts[j] - ts[i] <= cfg.pursuit_window_ms:
            j += 1
        burst_size = j - i

        if burst_size >= cfg.pursuit_burst_size and j < n:
            silence = int(ts[j] - ts[j - 1])
            if silence > cfg.withdrawal_ms:
                withdrawer = senders[j] if senders[j] != sender else _other(names, sender)
                resumed = (labels == labels[j]) & (np.arange(n) >= j)
                resolved = bool(np.any(senders[resumed] == withdrawer))
                cycles.append({
                    "pursuer": sender,
                    "withdrawer": withdrawer,
                    "pursuit_timestamp": int(ts[i]),
                    "pursuit_message_count": burst_size,
                    "duration_ms": silence,
                    "resolved": resolved,
                })
        i = j

    for cycle in cycles:
        if cycle["pursuer"] in result["per_person"]:
            result["per_person"][cycle["pursuer"]]["pursuits"] += 1
        if cycle["withdrawer"] in result["per_person"]:
            result["per_person"][cycle["withdrawer"]]["withdrawals"] += 1

    result["cycles"] = cycles
    result["cycle_count"] = len(cycles)
    if not cycles:
        return result

    durations = [c["duration_ms"] for c in cycles]
    result["avg_cycle_duration_ms"] = float(np.mean(durations))
    mid = len(durations) // 2
    first_half = float(np.mean(durations[:mid])) if mid else 0.0
    second_half = float(np.mean(durations[mid:]))
    result["escalation_trend"] = (second_half / first_half - 1) if first_half > 0 else 0.0

    if len(cycles) >= MIN_CYCLES:
        result["sufficient"] = True
        ranked = sorted(names, key=lambda name: -result["per_person"][name]["pursuits"])
        top = result["per_person"][ranked[0]]["pursuits"]
        bottom = result["per_person"][ranked[-1]]["pursuits"]
        if (top - bottom) / len(cycles) < cfg.pursuit_mutual_threshold:
            result["pursuer"] = result["withdrawer"] = "mutual"
        else:
            result["pursuer"] = ranked[0]
            result["withdrawer"] = ranked[-1]

    logger.info(f"Detected {len(cycles)} pursuit-withdrawal cycles")
    return result


def _other(names: List[str], sender: str) -> str:
    for name in names:
        if name != sender:
            return name
    return sender


def _empty_pursuit(names: List[str]) -> Dict[str, Any]:
    """Return empty pursuit-withdrawal structure."""
    return {
        "sufficient": False,
        "pursuer": None,
        "withdrawer": None,
        "cycle_count": 0,
        "avg_cycle_duration_ms": 0.0,
        "escalation_trend": 0.0,
        "per_person": {name: {"pursuits": 0, "withdrawals": 0} for name in names},
        "cycles": [],
    }
