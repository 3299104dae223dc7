"""
Conflict detection for ChatDynamics

Detects three kinds of conflict events on the session-aware timeline:

1. Escalation: a message much longer than the sender's rolling average,
   sent as a rapid reply in a back-and-forth exchange.
2. Cold silence: a long gap that follows a busy stretch of conversation.
3. Resolution: a run of short messages shortly after a cold silence.

Thresholds are conservative.
"""

import logging
from collections import deque
from typing import Dict, Any, List, Optional
import numpy as np
import pandas as pd

from . import config
from . import stats
from .sessions import session_labels
from .text_features import has_conflict_bigram

logger = logging.getLogger(__name__)

HOUR_MS = 60 * 60 * 1000

# Per-event weights for the conflict-prone ranking
CONFLICT_WEIGHTS = {
    "escalation": 2.0,
    "cold_silence": 1.5,
    "resolution": -0.5,
}

_TYPE_ORDER = {"escalation": 0, "cold_silence": 1, "resolution": 2}


def detect_conflicts(
    df: pd.DataFrame,
    names: List[str],
    cfg: Optional[config.AnalysisConfig] = None,
) -> Dict[str, Any]:
    """
    Detect conflict events in a conversation.

    Args:
        df: Message frame
        names: Participant order
        cfg: Analysis configuration

    Returns:
        {
            "events": [{"type", "timestamp", "date", "participants",
                        "severity", "message_range"}],
            "total_conflicts": int,      # escalations + cold silences
            "counts": {"escalation": int, "cold_silence": int, "resolution": int},
            "scores": {name: float},
            "most_conflict_prone": str or None,
            "sufficient": bool,          # False when the chat is too short
            "reason": str,               # only when not sufficient
        }
    """
    cfg = cfg or config.DEFAULT_CONFIG

    if len(df) < cfg.conflict_min_messages:
        logger.info(f"Skipping conflict detection: {len(df)} messages < {cfg.conflict_min_messages}")
        return _empty_conflicts(names, reason=f"Need at least {cfg.conflict_min_messages} messages, found {len(df)}")

    escalations = _detect_escalations(df, cfg)
    silences = _detect_cold_silences(df, cfg)
    resolutions = _detect_resolutions(df, silences, cfg)

    events = sorted(
        escalations + silences + resolutions,
        key=lambda e: (e["timestamp"], _TYPE_ORDER[e["type"]]),
    )
    for event in events:
        event.pop("_resume_position", None)

    scores = rank_conflict_prone(events, names)
    most = None
    best = 0.0
    for name in names:
        if scores[name] > best:
            best = scores[name]
            most = name

    logger.info(
        f"Detected {len(escalations)} escalations, {len(silences)} cold silences, "
        f"{len(resolutions)} resolutions"
    )
    return {
        "events": events,
        "total_conflicts": len(escalations) + len(silences),
        "counts": {
            "escalation": len(escalations),
            "cold_silence": len(silences),
            "resolution": len(resolutions),
        },
        "scores": scores,
        "most_conflict_prone": most,
        "sufficient": True,
    }


def rank_conflict_prone(events: List[Dict[str, Any]], names: List[str]) -> Dict[str, float]:
    """Sum the type weight of every event a person took part in."""
    scores = {name: 0.0 for name in names}
    for event in events:
        weight = CONFLICT_WEIGHTS[event["type"]]
        for person in event["participants"]:
            if person in scores:
                scores[person] += weight
    return scores


def _event(event_type: str, df: pd.DataFrame, pos: int, participants: List[str],
           severity: str, start: int, end: int) -> Dict[str, Any]:
    return {
        "type": event_type,
        "timestamp": int(df["timestamp"].iat[pos]),
        "date": df["day"].iat[pos],
        "participants": participants,
        "severity": severity,
        "message_range": [int(df["index"].iat[start]), int(df["index"].iat[end])],
    }


def _detect_escalations(df: pd.DataFrame, cfg: config.AnalysisConfig) -> List[Dict[str, Any]]:
    labels = session_labels(df, cfg)
    senders = df["sender"].to_numpy()
    ts = df["timestamp"].to_numpy(dtype=np.int64)
    word_counts = df["word_count"].to_numpy(dtype=int)
    contents = df["content"].to_numpy()

    events = []
    windows: Dict[str, deque] = {}
    current_session = None
    last_escalation_ts = None

    for i in range(len(df)):
        # Rolling windows do not carry over silences between sessions
        if labels[i] != current_session:
            windows = {}
            current_session = labels[i]

        words = word_counts[i]
        if words == 0:
            continue

        window = windows.setdefault(senders[i], deque(maxlen=cfg.conflict_window))
        avg = (sum(window) / len(window)) if window else 0.0
        is_spike = len(window) >= cfg.conflict_min_history and avg > 0 and words > cfg.escalation_multiplier * avg
        is_rapid_exchange = (
            i > 0
            and senders[i - 1] != senders[i]
            and ts[i] - ts[i - 1] <= cfg.rapid_reply_ms
        )

        if is_spike and is_rapid_exchange:
            cooled_down = last_escalation_ts is None or ts[i] - last_escalation_ts >= cfg.escalation_cooldown_ms
            if cooled_down:
                severity = "severe" if has_conflict_bigram(contents[i]) else "mild"
                participants = list(dict.fromkeys([senders[i - 1], senders[i]]))
                events.append(_event("escalation", df, i, participants, severity, i - 1, i))
                last_escalation_ts = ts[i]
                logger.debug(f"Escalation at row {i}: {words} words vs avg {avg:.1f}")

        window.append(int(words))

    return events


def _detect_cold_silences(df: pd.DataFrame, cfg: config.AnalysisConfig) -> List[Dict[str, Any]]:
    ts = df["timestamp"].to_numpy(dtype=np.int64)
    senders = df["sender"].to_numpy()
    gaps = np.diff(ts)
    if len(gaps) == 0:
        return []
    p75_gap = stats.percentile(gaps, 75)

    events = []
    last_silence_ts = None
    for i in range(1, len(ts)):
        gap = int(gaps[i - 1])
        if gap <= cfg.cold_silence_ms or gap <= p75_gap:
            continue
        if last_silence_ts is not None and ts[i - 1] - last_silence_ts < cfg.silence_dedup_ms:
            continue

        # Busy stretch before the silence: messages within the lookback window
        window_start = int(np.searchsorted(ts, ts[i - 1] - cfg.silence_lookback_ms, side="left"))
        recent = i - window_start
        if recent < cfg.silence_lookback_min_messages:
            continue

        if gap >= 72 * HOUR_MS:
            severity = "severe"
        elif gap >= 48 * HOUR_MS:
            severity = "moderate"
        else:
            severity = "mild"

        participants = list(dict.fromkeys(senders[window_start:i].tolist()))
        event = _event("cold_silence", df, i - 1, participants, severity, window_start, i)
        event["duration_ms"] = gap
        event["_resume_position"] = i
        events.append(event)
        last_silence_ts = ts[i - 1]

    return events


def _detect_resolutions(
    df: pd.DataFrame,
    silences: List[Dict[str, Any]],
    cfg: config.AnalysisConfig,
) -> List[Dict[str, Any]]:
    ts = df["timestamp"].to_numpy(dtype=np.int64)
    senders = df["sender"].to_numpy()
    word_counts = df["word_count"].to_numpy(dtype=int)

    events = []
    for silence in silences:
        resume = silence["_resume_position"]
        deadline = ts[resume] + cfg.resolution_window_ms

        run_start = None
        j = resume
        while j < len(ts) and ts[j] <= deadline:
            if 0 < word_counts[j] <= cfg.resolution_max_words:
                if run_start is None:
                    run_start = j
                if j - run_start + 1 > cfg.resolution_min_messages:
                    # Extend to the end of the short-message run
                    end = j
                    while (end + 1 < len(ts) and ts[end + 1] <= deadline
                           and 0 < word_counts[end + 1] <= cfg.resolution_max_words):
                        end += 1
                    participants = list(dict.fromkeys(senders[run_start:end + 1].tolist()))
                    events.append(_event("resolution", df, run_start, participants, "mild", run_start, end))
                    break
            else:
                run_start = None
            j += 1

    return events


def _empty_conflicts(names: List[str], reason: str) -> Dict[str, Any]:
    """Return empty conflict structure for a conversation too short to analyze."""
    return {
        "events": [],
        "total_conflicts": 0,
        "counts": {"escalation": 0, "cold_silence": 0, "resolution": 0},
        "scores": {name: 0.0 for name in names},
        "most_conflict_prone": None,
        "sufficient": False,
        "reason": reason,
    }
