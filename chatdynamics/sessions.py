"""
Session segmentation for ChatDynamics
Partitions the message stream on silences longer than the session gap
"""

import logging
from typing import Dict, Any, List, Optional
import numpy as np
import pandas as pd

from . import config

logger = logging.getLogger(__name__)


def session_labels(df: pd.DataFrame, cfg: Optional[config.AnalysisConfig] = None) -> np.ndarray:
    """
    Session id for every row of the frame.

    A new session starts whenever timestamp[i] - timestamp[i-1] is strictly
    greater than the session gap. The threshold is fixed; it does not adapt
    to anyone's sleep schedule.
    """
    cfg = cfg or config.DEFAULT_CONFIG
    if len(df) == 0:
        return np.zeros(0, dtype=int)
    ts = df["timestamp"].to_numpy(dtype=np.int64)
    breaks = np.diff(ts) > cfg.session_gap_ms
    return np.concatenate([[0], np.cumsum(breaks)]).astype(int)


def segment_sessions(df: pd.DataFrame, cfg: Optional[config.AnalysisConfig] = None) -> List[Dict[str, Any]]:
    """
    Split the message frame into sessions.

    Args:
        df: Message frame sorted by (timestamp, index)
        cfg: Analysis configuration

    Returns:
        [
            {
                "id": int,
                "start": int,            # first row position
                "end": int,              # last row position (inclusive)
                "start_index": int,      # message index of first row
                "end_index": int,
                "start_ts": int,
                "end_ts": int,
                "message_count": int,
                "initiator": str,
                "closer": str,
                "participants": List[str],
            }
        ]
    """
    labels = session_labels(df, cfg)
    if len(labels) == 0:
        return []

    senders = df["sender"].to_numpy()
    timestamps = df["timestamp"].to_numpy(dtype=np.int64)
    indices = df["index"].to_numpy()

    # Boundaries of each contiguous label run
    starts = np.flatnonzero(np.concatenate([[True], labels[1:] != labels[:-1]]))
    ends = np.concatenate([starts[1:] - 1, [len(labels) - 1]])

    sessions = []
    for sid, (start, end) in enumerate(zip(starts, ends)):
        start, end = int(start), int(end)
        sessions.append({
            "id": sid,
            "start": start,
            "end": end,
            "start_index": int(indices[start]),
            "end_index": int(indices[end]),
            "start_ts": int(timestamps[start]),
            "end_ts": int(timestamps[end]),
            "message_count": end - start + 1,
            "initiator": senders[start],
            "closer": senders[end],
            "participants": list(dict.fromkeys(senders[start:end + 1].tolist())),
        })

    logger.info(f"Segmented {len(df)} messages into {len(sessions)} sessions")
    return sessions
