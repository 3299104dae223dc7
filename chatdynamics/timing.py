"""
Timing engine for ChatDynamics
Per-person response-time distributions with outlier-aware central statistics
"""

import logging
from typing import Dict, Any, List, Optional
import numpy as np
import pandas as pd

from . import config
from . import stats

logger = logging.getLogger(__name__)

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS

# (label, lower bound inclusive, upper bound exclusive)
RESPONSE_TIME_BINS = [
    ("<10s", 0, 10 * SECOND_MS),
    ("10-30s", 10 * SECOND_MS, 30 * SECOND_MS),
    ("30s-1m", 30 * SECOND_MS, MINUTE_MS),
    ("1-5m", MINUTE_MS, 5 * MINUTE_MS),
    ("5-15m", 5 * MINUTE_MS, 15 * MINUTE_MS),
    ("15-30m", 15 * MINUTE_MS, 30 * MINUTE_MS),
    ("30m-1h", 30 * MINUTE_MS, HOUR_MS),
    ("1-2h", HOUR_MS, 2 * HOUR_MS),
    ("2-6h", 2 * HOUR_MS, 6 * HOUR_MS),
    ("6-24h", 6 * HOUR_MS, 24 * HOUR_MS),
    ("24h+", 24 * HOUR_MS, None),
]


def response_events(df: pd.DataFrame) -> pd.DataFrame:
    """
    Derive response events from the message frame.

    An event is emitted whenever a message's sender differs from the
    previous message's sender. The delta is measured from that previous
    message, i.e. the most recent message of the other side, not the first
    message of their run.

    Returns:
        DataFrame with columns: position, prior_sender, reply_sender,
        delta_ms, month
    """
    authored = df[df["type"] != "system"] if len(df) else df
    if len(authored) < 2:
        return pd.DataFrame({
            "position": pd.Series(dtype="int64"),
            "prior_sender": pd.Series(dtype="object"),
            "reply_sender": pd.Series(dtype="object"),
            "delta_ms": pd.Series(dtype="int64"),
            "month": pd.Series(dtype="object"),
        })

    senders = authored["sender"].to_numpy()
    ts = authored["timestamp"].to_numpy(dtype=np.int64)
    is_reply = senders[1:] != senders[:-1]
    positions = authored.index.to_numpy()[1:][is_reply]

    return pd.DataFrame({
        "position": positions,
        "prior_sender": senders[:-1][is_reply],
        "reply_sender": senders[1:][is_reply],
        "delta_ms": (ts[1:] - ts[:-1])[is_reply],
        "month": authored["month"].to_numpy()[1:][is_reply],
    })


def summarize_response_times(values: List[float], cfg: Optional[config.AnalysisConfig] = None) -> Dict[str, Any]:
    """
    Distribution statistics for one person's response times.

    Central statistics (mean, median, trimmed mean, std dev, skewness) use
    the outlier-filtered sample. Quartiles, percentiles and sample_size
    always describe the raw sample so filtered events stay auditable.
    """
    cfg = cfg or config.DEFAULT_CONFIG
    raw = [float(v) for v in values]
    filt = stats.filter_outliers(
        raw,
        multiplier=cfg.outlier_iqr_multiplier,
        min_iqr_floor=cfg.min_iqr_floor_ms,
        min_sample=cfg.min_outlier_sample,
    )
    filtered = filt["filtered"]

    return {
        "sample_size": len(raw),
        "filtered_sample_size": len(filtered),
        "outliers_removed": len(raw) - len(filtered),
        "outlier_filter_applied": filt["applied"],
        "upper_fence_ms": filt["upper_fence"],
        "mean_response_time_ms": float(np.mean(filtered)) if filtered else 0.0,
        "median_response_time_ms": stats.median(filtered),
        "trimmed_mean_ms": stats.trimmed_mean(filtered, cfg.trim_fraction),
        "std_dev_ms": stats.std_dev(filtered),
        "skewness": stats.skewness(filtered),
        "q1_ms": filt["q1"],
        "q3_ms": filt["q3"],
        "iqr_ms": filt["iqr"],
        "p75_ms": stats.percentile(raw, 75),
        "p90_ms": stats.percentile(raw, 90),
        "p95_ms": stats.percentile(raw, 95),
        "fastest_response_ms": min(raw) if raw else 0.0,
        "slowest_response_ms": max(raw) if raw else 0.0,
        "distribution": bin_response_times(raw),
    }


def bin_response_times(values: List[float]) -> List[Dict[str, Any]]:
    arr = np.asarray(values, dtype=float)
    bins = []
    for label, lower, upper in RESPONSE_TIME_BINS:
        if upper is None:
            count = int((arr >= lower).sum())
        else:
            count = int(((arr >= lower) & (arr < upper)).sum())
        bins.append({"label": label, "min_ms": lower, "max_ms": upper, "count": count})
    return bins


def monthly_response_medians(events: pd.DataFrame, names: List[str], months: List[str]) -> List[Dict[str, Any]]:
    """Median raw response time per person per month (0 when no replies)."""
    grouped = events.groupby(["month", "reply_sender"])["delta_ms"].median() if len(events) else None
    series = []
    for month in months:
        per_person = {}
        for name in names:
            value = 0.0
            if grouped is not None and (month, name) in grouped.index:
                value = float(grouped.loc[(month, name)])
            per_person[name] = value
        series.append({"month": month, "per_person": per_person})
    return series


def is_late_night(hour: int, cfg: config.AnalysisConfig) -> bool:
    return hour >= cfg.late_night_start_hour or hour < cfg.late_night_end_hour


def compute_timing(
    df: pd.DataFrame,
    sessions: List[Dict[str, Any]],
    names: List[str],
    cfg: Optional[config.AnalysisConfig] = None,
) -> Dict[str, Any]:
    """
    Compute timing metrics.

    Args:
        df: Message frame
        sessions: Output of sessions.segment_sessions
        names: Participant order
        cfg: Analysis configuration

    Returns:
        {
            "per_person": {name: summarize_response_times(...)},
            "total_response_events": int,
            "conversation_initiations": {name: int},
            "conversation_endings": {name: int},
            "longest_silence": {duration_ms, start_ts, end_ts, last_sender, next_sender},
            "late_night_messages": {name: int},
            "response_time_slope": {name: float},   # ms per month
            "response_time_distribution": [...],    # all replies combined
        }
    """
    cfg = cfg or config.DEFAULT_CONFIG
    logger.info(f"Computing timing metrics for {len(names)} participants")

    if len(df) == 0:
        return _empty_timing(names, cfg)

    events = response_events(df)

    per_person = {}
    for name in names:
        deltas = events.loc[events["reply_sender"] == name, "delta_ms"].tolist()
        per_person[name] = summarize_response_times(deltas, cfg)

    initiations = {name: 0 for name in names}
    endings = {name: 0 for name in names}
    for session in sessions:
        if session["initiator"] in initiations:
            initiations[session["initiator"]] += 1
        if session["closer"] in endings:
            endings[session["closer"]] += 1

    late_night = {}
    authored = df[df["type"] != "system"]
    for name in names:
        hours = authored.loc[authored["sender"] == name, "hour"]
        late_night[name] = int(sum(1 for h in hours if is_late_night(int(h), cfg)))

    months = sorted(df["month"].unique().tolist())
    monthly = monthly_response_medians(events, names, months)
    slopes = {}
    for name in names:
        values = [entry["per_person"][name] for entry in monthly if entry["per_person"][name] > 0]
        slopes[name] = stats.linear_regression_slope(values)

    result = {
        "per_person": per_person,
        "total_response_events": int(len(events)),
        "conversation_initiations": initiations,
        "conversation_endings": endings,
        "longest_silence": _longest_silence(df),
        "late_night_messages": late_night,
        "response_time_slope": slopes,
        "response_time_distribution": bin_response_times(events["delta_ms"].tolist()),
    }

    logger.info(f"Timing computed from {len(events)} response events")
    return result


def _longest_silence(df: pd.DataFrame) -> Dict[str, Any]:
    if len(df) < 2:
        return {"duration_ms": 0, "start_ts": None, "end_ts": None,
                "last_sender": None, "next_sender": None}

    ts = df["timestamp"].to_numpy(dtype=np.int64)
    gaps = np.diff(ts)
    i = int(np.argmax(gaps))  # first occurrence on ties
    return {
        "duration_ms": int(gaps[i]),
        "start_ts": int(ts[i]),
        "end_ts": int(ts[i + 1]),
        "last_sender": df["sender"].iloc[i],
        "next_sender": df["sender"].iloc[i + 1],
    }


def _empty_timing(names: List[str], cfg: config.AnalysisConfig) -> Dict[str, Any]:
    """Return empty timing structure."""
    return {
        "per_person": {name: summarize_response_times([], cfg) for name in names},
        "total_response_events": 0,
        "conversation_initiations": {name: 0 for name in names},
        "conversation_endings": {name: 0 for name in names},
        "longest_silence": _longest_silence(pd.DataFrame()),
        "late_night_messages": {name: 0 for name in names},
        "response_time_slope": {name: 0.0 for name in names},
        "response_time_distribution": bin_response_times([]),
    }
