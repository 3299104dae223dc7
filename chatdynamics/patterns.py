"""
Activity pattern module for ChatDynamics
Monthly volume, weekday split, burst windows, heatmaps and monthly trends
"""

import logging
from datetime import date, timedelta
from typing import Dict, Any, List, Optional
import numpy as np
import pandas as pd

from . import config
from . import stats
from .text_features import lexicon_sentiment
from .timing import response_events, monthly_response_medians

logger = logging.getLogger(__name__)

WEEKDAYS = 7
HOURS = 24


def compute_patterns(
    df: pd.DataFrame,
    sessions: List[Dict[str, Any]],
    names: List[str],
    cfg: Optional[config.AnalysisConfig] = None,
) -> Dict[str, Any]:
    """
    Compute activity patterns.

    Heatmap rows are weekdays (0 = Monday) and columns are the local hour
    each message was sent; no per-participant timezone correction is made.

    Returns:
        {
            "monthly_volume": [{"month", "per_person", "total"}],
            "weekday_weekend": {name: {"weekday": int, "weekend": int}},
            "volume_trend": float,
            "bursts": [{"start_date", "end_date", "message_count", "avg_daily"}],
            "active_days": int,
            "heatmap": {"per_person": {name: 7x24}, "combined": 7x24},
            "trends": {
                "response_time_trend": [...],
                "message_length_trend": [...],
                "initiation_trend": [...],
                "sentiment_trend": [...],
            },
        }
    """
    cfg = cfg or config.DEFAULT_CONFIG
    logger.info(f"Computing activity patterns from {len(df)} messages")

    if len(df) == 0:
        return _empty_patterns(names)

    months = sorted(df["month"].unique().tolist())
    authored = df[df["type"] != "system"]

    counts = authored.groupby(["month", "sender"]).size()
    monthly_volume = []
    for month in months:
        per_person = {name: int(counts.get((month, name), 0)) for name in names}
        monthly_volume.append({"month": month, "per_person": per_person, "total": int(sum(per_person.values()))})

    weekday_weekend = {}
    for name in names:
        days = authored.loc[authored["sender"] == name, "weekday"]
        weekend = int((days >= 5).sum())
        weekday_weekend[name] = {"weekday": int(len(days) - weekend), "weekend": weekend}

    daily = df.groupby("day").size()
    bursts = detect_bursts(daily, cfg)

    result = {
        "monthly_volume": monthly_volume,
        "weekday_weekend": weekday_weekend,
        "volume_trend": stats.linear_regression_slope([m["total"] for m in monthly_volume]),
        "bursts": bursts,
        "active_days": int(len(daily)),
        "heatmap": compute_heatmap(authored, names),
        "trends": compute_trends(df, sessions, names, months),
    }

    logger.info(f"Patterns computed over {len(months)} months, {len(bursts)} bursts")
    return result


def compute_heatmap(df: pd.DataFrame, names: List[str]) -> Dict[str, Any]:
    """Hour x weekday message counts, per person and combined."""
    per_person = {}
    combined = np.zeros((WEEKDAYS, HOURS), dtype=int)
    for name in names:
        matrix = np.zeros((WEEKDAYS, HOURS), dtype=int)
        sender_df = df[df["sender"] == name]
        np.add.at(matrix, (sender_df["weekday"].to_numpy(dtype=int), sender_df["hour"].to_numpy(dtype=int)), 1)
        per_person[name] = matrix.tolist()
        combined += matrix
    return {"per_person": per_person, "combined": combined.tolist()}


def detect_bursts(daily_counts: pd.Series, cfg: Optional[config.AnalysisConfig] = None) -> List[Dict[str, Any]]:
    """
    Find bursts of unusually high daily volume.

    An active day is a burst day when its count exceeds burst_multiplier
    times the average of the previous seven active days (the overall
    average for the first seven). Adjacent burst days merge into one window.
    """
    cfg = cfg or config.DEFAULT_CONFIG
    if len(daily_counts) < cfg.burst_min_days:
        return []

    ordered = daily_counts.sort_index()
    days = ordered.index.tolist()
    values = ordered.to_numpy(dtype=float)
    overall = values.mean()
    window = cfg.burst_window_days

    burst_days = []
    for i, count in enumerate(values):
        baseline = overall if i < window else values[i - window:i].mean()
        if baseline > 0 and count > cfg.burst_multiplier * baseline:
            burst_days.append((days[i], int(count)))

    bursts: List[Dict[str, Any]] = []
    for day, count in burst_days:
        current = date.fromisoformat(day)
        if bursts and current - date.fromisoformat(bursts[-1]["end_date"]) <= timedelta(days=1):
            last = bursts[-1]
            last["end_date"] = day
            last["message_count"] += count
            last["days"] += 1
        else:
            bursts.append({"start_date": day, "end_date": day, "message_count": count, "days": 1})

    for burst in bursts:
        burst["avg_daily"] = burst["message_count"] / burst.pop("days")
    return bursts


def compute_trends(
    df: pd.DataFrame,
    sessions: List[Dict[str, Any]],
    names: List[str],
    months: List[str],
) -> Dict[str, List[Dict[str, Any]]]:
    """Monthly per-person series for response time, length, initiation share and sentiment."""
    text_df = df[df["word_count"] > 0]
    lengths = text_df.groupby(["month", "sender"])["word_count"].mean()
    sentiment = (
        text_df.assign(sentiment=text_df["content"].map(lexicon_sentiment).astype(float))
        .groupby(["month", "sender"])["sentiment"].mean()
    )

    # Initiations are attributed to the month in which the session starts
    month_of_row = df["month"].to_numpy()
    initiations: Dict[str, Dict[str, int]] = {m: {name: 0 for name in names} for m in months}
    for session in sessions:
        month = month_of_row[session["start"]]
        if session["initiator"] in initiations[month]:
            initiations[month][session["initiator"]] += 1

    message_length_trend = []
    sentiment_trend = []
    initiation_trend = []
    for month in months:
        message_length_trend.append({
            "month": month,
            "per_person": {name: float(lengths.get((month, name), 0.0)) for name in names},
        })
        sentiment_trend.append({
            "month": month,
            "per_person": {name: float(sentiment.get((month, name), 0.0)) for name in names},
        })
        total = sum(initiations[month].values())
        initiation_trend.append({
            "month": month,
            "per_person": {name: (initiations[month][name] / total) if total else 0.0 for name in names},
        })

    return {
        "response_time_trend": monthly_response_medians(response_events(df), names, months),
        "message_length_trend": message_length_trend,
        "initiation_trend": initiation_trend,
        "sentiment_trend": sentiment_trend,
    }


def _empty_patterns(names: List[str]) -> Dict[str, Any]:
    """Return empty pattern structure."""
    empty_matrix = [[0] * HOURS for _ in range(WEEKDAYS)]
    return {
        "monthly_volume": [],
        "weekday_weekend": {name: {"weekday": 0, "weekend": 0} for name in names},
        "volume_trend": 0.0,
        "bursts": [],
        "active_days": 0,
        "heatmap": {
            "per_person": {name: [row[:] for row in empty_matrix] for name in names},
            "combined": [row[:] for row in empty_matrix],
        },
        "trends": {
            "response_time_trend": [],
            "message_length_trend": [],
            "initiation_trend": [],
            "sentiment_trend": [],
        },
    }
