"""
Chronotype compatibility for ChatDynamics
Derives each person's daily rhythm from message hours and scores how well
two rhythms line up
"""

import logging
import math
from typing import Dict, Any, List, Optional
import numpy as np
import pandas as pd

from . import config
from .models import insufficient_data

logger = logging.getLogger(__name__)

HOURS = 24

# Weekday or weekend midpoints need this many messages, else the overall one is used
SPLIT_MIN_MESSAGES = 10

EARLY_BIRD_BEFORE = 10.0
NIGHT_OWL_FROM = 20.0

# (maximum midpoint distance in hours, match score)
MATCH_STEPS = [(1, 95), (2, 80), (3, 60), (4, 40), (6, 20)]
MIN_MATCH_SCORE = 5
COMPATIBLE_SCORE = 60

# (upper bound in hours, level)
JET_LAG_LEVELS = [(1, "none"), (2, "mild"), (4, "moderate")]


def hourly_distribution(hours) -> List[int]:
    return np.bincount(np.asarray(hours, dtype=int), minlength=HOURS)[:HOURS].tolist()


def circular_midpoint(hourly: List[int]) -> float:
    """Weighted circular mean hour of a 24-bin distribution (12.0 when empty)."""
    counts = np.asarray(hourly, dtype=float)
    total = counts.sum()
    if total == 0:
        return 12.0
    angles = np.arange(HOURS) / HOURS * 2 * math.pi
    mean_angle = math.atan2((np.sin(angles) * counts).sum() / total, (np.cos(angles) * counts).sum() / total)
    hour = (mean_angle / (2 * math.pi) * HOURS + HOURS) % HOURS
    return round(hour, 1) % HOURS


def circular_delta(a: float, b: float) -> float:
    raw = abs(a - b)
    return min(raw, HOURS - raw)


def peak_hour(hourly: List[int]) -> int:
    """Busiest hour, earliest on ties; 12 when there is no activity."""
    if not any(hourly):
        return 12
    return int(np.argmax(hourly))


def chronotype_category(midpoint: float) -> str:
    if midpoint < EARLY_BIRD_BEFORE:
        return "early_bird"
    if midpoint >= NIGHT_OWL_FROM:
        return "night_owl"
    return "intermediate"


def match_score(delta_hours: float) -> int:
    for max_delta, score in MATCH_STEPS:
        if delta_hours <= max_delta:
            return score
    return MIN_MATCH_SCORE


def jet_lag_level(lag_hours: float) -> str:
    for upper, level in JET_LAG_LEVELS:
        if lag_hours < upper:
            return level
    return "severe"


def _split_midpoint(hours: pd.Series, fallback: float) -> float:
    if len(hours) < SPLIT_MIN_MESSAGES:
        return fallback
    return circular_midpoint(hourly_distribution(hours))


def _person_chronotype(sender_df: pd.DataFrame) -> Dict[str, Any]:
    hourly = hourly_distribution(sender_df["hour"])
    midpoint = circular_midpoint(hourly)

    weekend_mask = sender_df["weekday"] >= 5
    weekday_hours = sender_df.loc[~weekend_mask, "hour"]
    weekend_hours = sender_df.loc[weekend_mask, "hour"]
    weekday_mid = _split_midpoint(weekday_hours, midpoint)
    weekend_mid = _split_midpoint(weekend_hours, midpoint)
    # Social jet lag: shift between working-week and weekend rhythm
    lag = circular_delta(weekday_mid, weekend_mid)

    return {
        "peak_hour": peak_hour(hourly),
        "midpoint": midpoint,
        "weekday_midpoint": weekday_mid,
        "weekend_midpoint": weekend_mid,
        "social_jet_lag_hours": round(lag, 1),
        "social_jet_lag_level": jet_lag_level(lag),
        "category": chronotype_category(midpoint),
        "hourly_distribution": hourly,
    }


def compute_chronotype(
    df: pd.DataFrame,
    names: List[str],
    cfg: Optional[config.AnalysisConfig] = None,
) -> Dict[str, Any]:
    """
    Chronotype of each person in a two-person chat and their compatibility.

    The midpoint is the circular mean of the person's message hours. The
    match score steps down with the circular distance between the two
    midpoints: 95 within 1h, 80 within 2h, 60 within 3h, 40 within 4h,
    20 within 6h and 5 beyond.

    Returns:
        {
            "sufficient": True,
            "score": int,
            "delta_hours": float,
            "is_compatible": bool,       # score >= 60
            "avg_social_jet_lag": float,
            "persons": {name: {"peak_hour", "midpoint", "weekday_midpoint",
                               "weekend_midpoint", "social_jet_lag_hours",
                               "social_jet_lag_level", "category",
                               "hourly_distribution"}},
        }
        or the insufficient-data sentinel.
    """
    cfg = cfg or config.DEFAULT_CONFIG
    if len(names) != 2:
        return insufficient_data("Chronotype compatibility is computed for two-person chats")

    authored = df[df["type"] != "system"]
    per_sender = {name: authored[authored["sender"] == name] for name in names}
    short = [name for name in names if len(per_sender[name]) < cfg.chronotype_min_messages]
    if short:
        logger.info(f"Skipping chronotype: too few messages from {', '.join(short)}")
        return insufficient_data(f"Need at least {cfg.chronotype_min_messages} messages from each person")

    persons = {name: _person_chronotype(per_sender[name]) for name in names}
    a, b = names
    delta = circular_delta(persons[a]["midpoint"], persons[b]["midpoint"])
    score = match_score(delta)
    avg_lag = (persons[a]["social_jet_lag_hours"] + persons[b]["social_jet_lag_hours"]) / 2

    logger.info(f"Chronotype midpoints {persons[a]['midpoint']} and {persons[b]['midpoint']}, score {score}")
    return {
        "sufficient": True,
        "score": score,
        "delta_hours": round(delta, 1),
        "is_compatible": score >= COMPATIBLE_SCORE,
        "avg_social_jet_lag": round(avg_lag, 1),
        "persons": persons,
    }
