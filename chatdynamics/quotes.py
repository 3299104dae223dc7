"""
Notable quotes for ChatDynamics
Scores each text message by length, emotional density and time of night
"""

import logging
from typing import Dict, Any, List, Optional
import pandas as pd

from . import config
from .text_features import emotional_density

logger = logging.getLogger(__name__)

BASE_WEIGHT = 0.3
EMOTION_WEIGHT = 2.0


def late_night_factor(hour: int, preserve_defect: bool = False) -> float:
    """
    Time-of-night multiplier.

    3x for 03:00-05:59, 2x for 01:00-02:59 and 1.5x for 23:00-00:59.
    With preserve_defect the 1.5x branch applies to every remaining hour,
    matching scores produced by older releases.
    """
    if 3 <= hour <= 5:
        return 3.0
    if 1 <= hour <= 2:
        return 2.0
    if preserve_defect or hour in (23, 0):
        return 1.5
    return 1.0


def score_quote(word_count: int, density: float, hour: int, preserve_defect: bool = False) -> float:
    return word_count * (BASE_WEIGHT + density * EMOTION_WEIGHT) * late_night_factor(hour, preserve_defect)


def find_notable_quotes(
    df: pd.DataFrame,
    cfg: Optional[config.AnalysisConfig] = None,
    names: Optional[List[str]] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Top scoring messages per person.

    Returns:
        {name: [{"content", "timestamp", "hour", "word_count",
                 "emotional_density", "score"}]}, best first
    """
    cfg = cfg or config.DEFAULT_CONFIG
    if names is None:
        names = [] if len(df) == 0 else list(dict.fromkeys(df.loc[df["type"] != "system", "sender"]))
    quotes: Dict[str, List[Dict[str, Any]]] = {name: [] for name in names}
    if len(df) == 0:
        return quotes

    text_df = df[(df["word_count"] > 0) & (df["type"] != "system")]
    for row in text_df.itertuples(index=False):
        if row.sender not in quotes:
            continue
        density = emotional_density(row.content)
        quotes[row.sender].append({
            "content": row.content,
            "timestamp": int(row.timestamp),
            "hour": int(row.hour),
            "word_count": int(row.word_count),
            "emotional_density": density,
            "score": score_quote(int(row.word_count), density, int(row.hour), cfg.preserve_late_night_defect),
        })

    for name in names:
        # Stable sort keeps earlier messages first on equal scores
        quotes[name] = sorted(quotes[name], key=lambda q: -q["score"])[:cfg.notable_quotes_top_n]

    logger.info(f"Selected notable quotes for {len(names)} participants")
    return quotes
