"""
Language style matching for ChatDynamics
Function-word category rates per person and how closely two people match
"""

import logging
from typing import Dict, Any, List, Optional
import pandas as pd

from . import config
from .models import insufficient_data
from .stats import safe_divide
from .text_features import style_tokens

logger = logging.getLogger(__name__)

# Categories both people (almost) never use are left out of the average
MIN_CATEGORY_RATE = 0.001
SMOOTHING = 0.0001

# (minimum overall similarity, level) ordered best to worst
LSM_LEVELS = [
    (0.85, "high"),
    (0.70, "moderate"),
    (0.55, "low"),
    (0.0, "very_low"),
]


def category_rates(tokens: List[str]) -> Dict[str, float]:
    """Share of tokens that fall in each function-word category."""
    return {
        category: safe_divide(sum(1 for tok in tokens if tok in category_words), len(tokens))
        for category, category_words in config.FUNCTION_WORD_CATEGORIES.items()
    }


def category_similarity(rate_a: float, rate_b: float) -> float:
    """1 - |a - b| / (a + b), smoothed; 1.0 means identical usage."""
    return 1 - abs(rate_a - rate_b) / (rate_a + rate_b + SMOOTHING)


def lsm_level(overall: float) -> str:
    for minimum, level in LSM_LEVELS:
        if overall >= minimum:
            return level
    return LSM_LEVELS[-1][1]


def compute_lsm(
    df: pd.DataFrame,
    names: List[str],
    cfg: Optional[config.AnalysisConfig] = None,
) -> Dict[str, Any]:
    """
    Language style matching between the first two participants.

    Each person's function-word rate per category is compared with the
    other's; the overall score is the mean similarity over categories at
    least one of them uses.

    Returns:
        {
            "sufficient": True,
            "score": int,                # 0-100
            "overall": float,            # 0-1, two decimals
            "level": "high" | "moderate" | "low" | "very_low",
            "per_category": {category: float},
            "rates": {name: {category: float}},
            "pair": [name, name],
        }
        or the insufficient-data sentinel.
    """
    cfg = cfg or config.DEFAULT_CONFIG
    if len(names) < 2:
        return insufficient_data("Language style matching needs two participants")

    pair = names[:2]
    tokens: Dict[str, List[str]] = {name: [] for name in pair}
    if len(df):
        authored = df[df["type"] != "system"]
        for sender, content in zip(authored["sender"], authored["content"]):
            if sender in tokens and content:
                tokens[sender].extend(style_tokens(content))

    short = [name for name in pair if len(tokens[name]) < cfg.lsm_min_tokens]
    if short:
        logger.info(f"Skipping language style matching: too few words from {', '.join(short)}")
        return insufficient_data(f"Need at least {cfg.lsm_min_tokens} words from each person")

    rates = {name: category_rates(tokens[name]) for name in pair}
    a, b = pair
    per_category = {}
    for category in config.FUNCTION_WORD_CATEGORIES:
        rate_a, rate_b = rates[a][category], rates[b][category]
        if rate_a < MIN_CATEGORY_RATE and rate_b < MIN_CATEGORY_RATE:
            continue
        per_category[category] = category_similarity(rate_a, rate_b)

    if not per_category:
        return insufficient_data("Neither person uses function words")

    overall = sum(per_category.values()) / len(per_category)
    logger.info(f"Language style matching {overall:.2f} over {len(per_category)} categories")
    return {
        "sufficient": True,
        "score": int(round(overall * 100)),
        "overall": round(overall, 2),
        "level": lsm_level(overall),
        "per_category": per_category,
        "rates": rates,
        "pair": pair,
    }
