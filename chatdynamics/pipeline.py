"""
Shared analysis pipeline for ChatDynamics
Runs every analyzer over one conversation and assembles the result object
"""

import concurrent.futures
import logging
import math
from typing import Dict, Any, List, Optional, Union
import pandas as pd

from . import config
from .models import ParsedConversation
from .normalizer import build_message_frame, participant_names
from .sessions import segment_sessions
from .timing import compute_timing
from .engagement import compute_person_metrics, compute_engagement
from .patterns import compute_patterns
from .conflicts import detect_conflicts
from .pursuit import detect_pursuit_withdrawal
from .reciprocity import compute_reciprocity
from .badges import compute_badges, compute_streaks
from .viral_scores import compute_viral_scores
from .threat_meters import compute_threat_meters
from .horsemen import compute_horsemen
from .catchphrases import compute_catchphrases, compute_best_time_to_text
from .lsm import compute_lsm
from .chronotype import compute_chronotype
from .quotes import find_notable_quotes
from .percentiles import compute_rankings
from .delta import conversation_fingerprint

logger = logging.getLogger(__name__)

DAY_MS = 86_400_000


def _timing_branch(df, sessions, names, cfg) -> Dict[str, Any]:
    return {"timing": compute_timing(df, sessions, names, cfg)}


def _engagement_branch(df, sessions, names, cfg) -> Dict[str, Any]:
    person_metrics = compute_person_metrics(df, names, cfg)
    return {
        "per_person": person_metrics,
        "engagement": compute_engagement(df, sessions, names, person_metrics),
        "patterns": compute_patterns(df, sessions, names, cfg),
    }


def _run_branches(df, sessions, names, cfg, max_workers: Optional[int]) -> Dict[str, Any]:
    """
    Run the timing and engagement/pattern branches.

    With max_workers > 1 both run on a thread pool. Results are merged by
    branch key in a fixed order, never by completion order.
    """
    branches = [("timing", _timing_branch), ("engagement", _engagement_branch)]

    if not max_workers or max_workers <= 1:
        merged: Dict[str, Any] = {}
        for _, branch in branches:
            merged.update(branch(df, sessions, names, cfg))
        return merged

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {key: executor.submit(branch, df, sessions, names, cfg) for key, branch in branches}
        concurrent.futures.wait(futures.values())

    merged = {}
    for key, _ in branches:
        # Re-raises any analyzer error from the worker thread
        merged.update(futures[key].result())
    return merged


def _metadata(conversation: ParsedConversation, df: pd.DataFrame, names: List[str],
              patterns: Dict[str, Any]) -> Dict[str, Any]:
    if len(df):
        start, end = int(df["timestamp"].iat[0]), int(df["timestamp"].iat[-1])
        duration_days = max(1, int(math.ceil((end - start) / DAY_MS)))
    else:
        start = end = None
        duration_days = 0
    return {
        "platform": conversation.platform,
        "total_messages": int(len(df)),
        "date_range": {"start": start, "end": end},
        "duration_days": duration_days,
        "months": len(patterns["monthly_volume"]),
        "is_group": len(names) > 2,
    }


def run_analysis(
    conversation: Union[ParsedConversation, Dict],
    cfg: Optional[config.AnalysisConfig] = None,
    max_workers: Optional[int] = None,
    pattern_confidences: Optional[Dict[str, float]] = None,
    analyzed_at: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Run the complete analysis on one conversation.

    Args:
        conversation: ParsedConversation or its dict form
        cfg: Analysis configuration (defaults to DEFAULT_CONFIG)
        max_workers: Run the timing and engagement branches concurrently
            when greater than 1
        pattern_confidences: 0-100 communication-pattern confidences from an
            external screening step, used by the conflict-factor index
        analyzed_at: Epoch ms of this run, used only by delta comparisons

    Raises:
        ValueError: invalid configuration

    Returns:
        Nested dict keyed by participant name and YYYY-MM month strings
    """
    cfg = cfg or config.DEFAULT_CONFIG
    is_valid, message = config.validate_config(cfg)
    if not is_valid:
        raise ValueError(message)

    if isinstance(conversation, dict):
        conversation = ParsedConversation.from_dict(conversation)

    # Step 1: Normalize
    df = build_message_frame(conversation, cfg)
    names = participant_names(conversation, df)
    logger.info(f"Analyzing {len(df)} messages from {len(names)} participants")

    # Step 2: Sessions
    sessions = segment_sessions(df, cfg)

    # Step 3: Timing and engagement/patterns (independent branches)
    branches = _run_branches(df, sessions, names, cfg, max_workers)
    person_metrics = branches["per_person"]
    timing = branches["timing"]
    engagement = branches["engagement"]
    patterns = branches["patterns"]

    # Step 4: Behavioral detectors
    conflicts = detect_conflicts(df, names, cfg)
    pursuit = detect_pursuit_withdrawal(df, names, cfg)
    reciprocity = compute_reciprocity(person_metrics, timing, names)

    # Step 5: Composite scores
    streaks = compute_streaks(df, names)
    badges = compute_badges(person_metrics, timing, engagement, patterns, streaks, names, cfg)
    viral = compute_viral_scores(person_metrics, timing, engagement, patterns, names, cfg)
    threat_meters = compute_threat_meters(person_metrics, timing, engagement, reciprocity, pursuit, viral, names)
    horsemen = compute_horsemen(pattern_confidences, timing, viral["ghost_risk"], names)

    # Step 6: Text mining and rhythm
    catchphrases = compute_catchphrases(df, names, cfg)
    best_time = compute_best_time_to_text(patterns["heatmap"], timing, names)
    quotes = find_notable_quotes(df, cfg, names)
    language_style = compute_lsm(df, names, cfg)
    chronotype = compute_chronotype(df, names, cfg)

    result = {
        "fingerprint": conversation_fingerprint(conversation),
        "analyzed_at": analyzed_at,
        "participants": names,
        "metadata": _metadata(conversation, df, names, patterns),
        "sessions": sessions,
        "per_person": person_metrics,
        "timing": timing,
        "engagement": engagement,
        "patterns": patterns,
        "conflicts": conflicts,
        "pursuit_withdrawal": pursuit,
        "reciprocity": reciprocity,
        "streaks": streaks,
        "badges": badges,
        "viral_scores": viral,
        "threat_meters": threat_meters,
        "horsemen": horsemen,
        "catchphrases": catchphrases,
        "best_time_to_text": best_time,
        "notable_quotes": quotes,
        "language_style": language_style,
        "chronotype": chronotype,
    }
    result["rankings"] = compute_rankings(result)

    logger.info(
        f"Analysis complete: {len(sessions)} sessions, {conflicts['total_conflicts']} conflicts, "
        f"{len(badges)} badges"
    )
    return result
