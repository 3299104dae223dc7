"""
Achievement badges for ChatDynamics

Each badge is a fixed absolute threshold evaluated independently for every
participant, so several people can hold the same badge. Thresholds are not
scaled by conversation length, and raising a qualifying count never takes a
badge away.
"""

import logging
from datetime import date
from typing import Dict, Any, List, Optional
import pandas as pd

from . import config

logger = logging.getLogger(__name__)

BADGE_NAMES = {
    "night-owl": "Night Owl",
    "early-bird": "Early Bird",
    "ghost-champion": "Ghosting Champion",
    "double-texter": "Double Texter",
    "novelist": "Novelist",
    "speed-demon": "Speed Demon",
    "emoji-monarch": "Emoji Monarch",
    "initiator": "The Initiator",
    "heart-bomber": "Heart Bomber",
    "link-lord": "Link Lord",
    "streak-master": "Streak Master",
    "question-master": "Question Master",
}


def format_duration_ms(ms: float) -> str:
    """Human readable duration: 45s, 12m, 3h 20m, 4 days."""
    total_seconds = int(ms // 1000)
    if total_seconds < 60:
        return f"{total_seconds}s"
    minutes = total_seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        rest = minutes % 60
        return f"{hours}h {rest}m" if rest else f"{hours}h"
    return f"{hours // 24} days"


def compute_streaks(df: pd.DataFrame, names: Optional[List[str]] = None) -> Dict[str, int]:
    """
    Longest run of consecutive local calendar days with at least one
    message, per person.
    """
    if names is None:
        names = [] if len(df) == 0 else list(dict.fromkeys(df.loc[df["type"] != "system", "sender"]))
    streaks = {name: 0 for name in names}
    if len(df) == 0:
        return streaks

    authored = df[df["type"] != "system"]
    for name in names:
        days = sorted(date.fromisoformat(d) for d in authored.loc[authored["sender"] == name, "day"].unique())
        if not days:
            continue
        best = current = 1
        for prev, curr in zip(days, days[1:]):
            if (curr - prev).days == 1:
                current += 1
                best = max(best, current)
            else:
                current = 1
        streaks[name] = best
    return streaks


def _badge(badge_id: str, holder: str, evidence: str) -> Dict[str, Any]:
    return {"id": badge_id, "name": BADGE_NAMES[badge_id], "holder": holder, "evidence": evidence}


def compute_badges(
    person_metrics: Dict[str, Dict[str, Any]],
    timing: Dict[str, Any],
    engagement: Dict[str, Any],
    patterns: Dict[str, Any],
    streaks: Dict[str, int],
    names: List[str],
    cfg: Optional[config.AnalysisConfig] = None,
) -> List[Dict[str, Any]]:
    """
    Evaluate every badge rule for every participant.

    Returns:
        [{"id", "name", "holder", "evidence"}] ordered by badge, then by
        participant order.
    """
    cfg = cfg or config.DEFAULT_CONFIG
    t = cfg.badge_threshold
    heatmap = patterns["heatmap"]["per_person"]
    silence = timing["longest_silence"]

    candidates: Dict[str, List[Dict[str, Any]]] = {badge_id: [] for badge_id in BADGE_NAMES}

    for name in names:
        pm = person_metrics[name]
        total = pm["total_messages"]

        late = timing["late_night_messages"].get(name, 0)
        if late >= t("night_owl_min_late") and total >= t("night_owl_min_total"):
            candidates["night-owl"].append(_badge(
                "night-owl", name, f"{late} messages after {cfg.late_night_start_hour}:00"))

        early = sum(sum(row[:cfg.early_bird_end_hour]) for row in heatmap.get(name, []))
        if early >= t("early_bird_min_early") and total >= t("early_bird_min_total"):
            candidates["early-bird"].append(_badge(
                "early-bird", name, f"{early} messages before {cfg.early_bird_end_hour}:00"))

        if silence["last_sender"] == name and silence["duration_ms"] >= t("ghost_champion_min_silence_ms"):
            candidates["ghost-champion"].append(_badge(
                "ghost-champion", name,
                f"Sent the last message before a {format_duration_ms(silence['duration_ms'])} silence"))

        double_texts = engagement["double_texts"].get(name, 0)
        if double_texts >= t("double_texter_min"):
            candidates["double-texter"].append(_badge(
                "double-texter", name, f"Texted again without a reply {double_texts} times"))

        avg_words = pm["average_message_length"]
        if avg_words >= t("novelist_min_avg_words") and total >= t("novelist_min_messages"):
            candidates["novelist"].append(_badge(
                "novelist", name, f"Averages {avg_words:.1f} words per message"))

        rt = timing["per_person"][name]
        if (rt["sample_size"] >= t("speed_demon_min_sample")
                and 0 < rt["median_response_time_ms"] <= t("speed_demon_max_median_ms")):
            candidates["speed-demon"].append(_badge(
                "speed-demon", name,
                f"Median reply in {format_duration_ms(rt['median_response_time_ms'])}"))

        per_message = pm["emoji_count"] / total if total else 0.0
        if per_message >= t("emoji_monarch_min_per_message") and total >= t("emoji_monarch_min_messages"):
            candidates["emoji-monarch"].append(_badge(
                "emoji-monarch", name, f"{pm['emoji_count']} emoji, {pm['unique_emoji']} different"))

        initiations = timing["conversation_initiations"].get(name, 0)
        if initiations >= t("initiator_min_initiations"):
            candidates["initiator"].append(_badge(
                "initiator", name, f"Started {initiations} conversations"))

        if pm["hearts_sent"] >= t("heart_bomber_min_hearts"):
            candidates["heart-bomber"].append(_badge(
                "heart-bomber", name, f"Sent {pm['hearts_sent']} hearts"))

        if pm["links_shared"] >= t("link_lord_min_links"):
            candidates["link-lord"].append(_badge(
                "link-lord", name, f"Shared {pm['links_shared']} links"))

        streak = streaks.get(name, 0)
        if streak > t("streak_master_min_days"):
            candidates["streak-master"].append(_badge(
                "streak-master", name, f"Wrote {streak} days in a row"))

        if pm["questions_asked"] >= t("question_master_min_questions"):
            candidates["question-master"].append(_badge(
                "question-master", name, f"Asked {pm['questions_asked']} questions"))

    badges = [badge for badge_id in BADGE_NAMES for badge in candidates[badge_id]]
    logger.info(f"Awarded {len(badges)} badges")
    return badges
