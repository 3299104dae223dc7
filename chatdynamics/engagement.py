"""
Engagement statistics module for ChatDynamics
Per-person counts, double texting, message ratios and reaction rates
"""

import logging
from collections import Counter
from typing import Dict, Any, List, Optional
import pandas as pd

from . import config
from .text_features import extract_emojis, tokenize

logger = logging.getLogger(__name__)


def compute_person_metrics(
    df: pd.DataFrame,
    names: List[str],
    cfg: Optional[config.AnalysisConfig] = None,
) -> Dict[str, Dict[str, Any]]:
    """
    Extract per-person message statistics.

    Args:
        df: Message frame
        names: Participant order
        cfg: Analysis configuration

    Returns:
        {
            "<name>": {
                "total_messages": int,
                "total_words": int,
                "total_characters": int,
                "average_message_length": float,   # words per text message
                "average_message_chars": float,
                "longest_message": {"content", "word_count", "timestamp"} or None,
                "emoji_count": int,
                "unique_emoji": int,
                "top_emoji": [{"emoji", "count"}],
                "top_words": [{"word", "count"}],
                "questions_asked": int,
                "media_shared": int,
                "links_shared": int,
                "unsent_messages": int,
                "reactions_given": int,
                "reactions_received": int,
                "top_reactions_given": [{"emoji", "count"}],
                "hearts_sent": int,               # heart emoji in text plus heart reactions
            }
        }
    """
    cfg = cfg or config.DEFAULT_CONFIG
    logger.info(f"Extracting per-person metrics from {len(df)} messages")

    given = _reactions_given(df)
    per_person = {}
    for name in names:
        sender_df = df[df["sender"] == name] if len(df) else df
        per_person[name] = _person_metrics(sender_df, given.get(name, Counter()), cfg)

    return per_person


def _person_metrics(sender_df: pd.DataFrame, reactions_given: Counter, cfg: config.AnalysisConfig) -> Dict[str, Any]:
    text_df = sender_df[sender_df["word_count"] > 0] if len(sender_df) else sender_df

    emoji_counter: Counter = Counter()
    word_counter: Counter = Counter()
    for content in text_df["content"] if len(text_df) else []:
        emoji_counter.update(extract_emojis(content))
        word_counter.update(tokenize(content))

    longest = None
    if len(text_df):
        row = text_df.loc[text_df["word_count"].idxmax()]
        longest = {
            "content": row["content"],
            "word_count": int(row["word_count"]),
            "timestamp": int(row["timestamp"]),
        }

    received = 0
    for sender, reactions in zip(sender_df["sender"], sender_df["reactions"]) if len(sender_df) else []:
        received += sum(1 for _, actor in reactions if actor != sender)

    total_words = int(sender_df["word_count"].sum()) if len(sender_df) else 0
    return {
        "total_messages": int(len(sender_df)),
        "total_words": total_words,
        "total_characters": int(sender_df["char_count"].sum()) if len(sender_df) else 0,
        "average_message_length": float(text_df["word_count"].mean()) if len(text_df) else 0.0,
        "average_message_chars": float(text_df["char_count"].mean()) if len(text_df) else 0.0,
        "longest_message": longest,
        "emoji_count": int(sum(emoji_counter.values())),
        "unique_emoji": len(emoji_counter),
        "top_emoji": [{"emoji": e, "count": c} for e, c in _top(emoji_counter, cfg.top_words_n)],
        "top_words": [{"word": w, "count": c} for w, c in _top(word_counter, cfg.top_words_n)],
        "questions_asked": int(sender_df["is_question"].sum()) if len(sender_df) else 0,
        "media_shared": int(sender_df["has_media"].sum()) if len(sender_df) else 0,
        "links_shared": int(sender_df["has_link"].sum()) if len(sender_df) else 0,
        "unsent_messages": int(sender_df["is_unsent"].sum()) if len(sender_df) else 0,
        "reactions_given": int(sum(reactions_given.values())),
        "reactions_received": received,
        "top_reactions_given": [{"emoji": e, "count": c} for e, c in _top(reactions_given, cfg.top_words_n)],
        "hearts_sent": _heart_count(emoji_counter) + _heart_count(reactions_given),
    }


def _top(counter: Counter, n: int) -> List[tuple]:
    # Count descending, then key ascending, so ties are deterministic
    return sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))[:n]


def _heart_count(counter: Counter) -> int:
    return int(sum(count for symbol, count in counter.items() if symbol in config.HEART_EMOJIS))


def _reactions_given(df: pd.DataFrame) -> Dict[str, Counter]:
    """Reactions each actor placed on somebody else's messages."""
    given: Dict[str, Counter] = {}
    if len(df) == 0:
        return given
    for sender, reactions in zip(df["sender"], df["reactions"]):
        for emoji_char, actor in reactions:
            if actor == sender:
                continue
            given.setdefault(actor, Counter())[emoji_char] += 1
    return given


def compute_engagement(
    df: pd.DataFrame,
    sessions: List[Dict[str, Any]],
    names: List[str],
    person_metrics: Dict[str, Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Compute engagement metrics.

    A double text is a run of two or more consecutive messages from one
    sender with no reply in between; each run counts once.

    Returns:
        {
            "double_texts": {name: int},
            "max_consecutive": {name: int},
            "message_ratio": {name: float},
            "reaction_give_rate": {name: float},
            "reaction_receive_rate": {name: float},
            "reaction_rate": {name: float},
            "total_reactions": int,
            "total_sessions": int,
            "avg_conversation_length": float,
        }
    """
    logger.info(f"Computing engagement for {len(names)} participants")

    double_texts = {name: 0 for name in names}
    max_consecutive = {name: 0 for name in names}

    if len(df):
        authored = df[df["type"] != "system"]
        run_id = (authored["sender"] != authored["sender"].shift()).cumsum()
        runs = authored.groupby(run_id, sort=True)["sender"].agg(["first", "size"])
        for sender, size in zip(runs["first"], runs["size"]):
            if sender not in double_texts:
                continue
            if size >= 2:
                double_texts[sender] += 1
            max_consecutive[sender] = max(max_consecutive[sender], int(size))

    total_messages = sum(person_metrics[name]["total_messages"] for name in names)
    message_ratio = {
        name: (person_metrics[name]["total_messages"] / total_messages) if total_messages else 0.0
        for name in names
    }

    give_rate = {}
    receive_rate = {}
    for name in names:
        own = person_metrics[name]["total_messages"]
        give_rate[name] = person_metrics[name]["reactions_given"] / own if own else 0.0
        receive_rate[name] = person_metrics[name]["reactions_received"] / own if own else 0.0

    total_reactions = sum(person_metrics[name]["reactions_received"] for name in names)
    total_sessions = len(sessions)

    return {
        "double_texts": double_texts,
        "max_consecutive": max_consecutive,
        "message_ratio": message_ratio,
        "reaction_give_rate": give_rate,
        "reaction_receive_rate": receive_rate,
        "reaction_rate": dict(receive_rate),
        "total_reactions": int(total_reactions),
        "total_sessions": total_sessions,
        "avg_conversation_length": (len(df) / total_sessions) if total_sessions else float(len(df)),
    }
