"""
Message frame builder for ChatDynamics
Turns a ParsedConversation into the sorted pandas DataFrame every analyzer reads
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Union
import pandas as pd

from . import config
from .models import MESSAGE_TYPES, ParsedConversation
from .text_features import compute_text_flags

logger = logging.getLogger(__name__)

# Unicode quirks left behind by some exporters
NBSP = "\u00A0"
NNBSP = "\u202F"
ZWSP = "\u200B"
LRM = "\u200E"
RLM = "\u200F"
BOM = "\ufeff"

# Types whose content is counted as authored text
TEXT_TYPES = ("text", "link")

FRAME_COLUMNS = [
    "index", "sender", "content", "timestamp", "type", "reactions",
    "has_media", "has_link", "is_unsent", "word_count", "char_count",
    "emoji_count", "is_question", "hour", "weekday", "day", "month",
]


def _clean_text(s: str) -> str:
    """Remove invisible characters and unify spaces."""
    if not s:
        return ""
    s = s.replace(BOM, "")
    s = s.replace(LRM, "").replace(RLM, "")
    s = s.replace(ZWSP, " ")
    s = s.replace(NBSP, " ").replace(NNBSP, " ")
    return s.strip()


def _local_times(timestamps: pd.Series, timezone: Optional[str]) -> List[datetime]:
    """
    Wall-clock datetimes for epoch-ms timestamps.

    Without a timezone this is the local time of the computing process,
    matching how the heatmap has always been bucketed.
    """
    if timezone:
        converted = pd.to_datetime(timestamps, unit="ms", utc=True).dt.tz_convert(timezone)
        return [ts.to_pydatetime() for ts in converted]
    return [datetime.fromtimestamp(ts / 1000) for ts in timestamps]


def build_message_frame(
    conversation: Union[ParsedConversation, Dict],
    cfg: Optional[config.AnalysisConfig] = None,
) -> pd.DataFrame:
    """
    Build the analysis frame from a conversation.

    Messages are re-sorted by (timestamp, index) and unknown message types
    are skipped with a warning. Derived columns:
        word_count, char_count, emoji_count, is_question,
        hour (0-23), weekday (0 = Monday), day ("YYYY-MM-DD"), month ("YYYY-MM")

    Args:
        conversation: ParsedConversation or its dict form
        cfg: Analysis configuration (timezone for hour bucketing)

    Returns:
        DataFrame with FRAME_COLUMNS, one row per kept message
    """
    cfg = cfg or config.DEFAULT_CONFIG
    if isinstance(conversation, dict):
        conversation = ParsedConversation.from_dict(conversation)

    rows = []
    skipped = 0
    for msg in conversation.messages:
        if msg.type not in MESSAGE_TYPES:
            skipped += 1
            logger.warning(f"Skipping message {msg.index} with unknown type '{msg.type}'")
            continue

        content = _clean_text(msg.content)
        flags = compute_text_flags(content) if msg.type in TEXT_TYPES else compute_text_flags("")
        rows.append({
            "index": msg.index,
            "sender": msg.sender,
            "content": content,
            "timestamp": int(msg.timestamp),
            "type": msg.type,
            "reactions": [(r.emoji, r.actor) for r in msg.reactions],
            "has_media": msg.has_media or msg.type in ("media", "sticker"),
            "has_link": msg.has_link or msg.type == "link",
            "is_unsent": msg.is_unsent or msg.type == "unsent",
            "word_count": flags["word_count"],
            "char_count": flags["char_count"],
            "emoji_count": flags["emoji_count"],
            "is_question": flags["question_flag"],
        })

    if skipped:
        logger.warning(f"Skipped {skipped} messages with unrecognized types")

    if not rows:
        logger.warning("Empty conversation provided")
        return pd.DataFrame({col: pd.Series(dtype=_dtype(col)) for col in FRAME_COLUMNS})

    df = pd.DataFrame(rows)
    # Producers are expected to deliver this order already
    df = df.sort_values(["timestamp", "index"], kind="mergesort").reset_index(drop=True)

    local = _local_times(df["timestamp"], cfg.timezone)
    df["hour"] = [t.hour for t in local]
    df["weekday"] = [t.weekday() for t in local]
    df["day"] = [t.strftime("%Y-%m-%d") for t in local]
    df["month"] = [t.strftime("%Y-%m") for t in local]

    logger.info(f"Built message frame with {len(df)} messages from {df['sender'].nunique()} senders")
    return df[FRAME_COLUMNS]


def _dtype(col: str) -> str:
    if col in ("index", "timestamp", "word_count", "char_count", "emoji_count", "hour", "weekday"):
        return "int64"
    if col in ("has_media", "has_link", "is_unsent", "is_question"):
        return "bool"
    return "object"


def participant_names(conversation: Union[ParsedConversation, Dict], df: pd.DataFrame) -> List[str]:
    """
    Participant order for every per-person map.

    The conversation's declared participants come first, followed by any
    other non-system sender in order of first appearance.
    """
    if isinstance(conversation, dict):
        declared = [
            p["name"] if isinstance(p, dict) else str(p)
            for p in conversation.get("participants", [])
        ]
    else:
        declared = list(conversation.participants)

    names = list(dict.fromkeys(declared))
    if len(df) > 0:
        authored = df.loc[df["type"] != "system", "sender"]
        for sender in authored.drop_duplicates():
            if sender not in names:
                names.append(sender)
    return names
