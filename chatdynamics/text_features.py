"""
Text feature extraction for ChatDynamics
Emoji parsing, tokenization, lexicon sentiment and conflict markers
"""

import re
import logging
from typing import Dict, Any, List
import emoji

from . import config

logger = logging.getLogger(__name__)

# Word boundaries used by the n-gram tokenizer
TOKEN_SPLIT_RE = re.compile(r"[\s.,!?;:()\[\]{}\"'\-/\\<>@#$%^&*+=|~`]+")
WORD_RE = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)?", re.UNICODE)


def extract_emojis(text: str) -> List[str]:
    """Extract all emojis from text (ZWJ sequences count once)."""
    if not text:
        return []
    return [match["emoji"] for match in emoji.emoji_list(text)]


def strip_emojis(text: str) -> str:
    return emoji.replace_emoji(text, replace="") if text else ""


def count_words(text: str) -> int:
    """Whitespace-split word count."""
    if not text or not text.strip():
        return 0
    return len(text.split())


def tokenize(text: str) -> List[str]:
    """
    Lowercase tokens for phrase mining.

    Emoji are removed, punctuation splits tokens, tokens shorter than two
    characters and stopwords are dropped.
    """
    if not text:
        return []
    cleaned = strip_emojis(text).lower()
    return [
        tok for tok in TOKEN_SPLIT_RE.split(cleaned)
        if len(tok) >= 2 and tok not in config.STOPWORDS
    ]


def style_tokens(text: str) -> List[str]:
    """Lowercase tokens with emoji removed; stopwords and one-letter words kept."""
    if not text:
        return []
    return [tok for tok in TOKEN_SPLIT_RE.split(strip_emojis(text).lower()) if tok]


def words(text: str) -> List[str]:
    """Lowercase alphabetic words, stopwords kept."""
    if not text:
        return []
    return WORD_RE.findall(text.lower())


def lexicon_sentiment(text: str) -> float:
    """
    Lexicon sentiment in [-1, 1].

    Combines positive/negative word hits with the emoji valence lexicon.
    Returns 0.0 when nothing in the text carries valence.
    """
    tokens = words(text)
    scores: List[float] = []
    for tok in tokens:
        if tok in config.POSITIVE_WORDS:
            scores.append(1.0)
        elif tok in config.NEGATIVE_WORDS:
            scores.append(-1.0)
    for e in extract_emojis(text):
        if e in config.EMOJI_LEXICON:
            scores.append(config.EMOJI_LEXICON[e])
    if not scores:
        return 0.0
    return max(-1.0, min(1.0, sum(scores) / len(scores)))


def emotional_density(text: str) -> float:
    """Share of words that are emotional keywords."""
    tokens = words(text)
    if not tokens:
        return 0.0
    hits = sum(1 for tok in tokens if tok in config.EMOTIONAL_KEYWORDS)
    return hits / len(tokens)


def has_conflict_bigram(text: str) -> bool:
    tokens = words(text)
    for first, second in zip(tokens, tokens[1:]):
        if f"{first} {second}" in config.CONFLICT_BIGRAMS:
            return True
    return False


def compute_text_flags(text: str) -> Dict[str, Any]:
    """
    Compute per-message text flags.

    Returns dict with:
        - question_flag: Has question mark
        - emoji_count: Number of emoji
        - word_count: Word count
        - char_count: Character count
    """
    if not text:
        return {
            "question_flag": False,
            "emoji_count": 0,
            "word_count": 0,
            "char_count": 0,
        }

    return {
        "question_flag": "?" in text,
        "emoji_count": len(extract_emojis(text)),
        "word_count": count_words(text),
        "char_count": len(text),
    }
