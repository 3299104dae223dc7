"""
Configuration module for ChatDynamics
Loads environment variables and provides default analysis thresholds
"""

import os
from dataclasses import dataclass, field, asdict, replace
from typing import Dict, Any, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

HOUR_MS = 60 * 60 * 1000
MINUTE_MS = 60 * 1000

# ============================================================================
# Sessions & Timing
# ============================================================================

SESSION_GAP_MS = int(os.getenv("SESSION_GAP_MS", str(6 * HOUR_MS)))

# Outlier filtering for response times (Q3 + k * IQR)
OUTLIER_IQR_MULTIPLIER = float(os.getenv("OUTLIER_IQR_MULTIPLIER", "3.0"))
MIN_IQR_FLOOR_MS = int(os.getenv("MIN_IQR_FLOOR_MS", "60000"))
MIN_OUTLIER_SAMPLE = int(os.getenv("MIN_OUTLIER_SAMPLE", "5"))
TRIM_FRACTION = float(os.getenv("TRIM_FRACTION", "0.1"))

# Late night window: [start, 24) + [0, end)
LATE_NIGHT_START_HOUR = int(os.getenv("LATE_NIGHT_START_HOUR", "22"))
LATE_NIGHT_END_HOUR = int(os.getenv("LATE_NIGHT_END_HOUR", "4"))
EARLY_BIRD_END_HOUR = int(os.getenv("EARLY_BIRD_END_HOUR", "8"))

# Hour bucketing timezone (None = local time of the computing process)
ANALYSIS_TIMEZONE = os.getenv("ANALYSIS_TIMEZONE") or None

# ============================================================================
# Conflict Detection
# ============================================================================

CONFLICT_WINDOW = int(os.getenv("CONFLICT_WINDOW", "15"))
CONFLICT_MIN_HISTORY = int(os.getenv("CONFLICT_MIN_HISTORY", "5"))
CONFLICT_MIN_MESSAGES = int(os.getenv("CONFLICT_MIN_MESSAGES", "20"))
ESCALATION_MULTIPLIER = float(os.getenv("ESCALATION_MULTIPLIER", "1.6"))
RAPID_REPLY_MS = int(os.getenv("RAPID_REPLY_MS", str(15 * MINUTE_MS)))
ESCALATION_COOLDOWN_MS = int(os.getenv("ESCALATION_COOLDOWN_MS", str(4 * HOUR_MS)))
COLD_SILENCE_MS = int(os.getenv("COLD_SILENCE_MS", str(12 * HOUR_MS)))
SILENCE_DEDUP_MS = int(os.getenv("SILENCE_DEDUP_MS", str(12 * HOUR_MS)))
SILENCE_LOOKBACK_MS = int(os.getenv("SILENCE_LOOKBACK_MS", str(6 * HOUR_MS)))
SILENCE_LOOKBACK_MIN_MESSAGES = int(os.getenv("SILENCE_LOOKBACK_MIN_MESSAGES", "5"))
RESOLUTION_WINDOW_MS = int(os.getenv("RESOLUTION_WINDOW_MS", str(4 * HOUR_MS)))
RESOLUTION_MIN_MESSAGES = int(os.getenv("RESOLUTION_MIN_MESSAGES", "3"))
RESOLUTION_MAX_WORDS = int(os.getenv("RESOLUTION_MAX_WORDS", "8"))

# ============================================================================
# Pursuit-Withdrawal
# ============================================================================

PURSUIT_WINDOW_MS = int(os.getenv("PURSUIT_WINDOW_MS", str(2 * HOUR_MS)))
PURSUIT_BURST_SIZE = int(os.getenv("PURSUIT_BURST_SIZE", "4"))
WITHDRAWAL_MS = int(os.getenv("WITHDRAWAL_MS", str(6 * HOUR_MS)))
PURSUIT_MUTUAL_THRESHOLD = float(os.getenv("PURSUIT_MUTUAL_THRESHOLD", "0.2"))

# ============================================================================
# Patterns & Text Mining
# ============================================================================

BURST_MULTIPLIER = float(os.getenv("BURST_MULTIPLIER", "3.0"))
BURST_WINDOW_DAYS = int(os.getenv("BURST_WINDOW_DAYS", "7"))
BURST_MIN_DAYS = int(os.getenv("BURST_MIN_DAYS", "8"))

CATCHPHRASE_MIN_COUNT = int(os.getenv("CATCHPHRASE_MIN_COUNT", "3"))
CATCHPHRASE_MIN_UNIQUENESS = float(os.getenv("CATCHPHRASE_MIN_UNIQUENESS", "0.5"))
CATCHPHRASE_TOP_N = int(os.getenv("CATCHPHRASE_TOP_N", "8"))
SHARED_PHRASE_MIN_GLOBAL = int(os.getenv("SHARED_PHRASE_MIN_GLOBAL", "5"))
SHARED_PHRASE_MIN_CONTRIBUTOR = int(os.getenv("SHARED_PHRASE_MIN_CONTRIBUTOR", "2"))
SHARED_PHRASE_MAX_DOMINANCE = float(os.getenv("SHARED_PHRASE_MAX_DOMINANCE", "0.7"))

TOP_WORDS_N = int(os.getenv("TOP_WORDS_N", "10"))
NOTABLE_QUOTES_TOP_N = int(os.getenv("NOTABLE_QUOTES_TOP_N", "5"))

# Language style matching needs this many words from each person
LSM_MIN_TOKENS = int(os.getenv("LSM_MIN_TOKENS", "50"))
# Chronotype needs this many messages from each person
CHRONOTYPE_MIN_MESSAGES = int(os.getenv("CHRONOTYPE_MIN_MESSAGES", "20"))

# Ghost risk needs at least this many calendar months of data
GHOST_RISK_MIN_MONTHS = int(os.getenv("GHOST_RISK_MIN_MONTHS", "3"))

# Kept for output parity with older releases: the late-night quote
# factor used to apply to every hour.
PRESERVE_LATE_NIGHT_DEFECT = os.getenv("PRESERVE_LATE_NIGHT_DEFECT", "False").lower() == "true"

# ============================================================================
# Badge thresholds (absolute, not scaled to conversation length)
# ============================================================================

BADGE_THRESHOLDS: Dict[str, float] = {
    "night_owl_min_late": 10,
    "night_owl_min_total": 20,
    "early_bird_min_early": 10,
    "early_bird_min_total": 20,
    "ghost_champion_min_silence_ms": 3 * 24 * HOUR_MS,
    "double_texter_min": 20,
    "novelist_min_avg_words": 15.0,
    "novelist_min_messages": 20,
    "speed_demon_max_median_ms": 2 * MINUTE_MS,
    "speed_demon_min_sample": 10,
    "emoji_monarch_min_per_message": 0.5,
    "emoji_monarch_min_messages": 20,
    "initiator_min_initiations": 10,
    "heart_bomber_min_hearts": 10,
    "link_lord_min_links": 10,
    "streak_master_min_days": 14,
    "question_master_min_questions": 25,
}

# ============================================================================
# Lexicons
# ============================================================================

STOPWORDS = frozenset([
    # English
    "i", "me", "my", "myself", "we", "our", "ours", "ourselves", "you", "your", "yours",
    "yourself", "yourselves", "he", "him", "his", "himself", "she", "her", "hers",
    "herself", "it", "its", "itself", "they", "them", "their", "theirs", "themselves",
    "what", "which", "who", "whom", "this", "that", "these", "those", "am", "is", "are",
    "was", "were", "be", "been", "being", "have", "has", "had", "having", "do", "does",
    "did", "doing", "a", "an", "the", "and", "but", "if", "or", "because", "as", "until",
    "while", "of", "at", "by", "for", "with", "about", "against", "between", "through",
    "during", "before", "after", "above", "below", "to", "from", "up", "down", "in",
    "out", "on", "off", "over", "under", "again", "further", "then", "once", "here",
    "there", "when", "where", "why", "how", "all", "both", "each", "few", "more", "most",
    "other", "some", "such", "no", "nor", "not", "only", "own", "same", "so", "than",
    "too", "very", "s", "t", "can", "will", "just", "don", "should", "now", "d", "ll",
    "m", "o", "re", "ve", "y", "ain", "aren", "couldn", "didn", "doesn", "hadn", "hasn",
    "haven", "isn", "ma", "mightn", "mustn", "needn", "shan", "shouldn", "wasn",
    "weren", "won", "wouldn", "ok", "yes", "yeah", "yep", "nah", "nope", "oh",
    "ah", "um", "uh", "like", "lol", "haha", "hahaha", "xd", "xdd",
    # Polish
    "w", "z", "na", "je", "się", "nie", "że", "co", "tak", "za", "ale",
    "od", "po", "jak", "już", "mi", "ty", "ja", "ten", "ta", "te", "go", "mu", "czy",
    "jest", "są", "był", "była", "było", "być", "mam", "masz", "si", "tu",
    "tam", "też", "tym", "tego", "tej", "tych", "bo", "ze", "sobie", "tylko", "jeszcze",
    "może", "trzeba", "bardzo", "teraz", "kiedy", "gdzie", "dlaczego", "bez", "przy",
    "nad", "pod", "przed", "przez", "dla", "ani", "albo", "u", "ku", "aż",
    "juz", "sie", "moze", "tez", "wiec", "czyli", "dobra",
])

# Emoji Lexicon (weights in [-1, 1])
EMOJI_LEXICON: Dict[str, float] = {
    # Romantic
    "❤️": 1.0, "😍": 1.0, "💖": 1.0, "💕": 1.0, "💘": 1.0, "💓": 1.0,
    "💝": 1.0, "💞": 1.0, "😘": 1.0, "🥰": 1.0, "💗": 1.0, "💌": 1.0,
    "🤗": 0.8, "💋": 0.9,

    # Affectionate
    "😊": 0.6, "😇": 0.6, "💛": 0.7, "💙": 0.7, "💚": 0.7, "💜": 0.7,
    "🫶": 0.8, "🌹": 0.8, "🫂": 0.8,

    # Playful
    "😂": 0.4, "🤣": 0.4, "😝": 0.3, "😜": 0.3, "😛": 0.3, "🤪": 0.3,

    # Approval
    "👍": 0.4, "👏": 0.5, "💯": 0.6, "🙏": 0.6, "🎉": 0.7, "✨": 0.6, "🥳": 0.8,

    # Neutral
    "😐": 0.0, "😑": 0.0, "🤔": 0.0, "🙄": -0.1, "😬": -0.1, "😕": -0.2,

    # Negative
    "😡": -1.0, "🤬": -1.0, "😠": -1.0, "💢": -0.8, "😤": -0.7, "👎": -0.6,

    # Sad
    "😢": -0.6, "😭": -0.7, "😞": -0.5, "🥺": -0.4, "💔": -0.9, "😔": -0.5,
}

# Heart reactions counted by the Heart Bomber badge
HEART_EMOJIS = frozenset([
    "❤", "❤️", "💓", "💖", "💗", "💘", "💙", "💚", "💛", "💜", "🖤", "🤍",
    "🤎", "🩷", "❣", "❣️", "🧡", "💕", "💞",
])

POSITIVE_WORDS = frozenset([
    "love", "happy", "great", "good", "awesome", "amazing", "thanks", "thank",
    "cute", "beautiful", "best", "glad", "yay", "perfect", "wonderful", "miss",
    "kocham", "super", "dzięki", "dzieki", "świetnie", "swietnie", "fajnie",
])

NEGATIVE_WORDS = frozenset([
    "hate", "sad", "angry", "bad", "terrible", "awful", "sorry", "annoyed",
    "upset", "tired", "worst", "never", "stop", "leave", "whatever", "fine",
    "nienawidzę", "smutno", "źle", "zle", "przestań", "przestan", "wkurza",
])

# Seed bigrams whose presence upgrades an escalation to "severe"
CONFLICT_BIGRAMS = frozenset([
    "you always", "you never", "leave me", "shut up", "i'm done", "im done",
    "whatever you", "not fair", "your fault", "stop it", "so what",
    "zawsze ty", "nigdy nie", "daj spokój", "daj spokoj", "mam dość", "mam dosc",
])

# Emotional keywords for notable-quote scoring
EMOTIONAL_KEYWORDS = frozenset([
    "love", "miss", "sorry", "hate", "cry", "crying", "scared", "afraid",
    "lonely", "hurt", "feel", "feelings", "heart", "forever", "need",
    "kocham", "tęsknię", "tesknie", "przepraszam", "boję", "boje", "serce",
])

# Function-word categories for language style matching (a word may sit in
# more than one category)
FUNCTION_WORD_CATEGORIES: Dict[str, frozenset] = {
    "articles": frozenset([
        "a", "an", "the",
        "ten", "ta", "to", "tej", "tego", "temu", "tym", "te", "tych",
    ]),
    "prepositions": frozenset([
        "in", "on", "at", "for", "with", "to", "from", "by", "of", "about", "into",
        "through", "during", "before", "after", "above", "below", "between", "under",
        "over", "near",
        "w", "na", "do", "za", "z", "ze", "od", "po", "przy", "nad", "pod", "przed",
        "między", "przez", "dla", "bez", "wśród", "wsrod", "obok", "koło", "kolo",
        "wokół", "wokol", "wobec", "poza", "mimo",
    ]),
    "auxiliary_verbs": frozenset([
        "is", "am", "are", "was", "were", "be", "been", "being", "have", "has", "had",
        "do", "does", "did", "will", "would", "shall", "should", "can", "could",
        "may", "might", "must",
        "jest", "są", "był", "była", "było", "byli", "były", "będzie", "bedzie",
        "będą", "beda", "jestem", "jesteś", "jestes", "jesteśmy", "jestesmy",
        "byłem", "byłam", "bylam", "bylem", "można", "mozna", "trzeba", "powinno",
        "może", "moze",
    ]),
    "conjunctions": frozenset([
        "and", "but", "or", "because", "so", "yet", "nor", "although", "though",
        "while", "since", "unless", "until", "if", "when", "where", "that", "which", "who",
        "i", "ale", "lub", "albo", "bo", "ponieważ", "poniewaz", "więc", "wiec",
        "dlatego", "jednak", "natomiast", "chociaż", "chociaz", "że", "ze", "żeby",
        "zeby", "czy", "gdyby", "gdy", "kiedy",
    ]),
    "negations": frozenset([
        "not", "no", "never", "none", "nothing", "nobody", "nowhere", "neither",
        "nie", "nigdy", "żaden", "zaden", "żadna", "zadna", "żadne", "zadne", "nic",
        "nikt", "nigdzie", "ani",
    ]),
    "quantifiers": frozenset([
        "all", "some", "many", "few", "every", "each", "much", "several", "any",
        "most", "both", "enough", "more", "less",
        "wszystko", "wszystkie", "wszyscy", "każdy", "kazdy", "każda", "kazda",
        "kilka", "kilku", "dużo", "duzo", "mało", "malo", "trochę", "troche", "wiele",
        "wielu", "parę", "pare", "niektóre", "niektore",
    ]),
    "personal_pronouns": frozenset([
        "i", "me", "you", "he", "him", "she", "her", "we", "us", "they", "them", "it",
        "ja", "mnie", "mi", "mną", "mna", "ty", "ciebie", "ci", "cię", "cie", "tobą",
        "toba", "on", "go", "mu", "nim", "niego", "niej", "nią", "nia", "ona", "jej",
        "my", "nas", "nam", "nami", "wy", "was", "wam", "wami", "oni", "one", "ich",
        "im", "nimi",
    ]),
    "impersonal_pronouns": frozenset([
        "this", "that", "these", "those", "something", "someone", "anything",
        "anyone", "everything", "everyone", "itself", "themselves",
        "to", "tamto", "coś", "cos", "ktoś", "ktos", "czegoś", "czegos", "kogoś",
        "kogos", "komuś", "komus", "sobie", "siebie", "się", "sie",
    ]),
    "adverbs": frozenset([
        "very", "really", "always", "just", "still", "already", "also", "too", "even",
        "quite", "pretty", "almost", "often", "sometimes", "probably", "maybe", "perhaps",
        "bardzo", "naprawdę", "naprawde", "zawsze", "właśnie", "wlasnie", "już", "juz",
        "jeszcze", "tylko", "też", "tez", "również", "rowniez", "chyba", "raczej",
        "pewnie", "może", "moze", "jakoś", "jakos", "dość", "dosc", "dosyć", "dosyc",
        "całkiem", "calkiem",
    ]),
}


# ============================================================================
# Analysis configuration
# ============================================================================

@dataclass(frozen=True)
class AnalysisConfig:
    """Every threshold an analyzer reads. Passed explicitly, never patched."""

    session_gap_ms: int = SESSION_GAP_MS
    outlier_iqr_multiplier: float = OUTLIER_IQR_MULTIPLIER
    min_iqr_floor_ms: int = MIN_IQR_FLOOR_MS
    min_outlier_sample: int = MIN_OUTLIER_SAMPLE
    trim_fraction: float = TRIM_FRACTION

    late_night_start_hour: int = LATE_NIGHT_START_HOUR
    late_night_end_hour: int = LATE_NIGHT_END_HOUR
    early_bird_end_hour: int = EARLY_BIRD_END_HOUR
    timezone: Optional[str] = ANALYSIS_TIMEZONE

    conflict_window: int = CONFLICT_WINDOW
    conflict_min_history: int = CONFLICT_MIN_HISTORY
    conflict_min_messages: int = CONFLICT_MIN_MESSAGES
    escalation_multiplier: float = ESCALATION_MULTIPLIER
    rapid_reply_ms: int = RAPID_REPLY_MS
    escalation_cooldown_ms: int = ESCALATION_COOLDOWN_MS
    cold_silence_ms: int = COLD_SILENCE_MS
    silence_dedup_ms: int = SILENCE_DEDUP_MS
    silence_lookback_ms: int = SILENCE_LOOKBACK_MS
    silence_lookback_min_messages: int = SILENCE_LOOKBACK_MIN_MESSAGES
    resolution_window_ms: int = RESOLUTION_WINDOW_MS
    resolution_min_messages: int = RESOLUTION_MIN_MESSAGES
    resolution_max_words: int = RESOLUTION_MAX_WORDS

    pursuit_window_ms: int = PURSUIT_WINDOW_MS
    pursuit_burst_size: int = PURSUIT_BURST_SIZE
    withdrawal_ms: int = WITHDRAWAL_MS
    pursuit_mutual_threshold: float = PURSUIT_MUTUAL_THRESHOLD

    burst_multiplier: float = BURST_MULTIPLIER
    burst_window_days: int = BURST_WINDOW_DAYS
    burst_min_days: int = BURST_MIN_DAYS

    catchphrase_min_count: int = CATCHPHRASE_MIN_COUNT
    catchphrase_min_uniqueness: float = CATCHPHRASE_MIN_UNIQUENESS
    catchphrase_top_n: int = CATCHPHRASE_TOP_N
    shared_phrase_min_global: int = SHARED_PHRASE_MIN_GLOBAL
    shared_phrase_min_contributor: int = SHARED_PHRASE_MIN_CONTRIBUTOR
    shared_phrase_max_dominance: float = SHARED_PHRASE_MAX_DOMINANCE

    top_words_n: int = TOP_WORDS_N
    notable_quotes_top_n: int = NOTABLE_QUOTES_TOP_N
    lsm_min_tokens: int = LSM_MIN_TOKENS
    chronotype_min_messages: int = CHRONOTYPE_MIN_MESSAGES
    ghost_risk_min_months: int = GHOST_RISK_MIN_MONTHS
    preserve_late_night_defect: bool = PRESERVE_LATE_NIGHT_DEFECT
    badge_thresholds: Dict[str, float] = field(default_factory=lambda: dict(BADGE_THRESHOLDS))

    def with_overrides(self, **overrides: Any) -> "AnalysisConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)

    def badge_threshold(self, key: str) -> float:
        return self.badge_thresholds.get(key, BADGE_THRESHOLDS[key])


DEFAULT_CONFIG = AnalysisConfig()


def get_config_summary(cfg: Optional[AnalysisConfig] = None) -> Dict[str, Any]:
    """Return a summary of current configuration."""
    cfg = cfg or DEFAULT_CONFIG
    values = asdict(cfg)
    return {
        "sessions": {
            "session_gap_ms": values["session_gap_ms"],
            "timezone": values["timezone"],
        },
        "timing": {
            "outlier_iqr_multiplier": values["outlier_iqr_multiplier"],
            "min_iqr_floor_ms": values["min_iqr_floor_ms"],
            "min_outlier_sample": values["min_outlier_sample"],
            "trim_fraction": values["trim_fraction"],
        },
        "conflicts": {
            "window": values["conflict_window"],
            "escalation_multiplier": values["escalation_multiplier"],
            "cold_silence_ms": values["cold_silence_ms"],
            "silence_lookback_ms": values["silence_lookback_ms"],
            "silence_lookback_min_messages": values["silence_lookback_min_messages"],
            "resolution_window_ms": values["resolution_window_ms"],
        },
        "pursuit": {
            "window_ms": values["pursuit_window_ms"],
            "burst_size": values["pursuit_burst_size"],
            "withdrawal_ms": values["withdrawal_ms"],
        },
        "catchphrases": {
            "min_count": values["catchphrase_min_count"],
            "min_uniqueness": values["catchphrase_min_uniqueness"],
            "shared_min_global": values["shared_phrase_min_global"],
            "shared_max_dominance": values["shared_phrase_max_dominance"],
        },
        "style": {
            "lsm_min_tokens": values["lsm_min_tokens"],
            "chronotype_min_messages": values["chronotype_min_messages"],
        },
        "quotes": {
            "preserve_late_night_defect": values["preserve_late_night_defect"],
        },
    }


def validate_config(cfg: Optional[AnalysisConfig] = None) -> tuple[bool, str]:
    """Validate configuration. Returns (is_valid, message)."""
    cfg = cfg or DEFAULT_CONFIG

    if cfg.session_gap_ms <= 0:
        return False, f"session_gap_ms must be positive, got {cfg.session_gap_ms}"

    if cfg.outlier_iqr_multiplier <= 0:
        return False, f"outlier_iqr_multiplier must be positive, got {cfg.outlier_iqr_multiplier}"

    if not 0 <= cfg.trim_fraction < 0.5:
        return False, f"trim_fraction must be in [0, 0.5), got {cfg.trim_fraction}"

    if cfg.conflict_window < cfg.conflict_min_history:
        return False, (
            f"conflict_window ({cfg.conflict_window}) is smaller than "
            f"conflict_min_history ({cfg.conflict_min_history})"
        )

    for name in ("catchphrase_min_uniqueness", "shared_phrase_max_dominance"):
        value = getattr(cfg, name)
        if not 0 < value <= 1:
            return False, f"{name} must be in (0, 1], got {value}"

    for name in ("lsm_min_tokens", "chronotype_min_messages"):
        value = getattr(cfg, name)
        if value < 1:
            return False, f"{name} must be at least 1, got {value}"

    for name in ("late_night_start_hour", "late_night_end_hour", "early_bird_end_hour"):
        value = getattr(cfg, name)
        if not 0 <= value <= 23:
            return False, f"{name} must be an hour 0-23, got {value}"

    return True, "Configuration valid"


if __name__ == "__main__":
    # Print config summary for debugging
    import json
    print("ChatDynamics Configuration:")
    print(json.dumps(get_config_summary(), indent=2))
    print()
    valid, msg = validate_config()
    print(f"Validation: {msg}")
