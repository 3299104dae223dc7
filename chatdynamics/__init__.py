"""
ChatDynamics - Conversation Relationship Analytics

Derives statistical and heuristic relationship metrics from a normalized
message timeline: response times, sessions, activity patterns, conflict and
pursuit-withdrawal cycles, reciprocity, composite scores, badges,
catchphrases, language style matching, chronotype compatibility and
longitudinal deltas.
"""

__version__ = "1.0.0"
__author__ = "ChatDynamics Team"

from . import config
from . import models
from . import sessions
from . import timing
from . import engagement
from . import patterns
from . import conflicts
from . import pursuit
from . import reciprocity
from . import badges
from . import viral_scores
from . import threat_meters
from . import horsemen
from . import catchphrases
from . import quotes
from . import lsm
from . import chronotype
from . import percentiles
from . import delta
from .pipeline import run_analysis

__all__ = [
    "config",
    "models",
    "sessions",
    "timing",
    "engagement",
    "patterns",
    "conflicts",
    "pursuit",
    "reciprocity",
    "badges",
    "viral_scores",
    "threat_meters",
    "horsemen",
    "catchphrases",
    "quotes",
    "lsm",
    "chronotype",
    "percentiles",
    "delta",
    "run_analysis",
]
