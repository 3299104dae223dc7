"""
Shared fixtures for ChatDynamics tests
"""

import pytest

from chatdynamics.config import DEFAULT_CONFIG
from chatdynamics.models import ParsedConversation, UnifiedMessage
from chatdynamics.normalizer import build_message_frame

# 2024-01-01 00:00:00 UTC, a Monday
BASE_TS = 1704067200000
MINUTE = 60 * 1000
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def make_conversation(messages, participants=("Alice", "Bob"), platform="test"):
    """
    Build a ParsedConversation from (sender, content, timestamp[, extra]) tuples.

    ``extra`` is a dict of further UnifiedMessage fields (type, reactions...).
    """
    built = []
    for i, msg in enumerate(messages):
        sender, content, ts = msg[:3]
        extra = msg[3] if len(msg) > 3 else {}
        built.append(UnifiedMessage(index=i, sender=sender, content=content, timestamp=ts, **extra))
    return ParsedConversation(
        platform=platform,
        participants=list(participants),
        messages=built,
        metadata={},
    )


def alternating(count, start=BASE_TS, step=MINUTE, content="hello there how are you",
                senders=("Alice", "Bob")):
    """Messages alternating between senders at a fixed step."""
    return [(senders[i % len(senders)], content, start + i * step) for i in range(count)]


@pytest.fixture
def utc_cfg():
    """Default config with hour bucketing pinned to UTC."""
    return DEFAULT_CONFIG.with_overrides(timezone="UTC")


@pytest.fixture
def build_frame(utc_cfg):
    """Factory: list of message tuples -> message frame."""
    def _build(messages, participants=("Alice", "Bob")):
        return build_message_frame(make_conversation(messages, participants), utc_cfg)
    return _build
