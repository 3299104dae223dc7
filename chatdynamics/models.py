"""
Input data model for ChatDynamics
Unified message stream produced by the external platform normalizer
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)

MESSAGE_TYPES = ("text", "media", "sticker", "link", "call", "system", "unsent")


@dataclass(frozen=True)
class Reaction:
    emoji: str
    actor: str


@dataclass(frozen=True)
class UnifiedMessage:
    """One message of the normalized conversation timeline."""

    index: int
    sender: str
    content: str
    timestamp: int  # epoch milliseconds
    type: str = "text"
    reactions: tuple = ()
    has_media: bool = False
    has_link: bool = False
    is_unsent: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnifiedMessage":
        """Build a message from snake_case or camelCase keys."""
        reactions = tuple(
            Reaction(emoji=r.get("emoji", ""), actor=r.get("actor", ""))
            for r in data.get("reactions") or []
        )
        return cls(
            index=int(data["index"]),
            sender=str(data["sender"]),
            content=data.get("content") or "",
            timestamp=int(data["timestamp"]),
            type=data.get("type", "text"),
            reactions=reactions,
            has_media=bool(data.get("has_media", data.get("hasMedia", False))),
            has_link=bool(data.get("has_link", data.get("hasLink", False))),
            is_unsent=bool(data.get("is_unsent", data.get("isUnsent", False))),
        )


@dataclass(frozen=True)
class ParsedConversation:
    """Read-only conversation handed to the analysis pipeline."""

    platform: str
    participants: List[str]
    messages: List[UnifiedMessage]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedConversation":
        participants = [
            p["name"] if isinstance(p, dict) else str(p)
            for p in data.get("participants", [])
        ]
        messages = [UnifiedMessage.from_dict(m) for m in data.get("messages", [])]
        metadata = dict(data.get("metadata") or {})
        logger.debug(f"Loaded conversation with {len(messages)} messages")
        return cls(
            platform=data.get("platform", "unknown"),
            participants=participants,
            messages=messages,
            metadata=metadata,
        )

    @property
    def first_timestamp(self) -> Optional[int]:
        if not self.messages:
            return None
        return min(m.timestamp for m in self.messages)


def insufficient_data(reason: str) -> Dict[str, Any]:
    """Sentinel for a score that could not be measured."""
    return {"sufficient": False, "score": None, "reason": reason}


def is_insufficient(value: Any) -> bool:
    return isinstance(value, dict) and value.get("sufficient") is False and value.get("score") is None
