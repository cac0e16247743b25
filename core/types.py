from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class Sender(StrEnum):
    USER = "user"
    BOT = "bot"


class SessionState(StrEnum):
    UNINITIALIZED = "uninitialized"
    RESTORED = "restored"
    ACTIVE = "active"


class CategoryKind(StrEnum):
    STATIC = "static"
    IDENTITY = "identity"
    TIME = "time"
    DATE = "date"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Turn:
    text: str
    sender: Sender
    timestamp: str  # display label, e.g. "14:05" or "just now"

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text, "sender": self.sender.value, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Turn":
        """Build a Turn from stored data. Only the sender is required."""
        if not isinstance(data, dict):
            raise TypeError(f"turn must be an object, got {type(data).__name__}")
        return cls(
            text=str(data.get("text", "")),
            sender=Sender(data["sender"]),
            timestamp=str(data.get("timestamp", "")),
        )


# Rendering callbacks are async, set by the REPL or the WebSocket handler
AsyncCallback = Callable[..., Awaitable[None]]
