import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from core.types import Sender, Turn
from memory.storage import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_KEY = "chatHistory"


def timestamp_label(now: datetime) -> str:
    """Display label for a turn created at `now`.

    Returns "just now" whenever the hour one minute ago is the current hour,
    which is every minute except the first one of each hour. Only then is the
    24-hour "HH:MM" form used.
    """
    if (now - timedelta(minutes=1)).hour == now.hour:
        return "just now"
    return f"{now:%H:%M}"


class ConversationStore:
    """Ordered transcript of one session, mirrored to a key-value store.

    Persistence is explicit: callers run persist() after each append so
    they can sequence storage with rendering.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        key: str = DEFAULT_HISTORY_KEY,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.storage = storage
        self.key = key
        self.clock = clock
        self._turns: list[Turn] = []

    @property
    def transcript(self) -> list[Turn]:
        return list(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def append(self, text: str, sender: Sender) -> Turn:
        turn = Turn(text=text, sender=sender, timestamp=timestamp_label(self.clock()))
        self._turns.append(turn)
        return turn

    def persist(self) -> None:
        payload = json.dumps([t.to_dict() for t in self._turns], ensure_ascii=False)
        self.storage.set(self.key, payload)

    def restore(self) -> list[Turn]:
        """Replace the transcript with the stored one. Never raises on bad data."""
        self._turns = []
        raw = self.storage.get(self.key)
        if not raw:
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            turns = [Turn.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError, RecursionError) as e:
            logger.error("Error loading chat history: %s", e)
            return []

        self._turns = turns
        logger.info("Restored %d turns from %s", len(turns), self.key)
        return list(turns)

    def clear(self) -> None:
        self._turns = []
        self.storage.remove(self.key)
        logger.info("Cleared chat history")
