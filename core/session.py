import asyncio
import logging
import random

from core.config import Config, SessionConfig
from core.types import AsyncCallback, Sender, SessionState, Turn
from memory import create_store
from memory.conversation import ConversationStore
from rules.loader import DEFAULT_RULES_PATH, load_rule_table
from rules.selector import ReplyEngine

logger = logging.getLogger(__name__)


class Session:
    """One chat session: transcript, reply engine and the delayed-reply loop.

    Lifecycle: UNINITIALIZED -> RESTORED (restore_on_startup) -> ACTIVE
    (submit/reset). Resetting leaves an empty ACTIVE session.
    """

    def __init__(self, config: SessionConfig, store: ConversationStore, engine: ReplyEngine):
        self.config = config
        self.store = store
        self.engine = engine
        self.state = SessionState.UNINITIALIZED
        self._pending: set[asyncio.Task[Turn]] = set()

        # Callbacks — set by the REPL or the WebSocket handler
        self.on_turn: AsyncCallback | None = None
        self.on_typing: AsyncCallback | None = None
        self.on_cleared: AsyncCallback | None = None

    @property
    def transcript(self) -> list[Turn]:
        return self.store.transcript

    @property
    def pending_replies(self) -> int:
        return len(self._pending)

    async def restore_on_startup(self) -> list[Turn]:
        """Load the stored transcript and render every restored turn."""
        turns = self.store.restore()
        self.state = SessionState.RESTORED
        for turn in turns:
            await self._render(turn)
        return turns

    async def submit(self, text: str) -> asyncio.Task[Turn]:
        """Record a user turn now and schedule the bot reply.

        `text` must already be trimmed and non-empty. Returns the task that
        appends the reply; several may be in flight and they land in the order
        their delays expire.
        """
        self.state = SessionState.ACTIVE
        turn = self.store.append(text, Sender.USER)
        self.store.persist()
        await self._render(turn)

        if not self._pending:
            await self._set_typing(True)
        task = asyncio.create_task(self._deliver_reply(text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver_reply(self, text: str) -> Turn:
        await asyncio.sleep(self.config.reply_delay_ms / 1000)
        reply = self.engine.reply(text)
        turn = self.store.append(reply, Sender.BOT)
        self.store.persist()
        self._pending.discard(asyncio.current_task())
        if not self._pending:
            await self._set_typing(False)
        await self._render(turn)
        return turn

    async def reset(self) -> None:
        """Drop the transcript and its stored copy. Confirmation is the caller's job."""
        self.store.clear()
        self.state = SessionState.ACTIVE
        if self.on_cleared:
            await self.on_cleared()

    async def drain(self) -> None:
        """Wait for every scheduled reply to land."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _render(self, turn: Turn) -> None:
        if self.on_turn:
            await self.on_turn(turn.text, turn.sender, turn.timestamp)

    async def _set_typing(self, active: bool) -> None:
        if self.on_typing:
            await self.on_typing(active)


def build_session(config: Config, rng: random.Random | None = None) -> Session:
    """Wire storage, rules and engine from config."""
    table = load_rule_table(config.rules.path or DEFAULT_RULES_PATH)
    store = ConversationStore(create_store(config.storage), key=config.storage.history_key)
    engine = ReplyEngine(table, config.session, rng=rng)
    logger.info("Session ready for %s (%s storage)", config.session.bot_name, config.storage.backend)
    return Session(config.session, store, engine)
