import json
import logging
from typing import Any

from fastapi import WebSocket

from core.session import Session
from core.types import Sender

logger = logging.getLogger(__name__)


class ChatHandler:
    """WebSocket protocol handler: JSON messages in, turn/typing events out."""

    def __init__(self, ws: WebSocket, session: Session):
        self.ws = ws
        self.session = session
        self._setup_callbacks()

    def _setup_callbacks(self) -> None:
        """Wire session callbacks to WebSocket sends."""
        self.session.on_turn = self._on_turn
        self.session.on_typing = self._on_typing
        self.session.on_cleared = self._on_cleared

    def detach(self) -> None:
        # a newer connection may have taken over the callbacks
        if self.session.on_turn == self._on_turn:
            self.session.on_turn = None
            self.session.on_typing = None
            self.session.on_cleared = None

    async def _on_turn(self, text: str, sender: Sender, timestamp: str) -> None:
        await self.ws.send_json({"type": "turn", "text": text, "sender": sender.value, "timestamp": timestamp})

    async def _on_typing(self, active: bool) -> None:
        await self.ws.send_json({"type": "typing", "active": active})

    async def _on_cleared(self) -> None:
        await self.ws.send_json({"type": "cleared", "text": self.session.config.cleared_message})

    async def send_history(self) -> None:
        """Replay the transcript, or greet when there is nothing to replay."""
        turns = self.session.transcript
        if not turns:
            await self._on_turn(self.session.config.greeting, Sender.BOT, "just now")
            return
        for turn in turns:
            await self._on_turn(turn.text, turn.sender, turn.timestamp)

    async def run(self) -> None:
        """Main loop — receive messages from WebSocket."""
        while True:
            message = await self.ws.receive()

            if message["type"] == "websocket.receive":
                if "text" in message and message["text"]:
                    try:
                        data: dict[str, Any] = json.loads(message["text"])
                    except json.JSONDecodeError:
                        await self.ws.send_json({"type": "error", "text": "Messages must be JSON objects"})
                        continue
                    await self._handle_control(data)

            elif message["type"] == "websocket.disconnect":
                break

    async def _handle_control(self, data: dict[str, Any]) -> None:
        msg_type = data.get("type") if isinstance(data, dict) else None

        if msg_type == "message":
            text = str(data.get("text") or "").strip()
            if not text:
                return
            await self.session.submit(text)

        elif msg_type == "clear":
            # The client asks the user to confirm before sending this
            await self.session.reset()

        else:
            logger.warning("Ignoring unknown message type %r", msg_type)
            await self.ws.send_json({"type": "error", "text": f"Unknown message type: {msg_type}"})
