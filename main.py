import asyncio
import sys

import uvicorn

from core.config import load_config
from core.logging_config import configure_logging
from core.session import build_session
from core.types import Sender

INFO_TEXT = """Commands:
  /clear  clear the whole chat history
  /info   show this help
  quit    leave the chat

Try saying hello, asking for a joke, the time or today's date."""


async def text_repl() -> None:
    """Console chat: the session renders turns as plain lines."""
    config = load_config()
    configure_logging(config.logging.level)
    session = build_session(config)
    names = {Sender.USER: config.session.user_name, Sender.BOT: config.session.bot_name}

    async def render_turn(text: str, sender: Sender, timestamp: str) -> None:
        if sender == Sender.BOT:
            print(f"\n{names[sender]}: {text}  [{timestamp}]")

    async def render_typing(active: bool) -> None:
        if active:
            print(f"{config.session.bot_name} is typing...")

    async def render_cleared() -> None:
        print(f"\n{config.session.bot_name}: {config.session.cleared_message}")

    print(f"{config.session.bot_name} Text Mode (type 'quit' to exit, '/info' for help)")
    print("-" * 40)

    async def render_restored(text: str, sender: Sender, timestamp: str) -> None:
        print(f"{names[sender]}: {text}  [{timestamp}]")

    session.on_turn = render_restored
    if not await session.restore_on_startup():
        print(f"{config.session.bot_name}: {config.session.greeting}")

    session.on_turn = render_turn
    session.on_typing = render_typing
    session.on_cleared = render_cleared

    while True:
        user_input = input(f"\n{config.session.user_name}: ").strip()
        if user_input.lower() in ("quit", "exit", "q"):
            break
        if not user_input:
            continue
        if user_input == "/info":
            print(INFO_TEXT)
            continue
        if user_input == "/clear":
            answer = input("Are you sure you want to clear the entire chat history? [y/N] ")
            if answer.strip().lower() in ("y", "yes"):
                await session.reset()
            continue

        reply = await session.submit(user_input)
        await reply


def server() -> None:
    """Start FastAPI server with the chat WebSocket."""
    config = load_config()
    configure_logging(config.logging.level)
    print(f"Server: http://{config.server.host}:{config.server.port}")
    uvicorn.run(
        "server.app:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    if "--text" in sys.argv:
        asyncio.run(text_repl())
    else:
        server()
