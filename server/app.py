from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from core.config import load_config
from core.logging_config import configure_logging
from core.session import Session, build_session
from server.chat_handler import ChatHandler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    if getattr(app.state, "session", None) is None:
        config = load_config()
        configure_logging(config.logging.level)
        session = build_session(config)
        await session.restore_on_startup()
        app.state.session = session

    yield

    # Cleanup
    session = app.state.session
    await session.drain()
    close = getattr(session.store.storage, "close", None)
    if close:
        close()
    app.state.session = None


app = FastAPI(title="chatbuddy", lifespan=lifespan)


def _session() -> Session:
    session: Session | None = getattr(app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Session not initialized")
    return session


@app.get("/health")
async def health() -> dict[str, Any]:
    session: Session | None = getattr(app.state, "session", None)
    return {
        "status": "ok",
        "session": session.state.value if session else "not initialized",
        "categories": len(session.engine.table) if session else 0,
        "turns": len(session.store) if session else 0,
        "pending_replies": session.pending_replies if session else 0,
    }


@app.get("/history")
async def history() -> list[dict[str, str]]:
    return [turn.to_dict() for turn in _session().transcript]


@app.delete("/history")
async def clear_history() -> dict[str, str]:
    await _session().reset()
    return {"status": "cleared"}


@app.websocket("/ws/chat")
async def websocket_chat(ws: WebSocket) -> None:
    await ws.accept()
    session: Session | None = getattr(app.state, "session", None)
    if not session:
        await ws.close(code=1011, reason="Session not initialized")
        return
    handler = ChatHandler(ws, session)
    try:
        await handler.send_history()
        await handler.run()
    except WebSocketDisconnect:
        pass
    finally:
        handler.detach()
