import os
import uuid
from typing import Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from pydantic import ValidationError

from engine.config import GameConfig
from engine.engine import Engine
from runtime.runner import TickRunner
from .gateway import SessionManager
from .schemas import EventsResponse, PingMessage, client_message
from .settings import settings

app = FastAPI(title="Tank Arena Engine")
runner: TickRunner | None = None
manager = SessionManager(queue_size=settings.outbound_queue_size)

INVALID_MESSAGE = {"type": "error", "data": {"message": "invalid message"}}

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount static files
static_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "static")
if os.path.exists(static_dir):
    app.mount("/static", StaticFiles(directory=static_dir), name="static")


def _make_runner() -> TickRunner:
    eng = Engine(seed=settings.seed, config=GameConfig(tick_rate=settings.tick_rate))
    return TickRunner(eng, publish=manager.dispatch, event_log_size=settings.event_log_size)


@app.get("/")
async def root():
    """Serve the web client if present, otherwise a banner."""
    index_path = os.path.join(static_dir, "index.html")
    if os.path.exists(index_path):
        return FileResponse(index_path)
    return {"message": "Tank Arena Engine", "websocket": "/ws", "docs": "/docs"}


@app.on_event("startup")
async def startup():
    """Initialize and start the simulation on app startup."""
    global runner
    runner = _make_runner()
    await runner.start()
    logger.info("arena {}x{} ready", runner.engine.config.arena_width, runner.engine.config.arena_height)


@app.on_event("shutdown")
async def shutdown():
    """Stop the simulation on app shutdown."""
    global runner
    if runner:
        await runner.stop()
        runner = None


@app.get("/arena/config")
async def get_config():
    """Authoritative constants, as sent to clients on init."""
    if not runner:
        raise HTTPException(400, "Arena not running")
    return runner.engine.config.to_client_dict()


@app.get("/arena/state")
async def get_state():
    """Get current world snapshot."""
    if not runner:
        raise HTTPException(400, "Arena not running")
    return await runner.snapshot()


@app.get("/arena/events")
async def get_events(since: int = 0, limit: int = 500):
    """Get gameplay events since offset."""
    if not runner:
        raise HTTPException(400, "Arena not running")
    evts, next_offset = runner.events.since(since, limit)
    return EventsResponse(
        next_offset=next_offset,
        events=[{"kind": e.kind, "ts_ms": e.ts_ms, "data": e.data} for e in evts]
    )


@app.websocket("/ws")
async def arena_socket(websocket: WebSocket, name: Optional[str] = None):
    """Session gateway: one tank per connection."""
    if not runner:
        await websocket.close(code=1013)
        return
    await websocket.accept()
    session_id = uuid.uuid4().hex
    init = await runner.connect(session_id, name[:24] if name else None)
    manager.open(session_id, websocket)
    manager.send_to(session_id, {"type": "init", "data": init})

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                logger.warning("binary frame from {} rejected", session_id)
                manager.send_to(session_id, INVALID_MESSAGE)
                continue
            try:
                msg = client_message.validate_json(raw)
            except ValidationError as e:
                logger.warning("invalid message from {}: {}", session_id, e.errors(include_url=False))
                manager.send_to(session_id, INVALID_MESSAGE)
                continue
            if isinstance(msg, PingMessage):
                manager.send_to(session_id, {"type": "pong", "data": {"timestamp": runner.engine.wall_clock()}})
                continue
            await runner.enqueue_intents([msg.to_intent(session_id)])
    except WebSocketDisconnect:
        pass
    finally:
        if runner:
            await runner.disconnect(session_id)
        await manager.close(session_id)
