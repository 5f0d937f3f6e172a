"""WebSocket sessions and fire-and-forget delivery of engine events."""

import asyncio
import json
from typing import Callable, Dict, List, Optional

from fastapi import WebSocket
from loguru import logger

from engine.model import Event


class Session:
    """One connected client with its own bounded outbound queue and writer task."""

    def __init__(self, session_id: str, websocket: WebSocket, queue_size: int = 256,
                 on_failed: Optional[Callable[[str], None]] = None):
        self.id = session_id
        self.websocket = websocket
        self.on_failed = on_failed
        self.closed = False
        self.queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self.dropped = 0
        self._writer: Optional[asyncio.Task] = None

    def start(self) -> None:
        self._writer = asyncio.create_task(self._write_loop())

    async def close(self) -> None:
        if self._writer:
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            self._writer = None

    def offer(self, text: str) -> None:
        """Queue a message without blocking; a full queue loses its oldest entry."""
        if self.closed:
            return
        if self.queue.full():
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            self.dropped += 1
            if self.dropped == 1 or self.dropped % 100 == 0:
                logger.warning("session {} is slow, {} messages dropped", self.id, self.dropped)
        self.queue.put_nowait(text)

    async def _write_loop(self) -> None:
        while True:
            text = await self.queue.get()
            try:
                await self.websocket.send_text(text)
            except Exception as e:
                logger.warning("failed to send to session {}: {}", self.id, e)
                self.closed = True
                if self.on_failed:
                    self.on_failed(self.id)
                return


class SessionManager:
    """Routes engine events to sessions: direct (`to`), or broadcast minus `exclude`."""

    def __init__(self, queue_size: int = 256):
        self.queue_size = queue_size
        self.sessions: Dict[str, Session] = {}

    def open(self, session_id: str, websocket: WebSocket) -> Session:
        session = Session(session_id, websocket, self.queue_size, on_failed=self._discard)
        self.sessions[session_id] = session
        session.start()
        logger.info("session {} connected. Total sessions: {}", session_id, len(self.sessions))
        return session

    async def close(self, session_id: str) -> None:
        session = self.sessions.pop(session_id, None)
        if session is None:
            return
        await session.close()
        logger.info("session {} disconnected. Total sessions: {}", session_id, len(self.sessions))

    def _discard(self, session_id: str) -> None:
        # called from the writer task, which exits right after
        if self.sessions.pop(session_id, None) is not None:
            logger.info("session {} dropped after a failed send. Total sessions: {}", session_id, len(self.sessions))

    def send_to(self, session_id: str, message: dict) -> bool:
        session = self.sessions.get(session_id)
        if session is None:
            return False
        session.offer(json.dumps(message))
        return True

    def dispatch(self, evts: List[Event]) -> None:
        """Deliver events; never blocks the caller."""
        for e in evts:
            text = json.dumps(e.to_message())
            if e.to is not None:
                session = self.sessions.get(e.to)
                if session:
                    session.offer(text)
                continue
            for sid, session in list(self.sessions.items()):
                if sid != e.exclude:
                    session.offer(text)
