import asyncio
import time
from typing import Callable, Dict, List, Optional

from loguru import logger

from engine.engine import Engine
from engine.model import Event, Intent
from .eventlog import EventLog

Publisher = Callable[[List[Event]], None]


class TickRunner:
    """Async driver that runs the engine on a fixed tick cadence.

    Inbound intents are queued and drained at the start of the next tick. The
    tick body never awaits, and it holds the same lock as connect/disconnect,
    so a tick never sees a half-added or half-removed tank.
    """

    def __init__(self, engine: Engine, publish: Optional[Publisher] = None,
                 tick_rate: Optional[int] = None, event_log_size: int = 10000):
        self.engine = engine
        self.publish = publish
        self.tick_rate = tick_rate or engine.config.tick_rate
        self.sleep_s = 1.0 / self.tick_rate
        self._intents: asyncio.Queue[List[Intent]] = asyncio.Queue()
        self.events = EventLog(event_log_size)
        self.ticks = 0
        self._task: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self):
        """Start the tick loop."""
        if self._task:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("tick loop started at {} Hz", self.tick_rate)

    async def stop(self):
        """Stop the tick loop gracefully."""
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("tick loop stopped after {} ticks", self.ticks)

    async def _loop(self):
        """Main tick loop - measure dt, step engine, publish events."""
        last = time.monotonic()
        while True:
            started = time.monotonic()
            dt = started - last
            last = started

            async with self._lock:
                try:
                    evts = self.tick(dt)
                except Exception:
                    logger.exception("tick {} failed", self.ticks)
                    evts = []

            if evts and self.publish:
                self.publish(evts)
            elapsed = time.monotonic() - started
            await asyncio.sleep(max(0.0, self.sleep_s - elapsed))

    def tick(self, dt: float) -> List[Event]:
        """Run one tick synchronously with an explicit dt in seconds."""
        batched: List[Intent] = []
        # Drain all pending intents from the queue
        while not self._intents.empty():
            try:
                batched += self._intents.get_nowait()
            except asyncio.QueueEmpty:
                break
        if batched:
            logger.debug("applying {} intents", len(batched))
            self.engine.apply_intents(batched)

        evts = self.engine.step(dt)
        self.ticks += 1
        self.events.append_many([e for e in evts if e.kind != "state"])
        return evts

    async def enqueue_intents(self, intents: List[Intent]):
        """Queue intents to be applied on next tick."""
        await self._intents.put(intents)

    async def connect(self, session_id: str, name: Optional[str] = None) -> Dict:
        async with self._lock:
            return self.engine.connect(session_id, name)

    async def disconnect(self, session_id: str) -> bool:
        async with self._lock:
            return self.engine.disconnect(session_id)

    async def snapshot(self) -> Dict:
        """Get current state (consistent with tick boundaries)."""
        async with self._lock:
            return self.engine.snapshot()
